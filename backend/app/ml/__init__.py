# Copyright (c) 2025 PilotTrain Analytics. All rights reserved.
# This source code is proprietary and confidential.
# Unauthorized copying, modification, distribution, or derivative works are strictly prohibited without prior written consent.

"""Machine Learning package for PilotTrain.

This package groups all modules required for:
* the model store (persistence and in-memory cache per model kind),
* the five prediction engines with their heuristic fallbacks,
* syllabus sequencing (topological sort of prerequisites),
* model training and per-kind training coordination (Redis lock shared with
  the Celery workers).
"""

from app.ml.store import ModelKind, ModelStore, TrainedModel
from app.ml.predictor import HeuristicPredictor, LearnedPredictor, Predictor, build_predictor
from app.ml.skill_decay import SkillDecayEngine
from app.ml.fatigue import FatigueRiskEngine
from app.ml.effectiveness import TrainingEffectivenessEngine
from app.ml.consistency import PerformanceConsistencyEngine
from app.ml.syllabus import SyllabusOptimizationEngine
from app.ml.locks import TrainingLockManager
from app.ml.training import ModelTrainer, TrainingCoordinator
from app.ml.registry import ModelRegistry

__all__ = [
    "ModelKind",
    "ModelStore",
    "TrainedModel",
    "Predictor",
    "LearnedPredictor",
    "HeuristicPredictor",
    "build_predictor",
    "SkillDecayEngine",
    "FatigueRiskEngine",
    "TrainingEffectivenessEngine",
    "PerformanceConsistencyEngine",
    "SyllabusOptimizationEngine",
    "ModelTrainer",
    "TrainingCoordinator",
    "TrainingLockManager",
    "ModelRegistry",
]
