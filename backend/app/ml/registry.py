# Copyright (c) 2025 PilotTrain Analytics. All rights reserved.
# This source code is proprietary and confidential.
# Unauthorized copying, modification, distribution, or derivative works are strictly prohibited without prior written consent.

"""
Registre des composants ML partagés par l'application

Construit une seule fois au démarrage (lifespan FastAPI) puis injecté dans
les routes via ``Depends``.
"""

import logging
from pathlib import Path
from typing import Optional

from app.core.config import Settings, settings as default_settings
from app.ml.consistency import PerformanceConsistencyEngine
from app.ml.effectiveness import TrainingEffectivenessEngine
from app.ml.fatigue import FatigueRiskEngine
from app.ml.locks import TrainingLockManager
from app.ml.skill_decay import SkillDecayEngine
from app.ml.store import ModelStore
from app.ml.syllabus import SyllabusOptimizationEngine
from app.ml.training import ModelTrainer, TrainingCoordinator

logger = logging.getLogger(__name__)


class ModelRegistry:
    """
    Store de modèles, coordinateur d'entraînement et moteurs de prédiction
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        models_dir: Optional[Path] = None,
        locks: Optional[TrainingLockManager] = None,
    ):
        """
        Initialise le registre

        Args:
            config: Configuration (settings globaux par défaut)
            models_dir: Répertoire des modèles (``ML_MODELS_PATH`` par défaut)
            locks: Verrous d'entraînement (Redis ``TRAINING_LOCK_URL`` par défaut)
        """
        config = config or default_settings
        self.prediction_timeout = config.PREDICTION_TIMEOUT_SECONDS
        self.store = ModelStore(Path(models_dir or config.ML_MODELS_PATH))
        self.coordinator = TrainingCoordinator(
            ModelTrainer(min_samples=config.MIN_TRAINING_SAMPLES),
            self.store,
            locks or TrainingLockManager.from_settings(config),
        )

        self.skill_decay = SkillDecayEngine(
            self.store, max_horizon_days=config.MAX_INTERVENTION_HORIZON_DAYS
        )
        self.fatigue = FatigueRiskEngine(self.store)
        self.effectiveness = TrainingEffectivenessEngine(self.store)
        self.consistency = PerformanceConsistencyEngine(self.store)
        self.syllabus = SyllabusOptimizationEngine(
            self.store, module_workers=config.SYLLABUS_MODULE_WORKERS
        )

        logger.info(f"Model registry initialized (models directory: {self.store.models_dir})")

    def close(self) -> None:
        self.coordinator.shutdown(wait=True)
