# Copyright (c) 2025 PilotTrain Analytics. All rights reserved.
# This source code is proprietary and confidential.
# Unauthorized copying, modification, distribution, or derivative works are strictly prohibited without prior written consent.

"""Tâches Celery pour l'entraînement des modèles ML."""

import logging
from pathlib import Path
from typing import Any, Dict, List

from app.core.config import settings
from app.core.errors import AnalyticsError
from app.ml.locks import TrainingLockManager
from app.ml.store import ModelKind, ModelStore
from app.ml.training import ModelTrainer
from app.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)

# Même verrou que le coordinateur de l'API
training_locks = TrainingLockManager.from_settings(settings)


@celery_app.task(bind=True)
def train_model(self, model_kind: str, training_data: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Entraîne le modèle d'un type donné et le sauvegarde dans ``ML_MODELS_PATH``

    Les processus API relisent le fichier au prochain chargement (cache
    revalidé par date de modification). Le verrou Redis du type est détenu
    pendant l'entraînement et la sauvegarde : une tâche concurrente du même
    type attend sa libération.

    Args:
        model_kind: Type de modèle (ex: "fatigue-risk")
        training_data: Lignes d'entraînement

    Returns:
        Dictionnaire avec le statut et les métriques
    """
    try:
        kind = ModelKind.parse(model_kind)
        logger.info(f"Starting {kind.value} model training ({len(training_data)} records)")

        trainer = ModelTrainer(min_samples=settings.MIN_TRAINING_SAMPLES)
        store = ModelStore(Path(settings.ML_MODELS_PATH))
        with training_locks.hold(kind):
            model = trainer.train(kind, training_data)
            model_path = store.save(model)

        logger.info(f"{kind.value} model training completed successfully")

        return {
            "status": "success",
            "model_kind": kind.value,
            "model_version": model.model_version,
            "metrics": model.performance_metrics,
            "model_path": str(model_path.absolute()),
        }

    except AnalyticsError as e:
        logger.error(f"Error training {model_kind} model: {e.message}", exc_info=True)
        return {
            "status": "error",
            "model_kind": model_kind,
            "message": e.message,
        }
