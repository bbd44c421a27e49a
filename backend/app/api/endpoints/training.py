# Copyright (c) 2025 PilotTrain Analytics. All rights reserved.
# This source code is proprietary and confidential.
# Unauthorized copying, modification, distribution, or derivative works are strictly prohibited without prior written consent.

"""
Endpoints API d'entraînement et de consultation des modèles
"""

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.concurrency import run_in_threadpool

from app.core.deps import get_model_registry
from app.ml.registry import ModelRegistry
from app.ml.store import ModelKind
from app.schemas.training import TrainingRequest, TrainingResponse
from app.tasks.ml_tasks import train_model

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/train/{model_kind}", response_model=TrainingResponse)
async def train(
    model_kind: str,
    request: TrainingRequest,
    asynchronous: bool = Query(False, description="Déléguer l'entraînement à un worker Celery"),
    registry: ModelRegistry = Depends(get_model_registry),
):
    """
    Entraîne (ou ré-entraîne) le modèle d'un type donné

    En mode synchrone, la requête attend la fin de l'entraînement ; les
    entraînements d'un même type sont mis en file. En mode asynchrone, la
    tâche Celery ``train_model`` est envoyée sur la file ``ml``.
    """
    kind = ModelKind.parse(model_kind)

    if asynchronous:
        task = train_model.delay(kind.value, request.training_data)
        logger.info(f"Training task {task.id} queued for {kind.value}")
        return TrainingResponse(
            status="queued",
            message=f"Training of {kind.value} model queued",
            model_kind=kind.value,
            task_id=task.id,
        )

    model = await registry.coordinator.run(kind, request.training_data)
    return TrainingResponse(
        status="success",
        message=f"{kind.value} model trained successfully",
        model_kind=kind.value,
        model_version=model.model_version,
        metrics=model.performance_metrics,
    )


@router.get("/models")
async def list_models(registry: ModelRegistry = Depends(get_model_registry)):
    """
    Disponibilité, version et métriques de chaque type de modèle
    """
    return await run_in_threadpool(registry.store.status)
