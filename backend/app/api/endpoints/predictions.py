# Copyright (c) 2025 PilotTrain Analytics. All rights reserved.
# This source code is proprietary and confidential.
# Unauthorized copying, modification, distribution, or derivative works are strictly prohibited without prior written consent.

"""
Endpoints API des moteurs de prédiction

Les calculs sont exécutés dans le pool de threads avec une limite de temps
(``PREDICTION_TIMEOUT_SECONDS``). Les éléments invalides d'un lot sont
signalés dans le champ ``skipped`` de la réponse.
"""

import logging

from fastapi import APIRouter, Depends

from app.core.deps import get_model_registry, run_with_timeout
from app.ml.registry import ModelRegistry
from app.schemas.consistency import PerformanceConsistencyRequest, PerformanceConsistencyResponse
from app.schemas.effectiveness import TrainingEffectivenessRequest, TrainingEffectivenessResponse
from app.schemas.fatigue import FatigueRiskRequest, FatigueRiskResponse
from app.schemas.skill_decay import SkillDecayRequest, SkillDecayResponse
from app.schemas.syllabus import SyllabusOptimizationRequest, SyllabusOptimizationResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/predict/skill-decay", response_model=SkillDecayResponse)
async def predict_skill_decay(
    request: SkillDecayRequest,
    registry: ModelRegistry = Depends(get_model_registry),
):
    """
    Prédit la dégradation de chaque compétence d'un stagiaire

    Retourne la performance actuelle, le nombre de jours avant intervention
    et la courbe de décroissance par compétence.
    """
    logger.info(f"Skill decay requested for trainee {request.trainee_id} ({len(request.skills)} skills)")
    return await run_with_timeout(
        registry.prediction_timeout, registry.skill_decay.predict_decay, request
    )


@router.post("/predict/fatigue-risk", response_model=FatigueRiskResponse)
async def predict_fatigue_risk(
    request: FatigueRiskRequest,
    registry: ModelRegistry = Depends(get_model_registry),
):
    """
    Évalue le risque de fatigue de plannings de service
    """
    return await run_with_timeout(
        registry.prediction_timeout, registry.fatigue.predict_fatigue, request
    )


@router.post("/predict/training-effectiveness", response_model=TrainingEffectivenessResponse)
async def predict_training_effectiveness(
    request: TrainingEffectivenessRequest,
    registry: ModelRegistry = Depends(get_model_registry),
):
    """
    Prédit l'efficacité de programmes de formation

    Chaque score est accompagné d'un intervalle de confiance à 95% et de
    recommandations.
    """
    return await run_with_timeout(
        registry.prediction_timeout, registry.effectiveness.predict_effectiveness, request
    )


@router.post("/assess/performance-consistency", response_model=PerformanceConsistencyResponse)
async def assess_performance_consistency(
    request: PerformanceConsistencyRequest,
    registry: ModelRegistry = Depends(get_model_registry),
):
    """
    Évalue la régularité des performances et détecte les anomalies
    """
    return await run_with_timeout(
        registry.prediction_timeout, registry.consistency.assess_consistency, request
    )


@router.post("/optimize/syllabus", response_model=SyllabusOptimizationResponse)
async def optimize_syllabus(
    request: SyllabusOptimizationRequest,
    registry: ModelRegistry = Depends(get_model_registry),
):
    """
    Optimise la configuration des modules et la séquence d'un ou plusieurs syllabus
    """
    return await run_with_timeout(
        registry.prediction_timeout, registry.syllabus.optimize_syllabus, request
    )
