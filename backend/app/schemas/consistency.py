# Copyright (c) 2025 PilotTrain Analytics. All rights reserved.
# This source code is proprietary and confidential.
# Unauthorized copying, modification, distribution, or derivative works are strictly prohibited without prior written consent.

"""Schémas Pydantic pour l'évaluation de la régularité des performances."""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from app.schemas.common import EngineResponse, PayloadModel


class TraineeMetrics(PayloadModel):
    """Série de métriques par séance pour un stagiaire."""

    trainee_id: str = Field(..., min_length=1, description="Identifiant du stagiaire")
    performance_metrics: List[Dict[str, Any]] = Field(
        ...,
        min_length=1,
        description="Séances ordonnées: date, session_id et colonnes numériques",
    )


class PerformanceConsistencyRequest(PayloadModel):
    """Requête d'évaluation de stagiaires."""

    trainees: List[Dict[str, Any]] = Field(
        ..., description="Stagiaires à évaluer (voir TraineeMetrics)"
    )


class PerformanceAnomaly(BaseModel):
    """Valeur anormale détectée par z-score."""

    metric: str
    session_id: str
    date: Optional[str] = None
    value: float
    z_score: float
    severity: Literal["medium", "high"]


class ConsistencyRecommendation(BaseModel):
    """Synthèse et actions recommandées."""

    summary: str
    actions: List[str]


class ConsistencyAssessment(BaseModel):
    """Évaluation de la régularité d'un stagiaire."""

    trainee_id: str
    consistency_score: float = Field(..., ge=0, le=10)
    variance_metrics: Dict[str, float] = Field(..., description="Écart-type par métrique")
    anomalies: List[PerformanceAnomaly]
    recommendation: ConsistencyRecommendation


class PerformanceConsistencyResponse(EngineResponse):
    """Réponse de l'endpoint performance-consistency."""

    assessment_date: datetime
    assessments: List[ConsistencyAssessment]
