# Copyright (c) 2025 PilotTrain Analytics. All rights reserved.
# This source code is proprietary and confidential.
# Unauthorized copying, modification, distribution, or derivative works are strictly prohibited without prior written consent.

"""Schémas Pydantic pour l'évaluation du risque de fatigue."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel, Field

from app.schemas.common import EngineResponse, PayloadModel


class RiskCategory(str, Enum):
    """Catégories de risque de fatigue (bornes 3, 6, 8 sur l'échelle 0-10)."""

    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"
    SEVERE = "Severe"


class DutySchedule(PayloadModel):
    """Planning de service d'un stagiaire."""

    schedule_id: str = Field(..., min_length=1, description="Identifiant du planning")
    trainee_id: str = Field(..., min_length=1, description="Identifiant du stagiaire")
    duty_hours_24h: float = Field(..., ge=0, le=24, description="Heures de service sur 24h")
    duty_hours_7d: float = Field(..., ge=0, le=168, description="Heures de service sur 7 jours")
    hours_since_rest: float = Field(..., ge=0, description="Heures depuis le dernier repos")
    time_of_day: float = Field(..., ge=0, lt=24, description="Heure locale (format 24h)")
    timezone_changes_3d: int = Field(0, ge=0, description="Changements de fuseau sur 3 jours")
    sleep_quality: float = Field(0.5, ge=0, le=1, description="Qualité du sommeil (0-1)")


class FatigueRiskRequest(PayloadModel):
    """Requête d'évaluation de plannings."""

    schedules: List[Dict[str, Any]] = Field(
        ..., description="Plannings à évaluer (voir DutySchedule)"
    )


class FatiguePrediction(BaseModel):
    """Score de fatigue d'un planning."""

    schedule_id: str
    trainee_id: str
    fatigue_score: float = Field(..., ge=0, le=10)
    risk_category: RiskCategory
    mitigations: List[str]


class FatigueRiskResponse(EngineResponse):
    """Réponse de l'endpoint fatigue-risk."""

    prediction_date: datetime
    predictions: List[FatiguePrediction]
