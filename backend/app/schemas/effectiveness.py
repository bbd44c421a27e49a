# Copyright (c) 2025 PilotTrain Analytics. All rights reserved.
# This source code is proprietary and confidential.
# Unauthorized copying, modification, distribution, or derivative works are strictly prohibited without prior written consent.

"""Schémas Pydantic pour la prédiction d'efficacité des programmes."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List

from pydantic import AliasChoices, BaseModel, Field, model_validator

from app.schemas.common import EngineResponse, PayloadModel


class TrainingMethod(str, Enum):
    """Méthodes de formation reconnues."""

    CLASSROOM = "classroom"
    SIMULATOR = "simulator"
    AIRCRAFT = "aircraft"
    CBT = "cbt"
    VR = "vr"


class TrainingProgramConfig(PayloadModel):
    """Configuration d'un programme de formation."""

    program_id: str = Field(..., min_length=1, description="Identifiant du programme")
    training_duration: float = Field(
        ...,
        gt=0,
        validation_alias=AliasChoices("training_duration", "duration"),
        description="Durée du programme (jours)",
    )
    sessions_per_week: float = Field(..., ge=0, description="Séances par semaine")
    instructor_experience: float = Field(..., ge=0, le=10, description="Expérience instructeur (0-10)")
    trainee_experience: float = Field(..., ge=0, le=10, description="Expérience stagiaire (0-10)")
    material_complexity: float = Field(
        ...,
        ge=0,
        le=10,
        validation_alias=AliasChoices("material_complexity", "complexity"),
        description="Complexité du contenu (0-10)",
    )
    training_method: TrainingMethod = Field(..., description="Méthode de formation")
    data_quality: float = Field(0.5, ge=0, le=1, description="Qualité des données (0-1)")

    @model_validator(mode="before")
    @classmethod
    def normalise_method(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("training_method"), str):
            data = {**data, "training_method": data["training_method"].strip().lower()}
        return data


class TrainingEffectivenessRequest(PayloadModel):
    """Requête d'évaluation de programmes."""

    programs: List[Dict[str, Any]] = Field(
        ..., description="Programmes à évaluer (voir TrainingProgramConfig)"
    )


class ConfidenceInterval(BaseModel):
    """Intervalle de confiance à 95% du score d'efficacité."""

    lower_bound: float = Field(..., ge=0, le=10)
    upper_bound: float = Field(..., ge=0, le=10)
    standard_error: float = Field(..., ge=0)


class EffectivenessPrediction(BaseModel):
    """Score d'efficacité d'un programme."""

    program_id: str
    effectiveness_score: float = Field(..., ge=0, le=10)
    confidence_interval: ConfidenceInterval
    recommendations: List[str]


class TrainingEffectivenessResponse(EngineResponse):
    """Réponse de l'endpoint training-effectiveness."""

    prediction_date: datetime
    predictions: List[EffectivenessPrediction]
