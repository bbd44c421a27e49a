# Copyright (c) 2025 PilotTrain Analytics. All rights reserved.
# This source code is proprietary and confidential.
# Unauthorized copying, modification, distribution, or derivative works are strictly prohibited without prior written consent.

"""Schémas Pydantic pour la prédiction de dégradation des compétences."""

from datetime import datetime
from typing import Any, Dict, List

from pydantic import BaseModel, Field

from app.schemas.common import EngineResponse, PayloadModel


class PracticeObservation(BaseModel):
    """Tentative observée sur une compétence."""

    correct: bool = Field(..., description="La tentative a-t-elle été réussie")


class SkillObservation(PayloadModel):
    """Compétence d'un stagiaire et paramètres BKT associés."""

    skill_id: str = Field(..., min_length=1, description="Identifiant de la compétence")
    skill_name: str = Field("Unknown Skill", description="Libellé de la compétence")
    days_since_training: float = Field(..., ge=0, description="Jours depuis le dernier entraînement")
    practice_frequency: float = Field(0.0, ge=0, description="Séances de pratique par semaine")
    initial_performance: float = Field(0.5, ge=0, le=1, description="Performance en fin de formation")
    complexity: float = Field(0.5, ge=0, description="Complexité de la compétence")
    performance_threshold: float = Field(
        0.7, gt=0, le=1, description="Seuil de performance déclenchant une intervention"
    )

    # Paramètres Bayesian Knowledge Tracing
    p_transit: float = Field(0.1, ge=0, le=1, description="Probabilité d'acquisition après une tentative")
    p_slip: float = Field(0.1, ge=0, lt=1, description="Probabilité d'erreur malgré la maîtrise")
    p_guess: float = Field(0.2, ge=0, lt=1, description="Probabilité de réussite sans maîtrise")
    p_init: float = Field(0.5, ge=0, le=1, description="Probabilité initiale de maîtrise")
    decay_rate: float = Field(0.01, ge=0, lt=1, description="Taux de dégradation journalier")

    observations: List[PracticeObservation] = Field(
        default_factory=list,
        description="Historique ordonné des tentatives",
    )


class SkillDecayRequest(PayloadModel):
    """Requête de prédiction pour un stagiaire."""

    trainee_id: str = Field(..., min_length=1, description="Identifiant du stagiaire")
    skills: List[Dict[str, Any]] = Field(
        ..., description="Compétences à évaluer (voir SkillObservation)"
    )


class DecayPoint(BaseModel):
    """Point de la courbe de dégradation."""

    day: int = Field(..., ge=0)
    performance: float = Field(..., ge=0, le=1)


class SkillDecayPrediction(BaseModel):
    """Prévision pour une compétence."""

    skill_id: str
    skill_name: str
    current_performance: float = Field(..., ge=0, le=1, description="Probabilité de maîtrise actuelle")
    days_to_intervention: int = Field(..., ge=0, description="Jours avant passage sous le seuil")
    decay_curve: List[DecayPoint]


class SkillDecayResponse(EngineResponse):
    """Réponse de l'endpoint skill-decay."""

    trainee_id: str
    prediction_date: datetime
    predictions: List[SkillDecayPrediction]
