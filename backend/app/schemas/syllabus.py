# Copyright (c) 2025 PilotTrain Analytics. All rights reserved.
# This source code is proprietary and confidential.
# Unauthorized copying, modification, distribution, or derivative works are strictly prohibited without prior written consent.

"""Schémas Pydantic pour l'optimisation des syllabus."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

from app.schemas.common import EngineResponse, PayloadModel


class SyllabusModuleConfig(PayloadModel):
    """Module d'un syllabus."""

    id: str = Field(..., min_length=1, description="Identifiant du module")
    name: str = Field(..., min_length=1, description="Nom du module")
    duration: float = Field(..., gt=0, description="Durée du module (heures)")
    complexity: float = Field(..., ge=0, le=10, description="Complexité (0-10)")
    theory_percentage: float = Field(..., ge=0, le=100, description="Part théorique (%)")
    practical_percentage: Optional[float] = Field(
        None, ge=0, le=100, description="Part pratique (%), 100 - théorie si absente"
    )
    position: Optional[int] = Field(
        None, ge=0, description="Position dans le syllabus, ordre du lot si absente"
    )
    prerequisites: List[str] = Field(default_factory=list, description="Identifiants des prérequis")
    assessments: List[Any] = Field(default_factory=list, description="Évaluations du module")

    @model_validator(mode="after")
    def fill_practical_percentage(self) -> "SyllabusModuleConfig":
        if self.practical_percentage is None:
            self.practical_percentage = 100 - self.theory_percentage
        return self


class SyllabusConfig(PayloadModel):
    """Syllabus complet: l'ensemble des modules est traité comme une unité."""

    id: str = Field(..., min_length=1, description="Identifiant du syllabus")
    name: str = Field("Unknown Syllabus", description="Nom du syllabus")
    modules: List[Dict[str, Any]] = Field(
        ..., min_length=1, description="Modules du syllabus (voir SyllabusModuleConfig)"
    )


class SyllabusOptimizationRequest(PayloadModel):
    """Requête d'optimisation de syllabus."""

    syllabi: List[Dict[str, Any]] = Field(
        ..., description="Syllabus à optimiser (voir SyllabusConfig)"
    )


class ModuleFeatures(BaseModel):
    """Configuration d'un module telle que vue par le prédicteur."""

    duration: float
    complexity: float
    theory_percentage: float
    practical_percentage: float
    position_in_syllabus: float
    prerequisites_count: int
    assessment_count: int


class ModuleOptimization(BaseModel):
    """Résultat d'optimisation d'un module."""

    module_id: str
    module_name: str
    current_effectiveness: float = Field(..., ge=0, le=10)
    optimized_effectiveness: float = Field(..., ge=0, le=10)
    improvement_percentage: float
    current_config: ModuleFeatures
    recommended_config: ModuleFeatures
    recommendations: List[str]


class SyllabusOptimization(BaseModel):
    """Résultat d'optimisation d'un syllabus."""

    syllabus_id: str
    syllabus_name: str
    current_effectiveness: float
    optimized_effectiveness: float
    overall_improvement: float
    modules: List[ModuleOptimization]
    recommended_sequence: List[str]
    sequence_effectiveness: float


class SyllabusOptimizationResponse(EngineResponse):
    """Réponse de l'endpoint syllabus."""

    optimization_date: datetime
    optimizations: List[SyllabusOptimization]
