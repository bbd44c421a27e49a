# Copyright (c) 2025 PilotTrain Analytics. All rights reserved.
# This source code is proprietary and confidential.
# Unauthorized copying, modification, distribution, or derivative works are strictly prohibited without prior written consent.

"""Schémas Pydantic pour l'entraînement des modèles."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TrainingRequest(BaseModel):
    """Jeu de données d'entraînement (une ligne par exemple)."""

    training_data: List[Dict[str, Any]] = Field(
        ..., min_length=1, description="Lignes d'entraînement: features et cible"
    )


class TrainingResponse(BaseModel):
    """Résultat d'un entraînement."""

    model_config = ConfigDict(protected_namespaces=())

    status: str = Field(..., description="'success' ou 'queued'")
    message: str
    model_kind: str
    model_version: Optional[str] = None
    metrics: Dict[str, Any] = Field(default_factory=dict)
    task_id: Optional[str] = Field(None, description="Identifiant Celery si asynchrone")
