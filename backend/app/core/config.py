# Copyright (c) 2025 PilotTrain Analytics. All rights reserved.
# This source code is proprietary and confidential.
# Unauthorized copying, modification, distribution, or derivative works are strictly prohibited without prior written consent.

"""
Configuration du moteur d'analytique prédictive PilotTrain
Utilise pydantic-settings pour la gestion des variables d'environnement
"""

from typing import Any, List
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration principale de l'application"""

    # Application
    APP_NAME: str = "PilotTrain Predictive Analytics"
    APP_VERSION: str = "0.1.0"
    API_PREFIX: str = "/api"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # CORS
    CORS_ORIGINS: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://localhost:5173",
        ]
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Any) -> List[str]:
        """Normalise les origines CORS depuis une chaîne ou une liste."""

        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]

        if isinstance(v, (list, tuple)):
            return [str(origin).strip() for origin in v if str(origin).strip()]

        return []

    # Machine Learning
    ML_MODELS_PATH: str = "models"
    MIN_TRAINING_SAMPLES: int = 10
    MAX_INTERVENTION_HORIZON_DAYS: int = 365

    # Exécution des prédictions
    PREDICTION_TIMEOUT_SECONDS: float = 30.0
    SYLLABUS_MODULE_WORKERS: int = 4

    # Celery (entraînement asynchrone)
    CELERY_BROKER_URL: str = "redis://redis:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://redis:6379/0"

    # Verrou d'entraînement par type de modèle (Redis, partagé API / workers)
    TRAINING_LOCK_URL: str = "redis://redis:6379/1"
    TRAINING_LOCK_TTL_SECONDS: float = 1800.0
    TRAINING_LOCK_WAIT_SECONDS: float = 3600.0

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )


# Instance globale des settings
settings = Settings()
