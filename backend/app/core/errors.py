# Copyright (c) 2025 PilotTrain Analytics. All rights reserved.
# This source code is proprietary and confidential.
# Unauthorized copying, modification, distribution, or derivative works are strictly prohibited without prior written consent.

"""Types d'erreurs du moteur d'analytique prédictive.

Chaque erreur porte le code HTTP renvoyé par les handlers de ``app.main``.
``ModelUnavailable`` n'est pas une erreur au sens HTTP : elle signale
simplement qu'aucun modèle entraîné n'existe et que l'algorithme
heuristique doit être utilisé.
"""

from typing import Optional


class AnalyticsError(Exception):
    """Base exception for analytics engine errors."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InputValidationError(AnalyticsError):
    """Raised when a request body is malformed or missing."""

    status_code = 400


class TrainingDataError(AnalyticsError):
    """Raised when a training dataset cannot be used to fit a model."""

    status_code = 500


class PredictionComputationError(AnalyticsError):
    """Raised when a numerical edge case prevents scoring a single item.

    Engines catch it per item and report the item as skipped.
    """

    status_code = 422


class PredictionTimeoutError(AnalyticsError):
    """Raised when a prediction exceeds the configured time budget."""

    status_code = 504


class TrainingLockError(AnalyticsError):
    """Raised when the per-kind training lock cannot be acquired."""

    status_code = 503


class UnknownModelKindError(AnalyticsError):
    """Raised when a route references a model kind that does not exist."""

    status_code = 404


class ModelUnavailable(Exception):
    """Signals that no trained model exists for a kind (fallback trigger)."""

    def __init__(self, kind: str) -> None:
        super().__init__(f"No trained model available for '{kind}'")
        self.kind = kind
