# Copyright (c) 2025 PilotTrain Analytics. All rights reserved.
# This source code is proprietary and confidential.
# Unauthorized copying, modification, distribution, or derivative works are strictly prohibited without prior written consent.

"""
Prédiction de l'efficacité des programmes de formation

Le modèle appris est un Gradient Boosting sur les features numériques et
l'encodage one-hot de ``training_method``. Le repli applique des règles
expertes pondérées par un multiplicateur propre à chaque méthode.
"""

import logging
from datetime import datetime
from typing import Dict, List

import numpy as np
import pandas as pd

from app.ml.predictor import HeuristicPredictor, build_predictor
from app.ml.store import ModelKind, ModelStore
from app.schemas.common import validate_items
from app.schemas.effectiveness import (
    ConfidenceInterval,
    EffectivenessPrediction,
    TrainingEffectivenessRequest,
    TrainingEffectivenessResponse,
    TrainingMethod,
    TrainingProgramConfig,
)

logger = logging.getLogger(__name__)

NUMERIC_FEATURES = [
    "training_duration",
    "sessions_per_week",
    "instructor_experience",
    "trainee_experience",
    "material_complexity",
]
CATEGORICAL_FEATURE = "training_method"
TARGET_COLUMN = "effectiveness_score"

METHOD_MULTIPLIERS: Dict[str, float] = {
    TrainingMethod.CLASSROOM.value: 0.6,
    TrainingMethod.SIMULATOR.value: 0.9,
    TrainingMethod.AIRCRAFT.value: 1.0,
    TrainingMethod.CBT.value: 0.7,
    TrainingMethod.VR.value: 0.8,
}
DEFAULT_METHOD_MULTIPLIER = 0.7

Z_95 = 1.96
BASE_STANDARD_ERROR = 0.5


def one_hot_methods(features: pd.DataFrame) -> pd.DataFrame:
    """
    Ajoute les colonnes ``training_method_<méthode>`` pour toutes les méthodes connues

    Les méthodes absentes du lot sont encodées à 0, de sorte que le vecteur
    reconstruit contienne toujours les colonnes vues à l'entraînement.
    """
    encoded = features.copy()
    methods = encoded[CATEGORICAL_FEATURE].astype(str)
    for method in TrainingMethod:
        encoded[f"{CATEGORICAL_FEATURE}_{method.value}"] = (methods == method.value).astype(int)
    return encoded


def expert_rules_score(features: pd.DataFrame) -> np.ndarray:
    """
    Score d'efficacité heuristique (0-10)

    Args:
        features: Colonnes ``NUMERIC_FEATURES`` et ``training_method``

    Returns:
        Scores bornés à [0, 10]
    """
    base_score = (
        0.3 * (features["training_duration"] / 10)
        + 0.15 * (features["sessions_per_week"] / 5)
        + 0.2 * (features["instructor_experience"] / 10)
        + 0.15 * (features["trainee_experience"] / 10)
        + 0.2 * (1 - features["material_complexity"] / 10)
    ) * 10
    method_weight = (
        features[CATEGORICAL_FEATURE]
        .astype(str)
        .map(METHOD_MULTIPLIERS)
        .fillna(DEFAULT_METHOD_MULTIPLIER)
    )
    return np.clip(np.asarray(base_score * method_weight, dtype=float), 0, 10)


def confidence_interval(score: float, data_quality: float) -> ConfidenceInterval:
    """Intervalle à 95%, plus large quand la qualité des données est faible."""

    std_error = BASE_STANDARD_ERROR * (2 - data_quality)
    return ConfidenceInterval(
        lower_bound=max(0.0, score - Z_95 * std_error),
        upper_bound=min(10.0, score + Z_95 * std_error),
        standard_error=std_error,
    )


def generate_recommendations(score: float, program: TrainingProgramConfig) -> List[str]:
    """
    Génère des recommandations pour améliorer l'efficacité

    Args:
        score: Score d'efficacité (0-10)
        program: Configuration du programme

    Returns:
        Liste de recommandations
    """
    recommendations = []

    if score < 4:
        recommendations.append("Consider restructuring the training program")
        recommendations.append("Reduce complexity by breaking content into smaller modules")
        recommendations.append("Increase hands-on practice time")
        if program.sessions_per_week < 3:
            recommendations.append("Increase training frequency to improve retention")
        if program.instructor_experience < 5:
            recommendations.append("Assign more experienced instructors to this program")
    elif score < 7:
        recommendations.append("Consider adding supplementary training materials")
        if program.training_method == TrainingMethod.CLASSROOM:
            recommendations.append("Incorporate simulator sessions for practical application")
        if program.material_complexity > 7:
            recommendations.append("Add additional preparation modules before complex topics")
    else:
        recommendations.append("Monitor ongoing effectiveness through regular assessments")
        recommendations.append("Document successful approaches for other training programs")
        if program.trainee_experience < 5:
            recommendations.append("Consider adding optional advanced modules for experienced trainees")

    return recommendations


class TrainingEffectivenessEngine:
    """
    Moteur de prédiction de l'efficacité des programmes
    """

    kind = ModelKind.TRAINING_EFFECTIVENESS

    def __init__(self, store: ModelStore):
        self.store = store
        self.heuristic = HeuristicPredictor("expert_rules", expert_rules_score)

    def predict_effectiveness(
        self,
        request: TrainingEffectivenessRequest,
    ) -> TrainingEffectivenessResponse:
        """
        Prédit l'efficacité de chaque programme

        Args:
            request: Programmes à évaluer

        Returns:
            Scores, intervalles de confiance et recommandations
        """
        programs, skipped = validate_items(request.programs, TrainingProgramConfig, "program_id")
        predictor = build_predictor(self.store, self.kind, self.heuristic)

        predictions = []
        if programs:
            features = pd.DataFrame([program.model_dump(mode="json") for _, program in programs])
            scores = np.clip(predictor.predict(one_hot_methods(features)), 0, 10)

            for (_, program), score in zip(programs, scores):
                score = float(score)
                predictions.append(
                    EffectivenessPrediction(
                        program_id=program.program_id,
                        effectiveness_score=score,
                        confidence_interval=confidence_interval(score, program.data_quality),
                        recommendations=generate_recommendations(score, program),
                    )
                )

        logger.info(
            f"Training effectiveness predicted for {len(predictions)} programs, "
            f"{len(skipped)} skipped ({predictor.model_type})"
        )

        return TrainingEffectivenessResponse(
            prediction_date=datetime.now(),
            predictions=predictions,
            model_type=predictor.model_type,
            skipped=skipped,
        )
