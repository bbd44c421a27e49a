# Copyright (c) 2025 PilotTrain Analytics. All rights reserved.
# This source code is proprietary and confidential.
# Unauthorized copying, modification, distribution, or derivative works are strictly prohibited without prior written consent.

"""
Évaluation du risque de fatigue en service

Le score (0-10) provient soit d'une forêt aléatoire entraînée, soit d'une
somme pondérée des facteurs de service et du rythme circadien.
"""

import logging
from datetime import datetime
from typing import List

import numpy as np
import pandas as pd

from app.ml.predictor import HeuristicPredictor, build_predictor
from app.ml.store import ModelKind, ModelStore
from app.schemas.common import validate_items
from app.schemas.fatigue import (
    DutySchedule,
    FatiguePrediction,
    FatigueRiskRequest,
    FatigueRiskResponse,
    RiskCategory,
)

logger = logging.getLogger(__name__)

FEATURE_COLUMNS = [
    "duty_hours_24h",
    "duty_hours_7d",
    "hours_since_rest",
    "time_of_day",
    "timezone_changes_3d",
    "sleep_quality",
]
TARGET_COLUMN = "fatigue_score"


def circadian_factor(time_of_day):
    """
    Contribution circadienne à la fatigue

    Maximale (1.5) au creux de vigilance vers 04h, minimale (0.5) au pic de
    vigilance vers 16h. Le cosinus est ajouté et non soustrait : la forme
    ``1 - 0.5·cos((t-4)π/12)`` donnerait la fatigue minimale à 04h.
    """
    return 1 + 0.5 * np.cos((np.asarray(time_of_day, dtype=float) - 4) * np.pi / 12)


def simplified_fatigue_score(features: pd.DataFrame) -> np.ndarray:
    """
    Score de fatigue heuristique (0-10)

    Args:
        features: Colonnes ``FEATURE_COLUMNS``

    Returns:
        Scores bornés à [0, 10]
    """
    score = (
        0.3 * (features["duty_hours_24h"] / 24)
        + 0.2 * (features["duty_hours_7d"] / 168)
        + 0.2 * (features["hours_since_rest"] / 24)
        + 0.15 * circadian_factor(features["time_of_day"])
        + 0.1 * (features["timezone_changes_3d"] * 0.1)
        + 0.05 * (1 - features["sleep_quality"])
    ) * 10
    return np.clip(np.asarray(score, dtype=float), 0, 10)


def categorize_risk(fatigue_score: float) -> RiskCategory:
    """Catégorise un score de fatigue."""

    if fatigue_score < 3:
        return RiskCategory.LOW
    elif fatigue_score < 6:
        return RiskCategory.MODERATE
    elif fatigue_score < 8:
        return RiskCategory.HIGH
    return RiskCategory.SEVERE


def generate_mitigations(risk_category: RiskCategory, schedule: DutySchedule) -> List[str]:
    """
    Génère les mesures d'atténuation adaptées au niveau de risque

    Args:
        risk_category: Catégorie de risque
        schedule: Planning évalué

    Returns:
        Liste ordonnée de mesures
    """
    mitigations = ["Ensure proper hydration"]

    if risk_category == RiskCategory.LOW:
        mitigations.append("Maintain normal procedures")
    elif risk_category == RiskCategory.MODERATE:
        mitigations.append("Consider strategic caffeine intake")
        mitigations.append("Increase monitoring of fatigue signs")
    elif risk_category == RiskCategory.HIGH:
        mitigations.append("Implement crew augmentation if available")
        mitigations.append("Mandatory controlled rest periods")
        mitigations.append("Enhanced monitoring by other crewmembers")
    else:
        mitigations.append("Consider operational limitation or delay")
        mitigations.append("Implement maximum automation use")
        mitigations.append("Additional crewmember for monitoring if possible")
        mitigations.append("Mandatory rest before next duty period")

    if risk_category == RiskCategory.LOW:
        return mitigations

    # Mesures spécifiques au planning
    if schedule.duty_hours_24h > 8:
        mitigations.append("Take short breaks every 1-2 hours")
    if schedule.time_of_day < 6 or schedule.time_of_day > 22:
        mitigations.append("Increase lighting levels in cockpit")
    if schedule.hours_since_rest > 12:
        mitigations.append("Ensure minimum 30-minute break before critical phases")
    if schedule.timezone_changes_3d > 0:
        mitigations.append("Adjust light exposure to aid circadian adaptation")

    return mitigations


class FatigueRiskEngine:
    """
    Moteur d'évaluation du risque de fatigue
    """

    kind = ModelKind.FATIGUE_RISK

    def __init__(self, store: ModelStore):
        self.store = store
        self.heuristic = HeuristicPredictor("simplified", simplified_fatigue_score)

    def predict_fatigue(self, request: FatigueRiskRequest) -> FatigueRiskResponse:
        """
        Évalue le risque de fatigue de chaque planning

        Args:
            request: Plannings à évaluer

        Returns:
            Scores, catégories et mesures d'atténuation
        """
        schedules, skipped = validate_items(request.schedules, DutySchedule, "schedule_id")
        predictor = build_predictor(self.store, self.kind, self.heuristic)

        predictions = []
        if schedules:
            features = pd.DataFrame([schedule.model_dump() for _, schedule in schedules])
            scores = np.clip(predictor.predict(features[FEATURE_COLUMNS]), 0, 10)

            for (_, schedule), score in zip(schedules, scores):
                risk_category = categorize_risk(float(score))
                predictions.append(
                    FatiguePrediction(
                        schedule_id=schedule.schedule_id,
                        trainee_id=schedule.trainee_id,
                        fatigue_score=float(score),
                        risk_category=risk_category,
                        mitigations=generate_mitigations(risk_category, schedule),
                    )
                )

        logger.info(
            f"Fatigue risk predicted for {len(predictions)} schedules, "
            f"{len(skipped)} skipped ({predictor.model_type})"
        )

        return FatigueRiskResponse(
            prediction_date=datetime.now(),
            predictions=predictions,
            model_type=predictor.model_type,
            skipped=skipped,
        )
