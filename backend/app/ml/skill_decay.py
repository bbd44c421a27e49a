# Copyright (c) 2025 PilotTrain Analytics. All rights reserved.
# This source code is proprietary and confidential.
# Unauthorized copying, modification, distribution, or derivative works are strictly prohibited without prior written consent.

"""
Prédiction de la dégradation des compétences

Deux chemins de calcul produisent la même réponse :

* modèle appris : régression bayésienne ridge sur
  ``[days_since_training, practice_frequency, initial_performance, complexity]``
* repli : Bayesian Knowledge Tracing (BKT) suivi d'une décroissance
  exponentielle journalière.
"""

import logging
import math
from datetime import datetime
from typing import Any, Dict, List

import numpy as np
import pandas as pd

from app.core.errors import PredictionComputationError
from app.ml.predictor import HeuristicPredictor, Predictor, build_predictor
from app.ml.store import ModelKind, ModelStore
from app.schemas.common import SkippedItem, validate_items
from app.schemas.skill_decay import (
    DecayPoint,
    SkillDecayPrediction,
    SkillDecayRequest,
    SkillDecayResponse,
    SkillObservation,
)

logger = logging.getLogger(__name__)

FEATURE_COLUMNS = [
    "days_since_training",
    "practice_frequency",
    "initial_performance",
    "complexity",
]
TARGET_COLUMN = "current_performance"

# Jours projetés au-delà du point d'intervention
CURVE_TAIL_DAYS = 30


def bkt_update(
    p_mastery: float,
    correct: bool,
    p_slip: float,
    p_guess: float,
    p_transit: float,
) -> float:
    """
    Met à jour la probabilité de maîtrise après une tentative

    Args:
        p_mastery: Probabilité de maîtrise avant la tentative
        correct: Résultat de la tentative
        p_slip: Probabilité d'erreur malgré la maîtrise
        p_guess: Probabilité de réussite sans maîtrise
        p_transit: Probabilité d'acquisition après la tentative

    Returns:
        Probabilité de maîtrise après observation et transition
    """
    if correct:
        evidence = p_mastery * (1 - p_slip)
        denominator = evidence + (1 - p_mastery) * p_guess
    else:
        evidence = p_mastery * p_slip
        denominator = evidence + (1 - p_mastery) * (1 - p_guess)

    if denominator <= 0:
        outcome = "correct" if correct else "incorrect"
        raise PredictionComputationError(
            f"Observation '{outcome}' has zero likelihood under p_mastery={p_mastery}, "
            f"p_slip={p_slip}, p_guess={p_guess}"
        )

    posterior = evidence / denominator
    return posterior + (1 - posterior) * p_transit


def bkt_mastery(skill: Dict[str, Any]) -> float:
    """Probabilité de maîtrise actuelle (BKT puis décroissance temporelle)."""

    p_mastery = skill["p_init"]
    for observation in skill["observations"]:
        p_mastery = bkt_update(
            p_mastery,
            bool(observation["correct"]),
            skill["p_slip"],
            skill["p_guess"],
            skill["p_transit"],
        )

    return p_mastery * (1 - skill["decay_rate"]) ** skill["days_since_training"]


def days_to_intervention(
    current_performance: float,
    threshold: float,
    decay_rate: float,
    max_horizon_days: int,
) -> int:
    """
    Nombre de jours avant que la performance passe sous le seuil

    Args:
        current_performance: Performance actuelle (0-1)
        threshold: Seuil d'intervention (0-1]
        decay_rate: Taux de dégradation journalier [0, 1)
        max_horizon_days: Horizon maximal de projection

    Returns:
        0 si la performance est déjà sous le seuil, l'horizon maximal si
        aucune dégradation n'est attendue
    """
    if current_performance <= threshold:
        return 0
    if decay_rate <= 0:
        return max_horizon_days

    days = math.floor(math.log(threshold / current_performance) / math.log(1 - decay_rate))
    return int(min(max(0, days), max_horizon_days))


def decay_curve(current_performance: float, decay_rate: float, days: int) -> List[DecayPoint]:
    """Projection ``performance(day) = current * (1 - decay_rate) ** day`` pour day in [0, days]."""

    elapsed = np.arange(days + 1)
    performance = current_performance * np.power(1 - decay_rate, elapsed)
    return [
        DecayPoint(day=int(day), performance=float(value))
        for day, value in zip(elapsed, performance)
    ]


def _score_bkt(features: pd.DataFrame) -> np.ndarray:
    return np.array([bkt_mastery(row) for row in features.to_dict(orient="records")], dtype=float)


class SkillDecayEngine:
    """
    Moteur de prévision de la dégradation des compétences
    """

    kind = ModelKind.SKILL_DECAY

    def __init__(self, store: ModelStore, max_horizon_days: int = 365):
        """
        Initialise le moteur

        Args:
            store: Store des modèles entraînés
            max_horizon_days: Horizon utilisé quand la compétence ne se dégrade pas
        """
        self.store = store
        self.max_horizon_days = max_horizon_days
        self.heuristic = HeuristicPredictor("bkt_default", _score_bkt)

    def predict_decay(self, request: SkillDecayRequest) -> SkillDecayResponse:
        """
        Prévoit la dégradation de chaque compétence d'un stagiaire

        Args:
            request: Compétences du stagiaire

        Returns:
            Prévisions par compétence et compétences écartées
        """
        skills, skipped = validate_items(request.skills, SkillObservation, "skill_id")
        predictor = build_predictor(self.store, self.kind, self.heuristic)

        predictions = []
        for index, skill in skills:
            try:
                predictions.append(self._predict_skill(predictor, skill))
            except PredictionComputationError as exc:
                logger.warning(f"Skipping skill {skill.skill_id} for trainee {request.trainee_id}: {exc}")
                skipped.append(SkippedItem(index=index, id=skill.skill_id, reason=exc.message))

        logger.info(
            f"Skill decay predicted for trainee {request.trainee_id}: "
            f"{len(predictions)} skills, {len(skipped)} skipped ({predictor.model_type})"
        )

        return SkillDecayResponse(
            trainee_id=request.trainee_id,
            prediction_date=datetime.now(),
            predictions=predictions,
            model_type=predictor.model_type,
            skipped=sorted(skipped, key=lambda item: item.index),
        )

    def _predict_skill(self, predictor: Predictor, skill: SkillObservation) -> SkillDecayPrediction:
        features = pd.DataFrame([skill.model_dump()])
        current_performance = float(predictor.predict(features)[0])

        if not math.isfinite(current_performance):
            raise PredictionComputationError(f"Non-finite performance predicted for skill {skill.skill_id}")

        current_performance = min(1.0, max(0.0, current_performance))

        intervention = days_to_intervention(
            current_performance,
            skill.performance_threshold,
            skill.decay_rate,
            self.max_horizon_days,
        )

        return SkillDecayPrediction(
            skill_id=skill.skill_id,
            skill_name=skill.skill_name,
            current_performance=current_performance,
            days_to_intervention=intervention,
            decay_curve=decay_curve(current_performance, skill.decay_rate, intervention + CURVE_TAIL_DAYS),
        )
