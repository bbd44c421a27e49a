# Copyright (c) 2025 PilotTrain Analytics. All rights reserved.
# This source code is proprietary and confidential.
# Unauthorized copying, modification, distribution, or derivative works are strictly prohibited without prior written consent.

"""
Évaluation de la régularité des performances et détection d'anomalies

Le score de régularité (0-10) vient soit d'un réseau de neurones entraîné
sur les vecteurs de métriques par séance (moyenne des prédictions par
séance), soit du coefficient de variation moyen des métriques. La détection
d'anomalies par z-score est identique pour les deux chemins.
"""

import logging
from datetime import datetime
from typing import Dict, List, Tuple

import numpy as np
import pandas as pd

from app.core.errors import PredictionComputationError
from app.ml.predictor import HeuristicPredictor, LearnedPredictor, Predictor, build_predictor
from app.ml.store import ModelKind, ModelStore
from app.schemas.common import SkippedItem, validate_items
from app.schemas.consistency import (
    ConsistencyAssessment,
    ConsistencyRecommendation,
    PerformanceAnomaly,
    PerformanceConsistencyRequest,
    PerformanceConsistencyResponse,
    TraineeMetrics,
)

logger = logging.getLogger(__name__)

NON_METRIC_COLUMNS = ("date", "session_id")
TARGET_COLUMN = "consistency_score"

ANOMALY_Z_THRESHOLD = 2.0
HIGH_SEVERITY_Z_THRESHOLD = 3.0


def coefficient_of_variation(values: pd.Series) -> float:
    """Écart-type / |moyenne|, ou l'écart-type seul si la moyenne est nulle."""

    mean = float(values.mean())
    std = float(values.std()) if len(values) > 1 else 0.0
    if mean == 0:
        return std
    return std / abs(mean)


def statistical_consistency_score(metrics: pd.DataFrame) -> np.ndarray:
    """
    Score de régularité statistique (0-10): ``10 * exp(-2 * cv_moyen)``

    Args:
        metrics: Une ligne par séance, une colonne par métrique

    Returns:
        Array d'un seul élément (score de la série complète)
    """
    cv_scores = [coefficient_of_variation(metrics[col]) for col in metrics.columns]
    avg_cv = sum(cv_scores) / len(cv_scores)
    return np.array([min(10.0, max(0.0, 10 * np.exp(-2 * avg_cv)))])


def detect_anomalies(data: pd.DataFrame, feature_cols: List[str]) -> List[PerformanceAnomaly]:
    """
    Détecte les valeurs anormales par z-score

    Une métrique sans dispersion (écart-type nul) ne peut pas produire
    d'anomalie et est ignorée.

    Args:
        data: Séances (avec ``date`` et ``session_id`` optionnels)
        feature_cols: Colonnes de métriques

    Returns:
        Anomalies ``|z| > 2``, sévérité ``high`` si ``|z| > 3``
    """
    anomalies = []

    for col in feature_cols:
        values = data[col].astype(float)
        if len(values) < 2:
            continue

        mean = values.mean()
        std = values.std()
        if not np.isfinite(std) or std == 0:
            continue

        z_scores = (values - mean) / std

        for position in np.where(np.abs(z_scores) > ANOMALY_Z_THRESHOLD)[0]:
            row = data.iloc[position]
            z_score = float(z_scores.iloc[position])
            anomalies.append(
                PerformanceAnomaly(
                    metric=col,
                    session_id=_cell_as_str(row, "session_id", default=str(position)),
                    date=_cell_as_str(row, "date", default=None),
                    value=float(values.iloc[position]),
                    z_score=z_score,
                    severity="high" if abs(z_score) > HIGH_SEVERITY_Z_THRESHOLD else "medium",
                )
            )

    return anomalies


def _cell_as_str(row: pd.Series, column: str, default):
    value = row.get(column)
    if value is None or (isinstance(value, float) and np.isnan(value)):
        return default
    return str(value)


def generate_recommendation(
    consistency_score: float,
    variance_metrics: Dict[str, float],
    anomalies: List[PerformanceAnomaly],
) -> ConsistencyRecommendation:
    """
    Génère la synthèse et les actions pour améliorer la régularité

    Args:
        consistency_score: Score de régularité (0-10)
        variance_metrics: Écart-type par métrique
        anomalies: Anomalies détectées

    Returns:
        Recommandation structurée
    """
    if consistency_score < 4:
        summary = "Significant performance inconsistency detected"
        actions = [
            "Review fundamentals and reinforce standard procedures",
            "Increase training frequency to build muscle memory",
            "Consider structured remedial training focused on consistency",
        ]
    elif consistency_score < 7:
        summary = "Moderate performance inconsistency detected"
        actions = [
            "Focus training on areas with highest variance",
            "Practice mental preparation techniques for consistent performance",
        ]
    else:
        summary = "Good performance consistency observed"
        actions = [
            "Maintain current practice routine",
            "Challenge with more complex scenarios to maintain engagement",
        ]

    high_severity_metrics = sorted({a.metric for a in anomalies if a.severity == "high"})
    if high_severity_metrics:
        actions.append(
            f"Investigate factors affecting performance in: {', '.join(high_severity_metrics)}"
        )

    ranked = sorted(variance_metrics.items(), key=lambda item: item[1], reverse=True)
    if len(ranked) > 0:
        actions.append(f"Prioritize consistency training in {ranked[0][0]}")
    if len(ranked) > 1:
        actions.append(f"Secondary focus on improving consistency in {ranked[1][0]}")

    return ConsistencyRecommendation(summary=summary, actions=actions)


def prepare_metric_frame(trainee: TraineeMetrics) -> Tuple[pd.DataFrame, List[str]]:
    """
    Convertit la série d'un stagiaire en DataFrame numérique

    Raises:
        PredictionComputationError: aucune métrique, ou valeurs manquantes /
            non numériques
    """
    data = pd.DataFrame(trainee.performance_metrics)
    feature_cols = [col for col in data.columns if col not in NON_METRIC_COLUMNS]
    if not feature_cols:
        raise PredictionComputationError("No metric columns in performance data")

    numeric = data[feature_cols].apply(pd.to_numeric, errors="coerce")
    incomplete = [col for col in feature_cols if numeric[col].isna().any()]
    if incomplete:
        raise PredictionComputationError(
            f"Missing or non-numeric values in metric(s): {', '.join(incomplete)}"
        )

    data[feature_cols] = numeric.astype(float)
    return data, feature_cols


class PerformanceConsistencyEngine:
    """
    Moteur d'évaluation de la régularité des performances
    """

    kind = ModelKind.PERFORMANCE_CONSISTENCY

    def __init__(self, store: ModelStore):
        self.store = store
        self.heuristic = HeuristicPredictor("statistical", statistical_consistency_score)

    def assess_consistency(
        self,
        request: PerformanceConsistencyRequest,
    ) -> PerformanceConsistencyResponse:
        """
        Évalue la régularité de chaque stagiaire

        Args:
            request: Séries de métriques par stagiaire

        Returns:
            Évaluations et stagiaires écartés
        """
        trainees, skipped = validate_items(request.trainees, TraineeMetrics, "trainee_id")
        predictor = build_predictor(self.store, self.kind, self.heuristic)

        assessments = []
        for index, trainee in trainees:
            try:
                assessments.append(self._assess_trainee(predictor, trainee))
            except PredictionComputationError as exc:
                logger.warning(f"Skipping trainee {trainee.trainee_id}: {exc}")
                skipped.append(SkippedItem(index=index, id=trainee.trainee_id, reason=exc.message))

        logger.info(
            f"Performance consistency assessed for {len(assessments)} trainees, "
            f"{len(skipped)} skipped ({predictor.model_type})"
        )

        return PerformanceConsistencyResponse(
            assessment_date=datetime.now(),
            assessments=assessments,
            model_type=predictor.model_type,
            skipped=sorted(skipped, key=lambda item: item.index),
        )

    def _assess_trainee(self, predictor: Predictor, trainee: TraineeMetrics) -> ConsistencyAssessment:
        data, feature_cols = prepare_metric_frame(trainee)

        # Un modèle appris ne complète pas les métriques absentes par des zéros
        if isinstance(predictor, LearnedPredictor):
            missing = [col for col in predictor.model.feature_names if col not in feature_cols]
            if missing:
                raise PredictionComputationError(
                    f"Metrics missing for trained model: {', '.join(missing)}"
                )

        session_scores = predictor.predict(data[feature_cols])
        consistency_score = float(np.mean(session_scores))
        if not np.isfinite(consistency_score):
            raise PredictionComputationError("Non-finite consistency score")
        consistency_score = min(10.0, max(0.0, consistency_score))

        variance_metrics = {
            col: float(data[col].std()) if len(data) > 1 else 0.0
            for col in feature_cols
        }
        anomalies = detect_anomalies(data, feature_cols)

        return ConsistencyAssessment(
            trainee_id=trainee.trainee_id,
            consistency_score=consistency_score,
            variance_metrics=variance_metrics,
            anomalies=anomalies,
            recommendation=generate_recommendation(consistency_score, variance_metrics, anomalies),
        )
