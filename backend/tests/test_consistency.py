"""Tests de l'évaluation de régularité et de la détection d'anomalies."""

from __future__ import annotations

import pandas as pd
import pytest

from app.ml.consistency import (
    PerformanceConsistencyEngine,
    coefficient_of_variation,
    detect_anomalies,
    statistical_consistency_score,
)
from app.ml.store import ModelKind
from app.ml.training import ModelTrainer
from app.schemas.consistency import PerformanceConsistencyRequest


def _sessions(values, metric="landing_score"):
    return [
        {"session_id": f"S{i}", "date": f"2025-01-{i + 1:02d}", metric: value}
        for i, value in enumerate(values)
    ]


def test_zero_variance_scores_ten():
    frame = pd.DataFrame({"landing_score": [7.0] * 5, "checklist_time": [30.0] * 5})

    assert statistical_consistency_score(frame)[0] == pytest.approx(10.0)


def test_coefficient_of_variation_handles_zero_mean():
    values = pd.Series([-1.0, 1.0])

    assert coefficient_of_variation(values) == pytest.approx(values.std())


def test_single_outlier_is_one_high_anomaly():
    data = pd.DataFrame(_sessions([10.0] * 19 + [15.0]))

    anomalies = detect_anomalies(data, ["landing_score"])

    assert len(anomalies) == 1
    anomaly = anomalies[0]
    assert anomaly.severity == "high"
    assert anomaly.session_id == "S19"
    assert anomaly.date == "2025-01-20"
    assert anomaly.value == 15.0
    assert anomaly.z_score > 3


def test_constant_metric_produces_no_anomaly():
    data = pd.DataFrame(_sessions([4.0] * 10))

    assert detect_anomalies(data, ["landing_score"]) == []


def test_engine_assessment_with_statistical_fallback(store):
    request = PerformanceConsistencyRequest(
        trainees=[
            {"trainee_id": "steady", "performance_metrics": _sessions([8.0] * 6)},
            {"trainee_id": "erratic", "performance_metrics": _sessions([10.0] * 19 + [15.0])},
        ]
    )

    response = PerformanceConsistencyEngine(store).assess_consistency(request)

    assert response.model_type == "statistical"
    steady, erratic = response.assessments
    assert steady.consistency_score == pytest.approx(10.0)
    assert steady.anomalies == []
    assert steady.recommendation.summary == "Good performance consistency observed"
    assert len(erratic.anomalies) == 1
    assert (
        "Investigate factors affecting performance in: landing_score"
        in erratic.recommendation.actions
    )
    assert erratic.recommendation.actions[-1] == "Prioritize consistency training in landing_score"


def test_single_session_is_fully_consistent(store):
    request = PerformanceConsistencyRequest(
        trainees=[{"trainee_id": "new", "performance_metrics": _sessions([6.5])}]
    )

    assessment = PerformanceConsistencyEngine(store).assess_consistency(request).assessments[0]

    assert assessment.consistency_score == pytest.approx(10.0)
    assert assessment.variance_metrics == {"landing_score": 0.0}


def test_unusable_trainees_are_skipped(store):
    request = PerformanceConsistencyRequest(
        trainees=[
            {"trainee_id": "ok", "performance_metrics": _sessions([5.0, 6.0, 5.5])},
            {"trainee_id": "text", "performance_metrics": _sessions(["good", 6.0])},
            {"trainee_id": "empty", "performance_metrics": []},
            {"trainee_id": "no-metrics", "performance_metrics": [{"session_id": "S1"}]},
        ]
    )

    response = PerformanceConsistencyEngine(store).assess_consistency(request)

    assert [a.trainee_id for a in response.assessments] == ["ok"]
    assert [(item.index, item.id) for item in response.skipped] == [
        (1, "text"),
        (2, "empty"),
        (3, "no-metrics"),
    ]


def test_trained_model_requires_its_metrics(store):
    rows = [
        {"session_id": f"S{i}", "landing_score": float(i % 7), "checklist_time": float(30 + i % 5),
         "consistency_score": float(10 - i % 7)}
        for i in range(30)
    ]
    store.save(ModelTrainer(min_samples=10).train(ModelKind.PERFORMANCE_CONSISTENCY, rows))
    request = PerformanceConsistencyRequest(
        trainees=[
            {
                "trainee_id": "known",
                "performance_metrics": [
                    {"session_id": "S1", "landing_score": 5.0, "checklist_time": 31.0},
                    {"session_id": "S2", "landing_score": 6.0, "checklist_time": 32.0},
                ],
            },
            {"trainee_id": "unknown", "performance_metrics": _sessions([2.0, 2.5], metric="altitude_dev")},
        ]
    )

    response = PerformanceConsistencyEngine(store).assess_consistency(request)

    assert response.model_type == "learned"
    assert [a.trainee_id for a in response.assessments] == ["known"]
    assert len(response.skipped) == 1
    skipped = response.skipped[0]
    assert (skipped.index, skipped.id) == (1, "unknown")
    assert "landing_score" in skipped.reason
    assert "checklist_time" in skipped.reason
