"""Tests de l'optimisation de syllabus."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from app.ml.store import ModelKind
from app.ml.syllabus import (
    FEATURE_COLUMNS,
    SyllabusOptimizationEngine,
    grid_candidates,
    heuristic_module_score,
    module_features,
)
from app.ml.training import ModelTrainer
from app.schemas.syllabus import SyllabusModuleConfig, SyllabusOptimizationRequest


def _syllabus(**overrides):
    syllabus = {
        "id": "SYL-1",
        "name": "Instrument rating",
        "modules": [
            {"id": "m1", "name": "Approaches", "duration": 2, "complexity": 5,
             "theory_percentage": 50, "prerequisites": ["m2"]},
            {"id": "m2", "name": "Instruments", "duration": 1, "complexity": 2,
             "theory_percentage": 90, "assessments": ["quiz", "sim-check"]},
        ],
    }
    syllabus.update(overrides)
    return syllabus


def _syllabus_training_rows(count: int = 60):
    rng = np.random.default_rng(11)
    theory = rng.uniform(10, 90, count)
    frame = pd.DataFrame(
        {
            "duration": rng.uniform(0.5, 6, count),
            "complexity": rng.uniform(0, 10, count),
            "theory_percentage": theory,
            "practical_percentage": 100 - theory,
            "position_in_syllabus": rng.uniform(0, 1, count),
            "prerequisites_count": rng.integers(0, 3, count).astype(float),
            "assessment_count": rng.integers(0, 6, count).astype(float),
        }
    )
    frame["theory_practical_ratio"] = frame["theory_percentage"] / np.maximum(1, frame["practical_percentage"])
    frame["effectiveness"] = heuristic_module_score(frame)
    return [
        {key: float(value) for key, value in row.items() if key != "theory_practical_ratio"}
        for row in frame.to_dict(orient="records")
    ]


def test_grid_contains_current_configuration_first():
    module = SyllabusModuleConfig(id="m", name="M", duration=2, complexity=4, theory_percentage=60,
                                  assessments=[1])
    current = module_features(module, 1, 4)

    candidates = grid_candidates(current)

    assert len(candidates) == 28
    assert list(candidates.columns) == FEATURE_COLUMNS
    assert candidates.iloc[0].to_dict() == pytest.approx(current)
    assert set(candidates["duration"]) == {1.5, 2.0, 2.5}
    assert set(candidates["theory_percentage"]) == {50, 60, 70}
    assert set(candidates["assessment_count"]) == {1, 2}


def test_heuristic_optimization(store):
    engine = SyllabusOptimizationEngine(store, module_workers=2)

    response = engine.optimize_syllabus(SyllabusOptimizationRequest(syllabi=[_syllabus()]))

    assert response.model_type == "heuristic"
    assert response.skipped == []
    optimization = response.optimizations[0]
    modules = {m.module_id: m for m in optimization.modules}

    approaches = modules["m1"]
    assert approaches.current_effectiveness == pytest.approx(4.5)
    assert approaches.optimized_effectiveness == pytest.approx(7.3)
    assert approaches.recommended_config.assessment_count == 2
    assert approaches.recommended_config.complexity == 1
    assert "Add 2 additional assessment point(s) to reinforce learning" in approaches.recommendations

    instruments = modules["m2"]
    assert instruments.current_effectiveness == pytest.approx(4.6)
    assert instruments.optimized_effectiveness == pytest.approx(7.0)
    assert instruments.recommendations == [
        "Reduce theoretical content by 40% in favor of more hands-on practice"
    ]

    assert [m.module_id for m in optimization.modules] == ["m1", "m2"]
    assert optimization.recommended_sequence == ["m2", "m1"]
    assert optimization.current_effectiveness == pytest.approx(4.55)
    assert optimization.sequence_effectiveness == pytest.approx(4.55 * 1.05)


def test_optimized_never_below_current(store):
    modules = [
        {"id": f"m{i}", "name": f"Module {i}", "duration": 0.5 + i, "complexity": (3 * i) % 11,
         "theory_percentage": (17 * i) % 101, "assessments": list(range(i % 4))}
        for i in range(8)
    ]

    response = SyllabusOptimizationEngine(store).optimize_syllabus(
        SyllabusOptimizationRequest(syllabi=[_syllabus(modules=modules)])
    )

    for module in response.optimizations[0].modules:
        assert module.optimized_effectiveness >= module.current_effectiveness


def test_near_optimal_module_keeps_its_configuration(store):
    modules = [{"id": "m1", "name": "Balanced", "duration": 1, "complexity": 0,
                "theory_percentage": 50, "assessments": [1, 2, 3, 4, 5]}]

    response = SyllabusOptimizationEngine(store).optimize_syllabus(
        SyllabusOptimizationRequest(syllabi=[_syllabus(modules=modules)])
    )

    module = response.optimizations[0].modules[0]
    assert module.current_effectiveness == pytest.approx(10.0)
    assert module.improvement_percentage == pytest.approx(0.0)
    assert module.recommendations == ["Current module configuration is near optimal"]


def test_prerequisite_cycle_still_returns_every_module(store, caplog):
    modules = [
        {"id": "a", "name": "A", "duration": 1, "complexity": 3, "theory_percentage": 50, "prerequisites": ["b"]},
        {"id": "b", "name": "B", "duration": 1, "complexity": 3, "theory_percentage": 50, "prerequisites": ["a"]},
        {"id": "c", "name": "C", "duration": 1, "complexity": 3, "theory_percentage": 50, "prerequisites": ["a"]},
    ]

    with caplog.at_level("WARNING"):
        response = SyllabusOptimizationEngine(store).optimize_syllabus(
            SyllabusOptimizationRequest(syllabi=[_syllabus(modules=modules)])
        )

    sequence = response.optimizations[0].recommended_sequence
    assert sorted(sequence) == ["a", "b", "c"]
    assert sequence.index("a") < sequence.index("c")
    assert "Prerequisite cycle" in caplog.text


def test_invalid_and_duplicate_modules_are_skipped(store):
    modules = [
        {"id": "m1", "name": "One", "duration": 1, "complexity": 3, "theory_percentage": 50},
        {"id": "m2", "name": "Broken", "duration": -1, "complexity": 3, "theory_percentage": 50},
        {"id": "m1", "name": "Again", "duration": 1, "complexity": 3, "theory_percentage": 50},
    ]
    request = SyllabusOptimizationRequest(
        syllabi=[
            _syllabus(modules=modules),
            {"id": "SYL-2", "modules": [{"id": "x"}]},
            {"name": "no id"},
        ]
    )

    response = SyllabusOptimizationEngine(store).optimize_syllabus(request)

    assert [o.syllabus_id for o in response.optimizations] == ["SYL-1"]
    assert [m.module_id for m in response.optimizations[0].modules] == ["m1"]
    skipped_ids = [item.id for item in response.skipped]
    assert "SYL-1/m2" in skipped_ids
    assert "SYL-1/m1" in skipped_ids
    assert "SYL-2/x" in skipped_ids
    assert "SYL-2" in skipped_ids
    assert any(item.index == 2 and item.id is None for item in response.skipped)


def test_learned_grid_search(store):
    store.save(ModelTrainer(min_samples=10).train(ModelKind.SYLLABUS_OPTIMIZATION, _syllabus_training_rows()))

    response = SyllabusOptimizationEngine(store).optimize_syllabus(
        SyllabusOptimizationRequest(syllabi=[_syllabus()])
    )

    assert response.model_type == "learned"
    optimization = response.optimizations[0]
    assert optimization.recommended_sequence == ["m2", "m1"]
    assert 0 <= optimization.sequence_effectiveness <= 10
    for module in optimization.modules:
        assert module.optimized_effectiveness >= module.current_effectiveness
        assert abs(module.recommended_config.duration - module.current_config.duration) <= 0.5
