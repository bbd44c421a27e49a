"""Tests du stockage des modèles entraînés."""

from __future__ import annotations

import json

import pytest

from app.core.errors import ModelUnavailable, UnknownModelKindError
from app.ml.store import ModelKind, ModelStore
from app.ml.training import ModelTrainer


@pytest.fixture
def fatigue_model(fatigue_rows):
    return ModelTrainer(min_samples=10).train(ModelKind.FATIGUE_RISK, fatigue_rows)


def test_missing_model_means_fallback(store):
    assert store.load(ModelKind.FATIGUE_RISK) is None
    with pytest.raises(ModelUnavailable):
        store.require(ModelKind.FATIGUE_RISK)


def test_save_writes_pickle_and_metrics(store, fatigue_model):
    path = store.save(fatigue_model)

    assert path == store.path_for(ModelKind.FATIGUE_RISK)
    assert path.name == "fatigue-risk.pkl"
    metrics = json.loads((store.models_dir / "fatigue-risk_metrics.json").read_text())
    assert metrics["model_version"] == fatigue_model.model_version
    assert list(store.models_dir.glob("*.tmp")) == []


def test_fresh_store_reloads_saved_model(store, fatigue_model):
    store.save(fatigue_model)

    reloaded = ModelStore(store.models_dir).require(ModelKind.FATIGUE_RISK)

    assert reloaded.model_version == fatigue_model.model_version
    assert reloaded.feature_names == fatigue_model.feature_names


def test_cache_follows_file_replaced_by_another_process(store, fatigue_model, fatigue_rows):
    store.save(fatigue_model)
    assert store.require(ModelKind.FATIGUE_RISK) is fatigue_model

    worker_store = ModelStore(store.models_dir)
    retrained = ModelTrainer(min_samples=10).train(ModelKind.FATIGUE_RISK, fatigue_rows[:20])
    retrained.model_version = "v1.0_retrained"
    worker_store.save(retrained)

    assert store.require(ModelKind.FATIGUE_RISK).model_version == "v1.0_retrained"


def test_status_lists_every_kind(store, fatigue_model):
    store.save(fatigue_model)

    status = store.status()

    assert set(status) == {kind.value for kind in ModelKind}
    assert status["fatigue-risk"]["available"] is True
    assert status["skill-decay"] == {"available": False}


def test_unknown_kind_is_rejected():
    with pytest.raises(UnknownModelKindError):
        ModelKind.parse("weather")
