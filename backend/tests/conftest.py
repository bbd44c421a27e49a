"""Fixtures partagées par les tests du moteur d'analytique."""

from __future__ import annotations

import os
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List

import numpy as np
import pytest

os.environ.setdefault("CORS_ORIGINS", "[\"http://localhost:3000\"]")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from app.ml.fatigue import FEATURE_COLUMNS as FATIGUE_FEATURES, simplified_fatigue_score
from app.ml.store import ModelKind, ModelStore


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


class InProcessTrainingLocks:
    """Verrous par type de modèle, même interface que ``TrainingLockManager``."""

    def __init__(self) -> None:
        self.locks = {kind: threading.Lock() for kind in ModelKind}

    @contextmanager
    def hold(self, kind: ModelKind) -> Iterator[None]:
        with self.locks[kind]:
            yield


@pytest.fixture
def training_locks() -> InProcessTrainingLocks:
    return InProcessTrainingLocks()


@pytest.fixture
def store(tmp_path) -> ModelStore:
    return ModelStore(tmp_path / "models")


def fatigue_training_rows(count: int = 40, seed: int = 0) -> List[Dict[str, Any]]:
    """Jeu d'entraînement synthétique étiqueté par le score heuristique."""

    import pandas as pd

    rng = np.random.default_rng(seed)
    frame = pd.DataFrame(
        {
            "duty_hours_24h": rng.uniform(0, 14, count),
            "duty_hours_7d": rng.uniform(0, 60, count),
            "hours_since_rest": rng.uniform(0, 20, count),
            "time_of_day": rng.uniform(0, 24, count),
            "timezone_changes_3d": rng.integers(0, 4, count),
            "sleep_quality": rng.uniform(0, 1, count),
        }
    )
    frame["fatigue_score"] = simplified_fatigue_score(frame[FATIGUE_FEATURES])
    return [
        {key: float(value) for key, value in row.items()}
        for row in frame.to_dict(orient="records")
    ]


@pytest.fixture
def fatigue_rows() -> List[Dict[str, Any]]:
    return fatigue_training_rows()
