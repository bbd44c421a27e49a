"""Tests de l'entraînement des modèles, de la coordination et de la tâche Celery."""

from __future__ import annotations

import threading
import time

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.core.errors import TrainingDataError, TrainingLockError
from app.ml.locks import TrainingLockManager
from app.ml.store import ModelKind, ModelStore
from app.ml.training import ModelTrainer, TrainingCoordinator
from app.tasks import ml_tasks


def test_training_records_metrics_and_version(fatigue_rows):
    model = ModelTrainer(min_samples=10).train(ModelKind.FATIGUE_RISK, fatigue_rows)

    assert model.kind == ModelKind.FATIGUE_RISK
    assert model.model_version.startswith("v1.0_")
    assert model.performance_metrics["n_samples_train"] == 32
    assert model.performance_metrics["n_samples_val"] == 8
    assert set(model.performance_metrics["validation"]) == {"mse", "r2"}


def test_too_few_samples_is_rejected(fatigue_rows):
    with pytest.raises(TrainingDataError, match="Not enough training samples"):
        ModelTrainer(min_samples=50).train(ModelKind.FATIGUE_RISK, fatigue_rows)


def test_missing_columns_are_rejected(fatigue_rows):
    rows = [{k: v for k, v in row.items() if k != "sleep_quality"} for row in fatigue_rows]

    with pytest.raises(TrainingDataError, match="sleep_quality"):
        ModelTrainer(min_samples=10).train(ModelKind.FATIGUE_RISK, rows)


def test_missing_target_is_rejected(fatigue_rows):
    rows = [{k: v for k, v in row.items() if k != "fatigue_score"} for row in fatigue_rows]

    with pytest.raises(TrainingDataError, match="fatigue_score"):
        ModelTrainer(min_samples=10).train(ModelKind.FATIGUE_RISK, rows)


def test_non_numeric_values_are_rejected(fatigue_rows):
    fatigue_rows[3]["duty_hours_24h"] = "long"

    with pytest.raises(TrainingDataError, match="duty_hours_24h"):
        ModelTrainer(min_samples=10).train(ModelKind.FATIGUE_RISK, fatigue_rows)


def test_consistency_model_uses_metric_columns():
    rows = [
        {"session_id": f"S{i}", "landing_score": float(i % 7), "checklist_time": float(30 + i % 5),
         "consistency_score": float(10 - i % 7)}
        for i in range(30)
    ]

    model = ModelTrainer(min_samples=10).train(ModelKind.PERFORMANCE_CONSISTENCY, rows)

    assert model.feature_names == ["landing_score", "checklist_time"]
    assert model.pipeline.named_steps["regressor"].early_stopping is True


@pytest.mark.anyio
async def test_coordinator_saves_on_success(store, fatigue_rows):
    coordinator = TrainingCoordinator(ModelTrainer(min_samples=10), store)
    try:
        model = await coordinator.run(ModelKind.FATIGUE_RISK, fatigue_rows)
    finally:
        coordinator.shutdown()

    assert store.require(ModelKind.FATIGUE_RISK) is model


@pytest.mark.anyio
async def test_failed_training_keeps_previous_model(store, fatigue_rows):
    coordinator = TrainingCoordinator(ModelTrainer(min_samples=10), store)
    try:
        previous = await coordinator.run(ModelKind.FATIGUE_RISK, fatigue_rows)
        with pytest.raises(TrainingDataError):
            await coordinator.run(ModelKind.FATIGUE_RISK, fatigue_rows[:3])
    finally:
        coordinator.shutdown()

    assert store.require(ModelKind.FATIGUE_RISK) is previous


def test_jobs_for_one_kind_never_overlap(store, fatigue_rows):
    active = 0
    overlaps = []
    lock = threading.Lock()

    class SlowTrainer(ModelTrainer):
        def train(self, kind, records):
            nonlocal active
            with lock:
                active += 1
                overlaps.append(active)
            time.sleep(0.05)
            try:
                return super().train(kind, records)
            finally:
                with lock:
                    active -= 1

    coordinator = TrainingCoordinator(SlowTrainer(min_samples=10), store)
    try:
        futures = [coordinator.submit(ModelKind.FATIGUE_RISK, fatigue_rows) for _ in range(3)]
        results = [future.result(timeout=60) for future in futures]
    finally:
        coordinator.shutdown()

    assert max(overlaps) == 1
    assert store.require(ModelKind.FATIGUE_RISK) is results[-1]


def test_small_consistency_dataset_trains_without_early_stopping():
    rows = [
        {"session_id": f"S{i}", "landing_score": float(i % 4), "consistency_score": float(10 - i % 4)}
        for i in range(12)
    ]

    model = ModelTrainer(min_samples=10).train(ModelKind.PERFORMANCE_CONSISTENCY, rows)

    assert model.pipeline.named_steps["regressor"].early_stopping is False


def test_celery_task_trains_and_saves(tmp_path, monkeypatch, fatigue_rows, training_locks):
    monkeypatch.setattr(ml_tasks, "training_locks", training_locks)
    monkeypatch.setattr(ml_tasks.settings, "ML_MODELS_PATH", str(tmp_path))

    result = ml_tasks.train_model.apply(args=("fatigue-risk", fatigue_rows)).get()

    assert result["status"] == "success"
    assert result["model_kind"] == "fatigue-risk"
    assert (tmp_path / "fatigue-risk.pkl").exists()


def test_celery_task_reports_bad_data(tmp_path, monkeypatch, fatigue_rows, training_locks):
    monkeypatch.setattr(ml_tasks, "training_locks", training_locks)
    monkeypatch.setattr(ml_tasks.settings, "ML_MODELS_PATH", str(tmp_path))

    result = ml_tasks.train_model.apply(args=("fatigue-risk", fatigue_rows[:2])).get()

    assert result["status"] == "error"
    assert "Not enough training samples" in result["message"]
    assert not (tmp_path / "fatigue-risk.pkl").exists()


def test_celery_task_waits_for_training_lock(tmp_path, monkeypatch, fatigue_rows, training_locks):
    monkeypatch.setattr(ml_tasks.settings, "ML_MODELS_PATH", str(tmp_path))
    monkeypatch.setattr(ml_tasks, "training_locks", training_locks)
    results = []

    def run_task():
        results.append(ml_tasks.train_model.apply(args=("fatigue-risk", fatigue_rows)).get())

    with training_locks.hold(ModelKind.FATIGUE_RISK):
        worker = threading.Thread(target=run_task)
        worker.start()
        worker.join(timeout=0.5)

        assert worker.is_alive()
        assert not (tmp_path / "fatigue-risk.pkl").exists()

    worker.join(timeout=60)
    assert results[0]["status"] == "success"
    assert (tmp_path / "fatigue-risk.pkl").exists()


def test_coordinator_waits_for_lock_held_by_another_process(store, fatigue_rows, training_locks):
    coordinator = TrainingCoordinator(ModelTrainer(min_samples=10), store, training_locks)
    try:
        with training_locks.hold(ModelKind.FATIGUE_RISK):
            future = coordinator.submit(ModelKind.FATIGUE_RISK, fatigue_rows)
            time.sleep(0.5)

            assert not future.done()

        model = future.result(timeout=60)
    finally:
        coordinator.shutdown()

    assert store.require(ModelKind.FATIGUE_RISK) is model


def test_celery_task_and_coordinator_share_one_lock_per_kind(
    tmp_path, monkeypatch, fatigue_rows, training_locks
):
    monkeypatch.setattr(ml_tasks.settings, "ML_MODELS_PATH", str(tmp_path / "models"))
    monkeypatch.setattr(ml_tasks, "training_locks", training_locks)
    active = 0
    overlaps = []
    counter_lock = threading.Lock()
    original_train = ModelTrainer.train

    def tracking_train(self, kind, records):
        nonlocal active
        with counter_lock:
            active += 1
            overlaps.append(active)
        time.sleep(0.05)
        try:
            return original_train(self, kind, records)
        finally:
            with counter_lock:
                active -= 1

    monkeypatch.setattr(ModelTrainer, "train", tracking_train)
    store = ModelStore(tmp_path / "models")
    coordinator = TrainingCoordinator(ModelTrainer(min_samples=10), store, training_locks)
    try:
        futures = [coordinator.submit(ModelKind.FATIGUE_RISK, fatigue_rows) for _ in range(2)]
        tasks = [
            threading.Thread(
                target=lambda: ml_tasks.train_model.apply(args=("fatigue-risk", fatigue_rows)).get()
            )
            for _ in range(2)
        ]
        for task in tasks:
            task.start()
        for task in tasks:
            task.join(timeout=60)
        for future in futures:
            future.result(timeout=60)
    finally:
        coordinator.shutdown()

    assert len(overlaps) == 4
    assert max(overlaps) == 1


class _FakeRedisLock:
    def __init__(self, acquired=True, error=None):
        self.acquired = acquired
        self.error = error
        self.released = False

    def acquire(self, blocking=True):
        if self.error is not None:
            raise self.error
        return self.acquired

    def release(self):
        self.released = True


class _FakeRedisClient:
    def __init__(self, lock):
        self._lock = lock
        self.requests = []

    def lock(self, name, timeout=None, blocking_timeout=None):
        self.requests.append((name, timeout, blocking_timeout))
        return self._lock


def test_lock_manager_holds_kind_lock_for_the_block():
    redis_lock = _FakeRedisLock()
    client = _FakeRedisClient(redis_lock)
    locks = TrainingLockManager(client, ttl_seconds=600, wait_seconds=30)

    with locks.hold(ModelKind.SKILL_DECAY):
        assert not redis_lock.released

    assert redis_lock.released
    assert client.requests == [("pilottrain:train:skill-decay", 600, 30)]


def test_lock_manager_times_out_when_lock_is_busy():
    locks = TrainingLockManager(_FakeRedisClient(_FakeRedisLock(acquired=False)), 600, 0.1)

    with pytest.raises(TrainingLockError, match="Timed out"):
        with locks.hold(ModelKind.FATIGUE_RISK):
            pytest.fail("lock should not be acquired")


def test_lock_manager_reports_unreachable_redis():
    redis_lock = _FakeRedisLock(error=RedisConnectionError("Connection refused"))
    locks = TrainingLockManager(_FakeRedisClient(redis_lock), 600, 30)

    with pytest.raises(TrainingLockError, match="unavailable") as exc_info:
        with locks.hold(ModelKind.FATIGUE_RISK):
            pytest.fail("lock should not be acquired")

    assert exc_info.value.status_code == 503
