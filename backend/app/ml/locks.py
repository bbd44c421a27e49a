# Copyright (c) 2025 PilotTrain Analytics. All rights reserved.
# This source code is proprietary and confidential.
# Unauthorized copying, modification, distribution, or derivative works are strictly prohibited without prior written consent.

"""
Verrous d'entraînement partagés entre processus

Le coordinateur de l'API et les workers Celery prennent le même verrou Redis
par type de modèle : au plus un entraînement d'un type donné s'exécute à la
fois, quel que soit le processus qui l'a lancé.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

import redis
from redis.exceptions import LockError, RedisError

from app.core.config import Settings
from app.core.errors import TrainingLockError
from app.ml.store import ModelKind

logger = logging.getLogger(__name__)

LOCK_KEY_PREFIX = "pilottrain:train:"


class TrainingLockManager:
    """
    Verrou Redis bloquant par type de modèle

    Un second entraînement du même type attend la libération du verrou
    (au plus ``wait_seconds``). Le verrou expire après ``ttl_seconds`` si le
    processus qui le détient disparaît.
    """

    def __init__(self, client: redis.Redis, ttl_seconds: float, wait_seconds: float):
        self.client = client
        self.ttl_seconds = ttl_seconds
        self.wait_seconds = wait_seconds

    @classmethod
    def from_settings(cls, config: Settings) -> "TrainingLockManager":
        return cls(
            redis.Redis.from_url(config.TRAINING_LOCK_URL),
            ttl_seconds=config.TRAINING_LOCK_TTL_SECONDS,
            wait_seconds=config.TRAINING_LOCK_WAIT_SECONDS,
        )

    @staticmethod
    def key(kind: ModelKind) -> str:
        return f"{LOCK_KEY_PREFIX}{kind.value}"

    @contextmanager
    def hold(self, kind: ModelKind) -> Iterator[None]:
        """
        Détient le verrou du type ``kind`` pendant le bloc

        Raises:
            TrainingLockError: Redis injoignable ou attente dépassée
        """
        lock = self.client.lock(
            self.key(kind),
            timeout=self.ttl_seconds,
            blocking_timeout=self.wait_seconds,
        )
        try:
            acquired = lock.acquire(blocking=True)
        except RedisError as e:
            raise TrainingLockError(f"Training lock backend unavailable: {e}") from e
        if not acquired:
            raise TrainingLockError(
                f"Timed out after {self.wait_seconds:g}s waiting for the {kind.value} training lock"
            )

        logger.debug(f"Training lock acquired: {self.key(kind)}")
        try:
            yield
        finally:
            try:
                lock.release()
                logger.debug(f"Training lock released: {self.key(kind)}")
            except LockError:
                logger.warning(f"Training lock for {kind.value} expired before release")
            except RedisError as e:
                logger.warning(f"Could not release training lock for {kind.value}: {e}")
