# Copyright (c) 2025 PilotTrain Analytics. All rights reserved.
# This source code is proprietary and confidential.
# Unauthorized copying, modification, distribution, or derivative works are strictly prohibited without prior written consent.

"""
Stockage des modèles entraînés

Chaque type de modèle (``ModelKind``) est sérialisé dans un fichier pickle
``<kind>.pkl`` du répertoire configuré, accompagné d'un fichier JSON de
métriques. Un fichier absent n'est pas une erreur : il indique que le moteur
correspondant doit utiliser son algorithme heuristique.
"""

import json
import logging
import os
import pickle
import tempfile
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
from sklearn.pipeline import Pipeline

from app.core.errors import ModelUnavailable, UnknownModelKindError

logger = logging.getLogger(__name__)


class ModelKind(str, Enum):
    """Types de modèles gérés par le moteur."""

    SKILL_DECAY = "skill-decay"
    FATIGUE_RISK = "fatigue-risk"
    TRAINING_EFFECTIVENESS = "training-effectiveness"
    PERFORMANCE_CONSISTENCY = "performance-consistency"
    SYLLABUS_OPTIMIZATION = "syllabus-optimization"

    @classmethod
    def parse(cls, value: str) -> "ModelKind":
        try:
            return cls(value)
        except ValueError:
            raise UnknownModelKindError(f"Unknown model kind: {value}") from None


@dataclass
class TrainedModel:
    """
    Pipeline entraîné (scaler + régresseur) et métadonnées associées

    ``feature_names`` fixe l'ordre des colonnes attendu à l'inférence.
    """

    kind: ModelKind
    pipeline: Pipeline
    feature_names: List[str]
    model_version: str
    training_date: datetime = field(default_factory=datetime.now)
    performance_metrics: Dict[str, Any] = field(default_factory=dict)

    def predict(self, X: pd.DataFrame) -> np.ndarray:
        """
        Prédit les scores pour les données fournies

        Les colonnes absentes (ex: colonnes one-hot d'une catégorie non vue)
        sont complétées par des zéros puis réordonnées.

        Args:
            X: Features

        Returns:
            Array des prédictions
        """
        aligned = X.reindex(columns=self.feature_names, fill_value=0).astype(float)
        return np.asarray(self.pipeline.predict(aligned), dtype=float)

    def describe(self) -> Dict[str, Any]:
        return {
            "model_kind": self.kind.value,
            "model_version": self.model_version,
            "training_date": self.training_date.isoformat(),
            "feature_names": list(self.feature_names),
            "performance_metrics": self.performance_metrics,
        }


class ModelStore:
    """
    Charge et sauvegarde les modèles entraînés, par type de modèle

    Les modèles sont mis en cache en mémoire après le premier chargement.
    Un modèle en cache est en lecture seule : un ré-entraînement le remplace
    entièrement.
    """

    def __init__(self, models_dir: Path):
        """
        Initialise le store

        Args:
            models_dir: Répertoire de stockage des fichiers de modèles
        """
        self.models_dir = Path(models_dir)
        self._cache: Dict[ModelKind, Tuple[TrainedModel, Tuple[int, int]]] = {}
        self._lock = threading.Lock()

    def path_for(self, kind: ModelKind) -> Path:
        return self.models_dir / f"{kind.value}.pkl"

    def load(self, kind: ModelKind) -> Optional[TrainedModel]:
        """
        Charge le modèle d'un type donné

        Le cache est revalidé par l'inode et la date de modification du
        fichier, de sorte qu'un modèle ré-entraîné par un worker Celery soit
        pris en compte sans redémarrage.

        Args:
            kind: Type de modèle

        Returns:
            Le modèle entraîné, ou None si aucun modèle n'a été sauvegardé
        """
        path = self.path_for(kind)
        try:
            stat = path.stat()
            signature = (stat.st_ino, stat.st_mtime_ns)
        except FileNotFoundError:
            with self._lock:
                self._cache.pop(kind, None)
            return None

        cached = self._cache.get(kind)
        if cached is not None and cached[1] == signature:
            return cached[0]

        with self._lock:
            cached = self._cache.get(kind)
            if cached is not None and cached[1] == signature:
                return cached[0]

            try:
                with open(path, "rb") as f:
                    model_data = pickle.load(f)
            except FileNotFoundError:
                self._cache.pop(kind, None)
                return None

            model = TrainedModel(
                kind=kind,
                pipeline=model_data["pipeline"],
                feature_names=list(model_data["feature_names"]),
                model_version=model_data["model_version"],
                training_date=datetime.fromisoformat(model_data["training_date"]),
                performance_metrics=model_data.get("performance_metrics", {}),
            )
            self._cache[kind] = (model, signature)

        logger.info(f"Model {kind.value} loaded from {path} (version {model.model_version})")
        return model

    def require(self, kind: ModelKind) -> TrainedModel:
        """Comme ``load`` mais lève ``ModelUnavailable`` si le modèle est absent."""

        model = self.load(kind)
        if model is None:
            raise ModelUnavailable(kind.value)
        return model

    def save(self, model: TrainedModel) -> Path:
        """
        Sauvegarde un modèle et remplace atomiquement la version précédente

        Le fichier est d'abord écrit dans un fichier temporaire du même
        répertoire puis renommé, de sorte qu'un lecteur ne voie jamais un
        fichier partiel.

        Args:
            model: Modèle entraîné

        Returns:
            Chemin du fichier sauvegardé
        """
        self.models_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(model.kind)

        model_data = {
            "pipeline": model.pipeline,
            "feature_names": model.feature_names,
            "model_version": model.model_version,
            "training_date": model.training_date.isoformat(),
            "performance_metrics": model.performance_metrics,
        }

        fd, tmp_name = tempfile.mkstemp(dir=self.models_dir, suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                pickle.dump(model_data, f)
            with self._lock:
                os.replace(tmp_name, path)
                stat = path.stat()
                self._cache[model.kind] = (model, (stat.st_ino, stat.st_mtime_ns))
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

        logger.info(f"Model {model.kind.value} saved to {path} (version {model.model_version})")

        # Sauvegarder aussi les métriques en JSON
        metrics_path = self.models_dir / f"{model.kind.value}_metrics.json"
        with open(metrics_path, "w") as f:
            json.dump(model.describe(), f, indent=2, default=str)

        return path

    def status(self) -> Dict[str, Any]:
        """Retourne la disponibilité de chaque type de modèle."""

        summary: Dict[str, Any] = {}
        for kind in ModelKind:
            model = self.load(kind)
            summary[kind.value] = (
                {"available": True, **model.describe()}
                if model is not None
                else {"available": False}
            )
        return summary

    def invalidate(self, kind: Optional[ModelKind] = None) -> None:
        """Vide le cache mémoire (un type ou tous)."""

        with self._lock:
            if kind is None:
                self._cache.clear()
            else:
                self._cache.pop(kind, None)
