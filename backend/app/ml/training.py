# Copyright (c) 2025 PilotTrain Analytics. All rights reserved.
# This source code is proprietary and confidential.
# Unauthorized copying, modification, distribution, or derivative works are strictly prohibited without prior written consent.

"""
Module d'entraînement des modèles ML

Gère le processus complet d'entraînement d'un type de modèle : préparation
des données, entraînement, validation et sauvegarde. Les entraînements d'un
même type sont sérialisés par ``TrainingCoordinator``.
"""

import asyncio
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import nullcontext
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
from sklearn.ensemble import GradientBoostingRegressor, RandomForestRegressor
from sklearn.linear_model import BayesianRidge
from sklearn.metrics import mean_squared_error, r2_score
from sklearn.model_selection import train_test_split
from sklearn.neural_network import MLPRegressor
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import StandardScaler

from app.core.errors import TrainingDataError
from app.ml import consistency, effectiveness, fatigue, skill_decay, syllabus
from app.ml.locks import TrainingLockManager
from app.ml.store import ModelKind, ModelStore, TrainedModel

logger = logging.getLogger(__name__)

VALIDATION_SIZE = 0.2
RANDOM_STATE = 42
# En dessous, pas de jeu de validation (R² non défini sur moins de 2 lignes)
MIN_VALIDATION_ROWS = 2
# Part du jeu d'entraînement réservée à l'early stopping du réseau de neurones
EARLY_STOPPING_FRACTION = 0.1


def _skill_decay_features(data: pd.DataFrame) -> List[str]:
    return list(skill_decay.FEATURE_COLUMNS)


def _fatigue_features(data: pd.DataFrame) -> List[str]:
    return list(fatigue.FEATURE_COLUMNS)


def _effectiveness_features(data: pd.DataFrame) -> List[str]:
    if effectiveness.CATEGORICAL_FEATURE not in data.columns:
        raise TrainingDataError(
            f"Missing column in training data: {effectiveness.CATEGORICAL_FEATURE}"
        )
    data[effectiveness.CATEGORICAL_FEATURE] = (
        data[effectiveness.CATEGORICAL_FEATURE].astype(str).str.lower()
    )
    encoded = effectiveness.one_hot_methods(data)
    one_hot_columns = [col for col in encoded.columns if col not in data.columns]
    for col in one_hot_columns:
        data[col] = encoded[col]
    return list(effectiveness.NUMERIC_FEATURES) + one_hot_columns


def _consistency_features(data: pd.DataFrame) -> List[str]:
    return [
        col
        for col in data.columns
        if col not in consistency.NON_METRIC_COLUMNS and col != consistency.TARGET_COLUMN
    ]


def _syllabus_features(data: pd.DataFrame) -> List[str]:
    if (
        "theory_practical_ratio" not in data.columns
        and {"theory_percentage", "practical_percentage"} <= set(data.columns)
    ):
        theory = pd.to_numeric(data["theory_percentage"], errors="coerce")
        practical = pd.to_numeric(data["practical_percentage"], errors="coerce")
        data["theory_practical_ratio"] = theory / np.maximum(1, practical)
    return list(syllabus.FEATURE_COLUMNS)


def _consistency_regressor(n_samples: int) -> MLPRegressor:
    # Early stopping seulement si la fraction de validation interne contient
    # au moins MIN_VALIDATION_ROWS lignes
    early_stopping = int(n_samples * EARLY_STOPPING_FRACTION) >= MIN_VALIDATION_ROWS
    return MLPRegressor(
        hidden_layer_sizes=(64, 32),
        alpha=1e-3,
        max_iter=1000,
        early_stopping=early_stopping,
        validation_fraction=EARLY_STOPPING_FRACTION,
        n_iter_no_change=10,
        random_state=RANDOM_STATE,
    )


@dataclass(frozen=True)
class TrainingRecipe:
    """Colonnes et régresseur d'un type de modèle."""

    target: str
    select_features: Callable[[pd.DataFrame], List[str]]
    make_regressor: Callable[[int], Any]


TRAINING_RECIPES: Dict[ModelKind, TrainingRecipe] = {
    ModelKind.SKILL_DECAY: TrainingRecipe(
        target=skill_decay.TARGET_COLUMN,
        select_features=_skill_decay_features,
        make_regressor=lambda n_samples: BayesianRidge(max_iter=500),
    ),
    ModelKind.FATIGUE_RISK: TrainingRecipe(
        target=fatigue.TARGET_COLUMN,
        select_features=_fatigue_features,
        make_regressor=lambda n_samples: RandomForestRegressor(n_estimators=100, random_state=RANDOM_STATE),
    ),
    ModelKind.TRAINING_EFFECTIVENESS: TrainingRecipe(
        target=effectiveness.TARGET_COLUMN,
        select_features=_effectiveness_features,
        make_regressor=lambda n_samples: GradientBoostingRegressor(n_estimators=100, random_state=RANDOM_STATE),
    ),
    ModelKind.PERFORMANCE_CONSISTENCY: TrainingRecipe(
        target=consistency.TARGET_COLUMN,
        select_features=_consistency_features,
        make_regressor=_consistency_regressor,
    ),
    ModelKind.SYLLABUS_OPTIMIZATION: TrainingRecipe(
        target=syllabus.TARGET_COLUMN,
        select_features=_syllabus_features,
        make_regressor=lambda n_samples: GradientBoostingRegressor(n_estimators=100, random_state=RANDOM_STATE),
    ),
}


class ModelTrainer:
    """
    Gère l'entraînement et la validation des modèles ML
    """

    def __init__(self, min_samples: int = 10):
        """
        Initialise le trainer

        Args:
            min_samples: Nombre minimal de lignes d'entraînement
        """
        self.min_samples = min_samples

    def prepare_training_data(
        self,
        kind: ModelKind,
        records: List[Dict[str, Any]],
    ) -> Tuple[pd.DataFrame, np.ndarray]:
        """
        Convertit les enregistrements en matrice de features et cible

        Args:
            kind: Type de modèle
            records: Lignes d'entraînement (features + cible)

        Returns:
            Tuple (X, y)

        Raises:
            TrainingDataError: colonnes manquantes, valeurs non numériques
                ou trop peu de lignes
        """
        recipe = TRAINING_RECIPES[kind]

        if len(records) < self.min_samples:
            raise TrainingDataError(
                f"Not enough training samples for {kind.value}: "
                f"{len(records)} < {self.min_samples}"
            )

        data = pd.DataFrame(records)
        if recipe.target not in data.columns:
            raise TrainingDataError(f"Missing target column in training data: {recipe.target}")

        feature_cols = recipe.select_features(data)
        if not feature_cols:
            raise TrainingDataError(f"No feature columns in training data for {kind.value}")

        missing = [col for col in feature_cols if col not in data.columns]
        if missing:
            raise TrainingDataError(f"Missing columns in training data: {', '.join(missing)}")

        numeric = data[feature_cols + [recipe.target]].apply(pd.to_numeric, errors="coerce")
        invalid = [col for col in numeric.columns if numeric[col].isna().any()]
        if invalid:
            raise TrainingDataError(
                f"Missing or non-numeric values in column(s): {', '.join(invalid)}"
            )

        X = numeric[feature_cols].astype(float)
        y = numeric[recipe.target].astype(float).to_numpy()

        logger.info(f"Prepared {len(X)} samples with {len(feature_cols)} features for {kind.value}")
        return X, y

    def train(self, kind: ModelKind, records: List[Dict[str, Any]]) -> TrainedModel:
        """
        Entraîne un nouveau modèle from scratch

        Args:
            kind: Type de modèle
            records: Lignes d'entraînement

        Returns:
            Modèle entraîné (non sauvegardé)
        """
        logger.info("=" * 50)
        logger.info(f"STARTING MODEL TRAINING ({kind.value})")
        logger.info("=" * 50)

        # 1. Préparer les données
        logger.info("Step 1/3: Preparing training data...")
        X, y = self.prepare_training_data(kind, records)
        X_train, X_val, y_train, y_val = self._split(X, y)

        # 2. Entraîner le modèle
        logger.info("Step 2/3: Training model...")
        pipeline = Pipeline(
            [
                ("scaler", StandardScaler()),
                ("regressor", TRAINING_RECIPES[kind].make_regressor(len(X_train))),
            ]
        )
        try:
            pipeline.fit(X_train, y_train)
        except ValueError as exc:
            raise TrainingDataError(f"Model fitting failed for {kind.value}: {exc}") from exc

        # 3. Évaluer le modèle
        logger.info("Step 3/3: Evaluating model...")
        training_date = datetime.now()
        performance_metrics = {
            "train": self._evaluate(pipeline, X_train, y_train, "Train"),
            "validation": (
                self._evaluate(pipeline, X_val, y_val, "Validation") if X_val is not None else {}
            ),
            "training_date": training_date.isoformat(),
            "n_samples_train": len(X_train),
            "n_samples_val": len(X_val) if X_val is not None else 0,
            "n_features": X.shape[1],
        }

        logger.info("=" * 50)
        logger.info("TRAINING COMPLETED SUCCESSFULLY")
        logger.info("=" * 50)

        return TrainedModel(
            kind=kind,
            pipeline=pipeline,
            feature_names=list(X.columns),
            model_version=self._generate_version(training_date),
            training_date=training_date,
            performance_metrics=performance_metrics,
        )

    def _split(
        self,
        X: pd.DataFrame,
        y: np.ndarray,
    ) -> Tuple[pd.DataFrame, Optional[pd.DataFrame], np.ndarray, Optional[np.ndarray]]:
        if int(len(X) * VALIDATION_SIZE) < MIN_VALIDATION_ROWS:
            logger.info(f"Only {len(X)} samples, skipping validation split")
            return X, None, y, None

        X_train, X_val, y_train, y_val = train_test_split(
            X, y, test_size=VALIDATION_SIZE, random_state=RANDOM_STATE
        )
        logger.info(f"Train set: {len(X_train)} samples, Validation set: {len(X_val)} samples")
        return X_train, X_val, y_train, y_val

    def _evaluate(
        self,
        pipeline: Pipeline,
        X: pd.DataFrame,
        y: np.ndarray,
        dataset_name: str,
    ) -> Dict[str, float]:
        """
        Évalue le modèle sur un dataset

        Args:
            pipeline: Pipeline entraîné
            X: Features
            y: Cible
            dataset_name: Nom du dataset (pour logging)

        Returns:
            Dictionnaire des métriques
        """
        y_pred = pipeline.predict(X)
        metrics = {
            "mse": float(mean_squared_error(y, y_pred)),
            "r2": float(r2_score(y, y_pred)) if len(y) > 1 else 0.0,
        }

        logger.info(f"{dataset_name} metrics: MSE={metrics['mse']:.4f}, R2={metrics['r2']:.4f}")
        return metrics

    def _generate_version(self, training_date: datetime) -> str:
        """
        Génère un numéro de version pour le modèle

        Returns:
            Version string (ex: "v1.0_20250130143000")
        """
        return f"v1.0_{training_date.strftime('%Y%m%d%H%M%S')}"


class TrainingCoordinator:
    """
    Sérialise les entraînements par type de modèle

    Chaque type dispose de son propre exécuteur à un seul thread : deux
    demandes pour le même type sont mises en file et jamais exécutées en
    parallèle, tandis que des types différents s'entraînent indépendamment.
    Avec ``locks``, chaque entraînement détient aussi le verrou Redis du type,
    partagé avec les workers Celery. Le modèle n'est sauvegardé qu'en cas de
    succès.
    """

    def __init__(
        self,
        trainer: ModelTrainer,
        store: ModelStore,
        locks: Optional[TrainingLockManager] = None,
    ):
        self.trainer = trainer
        self.store = store
        self.locks = locks
        self._executors: Dict[ModelKind, ThreadPoolExecutor] = {
            kind: ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"train-{kind.value}")
            for kind in ModelKind
        }

    def train_and_save(self, kind: ModelKind, records: List[Dict[str, Any]]) -> TrainedModel:
        """Entraîne puis remplace atomiquement le modèle courant."""

        with self.locks.hold(kind) if self.locks else nullcontext():
            model = self.trainer.train(kind, records)
            self.store.save(model)
        return model

    def submit(self, kind: ModelKind, records: List[Dict[str, Any]]) -> "Future[TrainedModel]":
        logger.info(f"Queuing training job for {kind.value} ({len(records)} records)")
        return self._executors[kind].submit(self.train_and_save, kind, records)

    async def run(self, kind: ModelKind, records: List[Dict[str, Any]]) -> TrainedModel:
        """Soumet un entraînement et attend son résultat sans bloquer la boucle."""

        return await asyncio.wrap_future(self.submit(kind, records))

    def shutdown(self, wait: bool = True) -> None:
        for executor in self._executors.values():
            executor.shutdown(wait=wait)
