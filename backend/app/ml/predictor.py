# Copyright (c) 2025 PilotTrain Analytics. All rights reserved.
# This source code is proprietary and confidential.
# Unauthorized copying, modification, distribution, or derivative works are strictly prohibited without prior written consent.

"""
Prédicteurs partagés par les moteurs

Un moteur ne vérifie jamais lui-même l'existence d'un modèle : il demande un
``Predictor`` à ``build_predictor``, qui renvoie soit la version apprise
(modèle présent dans le store) soit la version heuristique. Les deux
variantes exposent le même contrat ``predict(features) -> scores``.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable

import numpy as np
import pandas as pd

from app.core.errors import ModelUnavailable
from app.ml.store import ModelKind, ModelStore, TrainedModel

logger = logging.getLogger(__name__)

LEARNED_MODEL_TYPE = "learned"


class Predictor(ABC):
    """Contrat commun des prédicteurs appris et heuristiques."""

    model_type: str

    @property
    def is_learned(self) -> bool:
        return self.model_type == LEARNED_MODEL_TYPE

    @abstractmethod
    def predict(self, features: pd.DataFrame) -> np.ndarray:
        """Retourne un score par ligne de ``features``."""


class LearnedPredictor(Predictor):
    """Prédicteur s'appuyant sur un pipeline scikit-learn entraîné."""

    model_type = LEARNED_MODEL_TYPE

    def __init__(self, model: TrainedModel):
        self.model = model

    def predict(self, features: pd.DataFrame) -> np.ndarray:
        return self.model.predict(features)


class HeuristicPredictor(Predictor):
    """
    Prédicteur à base de règles, utilisé quand aucun modèle n'est entraîné

    Args:
        model_type: Libellé renvoyé dans les réponses (ex: ``"bkt_default"``)
        score_frame: Fonction pure DataFrame -> scores
    """

    def __init__(self, model_type: str, score_frame: Callable[[pd.DataFrame], np.ndarray]):
        self.model_type = model_type
        self._score_frame = score_frame

    def predict(self, features: pd.DataFrame) -> np.ndarray:
        return np.asarray(self._score_frame(features), dtype=float)


def build_predictor(
    store: ModelStore,
    kind: ModelKind,
    heuristic: HeuristicPredictor,
) -> Predictor:
    """
    Sélectionne le prédicteur à utiliser pour un type de modèle

    Args:
        store: Store des modèles entraînés
        kind: Type de modèle recherché
        heuristic: Prédicteur de repli

    Returns:
        ``LearnedPredictor`` si un modèle existe, sinon ``heuristic``
    """
    try:
        return LearnedPredictor(store.require(kind))
    except ModelUnavailable as exc:
        logger.warning(f"{exc}, falling back to {heuristic.model_type}")
        return heuristic
