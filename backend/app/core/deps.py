"""
Dépendances FastAPI réutilisables
"""

from typing import Any, Callable, TypeVar

import anyio
import anyio.to_thread
from fastapi import Request

from app.core.errors import PredictionTimeoutError
from app.ml.registry import ModelRegistry

T = TypeVar("T")


def get_model_registry(request: Request) -> ModelRegistry:
    """
    Récupère le registre ML construit au démarrage de l'application
    """
    return request.app.state.model_registry


async def run_with_timeout(timeout: float, func: Callable[..., T], *args: Any) -> T:
    """
    Exécute un calcul bloquant dans le pool de threads avec une limite de temps

    Le thread abandonné termine son calcul en arrière-plan mais son résultat
    est ignoré.

    Raises:
        PredictionTimeoutError: si le calcul dépasse ``timeout`` secondes
    """
    try:
        with anyio.fail_after(timeout):
            return await anyio.to_thread.run_sync(func, *args, abandon_on_cancel=True)
    except TimeoutError:
        raise PredictionTimeoutError(
            f"Prediction exceeded the {timeout:g}s time limit"
        ) from None
