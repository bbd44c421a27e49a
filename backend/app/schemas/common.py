# Copyright (c) 2025 PilotTrain Analytics. All rights reserved.
# This source code is proprietary and confidential.
# Unauthorized copying, modification, distribution, or derivative works are strictly prohibited without prior written consent.

"""
Schémas communs et validation élément par élément des lots

Les requêtes transportent des lots (compétences, plannings, programmes,
stagiaires, syllabus). Un élément invalide ne fait pas échouer le lot : il est
écarté et signalé dans le champ ``skipped`` de la réponse.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

T = TypeVar("T", bound=BaseModel)


class PayloadModel(BaseModel):
    """Base des schémas d'entrée (les identifiants numériques sont acceptés)."""

    model_config = ConfigDict(coerce_numbers_to_str=True)


class SkippedItem(BaseModel):
    """Élément écarté d'un lot et raison de l'exclusion."""

    index: int = Field(..., ge=0, description="Position de l'élément dans le lot")
    id: Optional[str] = Field(None, description="Identifiant de l'élément si disponible")
    reason: str = Field(..., description="Raison de l'exclusion")


class EngineResponse(BaseModel):
    """Champs communs à toutes les réponses de prédiction."""

    model_config = ConfigDict(protected_namespaces=())

    model_type: str = Field(..., description="Algorithme utilisé: 'learned' ou heuristique")
    skipped: List[SkippedItem] = Field(
        default_factory=list,
        description="Éléments du lot écartés car invalides",
    )


def describe_validation_error(exc: ValidationError) -> str:
    """Résume une ``ValidationError`` pydantic en une ligne."""

    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "item"
        parts.append(f"{location}: {error.get('msg')}")
    return "; ".join(parts)


def _item_id(item: Any, id_field: str) -> Optional[str]:
    if isinstance(item, dict) and item.get(id_field) is not None:
        return str(item[id_field])
    return None


def validate_items(
    items: Sequence[Dict[str, Any]],
    schema: Type[T],
    id_field: str,
) -> Tuple[List[Tuple[int, T]], List[SkippedItem]]:
    """
    Valide chaque élément d'un lot indépendamment

    Args:
        items: Éléments bruts de la requête
        schema: Schéma pydantic d'un élément
        id_field: Nom du champ identifiant (pour le rapport d'exclusion)

    Returns:
        Tuple ([(position, élément valide)], éléments écartés)
    """
    valid: List[Tuple[int, T]] = []
    skipped: List[SkippedItem] = []

    for index, item in enumerate(items):
        try:
            valid.append((index, schema.model_validate(item)))
        except ValidationError as exc:
            skipped.append(
                SkippedItem(
                    index=index,
                    id=_item_id(item, id_field),
                    reason=describe_validation_error(exc),
                )
            )

    return valid, skipped
