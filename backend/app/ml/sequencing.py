# Copyright (c) 2025 PilotTrain Analytics. All rights reserved.
# This source code is proprietary and confidential.
# Unauthorized copying, modification, distribution, or derivative works are strictly prohibited without prior written consent.

"""
Séquencement des modules d'un syllabus par tri topologique

Les modules sont indexés (0..n-1) et chaque prérequis déclaré devient un arc
``prérequis -> module dépendant``. Un parcours en profondeur itératif
(pile explicite) produit l'ordre postfixe, inversé ensuite pour obtenir la
séquence : chaque prérequis précède les modules qui en dépendent.

Politique de cycle : lorsqu'un arc mène à un module encore présent sur la
pile active, l'arc est ignoré (pas de nouvelle descente) et noté dans
``ignored_edges``. Le tri ne lève jamais d'exception et le résultat est
déterministe pour un ordre d'entrée donné. Les prérequis inconnus sont
ignorés et notés dans ``unknown_prerequisites``.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Sequence, Tuple

_UNVISITED = 0
_ON_STACK = 1
_DONE = 2


@dataclass
class SequencingResult:
    """Séquence recommandée et arcs écartés."""

    order: List[str]
    ignored_edges: List[Tuple[str, str]] = field(default_factory=list)
    unknown_prerequisites: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def has_cycle(self) -> bool:
        return bool(self.ignored_edges)


def topological_sequence(
    module_ids: Sequence[str],
    prerequisites: Dict[str, Sequence[str]],
) -> SequencingResult:
    """
    Ordonne les modules en respectant leurs prérequis

    Les modules sans contrainte entre eux conservent leur ordre d'entrée.

    Args:
        module_ids: Identifiants des modules, dans l'ordre actuel du syllabus
        prerequisites: Prérequis déclarés par identifiant de module

    Returns:
        ``SequencingResult`` (ordre, arcs ignorés pour cause de cycle,
        prérequis inconnus)
    """
    index_of = {module_id: index for index, module_id in enumerate(module_ids)}
    successors: List[List[int]] = [[] for _ in module_ids]
    unknown: List[Tuple[str, str]] = []

    for module_id in module_ids:
        for prerequisite in prerequisites.get(module_id, ()):
            if prerequisite not in index_of:
                unknown.append((module_id, prerequisite))
                continue
            successors[index_of[prerequisite]].append(index_of[module_id])

    state = [_UNVISITED] * len(module_ids)
    post_order: List[int] = []
    ignored: List[Tuple[str, str]] = []

    def children(node: int) -> Iterator[int]:
        return iter(reversed(successors[node]))

    # Racines parcourues en ordre inverse pour que l'inversion finale
    # restitue l'ordre d'entrée des modules indépendants.
    for root in reversed(range(len(module_ids))):
        if state[root] != _UNVISITED:
            continue

        state[root] = _ON_STACK
        stack = [(root, children(root))]

        while stack:
            node, pending = stack[-1]
            for child in pending:
                if state[child] == _UNVISITED:
                    state[child] = _ON_STACK
                    stack.append((child, children(child)))
                    break
                if state[child] == _ON_STACK:
                    ignored.append((module_ids[node], module_ids[child]))
            else:
                stack.pop()
                state[node] = _DONE
                post_order.append(node)

    post_order.reverse()
    return SequencingResult(
        order=[module_ids[index] for index in post_order],
        ignored_edges=ignored,
        unknown_prerequisites=unknown,
    )
