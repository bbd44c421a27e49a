# Copyright (c) 2025 PilotTrain Analytics. All rights reserved.
# This source code is proprietary and confidential.
# Unauthorized copying, modification, distribution, or derivative works are strictly prohibited without prior written consent.

"""
Optimisation de la structure des syllabus

Pour chaque module :

* avec un modèle appris (Gradient Boosting), recherche exhaustive sur une
  grille 3x3x3 autour de la configuration actuelle (durée, part théorique,
  nombre d'évaluations). La configuration actuelle fait toujours partie des
  candidats : le score optimisé n'est jamais inférieur au score actuel ;
* sans modèle, règles heuristiques (équilibre théorie/pratique, nombre
  d'évaluations, complexité adaptée à la position).

Les modules d'un syllabus sont évalués en parallèle, puis la séquence
recommandée est calculée une seule fois par tri topologique des prérequis.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from itertools import product
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from app.ml.predictor import HeuristicPredictor, Predictor, build_predictor
from app.ml.sequencing import topological_sequence
from app.ml.store import ModelKind, ModelStore
from app.schemas.common import SkippedItem, validate_items
from app.schemas.syllabus import (
    ModuleFeatures,
    ModuleOptimization,
    SyllabusConfig,
    SyllabusModuleConfig,
    SyllabusOptimization,
    SyllabusOptimizationRequest,
    SyllabusOptimizationResponse,
)

logger = logging.getLogger(__name__)

FEATURE_COLUMNS = [
    "duration",
    "complexity",
    "theory_percentage",
    "practical_percentage",
    "position_in_syllabus",
    "prerequisites_count",
    "assessment_count",
    "theory_practical_ratio",
]
TARGET_COLUMN = "effectiveness"

# Bornes de la recherche sur grille
DURATION_STEP = 0.5
MIN_DURATION = 0.5
THEORY_STEP = 10
MIN_THEORY = 20
MAX_THEORY = 80
ASSESSMENT_STEP = 1
MIN_ASSESSMENTS = 1

# Règles heuristiques
MAX_THEORY_PRACTICAL_IMBALANCE = 20
COMPLEXITY_TOLERANCE = 2
SEQUENCE_GAIN = 1.05


def theory_practical_ratio(theory: float, practical: float) -> float:
    return theory / max(1, practical)


def module_features(module: SyllabusModuleConfig, position: int, module_count: int) -> Dict[str, float]:
    """Features d'un module telles qu'attendues par le prédicteur."""

    features = {
        "duration": module.duration,
        "complexity": module.complexity,
        "theory_percentage": module.theory_percentage,
        "practical_percentage": module.practical_percentage,
        "position_in_syllabus": position / max(1, module_count),
        "prerequisites_count": len(module.prerequisites),
        "assessment_count": len(module.assessments),
    }
    features["theory_practical_ratio"] = theory_practical_ratio(
        features["theory_percentage"], features["practical_percentage"]
    )
    return features


def heuristic_module_score(features: pd.DataFrame) -> np.ndarray:
    """
    Efficacité heuristique d'un module (0-10)

    Combine l'équilibre théorie/pratique, l'inverse de la complexité et le
    nombre d'évaluations.
    """
    balance = 10 - (features["theory_percentage"] - features["practical_percentage"]).abs() / 10
    complexity_adjustment = 10 - features["complexity"]
    assessment_ratio = np.minimum(10, features["assessment_count"] * 2)
    score = 0.3 * balance + 0.3 * complexity_adjustment + 0.4 * assessment_ratio
    return np.clip(np.asarray(score, dtype=float), 0, 10)


def grid_candidates(current: Dict[str, float]) -> pd.DataFrame:
    """
    Configurations candidates autour de la configuration actuelle

    La première ligne est la configuration actuelle inchangée, suivie des
    27 combinaisons durée x part théorique x nombre d'évaluations.
    """
    duration = current["duration"]
    theory = current["theory_percentage"]
    assessments = current["assessment_count"]

    durations = [max(MIN_DURATION, duration - DURATION_STEP), duration, duration + DURATION_STEP]
    theories = [max(MIN_THEORY, theory - THEORY_STEP), theory, min(MAX_THEORY, theory + THEORY_STEP)]
    assessment_counts = [
        max(MIN_ASSESSMENTS, assessments - ASSESSMENT_STEP),
        assessments,
        assessments + ASSESSMENT_STEP,
    ]

    rows = [dict(current)]
    for candidate_duration, candidate_theory, candidate_assessments in product(
        durations, theories, assessment_counts
    ):
        row = dict(current)
        row["duration"] = candidate_duration
        row["theory_percentage"] = candidate_theory
        row["practical_percentage"] = 100 - candidate_theory
        row["theory_practical_ratio"] = theory_practical_ratio(candidate_theory, 100 - candidate_theory)
        row["assessment_count"] = candidate_assessments
        rows.append(row)

    return pd.DataFrame(rows, columns=FEATURE_COLUMNS)


def heuristic_configuration(current: Dict[str, float]) -> Dict[str, float]:
    """
    Configuration recommandée par les règles heuristiques

    * répartition 50/50 si l'écart théorie/pratique dépasse 20 points ;
    * au moins ``max(1, round(durée))`` évaluations ;
    * complexité ramenée vers ``position * 10`` si elle la dépasse de plus de 2.
    """
    optimized = dict(current)

    if abs(current["theory_percentage"] - current["practical_percentage"]) > MAX_THEORY_PRACTICAL_IMBALANCE:
        optimized["theory_percentage"] = 50
        optimized["practical_percentage"] = 50

    optimal_assessments = max(1, int(round(current["duration"])))
    if current["assessment_count"] < optimal_assessments:
        optimized["assessment_count"] = optimal_assessments

    optimal_complexity = current["position_in_syllabus"] * 10
    if current["complexity"] > optimal_complexity + COMPLEXITY_TOLERANCE:
        optimized["complexity"] = min(9, max(1, int(optimal_complexity)))

    optimized["theory_practical_ratio"] = theory_practical_ratio(
        optimized["theory_percentage"], optimized["practical_percentage"]
    )
    return optimized


def optimization_recommendations(current: Dict[str, float], optimized: Dict[str, float]) -> List[str]:
    """
    Recommandations textuelles à partir des écarts de configuration

    Args:
        current: Configuration actuelle
        optimized: Configuration recommandée

    Returns:
        Recommandations, ou un constat de configuration quasi optimale
    """
    recommendations = []

    duration_change = optimized["duration"] - current["duration"]
    if abs(duration_change) >= 0.5:
        if duration_change > 0:
            recommendations.append(
                f"Increase module duration by {duration_change:.1f} hours for better knowledge retention"
            )
        else:
            recommendations.append(
                f"Decrease module duration by {abs(duration_change):.1f} hours to improve focus and engagement"
            )

    theory_change = optimized["theory_percentage"] - current["theory_percentage"]
    if abs(theory_change) >= 5:
        if theory_change > 0:
            recommendations.append(
                f"Increase theoretical content by {theory_change:.0f}% to build stronger conceptual foundation"
            )
        else:
            recommendations.append(
                f"Reduce theoretical content by {abs(theory_change):.0f}% in favor of more hands-on practice"
            )

    assessment_change = int(optimized["assessment_count"] - current["assessment_count"])
    if assessment_change > 0:
        recommendations.append(
            f"Add {assessment_change} additional assessment point(s) to reinforce learning"
        )
    elif assessment_change < 0:
        recommendations.append(
            f"Reduce assessment count by {abs(assessment_change)} to decrease evaluation pressure"
        )

    complexity_change = optimized["complexity"] - current["complexity"]
    if abs(complexity_change) >= 1:
        if complexity_change > 0:
            recommendations.append("Increase content complexity to better match learner capabilities")
        else:
            recommendations.append("Reduce content complexity to improve comprehension and retention")

    if not recommendations:
        recommendations.append("Current module configuration is near optimal")

    return recommendations


def improvement_percentage(current: float, optimized: float) -> float:
    return (optimized - current) / max(0.01, current) * 100


def _as_module_features(config: Dict[str, float]) -> ModuleFeatures:
    return ModuleFeatures(
        duration=float(config["duration"]),
        complexity=float(config["complexity"]),
        theory_percentage=float(config["theory_percentage"]),
        practical_percentage=float(config["practical_percentage"]),
        position_in_syllabus=float(config["position_in_syllabus"]),
        prerequisites_count=int(config["prerequisites_count"]),
        assessment_count=int(config["assessment_count"]),
    )


@dataclass
class _ModuleSlot:
    """Module validé et sa position dans le syllabus."""

    module: SyllabusModuleConfig
    position: int


class SyllabusOptimizationEngine:
    """
    Moteur d'optimisation des syllabus
    """

    kind = ModelKind.SYLLABUS_OPTIMIZATION

    def __init__(self, store: ModelStore, module_workers: int = 4):
        """
        Initialise le moteur

        Args:
            store: Store des modèles entraînés
            module_workers: Nombre de threads pour l'évaluation des modules
        """
        self.store = store
        self.module_workers = max(1, module_workers)
        self.heuristic = HeuristicPredictor("heuristic", heuristic_module_score)

    def optimize_syllabus(self, request: SyllabusOptimizationRequest) -> SyllabusOptimizationResponse:
        """
        Optimise chaque syllabus de la requête

        Args:
            request: Syllabus à optimiser

        Returns:
            Optimisations par syllabus, modules et syllabus écartés
        """
        syllabi, skipped = validate_items(request.syllabi, SyllabusConfig, "id")
        predictor = build_predictor(self.store, self.kind, self.heuristic)

        optimizations = []
        for index, syllabus in syllabi:
            optimization, module_skips = self._optimize_one(predictor, index, syllabus)
            skipped.extend(module_skips)
            if optimization is None:
                skipped.append(
                    SkippedItem(index=index, id=syllabus.id, reason="No valid modules in syllabus")
                )
                continue
            optimizations.append(optimization)

        logger.info(
            f"Syllabus optimization completed for {len(optimizations)} syllabi, "
            f"{len(skipped)} items skipped ({predictor.model_type})"
        )

        return SyllabusOptimizationResponse(
            optimization_date=datetime.now(),
            optimizations=optimizations,
            model_type=predictor.model_type,
            skipped=sorted(skipped, key=lambda item: item.index),
        )

    def _optimize_one(
        self,
        predictor: Predictor,
        index: int,
        syllabus: SyllabusConfig,
    ) -> Tuple[Optional[SyllabusOptimization], List[SkippedItem]]:
        slots, skipped = self._collect_modules(index, syllabus)
        if not slots:
            return None, skipped

        module_count = len(slots)

        def score(slot: _ModuleSlot) -> ModuleOptimization:
            return self._optimize_module(predictor, slot, module_count)

        if self.module_workers > 1 and module_count > 1:
            with ThreadPoolExecutor(max_workers=min(self.module_workers, module_count)) as pool:
                module_results = list(pool.map(score, slots))
        else:
            module_results = [score(slot) for slot in slots]

        # Le séquencement n'a lieu qu'une fois tous les modules évalués
        ordered_slots = sorted(slots, key=lambda slot: slot.position)
        sequencing = topological_sequence(
            [slot.module.id for slot in ordered_slots],
            {slot.module.id: slot.module.prerequisites for slot in ordered_slots},
        )
        if sequencing.has_cycle:
            logger.warning(
                f"Prerequisite cycle in syllabus {syllabus.id}, ignored edges: {sequencing.ignored_edges}"
            )
        if sequencing.unknown_prerequisites:
            logger.warning(
                f"Unknown prerequisites in syllabus {syllabus.id}: {sequencing.unknown_prerequisites}"
            )

        current_avg = float(np.mean([m.current_effectiveness for m in module_results]))
        optimized_avg = float(np.mean([m.optimized_effectiveness for m in module_results]))
        sequence_effectiveness = self._sequence_effectiveness(
            predictor, ordered_slots, sequencing.order, current_avg
        )

        optimization = SyllabusOptimization(
            syllabus_id=syllabus.id,
            syllabus_name=syllabus.name,
            current_effectiveness=current_avg,
            optimized_effectiveness=optimized_avg,
            overall_improvement=improvement_percentage(current_avg, optimized_avg),
            modules=sorted(module_results, key=lambda m: m.improvement_percentage, reverse=True),
            recommended_sequence=sequencing.order,
            sequence_effectiveness=sequence_effectiveness,
        )
        return optimization, skipped

    def _collect_modules(
        self,
        index: int,
        syllabus: SyllabusConfig,
    ) -> Tuple[List[_ModuleSlot], List[SkippedItem]]:
        """Valide les modules et écarte les identifiants en double."""

        validated, invalid = validate_items(syllabus.modules, SyllabusModuleConfig, "id")
        skipped = [
            SkippedItem(
                index=index,
                id=f"{syllabus.id}/{item.id if item.id is not None else item.index}",
                reason=f"Module {item.index} skipped: {item.reason}",
            )
            for item in invalid
        ]

        slots: List[_ModuleSlot] = []
        seen = set()
        for module_index, module in validated:
            if module.id in seen:
                skipped.append(
                    SkippedItem(
                        index=index,
                        id=f"{syllabus.id}/{module.id}",
                        reason=f"Module {module_index} skipped: duplicate module id",
                    )
                )
                continue
            seen.add(module.id)
            slots.append(
                _ModuleSlot(
                    module=module,
                    position=module.position if module.position is not None else len(slots),
                )
            )

        return slots, skipped

    def _optimize_module(
        self,
        predictor: Predictor,
        slot: _ModuleSlot,
        module_count: int,
    ) -> ModuleOptimization:
        current = module_features(slot.module, slot.position, module_count)

        if predictor.is_learned:
            candidates = grid_candidates(current)
            scores = np.clip(predictor.predict(candidates), 0, 10)
            best = int(np.argmax(scores))
            current_effectiveness = float(scores[0])
            optimized_effectiveness = float(scores[best])
            optimized = candidates.iloc[best].to_dict()
        else:
            proposal = heuristic_configuration(current)
            scores = predictor.predict(pd.DataFrame([current, proposal], columns=FEATURE_COLUMNS))
            current_effectiveness = float(scores[0])
            if scores[1] >= scores[0]:
                optimized, optimized_effectiveness = proposal, float(scores[1])
            else:
                optimized, optimized_effectiveness = dict(current), current_effectiveness

        return ModuleOptimization(
            module_id=slot.module.id,
            module_name=slot.module.name,
            current_effectiveness=current_effectiveness,
            optimized_effectiveness=optimized_effectiveness,
            improvement_percentage=improvement_percentage(current_effectiveness, optimized_effectiveness),
            current_config=_as_module_features(current),
            recommended_config=_as_module_features(optimized),
            recommendations=optimization_recommendations(current, optimized),
        )

    def _sequence_effectiveness(
        self,
        predictor: Predictor,
        slots: List[_ModuleSlot],
        sequence: List[str],
        current_avg: float,
    ) -> float:
        """
        Efficacité attendue avec la séquence recommandée

        Modèle appris : modules ré-évalués à leur nouvelle position.
        Heuristique : gain forfaitaire de 5% sur la moyenne actuelle.
        """
        if not predictor.is_learned:
            return min(10.0, current_avg * SEQUENCE_GAIN)

        new_position = {module_id: position for position, module_id in enumerate(sequence)}
        rows = [
            module_features(slot.module, new_position[slot.module.id], len(slots))
            for slot in slots
        ]
        scores = np.clip(predictor.predict(pd.DataFrame(rows, columns=FEATURE_COLUMNS)), 0, 10)
        return float(np.mean(scores))

