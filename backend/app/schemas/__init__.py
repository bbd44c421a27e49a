"""Pydantic schemas package with lazy exports."""

from importlib import import_module
from types import ModuleType
from typing import TYPE_CHECKING, Dict

_module_exports = {
    "common": ("SkippedItem", "EngineResponse", "validate_items"),
    "skill_decay": (
        "PracticeObservation",
        "SkillObservation",
        "SkillDecayRequest",
        "DecayPoint",
        "SkillDecayPrediction",
        "SkillDecayResponse",
    ),
    "fatigue": (
        "RiskCategory",
        "DutySchedule",
        "FatigueRiskRequest",
        "FatiguePrediction",
        "FatigueRiskResponse",
    ),
    "effectiveness": (
        "TrainingMethod",
        "TrainingProgramConfig",
        "TrainingEffectivenessRequest",
        "ConfidenceInterval",
        "EffectivenessPrediction",
        "TrainingEffectivenessResponse",
    ),
    "consistency": (
        "TraineeMetrics",
        "PerformanceConsistencyRequest",
        "PerformanceAnomaly",
        "ConsistencyRecommendation",
        "ConsistencyAssessment",
        "PerformanceConsistencyResponse",
    ),
    "syllabus": (
        "SyllabusModuleConfig",
        "SyllabusConfig",
        "SyllabusOptimizationRequest",
        "ModuleFeatures",
        "ModuleOptimization",
        "SyllabusOptimization",
        "SyllabusOptimizationResponse",
    ),
    "training": ("TrainingRequest", "TrainingResponse"),
}

_symbol_to_module = {
    symbol: module for module, symbols in _module_exports.items() for symbol in symbols
}

__all__ = list(_symbol_to_module) + list(_module_exports)

_loaded_modules: Dict[str, ModuleType] = {}


def _load_module(module: str) -> ModuleType:
    if module not in _loaded_modules:
        _loaded_modules[module] = import_module(f"{__name__}.{module}")
    return _loaded_modules[module]


def __getattr__(name: str):  # pragma: no cover - passthrough helper
    if name in _module_exports:
        return _load_module(name)
    module_name = _symbol_to_module.get(name)
    if module_name:
        module = _load_module(module_name)
        return getattr(module, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


if TYPE_CHECKING:  # pragma: no cover
    from . import common, consistency, effectiveness, fatigue, skill_decay, syllabus, training
    from .common import *  # noqa: F401,F403
    from .consistency import *  # noqa: F401,F403
    from .effectiveness import *  # noqa: F401,F403
    from .fatigue import *  # noqa: F401,F403
    from .skill_decay import *  # noqa: F401,F403
    from .syllabus import *  # noqa: F401,F403
    from .training import *  # noqa: F401,F403
