# Application Session Package
from .baseline import BaselineService, compute_baseline, personalized_thresholds
from .fatigue import fatigue_indicators, ingest, new_session, pattern_detection, session_summary
from .personalization import PersonalizationService, profile_from_history, update_profile
from .regulator import (
    adaptive_regulator_config,
    break_suggestion,
    session_optimization,
    workload_balance,
)

__all__ = [
    "BaselineService",
    "compute_baseline",
    "personalized_thresholds",
    "fatigue_indicators",
    "ingest",
    "new_session",
    "pattern_detection",
    "session_summary",
    "PersonalizationService",
    "profile_from_history",
    "update_profile",
    "adaptive_regulator_config",
    "break_suggestion",
    "session_optimization",
    "workload_balance",
]
