# Domain Session Package
from .models import (
    BaselineParams,
    BreakTriggers,
    DifficultyStats,
    FatigueIndicators,
    FatigueParams,
    PatternDetection,
    PerformanceWindow,
    PersonalizedRecommendations,
    RegulatorConfig,
    ResponseTimeBaseline,
    ResponseTimeThresholds,
    ReviewRecord,
    SessionHistory,
    SessionLog,
    SessionOptimization,
    SessionResult,
    SessionSummary,
    SmartBreakSuggestion,
    TrendAnalysis,
    UserBreakPreferences,
    UserLearningProfile,
    WorkloadBalance,
    WorkloadLimits,
)
from .ports import BaselineStore, ProfileStore, ReviewSink, SessionLogStore

__all__ = [
    "BaselineParams",
    "BreakTriggers",
    "DifficultyStats",
    "FatigueIndicators",
    "FatigueParams",
    "PatternDetection",
    "PerformanceWindow",
    "PersonalizedRecommendations",
    "RegulatorConfig",
    "ResponseTimeBaseline",
    "ResponseTimeThresholds",
    "ReviewRecord",
    "SessionHistory",
    "SessionLog",
    "SessionOptimization",
    "SessionResult",
    "SessionSummary",
    "SmartBreakSuggestion",
    "TrendAnalysis",
    "UserBreakPreferences",
    "UserLearningProfile",
    "WorkloadBalance",
    "WorkloadLimits",
    "BaselineStore",
    "ProfileStore",
    "ReviewSink",
    "SessionLogStore",
]
