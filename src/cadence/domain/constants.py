"""Centralized constants for cadence.

Every empirical default lives here so the engines, the settings model and the
tests import from a single source of truth. Engines never read these directly
at call time; they are folded into explicit parameter objects.
"""

# ---------- Scheduling ----------
MIN_EASE_FACTOR = 1.3
GOOD_EASE_BONUS = 0.1
HARD_INTERVAL_MULTIPLIER = 1.2
EASY_INTERVAL_MULTIPLIER = 1.3
RELEARN_EASY_FRACTION = 0.5
RELEARN_GRADUATE_FRACTION = 0.25
DEFAULT_EASE_NORMALIZER = 2.5  # retention decay is normalized around this ease
MINUTES_PER_DAY = 24 * 60
MASTERY_SIMULATION_LIMIT = 100

# ---------- Deck config defaults ----------
DEFAULT_LEARNING_STEPS = (1.0, 10.0)  # minutes
DEFAULT_RELEARNING_STEPS = (10.0,)  # minutes
DEFAULT_GRADUATING_INTERVAL = 1.0  # days
DEFAULT_EASY_INTERVAL = 4.0  # days
DEFAULT_NEW_CARDS_PER_DAY = 20
DEFAULT_MAXIMUM_INTERVAL = 36500.0  # ~100 years
DEFAULT_STARTING_EASE = 2.5
DEFAULT_EASY_BONUS = 0.15
DEFAULT_HARD_PENALTY = 0.15
DEFAULT_LAPSE_PENALTY = 0.2
DEFAULT_LAPSE_THRESHOLD = 8

# ---------- Deck config optimizer ----------
OPTIMIZE_LOW_RETENTION = 0.8
OPTIMIZE_HIGH_RETENTION = 0.95
OPTIMIZE_HIGH_LAPSE_RATE = 0.3
OPTIMIZE_MAX_GRADUATING_INTERVAL = 3.0
OPTIMIZE_MIN_GRADUATING_INTERVAL = 1.0
OPTIMIZE_MIN_STARTING_EASE = 2.0
OPTIMIZE_MAX_STARTING_EASE = 3.0
OPTIMIZE_EASE_STEP = 0.1
OPTIMIZE_EXTRA_RELEARNING_STEP = 60.0  # minutes
OPTIMIZE_MAX_RELEARNING_STEPS = 3

# ---------- Response-time baseline ----------
BASELINE_MIN_SAMPLES = 10
BASELINE_OUTLIER_SIGMA = 3.0
BASELINE_MAX_STORED_SAMPLES = 1000
BASELINE_MIN_PLAUSIBLE_MS = 500.0
BASELINE_MAX_PLAUSIBLE_MS = 60000.0
BASELINE_MIN_BUCKET_SAMPLES = 3
BASELINE_DIFFICULTY_BUCKETS = (1, 2, 3, 4, 5)
SLOW_WARNING_SIGMA = 1.5
FATIGUE_THRESHOLD_SIGMA = 2.5
DEFAULT_BASELINE_MS = 3000.0
DEFAULT_SLOW_WARNING_MS = 6000.0
DEFAULT_FATIGUE_THRESHOLD_MS = 10000.0

# ---------- Fatigue engine ----------
TREND_EPSILON = 0.001
TREND_STABLE_SLOPE = 0.1
TREND_STRENGTH_SCALE = 50.0
FATIGUE_MIN_RECORDS = 3
FATIGUE_RECENT_RECORDS = 10
FATIGUE_WINDOW_SIZE = 5
FATIGUE_WINDOW_OVERLAP = 2
FATIGUE_MAX_WINDOWS = 20
FATIGUE_INDICATOR_CONFIDENCE = 60.0
FATIGUE_WEIGHT_RESPONSE_TIME = 0.3
FATIGUE_WEIGHT_RATING = 0.4
FATIGUE_WEIGHT_HESITATION = 0.2
FATIGUE_WEIGHT_CONSISTENCY = 0.1
WINDOW_WEIGHT_HESITATION = 0.3
CONSISTENCY_BASELINE_FRACTION = 0.3
CONSISTENCY_WARNING_SCORE = 70.0
PATTERN_MIN_RECORDS = 5

# ---------- Session regulator ----------
DEFAULT_FATIGUE_SCORE_THRESHOLD = 65.0
DEFAULT_PERFORMANCE_DROP_THRESHOLD = 25.0  # percent
DEFAULT_TIME_BASED_BREAK_INTERVAL = 25.0  # minutes
DEFAULT_MAX_DAILY_CARDS = 200
DEFAULT_MAX_SESSION_LENGTH = 45.0  # minutes
DEFAULT_OPTIMAL_SESSION_LENGTH = 20.0  # minutes
DEFAULT_MIN_BREAK_BETWEEN_SESSIONS = 15.0  # minutes
CRITICAL_FATIGUE_SCORE = 80.0
HIGH_CONFIDENCE_TRIGGER = 75.0
IMMEDIATE_BREAK_CONFIDENCE = 80.0
OVERLOAD_RATIO = 0.8
BREAK_DURATION_SHORT = 5  # minutes
BREAK_DURATION_FATIGUED = 10
BREAK_DURATION_LONG_SESSION = 15
BREAK_FATIGUED_SCORE = 70.0
BREAK_LONG_SESSION_MINUTES = 30.0
WORKLOAD_FATIGUED_SCORE = 50.0
WORKLOAD_FATIGUED_SESSION_RATIO = 0.7

# ---------- Personalization ----------
PROFILE_LEARNING_RATE = 0.1
PROFILE_HISTORY_DAYS = 30
PROFILE_MIN_FATIGUE_THRESHOLD = 50.0
PROFILE_MAX_FATIGUE_THRESHOLD = 80.0
PROFILE_MAX_PREFERRED_HOURS = 3
PROFILE_REFRESH_DAYS = 7
BASE_MILESTONES = (25, 75, 150, 300, 500, 750, 1000, 1500, 2000)
