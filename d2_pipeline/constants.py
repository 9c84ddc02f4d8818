"""Constants for weighted pipeline enrichment."""

from pathlib import Path

# Default stage table shipped with the package
DEFAULT_STAGE_PROBABILITIES_PATH = Path(__file__).parent / "stage_probabilities.yaml"
STAGE_PROBABILITIES_ENV_VAR = "STAGE_PROBABILITIES_PATH"

# Recency decay: probability fades linearly over this many idle days...
STALENESS_THRESHOLD_DAYS = 90
# ...but never below this fraction of the stage probability
MIN_RECENCY_DECAY = 0.7

# Deal-size adjustment
LARGE_DEAL_VALUE = 1_000_000
LARGE_DEAL_MULTIPLIER = 0.9
SMALL_DEAL_VALUE = 100_000
SMALL_DEAL_MULTIPLIER = 1.1

# Pace within the stage relative to its average dwell time
ON_PACE_MULTIPLIER = 1.05
SLOW_PACE_MULTIPLIER = 0.95

# Risk score contributions (capped at 100)
RISK_HIGH_VALUE = 500_000
RISK_HIGH_VALUE_POINTS = 20
RISK_SLOW_STAGE_FACTOR = 1.5
RISK_SLOW_STAGE_POINTS = 25
RISK_LOW_PROBABILITY = 0.3
RISK_LOW_PROBABILITY_POINTS = 30
RISK_INACTIVE_DAYS = 30
RISK_INACTIVE_POINTS = 25
# Assumed weight, mirrors the >3 competitor rule of opportunity risk; review
RISK_COMPETITOR_COUNT = 3
RISK_COMPETITOR_POINTS = 20

# Priority composite weights and cutoffs
PRIORITY_VALUE_WEIGHT = 0.4
PRIORITY_PROBABILITY_WEIGHT = 0.3
PRIORITY_SAFETY_WEIGHT = 0.3
PRIORITY_HIGH_CUTOFF = 70
PRIORITY_MEDIUM_CUTOFF = 40

# Thresholds shared with forecasting and recommendations
HIGH_RISK_THRESHOLD = 70
LOW_CONFIDENCE_PROBABILITY = 0.3
OVERDUE_DAYS_IN_STAGE = 90
STAGNANT_DAYS_IN_STAGE = 60
LOW_CONVERSION_RATE = 0.3

# Monthly outlook horizon for pipeline metrics
PIPELINE_FORECAST_MONTHS = 6

# Average cycle assumed when no deal carries timing data
DEFAULT_SALES_CYCLE_DAYS = 60

# Deal-size bands: (minimum amount, score)
DEAL_SIZE_BREAKPOINTS = [
    (10_000_000, 100),
    (5_000_000, 90),
    (1_000_000, 80),
    (500_000, 70),
    (100_000, 60),
    (50_000, 50),
    (10_000, 40),
]
DEAL_SIZE_FLOOR_SCORE = 20
