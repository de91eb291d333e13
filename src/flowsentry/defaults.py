"""Single source of truth for shared constants and configuration defaults.

Every threshold, weight, or default that appears in more than one module is
defined here.  Constants that are truly local to one module stay in that
module.

Risk weights are fixed at import time.  They are not read from the
environment so that a score can always be explained from its breakdown.
"""

from __future__ import annotations


# ---------------------------------------------------------------------------
# Graph analysis
# ---------------------------------------------------------------------------

DEPTH_THRESHOLD = 5                 # depth beyond this adds structural signal
DEPTH_SEARCH_BUDGET = 200_000       # max DFS frames expanded for max depth

# ---------------------------------------------------------------------------
# Timing
# ---------------------------------------------------------------------------

BOTTLENECK_RATIO = 1.5              # average > ratio * global average
MS_PER_SECOND = 1000

# ---------------------------------------------------------------------------
# Automation rules
# ---------------------------------------------------------------------------

CURRENT_VALUE_SENTINEL = "CURRENT"
LOOP_CONFLICT_WEIGHT = 2
OVERWRITE_CONFLICT_WEIGHT = 1

# ---------------------------------------------------------------------------
# Risk aggregation
# ---------------------------------------------------------------------------

WEIGHT_STRUCTURE = 0.5
WEIGHT_TIMING = 0.3
WEIGHT_AUTOMATION = 0.2

STRUCTURE_NORMALIZER = 10
TIMING_NORMALIZER = 5
AUTOMATION_NORMALIZER = 5

SCORE_PRECISION = 2

# ---------------------------------------------------------------------------
# Explanation thresholds
# ---------------------------------------------------------------------------

RISK_HIGH_THRESHOLD = 0.7
RISK_MODERATE_THRESHOLD = 0.4

# ---------------------------------------------------------------------------
# What-if simulation
# ---------------------------------------------------------------------------

REDUCTION_TIMING = 0.5
REDUCTION_STRUCTURE = 0.4
REDUCTION_AUTOMATION = 0.6
POTENTIAL_SCORE_FLOOR = 0.05

# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------

CRITICAL_RISK_THRESHOLD = 0.8
SNAPSHOT_KEY_PREFIX = "snapshot:"
TIMING_KEY_PREFIX = "timing:"
SCANNING_SUMMARY = "Scanning project workflow health..."

# ---------------------------------------------------------------------------
# Storage and HTTP
# ---------------------------------------------------------------------------

DEFAULT_STORE_BACKEND = "memory"
DEFAULT_DB_PATH = ".flowsentry/state.db"
WEBHOOK_MAX_BODY_BYTES = 1_048_576
HTTP_TIMEOUT_SECONDS = 10.0
