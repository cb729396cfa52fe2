from __future__ import annotations

# ==============================================================================
# Flight Composition
# ==============================================================================

# Default flight: 3 elements (files) abreast, 4 ranks deep.
DEFAULT_ELEMENT_COUNT = 3
DEFAULT_RANK_COUNT = 4

# FALL IN accepts "in N elements" for N in [1, MAX_FALL_IN_ELEMENTS].
MAX_FALL_IN_ELEMENTS = 4

# Setup form bounds (cadets on the drill pad, elements abreast).
MIN_CADETS = 1
MAX_CADETS = 22
MAX_SETUP_ELEMENTS = 10

# Five or more cadets form a "Flight"; fewer form a "Detail".
FLIGHT_MIN_CADETS = 5

# ==============================================================================
# Spacing (inches)
# ==============================================================================

# Cover: front-to-back distance between ranks.
DEFAULT_COVER_IN = 30.0

# Interval: side-to-side distance between files.
DEFAULT_INTERVAL_NORMAL_IN = 35.0
DEFAULT_INTERVAL_CLOSE_IN = 4.0

# ==============================================================================
# Cadence
# ==============================================================================

# Quick time sits in the regulation 100-120 steps/minute band.
DEFAULT_CADENCE_SPM = 110
DEFAULT_STEP_LEN_IN = 24.0

# Beat length is computed from max(MIN_CADENCE_SPM, cadence) so a zero or
# negative cadence cannot stall the clock.
MIN_CADENCE_SPM = 10

MS_PER_MINUTE = 60_000.0

# ==============================================================================
# Motion Planning
# ==============================================================================

# Largest rotation a cadet performs on a single beat (degrees).
ROTATION_INCREMENT_DEG = 90

# Distances/angles below this are treated as zero.
EPSILON = 1e-3
