# =============================================================================
# L4 Intent - Configuration
# =============================================================================
# Default parameters for goal inference. Runtime values are carried by
# InferenceConfig (see types.py); these constants only supply its defaults.
# =============================================================================

# =============================================================================
# MOTION NOISE MODEL
# =============================================================================
# Maximum feasible acceleration of an observed agent (m/s²)
MAX_ACCELERATION = 1.2

# Control cycle period (seconds) - 0.1s = 10 Hz inference rate
CYCLE_PERIOD = 0.1

# Per-axis velocity noise: two standard deviations span the largest velocity
# change achievable in one cycle
VELOCITY_SIGMA = (MAX_ACCELERATION / 2) * CYCLE_PERIOD

# Correlation between x and y velocity noise
VELOCITY_CORRELATION = 0.0

# =============================================================================
# LIKELIHOOD MODEL
# =============================================================================
# Emission model name: "gaussian" or "student_t"
LIKELIHOOD_MODEL = "gaussian"

# Degrees of freedom for the Student-t emission model
STUDENT_T_DOF = 4.0

# =============================================================================
# BELIEF UPDATE
# =============================================================================
# Posterior at or below this value is floor-clamped before being persisted
POSTERIOR_FLOOR_THRESHOLD = 0.01

# Value persisted as prior for floor-clamped hypotheses
POSTERIOR_FLOOR_VALUE = 0.005

# Re-initialize every prior to uniform on each cycle
RESET_PRIORS = False

# =============================================================================
# AGENT LIFECYCLE
# =============================================================================
# Cycles an agent may go unobserved before its belief is evicted
MAX_MISSED_CYCLES = 10

# Include the ego robot in the joint state handed to the simulation oracle
INCLUDE_EGO_IN_SIMULATION = True

# Default collision radius of an observed agent (meters)
DEFAULT_AGENT_RADIUS = 0.35

# =============================================================================
# HYPOTHESIS SAMPLING
# =============================================================================
# Default grid spacing for sampled goal hypotheses (meters)
DEFAULT_SAMPLE_RESOLUTION = 1.0

# Upper bound on the number of sampled hypotheses per cycle
MAX_SAMPLED_GOALS = 10000
