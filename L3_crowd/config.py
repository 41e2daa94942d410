# =============================================================================
# L3 Crowd - Configuration
# =============================================================================
# All configurable parameters for the simulated crowd and its navigator.
# =============================================================================

# =============================================================================
# SIMULATION WORLD BOUNDARIES
# =============================================================================
# Square plaza where the robot and the pedestrians move.
# Format: (x_min, x_max, y_min, y_max) in meters
WORLD_BOUNDS = (-10.0, 10.0, -10.0, 10.0)

# =============================================================================
# TIME PARAMETERS
# =============================================================================
# Delta time between simulation frames (seconds), equal to the inference cycle
DEFAULT_DT = 0.1

# With dt=0.1, 300 steps = 30 seconds of simulation
DEFAULT_SIMULATION_STEPS = 300

# =============================================================================
# AGENT CONFIGURATION
# =============================================================================
# Preferred walking speed of a pedestrian (m/s)
PEDESTRIAN_SPEED = 1.2

# Pedestrian collision radius (meters)
PEDESTRIAN_RADIUS = 0.3

# Ego robot cruise speed (m/s)
EGO_SPEED = 1.0

# Ego robot collision radius (meters)
EGO_RADIUS = 0.5

# Ego robot start position and goal [x, y]
EGO_START_POSITION = [-9.0, -1.0]
EGO_GOAL_POSITION = [9.0, -1.0]

# Ids below this value are reserved for the ego robot
FIRST_PEDESTRIAN_ID = 1

# =============================================================================
# NAVIGATION (VELOCITY OBSTACLES)
# =============================================================================
# Distance at which an agent counts as arrived (meters)
GOAL_TOLERANCE = 0.3

# Agents decelerate linearly inside this distance to the goal (meters)
SLOW_DOWN_RADIUS = 1.0

# Collisions further ahead than this are ignored (seconds)
VO_TIME_HORIZON = 3.0

# Candidate velocity grid: speed levels x headings
VO_NUM_SPEEDS = 5
VO_NUM_HEADINGS = 16

# Weight of the 1/TTC collision penalty against deviation from v_pref
VO_COLLISION_WEIGHT = 1.0

# TTC floor used in the penalty, avoids division by zero when overlapping
VO_MIN_TTC = 1e-3

# =============================================================================
# OBSERVATION NOISE
# =============================================================================
# Gaussian noise standard deviation on observed velocities (m/s)
OBSERVATION_NOISE_STD = 0.0

# =============================================================================
# SCENARIO CONFIGURATION
# =============================================================================
# --- Crossing: four exits on the sides of the plaza ---
CROSSING_EXITS = [
    [9.0, 0.0],     # East
    [0.0, 9.0],     # North
    [-9.0, 0.0],    # West
    [0.0, -9.0],    # South
]
# (start position, exit index)
CROSSING_PEDESTRIANS = [
    ([-8.0, 3.0], 0),
    ([3.0, -8.0], 1),
    ([8.0, -3.0], 2),
    ([-3.0, 8.0], 3),
]

# --- Corridor: two ends and three side doors ---
CORRIDOR_GOALS = [
    [9.5, 0.0],     # East end
    [-9.5, 0.0],    # West end
    [-4.0, 2.5],    # Door A
    [0.0, -2.5],    # Door B
    [4.0, 2.5],     # Door C
]
CORRIDOR_PEDESTRIANS = [
    ([-9.0, 0.5], 0),
    ([9.0, -0.5], 1),
    ([-8.0, -1.0], 4),
    ([7.0, 1.0], 3),
]
CORRIDOR_EGO_START = [-9.0, -1.5]
CORRIDOR_EGO_GOAL = [9.0, -1.5]

# --- Sampled: goals are cells of a grid over the whole plaza ---
SAMPLED_RESOLUTION = 5.0
SAMPLED_PEDESTRIANS = [
    ([-7.5, -7.5], [7.5, 7.5]),
    ([7.5, -7.5], [-7.5, 2.5]),
    ([0.0, 8.0], [2.5, -7.5]),
]
