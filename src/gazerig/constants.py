"""Shared constants and paths for GazeRig."""

import math
from pathlib import Path

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent.parent
ASSETS_DIR = PROJECT_ROOT / "assets"
CONFIG_DIR = ASSETS_DIR / "config"

# Joint path names
PATH_SEPARATOR = "/"

# Default rig joints, matched by name suffix
HEAD_JOINT_SUFFIX = "/head01_mob"
LEFT_EYE_JOINT_SUFFIX = "FACIAL_L_Eye_mob"
RIGHT_EYE_JOINT_SUFFIX = "FACIAL_R_Eye_mob"

# Rest-pose forward direction of the head and eyes in joint space
DEFAULT_REFERENCE_FORWARD = (0.0, 1.0, 1.0)

# Rotation limits (radians, applied per Euler axis)
HEAD_MAX_ROTATION = math.pi / 4
EYE_MAX_ROTATION = math.pi / 8

# Direction vectors shorter than this cannot be normalized
DEGENERATE_EPSILON = 1e-9

# Hierarchy build
BUILD_WORKERS = 1
