"""Project-wide constants.

These values centralize numeric tolerances, proposal step sizes, the
temperature range and the cost-term layout used throughout the codebase.
"""

from __future__ import annotations

import math

# Numerical tolerance used to guard divisions in the cost terms.
EPS: float = 1e-9

TWO_PI: float = 2.0 * math.pi

# Proposal step sizes.
TRANSLATE_DIVISOR: float = 16.0
ROTATE_SIGMA: float = 15.0 / 90.0 * math.pi

# Move types (index into the proposal dispatch table).
MOVE_TRANSLATE: int = 0
MOVE_ROTATE: int = 1
MOVE_SWAP: int = 2
MOVE_NAMES: tuple[str, ...] = ("translate", "rotate", "swap")

# Per-chain temperature range, drawn once per chain: [BETA_MIN, BETA_MAX).
BETA_MIN: float = 0.001
BETA_MAX: float = 2.0

# Symmetry match score: SYMMETRY_BASE - sqrt(dist) - SYMMETRY_ROT_WEIGHT * |drot|.
SYMMETRY_BASE: float = 5.0
SYMMETRY_ROT_WEIGHT: float = 0.4

# Order of the weighted cost terms (also the order of `Scene.weights`).
COST_TERMS: tuple[str, ...] = (
    "pairwise",
    "visual_balance",
    "focal_point",
    "symmetry",
    "alignment",
    "clearance",
    "off_limits",
    "surface_area",
)

PAIRWISE_MODES: tuple[str, ...] = ("relational", "legacy")

# Per-block working memory budget (bytes). Each lane group keeps two layouts
# and two cost breakdowns resident; this mirrors a 48 KiB shared-memory block.
DEFAULT_BLOCK_MEMORY: int = 48 * 1024
FLOAT_BYTES: int = 4
