"""Mathematical helper functions used across the codebase."""

import math


def clamp(x: float, lo: float = 0.0, hi: float = 100.0) -> float:
    """Clamp value between lo and hi, handling NaN/inf gracefully."""
    if math.isnan(x):
        return lo
    return max(lo, min(hi, x))


def round_half_up(x: float) -> int:
    """Round to the nearest integer, halves away from zero (``round`` rounds halves to even)."""
    if x < 0:
        return -int(math.floor(-x + 0.5))
    return int(math.floor(x + 0.5))
