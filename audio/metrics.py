# audio/metrics.py
"""Functions for calculating volume statistics from a recorded Volume History."""

from typing import Sequence

import numpy as np

from session.models import VolumeStats
from utils.math import clamp

CONSISTENCY_VARIANCE_DIVISOR = 100.0


def compute_consistency(variance: float) -> float:
    """
    Map the population variance of the history to a steadiness score.

    Args:
        variance: Population variance of the volume samples.

    Returns:
        ``max(0, 100 - variance / 100)``, so lower variability scores higher.
    """
    return clamp(100.0 - variance / CONSISTENCY_VARIANCE_DIVISOR)


def compute_volume_stats(history: Sequence[float]) -> VolumeStats:
    """
    Summarizes a Volume History.

    Args:
        history: Energy readings on the 0-255 byte scale, in recording order.

    Returns:
        Average, min, max and consistency; all zero for an empty history.
    """
    if len(history) == 0:
        return VolumeStats()

    samples = np.asarray(history, dtype=np.float64)
    samples = samples[np.isfinite(samples)]
    if samples.size == 0:
        return VolumeStats()

    return VolumeStats(
        average=float(samples.mean()),
        min=float(samples.min()),
        max=float(samples.max()),
        consistency=compute_consistency(float(samples.var())),
    )
