# rfcast/utils/geo.py

"""
Planar geometry helpers for the normalized survey plane.
"""

import math
from typing import Tuple


def euclidean(a: Tuple[float, float], b: Tuple[float, float]) -> float:
    """
    Straight-line distance between two points of the same plane.

    Parameters
    ----------
    a
        (x, y) of point A.
    b
        (x, y) of point B.

    Returns
    -------
    float
        Distance in the units of the inputs.
    """
    dx = a[0] - b[0]
    dy = a[1] - b[1]
    return math.sqrt(dx * dx + dy * dy)


def normalize_offset(offset: float, extent: float) -> float:
    """
    Map an offset along an axis of the given extent onto [0, 1].

    A zero extent has no meaningful position, so the axis midpoint (0.5) is used.
    """
    if extent <= 0:
        return 0.5
    return clamp(offset / extent, 0.0, 1.0)


def clamp(value: float, low: float, high: float) -> float:
    """Clamp `value` into [low, high]."""
    return max(low, min(high, value))


def clamp_rssi(value: float) -> int:
    """Round to the nearest integer dBm and clamp into [-120, 0]."""
    return int(clamp(round(value), -120, 0))
