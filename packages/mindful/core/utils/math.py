"""Math utilities for common operations."""

from __future__ import annotations

import math
from typing import TypeVar

Number = TypeVar("Number", int, float)


def clamp(value: Number, min_val: Number, max_val: Number) -> Number:
    """Clamp value to range [min_val, max_val].

    Args:
        value: Value to clamp
        min_val: Minimum allowed value
        max_val: Maximum allowed value

    Returns:
        Clamped value
    """
    return max(min_val, min(max_val, value))


def round_half_up(x: float) -> int:
    """Round to nearest integer, ties toward +infinity.

    Python's ``round`` uses banker's rounding (``round(2.5) == 2``); duration
    snapping expects ``2.5 -> 3`` and ``-2.5 -> -2``.

    Example:
        >>> round_half_up(2.5)
        3
        >>> round_half_up(-2.5)
        -2
    """
    return math.floor(x + 0.5)


def snap_to_step(value: float, step: int, min_val: int, max_val: int) -> int:
    """Snap value to the nearest multiple of step, then clamp.

    Args:
        value: Raw value
        step: Granularity (must be positive)
        min_val: Lower bound (inclusive)
        max_val: Upper bound (inclusive)

    Returns:
        ``clamp(round(value / step) * step, min_val, max_val)``
    """
    if step <= 0:
        raise ValueError(f"step must be positive, got {step}")
    return clamp(round_half_up(value / step) * step, min_val, max_val)
