"""
promo_engine/numeric.py
-----------------------
Numeric coercion helpers shared by every stage of the engine.

Collaborators hand over loosely typed values (CSV cells, JSON numbers,
None). These helpers make every engine function total over its input
domain: non-numeric and non-finite values fall back to a default instead
of raising, and physical quantities (prices, weights, fees) are floored
at zero.

No pandas imports. Pure Python + numpy.
"""

from __future__ import annotations

from typing import Any

import numpy as np


def to_number(x: Any, default: float = 0.0) -> float:
    """Convert x to a finite float, returning default on failure."""
    if x is None or isinstance(x, bool):
        return default
    if isinstance(x, str):
        x = x.strip().replace(",", "").lstrip("£$€")
        if not x:
            return default
    try:
        value = float(x)
    except (TypeError, ValueError):
        return default
    return value if np.isfinite(value) else default


def to_non_negative(x: Any, default: float = 0.0) -> float:
    """Finite, non-negative float. Negative inputs are floored at 0."""
    return max(0.0, to_number(x, default))


def to_optional_number(x: Any) -> float | None:
    """
    Finite float or None.

    Used for optional fields (caPrice, maxWeight, manual overrides) where
    "absent" must stay distinguishable from 0.
    """
    value = to_number(x, default=float("nan"))
    return None if np.isnan(value) else value


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(x, hi))


def safe_div(numerator: float, denominator: float, fallback: float = 0.0) -> float:
    """Divide, returning fallback on a zero denominator or a non-finite result."""
    if denominator == 0:
        return fallback
    result = numerator / denominator
    return float(result) if np.isfinite(result) else fallback
