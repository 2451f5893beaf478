"""
promo_engine/rounding.py
------------------------
Psychological price rounding.

Normalises a raw target price to a ".95" ending without ever exceeding the
target:

    candidate = floor(target) + 0.95
    candidate > target  →  candidate - 1, floored at 0.95
    otherwise           →  candidate

Examples:
    23.99 → 23.95      23.95 → 23.95      23.50 → 22.95      0.40 → 0.95

The 0.95 floor is the only case where the result can exceed the target
(targets below 0.95). Applying the policy to its own output is a no-op.

No pandas imports. Pure Python.
"""

from __future__ import annotations

import math

from promo_engine.numeric import to_non_negative

PRICE_ENDING: float = 0.95
MIN_PRICE:    float = 0.95

# Float representation of N.95 can sit a few ulps either side of the literal
_TOLERANCE: float = 1e-9


def round_to_psychological(target: float) -> float:
    """Round target down to the nearest N.95 (minimum 0.95)."""
    target = to_non_negative(target)
    candidate = math.floor(target + _TOLERANCE) + PRICE_ENDING
    if candidate > target + _TOLERANCE:
        candidate = max(candidate - 1.0, MIN_PRICE)
    return round(candidate, 2)
