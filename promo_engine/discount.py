"""
promo_engine/discount.py
------------------------
Applies a bulk discount rule to a base price.

    PERCENTAGE : base × (1 − value / 100), clamped at 0 when value > 100
    FIXED      : max(0, base − value)

The result is the raw target price; it is never rounded here. Rounding is
the job of promo_engine.rounding, which runs immediately afterwards.

Discount values are coerced to finite non-negative numbers, so a rule can
only ever lower (or keep) the price. Increasing the value never increases
the result for either rule type.

No pandas imports. Pure Python.
"""

from __future__ import annotations

from typing import Any, Mapping

from promo_engine.models import DiscountRule
from promo_engine.numeric import to_non_negative


def apply_rule(base_price: float, rule: DiscountRule | Mapping[str, Any]) -> float:
    """
    Apply a PERCENTAGE or FIXED rule to base_price.

    Args:
        base_price : Gross price the discount is taken from.
        rule       : DiscountRule, or a {"type", "value"} mapping.

    Raises:
        ValueError: rule type is neither PERCENTAGE nor FIXED.
    """
    rule  = DiscountRule.from_record(rule)
    base  = to_non_negative(base_price)
    value = to_non_negative(rule.value)

    if rule.type == "PERCENTAGE":
        return max(0.0, base * (1.0 - value / 100.0))
    return max(0.0, base - value)


def describe_rule(rule: DiscountRule | Mapping[str, Any]) -> str:
    """Short label for display, e.g. '15% off' or '£2.00 off'."""
    rule = DiscountRule.from_record(rule)
    if rule.type == "PERCENTAGE":
        return f"{rule.value:g}% off"
    return f"£{rule.value:,.2f} off"
