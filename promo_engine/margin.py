"""
promo_engine/margin.py
----------------------
Per-item margin breakdown for a promotional price.

Formula:
    net_revenue      = promo_price_gross / vat_rate
    commission_cost  = promo_price_gross × commission_rate / 100
    other_costs      = cost_price + wms_fee + other_fee + subscription_fee
    net_profit       = net_revenue − commission_cost − postage − other_costs
    margin_pct       = net_profit / net_revenue × 100     (net_revenue > 0)
                     = −100                               (otherwise)

Key points:
    Commission is charged on the GROSS price, matching how platforms invoice,
    while margin is expressed against NET (ex-VAT) revenue.

    A −100% margin is a sentinel for "no revenue to measure against"; it is a
    business signal, not an error. Negative margins are valid results.

    fixed_cost_stack() is the single definition of the per-unit fixed cost.
    The campaign projection uses the same function, so per-item detail and
    campaign totals never disagree about what a unit costs. Advertising cost
    is not part of the stack.

No pandas imports. Pure Python.
"""

from __future__ import annotations

from typing import Protocol

from promo_engine.models import MarginBreakdown
from promo_engine.numeric import to_non_negative, to_number

DEFAULT_VAT_RATE: float = 1.20
DEGENERATE_MARGIN_PCT: float = -100.0


class CostInputs(Protocol):
    cost_price:       float
    wms_fee:          float
    other_fee:        float
    subscription_fee: float


def fixed_cost_stack(costs: CostInputs) -> float:
    """COGS + warehouse + other + subscription fees, per unit."""
    return (
        to_non_negative(costs.cost_price)
        + to_non_negative(costs.wms_fee)
        + to_non_negative(costs.other_fee)
        + to_non_negative(costs.subscription_fee)
    )


def effective_vat_rate(vat_rate: float) -> float:
    """VAT multiplier, with non-positive / non-finite values treated as 1.0 (no VAT)."""
    rate = to_number(vat_rate, DEFAULT_VAT_RATE)
    return rate if rate > 0 else 1.0


def compute_margin(
    promo_price_gross: float,
    costs:             CostInputs,
    commission_rate:   float,
    postage:           float,
    vat_rate:          float = DEFAULT_VAT_RATE,
) -> MarginBreakdown:
    """
    Compute the full cost breakdown of selling one unit at promo_price_gross.

    Args:
        promo_price_gross : VAT-inclusive selling price.
        costs             : Anything exposing the fixed cost fields (e.g. Product).
        commission_rate   : Platform commission, percent of gross.
        postage           : Shipping cost for this unit.
        vat_rate          : VAT multiplier (1.20 = 20% VAT).

    Returns:
        MarginBreakdown (unrounded; round at display time).
    """
    gross = to_non_negative(promo_price_gross)
    rate  = to_non_negative(commission_rate)
    ship  = to_non_negative(postage)

    net_revenue     = gross / effective_vat_rate(vat_rate)
    commission_cost = gross * rate / 100.0
    other_costs     = fixed_cost_stack(costs)
    net_profit      = net_revenue - commission_cost - ship - other_costs

    margin_pct = (net_profit / net_revenue) * 100.0 if net_revenue > 0 else DEGENERATE_MARGIN_PCT

    return MarginBreakdown(
        net_revenue      = net_revenue,
        commission_rate  = rate,
        commission_cost  = commission_cost,
        standard_postage = ship,
        other_costs      = other_costs,
        net_profit       = net_profit,
        margin_pct       = margin_pct,
    )


def breakdown_as_dict(breakdown: MarginBreakdown, digits: int = 2) -> dict:
    """Display-ready dict with every figure rounded."""
    return {
        "net_revenue":      round(breakdown.net_revenue, digits),
        "commission_rate":  round(breakdown.commission_rate, digits),
        "commission_cost":  round(breakdown.commission_cost, digits),
        "standard_postage": round(breakdown.standard_postage, digits),
        "other_costs":      round(breakdown.other_costs, digits),
        "net_profit":       round(breakdown.net_profit, digits),
        "margin_pct":       round(breakdown.margin_pct, digits),
    }
