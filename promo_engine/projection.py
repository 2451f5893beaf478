"""
promo_engine/projection.py
--------------------------
Campaign-level daily profit projection, weighted by sales velocity.

For every item whose SKU matches a catalog product:
    cost            = fixed_cost_stack(product)          (same stack as margin.py)
    base_ppu        = base_price  / vat_rate − cost
    promo_ppu       = promo_price / vat_rate − cost
    daily_base     += base_ppu  × average_daily_sales
    daily_promo    += promo_ppu × average_daily_sales

    profit_gap         = daily_base − daily_promo
    breakeven_lift_pct = (daily_base / daily_promo − 1) × 100    (daily_promo > 0)
                       = 0                                       (otherwise)

Commission and logistics are deliberately left out of this aggregate view;
they live in the per-item MarginBreakdown and would be double-counted here.

Breakeven caveat:
    When promo profit is zero or negative, no amount of extra volume recovers
    baseline profit. The lift is then reported as 0 for compatibility and
    `breakeven_reachable` is False, so callers can render "not recoverable"
    instead of "no lift needed".

The reduction is a plain sum. Partial projections computed over disjoint
item subsets (e.g. in parallel) combine with merge_projections().

No pandas imports. Pure Python.
"""

from __future__ import annotations

import logging
from typing import Iterable

from promo_engine.margin import DEFAULT_VAT_RATE, effective_vat_rate, fixed_cost_stack
from promo_engine.models import CampaignProjection, Product, PromotionItem
from promo_engine.numeric import to_non_negative

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Internal helpers
# ─────────────────────────────────────────────────────────────────────────────

def _finalise(
    daily_base:     float,
    daily_promo:    float,
    matched:        int,
    unmatched_skus: tuple[str, ...],
) -> CampaignProjection:
    reachable = daily_promo > 0
    lift = ((daily_base / daily_promo) - 1.0) * 100.0 if reachable else 0.0
    return CampaignProjection(
        daily_profit_base   = daily_base,
        daily_profit_promo  = daily_promo,
        profit_gap          = daily_base - daily_promo,
        breakeven_lift_pct  = lift,
        breakeven_reachable = reachable,
        matched_items       = matched,
        unmatched_skus      = unmatched_skus,
    )


def item_daily_profit(item: PromotionItem, product: Product, vat_rate: float) -> tuple[float, float]:
    """(baseline, promotional) daily profit contributed by one item."""
    vat      = effective_vat_rate(vat_rate)
    cost     = fixed_cost_stack(product)
    velocity = to_non_negative(product.average_daily_sales)

    base_ppu  = to_non_negative(item.base_price) / vat - cost
    promo_ppu = to_non_negative(item.promo_price) / vat - cost
    return base_ppu * velocity, promo_ppu * velocity


# ─────────────────────────────────────────────────────────────────────────────
# Public API
# ─────────────────────────────────────────────────────────────────────────────

def project_campaign(
    items:    Iterable[PromotionItem],
    products: Iterable[Product],
    vat_rate: float = DEFAULT_VAT_RATE,
) -> CampaignProjection:
    """
    Aggregate baseline vs promotional daily profit across a campaign.

    Items whose SKU has no catalog product are skipped and listed in
    `unmatched_skus`; they never fail the computation.
    """
    by_sku = {p.sku: p for p in products}

    daily_base  = 0.0
    daily_promo = 0.0
    matched     = 0
    unmatched: list[str] = []

    for item in items:
        product = by_sku.get(item.sku)
        if product is None:
            unmatched.append(item.sku)
            continue
        base, promo = item_daily_profit(item, product, vat_rate)
        daily_base  += base
        daily_promo += promo
        matched     += 1

    if unmatched:
        logger.debug(f"Projection skipped {len(unmatched)} item(s) with no catalog product: {unmatched}")

    return _finalise(daily_base, daily_promo, matched, tuple(unmatched))


def merge_projections(parts: Iterable[CampaignProjection]) -> CampaignProjection:
    """
    Combine projections computed over disjoint item subsets.

    Sums are order-insensitive; the derived fields (gap, lift, reachability)
    are recomputed from the combined sums rather than combined directly.
    """
    daily_base  = 0.0
    daily_promo = 0.0
    matched     = 0
    unmatched: list[str] = []
    for part in parts:
        daily_base  += part.daily_profit_base
        daily_promo += part.daily_profit_promo
        matched     += part.matched_items
        unmatched.extend(part.unmatched_skus)
    return _finalise(daily_base, daily_promo, matched, tuple(unmatched))


def projection_as_dict(projection: CampaignProjection, digits: int = 2) -> dict:
    """Display-ready dict."""
    return {
        "daily_profit_base":   round(projection.daily_profit_base, digits),
        "daily_profit_promo":  round(projection.daily_profit_promo, digits),
        "profit_gap":          round(projection.profit_gap, digits),
        "breakeven_lift_pct":  round(projection.breakeven_lift_pct, 1),
        "breakeven_reachable": projection.breakeven_reachable,
        "matched_items":       projection.matched_items,
        "unmatched_skus":      list(projection.unmatched_skus),
    }
