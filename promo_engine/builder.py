"""
promo_engine/builder.py
-----------------------
Turns a selected product + the active discount rule (+ an optional manual
override) into a PromotionItem, and owns the one-item-per-SKU invariant of
a PromotionEvent.

Pipeline for one product
------------------------
    1. Manual override present and valid?  → use it verbatim
    2. resolve_base_price()                → ca_price > channel > catalog
    3. apply_rule()                        → raw target price
    4. round_to_psychological()            → N.95 promo price

preview_item() additionally runs the margin stages for display:
    resolve_commission() → resolve_postage() → compute_margin()

Event item operations
---------------------
    add_items     : append, skipping SKUs already in the event
    upsert_items  : replace SKUs already in the event in place, append the rest
    remove_item   : drop one SKU

Events and items are frozen dataclasses; every operation returns a new
event and leaves its input untouched.

No pandas imports. Pure Python.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Iterable, Mapping

from promo_engine.commission import DEFAULT_COMMISSION_PCT, resolve_commission
from promo_engine.discount import apply_rule
from promo_engine.logistics import resolve_postage
from promo_engine.margin import DEFAULT_VAT_RATE, compute_margin
from promo_engine.models import (
    ALL_PLATFORMS,
    CommissionLookup,
    DiscountRule,
    LogisticsRule,
    MarginBreakdown,
    PlatformConfig,
    Product,
    PromotionEvent,
    PromotionItem,
    Zone,
)
from promo_engine.pricing import OverrideMap, PriceSource, lookup_override, resolve_base_price
from promo_engine.rounding import round_to_psychological

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ItemPreview:
    item:         PromotionItem
    price_source: PriceSource | str   # "override" when a manual price was used
    commission:   CommissionLookup
    postage:      float
    margin:       MarginBreakdown


# ─────────────────────────────────────────────────────────────────────────────
# Item construction
# ─────────────────────────────────────────────────────────────────────────────

def _price_item(
    product:   Product,
    rule:      DiscountRule | Mapping[str, Any],
    platform:  str,
    overrides: OverrideMap | None,
) -> tuple[PromotionItem, str]:
    rule = DiscountRule.from_record(rule)
    base = resolve_base_price(product, platform)

    manual = lookup_override(overrides, product.sku)
    if manual is not None:
        promo_price, source = manual, "override"
    else:
        promo_price = round_to_psychological(apply_rule(base.price, rule))
        source = base.source

    item = PromotionItem(
        sku            = product.sku,
        base_price     = base.price,
        promo_price    = max(0.0, promo_price),
        discount_type  = rule.type,
        discount_value = rule.value,
    )
    return item, source


def build_promotion_item(
    product:   Product,
    rule:      DiscountRule | Mapping[str, Any],
    platform:  str = ALL_PLATFORMS,
    overrides: OverrideMap | None = None,
) -> PromotionItem:
    """Promotional item for one product under the active bulk rule."""
    item, _ = _price_item(product, rule, platform, overrides)
    return item


def build_items(
    products:  Iterable[Product],
    skus:      Iterable[str],
    rule:      DiscountRule | Mapping[str, Any],
    platform:  str = ALL_PLATFORMS,
    overrides: OverrideMap | None = None,
) -> list[PromotionItem]:
    """
    Items for the selected SKUs, in selection order.

    Selected SKUs missing from the catalog are skipped with a warning.
    """
    by_sku = {p.sku: p for p in products}
    items: list[PromotionItem] = []
    for sku in dict.fromkeys(skus):
        product = by_sku.get(sku)
        if product is None:
            logger.warning(f"Selected SKU {sku!r} is not in the catalog; skipped")
            continue
        items.append(build_promotion_item(product, rule, platform, overrides))
    return items


def preview_item(
    product:         Product,
    rule:            DiscountRule | Mapping[str, Any],
    *,
    platform:        str = ALL_PLATFORMS,
    pricing_rules:   Mapping[str, PlatformConfig | Mapping[str, Any]] | None = None,
    logistics_rules: Iterable[LogisticsRule | Mapping[str, Any]] = (),
    overrides:       OverrideMap | None = None,
    vat_rate:        float = DEFAULT_VAT_RATE,
    zone:            Zone = "STANDARD",
    fallback_commission_pct: float = DEFAULT_COMMISSION_PCT,
) -> ItemPreview:
    """Item plus its full margin breakdown at the event platform's commission."""
    item, source = _price_item(product, rule, platform, overrides)
    commission = resolve_commission(pricing_rules or {}, platform, fallback_commission_pct)
    postage = resolve_postage(logistics_rules, product.weight, zone, fallback=product.postage)
    margin = compute_margin(item.promo_price, product, commission.rate, postage, vat_rate)
    return ItemPreview(
        item         = item,
        price_source = source,
        commission   = commission,
        postage      = postage,
        margin       = margin,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Event item operations
# ─────────────────────────────────────────────────────────────────────────────

def add_items(event: PromotionEvent, items: Iterable[PromotionItem]) -> PromotionEvent:
    """Append items whose SKU is not already in the event."""
    existing = {i.sku for i in event.items}
    added: list[PromotionItem] = []
    for item in items:
        if item.sku in existing:
            continue
        existing.add(item.sku)
        added.append(item)
    if not added:
        return event
    return replace(event, items=event.items + tuple(added))


def upsert_items(event: PromotionEvent, items: Iterable[PromotionItem]) -> PromotionEvent:
    """
    Replace items whose SKU is already present (keeping their position) and
    append the rest. A SKU repeated in `items` keeps its last value.
    """
    incoming: dict[str, PromotionItem] = {}
    for item in items:
        incoming[item.sku] = item

    merged = [incoming.pop(i.sku, i) for i in event.items]
    merged.extend(incoming.values())
    return replace(event, items=tuple(merged))


def remove_item(event: PromotionEvent, sku: str) -> PromotionEvent:
    return replace(event, items=tuple(i for i in event.items if i.sku != sku))
