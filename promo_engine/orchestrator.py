"""
promo_engine/orchestrator.py
----------------------------
Campaign analysis pipeline.

Pipeline
--------
    Step 1 → status.reconcile_status()
                 Stored status is a cache; recompute it from the clock.

    Step 2 → commission.resolve_commission()
                 Event platform's rate, or the configured default.

    Step 3 → per item:
                 logistics.resolve_postage_by_zone()   STANDARD and REMOTE
                 margin.compute_margin()               at both postage levels

    Step 4 → projection.project_campaign()
                 Velocity-weighted baseline vs promo daily profit.

    Step 5 → actuals.summarize_event_actuals()
                 Only when price logs are supplied and the event has started.

    Step 6 → briefing.generate_campaign_brief()

No UI imports. Pure Python apart from the pandas use inside actuals.
"""

from __future__ import annotations

import logging
from dataclasses import asdict

from config.settings import get_default_commission_pct, get_vat_rate
from promo_engine.actuals import summarize_event_actuals
from promo_engine.briefing import generate_campaign_brief
from promo_engine.commission import resolve_commission
from promo_engine.logistics import resolve_postage_by_zone
from promo_engine.margin import breakdown_as_dict, compute_margin
from promo_engine.models import LogisticsRule, Product, PromotionEvent, pricing_rules_from_records
from promo_engine.numeric import to_number
from promo_engine.projection import project_campaign, projection_as_dict
from promo_engine.status import is_editable, reconcile_status

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _as_event(value) -> PromotionEvent:
    return value if isinstance(value, PromotionEvent) else PromotionEvent.from_record(value)


def _as_products(values) -> list[Product]:
    return [v if isinstance(v, Product) else Product.from_record(v) for v in values or ()]


def _as_logistics(values) -> list[LogisticsRule]:
    return [v if isinstance(v, LogisticsRule) else LogisticsRule.from_record(v) for v in values or ()]


def _item_rows(event, by_sku, commission_rate, logistics, vat_rate) -> tuple[list[dict], list[str]]:
    """Per-item margin rows for items with a catalog product, plus the SKUs without one."""
    rows: list[dict] = []
    unmatched: list[str] = []

    for item in event.items:
        product = by_sku.get(item.sku)
        if product is None:
            unmatched.append(item.sku)
            continue

        postage  = resolve_postage_by_zone(logistics, product.weight, fallback=product.postage)
        standard = compute_margin(item.promo_price, product, commission_rate, postage["STANDARD"], vat_rate)
        remote   = compute_margin(item.promo_price, product, commission_rate, postage["REMOTE"], vat_rate)

        rows.append({
            "sku":               item.sku,
            "name":              product.name,
            "base_price":        round(item.base_price, 2),
            "promo_price":       round(item.promo_price, 2),
            "discount_type":     item.discount_type,
            "discount_value":    round(item.discount_value, 2),
            "postage_standard":  round(postage["STANDARD"], 2),
            "postage_remote":    round(postage["REMOTE"], 2),
            "net_profit":        round(standard.net_profit, 2),
            "margin_pct":        round(standard.margin_pct, 2),
            "remote_net_profit": round(remote.net_profit, 2),
            "remote_margin_pct": round(remote.margin_pct, 2),
            "breakdown":         breakdown_as_dict(standard),
        })

    return rows, unmatched


# ─────────────────────────────────────────────────────────────────────────────
# Main entry point
# ─────────────────────────────────────────────────────────────────────────────

def run_campaign_analysis(inputs: dict) -> dict:
    """
    Run the full campaign analysis pipeline.

    Args:
        inputs (dict):
            event            (PromotionEvent | dict) : The campaign
            products         (list)                  : Catalog products (records or dicts)
            pricing_rules    (dict)                  : {platform: {commission, color}}
            logistics_rules  (list)                  : Carrier rate table
            price_logs       (DataFrame | list)      : Optional sales / price history
            now              (date | datetime | str) : Optional clock override
            vat_rate         (float)                 : Optional; defaults to settings
            include_brief    (bool)                  : Default True

    Returns:
        dict : Display-ready outputs of every step, `warnings`, and `brief`.
    """
    now       = inputs.get("now")
    vat_rate  = to_number(inputs.get("vat_rate"), get_vat_rate())
    products  = _as_products(inputs.get("products"))
    logistics = _as_logistics(inputs.get("logistics_rules"))
    rules     = pricing_rules_from_records(inputs.get("pricing_rules") or {})
    by_sku    = {p.sku: p for p in products}
    warnings: list[str] = []

    # ── Step 1: Status ────────────────────────────────────────────────────────
    stored = _as_event(inputs["event"])
    event  = reconcile_status(stored, now)

    # ── Step 2: Commission ────────────────────────────────────────────────────
    commission = resolve_commission(rules, event.platform, get_default_commission_pct())
    if not commission.from_rules:
        warnings.append(
            f"No commission rule for platform {event.platform!r}; "
            f"using default {commission.rate:g}%"
        )

    # ── Step 3: Per-item margins ──────────────────────────────────────────────
    item_rows, unmatched = _item_rows(event, by_sku, commission.rate, logistics, vat_rate)
    if unmatched:
        warnings.append(f"{len(unmatched)} item(s) have no catalog product: {', '.join(unmatched)}")

    # ── Step 4: Campaign projection ───────────────────────────────────────────
    projection = project_campaign(event.items, products, vat_rate)

    # ── Step 5: Actuals ───────────────────────────────────────────────────────
    actuals = None
    logs = inputs.get("price_logs")
    if logs is not None and event.status != "UPCOMING":
        actuals = asdict(summarize_event_actuals(event, logs, products, now))

    # ── Assemble combined output ──────────────────────────────────────────────
    combined: dict = {
        "event_id":              event.id,
        "event_name":            event.name,
        "platform":              event.platform,
        "start_date":            event.start_date,
        "end_date":              event.end_date,
        "remark":                event.remark,
        "status":                event.status,
        "status_changed":        event.status != stored.status,
        "editable":              is_editable(event, now),
        "vat_rate":              vat_rate,
        "commission_rate":       round(commission.rate, 2),
        "commission_from_rules": commission.from_rules,
        "item_count":            len(event.items),
        "items":                 item_rows,
        "actuals":               actuals,
        "warnings":              warnings,
        **projection_as_dict(projection),
    }

    for message in warnings:
        logger.warning(f"Event {event.id!r}: {message}")

    # ── Step 6: Campaign brief ────────────────────────────────────────────────
    combined["brief"] = (
        generate_campaign_brief(combined) if inputs.get("include_brief", True) else ""
    )

    return combined
