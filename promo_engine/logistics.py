"""
promo_engine/logistics.py
-------------------------
Selects the shipping cost for a product from a carrier rate table.

Eligibility
-----------
A rule is eligible for a product of weight w iff
    1. price > 0                                   (unpriced rows are placeholders)
    2. it is not a PICKUP / COLLECTION / NA sentinel
    3. max_weight is unset, or max_weight >= w

Zone partition
--------------
Rate-table service codes carry a region suffix:
    YODEL-48-MED-UK     → STANDARD
    YODEL-48-MED-UK-Z   → REMOTE   (Scottish Highlands & islands)
    YODEL-48-MED-NI     → REMOTE   (Northern Ireland)
A rule is REMOTE when its service code contains any of REMOTE_TOKENS.

Within the requested partition the cheapest eligible rule wins, which
approximates the carrier choice a fulfilment system would make. When no
rule qualifies the product's own flat postage is used.

No pandas imports. Pure Python.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from promo_engine.models import LogisticsRule, Zone
from promo_engine.numeric import to_non_negative

logger = logging.getLogger(__name__)

# ─────────────────────────────────────────────────────────────────────────────
# Configuration
# ─────────────────────────────────────────────────────────────────────────────

REMOTE_TOKENS: tuple[str, ...] = ("-Z", "-NI", "REMOTE")

# Service codes / carriers that denote "no shipping cost incurred by us"
SENTINEL_CODES: frozenset[str] = frozenset({"PICKUP", "COLLECTION", "NA", "N/A"})

ZONES: tuple[str, ...] = ("STANDARD", "REMOTE")


# ─────────────────────────────────────────────────────────────────────────────
# Predicates
# ─────────────────────────────────────────────────────────────────────────────

def _as_rule(rule: LogisticsRule | Mapping[str, Any]) -> LogisticsRule:
    return rule if isinstance(rule, LogisticsRule) else LogisticsRule.from_record(rule)


def _service_code(rule: LogisticsRule) -> str:
    """Service code used for token matching; rows without a name fall back to id."""
    return (rule.name or rule.id).upper()


def is_sentinel(rule: LogisticsRule) -> bool:
    codes = {rule.id.upper(), rule.name.upper(), rule.carrier.upper()}
    return bool(codes & SENTINEL_CODES) or "PICKUP" in _service_code(rule)


def is_remote(rule: LogisticsRule) -> bool:
    code = _service_code(rule)
    return any(token in code for token in REMOTE_TOKENS)


def is_eligible(rule: LogisticsRule, weight: float) -> bool:
    if rule.price <= 0 or is_sentinel(rule):
        return False
    return rule.max_weight is None or rule.max_weight >= weight


# ─────────────────────────────────────────────────────────────────────────────
# Public API
# ─────────────────────────────────────────────────────────────────────────────

def select_rule(
    rules:  Iterable[LogisticsRule | Mapping[str, Any]],
    weight: float,
    zone:   Zone = "STANDARD",
) -> LogisticsRule | None:
    """
    Return the cheapest eligible rule in zone, or None.

    Ties on price keep rate-table order (stable sort).
    """
    zone = str(zone).upper()
    if zone not in ZONES:
        raise ValueError(f"Unknown zone {zone!r}; expected one of {ZONES}")

    w = to_non_negative(weight)
    want_remote = zone == "REMOTE"

    candidates = [
        r for r in map(_as_rule, rules)
        if is_eligible(r, w) and is_remote(r) == want_remote
    ]
    if not candidates:
        return None
    return sorted(candidates, key=lambda r: r.price)[0]


def resolve_postage(
    rules:    Iterable[LogisticsRule | Mapping[str, Any]],
    weight:   float,
    zone:     Zone = "STANDARD",
    fallback: float = 0.0,
) -> float:
    """
    Shipping cost for a product of `weight` kg in `zone`.

    Returns the cheapest eligible rule's price, or `fallback` (the product's
    flat postage) when nothing qualifies. Never raises on numeric input.
    """
    rule = select_rule(rules, weight, zone)
    if rule is None:
        logger.debug(f"No eligible {zone} logistics rule for weight={weight}; using fallback {fallback}")
        return to_non_negative(fallback)
    return rule.price


def resolve_postage_by_zone(
    rules:    Iterable[LogisticsRule | Mapping[str, Any]],
    weight:   float,
    fallback: float = 0.0,
) -> dict[str, float]:
    """
    Postage for both partitions, for remote-surcharge sensitivity analysis.

    Returns:
        {"STANDARD": float, "REMOTE": float}
    """
    rules = list(rules)
    return {zone: resolve_postage(rules, weight, zone, fallback) for zone in ZONES}
