"""
promo_engine/commission.py
--------------------------
Platform commission lookup.

Direct lookup of `platform_key` in the PricingRules table. When the platform
has no rule the documented fallback (DEFAULT_COMMISSION_PCT, 15%) is used.

Because a defaulted rate silently changes every margin computed from it,
the result carries `from_rules` so audits can tell a looked-up rate from a
defaulted one.

No pandas imports. Pure Python.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from promo_engine.models import CommissionLookup, PlatformConfig
from promo_engine.numeric import clamp, to_non_negative

logger = logging.getLogger(__name__)

DEFAULT_COMMISSION_PCT: float = 15.0


def resolve_commission(
    rules:        Mapping[str, PlatformConfig | Mapping[str, Any]],
    platform_key: str,
    fallback_pct: float = DEFAULT_COMMISSION_PCT,
) -> CommissionLookup:
    """
    Look up the commission % for platform_key.

    Returns:
        CommissionLookup(rate, from_rules). Rates are clamped to [0, 100].
    """
    cfg = (rules or {}).get(platform_key)
    if cfg is None:
        rate = clamp(to_non_negative(fallback_pct, DEFAULT_COMMISSION_PCT), 0.0, 100.0)
        logger.debug(f"No pricing rule for platform {platform_key!r}; defaulting commission to {rate}%")
        return CommissionLookup(rate=rate, from_rules=False)

    if not isinstance(cfg, PlatformConfig):
        cfg = PlatformConfig.from_record(cfg)
    return CommissionLookup(rate=clamp(cfg.commission, 0.0, 100.0), from_rules=True)
