"""
promo_engine/pricing.py
-----------------------
Base-price resolution and the caller-held manual override map.

Base price precedence (first match wins):
    1. ca_price       : contractual campaign/authorised price, when > 0
    2. channel price  : the event platform's channel price, when > 0
                        (skipped for "All"-platform events)
    3. current_price  : catalog default

Override map
------------
Manual prices typed by a user live in a plain {sku: value} mapping owned by
the caller. The engine only reads it. A value that is missing, non-numeric,
non-finite or negative is "no override"; it is never coerced to 0, which
would silently replace a real price with a free item.

No pandas imports. Pure Python.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Mapping

from promo_engine.models import ALL_PLATFORMS, Product
from promo_engine.numeric import to_non_negative, to_optional_number

PriceSource = Literal["ca_price", "channel", "catalog"]

OverrideMap = Mapping[str, Any]


@dataclass(frozen=True)
class PriceResolution:
    price:  float
    source: PriceSource


def resolve_base_price(product: Product, platform: str = ALL_PLATFORMS) -> PriceResolution:
    """Resolve the reference price a discount is taken from."""
    if product.ca_price is not None and product.ca_price > 0:
        return PriceResolution(price=product.ca_price, source="ca_price")

    if platform and platform != ALL_PLATFORMS:
        channel = product.channel_for(platform)
        if channel is not None and channel.price is not None and channel.price > 0:
            return PriceResolution(price=channel.price, source="channel")

    return PriceResolution(price=to_non_negative(product.current_price), source="catalog")


def parse_override(value: Any) -> float | None:
    """A usable manual price, or None for "no override"."""
    price = to_optional_number(value)
    if price is None or price < 0:
        return None
    return price


def lookup_override(overrides: OverrideMap | None, sku: str) -> float | None:
    if not overrides or sku not in overrides:
        return None
    return parse_override(overrides[sku])


def normalize_overrides(overrides: OverrideMap | None) -> dict[str, float]:
    """Copy of the override map with unusable entries dropped."""
    clean: dict[str, float] = {}
    for sku, value in (overrides or {}).items():
        price = parse_override(value)
        if price is not None:
            clean[str(sku)] = price
    return clean
