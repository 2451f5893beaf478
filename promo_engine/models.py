"""
promo_engine/models.py
----------------------
Typed records consumed and produced by the pricing & margin engine.

Inputs (read-only, supplied by collaborators)
---------------------------------------------
    Product          : catalog entry with cost stack, velocity and channels
    PlatformConfig   : one entry of the PricingRules mapping
    LogisticsRule    : one carrier rate-table row
    PriceLog         : one row of the historical sales / price stream

Campaign records
----------------
    PromotionEvent   : time-boxed campaign holding PromotionItems
    PromotionItem    : one SKU's promotional price inside an event
    DiscountRule     : bulk rule (PERCENTAGE or FIXED) applied to base prices

Engine outputs (not persisted)
------------------------------
    MarginBreakdown, CommissionLookup, CampaignProjection, EventPerformance

Every input record has a `from_record()` constructor accepting the camelCase
keys collaborators use (JSON / CSV origin) as well as snake_case keys.
Numeric fields are coerced through promo_engine.numeric, so a malformed cell never
raises; it falls back to the documented default.

No pandas imports. Pure Python.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping

from promo_engine.numeric import to_non_negative, to_number, to_optional_number


DiscountType = Literal["PERCENTAGE", "FIXED"]
EventStatus  = Literal["UPCOMING", "ACTIVE", "ENDED"]
Zone         = Literal["STANDARD", "REMOTE"]

DISCOUNT_TYPES: tuple[str, ...] = ("PERCENTAGE", "FIXED")
ALL_PLATFORMS: str = "All"


def _pick(record: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present, non-None value among keys."""
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    return default


def _text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    text = str(value).strip()
    return text or default


# ─────────────────────────────────────────────────────────────────────────────
# Catalog
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ChannelPrice:
    platform:  str
    price:     float | None = None   # gross per-platform price override
    sku_alias: str | None = None     # platform SKU(s), comma-separated (e.g. "SKU_1, SKU-1-EB")

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "ChannelPrice":
        price = to_optional_number(_pick(record, "price"))
        return cls(
            platform  = _text(_pick(record, "platform")),
            price     = price if price is not None and price > 0 else None,
            sku_alias = _text(_pick(record, "skuAlias", "sku_alias")) or None,
        )

    def aliases(self) -> tuple[str, ...]:
        """Individual platform SKUs listed in sku_alias."""
        if not self.sku_alias:
            return ()
        return tuple(part.strip() for part in self.sku_alias.split(",") if part.strip())


@dataclass(frozen=True)
class Product:
    sku:                 str
    name:                str = ""
    category:            str = ""
    subcategory:         str = ""
    current_price:       float = 0.0          # catalog default price
    ca_price:            float | None = None  # contractual price, wins when > 0
    cost_price:          float = 0.0
    wms_fee:             float = 0.0
    other_fee:           float = 0.0
    subscription_fee:    float = 0.0
    ads_fee:             float = 0.0
    average_daily_sales: float = 0.0
    stock_level:         float = 0.0
    optimal_price:       float | None = None  # advisory only
    floor_price:         float | None = None  # advisory only
    weight:              float = 0.0          # cartonDimensions.weight, kg
    postage:             float = 0.0          # flat fallback shipping cost
    channels:            tuple[ChannelPrice, ...] = ()

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Product":
        carton = _pick(record, "cartonDimensions", "carton_dimensions", default={}) or {}
        weight = _pick(record, "weight", default=carton.get("weight") if isinstance(carton, Mapping) else None)
        channels = tuple(
            c if isinstance(c, ChannelPrice) else ChannelPrice.from_record(c)
            for c in (_pick(record, "channels", default=()) or ())
        )
        return cls(
            sku                 = _text(_pick(record, "sku")),
            name                = _text(_pick(record, "name")),
            category            = _text(_pick(record, "category")),
            subcategory         = _text(_pick(record, "subcategory")),
            current_price       = to_non_negative(_pick(record, "currentPrice", "current_price")),
            ca_price            = to_optional_number(_pick(record, "caPrice", "ca_price")),
            cost_price          = to_non_negative(_pick(record, "costPrice", "cost_price")),
            wms_fee             = to_non_negative(_pick(record, "wmsFee", "wms_fee")),
            other_fee           = to_non_negative(_pick(record, "otherFee", "other_fee")),
            subscription_fee    = to_non_negative(_pick(record, "subscriptionFee", "subscription_fee")),
            ads_fee             = to_non_negative(_pick(record, "adsFee", "ads_fee")),
            average_daily_sales = to_non_negative(_pick(record, "averageDailySales", "average_daily_sales")),
            stock_level         = to_non_negative(_pick(record, "stockLevel", "stock_level")),
            optimal_price       = to_optional_number(_pick(record, "optimalPrice", "optimal_price")),
            floor_price         = to_optional_number(_pick(record, "floorPrice", "floor_price")),
            weight              = to_non_negative(weight),
            postage             = to_non_negative(_pick(record, "postage")),
            channels            = channels,
        )

    def channel_for(self, platform: str) -> ChannelPrice | None:
        """First channel entry for platform (channels are ordered)."""
        return next((c for c in self.channels if c.platform == platform), None)


# ─────────────────────────────────────────────────────────────────────────────
# Rule tables
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PlatformConfig:
    commission: float            # percent, [0, 100]
    color:      str | None = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any] | float | int) -> "PlatformConfig":
        if not isinstance(record, Mapping):
            return cls(commission=to_non_negative(record))
        return cls(
            commission = to_non_negative(_pick(record, "commission")),
            color      = _text(_pick(record, "color")) or None,
        )


PricingRules = Mapping[str, PlatformConfig]


def pricing_rules_from_records(records: Mapping[str, Any]) -> dict[str, PlatformConfig]:
    """Build a PricingRules mapping from {platform: {commission, color}} dicts."""
    return {
        str(platform): cfg if isinstance(cfg, PlatformConfig) else PlatformConfig.from_record(cfg)
        for platform, cfg in records.items()
    }


@dataclass(frozen=True)
class LogisticsRule:
    id:         str
    name:       str = ""
    carrier:    str = ""
    price:      float = 0.0
    max_weight: float | None = None   # kg; None = no weight cap

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "LogisticsRule":
        max_weight = to_optional_number(_pick(record, "maxWeight", "max_weight"))
        return cls(
            id         = _text(_pick(record, "id")),
            name       = _text(_pick(record, "name")),
            carrier    = _text(_pick(record, "carrier")),
            price      = to_number(_pick(record, "price")),
            max_weight = max_weight,
        )


# ─────────────────────────────────────────────────────────────────────────────
# Campaign records
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class DiscountRule:
    type:  DiscountType = "PERCENTAGE"
    value: float = 10.0

    @classmethod
    def from_record(cls, record: "DiscountRule | Mapping[str, Any]") -> "DiscountRule":
        if isinstance(record, DiscountRule):
            return record
        rule_type = _text(_pick(record, "type", "discountType", "discount_type"), "PERCENTAGE").upper()
        if rule_type not in DISCOUNT_TYPES:
            raise ValueError(f"Unknown discount type {rule_type!r}; expected one of {DISCOUNT_TYPES}")
        return cls(type=rule_type, value=to_non_negative(_pick(record, "value", "discountValue")))


@dataclass(frozen=True)
class PromotionItem:
    sku:            str
    base_price:     float           # gross reference price at time of addition
    promo_price:    float           # gross, always >= 0
    discount_type:  DiscountType = "PERCENTAGE"
    discount_value: float = 0.0

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "PromotionItem":
        discount_type = _text(_pick(record, "discountType", "discount_type"), "PERCENTAGE").upper()
        return cls(
            sku            = _text(_pick(record, "sku")),
            base_price     = to_non_negative(_pick(record, "basePrice", "base_price")),
            promo_price    = to_non_negative(_pick(record, "promoPrice", "promo_price")),
            discount_type  = discount_type if discount_type in DISCOUNT_TYPES else "FIXED",
            discount_value = to_non_negative(_pick(record, "discountValue", "discount_value")),
        )

    def to_record(self) -> dict:
        """camelCase dict for the persistence collaborator."""
        return {
            "sku":           self.sku,
            "basePrice":     self.base_price,
            "promoPrice":    self.promo_price,
            "discountType":  self.discount_type,
            "discountValue": self.discount_value,
        }


@dataclass(frozen=True)
class PromotionEvent:
    id:                  str
    name:                str
    platform:            str = ALL_PLATFORMS
    start_date:          str = ""            # "YYYY-MM-DD"
    end_date:            str = ""            # "YYYY-MM-DD"
    submission_deadline: str | None = None
    remark:              str | None = None
    status:              EventStatus = "UPCOMING"   # cache; see promo_engine.status
    items:               tuple[PromotionItem, ...] = ()

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "PromotionEvent":
        items = tuple(
            i if isinstance(i, PromotionItem) else PromotionItem.from_record(i)
            for i in (_pick(record, "items", default=()) or ())
        )
        return cls(
            id                  = _text(_pick(record, "id")),
            name                = _text(_pick(record, "name")),
            platform            = _text(_pick(record, "platform"), ALL_PLATFORMS),
            start_date          = _text(_pick(record, "startDate", "start_date")),
            end_date            = _text(_pick(record, "endDate", "end_date")),
            submission_deadline = _text(_pick(record, "submissionDeadline", "submission_deadline")) or None,
            remark              = _text(_pick(record, "remark")) or None,
            status              = _text(_pick(record, "status"), "UPCOMING").upper(),
            items               = items,
        )

    def to_record(self) -> dict:
        return {
            "id":                 self.id,
            "name":               self.name,
            "platform":           self.platform,
            "startDate":          self.start_date,
            "endDate":            self.end_date,
            "submissionDeadline": self.submission_deadline,
            "remark":             self.remark,
            "status":             self.status,
            "items":              [i.to_record() for i in self.items],
        }

    def item_for(self, sku: str) -> PromotionItem | None:
        return next((i for i in self.items if i.sku == sku), None)


@dataclass(frozen=True)
class PriceLog:
    sku:       str
    date:      str
    price:     float = 0.0
    velocity:  float = 0.0            # units per day at this price
    platform:  str | None = None
    profit:    float | None = None    # explicit absolute profit wins over margin
    margin:    float | None = None    # net % at this price
    ads_spend: float | None = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "PriceLog":
        return cls(
            sku       = _text(_pick(record, "sku")),
            date      = _text(_pick(record, "date")),
            price     = to_number(_pick(record, "price")),
            velocity  = to_number(_pick(record, "velocity")),
            platform  = _text(_pick(record, "platform")) or None,
            profit    = to_optional_number(_pick(record, "profit")),
            margin    = to_optional_number(_pick(record, "margin")),
            ads_spend = to_optional_number(_pick(record, "adsSpend", "ads_spend")),
        )


# ─────────────────────────────────────────────────────────────────────────────
# Engine outputs
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CommissionLookup:
    rate:       float   # percent
    from_rules: bool    # False => the documented fallback was used


@dataclass(frozen=True)
class MarginBreakdown:
    net_revenue:      float   # gross / VAT multiplier
    commission_rate:  float   # percent
    commission_cost:  float   # charged on the gross price
    standard_postage: float
    other_costs:      float   # canonical fixed cost stack
    net_profit:       float
    margin_pct:       float   # -100 sentinel when net_revenue <= 0


@dataclass(frozen=True)
class CampaignProjection:
    daily_profit_base:   float
    daily_profit_promo:  float
    profit_gap:          float
    breakeven_lift_pct:  float
    breakeven_reachable: bool
    matched_items:       int = 0
    unmatched_skus:      tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class EventPerformance:
    units_sold:        float
    revenue:           float
    profit:            float
    margin_pct:        float
    tacos_pct:         float
    uplift_percentage: float
    days_observed:     int
