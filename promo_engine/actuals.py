"""
promo_engine/actuals.py
-----------------------
Compares a campaign's projection with what the sales/price log actually
recorded.

Row metrics (one price-log row)
-------------------------------
    revenue  = price × velocity
    units    = velocity
    profit   = explicit `profit` when present, else revenue × margin / 100
    ad spend = ads_spend (ad-only rows with price 0 are valid)

Event performance
-----------------
Only rows for the event's SKUs (and the event platform, unless "All") whose
calendar day falls inside start_date..min(end_date, today) are counted.

    margin_pct        = profit / revenue × 100
    tacos_pct         = ad spend / revenue × 100
    uplift_percentage = (units per observed day / baseline units per day − 1) × 100
                        baseline = Σ average_daily_sales of the event's products

Optimal price
-------------
optimal_price_from_history() picks the logged price that produced the
highest daily profit (price × margin/100 × velocity).

Public API
----------
    price_logs_frame(logs, timezone)                         -> pd.DataFrame
    summarize_event_actuals(event, logs, products, now)      -> EventPerformance
    optimal_price_from_history(sku, logs)                    -> float
"""

from __future__ import annotations

from datetime import date
from typing import Any, Iterable, Mapping

import numpy as np
import pandas as pd

from promo_engine.models import ALL_PLATFORMS, EventPerformance, PriceLog, Product, PromotionEvent
from promo_engine.numeric import safe_div
from promo_engine.status import DateLike, business_date, parse_date_key

LOG_COLUMNS: list[str] = [
    "sku", "date", "price", "velocity", "platform", "profit", "margin", "ads_spend",
]

_CAMEL_TO_SNAKE: dict[str, str] = {"adsSpend": "ads_spend"}


# ─────────────────────────────────────────────────────────────────────────────
# Normalisation
# ─────────────────────────────────────────────────────────────────────────────

def price_logs_frame(
    logs:     pd.DataFrame | Iterable[PriceLog | Mapping[str, Any]],
    timezone: str | None = None,
) -> pd.DataFrame:
    """
    Normalise a price-log stream into a DataFrame with LOG_COLUMNS plus:
        day       : business-timezone calendar date of `date` (None when unparseable)
        revenue   : price × velocity
        row_profit: explicit profit, else revenue × margin / 100
    """
    if isinstance(logs, pd.DataFrame):
        df = logs.rename(columns=_CAMEL_TO_SNAKE).copy()
    else:
        records = [
            vars(log) if isinstance(log, PriceLog) else vars(PriceLog.from_record(log))
            for log in logs
        ]
        df = pd.DataFrame.from_records(records, columns=LOG_COLUMNS)

    for col in LOG_COLUMNS:
        if col not in df.columns:
            df[col] = np.nan

    df["sku"]       = df["sku"].astype(str).str.strip()
    df["price"]     = pd.to_numeric(df["price"],     errors="coerce").fillna(0.0)
    df["velocity"]  = pd.to_numeric(df["velocity"],  errors="coerce").fillna(0.0)
    df["profit"]    = pd.to_numeric(df["profit"],    errors="coerce")
    df["margin"]    = pd.to_numeric(df["margin"],    errors="coerce")
    df["ads_spend"] = pd.to_numeric(df["ads_spend"], errors="coerce").fillna(0.0)

    df["day"]        = df["date"].map(lambda v: parse_date_key(v, timezone))
    df["revenue"]    = df["price"] * df["velocity"]
    df["row_profit"] = df["profit"].where(
        df["profit"].notna(),
        df["revenue"] * df["margin"].fillna(0.0) / 100.0,
    )
    return df


# ─────────────────────────────────────────────────────────────────────────────
# Event performance
# ─────────────────────────────────────────────────────────────────────────────

def _observed_window(
    event:    PromotionEvent,
    today:    date,
    timezone: str | None,
) -> tuple[date | None, date | None]:
    start = parse_date_key(event.start_date, timezone)
    end   = parse_date_key(event.end_date, timezone)
    end   = today if end is None else min(end, today)
    return start, end


def summarize_event_actuals(
    event:    PromotionEvent,
    logs:     pd.DataFrame | Iterable[PriceLog | Mapping[str, Any]],
    products: Iterable[Product],
    now:      DateLike = None,
    timezone: str | None = None,
) -> EventPerformance:
    """Observed performance of an event so far, versus its products' baseline velocity."""
    df    = price_logs_frame(logs, timezone)
    skus  = {i.sku for i in event.items}
    today = business_date(now, timezone)
    start, end = _observed_window(event, today, timezone)

    mask = df["sku"].isin(skus) & df["day"].notna()
    if event.platform and event.platform != ALL_PLATFORMS:
        mask &= df["platform"] == event.platform
    if start is not None:
        mask &= df["day"].map(lambda d: isinstance(d, date) and d >= start)
    mask &= df["day"].map(lambda d: isinstance(d, date) and d <= end)
    window = df[mask.astype(bool)]

    units   = float(window["velocity"].sum())
    revenue = float(window["revenue"].sum())
    profit  = float(window["row_profit"].sum())
    ads     = float(window["ads_spend"].sum())

    if start is not None:
        days_observed = max(0, (end - start).days + 1)
    else:
        days_observed = int(window["day"].nunique())

    baseline_daily = sum(p.average_daily_sales for p in products if p.sku in skus)
    observed_daily = safe_div(units, days_observed)
    uplift = (safe_div(observed_daily, baseline_daily) - 1.0) * 100.0 if baseline_daily > 0 and days_observed else 0.0

    return EventPerformance(
        units_sold        = round(units, 2),
        revenue           = round(revenue, 2),
        profit            = round(profit, 2),
        margin_pct        = round(safe_div(profit, revenue) * 100.0, 1),
        tacos_pct         = round(safe_div(ads, revenue) * 100.0, 1),
        uplift_percentage = round(uplift, 1),
        days_observed     = days_observed,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Optimal price
# ─────────────────────────────────────────────────────────────────────────────

def optimal_price_from_history(
    sku:  str,
    logs: pd.DataFrame | Iterable[PriceLog | Mapping[str, Any]],
) -> float:
    """
    Logged price with the best daily profit for sku.

    Falls back to the first logged price when no row yields a positive
    price, and to 0.0 when the SKU has no history.
    """
    df = price_logs_frame(logs)
    rows = df[df["sku"] == str(sku)]
    if rows.empty:
        return 0.0

    daily_profit = rows["price"] * (rows["margin"].fillna(0.0) / 100.0) * rows["velocity"]
    best_price = float(rows.loc[daily_profit.idxmax(), "price"])
    return best_price if best_price > 0 else float(rows["price"].iloc[0])
