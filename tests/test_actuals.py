"""
Tests for observed campaign performance from the price log.
"""
from datetime import date

import pandas as pd
import pytest

from promo_engine.actuals import (
    optimal_price_from_history,
    price_logs_frame,
    summarize_event_actuals,
)


NOW = date(2024, 6, 4)


@pytest.fixture
def price_logs() -> list[dict]:
    return [
        # counted
        {"sku": "SKU-A", "date": "2024-06-01", "price": 20, "velocity": 48, "platform": "eBay",
         "margin": 25, "adsSpend": 60},
        {"sku": "SKU-B", "date": "2024-06-02T10:15:00Z", "price": 10, "velocity": 24, "platform": "eBay",
         "profit": 30, "margin": 90},
        # excluded: other platform, other SKU, before start, after "now"
        {"sku": "SKU-A", "date": "2024-06-02", "price": 20, "velocity": 100, "platform": "Amazon", "margin": 25},
        {"sku": "SKU-C", "date": "2024-06-02", "price": 5, "velocity": 9, "platform": "eBay", "margin": 10},
        {"sku": "SKU-A", "date": "2024-05-31", "price": 22, "velocity": 30, "platform": "eBay", "margin": 30},
        {"sku": "SKU-A", "date": "2024-06-05", "price": 20, "velocity": 10, "platform": "eBay", "margin": 25},
    ]


class TestPriceLogsFrame:
    """Tests for price_logs_frame()."""

    def test_row_metrics(self, price_logs):
        df = price_logs_frame(price_logs)
        assert df.loc[0, "revenue"] == 960
        assert df.loc[0, "row_profit"] == 240
        assert df.loc[1, "row_profit"] == 30
        assert df.loc[1, "day"] == date(2024, 6, 2)

    def test_from_dataframe_with_camel_case(self, price_logs):
        df = price_logs_frame(pd.DataFrame(price_logs))
        assert df.loc[0, "ads_spend"] == 60
        assert df.loc[2, "ads_spend"] == 0

    def test_malformed_cells_coerced(self):
        df = price_logs_frame([{"sku": "X", "date": "garbage", "price": "n/a", "velocity": None}])
        assert df.loc[0, "revenue"] == 0
        assert pd.isna(df.loc[0, "day"])


class TestSummarizeEventActuals:
    """Tests for summarize_event_actuals()."""

    def test_window_platform_and_skus(self, event, price_logs, products):
        perf = summarize_event_actuals(event, price_logs, products, now=NOW)
        assert perf.units_sold == 72
        assert perf.revenue == 1200
        assert perf.profit == 270
        assert perf.margin_pct == 22.5
        assert perf.tacos_pct == 5.0
        assert perf.days_observed == 4

    def test_uplift_against_baseline_velocity(self, event, price_logs, products):
        """72 units over 4 days = 18/day against a 15/day baseline."""
        perf = summarize_event_actuals(event, price_logs, products, now=NOW)
        assert perf.uplift_percentage == pytest.approx(20.0)

    def test_timestamps_bucketed_by_business_day(self, event, products):
        """22:00 UTC on 31 May is 1 June in Melbourne, inside the window."""
        logs = [
            {"sku": "SKU-A", "date": "2024-05-31T22:00:00Z", "price": 20, "velocity": 5, "platform": "eBay"},
            {"sku": "SKU-A", "date": "2024-06-04T15:00:00Z", "price": 20, "velocity": 7, "platform": "eBay"},
        ]
        perf = summarize_event_actuals(event, logs, products, now=NOW)
        assert perf.units_sold == 5

        df = price_logs_frame(logs, timezone="UTC")
        assert list(df["day"]) == [date(2024, 5, 31), date(2024, 6, 4)]

    def test_all_platform_event_counts_every_platform(self, event, price_logs, products):
        from dataclasses import replace
        perf = summarize_event_actuals(replace(event, platform="All"), price_logs, products, now=NOW)
        assert perf.units_sold == 172

    def test_upcoming_event_has_nothing_observed(self, event, price_logs, products):
        perf = summarize_event_actuals(event, price_logs, products, now=date(2024, 5, 20))
        assert perf.units_sold == 0
        assert perf.days_observed == 0
        assert perf.uplift_percentage == 0

    def test_no_logs(self, event, products):
        perf = summarize_event_actuals(event, [], products, now=NOW)
        assert perf.revenue == 0
        assert perf.margin_pct == 0
        assert perf.tacos_pct == 0


class TestOptimalPrice:
    """Tests for optimal_price_from_history()."""

    def test_best_daily_profit(self):
        logs = [
            {"sku": "A", "date": "2024-06-01", "price": 20, "velocity": 48, "margin": 25},   # 240
            {"sku": "A", "date": "2024-06-02", "price": 22, "velocity": 30, "margin": 30},   # 198
            {"sku": "B", "date": "2024-06-02", "price": 99, "velocity": 99, "margin": 99},
        ]
        assert optimal_price_from_history("A", logs) == 20

    def test_no_history(self):
        assert optimal_price_from_history("A", []) == 0.0

    def test_no_margin_data_falls_back_to_first_price(self):
        logs = [
            {"sku": "A", "date": "2024-06-01", "price": 14.5, "velocity": 3},
            {"sku": "A", "date": "2024-06-02", "price": 16.0, "velocity": 5},
        ]
        assert optimal_price_from_history("A", logs) == 14.5
