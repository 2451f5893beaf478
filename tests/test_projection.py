"""
Tests for the campaign-level daily profit projection.
"""
import pytest

from promo_engine.models import Product, PromotionItem
from promo_engine.projection import merge_projections, project_campaign, projection_as_dict


def _item(sku, base, promo):
    return PromotionItem(sku=sku, base_price=base, promo_price=promo)


class TestProjectCampaign:
    """Tests for project_campaign()."""

    def test_breakeven_doubling(self):
        """500/day baseline vs 250/day promo needs +100% volume."""
        products = [Product(sku="P", average_daily_sales=1)]
        proj = project_campaign([_item("P", 500, 250)], products, vat_rate=1.0)
        assert proj.daily_profit_base == pytest.approx(500)
        assert proj.daily_profit_promo == pytest.approx(250)
        assert proj.profit_gap == pytest.approx(250)
        assert proj.breakeven_lift_pct == pytest.approx(100)
        assert proj.breakeven_reachable is True

    def test_velocity_weighted_sum(self, event, products):
        proj = project_campaign(event.items, products, vat_rate=1.20)
        # SKU-A: (25/1.2 - 8) * 10, SKU-B: (12/1.2 - 3.5) * 5
        assert proj.daily_profit_base == pytest.approx((25 / 1.2 - 8) * 10 + (12 / 1.2 - 3.5) * 5)
        assert proj.daily_profit_promo == pytest.approx((21.95 / 1.2 - 8) * 10 + (9.95 / 1.2 - 3.5) * 5)
        assert proj.matched_items == 2
        assert proj.unmatched_skus == ()

    def test_unreachable_breakeven(self):
        """Promo below cost: no lift can recover, reported as 0 and not reachable."""
        products = [Product(sku="P", cost_price=10, average_daily_sales=4)]
        proj = project_campaign([_item("P", 24, 9)], products, vat_rate=1.0)
        assert proj.daily_profit_promo < 0
        assert proj.breakeven_lift_pct == 0
        assert proj.breakeven_reachable is False

    def test_unmatched_items_skipped(self, products):
        items = [_item("SKU-A", 25, 21.95), _item("GHOST", 10, 5)]
        proj = project_campaign(items, products)
        assert proj.matched_items == 1
        assert proj.unmatched_skus == ("GHOST",)

    def test_empty_campaign(self, products):
        proj = project_campaign([], products)
        assert proj.daily_profit_base == 0
        assert proj.breakeven_lift_pct == 0
        assert proj.breakeven_reachable is False

    def test_zero_velocity_contributes_nothing(self, products):
        proj = project_campaign([_item("SKU-C", 5, 4.95)], products)
        assert proj.daily_profit_base == 0
        assert proj.daily_profit_promo == 0


class TestMergeProjections:
    """Tests for merge_projections()."""

    def test_merge_equals_whole(self, event, products):
        whole = project_campaign(event.items, products)
        parts = [project_campaign([item], products) for item in event.items]
        merged = merge_projections(reversed(parts))
        assert merged.daily_profit_base == pytest.approx(whole.daily_profit_base)
        assert merged.daily_profit_promo == pytest.approx(whole.daily_profit_promo)
        assert merged.breakeven_lift_pct == pytest.approx(whole.breakeven_lift_pct)
        assert merged.matched_items == whole.matched_items

    def test_as_dict(self):
        products = [Product(sku="P", average_daily_sales=1)]
        d = projection_as_dict(project_campaign([_item("P", 500, 250)], products, vat_rate=1.0))
        assert d["breakeven_lift_pct"] == 100.0
        assert d["unmatched_skus"] == []
