"""
Test configuration and fixtures.
"""
import pytest

from promo_engine.models import (
    ChannelPrice,
    LogisticsRule,
    PlatformConfig,
    Product,
    PromotionEvent,
    PromotionItem,
)


SETTINGS_ENV_VARS = (
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "PROMO_VAT_RATE",
    "PROMO_DEFAULT_COMMISSION_PCT",
    "PROMO_TIMEZONE",
)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Run every test without ambient settings or a stray .env file."""
    for key in SETTINGS_ENV_VARS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def products() -> list[Product]:
    """Small catalog covering ca_price, channel prices and a loss-maker."""
    return [
        Product(
            sku="SKU-A",
            name="Bamboo Board Large",
            current_price=23.99,
            cost_price=8.0,
            average_daily_sales=10,
            weight=0.8,
            postage=4.99,
            channels=(
                ChannelPrice(platform="eBay", price=25.0, sku_alias="BOARD_L_1"),
                ChannelPrice(platform="Amazon", price=None, sku_alias="AMZ-BOARD-L"),
            ),
        ),
        Product(
            sku="SKU-B",
            name="Chef Knife 8in",
            current_price=10.0,
            ca_price=12.0,
            cost_price=3.0,
            wms_fee=0.5,
            average_daily_sales=5,
            weight=1.5,
            postage=3.0,
        ),
        Product(
            sku="SKU-C",
            name="Gardening Gloves M",
            current_price=5.0,
            cost_price=6.0,
            average_daily_sales=0,
            weight=0.2,
        ),
    ]


@pytest.fixture
def pricing_rules() -> dict[str, PlatformConfig]:
    return {
        "Amazon": PlatformConfig(commission=15.0, color="#FF9900"),
        "eBay":   PlatformConfig(commission=12.0),
    }


@pytest.fixture
def logistics_rules() -> list[LogisticsRule]:
    return [
        LogisticsRule(id="a", price=5.0, max_weight=2.0),
        LogisticsRule(id="b", price=3.0, max_weight=1.0),
        LogisticsRule(id="pickup", price=0.0),
        LogisticsRule(id="r1", name="YODEL-48-MED-UK-Z", price=9.0, max_weight=5.0),
        LogisticsRule(id="r2", name="YODEL-48-MED-NI", price=7.5, max_weight=5.0),
    ]


@pytest.fixture
def event() -> PromotionEvent:
    return PromotionEvent(
        id="evt-1",
        name="Summer Sale",
        platform="eBay",
        start_date="2024-06-01",
        end_date="2024-06-10",
        status="UPCOMING",
        items=(
            PromotionItem(sku="SKU-A", base_price=25.0, promo_price=21.95,
                          discount_type="PERCENTAGE", discount_value=10.0),
            PromotionItem(sku="SKU-B", base_price=12.0, promo_price=9.95,
                          discount_type="FIXED", discount_value=2.0),
        ),
    )
