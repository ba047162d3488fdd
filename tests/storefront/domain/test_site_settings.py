"""Domain tests for site settings defaults and the online payment ceiling."""

import pytest
from storefront.settings.site_settings import (
    GATEWAY_ORDER_AMOUNT_HARD_LIMIT,
    SiteSettings,
    clamp_online_payment_limit,
)


class TestOnlinePaymentLimit:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (250000, 250000.0),
            (900000, GATEWAY_ORDER_AMOUNT_HARD_LIMIT),
            (0, 100000.0),
            (-5, 100000.0),
            ("not a number", 100000.0),
            (None, 100000.0),
        ],
    )
    def test_clamp(self, raw, expected):
        assert clamp_online_payment_limit(raw) == expected


class TestSiteSettings:
    def test_defaults(self):
        settings = SiteSettings.default_settings()
        assert settings.id == "default"
        assert settings.free_shipping_threshold == 1499.0
        assert settings.flat_shipping_fee == 200.0
        assert settings.online_payment_limit == 100000.0

    def test_partial_update(self):
        settings = SiteSettings.default_settings()
        settings.update(flat_shipping_fee=99.0)
        assert settings.flat_shipping_fee == 99.0
        assert settings.free_shipping_threshold == 1499.0

    def test_update_clamps_payment_limit(self):
        settings = SiteSettings.default_settings()
        settings.update(max_online_payment_amount=1_000_000)
        assert settings.max_online_payment_amount == GATEWAY_ORDER_AMOUNT_HARD_LIMIT
