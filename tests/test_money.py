from decimal import Decimal

import pytest

from app.errors import AppError, CurrencyMismatch, InvalidAmount
from app.services.money import (
    DELIVERY_COMMISSION_RATE,
    Money,
    commission,
    customer_total,
    delivery_commission,
    net_payout,
    round_money,
    service_fee,
    split_payout,
)


class TestRounding:
    def test_half_up_to_cents(self):
        assert round_money("2.345") == Decimal("2.35")
        assert round_money("2.344") == Decimal("2.34")

    def test_float_goes_through_its_decimal_repr(self):
        assert round_money(0.1) == Decimal("0.10")
        assert round_money(1.005) == Decimal("1.01")

    @pytest.mark.parametrize("raw", [None, True, "abc", "NaN", "Infinity", ""])
    def test_rejects_non_amounts(self, raw):
        with pytest.raises(InvalidAmount):
            round_money(raw)


class TestFees:
    def test_service_fee_is_seven_and_a_half_percent(self):
        assert service_fee(Decimal("10000")) == Decimal("750.00")

    def test_customer_total(self):
        assert customer_total(Decimal("10000")) == Decimal("10750.00")

    def test_fee_rounds_half_up(self):
        # 5405.41 * 0.075 = 405.40575
        assert service_fee("5405.41") == Decimal("405.41")

    def test_delivery_commission(self):
        assert DELIVERY_COMMISSION_RATE == Decimal("0.05")
        assert delivery_commission("1500") == Decimal("75.00")

    def test_net_payout_subtracts_rounded_commission(self):
        assert net_payout("5405.41") == Decimal("5000.00")

    def test_split_payout_sums_to_gross(self):
        gross, fee, net = split_payout("1234.57")
        assert gross == Decimal("1234.57")
        assert fee + net == gross

    def test_zero_is_allowed(self):
        assert split_payout("0") == (Decimal("0.00"), Decimal("0.00"), Decimal("0.00"))

    def test_negative_amount_rejected(self):
        with pytest.raises(InvalidAmount):
            service_fee("-1")
        with pytest.raises(InvalidAmount):
            net_payout(Decimal("-0.01"))

    @pytest.mark.parametrize("rate", ["-0.1", "1.5"])
    def test_rate_outside_unit_interval_rejected(self, rate):
        with pytest.raises(InvalidAmount):
            commission("100", rate)


class TestMoney:
    def test_currency_is_normalised(self):
        assert Money("10", "ngn").currency == "NGN"

    def test_invalid_currency_code(self):
        with pytest.raises(AppError):
            Money("10", "NAIRA")

    def test_fee_functions_keep_money_type(self):
        fee = service_fee(Money("10000", "NGN"))
        assert fee == Money(Decimal("750.00"), "NGN")
        assert str(customer_total(Money("10000", "NGN"))) == "NGN 10750.00"

    def test_arithmetic_requires_same_currency(self):
        with pytest.raises(CurrencyMismatch):
            Money("1", "NGN") + Money("1", "USD")
        with pytest.raises(CurrencyMismatch):
            Money("1", "NGN") < Money("2", "USD")

    def test_ordering(self):
        assert Money("4999.99", "NGN") < Money("5000", "NGN")
        assert Money("5000.00", "NGN") >= Money("5000", "NGN")

    def test_combining_with_plain_number_is_a_type_error(self):
        with pytest.raises(TypeError):
            Money("1", "NGN") + Decimal("1")
