"""Fee and commission arithmetic.

Every amount is a ``Decimal`` rounded half-up to cents. Binary floats are
converted through ``str`` so ``0.1`` stays ``Decimal("0.1")``. Functions accept
either a plain amount or a :class:`Money` and hand back the same kind.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from functools import total_ordering

from app.errors import AppError, CurrencyMismatch, InvalidAmount

CENTS = Decimal("0.01")
REPAIR_COMMISSION_RATE = Decimal("0.075")
DELIVERY_COMMISSION_RATE = Decimal("0.05")


def to_decimal(value):
    if isinstance(value, Decimal):
        number = value
    else:
        if value is None or isinstance(value, bool):
            raise InvalidAmount(f"Invalid amount: {value!r}.")
        try:
            number = Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as exc:
            raise InvalidAmount(f"Invalid amount: {value!r}.") from exc
    if not number.is_finite():
        raise InvalidAmount(f"Invalid amount: {value!r}.")
    return number


def round_money(value):
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


@total_ordering
@dataclass(frozen=True)
class Money:
    amount: Decimal
    currency: str

    def __post_init__(self):
        code = (self.currency or "").strip().upper()
        if len(code) != 3 or not code.isalpha():
            raise AppError(f"Invalid currency code: {self.currency!r}.", 400)
        object.__setattr__(self, "amount", to_decimal(self.amount))
        object.__setattr__(self, "currency", code)

    @classmethod
    def zero(cls, currency):
        return cls(Decimal("0.00"), currency)

    def _require_same_currency(self, other):
        if not isinstance(other, Money):
            raise TypeError(f"Cannot combine Money with {type(other).__name__}.")
        if other.currency != self.currency:
            raise CurrencyMismatch(f"Cannot combine {self.currency} with {other.currency}.")

    def __add__(self, other):
        self._require_same_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other):
        self._require_same_currency(other)
        return Money(self.amount - other.amount, self.currency)

    def __lt__(self, other):
        self._require_same_currency(other)
        return self.amount < other.amount

    def scaled(self, rate):
        return Money(self.amount * to_decimal(rate), self.currency)

    def rounded(self):
        return Money(round_money(self.amount), self.currency)

    def __str__(self):
        return f"{self.currency} {round_money(self.amount):.2f}"


def _amount_of(value):
    return value.amount if isinstance(value, Money) else to_decimal(value)


def _like(template, amount):
    if isinstance(template, Money):
        return Money(amount, template.currency)
    return amount


def _non_negative(value):
    amount = _amount_of(value)
    if amount < 0:
        raise InvalidAmount("Amount cannot be negative.")
    return amount


def _valid_rate(rate):
    rate = to_decimal(rate)
    if rate < 0 or rate > 1:
        raise InvalidAmount(f"Commission rate must be between 0 and 1, got {rate}.")
    return rate


def commission(gross, rate=REPAIR_COMMISSION_RATE):
    return _like(gross, round_money(_non_negative(gross) * _valid_rate(rate)))


def service_fee(amount):
    return commission(amount, REPAIR_COMMISSION_RATE)


def delivery_commission(delivery_cost):
    return commission(delivery_cost, DELIVERY_COMMISSION_RATE)


def customer_total(repair_amount):
    amount = round_money(_non_negative(repair_amount))
    return _like(repair_amount, amount + _amount_of(service_fee(repair_amount)))


def net_payout(gross, commission_rate=REPAIR_COMMISSION_RATE):
    amount = round_money(_non_negative(gross))
    return _like(gross, amount - _amount_of(commission(gross, commission_rate)))


def split_payout(gross, commission_rate=REPAIR_COMMISSION_RATE):
    """Return ``(gross, commission, net)`` rounded to cents, with ``net = gross - commission``."""
    return (
        _like(gross, round_money(_non_negative(gross))),
        commission(gross, commission_rate),
        net_payout(gross, commission_rate),
    )
