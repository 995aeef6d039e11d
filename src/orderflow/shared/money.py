"""Money and Quantity value objects.

Amounts are persisted as floats (protean has no decimal field) but every
calculation goes through ``Decimal`` at a fixed two-place scale with
half-up rounding, applied the moment a Money is built.
"""

from decimal import ROUND_HALF_UP, Decimal

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Float, Integer, String

from orderflow.domain import orderflow

CENT = Decimal("0.01")
HUNDRED = Decimal("100")

VALID_CURRENCIES = frozenset(
    {
        "USD",
        "EUR",
        "GBP",
        "INR",
        "JPY",
        "CAD",
        "AUD",
        "CHF",
    }
)


def to_decimal(value) -> Decimal:
    """Quantize ``value`` to two places, rounding half-up."""
    if not isinstance(value, Decimal):
        # str() keeps floats from dragging their binary expansion along
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def percent_factor(percent) -> Decimal:
    return Decimal(str(percent)) / HUNDRED


@orderflow.value_object
class Money:
    """Currency-tagged, non-negative amount with two decimal places."""

    amount: Float(required=True, min_value=0.0)
    currency: String(max_length=3, default="USD")

    @invariant.post
    def currency_must_be_supported(self):
        if self.currency not in VALID_CURRENCIES:
            raise ValidationError({"currency": [f"Unsupported currency: {self.currency}"]})

    @invariant.post
    def amount_must_have_two_decimal_places(self):
        if Decimal(str(self.amount)) != to_decimal(self.amount):
            raise ValidationError({"amount": [f"Amount {self.amount} has more than two decimal places"]})

    @classmethod
    def of(cls, amount, currency="USD"):
        value = to_decimal(amount)
        if value < 0:
            raise ValidationError({"amount": [f"Amount cannot be negative: {value}"]})
        return cls(amount=float(value), currency=(currency or "USD").upper())

    @classmethod
    def zero(cls, currency="USD"):
        return cls.of(0, currency)

    @property
    def decimal(self) -> Decimal:
        return to_decimal(self.amount)

    def _check_currency(self, other):
        if self.currency != other.currency:
            raise ValidationError(
                {"currency": [f"Cannot operate on different currencies: {self.currency} and {other.currency}"]}
            )

    def add(self, other):
        self._check_currency(other)
        return Money.of(self.decimal + other.decimal, self.currency)

    def subtract(self, other):
        self._check_currency(other)
        result = self.decimal - other.decimal
        if result < 0:
            raise ValidationError({"amount": [f"Subtraction result cannot be negative: {self} - {other}"]})
        return Money.of(result, self.currency)

    def times(self, quantity):
        if quantity < 0:
            raise ValidationError({"quantity": ["Quantity cannot be negative"]})
        return Money.of(self.decimal * quantity, self.currency)

    def percent(self, percent):
        """``amount × (percent / 100)``, rounded half-up."""
        if percent < 0:
            raise ValidationError({"percent": ["Percentage cannot be negative"]})
        return Money.of(self.decimal * percent_factor(percent), self.currency)

    def at_least(self, other) -> bool:
        self._check_currency(other)
        return self.decimal >= other.decimal

    def is_zero(self) -> bool:
        return self.decimal == 0

    def __str__(self):
        return f"{self.currency} {self.decimal}"


@orderflow.value_object
class Quantity:
    """Non-negative whole number of units."""

    value: Integer(required=True, min_value=0)

    @classmethod
    def of(cls, value):
        if value is None or value < 0:
            raise ValidationError({"quantity": [f"Quantity cannot be negative: {value}"]})
        return cls(value=int(value))

    @classmethod
    def zero(cls):
        return cls(value=0)

    def add(self, other):
        return Quantity.of(self.value + other.value)

    def subtract(self, other):
        if other.value > self.value:
            raise ValidationError({"quantity": [f"Cannot subtract {other.value} from {self.value}"]})
        return Quantity.of(self.value - other.value)

    def __str__(self):
        return str(self.value)
