"""Pricing engine — item and order monetary breakdown.

Every order mutation reprices the whole order from its items and the
current business-rule parameters. Amounts are carried as Money and unit
counts as Quantity. Each intermediate amount is rounded half-up to two
places when it is produced, and the value objects refuse negatives and
mixed currencies. Percentages are applied as
``amount × (percent / 100)`` and then rounded. The breakdowns hand back
plain Decimals for storage.

Item-level discount and tax are informative snapshots stored on the line.
The order-level figures are an independent second pass over the subtotal
and are the ones that add up to the final amount.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from orderflow.configuration import defaults as keys
from orderflow.configuration.defaults import default_for
from orderflow.shared.money import Money, Quantity, to_decimal

ZERO = Decimal("0.00")


class CustomerType(Enum):
    RETAIL = "RETAIL"
    WHOLESALE = "WHOLESALE"
    VIP = "VIP"
    CORPORATE = "CORPORATE"


@dataclass(frozen=True)
class PricingRules:
    """Snapshot of the parameters one repricing run uses."""

    vip_percent: Decimal
    wholesale_percent: Decimal
    corporate_percent: Decimal
    bulk_threshold: int
    bulk_percent: Decimal
    tax_rate_percent: Decimal
    free_shipping_threshold: Decimal
    standard_shipping: Decimal
    express_shipping: Decimal
    loyalty_points_per_unit: int = 1

    @classmethod
    def load(cls, lookup) -> "PricingRules":
        """Read every pricing parameter through ``lookup``, falling back to defaults."""

        def number(key):
            return Decimal(str(lookup.get_float(key, default_for(key))))

        def integer(key):
            return int(lookup.get_integer(key, default_for(key)))

        return cls(
            vip_percent=number(keys.DISCOUNT_VIP_PERCENT),
            wholesale_percent=number(keys.DISCOUNT_WHOLESALE_PERCENT),
            corporate_percent=number(keys.DISCOUNT_CORPORATE_PERCENT),
            bulk_threshold=integer(keys.BULK_DISCOUNT_THRESHOLD),
            bulk_percent=number(keys.BULK_DISCOUNT_PERCENT),
            tax_rate_percent=number(keys.TAX_RATE_PERCENT),
            free_shipping_threshold=to_decimal(number(keys.SHIPPING_FREE_THRESHOLD)),
            standard_shipping=to_decimal(number(keys.SHIPPING_STANDARD_COST)),
            express_shipping=to_decimal(number(keys.SHIPPING_EXPRESS_COST)),
            loyalty_points_per_unit=integer(keys.LOYALTY_POINTS_PER_DOLLAR),
        )

    @classmethod
    def defaults(cls) -> "PricingRules":
        return cls.load(_DefaultsOnly())

    def class_percent(self, customer_type) -> Decimal:
        kind = CustomerType(customer_type or CustomerType.RETAIL.value)
        if kind == CustomerType.VIP:
            return self.vip_percent
        if kind == CustomerType.WHOLESALE:
            return self.wholesale_percent
        if kind == CustomerType.CORPORATE:
            return self.corporate_percent
        return Decimal("0")


class _DefaultsOnly:
    """Lookup stand-in that always answers with the caller's default."""

    def get_float(self, key, default=None):
        return default

    def get_integer(self, key, default=None):
        return default


@dataclass(frozen=True)
class ItemPrice:
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    final_amount: Decimal


@dataclass(frozen=True)
class OrderPrice:
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    shipping: Decimal
    final_amount: Decimal
    total_quantity: int

    @property
    def discounted_subtotal(self) -> Decimal:
        return self.subtotal - self.discount


class PricingEngine:
    def __init__(self, rules: PricingRules):
        self.rules = rules

    def price_item(self, unit_price, quantity: int, customer_type, currency="USD") -> ItemPrice:
        subtotal = Money.of(unit_price, currency).times(Quantity.of(quantity).value)
        discount = subtotal.percent(self.rules.class_percent(customer_type))
        after_discount = subtotal.subtract(discount)
        tax = after_discount.percent(self.rules.tax_rate_percent)
        return ItemPrice(
            subtotal=subtotal.decimal,
            discount=discount.decimal,
            tax=tax.decimal,
            final_amount=after_discount.add(tax).decimal,
        )

    def price_order(self, lines, customer_type, is_priority: bool = False, currency="USD") -> OrderPrice:
        """Price an order from ``(unit_price, quantity)`` pairs.

        An order with no lines prices to zero everywhere, shipping included.
        """
        lines = list(lines)
        if not lines:
            return OrderPrice(ZERO, ZERO, ZERO, ZERO, ZERO, 0)

        subtotal = Money.zero(currency)
        total_quantity = Quantity.zero()
        for unit_price, qty in lines:
            quantity = Quantity.of(qty)
            subtotal = subtotal.add(Money.of(unit_price, currency).times(quantity.value))
            total_quantity = total_quantity.add(quantity)

        discount = subtotal.percent(self.rules.class_percent(customer_type))
        if total_quantity.value >= self.rules.bulk_threshold:
            discount = discount.add(subtotal.percent(self.rules.bulk_percent))
        if not subtotal.at_least(discount):
            discount = subtotal

        discounted = subtotal.subtract(discount)
        tax = discounted.percent(self.rules.tax_rate_percent)
        shipping = self._shipping(discounted, is_priority)

        return OrderPrice(
            subtotal=subtotal.decimal,
            discount=discount.decimal,
            tax=tax.decimal,
            shipping=shipping.decimal,
            final_amount=discounted.add(tax).add(shipping).decimal,
            total_quantity=total_quantity.value,
        )

    def _shipping(self, discounted: Money, is_priority: bool) -> Money:
        if discounted.at_least(Money.of(self.rules.free_shipping_threshold, discounted.currency)):
            return Money.zero(discounted.currency)
        if is_priority:
            return Money.of(self.rules.express_shipping, discounted.currency)
        return Money.of(self.rules.standard_shipping, discounted.currency)

    def shipping_for(self, discounted_subtotal, is_priority: bool, currency="USD") -> Decimal:
        return self._shipping(Money.of(discounted_subtotal, currency), is_priority).decimal

    def loyalty_points(self, final_amount) -> int:
        """Whole currency units of ``final_amount`` times the per-unit rate."""
        return int(to_decimal(final_amount)) * self.rules.loyalty_points_per_unit
