"""In-memory payment ledger for development and testing."""

from decimal import Decimal

from protean.exceptions import ValidationError

from orderflow.payment.port import PaymentLedger
from orderflow.shared.money import Money


class FakePaymentLedger(PaymentLedger):
    """Records payments in memory and sums the successful ones."""

    def __init__(self) -> None:
        self.payments: list[dict] = []
        self.calls: list[dict] = []

    def record_payment(self, order_id, amount, currency: str = "USD", successful: bool = True) -> None:
        self.payments.append(
            {
                "order_id": str(order_id),
                "amount": Decimal(str(amount)),
                "currency": currency.upper(),
                "successful": successful,
            }
        )

    def successful_total(self, order_id: str, currency: str):
        self.calls.append({"method": "successful_total", "order_id": str(order_id), "currency": currency})

        paid = [p for p in self.payments if p["order_id"] == str(order_id) and p["successful"]]
        if not paid:
            return Money.zero(currency)

        currencies = {p["currency"] for p in paid}
        if len(currencies) > 1:
            raise ValidationError({"currency": [f"Payments recorded in mixed currencies: {sorted(currencies)}"]})

        return Money.of(sum(p["amount"] for p in paid), currencies.pop())
