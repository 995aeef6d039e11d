"""Where the transition executor learns how much an order has been paid.

Payment collection lives outside orderflow. The executor only asks the
active ledger for the successful payments recorded against an order before
it lets an order through an edge that requires payment. Deployments install
their ledger with ``set_payment_ledger`` at startup; until then an empty
in-memory ledger answers, so every payment-guarded edge is refused.
"""

from orderflow.payment.fake_adapter import FakePaymentLedger
from orderflow.payment.port import PaymentLedger

_ledger: PaymentLedger | None = None


def get_payment_ledger() -> PaymentLedger:
    global _ledger
    if _ledger is None:
        _ledger = FakePaymentLedger()
    return _ledger


def set_payment_ledger(ledger: PaymentLedger) -> None:
    global _ledger
    _ledger = ledger


def reset_payment_ledger() -> None:
    """Forget the installed ledger; the next lookup starts an empty one."""
    global _ledger
    _ledger = None
