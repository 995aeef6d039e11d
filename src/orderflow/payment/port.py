"""Payment ledger port (abstract interface).

The order workflow never talks to a payment gateway. It only needs to know
how much has been successfully paid against an order, so the collaborator
is reduced to that one question.
"""

from abc import ABC, abstractmethod


class PaymentLedger(ABC):
    """Abstract source of payment totals."""

    @abstractmethod
    def successful_total(self, order_id: str, currency: str):
        """Sum of successful payments for ``order_id`` as Money.

        Returns zero in ``currency`` when nothing has been paid.
        """
        ...
