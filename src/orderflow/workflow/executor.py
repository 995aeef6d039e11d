"""Transition executor — validates and applies one order's status change.

Checks run in a fixed order and the first failure wins:

1. the target status must exist (UnknownStatus);
2. the current status must not be final, and an allowed edge to an active
   target must exist (IllegalTransition);
3. edges that require payment need the order fully paid (PaymentRequired);
4. edges that require a reason need a non-blank one (ReasonRequired);
5. edges that name a role reject a different presented role (ApprovalRequired).
   Without a presented role the approval requirement is only recorded.

Nothing is changed on the order until every check has passed. Persisting
the order (and bumping its version) is the caller's job.
"""

import structlog

from orderflow.payment import get_payment_ledger
from orderflow.shared.errors import ApprovalRequired, IllegalTransition, PaymentRequired, ReasonRequired
from orderflow.workflow.registry import StatusRegistry
from orderflow.workflow.rules import TransitionRules

logger = structlog.get_logger(__name__)


class TransitionExecutor:
    def __init__(self, registry=None, rules=None, ledger=None):
        self.registry = registry if registry is not None else StatusRegistry()
        self.rules = rules if rules is not None else TransitionRules(registry=self.registry)
        self.ledger = ledger

    def _ledger(self):
        return self.ledger if self.ledger is not None else get_payment_ledger()

    def execute(self, order, target_code, actor, reason=None, actor_role=None, is_automatic=False):
        """Move ``order`` to ``target_code`` and return the new history entry."""
        target = self.registry.get_by_code(target_code)
        current = self.registry.get_by_code(order.status)

        if current.is_final:
            raise IllegalTransition.between(current.code, target.code, detail=f"{current.code} is a final status")

        edge = self.rules.find_edge(current.code, target.code)
        if edge is None:
            raise IllegalTransition.between(current.code, target.code)
        if not edge.is_allowed:
            raise IllegalTransition.between(current.code, target.code, detail="transition is disabled")
        if not target.is_active:
            raise IllegalTransition.between(current.code, target.code, detail=f"{target.code} is inactive")

        if edge.requires_payment and not order.is_fully_paid(self._ledger()):
            raise PaymentRequired(
                {"payment": [f"Order must be fully paid before moving from {current.code} to {target.code}"]}
            )

        if edge.requires_reason and (reason is None or not reason.strip()):
            raise ReasonRequired({"reason": [f"A reason is required to move from {current.code} to {target.code}"]})

        if not edge.permits_role(actor_role):
            raise ApprovalRequired(
                {"actor_role": [f"Role {edge.required_role} is required to move from {current.code} to {target.code}"]}
            )

        approval_required = bool(edge.requires_approval or edge.required_role)
        if approval_required:
            logger.warning(
                "Transition requires approval",
                order_id=str(order.id),
                from_status=current.code,
                to_status=target.code,
                required_role=edge.required_role,
            )
        if edge.requires_inventory_check:
            logger.info(
                "Inventory check required for transition",
                order_id=str(order.id),
                from_status=current.code,
                to_status=target.code,
            )

        entry = order.record_status_change(
            target.code,
            changed_by=actor,
            reason=reason,
            is_automatic=is_automatic,
            approval_required=approval_required,
        )

        logger.info(
            "Order status transitioned",
            order_id=str(order.id),
            from_status=current.code,
            to_status=target.code,
            changed_by=actor,
        )
        return entry
