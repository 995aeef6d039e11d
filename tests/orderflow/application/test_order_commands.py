"""Application tests for order commands: creation, items, transitions and cancellation."""

import json

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError

from orderflow.boundary import dispatch
from orderflow.order.cancellation import CancelOrder
from orderflow.order.creation import CreateOrder
from orderflow.order.modification import AddOrderItem, RemoveOrderItem
from orderflow.order.order import Order
from orderflow.order.queries import get_order, get_order_by_number, list_orders, next_statuses, orders_in_status
from orderflow.order.transition import TransitionOrderStatus
from orderflow.shared.errors import (
    ApprovalRequired,
    IllegalTransition,
    OptimisticConflict,
    PaymentRequired,
    ReasonRequired,
    UnknownStatus,
)
from orderflow.workflow.executor import TransitionExecutor
from orderflow.workflow.management import CreateStatus, CreateTransition


def _create_order(quantity=2, unit_price=100.0, **kwargs):
    items = [
        {"product_id": "p1", "product_name": "Widget", "sku": "WID-1", "quantity": quantity, "unit_price": unit_price}
    ]
    return current_domain.process(
        CreateOrder(customer_id="cust-001", items=json.dumps(items), **kwargs),
        asynchronous=False,
    )


def _transition(order_id, target, reason=None, **kwargs):
    return current_domain.process(
        TransitionOrderStatus(order_id=order_id, target_status=target, changed_by="clerk", reason=reason, **kwargs),
        asynchronous=False,
    )


def _confirmed_order(ledger):
    order_id = _create_order()
    _transition(order_id, "PROCESSING")
    ledger.record_payment(order_id, 220.00)
    _transition(order_id, "CONFIRMED")
    return order_id


def _load(order_id):
    return current_domain.repository_for(Order).get(order_id)


class TestCreateOrderCommand:
    def test_persists_priced_order(self, seeded):
        order = _load(_create_order())

        assert order.status == "PENDING"
        assert order.version == 1
        assert order.pricing.subtotal == 200.00
        assert order.pricing.shipping_cost == 0.0
        assert order.pricing.tax_total == 20.00
        assert order.pricing.final_amount == 220.00
        assert len(order.items) == 1
        assert len(order.status_history) == 1

    def test_vip_priority_order(self, seeded):
        order = _load(_create_order(quantity=1, unit_price=50.0, customer_type="VIP", is_priority=True))

        assert order.pricing.discount_total == 7.50
        assert order.pricing.shipping_cost == 25.00
        assert order.pricing.final_amount == 71.75

    def test_requires_seeded_default_status(self):
        with pytest.raises(UnknownStatus):
            _create_order()

    def test_rejects_invalid_quantity(self, seeded):
        with pytest.raises(ValidationError):
            _create_order(quantity=0)

    def test_several_lines_survive_a_round_trip(self, seeded):
        lines = [
            {"product_id": "p1", "product_name": "Widget", "quantity": 3, "unit_price": 19.99},
            {"product_id": "p2", "product_name": "Gadget", "quantity": 1, "unit_price": 250.00},
            {"product_id": "p3", "product_name": "Bolt", "quantity": 12, "unit_price": 0.35},
        ]
        order_id = current_domain.process(
            CreateOrder(customer_id="cust-001", customer_type="WHOLESALE", items=json.dumps(lines)),
            asynchronous=False,
        )

        order = _load(order_id)
        stored = {str(item.product_id): item for item in order.items}
        assert len(order.items) == 3
        for line in lines:
            item = stored[line["product_id"]]
            assert item.quantity == line["quantity"]
            assert item.unit_price == line["unit_price"]
        # 59.97 + 250.00 + 4.20, bulk threshold reached: 10% + 5% off, 10% tax
        assert order.pricing.subtotal == 314.17
        assert order.pricing.discount_total == 47.13
        assert order.pricing.tax_total == 26.70
        assert order.pricing.shipping_cost == 0.0
        assert order.pricing.final_amount == 293.74

    @pytest.mark.parametrize(
        "items",
        [
            '[{"product_id": "p1", "quantity": 1',
            json.dumps([{"product_name": "Widget", "quantity": 1, "unit_price": 5.0}]),
            json.dumps([{"product_id": "p1", "quantity": "lots", "unit_price": 5.0}]),
            json.dumps({"product_id": "p1", "quantity": 1, "unit_price": 5.0}),
        ],
    )
    def test_malformed_items_are_validation_errors(self, seeded, items):
        with pytest.raises(ValidationError):
            dispatch(CreateOrder(customer_id="cust-001", items=items))


class TestOrderQueries:
    def test_get_by_number(self, seeded):
        order_id = _create_order()
        order = _load(order_id)

        assert str(get_order_by_number(order.order_number).id) == str(order_id)
        assert str(get_order(order_id).id) == str(order_id)

    def test_missing_number(self, seeded):
        with pytest.raises(ObjectNotFoundError):
            get_order_by_number("ORD-20260101-0000ABCD")

    def test_orders_in_status(self, seeded):
        first = _create_order()
        second = _create_order()
        _transition(second, "PROCESSING")

        assert [str(o.id) for o in orders_in_status("PENDING").items] == [str(first)]
        assert [str(o.id) for o in orders_in_status("PROCESSING").items] == [str(second)]

    def test_next_statuses(self, seeded):
        order = _load(_create_order())
        assert next_statuses(order) == ["PROCESSING", "CANCELLED"]

    def test_list_orders_pages_through_everything(self, seeded):
        created = {str(_create_order()) for _ in range(5)}

        first = list_orders(page=1, page_size=2)
        second = list_orders(page=2, page_size=2)
        last = list_orders(page=3, page_size=2)

        assert first.total == 5
        assert [len(p.items) for p in (first, second, last)] == [2, 2, 1]
        assert first.has_next and not last.has_next
        seen = [str(o.id) for p in (first, second, last) for o in p.items]
        assert len(seen) == len(set(seen))
        assert set(seen) == created

    def test_list_orders_newest_first(self, seeded):
        _create_order()
        newest = _create_order()

        assert str(list_orders().items[0].id) == str(newest)

    def test_orders_in_status_pages(self, seeded):
        pending = {str(_create_order()) for _ in range(3)}
        _transition(_create_order(), "PROCESSING")

        first = orders_in_status("PENDING", page=1, page_size=2)
        second = orders_in_status("PENDING", page=2, page_size=2)

        assert first.total == 3
        assert {str(o.id) for o in first.items + second.items} == pending
        assert orders_in_status("PENDING", page=3, page_size=2).items == []

    @pytest.mark.parametrize("page,page_size", [(0, 10), (1, 0), (1, 101)])
    def test_invalid_page_window(self, seeded, page, page_size):
        with pytest.raises(ValidationError):
            list_orders(page=page, page_size=page_size)


class TestModifyOrderCommands:
    def test_add_item_reprices(self, seeded):
        order_id = _create_order(quantity=1, unit_price=40.0)

        current_domain.process(
            AddOrderItem(order_id=order_id, product_id="p2", product_name="Gadget", quantity=1, unit_price=60.0),
            asynchronous=False,
        )

        order = _load(order_id)
        assert len(order.items) == 2
        assert order.pricing.subtotal == 100.00
        assert order.pricing.shipping_cost == 0.0
        assert order.pricing.final_amount == 110.00
        assert order.version == 2

    def test_remove_item_reprices(self, seeded):
        order_id = _create_order(quantity=1, unit_price=40.0)
        current_domain.process(
            AddOrderItem(order_id=order_id, product_id="p2", product_name="Gadget", quantity=1, unit_price=60.0),
            asynchronous=False,
        )
        item = next(i for i in _load(order_id).items if i.unit_price == 60.0)

        current_domain.process(RemoveOrderItem(order_id=order_id, item_id=item.id), asynchronous=False)

        order = _load(order_id)
        assert len(order.items) == 1
        assert order.pricing.subtotal == 40.00
        assert order.pricing.shipping_cost == 10.00

    def test_cannot_modify_outside_modifiable_status(self, seeded):
        order_id = _create_order()
        _transition(order_id, "PROCESSING")

        with pytest.raises(ValidationError):
            current_domain.process(
                AddOrderItem(order_id=order_id, product_id="p2", product_name="Gadget", quantity=1, unit_price=5.0),
                asynchronous=False,
            )
        assert len(_load(order_id).items) == 1


class TestTransitionOrderStatusCommand:
    def test_transition_appends_history_and_bumps_version(self, seeded):
        order_id = _create_order()

        result = _transition(order_id, "PROCESSING")

        assert result == {"order_id": str(order_id), "status": "PROCESSING", "sequence": 2, "version": 2}
        order = _load(order_id)
        assert order.status == "PROCESSING"
        assert order.version == 2
        entries = order.history()
        assert [e.to_status for e in entries] == ["PENDING", "PROCESSING"]
        assert entries[1].from_status == "PENDING"
        assert entries[1].changed_by == "clerk"
        assert entries[0].duration_seconds is not None

    def test_unknown_target(self, seeded):
        order_id = _create_order()
        with pytest.raises(UnknownStatus):
            _transition(order_id, "LIMBO")

    def test_missing_edge(self, seeded):
        order_id = _create_order()
        with pytest.raises(IllegalTransition):
            _transition(order_id, "SHIPPED")
        assert _load(order_id).status == "PENDING"

    def test_payment_required(self, seeded, ledger):
        order_id = _create_order()
        _transition(order_id, "PROCESSING")

        with pytest.raises(PaymentRequired):
            _transition(order_id, "CONFIRMED")

        ledger.record_payment(order_id, 100.00)
        with pytest.raises(PaymentRequired):
            _transition(order_id, "CONFIRMED")

        ledger.record_payment(order_id, 120.00)
        assert _transition(order_id, "CONFIRMED")["status"] == "CONFIRMED"

    def test_failed_payments_do_not_count(self, seeded, ledger):
        order_id = _create_order()
        _transition(order_id, "PROCESSING")
        ledger.record_payment(order_id, 220.00, successful=False)

        with pytest.raises(PaymentRequired):
            _transition(order_id, "CONFIRMED")

    def test_reason_required(self, seeded):
        order_id = _create_order()

        with pytest.raises(ReasonRequired):
            _transition(order_id, "CANCELLED")
        with pytest.raises(ReasonRequired):
            _transition(order_id, "CANCELLED", reason="   ")

        assert _transition(order_id, "CANCELLED", reason="Customer request")["status"] == "CANCELLED"

    def test_required_role(self, seeded):
        current_domain.process(CreateStatus(code="ON_HOLD", display_order=9), asynchronous=False)
        current_domain.process(
            CreateTransition(from_status="PENDING", to_status="ON_HOLD", required_role="SUPERVISOR"),
            asynchronous=False,
        )
        order_id = _create_order()

        with pytest.raises(ApprovalRequired):
            _transition(order_id, "ON_HOLD", actor_role="CLERK")

        _transition(order_id, "ON_HOLD", actor_role="SUPERVISOR")
        entry = _load(order_id).history()[-1]
        assert entry.to_status == "ON_HOLD"
        assert entry.approval_required is True

    def test_final_status_is_a_dead_end(self, seeded):
        # An edge out of a final status exists but is never honoured
        current_domain.process(CreateTransition(from_status="CANCELLED", to_status="PENDING"), asynchronous=False)
        order_id = _create_order()
        _transition(order_id, "CANCELLED", reason="Duplicate order")

        with pytest.raises(IllegalTransition):
            _transition(order_id, "PENDING")

        order = _load(order_id)
        assert order.status == "CANCELLED"
        assert len(order.status_history) == 2

    def test_full_lifecycle_to_completed(self, seeded, ledger):
        order_id = _confirmed_order(ledger)
        for target in ("PREPARING", "SHIPPED", "DELIVERED", "COMPLETED"):
            _transition(order_id, target)

        order = _load(order_id)
        assert order.status == "COMPLETED"
        assert [e.sequence for e in order.history()] == [1, 2, 3, 4, 5, 6, 7]
        assert order.timeline()[0].to_status == "COMPLETED"
        with pytest.raises(IllegalTransition):
            _transition(order_id, "CANCELLED", reason="Too late")


class TestCancelOrderCommand:
    def test_cancel_pending_order(self, seeded):
        order_id = _create_order()

        current_domain.process(
            CancelOrder(order_id=order_id, reason="Changed my mind", cancelled_by="customer"),
            asynchronous=False,
        )

        order = _load(order_id)
        assert order.status == "CANCELLED"
        assert order.cancellation_reason == "Changed my mind"
        assert order.cancelled_by == "customer"
        assert order.cancelled_at is not None
        assert order.history()[-1].reason == "Changed my mind"

    def test_non_cancellable_status_leaves_order_untouched(self, seeded, ledger):
        order_id = _confirmed_order(ledger)
        before = _load(order_id)

        with pytest.raises(IllegalTransition):
            current_domain.process(
                CancelOrder(order_id=order_id, reason="Too slow", cancelled_by="customer"),
                asynchronous=False,
            )

        order = _load(order_id)
        assert order.status == "CONFIRMED"
        assert len(order.status_history) == len(before.status_history) == 3
        assert order.version == before.version
        assert order.cancellation_reason is None

    def test_cancel_with_stale_version(self, seeded):
        order_id = _create_order()
        _transition(order_id, "PROCESSING")

        with pytest.raises(OptimisticConflict):
            current_domain.process(
                CancelOrder(order_id=order_id, reason="Late", cancelled_by="customer", expected_version=1),
                asynchronous=False,
            )
        assert _load(order_id).status == "PROCESSING"


class TestConcurrentTransitions:
    def test_same_expected_version_only_one_wins(self, seeded):
        order_id = _create_order()

        _transition(order_id, "PROCESSING", expected_version=1)
        with pytest.raises(OptimisticConflict):
            _transition(order_id, "CANCELLED", reason="Duplicate", expected_version=1)

        order = _load(order_id)
        assert order.status == "PROCESSING"
        assert order.version == 2

    def test_two_readers_of_the_same_version(self, seeded):
        order_id = _create_order()
        repo = current_domain.repository_for(Order)
        first = repo.get(order_id)
        second = repo.get(order_id)
        executor = TransitionExecutor()

        executor.execute(first, "PROCESSING", actor="worker-1")
        repo.persist(first)

        executor.execute(second, "CANCELLED", actor="worker-2", reason="Duplicate")
        with pytest.raises(OptimisticConflict):
            repo.persist(second)

        order = repo.get(order_id)
        assert order.status == "PROCESSING"
        assert order.version == 2
        assert len(order.status_history) == 2


class TestOrderRepositoryWrites:
    def test_persist_claims_the_stored_version(self, seeded):
        order_id = _create_order()
        repo = current_domain.repository_for(Order)
        order = repo.get(order_id)
        order.notes = "Leave at the door"

        repo.persist(order)

        assert order.version == 2
        stored = repo.get(order_id)
        assert stored.version == 2
        assert stored.notes == "Leave at the door"

    def test_advance_status_counts_only_matching_orders(self, seeded):
        moved = [_create_order(), _create_order()]
        elsewhere = _create_order()
        _transition(elsewhere, "PROCESSING")
        _transition(elsewhere, "CANCELLED", reason="Duplicate")
        repo = current_domain.repository_for(Order)

        assert repo.advance_status("PENDING", "PROCESSING") == 2

        assert [_load(order_id).status for order_id in moved] == ["PROCESSING", "PROCESSING"]
        assert _load(elsewhere).status == "CANCELLED"
        assert repo.advance_status("PENDING", "PROCESSING") == 0
