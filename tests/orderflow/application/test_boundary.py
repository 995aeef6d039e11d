"""Application tests for the command dispatch boundary."""

import json

import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from orderflow.boundary import dispatch
from orderflow.order.creation import CreateOrder
from orderflow.order.order import Order
from orderflow.order.repository import OrderRepository
from orderflow.order.transition import TransitionOrderStatus
from orderflow.shared.errors import IllegalTransition, UnexpectedFailure, UnknownStatus


def _create_order():
    items = [{"product_id": "p1", "product_name": "Widget", "quantity": 1, "unit_price": 25.0}]
    return dispatch(CreateOrder(customer_id="cust-001", items=json.dumps(items)))


class TestDispatch:
    def test_returns_handler_result(self, seeded):
        order_id = _create_order()
        result = dispatch(TransitionOrderStatus(order_id=order_id, target_status="PROCESSING", changed_by="clerk"))
        assert result["status"] == "PROCESSING"

    def test_domain_errors_pass_through(self, seeded):
        order_id = _create_order()

        with pytest.raises(IllegalTransition):
            dispatch(TransitionOrderStatus(order_id=order_id, target_status="SHIPPED", changed_by="clerk"))
        with pytest.raises(UnknownStatus):
            dispatch(TransitionOrderStatus(order_id=order_id, target_status="LIMBO", changed_by="clerk"))

    def test_validation_error_keeps_messages(self, seeded):
        with pytest.raises(ValidationError) as exc_info:
            dispatch(CreateOrder(customer_id="cust-001", items=json.dumps([])))
        assert "items" in exc_info.value.messages

    def test_unexpected_errors_are_wrapped(self, seeded, monkeypatch):
        def broken(self, order):
            raise RuntimeError("disk full")

        monkeypatch.setattr(OrderRepository, "persist", broken)

        with pytest.raises(UnexpectedFailure) as exc_info:
            _create_order()
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_nothing_persisted_on_unexpected_failure(self, seeded, monkeypatch):
        monkeypatch.setattr(OrderRepository, "persist", lambda self, order: 1 / 0)

        with pytest.raises(UnexpectedFailure):
            _create_order()

        assert current_domain.repository_for(Order)._dao.query.all().items == []
