"""Tests for the OrderStatus and StatusTransition aggregates."""

import pytest
from protean.exceptions import ValidationError

from orderflow.workflow.events import StatusCreated, StatusUpdated, TransitionCreated, TransitionUpdated
from orderflow.workflow.status import OrderStatus
from orderflow.workflow.transition import StatusTransition


class TestOrderStatus:
    def test_create_raises_event(self):
        status = OrderStatus.create("ON_HOLD", display_order=9)

        assert status.name == "On Hold"
        assert len(status._events) == 1
        assert isinstance(status._events[0], StatusCreated)
        assert status._events[0].code == "ON_HOLD"

    def test_code_must_be_upper_case(self):
        with pytest.raises(ValidationError):
            OrderStatus.create("pending")

    def test_code_rejects_punctuation(self):
        with pytest.raises(ValidationError):
            OrderStatus.create("ON-HOLD")

    def test_defaults(self):
        status = OrderStatus.create("ON_HOLD")

        assert status.is_active is True
        assert status.is_final is False
        assert status.is_cancellable is True
        assert status.is_modifiable is True

    def test_final_status_allows_nothing(self):
        status = OrderStatus.create("DONE", is_final=True, is_cancellable=True, is_modifiable=True)

        assert not status.allows_cancellation()
        assert not status.allows_modification()

    def test_inactive_status_allows_nothing(self):
        status = OrderStatus.create("DORMANT", is_active=False)

        assert not status.allows_cancellation()
        assert not status.allows_modification()

    def test_update_settings(self):
        status = OrderStatus.create("ON_HOLD")
        status._events.clear()

        changed = status.update_settings(is_cancellable=False, display_order=4, name=None)

        assert changed == ["display_order", "is_cancellable"]
        assert status.is_cancellable is False
        assert isinstance(status._events[0], StatusUpdated)
        assert status._events[0].changed_fields == "display_order,is_cancellable"

    def test_update_without_changes_raises_nothing(self):
        status = OrderStatus.create("ON_HOLD", display_order=4)
        status._events.clear()

        assert status.update_settings(display_order=4) == []
        assert status._events == []

    def test_code_cannot_change(self):
        status = OrderStatus.create("ON_HOLD")
        with pytest.raises(ValidationError):
            status.update_settings(code="PAUSED")


class TestStatusTransition:
    def test_create_raises_event(self):
        edge = StatusTransition.create("PENDING", "PROCESSING", requires_payment=True)

        assert edge.is_allowed is True
        assert edge.requires_payment is True
        assert isinstance(edge._events[0], TransitionCreated)

    def test_self_loop_rejected(self):
        with pytest.raises(ValidationError):
            StatusTransition.create("PENDING", "PENDING")

    def test_permits_role(self):
        edge = StatusTransition.create("SHIPPED", "DELIVERED", required_role="COURIER")

        assert edge.permits_role("COURIER")
        assert edge.permits_role(None)
        assert not edge.permits_role("CLERK")

    def test_edge_without_role_permits_anyone(self):
        assert StatusTransition.create("SHIPPED", "DELIVERED").permits_role("CLERK")

    def test_update_guards(self):
        edge = StatusTransition.create("PENDING", "PROCESSING")
        edge._events.clear()

        changed = edge.update_guards(is_allowed=False, requires_reason=True)

        assert changed == ["is_allowed", "requires_reason"]
        assert isinstance(edge._events[0], TransitionUpdated)
        assert edge._events[0].is_allowed is False
