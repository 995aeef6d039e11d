"""OrderStatus aggregate — one node of the runtime-configurable order workflow.

Statuses are data rather than an enum so operators can add or reshape the
workflow without a deploy. Each status carries the policy flags the order
aggregate and the transition executor consult: whether orders may still be
cancelled or modified, whether the status is terminal, and which downstream
processes (payment, inventory, shipping) entering it is expected to trigger.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Integer, String

from orderflow.domain import orderflow
from orderflow.workflow.events import StatusCreated, StatusUpdated

# Flags and presentation fields an admin may change. The code is the identity
# operators and orders refer to, so it is never editable.
UPDATABLE_FIELDS = (
    "name",
    "description",
    "color_code",
    "display_order",
    "is_final",
    "is_cancellable",
    "is_modifiable",
    "triggers_payment",
    "triggers_inventory_reservation",
    "triggers_shipping",
    "sends_notification",
    "is_active",
)


@orderflow.aggregate
class OrderStatus:
    code = String(required=True, max_length=50, unique=True)
    name = String(required=True, max_length=100)
    description = String(max_length=500)
    color_code = String(max_length=7)
    display_order = Integer(default=0, min_value=0)
    is_final = Boolean(default=False)
    is_cancellable = Boolean(default=True)
    is_modifiable = Boolean(default=True)
    triggers_payment = Boolean(default=False)
    triggers_inventory_reservation = Boolean(default=False)
    triggers_shipping = Boolean(default=False)
    sends_notification = Boolean(default=True)
    is_active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def code_must_be_upper_snake_case(self):
        if self.code and (not self.code.replace("_", "").isalnum() or self.code != self.code.upper()):
            raise ValidationError({"code": [f"Status code must be upper-case letters, digits or '_': {self.code}"]})

    @classmethod
    def create(cls, code, name=None, **flags):
        now = datetime.now(UTC)
        status = cls(
            code=code,
            name=name or code.replace("_", " ").title(),
            created_at=now,
            updated_at=now,
            **flags,
        )
        status.raise_(
            StatusCreated(
                status_id=str(status.id),
                code=status.code,
                display_order=status.display_order,
                is_final=status.is_final,
                created_at=now,
            )
        )
        return status

    def allows_cancellation(self) -> bool:
        return bool(self.is_active and self.is_cancellable and not self.is_final)

    def allows_modification(self) -> bool:
        return bool(self.is_active and self.is_modifiable and not self.is_final)

    def update_settings(self, **changes):
        """Apply the given flag/presentation changes; ``code`` is rejected."""
        if "code" in changes and changes["code"] not in (None, self.code):
            raise ValidationError({"code": ["Status code cannot be changed"]})

        changed = []
        for field_name in UPDATABLE_FIELDS:
            value = changes.get(field_name)
            if value is None or getattr(self, field_name) == value:
                continue
            setattr(self, field_name, value)
            changed.append(field_name)

        if not changed:
            return changed

        self.updated_at = datetime.now(UTC)
        self.raise_(
            StatusUpdated(
                status_id=str(self.id),
                code=self.code,
                changed_fields=",".join(changed),
                is_active=self.is_active,
                updated_at=self.updated_at,
            )
        )
        return changed
