"""ConfigurationParameter aggregate — business rules stored as typed key/value rows."""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, String

from orderflow.configuration.events import ConfigurationParameterSet
from orderflow.domain import orderflow

_TRUTHY = {"true", "1", "yes", "on"}
_FALSY = {"false", "0", "no", "off"}


class ParameterType(Enum):
    STRING = "STRING"
    INTEGER = "INTEGER"
    DOUBLE = "DOUBLE"
    BOOLEAN = "BOOLEAN"


def parse_value(raw, param_type):
    """Convert the stored text into the Python value for ``param_type``.

    Raises ValueError when the text does not parse.
    """
    kind = ParameterType(param_type)
    if kind == ParameterType.INTEGER:
        return int(raw.strip())
    if kind == ParameterType.DOUBLE:
        return float(raw.strip())
    if kind == ParameterType.BOOLEAN:
        text = raw.strip().lower()
        if text in _TRUTHY:
            return True
        if text in _FALSY:
            return False
        raise ValueError(f"Not a boolean: {raw!r}")
    return raw


@orderflow.aggregate
class ConfigurationParameter:
    param_key = String(required=True, max_length=100, unique=True)
    param_value = String(max_length=500)
    param_type = String(choices=ParameterType, default=ParameterType.STRING.value)
    default_value = String(max_length=500)
    description = String(max_length=500)
    category = String(max_length=50)
    is_active = Boolean(default=True)
    updated_by = String(max_length=100)
    updated_at = DateTime()

    @invariant.post
    def value_must_match_declared_type(self):
        if self.param_value is None:
            return
        try:
            parse_value(self.param_value, self.param_type)
        except ValueError:
            raise ValidationError(
                {"param_value": [f"Value {self.param_value!r} is not a valid {self.param_type}"]}
            ) from None

    @classmethod
    def register(cls, param_key, value, param_type, category=None, description=None, default_value=None):
        text = _to_text(value)
        return cls(
            param_key=param_key,
            param_value=text,
            param_type=param_type,
            default_value=text if default_value is None else _to_text(default_value),
            category=category,
            description=description,
            is_active=True,
            updated_by="system",
            updated_at=datetime.now(UTC),
        )

    def typed_value(self):
        source = self.param_value if self.param_value is not None else self.default_value
        if source is None:
            return None
        return parse_value(source, self.param_type)

    def set_value(self, value, updated_by="system"):
        previous = self.param_value
        self.param_value = _to_text(value)
        self.updated_by = updated_by
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ConfigurationParameterSet(
                parameter_id=str(self.id),
                param_key=self.param_key,
                param_value=self.param_value,
                previous_value=previous,
                updated_at=self.updated_at,
            )
        )


def _to_text(value):
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
