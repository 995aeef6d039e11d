"""Domain events for the ConfigurationParameter aggregate."""

from protean.fields import DateTime, Identifier, String

from orderflow.domain import orderflow


@orderflow.event(part_of="ConfigurationParameter")
class ConfigurationParameterSet:
    """A business-rule parameter was created or given a new value."""

    parameter_id = Identifier(required=True)
    param_key = String(required=True, max_length=100)
    param_value = String(max_length=500)
    previous_value = String(max_length=500)
    updated_at = DateTime(required=True)
