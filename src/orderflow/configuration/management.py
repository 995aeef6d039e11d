"""Configuration parameter management — command and handler."""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import String
from protean.utils.globals import current_domain

from orderflow.configuration.defaults import DEFAULTS
from orderflow.configuration.parameter import ConfigurationParameter, ParameterType
from orderflow.domain import orderflow

logger = structlog.get_logger(__name__)


@orderflow.command(part_of="ConfigurationParameter")
class SetConfigurationParameter:
    """Create or update a business-rule parameter."""

    param_key: String(required=True, max_length=100)
    param_value: String(required=True, max_length=500)
    param_type: String(max_length=20)  # Inferred from the known defaults when omitted
    category: String(max_length=50)
    description: String(max_length=500)
    updated_by: String(max_length=100, default="system")


@orderflow.command_handler(part_of=ConfigurationParameter)
class ConfigurationParameterHandler:
    @handle(SetConfigurationParameter)
    def set_parameter(self, command):
        repo = current_domain.repository_for(ConfigurationParameter)
        param = repo._dao.query.filter(param_key=command.param_key).all().first

        if param is None:
            known = DEFAULTS.get(command.param_key)
            param_type = command.param_type or (known[1] if known else ParameterType.STRING.value)
            if param_type not in {t.value for t in ParameterType}:
                raise ValidationError({"param_type": [f"Unknown parameter type: {param_type}"]})
            param = ConfigurationParameter.register(
                param_key=command.param_key,
                value=command.param_value,
                param_type=param_type,
                category=command.category or (known[2] if known else None),
                description=command.description or (known[3] if known else None),
                default_value=known[0] if known else None,
            )

        param.set_value(command.param_value, updated_by=command.updated_by or "system")
        repo.add(param)

        logger.info(
            "Configuration parameter set",
            key=param.param_key,
            value=param.param_value,
            updated_by=param.updated_by,
        )
        return str(param.id)
