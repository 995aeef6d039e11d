"""Typed read access to business-rule parameters.

Every getter takes the caller's default and returns it whenever the key is
missing, inactive or holds a value that does not parse.
"""

import structlog
from protean.utils.globals import current_domain

from orderflow.configuration.parameter import ConfigurationParameter, ParameterType, parse_value

logger = structlog.get_logger(__name__)


class ConfigurationLookup:
    def _find(self, key):
        repo = current_domain.repository_for(ConfigurationParameter)
        return repo._dao.query.filter(param_key=key).all().first

    def _raw(self, key):
        param = self._find(key)
        if param is None or not param.is_active:
            return None
        return param.param_value if param.param_value is not None else param.default_value

    def _typed(self, key, param_type, default):
        raw = self._raw(key)
        if raw is None:
            return default
        try:
            return parse_value(raw, param_type)
        except ValueError:
            logger.warning(
                "Unparsable configuration value, using default",
                key=key,
                value=raw,
                expected=param_type.value,
                default=default,
            )
            return default

    def get_string(self, key, default=None):
        raw = self._raw(key)
        return default if raw is None else raw

    def get_integer(self, key, default=None):
        return self._typed(key, ParameterType.INTEGER, default)

    def get_float(self, key, default=None):
        return self._typed(key, ParameterType.DOUBLE, default)

    def get_boolean(self, key, default=None):
        return self._typed(key, ParameterType.BOOLEAN, default)

    def by_category(self, category):
        """Active parameters in ``category``, ordered by key."""
        repo = current_domain.repository_for(ConfigurationParameter)
        params = repo._dao.query.filter(category=category, is_active=True).all().items
        return sorted(params, key=lambda p: p.param_key)
