"""Single entry point outer layers use to run commands.

Domain errors (rule violations, missing records, version conflicts) pass
through unchanged so callers can act on them. Anything else is logged with
its traceback and surfaced as a generic UnexpectedFailure.
"""

import structlog
from protean.utils.globals import current_domain

from orderflow.shared.errors import DOMAIN_ERRORS, UnexpectedFailure, is_transient

logger = structlog.get_logger(__name__)


def dispatch(command):
    """Process ``command`` synchronously and return the handler's result."""
    command_name = type(command).__name__
    try:
        return current_domain.process(command, asynchronous=False)
    except DOMAIN_ERRORS as exc:
        logger.info("Command rejected", command=command_name, error_type=type(exc).__name__, error=str(exc))
        raise
    except Exception as exc:
        logger.error(
            "Command failed unexpectedly",
            command=command_name,
            transient=is_transient(exc),
            exc_info=True,
        )
        raise UnexpectedFailure(f"{command_name} could not be completed") from exc
