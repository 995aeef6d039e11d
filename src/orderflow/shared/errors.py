"""Error taxonomy for the order workflow.

Rule violations extend protean's ValidationError so they carry the usual
``{field: [messages]}`` payload; lookups that miss extend ObjectNotFoundError.
Only TransientStoreFailure (and whatever ``is_transient`` recognises) is ever
retried, and only by the batch advancement job.
"""

from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError
from sqlalchemy import exc as sa_exc


class UnknownStatus(ObjectNotFoundError):
    """No status is registered under the requested code."""

    @classmethod
    def for_code(cls, code):
        return cls({"status": [f"Status not found: {code}"]})


class IllegalTransition(ValidationError):
    """The edge is missing, disallowed, or leaves a final status."""

    @classmethod
    def between(cls, from_code, to_code, detail=None):
        message = f"Transition from {from_code} to {to_code} is not allowed"
        if detail:
            message = f"{message}: {detail}"
        return cls({"status": [message]})


class PaymentRequired(ValidationError):
    """The edge requires the order to be fully paid first."""


class ReasonRequired(ValidationError):
    """The edge requires a non-blank reason."""


class ApprovalRequired(ValidationError):
    """The edge is restricted to a role the actor does not hold."""


class OptimisticConflict(InvalidOperationError):
    """Another writer updated the order since it was read. Retry the whole operation."""


class TransientStoreFailure(Exception):
    """Connection or timeout class failure talking to the store."""


class UnexpectedFailure(Exception):
    """Generic failure surfaced for anything outside the domain taxonomy."""


DOMAIN_ERRORS = (ValidationError, ObjectNotFoundError, OptimisticConflict)

_TRANSIENT_TYPES = (
    TransientStoreFailure,
    ConnectionError,
    TimeoutError,
    sa_exc.OperationalError,
    sa_exc.TimeoutError,
    sa_exc.DisconnectionError,
)


def is_transient(exc: BaseException) -> bool:
    """True when ``exc`` (or anything in its cause chain) is worth retrying."""
    seen = set()
    while exc is not None and id(exc) not in seen:
        seen.add(id(exc))
        if isinstance(exc, _TRANSIENT_TYPES):
            return True
        if isinstance(exc, sa_exc.DBAPIError) and exc.connection_invalidated:
            return True
        exc = exc.__cause__
    return False
