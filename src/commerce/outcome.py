"""Value-or-error results for callers that prefer not to handle exceptions.

``capture`` runs an operation and folds any failure into an ``Outcome``.
Business errors keep their code and details. Field validation failures
become ``InvalidArgument``. Anything else is logged with its traceback and
reported as a bare ``InternalError``.
"""

from typing import Any

import structlog
from protean.exceptions import ValidationError

from commerce.errors import CommerceError, InternalError, InvalidArgument

logger = structlog.get_logger(__name__)


class Outcome:
    __slots__ = ("value", "error")

    def __init__(self, value: Any = None, error: CommerceError | None = None):
        self.value = value
        self.error = error

    @classmethod
    def success(cls, value: Any = None) -> "Outcome":
        return cls(value=value)

    @classmethod
    def failure(cls, error: CommerceError) -> "Outcome":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def code(self) -> str | None:
        return self.error.code if self.error is not None else None

    def unwrap(self) -> Any:
        """Return the value or raise the captured error."""
        if self.error is not None:
            raise self.error
        return self.value

    def to_dict(self) -> dict[str, Any]:
        if self.error is not None:
            return {"ok": False, "error": self.error.to_dict()}
        return {"ok": True, "value": self.value}

    def __repr__(self) -> str:
        if self.error is not None:
            return f"Outcome(error={self.error!r})"
        return f"Outcome(value={self.value!r})"


def capture(operation, *args, **kwargs) -> Outcome:
    """Call ``operation`` and wrap its result or failure."""
    try:
        return Outcome.success(operation(*args, **kwargs))
    except CommerceError as exc:
        return Outcome.failure(exc)
    except ValidationError as exc:
        return Outcome.failure(InvalidArgument("Invalid data", errors=exc.messages))
    except Exception:
        logger.exception("Unexpected failure", operation=getattr(operation, "__name__", repr(operation)))
        return Outcome.failure(InternalError())
