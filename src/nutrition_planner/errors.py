"""Error types raised by the planner services."""


class PlannerError(Exception):
    """Base class for user-visible planner failures."""

    status_code = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(PlannerError):
    """Input rejected before any external call was made."""

    status_code = 400

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class NotFoundError(PlannerError):
    """A referenced food, plan, template or client does not exist."""

    status_code = 404

    def __init__(self, resource: str, identifier: object) -> None:
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} '{identifier}' not found")


class ExternalServiceError(PlannerError):
    """A catalog or store call failed.

    ``operation`` names the step that failed so multi-step sequences can report
    how far they got.
    """

    status_code = 502

    def __init__(self, operation: str, cause: Exception | None = None) -> None:
        self.operation = operation
        detail = f"{type(cause).__name__}: {cause}" if cause else "unknown error"
        super().__init__(f"{operation} failed ({detail})")


def call_external(operation: str, func, *args, **kwargs):
    """Run a catalog or store call, wrapping failures in ``ExternalServiceError``."""
    try:
        return func(*args, **kwargs)
    except PlannerError:
        raise
    except Exception as exc:
        raise ExternalServiceError(operation, exc) from exc
