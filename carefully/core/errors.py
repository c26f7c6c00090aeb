"""Domain errors surfaced to the HTTP layer with distinct status codes."""


class CarefullyError(Exception):
    """Base for errors the API turns into a JSON error response."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CarefullyError):
    """Empty or malformed client input."""

    status_code = 400


class NotFoundError(CarefullyError):
    """Unknown scenario, user or session."""

    status_code = 404


class ConflictError(CarefullyError):
    """Session state forbids the operation, or a concurrent write won the race."""

    status_code = 409


class OracleError(CarefullyError):
    """Text generation failed, timed out or returned unparseable content.

    Retryable by the caller; nothing is persisted when this is raised.
    """

    status_code = 502

    def __init__(self, message: str, timed_out: bool = False):
        super().__init__(message)
        self.timed_out = timed_out
        if timed_out:
            self.status_code = 504
