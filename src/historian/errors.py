"""Status-bearing errors returned by the alert state query path.

Every failure is raised as a ``StatusError`` subclass at the point where it is
detected and rendered once, by the API layer, as a Kubernetes-style ``Status``
body.  None of them are retried.
"""

from typing import Any

UNAUTHENTICATED_MESSAGE = "authentication required"


class StatusError(Exception):
    """An error carrying an HTTP status code and a user-visible message."""

    code: int = 500

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    @property
    def status(self) -> str:
        return "Failure"

    def to_status(self) -> dict[str, Any]:
        """Render the error as a ``Status`` object for the response body."""
        return {
            "kind": "Status",
            "apiVersion": "v1",
            "status": self.status,
            "code": self.code,
            "message": self.message,
        }


class Unauthenticated(StatusError):
    """No caller identity is attached to the request."""

    code = 401

    def __init__(self, message: str = UNAUTHENTICATED_MESSAGE) -> None:
        super().__init__(message)


class BadRequest(StatusError):
    """The request body could not be decoded."""

    code = 400


class EngineFailure(StatusError):
    """The historian query engine returned an error."""

    code = 500


class SchemaError(StatusError):
    """The engine's data frame does not match the two-column contract."""

    code = 500

    def __init__(self, message: str, row: int | None = None) -> None:
        super().__init__(message)
        self.row = row
