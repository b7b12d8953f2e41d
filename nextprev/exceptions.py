from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from botocore.exceptions import ClientError


class NextPrevError(Exception):
    """Base exception for all nextprev errors."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class InvalidOptionsError(NextPrevError, ValueError):
    """Raised when pagination options are rejected before any state is created."""

    def __init__(self, message: str, value: Any | None = None) -> None:
        super().__init__(message)
        self.value = value


class InvalidArgumentsError(NextPrevError, ValueError):
    """Raised when query arguments cannot be combined with pagination options."""


class IllegalTransitionError(NextPrevError):
    """
    Raised when an action is dispatched in a state that does not accept it.

    This always signals a bug in the caller or the controller: the public
    result never exposes an action that would trigger it.
    """

    def __init__(self, state_tag: str, action_tag: str, reason: str | None = None) -> None:
        msg = f"Cannot apply {action_tag} in state {state_tag}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
        self.state_tag = state_tag
        self.action_tag = action_tag


class MalformedPageError(NextPrevError):
    """Raised when a subscription delivers a snapshot that is not a valid page."""

    def __init__(
        self,
        message: str,
        snapshot: Any | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error)
        self.snapshot = snapshot


class ControllerClosedError(NextPrevError):
    """Raised when a controller is used after it was closed."""

    def __init__(self, message: str = "Controller has been closed") -> None:
        super().__init__(message)


class SourceError(NextPrevError):
    """Raised when the backing data source fails to produce a page."""


class TableNotFoundError(SourceError):
    """Raised when the DynamoDB table does not exist."""

    def __init__(self, table_name: str, original_error: Exception | None = None) -> None:
        super().__init__(f"Table '{table_name}' not found", original_error)
        self.table_name = table_name


class ProvisionedThroughputExceededError(SourceError):
    """Raised when DynamoDB throttles requests."""

    def __init__(
        self, message: str = "Request rate exceeded", original_error: Exception | None = None
    ) -> None:
        super().__init__(message, original_error)


class RequestTimeoutError(SourceError):
    """Raised when a request to DynamoDB times out."""

    def __init__(
        self, message: str = "Request timed out", original_error: Exception | None = None
    ) -> None:
        super().__init__(message, original_error)


class ValidationError(SourceError):
    """Raised when DynamoDB rejects the request parameters (e.g. a stale cursor)."""


@contextmanager
def handle_dynamo_errors(table_name: str | None = None) -> Generator[None, None, None]:
    """
    Context manager that catches botocore.exceptions.ClientError
    and raises the appropriate SourceError subclass.

    Args:
        table_name: Optional table name for better error messages

    Usage:
        with handle_dynamo_errors(table_name="messages"):
            client.query(...)
    """
    try:
        yield
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "Unknown")
        error_message = e.response.get("Error", {}).get("Message", str(e))

        if error_code == "ResourceNotFoundException":
            raise TableNotFoundError(table_name=table_name or "unknown", original_error=e) from e

        if error_code in (
            "ProvisionedThroughputExceededException",
            "ThrottlingException",
            "RequestLimitExceeded",
        ):
            raise ProvisionedThroughputExceededError(message=error_message, original_error=e) from e

        if error_code in ("ValidationException", "SerializationException"):
            raise ValidationError(message=error_message, original_error=e) from e

        if error_code in ("RequestTimeout", "RequestTimeoutException"):
            raise RequestTimeoutError(message=error_message, original_error=e) from e

        # Unknown error: wrap in generic SourceError
        raise SourceError(
            message=f"DynamoDB error ({error_code}): {error_message}", original_error=e
        ) from e
