"""Custom exceptions for queue-sas.

All exceptions derive from ``QueueSasError`` so callers can catch the entire
family with a single ``except QueueSasError`` clause while still being able to
handle individual sub-types.

Exception hierarchy::

    QueueSasError
    ├── ResolutionError
    ├── RemoteReadError
    ├── RemoteWriteError
    ├── SigningError
    ├── AccessDeniedError
    └── EndpointUnreachableError

Design decisions:
    - Every exception carries a structured ``details`` dict that is safe to
      log.  It must never contain account keys or unmasked SAS tokens.
    - ``AccessDeniedError`` and ``EndpointUnreachableError`` are raised by
      queue handles during a probe and are translated by
      :class:`~queue_sas.verifier.TokenVerifier` into a
      :class:`~queue_sas.core.types.VerificationStatus`.  They never escape
      ``verify``.
    - Remote failures are chained (``raise ... from exc``) so the original
      SDK exception stays available on ``__cause__``.
"""

from __future__ import annotations

from typing import Any


class QueueSasError(Exception):
    """Base exception for all queue-sas errors.

    Attributes:
        message: Human-readable description of the error.
        details: Supplementary key-value context.  Safe to log.
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.details: dict[str, Any] = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | details={self.details}"
        return self.message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r})"


class ResolutionError(QueueSasError):
    """Raised when an account identity, queue name, policy name or endpoint is invalid.

    This is a user error: it is raised before any remote call is made and is
    never retried.

    Attributes:
        reason: Operator-readable explanation of the failure.
        field: The input that failed validation (e.g. ``"queue_name"``).
    """

    def __init__(
        self,
        reason: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        message = f"Cannot resolve queue handle: {reason}"
        if field:
            message += f" (field: {field})"
        super().__init__(message, details)
        self.reason = reason
        self.field = field


class RemoteReadError(QueueSasError):
    """Raised when the queue's access-policy list cannot be fetched.

    Attributes:
        operation: The remote operation that failed.
        queue_name: The queue whose policies were being read.
        reason: The underlying error description.
    """

    def __init__(
        self,
        operation: str,
        queue_name: str,
        reason: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            f"Reading access policies of queue {queue_name!r} failed during {operation!r}: {reason}",
            details,
        )
        self.operation = operation
        self.queue_name = queue_name
        self.reason = reason


class RemoteWriteError(QueueSasError):
    """Raised when the queue's access-policy list cannot be stored.

    Attributes:
        operation: The remote operation that failed.
        queue_name: The queue whose policies were being written.
        reason: The underlying error description.
    """

    def __init__(
        self,
        operation: str,
        queue_name: str,
        reason: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            f"Writing access policies of queue {queue_name!r} failed during {operation!r}: {reason}",
            details,
        )
        self.operation = operation
        self.queue_name = queue_name
        self.reason = reason


class SigningError(QueueSasError):
    """Raised when a queue handle cannot produce a SAS token.

    Typical causes:
        - The handle is bound to a SAS token rather than an account key.
        - The account key is not valid base64.

    Attributes:
        queue_name: The queue the token was requested for.
        reason: The underlying error description.
    """

    def __init__(
        self,
        queue_name: str,
        reason: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(f"Cannot sign SAS token for queue {queue_name!r}: {reason}", details)
        self.queue_name = queue_name
        self.reason = reason


class AccessDeniedError(QueueSasError):
    """Raised by a probe when the service rejects the credential.

    Attributes:
        reason: The service's explanation.
        status_code: HTTP status returned by the service, when known.
        error_code: Storage error code (e.g. ``"AuthenticationFailed"``).
    """

    def __init__(
        self,
        reason: str,
        status_code: int | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(f"Access denied: {reason}", details)
        self.reason = reason
        self.status_code = status_code
        self.error_code = error_code


class EndpointUnreachableError(QueueSasError):
    """Raised by a probe when the endpoint cannot be reached or does not answer usefully.

    Attributes:
        reason: The transport or service error description.
        status_code: HTTP status returned by the service, when one was received.
        error_code: Storage error code, when one was received.
    """

    def __init__(
        self,
        reason: str,
        status_code: int | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(f"Endpoint unreachable: {reason}", details)
        self.reason = reason
        self.status_code = status_code
        self.error_code = error_code


__all__ = [
    "AccessDeniedError",
    "EndpointUnreachableError",
    "QueueSasError",
    "RemoteReadError",
    "RemoteWriteError",
    "ResolutionError",
    "SigningError",
]
