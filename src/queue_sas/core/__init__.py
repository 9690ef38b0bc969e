"""Core abstractions — types, settings, and exceptions."""

from queue_sas.core.config import QueueSasSettings
from queue_sas.core.exceptions import (
    AccessDeniedError,
    EndpointUnreachableError,
    QueueSasError,
    RemoteReadError,
    RemoteWriteError,
    ResolutionError,
    SigningError,
)
from queue_sas.core.types import (
    NEVER_EXPIRES,
    PROCESS_MESSAGES,
    AccessPolicy,
    AccountIdentity,
    IssueOutcome,
    IssueResult,
    ProbeMode,
    VerificationResult,
    VerificationStatus,
)

__all__ = [
    # Settings
    "QueueSasSettings",
    # Exceptions
    "AccessDeniedError",
    "EndpointUnreachableError",
    "QueueSasError",
    "RemoteReadError",
    "RemoteWriteError",
    "ResolutionError",
    "SigningError",
    # Types
    "NEVER_EXPIRES",
    "PROCESS_MESSAGES",
    "AccessPolicy",
    "AccountIdentity",
    "IssueOutcome",
    "IssueResult",
    "ProbeMode",
    "VerificationResult",
    "VerificationStatus",
]
