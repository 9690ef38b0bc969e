"""queue-sas — issue and verify SAS tokens for Azure Storage queues.

The package decides between ad-hoc tokens and tokens backed by a stored
access policy, reconciles the requested policy with the ones already on the
queue (create, reuse, or overwrite), and verifies issued tokens with a
single probe call.

Quick start
-----------
.. code-block:: python

    import asyncio
    from queue_sas import AccountIdentity, SasTokenService

    service = SasTokenService()
    result = asyncio.run(
        service.issue_token(
            AccountIdentity(name="mystorage", key="<base64 key>"),
            "orders",
            policy_name="consumer",
        )
    )
    print(result.queue_url, result.token, result.outcome)

    check = asyncio.run(service.verify_token(result.queue_url, result.token))
    print(check.status)

Public surface
--------------
The symbols exported below form the stable public API.
"""

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
from queue_sas.handles.azure import AzureQueueHandle
from queue_sas.handles.base import QueueHandle
from queue_sas.handles.memory import InMemoryQueueHandle
from queue_sas.issuer import TokenIssuer
from queue_sas.resolution import QueueHandleResolver
from queue_sas.service import SasTokenService
from queue_sas.verifier import TokenVerifier

try:
    from importlib.metadata import version as _pkg_version
    __version__: str = _pkg_version("queue-sas")
except Exception:  # pragma: no cover — package not installed
    __version__ = "0.0.0.dev0"

__all__ = [  # NOQA
    # Version
    "__version__",
    # Settings
    "QueueSasSettings",
    # Service
    "SasTokenService",
    # Components
    "QueueHandleResolver",
    "TokenIssuer",
    "TokenVerifier",
    # Handles
    "AzureQueueHandle",
    "InMemoryQueueHandle",
    "QueueHandle",
    # Domain types
    "NEVER_EXPIRES",
    "PROCESS_MESSAGES",
    "AccessPolicy",
    "AccountIdentity",
    "IssueOutcome",
    "IssueResult",
    "ProbeMode",
    "VerificationResult",
    "VerificationStatus",
    # Exceptions
    "AccessDeniedError",
    "EndpointUnreachableError",
    "QueueSasError",
    "RemoteReadError",
    "RemoteWriteError",
    "ResolutionError",
    "SigningError",
]
