"""SAS token verification by probing the queue.

The verifier binds a handle to the candidate token and performs exactly one
privileged operation.  The service's answer is reported as a
:class:`~queue_sas.core.types.VerificationStatus`:

* ``AUTHORIZED`` — the probe succeeded;
* ``UNAUTHORIZED`` — the service rejected the token (bad signature, missing
  permission, expired or deleted policy);
* ``UNREACHABLE`` — the endpoint could not be reached or does not name an
  existing queue.

These are results, not exceptions.  A malformed endpoint or empty token is a
caller error and raises :class:`~queue_sas.core.exceptions.ResolutionError`.
"""

from __future__ import annotations

import logging

from queue_sas.core.exceptions import AccessDeniedError, EndpointUnreachableError
from queue_sas.core.types import VerificationResult, VerificationStatus
from queue_sas.resolution import QueueHandleResolver

logger = logging.getLogger(__name__)


class TokenVerifier:
    """Check whether a SAS token grants access to a queue.

    Args:
        resolver: Builds the token-bound handle.  Defaults to a
            :class:`~queue_sas.resolution.QueueHandleResolver` with settings
            read from the environment.

    Example::

        verifier = TokenVerifier()
        result = await verifier.verify(
            "https://acct.queue.core.windows.net/orders",
            token,
        )
        if not result.is_authorized:
            print(result.status, result.reason)
    """

    def __init__(self, resolver: QueueHandleResolver | None = None) -> None:
        self._resolver = resolver or QueueHandleResolver()

    async def verify(self, endpoint: str, sas_token: str) -> VerificationResult:
        """Probe the queue at *endpoint* with *sas_token*.

        No retries are attempted.

        Raises:
            ResolutionError: When *endpoint* or *sas_token* is malformed.
        """
        handle = self._resolver.resolve_by_endpoint(endpoint, sas_token)
        logger.info("Checking access to the %s queue...", handle.queue_name)

        async with handle:
            try:
                await handle.probe()
            except AccessDeniedError as exc:
                logger.warning("SAS token rejected for queue %s: %s", handle.queue_name, exc.reason)
                return _negative(VerificationStatus.UNAUTHORIZED, handle.queue_name, handle.queue_url, exc)
            except EndpointUnreachableError as exc:
                logger.warning("Queue %s is unreachable: %s", handle.queue_url, exc.reason)
                return _negative(VerificationStatus.UNREACHABLE, handle.queue_name, handle.queue_url, exc)

        logger.info("SAS token is OK")
        return VerificationResult(
            status=VerificationStatus.AUTHORIZED,
            queue_name=handle.queue_name,
            queue_url=handle.queue_url,
        )


def _negative(
    status: VerificationStatus,
    queue_name: str,
    queue_url: str,
    exc: AccessDeniedError | EndpointUnreachableError,
) -> VerificationResult:
    return VerificationResult(
        status=status,
        queue_name=queue_name,
        queue_url=queue_url,
        reason=exc.reason,
        status_code=exc.status_code,
        error_code=exc.error_code,
    )


__all__ = ["TokenVerifier"]
