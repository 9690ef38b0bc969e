"""``SasTokenService`` — one call per operation, from raw input to result.

The service wires the resolver, issuer and verifier together and owns the
life-cycle of every handle it resolves: each call builds a fresh handle,
uses it, and closes it before returning.  Nothing is cached between calls.

Typical use::

    from queue_sas import AccountIdentity, SasTokenService

    service = SasTokenService()
    result = await service.issue_token(
        AccountIdentity(name="acct", key="..."),
        "orders",
        policy_name="consumer",
    )

    check = await service.verify_token(result.queue_url, result.token)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from queue_sas.core.config import QueueSasSettings
from queue_sas.issuer import TokenIssuer
from queue_sas.resolution import QueueHandleResolver
from queue_sas.verifier import TokenVerifier

if TYPE_CHECKING:
    from queue_sas.core.types import AccountIdentity, IssueResult, VerificationResult

logger = logging.getLogger(__name__)


class SasTokenService:
    """Facade over resolution, issuance and verification.

    Args:
        settings: Shared settings.  Ignored when *resolver* is given.
        resolver: Custom handle resolver (e.g. one producing in-memory
            handles in tests).
    """

    def __init__(
        self,
        settings: QueueSasSettings | None = None,
        resolver: QueueHandleResolver | None = None,
    ) -> None:
        self.resolver = resolver or QueueHandleResolver(settings or QueueSasSettings())
        self.issuer = TokenIssuer()
        self.verifier = TokenVerifier(self.resolver)

    async def issue_token(
        self,
        identity: AccountIdentity,
        queue_name: str,
        policy_name: str | None = None,
        overwrite: bool = False,
    ) -> IssueResult:
        """Resolve *queue_name* under *identity* and issue a token for it.

        Raises:
            ResolutionError: On malformed identity, queue or policy name.
            RemoteReadError: When the policy list cannot be fetched.
            RemoteWriteError: When the policy list cannot be stored.
            SigningError: When the token cannot be signed.
        """
        logger.debug(
            "Issue request account=%s queue=%s policy=%s overwrite=%s",
            identity.name,
            queue_name,
            policy_name,
            overwrite,
        )
        async with self.resolver.resolve(identity, queue_name) as handle:
            return await self.issuer.issue(handle, policy_name=policy_name, overwrite=overwrite)

    async def verify_token(self, endpoint: str, sas_token: str) -> VerificationResult:
        """Probe *endpoint* with *sas_token*.

        Raises:
            ResolutionError: When *endpoint* or *sas_token* is malformed.
        """
        return await self.verifier.verify(endpoint, sas_token)


__all__ = ["SasTokenService"]
