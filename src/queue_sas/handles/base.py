"""Abstract queue handle — the capability interface the core works against.

A ``QueueHandle`` identifies one queue and exposes exactly the remote
capabilities the issuer and verifier need:

- ``read_policies`` / ``write_policies`` for the queue's stored access
  policies,
- ``sign`` to mint a SAS token from a stored policy name or an ad-hoc rule,
- ``probe`` to test whether the handle's credential grants access.

Keeping the core on this interface isolates the create/reuse/overwrite
decision from any particular SDK client.  The concrete backends are
:class:`~queue_sas.handles.azure.AzureQueueHandle` and
:class:`~queue_sas.handles.memory.InMemoryQueueHandle`.

Handles are request-scoped: build one per invocation, use it, close it::

    async with resolver.resolve(identity, "orders") as handle:
        policies = await handle.read_policies()
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import logging
from typing import TYPE_CHECKING, Self

from azure.storage.queue import generate_queue_sas

from queue_sas.core.exceptions import SigningError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from queue_sas.core.types import AccessPolicy

logger = logging.getLogger(__name__)


class QueueHandle(ABC):
    """Abstract base class for queue backends.

    Implementations must:

    - **Raise on remote failure** — ``read_policies`` raises
      ``RemoteReadError``, ``write_policies`` raises ``RemoteWriteError``,
      ``sign`` raises ``SigningError``.
    - **Classify probe failures** — ``probe`` raises ``AccessDeniedError``
      for credential problems and ``EndpointUnreachableError`` for transport
      or endpoint problems.
    - **Replace, not merge** — ``write_policies`` stores exactly the mapping
      it is given.

    Args:
        queue_name: Name of the queue.
        queue_url: Fully-qualified queue address.
        account_name: Storage account owning the queue, when known.
    """

    def __init__(
        self,
        queue_name: str,
        queue_url: str,
        account_name: str | None = None,
    ) -> None:
        self._queue_name = queue_name
        self._queue_url = queue_url
        self._account_name = account_name

    @property
    def queue_name(self) -> str:
        return self._queue_name

    @property
    def queue_url(self) -> str:
        return self._queue_url

    @property
    def account_name(self) -> str | None:
        return self._account_name

    ######################
    # Abstract interface #
    ######################

    @abstractmethod
    async def read_policies(self) -> dict[str, AccessPolicy]:
        """Return the queue's stored access policies keyed by policy name.

        Raises:
            RemoteReadError: When the policy list cannot be fetched.
        """

    @abstractmethod
    async def write_policies(self, policies: Mapping[str, AccessPolicy]) -> None:
        """Replace the queue's stored access policies with *policies*.

        Raises:
            RemoteWriteError: When the policy list cannot be stored.
        """

    @abstractmethod
    def sign(self, rule: AccessPolicy | str) -> str:
        """Return a SAS token for this queue.

        Args:
            rule: Name of a stored access policy, or an ad-hoc rule.

        Raises:
            SigningError: When the handle cannot produce a token.
        """

    @abstractmethod
    async def probe(self) -> None:
        """Perform one privileged operation with the handle's credential.

        Raises:
            AccessDeniedError: When the service rejects the credential.
            EndpointUnreachableError: When the endpoint cannot be reached.
        """

    ##############
    # Life-cycle #
    ##############

    async def close(self) -> None:
        """Release transport resources.  The default implementation holds none."""

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(queue_name={self._queue_name!r}, queue_url={self._queue_url!r})"


def sign_with_account_key(
    account_name: str,
    account_key: str,
    queue_name: str,
    rule: AccessPolicy | str,
) -> str:
    """Sign a queue SAS token with the account key.

    A ``str`` *rule* is a stored policy name: the token then carries only the
    policy id and inherits permission and expiry from the stored policy.  An
    :class:`AccessPolicy` *rule* is embedded in the token itself.

    Raises:
        SigningError: When the SDK rejects the key or the rule.
    """
    try:
        if isinstance(rule, str):
            token = generate_queue_sas(
                account_name=account_name,
                queue_name=queue_name,
                account_key=account_key,
                policy_id=rule,
            )
        else:
            token = generate_queue_sas(
                account_name=account_name,
                queue_name=queue_name,
                account_key=account_key,
                permission=rule.permission,
                expiry=rule.expiry,
                start=rule.start,
            )
    except (TypeError, ValueError) as exc:
        raise SigningError(queue_name=queue_name, reason=str(exc)) from exc

    logger.debug(
        "Signed SAS token for queue=%s using %s",
        queue_name,
        f"policy {rule!r}" if isinstance(rule, str) else "ad-hoc rule",
    )
    return token


__all__ = ["QueueHandle", "sign_with_account_key"]
