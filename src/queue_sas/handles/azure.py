"""Azure Storage queue handle backed by ``azure.storage.queue.aio.QueueClient``.

Two credential modes are supported, matching the two resolver entry points:

* **Account key** (:meth:`AzureQueueHandle.from_account`) — can read and
  write stored access policies and sign tokens.
* **SAS token** (:meth:`AzureQueueHandle.from_queue_url`) — used by the
  verifier; can only probe.  ``sign`` raises ``SigningError``.

Constructing a handle performs no I/O; the queue's existence and the
credential's validity are only discovered on first use.

Error mapping
-------------
``azure.core.exceptions`` are translated at this boundary so the core never
sees SDK types:

=========================================  ==============================
SDK exception                              raised as
=========================================  ==============================
any ``AzureError`` on policy read          ``RemoteReadError``
any ``AzureError`` on policy write         ``RemoteWriteError``
``ClientAuthenticationError`` on probe     ``AccessDeniedError``
other 4xx ``HttpResponseError`` on probe   ``AccessDeniedError``
408 / 429 on probe                         ``EndpointUnreachableError``
``ResourceNotFoundError`` on probe         ``EndpointUnreachableError``
5xx / transport errors on probe            ``EndpointUnreachableError``
=========================================  ==============================
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from azure.core.credentials import AzureNamedKeyCredential, AzureSasCredential
from azure.core.exceptions import (
    AzureError,
    ClientAuthenticationError,
    HttpResponseError,
    ResourceNotFoundError,
)
from azure.storage.queue import AccessPolicy as SdkAccessPolicy
from azure.storage.queue.aio import QueueClient

from queue_sas.core.exceptions import (
    AccessDeniedError,
    EndpointUnreachableError,
    QueueSasError,
    RemoteReadError,
    RemoteWriteError,
    SigningError,
)
from queue_sas.core.types import AccessPolicy, ProbeMode
from queue_sas.handles.base import QueueHandle, sign_with_account_key

if TYPE_CHECKING:
    from collections.abc import Mapping

    from queue_sas.core.types import AccountIdentity

logger = logging.getLogger(__name__)

# Request Timeout and Too Many Requests say nothing about the credential.
_TRANSIENT_STATUS_CODES = frozenset({408, 429})


class AzureQueueHandle(QueueHandle):
    """Queue handle talking to Azure Storage (or a compatible emulator).

    Args:
        client: Async ``QueueClient`` bound to the target queue.
        queue_url: Queue address without any query string.
        account_name: Storage account name, when known.
        account_key: Account key used by :meth:`sign`; ``None`` for
            token-bound handles.
        probe_mode: Operation performed by :meth:`probe`.
        probe_visibility_timeout: Seconds a message received by a
            ``RECEIVE`` probe stays hidden.
    """

    def __init__(
        self,
        client: QueueClient,
        queue_url: str,
        account_name: str | None = None,
        account_key: str | None = None,
        probe_mode: ProbeMode = ProbeMode.RECEIVE,
        probe_visibility_timeout: int = 1,
    ) -> None:
        super().__init__(client.queue_name, queue_url, account_name)
        self._client = client
        self._account_key = account_key
        self._probe_mode = probe_mode
        self._probe_visibility_timeout = probe_visibility_timeout
        logger.debug(
            "AzureQueueHandle queue=%s url=%s signing=%s",
            self.queue_name,
            queue_url,
            account_key is not None,
        )

    ################
    # Constructors #
    ################

    @classmethod
    def from_account(
        cls,
        account_url: str,
        queue_name: str,
        identity: AccountIdentity,
        **kwargs: Any,
    ) -> AzureQueueHandle:
        """Build a key-authenticated handle for *queue_name* under *account_url*."""
        key = identity.key.get_secret_value()
        client = QueueClient(
            account_url=account_url,
            queue_name=queue_name,
            credential=AzureNamedKeyCredential(identity.name, key),
        )
        return cls(
            client,
            queue_url=f"{account_url.rstrip('/')}/{queue_name}",
            account_name=identity.name,
            account_key=key,
            **kwargs,
        )

    @classmethod
    def from_queue_url(
        cls,
        queue_url: str,
        sas_token: str,
        **kwargs: Any,
    ) -> AzureQueueHandle:
        """Build a handle that authenticates with *sas_token* against *queue_url*.

        The client makes a single attempt per call: a verification probe must
        not be retried.
        """
        client = QueueClient.from_queue_url(
            queue_url,
            credential=AzureSasCredential(sas_token),
            retry_total=0,
        )
        return cls(client, queue_url=queue_url, account_name=client.account_name, **kwargs)

    #####################
    # Policy read/write #
    #####################

    async def read_policies(self) -> dict[str, AccessPolicy]:
        try:
            identifiers = await self._client.get_queue_access_policy()
        except AzureError as exc:
            raise RemoteReadError(
                operation="get_queue_access_policy",
                queue_name=self.queue_name,
                reason=_describe(exc),
                details=_error_details(exc),
            ) from exc

        policies = {name: _from_sdk(policy) for name, policy in identifiers.items()}
        logger.debug("Queue %s has %d stored access policies", self.queue_name, len(policies))
        return policies

    async def write_policies(self, policies: Mapping[str, AccessPolicy]) -> None:
        signed_identifiers = {
            name: SdkAccessPolicy(
                permission=policy.permission,
                expiry=policy.expiry,
                start=policy.start,
            )
            for name, policy in policies.items()
        }
        try:
            await self._client.set_queue_access_policy(signed_identifiers=signed_identifiers)
        except (AzureError, ValueError) as exc:
            # ValueError: the SDK refuses more than five policies per queue.
            raise RemoteWriteError(
                operation="set_queue_access_policy",
                queue_name=self.queue_name,
                reason=_describe(exc),
                details=_error_details(exc),
            ) from exc
        logger.debug("Stored %d access policies on queue %s", len(policies), self.queue_name)

    ###########
    # Signing #
    ###########

    def sign(self, rule: AccessPolicy | str) -> str:
        if self._account_key is None or self.account_name is None:
            raise SigningError(
                queue_name=self.queue_name,
                reason="handle is authenticated with a SAS token, not an account key",
            )
        return sign_with_account_key(self.account_name, self._account_key, self.queue_name, rule)

    #########
    # Probe #
    #########

    async def probe(self) -> None:
        logger.debug("Probing queue %s with %s", self.queue_name, self._probe_mode)
        try:
            if self._probe_mode == ProbeMode.PEEK:
                await self._client.peek_messages(max_messages=1)
            else:
                await self._client.receive_message(
                    visibility_timeout=self._probe_visibility_timeout,
                )
        except AzureError as exc:
            raise classify_probe_error(exc) from exc

    async def close(self) -> None:
        await self._client.close()


###########
# Helpers #
###########


def classify_probe_error(exc: AzureError) -> QueueSasError:
    """Map an SDK exception raised by a probe to an access or reachability error."""
    reason = _describe(exc)
    status_code = getattr(exc, "status_code", None)
    error_code = getattr(exc, "error_code", None)

    if isinstance(exc, ResourceNotFoundError):
        return EndpointUnreachableError(reason, status_code=status_code, error_code=error_code)
    if isinstance(exc, ClientAuthenticationError):
        return AccessDeniedError(reason, status_code=status_code, error_code=error_code)
    if status_code in _TRANSIENT_STATUS_CODES:
        return EndpointUnreachableError(reason, status_code=status_code, error_code=error_code)
    if isinstance(exc, HttpResponseError) and status_code is not None and 400 <= status_code < 500:
        return AccessDeniedError(reason, status_code=status_code, error_code=error_code)
    return EndpointUnreachableError(reason, status_code=status_code, error_code=error_code)


def _from_sdk(policy: SdkAccessPolicy | None) -> AccessPolicy:
    if policy is None:
        return AccessPolicy()
    permission = policy.permission
    return AccessPolicy(
        permission=str(permission) if permission is not None else None,
        expiry=policy.expiry,
        start=policy.start,
    )


def _describe(exc: Exception) -> str:
    """Return the first line of *exc*'s message (storage errors append request ids)."""
    text = str(exc).strip()
    return text.splitlines()[0] if text else type(exc).__name__


def _error_details(exc: Exception) -> dict[str, Any]:
    details: dict[str, Any] = {"error_type": type(exc).__name__}
    status_code = getattr(exc, "status_code", None)
    if status_code is not None:
        details["status_code"] = status_code
    error_code = getattr(exc, "error_code", None)
    if error_code:
        details["error_code"] = str(error_code)
    return details


__all__ = ["AzureQueueHandle", "classify_probe_error"]
