"""In-memory queue handle for testing and local development.

Warning:
    Policies live in a Python dict and are **lost when the
    process exits**.  Use this backend for unit tests and demos only.

Design notes
------------
- Signing is real: tokens come from the Azure SDK's ``generate_queue_sas``
  with the supplied account key, so they look exactly like service tokens.
- ``probe`` emulates the service's authorization checks for token-bound
  handles: a token naming a stored policy is only honoured while that policy
  exists on the queue; permission letters and expiry are enforced.
- Counters (``read_count``, ``write_count``, ``probe_count``) and the
  ``signed`` list let tests assert exactly which remote calls were made.
- :meth:`InMemoryQueueHandle.with_token` returns a token-bound view that
  shares the same policy set, mirroring two clients of one remote queue.
"""

from __future__ import annotations

from datetime import UTC, datetime
import logging
from typing import TYPE_CHECKING
from urllib.parse import parse_qs

from queue_sas.core.exceptions import (
    AccessDeniedError,
    EndpointUnreachableError,
    RemoteReadError,
    RemoteWriteError,
    SigningError,
)
from queue_sas.core.types import AccessPolicy, ProbeMode
from queue_sas.handles.base import QueueHandle, sign_with_account_key

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)


class InMemoryQueueHandle(QueueHandle):
    """Queue handle whose "remote" state is a local dict.

    Example — pytest fixture::

        @pytest.fixture
        def handle():
            return InMemoryQueueHandle("orders", account_key=KEY)

    Example — seeded policies::

        handle = InMemoryQueueHandle(
            "orders",
            account_key=KEY,
            policies={"consumer": AccessPolicy.process_messages()},
        )

    Args:
        queue_name: Name of the emulated queue.
        account_name: Owning account name.
        account_key: Base64 key used for signing; ``None`` makes the handle
            token-bound (or credential-less).
        sas_token: Credential checked by :meth:`probe` when no key is set.
        policies: Initial stored access policies.
        queue_url: Address reported by the handle.
        reachable: When ``False``, :meth:`probe` raises
            ``EndpointUnreachableError``.
        probe_mode: Permission checked by :meth:`probe` (``p`` or ``r``).
    """

    def __init__(
        self,
        queue_name: str = "orders",
        account_name: str = "devaccount",
        account_key: str | None = None,
        sas_token: str | None = None,
        policies: dict[str, AccessPolicy] | None = None,
        queue_url: str | None = None,
        reachable: bool = True,
        probe_mode: ProbeMode = ProbeMode.RECEIVE,
    ) -> None:
        super().__init__(
            queue_name,
            queue_url or f"https://{account_name}.queue.core.windows.net/{queue_name}",
            account_name,
        )
        self._account_key = account_key
        self._sas_token = sas_token.lstrip("?") if sas_token else None
        self.policies: dict[str, AccessPolicy] = policies if policies is not None else {}
        self.reachable = reachable
        self.probe_mode = probe_mode
        self.fail_reads = False
        self.fail_writes = False
        self.read_count = 0
        self.write_count = 0
        self.probe_count = 0
        self.signed: list[AccessPolicy | str] = []
        self.closed = False

    def with_token(self, sas_token: str) -> InMemoryQueueHandle:
        """Return a token-bound handle sharing this queue's policies."""
        return InMemoryQueueHandle(
            self.queue_name,
            account_name=self.account_name or "devaccount",
            sas_token=sas_token,
            policies=self.policies,
            queue_url=self.queue_url,
            reachable=self.reachable,
            probe_mode=self.probe_mode,
        )

    #####################
    # Policy read/write #
    #####################

    async def read_policies(self) -> dict[str, AccessPolicy]:
        self.read_count += 1
        if self.fail_reads:
            raise RemoteReadError(
                operation="get_queue_access_policy",
                queue_name=self.queue_name,
                reason="simulated read failure",
            )
        return dict(self.policies)

    async def write_policies(self, policies: Mapping[str, AccessPolicy]) -> None:
        self.write_count += 1
        if self.fail_writes:
            raise RemoteWriteError(
                operation="set_queue_access_policy",
                queue_name=self.queue_name,
                reason="simulated write failure",
            )
        # Replace in place so token-bound views see the change.
        self.policies.clear()
        self.policies.update(policies)

    ###########
    # Signing #
    ###########

    def sign(self, rule: AccessPolicy | str) -> str:
        if self._account_key is None:
            raise SigningError(queue_name=self.queue_name, reason="no account key configured")
        token = sign_with_account_key(
            self.account_name or "devaccount",
            self._account_key,
            self.queue_name,
            rule,
        )
        self.signed.append(rule)
        return token

    #########
    # Probe #
    #########

    async def probe(self) -> None:
        self.probe_count += 1
        if not self.reachable:
            raise EndpointUnreachableError("connection refused")
        if self._account_key is None:
            self._authorize_token()
        logger.debug("Probe of in-memory queue %s succeeded", self.queue_name)

    async def close(self) -> None:
        self.closed = True

    def _authorize_token(self) -> None:
        if not self._sas_token:
            raise AccessDeniedError(
                "no credential supplied",
                status_code=401,
                error_code="NoAuthenticationInformation",
            )

        params = {k: v[0] for k, v in parse_qs(self._sas_token).items()}
        if "sig" not in params:
            raise AccessDeniedError(
                "token carries no signature",
                status_code=403,
                error_code="AuthenticationFailed",
            )

        policy_id = params.get("si")
        if policy_id is not None:
            policy = self.policies.get(policy_id)
            if policy is None:
                raise AccessDeniedError(
                    f"stored access policy {policy_id!r} does not exist",
                    status_code=403,
                    error_code="AuthenticationFailed",
                )
            permission = policy.permission or ""
            expiry = policy.expiry
        else:
            permission = params.get("sp", "")
            expiry = datetime.fromisoformat(params["se"]) if "se" in params else None

        required = "r" if self.probe_mode == ProbeMode.PEEK else "p"
        if required not in permission:
            raise AccessDeniedError(
                f"token lacks the {required!r} permission",
                status_code=403,
                error_code="AuthorizationPermissionMismatch",
            )
        if expiry is None or expiry <= datetime.now(UTC):
            raise AccessDeniedError(
                "token is expired",
                status_code=403,
                error_code="AuthenticationFailed",
            )


__all__ = ["InMemoryQueueHandle"]
