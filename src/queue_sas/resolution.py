"""Queue handle resolution.

:class:`QueueHandleResolver` turns caller input into a
:class:`~queue_sas.handles.base.QueueHandle`:

* :meth:`~QueueHandleResolver.resolve` — account identity + queue name, for
  issuing tokens;
* :meth:`~QueueHandleResolver.resolve_by_endpoint` — queue URL + SAS token,
  for verifying tokens.

Both entry points validate their input and raise
:class:`~queue_sas.core.exceptions.ResolutionError` on malformed values.
Neither makes a remote call; whether the queue exists is discovered when the
handle is first used.

Extension pattern::

    class EmulatorResolver(QueueHandleResolver):
        def _build_account_handle(self, identity, queue_name):
            return InMemoryQueueHandle(queue_name, identity.name,
                                       identity.key.get_secret_value())
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from queue_sas.core.config import QueueSasSettings
from queue_sas.core.exceptions import ResolutionError
from queue_sas.handles.azure import AzureQueueHandle
from queue_sas.utils.validation import (
    queue_name_from_url,
    validate_account_key,
    validate_account_name,
    validate_queue_name,
    validate_sas_token,
    validate_url,
)

if TYPE_CHECKING:
    from queue_sas.core.types import AccountIdentity
    from queue_sas.handles.base import QueueHandle

logger = logging.getLogger(__name__)


class QueueHandleResolver:
    """Build queue handles from account identities or endpoints.

    Args:
        settings: Endpoint and probe settings.  Defaults to
            ``QueueSasSettings()`` (environment / ``.env``).
    """

    def __init__(self, settings: QueueSasSettings | None = None) -> None:
        self._settings = settings or QueueSasSettings()

    @property
    def settings(self) -> QueueSasSettings:
        return self._settings

    def resolve(self, identity: AccountIdentity, queue_name: str) -> QueueHandle:
        """Return a key-authenticated handle for *queue_name*.

        Raises:
            ResolutionError: When the account name, account key or queue name
                is malformed.
        """
        if not validate_account_name(identity.name):
            raise ResolutionError(
                reason="Account name must be 3-24 lowercase letters or digits.",
                field="account_name",
            )
        if not validate_account_key(identity.key.get_secret_value()):
            raise ResolutionError(
                reason="Account key must be a non-empty base64 string.",
                field="account_key",
            )
        self._check_queue_name(queue_name)

        logger.debug("Resolving queue %s in account %s", queue_name, identity.name)
        return self._build_account_handle(identity, queue_name)

    def resolve_by_endpoint(self, endpoint: str, token: str) -> QueueHandle:
        """Return a handle for the queue at *endpoint* authenticated by *token*.

        Args:
            endpoint: Absolute queue URL, e.g.
                ``https://acct.queue.core.windows.net/orders``.
            token: SAS token; a leading ``?`` is ignored.

        Raises:
            ResolutionError: When *endpoint* is not an absolute http(s) queue
                URL or *token* is empty or not a signed SAS query string.
        """
        url = (endpoint or "").strip().rstrip("/")
        if not validate_url(url):
            raise ResolutionError(
                reason="Endpoint must be an absolute http(s) URI.",
                field="endpoint",
            )
        if urlsplit(url).query:
            raise ResolutionError(
                reason="Endpoint must not carry a query string; pass the SAS token separately.",
                field="endpoint",
            )
        self._check_queue_name(queue_name_from_url(url), field="endpoint")

        sas_token = (token or "").strip().lstrip("?")
        if not sas_token:
            raise ResolutionError(reason="SAS token must not be empty.", field="token")
        if not validate_sas_token(sas_token):
            raise ResolutionError(
                reason="SAS token must be a query string carrying a 'sig' parameter.",
                field="token",
            )

        logger.debug("Resolving token-bound handle for %s", url)
        return self._build_token_handle(url, sas_token)

    ###################
    # Handle builders #
    ###################

    def _build_account_handle(self, identity: AccountIdentity, queue_name: str) -> QueueHandle:
        return AzureQueueHandle.from_account(
            self._settings.get_account_url(identity.name),
            queue_name,
            identity,
            probe_mode=self._settings.probe_mode,
            probe_visibility_timeout=self._settings.probe_visibility_timeout,
        )

    def _build_token_handle(self, queue_url: str, sas_token: str) -> QueueHandle:
        return AzureQueueHandle.from_queue_url(
            queue_url,
            sas_token,
            probe_mode=self._settings.probe_mode,
            probe_visibility_timeout=self._settings.probe_visibility_timeout,
        )

    @staticmethod
    def _check_queue_name(queue_name: str, field: str = "queue_name") -> None:
        if not validate_queue_name(queue_name):
            raise ResolutionError(
                reason=(
                    "Queue name must be 3-63 characters of lowercase letters, digits "
                    "and single hyphens, starting and ending with a letter or digit."
                ),
                field=field,
                details={"queue_name": queue_name},
            )


__all__ = ["QueueHandleResolver"]
