"""Shared pytest fixtures for the queue-sas test suite.

Hierarchy
---------
account_key         base64 key accepted by the SDK signer
identity            AccountIdentity for the "devaccount" account
queue_url           hosted address of the "orders" queue
handle              fresh key-bound InMemoryQueueHandle for queue "orders"
settings            QueueSasSettings with explicit values (no env leakage)
make_resolver       the InMemoryResolver class, for custom settings
memory_resolver     QueueHandleResolver producing in-memory handles that share
                    one policy set per queue name
service             SasTokenService wired to memory_resolver
"""

from __future__ import annotations

import base64
import os

import pytest

from queue_sas.core.config import QueueSasSettings
from queue_sas.core.types import AccessPolicy, AccountIdentity
from queue_sas.handles.memory import InMemoryQueueHandle
from queue_sas.resolution import QueueHandleResolver
from queue_sas.service import SasTokenService
from queue_sas.utils.validation import queue_name_from_url

ACCOUNT_NAME = "devaccount"
ACCOUNT_KEY = base64.b64encode(b"queue-sas-test-key-" * 3).decode()
QUEUE_URL = f"https://{ACCOUNT_NAME}.queue.core.windows.net/orders"


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep QUEUE_SAS_* variables from the developer's shell out of the tests."""
    for name in list(os.environ):
        if name.upper().startswith("QUEUE_SAS_"):
            monkeypatch.delenv(name)


##############
# Identities #
##############


@pytest.fixture
def account_key() -> str:
    return ACCOUNT_KEY


@pytest.fixture
def identity() -> AccountIdentity:
    return AccountIdentity(name=ACCOUNT_NAME, key=ACCOUNT_KEY)


@pytest.fixture
def queue_url() -> str:
    return QUEUE_URL


###########
# Handles #
###########


@pytest.fixture
def handle() -> InMemoryQueueHandle:
    return InMemoryQueueHandle("orders", ACCOUNT_NAME, account_key=ACCOUNT_KEY)


class InMemoryResolver(QueueHandleResolver):
    """Resolver whose handles are in-memory views over shared per-queue policy sets."""

    def __init__(self, settings: QueueSasSettings | None = None) -> None:
        super().__init__(settings or QueueSasSettings(_env_file=None))
        self.policy_sets: dict[str, dict[str, AccessPolicy]] = {}
        self.handles: list[InMemoryQueueHandle] = []
        self.unreachable = False

    def policies(self, queue_name: str) -> dict[str, AccessPolicy]:
        return self.policy_sets.setdefault(queue_name, {})

    def _build_account_handle(self, identity, queue_name):
        h = InMemoryQueueHandle(
            queue_name,
            identity.name,
            account_key=identity.key.get_secret_value(),
            policies=self.policies(queue_name),
            probe_mode=self.settings.probe_mode,
        )
        self.handles.append(h)
        return h

    def _build_token_handle(self, queue_url, sas_token):
        h = InMemoryQueueHandle(
            queue_name_from_url(queue_url),
            sas_token=sas_token,
            policies=self.policies(queue_name_from_url(queue_url)),
            queue_url=queue_url,
            reachable=not self.unreachable,
            probe_mode=self.settings.probe_mode,
        )
        self.handles.append(h)
        return h


############
# Settings #
############


@pytest.fixture
def settings() -> QueueSasSettings:
    return QueueSasSettings(_env_file=None)


@pytest.fixture
def make_resolver():
    return InMemoryResolver


@pytest.fixture
def memory_resolver(settings: QueueSasSettings) -> InMemoryResolver:
    return InMemoryResolver(settings)


@pytest.fixture
def service(memory_resolver: InMemoryResolver) -> SasTokenService:
    return SasTokenService(resolver=memory_resolver)
