"""Unit tests — queue_sas.handles.azure

The SDK client is replaced by a ``MagicMock`` with ``AsyncMock`` methods;
SDK exceptions are real ``azure.core.exceptions`` instances.

Verified:
* from_account / from_queue_url build handles without I/O
* Token-bound clients carry the token as a SAS credential and never retry
* read_policies converts SDK policies; SDK errors → RemoteReadError
* write_policies sends every policy; SDK errors → RemoteWriteError
* sign works only for key-bound handles
* probe uses receive or peek; failures are classified
* classify_probe_error mapping table
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

from azure.core.credentials import AzureSasCredential
from azure.core.exceptions import (
    ClientAuthenticationError,
    HttpResponseError,
    ResourceNotFoundError,
    ServiceRequestError,
)
from azure.storage.queue import AccessPolicy as SdkAccessPolicy
from azure.storage.queue.aio import QueueClient
import pytest

from queue_sas.core.exceptions import (
    AccessDeniedError,
    EndpointUnreachableError,
    RemoteReadError,
    RemoteWriteError,
    SigningError,
)
from queue_sas.core.types import NEVER_EXPIRES, AccessPolicy, ProbeMode
from queue_sas.handles.azure import AzureQueueHandle, classify_probe_error

pytestmark = pytest.mark.unit


def _http_error(cls, message: str, status_code: int, error_code: str | None = None):
    exc = cls(message=message)
    exc.status_code = status_code
    exc.error_code = error_code
    return exc


@pytest.fixture
def client() -> MagicMock:
    c = MagicMock()
    c.queue_name = "orders"
    c.get_queue_access_policy = AsyncMock(return_value={})
    c.set_queue_access_policy = AsyncMock(return_value=None)
    c.receive_message = AsyncMock(return_value=None)
    c.peek_messages = AsyncMock(return_value=[])
    c.close = AsyncMock(return_value=None)
    return c


@pytest.fixture
def azure_handle(client, account_key, queue_url) -> AzureQueueHandle:
    return AzureQueueHandle(client, queue_url, account_name="devaccount", account_key=account_key)


# ────────────────────────────── Constructors ─────────────────────────────────


class TestConstructors:
    @pytest.mark.asyncio
    async def test_from_account(self, identity):
        h = AzureQueueHandle.from_account(
            "https://devaccount.queue.core.windows.net/",
            "orders",
            identity,
        )
        try:
            assert h.queue_name == "orders"
            assert h.queue_url == "https://devaccount.queue.core.windows.net/orders"
            assert h.account_name == "devaccount"
        finally:
            await h.close()

    @pytest.mark.asyncio
    async def test_from_account_can_sign(self, identity):
        h = AzureQueueHandle.from_account("https://devaccount.queue.core.windows.net", "orders", identity)
        try:
            assert "si=p1" in h.sign("p1")
        finally:
            await h.close()

    @pytest.mark.asyncio
    async def test_from_queue_url(self, queue_url):
        h = AzureQueueHandle.from_queue_url(queue_url, "sv=2021-08-06&sp=p&sig=abc")
        try:
            assert h.queue_name == "orders"
            assert h.queue_url == queue_url
            assert h.account_name == "devaccount"
        finally:
            await h.close()

    @pytest.mark.asyncio
    async def test_token_bound_cannot_sign(self, queue_url):
        h = AzureQueueHandle.from_queue_url(queue_url, "sv=2021-08-06&sp=p&sig=abc")
        try:
            with pytest.raises(SigningError):
                h.sign(AccessPolicy.process_messages())
        finally:
            await h.close()

    def test_from_queue_url_binds_sas_credential(self, client, queue_url, monkeypatch):
        from_url = MagicMock(return_value=client)
        monkeypatch.setattr(QueueClient, "from_queue_url", from_url)
        AzureQueueHandle.from_queue_url(queue_url, "sv=2021-08-06&sp=p&sig=abc")
        credential = from_url.call_args.kwargs["credential"]
        assert isinstance(credential, AzureSasCredential)
        assert credential.signature == "sv=2021-08-06&sp=p&sig=abc"
        assert from_url.call_args.kwargs["retry_total"] == 0

    @pytest.mark.asyncio
    async def test_from_queue_url_single_attempt(self, queue_url):
        h = AzureQueueHandle.from_queue_url(queue_url, "sv=2021-08-06&sp=p&sig=abc")
        try:
            assert h._client._config.retry_policy.total_retries == 0
        finally:
            await h.close()

    def test_probe_settings_forwarded(self, client, queue_url):
        h = AzureQueueHandle(client, queue_url, probe_mode=ProbeMode.PEEK, probe_visibility_timeout=5)
        assert h._probe_mode == ProbeMode.PEEK
        assert h._probe_visibility_timeout == 5


# ────────────────────────────── read_policies ────────────────────────────────


class TestReadPolicies:
    @pytest.mark.asyncio
    async def test_converts_sdk_policies(self, azure_handle, client):
        client.get_queue_access_policy.return_value = {
            "p1": SdkAccessPolicy(permission="p", expiry=NEVER_EXPIRES),
            "bare": None,
        }
        policies = await azure_handle.read_policies()
        assert policies == {
            "p1": AccessPolicy(permission="p", expiry=NEVER_EXPIRES),
            "bare": AccessPolicy(),
        }

    @pytest.mark.asyncio
    async def test_empty(self, azure_handle):
        assert await azure_handle.read_policies() == {}

    @pytest.mark.asyncio
    async def test_sdk_error(self, azure_handle, client):
        client.get_queue_access_policy.side_effect = _http_error(
            HttpResponseError, "Server busy\nRequestId:1", 503, "ServerBusy"
        )
        with pytest.raises(RemoteReadError) as exc_info:
            await azure_handle.read_policies()
        err = exc_info.value
        assert err.operation == "get_queue_access_policy"
        assert err.reason == "Server busy"
        assert err.details["status_code"] == 503
        assert err.details["error_code"] == "ServerBusy"
        assert isinstance(err.__cause__, HttpResponseError)


# ───────────────────────────── write_policies ────────────────────────────────


class TestWritePolicies:
    @pytest.mark.asyncio
    async def test_sends_all_policies(self, azure_handle, client):
        await azure_handle.write_policies(
            {
                "p1": AccessPolicy.process_messages(),
                "p2": AccessPolicy(permission="r", expiry=NEVER_EXPIRES),
            }
        )
        sent = client.set_queue_access_policy.await_args.kwargs["signed_identifiers"]
        assert set(sent) == {"p1", "p2"}
        assert sent["p1"].permission == "p"
        assert sent["p1"].expiry == NEVER_EXPIRES
        assert sent["p2"].permission == "r"

    @pytest.mark.asyncio
    async def test_sdk_error(self, azure_handle, client):
        client.set_queue_access_policy.side_effect = _http_error(
            HttpResponseError, "Forbidden", 403, "AuthorizationFailure"
        )
        with pytest.raises(RemoteWriteError) as exc_info:
            await azure_handle.write_policies({"p1": AccessPolicy.process_messages()})
        assert exc_info.value.operation == "set_queue_access_policy"

    @pytest.mark.asyncio
    async def test_too_many_policies(self, azure_handle, client):
        client.set_queue_access_policy.side_effect = ValueError(
            "Too many access policies provided. The server does not support setting more than 5"
        )
        with pytest.raises(RemoteWriteError) as exc_info:
            await azure_handle.write_policies({})
        assert exc_info.value.details == {"error_type": "ValueError"}


# ───────────────────────────────── Probe ─────────────────────────────────────


class TestProbe:
    @pytest.mark.asyncio
    async def test_receive_is_default(self, azure_handle, client):
        await azure_handle.probe()
        client.receive_message.assert_awaited_once_with(visibility_timeout=1)
        client.peek_messages.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_peek(self, client, queue_url):
        h = AzureQueueHandle(client, queue_url, probe_mode=ProbeMode.PEEK)
        await h.probe()
        client.peek_messages.assert_awaited_once_with(max_messages=1)
        client.receive_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_denied(self, azure_handle, client):
        client.receive_message.side_effect = _http_error(
            ClientAuthenticationError, "Signature did not match", 403, "AuthenticationFailed"
        )
        with pytest.raises(AccessDeniedError) as exc_info:
            await azure_handle.probe()
        assert exc_info.value.status_code == 403
        assert exc_info.value.error_code == "AuthenticationFailed"

    @pytest.mark.asyncio
    async def test_unreachable(self, azure_handle, client):
        client.receive_message.side_effect = ServiceRequestError("Cannot connect to host")
        with pytest.raises(EndpointUnreachableError) as exc_info:
            await azure_handle.probe()
        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_close(self, azure_handle, client):
        async with azure_handle:
            pass
        client.close.assert_awaited_once()


# ────────────────────────── classify_probe_error() ───────────────────────────


class TestClassifyProbeError:
    def test_authentication_failed(self):
        exc = _http_error(ClientAuthenticationError, "denied", 403, "AuthenticationFailed")
        assert isinstance(classify_probe_error(exc), AccessDeniedError)

    def test_permission_mismatch(self):
        exc = _http_error(HttpResponseError, "mismatch", 403, "AuthorizationPermissionMismatch")
        err = classify_probe_error(exc)
        assert isinstance(err, AccessDeniedError)
        assert err.error_code == "AuthorizationPermissionMismatch"

    def test_queue_not_found(self):
        exc = _http_error(ResourceNotFoundError, "The specified queue does not exist.", 404, "QueueNotFound")
        err = classify_probe_error(exc)
        assert isinstance(err, EndpointUnreachableError)
        assert err.status_code == 404

    def test_server_error(self):
        exc = _http_error(HttpResponseError, "Server busy", 503, "ServerBusy")
        assert isinstance(classify_probe_error(exc), EndpointUnreachableError)

    @pytest.mark.parametrize(("status_code", "error_code"), [(408, "OperationTimedOut"), (429, "ServerBusy")])
    def test_timeout_and_throttling(self, status_code, error_code):
        exc = _http_error(HttpResponseError, "try again later", status_code, error_code)
        err = classify_probe_error(exc)
        assert isinstance(err, EndpointUnreachableError)
        assert err.status_code == status_code

    def test_transport_error(self):
        err = classify_probe_error(ServiceRequestError("Name or service not known"))
        assert isinstance(err, EndpointUnreachableError)
        assert err.reason == "Name or service not known"
