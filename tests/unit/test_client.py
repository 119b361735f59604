"""Unit tests for the SCF API client."""

import json
from datetime import datetime, timezone

import httpx
import pytest
from pydantic import SecretStr

from scf_reconciler.clients.exceptions import (
    APIError,
    AuthenticationError,
    ConfigurationError,
    ConflictError,
    NetworkError,
    RateLimitError,
    ResourceNotFoundError,
    ServerError,
)
from scf_reconciler.clients.models import (
    ApplyOrganizationQuotaPayload,
    CreateOrganizationPayload,
    UpdateOrganizationPayload,
)
from scf_reconciler.clients.scf import SCFClient
from tests.conftest import ORG_ID, PLATFORM_ID, PROJECT_ID, QUOTA_ID, REGION, USER_ID

API_URL = "https://scf.test"
SCOPE = f"/v1/projects/{PROJECT_ID}/regions/{REGION}"


class RecordingHandler:
    """MockTransport handler that records requests and replays one response."""

    def __init__(self, response: httpx.Response):
        self.response = response
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def make_client(handler) -> SCFClient:
    return SCFClient(
        service_account_token=SecretStr("test-token"),
        api_url=API_URL,
        transport=httpx.MockTransport(handler),
    )


class TestSCFClient:
    """Test SCFClient requests and responses."""

    def test_empty_token_is_rejected(self):
        with pytest.raises(ConfigurationError):
            SCFClient(service_account_token=SecretStr("  "))

    def test_get_organization(self):
        handler = RecordingHandler(httpx.Response(200, json={
            "guid": ORG_ID,
            "name": "acme",
            "platformId": PLATFORM_ID,
            "projectId": PROJECT_ID,
            "quotaId": QUOTA_ID,
            "suspended": False,
            "createdAt": "2024-05-01T12:00:00Z",
        }))

        with make_client(handler) as client:
            organization = client.get_organization(PROJECT_ID, REGION, ORG_ID)

        request = handler.last
        assert request.method == "GET"
        assert request.url.path == f"{SCOPE}/organizations/{ORG_ID}"
        assert request.headers["Authorization"] == "Bearer test-token"
        assert organization.guid == ORG_ID
        assert organization.quota_id == QUOTA_ID
        assert organization.suspended is False
        assert organization.created_at == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        assert organization.status is None

    def test_create_organization_sends_camel_case_payload(self):
        handler = RecordingHandler(httpx.Response(201, json={"guid": ORG_ID}))

        with make_client(handler) as client:
            created = client.create_organization(
                PROJECT_ID, REGION, CreateOrganizationPayload(name="acme", platform_id=PLATFORM_ID)
            )

        assert handler.last.method == "POST"
        assert handler.last.url.path == f"{SCOPE}/organizations"
        assert json.loads(handler.last.content) == {"name": "acme", "platformId": PLATFORM_ID}
        assert created.guid == ORG_ID

    def test_update_organization_omits_unset_fields(self):
        handler = RecordingHandler(httpx.Response(204))

        with make_client(handler) as client:
            result = client.update_organization(
                PROJECT_ID, REGION, ORG_ID, UpdateOrganizationPayload(suspended=True)
            )

        assert handler.last.method == "PATCH"
        assert json.loads(handler.last.content) == {"suspended": True}
        assert result is None

    def test_apply_organization_quota(self):
        handler = RecordingHandler(httpx.Response(200, json={"orgId": ORG_ID, "quotaId": QUOTA_ID}))

        with make_client(handler) as client:
            result = client.apply_organization_quota(
                PROJECT_ID, REGION, ORG_ID, ApplyOrganizationQuotaPayload(quota_id=QUOTA_ID)
            )

        assert handler.last.method == "PUT"
        assert handler.last.url.path == f"{SCOPE}/organizations/{ORG_ID}/quota"
        assert json.loads(handler.last.content) == {"quotaId": QUOTA_ID}
        assert result.quota_id == QUOTA_ID

    def test_create_org_manager_returns_password(self):
        handler = RecordingHandler(httpx.Response(201, json={
            "guid": USER_ID,
            "orgId": ORG_ID,
            "username": "manager-acme",
            "password": "s3cret",
        }))

        with make_client(handler) as client:
            manager = client.create_org_manager(PROJECT_ID, REGION, ORG_ID)

        assert handler.last.method == "POST"
        assert handler.last.url.path == f"{SCOPE}/organizations/{ORG_ID}/manager"
        assert manager.password == "s3cret"
        assert manager.org_id == ORG_ID

    def test_delete_org_manager(self):
        handler = RecordingHandler(httpx.Response(204))

        with make_client(handler) as client:
            client.delete_org_manager(PROJECT_ID, REGION, ORG_ID)

        assert handler.last.method == "DELETE"
        assert handler.last.url.path == f"{SCOPE}/organizations/{ORG_ID}/manager"

    def test_get_platform(self):
        handler = RecordingHandler(httpx.Response(200, json={
            "guid": PLATFORM_ID,
            "displayName": "Cloud Foundry eu01",
            "apiUrl": "https://api.example",
        }))

        with make_client(handler) as client:
            platform = client.get_platform(PROJECT_ID, REGION, PLATFORM_ID)

        assert handler.last.url.path == f"{SCOPE}/platforms/{PLATFORM_ID}"
        assert platform.display_name == "Cloud Foundry eu01"
        assert platform.api_url == "https://api.example"

    def test_unexpected_response_shape_is_api_error(self):
        handler = RecordingHandler(httpx.Response(200, json={"guid": ["not", "a", "string"]}))

        with make_client(handler) as client:
            with pytest.raises(APIError, match="Unexpected Organization response"):
                client.get_organization(PROJECT_ID, REGION, ORG_ID)

    def test_invalid_json_is_api_error(self):
        handler = RecordingHandler(httpx.Response(200, content=b"not json"))

        with make_client(handler) as client:
            with pytest.raises(APIError, match="Failed to parse JSON response"):
                client.get_organization(PROJECT_ID, REGION, ORG_ID)


class TestErrorMapping:
    """Test mapping of unsuccessful responses to typed errors."""

    @pytest.mark.parametrize("status,error_type", [
        (401, AuthenticationError),
        (404, ResourceNotFoundError),
        (409, ConflictError),
        (500, ServerError),
        (503, ServerError),
    ])
    def test_status_codes(self, status, error_type):
        handler = RecordingHandler(httpx.Response(status, text="details"))

        with make_client(handler) as client:
            with pytest.raises(error_type) as exc_info:
                client.get_organization(PROJECT_ID, REGION, ORG_ID)

        assert exc_info.value.status_code == status
        assert exc_info.value.response_text == "details"

    def test_rate_limit_carries_retry_after(self):
        handler = RecordingHandler(httpx.Response(429, headers={"Retry-After": "5"}))

        with make_client(handler) as client:
            with pytest.raises(RateLimitError) as exc_info:
                client.delete_organization(PROJECT_ID, REGION, ORG_ID)

        assert exc_info.value.retry_after == 5

    def test_requests_are_not_retried(self):
        handler = RecordingHandler(httpx.Response(503))

        with make_client(handler) as client:
            with pytest.raises(ServerError):
                client.get_organization(PROJECT_ID, REGION, ORG_ID)

            assert len(handler.requests) == 1

    def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with make_client(handler) as client:
            with pytest.raises(NetworkError, match="connection refused"):
                client.get_organization(PROJECT_ID, REGION, ORG_ID)


class TestClientDouble:
    """Test the shared mock client matches the real client surface."""

    def test_unknown_method_is_rejected(self, scf_client):
        with pytest.raises(AttributeError):
            scf_client.update_org_manager

    def test_known_methods_are_available(self, scf_client):
        assert scf_client.get_organization(PROJECT_ID, REGION, ORG_ID).guid == ORG_ID
        scf_client.close()
