"""Shared pytest fixtures for the reconciler tests."""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from scf_reconciler.clients.models import (
    Organization,
    OrganizationCreateResponse,
    OrganizationQuota,
    OrgManager,
    OrgManagerResponse,
    Platform,
)
from scf_reconciler.clients.scf import SCFClient
from scf_reconciler.core.lifecycle import ResourceLifecycle
from scf_reconciler.resources import ORGANIZATION, ORGANIZATION_MANAGER, PLATFORM

REGION = "eu01"
PROJECT_ID = "11111111-1111-4111-8111-111111111111"
ORG_ID = "22222222-2222-4222-8222-222222222222"
PLATFORM_ID = "33333333-3333-4333-8333-333333333333"
QUOTA_ID = "44444444-4444-4444-8444-444444444444"
OTHER_QUOTA_ID = "55555555-5555-4555-8555-555555555555"
USER_ID = "66666666-6666-4666-8666-666666666666"

CREATED_AT = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
UPDATED_AT = datetime(2024, 5, 2, 12, 0, tzinfo=timezone.utc)


def make_organization(**overrides) -> Organization:
    """Organization response as returned by the get endpoint."""
    data = {
        "guid": ORG_ID,
        "name": "acme",
        "platform_id": PLATFORM_ID,
        "project_id": PROJECT_ID,
        "quota_id": QUOTA_ID,
        "region": REGION,
        "status": "created",
        "suspended": False,
        "created_at": CREATED_AT,
        "updated_at": UPDATED_AT,
    }
    data.update(overrides)
    return Organization(**data)


def make_org_manager(**overrides) -> OrgManager:
    data = {
        "guid": USER_ID,
        "org_id": ORG_ID,
        "platform_id": PLATFORM_ID,
        "project_id": PROJECT_ID,
        "region": REGION,
        "username": "manager-acme",
        "created_at": CREATED_AT,
        "updated_at": UPDATED_AT,
    }
    data.update(overrides)
    return OrgManager(**data)


def make_org_manager_create_response(**overrides) -> OrgManagerResponse:
    data = make_org_manager().model_dump()
    data["password"] = "s3cret"
    data.update(overrides)
    return OrgManagerResponse(**data)


def make_platform(**overrides) -> Platform:
    data = {
        "guid": PLATFORM_ID,
        "system_id": "01.cf.eu01",
        "display_name": "Cloud Foundry eu01",
        "region": REGION,
        "api_url": "https://api.system.01.cf.eu01.stackit.cloud",
        "console_url": "https://console.apps.01.cf.eu01.stackit.cloud",
    }
    data.update(overrides)
    return Platform(**data)


@pytest.fixture
def scf_client():
    """Mock SCF client whose read calls return a healthy organization."""
    client = Mock(spec=SCFClient)
    client.create_organization = Mock(return_value=OrganizationCreateResponse(guid=ORG_ID))
    client.get_organization = Mock(return_value=make_organization())
    client.update_organization = Mock(return_value=None)
    client.apply_organization_quota = Mock(return_value=None)
    client.delete_organization = Mock(return_value=None)
    client.create_org_manager = Mock(return_value=make_org_manager_create_response())
    client.get_org_manager = Mock(return_value=make_org_manager())
    client.delete_org_manager = Mock(return_value=None)
    client.get_platform = Mock(return_value=make_platform())
    return client


@pytest.fixture
def organization_lifecycle(scf_client):
    return ResourceLifecycle(ORGANIZATION, scf_client, REGION)


@pytest.fixture
def manager_lifecycle(scf_client):
    return ResourceLifecycle(ORGANIZATION_MANAGER, scf_client, REGION)


@pytest.fixture
def platform_lifecycle(scf_client):
    return ResourceLifecycle(PLATFORM, scf_client, REGION)


@pytest.fixture
def quota_response():
    return OrganizationQuota(org_id=ORG_ID, quota_id=OTHER_QUOTA_ID, updated_at=UPDATED_AT)
