"""Wire models for the SCF API.

Every response field is optional: some response shapes omit fields (the
organization manager read response has no password, the create response of
an organization only carries its guid). Presence checks are the job of the
state mapper, not of these models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for SCF payloads and responses (camelCase on the wire)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_wire(self) -> dict:
        """Serialize for a request body, dropping fields that were not set."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# Responses

class OrganizationCreateResponse(WireModel):
    guid: Optional[str] = None


class Organization(WireModel):
    """An SCF organization as returned by get/update calls."""

    guid: Optional[str] = None
    name: Optional[str] = None
    platform_id: Optional[str] = None
    project_id: Optional[str] = None
    quota_id: Optional[str] = None
    region: Optional[str] = None
    status: Optional[str] = None
    suspended: Optional[bool] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class OrganizationQuota(WireModel):
    """Result of assigning a quota to an organization."""

    org_id: Optional[str] = None
    quota_id: Optional[str] = None
    updated_at: Optional[datetime] = None


class OrgManager(WireModel):
    """An organization manager user as returned by the read endpoint."""

    guid: Optional[str] = None
    org_id: Optional[str] = None
    platform_id: Optional[str] = None
    project_id: Optional[str] = None
    region: Optional[str] = None
    username: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class OrgManagerResponse(OrgManager):
    """Create response of an organization manager; carries the generated password."""

    password: Optional[str] = None


class Platform(WireModel):
    guid: Optional[str] = None
    system_id: Optional[str] = None
    display_name: Optional[str] = None
    region: Optional[str] = None
    api_url: Optional[str] = None
    console_url: Optional[str] = None


# Payloads

class CreateOrganizationPayload(WireModel):
    name: Optional[str] = None
    platform_id: Optional[str] = None


class UpdateOrganizationPayload(WireModel):
    name: Optional[str] = None
    suspended: Optional[bool] = None


class ApplyOrganizationQuotaPayload(WireModel):
    quota_id: Optional[str] = None
