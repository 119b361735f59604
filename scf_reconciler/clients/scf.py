"""STACKIT Cloud Foundry (SCF) API client."""

from typing import Dict, Optional

import httpx
from pydantic import SecretStr, ValidationError

from scf_reconciler.clients.base import BaseAPIClient
from scf_reconciler.clients.exceptions import APIError, ConfigurationError
from scf_reconciler.clients.models import (
    ApplyOrganizationQuotaPayload,
    CreateOrganizationPayload,
    Organization,
    OrganizationCreateResponse,
    OrganizationQuota,
    OrgManager,
    OrgManagerResponse,
    Platform,
    UpdateOrganizationPayload,
    WireModel,
)


DEFAULT_API_URL = "https://scf.api.stackit.cloud"


class SCFClient(BaseAPIClient):
    """Client for the SCF organization, organization manager and platform endpoints.

    Every call is scoped by project id and region. Calls are blocking and are
    never retried here.
    """

    def __init__(
        self,
        service_account_token: SecretStr,
        api_url: str = DEFAULT_API_URL,
        timeout_seconds: float = 30,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """Initialize the SCF client.

        Args:
            service_account_token: Bearer token of the service account
            api_url: Base URL of the SCF API
            timeout_seconds: Request timeout in seconds
            transport: Optional httpx transport (used by tests)

        Raises:
            ConfigurationError: If the token is empty
        """
        token = service_account_token.get_secret_value()
        if not token or not token.strip():
            raise ConfigurationError("SCF service account token cannot be empty")

        self._token = service_account_token
        self.api_url = api_url
        super().__init__(
            base_url=api_url,
            timeout_seconds=timeout_seconds,
            transport=transport,
        )

    def _get_auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self._token.get_secret_value()}"}

    @staticmethod
    def _scope_path(project_id: str, region: str) -> str:
        return f"/v1/projects/{project_id}/regions/{region}"

    def _parse(self, model: type, data: Optional[dict]) -> Optional[WireModel]:
        if data is None:
            return None
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise APIError(f"Unexpected {model.__name__} response: {e}") from e

    # Organizations

    def create_organization(
        self,
        project_id: str,
        region: str,
        payload: CreateOrganizationPayload,
    ) -> OrganizationCreateResponse:
        data = self.send_json(
            "POST",
            f"{self._scope_path(project_id, region)}/organizations",
            json_data=payload.to_wire(),
        )
        return self._parse(OrganizationCreateResponse, data) or OrganizationCreateResponse()

    def get_organization(self, project_id: str, region: str, org_id: str) -> Organization:
        data = self.get_json(f"{self._scope_path(project_id, region)}/organizations/{org_id}")
        return self._parse(Organization, data)

    def update_organization(
        self,
        project_id: str,
        region: str,
        org_id: str,
        payload: UpdateOrganizationPayload,
    ) -> Optional[Organization]:
        data = self.send_json(
            "PATCH",
            f"{self._scope_path(project_id, region)}/organizations/{org_id}",
            json_data=payload.to_wire(),
        )
        return self._parse(Organization, data)

    def apply_organization_quota(
        self,
        project_id: str,
        region: str,
        org_id: str,
        payload: ApplyOrganizationQuotaPayload,
    ) -> Optional[OrganizationQuota]:
        """Assign a quota to an organization."""
        data = self.send_json(
            "PUT",
            f"{self._scope_path(project_id, region)}/organizations/{org_id}/quota",
            json_data=payload.to_wire(),
        )
        return self._parse(OrganizationQuota, data)

    def delete_organization(self, project_id: str, region: str, org_id: str) -> None:
        self.delete(f"{self._scope_path(project_id, region)}/organizations/{org_id}")

    # Organization managers

    def create_org_manager(self, project_id: str, region: str, org_id: str) -> OrgManagerResponse:
        """Create the manager user of an organization.

        The response is the only place the generated password is ever returned.
        """
        data = self.send_json(
            "POST",
            f"{self._scope_path(project_id, region)}/organizations/{org_id}/manager",
        )
        return self._parse(OrgManagerResponse, data) or OrgManagerResponse()

    def get_org_manager(self, project_id: str, region: str, org_id: str) -> OrgManager:
        data = self.get_json(f"{self._scope_path(project_id, region)}/organizations/{org_id}/manager")
        return self._parse(OrgManager, data)

    def delete_org_manager(self, project_id: str, region: str, org_id: str) -> None:
        self.delete(f"{self._scope_path(project_id, region)}/organizations/{org_id}/manager")

    # Platforms

    def get_platform(self, project_id: str, region: str, platform_id: str) -> Platform:
        data = self.get_json(f"{self._scope_path(project_id, region)}/platforms/{platform_id}")
        return self._parse(Platform, data)
