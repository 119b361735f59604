"""SCF organization: a managed, updatable resource.

Handle: ``project_id,org_id``. Attribute groups, in evaluation order:
``core`` (name, suspended) through the update endpoint, then ``quota``
(quota_id) through the quota assignment endpoint, which refers to an
organization that must already be up to date.
"""

from types import MappingProxyType
from typing import Any, Dict

from scf_reconciler.clients.models import (
    ApplyOrganizationQuotaPayload,
    CreateOrganizationPayload,
    UpdateOrganizationPayload,
)
from scf_reconciler.core.state import ResourceState
from scf_reconciler.resources.base import (
    ID_RULES,
    NAME_RULES,
    AttributeGroup,
    ConfigMode,
    FieldKind,
    FieldSpec,
    HandlePolicy,
    ResourceDescriptor,
)

TYPE_NAME = "scf_organization"

DESCRIPTIONS = MappingProxyType({
    "id": "Internal resource ID, structured as \"`project_id`,`org_id`\".",
    "org_id": "The globally unique identifier (guid) of the organization",
    "created_at": "The time when the organization was created",
    "name": "The name of the organization",
    "platform_id": "The ID of the platform associated with the organization",
    "project_id": "The ID of the project associated with the organization",
    "quota_id": "The ID of the quota associated with the organization",
    "region": "The region where the organization is located",
    "status": "The status of the organization (e.g., deleting, delete_failed)",
    "suspended": "A boolean indicating whether the organization is suspended",
    "updated_at": "The time when the organization was last updated",
})


def _create(client: Any, project_id: str, region: str, desired: ResourceState, payload: Dict[str, Any]) -> Any:
    return client.create_organization(project_id, region, CreateOrganizationPayload(**payload))


def _get(client: Any, project_id: str, region: str, org_id: str) -> Any:
    return client.get_organization(project_id, region, org_id)


def _delete(client: Any, project_id: str, region: str, org_id: str) -> None:
    client.delete_organization(project_id, region, org_id)


def _update_core(client: Any, project_id: str, region: str, org_id: str, payload: Dict[str, Any]) -> Any:
    return client.update_organization(project_id, region, org_id, UpdateOrganizationPayload(**payload))


def _apply_quota(client: Any, project_id: str, region: str, org_id: str, payload: Dict[str, Any]) -> Any:
    return client.apply_organization_quota(
        project_id, region, org_id, ApplyOrganizationQuotaPayload(**payload)
    )


ORGANIZATION = ResourceDescriptor(
    type_name=TYPE_NAME,
    description="STACKIT Cloud Foundry organization.",
    fields=(
        FieldSpec("id"),
        FieldSpec("org_id", wire="guid", response_required=True),
        FieldSpec("project_id", wire="project_id", config=ConfigMode.REQUIRED, rules=ID_RULES),
        FieldSpec("platform_id", wire="platform_id", config=ConfigMode.OPTIONAL, rules=ID_RULES),
        FieldSpec("name", wire="name", config=ConfigMode.REQUIRED, rules=NAME_RULES),
        FieldSpec("quota_id", wire="quota_id", config=ConfigMode.OPTIONAL, rules=ID_RULES),
        FieldSpec("suspended", wire="suspended", kind=FieldKind.BOOL, config=ConfigMode.OPTIONAL),
        FieldSpec("region", wire="region"),
        FieldSpec("status", wire="status"),
        FieldSpec("created_at", wire="created_at", kind=FieldKind.TIMESTAMP),
        FieldSpec("updated_at", wire="updated_at", kind=FieldKind.TIMESTAMP),
    ),
    handle=HandlePolicy(resource_field="org_id"),
    lookup_field="org_id",
    get=_get,
    create=_create,
    delete=_delete,
    create_fields=("name", "platform_id"),
    groups=(
        AttributeGroup("core", ("name", "suspended"), _update_core, returns=("status", "updated_at")),
        AttributeGroup("quota", ("quota_id",), _apply_quota, returns=("updated_at",)),
    ),
    descriptions=DESCRIPTIONS,
)
