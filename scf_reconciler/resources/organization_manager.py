"""SCF organization manager: a managed resource that cannot change after create.

Each organization has at most one manager user, so the service addresses it
through its organization: every remote call takes ``org_id``. The handle is
``project_id,user_id``; imports are identified by ``project_id,org_id``.
The generated password is only returned by the create call and is kept from
then on.
"""

from types import MappingProxyType
from typing import Any, Dict

from scf_reconciler.core.state import ResourceState
from scf_reconciler.resources.base import (
    ID_RULES,
    ConfigMode,
    FieldKind,
    FieldSpec,
    HandlePolicy,
    ResourceDescriptor,
)

TYPE_NAME = "scf_organization_manager"

DESCRIPTIONS = MappingProxyType({
    "id": "Internal resource ID, structured as \"`project_id`,`user_id`\".",
    "region": "The region where the organization of the organization manager is located",
    "platform_id": "The ID of the platform associated with the organization of the organization manager",
    "project_id": "The ID of the project associated with the organization of the organization manager",
    "org_id": "The ID of the organization",
    "user_id": "The ID of the organization manager user",
    "username": "An auto-generated organization manager user name",
    "password": "An auto-generated password",
    "created_at": "The time when the organization manager was created",
    "updated_at": "The time when the organization manager was last updated",
})


def _create(client: Any, project_id: str, region: str, desired: ResourceState, payload: Dict[str, Any]) -> Any:
    return client.create_org_manager(project_id, region, desired.get("org_id"))


def _get(client: Any, project_id: str, region: str, org_id: str) -> Any:
    return client.get_org_manager(project_id, region, org_id)


def _delete(client: Any, project_id: str, region: str, org_id: str) -> None:
    client.delete_org_manager(project_id, region, org_id)


ORGANIZATION_MANAGER = ResourceDescriptor(
    type_name=TYPE_NAME,
    description="STACKIT Cloud Foundry organization manager.",
    fields=(
        FieldSpec("id"),
        FieldSpec("user_id", wire="guid", response_required=True),
        FieldSpec("project_id", wire="project_id", config=ConfigMode.REQUIRED, rules=ID_RULES),
        FieldSpec("org_id", wire="org_id", config=ConfigMode.REQUIRED, retain_prior=True, rules=ID_RULES),
        FieldSpec("platform_id", wire="platform_id"),
        FieldSpec("region", wire="region"),
        FieldSpec("username", wire="username"),
        FieldSpec("password", wire="password", retain_prior=True, sensitive=True),
        FieldSpec("created_at", wire="created_at", kind=FieldKind.TIMESTAMP),
        FieldSpec("updated_at", wire="updated_at", kind=FieldKind.TIMESTAMP),
    ),
    handle=HandlePolicy(resource_field="user_id"),
    lookup_field="org_id",
    get=_get,
    create=_create,
    delete=_delete,
    descriptions=DESCRIPTIONS,
)
