"""SCF platform: a read-only data source.

Platform responses carry no project id, so the scope always comes from the
caller.
"""

from types import MappingProxyType
from typing import Any

from scf_reconciler.resources.base import ID_RULES, ConfigMode, FieldSpec, HandlePolicy, ResourceDescriptor

TYPE_NAME = "scf_platform"

DESCRIPTIONS = MappingProxyType({
    "id": "Internal resource ID, structured as \"`project_id`,`guid`\".",
    "guid": "The unique id of the platform",
    "project_id": "The ID of the project associated with the platform",
    "system_id": "The ID of the platform System",
    "display_name": "The name of the platform",
    "region": "The region where the platform is located",
    "api_url": "The CF API Url of the platform",
    "console_url": "The Stratos URL of the platform",
})


def _get(client: Any, project_id: str, region: str, platform_id: str) -> Any:
    return client.get_platform(project_id, region, platform_id)


PLATFORM = ResourceDescriptor(
    type_name=TYPE_NAME,
    description="STACKIT Cloud Foundry platform (data source).",
    fields=(
        FieldSpec("id"),
        FieldSpec("guid", wire="guid", config=ConfigMode.REQUIRED, response_required=True, rules=ID_RULES),
        FieldSpec("project_id", config=ConfigMode.REQUIRED, rules=ID_RULES),
        FieldSpec("system_id", wire="system_id"),
        FieldSpec("display_name", wire="display_name"),
        FieldSpec("region", wire="region"),
        FieldSpec("api_url", wire="api_url"),
        FieldSpec("console_url", wire="console_url"),
    ),
    handle=HandlePolicy(resource_field="guid"),
    lookup_field="guid",
    get=_get,
    descriptions=DESCRIPTIONS,
)
