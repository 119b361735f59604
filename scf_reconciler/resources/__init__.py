"""Resource types reconciled against SCF."""

from typing import Dict

from .base import ResourceDescriptor
from .organization import ORGANIZATION
from .organization_manager import ORGANIZATION_MANAGER
from .platform import PLATFORM

RESOURCE_TYPES: Dict[str, ResourceDescriptor] = {
    descriptor.type_name: descriptor
    for descriptor in (ORGANIZATION, ORGANIZATION_MANAGER, PLATFORM)
}


def get_descriptor(type_name: str) -> ResourceDescriptor:
    """Look up a resource type by name.

    Raises:
        KeyError: If the type is unknown
    """
    try:
        return RESOURCE_TYPES[type_name]
    except KeyError:
        known = ", ".join(sorted(RESOURCE_TYPES))
        raise KeyError(f"Unknown resource type {type_name!r} (known: {known})") from None


__all__ = [
    "ORGANIZATION",
    "ORGANIZATION_MANAGER",
    "PLATFORM",
    "RESOURCE_TYPES",
    "ResourceDescriptor",
    "get_descriptor",
]
