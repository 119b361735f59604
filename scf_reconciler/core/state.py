"""State records exchanged between the caller and the engine."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional


class _UnsetType:
    """Marker for an attribute that has no value.

    Distinct from ``None``, ``""``, ``False`` and ``0`` so that drift
    detection can tell "not set" apart from "set to an empty value".
    """

    _instance: Optional["_UnsetType"] = None

    def __new__(cls) -> "_UnsetType":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "UNSET"


UNSET = _UnsetType()

HANDLE_ATTRIBUTE = "id"


def is_set(value: Any) -> bool:
    return value is not UNSET


@dataclass(frozen=True)
class ResourceState:
    """Immutable attribute record of one resource.

    Attributes missing from ``values`` read as ``UNSET``. Updates never
    modify a record in place; ``merge`` returns a new one.
    """

    resource_type: str
    values: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def __hash__(self) -> int:
        return hash((self.resource_type, frozenset(self.values.items())))

    def __reduce__(self) -> Any:
        return (ResourceState, (self.resource_type, dict(self.values)))

    def get(self, name: str) -> Any:
        return self.values.get(name, UNSET)

    def __getitem__(self, name: str) -> Any:
        return self.get(name)

    def is_set(self, name: str) -> bool:
        return is_set(self.get(name))

    @property
    def handle(self) -> Optional[str]:
        """The resource handle, or ``None`` while the resource does not exist."""
        value = self.get(HANDLE_ATTRIBUTE)
        return value if is_set(value) else None

    def merge(self, updates: Mapping[str, Any]) -> "ResourceState":
        """Return a copy with ``updates`` overwriting the matching attributes."""
        values = dict(self.values)
        values.update(updates)
        return ResourceState(self.resource_type, values)

    def only(self, names: Iterable[str]) -> Dict[str, Any]:
        """Values of the given attributes, ``UNSET`` where absent."""
        return {name: self.get(name) for name in names}

    def to_dict(self) -> Dict[str, Any]:
        """Plain dict for persistence; ``UNSET`` becomes ``None``."""
        return {
            name: (value if is_set(value) else None)
            for name, value in sorted(self.values.items())
        }

    @classmethod
    def from_dict(cls, resource_type: str, data: Mapping[str, Any]) -> "ResourceState":
        """Inverse of ``to_dict``; ``None`` reads back as ``UNSET``."""
        return cls(
            resource_type,
            {name: (UNSET if value is None else value) for name, value in data.items()},
        )
