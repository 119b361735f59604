"""Declarative description of a reconciled resource type.

The reconciliation engine is generic: everything it needs to know about a
resource type (its attributes, how they map to the wire, how its handle is
built and which remote calls correct which attributes) lives in a
``ResourceDescriptor`` built once per type.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from scf_reconciler.core.state import HANDLE_ATTRIBUTE, ResourceState
from scf_reconciler.security.validation import validate_length, validate_no_separator, validate_uuid

# Remote call signatures. ``client`` is the SCF client, ``lookup_id`` the value
# of the descriptor's lookup attribute.
RemoteGet = Callable[[Any, str, str, str], Any]
RemoteCreate = Callable[[Any, str, str, ResourceState, Dict[str, Any]], Any]
RemoteDelete = Callable[[Any, str, str, str], None]
RemoteMutation = Callable[[Any, str, str, str, Dict[str, Any]], Any]


class FieldKind(str, Enum):
    """How a wire value is copied into state."""
    STRING = "string"
    BOOL = "bool"
    TIMESTAMP = "timestamp"


class ConfigMode(str, Enum):
    """Whether the caller must, may or must not supply an attribute."""
    REQUIRED = "required"
    OPTIONAL = "optional"
    COMPUTED = "computed"


class HandleStyle(str, Enum):
    """Shape of the resource handle."""
    COMPOSITE = "composite"  # scope_id,resource_id
    RESOURCE_ONLY = "resource_only"  # resource_id alone


class ScopeSource(str, Enum):
    """Where the scope fragment of a re-derived handle comes from."""
    LOCAL = "local"  # the scope id already known to the caller
    RESPONSE = "response"  # the response's scope attribute, falling back to the local one


@dataclass(frozen=True)
class FieldRule:
    """A validation rule for caller-supplied values."""

    check: Callable[[Any], bool]
    message: str


ID_RULES = (
    FieldRule(validate_uuid, "must be a UUID"),
    FieldRule(validate_no_separator, "must not contain the handle separator"),
)
NAME_RULES = (FieldRule(lambda v: validate_length(v, 1, 255), "must be between 1 and 255 characters"),)


@dataclass(frozen=True)
class FieldSpec:
    """One attribute of a resource type.

    ``wire`` names the response attribute the value is copied from; ``None``
    means the attribute is never read from a response (e.g. the handle).
    ``retain_prior`` keeps the previous state's value when a response omits
    the attribute, for values that only some response shapes carry.
    """

    name: str
    wire: Optional[str] = None
    kind: FieldKind = FieldKind.STRING
    config: ConfigMode = ConfigMode.COMPUTED
    response_required: bool = False
    retain_prior: bool = False
    sensitive: bool = False
    rules: Tuple[FieldRule, ...] = ()


@dataclass(frozen=True)
class AttributeGroup:
    """Attributes corrected together by one remote mutation.

    ``returns`` lists computed attributes refreshed from the mutation
    response in addition to the group's own fields.
    """

    name: str
    fields: Tuple[str, ...]
    mutate: RemoteMutation
    returns: Tuple[str, ...] = ()


@dataclass(frozen=True)
class HandlePolicy:
    """How the handle of a resource type is derived.

    ``resource_field`` is the attribute providing the handle's resource
    fragment; ``scope_field`` the attribute holding the scope id.
    """

    resource_field: str
    scope_field: str = "project_id"
    style: HandleStyle = HandleStyle.COMPOSITE
    scope_source: ScopeSource = ScopeSource.LOCAL


@dataclass(frozen=True)
class ResourceDescriptor:
    """Configuration table that instantiates the generic engine for one type.

    ``lookup_field`` is the attribute addressing the resource in get and
    delete calls. It usually equals ``handle.resource_field``; it differs
    when the service addresses a resource through its parent (an
    organization manager is fetched by its organization id).
    """

    type_name: str
    description: str
    fields: Tuple[FieldSpec, ...]
    handle: HandlePolicy
    lookup_field: str
    get: RemoteGet
    create: Optional[RemoteCreate] = None
    delete: Optional[RemoteDelete] = None
    create_fields: Tuple[str, ...] = ()
    groups: Tuple[AttributeGroup, ...] = ()
    descriptions: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        names = [spec.name for spec in self.fields]
        if len(names) != len(set(names)):
            raise ValueError(f"{self.type_name}: duplicate attribute names")
        if HANDLE_ATTRIBUTE not in names:
            raise ValueError(f"{self.type_name}: missing handle attribute {HANDLE_ATTRIBUTE!r}")

        known = set(names)
        referenced = [self.handle.resource_field, self.handle.scope_field, self.lookup_field]
        referenced.extend(self.create_fields)
        for name in referenced:
            if name not in known:
                raise ValueError(f"{self.type_name}: unknown attribute {name!r}")

        seen: Dict[str, str] = {}
        for group in self.groups:
            for name in group.fields + group.returns:
                if name not in known:
                    raise ValueError(f"{self.type_name}: group {group.name!r} references unknown attribute {name!r}")
            for name in group.fields:
                if self.field(name).config is ConfigMode.COMPUTED:
                    raise ValueError(f"{self.type_name}: computed attribute {name!r} cannot belong to a group")
                if name in seen:
                    raise ValueError(
                        f"{self.type_name}: attribute {name!r} belongs to groups "
                        f"{seen[name]!r} and {group.name!r}"
                    )
                seen[name] = group.name

        if not isinstance(self.descriptions, MappingProxyType):
            object.__setattr__(self, "descriptions", MappingProxyType(dict(self.descriptions)))

    def field(self, name: str) -> FieldSpec:
        for spec in self.fields:
            if spec.name == name:
                return spec
        raise KeyError(name)

    @property
    def attribute_names(self) -> Tuple[str, ...]:
        return tuple(spec.name for spec in self.fields)

    @property
    def managed(self) -> bool:
        """True for resources; False for read-only data sources."""
        return self.create is not None

    @property
    def updatable(self) -> bool:
        return bool(self.groups)

    @property
    def grouped_fields(self) -> Tuple[str, ...]:
        return tuple(name for group in self.groups for name in group.fields)

    @property
    def create_only_fields(self) -> Tuple[str, ...]:
        """Caller-settable attributes no group can change after create."""
        grouped = set(self.grouped_fields)
        return tuple(
            spec.name
            for spec in self.fields
            if spec.config is not ConfigMode.COMPUTED and spec.name not in grouped
        )
