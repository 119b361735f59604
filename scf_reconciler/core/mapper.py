"""Translation between SCF wire objects and state records."""

from datetime import datetime
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from scf_reconciler.core.errors import (
    InvalidAttributeError,
    MalformedHandleError,
    MappingError,
    MissingRequiredFieldError,
)
from scf_reconciler.core.identity import build_handle, decode_handle, validate_fragment
from scf_reconciler.core.state import HANDLE_ATTRIBUTE, UNSET, ResourceState, is_set
from scf_reconciler.resources.base import (
    AttributeGroup,
    ConfigMode,
    FieldKind,
    FieldSpec,
    HandleStyle,
    ResourceDescriptor,
    ScopeSource,
)


def _read_wire(response: Any, name: str) -> Any:
    if isinstance(response, Mapping):
        return response.get(name)
    return getattr(response, name, None)


class StateMapper:
    """Maps responses to state and state to mutation payloads for one resource type."""

    def __init__(self, descriptor: ResourceDescriptor) -> None:
        self.descriptor = descriptor

    def to_state(
        self,
        response: Any,
        scope_id_hint: str,
        prior: Optional[ResourceState] = None,
    ) -> ResourceState:
        """Project a remote response onto a complete state record.

        Every declared attribute is present in the result: absent response
        fields become ``UNSET`` (or keep the prior value for ``retain_prior``
        attributes). The handle is rebuilt from ``scope_id_hint`` and the
        response on every call, following the type's handle policy.

        Args:
            response: Wire object (pydantic model or mapping)
            scope_id_hint: Scope id known locally; used when the response omits it
            prior: Previous state of the resource, if any

        Raises:
            MappingError: If the response is missing or a value has the wrong type
            MissingRequiredFieldError: If a required field such as the guid is absent
        """
        descriptor = self.descriptor
        if response is None:
            raise MappingError(f"{descriptor.type_name} response is empty", descriptor.type_name)

        for spec in descriptor.fields:
            if spec.response_required and _read_wire(response, spec.wire) is None:
                raise MissingRequiredFieldError(
                    f"{descriptor.type_name} {spec.wire} not present in response",
                    descriptor.type_name,
                    spec.name,
                )

        values: Dict[str, Any] = {}
        for spec in descriptor.fields:
            if spec.name == HANDLE_ATTRIBUTE:
                continue
            raw = _read_wire(response, spec.wire) if spec.wire else None
            if raw is None:
                values[spec.name] = UNSET
                if spec.retain_prior and prior is not None:
                    values[spec.name] = prior.get(spec.name)
            else:
                values[spec.name] = self._copy(spec, raw)

        scope_field = descriptor.handle.scope_field
        if not is_set(values.get(scope_field, UNSET)) and scope_id_hint:
            values[scope_field] = scope_id_hint

        values[HANDLE_ATTRIBUTE] = self._handle(values, scope_id_hint)
        return ResourceState(descriptor.type_name, values)

    def _copy(self, spec: FieldSpec, raw: Any) -> Any:
        if spec.kind is FieldKind.BOOL:
            if not isinstance(raw, bool):
                raise MappingError(
                    f"{spec.name} must be a boolean, got {type(raw).__name__}",
                    self.descriptor.type_name,
                    spec.name,
                )
            return raw
        if spec.kind is FieldKind.TIMESTAMP:
            if isinstance(raw, datetime):
                return raw.isoformat()
            if isinstance(raw, str):
                return raw
            raise MappingError(
                f"{spec.name} must be a timestamp, got {type(raw).__name__}",
                self.descriptor.type_name,
                spec.name,
            )
        if not isinstance(raw, str):
            raise MappingError(
                f"{spec.name} must be a string, got {type(raw).__name__}",
                self.descriptor.type_name,
                spec.name,
            )
        return raw

    def _handle(self, values: Mapping[str, Any], scope_id_hint: str) -> str:
        policy = self.descriptor.handle
        resource_id = values.get(policy.resource_field, UNSET)
        if not is_set(resource_id):
            raise MissingRequiredFieldError(
                f"{self.descriptor.type_name} {policy.resource_field} not present in response",
                self.descriptor.type_name,
                policy.resource_field,
            )

        if policy.style is HandleStyle.RESOURCE_ONLY:
            return validate_fragment(resource_id, policy.resource_field)

        scope_id = scope_id_hint
        if policy.scope_source is ScopeSource.RESPONSE or not scope_id:
            observed_scope = values.get(policy.scope_field, UNSET)
            if is_set(observed_scope):
                scope_id = observed_scope
        return build_handle(scope_id, resource_id)

    def address(self, state: ResourceState) -> Tuple[str, str]:
        """Return ``(scope_id, lookup_id)`` used to address the resource remotely.

        The scope comes from the decoded handle when the state has one, and
        from the scope attribute otherwise. The lookup id is the lookup
        attribute, or the handle's resource fragment when both name the same
        attribute.

        Raises:
            MalformedHandleError: If the handle cannot be decoded or the state
                does not carry enough to address the resource
        """
        descriptor = self.descriptor
        policy = descriptor.handle
        scope_id = state.get(policy.scope_field)
        resource_fragment = UNSET

        handle = state.handle
        if handle is not None:
            if policy.style is HandleStyle.COMPOSITE:
                scope_id, resource_fragment = decode_handle(handle)
            else:
                resource_fragment = handle

        lookup_id = state.get(descriptor.lookup_field)
        if not is_set(lookup_id) and descriptor.lookup_field == policy.resource_field:
            lookup_id = resource_fragment

        if not is_set(scope_id) or not is_set(lookup_id):
            raise MalformedHandleError(
                f"{descriptor.type_name}: state does not identify a resource "
                f"(handle={handle!r}, {descriptor.lookup_field}={lookup_id!r})",
                handle,
            )
        return scope_id, lookup_id

    def to_payload(self, state: ResourceState, names: Iterable[str]) -> Dict[str, Any]:
        """Wire-keyed payload for the given attributes, omitting unset ones."""
        payload: Dict[str, Any] = {}
        for name in names:
            value = state.get(name)
            if not is_set(value):
                continue
            spec = self.descriptor.field(name)
            payload[spec.wire or spec.name] = value
        return payload

    def to_mutation_payload(self, state: ResourceState, group: AttributeGroup) -> Dict[str, Any]:
        return self.to_payload(state, group.fields)

    def to_create_payload(self, state: ResourceState) -> Dict[str, Any]:
        return self.to_payload(state, self.descriptor.create_fields)

    def merge_group(
        self,
        observed: ResourceState,
        group: AttributeGroup,
        response: Any,
        payload: Mapping[str, Any],
    ) -> ResourceState:
        """Merge the result of one group mutation into observed state.

        Only the group's fields and its declared ``returns`` are touched.
        A group field the response does not carry takes the value that was
        just sent; a ``returns`` attribute the response lacks keeps its
        previous value.
        """
        updates: Dict[str, Any] = {}
        for name in group.fields + group.returns:
            spec = self.descriptor.field(name)
            wire_name = spec.wire or spec.name
            raw = _read_wire(response, wire_name) if response is not None else None
            if raw is not None:
                updates[name] = self._copy(spec, raw)
            elif name in group.fields and wire_name in payload:
                updates[name] = payload[wire_name]
        return observed.merge(updates)

    def to_desired_state(self, config: Mapping[str, Any]) -> ResourceState:
        """Validate caller-supplied attributes and build the desired state.

        Raises:
            InvalidAttributeError: On unknown or computed attributes, missing
                required attributes or values that fail a field rule
        """
        descriptor = self.descriptor
        known = set(descriptor.attribute_names)

        for name in config:
            if name not in known:
                raise InvalidAttributeError(f"{descriptor.type_name}: unknown attribute {name!r}", name)

        values: Dict[str, Any] = {}
        for spec in descriptor.fields:
            value = config.get(spec.name)
            if value is None:
                if spec.config is ConfigMode.REQUIRED:
                    raise InvalidAttributeError(
                        f"{descriptor.type_name}: attribute {spec.name!r} is required", spec.name
                    )
                values[spec.name] = UNSET
                continue

            if spec.config is ConfigMode.COMPUTED:
                raise InvalidAttributeError(
                    f"{descriptor.type_name}: attribute {spec.name!r} is computed and cannot be set",
                    spec.name,
                )
            if spec.kind is FieldKind.BOOL and not isinstance(value, bool):
                raise InvalidAttributeError(
                    f"{descriptor.type_name}: attribute {spec.name!r} must be a boolean", spec.name
                )
            if spec.kind is not FieldKind.BOOL and not isinstance(value, str):
                raise InvalidAttributeError(
                    f"{descriptor.type_name}: attribute {spec.name!r} must be a string", spec.name
                )
            for rule in spec.rules:
                if not rule.check(value):
                    raise InvalidAttributeError(
                        f"{descriptor.type_name}: attribute {spec.name!r} {rule.message}: {value!r}",
                        spec.name,
                    )
            values[spec.name] = value

        return ResourceState(descriptor.type_name, values)
