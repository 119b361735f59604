"""Error taxonomy of the reconciliation engine."""

from typing import Optional


class ReconcileError(Exception):
    """Base exception for reconciliation errors."""
    pass


class InvalidFragmentError(ReconcileError):
    """A handle fragment is empty or contains the separator."""

    def __init__(self, message: str, fragment: Optional[str] = None) -> None:
        super().__init__(message)
        self.fragment = fragment


class MalformedHandleError(ReconcileError):
    """A handle does not split into exactly two non-empty fragments."""

    def __init__(self, message: str, handle: Optional[str] = None) -> None:
        super().__init__(message)
        self.handle = handle


class InvalidFormatError(ReconcileError):
    """An import identifier cannot be turned into handle fragments."""

    def __init__(self, message: str, identifier: Optional[str] = None) -> None:
        super().__init__(message)
        self.identifier = identifier


class InvalidAttributeError(ReconcileError):
    """Caller-supplied desired state failed validation."""

    def __init__(self, message: str, attribute: Optional[str] = None) -> None:
        super().__init__(message)
        self.attribute = attribute


class MappingError(ReconcileError):
    """A remote response could not be mapped onto a state record."""

    def __init__(
        self,
        message: str,
        resource_type: Optional[str] = None,
        field: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.resource_type = resource_type
        self.field = field


class MissingRequiredFieldError(MappingError):
    """A response lacks a field the state record cannot do without (the remote guid)."""
    pass


class FatalError(ReconcileError):
    """A lifecycle operation failed and was aborted.

    The message always names the operation (and the attribute group, when
    the failure happened while correcting one) followed by the underlying
    error text verbatim. During update, ``partial_state`` holds the state as
    reconciled up to the failing group.
    """

    def __init__(
        self,
        operation: str,
        message: str,
        group: Optional[str] = None,
        resource_type: Optional[str] = None,
        partial_state: Optional[object] = None,
    ) -> None:
        self.operation = operation
        self.group = group
        self.resource_type = resource_type
        self.detail = message
        self.partial_state = partial_state
        super().__init__(self._format())

    def _format(self) -> str:
        subject = self.resource_type or "resource"
        where = f"{self.operation} {subject}"
        if self.group:
            where += f" (group {self.group!r})"
        return f"Error during {where}: {self.detail}"

    @classmethod
    def from_exception(
        cls,
        operation: str,
        error: Exception,
        group: Optional[str] = None,
        resource_type: Optional[str] = None,
        partial_state: Optional[object] = None,
    ) -> "FatalError":
        """Wrap an underlying error, keeping its text verbatim."""
        return cls(
            operation,
            str(error),
            group=group,
            resource_type=resource_type,
            partial_state=partial_state,
        )
