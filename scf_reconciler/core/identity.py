"""Composite resource handles.

A handle joins the owning scope id (the project) and the remote-assigned id
of a resource with a reserved separator, e.g. ``"proj-1,org-9"``.
"""

from typing import Tuple

from scf_reconciler.core.errors import InvalidFragmentError, MalformedHandleError

SEPARATOR = ","


def validate_fragment(fragment: str, name: str = "fragment") -> str:
    """Check that a fragment can be embedded in a handle.

    Raises:
        InvalidFragmentError: If the fragment is empty or contains the separator
    """
    if not isinstance(fragment, str) or not fragment:
        raise InvalidFragmentError(f"{name} must be a non-empty string, got {fragment!r}", fragment)
    if SEPARATOR in fragment:
        raise InvalidFragmentError(
            f"{name} must not contain the separator {SEPARATOR!r}: {fragment!r}", fragment
        )
    return fragment


def build_handle(scope_id: str, resource_id: str) -> str:
    """Build the handle ``scope_id,resource_id``.

    Raises:
        InvalidFragmentError: If either fragment is empty or contains the separator
    """
    validate_fragment(scope_id, "scope id")
    validate_fragment(resource_id, "resource id")
    return f"{scope_id}{SEPARATOR}{resource_id}"


def decode_handle(handle: str) -> Tuple[str, str]:
    """Split a handle back into ``(scope_id, resource_id)``.

    Raises:
        MalformedHandleError: Unless the handle holds exactly two non-empty fragments
    """
    if not isinstance(handle, str):
        raise MalformedHandleError(f"Handle must be a string, got {handle!r}", handle)

    parts = handle.split(SEPARATOR)
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise MalformedHandleError(
            f"Expected handle with format [scope_id]{SEPARATOR}[resource_id], got {handle!r}",
            handle,
        )
    return parts[0], parts[1]
