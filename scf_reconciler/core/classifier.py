"""Classification of remote failures into lifecycle outcomes."""

from enum import Enum

from scf_reconciler.clients.exceptions import APIError, ResourceNotFoundError

NOT_FOUND_STATUS = 404


class Outcome(str, Enum):
    """Disposition of a failed remote call.

    ``TRANSIENT`` is never produced by ``classify``: the engine does not retry,
    so anything that is not a missing resource terminates the operation.
    """

    NOT_FOUND = "not_found"
    TRANSIENT = "transient"
    FATAL = "fatal"


def classify(error: BaseException) -> Outcome:
    """Map a remote call failure to an outcome.

    ``NOT_FOUND`` exactly when the service reported that the resource does
    not exist; every other service or transport error is ``FATAL``.
    """
    if isinstance(error, ResourceNotFoundError):
        return Outcome.NOT_FOUND
    if isinstance(error, APIError) and error.status_code == NOT_FOUND_STATUS:
        return Outcome.NOT_FOUND
    return Outcome.FATAL
