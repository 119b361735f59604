"""SCF API client and wire models."""

from .exceptions import APIError, ResourceNotFoundError
from .scf import SCFClient

__all__ = ["APIError", "ResourceNotFoundError", "SCFClient"]
