"""Version information for scf-reconciler."""

__version__ = "0.1.0"
