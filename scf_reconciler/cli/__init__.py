"""Command line interface for scf-reconciler."""

from scf_reconciler.cli.app import app

__all__ = ["app"]
