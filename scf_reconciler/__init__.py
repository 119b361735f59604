"""SCF Reconciler - reconcile declared Cloud Foundry resources against STACKIT SCF.

This package maps declared organizations, organization managers and platforms
onto the live SCF API: it builds stable resource handles, maps API responses to
state records, corrects drift group by group and classifies remote failures.
"""

from scf_reconciler.version import __version__

__all__ = ["__version__"]
