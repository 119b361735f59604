"""Reconciliation engine: identity, state mapping, drift correction and lifecycle."""
