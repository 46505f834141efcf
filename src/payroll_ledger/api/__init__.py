"""HTTP API for the payroll ledger engine."""

from payroll_ledger.api.app import create_app

__all__ = ["create_app"]
