"""Mini README: Core package initializer for the fund ledger service.

The fund ledger records offerings, tithes and expenses for an organisation,
summarises them per month or year, and exports period reports as PDF
documents. Convenience imports live here so callers can reach logging
without knowing the exact module structure.
"""

from .logging_utils import get_logger

__all__ = ["get_logger"]
