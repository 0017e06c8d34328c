"""Mini README: Error taxonomy shared across the fund ledger.

Structure:
    * FundLedgerError - common base so callers can catch every domain failure.
    * ValidationError - missing or malformed input (date, identity, amounts).
    * NotFoundError - a record id that does not exist (any more).
    * StorageError - the transaction store or proof directory is unavailable.
    * RenderError - a single proof asset could not be embedded in a report.

The REST layer maps the first three onto HTTP status codes; ``RenderError``
never leaves the report renderer.
"""

from __future__ import annotations


class FundLedgerError(Exception):
    """Base class for fund ledger failures."""


class ValidationError(FundLedgerError, ValueError):
    """Raised when a required field is missing or malformed."""


class NotFoundError(FundLedgerError, KeyError):
    """Raised when operating on a record that does not exist."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep messages readable.
        return str(self.args[0]) if self.args else ""


class StorageError(FundLedgerError):
    """Raised when the store or the file system cannot be used."""


class RenderError(FundLedgerError):
    """Raised when one proof cannot be embedded into a report."""
