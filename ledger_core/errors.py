from __future__ import annotations


class LedgerError(Exception):
    """Base error for the ledger core."""


class LedgerValidationError(LedgerError, ValueError):
    """Rejected user input (amount, invoice number, items...). Nothing was changed."""


class RestoreError(LedgerError, ValueError):
    """A backup payload could not be applied. Existing data is untouched."""
