"""Error taxonomy for the picking client.

A scan that matches nothing is not an error: ``PickingStore.resolve`` returns None.
"""

from __future__ import annotations

from typing import Iterable


class PicklistError(Exception):
    """Base class for recoverable picking-client failures."""


class IngestError(PicklistError):
    """Loading the title list failed; the previously loaded list is kept."""


class DuplicateBarcodeError(IngestError):
    """The title store returned more than one title for a barcode."""

    def __init__(self, barcodes: Iterable[str]):
        self.barcodes = sorted(set(barcodes))
        super().__init__(f"Duplicate barcodes in title list: {', '.join(self.barcodes)}")


class PersistenceError(PicklistError):
    """A status update did not reach the title store or was refused by it."""

    def __init__(self, barcode: str, status: int, reason: str):
        self.barcode = barcode
        self.status = status
        self.reason = reason
        super().__init__(f"status {status} for {barcode} not saved: {reason}")


class UnknownTaskError(PicklistError, LookupError):
    """The referenced task is not in the currently loaded list."""
