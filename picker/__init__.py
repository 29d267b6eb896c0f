"""Picking client for Picklist.

Holds the picking list in memory, keeps it in step with the title service,
and drives the terminal front-end.
"""

from .errors import DuplicateBarcodeError, IngestError, PersistenceError, PicklistError, UnknownTaskError
from .models import PickingTask, StoreEvent, TitleRecord
from .store import PickingStore

__all__ = [
    "DuplicateBarcodeError",
    "IngestError",
    "PersistenceError",
    "PickingStore",
    "PickingTask",
    "PicklistError",
    "StoreEvent",
    "TitleRecord",
    "UnknownTaskError",
]
