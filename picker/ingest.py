"""Turn a raw title payload into the ordered picking list."""

from __future__ import annotations

from collections import Counter
from typing import Any, List

from pydantic import ValidationError

from .errors import DuplicateBarcodeError, IngestError
from .models import PickingTask, TitleRecord


def parse_records(payload: Any) -> List[TitleRecord]:
    """Validate every record; one bad record fails the whole payload."""
    if not isinstance(payload, list):
        raise IngestError(f"Expected a list of titles, got {type(payload).__name__}")

    records = []
    for index, raw in enumerate(payload):
        try:
            records.append(TitleRecord.model_validate(raw))
        except ValidationError as exc:
            raise IngestError(f"Malformed title at position {index}: {exc}") from exc
    return records


def order_tasks(tasks: List[PickingTask]) -> List[PickingTask]:
    """Sort by coordinate as plain strings (code-point order).

    "B9" sorts after "B10": coordinates must be zero-padded at the source for
    this to match shelf order. Equal coordinates keep the order they arrived in.
    """
    return sorted(tasks, key=lambda task: task.coordinate)


def build_tasks(payload: Any) -> List[PickingTask]:
    """Validate, map, check barcode uniqueness and order a title payload."""
    records = parse_records(payload)

    counts = Counter(record.barcode for record in records)
    duplicates = [barcode for barcode, count in counts.items() if count > 1]
    if duplicates:
        raise DuplicateBarcodeError(duplicates)

    return order_tasks([PickingTask.from_record(record) for record in records])
