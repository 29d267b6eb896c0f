"""CSV importer for Picklist.

Loads a picking list exported from the stock system into the titles table.

Expected header (order does not matter, extra columns are ignored):
    title,image_url,barcode,coordinate,copies[,status]

Rows are upserted by barcode. Coordinates are stored as given; the picking
client sorts them as plain strings, so the export must zero-pad them
(``A03:07`` rather than ``A3:7``) for pick order to follow the shelves.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterator, Optional

from sqlmodel import Session

from .database import get_engine, init_db
from .logging_config import get_logger
from .repository import Repository

logger = get_logger(__name__)

REQUIRED_COLUMNS = ("title", "barcode", "coordinate")


class ImportRowError(ValueError):
    """A CSV row that cannot be turned into a title."""


def _parse_int(value: Optional[str], field: str, default: int) -> int:
    if value is None or not value.strip():
        return default
    try:
        number = int(value.strip())
    except ValueError:
        raise ImportRowError(f"{field} is not an integer: {value!r}")
    if number < 0:
        raise ImportRowError(f"{field} must not be negative: {number}")
    return number


def parse_row(row: dict) -> dict:
    """Validate one CSV row and return repository keyword arguments."""
    missing = [c for c in REQUIRED_COLUMNS if not (row.get(c) or "").strip()]
    if missing:
        raise ImportRowError(f"missing {', '.join(missing)}")

    status = None
    if (row.get("status") or "").strip():
        status = 1 if _parse_int(row["status"], "status", 0) == 1 else 0

    return {
        "title": row["title"].strip(),
        "image_url": (row.get("image_url") or "").strip(),
        "barcode": row["barcode"].strip(),
        "coordinate": row["coordinate"].strip(),
        "copies": _parse_int(row.get("copies"), "copies", 1),
        "status": status,
    }


def iter_rows(path: Path) -> Iterator[tuple[int, dict]]:
    """Yield (line_number, row) from a CSV file with a header line."""
    with path.open(newline="", encoding="utf-8-sig") as handle:
        reader = csv.DictReader(handle)
        for row in reader:
            yield reader.line_num, row


def import_titles(path: Path, reset_status: bool = False) -> dict:
    """Upsert titles from a CSV file.

    :param path: CSV file to read.
    :param reset_status: Mark every title not picked before importing.
    :return: Dictionary with import statistics (added, updated, skipped, reset).
    """
    if not path.exists():
        raise FileNotFoundError(f"Import file does not exist: {path}")

    stats = {"added": 0, "updated": 0, "skipped": 0, "reset": 0}
    seen: set[str] = set()

    init_db()

    with Session(get_engine()) as session:
        repo = Repository(session)

        if reset_status:
            stats["reset"] = repo.reset_all_status()

        for line, row in iter_rows(path):
            try:
                values = parse_row(row)
            except ImportRowError as exc:
                logger.warning(f"[IMPORT] line {line} skipped: {exc}")
                stats["skipped"] += 1
                continue

            # Barcode is the join key for status updates; a repeat would be ambiguous
            if values["barcode"] in seen:
                logger.warning(
                    f"[IMPORT] line {line} skipped: duplicate barcode {values['barcode']}"
                )
                stats["skipped"] += 1
                continue
            seen.add(values["barcode"])

            _, created = repo.upsert_title(**values)
            if created:
                stats["added"] += 1
            else:
                stats["updated"] += 1

        repo.commit()

    logger.info(
        f"[IMPORT] {path.name}: {stats['added']} added, {stats['updated']} updated, "
        f"{stats['skipped']} skipped"
    )
    return stats
