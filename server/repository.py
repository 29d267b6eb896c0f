"""Data Access Layer for Picklist.

Encapsulates title table operations using SQLModel/SQLAlchemy.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from sqlmodel import Session, select, func

from .models import Title


def to_wire(title: Title) -> dict:
    """Serialize a row into the shape the picking client consumes."""
    return {
        "id": title.id,
        "title": title.title,
        "imageUrl": title.image_url,
        "barcode": title.barcode,
        "coordinate": title.coordinate,
        "copies": title.copies,
        "status": title.status,
    }


class Repository:
    """Data access layer for the titles table.

    Barcode is the natural key: status updates and imports match on it.
    Callers control when to commit.
    """

    def __init__(self, session: Session):
        self.session = session

    def commit(self) -> None:
        """Commit the current transaction. Callers control when to commit."""
        self.session.commit()

    def get_all_titles(self) -> List[Title]:
        """Return every title in insertion order (the client does the sorting)."""
        return self.session.exec(select(Title).order_by(Title.id)).all()

    def get_title_by_barcode(self, barcode: str) -> Optional[Title]:
        return self.session.exec(select(Title).where(Title.barcode == barcode)).first()

    def set_status(self, barcode: str, status: int) -> bool:
        """Set status for the single row whose barcode matches.

        Returns:
            True if a row was updated, False if no title has that barcode.
        """
        title = self.get_title_by_barcode(barcode)
        if not title:
            return False

        title.status = status
        title.status_changed_at = datetime.now(timezone.utc)
        self.session.add(title)
        self.session.flush()
        return True

    def upsert_title(
        self,
        *,
        barcode: str,
        title: str,
        image_url: str,
        coordinate: str,
        copies: int,
        status: Optional[int] = None,
    ) -> tuple[Title, bool]:
        """Insert or update a title keyed by barcode.

        A ``status`` of None keeps the stored pick state on update (0 on insert).

        Returns:
            (row, created)
        """
        row = self.get_title_by_barcode(barcode)
        created = row is None

        if row:
            row.title = title
            row.image_url = image_url
            row.coordinate = coordinate
            row.copies = copies
            if status is not None:
                row.status = status
        else:
            row = Title(
                barcode=barcode,
                title=title,
                image_url=image_url,
                coordinate=coordinate,
                copies=copies,
                status=status or 0,
            )

        self.session.add(row)
        self.session.flush()
        self.session.refresh(row)
        return row, created

    def reset_all_status(self) -> int:
        """Mark every title as not picked. Returns the number of rows touched."""
        rows = self.session.exec(select(Title).where(Title.status != 0)).all()
        for row in rows:
            row.status = 0
            row.status_changed_at = None
            self.session.add(row)
        self.session.flush()
        return len(rows)

    def count_titles(self) -> int:
        return self.session.exec(select(func.count()).select_from(Title)).one()

    def count_picked(self) -> int:
        statement = select(func.count()).select_from(Title).where(Title.status == 1)
        return self.session.exec(statement).one()
