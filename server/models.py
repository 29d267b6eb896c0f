"""SQLModel database models for Picklist."""

from datetime import datetime, timezone
from typing import Optional
from sqlmodel import Field, SQLModel

class TitleBase(SQLModel):
    title: str
    image_url: str = ""
    barcode: str = Field(unique=True, index=True)
    # Sort key on the client: must be fixed-width (e.g. "A03:07") at the source
    coordinate: str = Field(index=True)
    copies: int = Field(default=1, ge=0)
    status: int = 0  # 1 = picked, anything else = not picked

class Title(TitleBase, table=True):
    __tablename__ = "titles"
    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    status_changed_at: Optional[datetime] = None
