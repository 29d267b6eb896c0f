"""Picking task models.

``TitleRecord`` is the wire shape served by the title service; ``PickingTask``
is what the client holds in memory. Only ``PickingTask.done`` ever changes
after a load.
"""

from __future__ import annotations

import dataclasses
from typing import NamedTuple, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .errors import PicklistError

PICKED = 1
NOT_PICKED = 0


class TitleRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[Union[int, str]] = None
    title: str
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    barcode: str = Field(min_length=1)
    coordinate: str
    copies: int = Field(ge=0)
    status: int


# eq=False: tasks compare by identity, two copies of one title stay distinct
@dataclasses.dataclass(eq=False)
class PickingTask:
    id: Union[int, str]
    title: str
    cover_ref: Optional[str]
    barcode: str
    coordinate: str
    copies: int
    done: bool = False

    @property
    def status(self) -> int:
        return PICKED if self.done else NOT_PICKED

    @classmethod
    def from_record(cls, record: TitleRecord) -> "PickingTask":
        return cls(
            id=record.id if record.id is not None else record.barcode,
            title=record.title,
            cover_ref=record.image_url or None,
            barcode=record.barcode,
            coordinate=record.coordinate,
            copies=record.copies,
            done=record.status == PICKED,
        )


class StoreEvent(NamedTuple):
    """Change notification sent to ``PickingStore`` subscribers.

    kind is one of: loaded, toggled, selected, cleared, persist_failed, reverted.
    """

    kind: str
    task: Optional[PickingTask] = None
    error: Optional[PicklistError] = None
