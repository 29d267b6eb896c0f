"""Detail view controller.

Wraps the store operations a front-end triggers from its focused (detail)
view. Whatever way the detail view closes, the scan input gets input focus
back so the operator can scan the next item straight away.
"""

from __future__ import annotations

from typing import Callable, Optional

from .models import PickingTask
from .store import PickingStore, TaskRef


class PickingSession:
    def __init__(self, store: PickingStore, focus_scan_input: Callable[[], None]):
        self.store = store
        self._focus_scan_input = focus_scan_input

    @property
    def detail(self) -> Optional[PickingTask]:
        return self.store.selected

    def scan(self, code: str) -> Optional[PickingTask]:
        """Open the detail view for a scanned code; None if nothing matched."""
        return self.store.resolve(code)

    def open(self, ref: TaskRef) -> Optional[PickingTask]:
        """Open (or, for the task already open, close) a task's detail view."""
        task = self.store.select(ref)
        if task is None:
            self._focus_scan_input()
        return task

    def close_detail(self) -> None:
        try:
            self.store.clear()
        finally:
            self._focus_scan_input()

    def mark_from_detail(self) -> Optional[bool]:
        """Toggle the open task, close the view, refocus the scan input.

        Returns the task's new done value, or None if no detail view was open.
        """
        try:
            task = self.store.selected
            if task is None:
                return None
            done = self.store.toggle(task)
            self.store.clear()
            return done
        finally:
            self._focus_scan_input()
