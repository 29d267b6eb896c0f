"""The picking store: single owner of the in-memory picking list.

All mutation happens on the event loop thread. Network calls are the only
suspension points:

- ``load`` awaits the title store and then swaps the whole list in one
  assignment, so a failed load never leaves a half-applied list behind.
- ``toggle`` flips ``done`` locally, notifies subscribers, and schedules the
  status update without waiting for it. Overlapping toggles of one task each
  send their own request and may reach the backend in either order; the
  store does not queue them. The local value after the last flip is what
  the operator sees.
- A failed status update is reported through a ``persist_failed`` event.
  With ``FailurePolicy.ROLLBACK`` the task goes back to the last value the
  backend confirmed, but only when the failed request is the newest one for
  that task; an older failure never overrides a newer toggle.
"""

from __future__ import annotations

import asyncio
import itertools
from typing import Callable, List, Optional, Set, Tuple, Union

from server.config import FailurePolicy
from server.logging_config import get_logger

from .client import TitleStore
from .errors import IngestError, PersistenceError, PicklistError, UnknownTaskError
from .ingest import build_tasks
from .models import PickingTask, StoreEvent

logger = get_logger(__name__)

TaskRef = Union[PickingTask, str]
Subscriber = Callable[[StoreEvent], None]


class PickingStore:
    def __init__(self, titles: TitleStore, policy: FailurePolicy = FailurePolicy.LOG):
        self.titles = titles
        self.policy = policy
        self.last_error: Optional[PicklistError] = None
        self._tasks: List[PickingTask] = []
        self._by_barcode: dict[str, PickingTask] = {}
        self._selected: Optional[str] = None
        self._subscribers: List[Subscriber] = []
        self._pending: Set[asyncio.Task] = set()
        # barcode -> last done value the backend accepted (or served on load)
        self._confirmed: dict[str, bool] = {}
        # barcode -> sequence number of the newest status request
        self._latest: dict[str, int] = {}
        self._sequence = itertools.count(1)

    # -- read side --

    @property
    def tasks(self) -> Tuple[PickingTask, ...]:
        return tuple(self._tasks)

    @property
    def selected(self) -> Optional[PickingTask]:
        if self._selected is None:
            return None
        return self._by_barcode.get(self._selected)

    @property
    def pending(self) -> int:
        """Number of status updates still in flight."""
        return len(self._pending)

    def get(self, ref: TaskRef) -> PickingTask:
        """Return the current task for a task or barcode; UnknownTaskError if absent."""
        barcode = ref.barcode if isinstance(ref, PickingTask) else ref
        task = self._by_barcode.get(barcode)
        if task is None:
            raise UnknownTaskError(f"No task with barcode {barcode}")
        return task

    # -- notification --

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a change listener; returns a function that unregisters it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _emit(self, kind: str, task: Optional[PickingTask] = None, error=None) -> None:
        event = StoreEvent(kind, task, error)
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                logger.exception(f"Subscriber {callback!r} failed on {kind} event")

    # -- ingestion --

    async def load(self) -> List[PickingTask]:
        """Fetch every title and replace the list. Raises IngestError.

        On failure the previous list (and selection) is left untouched.
        """
        try:
            payload = await self.titles.fetch_titles()
            tasks = build_tasks(payload)
        except IngestError as exc:
            self.last_error = exc
            logger.error(f"Load failed, keeping {len(self._tasks)} tasks: {exc}")
            raise

        dropped = None
        if self._selected is not None and self._selected not in {t.barcode for t in tasks}:
            dropped = self.selected

        self._tasks = tasks
        self._by_barcode = {task.barcode: task for task in tasks}
        self._confirmed = {task.barcode: task.done for task in tasks}
        self._latest = {}
        if dropped is not None:
            self._selected = None
        self.last_error = None

        logger.info(f"Loaded {len(tasks)} picking tasks")
        self._emit("loaded")
        if dropped is not None:
            logger.info(f"Selected task {dropped.barcode} is gone after reload")
            self._emit("cleared", dropped)
        return list(tasks)

    # -- status toggle --

    def toggle(self, ref: TaskRef) -> bool:
        """Flip a task's done flag now and save it in the background.

        Must be called from a running event loop. Returns the new done value.
        """
        loop = asyncio.get_running_loop()
        task = self.get(ref)

        task.done = not task.done
        done = task.done
        sequence = next(self._sequence)
        self._latest[task.barcode] = sequence
        self._emit("toggled", task)

        request = loop.create_task(self._persist(task, done, sequence))
        self._pending.add(request)
        request.add_done_callback(self._pending.discard)
        return done

    def _is_current(self, task: PickingTask) -> bool:
        return self._by_barcode.get(task.barcode) is task

    async def _persist(self, task: PickingTask, done: bool, sequence: int) -> None:
        try:
            await self.titles.update_status(task.barcode, 1 if done else 0)
        except PersistenceError as exc:
            self._persist_failed(task, done, sequence, exc)
            return
        except Exception as exc:
            logger.exception(f"Status update for {task.barcode} raised unexpectedly")
            error = PersistenceError(task.barcode, 1 if done else 0, str(exc) or type(exc).__name__)
            self._persist_failed(task, done, sequence, error)
            return
        if self._is_current(task):
            self._confirmed[task.barcode] = done

    def _persist_failed(
        self, task: PickingTask, done: bool, sequence: int, exc: PersistenceError
    ) -> None:
        self.last_error = exc
        state = "picked" if done else "not picked"
        logger.warning(f"Could not save {task.barcode} as {state}: {exc.reason}")
        self._emit("persist_failed", task, exc)

        if self.policy is not FailurePolicy.ROLLBACK:
            return
        # Superseded by a reload or by a newer toggle of the same task
        if not self._is_current(task) or self._latest.get(task.barcode) != sequence:
            return
        confirmed = self._confirmed.get(task.barcode, not done)
        if task.done == confirmed:
            return
        task.done = confirmed
        logger.info(f"Reverted {task.barcode} to {'picked' if confirmed else 'not picked'}")
        self._emit("reverted", task, exc)

    async def drain(self) -> None:
        """Wait until every scheduled status update has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # -- scan and selection --

    def resolve(self, scanned_code: str) -> Optional[PickingTask]:
        """Select the first task (in list order) whose barcode ends with the scan.

        Returns None when nothing matches; list and selection stay as they were.
        """
        code = scanned_code.strip()
        match = None
        if code:
            match = next((t for t in self._tasks if t.barcode.endswith(code)), None)

        if match is None:
            logger.info(f"Scan {scanned_code!r} matched no task")
            return None

        if self._selected != match.barcode:
            self._selected = match.barcode
            self._emit("selected", match)
        return match

    def select(self, ref: TaskRef) -> Optional[PickingTask]:
        """Select a task, or close it if it is already selected.

        Returns the selected task, or None when the call closed the selection.
        """
        task = self.get(ref)
        if self._selected == task.barcode:
            self.clear()
            return None

        self._selected = task.barcode
        self._emit("selected", task)
        return task

    def clear(self) -> None:
        """Drop the selection, if any."""
        previous = self.selected
        if self._selected is None:
            return
        self._selected = None
        self._emit("cleared", previous)
