"""Terminal front-end for the picking client.

Renders the pick list with Rich and reads one line at a time. A line is a
scanned barcode unless it starts with ``:``.

Scan input:      <barcode>   open the matching task
                 :o N        open row N
                 :t N        toggle row N without opening it
                 :r          reload the list
                 :q          quit
Detail view:     <Enter>/:d  mark picked (or unpick) and close
                 :x          close
                 <barcode>   open another task
"""

from __future__ import annotations

import asyncio
from typing import Optional

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from server.logging_config import get_logger

from .errors import IngestError, PicklistError
from .models import PickingTask, StoreEvent
from .session import PickingSession
from .store import PickingStore

logger = get_logger(__name__)

SCAN_PROMPT = "[bold cyan]scan>[/] "
DETAIL_PROMPT = "[bold yellow]detail ([Enter] mark, :x close)>[/] "


class PickingConsole:
    def __init__(self, store: PickingStore, console: Optional[Console] = None):
        self.store = store
        self.console = console or Console()
        self.session = PickingSession(store, self._focus_scan_input)
        self.mode = "scan"
        self.message: Optional[Text] = None
        store.subscribe(self._on_event)

    def _focus_scan_input(self) -> None:
        self.mode = "scan"

    def _on_event(self, event: StoreEvent) -> None:
        if event.kind == "selected":
            self.mode = "detail"
        elif event.kind == "cleared":
            # Also raised when a reload drops the open task
            self._focus_scan_input()
        elif event.kind == "persist_failed":
            self.message = Text(f"Not saved: {event.error}", style="bold red")
        elif event.kind == "reverted":
            self.message = Text(
                f"{event.task.title} was reverted; toggle it again to retry.",
                style="bold red",
            )

    # -- rendering --

    def _table(self) -> Table:
        table = Table(expand=True, header_style="bold")
        table.add_column("#", justify="right", width=4)
        table.add_column("Coordinate")
        table.add_column("Title", ratio=1)
        table.add_column("Barcode")
        table.add_column("Copies", justify="right")
        table.add_column("Status")

        selected = self.store.selected
        for row, task in enumerate(self.store.tasks, start=1):
            style = "dim strike" if task.done else ""
            if task is selected:
                style = "reverse"
            table.add_row(
                str(row),
                task.coordinate,
                task.title,
                task.barcode,
                str(task.copies),
                "picked" if task.done else "",
                style=style,
            )
        return table

    def _detail(self, task: PickingTask) -> Panel:
        body = Text()
        body.append(f"{task.title}\n", style="bold")
        body.append(f"Shelf {task.coordinate}  ·  {task.copies} copies\n")
        body.append(f"Barcode {task.barcode}\n")
        if task.cover_ref:
            body.append(f"Cover {task.cover_ref}\n", style="dim")
        body.append("PICKED" if task.done else "NOT PICKED", style="green" if task.done else "yellow")
        return Panel(body, title="Task", border_style="yellow")

    def render(self) -> Group:
        picked = sum(1 for t in self.store.tasks if t.done)
        parts = [
            Text(f"{picked}/{len(self.store.tasks)} picked", style="bold"),
            self._table(),
        ]
        selected = self.store.selected
        if self.mode == "detail" and selected is not None:
            parts.append(self._detail(selected))
        if self.message is not None:
            parts.append(self.message)
        return Group(*parts)

    # -- input --

    def _row(self, arg: str) -> Optional[PickingTask]:
        try:
            index = int(arg) - 1
        except ValueError:
            index = -1
        tasks = self.store.tasks
        if not 0 <= index < len(tasks):
            self.message = Text(f"No row {arg!r}", style="red")
            return None
        return tasks[index]

    async def refresh(self) -> None:
        try:
            await self.store.load()
        except IngestError as exc:
            self.message = Text(f"Could not load titles: {exc}", style="bold red")

    async def handle_line(self, line: str) -> bool:
        """Apply one input line. Returns False when the operator quits."""
        self.message = None
        command, _, arg = line.strip().partition(" ")

        if self.mode == "detail" and command in ("", ":d"):
            self.session.mark_from_detail()
        elif command == ":x":
            self.session.close_detail()
        elif command == ":q":
            return False
        elif command == ":r":
            await self.refresh()
        elif command in (":o", ":t"):
            task = self._row(arg.strip())
            if task is not None:
                try:
                    if command == ":o":
                        self.session.open(task)
                    else:
                        self.store.toggle(task)
                except PicklistError as exc:
                    self.message = Text(str(exc), style="red")
        elif command.startswith(":"):
            self.message = Text(f"Unknown command {command}", style="yellow")
        elif command:
            if self.session.scan(line) is None:
                self.message = Text(f"Not found: {line.strip()}", style="yellow")
        return True

    async def run(self) -> None:
        """Load the list, then read lines until :q or end of input."""
        await self.refresh()
        try:
            while True:
                self.console.clear()
                self.console.print(self.render())
                prompt = DETAIL_PROMPT if self.mode == "detail" else SCAN_PROMPT
                try:
                    line = await asyncio.to_thread(self.console.input, prompt)
                except EOFError:
                    break
                if not await self.handle_line(line):
                    break
        finally:
            if self.store.pending:
                self.console.print(f"Saving {self.store.pending} pending update(s)...")
            await self.store.drain()
