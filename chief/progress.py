"""Parsing and watching of the progress.md notes file."""

from __future__ import annotations

import os
import queue
import re
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

PROGRESS_FILE = "progress.md"

_STORY_HEADER = re.compile(r"^## (\d{4}-\d{2}-\d{2}) - (.+)$", re.ASCII)


@dataclass
class ProgressEntry:
    """Progress notes for one story from one session."""

    story_id: str
    date: str
    content: str = ""


def progress_path(prd_path: str) -> str:
    """Path of progress.md next to the given prd.json."""
    return os.path.join(os.path.dirname(prd_path), PROGRESS_FILE)


def _lines(text: str) -> list[str]:
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def parse_progress(path: str) -> Optional[dict[str, list[ProgressEntry]]]:
    """Parse progress.md into story ID -> entries; None when the file is missing."""
    try:
        with open(path, encoding="utf-8", errors="replace") as handle:
            text = handle.read()
    except FileNotFoundError:
        return None

    result: dict[str, list[ProgressEntry]] = {}
    current: Optional[ProgressEntry] = None
    body: list[str] = []

    def flush() -> None:
        nonlocal current, body
        if current is not None and body:
            current.content = "\n".join(body)
            result.setdefault(current.story_id, []).append(current)
        current = None
        body = []

    for line in _lines(text):
        if line.strip() == "---":
            flush()
            continue
        match = _STORY_HEADER.match(line)
        if match:
            flush()
            current = ProgressEntry(story_id=match.group(2), date=match.group(1))
            continue
        if current is not None:
            body.append(line)
    flush()
    return result


class _FileChangeHandler(FileSystemEventHandler):
    def __init__(self, on_change: Callable[[str], None]) -> None:
        super().__init__()
        self._on_change = on_change

    def on_created(self, event) -> None:
        if not event.is_directory:
            self._on_change(os.fsdecode(event.src_path))

    def on_modified(self, event) -> None:
        if not event.is_directory:
            self._on_change(os.fsdecode(event.src_path))

    def on_moved(self, event) -> None:
        if not event.is_directory:
            self._on_change(os.fsdecode(event.dest_path))


class ProgressWatcher:
    """Watches progress.md next to a prd.json and queues parsed entries.

    Parsed results arrive on ``events``; ``None`` is queued once stopped.
    """

    def __init__(self, prd_path: str) -> None:
        self.directory = os.path.dirname(prd_path) or "."
        self.path = os.path.join(self.directory, PROGRESS_FILE)
        self.events: "queue.Queue[Optional[dict[str, list[ProgressEntry]]]]" = queue.Queue()
        self._observer: Optional[Observer] = None
        self._lock = threading.Lock()

    def start(self) -> None:
        """Begin watching; does nothing if already running."""
        with self._lock:
            if self._observer is not None:
                return
            observer = Observer()
            observer.schedule(_FileChangeHandler(self._on_change), self.directory, recursive=False)
            observer.start()
            self._observer = observer

    def stop(self) -> None:
        """Stop watching; safe to call more than once."""
        with self._lock:
            observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        observer.join()
        self.events.put(None)

    def _on_change(self, path: str) -> None:
        if os.path.basename(path) != PROGRESS_FILE:
            return
        try:
            entries = parse_progress(self.path)
        except OSError:
            return
        if entries is not None:
            self.events.put(entries)

    def __enter__(self) -> "ProgressWatcher":
        self.start()
        return self

    def __exit__(self, *args) -> None:
        self.stop()