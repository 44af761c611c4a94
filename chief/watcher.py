"""Watching prd.json for story status changes."""

from __future__ import annotations

import errno
import os
import queue
import threading
from dataclasses import dataclass
from typing import Optional

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from chief.prd import PRD, PRDError, load_prd


def _canonical(path: str) -> str:
    path = os.path.abspath(path)
    return os.path.join(os.path.realpath(os.path.dirname(path)), os.path.basename(path))


@dataclass
class WatcherEvent:
    """A reloaded PRD or an error seen while watching."""

    prd: Optional[PRD] = None
    error: Optional[BaseException] = None


class _PRDFileHandler(FileSystemEventHandler):
    def __init__(self, watcher: "Watcher") -> None:
        super().__init__()
        self._watcher = watcher

    def on_created(self, event) -> None:
        if not event.is_directory and self._watcher._is_target(event.src_path):
            self._watcher._handle_file_change()

    def on_modified(self, event) -> None:
        if not event.is_directory and self._watcher._is_target(event.src_path):
            self._watcher._handle_file_change()

    def on_deleted(self, event) -> None:
        if not event.is_directory and self._watcher._is_target(event.src_path):
            self._watcher._handle_removal()

    def on_moved(self, event) -> None:
        if event.is_directory:
            return
        if self._watcher._is_target(event.src_path):
            self._watcher._handle_removal()
        if self._watcher._is_target(event.dest_path):
            self._watcher._handle_file_change()


class Watcher:
    """Watches a prd.json file and queues events when story status changes.

    Events arrive on ``events``; ``None`` is queued once stopped.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self.events: "queue.Queue[Optional[WatcherEvent]]" = queue.Queue()
        self.last_prd: Optional[PRD] = None
        self._target = _canonical(path)
        self._observer: Optional[Observer] = None
        self._running = False
        self._lock = threading.Lock()

    def start(self) -> None:
        """Load the PRD and begin watching; raises if already running."""
        with self._lock:
            if self._running:
                raise RuntimeError("watcher already running")
            self._running = True

        try:
            prd = load_prd(self.path)
        except PRDError as exc:
            self.events.put(WatcherEvent(error=exc))
        else:
            with self._lock:
                self.last_prd = prd

        if not os.path.exists(self.path):
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), self.path)

        observer = Observer()
        observer.schedule(_PRDFileHandler(self), os.path.dirname(self._target), recursive=False)
        observer.start()
        with self._lock:
            self._observer = observer

    def stop(self) -> None:
        """Stop watching; safe to call more than once."""
        with self._lock:
            if not self._running:
                return
            self._running = False
            observer, self._observer = self._observer, None
        if observer is not None:
            observer.stop()
            observer.join()
        self.events.put(None)

    def has_status_changed(self, new_prd: PRD) -> bool:
        """True if any story was added or its passes/inProgress status changed."""
        old = self.last_prd
        if old is None:
            return True
        if len(old.user_stories) != len(new_prd.user_stories):
            return True
        old_stories = {story.id: story for story in old.user_stories}
        for story in new_prd.user_stories:
            previous = old_stories.get(story.id)
            if previous is None:
                return True
            if previous.passes != story.passes or previous.in_progress != story.in_progress:
                return True
        return False

    def _is_target(self, path) -> bool:
        return _canonical(os.fsdecode(path)) == self._target

    def _handle_file_change(self) -> None:
        try:
            prd = load_prd(self.path)
        except PRDError as exc:
            self.events.put(WatcherEvent(error=exc))
            return
        with self._lock:
            changed = self.has_status_changed(prd)
            if changed:
                self.last_prd = prd
        if changed:
            self.events.put(WatcherEvent(prd=prd))

    def _handle_removal(self) -> None:
        name = os.path.basename(self.path)
        self.events.put(WatcherEvent(error=PRDError(f"{name} was removed")))

    def __enter__(self) -> "Watcher":
        self.start()
        return self

    def __exit__(self, *args) -> None:
        self.stop()