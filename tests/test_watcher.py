import queue
import time

import pytest

from chief.prd import PRD, UserStory
from chief.watcher import Watcher, WatcherEvent


def _write(path, prd):
    path.write_text(prd.to_json())


def _sample(**story_fields):
    return PRD(project="Test", user_stories=[UserStory(id="US-001", title="Test Story", **story_fields)])


def _wait_for(events, predicate, timeout):
    deadline = time.monotonic() + timeout
    while (remaining := deadline - time.monotonic()) > 0:
        try:
            event = events.get(timeout=remaining)
        except queue.Empty:
            break
        if predicate(event):
            return event
    return None


def _drain(events):
    items = []
    while True:
        try:
            items.append(events.get_nowait())
        except queue.Empty:
            return items


def test_new_watcher(tmp_path):
    prd_path = tmp_path / "prd.json"
    _write(prd_path, _sample())
    watcher = Watcher(str(prd_path))
    assert watcher.path == str(prd_path)
    assert watcher.last_prd is None
    watcher.stop()


def test_watcher_start_twice_raises(tmp_path):
    prd_path = tmp_path / "prd.json"
    _write(prd_path, _sample())
    watcher = Watcher(str(prd_path))
    try:
        watcher.start()
        assert watcher.last_prd.project == "Test"
        with pytest.raises(RuntimeError):
            watcher.start()
    finally:
        watcher.stop()


def test_watcher_detects_passes_change(tmp_path):
    prd_path = tmp_path / "prd.json"
    prd = _sample(passes=False)
    _write(prd_path, prd)
    with Watcher(str(prd_path)) as watcher:
        time.sleep(0.2)
        prd.user_stories[0].passes = True
        _write(prd_path, prd)
        event = _wait_for(watcher.events, lambda e: e is not None and e.prd is not None, 3.0)
    assert event is not None
    assert event.error is None
    assert event.prd.user_stories[0].passes is True


def test_watcher_detects_in_progress_change(tmp_path):
    prd_path = tmp_path / "prd.json"
    prd = _sample(passes=False, in_progress=False)
    _write(prd_path, prd)
    with Watcher(str(prd_path)) as watcher:
        time.sleep(0.2)
        prd.user_stories[0].in_progress = True
        _write(prd_path, prd)
        event = _wait_for(watcher.events, lambda e: e is not None and e.prd is not None, 3.0)
    assert event is not None
    assert event.prd.user_stories[0].in_progress is True


def test_watcher_handles_file_not_found(tmp_path):
    watcher = Watcher(str(tmp_path / "nonexistent.json"))
    try:
        with pytest.raises(FileNotFoundError):
            watcher.start()
        first = watcher.events.get_nowait()
        assert first.error is not None
        assert first.prd is None
    finally:
        watcher.stop()


def test_watcher_ignores_non_status_changes(tmp_path):
    prd_path = tmp_path / "prd.json"
    prd = _sample(description="Original", passes=False)
    _write(prd_path, prd)
    with Watcher(str(prd_path)) as watcher:
        time.sleep(0.2)
        prd.user_stories[0].description = "Modified"
        _write(prd_path, prd)
        event = _wait_for(watcher.events, lambda e: e is not None and e.prd is not None, 0.5)
    assert event is None


def test_watcher_reports_removal(tmp_path):
    prd_path = tmp_path / "prd.json"
    _write(prd_path, _sample())
    with Watcher(str(prd_path)) as watcher:
        time.sleep(0.2)
        prd_path.unlink()
        event = _wait_for(
            watcher.events,
            lambda e: e is not None and e.error is not None and "removed" in str(e.error),
            3.0,
        )
    assert event is not None
    assert "prd.json was removed" == str(event.error)


def test_watcher_stop_twice(tmp_path):
    prd_path = tmp_path / "prd.json"
    _write(prd_path, _sample())
    watcher = Watcher(str(prd_path))
    watcher.start()
    watcher.stop()
    watcher.stop()
    items = _drain(watcher.events)
    assert items.count(None) == 1
    assert items[-1] is None


@pytest.mark.parametrize(
    "old, new, expected",
    [
        (None, PRD(user_stories=[UserStory(id="US-001")]), True),
        (PRD(user_stories=[UserStory(id="US-001", passes=False)]),
         PRD(user_stories=[UserStory(id="US-001", passes=True)]), True),
        (PRD(user_stories=[UserStory(id="US-001", in_progress=False)]),
         PRD(user_stories=[UserStory(id="US-001", in_progress=True)]), True),
        (PRD(user_stories=[UserStory(id="US-001")]),
         PRD(user_stories=[UserStory(id="US-001")]), False),
        (PRD(user_stories=[UserStory(id="US-001")]),
         PRD(user_stories=[UserStory(id="US-001"), UserStory(id="US-002")]), True),
        (PRD(user_stories=[UserStory(id="US-001", passes=True)]),
         PRD(user_stories=[UserStory(id="US-001", passes=True), UserStory(id="US-002")]), True),
        (PRD(user_stories=[UserStory(id="US-001")]),
         PRD(user_stories=[UserStory(id="US-009")]), True),
    ],
    ids=["nil-old", "passes", "in-progress", "no-change", "count", "added", "renamed"],
)
def test_has_status_changed(tmp_path, old, new, expected):
    watcher = Watcher(str(tmp_path / "prd.json"))
    watcher.last_prd = old
    assert watcher.has_status_changed(new) is expected


def test_watcher_event_defaults():
    event = WatcherEvent(prd=_sample())
    assert event.error is None
    assert event.prd.project == "Test"