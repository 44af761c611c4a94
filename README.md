# chief

A library for working with product requirements documents (PRDs) that drive a
coding agent. A PRD is a `prd.json` file holding a project name, a description
and a list of user stories, each with an id, title, description, steps, a
priority and two progress flags (`passes`, `inProgress`).

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## PRDs (`chief.prd`)

```python
from chief.prd import load_prd

prd = load_prd(".chief/prds/auth/prd.json")
story = prd.next_story()   # the in-progress story, else the lowest-priority one not passing, else None
if prd.all_complete():     # true when every story passes, or there are none
    print("done")

story.passes = True
prd.save(".chief/prds/auth/prd.json")
```

`PRD` and `UserStory` are dataclasses with `to_dict()` / `from_dict()`;
`PRD.to_json()` writes two-space indented JSON, and `inProgress` is left out
of a story when it is false. Reading, parsing or writing failures raise
`PRDError`.

## Progress notes (`chief.progress`)

Agents append notes to a `progress.md` beside `prd.json`, in sections headed
`## YYYY-MM-DD - STORY-ID` and closed by `---` lines. Sections with other
headings are ignored.

```python
from chief.progress import parse_progress, progress_path

entries = parse_progress(progress_path("prd.json")) or {}
for entry in entries.get("US-001", []):
    print(entry.date, entry.content)
```

`parse_progress` returns `None` when the file does not exist.

## Watching for changes

`chief.watcher.Watcher` loads `prd.json` on `start()` and reloads it whenever
it is created or written, putting a `WatcherEvent` on its `events` queue only
when a story was added or its `passes`/`inProgress` changed. Read errors and
removal of the file arrive as events with `error` set. Starting a watcher twice
raises `RuntimeError`; starting it on a missing file raises
`FileNotFoundError` after queueing an error event.

`chief.progress.ProgressWatcher` watches the directory of a `prd.json` and puts
the parsed `progress.md` on its `events` queue each time that file changes.

Both are context managers, and both put `None` on the queue once stopped.

```python
from chief.watcher import Watcher

with Watcher("prd.json") as watcher:
    event = watcher.events.get()
    if event is not None and event.prd is not None:
        print([s.id for s in event.prd.user_stories if s.passes])
```

## Validating converted output (`chief.conversion`)

- `needs_conversion(prd_dir)` – true when `prd.md` exists and `prd.json` is
  missing or older.
- `clean_json_output(text)` – strips code fences, preamble and trailing text
  around a JSON object.
- `validate_json(text)` / `parse_and_validate_prd(text)` /
  `load_and_validate_converted_prd(path)` – raise `ConversionError` for invalid
  JSON, a missing `project` or an empty story list.
- `has_progress(prd)` and `merge_progress(old, new)` – detect story status and
  copy it onto stories with the same id.
- `prompt_progress_conflict(old, new)` – asks on the terminal whether to merge,
  overwrite or cancel and returns a `ProgressConflictChoice`; empty or unknown
  input cancels.
- `run_claude_json_fix(bad_json, error)` – runs `claude -p` with a request to
  repair the JSON, shows a spinner panel while it runs, and returns its output.

## Terminal panels (`chief.panel`, `chief.style`)

`chief.panel` renders bordered panels with an activity line, elapsed time,
a progress bar estimated against 90 seconds (capped at 95%) and rotating
jokes. `wait_with_spinner` and `wait_with_panel` redraw such a panel until a
`subprocess.Popen` finishes, then return its stdout or raise `RuntimeError`
with its stderr. `chief.style` provides the ANSI colouring (`styled`,
`strip_ansi`, `visible_width`) and `rounded_box` used for them.

## Branch dialog (`chief.branch_warning`)

`BranchWarning` holds the state of the dialog shown before starting work on a
protected branch, in a directory another PRD is using, or with no conflict
(`DialogContext`). It builds the option list for each case, tracks the
selection (`move_up`, `move_down`, `selected_option`), keeps an editable branch
name defaulting to `chief/<prd name>` that accepts only letters, digits, `-`,
`_` and `/`, and `render()` draws the dialog as a centred box.

## What this package does not do

There is no command-line program and no interactive dashboard: the dialog and
panels are rendering pieces only, with no key handling or event loop. The
package does not carry out the full `prd.md` to `prd.json` conversion itself –
it has no prompt for the initial conversion – and it does not run agent loops,
create branches or worktrees, or talk to git.