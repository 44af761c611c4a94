"""Validation, cleanup and progress merging for converted prd.json output."""

from __future__ import annotations

import enum
import json
import os
import subprocess
import sys
from typing import Optional, TextIO

from chief.panel import wait_with_spinner
from chief.prd import PRD, PRDError

PRD_MARKDOWN = "prd.md"
PRD_JSON = "prd.json"


class ConversionError(Exception):
    """Raised when converting or validating a PRD fails."""


class ProgressConflictChoice(enum.Enum):
    """How to handle existing progress when prd.json is regenerated."""

    MERGE = "merge"
    OVERWRITE = "overwrite"
    CANCEL = "cancel"


def _strip_fences(output: str) -> str:
    if output.startswith("```json"):
        output = output[len("```json"):]
    elif output.startswith("```"):
        output = output[len("```"):]
    if output.endswith("```"):
        output = output[: -len("```")]
    return output.strip()


def _extract_object(output: str) -> str:
    start = output.find("{")
    if start == -1:
        return output
    depth = 0
    in_string = False
    escaped = False
    for position in range(start, len(output)):
        ch = output[position]
        if escaped:
            escaped = False
            continue
        if ch == "\\" and in_string:
            escaped = True
            continue
        if ch == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return output[start : position + 1]
    return output[start:]


def clean_json_output(output: str) -> str:
    """Strip markdown fences, preamble and trailing text around a JSON object."""
    output = _strip_fences(output.strip())
    if output and output[0] != "{":
        output = _extract_object(output)
    return output.strip()


def validate_json(content: str) -> None:
    """Raise ConversionError unless ``content`` is valid JSON."""
    try:
        json.loads(content)
    except json.JSONDecodeError as exc:
        raise ConversionError(f"invalid JSON: {exc}") from exc


def parse_and_validate_prd(json_str: str) -> PRD:
    """Parse a JSON string as a PRD that has a project and at least one story."""
    try:
        prd = PRD.from_dict(json.loads(json_str))
    except (json.JSONDecodeError, PRDError) as exc:
        raise ConversionError(f"failed to parse JSON: {exc}") from exc
    if not prd.project:
        raise ConversionError("prd.json missing required 'project' field")
    if not prd.user_stories:
        raise ConversionError("prd.json has no user stories")
    return prd


def load_and_validate_converted_prd(path: str) -> PRD:
    """Read ``path`` and validate it as a converted PRD."""
    try:
        with open(path, encoding="utf-8") as handle:
            text = handle.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise ConversionError(f"failed to read {path}: {exc}") from exc
    return parse_and_validate_prd(text)


def needs_conversion(prd_dir: str) -> bool:
    """True when prd.md exists and prd.json is missing or older."""
    md_path = os.path.join(prd_dir, PRD_MARKDOWN)
    json_path = os.path.join(prd_dir, PRD_JSON)
    try:
        md_info = os.stat(md_path)
    except FileNotFoundError:
        return False
    except OSError as exc:
        raise ConversionError(f"failed to stat prd.md: {exc}") from exc
    try:
        json_info = os.stat(json_path)
    except FileNotFoundError:
        return True
    except OSError as exc:
        raise ConversionError(f"failed to stat prd.json: {exc}") from exc
    return md_info.st_mtime_ns > json_info.st_mtime_ns


def has_progress(prd: Optional[PRD]) -> bool:
    """True if any story passes or is in progress."""
    if prd is None:
        return False
    return any(story.passes or story.in_progress for story in prd.user_stories)


def merge_progress(old_prd: Optional[PRD], new_prd: Optional[PRD]) -> None:
    """Copy passes/inProgress from ``old_prd`` onto stories of ``new_prd`` with matching IDs."""
    if old_prd is None or new_prd is None:
        return
    old_status = {story.id: (story.passes, story.in_progress) for story in old_prd.user_stories}
    for story in new_prd.user_stories:
        status = old_status.get(story.id)
        if status is not None:
            story.passes, story.in_progress = status


def prompt_progress_conflict(
    old_prd: PRD,
    new_prd: PRD,
    input_stream: Optional[TextIO] = None,
    output_stream: Optional[TextIO] = None,
) -> ProgressConflictChoice:
    """Ask the user whether to merge, overwrite or cancel; empty input cancels."""
    input_stream = sys.stdin if input_stream is None else input_stream
    out = sys.stdout if output_stream is None else output_stream
    count = sum(1 for story in old_prd.user_stories if story.passes or story.in_progress)

    out.write("\n")
    out.write(f"⚠️  Warning: prd.json has progress ({count} stories with status)\n")
    out.write("\n")
    out.write("How would you like to proceed?\n")
    out.write("\n")
    out.write(
        "  [m] Merge  - Keep status for matching story IDs, add new stories, drop removed stories\n"
    )
    out.write("  [o] Overwrite - Discard all progress and use the new PRD\n")
    out.write("  [c] Cancel - Cancel conversion and keep existing prd.json\n")
    out.write("\n")
    out.write("Choice [m/o/c]: ")
    out.flush()

    line = input_stream.readline()
    if not line.endswith("\n"):
        raise ConversionError("failed to read input: EOF")

    answer = line.lower().strip()
    if answer in ("m", "merge"):
        return ProgressConflictChoice.MERGE
    if answer in ("o", "overwrite"):
        return ProgressConflictChoice.OVERWRITE
    if answer in ("c", "cancel", ""):
        return ProgressConflictChoice.CANCEL
    out.write(f"Invalid choice {json.dumps(answer)}, cancelling conversion.\n")
    return ProgressConflictChoice.CANCEL


def run_claude_json_fix(bad_json: str, validation_error: BaseException) -> str:
    """Ask Claude to repair invalid JSON and return its raw output."""
    fix_prompt = (
        f"The following JSON is invalid. The error is: {validation_error}\n\n"
        "Fix the JSON (pay special attention to escaping double quotes inside string values "
        "with backslashes) and return ONLY the corrected JSON — no markdown fences, "
        f"no explanation.\n\n{bad_json}"
    )
    try:
        process = subprocess.Popen(
            ["claude", "-p", fix_prompt],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except OSError as exc:
        raise ConversionError(f"failed to start Claude: {exc}") from exc
    try:
        return wait_with_spinner(process, "Fixing JSON", "Fixing prd.json...")
    except RuntimeError as exc:
        raise ConversionError(str(exc)) from exc