"""Product requirements documents: user stories, loading and saving."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Optional


class PRDError(Exception):
    """Raised when a PRD cannot be read, parsed or written."""


def _get(data: dict, key: str, kind: type, default: Any) -> Any:
    value = data.get(key)
    if value is None:
        return default
    if kind is int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise PRDError(f"field {key!r} must be an integer, got {value!r}")
    elif not isinstance(value, kind):
        raise PRDError(f"field {key!r} must be of type {kind.__name__}, got {value!r}")
    return value


@dataclass
class UserStory:
    """A single user story in a PRD."""

    id: str = ""
    title: str = ""
    description: str = ""
    steps: list[str] = field(default_factory=list)
    priority: int = 0
    passes: bool = False
    in_progress: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation; ``inProgress`` is omitted when false."""
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "steps": list(self.steps),
            "priority": self.priority,
            "passes": self.passes,
        }
        if self.in_progress:
            data["inProgress"] = True
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "UserStory":
        """Build a story from its JSON representation."""
        if not isinstance(data, dict):
            raise PRDError(f"user story must be an object, got {data!r}")
        steps = _get(data, "steps", list, [])
        if not all(isinstance(step, str) for step in steps):
            raise PRDError("field 'steps' must hold only strings")
        return cls(
            id=_get(data, "id", str, ""),
            title=_get(data, "title", str, ""),
            description=_get(data, "description", str, ""),
            steps=list(steps),
            priority=_get(data, "priority", int, 0),
            passes=_get(data, "passes", bool, False),
            in_progress=_get(data, "inProgress", bool, False),
        )


@dataclass
class PRD:
    """A Product Requirements Document."""

    project: str = ""
    description: str = ""
    user_stories: list[UserStory] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation."""
        return {
            "project": self.project,
            "description": self.description,
            "userStories": [story.to_dict() for story in self.user_stories],
        }

    @classmethod
    def from_dict(cls, data: Any) -> "PRD":
        """Build a PRD from its JSON representation."""
        if not isinstance(data, dict):
            raise PRDError(f"PRD must be a JSON object, got {type(data).__name__}")
        stories = _get(data, "userStories", list, [])
        return cls(
            project=_get(data, "project", str, ""),
            description=_get(data, "description", str, ""),
            user_stories=[UserStory.from_dict(story) for story in stories],
        )

    def to_json(self) -> str:
        """Serialise with two-space indentation."""
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    def all_complete(self) -> bool:
        """True when every story passes (or there are none)."""
        return all(story.passes for story in self.user_stories)

    def next_story(self) -> Optional[UserStory]:
        """The interrupted story, else the lowest-priority unfinished one, else None."""
        for story in self.user_stories:
            if story.in_progress:
                return story
        pending = [story for story in self.user_stories if not story.passes]
        if not pending:
            return None
        return min(pending, key=lambda story: story.priority)

    def save(self, path: str) -> None:
        """Write the PRD as JSON to ``path``."""
        try:
            with open(path, "w", encoding="utf-8") as handle:
                handle.write(self.to_json())
        except OSError as exc:
            raise PRDError(f"failed to write PRD file: {exc}") from exc


def load_prd(path: str) -> PRD:
    """Read and parse a PRD JSON file."""
    try:
        with open(path, encoding="utf-8") as handle:
            text = handle.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise PRDError(f"failed to read PRD file: {exc}") from exc
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise PRDError(f"failed to parse PRD JSON: {exc}") from exc
    try:
        return PRD.from_dict(data)
    except PRDError as exc:
        raise PRDError(f"failed to parse PRD JSON: {exc}") from exc