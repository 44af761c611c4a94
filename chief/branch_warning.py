"""Dialog shown before starting a PRD on a protected branch or a busy directory."""

from __future__ import annotations

import enum
import string
from dataclasses import dataclass

from chief.style import (
    BORDER,
    MUTED,
    PRIMARY,
    SUCCESS,
    TEXT,
    TEXT_BRIGHT,
    WARNING,
    rounded_box,
    styled,
    visible_width,
)

CURRENT_DIR_HINT = "./ (current directory)"

_BRANCH_CHARS = frozenset(string.ascii_letters + string.digits + "-_/")


class BranchWarningOption(enum.Enum):
    """What the user chose in the branch warning dialog."""

    CREATE_WORKTREE = "create_worktree"
    CREATE_BRANCH = "create_branch"
    CONTINUE = "continue"
    CANCEL = "cancel"


class DialogContext(enum.Enum):
    """Which situation the dialog is shown for."""

    PROTECTED_BRANCH = "protected_branch"
    ANOTHER_PRD_RUNNING = "another_prd_running"
    NO_CONFLICTS = "no_conflicts"


@dataclass(frozen=True)
class DialogOption:
    """A selectable entry in the dialog."""

    label: str
    option: BranchWarningOption
    hint: str = ""
    recommended: bool = False


def _divider(width: int) -> str:
    return styled("─" * width, color=BORDER)


class BranchWarning:
    """State and rendering of the branch warning dialog."""

    def __init__(self) -> None:
        self.width = 0
        self.height = 0
        self.current_branch = ""
        self.prd_name = ""
        self.worktree_path = ""
        self.selected_index = 0
        self.edit_mode = False
        self.branch_name = ""
        self.context = DialogContext.PROTECTED_BRANCH
        self.options: list[DialogOption] = []

    def set_size(self, width: int, height: int) -> None:
        """Set the screen dimensions used for layout."""
        self.width = width
        self.height = height

    def set_context(self, current_branch: str, prd_name: str, worktree_path: str) -> None:
        """Set the current branch, PRD name and relative worktree path."""
        self.current_branch = current_branch
        self.prd_name = prd_name
        self.branch_name = f"chief/{prd_name}"
        self.worktree_path = worktree_path

    def set_dialog_context(self, context: DialogContext) -> None:
        """Choose the situation and rebuild the option list for it."""
        self.context = context
        self.options = self._build_options()

    def _build_options(self) -> list[DialogOption]:
        if self.context is DialogContext.PROTECTED_BRANCH:
            return [
                DialogOption("Create branch only", BranchWarningOption.CREATE_BRANCH,
                             CURRENT_DIR_HINT, recommended=True),
                DialogOption("Create worktree + branch", BranchWarningOption.CREATE_WORKTREE,
                             self.worktree_path),
                DialogOption(f"Continue on {self.current_branch}", BranchWarningOption.CONTINUE,
                             CURRENT_DIR_HINT),
                DialogOption("Cancel", BranchWarningOption.CANCEL),
            ]
        if self.context is DialogContext.ANOTHER_PRD_RUNNING:
            return [
                DialogOption("Create worktree", BranchWarningOption.CREATE_WORKTREE,
                             self.worktree_path, recommended=True),
                DialogOption("Run in same directory", BranchWarningOption.CONTINUE,
                             CURRENT_DIR_HINT),
                DialogOption("Cancel", BranchWarningOption.CANCEL),
            ]
        return [
            DialogOption("Run in current directory", BranchWarningOption.CONTINUE,
                         CURRENT_DIR_HINT, recommended=True),
            DialogOption("Create worktree + branch", BranchWarningOption.CREATE_WORKTREE,
                         self.worktree_path),
            DialogOption("Cancel", BranchWarningOption.CANCEL),
        ]

    def suggested_branch(self) -> str:
        """The branch name, possibly edited by the user."""
        return self.branch_name

    def selected_option(self) -> BranchWarningOption:
        """The highlighted option, or CANCEL when nothing is selectable."""
        if 0 <= self.selected_index < len(self.options):
            return self.options[self.selected_index].option
        return BranchWarningOption.CANCEL

    def dialog_context(self) -> DialogContext:
        """The situation the dialog is showing."""
        return self.context

    def move_up(self) -> None:
        """Move the selection up one option."""
        if self.selected_index > 0:
            self.selected_index -= 1

    def move_down(self) -> None:
        """Move the selection down one option."""
        if self.selected_index < len(self.options) - 1:
            self.selected_index += 1

    def reset(self) -> None:
        """Return to the first option and the default branch name."""
        self.selected_index = 0
        self.edit_mode = False
        self.branch_name = f"chief/{self.prd_name}"

    def start_edit_mode(self) -> None:
        """Begin editing the branch name."""
        self.edit_mode = True

    def cancel_edit_mode(self) -> None:
        """Stop editing the branch name."""
        self.edit_mode = False

    def add_input_char(self, ch: str) -> None:
        """Append ``ch`` to the branch name if it is allowed in a branch name."""
        if ch in _BRANCH_CHARS:
            self.branch_name += ch

    def delete_input_char(self) -> None:
        """Remove the last character of the branch name."""
        self.branch_name = self.branch_name[:-1]

    def render(self) -> str:
        """Render the dialog centred on the screen."""
        modal_width = max(min(65, self.width - 10), 40)
        modal_height = max(min(20, self.height - 6), 14)

        parts: list[str] = []
        parts.extend(self._render_header(modal_width))
        parts.extend(self._render_branch_name())
        parts.extend(self._render_options())

        parts.append("\n")
        parts.append(_divider(modal_width - 4))
        parts.append("\n")
        if self.edit_mode:
            footer = "Enter: confirm  Esc: cancel edit"
        else:
            footer = "↑/↓: Navigate  Enter: Select  e: Edit branch  Esc: Cancel"
        parts.append(styled(footer, color=MUTED))

        border = WARNING if self.context is DialogContext.PROTECTED_BRANCH else PRIMARY
        modal = rounded_box(
            "".join(parts),
            width=modal_width,
            border_color=border,
            padding_y=1,
            padding_x=2,
            height=modal_height,
        )
        return self._center(modal)

    def _render_header(self, modal_width: int) -> list[str]:
        if self.context is DialogContext.PROTECTED_BRANCH:
            title = styled("⚠️  Protected Branch Warning", color=WARNING, bold=True)
            messages = [
                f"You are on the '{self.current_branch}' branch.",
                "It's recommended to create a separate branch.",
            ]
        elif self.context is DialogContext.ANOTHER_PRD_RUNNING:
            title = styled("Directory In Use", color=PRIMARY, bold=True)
            messages = [
                "Another PRD is already running in this directory.",
                "A worktree will avoid file conflicts.",
            ]
        else:
            title = styled("Start PRD", color=PRIMARY, bold=True)
            messages = ["Choose where Claude should work:"]
        body = "\n".join(styled(message, color=TEXT) for message in messages)
        return [title, "\n", _divider(modal_width - 4), "\n\n", body, "\n\n"]

    def _render_branch_name(self) -> list[str]:
        if self.edit_mode:
            return [
                styled("Branch: ", color=MUTED),
                styled(self.branch_name, color=TEXT_BRIGHT, background="237"),
                styled("▌", color=PRIMARY, blink=True),
                "\n\n",
            ]
        return [styled(f"Branch: {self.branch_name}", color=MUTED), "\n\n"]

    def _render_options(self) -> list[str]:
        parts: list[str] = []
        for index, opt in enumerate(self.options):
            if index == self.selected_index:
                parts.append(styled(f"▶ {opt.label}", color=PRIMARY, bold=True))
            else:
                parts.append(styled(f"  {opt.label}", color=TEXT))
            if opt.recommended:
                parts.append(" ")
                parts.append(styled("(Recommended)", color=SUCCESS))
            parts.append("\n")
            if opt.hint:
                parts.append(styled(f"    → {opt.hint}", color=MUTED))
                parts.append("\n")
        return parts

    def _center(self, modal: str) -> str:
        lines = modal.split("\n")
        modal_width = max((visible_width(line) for line in lines), default=0)
        top = max((self.height - len(lines)) // 2, 0)
        left = " " * max((self.width - modal_width) // 2, 0)
        return "\n" * top + "".join(f"{left}{line}\n" for line in lines)