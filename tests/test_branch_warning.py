import pytest

from chief.branch_warning import (
    BranchWarning,
    BranchWarningOption,
    DialogContext,
)
from chief.style import strip_ansi


def make_dialog(context, branch="main", prd="auth", path=".chief/worktrees/auth/"):
    bw = BranchWarning()
    bw.set_size(80, 24)
    bw.set_context(branch, prd, path)
    bw.set_dialog_context(context)
    bw.reset()
    return bw


def test_protected_branch_options():
    bw = make_dialog(DialogContext.PROTECTED_BRANCH)
    assert len(bw.options) == 4
    assert bw.options[0].option == BranchWarningOption.CREATE_BRANCH
    assert bw.options[0].recommended
    assert bw.selected_option() == BranchWarningOption.CREATE_BRANCH
    assert bw.options[1].option == BranchWarningOption.CREATE_WORKTREE
    assert bw.options[2].option == BranchWarningOption.CONTINUE
    assert bw.options[3].option == BranchWarningOption.CANCEL
    assert bw.options[2].label == "Continue on main"


def test_another_prd_running_options():
    bw = make_dialog(
        DialogContext.ANOTHER_PRD_RUNNING, "feature/x", "payments", ".chief/worktrees/payments/"
    )
    assert len(bw.options) == 3
    assert bw.options[0].option == BranchWarningOption.CREATE_WORKTREE
    assert bw.options[0].recommended
    assert bw.options[1].option == BranchWarningOption.CONTINUE
    assert bw.options[2].option == BranchWarningOption.CANCEL


def test_no_conflicts_options():
    bw = make_dialog(DialogContext.NO_CONFLICTS, "feature/x")
    assert len(bw.options) == 3
    assert bw.options[0].option == BranchWarningOption.CONTINUE
    assert bw.options[0].recommended
    assert bw.options[1].option == BranchWarningOption.CREATE_WORKTREE
    assert bw.options[2].option == BranchWarningOption.CANCEL


def test_navigation():
    bw = make_dialog(DialogContext.PROTECTED_BRANCH)
    assert bw.selected_index == 0
    bw.move_down()
    assert bw.selected_index == 1
    bw.move_down()
    bw.move_down()
    assert bw.selected_index == 3
    bw.move_down()
    assert bw.selected_index == 3
    bw.move_up()
    assert bw.selected_index == 2
    bw.move_up()
    bw.move_up()
    assert bw.selected_index == 0
    bw.move_up()
    assert bw.selected_index == 0


def test_branch_edit():
    bw = make_dialog(DialogContext.PROTECTED_BRANCH)
    assert bw.suggested_branch() == "chief/auth"
    bw.start_edit_mode()
    assert bw.edit_mode is True
    for _ in range(4):
        bw.delete_input_char()
    for ch in "my-prd":
        bw.add_input_char(ch)
    assert bw.suggested_branch() == "chief/my-prd"
    bw.add_input_char(" ")
    bw.add_input_char("!")
    assert bw.suggested_branch() == "chief/my-prd"
    bw.cancel_edit_mode()
    assert bw.edit_mode is False


def test_delete_on_empty_branch_name():
    bw = BranchWarning()
    bw.delete_input_char()
    assert bw.suggested_branch() == ""


def test_path_hints():
    bw = BranchWarning()
    bw.set_size(80, 24)
    bw.set_context("main", "auth", ".chief/worktrees/auth/")
    bw.set_dialog_context(DialogContext.PROTECTED_BRANCH)
    assert bw.options[0].hint == "./ (current directory)"
    assert bw.options[1].hint == ".chief/worktrees/auth/"
    assert bw.options[2].hint == "./ (current directory)"
    assert bw.options[3].hint == ""


@pytest.mark.parametrize(
    "context, title",
    [
        (DialogContext.PROTECTED_BRANCH, "Protected Branch Warning"),
        (DialogContext.ANOTHER_PRD_RUNNING, "Directory In Use"),
        (DialogContext.NO_CONFLICTS, "Start PRD"),
    ],
)
def test_render_contains_title_and_branch(context, title):
    bw = make_dialog(context)
    output = strip_ansi(bw.render())
    assert title in output
    assert "Branch: chief/auth" in output
    assert "(Recommended)" in output


def test_render_marks_selected_option():
    bw = make_dialog(DialogContext.PROTECTED_BRANCH)
    bw.move_down()
    output = strip_ansi(bw.render())
    assert "▶ Create worktree + branch" in output
    assert "  Create branch only" in output
    assert "→ .chief/worktrees/auth/" in output


def test_render_edit_mode_footer():
    bw = make_dialog(DialogContext.PROTECTED_BRANCH)
    bw.start_edit_mode()
    output = strip_ansi(bw.render())
    assert "Enter: confirm  Esc: cancel edit" in output
    assert "chief/auth▌" in output


def test_render_is_centred():
    bw = make_dialog(DialogContext.PROTECTED_BRANCH)
    lines = strip_ansi(bw.render()).split("\n")
    branch_line = next(line for line in lines if "Branch:" in line)
    assert branch_line.startswith(" " * 6 + "│")


def test_dialog_context():
    bw = BranchWarning()
    bw.set_context("main", "auth", ".chief/worktrees/auth/")
    bw.set_dialog_context(DialogContext.PROTECTED_BRANCH)
    assert bw.dialog_context() == DialogContext.PROTECTED_BRANCH
    bw.set_dialog_context(DialogContext.ANOTHER_PRD_RUNNING)
    assert bw.dialog_context() == DialogContext.ANOTHER_PRD_RUNNING
    bw.set_dialog_context(DialogContext.NO_CONFLICTS)
    assert bw.dialog_context() == DialogContext.NO_CONFLICTS


def test_no_options_selects_cancel():
    bw = BranchWarning()
    bw.move_down()
    assert bw.selected_index == 0
    assert bw.selected_option() == BranchWarningOption.CANCEL


def test_reset_restores_defaults():
    bw = make_dialog(DialogContext.PROTECTED_BRANCH)
    bw.move_down()
    bw.start_edit_mode()
    bw.add_input_char("x")
    bw.reset()
    assert bw.selected_index == 0
    assert bw.edit_mode is False
    assert bw.suggested_branch() == "chief/auth"