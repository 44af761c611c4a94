"""Bordered progress panels shown while waiting on a long-running command."""

from __future__ import annotations

import os
import random
import subprocess
import sys
import threading
import time
from typing import Callable, Optional, TextIO

from chief.style import BORDER, MUTED, PRIMARY, SUCCESS, TEXT, rounded_box, styled, visible_width

ESTIMATED_SECONDS = 90.0
JOKE_ROTATE_SECONDS = 30.0

WAITING_JOKES = [
    "Why do programmers prefer dark mode? Because light attracts bugs.",
    "There are only 10 types of people: those who understand binary and those who don't.",
    "A SQL query walks into a bar, sees two tables and asks... 'Can I JOIN you?'",
    "!false — it's funny because it's true.",
    "A programmer's wife says: 'Go to the store and get a gallon of milk. If they have eggs, "
    "get a dozen.' He returns with 12 gallons of milk.",
    "Why do Java developers wear glasses? Because they can't C#.",
    "There's no place like 127.0.0.1.",
    "Algorithm: a word used by programmers when they don't want to explain what they did.",
    "It works on my machine. Ship it!",
    "99 little bugs in the code, 99 little bugs. Take one down, patch it around... "
    "127 little bugs in the code.",
    "The best thing about a boolean is that even if you're wrong, you're only off by a bit.",
    "Debugging is like being the detective in a crime movie where you are also the murderer.",
    "How many programmers does it take to change a light bulb? None, that's a hardware problem.",
    "I asked the AI to write a PRD. It wrote a PRD about writing PRDs.",
    "You're absolutely right. That's a great point. I completely agree. — Claude, before doing "
    "what it was already going to do",
    "The AI said it was 95% confident. It was not.",
    "Prompt engineering: the art of saying 'no really, do what I said' in 47 different ways.",
    "The LLM hallucinated a library that doesn't exist. Honestly, the API looked pretty good though.",
    "AI will replace programmers any day now. — programmers, every year since 2022",
    "Homer Simpson: 'To start, press any key.' Where's the ANY key?!",
    "Homer Simpson: 'Kids, you tried your best and you failed miserably. The lesson is, never try.'",
    "The code works and nobody knows why. The code breaks and nobody knows why.",
    "Frink: 'You've got to listen to me! Elementary chaos theory tells us that all robots will "
    "eventually turn against their masters!'",
]


def terminal_width() -> int:
    """Width of the terminal on stdout, or 80 when unknown."""
    try:
        width = os.get_terminal_size(sys.stdout.fileno()).columns
    except (OSError, ValueError, AttributeError):
        return 80
    return width if width > 0 else 80


def wrap_text(text: str, width: int) -> str:
    """Wrap ``text`` at word boundaries to lines of at most ``width`` where possible."""
    words = text.split()
    if not words:
        return ""
    lines = []
    line = words[0]
    for word in words[1:]:
        if len(line) + 1 + len(word) <= width:
            line += " " + word
        else:
            lines.append(line)
            line = word
    lines.append(line)
    return "\n".join(lines)


def format_elapsed(seconds: float) -> str:
    """Format a duration like ``5s`` or ``1m 12s``."""
    whole = int(seconds)
    if whole < 60:
        return f"{whole}s"
    return f"{whole // 60}m {whole % 60}s"


def render_progress_bar(elapsed: float, width: int) -> str:
    """Bar of elapsed time against an estimated duration, capped at 95%."""
    progress = min(max(elapsed / ESTIMATED_SECONDS, 0.0), 0.95)
    pct = f"{int(progress * 100)}%"
    bar_width = max(width - len(pct) - 2, 10)
    fill_width = int(bar_width * progress)
    fill = styled("█" * fill_width, color=SUCCESS)
    empty = styled("░" * (bar_width - fill_width), color=MUTED)
    return fill + empty + "  " + styled(pct, color=MUTED)


def render_activity_line(activity: str, elapsed: float, content_width: int) -> str:
    """A dot, the activity text and the right-aligned elapsed time."""
    icon = styled("●", color=PRIMARY)
    elapsed_text = format_elapsed(elapsed)
    max_desc = content_width - 2 - len(elapsed_text) - 2
    if len(activity) > max_desc > 3:
        activity = activity[: max_desc - 1] + "…"
    left = icon + " " + styled(activity, color=TEXT)
    right = styled(elapsed_text, color=MUTED)
    gap = max(content_width - visible_width(left) - visible_width(right), 1)
    return left + " " * gap + right


def _header(title: str, content_width: int) -> tuple[str, str]:
    header = styled("chief", color=PRIMARY, bold=True) + "  " + styled(title, color=TEXT)
    divider = styled("─" * content_width, color=BORDER)
    return header, divider


def _frame(content: str, panel_width: int) -> str:
    return rounded_box(content, width=panel_width - 2, border_color=PRIMARY, padding_y=1, padding_x=2)


def render_progress_box(title: str, activity: str, elapsed: float, joke: str, panel_width: int) -> str:
    """Full panel: header, activity, progress bar and a joke."""
    content_width = max(panel_width - 6, 20)
    header, divider = _header(title, content_width)
    content = "\n".join(
        [
            header,
            divider,
            "",
            render_activity_line(activity, elapsed, content_width),
            render_progress_bar(elapsed, content_width),
            "",
            divider,
            styled(wrap_text(joke, content_width), color=MUTED),
        ]
    )
    return _frame(content, panel_width)


def render_spinner_box(title: str, activity: str, elapsed: float, panel_width: int) -> str:
    """Simpler panel with header and activity line only."""
    content_width = max(panel_width - 6, 20)
    header, divider = _header(title, content_width)
    content = "\n".join(
        [header, divider, "", render_activity_line(activity, elapsed, content_width)]
    )
    return _frame(content, panel_width)


def clear_panel_lines(n: int, out: Optional[TextIO] = None) -> None:
    """Erase ``n`` lines of a previously drawn panel, leaving the cursor at its top."""
    if n <= 0:
        return
    out = sys.stdout if out is None else out
    if n > 1:
        out.write(f"\x1b[{n - 1}A")
    out.write("\r")
    out.write("\n".join(["\x1b[2K"] * n))
    if n > 1:
        out.write(f"\x1b[{n - 1}A")
    out.write("\r")


def repaint_box(box: str, prev_lines: int, out: Optional[TextIO] = None) -> int:
    """Draw ``box`` over the previous frame; return its line count."""
    out = sys.stdout if out is None else out
    new_lines = box.count("\n") + 1
    if prev_lines > 1:
        out.write(f"\x1b[{prev_lines - 1}A")
    if prev_lines > 0:
        out.write("\r")
    out.write(box)
    if new_lines < prev_lines:
        extra = prev_lines - new_lines
        out.write("\n\x1b[2K" * extra)
        out.write(f"\x1b[{extra}A")
    return new_lines


def _as_text(data) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


def _panel_width() -> int:
    return min(terminal_width() - 2, 62)


def _wait(process: subprocess.Popen, interval: float, render: Callable[[float], str]) -> str:
    result: dict = {}

    def collect() -> None:
        result["out"], result["err"] = process.communicate()

    worker = threading.Thread(target=collect, daemon=True)
    worker.start()
    start = time.monotonic()
    prev_lines = 0
    while True:
        worker.join(interval)
        if not worker.is_alive():
            break
        prev_lines = repaint_box(render(time.monotonic() - start), prev_lines)
        sys.stdout.flush()
    clear_panel_lines(prev_lines)
    sys.stdout.flush()
    if process.returncode != 0:
        raise RuntimeError(f"Claude failed: {_as_text(result.get('err'))}")
    return _as_text(result.get("out"))


def wait_with_spinner(process: subprocess.Popen, title: str, message: str) -> str:
    """Show a spinner panel until ``process`` exits; return its stdout.

    Raises RuntimeError with the process's stderr if it fails.
    """
    width = _panel_width()
    return _wait(process, 0.2, lambda elapsed: render_spinner_box(title, message, elapsed, width))


def wait_with_panel(process: subprocess.Popen, title: str, activity: str) -> str:
    """Show the full progress panel with rotating jokes until ``process`` exits.

    Returns its stdout; raises RuntimeError with its stderr if it fails.
    """
    width = _panel_width()
    index = random.randrange(len(WAITING_JOKES))
    last_change = time.monotonic()

    def render(elapsed: float) -> str:
        nonlocal index, last_change
        if time.monotonic() - last_change >= JOKE_ROTATE_SECONDS:
            index = (index + 1 + random.randrange(len(WAITING_JOKES) - 1)) % len(WAITING_JOKES)
            last_change = time.monotonic()
        return render_progress_box(title, activity, elapsed, WAITING_JOKES[index], width)

    return _wait(process, 0.08, render)