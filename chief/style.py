"""Terminal text styling: ANSI colours, display widths and rounded boxes."""

from __future__ import annotations

import re
import textwrap
from typing import Optional

from wcwidth import wcswidth, wcwidth

PRIMARY = "#00D7FF"
SUCCESS = "#5AF78E"
MUTED = "#6C7086"
BORDER = "#45475A"
TEXT = "#CDD6F4"
WARNING = "#F9E2AF"
TEXT_BRIGHT = "#FFFFFF"

_ANSI_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")
_RESET = "\x1b[0m"


def _color_params(color: str, base: int) -> str:
    if color.startswith("#"):
        digits = color[1:]
        if len(digits) == 3:
            digits = "".join(ch * 2 for ch in digits)
        if len(digits) != 6:
            raise ValueError(f"invalid colour: {color!r}")
        try:
            red, green, blue = bytes.fromhex(digits)
        except ValueError:
            raise ValueError(f"invalid colour: {color!r}") from None
        return f"{base};2;{red};{green};{blue}"
    if color.isdigit() and int(color) <= 255:
        return f"{base};5;{int(color)}"
    raise ValueError(f"invalid colour: {color!r}")


def styled(
    text: str,
    color: Optional[str] = None,
    bold: bool = False,
    background: Optional[str] = None,
    blink: bool = False,
) -> str:
    """Wrap each line of ``text`` in ANSI codes for the given attributes.

    Colours are ``#RRGGBB``/``#RGB`` hex strings or ANSI 256-colour numbers.
    """
    params = []
    if bold:
        params.append("1")
    if blink:
        params.append("5")
    if color is not None:
        params.append(_color_params(color, 38))
    if background is not None:
        params.append(_color_params(background, 48))
    if not params:
        return text
    prefix = f"\x1b[{';'.join(params)}m"
    return "\n".join(
        f"{prefix}{line}{_RESET}" if line else line for line in text.split("\n")
    )


def strip_ansi(text: str) -> str:
    """Remove ANSI escape sequences."""
    return _ANSI_RE.sub("", text)


def _line_width(line: str) -> int:
    width = wcswidth(line)
    if width < 0:
        width = sum(max(wcwidth(ch), 0) for ch in line)
    return width


def visible_width(text: str) -> int:
    """Display width of the widest line, ignoring ANSI escapes."""
    return max((_line_width(line) for line in strip_ansi(text).split("\n")), default=0)


def _fit(line: str, width: int) -> list[str]:
    if visible_width(line) <= width:
        return [line]
    return textwrap.wrap(strip_ansi(line), width, break_long_words=True) or [""]


def rounded_box(
    content: str,
    width: Optional[int] = None,
    border_color: Optional[str] = None,
    padding_y: int = 0,
    padding_x: int = 0,
    height: Optional[int] = None,
) -> str:
    """Draw a rounded border around ``content``.

    ``width`` and ``height`` cover the content plus padding, not the border;
    lines wider than the space left are wrapped.
    """
    lines = content.split("\n")
    if width is None:
        inner = visible_width(content)
    else:
        inner = max(width - 2 * padding_x, 1)
        lines = [part for line in lines for part in _fit(line, inner)]

    side_pad = " " * padding_x
    total = inner + 2 * padding_x
    blank = " " * total
    body = [
        side_pad + line + " " * max(inner - visible_width(line), 0) + side_pad
        for line in lines
    ]
    rows = [blank] * padding_y + body + [blank] * padding_y
    if height is not None and len(rows) < height:
        rows.extend([blank] * (height - len(rows)))

    horizontal = "─" * total
    side = styled("│", color=border_color)
    framed = [styled(f"╭{horizontal}╮", color=border_color)]
    framed.extend(f"{side}{row}{side}" for row in rows)
    framed.append(styled(f"╰{horizontal}╯", color=border_color))
    return "\n".join(framed)