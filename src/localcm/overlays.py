"""
Shell and Search overlays.

Both overlays are rounded boxes centered on the screen whose size is a
fixed fraction of the terminal, bounded below by a minimum and above by the
terminal size minus a margin. The box content is laid out against the
box's inner size (border and padding removed) so it never wraps.
"""

from typing import Tuple

from rich.align import Align
from rich.box import ROUNDED
from rich.panel import Panel
from rich.text import Text

from .model import AppState, ResultKind
from .ui import (
    DIVIDER_STYLE, KEY_STYLE, MUTED_STYLE, PRIMARY, HIGHLIGHT, RUNNING_STYLE,
    SELECTED_STYLE, TITLE_STYLE, truncate,
)

SHELL_FRACTION = (0.8, 0.8)
SHELL_MINIMUM = (60, 20)
SEARCH_FRACTION = (0.7, 0.6)
SEARCH_MINIMUM = (50, 15)
MARGIN = 4

# border (1+1) and horizontal padding (2+2)
FRAME_WIDTH = 6
# border (1+1) and vertical padding (1+1)
FRAME_HEIGHT = 4

# title, divider, blank | indicator, divider, prompt, help
SHELL_CHROME = 7
# title, divider, blank, prompt, blank | description, indicator, divider, help
SEARCH_CHROME = 9

CONTAINER_ICON = "📦"
COMMAND_ICON = "⚡"


def popup_size(term_w: int, term_h: int, frac_w: float, frac_h: float,
               min_w: int, min_h: int, margin: int = MARGIN) -> Tuple[int, int]:
    width = max(min_w, int(term_w * frac_w))
    height = max(min_h, int(term_h * frac_h))
    width = min(width, term_w - margin)
    height = min(height, term_h - margin)
    return max(1, width), max(1, height)


def _inner(width: int, height: int) -> Tuple[int, int]:
    return max(1, width - FRAME_WIDTH), max(1, height - FRAME_HEIGHT)


def _hint(*pairs: Tuple[str, str]) -> Text:
    text = Text()
    for index, (key, action) in enumerate(pairs):
        if index:
            text.append("  ")
        text.append(key, style=KEY_STYLE)
        text.append(f" {action}", style=MUTED_STYLE)
    return text


def _boxed(body: Text, width: int, height: int, term_h: int, border: str) -> Align:
    panel = Panel(body, box=ROUNDED, border_style=border, padding=(1, 2), width=width, height=height)
    return Align.center(panel, vertical="middle", height=max(1, term_h))


def shell_body(state: AppState, inner_w: int, inner_h: int) -> Text:
    session = state.shell
    name = session.container_name if session else ""
    scrollback = session.scrollback if session else ()
    pending = session.pending_input if session else ""

    output_height = max(1, inner_h - SHELL_CHROME)
    total = len(scrollback)
    start = max(0, total - output_height)
    visible = list(scrollback[start:])
    visible += [""] * (output_height - len(visible))

    body = Text(no_wrap=True, overflow="crop")
    body.append(truncate(f"🐚 Shell: {name}", inner_w) + "\n", style=TITLE_STYLE)
    body.append("─" * inner_w + "\n", style=DIVIDER_STYLE)
    body.append("\n")
    for line in visible:
        body.append(truncate(line.expandtabs(4), inner_w) + "\n")
    if total > output_height:
        body.append(truncate(f"Showing {start + 1}-{total} of {total} lines", inner_w) + "\n", style=MUTED_STYLE)
    else:
        body.append("\n")
    body.append("─" * inner_w + "\n", style=DIVIDER_STYLE)

    shown = pending.replace("\n", "↵")
    room = max(0, inner_w - 3)
    if len(shown) > room:
        shown = shown[len(shown) - room:]
    body.append("$ ", style=RUNNING_STYLE)
    body.append(shown + "█\n")
    body.append_text(_hint(("ESC", "exit shell"), ("ENTER", "send command")))
    return body


def search_body(state: AppState, inner_w: int, inner_h: int) -> Text:
    search = state.search
    results = search.results
    result_height = max(1, inner_h - SEARCH_CHROME)
    max_len = max(1, inner_w - 2)

    body = Text(no_wrap=True, overflow="crop")
    body.append(truncate("🔍 Search", inner_w) + "\n", style=TITLE_STYLE)
    body.append("─" * inner_w + "\n", style=DIVIDER_STYLE)
    body.append("\n")
    body.append("> ", style=f"bold {PRIMARY}")
    body.append(truncate(search.query, max(0, inner_w - 3)) + "█\n")
    body.append("\n")

    if not results:
        body.append("  No results found\n", style=MUTED_STYLE)
    else:
        start = 0
        if search.selected >= result_height:
            start = search.selected - result_height + 1
        end = min(len(results), start + result_height)
        for index in range(start, end):
            result = results[index]
            icon = CONTAINER_ICON if result.kind == ResultKind.CONTAINER else COMMAND_ICON
            line = truncate(f"{icon} {result.label}", max_len)
            if index == search.selected:
                body.append("▶ " + line + "\n", style=SELECTED_STYLE)
                body.append(truncate("    " + result.detail, inner_w) + "\n", style=f"italic {HIGHLIGHT}")
            else:
                body.append("  " + line + "\n")
        if len(results) > result_height:
            body.append(f"  Showing {start + 1}-{end} of {len(results)} results\n", style=MUTED_STYLE)

    body.append("─" * inner_w + "\n", style=DIVIDER_STYLE)
    body.append_text(_hint(("↑↓", "navigate"), ("ENTER", "select"), ("ESC", "cancel")))
    return body


def render_shell_overlay(state: AppState) -> Align:
    width, height = popup_size(state.width, state.height, *SHELL_FRACTION, *SHELL_MINIMUM)
    inner_w, inner_h = _inner(width, height)
    return _boxed(shell_body(state, inner_w, inner_h), width, height, state.height, HIGHLIGHT)


def render_search_overlay(state: AppState) -> Align:
    width, height = popup_size(state.width, state.height, *SEARCH_FRACTION, *SEARCH_MINIMUM)
    inner_w, inner_h = _inner(width, height)
    return _boxed(search_body(state, inner_w, inner_h), width, height, state.height, PRIMARY)
