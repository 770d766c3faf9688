"""
Rendering for the list, inspect and logs views.

Every function here is a pure function of AppState returning rich
renderables; the Textual host puts the result into a single Static. Layout
is recomputed on every redraw from the current terminal size, so nothing is
cached between frames.

List view layout (top to bottom):
  - Title with the connected runtime
  - Table header + divider
  - Scroll window of rows centered on the cursor
  - Scroll indicator (only when the list does not fit)
  - Status line
  - Controls box

Table columns:
  [cursor] ID  NAME  IMAGE  OPENPORTS  [gap]  STATE  STATUS
  ID and STATE have fixed widths; NAME, IMAGE and OPENPORTS share what is
  left in proportion to their widest content, never below their minimums;
  STATE and STATUS are pinned to the right edge and STATUS gives way first
  when the terminal is too narrow.

Width calculations use rich.cells so wide characters never push a line past
the terminal edge.
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from rich.box import ROUNDED
from rich.cells import cell_len, set_cell_size
from rich.console import Group
from rich.panel import Panel
from rich.style import Style
from rich.text import Text

from .model import AppState, ContainerRecord, LifecycleState, ViewMode

PRIMARY = "#00D9FF"
SUCCESS = "#00FF87"
WARNING = "#FFD700"
ERROR = "#FF5F87"
MUTED = "#626262"
HIGHLIGHT = "#5FD7FF"
HEADER_BG = "#5F87AF"

TITLE_STYLE = Style(color=PRIMARY, bold=True)
HEADER_STYLE = Style(color="#FFFFFF", bgcolor=HEADER_BG, bold=True)
DIVIDER_STYLE = Style(color=MUTED)
SELECTED_STYLE = Style(color="#000000", bgcolor=HIGHLIGHT, bold=True)
RUNNING_STYLE = Style(color=SUCCESS, bold=True)
EXITED_STYLE = Style(color=ERROR)
STATUS_STYLE = Style(color=WARNING)
KEY_STYLE = Style(color=PRIMARY, bold=True)
MUTED_STYLE = Style(color=MUTED)

ID_WIDTH = 12
STATE_WIDTH = 8
COL_SPACING = 2
CURSOR_COL = 2
MIN_GAP = 2
MIN_NAME_WIDTH = 10
MIN_IMAGE_WIDTH = 10
MIN_PORTS_WIDTH = 9  # len("OPENPORTS")
MIN_STATUS_WIDTH = 8

# cursor + lead space + ID + three spacings + gap + STATE + spacing before STATUS
FIXED_WIDTH = CURSOR_COL + 1 + ID_WIDTH + 3 * COL_SPACING + MIN_GAP + STATE_WIDTH + COL_SPACING

# title(2) + header(1) + divider(1) + indicator/blank(2) + status(2) + controls box(8)
LIST_OVERHEAD = 16
MIN_LIST_CAPACITY = 3

DETAIL_OVERHEAD = 7
MIN_DETAIL_PAGE = 5

STATE_STYLES = {
    LifecycleState.RUNNING: RUNNING_STYLE,
    LifecycleState.EXITED: EXITED_STYLE,
}


@dataclass(frozen=True)
class TableLayout:
    name: int
    image: int
    ports: int
    status: int


def truncate(text: str, width: int) -> str:
    """Cut text to `width` cells, ending in '...' when anything was dropped."""
    if width <= 0:
        return ""
    if cell_len(text) <= width:
        return text
    if width <= 3:
        return "." * width
    return set_cell_size(text, width - 3) + "..."


def pad(text: str, width: int) -> str:
    return set_cell_size(truncate(text, width), width)


def ports_text(record: ContainerRecord) -> str:
    return ", ".join(record.ports) if record.ports else "-"


def list_capacity(height: int) -> int:
    return max(MIN_LIST_CAPACITY, height - LIST_OVERHEAD)


def detail_page_height(height: int) -> int:
    return max(MIN_DETAIL_PAGE, height - DETAIL_OVERHEAD)


def compute_scroll_window(total: int, cursor: int, capacity: int) -> Tuple[int, int]:
    """Visible [start, end) keeping the cursor centered when the list overflows."""
    if total <= capacity:
        return 0, total
    start = max(0, cursor - capacity // 2)
    end = start + capacity
    if end > total:
        end = total
        start = max(0, end - capacity)
    return start, end


def compute_column_widths(available: int, max_name: int, max_image: int,
                          max_ports: int) -> Tuple[int, int, int]:
    total = max_name + max_image + max_ports or 1
    if available >= total:
        return max_name, max_image, max_ports
    if available < MIN_NAME_WIDTH + MIN_IMAGE_WIDTH + MIN_PORTS_WIDTH:
        return MIN_NAME_WIDTH, MIN_IMAGE_WIDTH, MIN_PORTS_WIDTH

    name = max(MIN_NAME_WIDTH, available * max_name // total)
    image = max(MIN_IMAGE_WIDTH, available * max_image // total)
    ports = max(MIN_PORTS_WIDTH, available * max_ports // total)
    while name + image + ports > available:
        if image > MIN_IMAGE_WIDTH:
            image -= 1
        elif name > MIN_NAME_WIDTH:
            name -= 1
        elif ports > MIN_PORTS_WIDTH:
            ports -= 1
        else:
            break
    return name, image, ports


def compute_layout(width: int, rows: Sequence[ContainerRecord]) -> TableLayout:
    max_name = max([cell_len("NAME")] + [cell_len(r.name) for r in rows])
    max_image = max([cell_len("IMAGE")] + [cell_len(r.image) for r in rows])
    max_ports = max([cell_len("OPENPORTS")] + [cell_len(ports_text(r)) for r in rows])
    max_status = max([cell_len("STATUS")] + [cell_len(r.status) for r in rows])

    status = max(MIN_STATUS_WIDTH, max_status + 2)
    name, image, ports = compute_column_widths(
        width - FIXED_WIDTH - status, max_name, max_image, max_ports
    )
    room = width - FIXED_WIDTH - name - image - ports
    status = max(0, min(status, room))
    return TableLayout(name=name, image=image, ports=ports, status=status)


def _row_text(layout: TableLayout, width: int, cells: Tuple[str, str, str, str],
              state: str, status: str, state_style=None) -> Text:
    spacing = " " * COL_SPACING
    left = " " + spacing.join([
        pad(cells[0], ID_WIDTH),
        pad(cells[1], layout.name),
        pad(cells[2], layout.image),
        pad(cells[3], layout.ports),
    ])
    right_width = STATE_WIDTH + COL_SPACING + layout.status
    gap = max(MIN_GAP, width - CURSOR_COL - cell_len(left) - right_width)

    line = Text(left + " " * gap)
    line.append(pad(state, STATE_WIDTH), style=state_style)
    line.append(spacing + pad(status, layout.status))
    return line


def table_lines(state: AppState) -> Tuple[List[Text], Tuple[int, int]]:
    """Header, divider and the visible rows, each at most state.width cells."""
    width = state.width
    start, end = compute_scroll_window(len(state.containers), state.cursor, list_capacity(state.height))
    rows = state.containers[start:end]
    layout = compute_layout(width, rows)

    header = Text("  ") + _row_text(layout, width, ("ID", "NAME", "IMAGE", "OPENPORTS"), "STATE", "STATUS")
    header.pad_right(max(0, width - header.cell_len))
    header.stylize(HEADER_STYLE)
    lines = [header, Text("─" * width, style=DIVIDER_STYLE)]

    for index, record in enumerate(rows, start=start):
        body = _row_text(
            layout, width,
            (record.id, record.name, record.image, ports_text(record)),
            record.state.value, record.status,
            STATE_STYLES.get(record.state),
        )
        if index == state.cursor:
            line = Text("▶ ") + body
            line.stylize(SELECTED_STYLE)
        else:
            line = Text("  ") + body
        lines.append(line)

    for line in lines:
        line.no_wrap = True
        line.truncate(width, overflow="crop")
    return lines, (start, end)


def controls_box() -> Panel:
    def row(label: str, *pairs: Tuple[str, str]) -> Text:
        text = Text(f"  {label:<12}")
        for key, action in pairs:
            text.append(key, style=KEY_STYLE)
            text.append(f" {action}  ")
        return text

    body = Group(
        Text("Controls:"),
        row("Navigation:", ("↑/k:", "Up"), ("↓/j:", "Down"), ("/:", "Search")),
        row("Actions:", ("s:", "Start"), ("t:", "Stop"), ("R:", "Restart"), ("d:", "Destroy"),
            ("e/x:", "Shell"), ("o:", "Browser")),
        row("Info:", ("i:", "Inspect"), ("l:", "Logs")),
        row("Filters:", ("h:", "K8s"), ("a:", "Exited")),
        row("Other:", ("r:", "Refresh"), ("q:", "Quit")),
    )
    return Panel(body, box=ROUNDED, border_style=MUTED_STYLE, expand=False, padding=(0, 1))


def title_text(state: AppState) -> Text:
    title = "🐳 Local Container Manager (lcm)"
    if state.connection_label:
        title += f" [Connected to: {state.connection_label}]"
    return Text(truncate(title, state.width), style=TITLE_STYLE)


def status_text(state: AppState) -> Text:
    if not state.status:
        return Text("")
    return Text(truncate("● " + state.status.replace("\n", " "), state.width), style=STATUS_STYLE)


def render_list_view(state: AppState) -> Group:
    parts = [title_text(state), Text("")]
    if state.loading and not state.snapshot:
        parts.append(Text("Loading containers..."))
    elif not state.containers:
        parts.append(Text("No containers found."))
    else:
        lines, (start, end) = table_lines(state)
        parts.extend(lines)
        parts.append(Text(""))
        if end - start < len(state.containers):
            parts.append(Text(truncate(
                f"Showing {start + 1}-{end} of {len(state.containers)} containers (scroll with ↑/↓)",
                state.width,
            ), style=MUTED_STYLE))
    parts.append(status_text(state))
    parts.append(Text(""))
    parts.append(controls_box())
    return Group(*parts)


def detail_lines(state: AppState) -> List[str]:
    if not state.detail_text:
        return []
    return state.detail_text.expandtabs(4).split("\n")


def max_detail_offset(state: AppState) -> int:
    return max(0, len(detail_lines(state)) - detail_page_height(state.height))


def render_detail_view(state: AppState) -> Group:
    """Inspect or Logs payload as a scrollable page."""
    width = max(1, state.width)
    if state.mode == ViewMode.LOGS:
        title = f"📋 Container Logs (last {state.options.logs_tail} lines)"
    else:
        title = "🔍 Container Inspection"
    if state.detail_title:
        title += f": {state.detail_title}"

    lines = detail_lines(state)
    page = detail_page_height(state.height)
    start = min(state.detail_offset, max(0, len(lines) - page))
    end = min(len(lines), start + page)

    parts = [
        Text(truncate(title, width), style=TITLE_STYLE),
        Text("─" * width, style=DIVIDER_STYLE),
    ]
    body = Text("\n".join(truncate(line, width) for line in lines[start:end]), no_wrap=True)
    parts.append(body)
    parts.append(Text(""))
    if len(lines) > page:
        parts.append(Text(f"Showing {start + 1}-{end} of {len(lines)} lines", style=MUTED_STYLE))
    footer = Text("Press ")
    footer.append("ESC", style=KEY_STYLE)
    footer.append(" or ")
    footer.append("q", style=KEY_STYLE)
    footer.append(" to return to list  ")
    footer.append("↑/↓ PgUp/PgDn", style=KEY_STYLE)
    footer.append(" scroll")
    footer.truncate(width)
    parts.append(footer)
    return Group(*parts)
