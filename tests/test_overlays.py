from dataclasses import replace

from rich.console import Console

from localcm import shell
from localcm.model import (
    AppState, ContainerRecord, LifecycleState, ResultKind, SearchResult, SearchState, ViewMode,
)
from localcm.overlays import (
    SEARCH_CHROME, SHELL_CHROME, popup_size, render_search_overlay, render_shell_overlay,
    search_body, shell_body,
)

WEB = ContainerRecord(id="abc123", name="web", image="nginx", status="Up",
                      state=LifecycleState.RUNNING)


def render_plain(renderable, width, height):
    console = Console(width=width, height=height, record=True, color_system=None)
    console.print(renderable)
    return console.export_text()


def test_popup_size_fractions_minimums_and_margin():
    assert popup_size(200, 50, 0.8, 0.8, 60, 20) == (160, 40)
    assert popup_size(62, 22, 0.8, 0.8, 60, 20) == (58, 18)
    assert popup_size(100, 40, 0.7, 0.6, 50, 15) == (70, 24)
    assert popup_size(60, 18, 0.7, 0.6, 50, 15) == (50, 14)


def test_shell_shows_tail_of_scrollback():
    session = shell.open_session(WEB, 1)
    for n in range(40):
        session = shell.apply_output(session, f"out {n}")
    state = AppState(mode=ViewMode.SHELL, shell=shell.type_text(session, "pwd"), width=100, height=30)
    body = shell_body(state, 60, 20).plain.split("\n")
    assert body[0] == "🐚 Shell: web"
    visible = body[3:3 + 20 - SHELL_CHROME]
    assert visible[-1] == ""
    assert visible[-2] == "out 39"
    assert body[-4].startswith("Showing ")
    assert body[-2] == "$ pwd█"
    assert "ESC exit shell" in body[-1]


def test_shell_overlay_renders_centered_box():
    state = AppState(mode=ViewMode.SHELL, shell=shell.open_session(WEB, 1), width=100, height=30)
    out = render_plain(render_shell_overlay(state), 100, 30)
    lines = out.split("\n")
    assert any("╭" in line for line in lines)
    assert "Shell session for container: web" in out
    top = next(i for i, line in enumerate(lines) if "╭" in line)
    assert top == (30 - 24) // 2


def _results(n):
    return tuple(SearchResult(ResultKind.CONTAINER, f"c{i}", f"detail {i}", f"id{i}") for i in range(n))


def test_search_body_scrolls_with_selection():
    results = _results(30)
    state = AppState(mode=ViewMode.SEARCH, search=SearchState("c", results, selected=20))
    inner_h = 20
    text = search_body(state, 50, inner_h).plain
    assert "> c█" in text
    assert "▶ 📦 c20" in text
    assert "    detail 20" in text
    height = inner_h - SEARCH_CHROME
    assert f"Showing {20 - height + 2}-21 of 30 results" in text


def test_search_no_results():
    state = AppState(mode=ViewMode.SEARCH, search=SearchState("zzz"))
    out = render_plain(render_search_overlay(replace(state, width=100, height=30)), 100, 30)
    assert "No results found" in out
    assert "🔍 Search" in out
