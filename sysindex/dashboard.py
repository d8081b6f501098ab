"""Interactive terminal dashboard for sysindex.

Four tabs (overview, memory, disks, network) drawn with curses and
refreshed every couple of seconds by a single-threaded loop that alternates
between a timed key poll and a synchronous collection.

Usage:
    sysindex tui
    sysindex tui --interval 5 --config path/to/config.toml
"""

from __future__ import annotations

import curses
import enum
import logging
import math
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from sysindex.collector import (
    CollectionError,
    PartialDataError,
    Snapshot,
    SysindexError,
    collect,
)
from sysindex.config import DEFAULT_CONFIG
from sysindex.report import fmt_bytes, fmt_uptime, progress_bar

logger = logging.getLogger(__name__)

# ── Constants ──────────────────────────────────────────────────────────────

REFRESH_INTERVAL = 2.0
TAB_BAR_WIDTH = 40
MIN_COLS = 40
MIN_ROWS = 10

WELCOME = "Welcome to System Index! Press 'h' for help, 'q' to quit."
HELP_LINES = (
    "1  Overview",
    "2  Memory",
    "3  Disks",
    "4  Network",
    "",
    "r  Refresh now",
    "h  Toggle this help",
    "q  Quit",
)

# Curses colour-pair IDs
C_NORMAL = 1
C_WARNING = 2
C_CRITICAL = 3
C_TITLE = 4
C_DIM = 5
C_BLUE = 6


class TerminalError(SysindexError):
    """The terminal could not be switched into dashboard mode."""


# ── Colour helpers ─────────────────────────────────────────────────────────


def _init_colors() -> None:
    curses.start_color()
    curses.use_default_colors()
    curses.init_pair(C_NORMAL, curses.COLOR_GREEN, -1)
    curses.init_pair(C_WARNING, curses.COLOR_YELLOW, -1)
    curses.init_pair(C_CRITICAL, curses.COLOR_RED, -1)
    curses.init_pair(C_TITLE, curses.COLOR_CYAN, -1)
    curses.init_pair(C_DIM, curses.COLOR_WHITE, -1)
    curses.init_pair(C_BLUE, curses.COLOR_BLUE, -1)


def _severity_color(value: float, warn: float, crit: float) -> int:
    if value >= crit:
        return C_CRITICAL
    if value >= warn:
        return C_WARNING
    return C_NORMAL


def _threshold_color(value: float, thresh: dict[str, Any], metric: str) -> int:
    levels = thresh.get(metric, DEFAULT_CONFIG["thresholds"][metric])
    return _severity_color(value, float(levels["warning"]), float(levels["critical"]))


# ── View state ─────────────────────────────────────────────────────────────


class Tab(enum.Enum):
    OVERVIEW = "1"
    MEMORY = "2"
    DISKS = "3"
    NETWORK = "4"

    @property
    def title(self) -> str:
        return self.name.capitalize()


@dataclass
class ViewState:
    """Everything the renderer needs. Owned by the refresh loop."""

    snapshot: Snapshot
    previous: Snapshot | None = None
    active_tab: Tab = Tab.OVERVIEW
    show_help: bool = False
    status: str = WELCOME
    alert: bool = False  # status line currently shows a problem
    should_exit: bool = False


# ── Refresh loop ───────────────────────────────────────────────────────────


class RefreshLoop:
    """Cooperative collect/render/key loop.

    *poll_key(timeout)* blocks for at most *timeout* seconds and returns the
    pressed key or None. The timeout is always the time left until the next
    scheduled refresh, so key presses never add or drop scheduled
    collections.
    """

    def __init__(
        self,
        collect_fn: Callable[..., Snapshot],
        poll_key: Callable[[float], str | None],
        render: Callable[[ViewState], None],
        clock: Callable[[], float] = time.monotonic,
        interval: float = REFRESH_INTERVAL,
    ) -> None:
        self._collect = collect_fn
        self._poll_key = poll_key
        self._render = render
        self._clock = clock
        self._interval = interval
        self._next_due = 0.0
        self._partials: list[PartialDataError] = []
        self.state: ViewState | None = None

    @property
    def interval(self) -> float:
        return self._interval

    def start(self) -> ViewState:
        """Collect the initial snapshot. CollectionError propagates here."""
        self._partials.clear()
        snapshot = self._collect(on_partial=self._partials.append)
        self.state = ViewState(snapshot=snapshot)
        if self._partials:
            self._show_partials()
        self._next_due = self._clock() + self._interval
        return self.state

    def run(self) -> ViewState:
        state = self.start()
        while not state.should_exit:
            self.step()
        logger.debug("refresh loop exiting on tab %s", state.active_tab.title)
        return state

    def step(self) -> None:
        """One iteration: render, poll one key, refresh if due."""
        state = self._require_state()
        self._render(state)

        timeout = max(0.0, self._next_due - self._clock())
        key = self._poll_key(timeout)
        if key is not None:
            self.handle_key(key)
            if state.should_exit:
                return

        if self._clock() >= self._next_due:
            self.refresh(forced=False)
            self._next_due += self._interval
            now = self._clock()
            if self._next_due <= now:
                # Collection overran one or more deadlines; skip them
                self._next_due = now + self._interval

    def handle_key(self, key: str) -> None:
        state = self._require_state()
        if key in ("q", "Q"):
            state.should_exit = True
        elif key == "h":
            state.show_help = not state.show_help
        elif key == "r":
            self.refresh(forced=True)
        elif key in ("1", "2", "3", "4"):
            state.active_tab = Tab(key)
            self._set_status(f"Showing: {state.active_tab.title}")

    def refresh(self, forced: bool) -> None:
        """Replace the snapshot; keep the old one if collection fails."""
        state = self._require_state()
        self._partials.clear()
        try:
            snapshot = self._collect(on_partial=self._partials.append)
        except CollectionError as e:
            logger.debug("refresh failed: %s", e)
            self._set_status(f"Refresh failed, showing previous data: {e}", alert=True)
            return

        state.previous, state.snapshot = state.snapshot, snapshot
        if self._partials:
            self._show_partials()
        elif forced:
            self._set_status("System information refreshed!")
        elif state.alert:
            self._set_status(WELCOME)

    def _show_partials(self) -> None:
        first = self._partials[0]
        extra = len(self._partials) - 1
        suffix = f" (+{extra} more)" if extra else ""
        self._set_status(f"Partial data: {first}{suffix}", alert=True)

    def _set_status(self, message: str, alert: bool = False) -> None:
        state = self._require_state()
        state.status = message
        state.alert = alert

    def _require_state(self) -> ViewState:
        if self.state is None:
            raise RuntimeError("RefreshLoop.start() has not been called")
        return self.state


# ── Tab content (pure) ─────────────────────────────────────────────────────

Line = tuple[str, int]  # (text, colour pair)


def fmt_rate(bps: float) -> str:
    """Human-readable transfer rate."""
    if bps < 1024:
        return f"{bps:.0f} B/s"
    if bps < 1024 * 1024:
        return f"{bps / 1024:.1f} KB/s"
    if bps < 1024**3:
        return f"{bps / 1024 ** 2:.1f} MB/s"
    return f"{bps / 1024 ** 3:.1f} GB/s"


def interface_rates(
    snapshot: Snapshot, previous: Snapshot | None
) -> dict[str, tuple[float, float]]:
    """Per-interface (rx, tx) bytes/s between two consecutive snapshots."""
    if previous is None:
        return {}
    dt = snapshot.collected_at - previous.collected_at
    if dt <= 0:
        return {}
    before = {nic.interface_name: nic for nic in previous.interfaces}
    rates: dict[str, tuple[float, float]] = {}
    for nic in snapshot.interfaces:
        old = before.get(nic.interface_name)
        if old is None:
            continue
        rx = max(0.0, (nic.bytes_received - old.bytes_received) / dt)
        tx = max(0.0, (nic.bytes_transmitted - old.bytes_transmitted) / dt)
        rates[nic.interface_name] = (rx, tx)
    return rates


def overview_lines(snapshot: Snapshot) -> list[Line]:
    s = snapshot
    lines: list[Line] = [
        (f"Hostname:   {s.hostname}", C_DIM),
        (f"OS:         {s.os_name} {s.os_version}", C_DIM),
        (f"Kernel:     {s.kernel_version}", C_DIM),
        (f"Uptime:     {fmt_uptime(s.uptime_seconds)}", C_DIM),
        ("", C_DIM),
        (f"CPU:        {s.cpu_brand}", C_DIM),
        (f"CPU Cores:  {s.cpu_core_count}", C_DIM),
        ("", C_DIM),
        (f"Memory:     {fmt_bytes(s.memory_used_bytes)} / {fmt_bytes(s.memory_total_bytes)}", C_DIM),
        (f"Free:       {fmt_bytes(s.memory_free_bytes)}", C_DIM),
        (f"Swap:       {fmt_bytes(s.swap_used_bytes)} / {fmt_bytes(s.swap_total_bytes)}", C_DIM),
        ("", C_DIM),
        (f"Disks:      {len(s.disks)}", C_DIM),
        (f"Interfaces: {len(s.interfaces)}", C_DIM),
        (f"Processes:  {s.process_count}", C_DIM),
    ]
    if s.primary_address:
        lines.insert(14, (f"Local IP:   {s.primary_address}", C_DIM))
    return lines


def memory_lines(snapshot: Snapshot, thresh: dict[str, Any]) -> list[Line]:
    s = snapshot
    mem_pct = s.memory_percent
    swap_pct = s.swap_percent
    mem_color = _threshold_color(mem_pct, thresh, "memory_percent")
    swap_color = _threshold_color(swap_pct, thresh, "swap_percent")
    return [
        ("═══ RAM MEMORY ═══", C_TITLE),
        (f"Total:     {fmt_bytes(s.memory_total_bytes)}", C_DIM),
        (f"Used:      {fmt_bytes(s.memory_used_bytes)} ({int(mem_pct)}%)", mem_color),
        (f"Free:      {fmt_bytes(s.memory_free_bytes)}", C_DIM),
        (f"Usage Bar: [{progress_bar(mem_pct, TAB_BAR_WIDTH)}]", mem_color),
        ("", C_DIM),
        ("═══ SWAP MEMORY ═══", C_TITLE),
        (f"Total:     {fmt_bytes(s.swap_total_bytes)}", C_DIM),
        (f"Used:      {fmt_bytes(s.swap_used_bytes)} ({int(swap_pct)}%)", swap_color),
        (f"Free:      {fmt_bytes(s.swap_free_bytes)}", C_DIM),
        (f"Usage Bar: [{progress_bar(swap_pct, TAB_BAR_WIDTH)}]", swap_color),
    ]


def disk_lines(snapshot: Snapshot, thresh: dict[str, Any]) -> list[Line]:
    if not snapshot.disks:
        return [("No disks found.", C_DIM)]
    lines: list[Line] = []
    for idx, disk in enumerate(snapshot.disks, start=1):
        color = _threshold_color(disk.percent, thresh, "disk_percent")
        lines += [
            (f"═══ Disk {idx} ═══", C_TITLE),
            (f"Name:       {disk.device}", C_DIM),
            (f"Mount:      {disk.mount_point}", C_DIM),
            (f"Filesystem: {disk.filesystem_kind}", C_DIM),
            (f"Total:      {fmt_bytes(disk.total_bytes)}", C_DIM),
            (f"Used:       {fmt_bytes(disk.used_bytes)} ({int(disk.percent)}%)", color),
            (f"Available:  {fmt_bytes(disk.available_bytes)}", C_DIM),
            (f"Usage Bar:  [{progress_bar(disk.percent, TAB_BAR_WIDTH)}]", color),
            ("", C_DIM),
        ]
    return lines


def network_lines(snapshot: Snapshot, previous: Snapshot | None) -> list[Line]:
    if not snapshot.interfaces:
        return [("No network interfaces found.", C_DIM)]
    rates = interface_rates(snapshot, previous)
    lines: list[Line] = []
    for idx, nic in enumerate(snapshot.interfaces, start=1):
        lines.append((f"═══ Interface {idx} ═══", C_TITLE))
        lines.append((f"Name:        {nic.interface_name}", C_DIM))
        if nic.addresses:
            lines.append((f"Addresses:   {', '.join(nic.addresses)}", C_DIM))
        lines += [
            (f"Received:    {fmt_bytes(nic.bytes_received)}", C_DIM),
            (f"Transmitted: {fmt_bytes(nic.bytes_transmitted)}", C_DIM),
            (f"Total:       {fmt_bytes(nic.bytes_total)}", C_DIM),
        ]
        if nic.interface_name in rates:
            rx, tx = rates[nic.interface_name]
            lines.append((f"Rate:        RX {fmt_rate(rx)}  TX {fmt_rate(tx)}", C_BLUE))
        lines.append(("", C_DIM))
    return lines


def tab_lines(state: ViewState, thresh: dict[str, Any]) -> tuple[str, list[Line]]:
    """Title and content lines for the active tab."""
    tab = state.active_tab
    if tab is Tab.MEMORY:
        return "Memory Details", memory_lines(state.snapshot, thresh)
    if tab is Tab.DISKS:
        return "Disk Information", disk_lines(state.snapshot, thresh)
    if tab is Tab.NETWORK:
        return "Network Information", network_lines(state.snapshot, state.previous)
    return "System Overview", overview_lines(state.snapshot)


def tab_strip(active: Tab) -> str:
    parts = []
    for tab in Tab:
        label = f"{tab.value}: {tab.title}"
        parts.append(f"[{label}]" if tab is active else label)
    return " | ".join(parts)


# ── Curses drawing primitives ──────────────────────────────────────────────


def _safe(win: curses.window, *args: Any) -> None:
    """addstr wrapper that swallows out-of-bounds errors."""
    try:
        win.addstr(*args)
    except curses.error:
        pass


def _draw_box(
    win: curses.window,
    y: int,
    x: int,
    h: int,
    w: int,
    title: str = "",
) -> curses.window | None:
    """Draw a bordered box and return the inner sub-window."""
    max_y, max_x = win.getmaxyx()
    h = min(h, max_y - y)
    w = min(w, max_x - x)
    if h < 3 or w < 4:
        return None
    try:
        sub = win.subwin(h, w, y, x)
        sub.box()
        if title and len(title) + 4 < w:
            sub.addstr(
                0, 2, f" {title} ", curses.color_pair(C_TITLE) | curses.A_BOLD
            )
        return sub
    except curses.error:
        return None


def _draw_lines(box: curses.window, lines: list[Line]) -> None:
    h, w = box.getmaxyx()
    for row, (text, color) in enumerate(lines[: h - 2], start=1):
        attr = curses.color_pair(color)
        if color == C_TITLE:
            attr |= curses.A_BOLD
        _safe(box, row, 2, text[: w - 4], attr)


def _draw_header(win: curses.window, w: int, state: ViewState) -> None:
    ts = time.strftime("%H:%M:%S")
    attr = curses.color_pair(C_TITLE) | curses.A_REVERSE
    _safe(win, 0, 0, " " * (w - 1), attr)
    _safe(win, 0, 1, "System Index", attr | curses.A_BOLD)
    strip = tab_strip(state.active_tab)
    _safe(win, 0, max(14, (w - len(strip)) // 2), strip[: max(0, w - 26)], attr)
    _safe(win, 0, max(0, w - len(ts) - 2), ts, attr)


def _draw_status(win: curses.window, y: int, w: int, state: ViewState) -> None:
    box = _draw_box(win, y, 0, 3, w, "Status")
    if not box:
        return
    color = C_WARNING if state.alert else C_DIM
    _safe(box, 1, 2, state.status[: w - 4], curses.color_pair(color))


def _draw_help(win: curses.window, max_y: int, max_x: int) -> None:
    h = len(HELP_LINES) + 2
    w = 30
    y = max(1, (max_y - h) // 2)
    x = max(0, (max_x - w) // 2)
    box = _draw_box(win, y, x, h, w, "Help")
    if not box:
        return
    box.erase()
    box.box()
    _safe(box, 0, 2, " Help ", curses.color_pair(C_TITLE) | curses.A_BOLD)
    _draw_lines(box, [(line, C_DIM) for line in HELP_LINES])


def draw(stdscr: curses.window, state: ViewState, thresh: dict[str, Any]) -> None:
    """Render the whole screen for the current view state."""
    max_y, max_x = stdscr.getmaxyx()
    stdscr.erase()

    if max_y < MIN_ROWS or max_x < MIN_COLS:
        _safe(stdscr, 0, 0, f"Terminal too small (need {MIN_COLS}x{MIN_ROWS}+)")
        stdscr.refresh()
        return

    _draw_header(stdscr, max_x, state)
    title, lines = tab_lines(state, thresh)
    box = _draw_box(stdscr, 1, 0, max_y - 4, max_x, title)
    if box:
        _draw_lines(box, lines)
    _draw_status(stdscr, max_y - 3, max_x, state)
    if state.show_help:
        _draw_help(stdscr, max_y, max_x)
    stdscr.refresh()


def _poll_curses(stdscr: curses.window, timeout: float) -> str | None:
    stdscr.timeout(math.ceil(timeout * 1000))
    key = stdscr.getch()
    if key == curses.KEY_RESIZE:
        stdscr.clear()
        return None
    if 0 <= key < 256:
        return chr(key)
    return None


# ── Terminal session ───────────────────────────────────────────────────────


@contextmanager
def terminal_session() -> Iterator[curses.window]:
    """Put the terminal in dashboard mode and always restore it on exit."""
    try:
        stdscr = curses.initscr()
    except curses.error as e:
        raise TerminalError(f"cannot initialise terminal: {e}") from e

    try:
        try:
            curses.noecho()
            curses.cbreak()
            stdscr.keypad(True)
            if curses.has_colors():
                _init_colors()
        except curses.error as e:
            raise TerminalError(f"cannot configure terminal: {e}") from e
        try:
            curses.curs_set(0)
        except curses.error:
            pass  # cursor visibility is cosmetic
        yield stdscr
    finally:
        stdscr.keypad(False)
        curses.nocbreak()
        curses.echo()
        curses.endwin()


def run_dashboard(
    interval: float = REFRESH_INTERVAL,
    thresh: dict[str, Any] | None = None,
    collect_fn: Callable[..., Snapshot] = collect,
) -> ViewState:
    """Run the dashboard until the user quits.

    Raises:
        TerminalError: the terminal cannot enter dashboard mode.
        CollectionError: the very first collection failed.
    """
    thresholds: dict[str, Any] = thresh or DEFAULT_CONFIG["thresholds"]
    with terminal_session() as stdscr:
        loop = RefreshLoop(
            collect_fn,
            poll_key=lambda timeout: _poll_curses(stdscr, timeout),
            render=lambda state: draw(stdscr, state, thresholds),
            interval=interval,
        )
        return loop.run()
