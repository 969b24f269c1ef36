"""
Interactive terminal view - DNS leak table and traceroute table
"""

import os
import sys
from contextlib import contextmanager
from enum import Enum
from typing import Iterator, Optional

from rich import box
from rich.console import Console
from rich.layout import Layout
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..models import KIND_CONCLUSION, KIND_DNS, KIND_IP, LeakRecord, TraceResult


APP_NAME = "leaktrace"
HIGHLIGHT_SYMBOL = "> "
HIGHLIGHT_STYLE = "black on white"
HEADER_STYLE = "bold cyan"

# Normalized key names returned by KeyReader.read_key
KEY_UP = "up"
KEY_DOWN = "down"
KEY_ESCAPE = "escape"


class Command(Enum):
    QUIT = "quit"
    NEXT = "next"
    PREVIOUS = "previous"


KEY_COMMANDS = {
    'q': Command.QUIT,
    'Q': Command.QUIT,
    KEY_ESCAPE: Command.QUIT,
    KEY_DOWN: Command.NEXT,
    'j': Command.NEXT,
    KEY_UP: Command.PREVIOUS,
    'k': Command.PREVIOUS,
}


def command_for_key(key: str) -> Optional[Command]:
    """Map a key name to a command, None for keys without one"""
    return KEY_COMMANDS.get(key)


class Selection:
    """Cursor into the DNS rows of the leak table"""

    def __init__(self, count: int):
        self.count = count
        self.index: Optional[int] = 0 if count > 0 else None

    def next(self):
        if self.index is not None:
            self.index = min(self.index + 1, self.count - 1)

    def previous(self):
        if self.index is not None:
            self.index = max(self.index - 1, 0)

    def apply(self, command: Command):
        if command is Command.NEXT:
            self.next()
        elif command is Command.PREVIOUS:
            self.previous()


def _first_of_kind(records: list[LeakRecord], kind: str) -> Optional[LeakRecord]:
    return next((r for r in records if r.kind == kind), None)


def render_ip_panel(records: list[LeakRecord]) -> Panel:
    content = Text()
    own = _first_of_kind(records, KIND_IP)
    if own:
        content.append(own.ip, style="italic")
        content.append(" [")
        content.append(own.country_display, style="yellow")
        content.append(", ")
        content.append(own.asn, style="green")
        content.append("]")

    return Panel(
        content,
        title="Your IP",
        title_align="left",
        subtitle=Text(APP_NAME, style="bold yellow"),
        subtitle_align="right",
        box=box.SQUARE,
    )


def render_leak_table(records: list[LeakRecord], selection: Selection) -> Panel:
    table = Table(box=None, expand=True, header_style=HEADER_STYLE, padding=(0, 1))
    table.add_column("", width=len(HIGHLIGHT_SYMBOL), no_wrap=True)
    table.add_column("IP", min_width=20)
    table.add_column("Country", min_width=20)
    table.add_column("ASN", ratio=3)

    dns_rows = [r for r in records if r.kind == KIND_DNS]
    for i, record in enumerate(dns_rows):
        selected = i == selection.index
        table.add_row(
            HIGHLIGHT_SYMBOL if selected else "",
            record.ip,
            record.country_display,
            record.asn,
            style=HIGHLIGHT_STYLE if selected else None,
        )

    conclusion = _first_of_kind(records, KIND_CONCLUSION)
    return Panel(
        table,
        title="DNS Leak Test",
        title_align="left",
        subtitle=Text(conclusion.ip, style="italic") if conclusion else None,
        subtitle_align="right",
        box=box.SQUARE,
    )


def render_trace_table(trace: TraceResult) -> Panel:
    table = Table(box=None, expand=True, header_style=HEADER_STYLE, padding=(0, 1))
    table.add_column("TTL", max_width=5, no_wrap=True)
    table.add_column("Host", max_width=20, no_wrap=True, overflow="ellipsis")
    table.add_column("Address", max_width=15, no_wrap=True)
    table.add_column("Samples", ratio=1)

    for hop in trace.hops:
        table.add_row(
            hop.ttl_display,
            hop.host_display,
            hop.address_display,
            hop.samples,
        )

    return Panel(
        table,
        title=Text(trace.summary, style="italic"),
        title_align="left",
        box=box.SQUARE,
    )


def render(records: list[LeakRecord], trace: TraceResult,
           selection: Selection) -> Layout:
    """Full screen: own IP, leak table, traceroute table"""
    layout = Layout()
    layout.split_column(
        Layout(render_ip_panel(records), name="ip", size=3),
        Layout(render_leak_table(records, selection), name="leak", ratio=1),
        Layout(render_trace_table(trace), name="trace", ratio=1),
    )
    return layout


class KeyReader:
    """
    Read single keypresses from the terminal.

    On POSIX the terminal is put into cbreak mode for the lifetime of the
    context and restored on exit. Arrow keys come back as KEY_UP/KEY_DOWN.
    """

    def __init__(self, stream=None):
        self.stream = stream or sys.stdin
        self._saved_attrs = None

    def __enter__(self):
        if os.name != 'nt':
            import termios
            import tty
            fd = self.stream.fileno()
            self._saved_attrs = termios.tcgetattr(fd)
            tty.setcbreak(fd)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._saved_attrs is not None:
            import termios
            termios.tcsetattr(
                self.stream.fileno(), termios.TCSADRAIN, self._saved_attrs
            )
            self._saved_attrs = None
        return False

    def read_key(self) -> str:
        if os.name == 'nt':
            return self._read_key_windows()
        return self._read_key_posix()

    def _read_key_posix(self) -> str:
        import select

        fd = self.stream.fileno()
        ch = os.read(fd, 1).decode(errors='replace')
        if ch != '\x1b':
            return ch

        # Escape sequence or a lone Escape
        ready, _, _ = select.select([fd], [], [], 0.05)
        if not ready:
            return KEY_ESCAPE
        sequence = os.read(fd, 2).decode(errors='replace')
        return {'[A': KEY_UP, '[B': KEY_DOWN, 'OA': KEY_UP, 'OB': KEY_DOWN}.get(
            sequence, KEY_ESCAPE
        )

    def _read_key_windows(self) -> str:
        import msvcrt

        ch = msvcrt.getwch()
        if ch in ('\x00', '\xe0'):
            return {'H': KEY_UP, 'P': KEY_DOWN}.get(msvcrt.getwch(), '')
        if ch == '\x1b':
            return KEY_ESCAPE
        return ch


@contextmanager
def terminal(console: Console) -> Iterator[tuple]:
    """
    Take over the terminal: alternate screen, hidden cursor, raw keys.

    Everything is restored when the context exits, including on errors.
    """
    with console.screen(hide_cursor=True) as screen:
        with KeyReader() as keys:
            yield screen, keys


def run_tui(records: list[LeakRecord], trace: TraceResult,
            console: Optional[Console] = None):
    """Show both tables until the user quits"""
    console = console or Console()
    selection = Selection(sum(1 for r in records if r.kind == KIND_DNS))

    with terminal(console) as (screen, keys):
        while True:
            screen.update(render(records, trace, selection))
            command = command_for_key(keys.read_key())
            if command is Command.QUIT:
                break
            if command:
                selection.apply(command)
