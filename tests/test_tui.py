"""Tests for the interactive view (rendering and key handling only)."""

from rich.console import Console

from leaktrace.leak import enrich
from leaktrace.models import Hop, LeakRecord, TraceResult
from leaktrace.output.tui import (
    KEY_DOWN,
    KEY_ESCAPE,
    KEY_UP,
    Command,
    Selection,
    command_for_key,
    render,
)


RECORDS = enrich([
    LeakRecord("1.2.3.4", "DE", "Germany", "AS3320", "ip"),
    LeakRecord("8.8.8.8", "US", "United States", "AS15169", "dns"),
    LeakRecord("9.9.9.9", "CH", "Switzerland", "AS19281", "dns"),
    LeakRecord("DNS may be leaking", "", "", "", "conclusion"),
])

TRACE = TraceResult(
    summary="Traceroute to discord.com (162.159.128.233), 64 hops max, 52 byte packets",
    hops=(
        Hop(ttl=1, host="router.lan", address="192.168.1.1", samples="1.200 ms"),
        Hop(ttl=2),
        Hop(ttl=3, host="edge.example.net", address="10.0.0.1", samples="12.340 ms"),
        Hop(ttl=None, host="10.0.0.2", address="10.0.0.2", samples="12.340 ms"),
    ),
)


def render_text(selection, records=RECORDS, trace=TRACE):
    console = Console(width=140, height=40, record=True, color_system=None)
    console.print(render(records, trace, selection))
    return console.export_text()


class TestCommandForKey:

    def test_quit_keys(self):
        for key in ("q", "Q", KEY_ESCAPE):
            assert command_for_key(key) is Command.QUIT

    def test_ctrl_c_is_not_a_key(self):
        assert command_for_key("\x03") is None

    def test_navigation(self):
        assert command_for_key(KEY_DOWN) is Command.NEXT
        assert command_for_key("j") is Command.NEXT
        assert command_for_key(KEY_UP) is Command.PREVIOUS
        assert command_for_key("k") is Command.PREVIOUS

    def test_unmapped(self):
        assert command_for_key("x") is None
        assert command_for_key("") is None


class TestSelection:

    def test_starts_at_first_row(self):
        assert Selection(3).index == 0

    def test_empty_has_no_selection(self):
        selection = Selection(0)
        selection.next()
        selection.previous()
        assert selection.index is None

    def test_saturates(self):
        selection = Selection(2)
        selection.previous()
        assert selection.index == 0
        selection.next()
        selection.next()
        selection.next()
        assert selection.index == 1

    def test_apply(self):
        selection = Selection(3)
        selection.apply(Command.NEXT)
        selection.apply(Command.NEXT)
        selection.apply(Command.PREVIOUS)
        assert selection.index == 1
        selection.apply(Command.QUIT)
        assert selection.index == 1


class TestRender:

    def test_sections(self):
        text = render_text(Selection(2))

        assert "Your IP" in text
        assert "1.2.3.4" in text
        assert "DNS Leak Test" in text
        assert "DNS may be leaking" in text
        assert TRACE.summary in text

    def test_only_dns_rows_in_leak_table(self):
        text = render_text(Selection(2))
        assert "8.8.8.8" in text
        assert "9.9.9.9" in text
        assert "United States" in text

    def test_selected_row_marked(self):
        text = render_text(Selection(2))
        marked = [line for line in text.splitlines() if "> " in line]
        assert len(marked) == 1
        assert "8.8.8.8" in marked[0]

        selection = Selection(2)
        selection.next()
        marked = [line for line in render_text(selection).splitlines() if "> " in line]
        assert "9.9.9.9" in marked[0]

    def test_trace_rows(self):
        lines = render_text(Selection(2)).splitlines()

        silent = [line for line in lines if line.strip(" │┃|").startswith("2 ")]
        assert silent and silent[0].count("*") == 2
        assert any("router.lan" in line and "192.168.1.1" in line for line in lines)
        assert any("10.0.0.2" in line for line in lines)

    def test_no_records(self):
        text = render_text(Selection(0), records=[])
        assert "DNS Leak Test" in text
