import sys

import click

from . import __version__
from .errors import InvalidHostname, LeakTraceError
from .leak import API_HOST, run_leak_probe
from .output import ConsoleOutput, run_tui
from .trace import run_traceroute
from .validation import validate_hostname


DEFAULT_TARGET = "discord.com"


def _validate_target(ctx, param, value: str) -> str:
    try:
        return validate_hostname(value)
    except InvalidHostname as e:
        raise click.BadParameter(str(e))


@click.command()
@click.option('-H', '--host', 'hostname', default=DEFAULT_TARGET,
              callback=_validate_target, show_default=True,
              help='Traceroute target hostname or IP address')
@click.version_option(version=__version__)
def main(hostname: str):
    """
    leaktrace - DNS leak test and traceroute in the terminal.

    Runs a DNS leak test against bash.ws, then traces the route to the
    target host, and shows both results. Use the arrow keys (or j/k) to
    move through the DNS servers and q to quit.

    Tracing needs raw sockets, so run it with sudo.

    Examples:

        leaktrace

        leaktrace --host example.com
    """
    output = ConsoleOutput()

    try:
        with output.status("Collecting DNS leak test data..."):
            leak_records = run_leak_probe(API_HOST)

        with output.status(f"Running traceroute to {hostname}..."):
            trace_result = run_traceroute(
                hostname, on_warning=output.print_warning
            )

    except LeakTraceError as e:
        output.print_error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        output.console.print("\n[yellow]Interrupted[/]")
        sys.exit(130)

    try:
        run_tui(leak_records, trace_result, console=output.console)
    except KeyboardInterrupt:
        # Ctrl-C in the view quits like q
        pass


if __name__ == '__main__':
    main()
