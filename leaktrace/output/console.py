"""
Rich console output for leaktrace
"""

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.status import Status


class ConsoleOutput:
    """
    Console messages printed around the interactive view.

    Progress of the blocking phases, non-fatal warnings and the one-line
    error printed before exiting.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def status(self, message: str) -> Status:
        """Spinner shown while a blocking phase runs"""
        return self.console.status(f"[bold blue]{message}")

    def print_status(self, message: str):
        self.console.print(f"[dim]{escape(message)}[/]")

    def print_error(self, message: str):
        """Print error message"""
        self.console.print(f"[bold red]Error:[/] {escape(message)}")

    def print_warning(self, message: str):
        """Print warning message"""
        self.console.print(f"[yellow]Warning:[/] {escape(message)}")
