"""
Output modules for leaktrace
"""

from .console import ConsoleOutput
from .tui import run_tui

__all__ = ['ConsoleOutput', 'run_tui']
