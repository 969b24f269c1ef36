"""
leaktrace - DNS leak test and traceroute in the terminal

Entry point for running as a module:
    python -m leaktrace --host <target>
"""

from .cli import main

if __name__ == '__main__':
    main()
