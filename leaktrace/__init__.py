"""
leaktrace - DNS leak test and traceroute in the terminal

Runs a bash.ws DNS leak test and a UDP traceroute against a target host,
then shows both results as navigable tables.
"""

__version__ = "1.0.0"
__author__ = "leaktrace"
