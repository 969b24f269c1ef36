"""
Probe engine for leaktrace
"""

from .engine import Tracer
from .packet import IcmpReply, parse_reply

__all__ = ['Tracer', 'IcmpReply', 'parse_reply']
