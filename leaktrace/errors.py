"""
Exceptions raised by leaktrace
"""

from typing import Optional


class LeakTraceError(Exception):
    """Base class for all leaktrace errors"""


class ProbeError(LeakTraceError):
    """DNS leak test failed in the given phase"""

    phase = "probe"

    def __init__(self, remote_host: str, detail: Optional[str] = None):
        self.remote_host = remote_host
        self.detail = detail
        message = f"dns leak test ({self.phase}) against {remote_host} failed"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class SessionUnavailable(ProbeError):
    """Session id could not be obtained"""

    phase = "session"


class VerdictUnavailable(ProbeError):
    """Verdict JSON could not be fetched or parsed"""

    phase = "verdict"


class TraceError(LeakTraceError):
    """Traceroute run failed"""

    def __init__(self, hostname: str, message: str):
        self.hostname = hostname
        super().__init__(message)


class UnknownHost(TraceError):
    """Target hostname resolved to zero addresses"""

    def __init__(self, hostname: str, detail: Optional[str] = None):
        self.detail = detail
        message = f"traceroute: unknown host {hostname}"
        if detail:
            message += f" ({detail})"
        super().__init__(hostname, message)


class EngineFailure(TraceError):
    """The probe engine reported an internal error"""

    def __init__(self, hostname: str, detail: str):
        self.detail = detail
        super().__init__(hostname, f"traceroute to {hostname}: {detail}")


class ResolutionError(LeakTraceError):
    """Forward lookup failed for a reason other than a missing name"""


class InvalidHostname(LeakTraceError, ValueError):
    """Target is not a valid hostname or IP address"""
