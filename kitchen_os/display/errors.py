"""
Errors raised on the display terminal
"""

from typing import Optional


class TerminalError(Exception):
    """Base class for display terminal errors"""


class TransientError(TerminalError):
    """Request failed for a reason that may go away: network, timeout or 5xx"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class RequestRejected(TerminalError):
    """Server refused the request (4xx); repeating it will not help"""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{status_code}: {detail}")


class UnknownEventError(TerminalError):
    """Real-time message with an event name the terminal does not know"""

    def __init__(self, name: Optional[str]):
        self.name = name
        super().__init__(f"Unknown event: {name!r}")


class HandoverInputError(TerminalError):
    """Handover input rejected before any request was made"""
