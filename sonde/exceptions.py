#!/usr/bin/env python3

# standards
from datetime import timedelta
from typing import ClassVar, Optional

# sonde
from .utils import format_duration


class SondeException(Exception):
    pass


class ValidationError(SondeException, ValueError):
    """
    The request is malformed. These are always raised before any network activity, and carry no timing data. `field` names the
    offending part of the request ("method", "url", "headers", "query_params", or one of the auth strategy's fields).
    """

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class AuthError(ValidationError):
    pass


class ExecutionError(SondeException):
    """
    The request was valid, but executing it failed. Instances of this base class are the "generic" kind of failure, the
    subclasses below are the more specific kinds. `elapsed` is always set by the time the error reaches the caller.
    """

    kind: ClassVar[str] = "generic"

    def __init__(self, message: str, elapsed: Optional[timedelta] = None) -> None:
        super().__init__(message)
        self.elapsed = elapsed


class Canceled(ExecutionError):
    kind = "canceled"


class Timeout(ExecutionError):
    kind = "timeout"

    def __init__(self, elapsed: timedelta) -> None:
        super().__init__(f"request timeout after {format_duration(elapsed)}", elapsed)


class TemporaryNetworkError(ExecutionError):
    kind = "temporary"


class DNSFailure(ExecutionError):
    kind = "dns"

    def __init__(self, hostname: str, elapsed: Optional[timedelta] = None) -> None:
        super().__init__(f"DNS lookup failed for {hostname}", elapsed)
        self.hostname = hostname


class ConnectionFailure(ExecutionError):
    kind = "connection"

    def __init__(self, operation: str, detail: str, elapsed: Optional[timedelta] = None) -> None:
        super().__init__(f"connection failed: {operation}: {detail}", elapsed)
        self.operation = operation


class TooManyRedirects(ExecutionError):
    pass


class PersistenceError(SondeException):
    """
    Raised by repositories only. The execution engine itself never raises these.
    """


class NotFound(PersistenceError):
    pass
