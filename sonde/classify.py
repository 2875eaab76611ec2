#!/usr/bin/env python3

"""
Turns whatever the transport raised into exactly one `ExecutionError` subclass. The checks run in a fixed order, and the first
one that matches wins:

  1. the context was canceled                         -> Canceled
  2. the context's deadline passed, or a timeout      -> Timeout
  3. a transient OS-level error (reset, EINTR, ...)   -> TemporaryNetworkError
  4. the hostname didn't resolve                      -> DNSFailure
  5. any other socket-level failure                   -> ConnectionFailure
  6. anything else                                    -> ExecutionError
"""

# standards
from datetime import timedelta
import errno
from http.client import HTTPException
import socket
import ssl
from typing import List, Optional, Tuple, Type
from urllib.parse import urlparse

# 3rd parties
import requests
import urllib3.exceptions

# sonde
from .context import Context, ContextDone
from .exceptions import (
    Canceled,
    ConnectionFailure,
    DNSFailure,
    ExecutionError,
    TemporaryNetworkError,
    Timeout,
)
from .utils import iter_exception_chain


# Exceptions that the client hands over to `classify_error`. Anything else raised while executing a request is a bug, and
# propagates as is, unless the context is done (a cancel from another thread can make the transport raise just about anything).
TRANSPORT_ERRORS: Tuple[Type[BaseException], ...] = (
    ContextDone,
    ExecutionError,
    HTTPException,
    OSError,
    requests.RequestException,
    urllib3.exceptions.HTTPError,
)

# errno values for conditions that usually clear up by themselves
TEMPORARY_ERRNOS = frozenset([
    errno.EAGAIN,
    errno.ECONNABORTED,
    errno.ECONNRESET,
    errno.EINTR,
    errno.EMFILE,
    errno.ENFILE,
])


def classify_error(error: BaseException, elapsed: timedelta, context: Context, url: str) -> ExecutionError:
    """
    `url` is the URL that was being fetched when the error occurred, for reporting DNS failures.
    """
    if isinstance(error, ExecutionError):
        error.elapsed = elapsed
        return error
    if context.cancelled:
        return Canceled('request canceled', elapsed)
    chain = list(iter_exception_chain(error))
    if context.expired or any(map(_is_timeout, chain)):
        return Timeout(elapsed)
    if any(map(_is_temporary, chain)):
        return TemporaryNetworkError(f'temporary network error: {error}', elapsed)
    if any(isinstance(link, socket.gaierror) for link in chain):
        return DNSFailure(urlparse(url).hostname or url, elapsed)
    operation = _connection_operation(chain)
    if operation is not None:
        return ConnectionFailure(operation, str(error), elapsed)
    return ExecutionError(f'request failed: {error}', elapsed)


def _is_timeout(error: BaseException) -> bool:
    if isinstance(error, (requests.exceptions.Timeout, socket.timeout, TimeoutError)):
        return True
    # `NewConnectionError` subclasses `ConnectTimeoutError` in urllib3 2.x, even though it's raised for e.g. refused connections
    return isinstance(error, urllib3.exceptions.TimeoutError) and not isinstance(error, urllib3.exceptions.NewConnectionError)


def _is_temporary(error: BaseException) -> bool:
    return isinstance(error, OSError) and not isinstance(error, socket.gaierror) and error.errno in TEMPORARY_ERRNOS


def _connection_operation(chain: List[BaseException]) -> Optional[str]:
    def found(*error_types: Type[BaseException]) -> bool:
        return any(isinstance(link, error_types) for link in chain)

    if found(ssl.SSLError, requests.exceptions.SSLError):
        # certificate problems are not connection failures, they're reported as generic failures
        return None
    if found(BrokenPipeError):
        return 'write'
    if found(urllib3.exceptions.NewConnectionError, ConnectionRefusedError):
        return 'dial'
    if found(urllib3.exceptions.ProtocolError, requests.exceptions.ChunkedEncodingError, HTTPException, ConnectionError):
        return 'read'
    if found(requests.exceptions.ConnectionError):
        return 'dial'
    return None
