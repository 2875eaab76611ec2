#!/usr/bin/env python3

from .auth import (
    APIKeyAuth,
    APIKeyLocation,
    AuthStrategy,
    BasicAuth,
    BearerAuth,
    NoAuth,
    SUPPORTED_AUTH_TYPES,
    build_auth,
)
from .client import HttpClient
from .config import Config
from .context import Context
from .datastructures import Headers, Request, Response
from .exceptions import (
    AuthError,
    Canceled,
    ConnectionFailure,
    DNSFailure,
    ExecutionError,
    NotFound,
    PersistenceError,
    SondeException,
    TemporaryNetworkError,
    Timeout,
    TooManyRedirects,
    ValidationError,
)
from .logs import LOGGER as logger, basic_logging_config
from .records import compose_request_record, parse_request_record
from .repository import (
    HistoryEntry,
    HistoryRepository,
    MemoryHistoryRepository,
    MemoryRequestRepository,
    RequestRepository,
)
from .service import HistoryService, RequestService

__all__ = [
    "APIKeyAuth",
    "APIKeyLocation",
    "AuthError",
    "AuthStrategy",
    "BasicAuth",
    "BearerAuth",
    "Canceled",
    "Config",
    "ConnectionFailure",
    "Context",
    "DNSFailure",
    "ExecutionError",
    "Headers",
    "HistoryEntry",
    "HistoryRepository",
    "HistoryService",
    "HttpClient",
    "MemoryHistoryRepository",
    "MemoryRequestRepository",
    "NoAuth",
    "NotFound",
    "PersistenceError",
    "Request",
    "RequestRepository",
    "RequestService",
    "Response",
    "SUPPORTED_AUTH_TYPES",
    "SondeException",
    "TemporaryNetworkError",
    "Timeout",
    "TooManyRedirects",
    "ValidationError",
    "basic_logging_config",
    "build_auth",
    "compose_request_record",
    "logger",
    "parse_request_record",
]
