#!/usr/bin/env python3

"""
Checks run on a `Request` before it is executed. Each check raises a `ValidationError` naming the offending field. The order in
which `validate_request` runs them is part of the interface: when a request has several problems, the error raised is always the
one for the first failing check.
"""

# standards
from typing import TYPE_CHECKING, Mapping
from urllib.parse import urlparse

# sonde
from .exceptions import ValidationError

if TYPE_CHECKING:  # pragma: no cover
    from .datastructures import Request


SUPPORTED_METHODS = ('GET', 'POST', 'PUT', 'PATCH', 'DELETE', 'HEAD', 'OPTIONS')

# Only these methods ever carry a body. A body set on a request with any other method is silently left out.
BODY_METHODS = frozenset(['POST', 'PUT', 'PATCH'])

SUPPORTED_SCHEMES = ('http', 'https')

INVALID_HEADER_NAME_CHARS = frozenset(':\r\n')


def validate_request(req: 'Request') -> None:
    validate_method(req.method)
    validate_url(req.url)
    validate_headers(req.headers)
    validate_query_params(req.query_params)
    if req.auth is not None:
        req.auth.validate()


def validate_method(method: str) -> None:
    if not method or not method.strip():
        raise ValidationError('HTTP method cannot be empty', field='method')
    if method.upper() not in SUPPORTED_METHODS:
        raise ValidationError(f'invalid HTTP method: {method!r}', field='method')


def validate_url(url: str) -> None:
    if not url or not url.strip():
        raise ValidationError('URL cannot be empty', field='url')
    try:
        parsed = urlparse(url)
        parsed.port  # pylint: disable=pointless-statement  # raises on a malformed port
    except ValueError as error:
        raise ValidationError(f'invalid URL format: {url!r} ({error})', field='url') from error
    if parsed.scheme not in SUPPORTED_SCHEMES:
        raise ValidationError(f'invalid URL format: {url!r} (scheme must be http or https)', field='url')
    if not parsed.hostname:
        raise ValidationError(f'invalid URL format: {url!r} (no host)', field='url')


def validate_headers(headers: Mapping[str, str]) -> None:
    for name in headers:
        if not name.strip() or INVALID_HEADER_NAME_CHARS.intersection(name):
            raise ValidationError(f'invalid header name: {name!r}', field='headers')


def validate_query_params(params: Mapping[str, str]) -> None:
    for name in params:
        if not name.strip():
            raise ValidationError(f'invalid query parameter name: {name!r}', field='query_params')
