#!/usr/bin/env python3

"""
Conversion of requests and auth strategies to and from plain records, i.e. dicts of JSON-compatible values, which is what
repositories store. An auth strategy is stored as a `(kind, fields)` pair, where `kind` is the strategy's discriminator.
"""

# standards
from datetime import datetime
import json
from typing import Dict, Mapping, Optional, Tuple

# sonde
from .auth import APIKeyAuth, APIKeyLocation, AuthStrategy, BasicAuth, BearerAuth, NoAuth, unhandled_auth
from .datastructures import Request


AuthRecord = Tuple[str, Dict[str, str]]

RequestRecord = Dict[str, object]


def compose_auth_record(auth: Optional[AuthStrategy]) -> AuthRecord:
    if auth is None or isinstance(auth, NoAuth):
        return NoAuth.kind, {}
    if isinstance(auth, BasicAuth):
        return auth.kind, {'username': auth.username, 'password': auth.password}
    if isinstance(auth, BearerAuth):
        return auth.kind, {'token': auth.token}
    if isinstance(auth, APIKeyAuth):
        location = auth.location.value if isinstance(auth.location, APIKeyLocation) else str(auth.location)
        return auth.kind, {'key': auth.key, 'value': auth.value, 'location': location}
    unhandled_auth(auth)


def parse_auth_record(kind: Optional[str], fields: Optional[Mapping[str, str]]) -> AuthStrategy:
    """
    The inverse of `compose_auth_record`. A missing or unknown `kind` gives `NoAuth`, so that records written by a newer version,
    or damaged ones, can still be loaded.
    """
    fields = fields or {}
    if kind == BasicAuth.kind:
        return BasicAuth(fields.get('username', ''), fields.get('password', ''))
    if kind == BearerAuth.kind:
        return BearerAuth(fields.get('token', ''))
    if kind == APIKeyAuth.kind:
        return APIKeyAuth(
            fields.get('key', ''),
            fields.get('value', ''),
            fields.get('location', APIKeyLocation.HEADER.value),
        )
    return NoAuth()


def compose_request_record(req: Request) -> RequestRecord:
    auth_type, auth_config = compose_auth_record(req.auth)
    return {
        'id': req.id,
        'name': req.name,
        'method': req.method,
        'url': req.url,
        'headers': dict(req.headers),
        'query_params': dict(req.query_params),
        'body': req.body,
        'auth_type': auth_type,
        'auth_config': auth_config,
        'created_at': req.created_at.isoformat(),
        'updated_at': req.updated_at.isoformat() if req.updated_at else req.created_at.isoformat(),
    }


def parse_request_record(record: Mapping[str, object]) -> Request:
    """
    The inverse of `compose_request_record`. The mappings (`headers`, `query_params`, `auth_config`) may also be given as JSON
    text, which is how they're stored in a database column.
    """
    created_at = _parse_datetime(record['created_at'])
    return Request(
        id=str(record['id']),
        name=str(record.get('name') or ''),
        method=str(record.get('method') or ''),
        url=str(record.get('url') or ''),
        headers=_parse_mapping(record.get('headers')),
        query_params=_parse_mapping(record.get('query_params')),
        body=str(record.get('body') or ''),
        auth=parse_auth_record(
            record.get('auth_type'),  # type: ignore[arg-type]
            _parse_mapping(record.get('auth_config')),
        ),
        created_at=created_at,
        updated_at=_parse_datetime(record['updated_at']) if record.get('updated_at') else created_at,
    )


def _parse_mapping(value: object) -> Dict[str, str]:
    if not value:
        return {}
    if isinstance(value, (str, bytes)):
        value = json.loads(value)
    if not isinstance(value, Mapping):
        raise ValueError(f'Expected a mapping, got {value!r}')
    return {str(key): str(item) for key, item in value.items()}


def _parse_datetime(value: object) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))

