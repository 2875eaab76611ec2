#!/usr/bin/env python3

"""
Authentication strategies. The set of strategies is closed: `AuthStrategy` is the union of the four classes below, and code that
needs to tell them apart (e.g. `sonde.records`) matches on all four, ending in `unhandled_auth` so that a type checker flags any
strategy that's been forgotten.

Every strategy has a `kind` discriminator, which is what gets stored alongside the strategy's fields when persisting it.
"""

# standards
from base64 import b64encode
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, ClassVar, Dict, List, Mapping, NoReturn, Optional, Type, Union

# sonde
from .exceptions import AuthError
from .utils import merge_query_params

if TYPE_CHECKING:  # pragma: no cover
    from .datastructures import WireRequest


class APIKeyLocation(str, Enum):
    HEADER = 'header'
    QUERY = 'query'


def _is_blank(value: object) -> bool:
    return not isinstance(value, str) or not value.strip()


@dataclass(frozen=True)
class NoAuth:
    kind: ClassVar[str] = 'none'

    def validate(self) -> None:
        pass

    def apply(self, wreq: 'WireRequest') -> None:
        pass


@dataclass(frozen=True)
class BasicAuth:
    username: str
    password: str = field(repr=False)

    kind: ClassVar[str] = 'basic'

    def validate(self) -> None:
        if _is_blank(self.username):
            raise AuthError('username is required for basic auth', field='username')
        if _is_blank(self.password):
            raise AuthError('password is required for basic auth', field='password')

    def apply(self, wreq: 'WireRequest') -> None:
        self.validate()
        credentials = b64encode(f'{self.username}:{self.password}'.encode('UTF-8')).decode('ASCII')
        wreq.headers.set('Authorization', f'Basic {credentials}')


@dataclass(frozen=True)
class BearerAuth:
    token: str = field(repr=False)

    kind: ClassVar[str] = 'bearer'

    def validate(self) -> None:
        if _is_blank(self.token):
            raise AuthError('token is required for bearer auth', field='token')

    def apply(self, wreq: 'WireRequest') -> None:
        self.validate()
        wreq.headers.set('Authorization', f'Bearer {self.token}')


@dataclass(frozen=True)
class APIKeyAuth:
    """
    Sends an API key either as a header or as a query param, depending on `location`. Either way, an existing header or param
    with the same name is overwritten.
    """

    key: str
    value: str = field(repr=False)
    location: Union[APIKeyLocation, str] = APIKeyLocation.HEADER

    kind: ClassVar[str] = 'apikey'

    def validate(self) -> None:
        if _is_blank(self.key):
            raise AuthError('API key name is required', field='key')
        if _is_blank(self.value):
            raise AuthError('API key is required', field='value')
        self._parse_location()

    def apply(self, wreq: 'WireRequest') -> None:
        self.validate()
        if self._parse_location() is APIKeyLocation.HEADER:
            wreq.headers.set(self.key, self.value)
        else:
            wreq.url = merge_query_params(wreq.url, {self.key: self.value})

    def _parse_location(self) -> APIKeyLocation:
        try:
            return APIKeyLocation(self.location)
        except ValueError as error:
            raise AuthError(
                f"invalid API key location {self.location!r} (must be 'header' or 'query')",
                field='location',
            ) from error


AuthStrategy = Union[NoAuth, BasicAuth, BearerAuth, APIKeyAuth]

AUTH_TYPES: Dict[str, Type[AuthStrategy]] = {
    auth_class.kind: auth_class
    for auth_class in (NoAuth, BasicAuth, BearerAuth, APIKeyAuth)
}

SUPPORTED_AUTH_TYPES = tuple(AUTH_TYPES)


def unhandled_auth(auth: NoReturn) -> NoReturn:
    raise AssertionError(f'Unhandled auth strategy: {auth!r}')


def build_auth(auth_type: Optional[str], credentials: Mapping[str, str]) -> AuthStrategy:
    """
    Creates a strategy from its discriminator, e.g. "basic", and a mapping of credentials, e.g. `{"username": ..., "password":
    ...}`. The discriminator is case-insensitive, and an empty one means no auth. The strategy is validated before being
    returned.
    """
    kind = (auth_type or '').strip().lower() or NoAuth.kind
    auth: AuthStrategy
    if kind == NoAuth.kind:
        auth = NoAuth()
    elif kind == BasicAuth.kind:
        username, password = _require_credentials(kind, credentials, 'username', 'password')
        auth = BasicAuth(username, password)
    elif kind == BearerAuth.kind:
        (token,) = _require_credentials(kind, credentials, 'token')
        auth = BearerAuth(token)
    elif kind == APIKeyAuth.kind:
        key, value, location = _require_credentials(kind, credentials, 'key', 'value', 'location')
        auth = APIKeyAuth(key, value, location.strip().lower())
    else:
        raise AuthError(f'unsupported auth type: {auth_type!r}', field='type')
    auth.validate()
    return auth


def _require_credentials(kind: str, credentials: Mapping[str, str], *names: str) -> List[str]:
    missing = [name for name in names if name not in credentials]
    if missing:
        raise AuthError(
            f'{kind} auth requires {", ".join(map(repr, names))} credentials (missing {", ".join(missing)})',
            field=missing[0],
        )
    return [credentials[name] for name in names]
