#!/usr/bin/env python3

# standards
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
import json
import re
from typing import (
    # We use the title-cased Dict, List and Tuple for backwards compat with pythons <3.9
    Dict,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)
from uuid import uuid4

# 3rd parties
import chardet

# sonde
from .auth import AuthStrategy, NoAuth
from .validation import BODY_METHODS, validate_request


JsonValue = Union[
    None,
    str,
    int,
    float,
    bool,
    List['JsonValue'],
    Tuple['JsonValue'],
    Dict[str, 'JsonValue'],
]


REDIRECT_STATUSES = frozenset([301, 302, 303, 307, 308])


def utcnow() -> datetime:
    # This is put in a separate function so that tests can patch that function
    return datetime.now(timezone.utc)


class Headers:
    """
    A headers dict that uses case-insensitive keys and allows multiple values per key (for e.g. repeated "Set-Cookie" headers).

    Note that we deliberately don't inherit from `abc.Mapping` or similar because the interface isn't _quite_ that of a dict,
    because some methods return strings, and some return lists of strings.
    """

    _dict: Dict[str, List[Tuple[str, str]]]

    def __init__(self, base: Optional[Union['Headers', Mapping[str, str]]] = None) -> None:
        self._dict = {}
        if base:
            self.add_all(base)

    def __bool__(self) -> bool:
        return bool(self._dict)

    def __contains__(self, key: str) -> bool:
        return key.lower() in self._dict

    def __getitem__(self, key: str) -> str:
        """
        Return the headers with the given key, as a single string. This is for convenience -- in 99.99% of cases users expect a
        single value, and don't want to deal with a list that will only have one element in it. Use `get_all` if you want all
        values.
        """
        value = self.get(key)
        if value is None:
            raise KeyError(key)
        return value

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value_list = self.get_all(key)
        if not value_list:
            return default
        # RFC 7230 section 3.2.2: multiple fields with the same name can be combined by joining their values with commas
        return ', '.join(value_list)

    def get_all(self, key: str, default: Sequence[str] = ()) -> Sequence[str]:
        value_list = self._dict.get(key.lower())
        if value_list is None:
            return default
        return [value for _raw_key_unused, value in value_list]

    def add(self, key: str, value: str) -> None:
        self._dict.setdefault(key.lower(), []).append((key, value))

    def add_all(self, other: Union['Headers', Mapping[str, str]]) -> None:
        for key, value in other.items():
            self.add(key, value)

    def set(self, key: str, value: str) -> None:
        """
        Replaces all existing values for `key` with the given one.
        """
        self._dict[key.lower()] = [(key, value)]

    __setitem__ = set

    def remove(self, key: str) -> None:
        self._dict.pop(key.lower(), None)

    __delitem__ = remove

    def setdefault(self, key: str, value: str) -> str:
        existing = self.get(key)
        if existing is not None:
            return existing
        else:
            self.add(key, value)
            return value

    def keys(self) -> Iterator[str]:
        """
        Yields a sequence of all header keys. Case-insensitive duplicates are removed.
        """
        for value_list in self._dict.values():
            yield value_list[0][0]

    __iter__ = keys

    def items(self, normalise_keys: bool = False) -> Iterator[Tuple[str, str]]:
        """
        Yield a sequence of all (key, value) header pairs. Note that unlike a proper dict, the sequence may include duplicated
        keys.
        """
        for normalised_key, value_list in self._dict.items():
            for raw_key, value in value_list:
                yield (normalised_key if normalise_keys else raw_key, value)

    def joined(self) -> 'Headers':
        """
        Returns a copy of these headers with exactly one value per key, repeated values joined with ", ".
        """
        joined = Headers()
        for key in self.keys():
            joined.add(key, self[key])
        return joined

    def copy(self) -> 'Headers':
        return Headers(self)

    def to_dict(self) -> Dict[str, str]:
        return {key: self[key] for key in self.keys()}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Headers):
            return False
        return sorted(self.items(normalise_keys=True)) == sorted(other.items(normalise_keys=True))

    def __repr__(self) -> str:
        return 'Headers({%s})' % ', '.join(f'{key!r}: {value!r}' for key, value in self.items())


@dataclass
class Request:
    """
    An HTTP request as described by the user: what to call, with which headers, params, body and credentials. Instances are
    created by user code or rebuilt by a repository from storage. None of the fields are checked on construction, call
    `validate()` for that (`HttpClient.execute` always does).

    The method is canonicalised to uppercase, so "get" and "GET" are the same request.
    """

    url: str = ''
    method: str = 'GET'
    name: str = ''
    headers: Dict[str, str] = field(default_factory=dict)
    query_params: Dict[str, str] = field(default_factory=dict)
    body: str = ''
    auth: Optional[AuthStrategy] = field(default_factory=NoAuth)
    id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        self.method = (self.method or '').upper()
        if self.updated_at is None:
            self.updated_at = self.created_at

    @classmethod
    def build(cls, method: str, url: str, **kwargs) -> 'Request':
        return cls(url=url, method=method, **kwargs)

    def validate(self) -> None:
        validate_request(self)

    @property
    def is_body_allowed(self) -> bool:
        return self.method.upper() in BODY_METHODS

    def set_method(self, method: str) -> None:
        self.method = method.upper()
        self._touch()

    def set_header(self, name: str, value: str) -> None:
        """
        Sets a header. An empty value removes the header instead.
        """
        if value:
            self.headers[name] = value
        else:
            self.headers.pop(name, None)
        self._touch()

    def set_query_param(self, name: str, value: str) -> None:
        """
        Sets a query param. An empty value removes the param instead.
        """
        if value:
            self.query_params[name] = value
        else:
            self.query_params.pop(name, None)
        self._touch()

    def set_auth(self, auth: AuthStrategy) -> None:
        self.auth = auth
        self._touch()

    def clone(self) -> 'Request':
        """
        Returns a copy of this request that can be modified without affecting the original. The auth strategy is shared, which is
        fine since strategies are immutable.
        """
        return replace(
            self,
            headers=dict(self.headers),
            query_params=dict(self.query_params),
        )

    def _touch(self) -> None:
        self.updated_at = utcnow()


@dataclass
class WireRequest:
    """
    The HTTP request as it will be sent on the wire, built from a `Request` by `compile_request`. This class is considered
    private to sonde, except that auth strategies get to modify it before it is sent.
    """

    url: str
    method: str
    headers: Headers
    body: Optional[bytes] = None


@dataclass
class WireResponse:
    """
    What an engine returns for one HTTP transaction. Redirects are never followed at this level. `content_length` is -1 when the
    transport doesn't know it.
    """

    url: str
    status_code: int
    reason: Optional[str]
    headers: Headers
    content: bytes
    content_length: int = -1

    @property
    def is_redirect(self) -> bool:
        return 'Location' in self.headers and self.status_code in REDIRECT_STATUSES


@dataclass
class Response:
    """
    Public class for the result of executing a `Request`. Besides the data received from the server, this has the time the
    transaction took, when it was received, and the ID of the `Request` it answers. That ID is there for correlation only.
    """

    status_code: int
    status: str
    reason: Optional[str]
    headers: Headers
    content: bytes
    body: str
    content_length: int
    elapsed: timedelta
    received_at: datetime
    request_id: str
    url: str = ''

    @property
    def is_informational(self) -> bool:
        return 100 <= self.status_code < 200

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def is_redirect(self) -> bool:
        return 300 <= self.status_code < 400

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500

    @property
    def is_server_error(self) -> bool:
        return 500 <= self.status_code < 600

    @property
    def is_error(self) -> bool:
        return self.is_client_error or self.is_server_error

    @property
    def status_class(self) -> str:
        if self.is_informational:
            return '1xx Informational'
        if self.is_success:
            return '2xx Success'
        if self.is_redirect:
            return '3xx Redirect'
        if self.is_client_error:
            return '4xx Client Error'
        if self.is_server_error:
            return '5xx Server Error'
        return 'Unknown'

    def get_header(self, name: str, default: str = '') -> str:
        value = self.headers.get(name)
        return default if value is None else value

    def has_header(self, name: str) -> bool:
        return bool(self.get_header(name))

    @property
    def content_type(self) -> str:
        return self.get_header('Content-Type')

    def _content_type_contains(self, *needles: str) -> bool:
        content_type = self.content_type.lower()
        return any(needle in content_type for needle in needles)

    @property
    def is_json(self) -> bool:
        return self._content_type_contains('application/json', 'application/vnd.api+json')

    @property
    def is_xml(self) -> bool:
        return self._content_type_contains('application/xml', 'text/xml')

    @property
    def is_html(self) -> bool:
        return self._content_type_contains('text/html')

    @property
    def is_text(self) -> bool:
        return self._content_type_contains('text/plain')

    @property
    def duration_millis(self) -> int:
        return int(self.elapsed / timedelta(milliseconds=1))

    @property
    def duration_seconds(self) -> float:
        return self.elapsed.total_seconds()

    def json(self, **kwargs) -> JsonValue:
        return json.loads(self.body, **kwargs)


RE_CHARSET = re.compile(r'charset\s*=\s*"?([^";\s]+)', flags=re.I)


def decode_content(content: bytes, content_type: Optional[str]) -> str:
    """
    Decodes a response body to text. We use the charset declared in the Content-Type header if there's one, then try UTF-8, and
    only if that fails do we ask chardet to guess.
    """
    if not content:
        return ''
    charset_match = RE_CHARSET.search(content_type or '')
    if charset_match:
        try:
            return content.decode(charset_match.group(1))
        except (LookupError, UnicodeDecodeError):
            pass
    try:
        return content.decode('UTF-8')
    except UnicodeDecodeError:
        pass
    encoding = chardet.detect(content)['encoding'] or 'UTF-8'
    try:
        return content.decode(encoding, errors='replace')
    except LookupError:
        return content.decode('UTF-8', errors='replace')
