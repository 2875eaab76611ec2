#!/usr/bin/env python3

# standards
from urllib.parse import parse_qsl, urlparse

# 3rd parties
import pytest

# sonde
from sonde import (
    APIKeyAuth,
    APIKeyLocation,
    AuthError,
    BasicAuth,
    BearerAuth,
    Headers,
    NoAuth,
    SUPPORTED_AUTH_TYPES,
    ValidationError,
    build_auth,
)
from sonde.auth import AUTH_TYPES
from .utils import dummy_wire_request


def test_supported_auth_types() -> None:
    assert set(SUPPORTED_AUTH_TYPES) == {"none", "basic", "bearer", "apikey"}
    assert {auth_class.kind for auth_class in AUTH_TYPES.values()} == set(SUPPORTED_AUTH_TYPES)


def test_no_auth_does_nothing() -> None:
    wreq = dummy_wire_request()
    NoAuth().validate()
    NoAuth().apply(wreq)
    assert not wreq.headers
    assert wreq.url == "http://example.com/test"


def test_basic_auth_header() -> None:
    wreq = dummy_wire_request()
    BasicAuth("testuser", "testpass").apply(wreq)
    assert wreq.headers["Authorization"] == "Basic dGVzdHVzZXI6dGVzdHBhc3M="


def test_basic_auth_replaces_existing_authorization_header() -> None:
    wreq = dummy_wire_request()
    wreq.headers.add("authorization", "Bearer old")
    BasicAuth("testuser", "testpass").apply(wreq)
    assert list(wreq.headers.get_all("Authorization")) == ["Basic dGVzdHVzZXI6dGVzdHBhc3M="]


def test_basic_auth_non_ascii_credentials() -> None:
    wreq = dummy_wire_request()
    BasicAuth("zoé", "mötörhead").apply(wreq)
    assert wreq.headers["Authorization"] == "Basic em/DqTptw7Z0w7ZyaGVhZA=="


@pytest.mark.parametrize(
    "username, password, expected_field",
    [
        ("", "testpass", "username"),
        ("   ", "testpass", "username"),
        ("testuser", "", "password"),
        ("testuser", " \t", "password"),
    ],
)
def test_basic_auth_validation(username, password, expected_field) -> None:
    auth = BasicAuth(username, password)
    with pytest.raises(AuthError) as error:
        auth.validate()
    assert error.value.field == expected_field
    wreq = dummy_wire_request()
    with pytest.raises(AuthError):
        auth.apply(wreq)
    assert "Authorization" not in wreq.headers


def test_bearer_auth_header() -> None:
    wreq = dummy_wire_request()
    BearerAuth("tok").apply(wreq)
    assert wreq.headers["Authorization"] == "Bearer tok"


def test_bearer_auth_requires_token() -> None:
    with pytest.raises(AuthError) as error:
        BearerAuth(" ").validate()
    assert error.value.field == "token"


def test_apikey_in_header() -> None:
    wreq = dummy_wire_request()
    wreq.headers.set("x-api-key", "old")
    APIKeyAuth("X-API-Key", "secret").apply(wreq)
    assert list(wreq.headers.get_all("X-Api-Key")) == ["secret"]
    assert wreq.url == "http://example.com/test"


def test_apikey_in_query_keeps_existing_params() -> None:
    wreq = dummy_wire_request(url="http://x/path?existing=value")
    APIKeyAuth("api_key", "secret", APIKeyLocation.QUERY).apply(wreq)
    parsed = urlparse(wreq.url)
    assert parsed.path == "/path"
    assert parse_qsl(parsed.query) == [("existing", "value"), ("api_key", "secret")]
    assert "api_key" not in wreq.headers


def test_apikey_in_query_overwrites_same_param() -> None:
    wreq = dummy_wire_request(url="http://x/path?api_key=old&api_key=older#frag")
    APIKeyAuth("api_key", "secret", "query").apply(wreq)
    assert wreq.url == "http://x/path?api_key=secret#frag"


def test_apikey_location_as_string() -> None:
    wreq = dummy_wire_request()
    APIKeyAuth("X-API-Key", "secret", "header").apply(wreq)
    assert wreq.headers["X-API-Key"] == "secret"


@pytest.mark.parametrize(
    "auth, expected_field",
    [
        (APIKeyAuth("", "secret"), "key"),
        (APIKeyAuth("X-API-Key", ""), "value"),
        (APIKeyAuth("X-API-Key", "secret", "cookie"), "location"),
    ],
)
def test_apikey_validation(auth, expected_field) -> None:
    with pytest.raises(AuthError) as error:
        auth.validate()
    assert error.value.field == expected_field


@pytest.mark.parametrize(
    "auth",
    [
        BearerAuth(""),
        BearerAuth(" \t"),
        APIKeyAuth("", "secret", APIKeyLocation.QUERY),
        APIKeyAuth("api_key", "", "query"),
        APIKeyAuth("api_key", "secret", "cookie"),
        APIKeyAuth("api_key", "secret", "QUERY"),
    ],
)
def test_invalid_auth_leaves_request_untouched(auth) -> None:
    wreq = dummy_wire_request(url="http://x/path?existing=value", headers=Headers({"Accept": "*/*"}))
    with pytest.raises(AuthError):
        auth.apply(wreq)
    assert wreq.url == "http://x/path?existing=value"
    assert wreq.headers == Headers({"Accept": "*/*"})


def test_secrets_not_in_repr() -> None:
    assert "hunter2" not in repr(BasicAuth("user", "hunter2"))
    assert "hunter2" not in repr(BearerAuth("hunter2"))
    assert "hunter2" not in repr(APIKeyAuth("X-API-Key", "hunter2"))


def test_auth_errors_are_validation_errors() -> None:
    with pytest.raises(ValidationError):
        BearerAuth("").validate()


@pytest.mark.parametrize(
    "auth_type, credentials, expected",
    [
        (None, {}, NoAuth()),
        ("", {}, NoAuth()),
        ("none", {"ignored": "yes"}, NoAuth()),
        ("basic", {"username": "u", "password": "p"}, BasicAuth("u", "p")),
        ("BASIC", {"username": "u", "password": "p"}, BasicAuth("u", "p")),
        (" bearer ", {"token": "tok"}, BearerAuth("tok")),
        ("apikey", {"key": "k", "value": "v", "location": "Query"}, APIKeyAuth("k", "v", "query")),
    ],
)
def test_build_auth(auth_type, credentials, expected) -> None:
    assert build_auth(auth_type, credentials) == expected


@pytest.mark.parametrize(
    "auth_type, credentials, expected_field",
    [
        ("basic", {"username": "u"}, "password"),
        ("bearer", {}, "token"),
        ("apikey", {"key": "k", "value": "v"}, "location"),
        ("apikey", {"key": "k", "value": "v", "location": "body"}, "location"),
        ("oauth2", {}, "type"),
        ("basic", {"username": "u", "password": ""}, "password"),
    ],
)
def test_build_auth_errors(auth_type, credentials, expected_field) -> None:
    with pytest.raises(AuthError) as error:
        build_auth(auth_type, credentials)
    assert error.value.field == expected_field
