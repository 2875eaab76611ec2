#!/usr/bin/env python3

# 3rd parties
import pytest

# sonde
from sonde import Headers


def test_empty_headers() -> None:
    headers = Headers()
    assert not headers
    assert headers.get("anything") is None
    with pytest.raises(KeyError):
        print(headers["anything"])
    assert list(headers.get_all("Anything")) == []
    assert list(headers) == []
    assert list(headers.keys()) == []
    assert list(headers.items()) == []
    assert headers == Headers()
    assert headers != Headers({"My-Key": "My-Value"})
    assert headers != {}  # never equal to sth that isn't a Headers object


def test_add_method() -> None:
    headers = Headers()
    headers.add("My-Key", "My-Value")
    assert headers
    assert "My-Key" in headers
    assert headers["My-Key"] == "My-Value"
    with pytest.raises(KeyError):
        print(headers["anything else"])
    assert list(headers.get_all("My-Key")) == ["My-Value"]
    assert list(headers) == ["My-Key"]
    assert list(headers.keys()) == ["My-Key"]
    assert list(headers.items()) == [("My-Key", "My-Value")]
    assert headers == Headers({"My-Key": "My-Value"})
    assert headers != {"My-Key": "My-Value"}


def test_constructor_arg() -> None:
    headers = Headers({})
    headers.add("My-Key", "My-Value")
    assert headers == Headers({"My-Key": "My-Value"})


def test_case_insensitivity() -> None:
    headers = Headers()
    headers.add("My-Key", "My-Value")
    assert headers["My-Key"] == "My-Value"
    assert headers["my-key"] == "My-Value"
    assert headers["mY-kEY"] == "My-Value"
    assert "My-Key" in headers
    assert "my-key" in headers
    assert "mY-kEY" in headers
    assert list(headers.get_all("my-key")) == ["My-Value"]


def test_key_case_is_preserved() -> None:
    headers = Headers()
    headers.add("my-key", "My-Value")
    assert list(headers) == ["my-key"]
    assert list(headers.keys()) == ["my-key"]
    assert list(headers.items()) == [("my-key", "My-Value")]
    assert list(headers.items(normalise_keys=True)) == [("my-key", "My-Value")]


def test_eq() -> None:
    assert Headers({"My-Key": "My-Value"}) == Headers({"my-key": "My-Value"})
    assert Headers({"My-Key": "My-Value"}) != Headers({"My-Key": "vALUE"})


def test_multiple_values() -> None:
    headers = Headers()
    headers.add("My-Key", "My-Value-1")
    headers.add("My-Key", "My-Value-2")
    headers.add("My-Key", "My-Value-3")
    assert list(headers) == ["My-Key"]
    assert list(headers.items()) == [("My-Key", "My-Value-1"), ("My-Key", "My-Value-2"), ("My-Key", "My-Value-3")]
    assert headers.get("My-Key") == "My-Value-1, My-Value-2, My-Value-3"


def test_setdefault() -> None:
    headers = Headers()
    headers.setdefault("My-Key", "My-Value-1")
    headers.setdefault("My-Key", "My-Value-2")
    assert headers["My-Key"] == "My-Value-1"


def test_repr() -> None:
    # We don't check the specifics of the repr format, but we do check that the values are included
    headers = Headers()
    headers.add("My-Key", "My-Value-1")
    headers.add("My-Key", "My-Value-2")
    assert "My-Key" in repr(headers)
    assert "My-Value-1" in repr(headers)
    assert "My-Value-2" in repr(headers)


def test_set_replaces_all_values() -> None:
    headers = Headers()
    headers.add("My-Key", "My-Value-1")
    headers.add("my-key", "My-Value-2")
    headers.set("MY-KEY", "My-Value-3")
    assert list(headers.items()) == [("MY-KEY", "My-Value-3")]
    headers["My-Key"] = "My-Value-4"
    assert headers["my-key"] == "My-Value-4"


def test_remove() -> None:
    headers = Headers({"My-Key": "My-Value", "Other-Key": "Other-Value"})
    headers.remove("my-key")
    assert "My-Key" not in headers
    del headers["OTHER-KEY"]
    assert not headers
    headers.remove("Not-There")  # no error


def test_joined() -> None:
    headers = Headers()
    headers.add("X-Multi", "one")
    headers.add("x-multi", "two")
    headers.add("Content-Type", "text/plain")
    joined = headers.joined()
    assert list(joined.items()) == [("X-Multi", "one, two"), ("Content-Type", "text/plain")]
    assert len(headers.get_all("X-Multi")) == 2  # original untouched


def test_copy_is_independent() -> None:
    headers = Headers({"My-Key": "My-Value"})
    copy = headers.copy()
    copy.set("My-Key", "Changed")
    copy.add("New-Key", "New-Value")
    assert headers == Headers({"My-Key": "My-Value"})


def test_to_dict() -> None:
    headers = Headers()
    headers.add("Set-Cookie", "a=1")
    headers.add("Set-Cookie", "b=2")
    assert headers.to_dict() == {"Set-Cookie": "a=1, b=2"}
