#!/usr/bin/env python3

# standards
from datetime import timedelta
from typing import Iterator, List, Mapping, Set, Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit


def merge_query_params(url: str, params: Mapping[str, str]) -> str:
    """
    Returns `url` with the given query params set. A key that's already in the URL's query string gets all of its values
    replaced by the new one, other keys are kept in their original order. Path and fragment are left untouched.
    """
    if not params:
        return url
    parts = urlsplit(url)
    pairs: List[Tuple[str, str]] = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if key not in params
    ]
    pairs.extend(params.items())
    return urlunsplit(parts._replace(query=urlencode(pairs, encoding="UTF-8")))


def format_duration(duration: timedelta) -> str:
    seconds = duration.total_seconds()
    if seconds < 1:
        return f"{seconds * 1000:.1f}ms"
    return f"{seconds:.3f}s"


def iter_exception_chain(error: BaseException) -> Iterator[BaseException]:
    """
    Yields `error` and every exception it wraps, depth-first. Besides the standard `__cause__` and `__context__`, we follow
    exceptions stored in `args` (that's how `requests` wraps `urllib3` errors) and in `reason` (that's how `urllib3`'s
    `MaxRetryError` wraps the underlying connection error).
    """
    seen: Set[int] = set()
    stack = [error]
    while stack:
        current = stack.pop()
        if id(current) in seen:
            continue
        seen.add(id(current))
        yield current
        wrapped = [
            current.__cause__,
            current.__context__,
            getattr(current, "reason", None),
            *current.args,
        ]
        stack.extend(reversed([other for other in wrapped if isinstance(other, BaseException)]))
