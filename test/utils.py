#!/usr/bin/env python3

# standards
from datetime import timedelta
from typing import Dict, Optional

# sonde
from sonde import Headers, Request, Response
from sonde.datastructures import WireRequest, WireResponse, utcnow


def dummy_request(**kwargs) -> Request:
    kwargs.setdefault("url", "http://example.com/test")
    kwargs.setdefault("method", "GET")
    kwargs.setdefault("name", "Dummy request")
    return Request(**kwargs)


def dummy_wire_request(url: str = "http://example.com/test", method: str = "GET", **kwargs) -> WireRequest:
    kwargs.setdefault("headers", Headers())
    return WireRequest(url=url, method=method, **kwargs)


def dummy_wire_response(
    url: str = "http://example.com/test",
    status_code: int = 200,
    reason: Optional[str] = "OK",
    headers: Optional[Dict[str, str]] = None,
    data: bytes = b"This is my response data",
    content_length: int = -1,
) -> WireResponse:
    return WireResponse(
        url=url,
        status_code=status_code,
        reason=reason,
        headers=Headers(headers),
        content=data,
        content_length=content_length,
    )


def dummy_response(
    request_id: str = "dummy-request-id",
    status_code: int = 200,
    headers: Optional[Dict[str, str]] = None,
    body: str = "This is my response data",
    elapsed: timedelta = timedelta(milliseconds=42),
) -> Response:
    return Response(
        status_code=status_code,
        status=f"{status_code} OK",
        reason="OK",
        headers=Headers(headers),
        content=body.encode("UTF-8"),
        body=body,
        content_length=len(body.encode("UTF-8")),
        elapsed=elapsed,
        received_at=utcnow(),
        request_id=request_id,
    )
