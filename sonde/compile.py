#!/usr/bin/env python3

# standards
from typing import Optional
from urllib.parse import urljoin, urlparse

# sonde
from .config import Config
from .datastructures import Headers, Request, WireRequest, WireResponse
from .utils import merge_query_params


def compile_request(req: Request, config: Config) -> WireRequest:
    """
    Builds the request that goes on the wire. Auth is not applied here, that's done by the client once this returns.
    """
    headers = _compile_request_headers(req, config)
    return WireRequest(
        url=merge_query_params(req.url, req.query_params),
        method=req.method.upper(),
        headers=headers,
        body=_compile_request_body(req, headers),
    )


def _compile_request_headers(req: Request, config: Config) -> Headers:
    headers = Headers()
    if config.user_agent:
        headers.set('User-Agent', config.user_agent)
    for name, value in req.headers.items():
        headers.set(name, value)
    return headers


def _compile_request_body(req: Request, headers: Headers) -> Optional[bytes]:
    if not req.body or not req.is_body_allowed:
        return None
    # We always encode as UTF-8. The Content-Length header we set is the byte length, and overrides any user-specified one
    body = req.body.encode('UTF-8')
    headers.set('Content-Length', str(len(body)))
    return body


def compile_redirect(wreq: WireRequest, wres: WireResponse) -> WireRequest:
    """
    Given a request and the redirect response it got, builds the request for the next hop.
    """
    url = urljoin(wres.url or wreq.url, wres.headers.get_all('Location')[0])
    method = wreq.method
    body = wreq.body
    headers = wreq.headers.copy()
    if (wres.status_code == 303 and method != 'HEAD') or (wres.status_code in (301, 302) and method == 'POST'):
        method = 'GET'
    if wres.status_code in (301, 302, 303):
        # 307 and 308 are the only redirects that resend the body
        body = None
        headers.remove('Content-Length')
        headers.remove('Content-Type')
    if urlparse(url).hostname != urlparse(wreq.url).hostname:
        # Don't leak credentials to another host
        headers.remove('Authorization')
    return WireRequest(url=url, method=method, headers=headers, body=body)
