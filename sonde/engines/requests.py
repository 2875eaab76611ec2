#!/usr/bin/env python3

# standards
from datetime import timedelta
from http.cookiejar import DefaultCookiePolicy
import logging
import socket
import threading
from time import monotonic
from typing import Any, Dict, Iterator, List, Optional, Tuple
from urllib.parse import urlparse

# 3rd parties
import requests
from requests.adapters import HTTPAdapter
from urllib3.connection import HTTPConnection

# sonde
from ..config import Config
from ..context import Context
from ..datastructures import Headers, WireRequest, WireResponse
from .base import Engine


LOGGER = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

# urllib3 refuses timeouts of 0, this is what we pass instead when the context has (almost) no time left
MIN_TIMEOUT_SECONDS = 0.001


class KeepAliveAdapter(HTTPAdapter):
    """
    A requests adapter that never retries, and that turns TCP keep-alive on for the connections in its pool.
    """

    def __init__(self, keep_alive: timedelta, **kwargs) -> None:
        # must be set before calling the parent constructor, which calls `init_poolmanager`
        self.socket_options = compose_socket_options(keep_alive)
        super().__init__(max_retries=0, **kwargs)

    def init_poolmanager(self, *args, **kwargs) -> None:
        kwargs['socket_options'] = self.socket_options
        super().init_poolmanager(*args, **kwargs)


class RequestsEngine(Engine):

    id = 'requests'

    def __init__(self, config: Optional[Config] = None) -> None:
        if config is None:
            config = Config()
        self.session = requests.Session()
        # The environment shouldn't inject proxies or .netrc credentials into requests we've fully specified
        self.session.trust_env = False
        # Cookies are never carried from one request to the next
        self.session.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))
        adapter = KeepAliveAdapter(config.keep_alive)
        self.session.mount('http://', adapter)
        self.session.mount('https://', adapter)
        self.idle_conn_timeout = config.idle_conn_timeout
        self.last_used: Optional[float] = None
        self._lock = threading.Lock()
        if config.insecure_skip_tls_verify:
            LOGGER.warning('TLS certificate verification is DISABLED. Never use this outside of development.')

    def request(self, wreq: WireRequest, config: Config, context: Context) -> WireResponse:
        """
        The transaction runs in a worker thread, so that a `cancel()` is honoured right away even while the worker is still stuck
        connecting or waiting for response headers. The worker notices the cancellation at its next read, and closes the response.
        """
        self._drop_idle_connections()
        finished = threading.Event()
        outcome: Dict[str, Any] = {}

        def run() -> None:
            try:
                outcome['response'] = self._transact(wreq, config, context)
            except Exception as error:  # pylint: disable=broad-except
                # re-raised in the calling thread
                outcome['error'] = error
            finally:
                finished.set()

        unregister = context.on_cancel(finished.set)
        try:
            threading.Thread(target=run, name=f'sonde-{wreq.method}', daemon=True).start()
            while not finished.wait(context.remaining()):
                context.raise_if_done()
        finally:
            unregister()
        if 'response' in outcome:
            return outcome['response']
        context.raise_if_done()
        raise outcome['error']

    def close(self) -> None:
        self.session.close()

    def _transact(self, wreq: WireRequest, config: Config, context: Context) -> WireResponse:
        rres = self.session.request(
            url=wreq.url,
            method=wreq.method,
            headers=wreq.headers,  # type: ignore  # it fits in a duck-typed way
            data=wreq.body,
            verify=not config.insecure_skip_tls_verify,
            allow_redirects=False,
            stream=True,
            timeout=compose_timeout(wreq, config, context),
        )
        unregister = context.on_cancel(rres.close)
        try:
            headers = Headers()
            for key in rres.raw.headers:
                for value in rres.raw.headers.getlist(key):
                    headers.add(key, value)
            content = b''.join(self._iter_content(rres, context))
        finally:
            unregister()
            rres.close()
            with self._lock:
                self.last_used = monotonic()
        return WireResponse(
            url=wreq.url,
            status_code=rres.status_code,
            reason=rres.reason,
            headers=headers,
            content=content,
            content_length=read_content_length(headers),
        )

    @staticmethod
    def _iter_content(rres: requests.Response, context: Context) -> Iterator[bytes]:
        for chunk in rres.iter_content(CHUNK_SIZE):
            context.raise_if_done()
            yield chunk
        # a response closed by `cancel()` can end up looking like an empty body
        context.raise_if_done()

    def _drop_idle_connections(self) -> None:
        # urllib3 has no notion of idle timeout, so we clear the whole pool when it's been unused for long enough
        with self._lock:
            if self.last_used is None:
                return
            idle_seconds = monotonic() - self.last_used
            if idle_seconds > self.idle_conn_timeout.total_seconds():
                LOGGER.debug('Dropping pooled connections, idle for %.1fs', idle_seconds)
                for adapter in self.session.adapters.values():
                    adapter.close()
                self.last_used = None


def compose_socket_options(keep_alive: timedelta) -> List[Tuple[int, int, int]]:
    options = list(HTTPConnection.default_socket_options)
    seconds = int(keep_alive.total_seconds())
    if seconds <= 0:
        return options
    options.append((socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1))
    # these two are not available on every platform
    for name in ('TCP_KEEPIDLE', 'TCP_KEEPINTVL'):
        if hasattr(socket, name):
            options.append((socket.IPPROTO_TCP, getattr(socket, name), seconds))
    return options


def compose_timeout(wreq: WireRequest, config: Config, context: Context) -> Tuple[float, float]:
    """
    Returns requests's (connect, read) timeout pair. urllib3 performs the TLS handshake within the connect timeout, hence the
    sum for https URLs. The read timeout applies to each read on the socket, so it bounds the wait for response headers as well
    as each stall while reading the body. Both are capped by the time left in the context.
    """
    connect = config.dial_timeout
    if urlparse(wreq.url).scheme == 'https':
        connect += config.tls_handshake_timeout
    connect_seconds = connect.total_seconds()
    read_seconds = config.response_header_timeout.total_seconds()
    remaining = context.remaining()
    if remaining is not None:
        connect_seconds = min(connect_seconds, remaining)
        read_seconds = min(read_seconds, remaining)
    return max(connect_seconds, MIN_TIMEOUT_SECONDS), max(read_seconds, MIN_TIMEOUT_SECONDS)


def read_content_length(headers: Headers) -> int:
    if 'Content-Encoding' in headers:
        # urllib3 decodes the body, so the header gives the length of what was on the wire, not of what we got
        return -1
    values = headers.get_all('Content-Length')
    if not values:
        return -1
    try:
        return int(values[0])
    except ValueError:
        return -1
