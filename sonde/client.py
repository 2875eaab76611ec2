#!/usr/bin/env python3

# standards
from datetime import timedelta
from http import HTTPStatus
from time import monotonic
from typing import List, Optional

# sonde
from .classify import TRANSPORT_ERRORS, classify_error
from .compile import compile_redirect, compile_request
from .config import Config
from .context import Context
from .datastructures import Request, Response, WireRequest, WireResponse, decode_content, utcnow
from .engines import EngineSpec, load_engine
from .exceptions import TooManyRedirects
from .logs import LOGGER, LogEntry


class HttpClient:
    """
    Core class for this package. Executes `Request` objects: validates them, builds the request that goes on the wire, applies
    auth, sends it through the engine (following redirects as configured), and returns a `Response` with timing data. Failures
    to execute are raised as one of the `ExecutionError` subclasses.

    A client holds no per-request state. One instance can be used from several threads at once.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        engine: EngineSpec = 'requests',
        **config_kwargs,
    ) -> None:
        if config is None:
            config = Config.build(**config_kwargs)
        elif config_kwargs:
            config = config.replace(**config_kwargs)
        self.config = config
        self.engine = load_engine(engine, config)

    def execute(self, request: Request, context: Optional[Context] = None) -> Response:
        """
        Main public method for this class. Performs exactly one execution of the request, including its redirect chain, and never
        retries. Validation and auth errors are raised before anything is sent.
        """
        request.validate()
        wreq = compile_request(request, self.config)
        if request.auth is not None:
            request.auth.apply(wreq)
        context = (context or Context.background()).child(self.config.timeout)
        hops: List[WireRequest] = []
        start = monotonic()
        try:
            context.raise_if_done()
            wres = self._fetch_following_redirects(wreq, context, hops)
        except Exception as error:  # pylint: disable=broad-except
            elapsed = timedelta(seconds=monotonic() - start)
            if not isinstance(error, TRANSPORT_ERRORS) and not context.done:
                raise
            execution_error = classify_error(error, elapsed, context, hops[-1].url if hops else wreq.url)
            LOGGER.warning('%s %s failed: %s', wreq.method, wreq.url, execution_error)
            if execution_error is error:
                raise
            raise execution_error from error
        elapsed = timedelta(seconds=monotonic() - start)
        return build_response(wres, elapsed, request.id)

    def close(self) -> None:
        self.engine.close()

    def __enter__(self) -> 'HttpClient':
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _fetch_following_redirects(self, wreq: WireRequest, context: Context, hops: List[WireRequest]) -> WireResponse:
        config = self.config
        for redirect_count in range(config.max_redirects + 1):
            hops.append(wreq)
            wres = self._fetch_without_redirect(wreq, context, is_redirect=(redirect_count > 0))
            if not (config.follow_redirects and wres.is_redirect):
                return wres
            context.raise_if_done()
            wreq = compile_redirect(wreq, wres)
        raise TooManyRedirects(f'stopped after {config.max_redirects} redirects')

    def _fetch_without_redirect(self, wreq: WireRequest, context: Context, is_redirect: bool) -> WireResponse:
        log = LogEntry(wreq, is_redirect, engine_id=self.engine.id)
        start = monotonic()
        wres = self.engine.request(wreq, self.config, context)
        log.status_code = wres.status_code
        log.elapsed = timedelta(seconds=monotonic() - start)
        LOGGER.info('%s', log)
        return wres


def build_response(wres: WireResponse, elapsed: timedelta, request_id: str) -> Response:
    headers = wres.headers.joined()
    return Response(
        status_code=wres.status_code,
        status=compose_status(wres.status_code, wres.reason),
        reason=wres.reason,
        headers=headers,
        content=wres.content,
        body=decode_content(wres.content, headers.get('Content-Type')),
        # The engine says -1 when it doesn't know
        content_length=wres.content_length if wres.content_length >= 0 else len(wres.content),
        elapsed=elapsed,
        received_at=utcnow(),
        request_id=request_id,
        url=wres.url,
    )


def compose_status(status_code: int, reason: Optional[str]) -> str:
    if not reason:
        try:
            reason = HTTPStatus(status_code).phrase
        except ValueError:
            return str(status_code)
    return f'{status_code} {reason}'
