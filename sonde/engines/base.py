#!/usr/bin/env python3

# standards
from abc import ABC, abstractmethod
from typing import ClassVar

# sonde
from ..config import Config
from ..context import Context
from ..datastructures import WireRequest, WireResponse


class Engine(ABC):

    id: ClassVar[str]

    @abstractmethod
    def request(self, wreq: WireRequest, config: Config, context: Context) -> WireResponse:
        """
        Perform one HTTP transaction, and return the response from the server, or raise an exception. Exceptions are left as the
        underlying library raises them, `sonde.classify` knows how to read them.

        Regardless of what `config.follow_redirects` is set to, the engine should not follow HTTP redirects. If a 30x response is
        received, the engine should just return that. Redirects are handled by the HttpClient class.

        The whole body must be read before returning. The engine should check `context` while doing so, and make sure that a
        `context.cancel()` from another thread interrupts the transaction.

        If the server didn't say how long the body is, or if the body was decoded (e.g. gunzipped) on the way in, the returned
        `content_length` should be -1.
        """

    def close(self) -> None:
        pass
