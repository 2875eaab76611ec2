#!/usr/bin/env python3

# standards
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import timedelta
import logging
from typing import Optional, Union

# sonde
from .datastructures import WireRequest
from .utils import format_duration

LOGGER = logging.getLogger("sonde")


@dataclass(frozen=False)
class LogEntry:
    wreq: WireRequest
    is_redirect: bool = False
    status_code: Optional[int] = None
    elapsed: Optional[timedelta] = None
    engine_id: Optional[str] = None

    def _compose_line(self) -> Iterator[str]:
        if self.engine_id:
            yield f"[{self.engine_id}] "
        if self.is_redirect:
            yield "-> "
        yield f"{self.wreq.method} {self.wreq.url}"
        if self.wreq.body is not None:
            yield f" [{len(self.wreq.body)} bytes]"
        if self.status_code is not None:
            yield f" -> {self.status_code}"
        if self.elapsed is not None:
            yield f" [{format_duration(self.elapsed)}]"

    def __str__(self) -> str:
        return "".join(self._compose_line())


def basic_logging_config(level: Union[int, str] = "INFO", propagate: bool = False) -> None:
    """
    Sets up logging for the common use case. Calls `logging.basicConfig`, lowers verbosity for the `urllib3` logger. If `propagate`
    is False (the default), a new handler will be attached to `sonde.LOGGER` that logs in a simple format to stderr, and does not
    propagate log events to the root logger.
    """
    if not isinstance(level, int):
        level = getattr(logging, level)
    logging.basicConfig(level=level)
    logging.getLogger("urllib3").setLevel(max(logging.WARNING, level))
    if not propagate and not LOGGER.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(message)s", None, "%")
        handler.setFormatter(formatter)
        LOGGER.addHandler(handler)
        LOGGER.propagate = False
