#!/usr/bin/env python3

# standards
from dataclasses import dataclass, fields, replace
from datetime import timedelta
import re
from typing import Dict, Mapping, Optional, Union

# sonde
from .version import SONDE_VERSION


DurationSpec = Union[timedelta, int, float, str]

RE_DURATION_PART = re.compile(r'(\d+(?:\.\d+)?)(ms|s|m|h)')

DURATION_UNITS = {
    'ms': timedelta(milliseconds=1),
    's': timedelta(seconds=1),
    'm': timedelta(minutes=1),
    'h': timedelta(hours=1),
}

# Keys of the `http` section of the config file that don't have the same name as the `Config` field they set
CONFIG_FILE_ALIASES = {
    'insecure_skip_tls': 'insecure_skip_tls_verify',
}


@dataclass(frozen=True)
class Config:
    """
    Settings for `HttpClient`. Instances are immutable, so one config can be shared by any number of concurrent executions. None
    of the fields depend on each other.

    `insecure_skip_tls_verify` disables TLS certificate checks. It is meant for development against self-signed certificates,
    and a warning is logged whenever an engine is set up with it.
    """

    timeout: Optional[timedelta] = timedelta(seconds=30)
    max_redirects: int = 10
    follow_redirects: bool = True
    insecure_skip_tls_verify: bool = False
    dial_timeout: timedelta = timedelta(seconds=10)
    tls_handshake_timeout: timedelta = timedelta(seconds=10)
    response_header_timeout: timedelta = timedelta(seconds=10)
    keep_alive: timedelta = timedelta(seconds=30)
    idle_conn_timeout: timedelta = timedelta(seconds=90)
    user_agent: Optional[str] = f'sonde/{SONDE_VERSION}'

    @classmethod
    def build(cls, **kwargs: object) -> 'Config':
        # This pre-converts data before the constructor gets called
        for field in fields(cls):
            value = kwargs.get(field.name)
            if field.type in (timedelta, Optional[timedelta]) and value is not None:
                kwargs[field.name] = parse_duration(value)  # type: ignore[arg-type]
        return cls(**kwargs)  # type: ignore[arg-type]

    @classmethod
    def from_mapping(cls, section: Mapping[str, object]) -> 'Config':
        """
        Builds a config from the `http` section of a config file, e.g. `{"timeout": "30s", "max_redirects": 10}`.
        """
        known = {field.name for field in fields(cls)}
        kwargs: Dict[str, object] = {}
        for key, value in section.items():
            name = CONFIG_FILE_ALIASES.get(key, key)
            if name not in known:
                raise ValueError(f'Unknown HTTP config key: {key!r}')
            kwargs[name] = value
        return cls.build(**kwargs)

    def replace(self, **kwargs: object) -> 'Config':
        # NB this always returns a new instance, the original is frozen anyway
        converted = Config.build(**kwargs) if kwargs else self
        return replace(self, **{key: getattr(converted, key) for key in kwargs})


def parse_duration(spec: DurationSpec) -> timedelta:
    """
    Accepts a `timedelta`, a number of seconds, or a string such as "30s", "250ms", "1.5s" or "1m30s".
    """
    if isinstance(spec, timedelta):
        return spec
    if isinstance(spec, bool):
        raise ValueError(f'Invalid duration: {spec!r}')
    if isinstance(spec, (int, float)):
        return timedelta(seconds=spec)
    text = spec.strip()
    parts = RE_DURATION_PART.findall(text)
    if not parts or ''.join(number + unit for number, unit in parts) != text:
        try:
            return timedelta(seconds=float(text))
        except ValueError:
            raise ValueError(f'Invalid duration: {spec!r}') from None
    return sum((float(number) * DURATION_UNITS[unit] for number, unit in parts), timedelta(0))
