#!/usr/bin/env python3

# standards
from typing import Dict, Type, Union

# sonde
from ..config import Config
from .base import Engine
from .requests import RequestsEngine


EngineSpec = Union[Engine, str]

ALL_ENGINES: Dict[str, Type[Engine]] = {
    RequestsEngine.id: RequestsEngine,
}


def load_engine(spec: EngineSpec, config: Config) -> Engine:
    if isinstance(spec, Engine):
        return spec
    try:
        engine_class = ALL_ENGINES[spec]
    except KeyError:
        raise ValueError(f'Unknown engine: {spec!r}') from None
    return engine_class(config)  # type: ignore[call-arg]


__all__ = [
    "ALL_ENGINES",
    "Engine",
    "EngineSpec",
    "RequestsEngine",
    "load_engine",
]
