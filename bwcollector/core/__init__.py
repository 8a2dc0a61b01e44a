"""Core module - contains enums, errors, models, and configuration."""
from .config import settings
from .enums import CounterWidth, Direction
from .errors import (
    BwCollectorError,
    ConfigurationError,
    DecodeError,
    TransportError,
    Unsupported64BitError,
)

__all__ = [
    "BwCollectorError",
    "ConfigurationError",
    "CounterWidth",
    "DecodeError",
    "Direction",
    "TransportError",
    "Unsupported64BitError",
    "settings",
]
