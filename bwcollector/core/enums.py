"""
Enums used across the collector.
"""
from __future__ import annotations

from enum import Enum


class Direction(str, Enum):
    """Traffic direction of an interface octet counter."""

    IN = "in"
    OUT = "out"


class CounterWidth(int, Enum):
    """
    Declared bit width of a wire counter.

    Counter32 (ifInOctets) and Counter64 (ifHCInOctets) are the only two
    widths SNMP defines for octet counters.
    """

    BITS_32 = 32
    BITS_64 = 64

    @property
    def max_value(self) -> int:
        """Largest value the counter can hold before wrapping: 2^W - 1."""
        return (1 << self.value) - 1

    @property
    def byte_length(self) -> int:
        """Length of the fixed big-endian byte encoding."""
        return self.value // 8
