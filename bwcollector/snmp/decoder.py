"""
Counter Decoder.

Normalizes a raw counter response into one exact unsigned Python int.
Transports may hand back a native integer (Counter32/Counter64), a
fixed-length big-endian byte string, or the decimal text a
pretty-printing transport produces. Everything downstream of this
module only ever sees ``int`` in ``[0, 2^W - 1]``.
"""
from __future__ import annotations

from typing import Any

from bwcollector.core.enums import CounterWidth
from bwcollector.core.errors import DecodeError, Unsupported64BitError


def _error(width: CounterWidth, message: str) -> DecodeError:
    if width is CounterWidth.BITS_64:
        return Unsupported64BitError(message)
    return DecodeError(message)


def decode_bytes(data: bytes | bytearray | memoryview) -> int:
    """Fold a big-endian byte sequence, most significant byte first."""
    value = 0
    for byte in bytes(data):
        value = value * 256 + byte
    return value


def decode_counter(raw: Any, width: int) -> int:
    """
    Decode one counter response.

    Args:
        raw: value returned by the transport, or None if the OID was absent.
        width: declared counter width in bits (32 or 64).

    Returns:
        The counter value as an exact unsigned int.

    Raises:
        Unsupported64BitError: 64-bit counter absent or undecodable.
        DecodeError: 32-bit counter absent or undecodable.
    """
    try:
        width = CounterWidth(width)
    except ValueError:
        raise DecodeError(f"Unsupported counter width: {width}") from None

    if raw is None:
        raise _error(width, f"No value returned for {width.value}-bit counter")

    if isinstance(raw, bool):
        raise _error(width, f"Boolean is not a counter value: {raw!r}")

    if isinstance(raw, (bytes, bytearray, memoryview)):
        length = len(bytes(raw))
        if length != width.byte_length:
            raise _error(
                width,
                f"Expected {width.byte_length} bytes for {width.value}-bit counter, "
                f"got {length}",
            )
        return decode_bytes(raw)

    if isinstance(raw, str):
        text = raw.strip()
        if not (text.isascii() and text.isdigit()):
            raise _error(width, f"Not a decimal counter value: {raw!r}")
        value = int(text)
    elif isinstance(raw, int):
        value = raw
    else:
        raise _error(
            width, f"Unsupported wire type for counter: {type(raw).__name__}",
        )

    if value < 0 or value > width.max_value:
        raise _error(
            width, f"Value {value} out of range for {width.value}-bit counter",
        )
    return value


def encode_counter64(value: int) -> bytes:
    """Encode a 64-bit counter as 8 big-endian bytes."""
    if value < 0 or value > CounterWidth.BITS_64.max_value:
        raise ValueError(f"Value {value} out of range for a 64-bit counter")
    return value.to_bytes(8, "big")
