"""Unit tests for the counter decoder."""
from __future__ import annotations

import pytest

from bwcollector.core.errors import DecodeError, Unsupported64BitError
from bwcollector.snmp.decoder import decode_bytes, decode_counter, encode_counter64

EDGE_VALUES_64 = [
    0,
    1,
    255,
    256,
    2**32 - 1,
    2**32,
    2**53,
    2**53 + 1,  # first integer a float cannot hold
    2**63 - 1,
    2**63,
    2**64 - 2,
    2**64 - 1,
    0x0123456789ABCDEF,
]


class TestNativeIntegers:
    @pytest.mark.parametrize("value", [0, 1, 4_294_967_295])
    def test_32bit(self, value):
        assert decode_counter(value, 32) == value

    @pytest.mark.parametrize("value", EDGE_VALUES_64)
    def test_64bit(self, value):
        assert decode_counter(value, 64) == value

    def test_32bit_overflow_is_decode_error(self):
        with pytest.raises(DecodeError) as exc:
            decode_counter(2**32, 32)
        assert not isinstance(exc.value, Unsupported64BitError)

    def test_64bit_overflow_is_unsupported_64bit(self):
        with pytest.raises(Unsupported64BitError):
            decode_counter(2**64, 64)

    def test_negative(self):
        with pytest.raises(DecodeError):
            decode_counter(-1, 32)

    def test_bool_rejected(self):
        with pytest.raises(DecodeError):
            decode_counter(True, 32)


class TestByteSequences:
    @pytest.mark.parametrize("value", EDGE_VALUES_64)
    def test_64bit_round_trip(self, value):
        encoded = encode_counter64(value)
        assert len(encoded) == 8
        assert decode_counter(encoded, 64) == value

    def test_most_significant_byte_first(self):
        raw = bytes([0x01, 0, 0, 0, 0, 0, 0, 0x02])
        assert decode_counter(raw, 64) == 2**56 + 2

    def test_bytearray_and_memoryview(self):
        raw = encode_counter64(2**64 - 1)
        assert decode_counter(bytearray(raw), 64) == 2**64 - 1
        assert decode_counter(memoryview(raw), 64) == 2**64 - 1

    def test_32bit_four_bytes(self):
        assert decode_counter(b"\xff\xff\xff\xff", 32) == 2**32 - 1

    @pytest.mark.parametrize("raw", [b"", b"\x00" * 7, b"\x00" * 9])
    def test_wrong_length_64bit(self, raw):
        with pytest.raises(Unsupported64BitError):
            decode_counter(raw, 64)

    def test_wrong_length_32bit(self):
        with pytest.raises(DecodeError):
            decode_counter(b"\x00" * 8, 32)

    def test_decode_bytes_folds(self):
        assert decode_bytes(b"\x01\x00") == 256
        assert decode_bytes(b"") == 0


class TestTextValues:
    def test_decimal_string(self):
        assert decode_counter("18446744073709551615", 64) == 2**64 - 1
        assert decode_counter(" 42 ", 32) == 42

    @pytest.mark.parametrize("raw", ["", "-5", "0x10", "1.5", "abc", "²"])
    def test_invalid_text(self, raw):
        with pytest.raises(DecodeError):
            decode_counter(raw, 32)


class TestMissingAndUnsupported:
    def test_missing_64bit(self):
        with pytest.raises(Unsupported64BitError):
            decode_counter(None, 64)

    def test_missing_32bit(self):
        with pytest.raises(DecodeError) as exc:
            decode_counter(None, 32)
        assert not isinstance(exc.value, Unsupported64BitError)

    def test_unsupported_type(self):
        with pytest.raises(Unsupported64BitError):
            decode_counter(1.0, 64)

    def test_unsupported_width(self):
        with pytest.raises(DecodeError):
            decode_counter(1, 16)


def test_encode_counter64_range():
    with pytest.raises(ValueError):
        encode_counter64(2**64)
    with pytest.raises(ValueError):
        encode_counter64(-1)
