"""Tests for bwcollector.core.enums."""
from bwcollector.core.enums import CounterWidth, Direction


class TestDirection:
    def test_values(self):
        assert Direction.IN.value == "in"
        assert Direction.OUT.value == "out"

    def test_string_enum(self):
        assert isinstance(Direction.IN, str)
        assert Direction("out") is Direction.OUT

    def test_iteration_order(self):
        assert list(Direction) == [Direction.IN, Direction.OUT]


class TestCounterWidth:
    def test_max_value(self):
        assert CounterWidth.BITS_32.max_value == 4_294_967_295
        assert CounterWidth.BITS_64.max_value == 18_446_744_073_709_551_615

    def test_byte_length(self):
        assert CounterWidth.BITS_32.byte_length == 4
        assert CounterWidth.BITS_64.byte_length == 8

    def test_int_enum(self):
        assert CounterWidth(64) is CounterWidth.BITS_64
        assert CounterWidth.BITS_32 == 32
