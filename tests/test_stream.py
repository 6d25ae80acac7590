"""ByteCursor reads, peeks and bounds."""
import pytest

from dunelib.errors import DecodeError, OutOfRangeRead
from dunelib.stream import ByteCursor


def test_little_and_big_endian_words():
    cursor = ByteCursor(bytes([0x34, 0x12, 0x78, 0x56, 0x34, 0x12]))
    assert cursor.read_u16_le(peek=True) == 0x1234
    assert cursor.read_u16_be(peek=True) == 0x3412
    assert cursor.read_u16_le() == 0x1234
    assert cursor.read_u32_le() == 0x12345678
    assert cursor.is_eof()


def test_u32_be_and_u24():
    cursor = ByteCursor(bytes([0x12, 0x34, 0x56, 0x78, 0x01, 0x02, 0x03]))
    assert cursor.read_u32_be() == 0x12345678
    assert cursor.read_u24_le() == 0x030201


def test_signed_reads():
    cursor = ByteCursor(bytes([0xFF, 0x7F, 0xFE, 0xFF]))
    assert cursor.read_signed_byte() == -1
    assert cursor.read_signed_byte() == 127
    assert cursor.read_s16_le() == -2


def test_peek_does_not_advance():
    cursor = ByteCursor(b'abc')
    assert cursor.peek_byte() == ord('a')
    assert cursor.read_bytes(2, peek=True) == b'ab'
    assert cursor.tell() == 0
    assert cursor.read_bytes(2) == b'ab'
    assert cursor.remaining() == 1


def test_read_past_end_raises():
    cursor = ByteCursor(b'\x01\x02\x03')
    cursor.seek(2)
    with pytest.raises(OutOfRangeRead) as exc_info:
        cursor.read_u16_le()
    assert exc_info.value.offset == 2
    assert exc_info.value.count == 2
    assert exc_info.value.size == 3
    # No partial read
    assert cursor.tell() == 2


def test_out_of_range_is_a_value_error():
    with pytest.raises(ValueError):
        ByteCursor(b'').read_byte()
    assert issubclass(OutOfRangeRead, DecodeError)


def test_skip_past_end_is_eof():
    cursor = ByteCursor(b'\x00\x00')
    cursor.skip(10)
    assert cursor.is_eof()
    assert cursor.remaining() == 0
    with pytest.raises(OutOfRangeRead):
        cursor.read_byte()


def test_negative_offset_read_raises():
    cursor = ByteCursor(b'\x00\x00')
    cursor.skip(-1)
    with pytest.raises(OutOfRangeRead):
        cursor.read_byte()


def test_negative_count_raises():
    cursor = ByteCursor(b'abcdef')
    cursor.seek(4)
    with pytest.raises(OutOfRangeRead):
        cursor.read_bytes(-2)
    assert cursor.tell() == 4
