"""HSQ header helpers and the LZ decoder."""
import pytest

from conftest import LzWriter, hsq_file, hsq_header, hsq_pack, lz_literals
from dunelib.compression import hsq_checksum, hsq_decompress, hsq_get_sizes, hsq_unpack
from dunelib.errors import DecodeError, FileSizeMismatch, HeaderChecksumMismatch, OutOfRangeRead
from dunelib.stream import ByteCursor


def test_header_checksum_is_171():
    header = hsq_header(1000, 500)
    assert hsq_checksum(header) == 0xAB
    assert hsq_get_sizes(header) == (1000, 500, 0xAB)


def test_get_sizes_too_short():
    with pytest.raises(DecodeError):
        hsq_get_sizes(b'\x00\x01')


def test_literal_only_round_trip():
    data = bytes(range(40)) + b'Dune'
    assert hsq_decompress(hsq_pack(data)) == data


def test_literal_only_without_end_marker():
    data = b'spice'
    body = LzWriter().literal(data).to_bytes()
    assert hsq_unpack(ByteCursor(body)) == data


def test_overlapping_short_copy():
    # literal AB, then a 3 byte copy from distance 1
    body = bytes([0x11, 0x00, 0xAB, 0xFF])
    assert LzWriter().literal(b'\xab').short(3, 1).to_bytes() == body
    assert hsq_unpack(ByteCursor(body)) == b'\xab\xab\xab\xab'


def test_long_copy_and_extended_count():
    pattern = b'ARRAKIS-'
    body = (LzWriter()
            .literal(pattern)
            .long(8, 8)        # count in the low bits
            .long(40, 16)      # count in an extra byte
            .end()
            .to_bytes())
    expected = bytearray(pattern * 2)
    for _ in range(40):
        expected.append(expected[-16])
    assert hsq_unpack(ByteCursor(body)) == bytes(expected)


def test_end_marker_stops_before_trailing_bytes():
    body = lz_literals(b'abc') + b'\xde\xad\xbe\xef'
    assert hsq_unpack(ByteCursor(body)) == b'abc'


def test_output_truncated_to_expected_size():
    body = LzWriter().literal(b'ab').long(20, 2).end().to_bytes()
    assert hsq_unpack(ByteCursor(body), 10) == b'ababababab'


def test_short_output_logs_warning(caplog):
    body = lz_literals(b'abc')
    assert hsq_unpack(ByteCursor(body), 10) == b'abc'
    assert 'declared 10' in caplog.text


def test_copy_before_start_of_output():
    body = LzWriter().literal(b'a').short(2, 5).to_bytes()
    with pytest.raises(OutOfRangeRead):
        hsq_unpack(ByteCursor(body))


def test_truncated_stream_raises():
    # Control word announces a literal that is not there
    with pytest.raises(OutOfRangeRead):
        hsq_unpack(ByteCursor(b'\x01\x00'))


def test_decompress_rejects_bad_checksum():
    data = hsq_file(lz_literals(b'abc'), 3, checksum=0xAC)
    with pytest.raises(HeaderChecksumMismatch) as exc_info:
        hsq_decompress(data)
    assert exc_info.value.checksum == 0xAC


def test_decompress_rejects_size_mismatch():
    data = hsq_pack(b'abc') + b'\x00'
    with pytest.raises(FileSizeMismatch) as exc_info:
        hsq_decompress(data)
    assert exc_info.value.expected == len(data) - 1
    assert exc_info.value.actual == len(data)
