"""
dune1992-assets: HSQ decompression.

Implements the Cryo Interactive LZ77-variant used both for whole game
resources (*.HSQ, *.SAL) and for the compressed blocks embedded in HNM
video superchunks.
"""

import logging
import struct

from .errors import DecodeError, FileSizeMismatch, HeaderChecksumMismatch, OutOfRangeRead
from .stream import ByteCursor

log = logging.getLogger(__name__)

HSQ_HEADER_SIZE = 6
HSQ_VALID_CHECKSUM = 0xAB  # 171


# =============================================================================
# HSQ HEADER
# =============================================================================

def hsq_checksum(header: bytes) -> int:
    """Sum of the 6 header bytes, masked to the low byte."""
    return sum(header[:HSQ_HEADER_SIZE]) & 0xFF


def hsq_get_sizes(data: bytes) -> tuple:
    """
    Read HSQ header without decompressing.

    Header layout (6 bytes):
      uint16 LE: decompressed size
      uint8:     compression flag (usually 0)
      uint16 LE: compressed size (== file size)
      uint8:     salt, chosen so the 6 bytes sum to 0xAB

    Returns:
        (decompressed_size, compressed_size, checksum)
    """
    if len(data) < HSQ_HEADER_SIZE:
        raise DecodeError(f"Not an HSQ file (too short: {len(data)} bytes)")
    decomp = struct.unpack_from('<H', data, 0)[0]
    comp = struct.unpack_from('<H', data, 3)[0]
    return (decomp, comp, hsq_checksum(data))


# =============================================================================
# HSQ DECOMPRESSION
# =============================================================================

def hsq_unpack(cursor: ByteCursor, expected_size: int = None) -> bytes:
    """
    Run the HSQ bitstream decoder from the cursor's position.

    Bitstream LZ77 decoder using a 16-bit queue with sentinel:
      - Bit 1: literal byte
      - Bit 0, bit 1: long back-reference (word: 3-bit count, 13-bit offset)
        - count==0: read extra byte for count; count==0 again = end of stream
      - Bit 0, bit 0: short back-reference (2 bits count, byte offset -256)

    Decoding stops at the end-of-stream marker or when the input runs out.
    Back-references may overlap the bytes they produce.

    Args:
        cursor: Cursor positioned on the first control word
        expected_size: Truncate the output to this many bytes if given

    Returns:
        Decompressed bytes
    """
    queue = 0  # 16-bit bit queue; 0 means "needs refill"
    out = bytearray()

    def get_bit():
        nonlocal queue
        bit = queue & 1
        queue >>= 1
        if queue == 0:
            word = cursor.read_u16_le()
            bit = word & 1
            queue = 0x8000 | (word >> 1)
        return bit

    while not cursor.is_eof():
        if get_bit():
            out.append(cursor.read_byte())
            continue

        if get_bit():
            # Long back-reference
            b0 = cursor.read_byte()
            b1 = cursor.read_byte()
            count = b0 & 0x07
            offset = ((b0 >> 3) | (b1 << 5)) - 0x2000

            if count == 0:
                count = cursor.read_byte()
                if count == 0:
                    break  # end of stream
        else:
            # Short back-reference
            high = get_bit()
            low = get_bit()
            count = 2 * high + low
            offset = cursor.read_byte() - 256

        count += 2
        start = len(out) + offset
        if start < 0:
            raise OutOfRangeRead(start, count, len(out))

        # Byte by byte: the source may overlap what this copy appends
        for i in range(count):
            out.append(out[start + i])

    if expected_size is not None:
        if len(out) < expected_size:
            log.warning("HSQ stream ended after %d bytes, header declared %d",
                        len(out), expected_size)
        del out[expected_size:]

    return bytes(out)


def hsq_decompress(data: bytes) -> bytes:
    """
    Decompress a complete HSQ file.

    Unlike the resource loader this never falls back to raw data: a bad
    header checksum or a size mismatch is an error.

    Raises:
        FileSizeMismatch: header compressed size != len(data)
        HeaderChecksumMismatch: header bytes do not sum to 0xAB
    """
    decomp_size, comp_size, checksum = hsq_get_sizes(data)

    if comp_size != len(data):
        raise FileSizeMismatch(comp_size, len(data))
    if checksum != HSQ_VALID_CHECKSUM:
        raise HeaderChecksumMismatch(checksum)

    return hsq_unpack(ByteCursor(data, HSQ_HEADER_SIZE), decomp_size)
