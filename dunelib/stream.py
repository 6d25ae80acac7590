"""
dune1992-assets: Bounds-checked read cursor.

All game formats are read through a ByteCursor. Seeking and skipping may
move past the end of the buffer, but any read that would cross it raises
OutOfRangeRead instead of returning short data.
"""

import struct

from .errors import OutOfRangeRead


class ByteCursor:
    """Read cursor over an immutable byte buffer."""

    def __init__(self, data: bytes, offset: int = 0):
        self.data = bytes(data)
        self.size = len(self.data)
        self.offset = offset

    def __repr__(self):
        return f"<ByteCursor offset={self.offset} size={self.size}>"

    def is_eof(self) -> bool:
        return self.offset >= self.size

    def tell(self) -> int:
        return self.offset

    def remaining(self) -> int:
        return max(0, self.size - self.offset)

    def seek(self, pos: int):
        self.offset = pos

    def skip(self, count: int):
        self.offset += count

    def _take(self, count: int, peek: bool) -> int:
        pos = self.offset
        if pos < 0 or count < 0 or pos + count > self.size:
            raise OutOfRangeRead(pos, count, self.size)
        if not peek:
            self.offset = pos + count
        return pos

    # -- bytes ---------------------------------------------------------------

    def read_bytes(self, count: int, peek: bool = False) -> bytes:
        pos = self._take(count, peek)
        return self.data[pos:pos + count]

    def read_byte(self, peek: bool = False) -> int:
        pos = self._take(1, peek)
        return self.data[pos]

    def peek_byte(self) -> int:
        return self.read_byte(peek=True)

    def read_signed_byte(self, peek: bool = False) -> int:
        value = self.read_byte(peek)
        return value - 256 if value >= 0x80 else value

    # -- words ---------------------------------------------------------------

    def read_u16_le(self, peek: bool = False) -> int:
        pos = self._take(2, peek)
        return struct.unpack_from('<H', self.data, pos)[0]

    def read_u16_be(self, peek: bool = False) -> int:
        pos = self._take(2, peek)
        return struct.unpack_from('>H', self.data, pos)[0]

    def read_s16_le(self, peek: bool = False) -> int:
        pos = self._take(2, peek)
        return struct.unpack_from('<h', self.data, pos)[0]

    def read_u24_le(self, peek: bool = False) -> int:
        pos = self._take(3, peek)
        d = self.data
        return d[pos] | (d[pos + 1] << 8) | (d[pos + 2] << 16)

    def read_u32_le(self, peek: bool = False) -> int:
        pos = self._take(4, peek)
        return struct.unpack_from('<I', self.data, pos)[0]

    def read_u32_be(self, peek: bool = False) -> int:
        pos = self._take(4, peek)
        return struct.unpack_from('>I', self.data, pos)[0]
