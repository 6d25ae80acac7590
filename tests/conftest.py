"""Pytest configuration and synthetic asset builders."""
import struct
import sys
from pathlib import Path

_REPO_ROOT = Path(__file__).resolve().parents[1]
_root_str = str(_REPO_ROOT)
if _root_str not in sys.path:
    sys.path.insert(0, _root_str)


# =============================================================================
# HSQ
# =============================================================================

class LzWriter:
    """Builds an HSQ bitstream token by token."""

    def __init__(self):
        self.out = bytearray()
        self.word_pos = None
        self.bit_count = 0

    def _bit(self, bit):
        if self.bit_count % 16 == 0:
            self.word_pos = len(self.out)
            self.out += b'\x00\x00'
        if bit:
            word = struct.unpack_from('<H', self.out, self.word_pos)[0]
            word |= 1 << (self.bit_count % 16)
            struct.pack_into('<H', self.out, self.word_pos, word)
        self.bit_count += 1

    def literal(self, data):
        for b in bytes(data):
            self._bit(1)
            self.out.append(b)
        return self

    def short(self, count, distance):
        """Copy count (2-5) bytes from distance (1-256) back."""
        n = count - 2
        self._bit(0)
        self._bit(0)
        self._bit(n >> 1)
        self._bit(n & 1)
        self.out.append(256 - distance)
        return self

    def long(self, count, distance):
        """Copy count (3-257) bytes from distance (1-8192) back."""
        value = 0x2000 - distance
        n = count - 2
        self._bit(0)
        self._bit(1)
        low = n if n <= 7 else 0
        self.out.append(((value & 0x1F) << 3) | low)
        self.out.append(value >> 5)
        if low == 0:
            self.out.append(n)
        return self

    def end(self):
        self._bit(0)
        self._bit(1)
        self.out += b'\x00\x00\x00'
        return self

    def to_bytes(self):
        return bytes(self.out)


def lz_literals(data):
    return LzWriter().literal(data).end().to_bytes()


def hsq_header(uncompressed_size, compressed_size, checksum=0xAB):
    head = struct.pack('<HBH', uncompressed_size, 0, compressed_size)
    salt = (checksum - sum(head)) & 0xFF
    return head + bytes([salt])


def hsq_file(body, uncompressed_size, checksum=0xAB):
    return hsq_header(uncompressed_size, len(body) + 6, checksum) + body


def hsq_pack(data):
    """Literal-only HSQ file of data."""
    return hsq_file(lz_literals(data), len(data))


# =============================================================================
# PALETTE / SPRITE
# =============================================================================

def palette_run(chunks):
    """chunks: [(start, [(r, g, b), ...])], terminated with 0xFF 0xFF."""
    out = bytearray()
    for start, colors in chunks:
        out += bytes([start, len(colors) & 0xFF])
        for rgb in colors:
            out += bytes(rgb)
    out += b'\xff\xff'
    return bytes(out)


def sprite_frame(width, height, payload, compressed=False, palette_offset=0):
    w0 = (width & 0x1FF) | (0x8000 if compressed else 0)
    w1 = (height & 0xFF) | (palette_offset << 8)
    return struct.pack('<HH', w0, w1) + bytes(payload)


def sprite_file(frames, palette=b'', trailer=b''):
    table_offset = 2 + len(palette)
    offsets = []
    pos = 2 * len(frames)
    for frame in frames:
        offsets.append(pos)
        pos += len(frame)
    table = struct.pack(f'<{len(frames)}H', *offsets)
    return struct.pack('<H', table_offset) + palette + table + b''.join(frames) + trailer


def generic_animation_table(x=10, y=20, width=100, height=50):
    """
    Two image groups and two animations:
      animation 0: [group 0]
      animation 1: [group 0, group 1], [group 1]
    """
    groups = bytes([1, 10, 20, 0]) + bytes([2, 5, 6, 0])
    group_index = struct.pack('<3H', 6, 10, 14)
    anim_index = struct.pack('<2H', 4, 7)
    anims = bytes([2, 0, 0xFF]) + bytes([2, 3, 0, 3, 0xFF])
    body = group_index + groups + anim_index + anims
    definition_offset = len(group_index) + len(groups) + 2
    size = 14 + len(body)
    header = struct.pack('<7H', 0, size, x, y, width, height, definition_offset)
    return header + body


def triples(*items):
    return b''.join(struct.pack('<3H', *item) for item in items)


# =============================================================================
# VIDEO
# =============================================================================

def video_header(chunks, header_size=None):
    data = b'\x00\x00' + palette_run(chunks)
    if header_size is None:
        header_size = len(data) + 2
    data += b'\xff' * (header_size - len(data))
    return struct.pack('<H', header_size) + data[2:]


def video_block(width, height, pixels, flags=0x04, mode=0xFE, x=None, y=None, checksum=0xAB):
    header = bytes([width & 0xFF, ((width >> 8) & 1) | flags, height, mode])
    data = bytes(pixels)
    if not flags & 0x04:
        data = struct.pack('<HH', x or 0, y or 0) + data
    return header + hsq_file(lz_literals(data), len(data), checksum)


def tagged(tag, payload):
    return tag + struct.pack('<H', len(payload) + 4) + payload


def superchunk(*parts):
    body = b''.join(parts)
    return struct.pack('<H', len(body) + 2) + body


# =============================================================================
# SOUND
# =============================================================================

VOC_MAGIC = b'Creative Voice File\x1a'


def voc_file(blocks=b'', version=0x010A, checksum=None, header_size=26, magic=VOC_MAGIC,
             terminate=True):
    if checksum is None:
        checksum = (~version + 0x1234) & 0xFFFF
    data = magic + struct.pack('<HHH', header_size, version, checksum) + blocks
    if terminate:
        data += b'\x00'
    return data


def voc_block(block_type, payload, size=None):
    if size is None:
        size = len(payload)
    return bytes([block_type]) + struct.pack('<I', size)[:3] + payload


def voc_data(samples, divisor=0xA6, codec=0):
    return voc_block(0x01, bytes([divisor, codec]) + bytes(samples))


def voc_silence(length, divisor=0xA6):
    return voc_block(0x03, struct.pack('<HB', length, divisor))


def voc_repeat(count):
    return voc_block(0x06, struct.pack('<H', count))


def voc_repeat_end():
    return voc_block(0x07, b'')
