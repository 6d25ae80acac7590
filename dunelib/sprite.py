"""
dune1992-assets: Sprite resource decoder.

Sprite file structure (decompressed):
  - uint16 LE at offset 0: pointer to the frame index table (= palette end)
  - Palette chunks at bytes 2..first_word, unless first_word == 2
  - Frame index table: N x uint16 LE offsets relative to the table start;
    the first offset / 2 gives N
  - Frame data: 4-byte header + 4-bit bipixel data
  - Optional animation table or alternate palettes after the last frame

Frame header (4 bytes):
  uint16 LE: bits 0-8 width, bits 9-15 flags (0x80 in the high byte =
             compressed)
  byte 2:    height
  byte 3:    palette offset (added to every 4-bit pixel value)

Rows are padded to a multiple of 4 pixels. Uncompressed rows store two
pixels per byte, low nibble first. Compressed frames are a signed-run
stream: n < 0 repeats the next byte -n + 1 times, n >= 0 copies n + 1
literal bytes.
"""

import logging
from dataclasses import dataclass

from .animation import parse_animations
from .constants import SEGMENTED_ANIMATION_LIMITS, AnimationDialect, sprite_options
from .errors import MalformedAnimationHeader
from .palette import blend_chunks, read_palette_chunk, read_palette_chunks
from .resource import open_resource
from .stream import ByteCursor

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpriteFrame:
    start_offset: int       # first pixel byte
    is_compressed: bool
    flags: int
    real_width: int
    width: int              # real_width padded to a multiple of 4
    height: int
    bytes_per_row: int
    palette_offset: int
    pixels: bytes           # width * height palette indices

    def pixel(self, x: int, y: int) -> int:
        return self.pixels[y * self.width + x]

    def rows(self):
        """Visible part of each row (real_width pixels)."""
        for y in range(self.height):
            start = y * self.width
            yield self.pixels[start:start + self.real_width]

    def is_transparent(self, value: int) -> bool:
        return value == 0 or value <= self.palette_offset


def padded_width(width: int) -> int:
    return (width + 3) & ~3


def row_bytes(width: int) -> int:
    count = (width + 1) // 2
    # Odd byte counts are rounded up to keep rows word aligned
    if count % 2 == 1:
        count += 1
    return count


def decode_4bpp(cursor: ByteCursor, width: int, height: int, palette_offset: int) -> bytes:
    """Uncompressed rows: width / 2 bytes each, low nibble first."""
    pixels = bytearray(width * height)
    pos = 0
    for _ in range(height * width // 2):
        bipixel = cursor.read_byte()
        pixels[pos] = (palette_offset + (bipixel & 0x0F)) & 0xFF
        pixels[pos + 1] = (palette_offset + (bipixel >> 4)) & 0xFF
        pos += 2
    return bytes(pixels)


def decode_4bpp_rle(cursor: ByteCursor, width: int, height: int, palette_offset: int) -> bytes:
    """Signed-run compressed pixels, stopping as soon as the frame is full."""
    total = width * height
    pixels = bytearray(total)
    current = 0

    while current < total:
        rep = cursor.read_signed_byte()
        fill = rep < 0
        count = (-rep if fill else rep) + 1
        bipixel = cursor.read_byte() if fill else 0

        for _ in range(count):
            if not fill:
                bipixel = cursor.read_byte()

            pixels[current] = (palette_offset + (bipixel & 0x0F)) & 0xFF
            current += 1
            if current >= total:
                break

            pixels[current] = (palette_offset + (bipixel >> 4)) & 0xFF
            current += 1
            if current >= total:
                break

    return bytes(pixels)


def decode_frame(cursor: ByteCursor, header_padding: int = 0) -> SpriteFrame:
    """Decode the frame whose header starts at the cursor position."""
    w0 = cursor.read_u16_le()
    w1 = cursor.read_u16_le()

    flags = (w0 & 0xFE00) >> 8
    real_width = w0 & 0x01FF
    height = w1 & 0x00FF
    palette_offset = (w1 & 0xFF00) >> 8
    is_compressed = (flags & 0x80) != 0

    start_offset = cursor.tell()
    cursor.skip(header_padding)

    width = padded_width(real_width)
    if is_compressed:
        pixels = decode_4bpp_rle(cursor, width, height, palette_offset)
    else:
        pixels = decode_4bpp(cursor, width, height, palette_offset)

    return SpriteFrame(
        start_offset=start_offset,
        is_compressed=is_compressed,
        flags=flags,
        real_width=real_width,
        width=width,
        height=height,
        bytes_per_row=row_bytes(real_width),
        palette_offset=palette_offset,
        pixels=pixels,
    )


def parse_alternate_palettes(cursor: ByteCursor) -> list:
    """
    Day/night palette sets stored after the frames:
      0x0000, uint16 chunk size, start, count, count x RGB
    """
    chunks = []

    while cursor.remaining() >= 2:
        if cursor.read_u16_le(peek=True) != 0x0000:
            log.warning("alternate palettes: lead word should be 0x0000 at %d", cursor.tell())
            break
        cursor.skip(2)

        chunk_size = cursor.read_u16_le()
        if chunk_size <= 2:
            log.warning("alternate palettes: invalid chunk size %d", chunk_size)
            break

        start = cursor.read_byte()
        count = cursor.read_byte()
        if chunk_size - 2 != count * 3:
            log.warning("alternate palettes: not a palette part at %d", cursor.tell() - 6)
            cursor.skip(-6)
            break

        chunks.append(read_palette_chunk(cursor, start, count))

    return chunks


class Sprite:
    """Decoded sprite resource."""

    def __init__(self, name, palette, frames, animations=(), alternate_palettes=(),
                 animation_offset=0):
        self.name = name
        self.palette = list(palette)
        self.frames = list(frames)
        self.animations = list(animations)
        self.alternate_palettes = list(alternate_palettes)
        self.animation_offset = animation_offset

    def __repr__(self):
        return (f"<Sprite {self.name or '?'} frames={self.frame_count} "
                f"animations={self.animation_count}>")

    @property
    def frame_count(self) -> int:
        return len(self.frames)

    @property
    def animation_count(self) -> int:
        return len(self.animations)

    @property
    def has_palette(self) -> bool:
        return bool(self.palette)

    def frame(self, index: int) -> SpriteFrame:
        return self.frames[index]

    def animation(self, index: int):
        return self.animations[index]

    def apply_palette(self, palette):
        """Push this sprite's palette chunks into a caller-owned Palette."""
        palette.apply(self.palette)

    def apply_alternate_palette(self, palette, index: int, previous: int = None,
                                blend: float = 1.0):
        if index >= len(self.alternate_palettes):
            return
        chunk = self.alternate_palettes[index]
        if blend < 1.0 and previous is not None:
            chunk = blend_chunks(self.alternate_palettes[previous], chunk, blend)
        palette.update(chunk)

    def merge_frames(self, other: 'Sprite') -> 'Sprite':
        """New sprite with other's frames appended (e.g. SHAI + SHAI2)."""
        return Sprite(self.name, self.palette, self.frames + other.frames,
                      self.animations, self.alternate_palettes, self.animation_offset)


def decode_sprite(data: bytes, name: str = '',
                  dialect: AnimationDialect = AnimationDialect.GENERIC,
                  alternate_palettes: bool = False,
                  frame_header_padding: int = 0,
                  segment_limits=SEGMENTED_ANIMATION_LIMITS) -> Sprite:
    """
    Decode a sprite from its unpacked bytes.

    Args:
        data: Unpacked sprite resource
        name: File name, used for messages only
        dialect: Layout of the animation table
        alternate_palettes: Bytes after the frames are palette sets
        frame_header_padding: Extra bytes between frame header and pixels
        segment_limits: Highest sprite index per animation (SEGMENTED only)

    Returns:
        Sprite
    """
    cursor = ByteCursor(data)

    table_offset = cursor.read_u16_le()
    palette = []
    if table_offset != 2:
        palette = read_palette_chunks(cursor)

    cursor.seek(table_offset)
    frame_count = cursor.read_u16_le(peek=True) // 2

    frames = []
    for i in range(frame_count):
        cursor.seek(table_offset + 2 * i)
        frame_start = table_offset + cursor.read_u16_le()
        cursor.seek(frame_start)

        # 0x0000 means the table continues with something else than a frame
        if cursor.remaining() < 2 or cursor.read_u16_le(peek=True) == 0x0000:
            break

        frames.append(decode_frame(cursor, frame_header_padding))

    animation_offset = cursor.tell()
    log.debug("%s: %d frames, %d palette chunks, animation offset=%d",
              name or 'sprite', len(frames), len(palette), animation_offset)

    animations = []
    alternates = []
    if alternate_palettes:
        alternates = parse_alternate_palettes(cursor)
    else:
        try:
            animations = parse_animations(cursor, animation_offset, dialect, segment_limits)
        except MalformedAnimationHeader as e:
            log.warning("%s: %s, ignoring animations", name or 'sprite', e)

    return Sprite(name, palette, frames, animations, alternates, animation_offset)


def load_sprite(path: str, **options) -> Sprite:
    """Open a sprite file, using the catalog for its decoding options."""
    resource = open_resource(path)
    kwargs = sprite_options(resource.name)
    kwargs.update(options)
    return decode_sprite(resource.data, resource.name, **kwargs)
