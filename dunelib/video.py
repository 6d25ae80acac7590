"""
dune1992-assets: HNM (version 1) video decoder.

HNM file structure:
  Header chunk:
    - uint16 LE: header size
    - Palette block (video variant, see palette.read_palette_chunks)
    - 0xFF fill bytes, then the frame offset table up to header size

  Superchunks (one per frame), back to back until EOF:
    - uint16 LE: superchunk size (including these 2 bytes)
    - Tagged sub-blocks, each tag + uint16 LE size (size includes the 4
      header bytes):
        'pl' (0x6C70): palette update
        'sd' (0x6473): sound data (8-bit unsigned PCM @ 11111 Hz)
        'mm', 'kl', 'pt': opaque, skipped
    - Anything else is the video block, always last in the superchunk

  Video block header (4 bytes):
    byte 0: width low 8 bits
    byte 1: bit 0 = width bit 8, bits 1-7 = flags
    byte 2: height
    byte 3: mode (0xFE=opaque, 0xFF=transparent)
  followed by a 6-byte HSQ header and the LZ stream. When flags & 0x04 is
  clear the unpacked data starts with uint16 LE x, y.

PRT.HNM (copy protection) uses its own layout, see
decode_copy_protection_video().
"""

import logging
from dataclasses import dataclass

from .compression import HSQ_HEADER_SIZE, HSQ_VALID_CHECKSUM, hsq_checksum, hsq_unpack
from .constants import (HNM_BLOCK_CHECKSUMS, HNM_COPY_PROTECTION_SKIP, HNM_FRAME_RATE,
                        HNM_SKIPPED_TAGS, HNM_SOUND_RATE, HNM_TAG_PALETTE, HNM_TAG_SOUND,
                        SCREEN_HEIGHT, SCREEN_WIDTH, is_copy_protection_video)
from .errors import DecodeError
from .palette import read_palette_chunks, read_video_palette_block
from .resource import open_resource
from .stream import ByteCursor

log = logging.getLogger(__name__)

VIDEO_FLAG_COMPRESSED = 0x02
VIDEO_FLAG_FULL_FRAME = 0x04
VIDEO_FLAG_PACKBITS = 0x80
VIDEO_MODE_TRANSPARENT = 0xFF


@dataclass(frozen=True)
class VideoHeader:
    header_size: int
    palette: tuple


@dataclass(frozen=True)
class VideoBlock:
    x: int
    y: int
    width: int
    height: int
    flags: int
    mode: int
    checksum: int
    pixels: bytes
    palette: tuple = None   # per-frame palette (copy protection video)

    @property
    def is_full_frame(self) -> bool:
        return bool(self.flags & VIDEO_FLAG_FULL_FRAME)

    @property
    def is_transparent(self) -> bool:
        return self.mode == VIDEO_MODE_TRANSPARENT


@dataclass(frozen=True)
class VideoFrame:
    palette_block: tuple = None
    video_block: VideoBlock = None   # None: repeat the previous frame
    sound: bytes = None

    @property
    def is_empty(self) -> bool:
        return self.video_block is None


# =============================================================================
# BLOCK PARSING
# =============================================================================

def parse_block_header(header: bytes) -> tuple:
    """
    Split a 4-byte video block header.

    Returns:
        (width, flags, height, mode)
    """
    b0, b1, b2, b3 = header[:4]
    width = ((b1 & 0x01) << 8) | b0
    flags = b1 & 0xFE
    return width, flags, b2, b3


def parse_video_block(cursor: ByteCursor):
    """Video block at the cursor, or None for a repeat-previous-frame block."""
    width, flags, height, mode = parse_block_header(cursor.read_bytes(4))

    if width == 0 or height == 0:
        log.debug("video block at %d: repeat previous frame", cursor.tell() - 4)
        return None

    checksum = hsq_checksum(cursor.read_bytes(HSQ_HEADER_SIZE, peek=True))
    if checksum not in HNM_BLOCK_CHECKSUMS:
        log.warning("video block at %d: header checksum 0x%02X (expected 0xAB-0xAD)",
                    cursor.tell(), checksum)

    uncompressed_size = cursor.read_u16_le()
    cursor.skip(1)  # zero
    compressed_size = cursor.read_u16_le()
    cursor.skip(1)  # salt

    body = cursor.read_bytes(compressed_size - HSQ_HEADER_SIZE)
    pixels = hsq_unpack(ByteCursor(body), uncompressed_size)

    x = y = 0
    if not flags & VIDEO_FLAG_FULL_FRAME:
        offsets = ByteCursor(pixels)
        x = offsets.read_u16_le()
        y = offsets.read_u16_le()
        pixels = pixels[4:]

    log.debug("video block: %dx%d at (%d,%d) flags=0x%02X mode=0x%02X size=%d",
              width, height, x, y, flags, mode, len(pixels))

    return VideoBlock(x, y, width, height, flags, mode, checksum, pixels)


def parse_superchunk(cursor: ByteCursor) -> VideoFrame:
    """One superchunk from the cursor; leaves the cursor on the next one."""
    start = cursor.tell()
    size = cursor.read_u16_le()
    if size < 2:
        raise DecodeError(f"superchunk at {start}: size {size} is smaller than its header")
    end = start + size
    log.debug("superchunk at %d: %d bytes", start, size)

    palette_block = None
    video_block = None
    sound = bytearray()
    has_sound = False

    while cursor.tell() < end:
        pos = cursor.tell()
        tag = cursor.read_u16_le(peek=True)

        if tag == HNM_TAG_PALETTE:
            cursor.skip(2)
            sub_size = cursor.read_u16_le()
            palette_block = tuple(read_palette_chunks(cursor, video=True))
        elif tag == HNM_TAG_SOUND:
            cursor.skip(2)
            sub_size = cursor.read_u16_le()
            sound.extend(cursor.read_bytes(max(0, sub_size - 4)))
            has_sound = True
        elif tag in HNM_SKIPPED_TAGS:
            cursor.skip(2)
            sub_size = cursor.read_u16_le()
        else:
            video_block = parse_video_block(cursor)
            break

        if sub_size < 4:
            log.warning("superchunk at %d: sub-block 0x%04X with size %d", start, tag, sub_size)
            break
        cursor.seek(pos + sub_size)

    cursor.seek(end)
    return VideoFrame(palette_block, video_block, bytes(sound) if has_sound else None)


# =============================================================================
# RENDERING
# =============================================================================

def render_block(block: VideoBlock, framebuf: bytearray,
                 width: int = SCREEN_WIDTH, height: int = SCREEN_HEIGHT):
    """
    Draw a decoded block onto a width x height frame buffer.

    Mode 0xFF skips pixel value 0. Blocks with flag 0x80 store PackBits
    rows: n >= 0x80 repeats the next byte 257 - n times, otherwise n + 1
    literal bytes follow.
    """
    size = width * height
    pixels = block.pixels
    transparent = block.is_transparent

    def put(dx, dy, value):
        if transparent and value == 0:
            return
        dst = width * (dy + block.y) + dx + block.x
        if 0 <= dst < size:
            framebuf[dst] = value

    pos = 0
    if block.flags & VIDEO_FLAG_PACKBITS:
        for y in range(block.height):
            x = 0
            while x < block.width and pos < len(pixels):
                cmd = pixels[pos]
                pos += 1
                if cmd & 0x80:
                    if pos >= len(pixels):
                        return
                    value = pixels[pos]
                    pos += 1
                    for _ in range(257 - cmd):
                        if x >= block.width:
                            break
                        put(x, y, value)
                        x += 1
                else:
                    for _ in range(cmd + 1):
                        if x >= block.width or pos >= len(pixels):
                            break
                        put(x, y, pixels[pos])
                        pos += 1
                        x += 1
        return

    for y in range(block.height):
        for x in range(block.width):
            if pos >= len(pixels):
                return
            put(x, y, pixels[pos])
            pos += 1


# =============================================================================
# VIDEO
# =============================================================================

class Video:
    """Decoded HNM video: header palette plus one VideoFrame per superchunk."""

    frame_rate = HNM_FRAME_RATE
    sound_rate = HNM_SOUND_RATE

    def __init__(self, name, header, frames):
        self.name = name
        self.header = header
        self.frames = list(frames)

    def __repr__(self):
        return f"<Video {self.name or '?'} frames={self.frame_count}>"

    @property
    def frame_count(self) -> int:
        return len(self.frames)

    def frame(self, index: int) -> VideoFrame:
        return self.frames[index]

    def apply_header_palette(self, palette):
        if self.header is not None:
            palette.apply(self.header.palette)

    def apply_frame(self, palette, index: int):
        """Push the palette updates carried by frame index."""
        frame = self.frames[index]
        if frame.palette_block:
            palette.apply(frame.palette_block)
        if frame.video_block is not None and frame.video_block.palette:
            palette.apply(frame.video_block.palette)

    def frame_index_at(self, time: float) -> int:
        return int(time * self.frame_rate)

    def sound_data(self) -> bytes:
        """All 'sd' payloads in order."""
        return b''.join(frame.sound for frame in self.frames if frame.sound)

    def render(self, index: int, framebuf: bytearray):
        """Draw frame index; returns False when the frame repeats the previous one."""
        block = self.frames[index].video_block
        if block is None:
            return False
        render_block(block, framebuf)
        return True


def decode_video(data: bytes, name: str = '') -> Video:
    """Decode a regular HNM file."""
    cursor = ByteCursor(data)

    header_size = cursor.read_u16_le()
    palette = read_video_palette_block(cursor)
    header = VideoHeader(header_size, tuple(palette))
    log.debug("%s: header size=%d, %d palette chunks",
              name or 'video', header_size, len(palette))

    cursor.seek(header_size)
    frames = []
    while not cursor.is_eof():
        frames.append(parse_superchunk(cursor))

    log.debug("%s: %d frames", name or 'video', len(frames))
    return Video(name, header, frames)


def decode_copy_protection_video(data: bytes, name: str = '') -> Video:
    """
    Decode PRT.HNM.

    After a 58-byte preamble each frame is a standalone HSQ stream whose
    unpacked bytes hold 2 unused bytes, a palette block, the 4-byte block
    header and the raw pixels.
    """
    cursor = ByteCursor(data)
    cursor.skip(HNM_COPY_PROTECTION_SKIP)

    frames = []
    while cursor.remaining() >= HSQ_HEADER_SIZE:
        checksum = hsq_checksum(cursor.read_bytes(HSQ_HEADER_SIZE, peek=True))
        if checksum != HSQ_VALID_CHECKSUM:
            log.debug("%s: invalid frame checksum 0x%02X at %d, stopping",
                      name or 'video', checksum, cursor.tell())
            break

        uncompressed_size = cursor.read_u16_le()
        cursor.skip(1)
        compressed_size = cursor.read_u16_le()
        cursor.skip(1)

        body = cursor.read_bytes(compressed_size - HSQ_HEADER_SIZE)
        frame = ByteCursor(hsq_unpack(ByteCursor(body), uncompressed_size))
        frame.skip(2)

        palette = read_video_palette_block(frame)
        width, flags, height, mode = parse_block_header(frame.read_bytes(4))
        pixels = frame.read_bytes(frame.remaining())

        block = VideoBlock(0, 0, width, height, flags, mode, checksum, pixels, tuple(palette))
        frames.append(VideoFrame(video_block=block))

    return Video(name, None, frames)


def load_video(path: str) -> Video:
    """Open an HNM file; PRT.HNM gets the copy protection decoder."""
    resource = open_resource(path, uncompressed=True)
    if is_copy_protection_video(resource.name):
        return decode_copy_protection_video(resource.data, resource.name)
    return decode_video(resource.data, resource.name)
