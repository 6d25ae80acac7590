"""
dune1992-assets: Creative Voice File (VOC) decoder.

Sound effects (SD*.HSQ) unpack to VOC files:

  Header (26 bytes):
    "Creative Voice File\\x1A" (20 bytes)
    uint16 LE  header size (26)
    uint16 LE  version (0x010A or 0x0114)
    uint16 LE  checksum ((~version + 0x1234) & 0xFFFF)

  Data blocks:
    uint8 type, uint24 LE size (absent for the 0x00 terminator)
    0x01/0x02  sound data: divisor, codec, size - 2 sample bytes
    0x03       silence: uint16 LE length, divisor
    0x04       marker: 2 bytes
    0x05       ASCII string: size bytes, then one skipped byte
    0x06       repeat start: uint16 LE count
    0x07       repeat end
  Sample rate = 1000000 / (256 - divisor).
"""

import logging
import sys
from array import array
from dataclasses import dataclass
from enum import IntEnum

from .constants import VOC_HEADER_SIZE, VOC_MAGIC, VOC_VERSIONS
from .errors import (InvalidChecksum, InvalidSignature, UnknownVersion, UnsupportedCodec,
                     WrongHeaderSize)
from .resource import open_resource
from .stream import ByteCursor

log = logging.getLogger(__name__)

SILENCE_SAMPLE = 0x80


class VocCodec(IntEnum):
    PCM_U8 = 0x00
    ADPCM_4BIT = 0x01
    ADPCM_3BIT = 0x02
    ADPCM_2BIT = 0x03
    PCM_S16 = 0x04
    ALAW = 0x06
    MULAW = 0x07

    @property
    def bits_per_sample(self) -> int:
        return {
            VocCodec.PCM_U8: 8,
            VocCodec.ADPCM_4BIT: 4,
            VocCodec.ADPCM_3BIT: 3,
            VocCodec.ADPCM_2BIT: 2,
            VocCodec.PCM_S16: 16,
            VocCodec.ALAW: 8,
            VocCodec.MULAW: 8,
        }[self]

    @property
    def bytes_per_frame(self) -> int:
        if self is VocCodec.ADPCM_3BIT:
            return 3
        if self is VocCodec.PCM_S16:
            return 2
        return 1


def sample_rate_from_divisor(divisor: int) -> int:
    return 1000000 // (256 - divisor)


def voc_checksum(version: int) -> int:
    return (~version + 0x1234) & 0xFFFF


# =============================================================================
# BLOCKS
# =============================================================================

@dataclass(frozen=True)
class Terminate:
    pass


@dataclass(frozen=True)
class SoundData:
    codec: int          # raw codec byte, see VocCodec
    sample_rate: int
    data: bytes


@dataclass(frozen=True)
class Silence:
    codec: int
    sample_rate: int
    length: int


@dataclass(frozen=True)
class Marker:
    data: bytes


@dataclass(frozen=True)
class StringBlock:
    text: str


@dataclass(frozen=True)
class RepeatStart:
    count: int


@dataclass(frozen=True)
class RepeatEnd:
    pass


def read_header(cursor: ByteCursor) -> int:
    """Validate the 26-byte header and return the version."""
    if cursor.remaining() < len(VOC_MAGIC) or cursor.read_bytes(len(VOC_MAGIC)) != VOC_MAGIC:
        raise InvalidSignature("Not a Creative Voice File")

    header_size = cursor.read_u16_le()
    if header_size != VOC_HEADER_SIZE:
        raise WrongHeaderSize(f"VOC header size {header_size} (expected {VOC_HEADER_SIZE})")

    version = cursor.read_u16_le()
    if version not in VOC_VERSIONS:
        raise UnknownVersion(f"unknown VOC version 0x{version:04X}")

    checksum = cursor.read_u16_le()
    expected = voc_checksum(version)
    if checksum != expected:
        raise InvalidChecksum(expected, checksum)

    return version


def read_blocks(cursor: ByteCursor) -> list:
    """Read data blocks up to the terminator or the end of the data."""
    blocks = []

    while not cursor.is_eof():
        block_type = cursor.read_byte()
        if block_type == 0x00:
            blocks.append(Terminate())
            break

        size = cursor.read_u24_le()
        start = cursor.tell()
        end = start + size

        if block_type in (0x01, 0x02):
            rate = sample_rate_from_divisor(cursor.read_byte())
            codec = cursor.read_byte()
            blocks.append(SoundData(codec, rate, cursor.read_bytes(size - 2)))
        elif block_type == 0x03:
            length = cursor.read_u16_le()
            rate = sample_rate_from_divisor(cursor.read_byte())
            blocks.append(Silence(VocCodec.PCM_U8, rate, length))
        elif block_type == 0x04:
            blocks.append(Marker(cursor.read_bytes(2)))
        elif block_type == 0x05:
            text = cursor.read_bytes(size).decode('ascii', errors='replace')
            blocks.append(StringBlock(text))
            end += 1
        elif block_type == 0x06:
            blocks.append(RepeatStart(cursor.read_u16_le()))
        elif block_type == 0x07:
            blocks.append(RepeatEnd())
        else:
            log.debug("skipping VOC block 0x%02X (%d bytes) at %d", block_type, size, start - 4)

        cursor.seek(end)

    return blocks


# =============================================================================
# SAMPLE CONVERSION
# =============================================================================

def alaw_to_linear(value: int) -> int:
    """G.711 A-law byte to a signed 16-bit sample."""
    value ^= 0x55
    t = (value & 0x0F) << 4
    segment = (value & 0x70) >> 4
    if segment == 0:
        t += 8
    elif segment == 1:
        t += 0x108
    else:
        t = (t + 0x108) << (segment - 1)
    return t if value & 0x80 else -t


def mulaw_to_linear(value: int) -> int:
    """G.711 mu-law byte to a signed 16-bit sample."""
    value = ~value & 0xFF
    t = ((value & 0x0F) << 3) + 0x84
    t <<= (value & 0x70) >> 4
    return 0x84 - t if value & 0x80 else t - 0x84


_ALAW_TABLE = [alaw_to_linear(i) for i in range(256)]
_MULAW_TABLE = [mulaw_to_linear(i) for i in range(256)]


@dataclass(frozen=True)
class PcmChunk:
    """Playable run of samples in a single codec and rate."""
    codec: VocCodec
    sample_rate: int
    data: bytes

    @property
    def sample_count(self) -> int:
        return len(self.data) * 8 // self.codec.bits_per_sample

    @property
    def duration(self) -> float:
        return self.sample_count / self.sample_rate if self.sample_rate else 0.0

    def to_signed16(self) -> array:
        """Samples as array('h'); ADPCM codecs are not supported."""
        if self.codec is VocCodec.PCM_U8:
            return array('h', ((b - 0x80) << 8 for b in self.data))
        if self.codec is VocCodec.PCM_S16:
            samples = array('h')
            samples.frombytes(self.data[:len(self.data) & ~1])
            if sys.byteorder == 'big':
                samples.byteswap()
            return samples
        if self.codec is VocCodec.ALAW:
            return array('h', (_ALAW_TABLE[b] for b in self.data))
        if self.codec is VocCodec.MULAW:
            return array('h', (_MULAW_TABLE[b] for b in self.data))
        raise UnsupportedCodec(self.codec)


def _block_chunk(block):
    if isinstance(block, Silence):
        return PcmChunk(VocCodec(block.codec), block.sample_rate,
                        bytes([SILENCE_SAMPLE]) * block.length)
    try:
        codec = VocCodec(block.codec)
    except ValueError:
        log.warning("%s, skipping sound block", UnsupportedCodec(block.codec))
        return None
    return PcmChunk(codec, block.sample_rate, block.data)


def pcm_chunks(blocks) -> list:
    """
    Flatten a block list into playable chunks.

    Blocks between RepeatStart and RepeatEnd are emitted count times; a
    repeat still open at the terminator is flushed the same way.
    """
    chunks = []
    stack = []   # (count, chunks collected inside the repeat)

    def emit(chunk):
        if stack:
            stack[-1][1].append(chunk)
        else:
            chunks.append(chunk)

    def close_repeat():
        count, body = stack.pop()
        for _ in range(count):
            for chunk in body:
                emit(chunk)

    for block in blocks:
        if isinstance(block, (SoundData, Silence)):
            chunk = _block_chunk(block)
            if chunk is not None:
                emit(chunk)
        elif isinstance(block, RepeatStart):
            stack.append((block.count, []))
        elif isinstance(block, RepeatEnd):
            if stack:
                close_repeat()
            else:
                log.warning("repeat end without repeat start")
        elif isinstance(block, Terminate):
            break

    while stack:
        close_repeat()

    return chunks


# =============================================================================
# SOUND
# =============================================================================

class Sound:
    """Decoded VOC file."""

    def __init__(self, name, version, blocks):
        self.name = name
        self.version = version
        self.blocks = list(blocks)

    def __repr__(self):
        return f"<Sound {self.name or '?'} version={self.version_string} blocks={len(self.blocks)}>"

    @property
    def version_string(self) -> str:
        return f"{self.version >> 8}.{self.version & 0xFF}"

    @property
    def sample_rate(self) -> int:
        """Rate of the first data or silence block, 0 when there is none."""
        for block in self.blocks:
            if isinstance(block, (SoundData, Silence)):
                return block.sample_rate
        return 0

    def pcm_chunks(self) -> list:
        return pcm_chunks(self.blocks)

    def duration(self) -> float:
        return sum(chunk.duration for chunk in self.pcm_chunks())

    def pcm_u8(self) -> bytes:
        """Concatenated unsigned 8-bit chunks, for WAV export."""
        return b''.join(chunk.data for chunk in self.pcm_chunks()
                        if chunk.codec is VocCodec.PCM_U8)


def decode_sound(data: bytes, name: str = '') -> Sound:
    cursor = ByteCursor(data)
    version = read_header(cursor)
    blocks = read_blocks(cursor)
    log.debug("%s: VOC %d.%d, %d blocks", name or 'sound', version >> 8, version & 0xFF, len(blocks))
    return Sound(name, version, blocks)


def load_sound(path: str) -> Sound:
    resource = open_resource(path)
    return decode_sound(resource.data, resource.name)
