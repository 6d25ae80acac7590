"""
dune1992-assets: VGA palette chunks.

Sprites and HNM videos share the same palette mini-format: runs of
(start, count) followed by count x 3 bytes of 6-bit VGA RGB. Colors are
stored as ARGB integers (0xFF000000 | B<<16 | G<<8 | R).

Palette is the caller-owned 256-color table decoders push their chunks
into; nothing in this package keeps a global palette.
"""

from dataclasses import dataclass

from .constants import PALETTE_SIZE
from .stream import ByteCursor


@dataclass(frozen=True)
class PaletteChunk:
    start: int
    count: int
    colors: tuple

    def rgb(self, i: int) -> tuple:
        return unpack_color(self.colors[i])


def pack_color(r: int, g: int, b: int) -> int:
    return 0xFF000000 | (b << 16) | (g << 8) | r


def unpack_color(color: int) -> tuple:
    return (color & 0xFF, (color >> 8) & 0xFF, (color >> 16) & 0xFF)


def _read_colors(cursor: ByteCursor, start: int, count: int) -> tuple:
    # Stops without consuming the remaining entries once index 255 is passed
    colors = []
    for i in range(count):
        if start + i >= PALETTE_SIZE:
            break
        r = (cursor.read_byte() << 2) & 0xFF
        g = (cursor.read_byte() << 2) & 0xFF
        b = (cursor.read_byte() << 2) & 0xFF
        colors.append(pack_color(r, g, b))
    return tuple(colors)


def read_palette_chunk(cursor: ByteCursor, start: int, count: int) -> PaletteChunk:
    """Read count colors for palette index start onwards."""
    colors = _read_colors(cursor, start, count)
    return PaletteChunk(start, len(colors), colors)


def read_palette_chunks(cursor: ByteCursor, video: bool = False) -> list:
    """
    Parse a run of palette chunks up to the 0xFF 0xFF terminator.

    Sprite variant: a zero count also ends the run.
    Video variant: (0x00, 0x01) is a marker followed by 3 bytes to skip,
    and a zero count means 256 colors.
    """
    chunks = []

    while True:
        start = cursor.read_byte()
        count = cursor.read_byte()

        if start == 0xFF and count == 0xFF:
            break

        if video:
            if start == 0x00 and count == 0x01:
                cursor.skip(3)
                continue
            if count == 0:
                count = PALETTE_SIZE
        elif count == 0:
            break

        chunks.append(read_palette_chunk(cursor, start, count))

    return chunks


def read_video_palette_block(cursor: ByteCursor) -> list:
    """Video palette run followed by its 0xFF fill bytes."""
    chunks = read_palette_chunks(cursor, video=True)
    while not cursor.is_eof() and cursor.peek_byte() == 0xFF:
        cursor.skip(1)
    return chunks


def blend_chunks(previous: PaletteChunk, current: PaletteChunk, ratio: float) -> PaletteChunk:
    """Interpolate every channel from previous towards current."""
    if ratio >= 1.0:
        return current

    colors = []
    for i, color in enumerate(current.colors):
        if i >= len(previous.colors):
            colors.append(color)
            continue
        r1, g1, b1 = unpack_color(previous.colors[i])
        r2, g2, b2 = unpack_color(color)
        colors.append(pack_color(
            int(r1 + (r2 - r1) * ratio),
            int(g1 + (g2 - g1) * ratio),
            int(b1 + (b2 - b1) * ratio),
        ))

    return PaletteChunk(current.start, current.count, tuple(colors))


class Palette:
    """256-entry ARGB color table owned by the renderer."""

    def __init__(self):
        self.colors = [0] * PALETTE_SIZE
        self._stash = None

    def clear(self):
        self.colors = [0] * PALETTE_SIZE

    def update(self, chunk: PaletteChunk):
        self.colors[chunk.start:chunk.start + len(chunk.colors)] = chunk.colors

    def apply(self, chunks):
        for chunk in chunks:
            self.update(chunk)

    def stash(self):
        self._stash = list(self.colors)

    def unstash(self):
        if self._stash is not None:
            self.colors = list(self._stash)

    def color(self, index: int) -> int:
        """ARGB color; index 0 is always fully transparent."""
        color = self.colors[index]
        if index == 0:
            color &= 0x00FFFFFF
        return color

    def rgb(self, index: int) -> tuple:
        return unpack_color(self.colors[index])

    def to_rgb_bytes(self) -> bytes:
        """768 bytes of 8-bit R, G, B, as used by BMP/PPM writers."""
        out = bytearray()
        for color in self.colors:
            out.extend(unpack_color(color))
        return bytes(out)
