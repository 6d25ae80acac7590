"""
dune1992-assets: Sprite animation tables.

Some sprite files carry an animation table right after the last frame,
introduced by a 0x0000 word. Three incompatible layouts exist:

  GENERIC (most character sprites):
    14-byte header: 0x0000, block size, x, y, width, height, definition offset
    Image group index: uint16 offsets (relative to header end) of groups,
      each group is (frame + 1, x, y) byte triples ending with 0x00
    Animation index at definition offset - 2: uint16 offsets of animations,
      each animation lists group numbers (starting at 2), 0x00 ends an
      animation frame, 0xFF ends the animation

  SWAP (SHAI.HSQ):
    (sprite, x, y) uint16 triples; four uint16 forming a valid rectangle
    (x1 < x2, y1 < y2) that does not continue the sprite numbering mark the
    region cleared between two frames

  SEGMENTED (DEATH1.HSQ):
    (sprite, x, y) uint16 triples; 0xFFFF ends a frame, and an animation
    ends once its known highest sprite index has been drawn

The SWAP and SEGMENTED rules are pattern matches on the original data and
are kept exactly as they behave in the game files.
"""

import logging
from dataclasses import dataclass

from .constants import (SCREEN_HEIGHT, SCREEN_WIDTH, SEGMENTED_ANIMATION_LIMITS,
                        AnimationDialect)
from .errors import MalformedAnimationHeader
from .stream import ByteCursor

log = logging.getLogger(__name__)

ANIMATION_HEADER_SIZE = 14


@dataclass(frozen=True)
class AnimationImage:
    frame_index: int
    x_offset: int
    y_offset: int


@dataclass(frozen=True)
class ImageGroup:
    images: tuple
    offset: int = 0


@dataclass(frozen=True)
class AnimationFrame:
    groups: tuple

    def images(self):
        for group in self.groups:
            yield from group.images


@dataclass(frozen=True)
class SpriteAnimation:
    x: int
    y: int
    width: int
    height: int
    definition_offset: int
    frames: tuple

    @property
    def frame_count(self) -> int:
        return len(self.frames)

    def frame_at(self, time: float, frame_rate: float = 12.0, loop: bool = True):
        """Animation frame shown after `time` seconds, None when empty."""
        if not self.frames:
            return None
        index = int(time * frame_rate)
        if loop:
            index %= len(self.frames)
        else:
            index = min(index, len(self.frames) - 1)
        return self.frames[index]


def _single_group_frame(images) -> AnimationFrame:
    return AnimationFrame((ImageGroup(tuple(images)),))


def _check_block_size(cursor: ByteCursor, offset: int):
    block_size = cursor.read_u16_le()
    if offset + block_size > cursor.size:
        raise MalformedAnimationHeader(
            f"animation block at {offset} with size {block_size} "
            f"exceeds resource size {cursor.size}")
    return block_size


def parse_animations(cursor: ByteCursor, offset: int,
                     dialect: AnimationDialect = AnimationDialect.GENERIC,
                     segment_limits=SEGMENTED_ANIMATION_LIMITS) -> list:
    """
    Parse the animation table starting at offset.

    Returns an empty list when there is no table. Raises
    MalformedAnimationHeader when a table is present but inconsistent.
    """
    if offset >= cursor.size - 2:
        return []

    cursor.seek(offset)
    header = cursor.read_u16_le()
    if header != 0x0000:
        log.debug("no animation table at %d (lead word 0x%04X)", offset, header)
        cursor.seek(offset)
        return []

    if dialect is AnimationDialect.SWAP:
        return parse_swap_animations(cursor, offset)
    if dialect is AnimationDialect.SEGMENTED:
        return parse_segmented_animations(cursor, offset, segment_limits)
    return parse_generic_animations(cursor, offset)


def parse_generic_animations(cursor: ByteCursor, offset: int) -> list:
    """Cursor must sit just after the 0x0000 lead word."""
    block_size = _check_block_size(cursor, offset)

    anim_x = cursor.read_u16_le()
    if anim_x > SCREEN_WIDTH:
        raise MalformedAnimationHeader(f"animation x={anim_x} is off screen")

    anim_y = cursor.read_u16_le()
    anim_width = cursor.read_u16_le()
    anim_height = cursor.read_u16_le()
    definition_offset = cursor.read_u16_le()
    base = offset + ANIMATION_HEADER_SIZE

    log.debug("animation header: size=%d x=%d y=%d w=%d h=%d def=%d",
              block_size, anim_x, anim_y, anim_width, anim_height, definition_offset)

    # First group offset doubles as the size of the group index
    group_count = cursor.read_u16_le(peek=True) // 2 - 1
    if group_count < 1:
        raise MalformedAnimationHeader("empty image group index")
    group_offsets = [cursor.read_u16_le() for _ in range(group_count)]

    groups = []
    for group_offset in group_offsets:
        cursor.seek(base + group_offset)
        images = []
        while cursor.peek_byte() != 0x00:
            number, x, y = cursor.read_bytes(3)
            images.append(AnimationImage(number - 1, x, y))
        cursor.skip(1)
        groups.append(ImageGroup(tuple(images), group_offset))

    cursor.seek(base + definition_offset - 2)
    index_offset = cursor.tell()

    # Offsets increase until the first byte of animation data
    anim_offsets = [cursor.read_u16_le()]
    while cursor.remaining() >= 2:
        following = cursor.read_u16_le(peek=True)
        if following <= anim_offsets[-1] or following & 0xFF00:
            break
        anim_offsets.append(cursor.read_u16_le())

    animations = []
    for anim_offset in anim_offsets:
        cursor.seek(index_offset + anim_offset)
        frames = []
        current = []

        while not cursor.is_eof() and cursor.peek_byte() != 0xFF:
            value = cursor.read_byte()
            if value == 0x00:
                frames.append(AnimationFrame(tuple(current)))
                current = []
                continue

            # Group numbers start at 2
            group_index = min(value - 2, len(groups) - 1)
            if group_index < 0:
                raise MalformedAnimationHeader(f"invalid image group number {value}")
            current.append(groups[group_index])

        cursor.skip(1)  # 0xFF

        if current:
            frames.append(AnimationFrame(tuple(current)))

        animations.append(SpriteAnimation(anim_x, anim_y, anim_width, anim_height,
                                          definition_offset, tuple(frames)))

    return animations


def parse_swap_animations(cursor: ByteCursor, offset: int) -> list:
    """Cursor must sit just after the 0x0000 lead word."""
    _check_block_size(cursor, offset)

    frames = []
    group = []
    max_index = 0

    while cursor.remaining() >= 6:
        if cursor.tell() < cursor.size - 8:
            x1 = cursor.read_u16_le()
            y1 = cursor.read_u16_le()
            x2 = cursor.read_u16_le()
            y2 = cursor.read_u16_le()

            # Region to clear before drawing the next frame
            if x1 < x2 and y1 < y2 and x1 != max_index + 1:
                frame = _single_group_frame(group)
                frames.append(frame)
                frames.append(frame)
                group = []
                continue

            cursor.skip(-8)

        index = cursor.read_u16_le()
        x = cursor.read_u16_le()
        y = cursor.read_u16_le()
        max_index = index
        group.append(AnimationImage(index, x, y))

    frames.append(_single_group_frame(group))

    return [SpriteAnimation(0, 0, SCREEN_WIDTH, SCREEN_HEIGHT, offset, tuple(frames))]


def parse_segmented_animations(cursor: ByteCursor, offset: int,
                               segment_limits=SEGMENTED_ANIMATION_LIMITS) -> list:
    """Cursor must sit just after the 0x0000 lead word."""
    _check_block_size(cursor, offset)

    animations = []
    frames = []
    group = []
    max_index = 0
    last_word = 0x0000

    while cursor.remaining() >= 2:
        if cursor.read_u16_le(peek=True) == 0xFFFF:
            last_word = cursor.read_u16_le()
            if not group and frames:
                frames.append(frames[-1])
            else:
                frames.append(_single_group_frame(group))
                group = []
            continue

        segment = len(animations)
        if (max_index > 0 and segment < len(segment_limits)
                and max_index == segment_limits[segment] and last_word == 0xFFFF):
            animations.append(SpriteAnimation(0, 0, SCREEN_WIDTH, SCREEN_HEIGHT,
                                              offset, tuple(frames)))
            frames = []
            max_index = 0

        if cursor.remaining() < 6:
            log.debug("segmented animation: %d trailing byte(s)", cursor.remaining())
            break

        index = cursor.read_u16_le()
        x = cursor.read_u16_le()
        y = cursor.read_u16_le()
        max_index = max(max_index, index)
        last_word = y

        log.debug("segmented animation=%d frame=%d index=%d x=%d y=%d",
                  len(animations), len(frames), index, x, y)
        group.append(AnimationImage(index, x, y))

    animations.append(SpriteAnimation(0, 0, SCREEN_WIDTH, SCREEN_HEIGHT, offset, tuple(frames)))
    return animations
