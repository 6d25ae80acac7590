"""Sprite frames, palettes and alternate palettes."""
import logging
import struct

from conftest import generic_animation_table, hsq_pack, palette_run, sprite_file, sprite_frame
from dunelib.palette import Palette
from dunelib.sprite import (decode_4bpp_rle, decode_frame, decode_sprite, load_sprite,
                            padded_width, row_bytes)
from dunelib.stream import ByteCursor


def test_padded_width_and_row_bytes():
    assert [padded_width(w) for w in (1, 3, 4, 5, 8)] == [4, 4, 4, 8, 8]
    assert row_bytes(3) == 2
    assert row_bytes(5) == 4
    assert row_bytes(8) == 4


def test_uncompressed_frame_low_nibble_first():
    frame_bytes = sprite_frame(3, 2, [0x21, 0x43, 0x65, 0x87], palette_offset=0x10)
    frame = decode_frame(ByteCursor(frame_bytes))
    assert not frame.is_compressed
    assert frame.real_width == 3
    assert frame.width == 4
    assert frame.height == 2
    assert frame.start_offset == 4
    assert frame.pixels == bytes([0x11, 0x12, 0x13, 0x14, 0x15, 0x16, 0x17, 0x18])
    assert list(frame.rows()) == [bytes([0x11, 0x12, 0x13]), bytes([0x15, 0x16, 0x17])]
    assert frame.pixel(1, 1) == 0x16


def test_pixel_buffer_covers_padded_width():
    for width in (1, 2, 3, 5, 7, 9):
        payload = bytes(padded_width(width) * 3 // 2)
        frame = decode_frame(ByteCursor(sprite_frame(width, 3, payload)))
        assert frame.width % 4 == 0
        assert len(frame.pixels) == frame.width * frame.height


def test_width_uses_nine_bits():
    frame = decode_frame(ByteCursor(sprite_frame(0x104, 1, bytes(0x104 // 2))))
    assert frame.real_width == 0x104
    assert frame.flags == 0
    assert not frame.is_compressed


def test_compressed_fill_run():
    frame_bytes = sprite_frame(4, 2, [0xFD, 0x21], compressed=True)
    frame = decode_frame(ByteCursor(frame_bytes))
    assert frame.is_compressed
    assert frame.flags & 0x80
    assert frame.pixels == bytes([1, 2] * 4)


def test_compressed_pixel_buffer_covers_padded_width():
    for width in (5, 7):
        # one fill run of 8 pairs covers the padded 8x2 frame
        frame = decode_frame(ByteCursor(sprite_frame(width, 2, [0xF9, 0x21], compressed=True)))
        assert frame.real_width == width
        assert frame.width == 8
        assert len(frame.pixels) == frame.width * frame.height
        assert frame.pixels == bytes([1, 2] * 8)


def test_compressed_literal_then_fill():
    payload = [0x01, 0x21, 0x43, 0xFF, 0x55]
    frame = decode_frame(ByteCursor(sprite_frame(4, 2, payload, compressed=True, palette_offset=1)))
    assert frame.pixels == bytes([2, 3, 4, 5, 6, 6, 6, 6])


def test_compressed_stops_mid_run():
    cursor = ByteCursor(bytes([0xFD, 0x21, 0xEE]))
    pixels = decode_4bpp_rle(cursor, 4, 1, 0)
    assert pixels == bytes([1, 2, 1, 2])
    assert cursor.tell() == 2


def test_transparency_rule():
    frame = decode_frame(ByteCursor(sprite_frame(4, 1, [0x10, 0x32], palette_offset=0x20)))
    assert frame.is_transparent(0)
    assert frame.is_transparent(0x20)
    assert not frame.is_transparent(0x21)


def test_sprite_with_palette_and_frames():
    palette = palette_run([(0x10, [(1, 2, 3), (4, 5, 6)])])
    frames = [
        sprite_frame(4, 1, [0x21, 0x43]),
        sprite_frame(2, 2, [0x11, 0x00, 0x22, 0x00], palette_offset=0x10),
    ]
    sprite = decode_sprite(sprite_file(frames, palette), 'TEST.HSQ')
    assert sprite.has_palette
    assert sprite.frame_count == 2
    assert sprite.frame(1).real_width == 2
    assert sprite.frame(1).pixels == bytes([0x11, 0x11, 0x10, 0x10, 0x12, 0x12, 0x10, 0x10])
    assert sprite.animation_count == 0

    target = Palette()
    sprite.apply_palette(target)
    assert target.rgb(0x11) == (16, 20, 24)


def test_sprite_without_palette():
    sprite = decode_sprite(sprite_file([sprite_frame(4, 1, [0x21, 0x43])]))
    assert not sprite.has_palette
    assert sprite.frame(0).pixels == bytes([1, 2, 3, 4])


def test_zero_entry_ends_frame_table():
    frame = sprite_frame(4, 1, [0x21, 0x43])
    table = struct.pack('<2H', 4, 4 + len(frame))
    data = struct.pack('<H', 2) + table + frame + b'\x00\x00'
    sprite = decode_sprite(data)
    assert sprite.frame_count == 1
    assert sprite.animation_offset == len(data) - 2


def test_frame_header_padding():
    frame = sprite_frame(4, 1, [0xEE, 0xEE, 0x21, 0x43])
    sprite = decode_sprite(sprite_file([frame]), frame_header_padding=2)
    assert sprite.frame(0).pixels == bytes([1, 2, 3, 4])


def test_sprite_with_generic_animations():
    frames = [sprite_frame(4, 1, [0x21, 0x43]), sprite_frame(4, 1, [0x65, 0x87])]
    data = sprite_file(frames, trailer=generic_animation_table())
    sprite = decode_sprite(data)
    assert sprite.frame_count == 2
    assert sprite.animation_count == 2
    assert sprite.animation_offset == len(data) - len(generic_animation_table())


def test_malformed_animations_keep_frames(caplog):
    frames = [sprite_frame(4, 1, [0x21, 0x43])]
    data = sprite_file(frames, trailer=generic_animation_table(x=400))
    with caplog.at_level(logging.WARNING):
        sprite = decode_sprite(data, 'BAD.HSQ')
    assert sprite.frame_count == 1
    assert sprite.animations == []
    assert 'BAD.HSQ' in caplog.text


def _alternate(start, colors):
    body = bytes([start, len(colors)]) + bytes(b for rgb in colors for b in rgb)
    return struct.pack('<HH', 0, len(body)) + body


def test_alternate_palettes():
    trailer = _alternate(0x20, [(1, 1, 1), (2, 2, 2)]) + _alternate(0x20, [(3, 3, 3), (4, 4, 4)])
    data = sprite_file([sprite_frame(4, 1, [0x21, 0x43])], trailer=trailer)
    sprite = decode_sprite(data, alternate_palettes=True)
    assert len(sprite.alternate_palettes) == 2
    assert sprite.animations == []

    palette = Palette()
    sprite.apply_alternate_palette(palette, 1)
    assert palette.rgb(0x21) == (16, 16, 16)
    sprite.apply_alternate_palette(palette, 1, previous=0, blend=0.5)
    assert palette.rgb(0x20) == (8, 8, 8)
    # Out of range index is ignored
    sprite.apply_alternate_palette(palette, 5)


def test_alternate_palettes_stop_on_bad_size(caplog):
    bad = struct.pack('<HH', 0, 9) + bytes([0x20, 2]) + bytes(6)
    trailer = _alternate(0x20, [(1, 1, 1)]) + bad
    data = sprite_file([sprite_frame(4, 1, [0x21, 0x43])], trailer=trailer)
    with caplog.at_level(logging.WARNING):
        sprite = decode_sprite(data, alternate_palettes=True)
    assert len(sprite.alternate_palettes) == 1
    assert 'not a palette part' in caplog.text


def test_merge_frames():
    first = decode_sprite(sprite_file([sprite_frame(4, 1, [0x21, 0x43])]), 'SHAI.HSQ')
    second = decode_sprite(sprite_file([sprite_frame(4, 1, [0x65, 0x87])]), 'SHAI2.HSQ')
    merged = first.merge_frames(second)
    assert merged.frame_count == 2
    assert merged.name == 'SHAI.HSQ'
    assert first.frame_count == 1


def test_load_sprite_uses_catalog(tmp_path):
    frame = sprite_frame(4, 1, [0xEE, 0xEE, 0x21, 0x43])
    path = tmp_path / 'DUNES.HSQ'
    path.write_bytes(hsq_pack(sprite_file([frame])))
    sprite = load_sprite(str(path))
    assert sprite.name == 'DUNES.HSQ'
    assert sprite.frame(0).pixels == bytes([1, 2, 3, 4])
