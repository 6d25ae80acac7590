#!/usr/bin/env python
"""
Dune 1992 Sprite HSQ Decoder

Decodes sprite graphics from HSQ-compressed game resources.

Sprite HSQ file structure (decompressed):
  - uint16 LE at offset 0: pointer to offset table (= palette end)
  - Palette data at bytes 2..first_word (VGA 6-bit color chunks)
  - Offset table at first_word: N × uint16 LE sprite offsets
  - Sprite data: 4-byte header + 4-bit bipixel data
  - Optional animation table (or day/night palettes) after the frames

Decoding options (animation dialect, alternate palettes, frame header
padding) come from the resource catalog in dunelib.constants.

Usage:
  python sprite_decoder.py CHAN.HSQ                   # Summary
  python sprite_decoder.py CHAN.HSQ --stats           # Per-sprite table
  python sprite_decoder.py CHAN.HSQ --export out/     # PPM images
  python sprite_decoder.py CHAN.HSQ --animations      # Animation tables
"""

import argparse
import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from dunelib.constants import sprite_options
from dunelib.errors import DecodeError
from dunelib.palette import Palette
from dunelib.resource import load_resource
from dunelib.sprite import decode_sprite


def sprite_to_ppm(frame, palette, outpath):
    """Write the visible part of a frame as a PPM image file."""
    w, h = frame.real_width, frame.height
    if w == 0 or h == 0:
        return False

    with open(outpath, 'wb') as f:
        f.write(f'P6\n{w} {h}\n255\n'.encode())
        for row in frame.rows():
            f.write(b''.join(bytes(palette.rgb(idx)) for idx in row))
    return True


def show_animations(sprite):
    if not sprite.animations:
        print(f"{sprite.name}: no animations (table offset {sprite.animation_offset})")
        return
    for i, anim in enumerate(sprite.animations):
        print(f"Animation {i}: {anim.width}x{anim.height} at ({anim.x},{anim.y}), "
              f"{anim.frame_count} frames")
        for j, frame in enumerate(anim.frames):
            images = ' '.join(f"{img.frame_index}@{img.x_offset},{img.y_offset}"
                              for img in frame.images())
            print(f"  [{j:3d}] {images or '(empty)'}")


def main():
    parser = argparse.ArgumentParser(description='Dune 1992 Sprite HSQ Decoder')
    parser.add_argument('file', help='Sprite HSQ file (e.g. CHAN.HSQ)')
    parser.add_argument('--raw', action='store_true',
                        help='Input is already decompressed')
    parser.add_argument('--sprite', type=int, metavar='N',
                        help='Show single sprite by index')
    parser.add_argument('--stats', action='store_true',
                        help='Show file statistics')
    parser.add_argument('--export', metavar='DIR',
                        help='Export sprites as PPM images to directory')
    parser.add_argument('--ascii', type=int, metavar='N',
                        help='ASCII-art preview of sprite N')
    parser.add_argument('--animations', action='store_true',
                        help='Dump the animation tables')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Debug logging')
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    name = os.path.basename(args.file)
    raw = open(args.file, 'rb').read()

    try:
        resource = load_resource(raw, name, uncompressed=args.raw)
        sprite = decode_sprite(resource.data, name, **sprite_options(name))
    except DecodeError as e:
        print(f"Error: {name}: {e}", file=sys.stderr)
        return 1

    palette = Palette()
    sprite.apply_palette(palette)
    n_sprites = sprite.frame_count
    basename = os.path.splitext(name)[0]

    if args.stats:
        print(f"File: {args.file}")
        print(f"  Compressed:   {len(raw)} bytes")
        print(f"  Decompressed: {resource.size} bytes")
        print(f"  Palette:      {len(sprite.palette)} chunk(s)"
              f"{'' if sprite.has_palette else ' (no palette)'}")
        print(f"  Sprite count: {n_sprites}")
        print(f"  Animations:   {sprite.animation_count}")
        if sprite.alternate_palettes:
            print(f"  Alternate palettes: {len(sprite.alternate_palettes)}")
        print()

        print(f"  {'Idx':>4}  {'Width':>5}  {'Height':>6}  {'PalOff':>6}  {'Compressed':>10}")
        print(f"  {'-'*4}  {'-'*5}  {'-'*6}  {'-'*6}  {'-'*10}")
        for i, spr in enumerate(sprite.frames):
            comp_str = 'RLE' if spr.is_compressed else 'raw'
            print(f"  {i:4d}  {spr.real_width:5d}  {spr.height:6d}  "
                  f"0x{spr.palette_offset:02X}    {comp_str:>10}")
        return 0

    if args.animations:
        show_animations(sprite)
        return 0

    if args.sprite is not None:
        if args.sprite >= n_sprites:
            print(f"Error: sprite {args.sprite} out of range (0-{n_sprites-1})",
                  file=sys.stderr)
            return 1
        spr = sprite.frame(args.sprite)
        print(f"Sprite {args.sprite}:")
        print(f"  Size: {spr.real_width} x {spr.height} (stride {spr.width})")
        print(f"  Palette offset: 0x{spr.palette_offset:02X}")
        print(f"  Compressed: {'RLE' if spr.is_compressed else 'raw'}")
        print(f"  Data offset: 0x{spr.start_offset:04X}")
        return 0

    if args.ascii is not None:
        if args.ascii >= n_sprites:
            print(f"Error: sprite {args.ascii} out of range (0-{n_sprites-1})",
                  file=sys.stderr)
            return 1
        spr = sprite.frame(args.ascii)
        w, h = spr.real_width, spr.height
        print(f"Sprite {args.ascii}: {w}x{h}, pal_offset=0x{spr.palette_offset:02X}")
        if w == 0 or h == 0:
            print("  (empty sprite)")
            return 0
        # ASCII art: map pixel values to density characters
        chars = " .:-=+*#%@"
        step = max(1, w // 80)
        for y, row in enumerate(spr.rows()):
            if y >= 60:
                break
            line = []
            for x in range(0, w, step):
                val = (row[x] - spr.palette_offset) & 0xFF
                line.append(chars[min(val, len(chars) - 1)])
            print(''.join(line))
        return 0

    if args.export:
        os.makedirs(args.export, exist_ok=True)
        exported = 0
        for i, spr in enumerate(sprite.frames):
            outpath = os.path.join(args.export, f'{basename}_{i:03d}.ppm')
            if sprite_to_ppm(spr, palette, outpath):
                exported += 1
        print(f"Exported {exported}/{n_sprites} sprites to {args.export}/")
        return 0

    # Default: summary
    print(f"{basename}: {n_sprites} sprites, {len(sprite.palette)} palette chunks, "
          f"{sprite.animation_count} animations")
    for i, spr in enumerate(sprite.frames[:20]):
        comp_str = 'RLE' if spr.is_compressed else 'raw'
        print(f"  [{i:3d}] {spr.real_width:4d}x{spr.height:<4d}  "
              f"pal=0x{spr.palette_offset:02X}  {comp_str}")
    if n_sprites > 20:
        print(f"  ... ({n_sprites - 20} more sprites)")

    return 0


if __name__ == '__main__':
    sys.exit(main() or 0)
