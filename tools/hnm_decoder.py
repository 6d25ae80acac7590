#!/usr/bin/env python
"""
Dune 1992 HNM Video File Decoder

Decodes Cryo Interactive HNM (version 1) video files used for cutscenes.

HNM file structure:
  Header chunk: uint16 LE header size, palette block, 0xFF fill, frame
  offset table.

  Superchunks (one per frame): uint16 LE size, then tagged sub-blocks
    'pl' (0x6C70): palette update block
    'sd' (0x6473): sound data (8-bit unsigned PCM @ 11111 Hz)
    'mm', 'kl', 'pt': skipped
    Other: video block (4-byte header + HSQ stream)

  Video block header (4 bytes):
    byte 0: width low 8 bits
    byte 1: bit 0 = width bit 8, bits 1-7 = flags
    byte 2: height
    byte 3: mode (0xFE=opaque, 0xFF=transparent)

  Video block flags:
    0x02: HSQ-compressed data follows
    0x04: full frame (no x,y offset in decompressed data)
    0x80: PackBits-compressed rendering

PRT.HNM (copy protection) stores one HSQ stream per frame after a 58-byte
preamble.

Usage:
  python hnm_decoder.py CRYO.HNM                    # Analyze structure
  python hnm_decoder.py gamedata/*.HNM --stats       # Summary table
  python hnm_decoder.py CRYO.HNM --extract frames/   # Extract frames as BMP
  python hnm_decoder.py CRYO.HNM --extract-sound out.wav  # Extract audio
"""

import argparse
import logging
import os
import struct
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from dunelib.constants import HNM_SOUND_RATE, SCREEN_HEIGHT, SCREEN_WIDTH
from dunelib.errors import DecodeError
from dunelib.palette import Palette
from dunelib.video import load_video


# =============================================================================
# BMP EXPORT
# =============================================================================

def write_bmp(filepath: str, pixels: bytes, palette: bytes,
              width: int = SCREEN_WIDTH, height: int = SCREEN_HEIGHT):
    """Write 8-bit indexed BMP file."""
    row_size = (width + 3) & ~3  # pad to 4-byte boundary
    pixel_data_size = row_size * height
    file_size = 54 + 1024 + pixel_data_size  # header + palette + pixels

    with open(filepath, 'wb') as f:
        # BMP file header (14 bytes)
        f.write(b'BM')
        f.write(struct.pack('<I', file_size))
        f.write(struct.pack('<HH', 0, 0))
        f.write(struct.pack('<I', 54 + 1024))

        # DIB header (40 bytes)
        f.write(struct.pack('<I', 40))
        f.write(struct.pack('<i', width))
        f.write(struct.pack('<i', -height))  # top-down
        f.write(struct.pack('<HH', 1, 8))
        f.write(struct.pack('<I', 0))  # no compression
        f.write(struct.pack('<I', pixel_data_size))
        f.write(struct.pack('<ii', 2835, 2835))  # 72 DPI
        f.write(struct.pack('<II', 256, 0))

        # Palette (256 × BGRA)
        for i in range(256):
            r, g, b = palette[i * 3:i * 3 + 3]
            f.write(struct.pack('BBBB', b, g, r, 0))

        # Pixel data (top-down, padded rows)
        for y in range(height):
            row = pixels[y * width:(y + 1) * width]
            f.write(row + b'\x00' * (row_size - len(row)))


# =============================================================================
# WAV EXPORT
# =============================================================================

def write_wav(filepath: str, audio_data: bytes, sample_rate: int = HNM_SOUND_RATE):
    """Write 8-bit unsigned PCM WAV file."""
    data_size = len(audio_data)
    with open(filepath, 'wb') as f:
        # RIFF header
        f.write(b'RIFF')
        f.write(struct.pack('<I', 36 + data_size))
        f.write(b'WAVE')
        # fmt chunk
        f.write(b'fmt ')
        f.write(struct.pack('<I', 16))
        f.write(struct.pack('<HH', 1, 1))  # PCM, mono
        f.write(struct.pack('<I', sample_rate))
        f.write(struct.pack('<I', sample_rate))  # byte rate
        f.write(struct.pack('<HH', 1, 8))  # block align, bits
        # data chunk
        f.write(b'data')
        f.write(struct.pack('<I', data_size))
        f.write(audio_data)


# =============================================================================
# ANALYSIS AND OUTPUT
# =============================================================================

def frame_info(video, index: int) -> dict:
    """Summary of a single frame."""
    frame = video.frame(index)
    block = frame.video_block
    info = {
        'sound': frame.sound is not None,
        'palette': bool(frame.palette_block) or bool(block and block.palette),
        'video': block is not None,
        'width': block.width if block else 0,
        'height': block.height if block else 0,
        'flags': block.flags if block else 0,
        'mode': block.mode if block else 0,
        'checksum': block.checksum if block else 0,
        'position': (block.x, block.y) if block else (0, 0),
        'pixels': len(block.pixels) if block else 0,
    }
    return info


def analyze_hnm(video, size: int):
    """Report the structure of a decoded video."""
    print(f"File: {video.name} ({size:,} bytes)")
    if video.header is not None:
        print(f"  Header size: {video.header.header_size} bytes")
    print(f"  Frame count: {video.frame_count}")

    sound_frames = 0
    palette_frames = 0
    repeated = 0
    resolutions = set()
    modes = set()

    for i in range(video.frame_count):
        info = frame_info(video, i)
        if info['sound']:
            sound_frames += 1
        if info['palette']:
            palette_frames += 1
        if info['video']:
            resolutions.add(f"{info['width']}x{info['height']}")
            modes.add(info['mode'])
        else:
            repeated += 1

    print(f"  Resolutions: {', '.join(sorted(resolutions)) if resolutions else 'none'}")
    print(f"  Modes: {', '.join(f'0x{m:02X}' for m in sorted(modes)) if modes else 'none'}")
    print(f"  Repeated frames: {repeated}")
    print(f"  Sound frames: {sound_frames}")
    print(f"  Palette updates: {palette_frames}")

    audio = video.sound_data()
    if audio:
        duration = len(audio) / float(video.sound_rate)
        print(f"  Audio: {len(audio):,} bytes ({duration:.1f}s @ {video.sound_rate} Hz)")

    if video.frame_count > 0:
        print(f"  Duration: {video.frame_count / video.frame_rate:.1f}s "
              f"({video.frame_rate:g} fps)")


def extract_frames(video, outdir: str, max_frames: int = 0):
    """Extract video frames as BMP images."""
    os.makedirs(outdir, exist_ok=True)

    framebuf = bytearray(SCREEN_WIDTH * SCREEN_HEIGHT)
    palette = Palette()
    video.apply_header_palette(palette)

    count = video.frame_count
    if max_frames > 0:
        count = min(count, max_frames)

    extracted = 0
    for i in range(count):
        video.apply_frame(palette, i)
        had_video = video.render(i, framebuf)
        if had_video or i == 0:
            bmp_path = os.path.join(outdir, f"frame_{i:04d}.bmp")
            write_bmp(bmp_path, bytes(framebuf), palette.to_rgb_bytes())
            extracted += 1

        if (i + 1) % 100 == 0:
            print(f"  Processed {i + 1}/{count} frames ({extracted} extracted)")

    print(f"  Extracted {extracted} frames to {outdir}/")


def show_palette(video):
    """Display the initial palette."""
    palette = Palette()
    video.apply_header_palette(palette)
    print("Initial palette (256 colors, RGB 8-bit):")
    for i in range(256):
        r, g, b = palette.rgb(i)
        if r != 0 or g != 0 or b != 0:
            print(f"  [{i:3d}] R={r:3d} G={g:3d} B={b:3d}  "
                  f"#{r:02X}{g:02X}{b:02X}")


def show_frame_info(video, index: int):
    if index >= video.frame_count:
        print(f"Frame {index} not found")
        return
    print(f"Frame {index}:")
    for k, v in frame_info(video, index).items():
        if k == 'flags':
            flags_str = []
            if v & 0x02:
                flags_str.append('compressed')
            if v & 0x04:
                flags_str.append('full-frame')
            if v & 0x80:
                flags_str.append('packbits')
            print(f"  {k}: 0x{v:02X} ({', '.join(flags_str) if flags_str else 'none'})")
        elif k == 'mode':
            mode_str = 'opaque' if v == 0xFE else 'transparent' if v == 0xFF else f'0x{v:02X}'
            print(f"  {k}: {mode_str}")
        elif k == 'checksum':
            print(f"  {k}: 0x{v:02X}")
        else:
            print(f"  {k}: {v}")


def main():
    parser = argparse.ArgumentParser(
        description='Dune 1992 HNM Video File Decoder')
    parser.add_argument('files', nargs='+', help='HNM video file(s)')
    parser.add_argument('--stats', action='store_true',
                        help='Summary table for all files')
    parser.add_argument('--extract', metavar='OUTDIR',
                        help='Extract frames as BMP to directory')
    parser.add_argument('--max-frames', type=int, default=0,
                        help='Max frames to extract (0=all)')
    parser.add_argument('--extract-sound', metavar='WAVFILE',
                        help='Extract audio to WAV file')
    parser.add_argument('--palette', action='store_true',
                        help='Dump initial palette')
    parser.add_argument('--frame-info', type=int, metavar='N',
                        help='Show detailed info for frame N')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Debug logging')
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    if args.stats:
        print(f"{'File':<16} {'Size':>10}  {'Frames':>6}  {'Audio':>8}  {'Resolution'}")
        print('-' * 60)

    failed = 0
    for filepath in args.files:
        if not os.path.exists(filepath):
            print(f"File not found: {filepath}", file=sys.stderr)
            failed += 1
            continue

        try:
            video = load_video(filepath)
        except DecodeError as e:
            print(f"Error: {os.path.basename(filepath)}: {e}", file=sys.stderr)
            failed += 1
            continue

        size = os.path.getsize(filepath)

        if args.stats:
            res = set()
            for frame in video.frames:
                if frame.video_block is not None:
                    res.add(f"{frame.video_block.width}x{frame.video_block.height}")
            audio = video.sound_data()
            audio_str = f"{len(audio) / 1024:.0f}K" if audio else "-"
            res_str = ', '.join(sorted(res)) if res else "-"
            print(f"{video.name:<16} {size:>10,}  {video.frame_count:>6}  "
                  f"{audio_str:>8}  {res_str}")
        elif args.palette:
            show_palette(video)
        elif args.frame_info is not None:
            show_frame_info(video, args.frame_info)
        elif args.extract_sound:
            audio = video.sound_data()
            if audio:
                write_wav(args.extract_sound, audio, video.sound_rate)
                duration = len(audio) / float(video.sound_rate)
                print(f"Extracted {len(audio):,} bytes of audio ({duration:.1f}s) "
                      f"to {args.extract_sound}")
            else:
                print("No audio data found in this HNM file")
        elif args.extract:
            print(f"Extracting frames from {video.name}...")
            extract_frames(video, args.extract, args.max_frames)
        else:
            analyze_hnm(video, size)

    return 1 if failed else 0


if __name__ == '__main__':
    sys.exit(main() or 0)
