#!/usr/bin/env python3
"""
Dune 1992 Sound File Decoder

Decodes sound effects from HSQ-compressed Creative Voice File (VOC) format.
SD5.HSQ is stored without HSQ compression.

VOC file structure:
  Header (26 bytes):
    "Creative Voice File\\x1A" (20 bytes)
    uint16 LE  header_size (always 0x001A = 26)
    uint16 LE  version (0x010A = 1.10 or 0x0114 = 1.20)
    uint16 LE  version_check ((~version + 0x1234) & 0xFFFF)

  Data blocks (after header):
    Block type 0x01: Sound data
      uint8    type (0x01)
      uint24   length (3 bytes LE, includes sr+codec bytes)
      uint8    sample_rate_byte → rate = 1000000/(256-byte)
      uint8    codec (0x00 = 8-bit unsigned PCM)
      bytes    sample data (length-2 bytes)
    Block type 0x03: Silence
    Block type 0x06: Repeat marker
    Block type 0x07: End repeat
    Block type 0x00: Terminator

Usage:
  python3 sound_decoder.py gamedata/SD*.HSQ           # Analyze all sound files
  python3 sound_decoder.py gamedata/SD1.HSQ --wav DIR  # Export to WAV
"""

import argparse
import logging
import os
import struct
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from dunelib.constants import is_uncompressed
from dunelib.errors import DecodeError
from dunelib.resource import load_resource
from dunelib.sound import (Marker, RepeatEnd, RepeatStart, Silence, SoundData, StringBlock,
                           VocCodec, decode_sound)


def codec_name(codec: int) -> str:
    try:
        return VocCodec(codec).name
    except ValueError:
        return f'0x{codec:02X}'


def show_file(sound, size: int):
    """Print the block structure of a VOC sound."""
    chunks = sound.pcm_chunks()
    total_samples = sum(chunk.sample_count for chunk in chunks)

    print(f"=== {sound.name} ({size:,} bytes decompressed) ===")
    print(f"  VOC version:   {sound.version_string}")
    print(f"  Sample rate:   {sound.sample_rate:,} Hz")
    print(f"  Total samples: {total_samples:,}")
    print(f"  Duration:      {sound.duration():.2f}s")

    sound_blocks = [b for b in sound.blocks if isinstance(b, SoundData)]
    print(f"  Sound blocks:  {len(sound_blocks)}")
    for b in sound.blocks:
        if isinstance(b, RepeatStart):
            print(f"  Repeat:        {b.count} times")
        elif isinstance(b, RepeatEnd):
            print("  Repeat end")
        elif isinstance(b, Silence):
            print(f"  Silence:       {b.length} samples")
        elif isinstance(b, Marker):
            print(f"  Marker:        {b.data.hex()}")
        elif isinstance(b, StringBlock):
            print(f"  Text:          {b.text}")

    if len(sound_blocks) > 1:
        print(f"\n  {'Block':>5}  {'Samples':>8}  {'Rate':>6}  {'Codec':>10}")
        print(f"  {'-----':>5}  {'--------':>8}  {'------':>6}  {'----------':>10}")
        for i, b in enumerate(sound_blocks):
            print(f"  {i:5d}  {len(b.data):8,}  {b.sample_rate:6,}  {codec_name(b.codec):>10}")


def export_wav(sound, outdir: str):
    """Export the 8-bit PCM chunks of a sound as a WAV file."""
    base = os.path.splitext(sound.name)[0]
    samples = sound.pcm_u8()

    if not samples:
        print(f"No audio data in {sound.name}", file=sys.stderr)
        return

    sr = sound.sample_rate
    outpath = os.path.join(outdir, f"{base}.wav")

    # Write WAV header (PCM 8-bit unsigned mono)
    data_size = len(samples)
    with open(outpath, 'wb') as f:
        f.write(b'RIFF')
        f.write(struct.pack('<I', 36 + data_size))  # file size - 8
        f.write(b'WAVE')
        f.write(b'fmt ')
        f.write(struct.pack('<I', 16))          # chunk size
        f.write(struct.pack('<H', 1))           # PCM format
        f.write(struct.pack('<H', 1))           # mono
        f.write(struct.pack('<I', sr))          # sample rate
        f.write(struct.pack('<I', sr))          # byte rate (sr * 1 * 1)
        f.write(struct.pack('<H', 1))           # block align
        f.write(struct.pack('<H', 8))           # bits per sample
        f.write(b'data')
        f.write(struct.pack('<I', data_size))
        f.write(samples)

    print(f"Exported {sound.name} → {outpath} ({data_size:,} bytes, "
          f"{sr:,} Hz, {sound.duration():.2f}s)")


def main():
    p = argparse.ArgumentParser(
        description='Dune 1992 Sound File Decoder (VOC format)',
        formatter_class=argparse.RawDescriptionHelpFormatter)
    p.add_argument('files', nargs='+', help='Sound HSQ file(s)')
    p.add_argument('--raw', action='store_true',
                   help='Input is already decompressed')
    p.add_argument('--wav', type=str, default=None, metavar='DIR',
                   help='Export to WAV files in DIR')
    p.add_argument('-v', '--verbose', action='store_true',
                   help='Debug logging')
    args = p.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    failed = 0
    for filepath in args.files:
        if not os.path.exists(filepath):
            print(f"File not found: {filepath}", file=sys.stderr)
            failed += 1
            continue

        name = os.path.basename(filepath)
        raw = open(filepath, 'rb').read()
        try:
            resource = load_resource(raw, name, args.raw or is_uncompressed(name))
            sound = decode_sound(resource.data, name)
        except DecodeError as e:
            print(f"Error: {name}: {e}", file=sys.stderr)
            failed += 1
            continue

        if args.wav:
            os.makedirs(args.wav, exist_ok=True)
            export_wav(sound, args.wav)
        else:
            show_file(sound, resource.size)

        print()

    return 1 if failed else 0


if __name__ == '__main__':
    sys.exit(main() or 0)
