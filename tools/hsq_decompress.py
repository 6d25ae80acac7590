#!/usr/bin/env python
"""
Dune 1992 HSQ Decompressor
============================
Decompress HSQ (Cryo Interactive LZ77-variant) compressed game resources.

Files whose header checksum is not 171 are reported and left alone; the
game loads those as raw data.

Usage:
  python hsq_decompress.py CONDIT.HSQ                    # Decompress to CONDIT.bin
  python hsq_decompress.py CONDIT.HSQ -o CONDIT_dec.bin   # Custom output name
  python hsq_decompress.py CONDIT.HSQ --info              # Show header info only
  python hsq_decompress.py *.HSQ                          # Batch decompress
"""

import sys
import os
import argparse
import glob
import logging

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from dunelib.errors import DecodeError
from dunelib.resource import ContainerHeader
from dunelib.compression import hsq_decompress


def main():
    p = argparse.ArgumentParser(description='Dune 1992 HSQ Decompressor')
    p.add_argument('files', nargs='+', help='HSQ file(s) to decompress')
    p.add_argument('-o', '--output', default=None, help='Output file (single file mode only)')
    p.add_argument('--info', action='store_true', help='Show header info without decompressing')
    p.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    args = p.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    # Expand globs on Windows
    files = []
    for pattern in args.files:
        expanded = glob.glob(pattern)
        files.extend(expanded if expanded else [pattern])

    failed = 0
    for path in files:
        with open(path, 'rb') as f:
            raw = f.read()

        try:
            header = ContainerHeader.from_bytes(raw)
        except DecodeError as e:
            print(f"  SKIP {path}: {e}")
            continue

        if args.info:
            state = 'ok' if header.is_valid else 'not HSQ'
            print(f"  {path}: {len(raw)} bytes → {header.uncompressed_size} bytes "
                  f"(header says comp={header.compressed_size}, "
                  f"checksum=0x{header.checksum:02X} {state})")
            continue

        try:
            data = hsq_decompress(raw)
        except DecodeError as e:
            print(f"  ERROR {path}: {e}", file=sys.stderr)
            failed += 1
            continue

        if args.output and len(files) == 1:
            out_path = args.output
        else:
            base = os.path.splitext(path)[0]
            out_path = base + '.bin'

        with open(out_path, 'wb') as f:
            f.write(data)

        ratio = len(data) / len(raw) if len(raw) > 0 else 0
        print(f"  {path}: {len(raw):,} → {len(data):,} bytes ({ratio:.1f}x) → {out_path}")

    return 1 if failed else 0


if __name__ == '__main__':
    sys.exit(main() or 0)
