#!/usr/bin/env python3
"""
Dune 1992 Game File Index

Lists the game files of a directory with their catalog type, HSQ header
state and the decoder tool that handles them.

Usage:
  python3 file_index.py gamedata/            # Full index
  python3 file_index.py gamedata/ --category sprite    # Filter by category
  python3 file_index.py gamedata/ --summary            # Category summary
"""

import argparse
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from dunelib.constants import RESOURCE_DESCRIPTIONS, is_uncompressed, resource_type
from dunelib.errors import DecodeError
from dunelib.resource import ContainerHeader

# Catalog type → decoder tool
TOOLS = {
    'sound': 'sound_decoder.py',
    'sprite': 'sprite_decoder.py',
    'sprite_without_palette': 'sprite_decoder.py',
    'video': 'hnm_decoder.py',
}


def scan_directory(dirpath: str) -> list:
    """Scan game data directory and classify all files."""
    results = []
    for fname in sorted(os.listdir(dirpath)):
        fpath = os.path.join(dirpath, fname)
        if not os.path.isfile(fpath) or fname.startswith('.'):
            continue

        raw = open(fpath, 'rb').read()

        decomp_size = None
        packed = False
        if not is_uncompressed(fname):
            try:
                header = ContainerHeader.from_bytes(raw)
            except DecodeError:
                header = None
            if header is not None and header.is_valid and header.compressed_size == len(raw):
                decomp_size = header.uncompressed_size
                packed = True

        category = resource_type(fname) or 'unknown'

        results.append({
            'filename': fname,
            'raw_size': len(raw),
            'decomp_size': decomp_size,
            'packed': packed,
            'category': category,
            'description': RESOURCE_DESCRIPTIONS.get(category, 'Unclassified'),
            'tool': TOOLS.get(category),
        })

    return results


def show_index(results: list, category_filter: str = None):
    """Display full file index."""
    if category_filter:
        results = [r for r in results if r['category'] == category_filter]

    print(f"{'File':<16s} {'Raw':>7}  {'Decomp':>7}  {'Category':<24s}  {'Tool'}")
    print('-' * 80)

    for r in results:
        decomp = f"{r['decomp_size']:>7,}" if r['packed'] else '     --'
        tool = r['tool'] or '--'
        print(f"{r['filename']:<16s} {r['raw_size']:>7,}  {decomp}  "
              f"{r['category']:<24s}  {tool}")

    print(f"\nTotal: {len(results)} files")


def show_summary(results: list):
    """Display category summary."""
    cats = {}
    for r in results:
        cat = cats.setdefault(r['category'], {
            'count': 0, 'total_raw': 0, 'desc': r['description'], 'tool': r['tool']})
        cat['count'] += 1
        cat['total_raw'] += r['raw_size']

    print(f"{'Category':<24s} {'Count':>5}  {'Size':>9}  {'Tool':<20s}  Description")
    print('-' * 90)

    for name in sorted(cats):
        info = cats[name]
        tool = info['tool'] or '--'
        print(f"{name:<24s} {info['count']:>5}  {info['total_raw']:>9,}  "
              f"{tool:<20s}  {info['desc']}")

    total_files = sum(c['count'] for c in cats.values())
    total_size = sum(c['total_raw'] for c in cats.values())
    print(f"\n{'Total':<24s} {total_files:>5}  {total_size:>9,}")


def main():
    p = argparse.ArgumentParser(
        description='Dune 1992 Game File Index',
        formatter_class=argparse.RawDescriptionHelpFormatter)
    p.add_argument('directory', help='Game data directory')
    p.add_argument('--category', '-c', help='Filter by category')
    p.add_argument('--summary', '-s', action='store_true',
                   help='Show category summary')
    args = p.parse_args()

    if not os.path.isdir(args.directory):
        print(f"Not a directory: {args.directory}", file=sys.stderr)
        return 1

    results = scan_directory(args.directory)

    if args.summary:
        show_summary(results)
    else:
        show_index(results, args.category)

    return 0


if __name__ == '__main__':
    sys.exit(main() or 0)
