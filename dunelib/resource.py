"""
dune1992-assets: Resource container loader.

Every game asset goes through the same entry point: a 6-byte HSQ header
whose bytes sum to 171 marks a compressed resource; any other sum means the
file is used as-is.
"""

import logging
import os
from dataclasses import dataclass

from .compression import (HSQ_HEADER_SIZE, HSQ_VALID_CHECKSUM, hsq_get_sizes,
                          hsq_unpack)
from .constants import is_uncompressed
from .errors import FileSizeMismatch, HeaderChecksumMismatch
from .stream import ByteCursor

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContainerHeader:
    uncompressed_size: int
    is_compressed: int      # raw flag byte, informational
    compressed_size: int
    checksum: int

    @property
    def is_valid(self) -> bool:
        return self.checksum == HSQ_VALID_CHECKSUM

    @classmethod
    def from_bytes(cls, data: bytes) -> 'ContainerHeader':
        decomp, comp, checksum = hsq_get_sizes(data)
        return cls(decomp, data[2], comp, checksum)


@dataclass(frozen=True)
class Resource:
    """Unpacked content of one game file."""
    name: str
    data: bytes
    compressed: bool = False
    header: ContainerHeader = None

    @property
    def size(self) -> int:
        return len(self.data)

    def stream(self) -> ByteCursor:
        """A fresh cursor over the unpacked bytes."""
        return ByteCursor(self.data)


def load_resource(data: bytes, name: str = '', uncompressed: bool = False) -> Resource:
    """
    Unpack a resource file already read into memory.

    Args:
        data: Raw file contents
        name: File name, used for messages only
        uncompressed: Skip the header entirely and use data as-is

    Returns:
        Resource with the unpacked bytes

    Raises:
        FileSizeMismatch: header compressed size != len(data)
    """
    data = bytes(data)
    if uncompressed:
        return Resource(name, data)

    header = ContainerHeader.from_bytes(data)

    if header.compressed_size != len(data):
        raise FileSizeMismatch(header.compressed_size, len(data))

    if not header.is_valid:
        err = HeaderChecksumMismatch(header.checksum)
        log.warning("%s: %s, using file as raw data", name or 'resource', err)
        return Resource(name, data, header=header)

    unpacked = hsq_unpack(ByteCursor(data, HSQ_HEADER_SIZE), header.uncompressed_size)
    log.debug("%s: %d -> %d bytes", name or 'resource', len(data), len(unpacked))
    return Resource(name, unpacked, compressed=True, header=header)


def open_resource(path: str, uncompressed: bool = None) -> Resource:
    """
    Read a game file and unpack it.

    uncompressed=None looks the file up in the resource catalog.
    """
    name = os.path.basename(path)
    if uncompressed is None:
        uncompressed = is_uncompressed(name)

    with open(path, 'rb') as f:
        raw = f.read()

    return load_resource(raw, name, uncompressed)
