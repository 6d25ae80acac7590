"""
dune1992-assets: Decode errors.

Every error derives from DecodeError, itself a ValueError, so tools that
catch ValueError around a decode keep working.
"""


class DecodeError(ValueError):
    """Base class for all asset decoding failures."""


class OutOfRangeRead(DecodeError):
    """A read went past the end of the buffer."""

    def __init__(self, offset: int, count: int, size: int):
        self.offset = offset
        self.count = count
        self.size = size
        super().__init__(
            f"read of {count} byte(s) at offset {offset} exceeds buffer size {size}")


class HeaderChecksumMismatch(DecodeError):
    """HSQ header bytes do not sum to 171."""

    def __init__(self, checksum: int):
        self.checksum = checksum
        super().__init__(f"invalid HSQ header checksum 0x{checksum:02X} (expected 0xAB)")


class FileSizeMismatch(DecodeError):
    """Declared compressed size differs from the real file size."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"wrong file size: header says {expected}, file has {actual}")


class MalformedAnimationHeader(DecodeError):
    """The animation table after the sprite frames cannot be parsed."""


class UnsupportedCodec(DecodeError):
    """A sound block uses a codec that cannot be converted to PCM."""

    def __init__(self, codec):
        self.codec = codec
        name = getattr(codec, 'name', None) or f"0x{codec:02X}"
        super().__init__(f"unsupported sound codec: {name}")


class SoundHeaderError(DecodeError):
    """Creative Voice File header validation failed."""


class InvalidSignature(SoundHeaderError):
    pass


class WrongHeaderSize(SoundHeaderError):
    pass


class UnknownVersion(SoundHeaderError):
    pass


class InvalidChecksum(SoundHeaderError):
    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"invalid VOC version checksum 0x{actual:04X} (expected 0x{expected:04X})")
