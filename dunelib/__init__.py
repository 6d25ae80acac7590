"""dune1992-assets: decoders for the 1992 Dune game resources."""
from .errors import (  # noqa: F401
    DecodeError, OutOfRangeRead, HeaderChecksumMismatch, FileSizeMismatch,
    MalformedAnimationHeader, UnsupportedCodec, SoundHeaderError,
    InvalidSignature, WrongHeaderSize, UnknownVersion, InvalidChecksum,
)
from .stream import ByteCursor  # noqa: F401
from .compression import hsq_decompress, hsq_get_sizes, hsq_unpack  # noqa: F401
from .constants import AnimationDialect, RESOURCE_FILES, resource_type, sprite_options  # noqa: F401
from .resource import ContainerHeader, Resource, load_resource, open_resource  # noqa: F401
from .palette import Palette, PaletteChunk, read_palette_chunks  # noqa: F401
from .sprite import Sprite, SpriteFrame, decode_sprite, load_sprite  # noqa: F401
from .animation import SpriteAnimation, AnimationFrame, ImageGroup, AnimationImage  # noqa: F401
from .video import Video, VideoFrame, VideoBlock, decode_video, load_video  # noqa: F401
from .sound import Sound, VocCodec, PcmChunk, decode_sound, load_sound  # noqa: F401
