"""
dune1992-assets: Format constants and the resource catalog.

The original engine selected several decoding quirks by comparing file
names. Those decisions are collected here so decoders receive them as
explicit arguments instead.
"""

import os
from enum import Enum


# =============================================================================
# FORMAT CONSTANTS
# =============================================================================

SCREEN_WIDTH = 320
SCREEN_HEIGHT = 200
PALETTE_SIZE = 256

# HNM sub-block tags (uint16 LE of the two ASCII characters)
HNM_TAG_PALETTE = 0x6C70   # 'pl'
HNM_TAG_SOUND = 0x6473     # 'sd'
HNM_TAG_MM = 0x6D6D        # 'mm' (unknown)
HNM_TAG_KL = 0x6C6B        # 'kl' (collision map?)
HNM_TAG_PT = 0x7470        # 'pt' (game related?)
HNM_SKIPPED_TAGS = (HNM_TAG_MM, HNM_TAG_KL, HNM_TAG_PT)

HNM_FRAME_RATE = 15.0
HNM_SOUND_RATE = 11111     # 'sd' payloads: 8-bit unsigned PCM
HNM_COPY_PROTECTION_SKIP = 58
HNM_BLOCK_CHECKSUMS = (0xAB, 0xAC, 0xAD)   # accepted video block header sums

VOC_MAGIC = b'Creative Voice File\x1a'
VOC_HEADER_SIZE = 26
VOC_VERSIONS = (0x010A, 0x0114)

# Highest sprite index of each animation in DEATH1.HSQ
SEGMENTED_ANIMATION_LIMITS = (25, 21, 33)


class AnimationDialect(Enum):
    """Layout of the animation table that follows the sprite frames."""
    GENERIC = 'generic'
    SWAP = 'swap'            # SHAI.HSQ: worm, clear-region markers
    SEGMENTED = 'segmented'  # DEATH1.HSQ: several animations in one table


# =============================================================================
# RESOURCE CATALOG
# =============================================================================

RESOURCE_FILES = {
    'music': [
        'ARRAKIS.HSQ', 'BAGDAD.HSQ', 'MORNING.HSQ', 'SEKENCE.HSQ',
        'SIETCHM.HSQ', 'WARSONG.HSQ', 'WATER.HSQ', 'WORMINTR.HSQ',
        'WORMSUIT.HSQ',
    ],
    'game_logic': [
        'CONDIT.HSQ', 'DIALOGUE.HSQ', 'VERBIN.HSQ', 'DUNESDB.HSQ',
        'DUNEADL.HSQ', 'DUNEADG.HSQ', 'DUNEMID.HSQ', 'DUNEPCS.HSQ',
        'DUNEVGA.HSQ',
    ],
    'font': ['DUNECHAR.HSQ', 'GENERIC.HSQ'],
    'sound': [
        'SD1.HSQ', 'SD2.HSQ', 'SD3.HSQ', 'SD4.HSQ', 'SD5.HSQ', 'SD6.HSQ',
        'SD7.HSQ', 'SD8.HSQ', 'SD9.HSQ', 'SDA.HSQ', 'SDB.HSQ',
    ],
    'sentence': [
        'PHRASE11.HSQ', 'PHRASE12.HSQ', 'COMMAND1.HSQ',
        'PHRASE21.HSQ', 'PHRASE22.HSQ', 'COMMAND2.HSQ',
        'PHRASE31.HSQ', 'PHRASE32.HSQ', 'COMMAND3.HSQ',
    ],
    'scene': ['VILG.SAL', 'SIET.SAL', 'PALACE.SAL', 'HARK.SAL'],
    'sprite_without_palette': [
        'DEATH2.HSQ', 'DEATH3.HSQ', 'DUNES.HSQ', 'DUNES2.HSQ', 'DUNES3.HSQ',
        'ICONES.HSQ', 'PALPLAN.HSQ', 'SHAI2.HSQ', 'SIET0.HSQ',
    ],
    'sprite': [
        'ATTACK.HSQ', 'BACK.HSQ', 'BALCON.HSQ', 'BARO.HSQ', 'BOOK.HSQ',
        'BOTA.HSQ', 'BUNK.HSQ', 'CHAN.HSQ', 'CHANKISS.HSQ', 'COMM.HSQ',
        'CORR.HSQ', 'CREDITS.HSQ', 'CRYO.HSQ', 'DEATH1.HSQ', 'EMPR.HSQ',
        'EQUI.HSQ', 'FEYD.HSQ', 'FINAL.HSQ', 'FORT.HSQ', 'FRESK.HSQ',
        'FRM1.HSQ', 'FRM2.HSQ', 'FRM3.HSQ', 'GURN.HSQ', 'HARA.HSQ',
        'HARK.HSQ', 'HAWA.HSQ', 'IDAH.HSQ', 'INTDS.HSQ', 'JESS.HSQ',
        'KYNE.HSQ', 'LETO.HSQ', 'MIRROR.HSQ', 'MOIS.HSQ', 'ONMAP.HSQ',
        'ORNY.HSQ', 'ORNYCAB.HSQ', 'ORNYPAN.HSQ', 'ORNYTK.HSQ', 'PAUL.HSQ',
        'PERS.HSQ', 'POR.HSQ', 'PROUGE.HSQ', 'SERRE.HSQ', 'SHAI.HSQ',
        'SIET1.HSQ', 'SKY.HSQ', 'SMUG.HSQ', 'STARS.HSQ', 'STIL.HSQ',
        'SUN.HSQ', 'SUNRS.HSQ', 'VER.HSQ', 'VILG.HSQ', 'VIS.HSQ',
    ],
    'globe': ['GLOBDATA.HSQ', 'MAP.HSQ', 'MAP2.HSQ'],
    'video': ['LOGO.HNM', 'PRT.HNM'],
}

RESOURCE_DESCRIPTIONS = {
    'music': 'Music',
    'game_logic': 'Game logic',
    'font': 'Font',
    'sound': 'Sound FX (Creative Voice File)',
    'sentence': 'Sentences',
    'scene': 'Rooms',
    'sprite_without_palette': 'Sprite - No palette',
    'sprite': 'Sprite',
    'globe': 'Globe',
    'video': 'FMV (HNM)',
}

# Stored without an HSQ header even though the extension says otherwise
UNCOMPRESSED_FILES = {'SD5.HSQ'}

ANIMATION_DIALECTS = {
    'SHAI.HSQ': AnimationDialect.SWAP,
    'DEATH1.HSQ': AnimationDialect.SEGMENTED,
}

# Day/night palette sets stored after the frames instead of animations
ALTERNATE_PALETTE_FILES = {'SUNRS.HSQ', 'BALCON.HSQ', 'SKY.HSQ'}

# Sprites whose frame headers are followed by 2 extra bytes
FRAME_PADDING_PREFIX = 'DUNES'

COPY_PROTECTION_VIDEO = 'PRT.HNM'

_TYPE_BY_NAME = {name: rtype for rtype, names in RESOURCE_FILES.items() for name in names}


def normalize_name(name: str) -> str:
    """Catalog key for a path: upper-case base name."""
    return os.path.basename(name).upper()


def resource_type(name: str):
    """Catalog resource type of a file, or None when unknown."""
    key = normalize_name(name)
    rtype = _TYPE_BY_NAME.get(key)
    if rtype is None:
        ext = os.path.splitext(key)[1]
        if ext == '.HNM':
            return 'video'
        if ext == '.SAL':
            return 'scene'
    return rtype


def is_uncompressed(name: str) -> bool:
    key = normalize_name(name)
    return key in UNCOMPRESSED_FILES or key.endswith('.HNM')


def animation_dialect(name: str) -> AnimationDialect:
    return ANIMATION_DIALECTS.get(normalize_name(name), AnimationDialect.GENERIC)


def has_alternate_palettes(name: str) -> bool:
    return normalize_name(name) in ALTERNATE_PALETTE_FILES


def frame_header_padding(name: str) -> int:
    return 2 if normalize_name(name).startswith(FRAME_PADDING_PREFIX) else 0


def is_copy_protection_video(name: str) -> bool:
    return normalize_name(name) == COPY_PROTECTION_VIDEO


def sprite_options(name: str) -> dict:
    """Keyword arguments for decode_sprite() matching a catalog file."""
    return {
        'dialect': animation_dialect(name),
        'alternate_palettes': has_alternate_palettes(name),
        'frame_header_padding': frame_header_padding(name),
    }
