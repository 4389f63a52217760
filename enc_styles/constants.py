"""
Constants and fixed parameters for enc_styles package.

This module defines the style document constants, the S-52 drawing unit
tables (line widths, dash patterns, transparency, text justification) and the
S-57 enumerations used by the conditional symbology procedures.
"""

import numpy as np

# ============================================================================
# Style Document
# ============================================================================

STYLE_VERSION = 8
DEFAULT_STYLE_NAME = "S52 Style"
GLYPHS_URL = "https://fonts.openmaptiles.org/{fontstack}/{range}.pbf"
DEFAULT_SPRITE_BASE = "sprites"

# S-57 long name, promoted to the feature id so filters can use ["id"]
FEATURE_ID_FIELD = "LNAM"

# ============================================================================
# Layer Configuration Defaults
# ============================================================================

DEFAULT_SOURCE_ID = "enc"
DEFAULT_SHALLOW_DEPTH = 3.0  # meters (9.8 feet)
DEFAULT_SAFETY_DEPTH = 6.0  # meters (19.6 feet)
DEFAULT_DEEP_DEPTH = 9.0  # meters (29.5 feet)

# ============================================================================
# Line Styles
# ============================================================================

# S-52 width unit is 0.32 mm; converted to CSS pixels at 96 dpi.
PIXEL_SIZE_MM = 0.32
SCREEN_DPI = 96.0
LINE_WIDTH_UNITS = np.arange(1, 10)
LINE_WIDTHS_PX = dict(
    zip(
        LINE_WIDTH_UNITS.tolist(),
        np.round(LINE_WIDTH_UNITS * PIXEL_SIZE_MM * SCREEN_DPI / 25.4, 2).tolist(),
    )
)

# Dash arrays are in line-width units (MapLibre line-dasharray semantics)
LINE_DASH_PATTERNS = {
    "SOLD": None,
    "DASH": [4, 2],
    "DOTT": [1, 2],
}

# ============================================================================
# Area Fills
# ============================================================================

# S-52 transparency 0 (opaque) .. 4 (fully transparent) in 25% steps
AREA_TRANSPARENCY_OPACITY = {
    0: 1.0,
    1: 0.75,
    2: 0.5,
    3: 0.25,
    4: 0.0,
}

# ============================================================================
# Text
# ============================================================================

TEXT_FONT_REGULAR = ["Noto Sans Regular"]
TEXT_FONT_BOLD = ["Noto Sans Bold"]
TEXT_FONT_ITALIC = ["Noto Sans Italic"]

# 1 pica point = 0.351 mm
PICA_POINT_MM = 0.351
DEFAULT_TEXT_SIZE_PT = 10
TEXT_HALO_COLOR_TOKEN = "NODTA"
TEXT_HALO_WIDTH = 1.0

# (HJUST, VJUST) -> text-anchor. HJUST 1=centre 2=right 3=left,
# VJUST 1=bottom 2=centre 3=top.
TEXT_ANCHORS = {
    (1, 1): "bottom",
    (1, 2): "center",
    (1, 3): "top",
    (2, 1): "bottom-right",
    (2, 2): "right",
    (2, 3): "top-right",
    (3, 1): "bottom-left",
    (3, 2): "left",
    (3, 3): "top-left",
}

# ============================================================================
# Symbols
# ============================================================================

DEFAULT_LIGHT_FLARE_ROTATION = 135.0

# ============================================================================
# S-57 Enumerations
# ============================================================================

# COLOUR attribute codes -> light description abbreviation
COLOUR_ABBREVIATIONS = {
    1: "W",
    2: "Bl",
    3: "R",
    4: "G",
    5: "Bu",
    6: "Y",
    7: "Gy",
    8: "Br",
    9: "Am",
    10: "Vi",
    11: "Or",
    12: "Mg",
    13: "Pk",
}

# LITCHR attribute codes -> light character abbreviation
LIGHT_CHARACTERS = {
    1: "F",
    2: "Fl",
    3: "LFl",
    4: "Q",
    5: "VQ",
    6: "UQ",
    7: "Iso",
    8: "Oc",
    9: "IQ",
    10: "IVQ",
    11: "IUQ",
    12: "Mo",
    13: "FFl",
    14: "Fl+LFl",
    15: "OcFl",
    16: "FLFl",
    17: "Al.Oc",
    18: "Al.LFl",
    19: "Al.Fl",
    20: "Al.Gr",
    25: "Q+LFl",
    26: "VQ+LFl",
    27: "UQ+LFl",
    28: "Al",
    29: "Al.FFl",
}

# Soundings at or deeper than this are shown without decimals
SOUNDING_INTEGER_DEPTH = 31.0
