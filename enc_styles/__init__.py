"""
enc_styles - Compile S-52 chart symbology into MapLibre styles for ENC vector tiles.

This package turns the IHO S-52 presentation library (lookup tables,
conditional symbology procedures and drawing instructions) into an ordered
list of MapLibre style layers, and wraps them into a style document bound to
a vector tile source and a sprite sheet.

Quick Start:
    >>> from enc_styles import create_style
    >>>
    >>> style = create_style(
    ...     source={"type": "vector", "url": "pmtiles://https://example.com/enc.pmtiles"},
    ...     sprite="https://example.com/sprites",
    ...     mode="DUSK",
    ... )

    >>> # One style per display mode
    >>> from enc_styles import build_all_modes
    >>> result = build_all_modes(
    ...     {"type": "vector", "url": "pmtiles://enc.pmtiles"},
    ...     output_dir="styles",
    ... )

Advanced Usage:
    >>> # Direct access to components
    >>> from enc_styles import LayerConfig, StyleAssembler, FeatureCatalog
    >>>
    >>> config = LayerConfig(mode="NIGHT", safety_depth=10.0, deep_depth=20.0)
    >>> catalog = FeatureCatalog.load_from_file("features.json")
    >>> result = StyleAssembler().build(config, catalog)
    >>> for record in result.diagnostics:
    ...     print(record)
"""

__version__ = "0.1.0"

# Initialize logging with default settings
from .logging_config import setup_logging
setup_logging()

# Core constants and configuration
from .constants import DEFAULT_STYLE_NAME, GLYPHS_URL, STYLE_VERSION
from .config import DisplayMode, LayerConfig, get_default_config

# Static data
from .data import ColorPalette, SymbolRegistry

# Symbology compiler
from .symbology import (
    CompileResult,
    Diagnostics,
    Feature,
    FeatureCatalog,
    LookupTable,
    StyleAssembler,
    TableSet,
)

# User-facing API
from .api import compile_style, create_style, get_available_modes

# Batch processing
from .batch import BatchStyleGenerator, build_all_modes

# Exceptions
from .exceptions import (
    EncStylesError,
    ConfigurationError,
    RegistryError,
    InvalidParameterError
)

__all__ = [
    # Version
    "__version__",

    # Configuration
    "DEFAULT_STYLE_NAME",
    "GLYPHS_URL",
    "STYLE_VERSION",
    "DisplayMode",
    "LayerConfig",
    "get_default_config",

    # Static data
    "ColorPalette",
    "SymbolRegistry",

    # Compiler
    "CompileResult",
    "Diagnostics",
    "Feature",
    "FeatureCatalog",
    "LookupTable",
    "StyleAssembler",
    "TableSet",

    # API
    "compile_style",
    "create_style",
    "get_available_modes",

    # Batch
    "BatchStyleGenerator",
    "build_all_modes",

    # Exceptions
    "EncStylesError",
    "ConfigurationError",
    "RegistryError",
    "InvalidParameterError",
]
