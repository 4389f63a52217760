"""Static symbology data: colour palettes and the sprite symbol registry."""

from .palette import ColorPalette, load_default_palette
from .registry import SymbolEntry, SymbolRegistry, load_default_registry

__all__ = [
    "ColorPalette",
    "SymbolEntry",
    "SymbolRegistry",
    "load_default_palette",
    "load_default_registry",
]
