"""
Main API module for enc_styles package.

This module provides the user-facing functions that wrap the symbology
compiler into a complete MapLibre style document bound to a vector source
and a sprite sheet. The primary function `create_style()` handles the
whole workflow in a single call.

Example:
    >>> from enc_styles import create_style
    >>>
    >>> style = create_style(
    ...     source={"type": "vector", "url": "pmtiles://https://example.com/enc.pmtiles"},
    ...     sprite="https://example.com/sprites",
    ...     mode="NIGHT",
    ... )
    >>> style["sprite"]
    'https://example.com/sprites/night'
"""

import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .config import DisplayMode, LayerConfig
from .constants import (
    DEFAULT_SPRITE_BASE,
    DEFAULT_STYLE_NAME,
    FEATURE_ID_FIELD,
    GLYPHS_URL,
    STYLE_VERSION,
)
from .exceptions import InvalidParameterError
from .symbology.assembler import StyleAssembler
from .symbology.catalog import FeatureCatalog
from .symbology.diagnostics import Diagnostics

logger = logging.getLogger(__name__)


def get_available_modes() -> List[str]:
    """
    Get the display modes a style can be compiled for.

    Example:
        >>> get_available_modes()
        ['DAY', 'DUSK', 'NIGHT']
    """
    return [mode.value for mode in DisplayMode]


def sprite_url(sprite: Optional[str], mode: Union[str, DisplayMode]) -> str:
    """Return the mode specific sprite path, ``{sprite}/{mode}``."""
    base = (sprite or DEFAULT_SPRITE_BASE).rstrip("/")
    return f"{base}/{DisplayMode.parse(mode).value.lower()}"


def compile_style(
    source: Mapping[str, Any],
    name: str = DEFAULT_STYLE_NAME,
    mode: Optional[Union[str, DisplayMode]] = None,
    sprite: Optional[str] = None,
    config: Optional[LayerConfig] = None,
    features: Optional[FeatureCatalog] = None,
    assembler: Optional[StyleAssembler] = None,
) -> Tuple[Dict[str, Any], Diagnostics]:
    """
    Compile a complete style document and return it with its diagnostics.

    Args:
        source: Vector source descriptor (passed through to the document)
        name: Style name
        mode: Display mode (DAY, DUSK, NIGHT). Overrides ``config.mode``;
            defaults to DAY when neither is given.
        sprite: Base URL of the sprite sheets
        config: Layer configuration (source id and depth thresholds)
        features: Catalog of tiled features; defaults to one feature group
            per lookup rule
        assembler: Assembler to reuse across calls; a default one is built
            when omitted

    Returns:
        Tuple of (style document, diagnostics)

    Raises:
        InvalidParameterError: If source is not a mapping
        ConfigurationError: If the mode, config or static tables are invalid
    """
    if not isinstance(source, Mapping):
        raise InvalidParameterError(
            f"source must be a mapping describing a vector source, got {type(source).__name__}"
        )

    if config is None:
        config = LayerConfig()
    if mode is not None:
        config = replace(config, mode=DisplayMode.parse(mode))

    if assembler is None:
        assembler = StyleAssembler()

    logger.info(f"Creating style '{name}' ({config.mode.value}, source '{config.source_id}')")
    result = assembler.build(config, features)

    document = {
        "version": STYLE_VERSION,
        "name": name,
        "sprite": sprite_url(sprite, config.mode),
        "glyphs": GLYPHS_URL,
        "sources": {
            config.source_id: {"promoteId": FEATURE_ID_FIELD, **dict(source)},
        },
        "layers": result.layers,
    }
    return document, result.diagnostics


def create_style(
    source: Mapping[str, Any],
    name: str = DEFAULT_STYLE_NAME,
    mode: Optional[Union[str, DisplayMode]] = None,
    sprite: Optional[str] = None,
    config: Optional[LayerConfig] = None,
    features: Optional[FeatureCatalog] = None,
    assembler: Optional[StyleAssembler] = None,
    output_path: Optional[Union[str, Path]] = None,
) -> Dict[str, Any]:
    """
    Create a MapLibre style document for ENC vector tiles.

    Takes the same arguments as :func:`compile_style`. Diagnostics are
    logged but not returned; use :func:`compile_style` to inspect them.

    Args:
        output_path: If given, the document is also written there as JSON

    Returns:
        Style document (version, name, sprite, glyphs, sources, layers)

    Example:
        >>> style = create_style({"type": "vector", "url": "pmtiles://enc.pmtiles"})
        >>> style["sources"]["enc"]["promoteId"]
        'LNAM'
    """
    document, diagnostics = compile_style(
        source,
        name=name,
        mode=mode,
        sprite=sprite,
        config=config,
        features=features,
        assembler=assembler,
    )
    if len(diagnostics):
        logger.warning(f"Style '{name}' compiled with {len(diagnostics)} diagnostics")

    if output_path is not None:
        write_style(document, output_path)
    return document


def write_style(document: Mapping[str, Any], output_path: Union[str, Path]) -> Path:
    """Write a style document as indented JSON, creating parent directories."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf8") as f:
        json.dump(document, f, indent=2)
    logger.info(f"Style saved to {output_path}")
    return output_path
