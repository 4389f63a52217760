"""
Read-only symbol and pattern registry.

The registry is the index of the sprite sheet the renderer loads: for every
symbol name it records where the image sits in the sheet and where its pivot
point is. The compiler only reads it. A name with no entry is a normal,
handled state (the primitive drawing it contributes nothing).

The file format is a MapLibre sprite index extended with an optional
``pivot`` (pixels from the image's top-left corner) and ``offset``:

    {"BOYLAT12": {"x": 72, "y": 0, "width": 18, "height": 26,
                  "pixelRatio": 1, "pivot": [9, 22]}}
"""

import json
import logging
from collections import abc
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional, Tuple, Union

from ..exceptions import RegistryError

logger = logging.getLogger(__name__)

RESOURCES_DIR = Path(__file__).parent / "resources"
DEFAULT_SYMBOLS_PATH = RESOURCES_DIR / "symbols.json"


@dataclass(frozen=True)
class SymbolEntry:
    """Placement data for one symbol.

    Attributes:
        offset: icon-offset in pixels moving the image centre onto the pivot.
        pivot: Pivot point in pixels from the image's top-left corner.
        bbox: (x, y, width, height) of the image within the sprite sheet.
    """

    offset: Tuple[float, float]
    pivot: Tuple[float, float]
    bbox: Tuple[float, float, float, float]

    @classmethod
    def from_index(cls, name: str, data: Mapping) -> "SymbolEntry":
        try:
            x = float(data.get("x", 0))
            y = float(data.get("y", 0))
            width = float(data["width"])
            height = float(data["height"])
        except (KeyError, TypeError, ValueError) as e:
            raise RegistryError(f"Invalid registry entry for symbol '{name}': {e}") from e

        pivot = data.get("pivot", [width / 2, height / 2])
        pivot = (float(pivot[0]), float(pivot[1]))

        offset = data.get("offset")
        if offset is None:
            offset = (width / 2 - pivot[0], height / 2 - pivot[1])
        offset = (float(offset[0]), float(offset[1]))

        return cls(offset=offset, pivot=pivot, bbox=(x, y, width, height))


class SymbolRegistry(abc.Mapping):
    """Immutable mapping of symbol name to :class:`SymbolEntry`.

    Safe to share between concurrent compiles.
    """

    def __init__(self, entries: Optional[Mapping[str, SymbolEntry]] = None):
        self._entries: Mapping[str, SymbolEntry] = MappingProxyType(dict(entries or {}))

    @classmethod
    def from_dict(cls, data: Mapping[str, Mapping]) -> "SymbolRegistry":
        return cls({name: SymbolEntry.from_index(name, entry) for name, entry in data.items()})

    @classmethod
    def load_from_file(cls, path: Union[str, Path]) -> "SymbolRegistry":
        """Load a registry from a sprite index JSON file.

        Raises:
            RegistryError: If the file cannot be read or is not a JSON object.
        """
        path = Path(path)
        try:
            with open(path, "r", encoding="utf8") as f:
                data = json.load(f)
        except OSError as e:
            raise RegistryError(f"Unable to read symbol registry '{path}'") from e
        except json.JSONDecodeError as e:
            raise RegistryError(f"Symbol registry '{path}' is not valid JSON") from e

        if not isinstance(data, dict):
            raise RegistryError(f"Symbol registry '{path}' must contain a JSON object")

        registry = cls.from_dict(data)
        logger.debug(f"Loaded {len(registry)} symbols from {path}")
        return registry

    def __getitem__(self, name: str) -> SymbolEntry:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def to_dict(self) -> Dict[str, Dict]:
        return {
            name: {"offset": list(e.offset), "pivot": list(e.pivot), "bbox": list(e.bbox)}
            for name, e in self._entries.items()
        }


def load_default_registry() -> SymbolRegistry:
    """Load the symbol registry bundled with the package."""
    return SymbolRegistry.load_from_file(DEFAULT_SYMBOLS_PATH)
