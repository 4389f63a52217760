"""
S-52 colour palettes.

One palette per display mode maps colour tokens (``DEPVS``, ``CHBLK``...) to
concrete colours. Every mode must define the same tokens so that switching
mode changes colour values only.
"""

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Union

import matplotlib.colors as mcolors
import yaml

from ..config import DisplayMode
from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

RESOURCES_DIR = Path(__file__).parent / "resources"
DEFAULT_COLORS_PATH = RESOURCES_DIR / "colors.yaml"


def _normalize_color(token: str, value: object) -> str:
    try:
        return mcolors.to_hex(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid colour for token {token}: {value!r}") from e


class ColorPalette:
    """Mode -> colour token -> ``#rrggbb`` lookup."""

    def __init__(self, tables: Mapping[Union[str, DisplayMode], Mapping[str, object]]):
        normalized: Dict[DisplayMode, Mapping[str, str]] = {}
        for mode, table in tables.items():
            mode = DisplayMode.parse(mode)
            normalized[mode] = MappingProxyType({
                str(token): _normalize_color(token, value) for token, value in table.items()
            })

        missing_modes = [m.value for m in DisplayMode if m not in normalized]
        if missing_modes:
            raise ConfigurationError(f"Palette is missing modes: {', '.join(missing_modes)}")

        token_sets = {mode: set(table) for mode, table in normalized.items()}
        reference = token_sets[DisplayMode.DAY]
        for mode, tokens in token_sets.items():
            if tokens != reference:
                difference = sorted(tokens.symmetric_difference(reference))
                raise ConfigurationError(
                    f"Palette for {mode.value} does not define the same tokens as DAY: "
                    f"{', '.join(difference)}"
                )

        self._tables = MappingProxyType(normalized)

    @classmethod
    def load_from_file(cls, path: Union[str, Path]) -> "ColorPalette":
        """Load palettes from a YAML file keyed by mode.

        Raises:
            ConfigurationError: If the file is unreadable or inconsistent.
        """
        path = Path(path)
        try:
            with open(path, "r", encoding="utf8") as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise ConfigurationError(f"Unable to read colour palette '{path}'") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Colour palette '{path}' is not valid YAML: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Colour palette '{path}' must map modes to colour tables")

        palette = cls(data)
        logger.debug(f"Loaded {len(palette.tokens)} colour tokens from {path}")
        return palette

    @property
    def tokens(self) -> Iterable[str]:
        return tuple(sorted(self._tables[DisplayMode.DAY]))

    def has(self, token: str) -> bool:
        return token in self._tables[DisplayMode.DAY]

    def resolve(self, mode: Union[str, DisplayMode], token: str) -> str:
        """Return the colour for ``token`` in ``mode``.

        Raises:
            ConfigurationError: If the token is not defined.
        """
        table = self._tables[DisplayMode.parse(mode)]
        try:
            return table[token]
        except KeyError:
            raise ConfigurationError(f"Unknown colour token '{token}'") from None

    def table(self, mode: Union[str, DisplayMode]) -> Mapping[str, str]:
        return self._tables[DisplayMode.parse(mode)]


_default_palette: Optional[ColorPalette] = None


def load_default_palette() -> ColorPalette:
    """Load the palette bundled with the package (read once, then shared)."""
    global _default_palette
    if _default_palette is None:
        _default_palette = ColorPalette.load_from_file(DEFAULT_COLORS_PATH)
    return _default_palette
