"""
Configuration management for enc_styles package.

This module provides the layer configuration consumed by the symbology
compiler: the display mode selecting the colour palette, the vector source
id, and the shallow/safety/deep depth thresholds used by the conditional
symbology procedures.
"""

import json
import logging
import numbers
from dataclasses import dataclass, asdict
from enum import Enum
from pathlib import Path
from typing import Union

import yaml

from .constants import (
    DEFAULT_SOURCE_ID,
    DEFAULT_SHALLOW_DEPTH,
    DEFAULT_SAFETY_DEPTH,
    DEFAULT_DEEP_DEPTH,
)
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class DisplayMode(str, Enum):
    """S-52 colour scheme for the display's ambient light conditions."""

    DAY = "DAY"
    DUSK = "DUSK"
    NIGHT = "NIGHT"

    @classmethod
    def parse(cls, value: Union[str, "DisplayMode"]) -> "DisplayMode":
        """Return the mode for ``value``, case-insensitively.

        Raises:
            ConfigurationError: If value does not name a mode.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            available = ", ".join(m.value for m in cls)
            raise ConfigurationError(
                f"Unknown display mode '{value}'. Available modes: {available}"
            ) from None


@dataclass(frozen=True)
class LayerConfig:
    """Configuration for a single style compile.

    Attributes:
        mode: Display mode selecting the colour palette.
        source_id: Id of the vector source the layers draw from.
        shallow_depth: Shallow contour in meters.
        safety_depth: Safety contour in meters.
        deep_depth: Deep contour in meters.

    The thresholds are expected to satisfy
    ``shallow_depth <= safety_depth <= deep_depth``. This is not enforced;
    :meth:`validate` only logs a warning when the order is violated.
    """

    mode: DisplayMode = DisplayMode.DAY
    source_id: str = DEFAULT_SOURCE_ID
    shallow_depth: float = DEFAULT_SHALLOW_DEPTH
    safety_depth: float = DEFAULT_SAFETY_DEPTH
    deep_depth: float = DEFAULT_DEEP_DEPTH

    def __post_init__(self):
        """Coerce a mode string to DisplayMode."""
        object.__setattr__(self, "mode", DisplayMode.parse(self.mode))

    @classmethod
    def load_from_file(cls, path: Path) -> "LayerConfig":
        """Load configuration from a YAML or JSON file.

        Args:
            path: Path to configuration file (.yaml, .yml, or .json).

        Returns:
            LayerConfig instance with loaded settings.

        Raises:
            ConfigurationError: If file format is not supported or the file
                holds unknown keys.
            FileNotFoundError: If file does not exist.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, 'r') as f:
            if path.suffix in ['.yaml', '.yml']:
                data = yaml.safe_load(f)
            elif path.suffix == '.json':
                data = json.load(f)
            else:
                raise ConfigurationError(
                    f"Unsupported file format: {path.suffix}. Use .yaml, .yml, or .json"
                )

        try:
            return cls(**(data or {}))
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration in {path}: {e}") from e

    def save_to_file(self, path: Path) -> None:
        """Save configuration to a YAML or JSON file.

        Args:
            path: Path where configuration should be saved.

        Raises:
            ConfigurationError: If file format is not supported.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = asdict(self)
        data['mode'] = self.mode.value

        with open(path, 'w') as f:
            if path.suffix in ['.yaml', '.yml']:
                yaml.dump(data, f, default_flow_style=False, sort_keys=False)
            elif path.suffix == '.json':
                json.dump(data, f, indent=2)
            else:
                raise ConfigurationError(
                    f"Unsupported file format: {path.suffix}. Use .yaml, .yml, or .json"
                )

    def validate(self) -> bool:
        """Validate configuration parameters.

        Returns:
            True if configuration is valid.

        Raises:
            ConfigurationError: If a threshold is not numeric or the source id
                is empty.
        """
        for name in ("shallow_depth", "safety_depth", "deep_depth"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                raise ConfigurationError(
                    f"{name} must be numeric, got {value!r}"
                )

        if not isinstance(self.source_id, str) or not self.source_id:
            raise ConfigurationError("source_id must be a non-empty string")

        if not (self.shallow_depth <= self.safety_depth <= self.deep_depth):
            logger.warning(
                f"Depth thresholds out of order: shallow={self.shallow_depth} "
                f"safety={self.safety_depth} deep={self.deep_depth}"
            )

        return True


def get_default_config() -> LayerConfig:
    """Get a LayerConfig instance with default settings.

    Returns:
        LayerConfig initialized with default values.
    """
    return LayerConfig()
