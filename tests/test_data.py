import json
from pathlib import Path

import pytest

from enc_styles.config import DisplayMode
from enc_styles.data import ColorPalette, SymbolRegistry
from enc_styles.exceptions import ConfigurationError, RegistryError


def test_bundled_palette_defines_every_mode(palette) -> None:
    for mode in DisplayMode:
        assert palette.resolve(mode, "CHBLK").startswith("#")


def test_palette_normalises_colours() -> None:
    tables = {mode: {"CHBLK": "black", "DEPVS": (0.5, 0.5, 1.0)} for mode in ("DAY", "DUSK", "NIGHT")}
    palette = ColorPalette(tables)
    assert palette.resolve("DAY", "CHBLK") == "#000000"
    assert palette.resolve("NIGHT", "DEPVS") == "#8080ff"


def test_palette_requires_identical_tokens() -> None:
    tables = {"DAY": {"CHBLK": "black"}, "DUSK": {"CHBLK": "black"}, "NIGHT": {"CHWHT": "white"}}
    with pytest.raises(ConfigurationError):
        ColorPalette(tables)


def test_palette_requires_every_mode() -> None:
    with pytest.raises(ConfigurationError):
        ColorPalette({"DAY": {"CHBLK": "black"}})


def test_palette_rejects_bad_colour() -> None:
    tables = {mode: {"CHBLK": "not-a-colour"} for mode in ("DAY", "DUSK", "NIGHT")}
    with pytest.raises(ConfigurationError):
        ColorPalette(tables)


def test_unknown_token(palette) -> None:
    assert not palette.has("NOCOL")
    with pytest.raises(ConfigurationError):
        palette.resolve("DAY", "NOCOL")


def test_registry_offset_centres_pivot() -> None:
    registry = SymbolRegistry.from_dict({"X": {"x": 0, "y": 0, "width": 20, "height": 30, "pivot": [10, 25]}})
    assert registry["X"].offset == (0.0, -10.0)
    assert registry["X"].bbox == (0.0, 0.0, 20.0, 30.0)


def test_registry_default_pivot_is_centre() -> None:
    registry = SymbolRegistry.from_dict({"X": {"width": 8, "height": 8}})
    assert registry["X"].offset == (0.0, 0.0)


def test_registry_lookup_of_missing_name(registry) -> None:
    assert "BOYLAT12" in registry
    assert registry.get("NOSUCH99") is None


def test_registry_load_errors(tmp_path: Path) -> None:
    with pytest.raises(RegistryError):
        SymbolRegistry.load_from_file(tmp_path / "missing.json")
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"X": {"height": 8}}))
    with pytest.raises(RegistryError):
        SymbolRegistry.load_from_file(path)
