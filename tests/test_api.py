import json
from pathlib import Path

import pytest

from enc_styles import compile_style, create_style, get_available_modes
from enc_styles.config import LayerConfig
from enc_styles.constants import GLYPHS_URL
from enc_styles.exceptions import ConfigurationError, InvalidParameterError
from enc_styles.symbology.catalog import Feature, FeatureCatalog
from enc_styles.symbology.lookup import TableSet

SOURCE = {"type": "vector", "url": "pmtiles://https://example.com/enc.pmtiles"}


def test_style_document_shape(assembler) -> None:
    style = create_style(SOURCE, assembler=assembler)
    assert style["version"] == 8
    assert style["name"] == "S52 Style"
    assert style["glyphs"] == GLYPHS_URL
    assert style["sources"] == {"enc": {"promoteId": "LNAM", **SOURCE}}
    assert len(style["layers"]) > 0


def test_sprite_path_appends_lowercase_mode(assembler) -> None:
    style = create_style(SOURCE, sprite="https://example.com/sprites", mode="NIGHT", assembler=assembler)
    assert style["sprite"] == "https://example.com/sprites/night"


def test_default_mode_is_day(assembler) -> None:
    assert create_style(SOURCE, sprite="/sprites", assembler=assembler)["sprite"] == "/sprites/day"


def test_custom_name_and_source_id(assembler) -> None:
    style = create_style(SOURCE, name="Harbour", config=LayerConfig(source_id="charts"), assembler=assembler)
    assert style["name"] == "Harbour"
    assert list(style["sources"]) == ["charts"]
    assert {layer["source"] for layer in style["layers"]} == {"charts"}


def test_source_is_not_modified(assembler) -> None:
    source = dict(SOURCE)
    create_style(source, assembler=assembler)
    assert source == SOURCE


def test_unknown_mode_is_fatal(assembler) -> None:
    with pytest.raises(ConfigurationError):
        create_style(SOURCE, mode="TWILIGHT", assembler=assembler)


def test_source_must_be_a_mapping(assembler) -> None:
    with pytest.raises(InvalidParameterError):
        create_style("pmtiles://enc.pmtiles", assembler=assembler)


def test_compile_style_returns_diagnostics(assembler) -> None:
    catalog = FeatureCatalog([Feature("SOUNDG", TableSet.POINTS, {"DEPTH": "n/a"})])
    style, diagnostics = compile_style(SOURCE, features=catalog, assembler=assembler)
    assert len(style["layers"]) == 1
    assert len(diagnostics) == 1


def test_create_style_writes_output(tmp_path: Path, assembler) -> None:
    output = tmp_path / "out" / "style.json"
    style = create_style(SOURCE, assembler=assembler, output_path=output)
    assert json.loads(output.read_text()) == style


def test_available_modes() -> None:
    assert get_available_modes() == ["DAY", "DUSK", "NIGHT"]


def _layers(style, source_layer):
    return [layer for layer in style["layers"] if layer["source-layer"] == source_layer]


def test_default_style_bands_depth_areas_per_feature(assembler, palette) -> None:
    style = create_style(SOURCE, assembler=assembler)
    (depth_area,) = _layers(style, "DEPARE")
    fill = depth_area["paint"]["fill-color"]
    assert fill[0] == "step"
    assert fill[1] == ["to-number", ["coalesce", ["get", "DRVAL1"], -1.0], -1.0]
    colours = {palette.resolve("DAY", token) for token in ("DEPIT", "DEPVS", "DEPMS", "DEPMD", "DEPDW")}
    assert set(fill[2::2]) == colours


def test_default_style_colours_soundings_and_contours_by_depth(assembler, palette) -> None:
    style = create_style(SOURCE, assembler=assembler)
    (sounding,) = _layers(style, "SOUNDG")
    assert sounding["layout"]["text-field"] == ["get", "DEPTH"]
    assert sounding["paint"]["text-color"] == [
        "step", ["to-number", ["coalesce", ["get", "DEPTH"], 0.0], 0.0],
        palette.resolve("DAY", "SNDG3"),
        3.0, palette.resolve("DAY", "SNDG2"),
        9.0, palette.resolve("DAY", "SNDG1"),
    ]

    (contour,) = _layers(style, "DEPCNT")
    assert contour["paint"]["line-color"][0] == "case"
    assert contour["paint"]["line-width"][0] == "case"


def test_default_style_lights_follow_colour(assembler) -> None:
    style = create_style(SOURCE, assembler=assembler)
    flare, description = _layers(style, "LIGHTS")
    assert flare["layout"]["icon-image"][0] == "match"
    assert description["layout"]["text-field"][0] == "concat"


def test_depth_settings_move_default_band_thresholds(assembler) -> None:
    config = LayerConfig(shallow_depth=5.0, safety_depth=10.0, deep_depth=20.0)
    style = create_style(SOURCE, config=config, assembler=assembler)
    (depth_area,) = _layers(style, "DEPARE")
    assert depth_area["paint"]["fill-color"][3::2] == [0.0, 5.0, 10.0, 20.0]
