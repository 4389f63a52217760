import json

import pytest

from enc_styles.config import LayerConfig
from enc_styles.exceptions import ConfigurationError
from enc_styles.symbology.assembler import StyleAssembler, build
from enc_styles.symbology.catalog import Feature, FeatureCatalog
from enc_styles.symbology.diagnostics import DiagnosticKind
from enc_styles.symbology.lookup import LookupTable, TableSet


@pytest.fixture
def buoy_and_contour() -> FeatureCatalog:
    return FeatureCatalog([
        Feature("BOYLAT", TableSet.POINTS, {"CATLAM": 1}),
        Feature("DEPCNT", TableSet.LINES, {"VALDCO": 6.0}),
    ])


def test_end_to_end_buoy_and_contour(assembler, buoy_and_contour) -> None:
    result = assembler.build(LayerConfig(), buoy_and_contour)
    layers = result.layers
    assert [layer["source-layer"] for layer in layers] == ["DEPCNT", "BOYLAT"]

    contour, buoy = layers
    assert contour["metadata"]["s52:priority"] == 3
    assert contour["type"] == "line"
    assert contour["paint"]["line-width"] > 1
    assert buoy["metadata"]["s52:priority"] == 5
    assert buoy["layout"]["icon-image"] == "BOYLAT12"
    assert buoy["source"] == "enc"
    assert len(result.diagnostics) == 0


def test_build_is_deterministic(assembler) -> None:
    first = assembler.build(LayerConfig()).layers
    second = assembler.build(LayerConfig()).layers
    assert json.dumps(first) == json.dumps(second)


def test_layers_are_sorted_by_priority(assembler) -> None:
    priorities = [layer["metadata"]["s52:priority"] for layer in assembler.build(LayerConfig()).layers]
    assert priorities == sorted(priorities)


def test_equal_priorities_keep_arrival_order(assembler) -> None:
    catalog = FeatureCatalog([
        Feature("BOYCAR", TableSet.POINTS, {"CATCAM": 3}, lnam="A"),
        Feature("BOYLAT", TableSet.POINTS, {"CATLAM": 2}, lnam="B"),
        Feature("BOYCAR", TableSet.POINTS, {"CATCAM": 1}, lnam="C"),
    ])
    layers = assembler.build(LayerConfig(), catalog).layers
    assert [layer["filter"][2] for layer in layers] == ["A", "B", "C"]
    assert [layer["layout"]["icon-image"] for layer in layers] == ["BOYCAR03", "BOYLAT24", "BOYCAR01"]


def test_points_draw_above_areas_at_equal_priority(assembler) -> None:
    catalog = FeatureCatalog([
        Feature("WRECKS", TableSet.POINTS, {"VALSOU": 20.0}),
        Feature("WRECKS", TableSet.AREAS, {"VALSOU": 20.0}),
    ])
    layers = assembler.build(LayerConfig(), catalog).layers
    assert [layer["type"] for layer in layers] == ["fill", "line", "symbol"]


def test_mode_isolation(assembler) -> None:
    day = assembler.build(LayerConfig(mode="DAY")).layers
    night = assembler.build(LayerConfig(mode="NIGHT")).layers
    assert [layer["id"] for layer in day] == [layer["id"] for layer in night]
    assert [layer.get("layout") for layer in day] == [layer.get("layout") for layer in night]
    for day_layer, night_layer in zip(day, night):
        for key, value in day_layer.get("paint", {}).items():
            if not key.endswith("color"):
                assert night_layer["paint"][key] == value
    assert any(d.get("paint") != n.get("paint") for d, n in zip(day, night))


def test_unmatched_features_are_skipped(assembler) -> None:
    catalog = FeatureCatalog([Feature("ZZZZZZ", TableSet.POINTS, {})])
    result = assembler.build(LayerConfig(), catalog)
    assert result.layers == []
    assert len(result.diagnostics) == 0


def test_missing_symbol_does_not_stop_other_rules(registry, palette) -> None:
    table = LookupTable.from_records([
        {"object_class": "BOYLAT", "table_set": "POINTS", "instruction": "SY(NOSUCH99)", "priority": 5},
        {"object_class": "COALNE", "table_set": "LINES", "instruction": "LS(SOLD,2,CSTLN)", "priority": 4},
    ])
    result = StyleAssembler(table, registry, palette).build(LayerConfig())
    assert [layer["source-layer"] for layer in result.layers] == ["COALNE"]
    (record,) = result.diagnostics.of_kind(DiagnosticKind.MISSING_ASSET)
    assert record.name == "NOSUCH99"


def test_unknown_colour_token_rejected_at_construction(registry, palette) -> None:
    table = LookupTable.from_records([
        {"object_class": "COALNE", "table_set": "LINES", "instruction": "LS(SOLD,2,NOCOL)", "priority": 4},
    ])
    with pytest.raises(ConfigurationError):
        StyleAssembler(table, registry, palette)


def test_non_numeric_threshold_is_fatal(assembler) -> None:
    with pytest.raises(ConfigurationError):
        assembler.build(LayerConfig(safety_depth="deep"))


def test_feature_with_lnam_is_targeted_by_id(assembler) -> None:
    catalog = FeatureCatalog([Feature("BOYLAT", TableSet.POINTS, {"CATLAM": 1}, lnam="0226ABCD")])
    (layer,) = assembler.build(LayerConfig(), catalog).layers
    assert layer["filter"] == ["==", ["id"], "0226ABCD"]


def test_feature_group_filter(assembler) -> None:
    catalog = FeatureCatalog([Feature("BOYLAT", TableSet.POINTS, {"CATLAM": 1, "OBJNAM": "Red 4"})])
    (layer,) = assembler.build(LayerConfig(), catalog).layers
    assert layer["filter"][0] == "all"
    assert layer["filter"][1] == ["==", ["geometry-type"], "Point"]
    assert ["==", ["to-string", ["get", "CATLAM"]], "1"] in layer["filter"]
    assert ["==", ["to-string", ["get", "OBJNAM"]], "Red 4"] in layer["filter"]


def test_layer_ids_are_unique(assembler) -> None:
    ids = [layer["id"] for layer in assembler.build(LayerConfig()).layers]
    assert len(ids) == len(set(ids))


def test_layers_use_configured_source(assembler, buoy_and_contour) -> None:
    layers = assembler.build(LayerConfig(source_id="charts"), buoy_and_contour).layers
    assert {layer["source"] for layer in layers} == {"charts"}


def test_module_level_build(table, registry, palette, buoy_and_contour) -> None:
    result = build(LayerConfig(), buoy_and_contour, table, registry, palette)
    assert len(result.layers) == 2
