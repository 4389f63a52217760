from dataclasses import replace

import pytest

from enc_styles.constants import LINE_WIDTHS_PX
from enc_styles.exceptions import ConfigurationError
from enc_styles.symbology.attributes import DATA_DRIVEN, AttributeReference
from enc_styles.symbology.diagnostics import DiagnosticKind
from enc_styles.symbology.instructions import (
    StyleLayerFragment,
    format_text,
    interpret,
    validate_call,
)
from enc_styles.symbology.lookup import TableSet
from enc_styles.symbology.parser import Choice, InstructionCall, Primitive, parse_call


def _run(text, attributes, context, object_class="BOYLAT"):
    return interpret(parse_call(text), AttributeReference(object_class, attributes, context.diagnostics), context)


def test_symbol_layout(context) -> None:
    (fragment,) = _run("SY(BOYLAT12)", {}, context)
    assert fragment.type == "symbol"
    assert fragment.layout["icon-image"] == "BOYLAT12"
    assert fragment.layout["icon-offset"] == [0.0, -9.0]
    assert fragment.layout["icon-allow-overlap"] is True


def test_rotation_defaults_to_zero_and_is_omitted(context) -> None:
    (fragment,) = _run("SY(BOYLAT12)", {}, context)
    assert "icon-rotate" not in fragment.layout


def test_literal_rotation_is_kept_verbatim(context) -> None:
    (fragment,) = _run("SY(BOYLAT12,45)", {}, context)
    assert fragment.layout["icon-rotate"] == 45
    assert fragment.layout["icon-rotation-alignment"] == "viewport"


def test_attribute_rotation_is_map_aligned(context) -> None:
    (fragment,) = _run("SY(BCNLAT15,ORIENT)", {"ORIENT": 30}, context, "BCNLAT")
    assert fragment.layout["icon-rotate"] == 30
    assert fragment.layout["icon-rotation-alignment"] == "map"


def test_unknown_attribute_rotation_is_data_driven(context) -> None:
    (fragment,) = _run("SY(BCNLAT15,ORIENT)", {"ORIENT": DATA_DRIVEN}, context, "BCNLAT")
    assert fragment.layout["icon-rotate"] == ["get", "ORIENT"]


def test_malformed_rotation_defaults_to_zero(context) -> None:
    (fragment,) = _run("SY(BCNLAT15,ORIENT)", {"ORIENT": "north"}, context, "BCNLAT")
    assert "icon-rotate" not in fragment.layout
    assert len(context.diagnostics.of_kind(DiagnosticKind.MALFORMED_ATTRIBUTE)) == 1


def test_missing_symbol_yields_nothing(context) -> None:
    assert _run("SY(NOSUCH99)", {}, context) == []
    (record,) = context.diagnostics.of_kind(DiagnosticKind.MISSING_ASSET)
    assert record.name == "NOSUCH99"
    assert record.object_class == "BOYLAT"


def test_solid_line(context, palette) -> None:
    (fragment,) = _run("LS(SOLD,2,DEPSC)", {}, context, "DEPCNT")
    assert fragment.type == "line"
    assert fragment.paint["line-color"] == palette.resolve("DAY", "DEPSC")
    assert fragment.paint["line-width"] == LINE_WIDTHS_PX[2]
    assert "line-dasharray" not in fragment.paint


def test_dashed_line(context) -> None:
    (fragment,) = _run("LS(DASH,1,CHGRD)", {}, context, "NAVLNE")
    assert fragment.paint["line-dasharray"] == [4, 2]


def test_complex_line(context) -> None:
    (fragment,) = _run("LC(CBLSUB06)", {}, context, "CBLSUB")
    assert fragment.paint["line-pattern"] == "CBLSUB06"


def test_missing_line_pattern(context) -> None:
    assert _run("LC(NOSUCH01)", {}, context, "CBLSUB") == []
    assert len(context.diagnostics) == 1


def test_area_colour_with_transparency(context, palette) -> None:
    (fragment,) = _run("AC(CHBRN,2)", {}, context, "BUAARE")
    assert fragment.type == "fill"
    assert fragment.paint == {"fill-color": palette.resolve("DAY", "CHBRN"), "fill-opacity": 0.5}


def test_area_pattern(context) -> None:
    (fragment,) = _run("AP(DRGARE01)", {}, context, "DRGARE")
    assert fragment.paint == {
        "fill-pattern": "DRGARE01",
        "fill-opacity": 1.0,
        "fill-translate-anchor": "map",
    }


def test_missing_area_pattern(context) -> None:
    assert _run("AP(NOSUCH01)", {}, context, "RESARE") == []
    assert len(context.diagnostics.of_kind(DiagnosticKind.MISSING_ASSET)) == 1


def test_text_from_known_attribute(context, palette) -> None:
    (fragment,) = _run("TX(OBJNAM,3,2,2,'15110',1,0,CHBLK,26)", {"OBJNAM": "Tower"}, context, "LNDMRK")
    assert fragment.layout["text-field"] == "Tower"
    assert fragment.layout["text-anchor"] == "left"
    assert fragment.paint["text-color"] == palette.resolve("DAY", "CHBLK")


def test_text_from_unknown_attribute(context) -> None:
    (fragment,) = _run("TX(OBJNAM,1,2,3,'15112',0,0,CHBLK,26)", {"OBJNAM": DATA_DRIVEN}, context, "SEAARE")
    assert fragment.layout["text-field"] == ["get", "OBJNAM"]


def test_formatted_text(context) -> None:
    (fragment,) = _run("TE('by %s','OBJNAM',3,1,2,'15110',1,0,CHBLK,21)", {"OBJNAM": "Red"}, context)
    assert fragment.layout["text-field"] == "by Red"


def test_format_text_numbers_and_deferred_values() -> None:
    attributes = AttributeReference("WRECKS", {"VALSOU": 3.27})
    assert format_text("%4.1lf m", ["VALSOU"], attributes) == "3.3 m"
    deferred = format_text("%4.1lf m", ["VALSOU"], AttributeReference("WRECKS", {}))
    assert deferred[0] == "concat"
    assert deferred[-1] == " m"


def test_area_colour_choice_becomes_step_expression(context, palette) -> None:
    selector = ["to-number", ["get", "DRVAL1"], -1.0]
    call = InstructionCall(Primitive.AC, (Choice("step", ((0.0, "DEPVS"), (6.0, "DEPDW")), "DEPIT", selector),))
    (fragment,) = interpret(call, AttributeReference("DEPARE", {}), context)
    assert fragment.paint["fill-color"] == [
        "step", selector,
        palette.resolve("DAY", "DEPIT"),
        0.0, palette.resolve("DAY", "DEPVS"),
        6.0, palette.resolve("DAY", "DEPDW"),
    ]


def test_line_width_choice(context) -> None:
    safety = ["==", ["get", "VALDCO"], 6.0]
    call = InstructionCall(Primitive.LS, (
        parse_call("LS(SOLD,1,DEPCN)").args[0],
        Choice("case", ((safety, 2),), 1),
        Choice("case", ((safety, "DEPSC"),), "DEPCN"),
    ))
    (fragment,) = interpret(call, AttributeReference("DEPCNT", {}), context)
    assert fragment.paint["line-width"] == ["case", safety, LINE_WIDTHS_PX[2], LINE_WIDTHS_PX[1]]
    assert fragment.paint["line-color"][0] == "case"


def test_symbol_choice_skips_missing_symbols(context) -> None:
    deep = [">", ["get", "VALSOU"], 20]
    call = InstructionCall(Primitive.SY, (Choice("case", ((deep, "NOSUCH99"),), "WRECKS01"),))
    (fragment,) = interpret(call, AttributeReference("WRECKS", {}, context.diagnostics), context)
    assert fragment.layout["icon-image"] == ["case", deep, "", "WRECKS01"]
    assert fragment.layout["icon-offset"][0] == "case"
    (record,) = context.diagnostics.of_kind(DiagnosticKind.MISSING_ASSET)
    assert record.name == "NOSUCH99"


def test_conditional_is_expanded(context, palette) -> None:
    lines = replace(context, table_set=TableSet.LINES)
    (fragment,) = _run("CS(DEPCNT02)", {"VALDCO": 6.0}, lines, "DEPCNT")
    assert fragment.paint["line-color"] == palette.resolve("DAY", "DEPSC")


def test_mode_changes_only_colours(context) -> None:
    night = replace(context, config=replace(context.config, mode="NIGHT"))
    (day_fragment,) = _run("LS(SOLD,2,DEPSC)", {}, context, "DEPCNT")
    (night_fragment,) = _run("LS(SOLD,2,DEPSC)", {}, night, "DEPCNT")
    assert day_fragment.paint["line-color"] != night_fragment.paint["line-color"]
    assert day_fragment.paint["line-width"] == night_fragment.paint["line-width"]
    assert day_fragment.layout == night_fragment.layout


def test_fragment_to_layer_key_order() -> None:
    fragment = StyleLayerFragment("fill", paint={"fill-color": "#000000"})
    layer = fragment.to_layer("DEPARE-0-0", "enc", "DEPARE", ["==", ["id"], "x"], {"s52:priority": 1})
    assert list(layer) == ["id", "type", "source", "source-layer", "filter", "metadata", "paint"]


@pytest.mark.parametrize(
    "text",
    ["LS(SOLD,2,NOCOL)", "LS(WAVY,1,CHBLK)", "LS(SOLD,12,CHBLK)", "AC(DEPVS,7)", "AC(NOCOL)"],
)
def test_validate_call_rejects_bad_parameters(palette, text: str) -> None:
    with pytest.raises(ConfigurationError):
        validate_call(parse_call(text), palette, "rule")


def test_validate_call_accepts_table_instructions(palette) -> None:
    validate_call(parse_call("LS(DASH,1,CHGRF)"), palette, "rule")
    validate_call(parse_call("AC(DEPVS)"), palette, "rule")
