from enc_styles.symbology.attributes import DATA_DRIVEN, AttributeReference
from enc_styles.symbology.diagnostics import DiagnosticKind, Diagnostics


def test_missing_attribute_returns_default_silently() -> None:
    diagnostics = Diagnostics()
    attributes = AttributeReference("SOUNDG", {}, diagnostics)
    assert attributes.get_float("DEPTH", 0.0) == 0.0
    assert len(diagnostics) == 0


def test_numeric_strings_are_parsed() -> None:
    attributes = AttributeReference("DEPCNT", {"VALDCO": "6", "QUAPOS": "4.0"})
    assert attributes.get_float("VALDCO") == 6.0
    assert attributes.get_int("QUAPOS") == 4


def test_malformed_value_records_diagnostic() -> None:
    diagnostics = Diagnostics()
    attributes = AttributeReference("DEPARE", {"DRVAL1": "shallow"}, diagnostics)
    assert attributes.get_float("DRVAL1", -1.0) == -1.0
    records = diagnostics.of_kind(DiagnosticKind.MALFORMED_ATTRIBUTE)
    assert len(records) == 1
    assert records[0].name == "DRVAL1"
    assert records[0].object_class == "DEPARE"


def test_nan_is_malformed() -> None:
    diagnostics = Diagnostics()
    attributes = AttributeReference("SOUNDG", {"DEPTH": float("nan")}, diagnostics)
    assert attributes.get_float("DEPTH", 0.0) == 0.0
    assert len(diagnostics) == 1


def test_list_attribute_forms() -> None:
    assert AttributeReference("LIGHTS", {"COLOUR": "1,3"}).get_list("COLOUR") == [1, 3]
    assert AttributeReference("LIGHTS", {"COLOUR": [4]}).get_list("COLOUR") == [4]
    assert AttributeReference("LIGHTS", {}).get_list("COLOUR") == []


def test_empty_string_counts_as_absent() -> None:
    attributes = AttributeReference("LNDMRK", {"OBJNAM": ""})
    assert not attributes.has("OBJNAM")


def test_data_driven_is_present_but_not_known() -> None:
    attributes = AttributeReference("SEAARE", {"OBJNAM": DATA_DRIVEN})
    assert attributes.has("OBJNAM")
    assert attributes.is_data_driven("OBJNAM")
    assert not attributes.is_known("OBJNAM")
    assert attributes.get_str("OBJNAM", "default") == "default"


def test_attributes_are_read_only() -> None:
    source = {"CATLAM": 1}
    attributes = AttributeReference("BOYLAT", source)
    source["CATLAM"] = 2
    assert attributes.raw("CATLAM") == 1
