import json
from pathlib import Path

from enc_styles.cli import main


def test_style_command_writes_document(tmp_path: Path) -> None:
    output = tmp_path / "style.json"
    code = main([
        "style", "--silent",
        "--tiles", "https://example.com/enc.pmtiles",
        "--sprite", "https://example.com/sprites",
        "--mode", "dusk",
        "--output", str(output),
    ])
    assert code == 0
    style = json.loads(output.read_text())
    assert style["sprite"] == "https://example.com/sprites/dusk"
    assert style["sources"]["enc"]["url"] == "pmtiles://https://example.com/enc.pmtiles"


def test_style_command_with_feature_catalog(tmp_path: Path) -> None:
    features = tmp_path / "features.json"
    features.write_text(json.dumps([
        {"object_class": "BOYLAT", "table_set": "POINTS", "attributes": {"CATLAM": 1}},
        {"object_class": "DEPCNT", "table_set": "LINES", "attributes": {"VALDCO": 6.0}},
    ]))
    output = tmp_path / "style.json"
    code = main([
        "style", "--silent", "--source-url", "https://example.com/enc.json",
        "--features", str(features), "--output", str(output),
    ])
    assert code == 0
    layers = json.loads(output.read_text())["layers"]
    assert [layer["source-layer"] for layer in layers] == ["DEPCNT", "BOYLAT"]


def test_modes_command(tmp_path: Path) -> None:
    code = main([
        "modes", "--silent", "--source-url", "https://example.com/enc.json",
        "--output-dir", str(tmp_path), "--modes", "DAY", "NIGHT",
    ])
    assert code == 0
    assert sorted(p.name for p in tmp_path.iterdir()) == ["style-day.json", "style-night.json"]


def test_lookup_command(capsys) -> None:
    code = main(["lookup", "--silent", "--object-class", "BOYLAT", "--attribute", "CATLAM=1"])
    assert code == 0
    assert "SY(BOYLAT12)" in capsys.readouterr().out


def test_bad_rules_file_fails(tmp_path: Path) -> None:
    rules = tmp_path / "rules.yaml"
    rules.write_text("- object_class: X\n  table_set: POINTS\n  instruction: ZZ(A)\n  priority: 1\n")
    code = main([
        "style", "--silent", "--source-url", "https://example.com/enc.json",
        "--rules", str(rules),
    ])
    assert code == 1


def test_no_command_prints_help() -> None:
    assert main([]) == 1


def test_options_before_subcommand_are_kept(tmp_path: Path, capsys) -> None:
    output = tmp_path / "style.json"
    code = main([
        "--silent", "style",
        "--tiles", "https://example.com/enc.pmtiles",
        "--output", str(output),
    ])
    assert code == 0
    assert capsys.readouterr().out.strip() == str(output)
