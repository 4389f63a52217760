import json
from pathlib import Path

import pytest

from enc_styles.batch import BatchStyleGenerator, build_all_modes
from enc_styles.exceptions import ConfigurationError

SOURCE = {"type": "vector", "url": "pmtiles://enc.pmtiles"}


@pytest.mark.parametrize("parallel", [False, True])
def test_generate_all_modes_to_directory(tmp_path: Path, assembler, parallel: bool) -> None:
    batch = BatchStyleGenerator(SOURCE, sprite="/sprites", output_dir=tmp_path, assembler=assembler)
    result = batch.generate_styles(parallel=parallel, max_workers=3)

    assert list(result["successful_styles"]) == ["DAY", "DUSK", "NIGHT"]
    assert result["failed_modes"] == []
    for mode in ("day", "dusk", "night"):
        style = json.loads((tmp_path / f"style-{mode}.json").read_text())
        assert style["sprite"] == f"/sprites/{mode}"


def test_parallel_and_sequential_agree(assembler) -> None:
    batch = BatchStyleGenerator(SOURCE, assembler=assembler)
    sequential = batch.generate_styles(parallel=False)["successful_styles"]
    parallel = batch.generate_styles(parallel=True)["successful_styles"]
    assert json.dumps(sequential, sort_keys=True) == json.dumps(parallel, sort_keys=True)


def test_subset_of_modes(assembler) -> None:
    result = BatchStyleGenerator(SOURCE, assembler=assembler).generate_styles(modes=["night"])
    assert list(result["successful_styles"]) == ["NIGHT"]


def test_unknown_mode(assembler) -> None:
    with pytest.raises(ConfigurationError):
        BatchStyleGenerator(SOURCE, assembler=assembler).generate_styles(modes=["NOON"])


def test_build_all_modes(tmp_path: Path, assembler) -> None:
    result = build_all_modes(SOURCE, output_dir=tmp_path, assembler=assembler)
    assert len(result["successful_styles"]) == 3
    assert sorted(p.name for p in tmp_path.iterdir()) == [
        "style-day.json", "style-dusk.json", "style-night.json",
    ]
