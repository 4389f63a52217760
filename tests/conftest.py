import pytest

from enc_styles.config import LayerConfig
from enc_styles.data import load_default_palette, load_default_registry
from enc_styles.symbology.assembler import StyleAssembler
from enc_styles.symbology.diagnostics import Diagnostics
from enc_styles.symbology.instructions import EvaluationContext
from enc_styles.symbology.lookup import TableSet, load_default_table


@pytest.fixture(scope="session")
def table():
    return load_default_table()


@pytest.fixture(scope="session")
def registry():
    return load_default_registry()


@pytest.fixture(scope="session")
def palette():
    return load_default_palette()


@pytest.fixture(scope="session")
def assembler(table, registry, palette):
    return StyleAssembler(table, registry, palette)


@pytest.fixture
def config() -> LayerConfig:
    return LayerConfig()


@pytest.fixture
def diagnostics() -> Diagnostics:
    return Diagnostics()


@pytest.fixture
def context(config, palette, registry, diagnostics) -> EvaluationContext:
    return EvaluationContext(config, palette, registry, diagnostics, TableSet.POINTS)
