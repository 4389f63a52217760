"""
Style Compilation Example

This example compiles a style for a small harbour catalog and a generic
style derived from the bundled lookup table, then writes one style per
display mode. It shows the diagnostics returned alongside the document.

Output: style-harbour.json plus styles/style-{day,dusk,night}.json
"""

import logging
from pathlib import Path

from enc_styles import (
    EncStylesError,
    FeatureCatalog,
    LayerConfig,
    StyleAssembler,
    build_all_modes,
    compile_style,
)
from enc_styles.api import write_style

logger = logging.getLogger(__name__)

HERE = Path(__file__).parent
SOURCE = {"type": "vector", "url": "pmtiles://https://example.com/tiles/harbour.pmtiles"}
SPRITE = "https://example.com/sprites"


def main() -> int:
    assembler = StyleAssembler()

    try:
        catalog = FeatureCatalog.load_from_file(HERE / "harbour.geojson")
        config = LayerConfig(mode="DUSK", safety_depth=6.0)

        style, diagnostics = compile_style(
            SOURCE,
            name="Harbour (dusk)",
            sprite=SPRITE,
            config=config,
            features=catalog,
            assembler=assembler,
        )
        write_style(style, HERE / "style-harbour.json")
        print(f"Harbour style: {len(style['layers'])} layers")
        for layer in style["layers"]:
            print(f"  {layer['metadata']['s52:priority']}  {layer['id']:<14} {layer['type']}")
        for record in diagnostics:
            print(f"  ! {record}")

        result = build_all_modes(SOURCE, output_dir=HERE / "styles", sprite=SPRITE, assembler=assembler)
        for mode, path in result["successful_styles"].items():
            print(f"{mode}: {path}")

    except EncStylesError as e:
        logger.error(f"Style compilation failed: {e}")
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
