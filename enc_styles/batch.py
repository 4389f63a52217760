"""
Batch processing module for compiling one style per display mode.

A chart viewer normally switches between the DAY, DUSK and NIGHT palettes
at runtime, so it needs one style document per mode. This module provides
the BatchStyleGenerator class, which compiles the same feature catalog
under several modes, optionally in parallel, and writes the documents to an
output directory.

Example:
    >>> from enc_styles import BatchStyleGenerator
    >>>
    >>> batch = BatchStyleGenerator(
    ...     source={"type": "vector", "url": "pmtiles://enc.pmtiles"},
    ...     sprite="https://example.com/sprites",
    ...     output_dir="styles",
    ... )
    >>> result = batch.generate_styles(parallel=True)
    >>> print(f"Wrote {len(result['successful_styles'])} styles")
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from .api import compile_style, write_style
from .config import DisplayMode, LayerConfig
from .constants import DEFAULT_STYLE_NAME
from .exceptions import EncStylesError, InvalidParameterError
from .symbology.assembler import StyleAssembler
from .symbology.catalog import FeatureCatalog

logger = logging.getLogger(__name__)


class BatchStyleGenerator:
    """
    Compile style documents for several display modes.

    The lookup table, registry and palette are loaded once and shared by
    every compile; each compile gets its own diagnostics.

    Attributes:
        source: Vector source descriptor
        name: Style name
        sprite: Base URL of the sprite sheets
        config: Layer configuration (mode is replaced per compile)
        features: Feature catalog, or None for the rule-derived catalog
        output_dir: Directory for style-<mode>.json files, or None to keep
            documents in memory only
    """

    def __init__(
        self,
        source: Mapping[str, Any],
        name: str = DEFAULT_STYLE_NAME,
        sprite: Optional[str] = None,
        config: Optional[LayerConfig] = None,
        features: Optional[FeatureCatalog] = None,
        output_dir: Optional[Union[str, Path]] = None,
        assembler: Optional[StyleAssembler] = None,
    ):
        self.source = source
        self.name = name
        self.sprite = sprite
        self.config = config if config is not None else LayerConfig()
        self.features = features
        self.output_dir = Path(output_dir) if output_dir is not None else None
        self.assembler = assembler if assembler is not None else StyleAssembler()

        logger.info(
            f"Initialized BatchStyleGenerator: '{name}' source={self.config.source_id} "
            f"output_dir={self.output_dir}"
        )

    def generate_styles(
        self,
        modes: Optional[List[Union[str, DisplayMode]]] = None,
        parallel: bool = False,
        max_workers: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Compile one style per mode.

        Args:
            modes: Modes to compile (default: all modes)
            parallel: Compile modes in a thread pool (default: False)
            max_workers: Maximum parallel workers

        Returns:
            Dictionary with keys:
                - successful_styles: mode -> output path, or the document
                  when no output directory is set
                - failed_modes: List of modes that failed
                - diagnostics: mode -> number of diagnostics recorded
                - total_time: Total compile time in seconds

        Raises:
            InvalidParameterError: If modes is empty
            ConfigurationError: If a mode name is not recognized
        """
        if modes is None:
            modes = list(DisplayMode)
        modes = [DisplayMode.parse(m) for m in modes]
        if not modes:
            raise InvalidParameterError("No display modes to compile")

        logger.info(
            f"Compiling {len(modes)} styles "
            f"(parallel={parallel}, max_workers={max_workers})"
        )

        if self.output_dir is not None:
            self.output_dir.mkdir(parents=True, exist_ok=True)

        start_time = time.time()
        successful: Dict[str, Any] = {}
        diagnostics: Dict[str, int] = {}
        failed_modes: List[str] = []

        def record(mode: DisplayMode, outcome) -> None:
            output, count = outcome
            successful[mode.value] = output
            diagnostics[mode.value] = count
            logger.debug(f"Style {mode.value} completed with {count} diagnostics")

        if parallel:
            logger.info("Using parallel processing")
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                future_to_mode = {
                    executor.submit(self._generate_single_style, mode): mode
                    for mode in modes
                }
                for future in as_completed(future_to_mode):
                    mode = future_to_mode[future]
                    try:
                        record(mode, future.result())
                    except EncStylesError as e:
                        failed_modes.append(mode.value)
                        logger.error(f"Style {mode.value} failed with error: {e}")
        else:
            logger.info("Using sequential processing")
            for mode in modes:
                try:
                    record(mode, self._generate_single_style(mode))
                except EncStylesError as e:
                    failed_modes.append(mode.value)
                    logger.error(f"Style {mode.value} failed with error: {e}")

        total_time = time.time() - start_time
        logger.info(
            f"Batch compile complete: {len(successful)}/{len(modes)} styles "
            f"in {total_time:.2f}s"
        )
        if failed_modes:
            logger.warning(f"Failed modes: {failed_modes}")

        # Completion order varies in parallel runs; report in mode order
        order = [m.value for m in modes]
        return {
            "successful_styles": {m: successful[m] for m in order if m in successful},
            "failed_modes": [m for m in order if m in failed_modes],
            "diagnostics": {m: diagnostics[m] for m in order if m in diagnostics},
            "total_time": total_time,
        }

    def _generate_single_style(self, mode: DisplayMode):
        document, diagnostics = compile_style(
            self.source,
            name=self.name,
            mode=mode,
            sprite=self.sprite,
            config=self.config,
            features=self.features,
            assembler=self.assembler,
        )
        if self.output_dir is None:
            return document, len(diagnostics)

        path = write_style(document, self.output_dir / f"style-{mode.value.lower()}.json")
        return str(path), len(diagnostics)


def build_all_modes(
    source: Mapping[str, Any],
    output_dir: Optional[Union[str, Path]] = None,
    parallel: bool = True,
    **kwargs,
) -> Dict[str, Any]:
    """Compile DAY, DUSK and NIGHT styles; see :class:`BatchStyleGenerator`."""
    batch = BatchStyleGenerator(source, output_dir=output_dir, **kwargs)
    return batch.generate_styles(parallel=parallel)
