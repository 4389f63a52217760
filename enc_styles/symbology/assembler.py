"""
Style assembler: compiles a feature catalog into ordered MapLibre layers.

For each table set and each feature, the assembler selects the lookup rule,
interprets its instructions (running conditional procedures as needed) and
wraps each resulting fragment into a layer. The combined list is then
stable-sorted by rule priority, so features of equal priority keep the
order in which they arrived. Later layers draw on top.

Example:
    >>> from enc_styles.config import LayerConfig
    >>> from enc_styles.symbology.assembler import StyleAssembler
    >>> result = StyleAssembler().build(LayerConfig(mode="NIGHT"))
    >>> len(result.layers) > 0
    True
"""

import logging
import time
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from ..config import LayerConfig
from ..data.palette import ColorPalette, load_default_palette
from ..data.registry import SymbolRegistry, load_default_registry
from .attributes import AttributeReference
from .catalog import Feature, FeatureCatalog
from .diagnostics import Diagnostics
from .instructions import EvaluationContext, StyleLayerFragment, interpret, validate_call
from .lookup import LookupRule, LookupTable, TableSet, load_default_table, normalize_value

logger = logging.getLogger(__name__)

# Reversed from the usual Points, Lines, Areas listing: areas are collected
# first so that, within one priority, points draw above lines above areas
TABLE_SET_ORDER = (TableSet.AREAS, TableSet.LINES, TableSet.POINTS)

GEOMETRY_TYPES = {
    TableSet.POINTS: "Point",
    TableSet.LINES: "LineString",
    TableSet.AREAS: "Polygon",
}


@dataclass
class CompileResult:
    """Ordered layers plus the diagnostics recorded while compiling them."""

    layers: List[Dict[str, Any]] = field(default_factory=list)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)


class StyleAssembler:
    """Compile features into MapLibre layers using one set of static tables.

    The lookup table, symbol registry and palette are read-only and may be
    shared across threads; every call to :meth:`build` creates its own
    diagnostics collector.

    Args:
        table: Lookup rules. Defaults to the bundled table.
        registry: Sprite symbol registry. Defaults to the bundled registry.
        palette: Colour palettes. Defaults to the bundled palettes.

    Raises:
        ConfigurationError: If a rule references an unknown colour token or
            has out of range line or fill parameters.
    """

    def __init__(
        self,
        table: Optional[LookupTable] = None,
        registry: Optional[SymbolRegistry] = None,
        palette: Optional[ColorPalette] = None,
    ):
        self.table = table if table is not None else load_default_table()
        self.registry = registry if registry is not None else load_default_registry()
        self.palette = palette if palette is not None else load_default_palette()

        for rule in self.table:
            for call in rule.calls:
                validate_call(call, self.palette, rule.name)

        logger.debug(
            f"Assembler ready: {len(self.table)} rules, {len(self.registry)} symbols, "
            f"{len(self.palette.tokens)} colour tokens"
        )

    def build(self, config: LayerConfig, features: Optional[FeatureCatalog] = None) -> CompileResult:
        """Compile ``features`` (or the generic rule-derived catalog) for ``config``.

        Args:
            config: Layer configuration (mode, source id, depth thresholds).
            features: Catalog of tiled features in arrival order.

        Returns:
            CompileResult with layers sorted by ascending priority.
        """
        start = time.time()
        config.validate()
        if features is None:
            features = FeatureCatalog.from_lookup_table(self.table)

        diagnostics = Diagnostics()
        context = EvaluationContext(
            config=config,
            palette=self.palette,
            registry=self.registry,
            diagnostics=diagnostics,
        )

        entries = []
        for table_set in TABLE_SET_ORDER:
            set_context = replace(context, table_set=table_set)
            for index, feature in enumerate(features):
                if feature.table_set is not table_set:
                    continue
                entries.extend(self._compile_feature(index, feature, set_context))

        # list.sort is stable: equal priorities keep arrival order
        entries.sort(key=lambda entry: entry[0])
        layers = [layer for _, layer in entries]

        logger.info(
            f"Compiled {len(layers)} layers from {len(features)} features "
            f"({config.mode.value}) in {time.time() - start:.2f}s"
        )
        if len(diagnostics):
            logger.info(f"{len(diagnostics)} diagnostics recorded")
        return CompileResult(layers=layers, diagnostics=diagnostics)

    def _compile_feature(self, index: int, feature: Feature, context: EvaluationContext):
        attributes = AttributeReference(feature.object_class, feature.attributes, context.diagnostics)
        rule = self.table.select_rule(feature.object_class, attributes, feature.table_set)
        if rule is None:
            return []

        fragments: List[StyleLayerFragment] = []
        for call in rule.calls:
            fragments.extend(interpret(call, attributes, context))

        layer_filter = self._filter(rule, feature, attributes)
        metadata = {
            "s52:priority": rule.priority,
            "s52:category": rule.category.value,
            "s52:viewing-group": rule.viewing_group,
            "s52:table-set": rule.table_set.value,
            "s52:instruction": rule.instruction,
        }
        return [
            (rule.priority, fragment.to_layer(
                layer_id=f"{feature.object_class}-{index}-{position}",
                source=context.config.source_id,
                source_layer=feature.object_class,
                layer_filter=layer_filter,
                metadata=metadata,
            ))
            for position, fragment in enumerate(fragments)
        ]

    def _filter(self, rule: LookupRule, feature: Feature, attributes: AttributeReference) -> list:
        if feature.lnam:
            return ["==", ["id"], feature.lnam]

        expressions = [["==", ["geometry-type"], GEOMETRY_TYPES[feature.table_set]]]
        expressions.extend(self.table.exclusive_filter(rule)[1:])

        constrained = {code for code, _ in rule.attributes}
        for code in sorted(feature.attributes):
            if code in constrained or not attributes.is_known(code):
                continue
            expressions.append(
                ["==", ["to-string", ["get", code]], normalize_value(attributes.raw(code))]
            )
        return ["all", *expressions]


def build(
    config: LayerConfig,
    features: Optional[FeatureCatalog] = None,
    table: Optional[LookupTable] = None,
    registry: Optional[SymbolRegistry] = None,
    palette: Optional[ColorPalette] = None,
) -> CompileResult:
    """Compile with a one-off :class:`StyleAssembler`."""
    return StyleAssembler(table, registry, palette).build(config, features)
