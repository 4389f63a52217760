"""
Feature catalog: the tiled chart features a style is compiled for.

The tiler writes one source layer per S-57 object class. The catalog lists
the features (or representative feature groups) found in those layers, in
data arrival order, with the attribute values the compiler needs to pick and
evaluate a lookup rule.

Catalog files are JSON or YAML in either of two shapes:

    [{"object_class": "BOYLAT", "table_set": "POINTS",
      "attributes": {"CATLAM": 1}, "lnam": "0226..."}]

or a GeoJSON FeatureCollection as fed to the tiler, where each feature's
``tippecanoe.layer`` names the object class and ``LNAM`` is read from its
properties.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Union

import yaml

from ..constants import FEATURE_ID_FIELD
from ..exceptions import InvalidParameterError
from .attributes import DATA_DRIVEN
from .lookup import LookupTable, TableSet
from .procedures import PROCEDURE_ATTRIBUTES

logger = logging.getLogger(__name__)

_GEOMETRY_TABLE_SETS = {
    "Point": TableSet.POINTS,
    "MultiPoint": TableSet.POINTS,
    "LineString": TableSet.LINES,
    "MultiLineString": TableSet.LINES,
    "Polygon": TableSet.AREAS,
    "MultiPolygon": TableSet.AREAS,
}


@dataclass(frozen=True)
class Feature:
    """One chart feature, or a group of features sharing attribute values.

    Attributes:
        object_class: S-57 object class acronym (the tile source layer).
        table_set: Lookup table set implied by the geometry.
        attributes: Attribute code -> value.
        lnam: S-57 long name; when set, layers target this feature by id.
    """

    object_class: str
    table_set: TableSet
    attributes: Mapping[str, Any] = field(default_factory=dict)
    lnam: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "object_class", str(self.object_class).strip().upper())
        object.__setattr__(self, "table_set", TableSet.parse(self.table_set))
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes or {})))

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Feature":
        if record.get("type") == "Feature":
            return cls._from_geojson(record)

        object_class = record.get("object_class") or record.get("objectClass")
        table_set = record.get("table_set") or record.get("tableSet") or record.get("geometry")
        if not object_class or not table_set:
            raise InvalidParameterError(
                f"Catalog entry needs object_class and table_set: {dict(record)!r}"
            )
        return cls(
            object_class=object_class,
            table_set=table_set,
            attributes=record.get("attributes") or {},
            lnam=record.get("lnam") or record.get(FEATURE_ID_FIELD),
        )

    @classmethod
    def _from_geojson(cls, record: Mapping[str, Any]) -> "Feature":
        properties = dict(record.get("properties") or {})
        layer = (record.get("tippecanoe") or {}).get("layer") or properties.pop("OBJL_NAME", None)
        geometry_type = (record.get("geometry") or {}).get("type")
        if not layer or geometry_type not in _GEOMETRY_TABLE_SETS:
            raise InvalidParameterError(
                f"GeoJSON feature needs a tippecanoe layer and a geometry: {record.get('id')!r}"
            )
        lnam = properties.pop(FEATURE_ID_FIELD, None) or record.get("id")
        return cls(
            object_class=layer,
            table_set=_GEOMETRY_TABLE_SETS[geometry_type],
            attributes=properties,
            lnam=str(lnam) if lnam is not None else None,
        )


class FeatureCatalog:
    """Ordered, read-only collection of :class:`Feature`."""

    def __init__(self, features: Iterable[Feature] = ()):
        self._features = tuple(features)

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> "FeatureCatalog":
        return cls(Feature.from_record(record) for record in records)

    @classmethod
    def load_from_file(cls, path: Union[str, Path]) -> "FeatureCatalog":
        """Load a catalog from a JSON/YAML list or a GeoJSON FeatureCollection.

        Raises:
            InvalidParameterError: If the file is unreadable or malformed.
        """
        path = Path(path)
        try:
            with open(path, "r", encoding="utf8") as f:
                if path.suffix in (".yaml", ".yml"):
                    data = yaml.safe_load(f)
                else:
                    data = json.load(f)
        except OSError as e:
            raise InvalidParameterError(f"Unable to read feature catalog '{path}'") from e
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise InvalidParameterError(f"Feature catalog '{path}' could not be parsed: {e}") from e

        if isinstance(data, dict) and data.get("type") == "FeatureCollection":
            data = data.get("features") or []
        if not isinstance(data, list):
            raise InvalidParameterError(f"Feature catalog '{path}' must contain a list of features")

        catalog = cls.from_records(data)
        logger.info(f"Loaded {len(catalog)} features from {path}")
        return catalog

    @classmethod
    def from_lookup_table(cls, table: LookupTable) -> "FeatureCatalog":
        """One representative feature group per rule, in table order.

        The group carries the rule's attribute values. Attributes the rule
        only requires to be present, and those its conditional procedures
        branch on, are marked data driven so their values are read by the
        renderer.
        """
        features = []
        for rule in table:
            attributes: Dict[str, Any] = {
                code: DATA_DRIVEN if value is None else value
                for code, value in rule.attributes
            }
            for call in rule.calls:
                if call.procedure is not None:
                    for code in PROCEDURE_ATTRIBUTES.get(call.procedure, ()):
                        attributes.setdefault(code, DATA_DRIVEN)
            features.append(Feature(rule.object_class, rule.table_set, attributes))
        return cls(features)

    def in_table_set(self, table_set: Union[str, TableSet]) -> List[Feature]:
        table_set = TableSet.parse(table_set)
        return [f for f in self._features if f.table_set is table_set]

    def __iter__(self) -> Iterator[Feature]:
        return iter(self._features)

    def __len__(self) -> int:
        return len(self._features)

    def __getitem__(self, index: int) -> Feature:
        return self._features[index]
