"""
S-52 lookup table engine.

The lookup table maps an object class and its attribute values to the
presentation rule used to draw it. Several rules may exist for one object
class; the first rule in canonical order whose attribute constraints are all
satisfied wins.

Canonical order, per (object class, table set):
    1. Rules with more attribute constraints come first.
    2. Ties keep their order in the table file.
so the unconstrained fallback rule is always tried last.

Features with no matching rule are simply not drawn.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

import yaml

from ..exceptions import ConfigurationError
from .attributes import AttributeReference
from .parser import InstructionCall, parse_instructions

logger = logging.getLogger(__name__)

DEFAULT_LOOKUPS_PATH = Path(__file__).parent.parent / "data" / "resources" / "lookups.yaml"


class TableSet(str, Enum):
    """Lookup table a rule belongs to; implies the geometry it draws."""

    POINTS = "POINTS"
    LINES = "LINES"
    AREAS = "AREAS"

    @classmethod
    def parse(cls, value: Union[str, "TableSet"]) -> "TableSet":
        if isinstance(value, cls):
            return value
        text = str(value).strip().upper()
        aliases = {"POINT": "POINTS", "LINE": "LINES", "AREA": "AREAS", "POLYGON": "AREAS"}
        try:
            return cls(aliases.get(text, text))
        except ValueError:
            raise ConfigurationError(f"Unknown table set '{value}'") from None


class DisplayCategory(str, Enum):
    DISPLAYBASE = "DISPLAYBASE"
    BASE = "BASE"
    STANDARD = "STANDARD"
    OTHER = "OTHER"


def normalize_value(value: Any) -> str:
    """Canonical string form used to compare attribute values.

    ``1``, ``1.0``, ``"1"`` and ``" 1 "`` all compare equal; list values
    compare as their comma joined items.
    """
    if isinstance(value, (list, tuple)):
        return ",".join(normalize_value(v) for v in value)
    if isinstance(value, bool):
        return str(int(value))
    text = str(value).strip()
    try:
        number = float(text)
    except ValueError:
        return text
    if number.is_integer():
        return str(int(number))
    return repr(number)


@dataclass(frozen=True)
class LookupRule:
    """One presentation rule.

    Attributes:
        object_class: S-57 object class acronym, e.g. ``BOYLAT``.
        table_set: Geometry table the rule belongs to.
        attributes: Conjunctive constraints as (code, value) pairs; a value
            of None only requires the attribute to be present.
        instruction: Instruction string as written in the table.
        priority: Draw priority, lower values draw first.
        category: Display category.
        viewing_group: S-52 viewing group number.
        index: Position in the table file.
        calls: ``instruction`` parsed once at load time.
    """

    object_class: str
    table_set: TableSet
    attributes: Tuple[Tuple[str, Optional[str]], ...]
    instruction: str
    priority: int
    category: DisplayCategory = DisplayCategory.STANDARD
    viewing_group: int = 0
    index: int = 0
    calls: Tuple[InstructionCall, ...] = field(default=(), compare=False)

    @property
    def name(self) -> str:
        constraints = ",".join(
            code if value is None else f"{code}{value}" for code, value in self.attributes
        )
        return f"{self.object_class}[{self.table_set.value}]({constraints})#{self.index}"

    def matches(self, attributes: AttributeReference) -> bool:
        for code, expected in self.attributes:
            if not attributes.has(code):
                return False
            if expected is not None and normalize_value(attributes.raw(code)) != expected:
                return False
        return True

    def conditions(self) -> List[list]:
        """The rule's constraints as MapLibre filter expressions."""
        expressions = []
        for code, expected in self.attributes:
            if expected is None:
                expressions.append(["has", code])
            else:
                expressions.append(["==", ["to-string", ["get", code]], expected])
        return expressions

    @classmethod
    def from_record(cls, record: Mapping[str, Any], index: int) -> "LookupRule":
        """Build a rule from a table file entry, parsing its instruction string."""
        label = f"#{index} {record.get('object_class', '?')}"
        try:
            object_class = str(record["object_class"]).strip().upper()
            table_set = TableSet.parse(record["table_set"])
            instruction = str(record.get("instruction") or "")
            priority = int(record["priority"])
            category = DisplayCategory(str(record.get("category", "STANDARD")).upper())
            viewing_group = int(record.get("viewing_group", 0))
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid lookup rule: {e}", label) from e

        constraints = record.get("attributes") or {}
        if not isinstance(constraints, Mapping):
            raise ConfigurationError("Lookup rule attributes must be a mapping", label)
        attributes = tuple(
            (str(code).strip().upper(), None if value is None else normalize_value(value))
            for code, value in constraints.items()
        )

        calls = parse_instructions(instruction, f"{label} {instruction}")
        return cls(
            object_class=object_class,
            table_set=table_set,
            attributes=attributes,
            instruction=instruction,
            priority=priority,
            category=category,
            viewing_group=viewing_group,
            index=index,
            calls=calls,
        )


class LookupTable:
    """Static, read-only rule table with first-match selection."""

    def __init__(self, rules: Iterable[LookupRule]):
        groups: Dict[Tuple[str, TableSet], List[LookupRule]] = {}
        for rule in rules:
            groups.setdefault((rule.object_class, rule.table_set), []).append(rule)

        # sorted() is stable, so equally constrained rules keep file order
        self._groups: Dict[Tuple[str, TableSet], Tuple[LookupRule, ...]] = {
            key: tuple(sorted(group, key=lambda r: (-len(r.attributes), r.index)))
            for key, group in groups.items()
        }
        self._rules = tuple(
            rule for key in sorted(self._groups, key=lambda k: self._groups[k][0].index)
            for rule in self._groups[key]
        )

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> "LookupTable":
        return cls(LookupRule.from_record(record, index) for index, record in enumerate(records))

    @classmethod
    def load_from_file(cls, path: Union[str, Path]) -> "LookupTable":
        """Load a rule table from a YAML or JSON list of rule records.

        Raises:
            ConfigurationError: If the file is unreadable or any rule is
                malformed.
        """
        path = Path(path)
        try:
            with open(path, "r", encoding="utf8") as f:
                if path.suffix == ".json":
                    records = json.load(f)
                else:
                    records = yaml.safe_load(f)
        except OSError as e:
            raise ConfigurationError(f"Unable to read lookup table '{path}'") from e
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Lookup table '{path}' could not be parsed: {e}") from e

        if not isinstance(records, list):
            raise ConfigurationError(f"Lookup table '{path}' must contain a list of rules")

        table = cls.from_records(records)
        logger.debug(f"Loaded {len(table)} lookup rules from {path}")
        return table

    def select_rule(
        self,
        object_class: str,
        attributes: Union[AttributeReference, Mapping[str, Any]],
        table_set: Union[str, TableSet],
    ) -> Optional[LookupRule]:
        """Return the first rule in canonical order matching the feature.

        Returns:
            The matching rule, or None when nothing matches (the feature is
            not drawn).
        """
        if not isinstance(attributes, AttributeReference):
            attributes = AttributeReference(object_class, attributes)
        for rule in self.rules_for(object_class, table_set):
            if rule.matches(attributes):
                return rule
        logger.debug(f"No lookup rule for {object_class} in {TableSet.parse(table_set).value}")
        return None

    def rules_for(self, object_class: str, table_set: Union[str, TableSet]) -> Tuple[LookupRule, ...]:
        return self._groups.get((object_class, TableSet.parse(table_set)), ())

    def exclusive_filter(self, rule: LookupRule) -> list:
        """Filter selecting exactly the features for which ``rule`` wins.

        The rule's own constraints, plus the negation of every rule for the
        same object class that precedes it in canonical order.
        """
        expressions = rule.conditions()
        for earlier in self.rules_for(rule.object_class, rule.table_set):
            if earlier is rule:
                break
            conditions = earlier.conditions()
            if not conditions:
                continue
            expressions.append(["!", conditions[0] if len(conditions) == 1 else ["all", *conditions]])
        return ["all", *expressions]

    @property
    def object_classes(self) -> Tuple[str, ...]:
        seen = dict.fromkeys(rule.object_class for rule in self._rules)
        return tuple(seen)

    def __iter__(self) -> Iterator[LookupRule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)


def load_default_table() -> LookupTable:
    """Load the lookup table bundled with the package."""
    return LookupTable.load_from_file(DEFAULT_LOOKUPS_PATH)
