"""
Diagnostics channel for recoverable compile conditions.

Missing symbols and unparsable attribute values never abort a compile. They
are recorded here, logged, and returned with the compiled layers so callers
(and tests) can inspect what was dropped or defaulted.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

logger = logging.getLogger(__name__)


class DiagnosticKind(str, Enum):
    MISSING_ASSET = "MissingAssetWarning"
    MALFORMED_ATTRIBUTE = "MalformedAttributeValue"


@dataclass(frozen=True)
class Diagnostic:
    """A single recoverable condition met while compiling a feature."""

    kind: DiagnosticKind
    message: str
    object_class: Optional[str] = None
    name: Optional[str] = None

    def __str__(self) -> str:
        where = f"{self.object_class}: " if self.object_class else ""
        return f"{self.kind.value}: {where}{self.message}"


class Diagnostics:
    """Per-compile collector of :class:`Diagnostic` records.

    One collector is created for each build and discarded with it, so
    concurrent builds never share one.
    """

    def __init__(self) -> None:
        self._records: List[Diagnostic] = []

    def missing_asset(self, name: str, object_class: Optional[str] = None) -> None:
        self._add(Diagnostic(
            DiagnosticKind.MISSING_ASSET,
            f"Missing symbol: {name}",
            object_class=object_class,
            name=name,
        ))

    def malformed_attribute(
        self,
        code: str,
        value: object,
        default: object,
        object_class: Optional[str] = None,
    ) -> None:
        self._add(Diagnostic(
            DiagnosticKind.MALFORMED_ATTRIBUTE,
            f"Attribute {code}={value!r} is not valid, using {default!r}",
            object_class=object_class,
            name=code,
        ))

    def _add(self, record: Diagnostic) -> None:
        logger.warning(
            record.message,
            extra={"diagnostic_kind": record.kind.value, "object_class": record.object_class},
        )
        self._records.append(record)

    @property
    def records(self) -> List[Diagnostic]:
        return list(self._records)

    def of_kind(self, kind: DiagnosticKind) -> List[Diagnostic]:
        return [r for r in self._records if r.kind == kind]

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self):
        return iter(list(self._records))
