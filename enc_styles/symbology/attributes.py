"""
Typed access to the S-57 attributes of a single chart feature.

Tiled ENC data stores attribute values loosely: enumerations may arrive as
integers or strings, list attributes (``COLOUR``, ``LITVIS``...) as a comma
separated string or as an array, and empty strings stand for "unknown". The
:class:`AttributeReference` normalises these at read time.
"""

import logging
import math
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from .diagnostics import Diagnostics

logger = logging.getLogger(__name__)


class _DataDriven:
    """Marks an attribute that is present but read per feature by the renderer."""

    def __repr__(self) -> str:
        return "DATA_DRIVEN"


DATA_DRIVEN = _DataDriven()


class AttributeReference:
    """Read-only view of a feature's object class and attribute dictionary.

    Missing attributes return the caller's default silently. Attributes that
    are present but fail to parse as the requested type return the default
    and record a malformed-attribute diagnostic when a sink was given.
    """

    def __init__(
        self,
        object_class: str,
        attributes: Optional[Mapping[str, Any]] = None,
        diagnostics: Optional[Diagnostics] = None,
    ):
        self._object_class = object_class
        self._attributes = MappingProxyType(dict(attributes or {}))
        self._diagnostics = diagnostics

    @property
    def object_class(self) -> str:
        return self._object_class

    @property
    def attributes(self) -> Mapping[str, Any]:
        return self._attributes

    def has(self, code: str) -> bool:
        """True when the attribute is present with a non-empty value."""
        value = self._attributes.get(code)
        return value is not None and value != "" and value != []

    def is_data_driven(self, code: str) -> bool:
        return self._attributes.get(code) is DATA_DRIVEN

    def is_known(self, code: str) -> bool:
        """True when the attribute has a concrete value at compile time."""
        return self.has(code) and not self.is_data_driven(code)

    def raw(self, code: str) -> Any:
        return self._attributes.get(code) if self.has(code) else None

    def get_str(self, code: str, default: Optional[str] = None) -> Optional[str]:
        if not self.is_known(code):
            return default
        value = self._attributes[code]
        if isinstance(value, (list, tuple)):
            return ",".join(str(v) for v in value)
        return str(value)

    def get_float(self, code: str, default: Optional[float] = None) -> Optional[float]:
        if not self.is_known(code):
            return default
        value = self._attributes[code]
        try:
            result = float(value)
        except (TypeError, ValueError):
            self._malformed(code, value, default)
            return default
        if math.isnan(result) or math.isinf(result):
            self._malformed(code, value, default)
            return default
        return result

    def get_int(self, code: str, default: Optional[int] = None) -> Optional[int]:
        result = self.get_float(code)
        if result is None:
            return default
        if not result.is_integer():
            self._malformed(code, self._attributes[code], default)
            return default
        return int(result)

    def get_list(self, code: str) -> List[int]:
        """Return a list-valued enumeration such as ``COLOUR`` as integers."""
        if not self.is_known(code):
            return []
        value = self._attributes[code]
        if isinstance(value, (list, tuple)):
            items = list(value)
        else:
            items = [part for part in str(value).split(",") if part.strip()]
        try:
            return [int(float(item)) for item in items]
        except (TypeError, ValueError):
            self._malformed(code, value, [])
            return []

    def _malformed(self, code: str, value: Any, default: Any) -> None:
        if self._diagnostics is not None:
            self._diagnostics.malformed_attribute(code, value, default, self._object_class)
        else:
            logger.warning(
                f"{self._object_class}: attribute {code}={value!r} is not valid, using {default!r}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._attributes)

    def __repr__(self) -> str:
        return f"AttributeReference({self._object_class!r}, {dict(self._attributes)!r})"
