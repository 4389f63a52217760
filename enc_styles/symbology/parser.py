"""
Parser for the S-52 instruction micro-language.

A lookup rule's instruction string is a semicolon separated sequence of
calls such as ``SY(LIGHTS11,135);TX(OBJNAM,1,2,2,'15110',0,0,CHBLK,21)``.
Each argument is a quoted string, a number, or a bare token. Bare six letter
upper-case tokens are S-57 attribute codes and become :class:`AttributeRef`
values that are resolved against each feature at evaluation time; every
other token is a :class:`Literal`.

Strings are parsed once when the rule table is loaded. Unknown primitive or
procedure names, and calls with the wrong number of arguments, raise
:class:`~enc_styles.exceptions.ConfigurationError` naming the rule.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Tuple, Union

from ..exceptions import ConfigurationError

_CALL_PATTERN = re.compile(r"^\s*([A-Za-z]{2})\s*\((.*)\)\s*$", re.DOTALL)
_NUMBER_PATTERN = re.compile(r"^[-+]?(\d+(\.\d*)?|\.\d+)$")
_ATTRIBUTE_CODE_PATTERN = re.compile(r"^[A-Z]{6}$")


class Primitive(str, Enum):
    """Closed set of S-52 drawing instructions."""

    SY = "SY"  # symbol
    LS = "LS"  # simple line style
    LC = "LC"  # complex (symbolised) line
    AC = "AC"  # area colour fill
    AP = "AP"  # area pattern fill
    TX = "TX"  # plain text
    TE = "TE"  # formatted text
    CS = "CS"  # conditional symbology procedure


class Procedure(str, Enum):
    """Closed set of conditional symbology procedures."""

    DEPARE01 = "DEPARE01"
    DEPCNT02 = "DEPCNT02"
    LIGHTS05 = "LIGHTS05"
    OBSTRN04 = "OBSTRN04"
    SOUNDG02 = "SOUNDG02"
    WRECKS02 = "WRECKS02"


# (min, max) argument counts
ARITY = {
    Primitive.SY: (1, 2),
    Primitive.LS: (3, 3),
    Primitive.LC: (1, 1),
    Primitive.AC: (1, 2),
    Primitive.AP: (1, 1),
    Primitive.TX: (1, 9),
    Primitive.TE: (2, 10),
    Primitive.CS: (1, 1),
}


@dataclass(frozen=True)
class Literal:
    """An argument whose value is fixed in the instruction string."""

    value: Any

    @property
    def token(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class AttributeRef:
    """An argument naming an S-57 attribute, read from each feature."""

    code: str

    @property
    def token(self) -> str:
        return self.code


@dataclass(frozen=True)
class Choice:
    """An argument the renderer picks per feature.

    Conditional procedures return these when the attribute they branch on
    is only known to the renderer. ``operator`` is a MapLibre decision
    operator:

    - ``step``: ``selector`` is numeric, ``stops`` are ``(threshold, option)``
      in ascending order and ``default`` applies below the first threshold.
    - ``case``: ``stops`` are ``(condition, option)``, tried in order.
    - ``match``: ``stops`` are ``(labels, option)`` compared to ``selector``.

    Options are the same kind of value the literal argument would hold (a
    colour token, a line width, a symbol name).
    """

    operator: str
    stops: Tuple[Tuple[Any, Any], ...]
    default: Any
    selector: Any = None

    @property
    def options(self) -> Tuple[Any, ...]:
        return (self.default, *(option for _, option in self.stops))

    @property
    def token(self) -> str:
        return f"{self.operator}:{'|'.join(str(o) for o in self.options)}"

    def expression(self, convert) -> list:
        """MapLibre expression with every option passed through ``convert``."""
        if self.operator == "step":
            expression = ["step", self.selector, convert(self.default)]
            for threshold, option in self.stops:
                expression.extend([threshold, convert(option)])
            return expression
        if self.operator == "case":
            expression = ["case"]
            for condition, option in self.stops:
                expression.extend([condition, convert(option)])
            return expression + [convert(self.default)]
        if self.operator == "match":
            expression = ["match", self.selector]
            for labels, option in self.stops:
                expression.extend([list(labels), convert(option)])
            return expression + [convert(self.default)]
        raise ConfigurationError(f"Unknown choice operator '{self.operator}'")


Argument = Union[Literal, AttributeRef, Choice]


@dataclass(frozen=True)
class InstructionCall:
    """One parsed ``NAME(arg, ...)`` call."""

    primitive: Primitive
    args: Tuple[Argument, ...] = ()

    def arg(self, index: int, default: Any = None) -> Argument:
        """Return argument ``index``, or ``Literal(default)`` when absent."""
        if index < len(self.args):
            return self.args[index]
        return Literal(default)

    @property
    def procedure(self) -> Optional[Procedure]:
        if self.primitive is not Primitive.CS:
            return None
        return Procedure(self.args[0].token)

    def __str__(self) -> str:
        rendered = []
        for a in self.args:
            if isinstance(a, Literal) and isinstance(a.value, str) and not _is_bare(a.value):
                rendered.append(f"'{a.value}'")
            else:
                rendered.append(a.token)
        return f"{self.primitive.value}({','.join(rendered)})"


def _is_bare(text: str) -> bool:
    return re.match(r"^[A-Za-z0-9_]+$", text) is not None


def _split_outside_quotes(text: str, separator: str) -> List[str]:
    """Split on ``separator`` where it is not inside a quoted string or parens."""
    parts = []
    current = []
    quote = None
    depth = 0
    for char in text:
        if quote:
            current.append(char)
            if char == quote:
                quote = None
            continue
        if char in ("'", '"'):
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        elif char == separator and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
    if quote:
        raise ValueError(f"unterminated string in {text!r}")
    parts.append("".join(current))
    return parts


def parse_argument(token: str) -> Argument:
    """Parse one argument token into a Literal or AttributeRef."""
    token = token.strip()
    if not token:
        raise ValueError("empty argument")
    if len(token) >= 2 and token[0] == token[-1] and token[0] in ("'", '"'):
        return Literal(token[1:-1])
    if _NUMBER_PATTERN.match(token):
        number = float(token)
        return Literal(int(number) if number.is_integer() and "." not in token else number)
    if _ATTRIBUTE_CODE_PATTERN.match(token):
        return AttributeRef(token)
    return Literal(token)


def parse_call(text: str, rule: Optional[str] = None) -> InstructionCall:
    """Parse a single ``NAME(args)`` call."""
    match = _CALL_PATTERN.match(text)
    if not match:
        raise ConfigurationError(f"Malformed instruction '{text.strip()}'", rule)

    name, body = match.group(1).upper(), match.group(2)
    try:
        primitive = Primitive(name)
    except ValueError:
        raise ConfigurationError(f"Unknown instruction '{name}'", rule) from None

    try:
        args = tuple(parse_argument(a) for a in _split_outside_quotes(body, ",")) if body.strip() else ()
    except ValueError as e:
        raise ConfigurationError(f"Malformed arguments in '{text.strip()}': {e}", rule) from e

    low, high = ARITY[primitive]
    if not low <= len(args) <= high:
        raise ConfigurationError(
            f"{name} takes {low}-{high} arguments, got {len(args)} in '{text.strip()}'",
            rule,
        )

    if primitive is Primitive.CS:
        try:
            Procedure(args[0].token)
        except ValueError:
            raise ConfigurationError(
                f"Unknown conditional procedure '{args[0].token}'", rule
            ) from None

    return InstructionCall(primitive, args)


def parse_instructions(text: Optional[str], rule: Optional[str] = None) -> Tuple[InstructionCall, ...]:
    """Parse a full instruction string into calls.

    Args:
        text: Instruction string, e.g. ``"AC(DEPVS);LS(SOLD,1,DEPCN)"``. An
            empty string yields no calls.
        rule: Identifies the rule in error messages.

    Returns:
        Tuple of InstructionCall in string order.

    Raises:
        ConfigurationError: On any syntax error, unknown name, or bad arity.
    """
    if not text or not text.strip():
        return ()
    try:
        calls = _split_outside_quotes(text, ";")
    except ValueError as e:
        raise ConfigurationError(f"Malformed instruction string: {e}", rule) from e
    return tuple(parse_call(call, rule) for call in calls if call.strip())
