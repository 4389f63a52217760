"""
Interpreters for the S-52 drawing instructions.

Each interpreter turns one parsed :class:`InstructionCall` and a feature's
attributes into zero or more :class:`StyleLayerFragment` values: the type,
paint and layout of a MapLibre layer, without id, source or filter (the
assembler adds those). Interpreters do not mutate their inputs; the only
effect they have is recording recoverable problems on the context's
diagnostics.

Colour tokens are resolved through the palette of the context's display
mode, so changing mode only changes colour values.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..config import LayerConfig
from ..constants import (
    AREA_TRANSPARENCY_OPACITY,
    DEFAULT_TEXT_SIZE_PT,
    LINE_DASH_PATTERNS,
    LINE_WIDTHS_PX,
    PICA_POINT_MM,
    SCREEN_DPI,
    TEXT_ANCHORS,
    TEXT_FONT_BOLD,
    TEXT_FONT_ITALIC,
    TEXT_FONT_REGULAR,
    TEXT_HALO_COLOR_TOKEN,
    TEXT_HALO_WIDTH,
)
from ..data.palette import ColorPalette
from ..data.registry import SymbolRegistry
from ..exceptions import ConfigurationError
from .attributes import AttributeReference
from .diagnostics import Diagnostics
from .lookup import TableSet
from .parser import Argument, AttributeRef, Choice, InstructionCall, Literal, Primitive
from . import procedures

logger = logging.getLogger(__name__)

_PRINTF_FIELD = re.compile(r"%[-+ 0#]*(\d+)?(?:\.(\d+))?l?([sdfi])")


@dataclass(frozen=True)
class StyleLayerFragment:
    """Partial MapLibre layer: type plus paint and layout properties."""

    type: str
    paint: Mapping[str, Any] = field(default_factory=dict)
    layout: Mapping[str, Any] = field(default_factory=dict)

    def to_layer(self, layer_id: str, source: str, source_layer: str,
                 layer_filter: Optional[list] = None,
                 metadata: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        layer: Dict[str, Any] = {
            "id": layer_id,
            "type": self.type,
            "source": source,
            "source-layer": source_layer,
        }
        if layer_filter is not None:
            layer["filter"] = layer_filter
        if metadata:
            layer["metadata"] = dict(metadata)
        if self.layout:
            layer["layout"] = dict(self.layout)
        if self.paint:
            layer["paint"] = dict(self.paint)
        return layer


@dataclass(frozen=True)
class EvaluationContext:
    """Everything an interpreter reads besides the call and attributes."""

    config: LayerConfig
    palette: ColorPalette
    registry: SymbolRegistry
    diagnostics: Diagnostics
    table_set: TableSet = TableSet.POINTS

    def color(self, token: str) -> str:
        return self.palette.resolve(self.config.mode, token)


# ============================================================================
# Argument resolution
# ============================================================================

def resolve(arg: Argument, attributes: AttributeReference) -> Any:
    """Resolve an argument against a feature.

    Literals resolve to their value. An attribute reference resolves to the
    feature's value when known at compile time, otherwise to the expression
    ``["get", CODE]`` so the renderer reads it per feature.
    """
    if isinstance(arg, Literal):
        return arg.value
    if attributes.is_known(arg.code):
        return attributes.raw(arg.code)
    return ["get", arg.code]


def resolve_number(arg: Argument, attributes: AttributeReference, default: float) -> Any:
    """Resolve a numeric argument; malformed attribute values give ``default``."""
    if isinstance(arg, AttributeRef):
        if not attributes.is_known(arg.code):
            return ["get", arg.code]
        value = attributes.get_float(arg.code, default)
        return int(value) if float(value).is_integer() else value
    if arg.value is None:
        return default
    try:
        return float(arg.value) if not isinstance(arg.value, (int, float)) else arg.value
    except (TypeError, ValueError):
        return default


def _int_literal(arg: Argument, default: int) -> int:
    if isinstance(arg, Literal) and arg.value is not None:
        try:
            return int(arg.value)
        except (TypeError, ValueError):
            return default
    return default


def resolve_color(arg: Argument, context: EvaluationContext) -> Any:
    """Colour value of a token, or an expression over the tokens of a Choice."""
    if isinstance(arg, Choice):
        return arg.expression(context.color)
    return context.color(arg.token)


def _line_width(arg: Argument) -> Any:
    if isinstance(arg, Choice):
        return arg.expression(lambda width: LINE_WIDTHS_PX[int(width)])
    return LINE_WIDTHS_PX[_int_literal(arg, 1)]


# ============================================================================
# Interpreters
# ============================================================================

def show_symbol(call: InstructionCall, attributes: AttributeReference,
                context: EvaluationContext) -> List[StyleLayerFragment]:
    """SY(SYMBOL [,ROT]) - symbol centred on its pivot point.

    ROT is degrees clockwise, 0-360. A literal rotation is relative to the
    screen; a rotation read from an attribute such as ORIENT is relative to
    true north. No rotation property is emitted for a rotation of 0.

    A symbol picked per feature (a Choice) draws nothing for an empty name.
    """
    symbol = call.arg(0)
    if isinstance(symbol, Choice):
        image, offset = _symbol_choice(symbol, attributes, context)
        if image is None:
            return []
    else:
        entry = context.registry.get(symbol.token)
        if entry is None:
            context.diagnostics.missing_asset(symbol.token, attributes.object_class)
            return []
        image, offset = symbol.token, list(entry.offset)

    rot_arg = call.arg(1, 0)
    rotation = resolve_number(rot_arg, attributes, 0)
    if isinstance(rotation, (int, float)) and not 0 <= rotation <= 360:
        rotation = rotation % 360

    layout: Dict[str, Any] = {
        "symbol-placement": "point",
        "icon-allow-overlap": True,
        "icon-ignore-placement": True,
        "icon-image": image,
        "icon-offset": offset,
    }
    if rotation != 0:
        layout["icon-rotate"] = rotation
        layout["icon-rotation-alignment"] = "map" if isinstance(rot_arg, AttributeRef) else "viewport"

    return [StyleLayerFragment("symbol", layout=layout)]


def _symbol_choice(choice: Choice, attributes: AttributeReference, context: EvaluationContext):
    """icon-image and icon-offset expressions; missing symbols draw nothing."""
    entries = {}
    for name in choice.options:
        if not name:
            continue
        entry = context.registry.get(name)
        if entry is None:
            context.diagnostics.missing_asset(name, attributes.object_class)
        else:
            entries[name] = entry
    if not entries:
        return None, None

    image = choice.expression(lambda name: name if name in entries else "")
    offset = choice.expression(
        lambda name: ["literal", list(entries[name].offset)] if name in entries else ["literal", [0, 0]]
    )
    return image, offset


def show_line(call: InstructionCall, attributes: AttributeReference,
              context: EvaluationContext) -> List[StyleLayerFragment]:
    """LS(PSTYLE, WIDTH, COLOUR) - simple solid, dashed or dotted line."""
    style = call.arg(0).token.upper()
    width = _line_width(call.arg(1))

    paint: Dict[str, Any] = {
        "line-color": resolve_color(call.arg(2), context),
        "line-width": width,
    }
    dash = LINE_DASH_PATTERNS[style]
    if dash:
        paint["line-dasharray"] = list(dash)

    layout = {"line-cap": "butt" if dash else "round", "line-join": "round"}
    return [StyleLayerFragment("line", paint=paint, layout=layout)]


def show_complex_line(call: InstructionCall, attributes: AttributeReference,
                      context: EvaluationContext) -> List[StyleLayerFragment]:
    """LC(LINNAME) - line drawn with a repeated pattern from the sprite."""
    name = call.arg(0).token
    entry = context.registry.get(name)
    if entry is None:
        context.diagnostics.missing_asset(name, attributes.object_class)
        return []

    paint = {"line-pattern": name, "line-width": entry.bbox[3]}
    return [StyleLayerFragment("line", paint=paint, layout={"line-join": "round"})]


def fill_color(call: InstructionCall, attributes: AttributeReference,
               context: EvaluationContext) -> List[StyleLayerFragment]:
    """AC(AREACO [,TRANSP]) - solid area fill, TRANSP 0 (opaque) to 4."""
    transparency = _int_literal(call.arg(1, 0), 0)
    paint = {
        "fill-color": resolve_color(call.arg(0), context),
        "fill-opacity": AREA_TRANSPARENCY_OPACITY[transparency],
    }
    return [StyleLayerFragment("fill", paint=paint)]


def fill_pattern(call: InstructionCall, attributes: AttributeReference,
                 context: EvaluationContext) -> List[StyleLayerFragment]:
    """AP(PATNAME) - area fill with a tiled pattern, aligned to the map."""
    name = call.arg(0).token
    if name not in context.registry:
        context.diagnostics.missing_asset(name, attributes.object_class)
        return []

    paint = {
        "fill-pattern": name,
        "fill-opacity": 1.0,
        "fill-translate-anchor": "map",
    }
    return [StyleLayerFragment("fill", paint=paint)]


def _text_fragment(text_field: Any, params: List[Argument],
                   context: EvaluationContext) -> List[StyleLayerFragment]:
    """Common text layout for TX and TE.

    ``params`` are HJUST, VJUST, SPACE, CHARS, XOFFS, YOFFS, COLOUR, DISPLAY.
    """
    def param(index: int, default: Any = None) -> Argument:
        return params[index] if index < len(params) else Literal(default)

    hjust = _int_literal(param(0, 1), 1)
    vjust = _int_literal(param(1, 1), 1)
    space = _int_literal(param(2, 2), 2)
    chars = str(param(3, "").token or "")

    size_pt = DEFAULT_TEXT_SIZE_PT
    if len(chars) >= 4 and chars[3:].isdigit():
        size_pt = int(chars[3:])
    weight = chars[1] if len(chars) > 1 else "5"
    slant = chars[2] if len(chars) > 2 else "1"
    if weight == "6":
        font = TEXT_FONT_BOLD
    elif slant == "2":
        font = TEXT_FONT_ITALIC
    else:
        font = TEXT_FONT_REGULAR

    xoffs = _int_literal(param(4, 0), 0)
    yoffs = _int_literal(param(5, 0), 0)
    colour = param(6, "CHBLK")
    if not isinstance(colour, Choice) and not colour.token:
        colour = Literal("CHBLK")

    layout: Dict[str, Any] = {
        "symbol-placement": "point",
        "text-field": text_field,
        "text-font": list(font),
        "text-size": round(size_pt * PICA_POINT_MM * SCREEN_DPI / 25.4, 1),
        "text-anchor": TEXT_ANCHORS.get((hjust, vjust), "center"),
        "text-offset": [xoffs, yoffs],
        "text-allow-overlap": False,
    }
    if space == 3:
        layout["text-max-width"] = 8

    paint = {
        "text-color": resolve_color(colour, context),
        "text-halo-color": context.color(TEXT_HALO_COLOR_TOKEN),
        "text-halo-width": TEXT_HALO_WIDTH,
    }
    return [StyleLayerFragment("symbol", paint=paint, layout=layout)]


def show_text(call: InstructionCall, attributes: AttributeReference,
              context: EvaluationContext) -> List[StyleLayerFragment]:
    """TX(STRING, HJUST, VJUST, SPACE, CHARS, XOFFS, YOFFS, COLOUR, DISPLAY)."""
    text = resolve(call.arg(0), attributes)
    if text is None or text == "":
        return []
    if not isinstance(text, list):
        text = str(text)
    return _text_fragment(text, list(call.args[1:]), context)


def format_text(fmt: str, codes: List[str], attributes: AttributeReference) -> Any:
    """Apply a TE printf-style format to attribute values.

    Returns a plain string when every value is known at compile time,
    otherwise a MapLibre ``concat`` expression reading the unknown values
    per feature.
    """
    pieces: List[Any] = []
    position = 0
    for index, match in enumerate(_PRINTF_FIELD.finditer(fmt)):
        if match.start() > position:
            pieces.append(fmt[position:match.start()])
        position = match.end()

        code = codes[index] if index < len(codes) else None
        precision, conversion = match.group(2), match.group(3)
        if code is None:
            continue
        if not attributes.is_known(code):
            value = ["get", code]
            if conversion == "f" and precision is not None:
                digits = int(precision)
                value = ["number-format", ["to-number", value],
                         {"min-fraction-digits": digits, "max-fraction-digits": digits}]
            else:
                value = ["to-string", value]
            pieces.append(value)
            continue

        if conversion in ("d", "i", "f"):
            number = attributes.get_float(code)
            if number is None:
                return None
            if conversion == "f":
                pieces.append(f"{number:.{int(precision) if precision else 6}f}")
            else:
                pieces.append(str(int(number)))
        else:
            pieces.append(attributes.get_str(code))
    if position < len(fmt):
        pieces.append(fmt[position:])

    if all(isinstance(p, str) for p in pieces):
        return "".join(pieces)
    return ["concat", *pieces]


def show_formatted_text(call: InstructionCall, attributes: AttributeReference,
                        context: EvaluationContext) -> List[StyleLayerFragment]:
    """TE('FORMAT', 'ATTRIBS', HJUST, VJUST, SPACE, CHARS, XOFFS, YOFFS, COLOUR, DISPLAY)."""
    fmt = str(call.arg(0).token)
    codes = [c.strip() for c in call.arg(1).token.split(",") if c.strip()]
    text = format_text(fmt, codes, attributes)
    if text is None or text == "":
        return []
    return _text_fragment(text, list(call.args[2:]), context)


def conditional(call: InstructionCall, attributes: AttributeReference,
                context: EvaluationContext) -> List[StyleLayerFragment]:
    """CS(PROCNAME) - evaluate a procedure and interpret the calls it returns."""
    calls = procedures.evaluate(call.procedure, attributes, context.config, context.table_set)
    fragments: List[StyleLayerFragment] = []
    for resolved in calls:
        if resolved.primitive is Primitive.CS:
            raise ConfigurationError(f"Procedure {call.procedure.value} returned a CS call")
        fragments.extend(interpret(resolved, attributes, context))
    return fragments


Interpreter = Callable[[InstructionCall, AttributeReference, EvaluationContext], List[StyleLayerFragment]]

INTERPRETERS: Dict[Primitive, Interpreter] = {
    Primitive.SY: show_symbol,
    Primitive.LS: show_line,
    Primitive.LC: show_complex_line,
    Primitive.AC: fill_color,
    Primitive.AP: fill_pattern,
    Primitive.TX: show_text,
    Primitive.TE: show_formatted_text,
    Primitive.CS: conditional,
}


def interpret(call: InstructionCall, attributes: AttributeReference,
              context: EvaluationContext) -> List[StyleLayerFragment]:
    """Dispatch ``call`` to the interpreter for its primitive."""
    return INTERPRETERS[call.primitive](call, attributes, context)


# ============================================================================
# Static checks
# ============================================================================

def _check_colour(arg: Argument, palette: ColorPalette, rule: str) -> None:
    if isinstance(arg, Literal) and arg.value is not None and not palette.has(arg.token):
        raise ConfigurationError(f"Unknown colour token '{arg.token}'", rule)


def validate_call(call: InstructionCall, palette: ColorPalette, rule: str) -> None:
    """Reject literal parameters that can never be drawn.

    Run once per rule when an assembler is built, so bad table data fails
    before any feature is compiled.

    Raises:
        ConfigurationError: On an unknown line style, width, transparency or
            colour token.
    """
    if call.primitive is Primitive.LS:
        if call.arg(0).token.upper() not in LINE_DASH_PATTERNS:
            raise ConfigurationError(f"Unknown line style '{call.arg(0).token}'", rule)
        if _int_literal(call.arg(1), -1) not in LINE_WIDTHS_PX:
            raise ConfigurationError(f"Line width must be 1-9, got '{call.arg(1).token}'", rule)
        _check_colour(call.arg(2), palette, rule)
    elif call.primitive is Primitive.AC:
        _check_colour(call.arg(0), palette, rule)
        if _int_literal(call.arg(1, 0), -1) not in AREA_TRANSPARENCY_OPACITY:
            raise ConfigurationError(f"Transparency must be 0-4, got '{call.arg(1, 0).token}'", rule)
    elif call.primitive is Primitive.TX:
        if len(call.args) > 7:
            _check_colour(call.args[7], palette, rule)
    elif call.primitive is Primitive.TE:
        if len(call.args) > 8:
            _check_colour(call.args[8], palette, rule)
