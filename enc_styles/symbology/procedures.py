"""
Conditional symbology procedures.

Some objects cannot be drawn from a fixed instruction string because their
symbolisation depends on attribute values and on the mariner's depth
settings: a sounding is coloured by whether it is shallower than the safety
depth, a depth area by the depth band it falls in, a light by its colour and
sectors. The lookup table names these with ``CS(NAME)``; each name maps to a
function here that returns ordinary instruction calls.

Depth bands are half-open and closed on the shallow side, so a depth equal
to a threshold belongs to the deeper band:

    INTERTIDAL      d < 0
    SHALLOW         0 <= d < shallow_depth
    MEDIUM_SHALLOW  shallow_depth <= d < safety_depth
    MEDIUM_DEEP     safety_depth <= d < deep_depth
    DEEP            d >= deep_depth

When an attribute a procedure branches on is data driven (present on the
features but only known to the renderer), the procedure returns
:class:`~enc_styles.symbology.parser.Choice` arguments instead of fixed
values, so the same banding is evaluated per feature by MapLibre.
"""

import logging
import math
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple, Union

from ..config import LayerConfig
from ..constants import (
    COLOUR_ABBREVIATIONS,
    DEFAULT_LIGHT_FLARE_ROTATION,
    LIGHT_CHARACTERS,
    SOUNDING_INTEGER_DEPTH,
)
from ..exceptions import ConfigurationError
from .attributes import AttributeReference
from .lookup import TableSet
from .parser import AttributeRef, Choice, InstructionCall, Literal, Primitive, Procedure

logger = logging.getLogger(__name__)


class DepthBand(str, Enum):
    INTERTIDAL = "INTERTIDAL"
    SHALLOW = "SHALLOW"
    MEDIUM_SHALLOW = "MEDIUM_SHALLOW"
    MEDIUM_DEEP = "MEDIUM_DEEP"
    DEEP = "DEEP"


def depth_band(depth: float, config: LayerConfig) -> DepthBand:
    """Classify ``depth`` (meters) against the configured thresholds."""
    if depth < 0:
        return DepthBand.INTERTIDAL
    if depth < config.shallow_depth:
        return DepthBand.SHALLOW
    if depth < config.safety_depth:
        return DepthBand.MEDIUM_SHALLOW
    if depth < config.deep_depth:
        return DepthBand.MEDIUM_DEEP
    return DepthBand.DEEP


DEPTH_AREA_COLOURS = {
    DepthBand.INTERTIDAL: "DEPIT",
    DepthBand.SHALLOW: "DEPVS",
    DepthBand.MEDIUM_SHALLOW: "DEPMS",
    DepthBand.MEDIUM_DEEP: "DEPMD",
    DepthBand.DEEP: "DEPDW",
}

# Shallow, safety band, deep
SOUNDING_COLOURS = {
    DepthBand.INTERTIDAL: "SNDG3",
    DepthBand.SHALLOW: "SNDG3",
    DepthBand.MEDIUM_SHALLOW: "SNDG2",
    DepthBand.MEDIUM_DEEP: "SNDG2",
    DepthBand.DEEP: "SNDG1",
}


def _call(primitive: Primitive, *args) -> InstructionCall:
    return InstructionCall(
        primitive,
        tuple(a if isinstance(a, (Literal, AttributeRef, Choice)) else Literal(a) for a in args),
    )


def _number(code: str, fallback: float) -> list:
    """Renderer-side numeric read; absent or malformed values give ``fallback``."""
    return ["to-number", ["coalesce", ["get", code], fallback], fallback]


def depth_choice(code: str, fallback: float, config: LayerConfig,
                 colours: Dict[DepthBand, str]) -> Choice:
    """Band colours of ``depth_band`` as a renderer-side ``step``.

    The band is constant between consecutive thresholds and closed on the
    shallow side, so evaluating it at each threshold gives the stop values.
    Adjacent stops with the same colour are merged.
    """
    breaks = sorted({0.0, float(config.shallow_depth), float(config.safety_depth),
                     float(config.deep_depth)})
    default = colours[depth_band(breaks[0] - 1, config)]
    stops = []
    previous = default
    for threshold in breaks:
        colour = colours[depth_band(threshold, config)]
        if colour != previous:
            stops.append((threshold, colour))
            previous = colour
    return Choice("step", tuple(stops), default, _number(code, fallback))


def _text(text: Union[str, list, AttributeRef], hjust: int, vjust: int, chars: str,
          xoffs: float, yoffs: float, colour: Union[str, Choice], group: int) -> InstructionCall:
    return _call(Primitive.TX, text, hjust, vjust, 2, chars, xoffs, yoffs, colour, group)


def _depth(attributes: AttributeReference, code: str, default: float) -> Optional[float]:
    """Known depth value, ``default`` when malformed, None when not known."""
    if not attributes.is_known(code):
        return None
    return attributes.get_float(code, default)


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


# ============================================================================
# Procedures
# ============================================================================

def soundg(attributes: AttributeReference, config: LayerConfig,
           table_set: TableSet) -> List[InstructionCall]:
    """Depth figure coloured by band; tenths shown below 31 m.

    A malformed DEPTH is treated as 0.0 m. A DEPTH not known at compile time
    is read by the renderer, which also picks the band colour.
    """
    depth = _depth(attributes, "DEPTH", 0.0)
    if depth is None:
        colour = depth_choice("DEPTH", 0.0, config, SOUNDING_COLOURS)
        return [_text(AttributeRef("DEPTH"), 1, 2, "15108", 0, 0, colour, 33)]

    band = depth_band(depth, config)
    # Truncate toward the surface so the figure never overstates the depth
    if abs(depth) < SOUNDING_INTEGER_DEPTH:
        text = f"{math.trunc(depth * 10) / 10:g}"
    else:
        text = str(math.trunc(depth))
    return [_text(text, 1, 2, "15108", 0, 0, SOUNDING_COLOURS[band], 33)]


def depcnt(attributes: AttributeReference, config: LayerConfig,
           table_set: TableSet) -> List[InstructionCall]:
    """Depth contour; the safety contour is drawn wider in DEPSC.

    Contours with an approximate position (QUAPOS 2-9) are dashed.
    """
    valdco = _depth(attributes, "VALDCO", 0.0)
    quapos = attributes.get_int("QUAPOS")
    style = "DASH" if quapos is not None and 2 <= quapos <= 9 else "SOLD"

    if attributes.is_data_driven("VALDCO"):
        safety = ["==", _number("VALDCO", 0.0), config.safety_depth]
        return [_call(Primitive.LS, style,
                      Choice("case", ((safety, 2),), 1),
                      Choice("case", ((safety, "DEPSC"),), "DEPCN"))]
    if valdco is not None and valdco == config.safety_depth:
        return [_call(Primitive.LS, style, 2, "DEPSC")]
    return [_call(Primitive.LS, style, 1, "DEPCN")]


def depare(attributes: AttributeReference, config: LayerConfig,
           table_set: TableSet) -> List[InstructionCall]:
    """Depth area fill by the band of its shallowest depth (DRVAL1).

    A missing or malformed DRVAL1 is taken as -1.0 m (drying); a data
    driven DRVAL1 is banded by the renderer. Dredged areas are overlaid with
    the DRGARE01 pattern and a dashed outline.
    """
    if attributes.is_data_driven("DRVAL1"):
        colour = depth_choice("DRVAL1", -1.0, config, DEPTH_AREA_COLOURS)
    else:
        drval1 = _depth(attributes, "DRVAL1", -1.0)
        if drval1 is None:
            drval1 = -1.0
        colour = DEPTH_AREA_COLOURS[depth_band(drval1, config)]

    calls = [_call(Primitive.AC, colour)]
    if attributes.object_class == "DRGARE":
        calls.append(_call(Primitive.AP, "DRGARE01"))
        calls.append(_call(Primitive.LS, "DASH", 1, "CHGRF"))
    return calls


_LIGHT_SYMBOLS = (
    ((3,), "LIGHTS11"),
    ((4,), "LIGHTS12"),
    ((1, 6, 11), "LIGHTS13"),
)

_DESCRIPTION_CODES = ("LITCHR", "SIGGRP", "COLOUR", "SIGPER", "HEIGHT", "VALNMR")


def _light_symbol(colours: List[int]) -> str:
    if colours:
        for codes, symbol in _LIGHT_SYMBOLS:
            if colours[0] in codes:
                return symbol
    return "LITDEF11"


def _colour_labels(code: int) -> Tuple[str, ...]:
    # COLOUR reaches the tiles as "3", "3,1" or a JSON array string "[3,1]"
    return (str(code), f"[{code}", f"[{code}]")


def _first_colour() -> list:
    text = ["concat", ["to-string", ["get", "COLOUR"]], ","]
    return ["slice", text, 0, ["index-of", ",", text]]


def light_symbol_choice() -> Choice:
    """``_light_symbol`` on the first COLOUR value, evaluated by the renderer."""
    stops = tuple(
        (tuple(label for code in codes for label in _colour_labels(code)), symbol)
        for codes, symbol in _LIGHT_SYMBOLS
    )
    return Choice("match", stops, "LITDEF11", _first_colour())


def _suffixed(code: str, suffix: str) -> list:
    return ["case", ["has", code], ["concat", ["to-string", ["get", code]], suffix], ""]


def light_description_expression() -> list:
    """:func:`light_description` as a MapLibre text expression.

    Single colours are abbreviated; multi-colour values are left out.
    """
    character = ["match", _number("LITCHR", 0)]
    for code, abbreviation in LIGHT_CHARACTERS.items():
        character.extend([code, abbreviation])
    character.append("")

    group = ["match", ["to-string", ["get", "SIGGRP"]], ["", "()", "(1)"], "",
             ["to-string", ["get", "SIGGRP"]]]

    colour = ["match", ["to-string", ["get", "COLOUR"]]]
    for code, abbreviation in COLOUR_ABBREVIATIONS.items():
        colour.extend([[str(code), f"[{code}]"], abbreviation])
    colour.append("")

    period = ["case", ["has", "SIGPER"],
              ["concat",
               ["case", ["any", ["has", "LITCHR"], ["has", "COLOUR"]], ".", ""],
               ["to-string", ["get", "SIGPER"]], "s"],
              ""]

    return ["concat", character, group, colour, period,
            _suffixed("HEIGHT", "m"), _suffixed("VALNMR", "M")]


def light_description(attributes: AttributeReference) -> str:
    """Abbreviated light description, e.g. ``Fl(2)WR.10s15m12M``."""
    parts = []

    litchr = attributes.get_int("LITCHR")
    if litchr is not None:
        parts.append(LIGHT_CHARACTERS.get(litchr, ""))

    siggrp = attributes.get_str("SIGGRP")
    if siggrp and siggrp.strip() not in ("()", "(1)"):
        parts.append(siggrp.strip())

    colours = "".join(COLOUR_ABBREVIATIONS.get(c, "") for c in attributes.get_list("COLOUR"))
    if colours:
        parts.append(colours)

    description = "".join(parts)

    sigper = attributes.get_float("SIGPER")
    if sigper is not None:
        description += f"{'.' if description else ''}{_format_number(sigper)}s"

    height = attributes.get_float("HEIGHT")
    if height is not None:
        description += f"{_format_number(height)}m"

    valnmr = attributes.get_float("VALNMR")
    if valnmr is not None:
        description += f"{_format_number(valnmr)}M"

    return description


def lights(attributes: AttributeReference, config: LayerConfig,
           table_set: TableSet) -> List[InstructionCall]:
    """Light flare by colour, turned toward the sector when one is given.

    Sector limits (SECTR1, SECTR2) are bearings taken from seaward, so the
    flare points along the reciprocal of the sector bisector.
    """
    if attributes.is_data_driven("COLOUR"):
        symbol = light_symbol_choice()
    else:
        symbol = _light_symbol(attributes.get_list("COLOUR"))

    sectr1 = attributes.get_float("SECTR1")
    sectr2 = attributes.get_float("SECTR2")
    if sectr1 is not None and sectr2 is not None:
        span = (sectr2 - sectr1) % 360 or 360.0
        rotation = round((sectr1 + span / 2 + 180) % 360, 1)
    else:
        rotation = DEFAULT_LIGHT_FLARE_ROTATION

    calls = [_call(Primitive.SY, symbol, rotation)]

    if any(attributes.is_data_driven(code) for code in _DESCRIPTION_CODES):
        description = light_description_expression()
    else:
        description = light_description(attributes)
    if description:
        calls.append(_text(description, 3, 2, "15110", 2, -1, "CHBLK", 23))
    return calls


def _danger(attributes: AttributeReference, config: LayerConfig, table_set: TableSet,
            symbol: Union[str, Choice]) -> List[InstructionCall]:
    if attributes.is_data_driven("VALSOU"):
        dangerous = ["all", ["has", "VALSOU"], ["<", _number("VALSOU", 0.0), config.safety_depth]]
    else:
        valsou = _depth(attributes, "VALSOU", 0.0)
        dangerous = valsou is not None and valsou < config.safety_depth

    if table_set is TableSet.AREAS:
        calls = [_call(Primitive.AC, "DEPVS"), _call(Primitive.LS, "DOTT", 2, "CHBLK")]
        if isinstance(dangerous, list):
            # Empty icon-image draws nothing
            calls.append(_call(Primitive.SY, Choice("case", ((dangerous, "ISODGR01"),), "")))
        elif dangerous:
            calls.append(_call(Primitive.SY, "ISODGR01"))
        return calls

    if table_set is TableSet.LINES:
        return [_call(Primitive.LS, "DOTT", 2, "CHBLK")]

    if isinstance(dangerous, list):
        if isinstance(symbol, Choice):
            stops = ((dangerous, "ISODGR01"),) + symbol.stops
            return [_call(Primitive.SY, Choice("case", stops, symbol.default))]
        return [_call(Primitive.SY, Choice("case", ((dangerous, "ISODGR01"),), symbol))]
    return [_call(Primitive.SY, "ISODGR01" if dangerous else symbol)]


_WRECK_SYMBOLS = {1: "WRECKS04", 2: "WRECKS05"}


def wrecks(attributes: AttributeReference, config: LayerConfig,
           table_set: TableSet) -> List[InstructionCall]:
    """Wreck; isolated danger symbol when shallower than the safety depth."""
    if attributes.is_data_driven("CATWRK"):
        category = _number("CATWRK", 0)
        symbol = Choice(
            "case",
            tuple((["==", category, code], name) for code, name in _WRECK_SYMBOLS.items()),
            "WRECKS01",
        )
    else:
        symbol = _WRECK_SYMBOLS.get(attributes.get_int("CATWRK"), "WRECKS01")
    return _danger(attributes, config, table_set, symbol)


def obstrn(attributes: AttributeReference, config: LayerConfig,
           table_set: TableSet) -> List[InstructionCall]:
    """Obstruction; isolated danger symbol when shallower than the safety depth."""
    if attributes.is_data_driven("VALSOU"):
        symbol = Choice("case", ((["has", "VALSOU"], "OBSTRN01"),), "OBSTRN11")
    else:
        symbol = "OBSTRN01" if attributes.is_known("VALSOU") else "OBSTRN11"
    return _danger(attributes, config, table_set, symbol)


ProcedureFunction = Callable[[AttributeReference, LayerConfig, TableSet], List[InstructionCall]]

PROCEDURES: Dict[Procedure, ProcedureFunction] = {
    Procedure.DEPARE01: depare,
    Procedure.DEPCNT02: depcnt,
    Procedure.LIGHTS05: lights,
    Procedure.OBSTRN04: obstrn,
    Procedure.SOUNDG02: soundg,
    Procedure.WRECKS02: wrecks,
}

# Attributes each procedure can hand to the renderer when data driven
PROCEDURE_ATTRIBUTES: Dict[Procedure, Tuple[str, ...]] = {
    Procedure.DEPARE01: ("DRVAL1",),
    Procedure.DEPCNT02: ("VALDCO",),
    Procedure.LIGHTS05: _DESCRIPTION_CODES,
    Procedure.OBSTRN04: ("VALSOU",),
    Procedure.SOUNDG02: ("DEPTH",),
    Procedure.WRECKS02: ("VALSOU", "CATWRK"),
}


def evaluate(
    procedure: Union[str, Procedure],
    attributes: AttributeReference,
    config: LayerConfig,
    table_set: Union[str, TableSet] = TableSet.POINTS,
) -> Tuple[InstructionCall, ...]:
    """Run a conditional procedure and return the calls it resolves to.

    Raises:
        ConfigurationError: If ``procedure`` is not a known procedure name.
    """
    try:
        procedure = Procedure(procedure)
        function = PROCEDURES[procedure]
    except (ValueError, KeyError):
        raise ConfigurationError(f"Unknown conditional procedure '{procedure}'") from None

    calls = tuple(function(attributes, config, TableSet.parse(table_set)))
    logger.debug(
        f"{procedure.value} on {attributes.object_class}: "
        f"{';'.join(str(c) for c in calls)}"
    )
    return calls
