"""
S-52 symbology compiler: lookup, conditional procedures, primitive
interpreters and the style assembler.
"""

from .assembler import CompileResult, StyleAssembler, build
from .attributes import DATA_DRIVEN, AttributeReference
from .catalog import Feature, FeatureCatalog
from .diagnostics import Diagnostic, DiagnosticKind, Diagnostics
from .instructions import EvaluationContext, StyleLayerFragment, interpret
from .lookup import DisplayCategory, LookupRule, LookupTable, TableSet, load_default_table
from .parser import AttributeRef, Choice, InstructionCall, Literal, Primitive, Procedure, parse_instructions
from .procedures import DepthBand, depth_band

__all__ = [
    "AttributeRef",
    "AttributeReference",
    "Choice",
    "CompileResult",
    "DATA_DRIVEN",
    "DepthBand",
    "Diagnostic",
    "DiagnosticKind",
    "Diagnostics",
    "DisplayCategory",
    "EvaluationContext",
    "Feature",
    "FeatureCatalog",
    "InstructionCall",
    "Literal",
    "LookupRule",
    "LookupTable",
    "Primitive",
    "Procedure",
    "StyleAssembler",
    "StyleLayerFragment",
    "TableSet",
    "build",
    "depth_band",
    "interpret",
    "load_default_table",
    "parse_instructions",
]
