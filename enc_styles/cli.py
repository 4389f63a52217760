"""
Command-line interface for enc_styles package.

Provides argparse-based CLI with subcommands for compiling a style, compiling
one style per display mode, and inspecting lookup rule selection.

Usage:
    enc-styles style --tiles https://example.com/enc.pmtiles --sprite https://example.com/sprites --output style.json
    enc-styles modes --source-url https://example.com/enc.json --output-dir styles/
    enc-styles lookup --object-class BOYLAT --table-set POINTS --attribute CATLAM=1
"""

import argparse
import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Optional

from .api import compile_style, write_style
from .batch import BatchStyleGenerator
from .config import DisplayMode, LayerConfig
from .constants import DEFAULT_STYLE_NAME
from .data.palette import ColorPalette
from .data.registry import SymbolRegistry
from .exceptions import EncStylesError
from .logging_config import setup_logging
from .symbology.assembler import StyleAssembler
from .symbology.attributes import AttributeReference
from .symbology.catalog import FeatureCatalog
from .symbology.diagnostics import Diagnostics
from .symbology.lookup import LookupTable, TableSet
from .symbology.parser import Primitive
from .symbology import procedures


def setup_logging_from_args(args: argparse.Namespace) -> None:
    """
    Configure logging based on command-line arguments.

    Args:
        args: Parsed command-line arguments with verbose, quiet, log_file,
            diagnostics_file
    """
    if hasattr(args, 'silent') and args.silent:
        verbosity = -2  # ERROR
    elif hasattr(args, 'quiet') and args.quiet:
        verbosity = -1  # WARNING
    elif hasattr(args, 'verbose') and args.verbose:
        verbosity = 1  # DEBUG
    else:
        verbosity = 0  # INFO

    log_file = getattr(args, 'log_file', None)
    diagnostics_file = getattr(args, 'diagnostics_file', None)
    setup_logging(verbosity=verbosity, log_file=log_file, diagnostics_file=diagnostics_file)


def validate_mode(mode_str: str) -> DisplayMode:
    """
    Validate display mode name.

    Raises:
        argparse.ArgumentTypeError: If mode is invalid
    """
    try:
        return DisplayMode.parse(mode_str)
    except EncStylesError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def validate_table_set(value: str) -> TableSet:
    """
    Validate table set name.

    Raises:
        argparse.ArgumentTypeError: If the table set is invalid
    """
    try:
        return TableSet.parse(value)
    except EncStylesError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def parse_attribute(pair: str) -> tuple:
    """
    Parse a CODE=VALUE attribute assignment.

    Raises:
        argparse.ArgumentTypeError: If the value is not CODE=VALUE
    """
    code, sep, value = pair.partition("=")
    if not sep or not code.strip():
        raise argparse.ArgumentTypeError(
            f"Invalid attribute: {pair}. Expected CODE=VALUE, e.g. CATLAM=1"
        )
    return code.strip().upper(), value.strip()


def load_config(config_path: Optional[str]) -> LayerConfig:
    """
    Load configuration from file.

    Args:
        config_path: Path to config file (YAML or JSON)

    Returns:
        LayerConfig, the default configuration if no path provided
    """
    if config_path is None:
        return LayerConfig()

    try:
        return LayerConfig.load_from_file(config_path)
    except (EncStylesError, OSError) as e:
        print(f"Error loading config from {config_path}: {e}", file=sys.stderr)
        sys.exit(1)


def load_source(args: argparse.Namespace) -> Dict[str, Any]:
    """Build the vector source descriptor from --source-url, --tiles or --source-json."""
    if getattr(args, "source_json", None):
        with open(args.source_json, "r", encoding="utf8") as f:
            return json.load(f)
    if getattr(args, "tiles", None):
        return {"type": "vector", "url": f"pmtiles://{args.tiles}"}
    return {"type": "vector", "url": args.source_url}


def build_assembler(args: argparse.Namespace) -> StyleAssembler:
    """Assembler using --rules, --symbols and --colors overrides where given."""
    table = LookupTable.load_from_file(args.rules) if getattr(args, "rules", None) else None
    registry = SymbolRegistry.load_from_file(args.symbols) if getattr(args, "symbols", None) else None
    palette = ColorPalette.load_from_file(args.colors) if getattr(args, "colors", None) else None
    return StyleAssembler(table=table, registry=registry, palette=palette)


def _cli_print(args: argparse.Namespace, *values: object, **kwargs) -> None:
    """Print unless --silent was provided."""
    if getattr(args, "silent", False):
        return
    print(*values, **kwargs)


def cmd_style(args: argparse.Namespace) -> int:
    """Handle 'style' subcommand."""
    try:
        config = load_config(args.config)
        if args.source_id:
            config = replace(config, source_id=args.source_id)
        features = FeatureCatalog.load_from_file(args.features) if args.features else None

        document, diagnostics = compile_style(
            load_source(args),
            name=args.name,
            mode=args.mode,
            sprite=args.sprite,
            config=config,
            features=features,
            assembler=build_assembler(args),
        )

        if args.output is None:
            print(json.dumps(document, indent=2))
            return 0

        output_path = write_style(document, args.output)
        if getattr(args, "silent", False):
            print(str(output_path))
        else:
            print(f"Success! Style saved to: {output_path}")
            print(f"  Layers: {len(document['layers'])}")
            print(f"  Diagnostics: {len(diagnostics)}")
            for record in diagnostics:
                print(f"    {record}")
        return 0

    except EncStylesError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        return 1


def cmd_modes(args: argparse.Namespace) -> int:
    """Handle 'modes' subcommand."""
    _cli_print(args, f"Compiling styles for modes: {', '.join(m.value for m in args.modes)}")

    try:
        config = load_config(args.config)
        if args.source_id:
            config = replace(config, source_id=args.source_id)
        features = FeatureCatalog.load_from_file(args.features) if args.features else None

        batch = BatchStyleGenerator(
            load_source(args),
            name=args.name,
            sprite=args.sprite,
            config=config,
            features=features,
            output_dir=Path(args.output_dir),
            assembler=build_assembler(args),
        )
        result = batch.generate_styles(
            modes=args.modes,
            parallel=args.parallel,
            max_workers=args.workers,
        )

        successful = len(result['successful_styles'])
        total = successful + len(result['failed_modes'])

        if getattr(args, "silent", False):
            for path in result['successful_styles'].values():
                print(path)
        else:
            print("\nBatch compile complete!")
            print(f"  Successful: {successful}/{total}")
            print(f"  Total time: {result['total_time']:.2f}s")
            for mode, path in result['successful_styles'].items():
                print(f"  {mode}: {path} ({result['diagnostics'][mode]} diagnostics)")

        if result['failed_modes']:
            _cli_print(args, f"  Failed modes: {result['failed_modes']}")

        return 0 if not result['failed_modes'] else 1

    except EncStylesError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        return 1


def cmd_lookup(args: argparse.Namespace) -> int:
    """Handle 'lookup' subcommand."""
    try:
        assembler = build_assembler(args)
        config = load_config(args.config)
        attributes = AttributeReference(args.object_class.upper(), dict(args.attribute or []), Diagnostics())

        rule = assembler.table.select_rule(attributes.object_class, attributes, args.table_set)
        if rule is None:
            print(f"No rule for {attributes.object_class} in {args.table_set.value} (not drawn)")
            return 0

        print(f"Rule:        {rule.name}")
        print(f"Instruction: {rule.instruction}")
        print(f"Priority:    {rule.priority}")
        print(f"Category:    {rule.category.value}")
        for call in rule.calls:
            if call.primitive is Primitive.CS:
                resolved = procedures.evaluate(call.procedure, attributes, config, args.table_set)
                print(f"  {call} -> {';'.join(str(c) for c in resolved)}")
        return 0

    except EncStylesError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def main(argv: Optional[list] = None) -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        prog="enc-styles",
        description="Compile S-52 chart symbology into MapLibre styles for ENC vector tiles",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    def _add_common_globalish_args(p: argparse.ArgumentParser, subcommand: bool = False) -> None:
        """Add args that users reasonably expect to work after subcommands too.

        Argparse only treats options as "global" when they appear before the
        subcommand token, so these are added to subparsers as well. Subparser
        copies default to SUPPRESS so they do not reset a value given before
        the subcommand.
        """
        flag_default = argparse.SUPPRESS if subcommand else False
        value_default = argparse.SUPPRESS if subcommand else None
        p.add_argument(
            "-v", "--verbose",
            action="store_true",
            default=flag_default,
            help="Enable DEBUG logging"
        )
        p.add_argument(
            "-q", "--quiet",
            action="store_true",
            default=flag_default,
            help="Suppress INFO logging (WARNING+ only)"
        )
        p.add_argument(
            "--silent",
            action="store_true",
            default=flag_default,
            help="Suppress most console output (prints only final output path(s))"
        )
        p.add_argument(
            "--log-file",
            type=str,
            default=value_default,
            help="Write logs to file"
        )
        p.add_argument(
            "--diagnostics-file",
            type=str,
            default=value_default,
            help="Write compile diagnostics (missing symbols, bad attribute values) to file"
        )

    def _add_table_args(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "--rules",
            type=str,
            help="Lookup table file (YAML/JSON) instead of the bundled table"
        )
        p.add_argument(
            "--symbols",
            type=str,
            help="Sprite index JSON instead of the bundled registry"
        )
        p.add_argument(
            "--colors",
            type=str,
            help="Colour palette YAML instead of the bundled palettes"
        )
        p.add_argument(
            "--config",
            type=str,
            help="Layer config file path (YAML/JSON)"
        )

    def _add_source_args(p: argparse.ArgumentParser) -> None:
        group = p.add_mutually_exclusive_group(required=True)
        group.add_argument(
            "--source-url",
            type=str,
            help="TileJSON URL of the vector source"
        )
        group.add_argument(
            "--tiles",
            type=str,
            help="PMTiles archive URL (used as pmtiles://<tiles>)"
        )
        group.add_argument(
            "--source-json",
            type=str,
            help="JSON file holding the full source descriptor"
        )
        p.add_argument(
            "--source-id",
            type=str,
            help="Source id (default: from config, 'enc')"
        )
        p.add_argument(
            "--name",
            type=str,
            default=DEFAULT_STYLE_NAME,
            help=f"Style name (default: {DEFAULT_STYLE_NAME})"
        )
        p.add_argument(
            "--sprite",
            type=str,
            help="Sprite base URL; the mode is appended as /day, /dusk or /night"
        )
        p.add_argument(
            "--features",
            type=str,
            help="Feature catalog (JSON/YAML list or GeoJSON FeatureCollection)"
        )

    # Global arguments (still supported before subcommands)
    _add_common_globalish_args(parser)

    # Subcommands
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # ========================================================================
    # style subcommand
    # ========================================================================
    parser_style = subparsers.add_parser(
        "style",
        help="Compile a single style document"
    )
    _add_common_globalish_args(parser_style, subcommand=True)
    _add_source_args(parser_style)
    _add_table_args(parser_style)
    parser_style.add_argument(
        "--mode",
        type=validate_mode,
        help="Display mode (DAY, DUSK, NIGHT; default: from config, DAY)"
    )
    parser_style.add_argument(
        "--output",
        type=str,
        help="Output file path (default: print to stdout)"
    )
    parser_style.set_defaults(func=cmd_style)

    # ========================================================================
    # modes subcommand
    # ========================================================================
    parser_modes = subparsers.add_parser(
        "modes",
        help="Compile one style per display mode"
    )
    _add_common_globalish_args(parser_modes, subcommand=True)
    _add_source_args(parser_modes)
    _add_table_args(parser_modes)
    parser_modes.add_argument(
        "--modes",
        type=validate_mode,
        nargs="+",
        default=list(DisplayMode),
        help="Modes to compile (default: DAY DUSK NIGHT)"
    )
    parser_modes.add_argument(
        "--output-dir",
        type=str,
        required=True,
        help="Output directory for style-<mode>.json files"
    )
    parser_modes.add_argument(
        "--parallel",
        action="store_true",
        help="Compile modes in parallel"
    )
    parser_modes.add_argument(
        "--workers",
        type=int,
        help="Number of parallel workers"
    )
    parser_modes.set_defaults(func=cmd_modes)

    # ========================================================================
    # lookup subcommand
    # ========================================================================
    parser_lookup = subparsers.add_parser(
        "lookup",
        help="Show the rule selected for an object class and attributes"
    )
    _add_common_globalish_args(parser_lookup, subcommand=True)
    _add_table_args(parser_lookup)
    parser_lookup.add_argument(
        "--object-class",
        type=str,
        required=True,
        help="S-57 object class, e.g. BOYLAT"
    )
    parser_lookup.add_argument(
        "--table-set",
        type=validate_table_set,
        default=TableSet.POINTS,
        help="POINTS, LINES or AREAS (default: POINTS)"
    )
    parser_lookup.add_argument(
        "--attribute",
        type=parse_attribute,
        action="append",
        help="Attribute value as CODE=VALUE (repeatable)"
    )
    parser_lookup.set_defaults(func=cmd_lookup)

    # Parse arguments
    args = parser.parse_args(argv)

    # Check if subcommand was provided
    if not hasattr(args, 'func'):
        parser.print_help()
        return 1

    # Setup logging
    setup_logging_from_args(args)

    # Execute subcommand
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
