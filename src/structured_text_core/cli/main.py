"""Main CLI entry point for the structured-text command-line tool.

Provides XML to JSON conversion, JSON to XML rendering and JSON Lines
validation over files or standard input.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Union

from structured_text_core import __version__
from structured_text_core.lines import ValidationResult, to_json_array_string, validate
from structured_text_core.shared import (
    ConfigValidationError,
    CoreConfig,
    StructuredTextError,
    get_logger,
)
from structured_text_core.tree import convert, to_xml

STDIN_MARKER = "-"
MAX_ERRORS_SHOWN = 20

logger = get_logger(__name__, None, "cli")


def load_config(args: argparse.Namespace) -> CoreConfig:
    """Build the configuration: ``--preset`` first, then ``--config`` on top."""
    config = CoreConfig.preset(args.preset) if args.preset else CoreConfig()
    if args.config:
        config = config.merge_json(args.config.read_text(encoding="utf-8-sig"))
    return config


def read_input(source: str, binary: bool = False) -> Union[str, bytes]:
    """Read a path, or standard input when ``source`` is ``-``."""
    if source == STDIN_MARKER:
        return sys.stdin.buffer.read() if binary else sys.stdin.read()
    path = Path(source)
    return path.read_bytes() if binary else path.read_text(encoding="utf-8-sig")


def write_output(text: str, output: Optional[Path]) -> None:
    """Write to ``output`` if given, otherwise to standard output."""
    if output:
        output.write_text(text + "\n", encoding="utf-8")
        print(f"Results written to {output}", file=sys.stderr)
    else:
        print(text)


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="structured-text",
        description="Convert XML and JSON and validate JSON Lines documents"
    )

    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Configuration file path (JSON)"
    )
    parser.add_argument(
        "--preset",
        choices=["strict", "lenient", "compact"],
        help="Configuration preset"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # xml2json command
    xml_parser = subparsers.add_parser("xml2json", help="Convert XML to JSON")
    xml_parser.add_argument("source", help="XML file, or - for standard input")
    xml_parser.add_argument(
        "--indent",
        type=int,
        default=2,
        help="JSON indentation (default: 2, 0 for a single line)"
    )
    xml_parser.add_argument("--output", "-o", type=Path, help="Output file")

    # json2xml command
    json_parser = subparsers.add_parser("json2xml", help="Convert JSON to XML")
    json_parser.add_argument("source", help="JSON file, or - for standard input")
    json_parser.add_argument("--output", "-o", type=Path, help="Output file")

    # validate command
    validate_parser = subparsers.add_parser(
        "validate", help="Validate a JSON Lines document"
    )
    validate_parser.add_argument(
        "source", help="JSON Lines file, or - for standard input"
    )
    validate_parser.add_argument(
        "--format", "-f",
        choices=["json", "text"],
        default="text",
        help="Report format (default: text)"
    )
    validate_parser.add_argument(
        "--records-as-array",
        action="store_true",
        help="Print the valid records as one JSON array instead of a report"
    )
    validate_parser.add_argument("--output", "-o", type=Path, help="Output file")

    return parser


def format_validation(result: ValidationResult, format_type: str) -> str:
    """Format a validation result as a report."""
    if format_type == "json":
        return json.dumps(result.to_dict(), indent=2, ensure_ascii=False)

    lines = [
        f"Validated {result.total_lines} lines: {result.valid_lines} valid, "
        f"{result.invalid_lines} invalid, {result.empty_lines} empty",
        "-" * 50,
    ]

    for error in result.errors[:MAX_ERRORS_SHOWN]:
        lines.append(f"✗ {error}")
        lines.append(f"   {error.line_content}")
        if error.column_number is not None:
            lines.append("   " + " " * (error.column_number - 1) + "^")
    if len(result.errors) > MAX_ERRORS_SHOWN:
        lines.append(f"... and {len(result.errors) - MAX_ERRORS_SHOWN} more errors")

    if result.key_frequency:
        lines.append("Key frequency:")
        for key, count in sorted(
            result.key_frequency.items(), key=lambda item: (-item[1], item[0])
        ):
            lines.append(f"   {key}: {count}")

    return "\n".join(lines)


def cmd_xml2json(args: argparse.Namespace, config: CoreConfig) -> int:
    """Handle xml2json command."""
    converted = convert(read_input(args.source, binary=True), config.converter)
    indent = args.indent if args.indent > 0 else None
    write_output(json.dumps(converted, indent=indent, ensure_ascii=False), args.output)
    return 0


def cmd_json2xml(args: argparse.Namespace, config: CoreConfig) -> int:
    """Handle json2xml command."""
    write_output(to_xml(read_input(args.source), config.builder), args.output)
    return 0


def cmd_validate(args: argparse.Namespace, config: CoreConfig) -> int:
    """Handle validate command."""
    result = validate(read_input(args.source), config.validator)

    if args.records_as_array:
        output = to_json_array_string(result, indent=config.validator.array_indent)
    else:
        output = format_validation(result, args.format)
    write_output(output, args.output)

    return 0 if result.is_valid else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    # Set up logging verbosity
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    elif args.quiet:
        logging.basicConfig(level=logging.ERROR)

    handlers = {
        "xml2json": cmd_xml2json,
        "json2xml": cmd_json2xml,
        "validate": cmd_validate,
    }

    try:
        config = load_config(args)
        return handlers[args.command](args, config)
    except ConfigValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1
    except (StructuredTextError, TypeError, UnicodeDecodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        logger.error("Could not read or write file", extra={"error": str(e)})
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
