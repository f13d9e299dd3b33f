#!/usr/bin/env python3
"""
Command line front end: run, disassemble and re-export whitespace programs.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Mapping, Optional, TextIO

import structlog
import yaml

from .config import LOG_FORMATS, LOG_LEVELS, ExecutionConfig, LoggingConfig
from .core.program import Program
from .core.symbols import read_source, to_visible
from .decoder import decode
from .engine.executor import evaluate
from .errors import DecodeError, ExecutionError, SpaceError
from .logging_config import configure_logging

logger = structlog.get_logger()


def load_program(path: str) -> Program:
    """Read and decode a program file."""
    symbols = read_source(path)
    logger.debug("Read program source", path=path, symbols=len(symbols))
    return decode(symbols)


def format_listing(program: Program, output_format: str) -> str:
    """
    Render a decoded program for the disasm command.

    Args:
        program: The decoded program
        output_format: One of "text", "json", "yaml"

    Returns:
        The rendered listing
    """
    if output_format == "json":
        return json.dumps(program.to_dict(), indent=2)
    if output_format == "yaml":
        return yaml.dump(program.to_dict(), default_flow_style=False, sort_keys=False)
    return str(program)


def write_output(text: str, output: Optional[str], stdout: TextIO):
    if output:
        Path(output).write_text(text, encoding="utf-8")
        logger.info("Wrote output", path=output)
    else:
        stdout.write(text)
        if not text.endswith("\n"):
            stdout.write("\n")


def cmd_run(args: argparse.Namespace) -> int:
    program = load_program(args.file)
    config = ExecutionConfig(max_call_depth=args.max_call_depth)
    if args.input:
        with open(args.input, "r", encoding="utf-8") as reader:
            result = evaluate(program, reader, sys.stdout, config)
    else:
        result = evaluate(program, sys.stdin, sys.stdout, config)
    sys.stdout.flush()
    logger.info("Program finished", status=result.status.value, steps=result.steps, max_depth=result.max_depth)
    return 0


def cmd_disasm(args: argparse.Namespace) -> int:
    program = load_program(args.file)
    write_output(format_listing(program, args.format), args.output, sys.stdout)
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    program = load_program(args.file)
    text = program.to_whitespace()
    if args.visible:
        text = to_visible(text)
    Path(args.output).write_text(text, encoding="utf-8")
    logger.info("Exported program", path=args.output, visible=args.visible)
    return 0


def build_parser(environ: Optional[Mapping[str, str]] = None) -> argparse.ArgumentParser:
    """Build the argument parser; SPACEVM_* environment variables supply the defaults."""
    log_defaults = LoggingConfig.from_env(environ)
    run_defaults = ExecutionConfig.from_env(environ)

    parser = argparse.ArgumentParser(
        prog="spacevm",
        description="Interpreter for the space/tab/linefeed stack language",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=log_defaults.log_level,
        help="Logging level"
    )
    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=log_defaults.log_format,
        help="Log renderer"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Decode and execute a program")
    run_parser.add_argument("file", help="Path to the program source")
    run_parser.add_argument(
        "--input",
        help="Read program input from this file instead of stdin"
    )
    run_parser.add_argument(
        "--max-call-depth",
        type=int,
        default=run_defaults.max_call_depth,
        help="Maximum nested label invocations (0 disables the limit)"
    )
    run_parser.set_defaults(handler=cmd_run)

    disasm_parser = subparsers.add_parser("disasm", help="Print the decoded program")
    disasm_parser.add_argument("file", help="Path to the program source")
    disasm_parser.add_argument(
        "--format",
        choices=["text", "json", "yaml"],
        default="text",
        help="Listing format"
    )
    disasm_parser.add_argument("--output", "-o", help="Write the listing to this file")
    disasm_parser.set_defaults(handler=cmd_disasm)

    export_parser = subparsers.add_parser("export", help="Write the program in canonical form")
    export_parser.add_argument("file", help="Path to the program source")
    export_parser.add_argument("--output", "-o", required=True, help="Destination file")
    export_parser.add_argument(
        "--visible",
        action="store_true",
        help="Spell symbols as S/T/L instead of raw whitespace"
    )
    export_parser.set_defaults(handler=cmd_export)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Parse arguments and dispatch to the selected command.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    try:
        parser = build_parser()
    except ValueError as e:
        logger.error("Invalid environment configuration", error=str(e))
        return 1
    args = parser.parse_args(argv)

    log_level = "DEBUG" if args.verbose else args.log_level
    configure_logging(log_level, args.log_format, force=True)

    try:
        return args.handler(args)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except DecodeError as e:
        logger.error("Could not decode program", error=str(e), offset=e.offset)
        return 1
    except ExecutionError as e:
        sys.stdout.flush()
        logger.error("Program failed", error=str(e), kind=type(e).__name__)
        return 1
    except (SpaceError, OSError, ValueError) as e:
        logger.error(f"Error: {str(e)}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
