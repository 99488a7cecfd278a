"""
Command-line entry point.

    markdownlang program.md
    markdownlang program.md --entry greet --input Ada
    markdownlang program.md --interactive
    markdownlang program.md --dump yaml
    markdownlang program.md --check
"""

import argparse
import asyncio
import logging
import sys

from mdlang import __version__
from mdlang.analyzer import analyze_program
from mdlang.config import InterpreterConfig, load_config
from mdlang.engine import Interpreter
from mdlang.errors import MarkdownLangError
from mdlang.serialization import program_to_json, program_to_yaml
from mdlang.transform import parse_program_file
from mdlang.values import display


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="markdownlang",
        description=f"Run markdown programs (markdownlang {__version__})",
    )
    parser.add_argument("file", help="markdown program to run")
    parser.add_argument("-e", "--entry", help="function to start in (default: main)")
    parser.add_argument("-i", "--input", action="append", dest="inputs", default=[],
                        help="input value for the next read; repeat for more")
    parser.add_argument("--interactive", action="store_true",
                        help="prompt on stdin for each read and stream output")
    parser.add_argument("-c", "--config", help="YAML interpreter config")
    parser.add_argument("--no-tail-calls", action="store_true",
                        help="run tail calls as ordinary nested calls")
    parser.add_argument("--dump", choices=["json", "yaml"], help="print the parsed program and exit")
    parser.add_argument("--check", action="store_true", help="analyze the program and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


async def _prompt():
    try:
        return await asyncio.to_thread(input, "> ")
    except EOFError:
        return None


def _print_value(value) -> None:
    print(display(value), flush=True)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config) if args.config else InterpreterConfig()
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    config = config.with_overrides(
        entry=args.entry,
        tail_calls=False if args.no_tail_calls else None,
    )

    try:
        program = parse_program_file(args.file, encoding=config.encoding)

        if args.dump == "json":
            print(program_to_json(program))
            return 0
        if args.dump == "yaml":
            print(program_to_yaml(program), end="")
            return 0

        if args.check:
            report = analyze_program(program, entry=config.entry)
            print(f"{report.program_name}: {report.total_functions} functions, "
                  f"{report.total_statements} statements, {len(report.tail_calls)} tail calls")
            for warning in report.warnings:
                print(f"warning: {warning}")
            return 1 if report.warnings else 0

        interpreter = Interpreter(config)
        if args.interactive:
            asyncio.run(interpreter.run_async(
                program,
                input_provider=_prompt,
                output_sink=_print_value,
            ))
        else:
            interpreter.run(program, inputs=args.inputs, output_sink=_print_value)
    except MarkdownLangError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
