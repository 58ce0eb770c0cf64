"""Command-line argument handling."""

from __future__ import annotations

import argparse
import os
import sys
from dataclasses import dataclass
from typing import Optional, Sequence

PROG = "xfsjson"
DESCRIPTION = "Converts MT Framework XFS files to and from JSON."
USAGE = f"{PROG} [-h] [-o <output>] <input>"

_OPTIONS = (
    ("-h, --help", "Displays this help and exits."),
    ("-o, --output <output>", "Sets the output file/directory."),
    ("<input>", "Sets the input file/directory (required)"),
)


class ArgsError(Exception):
    """Raised when the command line cannot be used."""


@dataclass(frozen=True)
class Args:
    """What to convert and where to put the result."""

    input: str
    output: str
    is_bulk: bool


class _Parser(argparse.ArgumentParser):
    def error(self, message: str):  # type: ignore[override]
        raise ArgsError(message)


def _build_parser() -> argparse.ArgumentParser:
    parser = _Parser(prog=PROG, usage=USAGE, description=DESCRIPTION, add_help=False)
    parser.add_argument("-h", "--help", action="store_true")
    parser.add_argument("-o", "--output")
    parser.add_argument("inputs", nargs="*")
    return parser


def _filename(path: str) -> str:
    index = path.rfind("/")
    if index < 0:
        index = path.rfind("\\")
    return path[index + 1:]


def _help_text() -> str:
    width = max(len(flag) for flag, _ in _OPTIONS) + 3
    lines = [f"Usage: {USAGE}", "", "Options:"]
    lines.extend(f"    {flag.ljust(width)}{text}" for flag, text in _OPTIONS)
    return "\n".join(lines) + "\n"


def parse_args(argv: Optional[Sequence[str]] = None) -> Args:
    """Parse the command line (without the program name)."""
    namespace = _build_parser().parse_args(list(sys.argv[1:] if argv is None else argv))
    if namespace.help:
        print_help()
        raise SystemExit(0)

    if not namespace.inputs:
        raise ArgsError("missing required positional argument 'input'.")

    input_path = namespace.inputs[0]
    if not os.path.exists(input_path):
        raise ArgsError(f"{input_path} does not exist!")
    is_bulk = os.path.isdir(input_path)

    output = namespace.output
    if output is not None:
        if is_bulk:
            if not os.path.exists(output):
                raise ArgsError(f"{output} does not exist!")
            if not os.path.isdir(output):
                raise ArgsError(f"{output} is not a directory!")
        elif os.path.isdir(output):
            output = f"{output}/{_filename(input_path)}"
    elif is_bulk:
        print("Output directory not specified, using input directory.")
        output = input_path
    else:
        dot = input_path.rfind(".")
        extension = input_path[dot:] if dot >= 0 else ""
        output = f"{input_path}.{'xfs' if extension == '.json' else 'json'}"

    return Args(input=input_path, output=output, is_bulk=is_bulk)


def print_help() -> str:
    """Write the usage text to standard output and return it."""
    text = _help_text()
    sys.stdout.write(text)
    return text