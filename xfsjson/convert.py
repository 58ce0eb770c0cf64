"""File conversion between XFS and JSON."""

from __future__ import annotations

import json
import math
import os
from pathlib import Path
from typing import Any, Union

from xfsjson.args import Args
from xfsjson.binary import BinaryReadError
from xfsjson.json_codec import xfs_from_json, xfs_to_json
from xfsjson.model import XfsError
from xfsjson.xfs import is_xfs_file, load, save

PathLike = Union[str, os.PathLike]

_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


class ConversionError(Exception):
    """Raised when a file cannot be converted."""


def _finite(node: Any) -> Any:
    """Replace non-finite numbers, which JSON cannot hold, with null."""
    if isinstance(node, float):
        return node if math.isfinite(node) else None
    if isinstance(node, dict):
        return {key: _finite(value) for key, value in node.items()}
    if isinstance(node, list):
        return [_finite(item) for item in node]
    return node


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON constant: {name}")


def xfs_to_json_file(input_path: PathLike, output_path: PathLike) -> None:
    """Convert an XFS file to a JSON file."""
    try:
        document = xfs_to_json(load(input_path))
    except (XfsError, BinaryReadError, ValueError) as exc:
        raise ConversionError(f"Failed to load XFS file: {input_path}") from exc

    text = json.dumps(_finite(document), indent=2, ensure_ascii=False, allow_nan=False)
    try:
        Path(output_path).write_text(text, encoding=_ENCODING, errors=_ERRORS)
    except OSError as exc:
        raise ConversionError(f"Failed to write to output file: {output_path}") from exc

    print(f"Converted {input_path} to {output_path}")


def json_to_xfs_file(input_path: PathLike, output_path: PathLike) -> None:
    """Convert a JSON file to an XFS file."""
    try:
        text = Path(input_path).read_text(encoding=_ENCODING, errors=_ERRORS)
    except OSError as exc:
        raise ConversionError(f"Failed to open input file: {input_path}") from exc

    try:
        document = json.loads(text, parse_constant=_reject_constant)
    except ValueError as exc:
        raise ConversionError(f"Failed to parse JSON file: {input_path}") from exc

    try:
        xfs = xfs_from_json(document)
    except (XfsError, ValueError, TypeError) as exc:
        raise ConversionError("Failed to convert JSON to XFS") from exc

    try:
        save(output_path, xfs)
    except XfsError as exc:
        raise ConversionError(f"Failed to save XFS file: {output_path}") from exc

    print(f"Converted {input_path} to {output_path}")


def convert_file(input_path: PathLike, output_path: PathLike) -> None:
    """Convert one file, choosing the direction from its name and contents."""
    if str(input_path).endswith(".json"):
        json_to_xfs_file(input_path, output_path)
    elif is_xfs_file(input_path):
        xfs_to_json_file(input_path, output_path)
    else:
        raise ConversionError(f"Input file {input_path} is neither JSON nor XFS.")


def run(args: Args) -> None:
    """Carry out the conversion described by ``args``.

    Only single files are converted; a directory input converts nothing.
    """
    if not args.is_bulk:
        convert_file(args.input, args.output)