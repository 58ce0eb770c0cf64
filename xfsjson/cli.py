"""Command-line entry point."""

from __future__ import annotations

import sys
from typing import Optional, Sequence

from xfsjson.args import ArgsError, parse_args
from xfsjson.convert import ConversionError, run

EXIT_OK = 0
EXIT_FAILURE = 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the converter and return the process exit status."""
    try:
        args = parse_args(argv)
    except ArgsError as exc:
        print(f"Error: {exc}")
        return EXIT_FAILURE
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_OK

    try:
        run(args)
    except ConversionError as exc:
        print(exc, file=sys.stderr)
        print("Failed to convert files", file=sys.stderr)
        return EXIT_FAILURE

    print("Conversion completed successfully")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())