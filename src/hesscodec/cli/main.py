"""Main CLI entry point for hesscodec."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .. import __version__
from .dump import dump_bytes, dump_file
from ..exceptions import HessianError


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the hesscodec CLI.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = argparse.ArgumentParser(
        description="hesscodec: Hessian Binary Codec",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  hesscodec --dump capture.bin           Decode and print every value in a file
  hesscodec --hex 7b919293               Decode and print a hex string
  hesscodec --dump capture.bin --session Keep tables across values
  hesscodec --version                    Show version
        """,
    )

    parser.add_argument(
        "--dump",
        metavar="FILE",
        type=str,
        help="Decode every value in FILE and print it as a tree",
    )

    parser.add_argument(
        "--hex",
        metavar="HEX",
        type=str,
        help="Decode every value in a hex string and print it as a tree",
    )

    parser.add_argument(
        "--session",
        action="store_true",
        help="Keep reference and class tables across values",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"hesscodec {__version__}",
    )

    args = parser.parse_args(argv)

    if args.dump:
        file_path = Path(args.dump)
        if not file_path.exists():
            print(f"Error: File not found: {file_path}", file=sys.stderr)
            return 1

        try:
            dump_file(file_path, session=args.session)
            return 0
        except (HessianError, OSError) as e:
            print(f"Error decoding file: {e}", file=sys.stderr)
            return 1

    if args.hex:
        try:
            data = bytes.fromhex(args.hex)
        except ValueError as e:
            print(f"Error: Invalid hex string: {e}", file=sys.stderr)
            return 1

        try:
            dump_bytes(data, source_name="hex input", session=args.session)
            return 0
        except HessianError as e:
            print(f"Error decoding input: {e}", file=sys.stderr)
            return 1

    # If no command specified, show help
    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
