"""Command-line entry point."""

from __future__ import annotations

import argparse
import sys

from .errors import AnchorScopeError
from .matcher import MatchError
from .write import write


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the ``anchorscope`` command."""
    parser = argparse.ArgumentParser(
        prog="anchorscope",
        description="Edit text scopes located by exact anchors and verified by hash.",
    )
    commands = parser.add_subparsers(dest="command", metavar="COMMAND")
    commands.required = True

    write_parser = commands.add_parser(
        "write", help="replace an anchored scope after verifying its hash"
    )
    write_parser.add_argument("--file", help="file to modify")
    write_parser.add_argument("--anchor", help="anchor text")
    write_parser.add_argument("--anchor-file", dest="anchor_file", help="file holding the anchor")
    write_parser.add_argument(
        "--expected-hash", dest="expected_hash", help="hash of the scope as last read"
    )
    write_parser.add_argument("--label", help="label naming the anchor")
    write_parser.add_argument("--true-id", dest="true_id", help="True ID of a buffer")
    write_parser.add_argument("--replacement", help="replacement text")
    write_parser.add_argument(
        "--from-replacement",
        dest="from_replacement",
        action="store_true",
        help="use the buffer's prepared replacement file",
    )
    return parser


def _describe(exc: Exception) -> str:
    if isinstance(exc, AnchorScopeError):
        return str(exc) if exc.detail is not None else exc.spec()
    return str(exc)


def main(argv: list[str] | None = None) -> int:
    """Run the command line and return the exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.from_replacement:
        if args.replacement is not None:
            parser.error("the argument '--from-replacement' cannot be used with '--replacement'")
        if args.anchor is not None:
            parser.error("the argument '--from-replacement' cannot be used with '--anchor'")

    try:
        message = write(
            file_path=args.file,
            anchor=args.anchor,
            anchor_file=args.anchor_file,
            expected_hash=args.expected_hash,
            label=args.label,
            true_id=args.true_id,
            replacement=args.replacement or "",
            from_replacement=args.from_replacement,
        )
    except (AnchorScopeError, MatchError, ValueError) as exc:
        print(_describe(exc), file=sys.stderr)
        return 1

    print(message)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())