"""Command line interface: ``avro-tojson [--pretty] [--head[=X]] input-file``."""

import argparse
import re
import sys
from typing import IO, List, Optional, Sequence

from .tojson import DEFAULT_HEAD_COUNT, dump

SHORT_DESCRIPTION = "Dumps an Avro data file as JSON, record per line or pretty."
STDIN_NAME = "-"
INTEGER_PATTERN = re.compile(r"^[+-]?[0-9]+$")
# --head values are 64-bit signed integers; anything outside the range is a file name
LONG_MIN = -(2**63)
LONG_MAX = 2**63 - 1


def build_parser() -> argparse.ArgumentParser:
    # the description is printed by print_help ahead of the usage text
    parser = argparse.ArgumentParser(prog="avro-tojson", add_help=False)
    parser.add_argument("--pretty", action="store_true", help="Turns on pretty printing.")
    parser.add_argument(
        "--head",
        nargs="?",
        const=str(DEFAULT_HEAD_COUNT),
        default=None,
        metavar="X",
        help=f"Converts the first X records (default is {DEFAULT_HEAD_COUNT}).",
    )
    parser.add_argument("inputs", nargs="*", metavar="input-file", help=argparse.SUPPRESS)
    return parser


def parse_long(text: str) -> Optional[int]:
    if not INTEGER_PATTERN.match(text):
        return None
    # longer digit strings are out of range, and int() refuses very long ones
    if len(text.lstrip("+-").lstrip("0")) > 19:
        return None
    value = int(text)
    return value if LONG_MIN <= value <= LONG_MAX else None


def resolve_head_count(head: Optional[str], inputs: List[str]) -> Optional[int]:
    """Work out the record limit from the value given to ``--head``.

    A value that does not parse as a 64-bit integer was meant as the input file, and is
    moved to ``inputs``.

    :return: the limit, or None if ``--head`` was not given.
    """
    if head is None:
        return None
    value = parse_long(head)
    if value is not None:
        return value
    inputs.append(head)
    return DEFAULT_HEAD_COUNT


def open_input(name: str, stdin: IO[bytes]) -> IO[bytes]:
    """Open the named file for reading, or return ``stdin`` for ``-``."""
    if name == STDIN_NAME:
        return stdin
    return open(name, "rb")


def print_help(parser: argparse.ArgumentParser, err: IO[str]):
    err.write("tojson [--pretty] [--head[=X]] input-file\n\n")
    err.write(SHORT_DESCRIPTION + "\n")
    err.write("A dash ('-') can be given as an input file to use stdin\n\n")
    parser.print_help(err)


def run(
    args: Sequence[str],
    stdin: Optional[IO[bytes]] = None,
    out: Optional[IO[str]] = None,
    err: Optional[IO[str]] = None,
) -> int:
    """Run the tool with the given arguments and return the exit status."""
    stdin = sys.stdin.buffer if stdin is None else stdin
    out = sys.stdout if out is None else out
    err = sys.stderr if err is None else err

    parser = build_parser()
    options = parser.parse_args(list(args))
    inputs: List[str] = list(options.inputs)
    head_count = resolve_head_count(options.head, inputs)

    if len(inputs) != 1 or (head_count is not None and head_count < 0):
        print_help(parser, err)
        return 1

    dump(open_input(inputs[0], stdin), out, pretty=options.pretty, head_count=head_count)
    return 0


def main():
    sys.exit(run(sys.argv[1:]))


if __name__ == "__main__":
    main()
