"""Command line entry point: load a program file and simulate it."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence, Union

from tomasim.instruction import Instruction, parse_instruction
from tomasim.simulator import Tomasulo

DEFAULT_PROGRAM = "instructions.txt"
_BLANKS = " \t\r\n"


def _clean(line: str) -> str:
    """Drop a trailing ``#`` comment and the surrounding blanks."""
    return line.split("#", 1)[0].strip(_BLANKS)


def read_instructions(path: Union[str, Path]) -> list[Instruction]:
    """Parse every non-empty, non-comment line of a program file.

    Raises OSError when the file cannot be opened and ValueError when a
    load/store offset is not a number.
    """
    with open(path, encoding="utf-8") as handle:
        return [parse_instruction(text) for text in map(_clean, handle) if text]


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="tomasim",
        description="Run a program on a Tomasulo dynamic-scheduling simulator.",
    )
    parser.add_argument(
        "program",
        nargs="?",
        default=DEFAULT_PROGRAM,
        help=f"file holding one instruction per line (default: {DEFAULT_PROGRAM})",
    )
    parser.add_argument(
        "--max-cycles",
        type=int,
        default=1000,
        help="abort the run after this many cycles (default: 1000)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Load the program, list it, and run the simulation; return the exit code."""
    args = _parse_args(argv)

    try:
        instructions = read_instructions(args.program)
    except OSError:
        print(f"Error opening file: {args.program}", file=sys.stderr)
        instructions = []
    except ValueError as exc:
        print(f"Error parsing file {args.program}: {exc}", file=sys.stderr)
        return 1

    if not instructions:
        print("No instructions found in file!", file=sys.stderr)
        return 1

    print("Instructions to be executed:")
    for inst in instructions:
        print(inst)
    print()

    Tomasulo(instructions, max_cycles=args.max_cycles).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())