"""Cycle-by-cycle simulator of Tomasulo's algorithm for a small MIPS-like instruction set."""

__version__ = "0.1.0"