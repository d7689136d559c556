"""Hardware structures of the Tomasulo machine and per-operation properties."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from tomasim.instruction import InstructionType

NUM_ADD_RS = 3
NUM_MUL_RS = 2
NUM_LOAD_BUFFERS = 3
NUM_STORE_BUFFERS = 3

FUNCTIONAL_UNITS = (
    ("Add1", 2),
    ("Add2", 2),
    ("Mult1", 10),
    ("Mult2", 10),
    ("Load", 2),
    ("Store", 2),
)

_ADD_OPS = frozenset(
    {InstructionType.ADD, InstructionType.SUB, InstructionType.ADDI, InstructionType.SUBI}
)
_MUL_OPS = frozenset(
    {InstructionType.MUL, InstructionType.DIV, InstructionType.MULI, InstructionType.DIVI}
)


@dataclass
class RegisterStatus:
    """Which station, if any, will produce a register's next value."""

    busy: bool = False
    reservation_station: str = ""


@dataclass(eq=False)
class ReservationStation:
    """An arithmetic reservation station."""

    name: str
    busy: bool = False
    op: InstructionType = InstructionType.NOP
    vj: float = 0.0
    vk: float = 0.0
    qj: str = ""
    qk: str = ""
    address: int = 0
    instruction_index: int = -1


@dataclass(eq=False)
class LoadStoreBuffer:
    """A load or store buffer."""

    name: str
    busy: bool = False
    op: InstructionType = InstructionType.NOP
    address: int = 0
    q_addr: str = ""
    q_value: str = ""
    v: float = 0.0
    dest: str = ""
    instruction_index: int = -1


@dataclass(eq=False)
class FunctionalUnit:
    """An execution unit with a fixed latency."""

    name: str
    execution_time: int
    busy: bool = False
    remaining_time: int = 0
    station: Optional[ReservationStation] = field(default=None, repr=False)
    buffer: Optional[LoadStoreBuffer] = field(default=None, repr=False)

    def tick(self) -> None:
        """Advance one cycle of work."""
        if self.remaining_time > 0:
            self.remaining_time -= 1

    def is_finished(self) -> bool:
        return self.remaining_time == 0

    def start_execution(self, time: int) -> None:
        """Begin an operation; the unit's own latency governs, not ``time``."""
        self.remaining_time = self.execution_time


def execution_time(op: InstructionType) -> int:
    """Cycles an operation takes."""
    if op in _ADD_OPS:
        return 2
    if op in _MUL_OPS:
        return 10
    if op in (InstructionType.LW, InstructionType.SW):
        return 2
    return 1


def station_kind(op: InstructionType) -> str:
    """Name prefix of the stations that accept an operation, or ''."""
    if op in _ADD_OPS:
        return "Add"
    if op in _MUL_OPS:
        return "Mult"
    if op is InstructionType.LW:
        return "Load"
    if op is InstructionType.SW:
        return "Store"
    return ""


def is_load_store(op: InstructionType) -> bool:
    return op in (InstructionType.LW, InstructionType.SW)


def is_branch(op: InstructionType) -> bool:
    return op in (InstructionType.BEQ, InstructionType.BNE)


def is_jump(op: InstructionType) -> bool:
    return op in (InstructionType.J, InstructionType.JAL, InstructionType.JR)