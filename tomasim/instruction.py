"""MIPS-like instructions understood by the simulator, and their text form."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import IntEnum

_LEADING_INT = re.compile(r"[+-]?\d+")


class InstructionType(IntEnum):
    """Operation of an instruction; the numeric value is shown in state dumps."""

    LW = 0
    SW = 1
    ADD = 2
    SUB = 3
    MUL = 4
    DIV = 5
    ADDI = 6
    SUBI = 7
    MULI = 8
    DIVI = 9
    BEQ = 10
    BNE = 11
    J = 12
    JAL = 13
    JR = 14
    NOP = 15

    @property
    def mnemonic(self) -> str:
        return self.name.lower()


_BY_MNEMONIC = {op.mnemonic: op for op in InstructionType}

_REGISTER_OPS = {
    InstructionType.ADD,
    InstructionType.SUB,
    InstructionType.MUL,
    InstructionType.DIV,
}
_IMMEDIATE_OPS = {
    InstructionType.ADDI,
    InstructionType.SUBI,
    InstructionType.MULI,
    InstructionType.DIVI,
}
_MEMORY_OPS = {InstructionType.LW, InstructionType.SW}
_BRANCH_OPS = {InstructionType.BEQ, InstructionType.BNE}
_JUMP_IMMEDIATE_OPS = {InstructionType.J, InstructionType.JAL}


@dataclass
class Instruction:
    """One decoded instruction.

    For ``sw`` the ``dest`` field holds the register whose value is stored.
    """

    type: InstructionType = InstructionType.NOP
    dest: str = ""
    src1: str = ""
    src2: str = ""
    immediate: int = 0
    address: int = 0
    is_immediate: bool = False

    def __str__(self) -> str:
        op = self.type
        name = op.mnemonic
        if op in _MEMORY_OPS:
            return f"{name} {self.dest} {self.address}({self.src1})"
        if op in _REGISTER_OPS:
            return f"{name} {self.dest} {self.src1} {self.src2}"
        if op in _IMMEDIATE_OPS:
            return f"{name} {self.dest} {self.src1} {self.immediate}"
        if op in _BRANCH_OPS:
            return f"{name} {self.src1} {self.src2} {self.immediate}"
        if op in _JUMP_IMMEDIATE_OPS:
            return f"{name} {self.immediate}"
        if op is InstructionType.JR:
            return f"jr {self.src1}"
        return "nop"


def _stream_int(token: str) -> int:
    """Read an integer the way a stream extraction does: leading digits, else 0."""
    match = _LEADING_INT.match(token)
    return int(match.group()) if match else 0


def _strict_int(text: str) -> int:
    """Read a leading integer, raising ValueError if there is none."""
    match = _LEADING_INT.match(text.lstrip())
    if not match:
        raise ValueError(f"invalid memory offset: {text!r}")
    return int(match.group())


def parse_instruction(line: str) -> Instruction:
    """Decode one line of assembly; unknown mnemonics become ``nop``.

    Raises ValueError when a load/store offset is not a number.
    """
    tokens = line.split()
    mnemonic = tokens[0] if tokens else ""
    operands = tokens[1:] + [""] * 3
    op = _BY_MNEMONIC.get(mnemonic, InstructionType.NOP)
    inst = Instruction(type=op)

    if op in _MEMORY_OPS:
        inst.dest = operands[0]
        offset_base = operands[1]
        open_pos = offset_base.find("(")
        close_pos = offset_base.find(")")
        if open_pos != -1 and close_pos != -1:
            inst.address = _strict_int(offset_base[:open_pos])
            inst.src1 = offset_base[open_pos + 1:close_pos]
    elif op in _IMMEDIATE_OPS:
        inst.dest, inst.src1 = operands[0], operands[1]
        inst.immediate = _stream_int(operands[2])
        inst.is_immediate = True
    elif op in _BRANCH_OPS:
        inst.src1, inst.src2 = operands[0], operands[1]
        inst.immediate = _stream_int(operands[2])
        inst.is_immediate = True
    elif op in _JUMP_IMMEDIATE_OPS:
        inst.immediate = _stream_int(operands[0])
        inst.is_immediate = True
    elif op is InstructionType.JR:
        inst.src1 = operands[0]
    else:
        inst.dest, inst.src1, inst.src2 = operands[0], operands[1], operands[2]

    return inst