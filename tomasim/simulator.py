"""Cycle-by-cycle Tomasulo machine running a list of instructions."""

from __future__ import annotations

import sys
from collections import defaultdict
from typing import Iterable, Optional, TextIO

from tomasim.hardware import (
    FUNCTIONAL_UNITS,
    NUM_ADD_RS,
    NUM_LOAD_BUFFERS,
    NUM_MUL_RS,
    NUM_STORE_BUFFERS,
    FunctionalUnit,
    LoadStoreBuffer,
    RegisterStatus,
    ReservationStation,
    execution_time,
    is_branch,
    is_jump,
    is_load_store,
    station_kind,
)
from tomasim.instruction import Instruction, InstructionType
from tomasim.report import format_state

_T = InstructionType


class Tomasulo:
    """Simulates dynamic scheduling with reservation stations and forwarding.

    Progress and debug traces are written to ``out`` (standard output when
    ``None``). A run stops after ``max_cycles`` cycles if it has not finished.
    """

    def __init__(
        self,
        instructions: Iterable[Instruction],
        out: Optional[TextIO] = None,
        max_cycles: int = 1000,
    ) -> None:
        self.instructions = list(instructions)
        self.out = out
        self.max_cycles = max_cycles
        self.current_instruction = 0
        self.clock = 0
        self.pc = 0
        self.branch_taken = False
        self.branch_target = 0
        self.aborted = False

        self.register_status: defaultdict[str, RegisterStatus] = defaultdict(RegisterStatus)
        self.registers: defaultdict[str, float] = defaultdict(float)
        self.memory: defaultdict[int, float] = defaultdict(float)

        self.reservation_stations = [
            ReservationStation(f"Add{i}") for i in range(NUM_ADD_RS)
        ] + [ReservationStation(f"Mult{i}") for i in range(NUM_MUL_RS)]
        self.load_buffers = [LoadStoreBuffer(f"Load{i}") for i in range(NUM_LOAD_BUFFERS)]
        self.store_buffers = [LoadStoreBuffer(f"Store{i}") for i in range(NUM_STORE_BUFFERS)]
        self.functional_units = [FunctionalUnit(name, t) for name, t in FUNCTIONAL_UNITS]

        for inst in self.instructions:
            if inst.dest:
                self.registers[inst.dest] = 0.0
            if inst.src1:
                self.registers[inst.src1] = 0.0
            if inst.src2 and not inst.is_immediate:
                self.registers[inst.src2] = 0.0

    # ------------------------------------------------------------------ output

    def _say(self, text: str) -> None:
        print(text, file=self.out if self.out is not None else sys.stdout)

    def print_state(self) -> None:
        """Write the current state dump to the output stream."""
        stream = self.out if self.out is not None else sys.stdout
        print(format_state(self), end="", file=stream)

    # ----------------------------------------------------------------- control

    def _in_program(self, index: int) -> bool:
        return 0 <= index < len(self.instructions)

    def _has_work(self) -> bool:
        return (
            self._in_program(self.pc)
            or any(rs.busy for rs in self.reservation_stations)
            or any(fu.busy for fu in self.functional_units)
        )

    def run(self) -> None:
        """Simulate until the program drains or the cycle limit is passed."""
        while self._has_work():
            if self.clock > self.max_cycles:
                self.aborted = True
                print(
                    f"\n[ERRO] Loop infinito detectado. Abortando após "
                    f"{self.max_cycles} ciclos.\n",
                    end="",
                    file=sys.stderr,
                )
                break
            self.step()
        self._say(f"\nExecução finalizada em {self.clock} ciclos.")
        self.print_state()

    def step(self) -> None:
        """Simulate one clock cycle: write back, execute, then issue."""
        self._say(f"\nClock Cycle: {self.clock}")
        self.print_state()

        self._write_result()
        self._execute()

        if self._in_program(self.pc):
            inst = self.instructions[self.pc]
            self._say(f"\n[DEBUG] Processando instrução {self.pc}: {inst}")
            issued = False
            if is_branch(inst.type):
                if self._branch_may_issue(inst):
                    self._handle_branch(inst)
                    issued = True
            elif is_jump(inst.type):
                self._handle_jump(inst)
                issued = True
            elif is_load_store(inst.type):
                self._handle_load_store(inst)
                issued = True
            else:
                issued = self._issue_instruction()
            if issued:
                self._update_pc()

        self.clock += 1

    # ------------------------------------------------------------------- issue

    def _issue_instruction(self) -> bool:
        if not self._in_program(self.current_instruction):
            return False
        inst = self.instructions[self.current_instruction]
        kind = station_kind(inst.type)
        rs = next(
            (s for s in self.reservation_stations if not s.busy and kind in s.name),
            None,
        )
        if rs is None:
            self._say(
                f"[DEBUG] Nenhuma estação de reserva disponível para {kind} "
                f"na instrução {self.current_instruction}"
            )
            return False

        self._say(f"[DEBUG] Emitindo instrução {self.current_instruction}: {inst}")
        rs.busy = True
        rs.op = inst.type
        rs.instruction_index = self.current_instruction

        if inst.src1:
            status = self.register_status[inst.src1]
            if status.busy:
                rs.qj = status.reservation_station
            else:
                rs.vj = self.registers[inst.src1]
                rs.qj = ""

        if inst.src2 and not inst.is_immediate:
            status = self.register_status[inst.src2]
            if status.busy:
                rs.qk = status.reservation_station
            else:
                rs.vk = self.registers[inst.src2]
                rs.qk = ""

        if inst.is_immediate:
            rs.vk = float(inst.immediate)
            rs.qk = ""

        if inst.dest:
            status = self.register_status[inst.dest]
            status.busy = True
            status.reservation_station = rs.name

        if is_load_store(inst.type):
            rs.address = inst.address

        self.current_instruction += 1
        return True

    # ----------------------------------------------------------------- execute

    def _start(self, fu: FunctionalUnit, op: InstructionType) -> None:
        fu.busy = True
        fu.start_execution(execution_time(op))

    def _execute(self) -> None:
        for fu in self.functional_units:
            if fu.busy:
                fu.tick()

        for rs in self.reservation_stations:
            if not (rs.busy and not rs.qj and not rs.qk):
                continue
            if any(fu.busy and fu.station is rs for fu in self.functional_units):
                continue
            for fu in self.functional_units:
                if not fu.busy and (
                    ("Add" in rs.name and "Add" in fu.name)
                    or ("Mult" in rs.name and "Mult" in fu.name)
                ):
                    fu.station = rs
                    self._start(fu, rs.op)
                    break

        for buffer in self.store_buffers:
            if not (buffer.busy and not buffer.q_addr and not buffer.q_value):
                continue
            if any(fu.busy and fu.buffer is buffer for fu in self.functional_units):
                continue
            for fu in self.functional_units:
                if not fu.busy and fu.name == "Store":
                    fu.buffer = buffer
                    self._start(fu, buffer.op)
                    self._say(
                        f"[DEBUG] Store iniciado: {buffer.name} -> Memory[{buffer.address}]"
                    )
                    break

    # -------------------------------------------------------------- write back

    @staticmethod
    def _compute(rs: ReservationStation) -> float:
        op = rs.op
        if op in (_T.ADD, _T.ADDI):
            return rs.vj + rs.vk
        if op in (_T.SUB, _T.SUBI):
            return rs.vj - rs.vk
        if op in (_T.MUL, _T.MULI):
            return rs.vj * rs.vk
        if op in (_T.DIV, _T.DIVI):
            return rs.vj / rs.vk if rs.vk != 0 else 0.0
        return 0.0

    def _write_result(self) -> None:
        for fu in self.functional_units:
            rs = fu.station
            if not (fu.busy and fu.is_finished()) or rs is None:
                continue
            result = self._compute(rs)
            for name in sorted(self.register_status):
                status = self.register_status[name]
                if status.reservation_station == rs.name:
                    self.registers[name] = result
                    status.busy = False
                    status.reservation_station = ""
                    self._say(f"[DEBUG] Atualizando registrador {name} = {result:g}")
            self._forward(rs.name, result)
            rs.busy = False
            fu.busy = False

        for fu in self.functional_units:
            buffer = fu.buffer
            if not (fu.busy and fu.is_finished()) or buffer is None:
                continue
            if buffer.op is _T.LW:
                value = self.memory[buffer.address]
                self.registers[buffer.dest] = value
                status = self.register_status[buffer.dest]
                status.busy = False
                status.reservation_station = ""
                self._forward(buffer.name, value)
                self._say(f"[DEBUG] Load completado: {buffer.dest} = {value:g}")
            elif buffer.op is _T.SW:
                self.memory[buffer.address] = buffer.v
                self._say(
                    f"[DEBUG] Store completado: Memory[{buffer.address}] = {buffer.v:g}"
                )
            buffer.busy = False
            fu.busy = False

    def _forward(self, source: str, value: float) -> None:
        self._say(f"[DEBUG] Forwarding valor {value:g} de {source}")
        for rs in self.reservation_stations:
            if not rs.busy:
                continue
            if rs.qj == source:
                rs.vj = value
                rs.qj = ""
                self._say(f"[DEBUG] Forwarding para {rs.name}.qj = {value:g}")
            if rs.qk == source:
                rs.vk = value
                rs.qk = ""
                self._say(f"[DEBUG] Forwarding para {rs.name}.qk = {value:g}")

        for buffer in self.load_buffers:
            if buffer.busy and buffer.q_addr == source:
                buffer.address = int(buffer.address + value)
                buffer.q_addr = ""
                self._say(f"[DEBUG] Forwarding para {buffer.name}.qAddr = {value:g}")

        for buffer in self.store_buffers:
            if not buffer.busy:
                continue
            if buffer.q_addr == source:
                buffer.address = int(buffer.address + value)
                buffer.q_addr = ""
                self._say(f"[DEBUG] Forwarding para {buffer.name}.qAddr = {value:g}")
            if buffer.q_value == source:
                buffer.v = value
                buffer.q_value = ""
                self._say(f"[DEBUG] Forwarding para {buffer.name}.qValue = {value:g}")

    # ---------------------------------------------------------- control flow

    def _registers_ready(self, inst: Instruction) -> bool:
        return (
            not self.register_status[inst.src1].busy
            and not self.register_status[inst.src2].busy
        )

    def _branch_may_issue(self, inst: Instruction) -> bool:
        older_pending = any(
            rs.busy and rs.instruction_index < self.pc for rs in self.reservation_stations
        )
        return not older_pending and self._registers_ready(inst)

    def _handle_branch(self, inst: Instruction) -> None:
        if self.register_status[inst.src1].busy or self.register_status[inst.src2].busy:
            self._say(
                f"[DEBUG] Branch aguardando registradores: {inst.src1} ou {inst.src2}"
            )
            return

        val1 = self.registers[inst.src1]
        val2 = self.registers[inst.src2]
        self._say(
            f"[DEBUG] Avaliando branch: {inst.src1}={val1:g}, {inst.src2}={val2:g}"
        )
        if inst.type is _T.BEQ:
            taken = val1 == val2
        elif inst.type is _T.BNE:
            taken = val1 != val2
        else:
            return

        if taken:
            self.branch_taken = True
            self.branch_target = self.pc + 1 + inst.immediate
            self._say(f"[DEBUG] Branch tomado: PC = {self.pc} -> {self.branch_target}")
            self._say("[DEBUG] Flushando pipeline...")
            self._flush()
            self.current_instruction = self.branch_target
        else:
            self._say(f"[DEBUG] Branch não tomado: PC = {self.pc} -> {self.pc + 1}")
            self.current_instruction = self.pc + 1

    def _handle_jump(self, inst: Instruction) -> None:
        if inst.type is _T.J:
            self.branch_taken = True
            self.branch_target = inst.immediate
            self._say(f"[DEBUG] Jump para endereço {self.branch_target}")
        elif inst.type is _T.JAL:
            self.registers["$ra"] = float(self.pc + 1)
            self.register_status["$ra"].busy = False
            self.branch_taken = True
            self.branch_target = inst.immediate
            self._say(
                f"[DEBUG] Jump and Link: $ra = {self.pc + 1}, jump para {self.branch_target}"
            )
        elif inst.type is _T.JR:
            if self.register_status[inst.src1].busy:
                self._say(f"[DEBUG] Jump Register aguardando registrador {inst.src1}")
                return
            self.branch_taken = True
            self.branch_target = int(self.registers[inst.src1])
            self._say(
                f"[DEBUG] Jump Register para endereço em {inst.src1} = {self.branch_target}"
            )
        else:
            return

        if self.branch_taken:
            self._say("[DEBUG] Flushando pipeline...")
            self._flush()
        self.current_instruction += 1

    def _claim_unit(self, name: str, buffer: LoadStoreBuffer, op: InstructionType) -> bool:
        for fu in self.functional_units:
            if not fu.busy and fu.name == name:
                fu.buffer = buffer
                self._start(fu, op)
                return True
        return False

    def _handle_load_store(self, inst: Instruction) -> None:
        if inst.type is _T.LW:
            self._issue_load(inst)
        elif inst.type is _T.SW:
            self._issue_store(inst)

    def _issue_load(self, inst: Instruction) -> None:
        buffer = next((b for b in self.load_buffers if not b.busy), None)
        if buffer is None:
            self._say("[DEBUG] Nenhum buffer de load disponível")
            return
        buffer.busy = True
        buffer.op = inst.type
        buffer.dest = inst.dest
        buffer.address = inst.address
        buffer.instruction_index = self.current_instruction

        base = self.register_status[inst.src1]
        if base.busy:
            buffer.q_addr = base.reservation_station
            self._say(
                f"[DEBUG] Load aguardando registrador {inst.src1} em {buffer.q_addr}"
            )
        else:
            buffer.address = int(buffer.address + self.registers[inst.src1])
            buffer.q_addr = ""
            self._say(
                f"[DEBUG] Load pronto para executar: {buffer.name} -> {buffer.dest} "
                f"(addr={buffer.address})"
            )

        dest = self.register_status[inst.dest]
        dest.busy = True
        dest.reservation_station = buffer.name

        if self._claim_unit("Load", buffer, inst.type):
            self._say(f"[DEBUG] Load iniciado: {buffer.name} -> {buffer.dest}")
            self.current_instruction += 1
        else:
            self._say("[DEBUG] Nenhuma unidade funcional de load disponível")

    def _issue_store(self, inst: Instruction) -> None:
        buffer = next((b for b in self.store_buffers if not b.busy), None)
        if buffer is None:
            self._say("[DEBUG] Nenhum buffer de store disponível")
            return
        buffer.busy = True
        buffer.op = inst.type
        buffer.address = inst.address
        buffer.instruction_index = self.current_instruction

        base = self.register_status[inst.src1]
        if base.busy:
            buffer.q_addr = base.reservation_station
            self._say(
                f"[DEBUG] Store aguardando registrador {inst.src1} em {buffer.q_addr}"
            )
        else:
            buffer.address = int(buffer.address + self.registers[inst.src1])
            buffer.q_addr = ""

        value = self.register_status[inst.dest]
        if value.busy:
            buffer.q_value = value.reservation_station
            self._say(f"[DEBUG] Store aguardando valor em {buffer.q_value}")
        else:
            buffer.v = self.registers[inst.dest]
            self._say(
                f"[DEBUG] Store pronto para executar: {buffer.name} -> "
                f"Memory[{buffer.address}] = {buffer.v:g}"
            )

        if self._claim_unit("Store", buffer, inst.type):
            self._say(f"[DEBUG] Store iniciado: {buffer.name} -> Memory[{buffer.address}]")
            self.current_instruction += 1
        else:
            self._say("[DEBUG] Nenhuma unidade funcional de store disponível")

    def _update_pc(self) -> None:
        if self.branch_taken:
            self._say(f"[DEBUG] Atualizando PC: {self.pc} -> {self.branch_target}")
            self.pc = self.branch_target
            self.current_instruction = self.pc
            self.branch_taken = False
            self._flush()
        else:
            self.pc += 1

    def _flush(self) -> None:
        pc = self.pc
        for rs in self.reservation_stations:
            if rs.instruction_index >= pc:
                rs.busy = False
        for buffer in (*self.load_buffers, *self.store_buffers):
            if buffer.instruction_index >= pc:
                buffer.busy = False
        for fu in self.functional_units:
            if not fu.busy:
                continue
            if (fu.station is not None and fu.station.instruction_index >= pc) or (
                fu.buffer is not None and fu.buffer.instruction_index >= pc
            ):
                fu.busy = False
        for status in self.register_status.values():
            if not status.busy:
                continue
            owner = next(
                (
                    rs
                    for rs in self.reservation_stations
                    if rs.name == status.reservation_station
                ),
                None,
            )
            if owner is not None and owner.instruction_index >= pc:
                status.busy = False
                status.reservation_station = ""