"""Text dump of the simulator's internal state."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tomasim.simulator import Tomasulo


def _tag(name: str) -> str:
    return name or "-"


def _station_lines(sim: "Tomasulo") -> list[str]:
    lines = []
    for rs in sim.reservation_stations:
        text = f"{rs.name}: Busy={int(rs.busy)} "
        if rs.busy:
            text += (
                f"Op={int(rs.op)} Vj={rs.vj:g} Vk={rs.vk:g} "
                f"Qj={_tag(rs.qj)} Qk={_tag(rs.qk)} A={rs.address}"
            )
        lines.append(text)
    return lines


def _load_lines(sim: "Tomasulo") -> list[str]:
    lines = []
    for buffer in sim.load_buffers:
        text = f"{buffer.name}: Busy={int(buffer.busy)} "
        if buffer.busy:
            text += (
                f"Op={int(buffer.op)} Address={buffer.address} "
                f"QAddr={_tag(buffer.q_addr)} Dest={buffer.dest}"
            )
        lines.append(text)
    return lines


def _store_lines(sim: "Tomasulo") -> list[str]:
    lines = []
    for buffer in sim.store_buffers:
        text = f"{buffer.name}: Busy={int(buffer.busy)} "
        if buffer.busy:
            text += (
                f"Op={int(buffer.op)} Address={buffer.address} "
                f"QAddr={_tag(buffer.q_addr)} QValue={_tag(buffer.q_value)} "
                f"V={buffer.v:g}"
            )
        lines.append(text)
    return lines


def _unit_lines(sim: "Tomasulo") -> list[str]:
    lines = []
    for fu in sim.functional_units:
        text = f"{fu.name}: Busy={int(fu.busy)} "
        if fu.busy:
            text += f"Remaining={fu.remaining_time}"
        lines.append(text)
    return lines


def format_state(simulator: "Tomasulo") -> str:
    """Render the full machine state as the text block printed each cycle."""
    sim = simulator
    lines = [
        "",
        "=== Estado do Simulador ===",
        f"Ciclo: {sim.clock}",
        f"PC: {sim.pc}",
        "",
        "--- Estações de Reserva ---",
        *_station_lines(sim),
        "",
        "--- Buffers de Load ---",
        *_load_lines(sim),
        "",
        "--- Buffers de Store ---",
        *_store_lines(sim),
        "",
        "--- Unidades Funcionais ---",
        *_unit_lines(sim),
        "",
        "--- Status dos Registradores ---",
    ]
    lines.extend(
        f"{name}: Busy=1 Qi={status.reservation_station}"
        for name, status in sorted(sim.register_status.items())
        if status.busy
    )
    lines.append("")
    lines.append("--- Valores dos Registradores ---")
    lines.append(
        "".join(f"{name}={value:g} " for name, value in sorted(sim.registers.items()))
    )
    lines.append("")
    lines.append("--- Memória ---")
    lines.append(
        "".join(f"Memory[{addr}]={value:g} " for addr, value in sorted(sim.memory.items()))
    )
    return "\n".join(lines) + "\n"