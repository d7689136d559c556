import pytest

from tomasim.hardware import (
    FUNCTIONAL_UNITS,
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
from tomasim.instruction import InstructionType as T


def test_defaults():
    status = RegisterStatus()
    assert (status.busy, status.reservation_station) == (False, "")
    rs = ReservationStation("Add0")
    assert rs.op is T.NOP
    assert rs.instruction_index == -1
    assert (rs.qj, rs.qk, rs.vj, rs.vk) == ("", "", 0.0, 0.0)
    buf = LoadStoreBuffer("Load0")
    assert buf.instruction_index == -1
    assert (buf.address, buf.q_addr, buf.q_value, buf.dest) == (0, "", "", "")


def test_stations_compare_by_identity():
    stations = [ReservationStation("Add0"), ReservationStation("Add0")]
    assert stations.index(stations[1]) == 1
    assert stations.index(stations[0]) == 0
    buffers = [LoadStoreBuffer("Load0"), LoadStoreBuffer("Load0")]
    assert buffers.index(buffers[1]) == 1


def test_functional_unit_counts_down_to_finish():
    fu = FunctionalUnit("Add1", 2)
    assert fu.is_finished()
    fu.start_execution(2)
    assert fu.remaining_time == 2
    assert not fu.is_finished()
    fu.tick()
    assert not fu.is_finished()
    fu.tick()
    assert fu.is_finished()
    fu.tick()
    assert fu.remaining_time == 0


def test_start_execution_uses_unit_latency():
    fu = FunctionalUnit("Mult1", 10)
    fu.start_execution(1)
    assert fu.remaining_time == 10


def test_unit_table_matches_latencies():
    assert dict(FUNCTIONAL_UNITS)["Mult1"] == execution_time(T.MUL)
    assert dict(FUNCTIONAL_UNITS)["Add1"] == execution_time(T.ADD)
    assert dict(FUNCTIONAL_UNITS)["Load"] == execution_time(T.LW)


@pytest.mark.parametrize(
    "op, cycles",
    [
        (T.ADD, 2), (T.SUBI, 2), (T.MUL, 10), (T.DIVI, 10),
        (T.LW, 2), (T.SW, 2), (T.BEQ, 1), (T.NOP, 1),
    ],
)
def test_execution_time(op, cycles):
    assert execution_time(op) == cycles


@pytest.mark.parametrize(
    "op, kind",
    [
        (T.ADD, "Add"), (T.ADDI, "Add"), (T.SUB, "Add"),
        (T.MUL, "Mult"), (T.DIV, "Mult"), (T.MULI, "Mult"),
        (T.LW, "Load"), (T.SW, "Store"), (T.J, ""), (T.NOP, ""),
    ],
)
def test_station_kind(op, kind):
    assert station_kind(op) == kind


def test_predicates_partition_control_and_memory():
    for op in T:
        flags = [is_load_store(op), is_branch(op), is_jump(op)]
        assert sum(flags) <= 1
    assert [op for op in T if is_branch(op)] == [T.BEQ, T.BNE]
    assert [op for op in T if is_jump(op)] == [T.J, T.JAL, T.JR]
    assert [op for op in T if is_load_store(op)] == [T.LW, T.SW]