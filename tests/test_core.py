import io
import math

from archsim.core import Core, MemTraceRecord, open_trace, read_mem_trace
from archsim.memsys import MemorySystem
from archsim.memtypes import InstType, SimConfig, SimMode
from archsim.tracegen import write_trace


def _run(core, limit=10_000):
    now = 0
    while not core.done and now < limit:
        core.cycle(now)
        now += 1
    return now


def test_read_mem_trace_round_trip_through_gzip(tmp_path):
    path = tmp_path / "t.mtr.gz"
    rows = [(0x400, 1, 0x1000), (0x404, 2, 0x2000), (0x408, 0, 0)]
    write_trace(path, rows)
    with open_trace(path) as stream:
        records = list(read_mem_trace(stream))
    assert records == [MemTraceRecord(*row) for row in rows]


def test_read_mem_trace_ignores_partial_record():
    data = bytes(9) + b"\x01\x02\x03"
    records = list(read_mem_trace(io.BytesIO(data)))
    assert records == [MemTraceRecord(0, 0, 0)]


def test_read_mem_trace_little_endian_layout():
    data = b"\x01\x00\x00\x00" + b"\x02" + b"\x00\x01\x00\x00"
    assert list(read_mem_trace(io.BytesIO(data))) == [MemTraceRecord(1, 2, 256)]


def test_empty_trace_is_done_at_construction():
    core = Core(MemorySystem(SimConfig(mode=SimMode.A)), [], 0)
    assert core.done
    assert core.done_inst_count == 0


def test_core_executes_every_record_in_mode_a():
    memsys = MemorySystem(SimConfig(mode=SimMode.A))
    records = [
        MemTraceRecord(0, InstType.LOAD, 64),
        MemTraceRecord(4, InstType.STORE, 128),
        MemTraceRecord(8, InstType.ALU, 0),
    ]
    core = Core(memsys, records, 0)
    _run(core)
    assert core.done_inst_count == len(records)
    assert memsys.stat_ifetch_access == len(records)
    assert memsys.stat_load_access == 1
    assert memsys.stat_store_access == 1
    # Cycle 0 never executes, so the last instruction finishes on cycle len(records).
    assert core.done_cycle_count == 3


def test_no_execution_while_snoozing():
    memsys = MemorySystem(SimConfig(mode=SimMode.B))
    records = [MemTraceRecord(0, InstType.ALU, 0), MemTraceRecord(0, InstType.ALU, 0)]
    core = Core(memsys, records, 0)
    core.cycle(1)
    delay = memsys.stat_ifetch_delay
    assert delay > 1
    assert core.snooze_end_cycle == 1 + delay - 1
    core.cycle(2)
    assert core.inst_count == 1


def test_load_adds_bubbles_store_does_not():
    memsys = MemorySystem(SimConfig(mode=SimMode.B))
    records = [
        MemTraceRecord(0, InstType.ALU, 0),
        MemTraceRecord(0, InstType.STORE, 1 << 20),
        MemTraceRecord(0, InstType.LOAD, 1 << 22),
    ]
    core = Core(memsys, records, 0)
    core.cycle(1)
    first_end = core.snooze_end_cycle

    now = first_end + 1
    core.cycle(now)
    assert memsys.stat_store_delay > 1
    assert core.snooze_end_cycle == first_end

    now += 1
    core.cycle(now)
    assert memsys.stat_load_delay > 1
    assert core.snooze_end_cycle == now + memsys.stat_load_delay - 1


def test_format_stats_reports_counts():
    memsys = MemorySystem(SimConfig(mode=SimMode.A))
    core = Core(memsys, [MemTraceRecord(0, InstType.ALU, 0)] * 2, 1)
    _run(core)
    text = core.format_stats()
    assert f"\nCORE_1_INST         \t\t : {core.done_inst_count:10d}" in text
    assert f"\nCORE_1_CYCLES       \t\t : {core.done_cycle_count:10d}" in text
    assert "CORE_1_IPC" in text


def test_format_stats_without_cycles_has_nan_ipc():
    core = Core(MemorySystem(SimConfig(mode=SimMode.A)), [], 0)
    text = core.format_stats()
    assert f"{math.nan:10.3f}" in text