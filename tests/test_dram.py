import pytest

from archsim.dram import (
    DRAM_BANKS,
    DRAM_LATENCY_FIXED,
    DRAM_T_ACT,
    DRAM_T_BUS,
    DRAM_T_CAS,
    DRAM_T_PRE,
    Dram,
    RowBufferEntry,
)

EMPTY = DRAM_T_ACT + DRAM_T_CAS + DRAM_T_BUS
HIT = DRAM_T_CAS + DRAM_T_BUS
CONFLICT = DRAM_T_PRE + DRAM_T_ACT + DRAM_T_CAS + DRAM_T_BUS


def test_fixed_latency_mode():
    dram = Dram(fixed_latency=True)
    assert dram.access(0, False) == DRAM_LATENCY_FIXED
    assert dram.access(0, True) == DRAM_LATENCY_FIXED
    assert dram.stat_read_access == 1
    assert dram.stat_write_access == 1
    assert dram.stat_read_delay == DRAM_LATENCY_FIXED
    assert dram.stat_write_delay == DRAM_LATENCY_FIXED


def test_row_empty_then_hit():
    dram = Dram()
    assert dram.access(0, False) == EMPTY
    assert dram.access(15, False) == HIT
    assert dram.banks[0] == RowBufferEntry(valid=True, rowid=0)


def test_row_conflict_reopens_row():
    dram = Dram()
    dram.access(0, False)
    lines_per_row = 1024 // 64
    other_row_same_bank = lines_per_row * DRAM_BANKS
    assert dram.access(other_row_same_bank, False) == CONFLICT
    assert dram.banks[0].rowid == 1
    assert dram.access(0, False) == CONFLICT


def test_consecutive_rows_go_to_different_banks():
    dram = Dram()
    dram.access(0, False)
    assert dram.access(16, False) == EMPTY
    assert dram.banks[1].valid
    assert dram.access(1, False) == HIT


def test_linesize_changes_mapping():
    dram = Dram(linesize=128)
    dram.access(0, False)
    assert dram.access(8, False) == EMPTY
    assert dram.banks[1].valid


def test_rowbuf_does_not_touch_stats():
    dram = Dram()
    dram.access_rowbuf(0, False)
    assert dram.stat_read_access == 0
    assert dram.stat_read_delay == 0


def test_stats_accumulate_per_direction():
    dram = Dram()
    dram.access(0, False)
    dram.access(1, False)
    dram.access(2, True)
    assert dram.stat_read_access == 2
    assert dram.stat_read_delay == EMPTY + HIT
    assert dram.stat_write_access == 1
    assert dram.stat_write_delay == HIT


@pytest.mark.parametrize("linesize", [0, 2048])
def test_bad_linesize(linesize):
    with pytest.raises(ValueError):
        Dram(linesize=linesize)


def test_format_stats():
    dram = Dram(fixed_latency=True)
    dram.access(0, False)
    dram.access(1, False)
    text = dram.format_stats()
    lines = text.split("\n")
    assert lines[0] == ""
    assert lines[1] == "DRAM_READ_ACCESS\t\t : " + "2".rjust(10)
    assert lines[2] == "DRAM_WRITE_ACCESS\t\t : " + "0".rjust(10)
    assert lines[3] == "DRAM_READ_DELAY_AVG\t\t : " + "100.000".rjust(10)
    assert lines[4] == "DRAM_WRITE_DELAY_AVG\t\t : " + "0.000".rjust(10)