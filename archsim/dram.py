"""DRAM timing model with a per-bank open-row buffer."""

from __future__ import annotations

from dataclasses import dataclass, field

ROWBUF_SIZE = 1024
DRAM_BANKS = 16
MAX_DRAM_BANKS = 256

DRAM_LATENCY_FIXED = 100

DRAM_T_ACT = 45
DRAM_T_CAS = 45
DRAM_T_PRE = 45
DRAM_T_BUS = 10

_U32 = 0xFFFFFFFF


@dataclass
class RowBufferEntry:
    """Open-row state of one bank."""

    valid: bool = False
    rowid: int = 0


@dataclass
class Dram:
    """Main memory: either a fixed latency or a row-buffer timing model."""

    fixed_latency: bool = False
    linesize: int = 64
    banks: list[RowBufferEntry] = field(init=False)
    stat_read_access: int = field(default=0, init=False)
    stat_write_access: int = field(default=0, init=False)
    stat_read_delay: int = field(default=0, init=False)
    stat_write_delay: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        if not 0 < self.linesize <= ROWBUF_SIZE:
            raise ValueError(f"line size must be within 1..{ROWBUF_SIZE}, got {self.linesize}")
        assert DRAM_BANKS <= MAX_DRAM_BANKS
        self.banks = [RowBufferEntry() for _ in range(DRAM_BANKS)]

    def access(self, lineaddr: int, is_write: bool) -> int:
        """Access one line, update statistics and return the delay in cycles."""
        if self.fixed_latency:
            delay = DRAM_LATENCY_FIXED
        else:
            delay = self.access_rowbuf(lineaddr, is_write)

        if is_write:
            self.stat_write_access += 1
            self.stat_write_delay += delay
        else:
            self.stat_read_access += 1
            self.stat_read_delay += delay
        return delay

    def access_rowbuf(self, lineaddr: int, is_write: bool) -> int:
        """Delay for a row hit, an empty bank or a row conflict; opens the row."""
        row_line = lineaddr // (ROWBUF_SIZE // self.linesize)
        bank_id = (row_line % DRAM_BANKS) & _U32
        row_id = (row_line // DRAM_BANKS) & _U32
        entry = self.banks[bank_id]

        if entry.valid and entry.rowid == row_id:
            return DRAM_T_CAS + DRAM_T_BUS
        if not entry.valid:
            delay = DRAM_T_ACT + DRAM_T_CAS + DRAM_T_BUS
        else:
            delay = DRAM_T_PRE + DRAM_T_ACT + DRAM_T_CAS + DRAM_T_BUS
        entry.valid = True
        entry.rowid = row_id
        return delay

    def format_stats(self) -> str:
        """Statistics report in the simulator's text layout."""
        header = "DRAM"
        rd_avg = self.stat_read_delay / self.stat_read_access if self.stat_read_access else 0.0
        wr_avg = self.stat_write_delay / self.stat_write_access if self.stat_write_access else 0.0
        return (
            f"\n{header}_READ_ACCESS\t\t : {self.stat_read_access:10d}"
            f"\n{header}_WRITE_ACCESS\t\t : {self.stat_write_access:10d}"
            f"\n{header}_READ_DELAY_AVG\t\t : {rd_avg:10.3f}"
            f"\n{header}_WRITE_DELAY_AVG\t\t : {wr_avg:10.3f}"
        )