"""Trace-driven core that issues instruction fetches, loads and stores to a memory system."""

from __future__ import annotations

import gzip
import math
import os
import struct
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import BinaryIO

from archsim.memsys import MemorySystem
from archsim.memtypes import AccessType, InstType

_RECORD = struct.Struct("<IBI")
RECORD_SIZE = _RECORD.size


@dataclass(frozen=True)
class MemTraceRecord:
    """One instruction of a memory trace."""

    inst_addr: int
    inst_type: int
    ldst_addr: int


def read_mem_trace(stream: BinaryIO) -> Iterator[MemTraceRecord]:
    """Yield records from a binary stream until a short or empty read."""
    while True:
        chunk = stream.read(RECORD_SIZE)
        if len(chunk) < RECORD_SIZE:
            return
        yield MemTraceRecord(*_RECORD.unpack(chunk))


def open_trace(path: str | os.PathLike[str]) -> BinaryIO:
    """Open a gzip-compressed trace file for binary reading."""
    return gzip.open(path, "rb")


def _ratio(numerator: int, denominator: int) -> float:
    if denominator:
        return numerator / denominator
    return math.inf if numerator else math.nan


class Core:
    """In-order core executing one trace instruction per cycle, stalling on slow fetches and loads."""

    def __init__(self, memsys: MemorySystem, records: Iterable[MemTraceRecord], core_id: int = 0) -> None:
        self.core_id = core_id
        self.memsys = memsys
        self._records = iter(records)
        self.current: MemTraceRecord | None = None
        self.done = False
        self.snooze_end_cycle = 0
        self.inst_count = 0
        self.done_inst_count = 0
        self.done_cycle_count = 0
        self.read_trace(0)

    def cycle(self, now: int) -> None:
        """Execute the current instruction unless finished or waiting on memory."""
        if self.done:
            return
        if now <= self.snooze_end_cycle:
            return
        record = self.current
        if record is None:
            return

        self.inst_count += 1
        bubble_cycles = 0

        ifetch_delay = self.memsys.access(record.inst_addr, AccessType.IFETCH, self.core_id, now)
        if ifetch_delay > 1:
            bubble_cycles += ifetch_delay - 1

        if record.inst_type == InstType.LOAD:
            ld_delay = self.memsys.access(record.ldst_addr, AccessType.LOAD, self.core_id, now)
            if ld_delay > 1:
                bubble_cycles += ld_delay - 1

        if record.inst_type == InstType.STORE:
            # Store misses cause no bubbles.
            self.memsys.access(record.ldst_addr, AccessType.STORE, self.core_id, now)

        if bubble_cycles:
            self.snooze_end_cycle = now + bubble_cycles

        self.read_trace(now)

    def read_trace(self, now: int) -> None:
        """Load the next instruction; mark the core done at the end of the trace."""
        self.current = next(self._records, None)
        if self.current is None:
            self.done = True
            self.done_inst_count = self.inst_count
            self.done_cycle_count = now

    def format_stats(self) -> str:
        """Instruction, cycle and IPC report of this core."""
        header = f"CORE_{self.core_id:01d}"
        ipc = _ratio(self.done_inst_count, self.done_cycle_count)
        return (
            "\n"
            f"\n{header}_INST         \t\t : {self.done_inst_count:10d}"
            f"\n{header}_CYCLES       \t\t : {self.done_cycle_count:10d}"
            f"\n{header}_IPC          \t\t : {ipc:10.3f}"
        )