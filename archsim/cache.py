"""Set-associative cache model with LRU, random and static way-partitioning replacement."""

from __future__ import annotations

import random
from dataclasses import dataclass, replace
from enum import IntEnum

from archsim.memtypes import ceil_log2, low_mask

MAX_WAYS = 16

_U32 = 0xFFFFFFFF


class ReplPolicy(IntEnum):
    """Victim selection policies."""

    LRU = 0
    RAND = 1
    SWP = 2


@dataclass
class CacheLine:
    """Tag and state of one cache line; no data is modelled."""

    valid: bool = False
    dirty: bool = False
    tag: int = 0
    core_id: int = 0
    last_access_time: int = 0


class Cache:
    """Hit/miss model of a set-associative cache with write-back statistics.

    When ``match_core_id`` is true a line only hits for the core that
    installed it. ``swp_core0_ways`` is the way quota of core 0 under the
    static way-partitioning policy.
    """

    def __init__(
        self,
        size: int,
        assoc: int,
        linesize: int,
        repl_policy: int = ReplPolicy.LRU,
        swp_core0_ways: int = 0,
        match_core_id: bool = False,
        rng: random.Random | None = None,
    ) -> None:
        if assoc > MAX_WAYS:
            raise ValueError(f"Change MAX_WAYS in cache.h to support {assoc} ways")
        if assoc < 1:
            raise ValueError(f"associativity must be positive, got {assoc}")
        if linesize < 1:
            raise ValueError(f"line size must be positive, got {linesize}")
        num_sets = size // (linesize * assoc)
        if num_sets < 1:
            raise ValueError(f"cache of {size} bytes holds no complete set")
        if num_sets & (num_sets - 1):
            raise ValueError(f"number of sets must be a power of two, got {num_sets}")

        self.num_ways = assoc
        self.num_sets = num_sets
        self.repl_policy = int(repl_policy)
        self.swp_core0_ways = swp_core0_ways
        self.match_core_id = match_core_id
        self._rng = rng if rng is not None else random.Random(42)
        self._index_mask = low_mask(ceil_log2(num_sets))

        self.sets = [[CacheLine() for _ in range(assoc)] for _ in range(num_sets)]
        self.last_evicted_line = CacheLine()

        self.stat_read_access = 0
        self.stat_write_access = 0
        self.stat_read_miss = 0
        self.stat_write_miss = 0
        self.stat_dirty_evicts = 0

    def _locate(self, lineaddr: int) -> tuple[int, int]:
        index = lineaddr & self._index_mask
        tag = (lineaddr // self.num_sets) & _U32
        return index, tag

    def access(self, lineaddr: int, is_write: bool, core_id: int, cycle: int) -> bool:
        """Look up a line; mark it dirty on a write hit. Return True on a hit."""
        index, tag = self._locate(lineaddr)
        hit = False
        for line in self.sets[index]:
            if (
                line.valid
                and line.tag == tag
                and (not self.match_core_id or line.core_id == core_id)
            ):
                hit = True
                if is_write:
                    line.dirty = True
                line.last_access_time = cycle & _U32
                break

        if is_write:
            self.stat_write_access += 1
            if not hit:
                self.stat_write_miss += 1
        else:
            self.stat_read_access += 1
            if not hit:
                self.stat_read_miss += 1
        return hit

    def install(self, lineaddr: int, is_write: bool, core_id: int, cycle: int) -> None:
        """Install a line over the chosen victim, keeping a copy of the evicted line."""
        index, tag = self._locate(lineaddr)
        victim = self.find_victim(index, core_id)
        line = self.sets[index][victim]

        self.last_evicted_line = replace(line)
        if line.valid and line.dirty:
            self.stat_dirty_evicts += 1

        line.last_access_time = cycle & _U32
        line.tag = tag
        line.valid = True
        line.core_id = core_id
        line.dirty = bool(is_write)

    def find_victim(self, set_index: int, core_id: int) -> int:
        """Way to replace in a set: an invalid way first, else by the replacement policy."""
        lines = self.sets[set_index]
        policy = self.repl_policy
        if policy not in (ReplPolicy.LRU, ReplPolicy.RAND, ReplPolicy.SWP):
            return 0

        for way, line in enumerate(lines):
            if not line.valid:
                return way

        if policy == ReplPolicy.LRU:
            return min(range(self.num_ways), key=lambda way: lines[way].last_access_time)

        if policy == ReplPolicy.RAND:
            return self._rng.randrange(self.num_ways)

        num_core_0 = sum(1 for line in lines if line.core_id == 0)
        if num_core_0 < self.swp_core0_ways:
            core_swap = 1
        elif num_core_0 == self.swp_core0_ways:
            core_swap = core_id
        else:
            core_swap = 0

        candidates = [
            way for way, line in enumerate(lines) if line.valid and line.core_id == core_swap
        ]
        if not candidates:
            return 0
        return min(candidates, key=lambda way: lines[way].last_access_time)

    def format_stats(self, header: str) -> str:
        """Statistics report in the simulator's text layout."""
        read_mr = self.stat_read_miss / self.stat_read_access if self.stat_read_access else 0.0
        write_mr = self.stat_write_miss / self.stat_write_access if self.stat_write_access else 0.0
        return (
            f"\n{header}_READ_ACCESS    \t\t : {self.stat_read_access:10d}"
            f"\n{header}_WRITE_ACCESS   \t\t : {self.stat_write_access:10d}"
            f"\n{header}_READ_MISS      \t\t : {self.stat_read_miss:10d}"
            f"\n{header}_WRITE_MISS     \t\t : {self.stat_write_miss:10d}"
            f"\n{header}_READ_MISSPERC  \t\t : {100 * read_mr:10.3f}"
            f"\n{header}_WRITE_MISSPERC \t\t : {100 * write_mr:10.3f}"
            f"\n{header}_DIRTY_EVICTS   \t\t : {self.stat_dirty_evicts:10d}"
            "\n"
        )