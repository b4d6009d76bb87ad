"""Memory hierarchy: L1 instruction and data caches, a unified L2 and DRAM."""

from __future__ import annotations

import random

from archsim.cache import Cache
from archsim.dram import Dram
from archsim.memtypes import AccessType, SimConfig, SimMode, ceil_log2, low_mask

PAGE_SIZE = 4096

DCACHE_HIT_LATENCY = 1
ICACHE_HIT_LATENCY = 1
L2CACHE_HIT_LATENCY = 10

_U32 = 0xFFFFFFFF
_MODES_BC = (SimMode.B, SimMode.C)
_MODES_DEF = (SimMode.D, SimMode.E, SimMode.F)


def _evicted_address(cache: Cache, lineaddr: int) -> int:
    """Line address of the line just evicted from the set that lineaddr maps to."""
    set_bits = ceil_log2(cache.num_sets)
    index = lineaddr & low_mask(set_bits)
    return ((cache.last_evicted_line.tag << set_bits) | index) & _U32


def _writeback_pending(cache: Cache) -> bool:
    line = cache.last_evicted_line
    return line.valid and line.dirty


class MemorySystem:
    """Caches and DRAM of one simulation run, with per-access-type delay statistics.

    Mode A models only a data cache without timing. Modes B and C add an
    instruction cache, a unified L2 and DRAM (fixed latency in B, row-buffer
    timing in C). Modes D, E and F give every core private L1 caches, share
    the L2 and translate virtual pages to per-core physical frames.
    """

    def __init__(self, config: SimConfig | None = None, rng: random.Random | None = None) -> None:
        self.config = config if config is not None else SimConfig()
        try:
            self.mode = SimMode(self.config.mode)
        except ValueError:
            raise ValueError(f"unknown simulation mode {self.config.mode}") from None
        if self.mode == SimMode.NONE:
            raise ValueError("simulation mode must be set")
        self._rng = rng if rng is not None else random.Random(42)

        cfg = self.config
        self.dcache: Cache | None = None
        self.icache: Cache | None = None
        self.l2cache: Cache | None = None
        self.dram: Dram | None = None
        self.dcache_per_core: list[Cache] = []
        self.icache_per_core: list[Cache] = []

        if self.mode in _MODES_DEF:
            self.l2cache = self._new_cache(
                cfg.l2cache_size, cfg.l2cache_assoc, cfg.l2cache_repl, match_core_id=True
            )
            self.dram = self._new_dram()
            for _ in range(cfg.num_cores):
                self.dcache_per_core.append(
                    self._new_cache(cfg.dcache_size, cfg.dcache_assoc, cfg.repl_policy, match_core_id=True)
                )
                self.icache_per_core.append(
                    self._new_cache(cfg.icache_size, cfg.icache_assoc, cfg.repl_policy, match_core_id=True)
                )
        else:
            self.dcache = self._new_cache(cfg.dcache_size, cfg.dcache_assoc, cfg.repl_policy)
            if self.mode in _MODES_BC:
                self.icache = self._new_cache(cfg.icache_size, cfg.icache_assoc, cfg.repl_policy)
                self.l2cache = self._new_cache(cfg.l2cache_size, cfg.l2cache_assoc, cfg.repl_policy)
                self.dram = self._new_dram()

        self.stat_ifetch_access = 0
        self.stat_load_access = 0
        self.stat_store_access = 0
        self.stat_ifetch_delay = 0
        self.stat_load_delay = 0
        self.stat_store_delay = 0

    def _new_cache(self, size: int, assoc: int, repl: int, match_core_id: bool = False) -> Cache:
        return Cache(
            size,
            assoc,
            self.config.linesize,
            repl,
            swp_core0_ways=self.config.swp_core0_ways,
            match_core_id=match_core_id,
            rng=self._rng,
        )

    def _new_dram(self) -> Dram:
        return Dram(fixed_latency=self.mode == SimMode.B, linesize=self.config.linesize)

    # ------------------------------------------------------------------

    def access(self, addr: int, access_type: AccessType, core_id: int, cycle: int) -> int:
        """Perform an instruction fetch, load or store; return its delay in cycles."""
        access_type = AccessType(access_type)
        lineaddr = addr // self.config.linesize

        if self.mode == SimMode.A:
            delay = self.access_mode_a(lineaddr, access_type, core_id, cycle)
        elif self.mode in _MODES_BC:
            delay = self.access_mode_bc(lineaddr, access_type, core_id, cycle)
        else:
            delay = self.access_mode_def(lineaddr, access_type, core_id, cycle)
        delay &= _U32

        if access_type == AccessType.IFETCH:
            self.stat_ifetch_access += 1
            self.stat_ifetch_delay += delay
        elif access_type == AccessType.LOAD:
            self.stat_load_access += 1
            self.stat_load_delay += delay
        else:
            self.stat_store_access += 1
            self.stat_store_delay += delay
        return delay

    def access_mode_a(self, lineaddr: int, access_type: AccessType, core_id: int, cycle: int) -> int:
        """Data-cache only, no timing: loads and stores install on a miss; returns 0."""
        if self.dcache is None:
            raise RuntimeError("mode A access needs a data cache")
        if access_type == AccessType.IFETCH:
            return 0
        is_write = access_type == AccessType.STORE
        if not self.dcache.access(lineaddr, is_write, core_id, cycle):
            self.dcache.install(lineaddr, is_write, core_id, cycle)
        return 0

    def access_mode_bc(self, lineaddr: int, access_type: AccessType, core_id: int, cycle: int) -> int:
        """Two-level hierarchy with shared L1 caches; returns the access delay."""
        if self.icache is None or self.dcache is None:
            raise RuntimeError("mode B/C access needs instruction and data caches")
        return self._l1_access(self.icache, self.dcache, lineaddr, access_type, core_id, cycle)

    def access_mode_def(self, v_lineaddr: int, access_type: AccessType, core_id: int, cycle: int) -> int:
        """Translate a virtual line address and access the core's private L1 caches."""
        if not 0 <= core_id < len(self.dcache_per_core):
            raise ValueError(f"core id {core_id} has no private caches")
        offset_bits = ceil_log2(PAGE_SIZE) - ceil_log2(self.config.linesize)
        offset = v_lineaddr & low_mask(offset_bits + 1)
        vpn = (v_lineaddr >> offset_bits) & _U32
        pfn = self.convert_vpn_to_pfn(vpn, core_id) & _U32
        lineaddr = ((pfn << offset_bits) & _U32) | offset

        return self._l1_access(
            self.icache_per_core[core_id],
            self.dcache_per_core[core_id],
            lineaddr,
            access_type,
            core_id,
            cycle,
        )

    def _l1_access(
        self,
        icache: Cache,
        dcache: Cache,
        lineaddr: int,
        access_type: AccessType,
        core_id: int,
        cycle: int,
    ) -> int:
        if access_type == AccessType.IFETCH:
            delay = ICACHE_HIT_LATENCY
            if not icache.access(lineaddr, False, core_id, cycle):
                delay += self.l2_access(lineaddr, False, core_id, cycle)
                icache.install(lineaddr, False, core_id, cycle)
            return delay

        is_write = access_type == AccessType.STORE
        delay = DCACHE_HIT_LATENCY
        if not dcache.access(lineaddr, is_write, core_id, cycle):
            delay += self.l2_access(lineaddr, False, core_id, cycle)
            dcache.install(lineaddr, is_write, core_id, cycle)
            if _writeback_pending(dcache):
                self.l2_access(_evicted_address(dcache, lineaddr), True, core_id, cycle)
        return delay

    def l2_access(self, lineaddr: int, is_writeback: bool, core_id: int, cycle: int) -> int:
        """Access the L2, filling from DRAM on a miss and writing back dirty victims."""
        if self.l2cache is None or self.dram is None:
            raise RuntimeError("this simulation mode has no L2 cache")
        delay = L2CACHE_HIT_LATENCY
        l2 = self.l2cache
        if not l2.access(lineaddr, is_writeback, core_id, cycle):
            delay += self.dram.access(lineaddr, False)
            l2.install(lineaddr, is_writeback, core_id, cycle)
            if _writeback_pending(l2):
                self.dram.access(_evicted_address(l2, lineaddr), True)
        return delay

    def convert_vpn_to_pfn(self, vpn: int, core_id: int) -> int:
        """Map a virtual page number of a core to its physical frame number."""
        if self.config.num_cores != 2:
            raise ValueError("page translation supports exactly two cores")
        tail = vpn & 0x000FFFFF
        head = vpn >> 20
        return tail + ((core_id << 21) & _U32) + (head << 21)

    # ------------------------------------------------------------------

    def format_stats(self) -> str:
        """Statistics report of the memory system and all its caches."""
        header = "MEMSYS"

        def avg(delay: int, count: int) -> float:
            return delay / count if count else 0.0

        parts = [
            "\n",
            f"\n{header}_IFETCH_ACCESS  \t\t : {self.stat_ifetch_access:10d}",
            f"\n{header}_LOAD_ACCESS    \t\t : {self.stat_load_access:10d}",
            f"\n{header}_STORE_ACCESS   \t\t : {self.stat_store_access:10d}",
            f"\n{header}_IFETCH_AVGDELAY\t\t : {avg(self.stat_ifetch_delay, self.stat_ifetch_access):10.3f}",
            f"\n{header}_LOAD_AVGDELAY  \t\t : {avg(self.stat_load_delay, self.stat_load_access):10.3f}",
            f"\n{header}_STORE_AVGDELAY \t\t : {avg(self.stat_store_delay, self.stat_store_access):10.3f}",
            "\n",
        ]

        if self.mode in _MODES_DEF:
            for core_id, (icache, dcache) in enumerate(zip(self.icache_per_core, self.dcache_per_core)):
                parts.append(icache.format_stats(f"ICACHE_{core_id}"))
                parts.append(dcache.format_stats(f"DCACHE_{core_id}"))
        elif self.dcache is not None:
            parts.append(self.dcache.format_stats("DCACHE"))
            if self.icache is not None:
                parts.append(self.icache.format_stats("ICACHE"))

        if self.l2cache is not None:
            parts.append(self.l2cache.format_stats("L2CACHE"))
        if self.dram is not None:
            parts.append(self.dram.format_stats())
        return "".join(parts)