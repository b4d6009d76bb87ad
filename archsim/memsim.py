"""Command-line driver for the multi-core memory-system simulator."""

from __future__ import annotations

import contextlib
import random
import re
import sys
from collections.abc import Iterable, Sequence
from dataclasses import replace
from typing import TextIO

from archsim.core import Core, MemTraceRecord, open_trace, read_mem_trace
from archsim.memsys import MemorySystem
from archsim.memtypes import MAX_CORES, SimConfig

PRINT_DOTS = True
DOT_INTERVAL = 100000
LINE_INTERVAL = 50 * DOT_INTERVAL

USAGE = (
    "Usage : sim [-option <value>] trace_0 <trace_1> \n"
    "   Options\n"
    "      -mode            <num>    Set mode of the simulator[1:PartA, 2:PartB, 3:PartC 4:PartD 5:PartE]  (Default: 1)\n"
    "      -linesize        <num>    Set cache linesize for all caches (Default:64)\n"
    "      -repl            <num>    Set replacement policy for L1 cache [0:LRU,1:RND] (Default:0)\n"
    "      -DsizeKB         <num>    Set capacity in KB of the the Level 1 DCACHE (Default:32 KB)\n"
    "      -Dassoc          <num>    Set associativity of the the Level 1 DCACHE (Default:8)\n"
    "      -L2sizeKB        <num>    Set capacity in KB of the unified Level 2 cache (Default: 512 KB)\n"
    "      -L2repl          <num>    Set replacement policy for L2 cache [0:LRU,1:RND,2:SWP] (Default:0)\n"
    "      -SWP_core0ways   <num>    Set static quota for core_0 for SWP (Default:1)"
)


class UsageError(Exception):
    """Bad command line, or a request for the usage text."""

    def __init__(self, message: str = "", help_requested: bool = False) -> None:
        super().__init__(message)
        self.help_requested = help_requested


def _atoi(text: str) -> int:
    match = re.match(r"\s*([+-]?\d+)", text)
    return int(match.group(1)) if match else 0


_SETTERS = {
    "-mode": lambda cfg, v: setattr(cfg, "mode", v),
    "-linesize": lambda cfg, v: setattr(cfg, "linesize", v),
    "-repl": lambda cfg, v: setattr(cfg, "repl_policy", v),
    "-DsizeKB": lambda cfg, v: setattr(cfg, "dcache_size", v * 1024),
    "-Dassoc": lambda cfg, v: setattr(cfg, "dcache_assoc", v),
    "-L2sizeKB": lambda cfg, v: setattr(cfg, "l2cache_size", v * 1024),
    "-L2repl": lambda cfg, v: setattr(cfg, "l2cache_repl", v),
    "-SWP_core0ways": lambda cfg, v: setattr(cfg, "swp_core0_ways", v),
}


def parse_args(argv: Sequence[str]) -> tuple[SimConfig, list[str]]:
    """Build a configuration and the list of trace paths from command-line arguments."""
    if not argv:
        raise UsageError("no arguments", help_requested=True)
    config = SimConfig()
    traces: list[str] = []
    args = iter(argv)
    for arg in args:
        if arg.startswith("-"):
            if arg in ("-h", "-help"):
                raise UsageError("help requested", help_requested=True)
            setter = _SETTERS.get(arg)
            if setter is None:
                raise UsageError(f"Invalid option {arg}")
            value = next(args, None)
            if value is not None:
                setter(config, _atoi(value))
        elif len(traces) < MAX_CORES:
            traces.append(arg)
            config.num_cores = len(traces)
        else:
            raise UsageError(f"Invalid option {arg}, got filename {traces[-1]}")

    if not traces:
        raise UsageError("Must provide at least one trace file")
    return config, traces


class Simulation:
    """Cycle loop over all cores sharing one memory system."""

    def __init__(
        self,
        config: SimConfig,
        trace_sources: Sequence[Iterable[MemTraceRecord]],
        out: TextIO | None = None,
    ) -> None:
        if not 1 <= len(trace_sources) <= MAX_CORES:
            raise ValueError(f"number of traces must be within 1..{MAX_CORES}, got {len(trace_sources)}")
        self.config = replace(config, num_cores=len(trace_sources))
        self.out = out if out is not None else sys.stdout
        self.rng = random.Random(42)
        self.memsys = MemorySystem(self.config, self.rng)
        self.cores = [Core(self.memsys, records, core_id) for core_id, records in enumerate(trace_sources)]
        self.cycle = 0
        self.last_printdot_cycle = 0

    def _print_dots(self) -> None:
        self.last_printdot_cycle = self.cycle
        if not PRINT_DOTS:
            return
        if self.cycle % LINE_INTERVAL == 0:
            self.out.write(f"\n{self.cycle // 1000000:4d} M\t")
        else:
            self.out.write(".")
        self.out.flush()

    def run(self) -> Simulation:
        """Cycle until every core has finished its trace, then report statistics."""
        self._print_dots()
        all_done = False
        while not all_done:
            all_done = True
            for core in self.cores:
                core.cycle(self.cycle)
                all_done = all_done and core.done
            if self.cycle - self.last_printdot_cycle >= DOT_INTERVAL:
                self._print_dots()
            self.cycle += 1
        self.out.write(self.format_stats())
        return self

    def format_stats(self) -> str:
        """Report of total cycles, every core and the memory system."""
        parts = ["\n", f"\nCYCLES      \t\t\t : {self.cycle:10d}"]
        parts.extend(core.format_stats() for core in self.cores)
        parts.append(self.memsys.format_stats())
        parts.append("\n\n")
        return "".join(parts)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the memory-system simulator on gzip-compressed traces."""
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        config, traces = parse_args(args)
    except UsageError as exc:
        if exc.help_requested:
            print(USAGE)
            return 0
        print(f"Error! {exc}. Exiting...")
        return 1

    try:
        with contextlib.ExitStack() as stack:
            sources = [read_mem_trace(stack.enter_context(open_trace(path))) for path in traces]
            Simulation(config, sources, sys.stdout).run()
    except (OSError, EOFError) as exc:
        print(f"Error! Unable to read the trace files: {exc}. Exiting...")
        return 1
    except ValueError as exc:
        print(f"Error! {exc}. Exiting...")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())