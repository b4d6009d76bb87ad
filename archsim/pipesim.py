"""Command-line driver for the pipeline simulator."""

from __future__ import annotations

import gzip
import math
import re
import sys
from collections.abc import Sequence
from typing import BinaryIO, TextIO

from archsim.pipeline import Pipeline, PipelineConfig
from archsim.trace import read_records

HEARTBEAT_CYCLES = 10000
_LINE_CYCLES = 50 * HEARTBEAT_CYCLES
_U32 = 0xFFFFFFFF

USAGE = (
    "Usage : sim [options] <trace_file> \n\n"
    "Trace driven pipeline simulator\n"
    "Options\n"
    "   -pipewidth   <num>    Set width of pipeline to <num> (Default: 1)\n"
    "   -enablememfwd         Enable forwarding from MEM stage (Default: off)\n"
    "   -enableexefwd         Enable forwarding from EXE stage (Default: off)\n"
    "   -bpredpolicy <num>    Set branch predictor  [0:Perf 1:Taken 2:Gshare]"
)


class DeadlockError(RuntimeError):
    """No instruction retired during a whole heartbeat interval."""


def _atoi(text: str) -> int:
    match = re.match(r"\s*([+-]?\d+)", text)
    return int(match.group(1)) if match else 0


def _ratio(numerator: int, denominator: int) -> float:
    if denominator:
        return numerator / denominator
    return math.inf if numerator else math.nan


class Heartbeat:
    """Progress dots, periodic CPI lines and deadlock detection."""

    def __init__(self, out: TextIO | None = None) -> None:
        self.out = out if out is not None else sys.stdout
        self.last_cycle = 0
        self.last_line = 0
        self.last_inst = 0

    def check(self, pipeline: Pipeline) -> None:
        """Report progress every interval; raise DeadlockError if nothing retired."""
        if pipeline.stat_num_cycle - self.last_cycle < HEARTBEAT_CYCLES:
            return

        self.out.write(".")
        self.out.flush()

        if self.last_inst == pipeline.stat_retired_inst:
            self.out.write(f"No committed instructions in {HEARTBEAT_CYCLES} cycles.\n")
            raise DeadlockError("Pipeline is Deadlocked. Dying")

        self.last_cycle = pipeline.stat_num_cycle
        self.last_inst = pipeline.stat_retired_inst

        if pipeline.stat_num_cycle - self.last_line >= _LINE_CYCLES:
            cpi = pipeline.stat_num_cycle / (pipeline.stat_retired_inst + 1)
            self.out.write(
                f"\n(Inst:{pipeline.stat_retired_inst & _U32:8d}\t"
                f"Cycle:{pipeline.stat_num_cycle & _U32:8d}\tCPI:{cpi:6.3f})\t"
            )
            self.last_line = pipeline.stat_num_cycle


def parse_args(argv: Sequence[str]) -> tuple[PipelineConfig, str | None]:
    """Build a configuration and the trace path from command-line arguments."""
    config = PipelineConfig()
    trace_path: str | None = None
    args = iter(argv)
    for arg in args:
        if not arg.startswith("-"):
            trace_path = arg
        elif arg == "-pipewidth":
            value = next(args, None)
            if value is not None:
                config.pipe_width = _atoi(value)
        elif arg == "-bpredpolicy":
            value = next(args, None)
            if value is not None:
                config.bpred_policy = _atoi(value)
        elif arg == "-enablememfwd":
            config.enable_mem_fwd = True
        elif arg == "-enableexefwd":
            config.enable_exe_fwd = True
    return config, trace_path


def format_stats(pipeline: Pipeline, config: PipelineConfig) -> str:
    """Final statistics report."""
    header = "LAB2"
    inst = pipeline.stat_retired_inst
    cycles = pipeline.stat_num_cycle
    parts = [
        "\n\n",
        f"\n{header}_NUM_INST           \t : {inst & _U32:10d}",
        f"\n{header}_NUM_CYCLES         \t : {cycles & _U32:10d}",
        f"\n{header}_CPI                \t : {_ratio(cycles, inst):10.3f}",
    ]
    if config.bpred_policy and pipeline.b_pred is not None:
        bp = pipeline.b_pred
        rate = 100.0 * _ratio(bp.stat_num_mispred, bp.stat_num_branches)
        parts += [
            f"\n{header}_BPRED_BRANCHES     \t : {bp.stat_num_branches & _U32:10d}",
            f"\n{header}_BPRED_MISPRED      \t : {bp.stat_num_mispred & _U32:10d}",
            f"\n{header}_MISPRED_RATE       \t : {rate:10.3f}",
        ]
    parts.append("\n\n")
    return "".join(parts)


def run(config: PipelineConfig, stream: BinaryIO, out: TextIO | None = None) -> Pipeline:
    """Simulate the trace in stream until the last instruction retires."""
    out = out if out is not None else sys.stdout
    out.write(f"\n** PIPELINE IS {config.pipe_width} WIDE **\n\n")
    pipeline = Pipeline(read_records(stream), config)
    heartbeat = Heartbeat(out)
    while not pipeline.halt:
        pipeline.cycle()
        heartbeat.check(pipeline)
    out.write(format_stats(pipeline, config))
    return pipeline


def main(argv: Sequence[str] | None = None) -> int:
    """Run the pipeline simulator on a gzip-compressed trace."""
    args = sys.argv[1:] if argv is None else list(argv)
    if any(arg in ("-h", "-help") for arg in args):
        print(USAGE)

    config, trace_path = parse_args(args)
    if trace_path is None:
        print("Error! Must Provide a Trace File. Exiting...")
        return 1

    try:
        with gzip.open(trace_path, "rb") as stream:
            print(f"Opened trace file: {trace_path} ")
            run(config, stream, sys.stdout)
    except DeadlockError as exc:
        print(f"Error! {exc}. Exiting...")
        return 1
    except (OSError, EOFError) as exc:
        print(f"Error! Unable to read the trace file {trace_path}: {exc}. Exiting...")
        return 1
    except ValueError as exc:
        print(f"Error! {exc}. Exiting...")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())