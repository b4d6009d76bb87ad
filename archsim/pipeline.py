"""Trace-driven in-order superscalar pipeline with five stages."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace

from archsim.bpred import BranchPredictor
from archsim.trace import OpType, TraceRecord

MAX_PIPE_WIDTH = 8
HALT_OP_ID_UNSET = (1 << 64) - 1 - 3

_U32 = 0xFFFFFFFF
_STAGE_LABELS = (" FE: ", " ID: ", " EX: ", " MEM: ")


@dataclass
class PipelineConfig:
    """Width, forwarding paths and branch predictor of a pipeline."""

    pipe_width: int = 1
    enable_mem_fwd: bool = False
    enable_exe_fwd: bool = False
    bpred_policy: int = 0


@dataclass
class Latch:
    """Contents of one pipeline latch slot."""

    valid: bool = False
    op_id: int = 0
    stall: bool = False
    tr_entry: TraceRecord = field(default_factory=TraceRecord)
    is_mispred_cbr: bool = False


def _depends(consumer: TraceRecord, producer: TraceRecord) -> bool:
    """True if consumer reads the register that producer writes."""
    return bool(
        (consumer.src1_needed and consumer.src1_reg == producer.dest)
        or (consumer.src2_needed and consumer.src2_reg == producer.dest)
    )


class Pipeline:
    """Fetch, decode, execute, memory and writeback stages over a trace."""

    def __init__(self, records: Iterable[TraceRecord], config: PipelineConfig | None = None) -> None:
        self.config = config if config is not None else PipelineConfig()
        width = self.config.pipe_width
        if not 1 <= width <= MAX_PIPE_WIDTH:
            raise ValueError(f"pipeline width must be within 1..{MAX_PIPE_WIDTH}, got {width}")
        self._records = iter(records)

        self.fe_latches = [Latch() for _ in range(width)]
        self.id_latches = [Latch() for _ in range(width)]
        self.ex_latches = [Latch() for _ in range(width)]
        self.mem_latches = [Latch() for _ in range(width)]

        self.b_pred = BranchPredictor(self.config.bpred_policy) if self.config.bpred_policy else None

        self.op_id_tracker = 0
        self.halt_op_id = HALT_OP_ID_UNSET
        self.halt = False
        self.fetch_cbr_stall = False

        self.stat_retired_inst = 0
        self.stat_num_cycle = 0

    # ------------------------------------------------------------------

    def _get_fetch_op(self, fetch_op: Latch) -> None:
        record = next(self._records, None)
        if record is None:
            fetch_op.valid = False
            self.halt_op_id = self.op_id_tracker
            return
        fetch_op.tr_entry = record
        fetch_op.valid = True
        fetch_op.stall = False
        fetch_op.is_mispred_cbr = False
        self.op_id_tracker += 1
        fetch_op.op_id = self.op_id_tracker

    def cycle(self) -> None:
        """Advance every stage by one cycle, back to front."""
        self.stat_num_cycle += 1
        self.cycle_wb()
        self.cycle_mem()
        self.cycle_ex()
        self.cycle_id()
        self.cycle_fe()

    def cycle_wb(self) -> None:
        """Retire the instructions leaving the memory stage."""
        for latch in self.mem_latches:
            if not latch.valid:
                continue
            if latch.is_mispred_cbr and latch.tr_entry.op_type == OpType.CBR:
                self.fetch_cbr_stall = False
            self.stat_retired_inst += 1
            if latch.op_id >= self.halt_op_id:
                self.halt = True

    def cycle_mem(self) -> None:
        """Move the execute latches into the memory stage."""
        for ii, ex in enumerate(self.ex_latches):
            self.mem_latches[ii].valid = ex.valid
            if ex.valid:
                self.mem_latches[ii] = replace(ex)

    def cycle_ex(self) -> None:
        """Move unstalled decode latches into the execute stage."""
        for ii, dec in enumerate(self.id_latches):
            self.ex_latches[ii].valid = not dec.stall
            if not dec.stall:
                self.ex_latches[ii] = replace(dec)

    def cycle_id(self) -> None:
        """Decode in program order, stalling on data and condition-code hazards."""
        exe_fwd = self.config.enable_exe_fwd
        mem_fwd = self.config.enable_mem_fwd

        # Valid ops first, oldest first; invalid slots keep their relative order.
        self.fe_latches.sort(key=lambda latch: (not latch.valid, latch.op_id if latch.valid else 0))

        early_cycle_stall = False
        for ii, src in enumerate(self.fe_latches):
            tr = src.tr_entry
            stall = early_cycle_stall

            for ex in self.ex_latches:
                if ex.valid and ex.tr_entry.dest_needed and _depends(tr, ex.tr_entry):
                    stall = ex.tr_entry.op_type == OpType.LD if exe_fwd else True

            if not mem_fwd and any(
                mem.valid and mem.tr_entry.dest_needed and _depends(tr, mem.tr_entry)
                for mem in self.mem_latches
            ):
                stall = True

            earlier = self.id_latches[:ii]
            if any(prev.valid and prev.tr_entry.dest_needed and _depends(tr, prev.tr_entry) for prev in earlier):
                stall = True

            if tr.cc_read:
                for ex, mem in zip(self.ex_latches, self.mem_latches):
                    if ex.valid and ex.tr_entry.cc_write:
                        stall = ex.tr_entry.op_type == OpType.LD if exe_fwd else True
                    if not mem_fwd and mem.valid and mem.tr_entry.cc_write:
                        stall = True
                if any(prev.valid and prev.tr_entry.cc_write for prev in earlier):
                    stall = True

            if self.fetch_cbr_stall and not src.valid and not src.is_mispred_cbr:
                stall = True

            if stall:
                self.id_latches[ii].stall = True
                self.id_latches[ii].valid = False
            else:
                self.id_latches[ii] = replace(src)

            early_cycle_stall = early_cycle_stall or self.id_latches[ii].stall

    def cycle_fe(self) -> None:
        """Fetch new instructions into slots whose decode stage is free."""
        fetch_op = Latch()
        for ii, (fe, dec) in enumerate(zip(self.fe_latches, self.id_latches)):
            fe.valid = not (self.fetch_cbr_stall and (not dec.stall or not fe.valid))
            if not dec.stall and not self.fetch_cbr_stall:
                self._get_fetch_op(fetch_op)
                if self.b_pred is not None:
                    self.check_bpred(fetch_op)
                self.fe_latches[ii] = replace(fetch_op)

    def check_bpred(self, fetch_op: Latch) -> None:
        """Predict a conditional branch, mark a misprediction and stall fetch on it."""
        if self.b_pred is None:
            return
        tr = fetch_op.tr_entry
        if tr.op_type != OpType.CBR:
            return
        pc = tr.inst_addr & _U32
        predicted = self.b_pred.predict(pc)
        if int(predicted) != tr.br_dir:
            fetch_op.is_mispred_cbr = True
            self.fetch_cbr_stall = True
        self.b_pred.update(pc, bool(tr.br_dir), predicted)

    def format_state(self) -> str:
        """Text dump of the latches, one row per pipeline slot."""
        lines = [
            "--------------------------------------------",
            f"cycle count : {self.stat_num_cycle} retired_instruction : {self.stat_retired_inst}",
            "".join(_STAGE_LABELS),
        ]
        stages = (self.fe_latches, self.id_latches, self.ex_latches, self.mem_latches)
        for row in zip(*stages):
            lines.append(
                "".join(f" {latch.op_id & _U32:6d} " if latch.valid else " ------ " for latch in row)
            )
        return "\n".join(lines) + "\n\n"