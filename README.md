# archsim

Trace-driven simulators for studying processor microarchitecture:

- an in-order superscalar pipeline (fetch, decode, execute, memory,
  writeback) with optional forwarding from the execute and memory stages and
  an optional branch predictor (perfect, always-taken or gshare);
- a memory hierarchy of L1 instruction and data caches, a unified L2 and a
  DRAM model with per-bank open-row buffers, for one or two cores, with LRU,
  random and static way-partitioning replacement;
- a prime+probe experiment against a cache whose set index goes through a
  randomised permutation table, driven by a Mersenne Twister generator;
- a generator for a small synthetic memory trace.

## Installation

```
pip install .
```

Tests need the `test` extra (`pip install .[test]`), then `pytest`.

## Commands

### Pipeline simulator

```
archsim-pipe -pipewidth 2 -enableexefwd -enablememfwd -bpredpolicy 2 trace.gz
```

Options:

- `-pipewidth <num>`: pipeline width, 1 to 8 (default 1);
- `-enablememfwd`: forward results from the memory stage;
- `-enableexefwd`: forward results from the execute stage (loads still stall
  their consumers);
- `-bpredpolicy <num>`: 0 perfect (no predictor), 1 always taken, 2 gshare
  with a 4096-entry table of 2-bit counters;
- `-h`, `-help`: print the usage text.

The trace is a gzip-compressed file of fixed-size binary instruction records
(`archsim.trace.TraceRecord`, 48 bytes each). The command prints progress dots,
a CPI line every 500,000 cycles, and at the end the instruction count, cycle
count, CPI and, with a predictor, the branch and misprediction counts. If no
instruction retires for 10,000 cycles the run stops with a deadlock error.

### Memory-system simulator

```
archsim-mem -mode 3 -linesize 64 -DsizeKB 32 -Dassoc 8 -L2sizeKB 1024 trace0.mtr.gz
archsim-mem -mode 6 -L2repl 2 -SWP_core0ways 4 trace0.mtr.gz trace1.mtr.gz
```

Each trace is a gzip-compressed file of 9-byte records: a 32-bit instruction
address, an instruction type byte (1 load, 2 store) and a 32-bit load/store
address. One or two traces may be given, one per core.

Modes:

- `1`: data cache only, no timing;
- `2`: instruction and data caches, a unified L2 and DRAM with a fixed
  100-cycle latency;
- `3`: as mode 2, with row-buffer DRAM timing;
- `4`, `5`, `6`: private L1 caches per core, a shared L2 whose lines hit only
  for the core that installed them, row-buffer DRAM timing and per-core
  translation of virtual pages to physical frames. These modes require
  exactly two traces.

Options: `-mode`, `-linesize`, `-repl` (L1 policy: 0 LRU, 1 random),
`-DsizeKB`, `-Dassoc`, `-L2sizeKB`, `-L2repl` (0 LRU, 1 random, 2 static way
partitioning; used by modes 4 to 6), `-SWP_core0ways` (way quota of core 0
under way partitioning), `-h`/`-help`. The report gives total cycles,
per-core instructions, cycles and IPC, average delays per access type, and
per-cache access, miss and dirty-eviction counts, plus DRAM access counts and
average delays.

### Prime+probe

```
archsim-probe 1 12345
```

Arguments are the associativity (1, 2 or 4 are judged) and a probe line
address below 2**20. The command builds a 1024-set cache with random
replacement, searches line addresses 0 to 7 for ones that evict the probe
address, replays the found list 100 times and prints `OUTCOME: Success` when
the probe address misses often enough (more than 90, 60 or 25 times for 1, 2
or 4 ways), otherwise `OUTCOME: Failure`.

### Synthetic trace

```
archsim-genmrt
archsim-genmrt my_trace.mtr.gz
```

Writes 3,300 load records striding by 1 MiB (33 addresses, 100 times) to
`out.mtr.gz` or the given path.

## Library use

The simulators are plain Python classes that can be built and driven
directly:

- `archsim.bpred.BranchPredictor` (`predict`, `update`);
- `archsim.pipeline.Pipeline` with `PipelineConfig`, fed any iterable of
  `archsim.trace.TraceRecord`; `archsim.pipesim.run` drives it over a binary
  stream;
- `archsim.cache.Cache`, `archsim.dram.Dram` and
  `archsim.memsys.MemorySystem`, configured by `archsim.memtypes.SimConfig`;
- `archsim.core.Core` and `archsim.memsim.Simulation`, fed iterables of
  `archsim.core.MemTraceRecord`;
- `archsim.probe.ProbeCache`, `fill_conflict_list` and `test_conflict_list`;
- `archsim.mtrand.MTRand`, an MT19937 generator with integer, real and
  normal draws, array seeding and state save/load (`save`, `load`,
  `to_text`, `from_text`, `copy`).

`archsim.trace.read_records` and `archsim.core.read_mem_trace` decode binary
trace streams; `archsim.tracegen.write_trace` writes memory traces.

## Limitations

- The pipeline models no memory latency: every stage takes one cycle.
- Caches model tags and state only, not data.
- Page translation in modes 4 to 6 supports exactly two cores.
- The prime+probe search only tries line addresses 0 to 7, so it may find
  fewer conflicts than the cache has ways.
- There is no tool to produce pipeline instruction traces; they must come
  from elsewhere.