"""Generator of a synthetic gzip-compressed memory trace."""

from __future__ import annotations

import gzip
import os
import struct
import sys
from collections.abc import Iterable, Iterator, Sequence

ITERATIONS = 100
STRIDES = 33
STRIDE_BYTES = 1024 * 1024
DEFAULT_OUTPUT = "out.mtr.gz"

_RECORD = struct.Struct("<IBI")
_U32 = 0xFFFFFFFF


def generate_records() -> Iterator[tuple[int, int, int]]:
    """Yield (inst_addr, inst_type, ldst_addr) load records striding by 1 MiB."""
    for _ in range(ITERATIONS):
        for step in range(STRIDES):
            yield 0, 1, STRIDE_BYTES * step


def write_trace(path: str | os.PathLike[str], records: Iterable[tuple[int, int, int]]) -> int:
    """Write records as a gzip-compressed trace; return how many were written."""
    count = 0
    with gzip.open(path, "wb") as out:
        for inst_addr, inst_type, ldst_addr in records:
            out.write(_RECORD.pack(inst_addr & _U32, inst_type & 0xFF, ldst_addr & _U32))
            count += 1
    return count


def main(argv: Sequence[str] | None = None) -> int:
    """Write the synthetic trace to the given path (default out.mtr.gz)."""
    args = sys.argv[1:] if argv is None else list(argv)
    path = args[0] if args else DEFAULT_OUTPUT
    print(f"{path} opened for writing trace")
    count = write_trace(path, generate_records())
    print(f"Outfile should have {count} traces")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())