"""Binary instruction trace records used by the pipeline simulator."""

from __future__ import annotations

import struct
from collections.abc import Iterator
from dataclasses import astuple, dataclass
from enum import IntEnum
from typing import BinaryIO

# Native x86-64 layout of the record, including alignment padding.
_LAYOUT = struct.Struct("<Q9B7xQ3B5xQ")
RECORD_SIZE = _LAYOUT.size


class OpType(IntEnum):
    ALU = 0
    LD = 1
    ST = 2
    CBR = 3
    OTHER = 4


@dataclass(frozen=True)
class TraceRecord:
    """One instruction of a trace."""

    inst_addr: int = 0
    op_type: int = 0
    dest: int = 0
    dest_needed: int = 0
    src1_reg: int = 0
    src2_reg: int = 0
    src1_needed: int = 0
    src2_needed: int = 0
    cc_read: int = 0
    cc_write: int = 0
    mem_addr: int = 0
    mem_write: int = 0
    mem_read: int = 0
    br_dir: int = 0
    br_target: int = 0

    @classmethod
    def unpack(cls, data: bytes) -> TraceRecord:
        """Decode one record from exactly RECORD_SIZE bytes."""
        if len(data) != RECORD_SIZE:
            raise ValueError(f"trace record must be {RECORD_SIZE} bytes, got {len(data)}")
        return cls(*_LAYOUT.unpack(data))

    def pack(self) -> bytes:
        """Encode the record in its binary layout."""
        try:
            return _LAYOUT.pack(*astuple(self))
        except struct.error as exc:
            raise ValueError(f"field out of range: {exc}") from exc


def read_records(stream: BinaryIO) -> Iterator[TraceRecord]:
    """Yield records from a binary stream until a short or empty read."""
    while True:
        chunk = stream.read(RECORD_SIZE)
        if len(chunk) < RECORD_SIZE:
            return
        yield TraceRecord.unpack(chunk)