"""Shared types and configuration for the memory-system simulator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

MAX_CORES = 2

_U32 = 0xFFFFFFFF


class InstType(IntEnum):
    ALU = 0
    LOAD = 1
    STORE = 2
    OTHER = 3


class AccessType(IntEnum):
    IFETCH = 0
    LOAD = 1
    STORE = 2


class SimMode(IntEnum):
    NONE = 0
    A = 1
    B = 2
    C = 3
    D = 4
    E = 5
    F = 6


@dataclass
class SimConfig:
    """Parameters of a memory-system simulation run."""

    mode: SimMode = SimMode.A
    linesize: int = 64
    repl_policy: int = 0
    dcache_size: int = 32 * 1024
    dcache_assoc: int = 8
    icache_size: int = 32 * 1024
    icache_assoc: int = 8
    l2cache_size: int = 1024 * 1024
    l2cache_assoc: int = 16
    l2cache_repl: int = 0
    swp_core0_ways: int = 0
    num_cores: int = 1


def ceil_log2(number: int) -> int:
    """Smallest p with 2**p >= number."""
    if number < 1:
        raise ValueError(f"number must be positive, got {number}")
    return (number - 1).bit_length()


def low_mask(bits: int) -> int:
    """32-bit mask with the lowest `bits` bits set."""
    if bits < 0:
        raise ValueError(f"bit count must not be negative, got {bits}")
    return ((1 << bits) - 1) & _U32