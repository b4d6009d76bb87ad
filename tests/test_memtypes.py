import pytest

from archsim.memtypes import (
    AccessType,
    InstType,
    SimConfig,
    SimMode,
    ceil_log2,
    low_mask,
)


@pytest.mark.parametrize("n, p", [(1, 0), (2, 1), (3, 2), (4, 2), (1024, 10)])
def test_ceil_log2_values(n, p):
    assert ceil_log2(n) == p


@pytest.mark.parametrize("n", [2, 5, 63, 64, 65, 4096, 100000])
def test_ceil_log2_bounds(n):
    p = ceil_log2(n)
    assert 2 ** (p - 1) < n <= 2**p


def test_ceil_log2_rejects_zero():
    with pytest.raises(ValueError):
        ceil_log2(0)


def test_low_mask():
    assert low_mask(0) == 0
    assert low_mask(4) == 0b1111
    assert low_mask(32) == 0xFFFFFFFF


def test_low_mask_rejects_negative():
    with pytest.raises(ValueError):
        low_mask(-1)


def test_enum_values():
    assert SimMode(6) is SimMode.F
    assert SimMode(2) is SimMode.B
    assert AccessType(2) is AccessType.STORE
    assert InstType(1) is InstType.LOAD


def test_config_defaults():
    cfg = SimConfig()
    assert cfg.mode is SimMode.A
    assert cfg.linesize == 64
    assert cfg.dcache_size == 32 * 1024
    assert cfg.l2cache_size == 1024 * 1024
    assert cfg.l2cache_assoc == 16
    assert cfg.num_cores == 1