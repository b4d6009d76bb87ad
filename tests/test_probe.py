import pytest

from archsim import probe
from archsim.mtrand import MTRand

PROBE = 100


@pytest.fixture(scope="module")
def shared():
    return probe.ProbeCache(1, MTRand(1234))


def _set_of(cache, addr):
    return cache.tbr[addr] % cache.num_sets


def test_tbr_is_permutation(shared):
    assert sorted(shared.tbr) == list(range(probe.TBR_ENTRIES))


@pytest.mark.parametrize("assoc", [0, 9])
def test_invalid_associativity(assoc):
    with pytest.raises(ValueError):
        probe.ProbeCache(assoc, MTRand(1))


def test_access_out_of_range(shared):
    with pytest.raises(ValueError):
        shared.access_install(probe.TBR_ENTRIES)


def test_conflicting_address_evicts_probe(shared):
    target = _set_of(shared, PROBE)
    conflict = next(
        a for a in range(probe.TBR_ENTRIES) if a != PROBE and _set_of(shared, a) == target
    )
    assert probe.test_conflict_list(shared, 1, PROBE, [conflict]) is True


def test_non_conflicting_address_fails(shared):
    target = _set_of(shared, PROBE)
    other = next(a for a in range(probe.TBR_ENTRIES) if _set_of(shared, a) != target)
    assert probe.test_conflict_list(shared, 1, PROBE, [other]) is False


def test_unsupported_way_count_fails(shared):
    target = _set_of(shared, PROBE)
    conflict = next(
        a for a in range(probe.TBR_ENTRIES) if a != PROBE and _set_of(shared, a) == target
    )
    assert probe.test_conflict_list(shared, 3, PROBE, [conflict] * 3) is False


def test_fill_conflict_list_shape(shared):
    result = probe.fill_conflict_list(shared, 1, PROBE, MTRand(7))
    assert len(result) == probe.MAX_CONFLICT_ADDR
    assert result[4:] == [0, 0, 0, 0]
    assert all(0 <= a < probe.TBR_ENTRIES for a in result)


def test_hit_after_install_and_reset():
    cache = probe.ProbeCache(2, MTRand(99))
    assert cache.access_install(12345) is False
    assert cache.access_install(12345) is True
    cache.reset()
    assert cache.access_install(12345) is False
    assert sorted(cache.tbr[:10]) != list(range(10)) or len(set(cache.tbr)) == probe.TBR_ENTRIES


def test_main_without_arguments(capsys):
    assert probe.main([]) == -1
    assert "Exiting ..." in capsys.readouterr().out


def test_main_rejects_bad_associativity(capsys):
    assert probe.main(["9", "0"]) == 1
    assert "Error!" in capsys.readouterr().out


def test_main_runs(capsys):
    assert probe.main(["1", "3"]) == 0
    out = capsys.readouterr().out
    assert "Starting test for 1 ways and ProbeAddr: 3" in out
    assert "OUTCOME: " in out