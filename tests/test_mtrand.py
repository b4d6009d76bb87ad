import random

import pytest

from archsim.mtrand import MTRand, N, SAVE


@pytest.mark.parametrize("seed", [1, 12345, 0xDEADBEEF])
def test_array_seed_matches_stdlib_stream(seed):
    ours = MTRand([seed])
    ref = random.Random(seed)
    assert [ours.rand_int() for _ in range(1500)] == [ref.getrandbits(32) for _ in range(1500)]


def test_rand53_matches_stdlib_random():
    ours = MTRand([987654])
    ref = random.Random(987654)
    assert [ours.rand53() for _ in range(700)] == [ref.random() for _ in range(700)]


def test_reference_outputs():
    assert MTRand([0x123, 0x234, 0x345, 0x456]).rand_int() == 1067595299
    assert MTRand(5489).rand_int() == 3499211612


def test_integer_seed_reproducible_and_reseed():
    g = MTRand(42)
    first = [g.rand_int() for _ in range(10)]
    g.seed(42)
    assert [g.rand_int() for _ in range(10)] == first
    assert [MTRand(42).rand_int() for _ in range(1)] == first[:1]


def test_save_load_round_trip():
    g = MTRand(7)
    for _ in range(100):
        g.rand_int()
    saved = g.save()
    assert len(saved) == SAVE
    ahead = [g.rand_int() for _ in range(800)]
    g.load(saved)
    assert [g.rand_int() for _ in range(800)] == ahead


def test_text_round_trip():
    g = MTRand(99)
    text = g.to_text()
    words = text.split("\t")
    assert len(words) == SAVE
    assert words[-1] == str(N)
    clone = MTRand.from_text(text)
    assert [clone.rand_int() for _ in range(50)] == [g.rand_int() for _ in range(50)]


def test_copy_is_independent():
    g = MTRand(3)
    c = g.copy()
    expected = [g.rand_int() for _ in range(20)]
    assert [c.rand_int() for _ in range(20)] == expected
    assert c.save() == g.save()


@pytest.mark.parametrize("n", [0, 1, 5, 100, 2**31 + 3])
def test_rand_int_bound(n):
    g = MTRand(11)
    values = [g.rand_int(n) for _ in range(300)]
    assert all(0 <= v <= n for v in values)


def test_rand_int_zero_bound_always_zero():
    g = MTRand(5)
    assert {g.rand_int(0) for _ in range(10)} == {0}


@pytest.mark.parametrize("bad", [-1, 2**32])
def test_rand_int_bad_bound(bad):
    with pytest.raises(ValueError):
        MTRand(1).rand_int(bad)


def test_real_ranges():
    g = MTRand(2024)
    for _ in range(2000):
        assert 0.0 <= g.rand() <= 1.0
        assert 0.0 <= g.rand_exc() < 1.0
        assert 0.0 < g.rand_dbl_exc() < 1.0
        assert 0.0 <= g.rand53() < 1.0


def test_scaled_reals():
    assert MTRand(8).rand(10.0) == MTRand(8).rand() * 10.0
    assert MTRand(8).rand_exc(3.0) == MTRand(8).rand_exc() * 3.0
    assert MTRand(8).rand_dbl_exc(2.0) == MTRand(8).rand_dbl_exc() * 2.0


def test_call_is_rand():
    assert MTRand(17)() == MTRand(17).rand()


def test_rand_norm_mean():
    g = MTRand(31)
    samples = [g.rand_norm(5.0, 2.0) for _ in range(4000)]
    mean = sum(samples) / len(samples)
    assert abs(mean - 5.0) < 0.2


def test_load_rejects_wrong_length():
    with pytest.raises(ValueError):
        MTRand(1).load([0] * N)


def test_load_rejects_bad_left():
    with pytest.raises(ValueError):
        MTRand(1).load([0] * N + [N + 1])


def test_empty_seed_array_rejected():
    with pytest.raises(ValueError):
        MTRand([])


def test_auto_seed_gives_valid_state():
    g = MTRand()
    saved = g.save()
    assert len(saved) == SAVE
    assert all(0 <= v <= 0xFFFFFFFF for v in saved[:N])