"""Prime+Probe experiment on a cache whose set index goes through a random table."""

from __future__ import annotations

import re
import sys
import time
from collections.abc import Sequence

from archsim.mtrand import MTRand

NUM_SETS = 1024
MAX_WAYS = 8
TBR_ENTRIES = 1 << 20
MAX_CONFLICT_ADDR = 8
MAX_ITER = 100

_FOUND_SLOTS = 4
_SEARCH_CANDIDATES = 8
_PASS_THRESHOLDS = {1: 90, 2: 60, 4: 25}


class ProbeCache:
    """Set-associative cache with random replacement and a table-based randomizer.

    Each line address is mapped through a random permutation before its set
    index is taken, so conflicting addresses must be found by probing.
    """

    def __init__(self, assoc: int, rng: MTRand) -> None:
        if not 1 <= assoc <= MAX_WAYS:
            raise ValueError(f"associativity must be within 1..{MAX_WAYS}, got {assoc}")
        self.num_ways = assoc
        self.num_sets = NUM_SETS
        self._rng = rng
        self.sets: list[list[int | None]] = []
        self.tbr: list[int] = []
        self.reset()

    def reset(self) -> None:
        """Invalidate every line and draw a fresh randomizer permutation."""
        self.sets = [[None] * self.num_ways for _ in range(self.num_sets)]
        tbr = list(range(TBR_ENTRIES))
        draw = self._rng.rand_int
        for ii in range(TBR_ENTRIES):
            dest = draw() % TBR_ENTRIES
            tbr[dest], tbr[ii] = tbr[ii], tbr[dest]
        self.tbr = tbr

    def access_install(self, lineaddr: int) -> bool:
        """Look up a line; install it on a miss. Return True on a hit."""
        if not 0 <= lineaddr < TBR_ENTRIES:
            raise ValueError(f"line address must be below {TBR_ENTRIES}, got {lineaddr}")
        lines = self.sets[self.tbr[lineaddr] % self.num_sets]
        if lineaddr in lines:
            return True
        victim = self._rng.rand_int() % self.num_ways
        lines[victim] = lineaddr
        return False


def fill_conflict_list(cache: ProbeCache, num_ways: int, probe_addr: int, rng: MTRand) -> list[int]:
    """Search for addresses that evict the probe address.

    Returns a list of MAX_CONFLICT_ADDR addresses; the first entries are the
    found conflicts (or random addresses where none were found), the rest zero.
    """
    found = [rng.rand_int() % TBR_ENTRIES for _ in range(_FOUND_SLOTS)]

    cache.access_install(probe_addr)

    misses = 0
    for candidate in range(_SEARCH_CANDIDATES):
        cache.access_install(candidate)
        if not cache.access_install(probe_addr):
            misses += 1
            if misses <= _FOUND_SLOTS:
                found[misses - 1] = candidate
        if misses == num_ways:
            break

    return found + [0] * (MAX_CONFLICT_ADDR - len(found))


def test_conflict_list(
    cache: ProbeCache, num_ways: int, probe_addr: int, conflict_list: Sequence[int]
) -> bool:
    """Replay the conflict list against the probe address; True if it evicts often enough."""
    misses = 0
    for _ in range(MAX_ITER):
        for addr in conflict_list[:num_ways]:
            cache.access_install(addr)
        if not cache.access_install(probe_addr):
            misses += 1

    threshold = _PASS_THRESHOLDS.get(num_ways)
    return threshold is not None and misses > threshold


test_conflict_list.__test__ = False  # not a pytest test despite its name


def _atoi(text: str) -> int:
    match = re.match(r"\s*([+-]?\d+)", text)
    return int(match.group(1)) if match else 0


def main(argv: Sequence[str] | None = None) -> int:
    """Run the prime+probe search and report whether it succeeded."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) < 2:
        print("./sim <Assoc> <ProbeAddr> (Assoc=1/2/4)(ProbeAddr= 0 to 1 million)")
        print("Exiting ...")
        return -1

    num_ways = _atoi(args[0]) & 0xFFFFFFFF
    probe_addr = _atoi(args[1]) & 0xFFFFFFFF

    print(f"\nStarting test for {num_ways} ways and ProbeAddr: {probe_addr}")

    try:
        cache = ProbeCache(num_ways, MTRand(1234))
        start = time.perf_counter()
        conflict_list = fill_conflict_list(cache, num_ways, probe_addr, MTRand(1))
        elapsed = time.perf_counter() - start
    except ValueError as exc:
        print(f"Error! {exc}. Exiting...")
        return 1

    print(f"Search took {elapsed:6.3f} seconds")

    try:
        passed = test_conflict_list(cache, num_ways, probe_addr, conflict_list)
    except ValueError as exc:
        print(f"Error! {exc}. Exiting...")
        return 1

    print("\nOUTCOME: Success\n" if passed else "\nOUTCOME: Failure\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())