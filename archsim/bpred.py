"""Branch predictors: perfect, always-taken and gshare."""

from __future__ import annotations

from enum import IntEnum

PHT_ENTRIES = 4096
_INDEX_MASK = 0xFFF
_U32 = 0xFFFFFFFF


def sat_increment(x: int, maximum: int) -> int:
    """Increment, saturating at maximum."""
    return x + 1 if x < maximum else x


def sat_decrement(x: int) -> int:
    """Decrement, saturating at zero."""
    return x - 1 if x > 0 else x


class BranchPolicy(IntEnum):
    PERFECT = 0
    ALWAYS_TAKEN = 1
    GSHARE = 2


class BranchPredictor:
    """Conditional branch predictor with misprediction statistics."""

    def __init__(self, policy: int) -> None:
        if policy == BranchPolicy.ALWAYS_TAKEN:
            self.policy = BranchPolicy.ALWAYS_TAKEN
        elif policy == BranchPolicy.GSHARE:
            self.policy = BranchPolicy.GSHARE
        else:
            self.policy = BranchPolicy.PERFECT
        self.ghr = 0
        self.pht = [2] * PHT_ENTRIES
        self.max_counter = 3
        self.stat_num_branches = 0
        self.stat_num_mispred = 0

    def _index(self, pc: int) -> int:
        return (self.ghr & _INDEX_MASK) ^ (pc & _INDEX_MASK)

    def predict(self, pc: int) -> bool:
        """Predicted direction for the branch at pc; True means taken."""
        if self.policy == BranchPolicy.GSHARE:
            return self.pht[self._index(pc)] >= 2
        return True

    def update(self, pc: int, resolved: bool, predicted: bool) -> None:
        """Record the outcome of a branch and train the predictor."""
        self.stat_num_branches += 1
        if resolved != predicted:
            self.stat_num_mispred += 1

        if self.policy == BranchPolicy.GSHARE:
            index = self._index(pc)
            if resolved:
                self.pht[index] = sat_increment(self.pht[index], self.max_counter)
            else:
                self.pht[index] = sat_decrement(self.pht[index])
            self.ghr = ((self.ghr << 1) + int(bool(resolved))) & _U32