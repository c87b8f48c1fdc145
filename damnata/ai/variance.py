"""Decision variance - controlled, human-like imperfection.

All randomness used by the planners goes through one DecisionVariance so a
seeded random.Random reproduces a whole turn, and zero probabilities give
the deterministic default path.
"""
import random
from typing import List, Optional, Sequence, TypeVar

T = TypeVar('T')


class DecisionVariance:
    """Wraps an injected random.Random with the perturbations the AI uses."""

    def __init__(self, rng: Optional[random.Random] = None, seed: Optional[int] = None):
        self.rng = rng if rng is not None else random.Random(seed)

    def chance(self, probability: float) -> bool:
        """True with the given probability. Never fires at 0."""
        if probability <= 0:
            return False
        if probability >= 1:
            return True
        return self.rng.random() < probability

    def roll(self) -> float:
        """Uniform float in [0, 1)."""
        return self.rng.random()

    def uniform(self, low: float, high: float) -> float:
        return self.rng.uniform(low, high)

    def bounded_noise(self, score: float, variance: float, cap: float) -> float:
        """Add U(-m, m) noise with m = min(|score| * variance, cap)."""
        margin = min(abs(score) * variance, cap)
        if margin <= 0:
            return score
        return score + self.rng.uniform(-margin, margin)

    def perturb_card_score(self, score: float, suboptimal_chance: float, variance: float) -> float:
        """Card score perturbation.

        With suboptimal_chance the score is cut to 50-80%, then it is always
        scaled by U(1 - variance, 1 + variance).
        """
        if self.chance(suboptimal_chance):
            score *= self.rng.uniform(0.5, 0.8)
        if variance > 0:
            score *= self.rng.uniform(1 - variance, 1 + variance)
        return score

    def partial_shuffle(self, items: List[T], swap_chance: float = 0.4) -> List[T]:
        """Swap adjacent pairs, each with swap_chance. Returns a new list."""
        result = list(items)
        i = 0
        while i < len(result) - 1:
            if self.chance(swap_chance):
                result[i], result[i + 1] = result[i + 1], result[i]
                i += 2
            else:
                i += 1
        return result

    def suboptimal_index(self, ranked: Sequence[T], probability: float) -> int:
        """Index into a best-first list: 0 normally, 1 or 2 with `probability`."""
        if len(ranked) < 2 or not self.chance(probability):
            return 0
        return self.rng.randint(1, min(2, len(ranked) - 1))

    def choice(self, items: Sequence[T]) -> T:
        return self.rng.choice(items)
