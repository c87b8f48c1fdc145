"""Target choice for Overwhelm attackers, maximising splash value."""
from typing import List, Optional, Sequence

from ..card import Unit
from .trade import would_kill


def splash_damage(attacker: Unit) -> int:
    """Overwhelm splashes half the attacker's attack (rounded down)."""
    return attacker.attack // 2


class OverwhelmEvaluator:
    """Scores primary targets by kill value plus splash kills and spread."""

    def score(self, attacker: Unit, target: Unit, bystanders: Sequence[Unit]) -> float:
        splash = splash_damage(attacker)
        others = [u for u in bystanders if u.id != target.id and u.is_alive]

        score = 0.0
        if would_kill(attacker, target):
            score += 100 + target.attack * 5

        splash_kills = sum(1 for u in others if u.damage_taken_from(splash) >= u.health)
        damaged = len(others) - splash_kills
        score += splash_kills * 50
        score += damaged * splash * 2
        score += len(others) * 5
        return score

    def select_target(self, attacker: Unit, candidates: List[Unit],
                      bystanders: Optional[Sequence[Unit]] = None) -> Optional[Unit]:
        """Best primary target among `candidates`.

        `bystanders` are every unit on the target's side (splash reaches
        units that are not legal primary targets, e.g. behind a Taunt).
        Ties keep candidate order.
        """
        if not candidates:
            return None
        if len(candidates) == 1:
            return candidates[0]
        pool = bystanders if bystanders is not None else candidates
        best = candidates[0]
        best_score = self.score(attacker, best, pool)
        for target in candidates[1:]:
            score = self.score(attacker, target, pool)
            if score > best_score:
                best, best_score = target, score
        return best
