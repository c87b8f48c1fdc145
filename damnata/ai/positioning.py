"""Monster slot selection.

Slots run 0..N-1 from front to back. Taunt and sturdy units go to the front,
Ranged units to the back, heavy hitters near the centre.
"""
from typing import Optional, Sequence

from ..card import CardData
from ..constants import Keyword, BOARD_SLOTS


class MonsterPositionSelector:
    """Picks a free board slot for a monster card."""

    def __init__(self, slot_count: int = BOARD_SLOTS):
        self.slot_count = slot_count

    def position_score(self, position: int, card: CardData) -> float:
        count = self.slot_count
        middle = count // 2
        distance = abs(position - middle)

        score = 0.0
        if middle > 0:
            score += (1 - distance / middle) * 10

        if card.has_keyword(Keyword.RANGED):
            score += position * 5
        elif card.has_keyword(Keyword.TAUNT):
            score += (count - position) * 5
        elif card.health >= 5:
            score += (count - position) * 3
        elif card.attack >= 5:
            score += (1 - distance / (count / 2)) * 15

        if card.has_keyword(Keyword.TOUGH):
            score += (count - position) * 4
        if card.has_keyword(Keyword.OVERWHELM) and position < count // 2:
            score += (count // 2 - position) * 3
        return score

    def select(self, card: CardData, free_slots: Sequence[int]) -> Optional[int]:
        """Best free slot, or None if the board is full. Ties go to the lower slot."""
        if not free_slots:
            return None
        if len(free_slots) == 1:
            return free_slots[0]
        return max(sorted(free_slots), key=lambda pos: (self.position_score(pos, card), -pos))
