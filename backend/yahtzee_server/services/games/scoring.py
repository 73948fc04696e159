from collections import Counter
from typing import Sequence

from yahtzee_server.models import Player, UPPER_CATEGORIES

FACE_VALUES = {cat: face for face, cat in enumerate(UPPER_CATEGORIES, start=1)}

SMALL_STRAIGHTS = ({1, 2, 3, 4}, {2, 3, 4, 5}, {3, 4, 5, 6})
LARGE_STRAIGHTS = ({1, 2, 3, 4, 5}, {2, 3, 4, 5, 6})

UPPER_BONUS_THRESHOLD = 63
UPPER_BONUS = 35


def is_yahtzee(dice: Sequence[int]) -> bool:
    return len(set(dice)) == 1


def calc_score(cat: str, dice: Sequence[int], han_mode_turn: bool = False) -> int:
    """Score the dice for one category.

    Unknown categories score 0. A yahtzee is worth 100 instead of 50 on a
    han mode turn.
    """
    counts = Counter(dice)
    total = sum(dice)

    if cat in FACE_VALUES:
        face = FACE_VALUES[cat]
        return counts[face] * face
    if cat == 'threeKind':
        return total if max(counts.values()) >= 3 else 0
    if cat == 'fourKind':
        return total if max(counts.values()) >= 4 else 0
    if cat == 'fullHouse':
        shape = set(counts.values())
        return total if 3 in shape and 2 in shape else 0
    if cat == 'smallStraight':
        faces = set(dice)
        return 30 if any(run <= faces for run in SMALL_STRAIGHTS) else 0
    if cat == 'largeStraight':
        return 40 if set(dice) in LARGE_STRAIGHTS else 0
    if cat == 'chance':
        return total
    if cat == 'yahtzee':
        if not is_yahtzee(dice):
            return 0
        return 100 if han_mode_turn else 50
    return 0


def update_totals(player: Player) -> None:
    """Recompute upper subtotal, bonus and total from the recorded scores."""
    player.upper_subtotal = sum(player.scores.get(c, 0) for c in UPPER_CATEGORIES)
    player.bonus = UPPER_BONUS if player.upper_subtotal >= UPPER_BONUS_THRESHOLD else 0
    player.total = sum(player.scores.values()) + player.bonus + player.penalty
