import time
from typing import Dict, List, Optional

CATEGORIES = [
    'ones', 'twos', 'threes', 'fours', 'fives', 'sixes',
    'threeKind', 'fourKind', 'fullHouse',
    'smallStraight', 'largeStraight',
    'chance', 'yahtzee',
]

UPPER_CATEGORIES = CATEGORIES[:6]

DICE_COUNT = 5
MAX_ROLLS = 3


class Player:
    def __init__(self, player_id: str, name: str):
        self.id = player_id
        self.name = name
        self.scores: Dict[str, int] = {}
        # First legitimate value per category; never overwritten once set
        self.original_scores: Dict[str, int] = {}
        self.cheated: Dict[str, bool] = {}
        self.penalty = 0
        self.upper_subtotal = 0
        self.bonus = 0
        self.total = 0

    def has_scored(self, cat: str) -> bool:
        return cat in self.scores

    def is_finished(self) -> bool:
        return all(c in self.scores for c in CATEGORIES)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'scores': dict(self.scores),
            'originalScores': dict(self.original_scores),
            'cheated': dict(self.cheated),
            'penalty': self.penalty,
            'upperSubtotal': self.upper_subtotal,
            'bonus': self.bonus,
            'total': self.total,
        }


class TurnFlags:
    """Per-turn flags. A fresh instance is created on every turn transition."""

    def __init__(self):
        self.no_keep_before_roll2 = False
        self.no_keep_before_roll3 = False
        self.han_mode_armed = False
        self.han_mode_turn = False
        self.double_or_zero_used = False
        self.yahtzee_fanfare_used = False
        self.roll_overlay_open = False
        self.roll_overlay_by: Optional[str] = None
        self.doz_in_progress = False
        self.doz_by: Optional[str] = None
        self.doz_ticket: Optional[int] = None

    def close_roll_overlay(self) -> bool:
        was_open = self.roll_overlay_open
        self.roll_overlay_open = False
        self.roll_overlay_by = None
        return was_open

    def clear_doz(self) -> None:
        self.doz_in_progress = False
        self.doz_by = None
        self.doz_ticket = None

    def to_dict(self):
        return {
            'noKeepBeforeRoll2': self.no_keep_before_roll2,
            'noKeepBeforeRoll3': self.no_keep_before_roll3,
            'hanModeArmed': self.han_mode_armed,
            'hanModeTurn': self.han_mode_turn,
            'doubleOrZeroUsed': self.double_or_zero_used,
            'yahtzeeFanfareUsed': self.yahtzee_fanfare_used,
            'rollOverlayOpen': self.roll_overlay_open,
            'rollOverlayBy': self.roll_overlay_by,
            'dozInProgress': self.doz_in_progress,
        }


class ReportSession:
    """Match-wide accusation lock: 'idle' or 'locked' by one reporter."""

    IDLE = 'idle'
    LOCKED = 'locked'

    def __init__(self):
        self.state = self.IDLE
        self.reporter_id: Optional[str] = None
        self.started_at: Optional[int] = None

    @property
    def active(self) -> bool:
        return self.state == self.LOCKED

    def lock(self, reporter_id: str) -> None:
        self.state = self.LOCKED
        self.reporter_id = reporter_id
        self.started_at = int(time.time() * 1000)

    def release(self) -> None:
        self.state = self.IDLE
        self.reporter_id = None
        self.started_at = None

    def to_dict(self):
        return {
            'active': self.active,
            'reporterId': self.reporter_id,
            'startedAt': self.started_at,
        }


class GameState:
    def __init__(self):
        self.players: List[Player] = []
        self.reset()

    def reset(self) -> None:
        """Return everything except the player list to its initial values."""
        self.turn = 0
        # Bumped on every turn transition; timers compare against it
        self.turn_serial = 0
        self.dice = [1] * DICE_COUNT
        self.held = [False] * DICE_COUNT
        self.roll_count = 0
        self.turn_flags = TurnFlags()
        self.report = ReportSession()
        self.game_over = False
        self.winner_name: Optional[str] = None

    def reset_turn(self) -> None:
        self.turn_serial += 1
        self.dice = [1] * DICE_COUNT
        self.held = [False] * DICE_COUNT
        self.roll_count = 0
        self.turn_flags = TurnFlags()

    def current_player(self) -> Optional[Player]:
        if not self.players:
            return None
        return self.players[self.turn % len(self.players)]

    def is_current(self, player_id: str) -> bool:
        current = self.current_player()
        return current is not None and current.id == player_id

    def find_player(self, player_id) -> Optional[Player]:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def all_finished(self) -> bool:
        return bool(self.players) and all(p.is_finished() for p in self.players)

    def to_dict(self):
        return {
            'players': [p.to_dict() for p in self.players],
            'turn': self.turn,
            'dice': list(self.dice),
            'held': list(self.held),
            'rollCount': self.roll_count,
            'turnFlags': self.turn_flags.to_dict(),
            'report': self.report.to_dict(),
            'gameOver': self.game_over,
            'winnerName': self.winner_name,
        }
