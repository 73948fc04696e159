"""Turn and roll rules.

Every operation takes the shared ``GameState`` plus the acting player's id
and returns an ``Outcome``. Illegal commands return a no-op outcome and leave
the state untouched. Callers are expected to hold the match lock.
"""

from typing import Optional

from yahtzee_server.models import DICE_COUNT, MAX_ROLLS, GameState, Player
from .outcome import Outcome, noop
from .scoring import calc_score, is_yahtzee, update_totals


def _roll_die(rng) -> int:
    return rng.randint(1, 6)


def _is_locked(state: GameState) -> bool:
    return state.game_over or state.report.active


def _acting_current(state: GameState, actor_id: str) -> Optional[Player]:
    if _is_locked(state):
        return None
    current = state.current_player()
    if current is None or current.id != actor_id:
        return None
    return current


def reroll_all(state: GameState, rng) -> None:
    """Replace every die and clear holds."""
    for i in range(DICE_COUNT):
        state.dice[i] = _roll_die(rng)
        state.held[i] = False


def roll(state: GameState, actor_id: str, rng) -> Outcome:
    if _acting_current(state, actor_id) is None:
        return noop()
    if state.roll_count >= MAX_ROLLS:
        return noop()

    flags = state.turn_flags
    nothing_held = not any(state.held)
    if state.roll_count == 1:
        flags.no_keep_before_roll2 = nothing_held
    elif state.roll_count == 2:
        flags.no_keep_before_roll3 = nothing_held

    for i in range(DICE_COUNT):
        if not state.held[i]:
            state.dice[i] = _roll_die(rng)
    state.roll_count += 1

    if state.roll_count == 2:
        flags.han_mode_armed = flags.no_keep_before_roll2
    elif state.roll_count == 3:
        flags.han_mode_turn = flags.no_keep_before_roll2 and flags.no_keep_before_roll3
        if flags.han_mode_turn:
            flags.han_mode_armed = True

    outcome = Outcome()
    if flags.close_roll_overlay():
        outcome.add('rollOverlay', {'show': False})
    if is_yahtzee(state.dice) and not flags.yahtzee_fanfare_used:
        flags.yahtzee_fanfare_used = True
        outcome.sfx('fanfare')
    else:
        outcome.sfx('roll')
    return outcome


def toggle_hold(state: GameState, actor_id: str, index: Optional[int]) -> Outcome:
    if _acting_current(state, actor_id) is None:
        return noop()
    if state.roll_count == 0 or index is None:
        return noop()
    state.held[index] = not state.held[index]
    return Outcome()


def can_double_or_zero(state: GameState) -> bool:
    flags = state.turn_flags
    return (
        state.roll_count == MAX_ROLLS
        and not flags.double_or_zero_used
        and not flags.han_mode_turn
    )


def double_or_zero(state: GameState, actor_id: str, rng) -> Outcome:
    # Reroll only: recorded scores are never doubled or zeroed here
    if _acting_current(state, actor_id) is None:
        return noop()
    if not can_double_or_zero(state):
        return noop()
    reroll_all(state, rng)
    state.turn_flags.double_or_zero_used = True
    return Outcome().sfx('roll')


def god_re_yahtzee(state: GameState, actor_id: str, rng) -> Outcome:
    current = _acting_current(state, actor_id)
    if current is None:
        return noop()
    if state.roll_count != MAX_ROLLS or not state.turn_flags.han_mode_turn:
        return noop()
    if not is_yahtzee(state.dice):
        return noop()

    reroll_all(state, rng)
    if not is_yahtzee(state.dice):
        return Outcome().sfx('roll')

    outcome = Outcome().sfx('fanfare')
    return outcome.extend(end_match(state, current))


def score(state: GameState, actor_id: str, cat: Optional[str]) -> Outcome:
    current = _acting_current(state, actor_id)
    if current is None or cat is None:
        return noop()
    if current.has_scored(cat) or state.roll_count == 0:
        return noop()

    value = calc_score(cat, state.dice, state.turn_flags.han_mode_turn)
    current.scores[cat] = value
    current.original_scores[cat] = value
    current.cheated[cat] = False
    update_totals(current)

    if state.all_finished():
        return end_match(state)
    return advance_turn(state)


def advance_turn(state: GameState) -> Outcome:
    outcome = Outcome()
    if state.turn_flags.roll_overlay_open:
        outcome.add('rollOverlay', {'show': False})
    state.turn = (state.turn + 1) % len(state.players)
    state.reset_turn()
    return outcome


def pick_winner(state: GameState) -> Optional[Player]:
    """Strictly highest total; the earlier seat keeps a tie."""
    best = None
    for p in state.players:
        if best is None or p.total > best.total:
            best = p
    return best


def end_match(state: GameState, winner: Optional[Player] = None) -> Outcome:
    outcome = Outcome()
    if state.turn_flags.close_roll_overlay():
        outcome.add('rollOverlay', {'show': False})
    if winner is None:
        winner = pick_winner(state)
    state.game_over = True
    state.winner_name = winner.name if winner else None
    return outcome


def remove_player(state: GameState, player_id: str) -> Outcome:
    """Drop a player and keep exactly one current player."""
    index = next((i for i, p in enumerate(state.players) if p.id == player_id), None)
    if index is None:
        return noop()

    was_current = index == state.turn
    del state.players[index]

    if not state.players:
        state.reset()
        return Outcome()

    outcome = Outcome()
    if index < state.turn:
        state.turn -= 1
    elif was_current:
        state.turn %= len(state.players)
        if state.turn_flags.roll_overlay_open:
            outcome.add('rollOverlay', {'show': False})
        state.reset_turn()

    if not state.game_over and state.all_finished():
        outcome.extend(end_match(state))
    return outcome
