"""Score tampering and accusations.

A player may overwrite any category they have already recorded. Any player
may then open a report, which locks the match until the reporter names one
(target, category) pair.
"""

from typing import Optional

from yahtzee_server.models import GameState
from .outcome import Outcome, noop
from .scoring import update_totals


def cheat_set(state: GameState, actor_id: str, cat: Optional[str], value: Optional[int]) -> Outcome:
    if state.game_over or state.report.active:
        return noop()
    if cat is None or value is None:
        return noop()
    me = state.find_player(actor_id)
    if me is None or not me.has_scored(cat):
        return noop()

    # Captured once; later cheats compare against the same original
    if cat not in me.original_scores:
        me.original_scores[cat] = me.scores[cat]

    me.scores[cat] = value
    me.cheated[cat] = value != me.original_scores[cat]
    update_totals(me)
    return Outcome()


def report_start(state: GameState, actor_id: str) -> Outcome:
    if state.game_over or state.report.active:
        return noop()
    if state.find_player(actor_id) is None:
        return noop()
    flags = state.turn_flags
    if flags.roll_overlay_open or flags.doz_in_progress:
        return noop()

    state.report.lock(actor_id)
    return Outcome().sfx('siren')


def report_select(state: GameState, actor_id: str, target_id: Optional[str],
                  cat: Optional[str], points: int = 5) -> Outcome:
    if state.game_over or not state.report.active:
        return noop()
    if actor_id != state.report.reporter_id:
        return noop()
    if target_id is None or cat is None:
        return noop()

    reporter = state.find_player(actor_id)
    target = state.find_player(target_id)
    if reporter is None or target is None:
        return noop()
    if not target.has_scored(cat):
        return noop()

    outcome = Outcome()
    if target.cheated.get(cat):
        reporter.penalty += points
        target.scores[cat] = target.original_scores.get(cat, target.scores[cat])
        target.cheated[cat] = False
        update_totals(target)
        outcome.sfx('correct')
    else:
        reporter.penalty -= points
        outcome.sfx('wrong')

    update_totals(reporter)
    state.report.release()
    return outcome


def release_reporter(state: GameState, player_id: str) -> Outcome:
    """Drop the report lock when its reporter leaves."""
    if state.report.active and state.report.reporter_id == player_id:
        state.report.release()
        return Outcome()
    return noop()
