"""Broadcast-synchronised overlays.

The roll overlay is a plain open/closed flag owned by the current player.
The double-or-zero overlay runs on a timer: ``doz_start`` hands back a
``DozTicket`` and the scheduler later calls ``doz_heartbeat`` and
``doz_resolve`` with it. Both re-check the live state against the ticket
because the turn may have moved on, or the player left, in between.
"""

from yahtzee_server.models import MAX_ROLLS, GameState
from .engine import can_double_or_zero, reroll_all
from .outcome import Outcome, noop


class DozTicket:
    def __init__(self, ticket_id: int, actor_id: str, turn_serial: int):
        self.id = ticket_id
        self.actor_id = actor_id
        self.turn_serial = turn_serial

    def __repr__(self):
        return f"DozTicket(id={self.id}, actor={self.actor_id}, turn_serial={self.turn_serial})"


def roll_overlay_open(state: GameState, actor_id: str) -> Outcome:
    if state.game_over or state.report.active:
        return noop()
    current = state.current_player()
    if current is None or current.id != actor_id:
        return noop()
    if state.roll_count >= MAX_ROLLS:
        return noop()

    state.turn_flags.roll_overlay_open = True
    state.turn_flags.roll_overlay_by = actor_id
    return Outcome().add('rollOverlay', {'show': True, 'byId': actor_id, 'byName': current.name})


def roll_overlay_close(state: GameState, actor_id: str) -> Outcome:
    if state.game_over or state.report.active:
        return noop()
    if not state.is_current(actor_id):
        return noop()
    flags = state.turn_flags
    if flags.roll_overlay_by not in (None, actor_id):
        return noop()

    flags.close_roll_overlay()
    return Outcome().add('rollOverlay', {'show': False})


def doz_start(state: GameState, actor_id: str, ticket_id: int, duration_ms: int) -> Outcome:
    if state.game_over or state.report.active:
        return noop()
    current = state.current_player()
    if current is None or current.id != actor_id:
        return noop()
    if not can_double_or_zero(state):
        return noop()
    flags = state.turn_flags
    if flags.doz_in_progress:
        return noop()

    flags.doz_in_progress = True
    flags.doz_by = actor_id
    flags.doz_ticket = ticket_id

    outcome = Outcome()
    outcome.add('dozOverlay', {'show': True, 'byId': actor_id, 'byName': current.name, 'ms': duration_ms})
    outcome.sfx('doz')
    outcome.ticket = DozTicket(ticket_id, actor_id, state.turn_serial)
    return outcome


def doz_heartbeat(state: GameState, ticket: DozTicket) -> Outcome:
    if state.turn_flags.doz_ticket != ticket.id:
        return noop()
    return Outcome(applied=False).sfx('heartStart')


def _ticket_still_valid(state: GameState, ticket: DozTicket) -> bool:
    return (
        not state.game_over
        and state.turn_serial == ticket.turn_serial
        and state.is_current(ticket.actor_id)
        and can_double_or_zero(state)
    )


def doz_resolve(state: GameState, ticket: DozTicket, rng) -> Outcome:
    """Finish a double-or-zero countdown.

    The reroll happens only when the ticket still describes the live turn.
    The overlay is closed either way, unless a newer countdown has taken it
    over.
    """
    flags = state.turn_flags
    live = flags.doz_ticket == ticket.id
    if not live and flags.doz_in_progress:
        return noop()

    outcome = Outcome().sfx('heartStop')
    if live and _ticket_still_valid(state, ticket):
        reroll_all(state, rng)
        flags.double_or_zero_used = True
        outcome.sfx('roll')
    if live:
        flags.clear_doz()
    outcome.add('dozOverlay', {'show': False})
    return outcome


def release_overlays(state: GameState, player_id: str) -> Outcome:
    """Close overlays owned by a departing player."""
    flags = state.turn_flags
    outcome = noop()
    if flags.roll_overlay_by == player_id:
        flags.close_roll_overlay()
        outcome.applied = True
        outcome.add('rollOverlay', {'show': False})
    if flags.doz_in_progress and flags.doz_by == player_id:
        flags.clear_doz()
        outcome.applied = True
        outcome.add('dozOverlay', {'show': False})
        outcome.sfx('heartStop')
    return outcome


def is_stale(ticket: DozTicket, state: GameState) -> bool:
    return state.turn_flags.doz_ticket != ticket.id
