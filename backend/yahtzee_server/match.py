"""The one live match and its single-writer command path.

Socket handlers, HTTP routes and timer callbacks all go through ``Match``.
Every entry point takes the lock, applies one state operation and publishes
its events followed by the ``update`` snapshot before releasing the lock, so
clients see states in exactly the order they were produced.
"""

import itertools
import random
import threading
from typing import Any, Optional

from yahtzee_server.models import GameState, Player
from yahtzee_server.services.games import cheating, engine, overlay, validators
from yahtzee_server.services.games.outcome import Outcome


COMMANDS = (
    'roll',
    'toggleHold',
    'doubleOrZero',
    'godReYahtzee',
    'score',
    'cheatSet',
    'reportStart',
    'reportSelect',
    'rollOverlayOpen',
    'rollOverlayClose',
    'dozOverlayStart',
)


class Match:
    def __init__(self, emitter, scheduler, logger, rng=None, max_players=4,
                 doz_overlay_ms=2500, doz_heartbeat_delay_ms=350,
                 cheat_max_value=999, report_points=5):
        self.emitter = emitter
        self.scheduler = scheduler
        self.logger = logger
        self.rng = rng or random.Random()
        self.max_players = max_players
        self.doz_overlay_ms = doz_overlay_ms
        self.doz_heartbeat_delay_ms = doz_heartbeat_delay_ms
        self.cheat_max_value = cheat_max_value
        self.report_points = report_points
        self.state = GameState()
        self._lock = threading.RLock()
        self._tickets = itertools.count(1)

    @classmethod
    def from_config(cls, config, emitter, scheduler, logger, rng=None) -> 'Match':
        return cls(
            emitter,
            scheduler,
            logger,
            rng=rng,
            max_players=int(config.get('MAX_PLAYERS', 4)),
            doz_overlay_ms=int(config.get('DOZ_OVERLAY_MS', 2500)),
            doz_heartbeat_delay_ms=int(config.get('DOZ_HEARTBEAT_DELAY_MS', 350)),
            cheat_max_value=int(config.get('CHEAT_MAX_VALUE', 999)),
            report_points=int(config.get('REPORT_POINTS', 5)),
        )

    # ---- snapshots / publishing ----

    def snapshot(self) -> dict:
        with self._lock:
            return self.state.to_dict()

    def _publish(self, outcome: Outcome) -> None:
        for name, payload in outcome.events:
            self.emitter.emit(name, payload)
        if outcome.applied:
            self.emitter.emit('update', self.state.to_dict())

    # ---- connection lifecycle ----

    def join(self, sid: str) -> Optional[Player]:
        with self._lock:
            if len(self.state.players) >= self.max_players:
                self.logger.info(f"[full] sid={sid} players={len(self.state.players)}")
                self.emitter.emit('full', to=sid)
                return None

            player = Player(sid, f"Player{len(self.state.players) + 1}")
            self.state.players.append(player)
            self.logger.info(f"[join] sid={sid} name={player.name} players={len(self.state.players)}")
            self.emitter.emit('init', self.state.to_dict(), to=sid)
            self._publish(Outcome())
            return player

    def leave(self, sid: str) -> None:
        with self._lock:
            if self.state.find_player(sid) is None:
                return
            outcome = cheating.release_reporter(self.state, sid)
            outcome.extend(overlay.release_overlays(self.state, sid))
            outcome.extend(engine.remove_player(self.state, sid))
            self.logger.info(
                f"[leave] sid={sid} players={len(self.state.players)} turn={self.state.turn} game_over={self.state.game_over}"
            )
            self._publish(outcome)

    # ---- commands ----

    def dispatch(self, sid: str, command: str, payload: Any = None) -> Outcome:
        handler = getattr(self, f"_cmd_{command}", None) if command in COMMANDS else None
        if handler is None:
            self.logger.debug(f"[ignored] sid={sid} unknown command={command!r}")
            return Outcome(applied=False)
        with self._lock:
            outcome = handler(sid, payload)
            if not outcome:
                self.logger.debug(f"[refused] sid={sid} command={command} payload={payload!r}")
                return outcome
            self._publish(outcome)
            return outcome

    def _cmd_roll(self, sid, payload):
        outcome = engine.roll(self.state, sid, self.rng)
        if outcome:
            self.logger.info(f"[roll] sid={sid} rollCount={self.state.roll_count} dice={self.state.dice}")
        return outcome

    def _cmd_toggleHold(self, sid, payload):
        return engine.toggle_hold(self.state, sid, validators.die_index(payload))

    def _cmd_doubleOrZero(self, sid, payload):
        outcome = engine.double_or_zero(self.state, sid, self.rng)
        if outcome:
            self.logger.info(f"[double-or-zero] sid={sid} dice={self.state.dice}")
        return outcome

    def _cmd_godReYahtzee(self, sid, payload):
        outcome = engine.god_re_yahtzee(self.state, sid, self.rng)
        if outcome:
            self.logger.info(f"[god-re-yahtzee] sid={sid} dice={self.state.dice} won={self.state.game_over}")
            self._log_game_over()
        return outcome

    def _cmd_score(self, sid, payload):
        cat = validators.category(payload)
        outcome = engine.score(self.state, sid, cat)
        if outcome:
            player = self.state.find_player(sid)
            self.logger.info(f"[score] sid={sid} cat={cat} value={player.scores[cat]} total={player.total}")
            self._log_game_over()
        return outcome

    def _cmd_cheatSet(self, sid, payload):
        cat = validators.category_field(payload)
        value = validators.cheat_value(payload, self.cheat_max_value)
        outcome = cheating.cheat_set(self.state, sid, cat, value)
        if outcome:
            player = self.state.find_player(sid)
            self.logger.info(f"[cheat] sid={sid} cat={cat} value={value} cheated={player.cheated[cat]}")
        return outcome

    def _cmd_reportStart(self, sid, payload):
        outcome = cheating.report_start(self.state, sid)
        if outcome:
            self.logger.info(f"[report-start] reporter={sid}")
        return outcome

    def _cmd_reportSelect(self, sid, payload):
        target_id = validators.player_id(payload)
        cat = validators.category_field(payload)
        outcome = cheating.report_select(self.state, sid, target_id, cat, points=self.report_points)
        if outcome:
            verdict = outcome.events[-1][1]['name']
            self.logger.info(f"[report-resolve] reporter={sid} target={target_id} cat={cat} verdict={verdict}")
        return outcome

    def _cmd_rollOverlayOpen(self, sid, payload):
        return overlay.roll_overlay_open(self.state, sid)

    def _cmd_rollOverlayClose(self, sid, payload):
        return overlay.roll_overlay_close(self.state, sid)

    def _cmd_dozOverlayStart(self, sid, payload):
        outcome = overlay.doz_start(self.state, sid, next(self._tickets), self.doz_overlay_ms)
        ticket = outcome.ticket
        if ticket is not None:
            self.logger.info(f"[doz-start] {ticket} resolve_in={self.doz_overlay_ms}ms")
            self.scheduler.call_later(self.doz_heartbeat_delay_ms, self._doz_heartbeat, ticket)
            self.scheduler.call_later(self.doz_overlay_ms, self._doz_resolve, ticket)
        return outcome

    # ---- timer callbacks ----

    def _doz_heartbeat(self, ticket) -> None:
        with self._lock:
            self._publish(overlay.doz_heartbeat(self.state, ticket))

    def _doz_resolve(self, ticket) -> None:
        with self._lock:
            if overlay.is_stale(ticket, self.state):
                self.logger.info(f"[doz-abort] {ticket} stale turn_serial={self.state.turn_serial}")
            outcome = overlay.doz_resolve(self.state, ticket, self.rng)
            if outcome.applied:
                rerolled = any(p.get('name') == 'roll' for _, p in outcome.events)
                self.logger.info(f"[doz-resolve] {ticket} rerolled={rerolled} dice={self.state.dice}")
            self._publish(outcome)

    def _log_game_over(self) -> None:
        if self.state.game_over:
            self.logger.info(f"[finish] winner={self.state.winner_name}")
