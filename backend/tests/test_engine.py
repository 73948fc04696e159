from yahtzee_server.models import CATEGORIES
from yahtzee_server.services.games import engine


def _roll(state, pid, rng, *faces):
    rng.push(*faces)
    return engine.roll(state, pid, rng)


def _sfx(outcome):
    return [p['name'] for name, p in outcome.events if name == 'sfx']


def test_roll_replaces_dice_and_counts(make_state, rng):
    state = make_state()
    outcome = _roll(state, 'p1', rng, 1, 2, 3, 4, 6)
    assert outcome.applied
    assert state.dice == [1, 2, 3, 4, 6]
    assert state.roll_count == 1
    assert _sfx(outcome) == ['roll']


def test_roll_out_of_turn_is_noop(make_state, rng):
    state = make_state()
    before = state.to_dict()
    outcome = _roll(state, 'p2', rng, 2, 2, 2, 2, 3)
    assert not outcome
    assert state.to_dict() == before


def test_fourth_roll_is_noop(make_state, rng):
    state = make_state()
    for _ in range(3):
        _roll(state, 'p1', rng, 1, 2, 3, 4, 6)
    assert state.roll_count == 3
    before = state.to_dict()
    assert not _roll(state, 'p1', rng, 5, 5, 5, 5, 5)
    assert state.to_dict() == before


def test_held_dice_survive_a_roll(make_state, rng):
    state = make_state()
    _roll(state, 'p1', rng, 6, 6, 1, 2, 3)
    engine.toggle_hold(state, 'p1', 0)
    engine.toggle_hold(state, 'p1', 1)
    _roll(state, 'p1', rng, 4, 4, 4)
    assert state.dice == [6, 6, 4, 4, 4]


def test_han_mode_when_nothing_held_before_rolls_two_and_three(make_state, rng):
    state = make_state()
    _roll(state, 'p1', rng, 1, 2, 3, 4, 6)
    _roll(state, 'p1', rng, 1, 2, 3, 4, 6)
    assert state.turn_flags.han_mode_armed
    _roll(state, 'p1', rng, 1, 2, 3, 4, 6)
    assert state.turn_flags.han_mode_turn
    assert state.turn_flags.han_mode_armed


def test_holding_before_roll_two_blocks_han_mode(make_state, rng):
    state = make_state()
    _roll(state, 'p1', rng, 1, 2, 3, 4, 6)
    engine.toggle_hold(state, 'p1', 4)
    _roll(state, 'p1', rng, 1, 2, 3, 4)
    assert not state.turn_flags.han_mode_armed
    engine.toggle_hold(state, 'p1', 4)
    _roll(state, 'p1', rng, 1, 2, 3, 4, 6)
    assert not state.turn_flags.han_mode_turn


def test_holding_before_roll_three_blocks_han_mode(make_state, rng):
    state = make_state()
    _roll(state, 'p1', rng, 1, 2, 3, 4, 6)
    _roll(state, 'p1', rng, 1, 2, 3, 4, 6)
    engine.toggle_hold(state, 'p1', 0)
    _roll(state, 'p1', rng, 2, 3, 4, 6)
    assert state.turn_flags.no_keep_before_roll2
    assert not state.turn_flags.no_keep_before_roll3
    assert not state.turn_flags.han_mode_turn


def test_fanfare_fires_once_per_turn(make_state, rng):
    state = make_state()
    first = _roll(state, 'p1', rng, 5, 5, 5, 5, 5)
    second = _roll(state, 'p1', rng, 5, 5, 5, 5, 5)
    assert _sfx(first) == ['fanfare']
    assert _sfx(second) == ['roll']
    assert state.turn_flags.yahtzee_fanfare_used


def test_roll_closes_open_roll_overlay(make_state, rng):
    state = make_state()
    state.turn_flags.roll_overlay_open = True
    state.turn_flags.roll_overlay_by = 'p1'
    outcome = _roll(state, 'p1', rng, 1, 2, 3, 4, 6)
    assert ('rollOverlay', {'show': False}) in outcome.events
    assert not state.turn_flags.roll_overlay_open
    assert state.turn_flags.roll_overlay_by is None


def test_toggle_hold_requires_a_roll_and_valid_index(make_state, rng):
    state = make_state()
    assert not engine.toggle_hold(state, 'p1', 0)
    _roll(state, 'p1', rng, 1, 2, 3, 4, 6)
    assert not engine.toggle_hold(state, 'p1', None)
    assert not engine.toggle_hold(state, 'p2', 0)
    assert engine.toggle_hold(state, 'p1', 2).applied
    assert state.held == [False, False, True, False, False]
    engine.toggle_hold(state, 'p1', 2)
    assert state.held == [False] * 5


def test_score_records_and_advances_turn(make_state, rng):
    state = make_state()
    _roll(state, 'p1', rng, 2, 2, 2, 5, 5)
    engine.toggle_hold(state, 'p1', 0)
    outcome = engine.score(state, 'p1', 'fullHouse')
    assert outcome.applied
    p1 = state.players[0]
    assert p1.scores['fullHouse'] == 16
    assert p1.original_scores['fullHouse'] == 16
    assert p1.cheated['fullHouse'] is False
    assert p1.total == 16
    assert state.turn == 1
    assert state.dice == [1] * 5
    assert state.held == [False] * 5
    assert state.roll_count == 0


def test_score_before_rolling_is_noop(make_state):
    state = make_state()
    assert not engine.score(state, 'p1', 'chance')
    assert state.players[0].scores == {}


def test_scoring_same_category_twice_is_noop(make_state, rng):
    state = make_state(1)
    _roll(state, 'p1', rng, 1, 2, 3, 4, 6)
    engine.score(state, 'p1', 'chance')
    _roll(state, 'p1', rng, 6, 6, 6, 6, 5)
    before = state.to_dict()
    assert not engine.score(state, 'p1', 'chance')
    assert state.to_dict() == before


def test_turn_advance_wraps_and_resets_flags(make_state, rng):
    state = make_state(2)
    _roll(state, 'p1', rng, 1, 2, 3, 4, 6)
    engine.score(state, 'p1', 'chance')
    _roll(state, 'p2', rng, 1, 2, 3, 4, 6)
    _roll(state, 'p2', rng, 1, 2, 3, 4, 6)
    _roll(state, 'p2', rng, 1, 2, 3, 4, 6)
    assert state.turn_flags.han_mode_turn
    engine.score(state, 'p2', 'chance')
    assert state.turn == 0
    assert not state.turn_flags.han_mode_turn
    assert not state.turn_flags.no_keep_before_roll2


def test_score_advance_closes_roll_overlay(make_state, rng):
    state = make_state()
    _roll(state, 'p1', rng, 1, 2, 3, 4, 6)
    state.turn_flags.roll_overlay_open = True
    state.turn_flags.roll_overlay_by = 'p1'
    outcome = engine.score(state, 'p1', 'chance')
    assert ('rollOverlay', {'show': False}) in outcome.events


def _fill_all_but_chance(player, value):
    for cat in CATEGORIES:
        if cat != 'chance':
            player.scores[cat] = value


def test_match_ends_when_every_category_is_recorded(make_state, rng):
    state = make_state(2)
    _fill_all_but_chance(state.players[0], 1)
    _fill_all_but_chance(state.players[1], 2)
    _roll(state, 'p1', rng, 1, 2, 3, 4, 6)
    engine.score(state, 'p1', 'chance')
    assert not state.game_over
    _roll(state, 'p2', rng, 1, 1, 1, 1, 2)
    engine.score(state, 'p2', 'chance')
    assert state.game_over
    # p1: 12 + 16 = 28, p2: 24 + 6 = 30
    assert state.winner_name == 'Player2'
    assert not _roll(state, 'p1', rng, 1, 2, 3, 4, 5)


def test_tied_totals_go_to_earlier_seat(make_state):
    state = make_state(3)
    for p in state.players:
        p.total = 40
    state.players[2].total = 39
    assert engine.pick_winner(state).name == 'Player1'


def _reach_third_roll(state, rng, han=False, faces=None):
    # Without han mode die 0 stays held from roll 2 onward
    _roll(state, 'p1', rng, 1, 2, 3, 4, 6)
    if not han:
        engine.toggle_hold(state, 'p1', 0)
    _roll(state, 'p1', rng, *([1, 2, 3, 4, 6] if han else [2, 3, 4, 6]))
    if faces is None:
        faces = (1, 2, 3, 4, 6) if han else (2, 3, 4, 6)
    _roll(state, 'p1', rng, *faces)


def test_double_or_zero_rerolls_everything_once(make_state, rng):
    state = make_state()
    _reach_third_roll(state, rng)
    engine.toggle_hold(state, 'p1', 1)
    rng.push(6, 6, 5, 5, 4)
    outcome = engine.double_or_zero(state, 'p1', rng)
    assert outcome.applied
    assert state.dice == [6, 6, 5, 5, 4]
    assert state.held == [False] * 5
    assert state.turn_flags.double_or_zero_used
    assert _sfx(outcome) == ['roll']
    assert not engine.double_or_zero(state, 'p1', rng)


def test_double_or_zero_leaves_recorded_scores_alone(make_state, rng):
    state = make_state()
    state.players[0].scores['chance'] = 20
    _reach_third_roll(state, rng)
    engine.double_or_zero(state, 'p1', rng)
    assert state.players[0].scores == {'chance': 20}


def test_double_or_zero_needs_third_roll_and_no_han(make_state, rng):
    state = make_state()
    _roll(state, 'p1', rng, 1, 2, 3, 4, 6)
    assert not engine.double_or_zero(state, 'p1', rng)

    han_state = make_state()
    _reach_third_roll(han_state, rng, han=True)
    assert han_state.turn_flags.han_mode_turn
    assert not engine.double_or_zero(han_state, 'p1', rng)


def test_god_re_yahtzee_win_ends_match(make_state, rng):
    state = make_state()
    state.players[1].total = 300
    _reach_third_roll(state, rng, han=True, faces=(4, 4, 4, 4, 4))
    rng.push(2, 2, 2, 2, 2)
    outcome = engine.god_re_yahtzee(state, 'p1', rng)
    assert state.game_over
    assert state.winner_name == 'Player1'
    assert _sfx(outcome) == ['fanfare']


def test_god_re_yahtzee_miss_keeps_playing(make_state, rng):
    state = make_state()
    _reach_third_roll(state, rng, han=True, faces=(4, 4, 4, 4, 4))
    rng.push(2, 2, 2, 2, 3)
    outcome = engine.god_re_yahtzee(state, 'p1', rng)
    assert outcome.applied
    assert not state.game_over
    assert state.dice == [2, 2, 2, 2, 3]


def test_god_re_yahtzee_requires_han_and_yahtzee(make_state, rng):
    state = make_state()
    _reach_third_roll(state, rng, han=True, faces=(4, 4, 4, 4, 5))
    assert not engine.god_re_yahtzee(state, 'p1', rng)

    plain = make_state()
    _reach_third_roll(plain, rng, faces=(4, 4, 4, 4))
    assert plain.dice == [1, 4, 4, 4, 4]
    assert not plain.turn_flags.han_mode_turn
    assert not engine.god_re_yahtzee(plain, 'p1', rng)


def test_report_lock_freezes_turn_commands(make_state, rng):
    state = make_state()
    _roll(state, 'p1', rng, 1, 2, 3, 4, 6)
    state.report.lock('p2')
    before = state.to_dict()
    assert not _roll(state, 'p1', rng, 5, 5, 5, 5, 5)
    assert not engine.toggle_hold(state, 'p1', 0)
    assert not engine.score(state, 'p1', 'chance')
    assert state.to_dict() == before


def test_remove_earlier_seat_keeps_current_player(make_state, rng):
    state = make_state(3)
    state.turn = 2
    _roll(state, 'p3', rng, 1, 2, 3, 4, 6)
    engine.remove_player(state, 'p1')
    assert state.current_player().id == 'p3'
    assert state.roll_count == 1


def test_remove_current_player_hands_fresh_turn_to_next(make_state, rng):
    state = make_state(3)
    state.turn = 1
    _roll(state, 'p2', rng, 1, 2, 3, 4, 6)
    engine.remove_player(state, 'p2')
    assert state.current_player().id == 'p3'
    assert state.roll_count == 0
    assert state.dice == [1] * 5


def test_remove_last_seat_while_current_wraps(make_state, rng):
    state = make_state(2)
    state.turn = 1
    engine.remove_player(state, 'p2')
    assert state.turn == 0
    assert state.current_player().id == 'p1'


def test_remove_everyone_resets_state(make_state, rng):
    state = make_state(1)
    _roll(state, 'p1', rng, 1, 2, 3, 4, 6)
    state.game_over = True
    engine.remove_player(state, 'p1')
    assert state.players == []
    assert state.roll_count == 0
    assert not state.game_over
    assert not state.report.active
