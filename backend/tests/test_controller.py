import random

import pytest

from bintris.services.games import GameController, GameSettings, GameState, Level, LevelsExhausted


def make_controller(rng=None, **overrides):
    settings = GameSettings(**overrides)
    return GameController(settings, rng=rng or random.Random(1))


def record_events(controller):
    events = []
    for name in ('game_started', 'challenge_spawned', 'challenge_resolved', 'level_up', 'game_over', 'levels_exhausted'):
        controller.subscribe(name, lambda *args, _name=name: events.append((_name, args)))
    return events


def spawn_next(controller, limit=10000):
    """Tick until a challenge spawns or the game stops running."""
    for _ in range(limit):
        challenge = controller.tick()
        if challenge is not None or not controller.playing:
            return challenge
    raise AssertionError('no challenge spawned')


def solve(controller, challenge):
    if challenge.binary_fixed:
        return controller.submit_numeric_answer(challenge.id, challenge.numeric_string)
    return controller.submit_binary_answer(challenge.id, challenge.binary_string)


def test_idle_controller_does_not_tick():
    controller = make_controller()
    assert controller.state == GameState.IDLE
    assert controller.tick() is None
    assert controller.count_generated == 0


def test_start_game_spawns_on_first_tick(scripted_rng):
    controller = make_controller(scripted_rng([(10, 16, False)]))
    events = record_events(controller)
    controller.start_game()
    assert controller.playing
    challenge = controller.tick()
    assert challenge.id == 0
    assert controller.challenges == {0: challenge}
    assert controller.count_on_screen == 1
    assert controller.count_generated == 1
    assert events == [
        ('game_started', ()),
        ('challenge_spawned', (0, '', 'A', 16, False)),
    ]


def test_spawn_interval_follows_level_delay(scripted_rng):
    controller = make_controller(scripted_rng())
    controller.start_game()
    assert controller.tick() is not None
    # 15 s at 100 ms per tick, no jitter
    assert controller.wait_time == 150
    for _ in range(150):
        assert controller.tick() is None
    second = controller.tick()
    assert second is not None
    assert second.id == 1


def test_spawn_interval_jitter_stays_within_bounds():
    controller = make_controller(random.Random(99))
    controller.start_game()
    for _ in range(8):
        assert spawn_next(controller) is not None
        # wait_time was just set and not yet decremented
        assert 150 * 0.875 <= controller.wait_time <= 150 * 1.125


def test_game_over_when_screen_is_full():
    controller = make_controller(max_on_screen=3, levels={1: Level(points=1, delay=0.1, threshold=10)})
    events = record_events(controller)
    controller.start_game()
    assert spawn_next(controller) is not None
    assert spawn_next(controller) is not None
    assert spawn_next(controller) is None
    assert controller.state == GameState.GAME_OVER
    assert not controller.playing
    assert controller.count_on_screen == 3
    assert controller.count_generated == 3
    assert len(controller.challenges) == 2
    assert events[-1] == ('game_over', (0, 1, 0))

    for _ in range(50):
        assert controller.tick() is None
    assert controller.count_generated == 3


def test_level_can_override_max_on_screen():
    controller = make_controller(max_on_screen=9, levels={1: Level(points=1, delay=0.1, threshold=10, max_on_screen=2)})
    controller.start_game()
    assert spawn_next(controller) is not None
    assert spawn_next(controller) is None
    assert controller.state == GameState.GAME_OVER


def test_resolution_updates_counters(scripted_rng):
    controller = make_controller(scripted_rng([(10, 16, False), (200, 10, True)]))
    events = record_events(controller)
    controller.start_game()
    first = spawn_next(controller)
    second = spawn_next(controller)
    assert controller.count_on_screen == 2

    assert controller.submit_numeric_answer(second.id, '200')
    assert controller.count_resolved == 1
    assert controller.count_on_screen == 1
    assert controller.score == 1
    assert second.id not in controller.challenges
    assert first.id in controller.challenges
    assert ('challenge_resolved', (second.id,)) in events


def test_answer_scenario_binary_target(scripted_rng):
    controller = make_controller(scripted_rng([(10, 16, False)]))
    controller.start_game()
    challenge = spawn_next(controller)
    # numeric side is the given one
    assert not controller.submit_numeric_answer(challenge.id, 'A')
    assert not controller.submit_binary_answer(challenge.id, '1010')
    assert challenge.id in controller.challenges
    assert controller.submit_binary_answer(challenge.id, '00001010')
    assert challenge.id not in controller.challenges


def test_wrong_answers_are_free_retries(scripted_rng):
    controller = make_controller(scripted_rng([(255, 16, True)]))
    controller.start_game()
    challenge = spawn_next(controller)
    for attempt in ('FE', '255', '11111111', ''):
        assert not controller.submit_numeric_answer(challenge.id, attempt)
    assert controller.score == 0
    assert controller.count_on_screen == 1
    assert controller.submit_numeric_answer(challenge.id, 'ff')
    assert controller.score == 1


def test_unknown_id_is_a_failed_noop():
    controller = make_controller()
    controller.start_game()
    assert not controller.submit_binary_answer(42, '00000000')
    assert not controller.submit_numeric_answer(42, '0')
    assert controller.count_resolved == 0


def test_level_up_changes_points_and_delay():
    levels = {
        1: Level(points=1, delay=0.3, threshold=2),
        2: Level(points=5, delay=0.2, threshold=100),
    }
    controller = make_controller(random.Random(7), levels=levels)
    events = record_events(controller)
    controller.start_game()
    for _ in range(2):
        solve(controller, spawn_next(controller))
    assert controller.level == 2
    assert controller.score == 2
    assert ('level_up', (2,)) in events

    challenge = spawn_next(controller)
    assert 2 * 0.875 <= controller.wait_time <= 2 * 1.125
    solve(controller, challenge)
    assert controller.score == 7


def test_exhausting_the_level_table_is_terminal():
    controller = make_controller(levels={1: Level(points=3, delay=0.1, threshold=1)})
    events = record_events(controller)
    controller.start_game()
    challenge = spawn_next(controller)
    with pytest.raises(LevelsExhausted) as info:
        solve(controller, challenge)
    assert info.value.score == 3
    assert info.value.level == 1
    assert info.value.count_resolved == 1
    assert controller.state == GameState.COMPLETED
    assert not controller.playing
    assert controller.level == 1
    assert events[-1] == ('levels_exhausted', (3, 1, 1))
    assert controller.tick() is None


def test_restart_after_game_over_resets_everything():
    controller = make_controller(max_on_screen=2, levels={1: Level(points=1, delay=0.1, threshold=10)})
    controller.start_game()
    spawn_next(controller)
    spawn_next(controller)
    assert controller.state == GameState.GAME_OVER

    controller.start_game()
    assert controller.state == GameState.RUNNING
    assert controller.challenges == {}
    assert (controller.score, controller.level, controller.count_generated, controller.count_on_screen) == (0, 1, 0, 0)
    assert controller.tick().id == 0


def test_seeded_games_are_reproducible():
    def play(seed):
        controller = make_controller(random.Random(seed), levels={1: Level(points=1, delay=0.5, threshold=50)})
        controller.start_game()
        return [(c.value, c.base, c.binary_fixed) for c in (spawn_next(controller) for _ in range(5))]

    assert play(11) == play(11)


def test_subscribe_and_unsubscribe():
    controller = make_controller()
    seen = []
    callback = seen.append
    controller.subscribe('level_up', callback)
    controller.unsubscribe('level_up', callback)
    controller._notify('level_up', 2)
    assert seen == []
    with pytest.raises(ValueError):
        controller.subscribe('nope', callback)


def test_snapshot_never_exposes_targets(scripted_rng):
    controller = make_controller(scripted_rng([(10, 16, False), (3, 8, True)]))
    controller.start_game()
    spawn_next(controller)
    spawn_next(controller)
    snap = controller.snapshot()
    assert snap['state'] == 'running'
    assert snap['max_on_screen'] == 9
    assert snap['challenges'] == [
        {'id': 0, 'binary': '', 'numeric': 'A', 'base': 16, 'binary_fixed': False},
        {'id': 1, 'binary': '00000011', 'numeric': '', 'base': 8, 'binary_fixed': True},
    ]


def test_answers_after_game_over_are_rejected():
    controller = make_controller(max_on_screen=3, levels={1: Level(points=1, delay=0.1, threshold=10)})
    events = record_events(controller)
    controller.start_game()
    first = spawn_next(controller)
    spawn_next(controller)
    spawn_next(controller)
    assert controller.state == GameState.GAME_OVER

    assert not solve(controller, first)
    assert first.id in controller.challenges
    assert (controller.score, controller.count_resolved, controller.count_on_screen) == (0, 0, 3)
    assert [name for name, _ in events if name == 'challenge_resolved'] == []


def test_answers_after_levels_exhausted_are_rejected():
    controller = make_controller(levels={1: Level(points=3, delay=0.1, threshold=1)})
    events = record_events(controller)
    controller.start_game()
    first = spawn_next(controller)
    second = spawn_next(controller)
    with pytest.raises(LevelsExhausted):
        solve(controller, first)

    assert not solve(controller, second)
    assert controller.score == 3
    assert controller.count_resolved == 1
    assert [args for name, args in events if name == 'levels_exhausted'] == [(3, 1, 1)]


def test_resolve_challenge_ignores_unknown_ids():
    controller = make_controller()
    assert not controller.resolve_challenge(0)
    controller.start_game()
    challenge = spawn_next(controller)
    assert not controller.resolve_challenge(challenge.id + 100)
    assert (controller.score, controller.count_resolved, controller.count_on_screen) == (0, 0, 1)
    assert controller.resolve_challenge(challenge.id)
    assert not controller.resolve_challenge(challenge.id)
    assert controller.count_resolved == 1
