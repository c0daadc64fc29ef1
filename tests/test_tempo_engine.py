import pytest

from show_engine.scheduling.tempo_engine import (
    MAX_BPM,
    MIN_BPM,
    TempoEngine,
    TempoSource,
    clamp_bpm,
    median_ms,
    tap_confidence,
    tap_intervals,
)

def test_initial_state_uses_clock_for_downbeat(clock):
    engine = TempoEngine(clock=clock)
    state = engine.state()
    assert state.bpm == 120.0
    assert state.confidence == 1.0
    assert state.downbeat_epoch_ms == 1_000
    assert state.source == TempoSource.MANUAL
    assert state.tap_count == 0
    assert state.beat_ms == 500.0

def test_initial_bpm_is_clamped(clock):
    assert TempoEngine(initial_bpm=1_000, clock=clock).get_current_bpm() == MAX_BPM

def test_tap_history_must_hold_two_taps(clock):
    with pytest.raises(ValueError):
        TempoEngine(tap_history_limit=1, clock=clock)

@pytest.mark.parametrize("requested, expected", [
    (-10, MIN_BPM), (0, MIN_BPM), (5, MIN_BPM), (20, 20.0), (128.5, 128.5), (300, 300.0), (500, MAX_BPM),
])
def test_set_bpm_clamps_into_range(clock, requested, expected):
    engine = TempoEngine(clock=clock)
    state = engine.set_bpm(requested)
    assert state.bpm == expected
    assert state.confidence == 1.0
    assert state.source == TempoSource.MANUAL

def test_nudge_keeps_confidence_and_clamps(clock):
    engine = TempoEngine(clock=clock)
    engine.tap_bpm(0)
    engine.tap_bpm(500)
    assert engine.state().confidence == 0.35

    state = engine.nudge_bpm(3.5)
    assert state.bpm == 123.5
    assert state.confidence == 0.35
    assert state.source == TempoSource.MANUAL

    assert engine.nudge_bpm(-1_000).bpm == MIN_BPM
    assert engine.nudge_bpm(10_000).bpm == MAX_BPM

def test_median_odd_and_even_counts():
    assert median_ms([400, 500, 600]) == 500
    assert median_ms([400, 500, 600, 700]) == 550
    assert median_ms([600, 400, 500]) == 500
    assert median_ms([500, 501]) == 500.5

def test_median_of_nothing_raises():
    with pytest.raises(ValueError):
        median_ms([])

def test_steady_taps_are_more_confident_than_jittery_taps():
    assert tap_confidence([500] * 4) > tap_confidence([400, 540, 450, 610])

def test_tap_confidence_bounds():
    assert tap_confidence([500]) == 0.35
    assert tap_confidence([]) == 0.2
    assert tap_confidence([0, 0]) == 0.2
    assert tap_confidence([500] * 6) == 0.99
    # Two identical intervals: perfect consistency, minimum sample weight
    assert tap_confidence([500, 500]) == pytest.approx(0.4)
    # Wildly irregular intervals bottom out at the floor
    assert tap_confidence([100, 2900, 100, 2900]) == 0.2

def test_tap_intervals_drop_out_of_range_and_out_of_order():
    assert tap_intervals([0, 500, 550, 4_000, 3_900, 4_400]) == [500, 500]

def test_tapping_estimates_tempo_from_median(clock):
    engine = TempoEngine(clock=clock)
    for tap in (0, 500, 1_000, 1_500):
        state = engine.tap_bpm(tap)

    assert state.bpm == 120.0
    assert state.source == TempoSource.TAP
    assert state.tap_count == 4
    assert state.downbeat_epoch_ms == 1_500
    assert state.confidence == pytest.approx(0.5)

def test_first_tap_only_counts(clock):
    engine = TempoEngine(initial_bpm=100, clock=clock)
    state = engine.tap_bpm(2_000)
    assert state.tap_count == 1
    assert state.bpm == 100.0
    assert state.source == TempoSource.MANUAL
    assert state.confidence == 1.0
    assert state.downbeat_epoch_ms == 1_000

def test_two_taps_give_single_interval_confidence(clock):
    engine = TempoEngine(clock=clock)
    engine.tap_bpm(0)
    state = engine.tap_bpm(400)
    assert state.bpm == 150.0
    assert state.confidence == 0.35

def test_fast_taps_are_clamped(clock):
    engine = TempoEngine(clock=clock)
    engine.tap_bpm(0)
    assert engine.tap_bpm(100).bpm == MAX_BPM

def test_out_of_order_taps_do_not_estimate(clock):
    engine = TempoEngine(clock=clock)
    engine.tap_bpm(1_000)
    state = engine.tap_bpm(500)
    assert state.tap_count == 2
    assert state.bpm == 120.0
    assert state.source == TempoSource.MANUAL

def test_implausible_intervals_are_ignored(clock):
    engine = TempoEngine(clock=clock)
    engine.tap_bpm(0)
    assert engine.tap_bpm(50).source == TempoSource.MANUAL
    assert engine.tap_bpm(5_050).source == TempoSource.MANUAL
    assert engine.state().tap_count == 3

def test_tap_history_is_bounded(clock):
    engine = TempoEngine(clock=clock)
    for i in range(12):
        state = engine.tap_bpm(i * 500)
    assert state.tap_count == 8
    assert engine.get_stats()['tempo_stats']['last_interval_count'] == 7

def test_tap_without_timestamp_uses_clock(clock):
    engine = TempoEngine(clock=clock)
    engine.tap_bpm()
    clock.advance(600)
    state = engine.tap_bpm()
    assert state.bpm == 100.0
    assert state.downbeat_epoch_ms == 1_600

def test_set_bpm_clears_tap_history(clock):
    engine = TempoEngine(clock=clock)
    engine.tap_bpm(0)
    engine.tap_bpm(500)
    assert engine.set_bpm(100).tap_count == 0

    state = engine.tap_bpm(10_000)
    assert state.tap_count == 1
    assert state.bpm == 100.0

def test_resync_downbeat_only_moves_origin(clock):
    engine = TempoEngine(initial_bpm=90, clock=clock)
    state = engine.resync_downbeat(5_000)
    assert state.downbeat_epoch_ms == 5_000
    assert state.bpm == 90.0

    clock.advance(250)
    assert engine.resync_downbeat().downbeat_epoch_ms == 1_250
    assert engine.get_stats()['tempo_stats']['downbeat_resyncs'] == 2

def test_listeners_see_bpm_changes_only(clock):
    engine = TempoEngine(clock=clock)
    changes = []

    def listener(old_bpm, new_bpm):
        changes.append((old_bpm, new_bpm))

    engine.add_tempo_listener(listener)
    engine.add_tempo_listener(listener)
    engine.set_bpm(130)
    engine.set_bpm(130)
    engine.resync_downbeat(2_000)
    engine.nudge_bpm(-10)
    assert changes == [(120.0, 130.0), (130.0, 120.0)]

    engine.remove_tempo_listener(listener)
    engine.set_bpm(140)
    assert len(changes) == 2

def test_failing_listener_does_not_block_others(clock):
    engine = TempoEngine(clock=clock)
    seen = []

    def broken(old_bpm, new_bpm):
        raise RuntimeError("listener failure")

    engine.add_tempo_listener(broken)
    engine.add_tempo_listener(lambda old, new: seen.append(new))

    assert engine.set_bpm(128).bpm == 128.0
    assert seen == [128.0]

def test_clamp_bpm():
    assert clamp_bpm(19.99) == MIN_BPM
    assert clamp_bpm(300.01) == MAX_BPM
    assert clamp_bpm(174) == 174.0

def test_state_to_dict_uses_wire_names(clock):
    state = TempoEngine(clock=clock).state()
    assert state.to_dict() == {
        'bpm': 120.0,
        'confidence': 1.0,
        'downbeatEpochMs': 1_000,
        'source': 'manual',
        'tapCount': 0,
    }
