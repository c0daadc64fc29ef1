import pytest

from show_engine.interfaces import QuantizeGrid
from show_engine.scheduling import FifoActionQueue, QuantizedScheduler, quantize_next_boundary

@pytest.mark.parametrize("grid, slot_beats", [
    (QuantizeGrid.WHOLE, 4.0),
    (QuantizeGrid.HALF, 2.0),
    (QuantizeGrid.QUARTER, 1.0),
    (QuantizeGrid.EIGHTH, 0.5),
    (QuantizeGrid.SIXTEENTH, 0.25),
])
def test_grid_slot_lengths(grid, slot_beats):
    assert grid.slot_beats == slot_beats

def test_grid_parse_accepts_wire_and_member_names():
    assert QuantizeGrid.parse("1/8n") is QuantizeGrid.EIGHTH
    assert QuantizeGrid.parse("sixteenth") is QuantizeGrid.SIXTEENTH
    assert QuantizeGrid.parse(QuantizeGrid.HALF) is QuantizeGrid.HALF
    with pytest.raises(ValueError):
        QuantizeGrid.parse("1/3n")

def test_boundary_snaps_to_next_quarter():
    assert quantize_next_boundary(1_010, 120, 1_000, QuantizeGrid.QUARTER) == 1_500

def test_boundary_on_grid_stays_put():
    assert quantize_next_boundary(1_500, 120, 1_000, QuantizeGrid.QUARTER) == 1_500
    assert quantize_next_boundary(3_000, 120, 1_000, QuantizeGrid.WHOLE) == 3_000

@pytest.mark.parametrize("grid", list(QuantizeGrid))
@pytest.mark.parametrize("bpm", [20, 97.3, 120, 300])
def test_boundary_at_or_before_downbeat_is_downbeat(grid, bpm):
    assert quantize_next_boundary(1_000, bpm, 1_000, grid) == 1_000
    assert quantize_next_boundary(0, bpm, 1_000, grid) == 1_000

def test_boundary_rounds_to_nearest_millisecond():
    # 70 BPM quarter = 857.14ms
    assert quantize_next_boundary(1_001, 70, 1_000, QuantizeGrid.QUARTER) == 1_857
    # 240 BPM sixteenth = 62.5ms, half rounds up
    assert quantize_next_boundary(1_001, 240, 1_000, QuantizeGrid.SIXTEENTH) == 1_063

def test_boundary_clamps_bpm():
    assert quantize_next_boundary(1_001, 1_000, 1_000, QuantizeGrid.QUARTER) == 1_200
    assert quantize_next_boundary(1_001, 0, 1_000, QuantizeGrid.QUARTER) == 4_000

def test_scheduler_defaults():
    scheduler = QuantizedScheduler()
    assert scheduler.grid == QuantizeGrid.QUARTER
    assert scheduler.look_ahead_ms == 100
    assert scheduler.jitter_budget_ms == 5
    assert scheduler.list() == []
    assert scheduler.peek_next() is None

def test_scheduler_rejects_negative_budgets():
    with pytest.raises(ValueError):
        QuantizedScheduler(look_ahead_ms=-1)
    with pytest.raises(ValueError):
        QuantizedScheduler(jitter_budget_ms=-1)

def test_schedule_applies_look_ahead_and_default_grid():
    scheduler = QuantizedScheduler()
    action = scheduler.schedule(1_000, 120, 1_000, "flash", section="verse-a")
    assert action.id == 1
    assert action.action == "flash"
    assert action.section == "verse-a"
    assert action.quantize == QuantizeGrid.QUARTER
    assert action.execute_at_ms == 1_500

def test_schedule_ids_increase_from_one():
    scheduler = QuantizedScheduler()
    ids = [scheduler.schedule(1_000, 120, 1_000, f"a{i}").id for i in range(3)]
    assert ids == [1, 2, 3]

def test_schedule_then_pop_at_release_time_empties_queue():
    scheduler = QuantizedScheduler()
    action = scheduler.schedule(1_000, 120, 1_000, "flash")

    assert scheduler.pop_due(action.execute_at_ms) == [action]
    assert scheduler.list() == []

def test_pop_due_honors_jitter_budget():
    scheduler = QuantizedScheduler()
    action = scheduler.schedule(1_000, 120, 1_000, "flash")
    assert action.execute_at_ms == 1_500

    assert scheduler.pop_due(1_494) == []
    assert scheduler.pop_due(1_495) == [action]

def test_pop_due_only_drains_from_head():
    scheduler = QuantizedScheduler()
    late = scheduler.schedule(1_000, 120, 1_000, "swap", quantize=QuantizeGrid.WHOLE)
    early = scheduler.schedule(1_000, 120, 1_000, "flash", quantize=QuantizeGrid.QUARTER)
    assert late.execute_at_ms == 3_000
    assert early.execute_at_ms == 1_500

    assert scheduler.pop_due(1_500) == []
    assert scheduler.pop_due(3_000) == [late, early]

def test_list_does_not_mutate_queue():
    scheduler = QuantizedScheduler()
    first = scheduler.schedule(1_000, 120, 1_000, "a")
    second = scheduler.schedule(1_000, 120, 1_000, "b")

    snapshot = scheduler.list()
    snapshot.clear()
    assert scheduler.list() == [first, second]
    assert scheduler.peek_next() == first

def test_set_grid_changes_default_only():
    scheduler = QuantizedScheduler()
    assert scheduler.set_grid(QuantizeGrid.EIGHTH) == QuantizeGrid.EIGHTH

    action = scheduler.schedule(1_000, 120, 1_000, "a")
    assert action.quantize == QuantizeGrid.EIGHTH
    assert action.execute_at_ms == 1_250

    explicit = scheduler.schedule(1_000, 120, 1_000, "b", quantize=QuantizeGrid.HALF)
    assert explicit.execute_at_ms == 2_000

def test_injected_queue_is_used():
    queue = FifoActionQueue()
    scheduler = QuantizedScheduler(action_queue=queue)
    scheduler.schedule(1_000, 120, 1_000, "a")
    assert len(queue) == 1

def test_stats_track_scheduling_and_release():
    scheduler = QuantizedScheduler()
    scheduler.schedule(1_000, 120, 1_000, "a")
    scheduler.schedule(1_000, 120, 1_000, "b", quantize=QuantizeGrid.WHOLE)
    scheduler.pop_due(1_500)

    stats = scheduler.get_stats()
    assert stats['scheduler_stats']['actions_scheduled'] == 2
    assert stats['scheduler_stats']['actions_released'] == 1
    assert stats['pending_count'] == 1
    assert stats['next_release_ms'] == 3_000
    assert stats['next_action_id'] == 3

def test_scheduled_action_to_dict():
    scheduler = QuantizedScheduler()
    action = scheduler.schedule(1_000, 120, 1_000, "flash", section="chorus-a")
    assert action.to_dict() == {
        'id': 1,
        'action': 'flash',
        'section': 'chorus-a',
        'quantize': '1/4n',
        'executeAtMs': 1_500,
    }
