import pytest

from schedule_sim.algorithms import build_timeline
from schedule_sim.errors import PlaybackError
from schedule_sim.models import Process, TimelineSegment
from schedule_sim.playback import (
    PlaybackCursor,
    PlaybackState,
    ready_set,
    running_process,
    visible_prefix,
)


def _procs():
    return [
        Process("P1", arrival=0, burst=6),
        Process("P2", arrival=2, burst=4),
        Process("P3", arrival=4, burst=5),
        Process("P4", arrival=6, burst=2),
    ]


def _loaded(start_at=0, speed=1.0):
    procs = _procs()
    cursor = PlaybackCursor(speed=speed)
    cursor.load(build_timeline("FCFS", procs), procs, start_at=start_at)
    return cursor


def test_running_process():
    timeline = build_timeline("FCFS", _procs())
    assert running_process(timeline, 0) == "P1"
    assert running_process(timeline, 5.9) == "P1"
    assert running_process(timeline, 6) == "P2"
    assert running_process(timeline, 17) is None


def test_running_process_is_none_while_idle():
    timeline = build_timeline("FCFS", [Process("A", 3, 1)])
    assert running_process(timeline, 1) is None
    assert running_process(timeline, 3) == "A"


def test_ready_set_excludes_running_and_finished():
    procs = _procs()
    timeline = build_timeline("FCFS", procs)
    assert ready_set(timeline, procs, 0) == []
    assert ready_set(timeline, procs, 3) == ["P2"]
    assert ready_set(timeline, procs, 6) == ["P3", "P4"]
    assert ready_set(timeline, procs, 16) == []
    assert ready_set(timeline, procs, 17) == []


def test_ready_set_keeps_preempted_round_robin_process():
    procs = [Process("P1", 0, 6), Process("P2", 2, 4)]
    timeline = build_timeline("RR", procs, quantum=2)
    # P1 already has a finished segment at t=2 but is not done.
    assert running_process(timeline, 2) == "P2"
    assert ready_set(timeline, procs, 2) == ["P1"]
    assert ready_set(timeline, procs, 8) == []


def test_visible_prefix_clips_in_progress_segment():
    timeline = build_timeline("FCFS", _procs())
    assert visible_prefix(timeline, 0) == []
    assert visible_prefix(timeline, 7) == [
        TimelineSegment("P1", 0, 6),
        TimelineSegment("P2", 6, 7),
    ]
    assert visible_prefix(timeline, 17) == timeline


def test_visible_prefix_includes_idle_segments():
    timeline = build_timeline("FCFS", [Process("A", 2, 2)])
    assert visible_prefix(timeline, 3) == [TimelineSegment(None, 0, 2), TimelineSegment("A", 2, 3)]


def test_queries_do_not_mutate_timeline():
    timeline = build_timeline("RR", _procs(), quantum=2)
    before = list(timeline)
    visible_prefix(timeline, 5.5)
    ready_set(timeline, _procs(), 5.5)
    assert timeline == before


def test_new_cursor_is_idle():
    cursor = PlaybackCursor()
    assert cursor.state is PlaybackState.IDLE
    assert cursor.sim_time == 0
    for action in (cursor.play, cursor.pause, cursor.step):
        with pytest.raises(PlaybackError):
            action()


def test_load_clamps_start_offset():
    assert _loaded(start_at=100).sim_time == 17
    assert _loaded(start_at=-3).sim_time == 0
    cursor = _loaded(start_at=5)
    assert cursor.state is PlaybackState.READY
    assert cursor.running_process() == "P1"


def test_play_pause_cycle():
    cursor = _loaded()
    cursor.play()
    assert cursor.state is PlaybackState.PLAYING
    cursor.play()
    assert cursor.playing
    cursor.pause()
    assert cursor.state is PlaybackState.PAUSED
    cursor.pause()
    assert cursor.state is PlaybackState.PAUSED
    cursor.play()
    assert cursor.playing


def test_advance_scales_real_time():
    cursor = _loaded(speed=2)
    cursor.play()
    assert cursor.advance(0.5) == pytest.approx(4.0)
    assert cursor.running_process() == "P1"


def test_advance_only_moves_while_playing():
    cursor = _loaded()
    assert cursor.advance(1) == 0
    cursor.play()
    cursor.advance(1)
    cursor.pause()
    assert cursor.advance(1) == 4


def test_advance_clamps_and_auto_pauses_at_end():
    cursor = _loaded()
    cursor.play()
    assert cursor.advance(100) == 17
    assert cursor.state is PlaybackState.PAUSED
    assert cursor.at_end
    assert cursor.running_process() is None


def test_step_clamps_and_keeps_state():
    cursor = _loaded()
    assert cursor.step() == 1
    assert cursor.state is PlaybackState.READY
    cursor.play()
    assert cursor.step(2.5) == 3.5
    assert cursor.playing
    assert cursor.step(100) == 17
    assert cursor.playing
    with pytest.raises(PlaybackError):
        cursor.step(-1)


def test_reset_stops_playback():
    cursor = _loaded(start_at=4)
    cursor.play()
    cursor.advance(1)
    cursor.reset()
    assert cursor.sim_time == 0
    assert cursor.state is PlaybackState.READY


def test_reset_on_idle_cursor_stays_idle():
    cursor = PlaybackCursor()
    cursor.reset()
    assert cursor.state is PlaybackState.IDLE


def test_speed_must_be_positive():
    cursor = _loaded()
    with pytest.raises(PlaybackError):
        cursor.set_speed(0)
    with pytest.raises(PlaybackError):
        PlaybackCursor(speed=-1)
    cursor.set_speed(0.25)
    assert cursor.speed == 0.25


def test_cursor_queries_default_to_sim_time():
    cursor = _loaded(start_at=7)
    assert cursor.running_process() == "P2"
    assert cursor.ready_set() == ["P3", "P4"]
    assert cursor.visible_prefix()[-1] == TimelineSegment("P2", 6, 7)
    assert cursor.running_process(0) == "P1"


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_step_rejects_non_finite_delta(value):
    cursor = _loaded()
    with pytest.raises(PlaybackError, match="finite"):
        cursor.step(value)
    assert cursor.sim_time == 0


@pytest.mark.parametrize("value", [float("nan"), float("inf")])
def test_advance_rejects_non_finite_real_dt(value):
    cursor = _loaded()
    cursor.play()
    with pytest.raises(PlaybackError, match="finite"):
        cursor.advance(value)
    assert cursor.sim_time == 0
    assert cursor.playing


@pytest.mark.parametrize("value", [float("nan"), float("inf")])
def test_speed_must_be_finite(value):
    cursor = _loaded()
    with pytest.raises(PlaybackError, match="finite"):
        cursor.set_speed(value)
    assert cursor.speed == 1.0
    cursor.play()
    assert cursor.advance(0) == 0


def test_load_rejects_non_finite_start_offset():
    procs = _procs()
    cursor = PlaybackCursor()
    with pytest.raises(PlaybackError, match="finite"):
        cursor.load(build_timeline("FCFS", procs), procs, start_at=float("nan"))
    assert cursor.state is PlaybackState.IDLE


def test_scale_factor_must_be_finite():
    with pytest.raises(PlaybackError):
        PlaybackCursor(scale_factor=float("inf"))
