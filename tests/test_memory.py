import pytest

from kernelsim.errors import InvalidRequestError
from kernelsim.memory import HIT_LATENCY, MISS_LATENCY, FrameManager, ReplacementPolicy


def access_all(fm, pid, pages):
    return [fm.access_page(pid, page) for page in pages]


def test_fifo_fourth_page_evicts_first_loaded(memory, consistent):
    results = access_all(memory, 1, [1, 2, 3, 4])
    assert [r.hit for r in results] == [False] * 4
    assert all(r.latency == MISS_LATENCY for r in results)
    assert results[3].evicted == (1, 1)
    assert results[3].frame == 0
    assert memory.faults == 4
    assert memory.resident_pages(1) == [2, 3, 4]
    consistent(memory)


def test_fifo_hit_does_not_refresh_order(memory):
    access_all(memory, 1, [1, 2, 3])
    hit = memory.access_page(1, 1)
    assert hit.hit and hit.latency == HIT_LATENCY
    assert memory.access_page(1, 4).evicted == (1, 1)


def test_fifo_rotation_follows_occupancy_order(memory, consistent):
    access_all(memory, 1, [1, 2, 3, 4])   # frame 0 now holds page 4 and moves to the tail
    assert memory.access_page(1, 5).evicted == (1, 2)
    assert memory.access_page(1, 6).evicted == (1, 3)
    assert memory.access_page(1, 7).evicted == (1, 4)
    consistent(memory)


def test_fifo_refilled_frame_goes_to_tail(memory):
    access_all(memory, 1, [0, 1])
    memory.access_page(2, 0)
    memory.release_process(1)
    # frames 0 and 1 refilled after PID 2's frame 2, so PID 2 is now oldest
    memory.access_page(3, 0)
    memory.access_page(3, 1)
    assert memory.access_page(3, 2).evicted == (2, 0)


def test_lru_evicts_least_recently_used():
    fm = FrameManager(3, ReplacementPolicy.LRU)
    results = access_all(fm, 1, [1, 2, 3, 1, 4])
    assert results[3].hit
    assert results[4].evicted == (1, 2)
    assert results[4].frame == 1
    assert fm.resident_pages(1) == [1, 3, 4]


def test_working_set_prefers_first_frame_outside_window(consistent):
    fm = FrameManager(3, ReplacementPolicy.WORKING_SET, window=2)
    access_all(fm, 1, [10, 11, 12])   # frames 0, 1, 2 at ticks 1, 2, 3
    fm.access_page(1, 10)             # frame 0 touched at tick 4
    fm.access_page(1, 12)             # tick 5
    fm.access_page(1, 12)             # tick 6
    fm.access_page(1, 12)             # tick 7
    # tick 8: frame 0 (age 4) and frame 1 (age 6) are both outside the window;
    # the scan takes frame 0 even though LRU would pick frame 1
    result = fm.access_page(1, 13)
    assert result.evicted == (1, 10)
    assert result.frame == 0
    consistent(fm)


def test_working_set_evicts_stale_frame_before_recent_ones():
    fm = FrameManager(3, ReplacementPolicy.WORKING_SET, window=2)
    access_all(fm, 1, [1, 2, 3])      # ticks 1, 2, 3
    fm.access_page(1, 1)              # tick 4
    fm.access_page(1, 3)              # tick 5
    # tick 6: page 2 untouched for 4 ticks, pages 1 and 3 inside the window
    assert fm.access_page(1, 4).evicted == (1, 2)


def test_working_set_falls_back_to_lru():
    fm = FrameManager(2, ReplacementPolicy.WORKING_SET, window=5)
    access_all(fm, 1, [1, 2, 1])
    result = fm.access_page(1, 3)
    assert result.evicted == (1, 2)


def test_lru_tie_goes_to_lowest_index():
    fm = FrameManager(2, ReplacementPolicy.LRU)
    access_all(fm, 1, [1, 2])
    fm.frames[1].last_used = fm.frames[0].last_used
    assert fm.access_page(1, 3).frame == 0


def test_pages_of_different_processes_are_distinct(memory, consistent):
    memory.access_page(1, 0)
    result = memory.access_page(2, 0)
    assert not result.hit
    assert result.frame == 1
    assert memory.access_page(1, 0).hit
    consistent(memory)


def test_fault_rate_is_cumulative(memory):
    assert memory.fault_rate == 0.0
    access_all(memory, 1, [1, 2, 1])
    assert memory.fault_rate == pytest.approx(2 / 3)
    assert memory.history == [(1, True), (2, True), (3, False)]


def test_release_process_is_idempotent(memory, consistent):
    memory.access_page(1, 0)
    memory.access_page(1, 1)
    memory.access_page(2, 0)
    assert memory.release_process(1) == 2
    assert memory.release_process(1) == 0
    assert 1 not in memory.page_tables
    assert [f.occupant() for f in memory.frames] == [None, None, (2, 0)]
    consistent(memory)

    assert memory.access_page(3, 5).frame == 0


def test_release_unknown_process_is_a_noop(memory):
    assert memory.release_process(99) == 0


def test_reconfigure_resets_everything(memory):
    access_all(memory, 1, [1, 2, 3, 4, 1])
    memory.reconfigure(4, ReplacementPolicy.LRU, 3)
    assert memory.capacity == 4
    assert len(memory.frames) == 4
    assert not any(f.occupied for f in memory.frames)
    assert memory.page_tables == {}
    assert memory.faults == 0
    assert memory.accesses == 0
    assert memory.tick == 0
    assert memory.fault_rate == 0.0
    assert memory.policy == ReplacementPolicy.LRU


def test_reconfigure_accepts_policy_names(memory):
    memory.reconfigure(2, "ws", 1)
    assert memory.policy == ReplacementPolicy.WORKING_SET
    with pytest.raises(InvalidRequestError):
        memory.reconfigure(2, "clock")


def test_reconfigure_rejects_bad_parameters_without_reset(memory):
    memory.access_page(1, 1)
    with pytest.raises(InvalidRequestError):
        memory.reconfigure(0, ReplacementPolicy.FIFO)
    with pytest.raises(InvalidRequestError):
        memory.reconfigure(3, ReplacementPolicy.WORKING_SET, 0)
    assert memory.resident_pages(1) == [1]


def test_negative_page_rejected(memory):
    with pytest.raises(InvalidRequestError):
        memory.access_page(1, -1)
    assert memory.accesses == 0
    assert memory.tick == 0


@pytest.mark.parametrize("policy", list(ReplacementPolicy))
def test_tables_stay_consistent_under_churn(policy, consistent):
    fm = FrameManager(4, policy, window=3)
    refs = [(1, 0), (2, 0), (1, 1), (3, 2), (1, 0), (2, 5), (4, 1), (1, 1),
            (3, 2), (2, 0), (5, 7), (1, 0), (4, 1), (2, 5), (3, 3)]
    for i, (pid, page) in enumerate(refs):
        fm.access_page(pid, page)
        if i == 8:
            fm.release_process(2)
        consistent(fm)
    assert fm.accesses == len(refs)
    assert fm.faults <= len(refs)


def test_snapshot_and_status(memory, capsys):
    memory.access_page(1, 7)
    snap = memory.snapshot()
    assert snap[0] == {"frame": 0, "pid": 1, "page": 7, "last_used": 1}
    assert snap[1]["pid"] is None
    memory.show_status()
    out = capsys.readouterr().out
    assert "PID 1 -> Page 7" in out
    assert "(free)" in out
