import matplotlib

matplotlib.use("Agg")

import pytest

from kernelsim.memory import FrameManager, ReplacementPolicy
from kernelsim.process import Clock, ProcessTable
from kernelsim.scheduler import RoundRobinScheduler, ShortestJobFirstScheduler
from kernelsim.simulation import Simulation


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def table():
    return ProcessTable()


@pytest.fixture
def memory():
    return FrameManager(3, ReplacementPolicy.FIFO)


@pytest.fixture
def rr(clock, table, memory):
    return RoundRobinScheduler(clock, table, memory, quantum=2)


@pytest.fixture
def sjf(clock, table, memory):
    return ShortestJobFirstScheduler(clock, table, memory)


@pytest.fixture
def sim():
    return Simulation(scheduler="rr", quantum=2, frames=3)


# Purpose: Every page table entry points at a frame holding exactly that pair, and vice versa
def _assert_page_tables_consistent(fm):
    entries = 0
    for pid, table in fm.page_tables.items():
        assert table, f"empty page table left behind for PID {pid}"
        for page, idx in table.items():
            assert fm.frames[idx].occupant() == (pid, page)
            entries += 1
    assert entries == sum(1 for f in fm.frames if f.occupied)


@pytest.fixture
def consistent():
    return _assert_page_tables_consistent
