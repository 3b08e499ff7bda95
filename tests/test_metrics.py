import pytest

from kernelsim import metrics
from kernelsim.process import ProcessTable


def test_summarize_empty_table():
    summary = metrics.summarize(ProcessTable(), 0)
    assert summary['finished'] == 0
    assert summary['avg_wait'] == 0.0
    assert summary['cpu_utilization'] == 0.0


def test_summary_after_round_robin(rr):
    rr.create_process(4)
    rr.create_process(4)
    rr.run(10)
    summary = rr.stats()
    assert summary['finished'] == 2
    assert summary['avg_wait'] == 3.0
    assert summary['avg_turnaround'] == 7.0
    assert summary['avg_response'] == 1.0
    assert summary['busy_ticks'] == 8
    assert summary['cpu_utilization'] == pytest.approx(0.8)
    assert summary['states']['TERMINATED'] == 2


def test_killed_processes_count_in_averages(rr, capsys):
    rr.create_process(2)
    rr.create_process(6)
    rr.run(3)
    rr.terminate(2)
    summary = rr.stats()
    assert summary['terminated'] == 2
    assert summary['finished'] == 1
    assert summary['killed'] == 1
    # P1: turnaround 2, wait 0; P2 killed at t=3: turnaround 3, wait 3 - 6
    assert summary['avg_wait'] == -1.5
    assert summary['avg_turnaround'] == 2.5
    assert summary['avg_response'] == 1.0
    # P1 ran 2 ticks, P2 ran 1 before being killed
    assert summary['busy_ticks'] == 3
    assert summary['cpu_utilization'] == pytest.approx(1.0)
    metrics.print_report(summary, "RR")
    assert "Terminated: 2 (Killed: 1)" in capsys.readouterr().out


def test_undispatched_kill_has_no_response_time(rr):
    rr.create_process(3)
    rr.create_process(3)
    rr.tick()
    rr.terminate(2)
    summary = rr.stats()
    assert summary['terminated'] == 1
    assert summary['avg_turnaround'] == 1.0
    assert summary['avg_wait'] == -2.0
    assert summary['avg_response'] == 0.0


def test_gantt_slices_merge_contiguous_ticks():
    assert metrics.gantt_slices([1, 1, None, 2, 2, 1]) == [(1, 0, 2), (2, 3, 5), (1, 5, 6)]
    assert metrics.gantt_slices([]) == []


def test_print_report_and_table(rr, capsys):
    rr.create_process(4)
    rr.create_process(4)
    rr.run(8)
    metrics.print_process_table(rr.list())
    metrics.print_report(rr.stats(), "RR")
    out = capsys.readouterr().out
    assert "Average Waiting Time: 3.0000" in out
    assert "CPU Utilization: 100.00%" in out
    assert "TERMINATED" in out


def test_report_without_terminated_processes(capsys):
    metrics.print_report(metrics.summarize(ProcessTable(), 0), "SJF")
    assert "No process has terminated yet." in capsys.readouterr().out


def test_export_gantt_chart(rr, tmp_path):
    rr.create_process(3)
    rr.create_process(2)
    rr.run(6)
    target = tmp_path / "gantt.png"
    assert metrics.export_gantt_chart(rr.timeline, "RR", str(target)) == str(target)
    assert target.stat().st_size > 0


def test_export_gantt_chart_nothing_ran(tmp_path):
    target = tmp_path / "gantt.png"
    assert metrics.export_gantt_chart([None, None], "RR", str(target)) is None
    assert not target.exists()


def test_export_fault_chart(memory, tmp_path):
    for page in [1, 2, 3, 1, 4, 2]:
        memory.access_page(1, page)
    target = tmp_path / "faults.png"
    assert metrics.export_fault_chart(memory.history, "FIFO", str(target)) == str(target)
    assert target.stat().st_size > 0
    assert metrics.export_fault_chart([], "FIFO", str(tmp_path / "none.png")) is None
