import matplotlib.pyplot as plt
from matplotlib.patches import Patch

from kernelsim.process import ProcessState


# Purpose: Computes aggregate scheduling metrics over every process record
def summarize(processes, current_tick, context_switches=0):
    processes = list(processes)
    terminated = [p for p in processes if p.state == ProcessState.TERMINATED]
    killed = [p for p in terminated if p.killed]
    # a process killed before its first dispatch has no response time
    responded = [p for p in terminated if p.response_time != -1]

    avg_wait, avg_turn, avg_resp = 0.0, 0.0, 0.0
    count = len(terminated)
    if count > 0:
        avg_wait = sum(p.waiting_time for p in terminated) / count
        avg_turn = sum(p.turnaround_time for p in terminated) / count
    if responded:
        avg_resp = sum(p.response_time for p in responded) / len(responded)

    executed = sum(p.executed_time for p in processes)
    cpu_util = executed / current_tick if current_tick > 0 else 0.0

    return {
        'processes': len(processes),
        'terminated': count,
        'finished': sum(1 for p in terminated if p.finished),
        'killed': len(killed),
        'avg_wait': avg_wait,
        'avg_turnaround': avg_turn,
        'avg_response': avg_resp,
        'cpu_utilization': cpu_util,
        'busy_ticks': executed,
        'total_ticks': current_tick,
        'context_switches': context_switches,
        'states': {s.value: n for s, n in count_by_state(processes).items()},
    }


# Purpose: Prints one row per process (the `ps` view)
def print_process_table(processes):
    print(f"{'PID':<5}{'State':<12}{'Req':<6}{'Left':<6}{'Arr':<6}"
          f"{'Start':<7}{'End':<6}{'Wait':<6}{'Resp':<6}")
    for p in processes:
        state = p.state.value + ("*" if p.killed else "")
        print(f"{p.pid:<5}{state:<12}{p.required_time:<6}{p.remaining_time:<6}"
              f"{p.arrival_time:<6}{p.start_time:<7}{p.completion_time:<6}"
              f"{p.accumulated_wait:<6}{p.response_time:<6}")


# Purpose: Prints a summary table of the collected metrics
def print_report(summary, algo_name):
    print(f"\nMETRICS REPORT ({algo_name})")
    if summary['terminated'] == 0:
        print("No process has terminated yet.")
    else:
        print(f"Average Waiting Time: {summary['avg_wait']:.4f}")
        print(f"Average Turnaround Time: {summary['avg_turnaround']:.4f}")
        print(f"Average Response Time: {summary['avg_response']:.4f}")
    print(f"CPU Utilization: {summary['cpu_utilization'] * 100:.2f}% "
          f"({summary['busy_ticks']}/{summary['total_ticks']} ticks)")
    print(f"Terminated: {summary['terminated']} (Killed: {summary['killed']}) "
          f"| Total Context Switches: {summary['context_switches']}")
    print("States: " + ", ".join(f"{k}={v}" for k, v in summary['states'].items()) + "\n")


# Purpose: Collapses a per-tick timeline into (pid, start, end) slices
def gantt_slices(timeline):
    slices = []
    for t, pid in enumerate(timeline):
        if pid is None:
            continue
        if slices and slices[-1][0] == pid and slices[-1][2] == t:
            slices[-1] = (pid, slices[-1][1], t + 1)
        else:
            slices.append((pid, t, t + 1))
    return slices


# Purpose: Generates a PNG Gantt chart from the scheduler timeline
def export_gantt_chart(timeline, algo_name, filename=None):
    slices = gantt_slices(timeline)
    if not slices:
        print("[WARN] Nothing has run yet; no Gantt chart written.")
        return None

    pids = sorted(set(s[0] for s in slices))
    pid_to_y = {pid: i for i, pid in enumerate(pids)}
    cmap = plt.get_cmap('tab10')

    fig, ax = plt.subplots(figsize=(10, max(2, len(pids) * 0.8)))
    for pid, start, end in slices:
        y_center = pid_to_y[pid]
        ax.broken_barh(
            [(start, end - start)],
            (y_center - 0.35, 0.7),
            facecolors=cmap(pid % 10),
            edgecolor='black'
        )
        ax.text(start + (end - start) / 2.0, y_center, f"P{pid}",
                ha='center', va='center', fontsize=7)

    ax.set_yticks(range(len(pids)))
    ax.set_yticklabels([f"PID {p}" for p in pids])
    ax.set_xlabel("Time (Ticks)")
    ax.set_xlim(0, len(timeline))
    ax.set_title(f"Scheduling Gantt Chart: {algo_name}")
    ax.grid(True, axis='x', linestyle='--', alpha=0.5)
    ax.legend(handles=[Patch(color=cmap(p % 10), label=f"P{p}") for p in pids],
              title="Processes", loc='upper right')

    filename = filename or f"gantt_{algo_name}.png"
    fig.savefig(filename, dpi=150)
    plt.close(fig)
    print(f"[INFO] Gantt chart saved to '{filename}'")
    return filename


# Purpose: Plots the cumulative page-fault rate after every access
def export_fault_chart(history, policy_name, filename=None):
    if not history:
        print("[WARN] No memory accesses yet; no fault chart written.")
        return None

    ticks, rates = [], []
    faults = 0
    for n, (tick, was_fault) in enumerate(history, start=1):
        faults += 1 if was_fault else 0
        ticks.append(tick)
        rates.append(faults / n)

    fig, ax = plt.subplots(figsize=(8, 4))
    ax.plot(ticks, rates, marker='o', markersize=3)
    fault_ticks = [t for t, was_fault in history if was_fault]
    ax.vlines(fault_ticks, 0, 0.05, colors='tab:red', label="fault")
    ax.set_ylim(0, 1.05)
    ax.set_xlabel("Access (Memory Ticks)")
    ax.set_ylabel("Cumulative Fault Rate")
    ax.set_title(f"Page Fault Rate: {policy_name}")
    ax.grid(True, linestyle='--', alpha=0.5)
    ax.legend(loc='upper right')

    filename = filename or f"faults_{policy_name}.png"
    fig.savefig(filename, dpi=150)
    plt.close(fig)
    print(f"[INFO] Fault chart saved to '{filename}'")
    return filename


def count_by_state(processes):
    counts = {state: 0 for state in ProcessState}
    for p in processes:
        counts[p.state] += 1
    return counts
