from collections import deque

from kernelsim import metrics
from kernelsim.errors import InvalidRequestError, InvariantViolation
from kernelsim.process import ProcessState

DEFAULT_QUANTUM = 2 # ticks per Round-Robin time slice


# Represents the OS scheduler: ready queue, running slot and the per-tick dispatch loop.
# Subclasses supply the selection rule and the preemption check.
class Scheduler:
    algorithm = None

    def __init__(self, clock, table, memory=None):
        self.clock = clock
        self.table = table
        self.memory = memory # frame manager notified when a process terminates
        self.ready = deque() # pids of queued READY processes
        self.pending = [] # pids created with an arrival offset, not yet admitted
        self.running = None # pid on the CPU, or None when idle
        self.timeline = [] # pid (or None) that held the CPU on each tick
        self.context_switches = 0

    # Purpose: Creates a process and admits it now or once its arrival tick is reached
    def create_process(self, required_time, arrival_offset=0):
        if required_time <= 0:
            raise InvalidRequestError(f"required_time must be positive, got {required_time}")
        if arrival_offset < 0:
            raise InvalidRequestError(f"arrival_offset must be non-negative, got {arrival_offset}")

        pcb = self.table.create(required_time, self.clock.now + arrival_offset)
        if arrival_offset == 0:
            self._enqueue(pcb)
        else:
            self.pending.append(pcb.pid)
        print(f"[LOAD] PID {pcb.pid} created | required_time={required_time} "
              f"arrival={pcb.arrival_time}")
        return pcb.pid

    # Purpose: Advances the clock by one tick and performs one unit of scheduling work
    def tick(self):
        self._admit_arrivals()

        if self.running is None:
            next_pid = self._select_next()
            if next_pid is not None:
                self._dispatch(next_pid)

        for pid in self.ready:
            self.table.require(pid).accumulated_wait += 1
        for pcb in self.table.in_state(ProcessState.BLOCKED):
            pcb.blocked_time += 1

        pcb = self.table.require(self.running) if self.running is not None else None
        if pcb is not None:
            pcb.remaining_time -= 1
            pcb.quantum_used += 1
        self.timeline.append(self.running)
        self.clock.advance()

        if pcb is None:
            return None
        if pcb.remaining_time == 0:
            self._complete(pcb)
        elif self._quantum_expired(pcb):
            print(f"[SCHED] PID {pcb.pid} quantum expired at t={self.clock.now}")
            self.running = None
            self._enqueue(pcb)
        return pcb.pid

    # Purpose: Runs the scheduler for n consecutive ticks
    def run(self, n):
        if n < 0:
            raise InvalidRequestError(f"Tick count must be non-negative, got {n}")
        for _ in range(n):
            self.tick()

    # Purpose: Forces a process to TERMINATED at the current tick (frames are the caller's job)
    def terminate(self, pid):
        pcb = self.table.require(pid)
        if pcb.state == ProcessState.TERMINATED:
            raise InvalidRequestError(f"Process {pid} is already terminated")

        if pid in self.ready:
            self.ready.remove(pid)
        if pid in self.pending:
            self.pending.remove(pid)
        if self.running == pid:
            self.running = None

        pcb.state = ProcessState.TERMINATED
        pcb.killed = True
        pcb.completion_time = self.clock.now
        print(f"[KILL] PID {pid} terminated manually at t={self.clock.now}")

    # Purpose: Moves a READY or RUNNING process to BLOCKED (used by I/O collaborators)
    def block(self, pid):
        pcb = self.table.require(pid)
        if pcb.state == ProcessState.RUNNING:
            self.running = None
        elif pcb.state == ProcessState.READY and pid in self.ready:
            self.ready.remove(pid)
        elif pcb.state == ProcessState.READY:
            raise InvalidRequestError(f"Process {pid} has not arrived yet (arrival t={pcb.arrival_time})")
        else:
            raise InvalidRequestError(f"Process {pid} is {pcb.state.value} and cannot block")
        pcb.state = ProcessState.BLOCKED
        print(f"[IO] PID {pid} blocked at t={self.clock.now}")

    # Purpose: Re-admits a BLOCKED process to the ready structure
    def enqueue_ready(self, pid):
        pcb = self.table.require(pid)
        if pcb.state != ProcessState.BLOCKED:
            raise InvalidRequestError(f"Process {pid} is {pcb.state.value}, not BLOCKED")
        self._enqueue(pcb)
        print(f"[IO] PID {pid} unblocked -> Ready")

    def get_process(self, pid):
        return self.table.get(pid)

    def list(self):
        return list(self.table)

    def stats(self):
        return metrics.summarize(self.table, self.clock.now, self.context_switches)

    def _enqueue(self, pcb):
        if pcb.pid in self.ready:
            raise InvariantViolation(f"PID {pcb.pid} is already in the ready queue")
        pcb.state = ProcessState.READY
        self.ready.append(pcb.pid)

    # Purpose: Moves every process whose arrival tick has come into the ready structure
    def _admit_arrivals(self):
        due = [self.table.require(pid) for pid in self.pending]
        due = [p for p in due if p.arrival_time <= self.clock.now and p.state == ProcessState.READY]
        for pcb in sorted(due, key=lambda p: (p.arrival_time, p.pid)):
            self.pending.remove(pcb.pid)
            self._enqueue(pcb)
            print(f"[ARRIVE] PID {pcb.pid} admitted at t={self.clock.now}")

    # Purpose: Puts a process on the CPU, stamping first-dispatch times once
    def _dispatch(self, pid):
        pcb = self.table.require(pid)
        pcb.state = ProcessState.RUNNING
        if pcb.start_time == -1:
            pcb.start_time = self.clock.now
            pcb.response_time = self.clock.now - pcb.arrival_time
        pcb.quantum_used = 0
        pcb.quantums_served += 1
        self.running = pid
        self.context_switches += 1
        print(f"[DISPATCH] t={self.clock.now} PID {pid} ({self.algorithm}) "
              f"remaining={pcb.remaining_time}")

    def _complete(self, pcb):
        pcb.state = ProcessState.TERMINATED
        pcb.completion_time = self.clock.now
        self.running = None
        print(f"[DONE] PID {pcb.pid} finished at t={self.clock.now}")
        if self.memory is not None:
            self.memory.release_process(pcb.pid)

    def _select_next(self):
        raise NotImplementedError

    def _quantum_expired(self, pcb):
        return False


# Round Robin: strict FIFO dispatch with a fixed time slice
class RoundRobinScheduler(Scheduler):
    algorithm = "RR"

    def __init__(self, clock, table, memory=None, quantum=DEFAULT_QUANTUM):
        if quantum < 1:
            raise InvalidRequestError(f"Quantum must be at least 1, got {quantum}")
        super().__init__(clock, table, memory)
        self.quantum = quantum

    def _select_next(self):
        while self.ready:
            pid = self.ready.popleft()
            # skip PCBs killed while queued
            if self.table.require(pid).state != ProcessState.TERMINATED:
                return pid
        return None

    def _quantum_expired(self, pcb):
        return pcb.quantum_used >= self.quantum


# Shortest Job First, non-preemptive: picked only when the CPU is idle
class ShortestJobFirstScheduler(Scheduler):
    algorithm = "SJF"

    # quantum is ignored: SJF never preempts
    def __init__(self, clock, table, memory=None, quantum=DEFAULT_QUANTUM):
        super().__init__(clock, table, memory)

    def _select_next(self):
        live = [self.table.require(pid) for pid in self.ready]
        live = [p for p in live if p.state != ProcessState.TERMINATED]
        self.ready = deque(p.pid for p in live)
        if not live:
            return None
        best = min(live, key=lambda p: (p.remaining_time, p.pid))
        self.ready.remove(best.pid)
        return best.pid


SCHEDULERS = {
    "rr": RoundRobinScheduler,
    "sjf": ShortestJobFirstScheduler,
}


# Purpose: Builds a scheduler by its short name ("rr" or "sjf")
def make_scheduler(name, clock, table, memory=None, quantum=DEFAULT_QUANTUM):
    key = name.lower()
    if key not in SCHEDULERS:
        raise InvalidRequestError(f"Unknown scheduler '{name}' (use rr or sjf)")
    return SCHEDULERS[key](clock, table, memory, quantum=quantum)
