from enum import Enum

from kernelsim.errors import InvalidRequestError, UnknownProcessError


# Represents the lifecycle states of a simulated process
class ProcessState(Enum):
    READY = "READY"
    RUNNING = "RUNNING"
    BLOCKED = "BLOCKED"
    TERMINATED = "TERMINATED"


# Represents the global simulation clock, advanced once per scheduling step
class Clock:
    def __init__(self):
        self.now = 0

    # Purpose: Moves the clock forward by one tick and returns the new time
    def advance(self):
        self.now += 1
        return self.now


# Represents one simulated process: its pid plus the timing fields and state the scheduler updates
class Process:
    def __init__(self, pid, required_time, arrival_time):
        self.pid = pid
        self.required_time = required_time # total service units
        self.remaining_time = required_time # counts down to 0
        self.arrival_time = arrival_time # tick at which it becomes schedulable
        self.start_time = -1 # tick of first dispatch
        self.completion_time = -1
        self.state = ProcessState.READY

        self.accumulated_wait = 0 # ticks spent queued READY
        self.blocked_time = 0 # ticks spent BLOCKED
        self.response_time = -1
        self.quantum_used = 0 # ticks served in the current dispatch
        self.quantums_served = 0 # number of dispatches
        self.killed = False

    # Purpose: Ticks of CPU actually received so far
    @property
    def executed_time(self):
        return self.required_time - self.remaining_time

    @property
    def turnaround_time(self):
        if self.completion_time == -1:
            return None
        return self.completion_time - self.arrival_time

    @property
    def waiting_time(self):
        turnaround = self.turnaround_time
        if turnaround is None:
            return None
        return turnaround - self.required_time

    # Purpose: True only for processes that ran to completion, not killed ones
    @property
    def finished(self):
        return self.state == ProcessState.TERMINATED and not self.killed

    def __repr__(self):
        return (f"Process(pid={self.pid}, state={self.state.value}, "
                f"remaining={self.remaining_time}/{self.required_time})")


# Represents the process table: the single owner of every process record
class ProcessTable:
    def __init__(self):
        self._procs = {}
        self._next_pid = 1

    # Purpose: Creates a record with the next sequential id and stores it
    def create(self, required_time, arrival_time):
        if required_time <= 0:
            raise InvalidRequestError(f"required_time must be positive, got {required_time}")
        pcb = Process(self._next_pid, required_time, arrival_time)
        self._procs[pcb.pid] = pcb
        self._next_pid += 1
        return pcb

    # Purpose: Returns a record or None (read-only lookup for collaborators)
    def get(self, pid):
        return self._procs.get(pid)

    # Purpose: Returns a record or raises UnknownProcessError
    def require(self, pid):
        pcb = self._procs.get(pid)
        if pcb is None:
            raise UnknownProcessError(pid)
        return pcb

    def in_state(self, state):
        return [p for p in self if p.state == state]

    def __contains__(self, pid):
        return pid in self._procs

    def __iter__(self):
        # ids are assigned in increasing order, so insertion order is id order
        return iter(list(self._procs.values()))

    def __len__(self):
        return len(self._procs)
