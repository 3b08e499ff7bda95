import threading

from kernelsim import metrics
from kernelsim.buffer import BUFFER_SIZE, BoundedBuffer
from kernelsim.errors import InvalidRequestError
from kernelsim.iodevice import IODevice
from kernelsim.memory import DEFAULT_FRAMES, DEFAULT_WINDOW, FrameManager, ReplacementPolicy
from kernelsim.process import Clock, ProcessState, ProcessTable
from kernelsim.scheduler import DEFAULT_QUANTUM, make_scheduler


# Represents the whole simulated kernel: clock, process table, scheduler, frames,
# I/O device and shared buffer. Every public operation holds self.lock for its
# full duration so an interactive front end and a driver can never interleave.
class Simulation:
    def __init__(self, scheduler="rr", quantum=DEFAULT_QUANTUM, frames=DEFAULT_FRAMES,
                 memory_policy=ReplacementPolicy.FIFO, window=DEFAULT_WINDOW,
                 buffer_size=BUFFER_SIZE):
        self.lock = threading.Lock()
        self.scheduler_name = scheduler
        self.quantum = quantum
        self.frames = frames
        self.memory_policy = memory_policy
        self.window = window
        self.buffer_size = buffer_size
        self._build()

    # Purpose: Creates every component from the current configuration.
    # Nothing is swapped in until all of them were built successfully.
    def _build(self):
        clock = Clock()
        table = ProcessTable()
        memory = FrameManager(self.frames, self.memory_policy, self.window)
        scheduler = make_scheduler(self.scheduler_name, clock, table, memory, quantum=self.quantum)
        buffer = BoundedBuffer(self.buffer_size)

        self.clock, self.table, self.memory = clock, table, memory
        self.scheduler = scheduler
        self.io = IODevice(scheduler)
        self.buffer = buffer

    # Purpose: Throws the session away and starts a fresh one, optionally switching policy
    def reset(self, scheduler=None, quantum=None):
        with self.lock:
            old = (self.scheduler_name, self.quantum)
            if scheduler is not None:
                self.scheduler_name = scheduler
            if quantum is not None:
                self.quantum = quantum
            try:
                self._build()
            except InvalidRequestError:
                self.scheduler_name, self.quantum = old
                raise
            print(f"[INFO] Simulation reset | Scheduler: {self.scheduler.algorithm}"
                  + (f" (quantum={self.quantum})" if self.scheduler.algorithm == "RR" else ""))

    @property
    def now(self):
        return self.clock.now

    def new_process(self, required_time, arrival_offset=0):
        with self.lock:
            return self.scheduler.create_process(required_time, arrival_offset)

    def _step(self):
        pid = self.scheduler.tick()
        self.io.tick()
        return pid

    # Purpose: One scheduling tick, then one tick of I/O service
    def tick(self):
        with self.lock:
            return self._step()

    def run(self, n):
        with self.lock:
            if n < 0:
                raise InvalidRequestError(f"Tick count must be non-negative, got {n}")
            return [self._step() for _ in range(n)]

    # Purpose: Manual termination: scheduler state, pending I/O and frames together
    def kill(self, pid):
        with self.lock:
            self.scheduler.terminate(pid)
            self.io.cancel(pid)
            self.memory.release_process(pid)

    def get_process(self, pid):
        with self.lock:
            return self.scheduler.get_process(pid)

    def access_page(self, pid, page):
        with self.lock:
            pcb = self.table.require(pid)
            if pcb.state == ProcessState.TERMINATED:
                raise InvalidRequestError(f"Process {pid} is terminated; its pages are gone")
            return self.memory.access_page(pid, page)

    # Purpose: Switches page-replacement policy; capacity and window default to current values
    def set_memory_mode(self, policy, capacity=None, window=None):
        with self.lock:
            capacity = self.memory.capacity if capacity is None else capacity
            window = self.memory.window if window is None else window
            self.memory.reconfigure(capacity, policy, window)
            self.frames, self.memory_policy, self.window = capacity, self.memory.policy, window

    def memory_status(self):
        with self.lock:
            self.memory.show_status()
            return self.memory.snapshot()

    def io_request(self, pid, duration):
        with self.lock:
            self.io.request(pid, duration)

    def io_status(self):
        with self.lock:
            return self.io.status()

    def produce(self, item):
        with self.lock:
            return self.buffer.produce(item)

    def consume(self):
        with self.lock:
            return self.buffer.consume()

    def buffer_status(self):
        with self.lock:
            return self.buffer.stat()

    def ps(self):
        with self.lock:
            processes = self.scheduler.list()
            if not processes:
                print("No processes yet.")
            else:
                metrics.print_process_table(processes)
            return processes

    def stats(self):
        with self.lock:
            summary = self.scheduler.stats()
            metrics.print_report(summary, self.scheduler.algorithm)
            return summary

    def export_gantt(self, filename=None):
        with self.lock:
            return metrics.export_gantt_chart(self.scheduler.timeline, self.scheduler.algorithm, filename)

    def export_faults(self, filename=None):
        with self.lock:
            return metrics.export_fault_chart(self.memory.history, self.memory.policy.name, filename)
