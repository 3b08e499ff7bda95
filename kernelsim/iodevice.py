from collections import deque

from kernelsim.errors import InvalidRequestError


# Represents a single I/O device serving blocking requests one at a time, FIFO.
# Completion is driven by simulation ticks instead of a sleeping worker thread.
class IODevice:
    def __init__(self, scheduler, name="disk0"):
        self.scheduler = scheduler
        self.name = name
        self.queue = deque() # [pid, ticks left] per request, head is in service
        self.completed = 0

    # Purpose: Blocks a process and queues an I/O request lasting `duration` ticks
    def request(self, pid, duration):
        if duration < 1:
            raise InvalidRequestError(f"I/O duration must be at least 1 tick, got {duration}")
        if any(entry[0] == pid for entry in self.queue):
            raise InvalidRequestError(f"Process {pid} already has an I/O request pending")
        self.scheduler.block(pid)
        self.queue.append([pid, duration])
        print(f"[IO] {self.name}: PID {pid} queued for {duration} tick(s) (position {len(self.queue)})")

    # Purpose: Advances the request in service by one tick; wakes the process when done
    def tick(self):
        if not self.queue:
            return None
        head = self.queue[0]
        head[1] -= 1
        if head[1] > 0:
            return None
        self.queue.popleft()
        self.completed += 1
        self.scheduler.enqueue_ready(head[0])
        return head[0]

    # Purpose: Drops any pending request of a process (used when it is killed)
    def cancel(self, pid):
        before = len(self.queue)
        self.queue = deque(entry for entry in self.queue if entry[0] != pid)
        return before - len(self.queue)

    def status(self):
        print(f"[IO] {self.name}: {len(self.queue)} pending, {self.completed} completed")
        for i, (pid, left) in enumerate(self.queue):
            marker = "serving" if i == 0 else "waiting"
            print(f"   PID {pid}: {left} tick(s) left ({marker})")
        return [(pid, left) for pid, left in self.queue]
