from collections import deque, namedtuple
from enum import Enum

from kernelsim.errors import InvalidRequestError, InvariantViolation

DEFAULT_FRAMES = 3 # physical frames available
DEFAULT_WINDOW = 4 # working-set window in ticks
HIT_LATENCY = 1 # ticks charged for a resident page
MISS_LATENCY = 10 # ticks charged for a page fault


class ReplacementPolicy(Enum):
    FIFO = "fifo"
    LRU = "lru"
    WORKING_SET = "ws"

    @classmethod
    def parse(cls, name):
        try:
            return cls(name.lower())
        except ValueError:
            raise InvalidRequestError(f"Unknown memory policy '{name}' (use fifo, lru or ws)") from None


# Result of a single page access; evicted is the (pid, page) pair pushed out, if any
PageAccess = namedtuple("PageAccess", ["hit", "latency", "frame", "evicted"])


# Represents one physical frame and whichever (pid, page) currently occupies it
class Frame:
    def __init__(self):
        self.pid = None
        self.page = None
        self.last_used = 0

    @property
    def occupied(self):
        return self.pid is not None

    def occupant(self):
        if not self.occupied:
            return None
        return (self.pid, self.page)

    def load(self, pid, page, now):
        self.pid = pid
        self.page = page
        self.last_used = now

    def clear(self):
        self.pid = None
        self.page = None
        self.last_used = 0

    def __repr__(self):
        if not self.occupied:
            return "Frame(free)"
        return f"Frame(P({self.pid},{self.page}), last_used={self.last_used})"


# Represents the frame table plus per-process page tables, with pluggable eviction
class FrameManager:
    def __init__(self, capacity=DEFAULT_FRAMES, policy=ReplacementPolicy.FIFO, window=DEFAULT_WINDOW):
        self.reconfigure(capacity, policy, window, announce=False)

    # Purpose: Discards all frame/page-table state and starts over with new parameters
    def reconfigure(self, capacity, policy, window=DEFAULT_WINDOW, announce=True):
        if isinstance(policy, str):
            policy = ReplacementPolicy.parse(policy)
        if capacity < 1:
            raise InvalidRequestError(f"Frame capacity must be at least 1, got {capacity}")
        if window < 1:
            raise InvalidRequestError(f"Working-set window must be at least 1, got {window}")

        self.capacity = capacity
        self.policy = policy
        self.window = window
        self.frames = [Frame() for _ in range(capacity)]
        self.page_tables = {} # pid -> {page: frame index}
        self.rotation = deque(range(capacity)) # FIFO occupancy order, head is oldest
        self.tick = 0
        self.accesses = 0
        self.faults = 0
        self.history = [] # (tick, was_fault) per access, for fault-rate charts

        if announce:
            print(f"[MEM] Policy set to {policy.name} | Frames: {capacity} | Window: {window}")

    @property
    def fault_rate(self):
        return self.faults / self.accesses if self.accesses > 0 else 0.0

    # Purpose: Returns the frame index holding (pid, page), or None if not resident
    def lookup(self, pid, page):
        idx = self.page_tables.get(pid, {}).get(page)
        if idx is None:
            return None
        if self.frames[idx].occupant() != (pid, page):
            raise InvariantViolation(f"Page table maps P({pid},{page}) to frame {idx} "
                                     f"holding {self.frames[idx].occupant()}")
        return idx

    # Purpose: Touches a page of a process; loads it on a miss, evicting by policy if full
    def access_page(self, pid, page):
        if page < 0:
            raise InvalidRequestError(f"Page number must be non-negative, got {page}")
        self.tick += 1
        self.accesses += 1

        idx = self.lookup(pid, page)
        if idx is not None:
            self.frames[idx].last_used = self.tick
            self.history.append((self.tick, False))
            print(f"[MEM] {self.policy.name} HIT P({pid},{page}) frame {idx} "
                  f"| Fault rate: {self.fault_rate:.3f}")
            return PageAccess(True, HIT_LATENCY, idx, None)

        self.faults += 1
        self.history.append((self.tick, True))
        evicted = None

        idx = self._free_frame()
        if idx is None:
            idx = self._select_victim()
            evicted = self._evict(idx)

        self.frames[idx].load(pid, page, self.tick)
        self.page_tables.setdefault(pid, {})[page] = idx
        self.rotation.remove(idx)
        self.rotation.append(idx)

        print(f"[MEM] {self.policy.name} MISS P({pid},{page}) -> frame {idx} "
              f"| Fault rate: {self.fault_rate:.3f}")
        if evicted is not None:
            print(f"   Replaced page P({evicted[0]},{evicted[1]})")
        return PageAccess(False, MISS_LATENCY, idx, evicted)

    def _free_frame(self):
        for i, frame in enumerate(self.frames):
            if not frame.occupied:
                return i
        return None

    # Purpose: Chooses which occupied frame to give up according to the active policy
    def _select_victim(self):
        if self.policy == ReplacementPolicy.FIFO:
            victim = self.rotation[0] if self.rotation else None
        elif self.policy == ReplacementPolicy.LRU:
            victim = self._least_recently_used()
        elif self.policy == ReplacementPolicy.WORKING_SET:
            victim = None
            for i, frame in enumerate(self.frames):
                if frame.occupied and self.tick - frame.last_used > self.window:
                    victim = i
                    break
            if victim is None:
                victim = self._least_recently_used()
        else:
            raise InvariantViolation(f"Unhandled replacement policy {self.policy}")

        if victim is None or not self.frames[victim].occupied:
            raise InvariantViolation("No eviction candidate in a full frame table")
        return victim

    def _least_recently_used(self):
        candidates = [i for i, f in enumerate(self.frames) if f.occupied]
        if not candidates:
            return None
        # min() keeps the first of equal keys, so ties go to the lowest index
        return min(candidates, key=lambda i: self.frames[i].last_used)

    # Purpose: Drops the victim's page-table entry and clears the frame in one step
    def _evict(self, idx):
        frame = self.frames[idx]
        old = frame.occupant()
        table = self.page_tables.get(frame.pid)
        if table is not None and table.get(frame.page) == idx:
            del table[frame.page]
            if not table:
                del self.page_tables[frame.pid]
        frame.clear()
        return old

    # Purpose: Frees every frame held by a process; safe to call more than once
    def release_process(self, pid):
        table = self.page_tables.pop(pid, {})
        freed = 0
        for page, idx in table.items():
            if self.frames[idx].occupant() != (pid, page):
                raise InvariantViolation(f"Frame {idx} does not hold P({pid},{page})")
            self.frames[idx].clear()
            freed += 1
        if freed:
            print(f"[MEM] Freed {freed} frame(s) of PID {pid}")
        return freed

    def resident_pages(self, pid):
        return sorted(self.page_tables.get(pid, {}))

    # Purpose: Plain snapshot of the frame table for reports and tests
    def snapshot(self):
        return [
            {"frame": i, "pid": f.pid, "page": f.page, "last_used": f.last_used}
            for i, f in enumerate(self.frames)
        ]

    # Purpose: Prints the current frame table and fault statistics
    def show_status(self):
        print(f"\n[MEMORY] Policy: {self.policy.name} | Frames: {self.capacity}"
              + (f" | Window: {self.window}" if self.policy == ReplacementPolicy.WORKING_SET else ""))
        print("---------------------------------")
        for i, f in enumerate(self.frames):
            if f.occupied:
                age = self.tick - f.last_used
                print(f"| {i:>2} | PID {f.pid} -> Page {f.page} (age {age})")
            else:
                print(f"| {i:>2} | (free)")
        print("---------------------------------")
        print(f"Total faults: {self.faults} | Accesses: {self.accesses} "
              f"| Fault rate: {self.fault_rate:.3f}")
