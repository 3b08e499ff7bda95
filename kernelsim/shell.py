import argparse
import sys

from kernelsim.buffer import BUFFER_SIZE
from kernelsim.errors import SimulationError
from kernelsim.memory import DEFAULT_FRAMES, DEFAULT_WINDOW, ReplacementPolicy
from kernelsim.scheduler import DEFAULT_QUANTUM, SCHEDULERS
from kernelsim.simulation import Simulation

USAGE = {
    'new': "new <required_time> [arrival_offset]",
    'run': "run <ticks>",
    'tick': "tick",
    'ps': "ps",
    'stats': "stats",
    'kill': "kill <id>",
    'mem': "mem <id> <page>",
    'memmode': "memmode <fifo|lru|ws> [capacity] [window]",
    'memstat': "memstat",
    'io': "io <id> <ticks>",
    'iostat': "iostat",
    'produce': "produce <value>",
    'consume': "consume",
    'bufstat': "bufstat",
    'gantt': "gantt [file.png]",
    'faultplot': "faultplot [file.png]",
    'reset': "reset [rr|sjf] [quantum]",
    'help': "help",
    'exit': "exit",
}

HELP = {
    'new': "create a process needing <required_time> ticks",
    'run': "run the scheduler for N ticks",
    'tick': "run the scheduler for one tick",
    'ps': "list every process",
    'stats': "average wait/turnaround and CPU utilization",
    'kill': "terminate a process and free its frames",
    'mem': "access a page of a process",
    'memmode': "change page replacement policy (resets memory)",
    'memstat': "show the frame table",
    'io': "block a process on the I/O device for N ticks",
    'iostat': "show the I/O device queue",
    'produce': "produce an item into the shared buffer",
    'consume': "consume an item from the shared buffer",
    'bufstat': "show the shared buffer",
    'gantt': "save a Gantt chart of the CPU timeline",
    'faultplot': "save a chart of the page fault rate",
    'reset': "start a new session",
    'help': "show this list",
    'exit': "leave the simulator",
}


class UsageError(Exception):
    pass


# Purpose: Parses positional integer arguments; extra optional ones may be omitted
def parse_ints(args, required, optional=0):
    if len(args) < required or len(args) > required + optional:
        raise UsageError()
    try:
        return [int(a) for a in args]
    except ValueError:
        raise UsageError() from None


# Represents the interactive command loop on top of a Simulation
class Shell:
    def __init__(self, sim):
        self.sim = sim
        self.commands = {
            'new': self.do_new,
            'run': self.do_run,
            'tick': self.do_tick,
            'ps': self.do_ps,
            'stats': self.do_stats,
            'kill': self.do_kill,
            'mem': self.do_mem,
            'memmode': self.do_memmode,
            'memstat': self.do_memstat,
            'io': self.do_io,
            'iostat': self.do_iostat,
            'produce': self.do_produce,
            'consume': self.do_consume,
            'bufstat': self.do_bufstat,
            'gantt': self.do_gantt,
            'faultplot': self.do_faultplot,
            'reset': self.do_reset,
            'help': self.do_help,
        }

    # Purpose: Runs one command line; returns False when the session should end
    def execute(self, line):
        parts = line.split()
        if not parts:
            return True
        op, args = parts[0].lower(), parts[1:]
        if op == 'exit':
            print("Leaving the simulator...")
            return False

        handler = self.commands.get(op)
        if handler is None:
            print("Unrecognized command. Type 'help' for the list.")
            return True
        try:
            handler(args)
        except UsageError:
            print(f"Usage: {USAGE[op]}")
        except SimulationError as e:
            print(f"[!] {e}")
        return True

    def loop(self):
        print("=== KERNEL SIMULATOR ===")
        print(f"Scheduler: {self.sim.scheduler.algorithm} | Memory: {self.sim.memory.policy.name} "
              f"x{self.sim.memory.capacity} frames. Type 'help' for commands.")
        while True:
            try:
                line = input("\n> ")
            except EOFError:
                print()
                break
            if not self.execute(line):
                break

    def do_new(self, args):
        values = parse_ints(args, 1, 1)
        self.sim.new_process(*values)

    def do_run(self, args):
        ticks, = parse_ints(args, 1)
        self.sim.run(ticks)
        print(f"[INFO] Clock at t={self.sim.now}")

    def do_tick(self, args):
        parse_ints(args, 0)
        pid = self.sim.tick()
        print(f"[INFO] t={self.sim.now} " + (f"PID {pid} ran" if pid is not None else "CPU idle"))

    def do_ps(self, args):
        self.sim.ps()

    def do_stats(self, args):
        self.sim.stats()

    def do_kill(self, args):
        pid, = parse_ints(args, 1)
        self.sim.kill(pid)

    def do_mem(self, args):
        pid, page = parse_ints(args, 2)
        result = self.sim.access_page(pid, page)
        print(f"   {'HIT' if result.hit else 'MISS'} latency={result.latency} tick(s)")

    def do_memmode(self, args):
        if not args or len(args) > 3:
            raise UsageError()
        policy = ReplacementPolicy.parse(args[0])
        capacity, window = (parse_ints(args[1:], 0, 2) + [None, None])[:2]
        self.sim.set_memory_mode(policy, capacity, window)

    def do_memstat(self, args):
        self.sim.memory_status()

    def do_io(self, args):
        pid, ticks = parse_ints(args, 2)
        self.sim.io_request(pid, ticks)

    def do_iostat(self, args):
        self.sim.io_status()

    def do_produce(self, args):
        value, = parse_ints(args, 1)
        self.sim.produce(value)

    def do_consume(self, args):
        self.sim.consume()

    def do_bufstat(self, args):
        self.sim.buffer_status()

    def do_gantt(self, args):
        if len(args) > 1:
            raise UsageError()
        self.sim.export_gantt(args[0] if args else None)

    def do_faultplot(self, args):
        if len(args) > 1:
            raise UsageError()
        self.sim.export_faults(args[0] if args else None)

    def do_reset(self, args):
        if len(args) > 2:
            raise UsageError()
        scheduler = args[0].lower() if args else None
        quantum, = parse_ints(args[1:], 0, 1) or [None]
        self.sim.reset(scheduler, quantum)

    def do_help(self, args):
        print("Available commands:")
        for op, usage in USAGE.items():
            print(f"  {usage:<44}{HELP[op]}")


def build_parser():
    parser = argparse.ArgumentParser(prog="kernelsim",
                                     description="CPU scheduling and paging teaching simulator")
    parser.add_argument("--scheduler", choices=sorted(SCHEDULERS), default="rr")
    parser.add_argument("--quantum", type=int, default=DEFAULT_QUANTUM)
    parser.add_argument("--frames", type=int, default=DEFAULT_FRAMES)
    parser.add_argument("--memory", choices=[p.value for p in ReplacementPolicy],
                        default=ReplacementPolicy.FIFO.value)
    parser.add_argument("--window", type=int, default=DEFAULT_WINDOW)
    parser.add_argument("--buffer", type=int, default=BUFFER_SIZE)
    parser.add_argument("--script", type=argparse.FileType("r"), default=None,
                        help="file of commands to run instead of the interactive prompt")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    try:
        sim = Simulation(scheduler=args.scheduler, quantum=args.quantum, frames=args.frames,
                         memory_policy=args.memory, window=args.window, buffer_size=args.buffer)
    except SimulationError as e:
        print(f"[!] {e}", file=sys.stderr)
        if args.script is not None:
            args.script.close()
        return 2

    shell = Shell(sim)
    if args.script is None:
        shell.loop()
        return 0

    with args.script:
        for line in args.script:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            print(f"> {line}")
            if not shell.execute(line):
                break
    return 0
