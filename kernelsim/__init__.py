from kernelsim.errors import InvalidRequestError, InvariantViolation, SimulationError, UnknownProcessError
from kernelsim.memory import FrameManager, ReplacementPolicy
from kernelsim.process import Clock, Process, ProcessState, ProcessTable
from kernelsim.scheduler import RoundRobinScheduler, ShortestJobFirstScheduler, make_scheduler
from kernelsim.simulation import Simulation

__version__ = "0.1.0"
