# Base class for every error the simulator reports back to the operator
class SimulationError(Exception):
    pass


# Raised when a command names a process id the table does not hold
class UnknownProcessError(SimulationError):
    def __init__(self, pid):
        super().__init__(f"No process with ID {pid}")
        self.pid = pid


# Raised for malformed or out-of-state requests (bad numbers, wrong state)
class InvalidRequestError(SimulationError):
    pass


# Raised when internal bookkeeping contradicts itself; never expected
class InvariantViolation(AssertionError):
    pass
