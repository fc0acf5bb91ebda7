import os
import sys
from typing import NamedTuple

class CpuSnapshot(NamedTuple):
    user: float
    system: float
    children_user: float
    children_system: float

    @classmethod
    def take(cls):
        """Snapshot the CPU times used so far by this process and its children."""
        times = os.times()
        return cls(times.user, times.system, times.children_user, times.children_system)

    def __sub__(self, other):
        return CpuSnapshot(*(a - b for a, b in zip(self, other)))

class CpuTimer:
    """Tracks the CPU time used by a program and its children from a start
    snapshot. `start()` may be called again to re-baseline, which is what a
    process detached to the background does.
    """
    def __init__(self):
        self.start_times = None

    def start(self):
        self.start_times = CpuSnapshot.take()

    @property
    def started(self) -> bool:
        return self.start_times is not None

    def elapsed(self, stop_times=None) -> tuple[float, float, float]:
        """Return (user, system, total) seconds since `start()`, with the
        children's time folded into user and system.
        """
        if stop_times is None:
            stop_times = CpuSnapshot.take()
        elapsed = stop_times - self.start_times
        user = elapsed.user + elapsed.children_user
        system = elapsed.system + elapsed.children_system
        return user, system, user + system

    def report(self, program_name, stream=None, pid=None):
        """Print the elapsed CPU times to `stream` (default stdout)."""
        if stream is None:
            stream = sys.stdout
        if pid is None:
            pid = os.getpid()
        user, system, total = self.elapsed()
        print(f"Elapsed time in {program_name} ({pid}) and children:", file=stream)
        print("%g sec (user) + %g sec (system) = %g sec (total)" % (user, system, total), file=stream)
