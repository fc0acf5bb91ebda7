import atexit
import os
import subprocess
import sys

from progstart.logging import logger, logging_initialized
from progstart.signals import FatalError

_cleanup_functions = []

def add_cleanup_function(func):
    """Register a function to be run at program termination, before the
    CPU time report and temporary directory removal. Note that the most
    recently registered functions get executed first.
    """
    _cleanup_functions.append(func)

def _run_cleanup_functions():
    """Execute all registered cleanup functions such that the most recently
    registered functions get executed first. A failing function is logged and
    does not stop the others.
    """
    for func in reversed(_cleanup_functions):
        try:
            func()
        except Exception as e:
            if logging_initialized():
                logger().error(f"cleanup function failed: {e}", exc_info=True)
            else:
                print(f"cleanup function failed: {e}", file=sys.stderr)

def _warn(message):
    if logging_initialized():
        logger().warning(message)
    else:
        print(message, file=sys.stderr)

def exit_status_from(code) -> int:
    """Convert a sys.exit() argument into the process exit status it produces."""
    if code is None:
        return 0
    if isinstance(code, bool):
        return int(code)
    if isinstance(code, int):
        return code
    return 1

class CleanupGuard:
    """The shutdown action of a program: report CPU times on a successful
    exit, then remove the temporary directory.

    `install()` binds the guard to interpreter exit with atexit, so it runs on
    every way out of the program: returning from main, sys.exit(), an uncaught
    exception, or a signal turned into a FatalSignal. The guard runs at most
    once per process however many times `run()` is reached.

    Python does not tell atexit handlers the exit status, so the status is
    recorded on the guard: by the run wrapper in progstart.startup, by
    `record_exit_status()`, or as 1 by the installed excepthook when an
    exception escapes the program. With nothing recorded the exit counts as a
    success.
    """
    def __init__(self, context, timer=None, stream=None):
        self.context = context
        self.timer = timer
        self.stream = stream
        self.exit_status = None
        self._installed = False
        self._done = False
        self._previous_excepthook = None

    def install(self):
        """Register the guard with atexit and hook sys.excepthook. Only the
        first call has any effect.
        """
        if self._installed:
            return
        atexit.register(self.run)
        self._previous_excepthook = sys.excepthook
        sys.excepthook = self._excepthook
        self._installed = True

    def _excepthook(self, exc_type, exc, tb):
        self.record_exit_status(1)
        if issubclass(exc_type, FatalError):
            print(exc, file=sys.stderr)
        else:
            self._previous_excepthook(exc_type, exc, tb)

    def record_exit_status(self, status):
        self.exit_status = exit_status_from(status)

    @property
    def done(self) -> bool:
        return self._done

    def run(self, status=None) -> bool:
        """Run the shutdown sequence unless it has already run in this process.
        Returns True if this call ran it.
        """
        if self._done:
            return False
        self._done = True
        if status is not None:
            self.record_exit_status(status)
        status = 0 if self.exit_status is None else self.exit_status

        _run_cleanup_functions()

        if self.context.enabled("cputimes") and status == 0:
            self.report_cputimes()

        if self.should_remove_tmpdir():
            self.remove_tmpdir()
        return True

    def report_cputimes(self):
        if self.timer is None or not self.timer.started:
            return
        self.timer.report(self.context.program_name, stream=self.stream)

    def should_remove_tmpdir(self) -> bool:
        tmp_dir = self.context.tmp_dir
        return (self.context.enabled("cleanup")
                and not self.context.keep_tmp
                and bool(tmp_dir)
                and os.path.isdir(tmp_dir))

    def remove_tmpdir(self) -> bool:
        """Remove the temporary directory with 'rm -rf'. A relative directory
        is removed from the start directory; if we can't get back there the
        removal is skipped. Failures are only warned about. Returns True if
        the directory was removed.
        """
        tmp_dir = str(self.context.tmp_dir)
        start_dir = self.context.start_dir
        if not os.path.isabs(tmp_dir):
            try:
                os.chdir(start_dir)
            except OSError as e:
                _warn(f"cleanup: couldn't chdir to \"{start_dir}\": {e.strerror} (not cleaning up)")
                return False
        try:
            failed = subprocess.run(["rm", "-rf", "--", tmp_dir]).returncode != 0
        except OSError:
            failed = True
        if failed:
            _warn(f"\"rm -rf {tmp_dir}\" failed")
            return False
        return True
