import signal

class FatalError(Exception):
    """An unrecoverable error that ends the program. The message is printed
    as-is to stderr by the top-level run wrapper, so it should already carry
    the program name.
    """
    ...

class FatalSignal(FatalError):
    """A signal converted into a fatal error by the signal bridge."""
    def __init__(self, message, signum=None):
        super().__init__(message)
        self.signum = signum

# The signals we catch and the cause reported when hit by one of them.
SIGNALS = {
    "SIGHUP": "hung-up",
    "SIGINT": "interrupted",
    "SIGQUIT": "quit",
    "SIGILL": "illegal instruction",
    "SIGABRT": "aborted",
    "SIGFPE": "floating-point exception",
    "SIGSEGV": "segmentation violation",
    "SIGSYS": "bad argument to system call",
    "SIGPIPE": "broken pipe",
    "SIGTERM": "terminated",
}

_installed_program_name = None

def signal_cause(signum) -> str:
    """Return the human readable cause for the signal number `signum`."""
    return SIGNALS[signal.Signals(signum).name]

def make_signal_handler(program_name):
    """Return a signal handler that raises FatalSignal("<program_name>: <cause>")."""
    def catch_signal(signum, _frame):
        raise FatalSignal(f"{program_name}: {signal_cause(signum)}", signum=signum)
    return catch_signal

def available_signals() -> list:
    """The signals from SIGNALS that exist on this platform."""
    return [getattr(signal, name) for name in SIGNALS if hasattr(signal, name)]

def install_signal_handlers(program_name) -> bool:
    """Install the fatal signal handler for every signal in SIGNALS. Only the
    first call installs anything. Returns True if handlers were installed by
    this call.
    """
    global _installed_program_name
    if _installed_program_name is not None:
        return False
    handler = make_signal_handler(program_name)
    for signum in available_signals():
        signal.signal(signum, handler)
    _installed_program_name = program_name
    return True

def signal_handlers_installed() -> bool:
    return _installed_program_name is not None
