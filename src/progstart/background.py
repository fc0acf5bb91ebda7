"""src/progstart/background.py

Detach a program to the background with its output going to a log file.

This is not a daemonizer: there is no setsid(), no second fork, and the
controlling terminal is kept. The original process exits right after the
fork and the child carries on with the rest of the program.
"""
import os
import sys

from progstart.announce import self_announce
from progstart.signals import FatalError

class DetachError(FatalError):
    ...

def resolve_log_target(log, clobber=False) -> tuple[str, str]:
    """Returns a (mode, path) pair for the filename `log`, where mode is '>' to
    truncate or '>>' to append. A leading '>' or '>>' on `log` picks the mode
    explicitly, otherwise `clobber` decides.
    """
    if isinstance(log, os.PathLike):
        log = os.fspath(log)
    if not isinstance(log, str) or not log:
        raise DetachError("backgroundify: log must be a file object or a filename")
    if log.startswith(">>"):
        return ">>", log[2:].lstrip()
    if log.startswith(">"):
        return ">", log[1:].lstrip()
    return (">" if clobber else ">>"), log

def open_log(mode, path) -> int:
    """Open `path` for writing according to `mode` ('>' or '>>') and return the fd."""
    flags = os.O_WRONLY | os.O_CREAT
    flags |= os.O_TRUNC if mode == ">" else os.O_APPEND
    return os.open(path, flags, 0o666)

def is_current_stdout(stream) -> bool:
    if stream is sys.stdout or stream is sys.__stdout__:
        return True
    try:
        return stream.fileno() == 1
    except (OSError, ValueError):
        return False

def unbuffer(stream):
    """Flush `stream` and make every later write go straight through to its fd."""
    stream.flush()
    reconfigure = getattr(stream, "reconfigure", None)
    if reconfigure is not None:
        reconfigure(line_buffering=True, write_through=True)

def _save_std_fds(program_name) -> tuple[int, int]:
    try:
        saved_stdout = os.dup(1)
    except OSError as e:
        raise DetachError(f"{program_name}: couldn't save stdout: {e.strerror}") from e
    try:
        saved_stderr = os.dup(2)
    except OSError as e:
        os.close(saved_stdout)
        raise DetachError(f"{program_name}: couldn't save stderr: {e.strerror}") from e
    return saved_stdout, saved_stderr

def _restore_std_fds(program_name, saved_stdout, saved_stderr):
    """Point fds 1 and 2 back at the saved descriptors and close the copies."""
    sys.stdout.flush()
    sys.stderr.flush()
    try:
        os.dup2(saved_stdout, 1)
    except OSError as e:
        raise DetachError(f"{program_name}: couldn't restore stdout: {e.strerror}") from e
    try:
        os.dup2(saved_stderr, 2)
    except OSError as e:
        raise DetachError(f"{program_name}: couldn't restore stderr: {e.strerror}") from e
    os.close(saved_stdout)
    os.close(saved_stderr)

def _redirect_std_fds(program_name, log_fd=None, mode=None, path=None):
    """Redirect stdout to `log_fd`, or to `path` opened with `mode`, and then
    stderr into stdout.
    """
    failed = f"{program_name}: detachment to background failed"
    opened = log_fd is None
    if opened:
        try:
            log_fd = open_log(mode, path)
        except OSError as e:
            raise DetachError(f"{failed}: couldn't redirect stdout to \"{mode}{path}\" ({e.strerror})") from e
    try:
        os.dup2(log_fd, 1)
    except OSError as e:
        raise DetachError(f"{failed}: couldn't redirect stdout ({e.strerror})") from e
    finally:
        if opened:
            os.close(log_fd)
    try:
        os.dup2(1, 2)
    except OSError as e:
        raise DetachError(f"{failed}: couldn't redirect stderr into stdout ({e.strerror})") from e

def backgroundify(context, log, program=None, args=None, timer=None) -> bool:
    """Redirect stdout and stderr to `log` and detach to the background by
    forking. `log` is either an open, writable file object, or a filename. A
    bare filename is truncated if `context.clobber` is set and appended to
    otherwise; prefix it with '>' or '>>' to choose yourself.

    In the original process this does not return: once the fork succeeded it
    gives up its CPU time report and temporary directory cleanup (the child
    owns them now), puts its stdout and stderr back, and exits with status 0.
    In the child it restarts the CPU timer, prints a self-announcement with
    `program` and `args` into the log, and returns True.

    Any failure raises DetachError, and happens before the fork with the
    original stdout and stderr in place.
    """
    program_name = context.program_name
    log_fd = None
    mode = path = None
    if hasattr(log, "fileno"):
        if is_current_stdout(log):
            raise DetachError("backgroundify: log should not be stdout")
        log.flush()
        log_fd = log.fileno()
        target = getattr(log, "name", log_fd)
    else:
        mode, path = resolve_log_target(log, clobber=context.clobber)
        target = path

    unbuffer(sys.stderr)
    unbuffer(sys.stdout)

    if context.verbose:
        print(f"{program_name}: redirecting output to {target} and detaching to background")

    saved_stdout, saved_stderr = _save_std_fds(program_name)
    try:
        _redirect_std_fds(program_name, log_fd=log_fd, mode=mode, path=path)
    except DetachError:
        _restore_std_fds(program_name, saved_stdout, saved_stderr)
        raise

    try:
        pid = os.fork()
    except OSError as e:
        _restore_std_fds(program_name, saved_stdout, saved_stderr)
        raise DetachError(f"{program_name}: detachment to background failed: couldn't fork: {e.strerror}") from e

    if pid:
        _parent_process(context, saved_stdout, saved_stderr)
    return _child_process(context, saved_stdout, saved_stderr, program, args, timer)

def _parent_process(context, saved_stdout, saved_stderr):
    """Hand the shutdown work over to the child, restore the original output
    streams, and exit.
    """
    context.disable_features("cputimes", "cleanup")
    _restore_std_fds(context.program_name, saved_stdout, saved_stderr)
    sys.exit(0)

def _child_process(context, saved_stdout, saved_stderr, program, args, timer) -> bool:
    os.close(saved_stdout)
    os.close(saved_stderr)
    if timer is not None and context.enabled("cputimes"):
        timer.start()
    self_announce(sys.stdout, program=program, args=args, start_dir=context.start_dir)
    return True
