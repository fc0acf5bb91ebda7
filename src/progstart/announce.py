import os
import sys
import pwd
import shlex
import socket
from datetime import datetime

def username() -> str:
    """Return the login name of the user running this process."""
    try:
        return pwd.getpwuid(os.getuid()).pw_name
    except KeyError:
        return os.environ.get("USER", str(os.getuid()))

def userstamp(user=None, host=None, directory=None) -> str:
    """Returns a 'user@host:directory' string, defaulting to the current user,
    this host's name, and the current directory.
    """
    if user is None:
        user = username()
    if host is None:
        host = socket.gethostname()
    if directory is None:
        directory = os.getcwd()
    return f"{user}@{host}:{directory}"

def timestamp(when=None) -> str:
    """Returns `when` (default now) formatted as 'YYYY-MM-DD HH:MM:SS'."""
    if when is None:
        when = datetime.now()
    return when.strftime("%Y-%m-%d %H:%M:%S")

def shellquote(args) -> str:
    """Join `args` into one string with each argument quoted so that the result
    can be pasted back into a shell.
    """
    return " ".join(shlex.quote(str(arg)) for arg in args)

def self_announce(stream=None, program=None, args=None, start_dir=None):
    """Print who ran what, where, and when to `stream` (default stdout), so a
    run can be reconstructed from its log file. `program` defaults to
    sys.argv[0] and `args` to sys.argv[1:].

    Example output::
        [fred@fredhost:/home/fred/work] [2024-03-01 12:00:00] running:
          demo --flag 'value with spaces'

    """
    if stream is None:
        stream = sys.stdout
    if program is None:
        program = sys.argv[0]
    if args is None:
        args = sys.argv[1:]
    stream.write(f"[{userstamp(directory=start_dir)}] [{timestamp()}] running:\n")
    stream.write(f"  {program} {shellquote(args)}\n\n")
    stream.flush()
