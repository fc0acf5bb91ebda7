"""src/progstart/startup.py

Common startup and shutdown tasks for command-line programs.

Typical use::

    import sys
    from progstart.startup import initialize

    startup = initialize()

    def main():
        ...
        startup.backgroundify("run.log")
        ...
        return 0

    sys.exit(startup.run(main))
"""
import os
import sys

import progstart.logging
from progstart.background import backgroundify
from progstart.announce import self_announce
from progstart.cleanup import CleanupGuard, exit_status_from
from progstart.context import LifecycleContext
from progstart.cputimes import CpuTimer
from progstart.options import add_argparser_arguments, apply_options, OPTION_TABLE
from progstart.signals import FatalError, install_signal_handlers
from progstart.config import apply_config

class Startup:
    """Ties together the lifecycle context, the CPU timer, and the cleanup
    guard of one program. Create it with `initialize()`.
    """
    def __init__(self, context, timer, guard):
        self.context = context
        self.timer = timer
        self.guard = guard

    def exports(self) -> dict:
        """Return the names this program asked for through its feature
        toggles: program identity ('progname'), start directory ('startdir'),
        option variables ('optvars'), and the option table ('opttable').
        """
        ctx = self.context
        names = {}
        if ctx.enabled("progname"):
            names.update(program_dir=ctx.program_dir, program_name=ctx.program_name)
        if ctx.enabled("startdir"):
            names.update(start_dir=ctx.start_dir, start_dir_name=ctx.start_dir_name)
        if ctx.enabled("optvars"):
            names.update(verbose=ctx.verbose, execute=ctx.execute, clobber=ctx.clobber,
                         debug=ctx.debug, tmp_dir=ctx.tmp_dir, keep_tmp=ctx.keep_tmp)
        if ctx.enabled("opttable"):
            names.update(option_table=OPTION_TABLE)
        return names

    def _require(self, feature, what):
        if not self.context.enabled(feature):
            raise FatalError(f"{self.context.program_name}: {what} requires the '{feature}' feature")

    def option_table(self) -> tuple:
        self._require("opttable", "the option table")
        return OPTION_TABLE

    def add_argparser_arguments(self, parser):
        """Add the basic behaviour options to the argparse `parser`."""
        self._require("opttable", "the option table")
        return add_argparser_arguments(parser)

    def apply_options(self, parsed_args):
        """Write the basic behaviour options found in `parsed_args` to the context."""
        apply_options(self.context, parsed_args)

    def self_announce(self, stream=None, program=None, args=None):
        self._require("subs", "self_announce")
        if args is None and program is None:
            program, args = self.context.invocation, self.context.argv
        self_announce(stream, program=program, args=args, start_dir=self.context.start_dir)

    def backgroundify(self, log, program=None, args=None) -> bool:
        self._require("subs", "backgroundify")
        if args is None and program is None:
            program, args = self.context.invocation, self.context.argv
        return backgroundify(self.context, log, program=program, args=args, timer=self.timer)

    def make_tmpdir(self) -> str:
        """Create the temporary directory, and any missing parents, unless it
        already exists. Returns its path.
        """
        self._require("optvars", "make_tmpdir")
        os.makedirs(self.context.tmp_dir, exist_ok=True)
        return self.context.tmp_dir

    def exit(self, status=0):
        """Exit the program with `status`, making it the status the cleanup
        guard sees.
        """
        self.guard.record_exit_status(status)
        sys.exit(status)

    def run(self, main, *args, **kwargs) -> int:
        """Call `main(*args, **kwargs)` and return the exit status for
        sys.exit(), running the cleanup guard on the way out.

        An int returned by `main` is the exit status (None counts as 0).
        SystemExit is honored. A FatalError has its message printed to stderr
        and any other exception is reported as '<program>: error: <exc>'; both
        give status 1.
        """
        status = 1
        try:
            status = exit_status_from(main(*args, **kwargs))
        except SystemExit as exc:
            status = exit_status_from(exc.code)
            if isinstance(exc.code, str):
                print(exc.code, file=sys.stderr)
        except FatalError as exc:
            print(exc, file=sys.stderr)
        except Exception as exc:
            print(f"{self.context.program_name}: error: {exc}", file=sys.stderr)
        finally:
            self.guard.run(status)
        return status

def initialize(features=None, argv=None, config=None, environ=None, stream=None) -> Startup:
    """Perform the startup tasks and return the program's Startup.

    `features` is a list of feature toggles (e.g. ["nosig"]) applied on top of
    all features being enabled; it is overridden by a 'features' list in
    `config`, a mapping as returned by progstart.config.parse_config(). `argv`
    defaults to sys.argv. `stream` is where the CPU time report goes (default
    stdout).

    In order: compute the program identity, start directory, and (with
    'optvars') the temporary directory path; start the CPU timer
    ('cputimes'); install the signal handlers ('sig'); and install the
    cleanup guard. Logging is initialized to stderr if nothing has done so.

    The cleanup guard runs from atexit, where Python does not say what the
    exit status is. Leave the program through `Startup.run()` or
    `Startup.exit()` so the guard knows about a failure; a bare sys.exit(3)
    elsewhere looks like a success and still gets the CPU time report.

    Raises FatalError (UnknownFeatureError, TmpDirExistsError) on failure.
    """
    if argv is None:
        argv = sys.argv
    if config is None:
        config = {}
    if "features" in config:
        features = config["features"]

    context = LifecycleContext(argv=argv, features=features, environ=environ)
    apply_config(context, config)

    if not progstart.logging.logging_initialized():
        level = config.get("log_level", "DEBUG" if context.debug else "INFO")
        progstart.logging.init_logging(stderr=True, level=level,
                                       name=context.program_name or "progstart")

    timer = CpuTimer()
    if context.enabled("cputimes"):
        timer.start()

    if context.enabled("sig"):
        install_signal_handlers(context.program_name)

    guard = CleanupGuard(context, timer=timer, stream=stream)
    guard.install()

    return Startup(context, timer, guard)
