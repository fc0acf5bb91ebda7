import os
import argparse
import subprocess

from progstart.subcommand.subcommandbase import SubcommandBase
from progstart.announce import shellquote
from progstart.logging import logger

class RunSubcommand(SubcommandBase):
    """The run subcommand runs a single sub-program with progstart's startup
    and shutdown handling around it: the temporary directory is handed to the
    sub-program in $PROGSTART_TMPDIR and removed when we exit, signals end the
    run through the normal cleanup, and the whole run can be detached to the
    background with its output going to a log file.

    The exit status is the sub-program's exit status.
    """
    def main(self, startup, parsed_args) -> int:
        ctx = startup.context
        command = parsed_args.command
        if command and command[0] == "--":
            command = command[1:]
        if not command:
            logger().error("no command to run")
            return 2

        if parsed_args.background:
            startup.backgroundify(parsed_args.background)

        env = dict(os.environ)
        if ctx.tmp_dir:
            env["PROGSTART_TMPDIR"] = str(ctx.tmp_dir)
            if parsed_args.mkdir_tmp and ctx.execute:
                startup.make_tmpdir()

        if ctx.verbose:
            print(shellquote(command), flush=True)
        if not ctx.execute:
            return 0

        try:
            result = subprocess.run(command, env=env)
        except OSError as e:
            logger().error(f"could not run {command[0]}: {e.strerror}")
            return 1
        if result.returncode < 0:
            logger().error(f"{command[0]} killed by signal {-result.returncode}")
            return 1
        if result.returncode != 0 and ctx.verbose:
            logger().info(f"{command[0]} exited with status {result.returncode}")
        return result.returncode

    @classmethod
    def add_argparser_arguments(cls, parser:argparse.ArgumentParser) -> None:
        parser.add_argument(
            "--background",
            metavar="LOG",
            help="redirect output to LOG and detach to the background"
        )
        parser.add_argument(
            "--mkdir-tmp",
            action="store_true",
            help="create the temporary directory before running the command"
        )
        parser.add_argument(
            "command",
            nargs=argparse.REMAINDER,
            help="command and arguments to run"
        )
