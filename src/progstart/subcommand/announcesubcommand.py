import argparse

from progstart.subcommand.subcommandbase import SubcommandBase

class AnnounceSubcommand(SubcommandBase):
    """The announce subcommand prints a self-announcement banner (user, host,
    directory, time, and command line) for the given program and arguments.
    Handy at the top of a log file written by a shell script.
    """
    def main(self, startup, parsed_args) -> int:
        args = parsed_args.args
        if args and args[0] == "--":
            args = args[1:]
        startup.self_announce(program=parsed_args.program, args=args)
        return 0

    @classmethod
    def add_argparser_arguments(cls, parser:argparse.ArgumentParser) -> None:
        parser.add_argument(
            "--program",
            default="progstart",
            help="program name to announce"
        )
        parser.add_argument(
            "args",
            nargs=argparse.REMAINDER,
            help="program arguments to announce"
        )
