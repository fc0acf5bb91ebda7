#!/usr/bin/env python3

import sys
import argparse
import importlib.metadata
from pathlib import Path

import progstart.logging
import progstart.config
import progstart.options
import progstart.startup
from progstart.signals import FatalError
from progstart.subcommand.subcommandbase import SubcommandBase

# Top level options that take the next argv word as their value.
VALUE_OPTIONS = {"--config", "--log-level", "--log-file"} | progstart.options.value_option_strings()

def subcommand_index(argv, subcommand_names, value_options=VALUE_OPTIONS):
    """Return the index in `argv` of the subcommand name, or None if there is
    none. Words that are the value of a top level option are skipped, and
    nothing after a '--' counts.
    """
    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg == "--":
            return None
        if arg in subcommand_names:
            return i
        if arg in value_options:
            i += 1
        i += 1
    return None

def main(argv=None) -> int:
    """This is the main function of progstart."""
    if argv is None:
        argv = sys.argv[1:]

    # progstart.subcommand modules are loaded eagerly from their __init__.py
    subcommand_name_class_map = {cls.name(): cls for cls in SubcommandBase.__subclasses__()}

    parser = argparse.ArgumentParser(
        prog="progstart",
        description="progstart runs a program with common startup and shutdown handling",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        allow_abbrev=False
    )
    subparsers = parser.add_subparsers(title="subcommands", dest="subcommand", required=True)
    subparser_map = {}
    for name, cls in subcommand_name_class_map.items():
        subparser_map[name] = subparsers.add_parser(name, allow_abbrev=False)
        cls.add_argparser_arguments(subparser_map[name])
    parser.add_argument(
        "--version",
        action="version",
        version=f'%(prog)s {importlib.metadata.version("progstart")}'
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="path to configuration file"
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="set the logging level",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        metavar="FILE",
        help="also log to file FILE"
    )
    parser.add_argument(
        "--log-syslog",
        nargs="?",
        const=True,
        default=False,
        metavar="ADDRESS",
        help=("enable syslog logging and "
              "optionally specify syslog address "
              "(default: /dev/log)"
        )
    )
    progstart.options.add_argparser_arguments(parser)
    # words after the subcommand name go to the subcommand parser only
    split = subcommand_index(argv, subcommand_name_class_map)
    if split is None:
        parsed_args = parser.parse_args(argv)
    else:
        parsed_args = parser.parse_args(argv[:split + 1])
        subparser_map[argv[split]].parse_args(argv[split + 1:], namespace=parsed_args)

    config = {}
    if parsed_args.config is not None:
        try:
            config = progstart.config.parse_config(parsed_args.config)
        except OSError as exc:
            print(f"progstart: cannot read config file: {parsed_args.config}: {exc.strerror}", file=sys.stderr)
            return 1
        except progstart.config.ConfigErrors as exc:
            for key, err_msg in exc.errors:
                print(f"progstart: config error: {key}: {err_msg}", file=sys.stderr)
            return 1

    progstart.logging.init_logging(
        level=config.get("log_level", parsed_args.log_level),
        stderr=True,
        logfile=parsed_args.log_file,
        syslog=bool(parsed_args.log_syslog),
        syslog_address=parsed_args.log_syslog if isinstance(parsed_args.log_syslog, str) else "/dev/log"
    )

    try:
        startup = progstart.startup.initialize(config=config, argv=["progstart", *argv])
    except FatalError as exc:
        print(exc, file=sys.stderr)
        return 1
    startup.apply_options(parsed_args)

    subcommand = subcommand_name_class_map[parsed_args.subcommand]()
    return startup.run(subcommand.main, startup, parsed_args)

if __name__ == "__main__":
    sys.exit(main())
