"""src/progstart/options.py"""
import argparse
import dataclasses

@dataclasses.dataclass(frozen=True)
class OptionSpec:
    """One entry of the option table. `names` are the option spellings without
    leading dashes. For a boolean the first name sets `attr` to True and
    `negations` set it to False. A string option takes one value.
    """
    names: tuple[str, ...]
    kind: str
    attr: str
    help: str
    negations: tuple[str, ...] = ()

# Bound to the LifecycleContext attribute named by `attr`.
OPTION_TABLE = (
    OptionSpec(("verbose",), "boolean", "verbose",
               "print status information and command lines of subprograms [default; opposite is -quiet]",
               negations=("quiet",)),
    OptionSpec(("execute",), "boolean", "execute",
               "actually execute planned commands [default]",
               negations=("noexecute",)),
    OptionSpec(("clobber",), "boolean", "clobber",
               "blithely overwrite files (and make subprograms do as well) [default: -noclobber]",
               negations=("noclobber",)),
    OptionSpec(("debug",), "boolean", "debug",
               "spew lots of debugging info (and make subprograms do so as well) [default: -nodebug]",
               negations=("nodebug",)),
    OptionSpec(("tmpdir",), "string", "tmp_dir",
               "set the temporary working directory"),
    OptionSpec(("keeptmp",), "boolean", "keep_tmp",
               "don't delete temporary files when finished [default: -nokeeptmp]",
               negations=("cleanup", "nokeeptmp")),
)

def _spellings(name) -> list[str]:
    return [f"-{name}", f"--{name}"]

def add_argparser_arguments(parser:argparse.ArgumentParser, table=OPTION_TABLE) -> argparse.ArgumentParser:
    """Add the options in `table` to `parser` in a 'Basic behaviour options'
    group. Mutates and returns `parser`.

    Every option defaults to argparse.SUPPRESS so that options the user did not
    give are absent from the parsed namespace and leave the context alone (see
    `apply_options()`).
    """
    group = parser.add_argument_group("Basic behaviour options")
    for spec in table:
        spellings = [s for name in spec.names for s in _spellings(name)]
        if spec.kind == "boolean":
            group.add_argument(*spellings, dest=spec.attr, action="store_true",
                               default=argparse.SUPPRESS, help=spec.help)
            negations = [s for name in spec.negations for s in _spellings(name)]
            if negations:
                group.add_argument(*negations, dest=spec.attr, action="store_false",
                                   default=argparse.SUPPRESS, help=argparse.SUPPRESS)
        elif spec.kind == "string":
            group.add_argument(*spellings, dest=spec.attr, metavar=spec.names[0].upper(),
                               default=argparse.SUPPRESS, help=spec.help)
        else:
            raise ValueError(f"unknown option kind: {spec.kind}")
    return parser

def value_option_strings(table=OPTION_TABLE) -> set[str]:
    """Return every spelling of the options in `table` that take a value."""
    return {s for spec in table if spec.kind == "string" for name in spec.names for s in _spellings(name)}

def apply_options(context, parsed_args, table=OPTION_TABLE) -> None:
    """Copy the option values present in `parsed_args` onto `context`."""
    for spec in table:
        if hasattr(parsed_args, spec.attr):
            setattr(context, spec.attr, getattr(parsed_args, spec.attr))
