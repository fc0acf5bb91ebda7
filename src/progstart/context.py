"""src/progstart/context.py"""
import os
import re

from progstart.signals import FatalError

FEATURES = ("progname", "startdir", "optvars", "opttable", "cputimes", "cleanup", "sig", "subs")

DEFAULT_TMPDIR_BASE = "/usr/tmp"

class UnknownFeatureError(FatalError):
    ...

class TmpDirExistsError(FatalError):
    ...

def resolve_features(toggles=None) -> frozenset:
    """Return the set of enabled features after applying `toggles` to the
    default of every feature enabled. Each toggle is a feature name, or a
    feature name prefixed with 'no' to disable it (e.g. 'nosig'). Toggles are
    applied in order so a later toggle overrides an earlier one.

    Raises UnknownFeatureError on the first unrecognized name.
    """
    enabled = dict.fromkeys(FEATURES, True)
    for toggle in toggles or []:
        name = toggle
        negated = name.startswith("no") and name[2:] in enabled
        if negated:
            name = name[2:]
        if name not in enabled:
            raise UnknownFeatureError(f"progstart: unknown option \"{toggle}\"")
        enabled[name] = not negated
    return frozenset(name for name, on in enabled.items() if on)

def split_program_path(path:str) -> tuple[str, str]:
    """Split an invocation path into (program_dir, program_name). The program
    dir keeps its trailing slash and is empty if `path` has no slash.
    """
    re_result = re.match("^(.*/)?([^/]*)$", path, re.DOTALL)
    program_dir = re_result.group(1) or ""
    return program_dir, re_result.group(2)

def default_tmpdir(program_name, pid=None, environ=None) -> str:
    """Returns the unique temporary directory path for this process:
    $TMPDIR/<program_name>_<pid>, falling back to /usr/tmp if TMPDIR is unset.
    """
    if environ is None:
        environ = os.environ
    if pid is None:
        pid = os.getpid()
    base = environ.get("TMPDIR", DEFAULT_TMPDIR_BASE)
    return f"{base}/{program_name}_{pid}"

class LifecycleContext:
    """The process-wide facts and option flags shared by the startup and
    shutdown machinery.

    The program identity and start directory are computed once on construction
    and are read-only afterwards. The option flags and `tmp_dir` are plain
    attributes that an option parser or the program itself may reassign. The
    feature set can only shrink, and only through `disable_features()`.
    """
    def __init__(self, argv=None, features=None, environ=None, start_dir=None):
        if argv is None:
            argv = []
        self._invocation = argv[0] if argv else ""
        self._program_dir, self._program_name = split_program_path(self._invocation)
        self.argv = list(argv[1:])

        self._start_dir = os.getcwd() if start_dir is None else str(start_dir)
        self._start_dir_name = os.path.basename(self._start_dir.rstrip("/"))

        self._features = resolve_features(features) if not isinstance(features, frozenset) else features

        self.verbose = True
        self.execute = True
        self.clobber = False
        self.debug = False
        self.keep_tmp = False
        self.tmp_dir = ""
        if self.enabled("optvars"):
            self.tmp_dir = default_tmpdir(self._program_name, environ=environ)
            if os.path.exists(self.tmp_dir):
                raise TmpDirExistsError(f"{self._program_name}: temporary directory {self.tmp_dir} already exists")

    @property
    def invocation(self) -> str:
        """The program as it was invoked (argv[0]), e.g. '/usr/local/bin/demo'."""
        return self._invocation

    @property
    def program_name(self) -> str:
        return self._program_name

    @property
    def program_dir(self) -> str:
        return self._program_dir

    @property
    def start_dir(self) -> str:
        return self._start_dir

    @property
    def start_dir_name(self) -> str:
        return self._start_dir_name

    @property
    def features(self) -> frozenset:
        return self._features

    def enabled(self, feature) -> bool:
        """Return True if `feature` is enabled. Unknown feature names are an error."""
        if feature not in FEATURES:
            raise UnknownFeatureError(f"progstart: unknown option \"{feature}\"")
        return feature in self._features

    def disable_features(self, *features) -> None:
        """Turn off `features` for the rest of this process. Used by the
        original process after detaching to the background, which hands the
        shutdown work over to its child.
        """
        for feature in features:
            self.enabled(feature)
        self._features = self._features.difference(features)

    def __repr__(self):
        return (f"LifecycleContext(program_name={self._program_name!r}, start_dir={self._start_dir!r}, "
                f"tmp_dir={self.tmp_dir!r}, features={sorted(self._features)!r})")
