### conftest.py is implicitly imported into all pytest test files. This file
### can be thought of as a collection of globally available pytest fixtures.

import pytest
import os
import sys
import signal
import shutil
import subprocess
import textwrap
from random import choice
from string import ascii_lowercase
from pathlib import Path

import progstart.cleanup
import progstart.logging
import progstart.signals
from progstart.context import LifecycleContext

@pytest.fixture
def random_string_generator():
    """Fixture for generating random ascii lowercase strings of arbitrary length."""
    def generator(length=5):
        return "".join(choice(ascii_lowercase) for i in range(length))
    return generator

@pytest.fixture
def path_generator(random_string_generator):
    """Fixture for generating paths that do not exist on the system. Allows
    callers to specify the prefix of the basename of the path, the length of the
    basenames random suffix, the base_dir of the path, and if the path should be
    removed during cleanup.
    """
    tmp_paths_to_cleanup = []
    def generator(name_prefix, base_dir="/tmp", suffix_length=5, mkdir=False, touch=False, cleanup=False):
        base_dir = Path(base_dir)
        tmp_path = None
        while tmp_path is None or tmp_path.exists():
            basename = name_prefix + random_string_generator(length=suffix_length)
            tmp_path = base_dir.joinpath(basename)
        if mkdir:
            tmp_path.mkdir(parents=True)
        elif touch:
            tmp_path.touch(exist_ok=False)
        if cleanup:
            tmp_paths_to_cleanup.append(tmp_path)
        return tmp_path

    yield generator

    for path in tmp_paths_to_cleanup:
        if path.is_file():
            path.unlink()
        elif path.is_dir():
            shutil.rmtree(path)

@pytest.fixture
def context_generator(tmp_path):
    """Fixture for generating LifecycleContexts for a program named 'demo' whose
    temporary directory lives under pytest's `tmp_path`. Keyword arguments are
    passed along to LifecycleContext().
    """
    def generator(argv=None, features=None, **kwargs):
        if argv is None:
            argv = ["/usr/local/bin/demo", "--flag", "value with spaces"]
        kwargs.setdefault("environ", {"TMPDIR": str(tmp_path)})
        return LifecycleContext(argv=argv, features=features, **kwargs)
    return generator

@pytest.fixture
def context(context_generator):
    """Fixture to provide a single LifecycleContext with every feature enabled.
    See the context_generator fixture for more information.
    """
    return context_generator()

@pytest.fixture
def logging_on():
    """Fixture to initialize stderr logging for a test and disable it afterwards."""
    progstart.logging.init_logging(stderr=True)
    yield
    progstart.logging.disable_logging()

@pytest.fixture(autouse=True)
def reset_cleanup_functions():
    """Reset the registered cleanup functions between tests."""
    progstart.cleanup._cleanup_functions = []
    yield
    progstart.cleanup._cleanup_functions = []

@pytest.fixture
def saved_signal_handlers():
    """Fixture to save the dispositions of the signals progstart catches, and
    restore them (and progstart's installed state) after the test.
    """
    signums = progstart.signals.available_signals()
    saved = {signum: signal.getsignal(signum) for signum in signums}
    progstart.signals._installed_program_name = None
    yield saved
    for signum, handler in saved.items():
        signal.signal(signum, handler)
    progstart.signals._installed_program_name = None

@pytest.fixture
def saved_std_fds():
    """Fixture to save file descriptors 1 and 2 and put them back after the
    test, for tests that redirect the process's stdout and stderr.
    """
    saved_stdout = os.dup(1)
    saved_stderr = os.dup(2)
    yield
    sys.stdout.flush()
    sys.stderr.flush()
    os.dup2(saved_stdout, 1)
    os.dup2(saved_stderr, 2)
    os.close(saved_stdout)
    os.close(saved_stderr)

@pytest.fixture
def script_runner(tmp_path):
    """Fixture for running a python script in a fresh interpreter. The script
    runs with `tmp_path` as both its working directory and its TMPDIR. Returns
    the subprocess.CompletedProcess.
    """
    def runner(source, args=(), env=None, timeout=60):
        script = tmp_path / "demo"
        script.write_text(textwrap.dedent(source))
        run_env = dict(os.environ)
        run_env["TMPDIR"] = str(tmp_path)
        if env:
            run_env.update(env)
        return subprocess.run([sys.executable, str(script), *args], cwd=tmp_path, env=run_env,
                              capture_output=True, encoding="utf-8", timeout=timeout)
    return runner

@pytest.fixture(autouse=True)
def reset_logging():
    """Leave logging uninitialized after every test."""
    yield
    progstart.logging.disable_logging()
