import pytest
import os
import sys
import atexit
from unittest.mock import Mock

from progstart.main import main, subcommand_index

@pytest.fixture(autouse=True)
def isolated_main(monkeypatch, tmp_path, saved_signal_handlers):
    """Run main() without leaving atexit hooks, an excepthook, or signal
    handlers behind, with the temporary directory under `tmp_path`.
    """
    monkeypatch.setattr(atexit, "register", Mock())
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)
    monkeypatch.setenv("TMPDIR", str(tmp_path))

@pytest.fixture
def tmp_dir(tmp_path):
    return tmp_path / f"progstart_{os.getpid()}"

def test_announce(capsys):
    assert 0 == main(["announce", "--program", "demo", "--", "a b", "c"])
    out = capsys.readouterr().out
    assert "running:\n  demo 'a b' c\n\n" in out
    assert "Elapsed time in progstart" in out

def test_run_exit_status(capfd, tmp_dir):
    assert 3 == main(["-quiet", "run", "--mkdir-tmp", "--", "sh", "-c", "exit 3"])
    out = capfd.readouterr().out
    assert "Elapsed time" not in out
    assert not tmp_dir.exists()

def test_run_success_cleans_up(capfd, tmp_dir):
    assert 0 == main(["--quiet", "run", "--mkdir-tmp", "sh", "-c", 'echo "$PROGSTART_TMPDIR"'])
    out = capfd.readouterr().out
    assert out.startswith(f"{tmp_dir}\n")
    assert "Elapsed time in progstart" in out
    assert not tmp_dir.exists()

def test_run_keeptmp(capfd, tmp_dir):
    assert 0 == main(["-quiet", "-keeptmp", "run", "--mkdir-tmp", "true"])
    assert tmp_dir.is_dir()

def test_run_tmpdir_option(capfd, tmp_path):
    scratch = tmp_path / "scratch"
    assert 0 == main(["-quiet", "-tmpdir", str(scratch), "run", "--mkdir-tmp", "sh", "-c", 'echo "$PROGSTART_TMPDIR"'])
    assert capfd.readouterr().out.startswith(f"{scratch}\n")
    assert not scratch.exists()

def test_run_noexecute(capfd, tmp_path):
    marker = tmp_path / "ran"
    assert 0 == main(["-noexecute", "run", "touch", str(marker)])
    assert f"touch {marker}\n" in capfd.readouterr().out
    assert not marker.exists()

def test_config(capfd, tmp_path, tmp_dir):
    config = tmp_path / "progstart.yaml"
    config.write_text("verbose: false\nkeeptmp: true\nfeatures: [nocputimes]\n")
    assert 0 == main(["--config", str(config), "run", "--mkdir-tmp", "true"])
    assert capfd.readouterr().out == ""
    assert tmp_dir.is_dir()

def test_options_override_config(capfd, tmp_path, tmp_dir):
    config = tmp_path / "progstart.yaml"
    config.write_text("keeptmp: true\nverbose: false\n")
    assert 0 == main(["--config", str(config), "-cleanup", "run", "--mkdir-tmp", "true"])
    assert not tmp_dir.exists()

def test_config_errors(capsys, tmp_path):
    config = tmp_path / "progstart.yaml"
    config.write_text("verbose: loud\nfeatures: [bogus]\n")
    assert 1 == main(["--config", str(config), "announce"])
    err = capsys.readouterr().err
    assert "progstart: config error: verbose: " in err
    assert "progstart: config error: features: Not a known feature name" in err

def test_config_unreadable(capsys, tmp_path):
    config = tmp_path / "missing.yaml"
    assert 1 == main(["--config", str(config), "announce"])
    assert f"progstart: cannot read config file: {config}: " in capsys.readouterr().err

def test_missing_subcommand(capsys):
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 2

@pytest.mark.parametrize("argv,index", [
    (["run", "true"], 0),
    (["-quiet", "run", "sh", "-c", "exit 0"], 1),
    (["-tmpdir", "run", "announce"], 2),
    (["--config", "announce", "--log-file", "run", "run"], 4),
    (["--config=run", "announce"], 1),
    (["-quiet", "--", "run"], None),
    (["-quiet"], None),
])
def test_subcommand_index(argv, index):
    assert subcommand_index(argv, {"run", "announce"}) == index

@pytest.mark.parametrize("flag", ["-c", "-d", "-e", "-t", "-k", "--cl"])
def test_run_command_flags_not_taken_as_options(capfd, flag):
    assert 0 == main(["-quiet", "run", "sh", "-c", "exit 0", flag])

def test_run_command_with_table_option_names(capfd, tmp_dir):
    assert 5 == main(["-quiet", "run", "--", "sh", "-c", "exit 5", "-keeptmp", "-noexecute"])
    assert not tmp_dir.exists()
