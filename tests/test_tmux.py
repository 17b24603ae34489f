"""Tests for the tmux driver."""

import subprocess

import pytest

from git_opener import tmux
from git_opener.tmux import (
    TmuxDriver,
    TmuxError,
    TmuxUnresponsiveError,
    session_name_for,
)


class FakeRun:
    """Stand-in for subprocess.run returning queued results."""

    def __init__(self, *results):
        self.results = list(results)
        self.commands = []
        self.kwargs = []

    def __call__(self, command, **kwargs):
        self.commands.append(command)
        self.kwargs.append(kwargs)
        result = self.results.pop(0) if self.results else (0, "", "")
        if isinstance(result, BaseException):
            raise result
        returncode, stdout, stderr = result
        return subprocess.CompletedProcess(command, returncode, stdout, stderr)


@pytest.fixture
def fake_run(monkeypatch):
    def install(*results):
        fake = FakeRun(*results)
        monkeypatch.setattr(tmux.subprocess, "run", fake)
        return fake

    return install


class TestSessionName:
    def test_plain_name_unchanged(self):
        assert session_name_for("demo") == "demo"

    def test_dots_and_colons_escaped(self):
        assert session_name_for("site.io:v2") == "site%2Eio%3Av2"

    def test_percent_is_escaped(self):
        assert session_name_for("100%") == "100%25"

    def test_distinct_projects_never_share_a_name(self):
        projects = ["site.io", "site_io", "site%2Eio", "site:io", "site-io"]
        names = {session_name_for(p) for p in projects}
        assert len(names) == len(projects)

    def test_escaped_names_have_no_characters_tmux_rewrites(self):
        name = session_name_for("a.b:c%d")
        assert "." not in name
        assert ":" not in name


class TestCommands:
    """Tests for the argv each operation runs."""

    def test_session_exists(self, fake_run):
        fake = fake_run((0, "", ""))
        assert TmuxDriver().session_exists("demo") is True
        assert fake.commands == [["tmux", "has-session", "-t", "=demo"]]

    def test_session_missing(self, fake_run):
        fake_run((1, "", "can't find session: demo"))
        assert TmuxDriver().session_exists("demo") is False

    def test_create_session_returns_window_index(self, fake_run):
        fake = fake_run((0, "1\n", ""))
        assert TmuxDriver().create_session("demo") == 1
        assert fake.commands[0] == [
            "tmux", "new-session", "-d", "-s", "demo", "-P", "-F", "#{window_index}",
        ]

    def test_create_session_attached(self, fake_run):
        fake = fake_run((0, "0\n", ""))
        TmuxDriver().create_session("demo", detached=False)
        assert "-d" not in fake.commands[0]

    def test_count_windows(self, fake_run):
        fake = fake_run((0, "1\n2\n", ""))
        assert TmuxDriver().count_windows("demo") == 2
        assert fake.commands[0] == [
            "tmux", "list-windows", "-t", "=demo", "-F", "#{window_index}",
        ]

    def test_create_window_returns_index(self, fake_run):
        fake = fake_run((0, "2\n", ""))
        assert TmuxDriver().create_window("demo", "terminal") == 2
        assert fake.commands[0] == [
            "tmux", "new-window", "-d", "-t", "=demo:", "-n", "terminal",
            "-P", "-F", "#{window_index}",
        ]

    def test_create_window_bad_output(self, fake_run):
        fake_run((0, "oops\n", ""))
        with pytest.raises(TmuxError, match="unexpected output"):
            TmuxDriver().create_window("demo", "terminal")

    def test_rename_window(self, fake_run):
        fake = fake_run()
        TmuxDriver().rename_window("demo", 2, "terminal")
        assert fake.commands[0] == ["tmux", "rename-window", "-t", "=demo:2", "terminal"]

    def test_send_input_presses_enter(self, fake_run):
        fake = fake_run()
        TmuxDriver().send_input("demo", 1, "cd /tmp")
        assert fake.commands[0] == ["tmux", "send-keys", "-t", "=demo:1", "cd /tmp", "C-m"]

    def test_select_window(self, fake_run):
        fake = fake_run()
        TmuxDriver().select_window("demo", 1)
        assert fake.commands[0] == ["tmux", "select-window", "-t", "=demo:1"]

    def test_switch_client(self, fake_run):
        fake = fake_run()
        TmuxDriver().switch_client("demo")
        assert fake.commands[0] == ["tmux", "switch-client", "-t", "=demo"]

    def test_attach_inherits_terminal(self, fake_run):
        fake = fake_run()
        TmuxDriver(timeout=5).attach_session("demo")
        assert fake.commands[0] == ["tmux", "attach-session", "-t", "=demo"]
        assert "timeout" not in fake.kwargs[0]
        assert "capture_output" not in fake.kwargs[0]

    def test_control_calls_use_timeout(self, fake_run):
        fake = fake_run()
        TmuxDriver(timeout=3).select_window("demo", 1)
        assert fake.kwargs[0]["timeout"] == 3

    def test_list_sessions(self, fake_run):
        fake_run((0, "alpha\nbeta\n", ""))
        assert TmuxDriver().list_sessions() == ["alpha", "beta"]

    def test_list_sessions_without_server(self, fake_run):
        fake_run((1, "", "no server running"))
        assert TmuxDriver().list_sessions() == []


class TestInsideSession:
    def test_inside(self, monkeypatch):
        monkeypatch.setenv("TMUX", "/tmp/tmux-1000/default,123,0")
        assert TmuxDriver().is_inside_session() is True

    def test_outside(self, monkeypatch):
        monkeypatch.delenv("TMUX", raising=False)
        assert TmuxDriver().is_inside_session() is False

    def test_empty_variable(self, monkeypatch):
        monkeypatch.setenv("TMUX", "")
        assert TmuxDriver().is_inside_session() is False


class TestErrors:
    """Tests for mapping process failures to driver errors."""

    def test_nonzero_exit_carries_stderr(self, fake_run):
        fake_run((1, "", "can't find window: 9\n"))
        with pytest.raises(TmuxError) as excinfo:
            TmuxDriver().select_window("demo", 9)
        assert excinfo.value.message == "can't find window: 9"
        assert excinfo.value.command[:2] == ["tmux", "select-window"]

    def test_nonzero_exit_without_stderr(self, fake_run):
        fake_run((2, "", ""))
        with pytest.raises(TmuxError, match="exit status 2"):
            TmuxDriver().select_window("demo", 1)

    def test_missing_binary(self, fake_run):
        fake_run(FileNotFoundError("No such file or directory: 'tmux'"))
        with pytest.raises(TmuxError) as excinfo:
            TmuxDriver().rename_window("demo", 1, "x")
        assert not isinstance(excinfo.value, TmuxUnresponsiveError)

    def test_timeout(self, fake_run):
        fake_run(subprocess.TimeoutExpired(["tmux"], 3))
        with pytest.raises(TmuxUnresponsiveError, match="no response after 3 seconds"):
            TmuxDriver(timeout=3).send_input("demo", 1, "clear")

    def test_timeout_is_not_a_missing_session(self, fake_run):
        fake_run(subprocess.TimeoutExpired(["tmux"], 3))
        with pytest.raises(TmuxUnresponsiveError):
            TmuxDriver(timeout=3).session_exists("demo")

    def test_attach_failure(self, fake_run):
        fake_run((1, "", ""))
        with pytest.raises(TmuxError, match="exit status 1"):
            TmuxDriver().attach_session("demo")
