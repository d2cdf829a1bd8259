"""
Integration tests for the agentdeck command line

Runs main() end to end against a real state file and an in-memory tmux.
"""
import json
import pytest
import sys
from pathlib import Path
from unittest.mock import patch

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from agentdeck import main as main_module
from agentdeck.cli.command_registry import CommandRegistry
from agentdeck.config import ManagerConfig
from agentdeck.manager import SessionManager
from agentdeck.session_lifecycle import SessionLifecycle
from tests.unit.mock_helpers import CLAUDE_WAITING, FakeTmuxServer, always_found, never_found


class CLIHarness:
    """Runs the CLI with a fake tmux server behind the manager"""

    def __init__(self, tmp_path: Path, which=always_found):
        self.tmp_path = tmp_path
        self.state_file = tmp_path / "sessions.json"
        self.project = tmp_path / "project"
        self.project.mkdir()
        self.server = FakeTmuxServer()
        self.which = which

    def make_manager(self, config: ManagerConfig) -> SessionManager:
        lifecycle = SessionLifecycle(tmux_prefix=config.tmux_prefix,
                                     tmux_factory=self.server.factory, which=self.which)
        return SessionManager(config, lifecycle=lifecycle)

    def run(self, *argv: str) -> int:
        with patch.object(main_module, "SessionManager", side_effect=self.make_manager), \
                patch("agentdeck.config.DEFAULT_SEARCH_PATHS", []):
            return main_module.main(["--state-file", str(self.state_file), *argv])

    def state(self):
        return json.loads(self.state_file.read_text())


@pytest.fixture
def cli(tmp_path):
    return CLIHarness(tmp_path)


class TestCommandRegistry:
    """Test command registration and aliases"""

    def test_all_commands_registered(self):
        registry = CommandRegistry()
        assert set(registry.commands) == {
            "list", "new", "start", "stop", "restart", "attach", "delete", "status",
            "yolo", "follow", "unfollow", "window", "history", "group", "watch", "send",
            "resume", "rename", "resize",
        }

    def test_aliases(self):
        registry = CommandRegistry()
        assert registry.resolve("ls") is registry.get_command("list")
        assert registry.resolve("rm") is registry.get_command("delete")
        assert registry.resolve("bogus") is None


class TestCLI:
    """End to end command tests"""

    def test_no_command_prints_help(self, cli, capsys):
        assert cli.run() == 1
        assert "usage" in capsys.readouterr().out

    def test_new_and_list(self, cli, capsys):
        assert cli.run("new", "api", str(cli.project)) == 0
        assert cli.run("ls") == 0

        out = capsys.readouterr().out
        assert "Created session 'api'" in out
        assert "api" in out.splitlines()[-1]
        assert cli.state()["instances"][0]["path"] == str(cli.project)
        assert cli.server.created == []

    def test_new_with_start(self, cli):
        assert cli.run("new", "api", str(cli.project), "--agent", "codex", "--yolo", "--start") == 0

        assert cli.state()["instances"][0]["status"] == "running"
        assert cli.server.created[0][2] == "codex --dangerously-bypass-approvals-and-sandbox"

    def test_new_rejects_missing_path(self, cli, capsys):
        assert cli.run("new", "api", str(cli.tmp_path / "missing")) == 1
        assert "Error: Path does not exist" in capsys.readouterr().out

    def test_new_duplicate_name(self, cli, capsys):
        cli.run("new", "api", str(cli.project))
        assert cli.run("new", "api", str(cli.project)) == 1
        assert "already exists" in capsys.readouterr().err

    def test_new_start_with_missing_binary_saves_nothing(self, tmp_path, capsys):
        cli = CLIHarness(tmp_path, which=never_found)

        assert cli.run("new", "api", str(cli.project), "--start") == 1

        assert "command not found" in capsys.readouterr().err
        assert not cli.state_file.exists()

    def test_start_stop_cycle(self, cli, capsys):
        cli.run("new", "api", str(cli.project))

        assert cli.run("start", "api") == 0
        assert cli.run("start", "api") == 0
        assert len(cli.server.created) == 1
        assert cli.state()["instances"][0]["status"] == "running"

        assert cli.run("stop", "api") == 0
        assert cli.run("stop", "api") == 0
        assert cli.state()["instances"][0]["status"] == "stopped"
        assert "already running" in capsys.readouterr().out

    def test_unknown_session(self, cli, capsys):
        assert cli.run("start", "ghost") == 1
        assert "Error: Session 'ghost' not found" in capsys.readouterr().err

    def test_status_reports_waiting(self, cli, capsys):
        cli.run("new", "api", str(cli.project), "--start")
        session_id = cli.state()["instances"][0]["id"]
        cli.server.sessions[f"agentdeck_{session_id}"][0] = CLAUDE_WAITING

        assert cli.run("status", "api") == 0
        assert "api: running, waiting" in capsys.readouterr().out

    def test_yolo_toggle(self, cli, capsys):
        cli.run("new", "api", str(cli.project))

        assert cli.run("yolo", "api") == 0
        assert cli.state()["instances"][0]["auto_approve"] is True
        assert "applies on next start" in capsys.readouterr().out

    def test_yolo_unsupported(self, cli, capsys):
        cli.run("new", "oc", str(cli.project), "--agent", "opencode")

        assert cli.run("yolo", "oc") == 1
        assert "not supported" in capsys.readouterr().err

    def test_follow_and_unfollow(self, cli):
        cli.run("new", "api", str(cli.project))

        assert cli.run("follow", "api", "2", "--agent", "gemini") == 0
        assert cli.state()["instances"][0]["followed_windows"] == [{"index": 2, "agent": "gemini"}]

        assert cli.run("follow", "api", "0") == 1
        assert cli.run("unfollow", "api", "2") == 0
        assert cli.run("unfollow", "api", "2") == 1
        assert cli.state()["instances"][0]["followed_windows"] == []

    def test_send_requires_running_session(self, cli, capsys):
        cli.run("new", "api", str(cli.project))

        assert cli.run("send", "api", "hello") == 1
        assert "not running" in capsys.readouterr().err

        cli.run("start", "api")
        assert cli.run("send", "api", "run", "tests") == 0
        assert cli.server.keys[0][2] == "run tests"

    def test_delete_alias(self, cli):
        cli.run("new", "api", str(cli.project), "--start")

        assert cli.run("rm", "api", "--force") == 0

        assert cli.state()["instances"] == []
        assert len(cli.server.killed) == 1

    def test_group_workflow(self, cli, capsys):
        cli.run("new", "api", str(cli.project))
        assert cli.run("group", "add", "Backend") == 0
        group_id = cli.state()["groups"][0]["id"]

        assert cli.run("group", "assign", "api", group_id) == 0
        assert cli.state()["instances"][0]["group_id"] == group_id

        assert cli.run("group", "toggle", group_id) == 0
        assert cli.state()["groups"][0]["collapsed"] is True

        assert cli.run("group", "rename", group_id, "Services") == 0
        assert cli.run("group", "rm", group_id) == 0
        assert cli.state()["instances"][0]["group_id"] is None
        assert cli.run("group", "rm", group_id) == 1

    def test_watch_fixed_count(self, cli, capsys):
        cli.run("new", "api", str(cli.project), "--start")
        session_id = cli.state()["instances"][0]["id"]
        cli.server.sessions[f"agentdeck_{session_id}"][0] = CLAUDE_WAITING

        assert cli.run("watch", "--count", "1", "--interval", "0.01") == 0
        assert "api: waiting" in capsys.readouterr().out

    def test_malformed_state_file(self, cli, capsys):
        cli.state_file.write_text("{broken")

        assert cli.run("list") == 1
        assert "Error: Failed to parse" in capsys.readouterr().err

    def test_bad_config_file(self, cli, capsys):
        config = cli.tmp_path / "agentdeck.yaml"
        config.write_text("log_level: LOUD\n")

        assert cli.run("--config", str(config), "list") == 1
        assert "Invalid log_level" in capsys.readouterr().err

    def test_new_rejects_unparseable_custom_command(self, cli, capsys):
        assert cli.run("new", "x", str(cli.project), "--agent", "custom",
                       "--command", "my-agent 'oops") == 1

        assert "Error: Cannot parse command" in capsys.readouterr().out
        assert not cli.state_file.exists()

    def test_resume_with_explicit_id(self, cli, capsys):
        cli.run("new", "api", str(cli.project), "--start")

        assert cli.run("resume", "api", "abc-123") == 0

        assert cli.state()["instances"][0]["resume_session_id"] == "abc-123"
        assert cli.server.created[-1][2] == "claude --resume abc-123"
        assert len(cli.server.killed) == 1
        assert "Resumed 'api' from abc-123" in capsys.readouterr().out

    def test_resume_fresh_drops_reference(self, cli, capsys):
        cli.run("new", "api", str(cli.project), "--resume", "old-id")

        assert cli.run("resume", "api", "--fresh") == 0

        assert cli.state()["instances"][0]["resume_session_id"] is None
        assert cli.server.created[-1][2] == "claude"
        assert "fresh conversation" in capsys.readouterr().out

    def test_resume_without_history(self, cli, capsys):
        cli.run("new", "api", str(cli.project))

        with patch("agentdeck.manager.list_past_sessions", return_value=[]):
            assert cli.run("resume", "api") == 1

        assert "No previous claude sessions" in capsys.readouterr().err
        assert cli.server.created == []

    def test_resume_rejects_id_with_fresh(self, cli, capsys):
        cli.run("new", "api", str(cli.project))

        assert cli.run("resume", "api", "abc", "--fresh") == 1
        assert "cannot be combined" in capsys.readouterr().out

    def test_rename_running_session(self, cli, capsys):
        cli.run("new", "api", str(cli.project), "--start")
        session_id = cli.state()["instances"][0]["id"]

        assert cli.run("rename", "api", "backend") == 0

        assert cli.state()["instances"][0]["name"] == "backend"
        assert cli.server.renamed[-1] == (f"agentdeck_{session_id}", 0, "backend")

    def test_rename_to_taken_name(self, cli, capsys):
        cli.run("new", "api", str(cli.project))
        cli.run("new", "web", str(cli.project))

        assert cli.run("rename", "api", "web") == 1
        assert "already exists" in capsys.readouterr().err
        assert [i["name"] for i in cli.state()["instances"]] == ["api", "web"]

    def test_rename_rejects_blank_name(self, cli, capsys):
        cli.run("new", "api", str(cli.project))

        assert cli.run("rename", "api", "  ") == 1
        assert "Name cannot be empty" in capsys.readouterr().out

    def test_resize(self, cli, capsys):
        cli.run("new", "api", str(cli.project))

        assert cli.run("resize", "api", "120", "40") == 1
        assert "not running" in capsys.readouterr().err

        cli.run("start", "api")
        session_id = cli.state()["instances"][0]["id"]
        assert cli.run("resize", "api", "120", "40") == 0
        assert cli.server.resized == [(f"agentdeck_{session_id}", 120, 40)]

        assert cli.run("resize", "api", "0", "40") == 1
        assert "must be positive" in capsys.readouterr().out
