"""
Unit tests for the session lifecycle state machine

Covers start idempotence, safe stop, attach-time respawn of dead windows,
the two auto-approve toggle paths and command-not-found handling.
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import pytest

from agentdeck.activity_detector import Activity
from agentdeck.agent_profiles import AgentType
from agentdeck.errors import (
    AgentCommandNotFoundError, AutoApproveNotSupportedError, InvalidCommandError, InvalidWindowError,
    SessionNotRunningError, TmuxError,
)
from agentdeck.session_lifecycle import SessionLifecycle, ToggleOutcome
from agentdeck.session_models import FollowedWindow, SessionStatus
from tests.unit.mock_helpers import (
    CLAUDE_WAITING, FakeTmuxServer, always_found, create_session, never_found,
)


class TestSessionLifecycle:
    """Test lifecycle transitions against a fake tmux server"""

    def setup_method(self):
        self.server = FakeTmuxServer()
        self.lifecycle = SessionLifecycle(tmux_factory=self.server.factory, which=always_found)

    def _alive(self, session, windows=None):
        self.server.add_session(self.lifecycle.tmux_session_name(session), windows)

    def test_tmux_session_name_is_deterministic_and_safe(self):
        session = create_session()
        session.id = "a1b2:c3.d4"
        assert self.lifecycle.tmux_session_name(session) == "agentdeck_a1b2_c3_d4"
        assert self.lifecycle.tmux_session_name(session) == self.lifecycle.tmux_session_name(session)

    def test_custom_tmux_prefix(self):
        lifecycle = SessionLifecycle(tmux_prefix="deck-", tmux_factory=self.server.factory)
        assert lifecycle.tmux_session_name(create_session("x")) == "deck-id-x"

    def test_start_creates_session(self):
        session = create_session(auto_approve=True)

        assert self.lifecycle.start(session) is True

        assert session.status == SessionStatus.RUNNING
        assert self.server.created == [
            ("agentdeck_id-api", "/tmp/api", "claude --dangerously-skip-permissions")
        ]

    def test_start_twice_creates_one_session(self):
        session = create_session()

        self.lifecycle.start(session)
        assert self.lifecycle.start(session) is False

        assert len(self.server.created) == 1
        assert session.status == SessionStatus.RUNNING

    def test_start_uses_liveness_not_cached_status(self):
        session = create_session(running=True)

        assert self.lifecycle.start(session) is True
        assert len(self.server.created) == 1

    def test_start_with_missing_binary_does_not_mutate(self):
        lifecycle = SessionLifecycle(tmux_factory=self.server.factory, which=never_found)
        session = create_session()

        with pytest.raises(AgentCommandNotFoundError) as exc_info:
            lifecycle.start(session)

        assert exc_info.value.command == "claude"
        assert session.status == SessionStatus.STOPPED
        assert self.server.created == []

    def test_start_tmux_failure(self):
        self.server.create_fails = True
        session = create_session()

        with pytest.raises(TmuxError):
            self.lifecycle.start(session)
        assert session.status == SessionStatus.STOPPED

    def test_start_with_resume(self):
        session = create_session(resume_session_id="abc-123")
        self.lifecycle.start(session)
        assert self.server.created[0][2] == "claude --resume abc-123"

    def test_custom_agent_command(self):
        session = create_session(agent=AgentType.CUSTOM, custom_command="my-agent --fast")
        self.lifecycle.start(session)
        assert self.server.created[0][2] == "my-agent --fast"

    def test_stop_kills_and_clears_followed(self):
        session = create_session(running=True, followed_windows=[FollowedWindow(1)])
        self._alive(session)

        self.lifecycle.stop(session)

        assert self.server.killed == ["agentdeck_id-api"]
        assert session.status == SessionStatus.STOPPED
        assert session.followed_windows == []

    def test_stop_already_dead_is_safe(self):
        session = create_session(running=True)

        self.lifecycle.stop(session)
        self.lifecycle.stop(session)

        assert self.server.killed == []
        assert session.status == SessionStatus.STOPPED

    def test_update_status_reconciles(self):
        session = create_session(running=True)
        assert self.lifecycle.update_status(session) == SessionStatus.STOPPED
        assert session.status == SessionStatus.STOPPED

        self._alive(session)
        assert self.lifecycle.update_status(session) == SessionStatus.RUNNING
        assert session.is_running

    def test_attach_starts_stopped_session(self):
        session = create_session()

        self.lifecycle.prepare_attach(session)

        assert len(self.server.created) == 1
        assert session.is_running
        assert self.server.resize_configured == ["agentdeck_id-api"]
        assert ("agentdeck_id-api", 0, "api") in self.server.renamed

    def test_attach_respawns_dead_active_window(self):
        session = create_session(running=True)
        self._alive(session, {0: "", 1: ""})
        name = self.lifecycle.tmux_session_name(session)
        self.server.dead[name] = {0}

        self.lifecycle.prepare_attach(session)

        assert self.server.respawned == [(name, 0, "claude")]
        assert self.server.created == []

    def test_attach_leaves_live_windows_alone(self):
        session = create_session(running=True)
        self._alive(session)
        name = self.lifecycle.tmux_session_name(session)
        self.server.dead[name] = set()

        assert self.lifecycle.attach(session) == 0
        assert self.server.respawned == []

    def test_respawn_followed_window_uses_its_agent(self):
        session = create_session(running=True, followed_windows=[FollowedWindow(1, AgentType.GEMINI)])
        self._alive(session, {0: "", 1: ""})
        name = self.lifecycle.tmux_session_name(session)
        self.server.active[name] = 1
        self.server.dead[name] = {1}

        assert self.lifecycle.respawn_dead_active_window(session) == 1
        assert self.server.respawned == [(name, 1, "gemini")]

    def test_toggle_stopped_session_only_flips_flag(self):
        session = create_session()

        assert self.lifecycle.toggle_auto_approve(session) == ToggleOutcome.FLAG_ONLY
        assert session.auto_approve is True
        assert self.server.created == []

    def test_toggle_running_session_restarts(self):
        session = create_session(running=True)
        self._alive(session)

        assert self.lifecycle.toggle_auto_approve(session) == ToggleOutcome.RESTARTED

        assert session.auto_approve is True
        assert self.server.killed == ["agentdeck_id-api"]
        assert self.server.created[-1][2] == "claude --dangerously-skip-permissions"
        assert session.is_running

    def test_toggle_live_agent_sends_keystroke(self):
        session = create_session(agent=AgentType.GEMINI, running=True)
        self._alive(session)

        assert self.lifecycle.toggle_auto_approve(session) == ToggleOutcome.KEYSTROKE

        assert session.auto_approve is True
        assert self.server.keys == [("agentdeck_id-api", 0, "C-y", False)]
        assert self.server.killed == []

    def test_toggle_live_agent_when_stopped(self):
        session = create_session(agent=AgentType.GEMINI)

        assert self.lifecycle.toggle_auto_approve(session) == ToggleOutcome.FLAG_ONLY
        assert self.server.keys == []

    def test_toggle_unsupported_agent(self):
        session = create_session(agent=AgentType.OPENCODE)

        with pytest.raises(AutoApproveNotSupportedError):
            self.lifecycle.toggle_auto_approve(session)
        assert session.auto_approve is False

    def test_toggle_restart_with_missing_binary_does_not_mutate(self):
        lifecycle = SessionLifecycle(tmux_factory=self.server.factory, which=never_found)
        session = create_session(running=True)
        self._alive(session)

        with pytest.raises(AgentCommandNotFoundError):
            lifecycle.toggle_auto_approve(session)

        assert session.auto_approve is False
        assert self.server.killed == []

    def test_send_prompt(self):
        session = create_session(running=True)
        self._alive(session)

        self.lifecycle.send_prompt(session, "run the tests")

        assert self.server.keys == [
            ("agentdeck_id-api", 0, "run the tests", True),
            ("agentdeck_id-api", 0, "Enter", False),
        ]

    def test_send_prompt_not_running(self):
        session = create_session(running=True)
        with pytest.raises(SessionNotRunningError):
            self.lifecycle.send_prompt(session, "hello")
        assert session.status == SessionStatus.STOPPED

    def test_new_window_follows_it(self):
        session = create_session(running=True)
        self._alive(session)

        index = self.lifecycle.new_window(session, AgentType.CODEX)

        assert index == 1
        assert session.followed_windows == [FollowedWindow(1, AgentType.CODEX)]

    def test_new_window_requires_running_session(self):
        with pytest.raises(SessionNotRunningError):
            self.lifecycle.new_window(create_session(), AgentType.CODEX)

    def test_follow_window_zero_rejected(self):
        with pytest.raises(InvalidWindowError):
            self.lifecycle.tracker.follow_window(create_session(), 0)

    def test_get_preview(self):
        session = create_session(running=True)
        self._alive(session, {0: "a\nb\nc\n"})

        assert self.lifecycle.get_preview(session, lines=2) == "b\nc"
        assert self.lifecycle.get_preview(create_session("other")) == ""

    def test_detect_activity_reconciles_first(self):
        session = create_session(running=False)
        self._alive(session, {0: CLAUDE_WAITING})

        assert self.lifecycle.detect_activity(session) == Activity.WAITING
        assert session.is_running

    def test_unparseable_custom_command_does_not_mutate(self):
        session = create_session(agent=AgentType.CUSTOM, custom_command="my-agent 'oops")

        with pytest.raises(InvalidCommandError):
            self.lifecycle.start(session)

        assert session.status == SessionStatus.STOPPED
        assert self.server.created == []

    def test_new_window_with_unparseable_command(self):
        session = create_session(running=True, custom_command="my-agent 'oops")
        self._alive(session)

        with pytest.raises(InvalidCommandError):
            self.lifecycle.new_window(session, AgentType.CUSTOM)

        assert session.followed_windows == []
        assert set(self.server.sessions["agentdeck_id-api"]) == {0}

    def test_resume_running_session_relaunches(self):
        session = create_session(running=True)
        self._alive(session)

        assert self.lifecycle.resume(session, "abc-123") is True

        assert self.server.killed == ["agentdeck_id-api"]
        assert self.server.created[-1][2] == "claude --resume abc-123"
        assert session.resume_session_id == "abc-123"
        assert session.status == SessionStatus.RUNNING

    def test_resume_stopped_session_starts_it(self):
        session = create_session(resume_session_id="old")

        self.lifecycle.resume(session, None)

        assert self.server.killed == []
        assert self.server.created[-1][2] == "claude"
        assert session.resume_session_id is None

    def test_resume_with_missing_binary_keeps_previous_id(self):
        lifecycle = SessionLifecycle(tmux_factory=self.server.factory, which=never_found)
        session = create_session(running=True, resume_session_id="old")
        self._alive(session)

        with pytest.raises(AgentCommandNotFoundError):
            lifecycle.resume(session, "new")

        assert session.resume_session_id == "old"
        assert self.server.killed == []

    def test_sync_window_name(self):
        session = create_session()
        assert self.lifecycle.sync_window_name(session) is False

        self._alive(session)
        session.name = "backend"
        assert self.lifecycle.sync_window_name(session) is True
        assert self.server.renamed == [("agentdeck_id-api", 0, "backend")]

    def test_resize_pane(self):
        session = create_session(running=True)
        with pytest.raises(SessionNotRunningError):
            self.lifecycle.resize_pane(session, 100, 30)

        self._alive(session)
        self.lifecycle.resize_pane(session, 100, 30)
        assert self.server.resized == [("agentdeck_id-api", 100, 30)]
