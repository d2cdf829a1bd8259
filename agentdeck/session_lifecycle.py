"""
Session Lifecycle - starts, stops, respawns and attaches tmux-hosted agents

The status stored on a TrackedSession is only a cached hint. Every operation
that depends on it asks tmux first and reconciles the cache.
"""

import re
import shutil
import logging
from enum import Enum
from typing import Callable, List, Optional

from .activity_detector import Activity, ActivityDetector
from .agent_profiles import AgentProfile, AgentProfileRegistry, AgentType, DEFAULT_REGISTRY, split_command
from .errors import (
    AgentCommandNotFoundError,
    AgentDeckError,
    AutoApproveNotSupportedError,
    SessionNotRunningError,
    TmuxError,
)
from .session_models import SessionStatus, TrackedSession
from .terminal_snapshot import TerminalSnapshotSource
from .tmux_manager import TmuxManager, TmuxWindow
from .window_tracking import WindowTracker


DEFAULT_TMUX_PREFIX = "agentdeck_"

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9_-]")


class ToggleOutcome(Enum):
    """How an auto-approve toggle took effect"""
    FLAG_ONLY = "flag_only"  # session not running, applies on next start
    RESTARTED = "restarted"
    KEYSTROKE = "keystroke"


class SessionLifecycle:
    """Drives the Stopped/Running lifecycle of tracked sessions"""

    def __init__(self, registry: Optional[AgentProfileRegistry] = None,
                 tmux_prefix: str = DEFAULT_TMUX_PREFIX,
                 capture_lines: Optional[int] = None,
                 tmux_factory: Callable[[str], TmuxManager] = TmuxManager,
                 which: Callable[[str], Optional[str]] = shutil.which):
        self.registry = registry or DEFAULT_REGISTRY
        self.tmux_prefix = tmux_prefix
        self.tmux_factory = tmux_factory
        self.which = which
        self.logger = logging.getLogger(__name__)

        snapshot_source = TerminalSnapshotSource(capture_lines) if capture_lines else TerminalSnapshotSource()
        self.detector = ActivityDetector(self.registry, snapshot_source)
        self.tracker = WindowTracker(self.detector, self.tmux_for)

    def tmux_session_name(self, session: TrackedSession) -> str:
        """Deterministic tmux session name derived from the session id"""
        return f"{self.tmux_prefix}{_UNSAFE_NAME_CHARS.sub('_', session.id)}"

    def tmux_for(self, session: TrackedSession) -> TmuxManager:
        return self.tmux_factory(self.tmux_session_name(session))

    def profile_for(self, session: TrackedSession, window_index: int = 0) -> AgentProfile:
        return self.registry.resolve(session.agent_for_window(window_index))

    def is_alive(self, session: TrackedSession) -> bool:
        """Whether the backing tmux session exists right now"""
        return self.tmux_for(session).session_exists()

    def update_status(self, session: TrackedSession) -> SessionStatus:
        """Reconcile the cached status with tmux"""
        observed = SessionStatus.RUNNING if self.is_alive(session) else SessionStatus.STOPPED
        if observed != session.status:
            self.logger.info(f"Session '{session.name}' is {observed.value} (was {session.status.value})")
            session.status = observed
        return observed

    def build_command(self, session: TrackedSession, window_index: int = 0) -> str:
        profile = self.profile_for(session, window_index)
        resume = session.resume_session_id if window_index == 0 else None
        return profile.build_command(
            auto_approve=session.auto_approve,
            resume_session_id=resume,
            custom_command=session.custom_command,
        )

    def check_agent_command(self, session: TrackedSession, window_index: int = 0) -> str:
        """Make sure the agent binary resolves on PATH

        Returns:
            Resolved path of the binary

        Raises:
            AgentCommandNotFoundError: If it does not
            InvalidCommandError: If the command line cannot be parsed
        """
        agent = session.agent_for_window(window_index)
        return self._resolve_binary(self.build_command(session, window_index), agent)

    def _resolve_binary(self, command: str, agent: AgentType) -> str:
        parts = split_command(command)
        binary = parts[0] if parts else ""
        resolved = self.which(binary) if binary else None
        if not resolved:
            raise AgentCommandNotFoundError(binary, agent.value)
        return resolved

    def start(self, session: TrackedSession) -> bool:
        """Start the agent in a fresh tmux session

        Returns:
            True if a tmux session was created, False if one was already alive

        Raises:
            AgentCommandNotFoundError: The agent binary is missing (no mutation)
            InvalidCommandError: The launch command cannot be parsed (no mutation)
            TmuxError: tmux refused to create the session
        """
        tmux = self.tmux_for(session)
        if tmux.session_exists():
            self.logger.debug(f"Session '{session.name}' already running as '{tmux.session_name}'")
            session.status = SessionStatus.RUNNING
            return False

        self.check_agent_command(session)
        command = self.build_command(session)

        if not tmux.create_session(session.path, command, window_name=session.name):
            raise TmuxError(f"Failed to create tmux session '{tmux.session_name}'")

        session.status = SessionStatus.RUNNING
        self.logger.info(f"Started '{session.name}' ({session.agent.value}) as '{tmux.session_name}'")
        return True

    def stop(self, session: TrackedSession) -> None:
        """Kill the tmux session; safe when it is already gone"""
        tmux = self.tmux_for(session)
        if tmux.session_exists():
            tmux.kill_session()
            self.logger.info(f"Stopped '{session.name}'")
        session.status = SessionStatus.STOPPED
        # extra windows die with the tmux session
        session.followed_windows = []

    def restart(self, session: TrackedSession) -> bool:
        self.check_agent_command(session)
        self.stop(session)
        return self.start(session)

    def resume(self, session: TrackedSession, resume_session_id: Optional[str]) -> bool:
        """Relaunch the agent into a past conversation

        A live session is restarted, a stopped one started. None launches a
        fresh conversation. The previous reference is kept if the command
        check fails.
        """
        previous = session.resume_session_id
        session.resume_session_id = resume_session_id
        try:
            self.check_agent_command(session)
        except AgentDeckError:
            session.resume_session_id = previous
            raise

        if self.is_alive(session):
            self.stop(session)
        self.logger.info(f"Resuming '{session.name}' from {resume_session_id or 'a fresh conversation'}")
        return self.start(session)

    def sync_window_name(self, session: TrackedSession) -> bool:
        """Rename window 0 after the display name, if the session is alive"""
        tmux = self.tmux_for(session)
        if not tmux.session_exists():
            return False
        return tmux.rename_window(session.name, 0)

    def list_windows(self, session: TrackedSession) -> List[TmuxWindow]:
        return self.tmux_for(session).list_windows()

    def respawn_window(self, session: TrackedSession, window_index: int) -> bool:
        """Relaunch a window's agent in place"""
        tmux = self.tmux_for(session)
        return tmux.respawn_window(window_index, self.build_command(session, window_index))

    def respawn_dead_active_window(self, session: TrackedSession) -> Optional[int]:
        """Respawn the active window if its process has exited

        Returns:
            Index of the respawned window, or None
        """
        for window in self.list_windows(session):
            if window.active and window.dead:
                self.logger.info(f"Active window {window.index} of '{session.name}' is dead, respawning")
                if self.respawn_window(session, window.index):
                    return window.index
                return None
        return None

    def prepare_attach(self, session: TrackedSession) -> TmuxManager:
        """Make the session attachable: start it, or revive a dead active window"""
        if self.update_status(session) != SessionStatus.RUNNING:
            self.start(session)
        else:
            self.respawn_dead_active_window(session)

        tmux = self.tmux_for(session)
        tmux.configure_resize()
        tmux.rename_window(session.name, 0)
        return tmux

    def attach(self, session: TrackedSession) -> int:
        """Attach the terminal to the session; blocks until the user detaches"""
        tmux = self.prepare_attach(session)
        return tmux.attach_session()

    def toggle_auto_approve(self, session: TrackedSession) -> ToggleOutcome:
        """Flip auto-approve and make it take effect

        Most agents read the flag at launch, so a running session is
        restarted. Agents with a live toggle get a keystroke instead.

        Raises:
            AutoApproveNotSupportedError: The agent has no auto-approve mode
        """
        profile = self.profile_for(session)
        if not profile.supports_auto_approve:
            raise AutoApproveNotSupportedError(
                f"Auto-approve is not supported for {profile.display_name}"
            )

        running = self.update_status(session) == SessionStatus.RUNNING

        if profile.supports_live_toggle:
            if running and not self.tmux_for(session).send_keys(profile.live_toggle_keys, 0):
                raise TmuxError(f"Failed to send {profile.live_toggle_keys} to '{session.name}'")
            session.auto_approve = not session.auto_approve
            return ToggleOutcome.KEYSTROKE if running else ToggleOutcome.FLAG_ONLY

        if running:
            # fail before touching anything if the restart cannot succeed
            self.check_agent_command(session)

        session.auto_approve = not session.auto_approve
        self.logger.info(f"Auto-approve for '{session.name}' is now {'on' if session.auto_approve else 'off'}")

        if not running:
            return ToggleOutcome.FLAG_ONLY

        self.stop(session)
        self.start(session)
        return ToggleOutcome.RESTARTED

    def send_prompt(self, session: TrackedSession, text: str) -> None:
        tmux = self.tmux_for(session)
        if not tmux.session_exists():
            session.status = SessionStatus.STOPPED
            raise SessionNotRunningError(f"Session '{session.name}' is not running")
        if not tmux.send_to_window(text, 0):
            raise TmuxError(f"Failed to send prompt to '{session.name}'")

    def new_window(self, session: TrackedSession, agent: AgentType,
                   name: Optional[str] = None) -> int:
        """Open another agent window in a running session and follow it"""
        tmux = self.tmux_for(session)
        if not tmux.session_exists():
            raise SessionNotRunningError(f"Session '{session.name}' is not running")

        profile = self.registry.resolve(agent)
        command = profile.build_command(auto_approve=session.auto_approve,
                                        custom_command=session.custom_command)
        self._resolve_binary(command, agent)

        index = tmux.new_window(session.path, command, name or profile.display_name)
        if index is None:
            raise TmuxError(f"Failed to open a window in '{session.name}'")
        self.tracker.follow_window(session, index, agent)
        return index

    def resize_pane(self, session: TrackedSession, width: int, height: int) -> None:
        tmux = self.tmux_for(session)
        if not tmux.session_exists():
            raise SessionNotRunningError(f"Session '{session.name}' is not running")
        if not tmux.resize_window(width, height):
            raise TmuxError(f"Failed to resize '{session.name}'")

    def get_preview(self, session: TrackedSession, lines: int = 30) -> str:
        """Recent window 0 output with colours, empty when unavailable"""
        if not session.is_running:
            return ""
        content = self.tmux_for(session).capture_pane(0, history_limit=lines, escape_sequences=True)
        if not content:
            return ""
        return "\n".join(content.rstrip("\n").split("\n")[-lines:])

    def detect_activity(self, session: TrackedSession) -> Activity:
        """Reconcile liveness, then aggregate activity over monitored windows"""
        self.update_status(session)
        return self.tracker.aggregate_activity(session)
