"""
Session Manager - wires configuration, lifecycle and persistence together

Every CLI command works through this facade. Mutations follow the same
shape: load, apply a lifecycle transition, save.
"""

import os
import logging
import threading
from typing import Dict, List, Optional, Tuple

from .activity_detector import Activity
from .activity_monitor import ActivityMonitor
from .agent_profiles import AgentType, DEFAULT_REGISTRY
from .config import ManagerConfig
from .errors import NoPastSessionsError
from .session_history import PastSession, list_past_sessions
from .session_lifecycle import SessionLifecycle, ToggleOutcome
from .session_models import Group, TrackedSession
from .session_store import SessionStore
from .tmux_manager import TmuxWindow


class SessionManager:
    """High level operations on tracked sessions"""

    def __init__(self, config: Optional[ManagerConfig] = None,
                 lifecycle: Optional[SessionLifecycle] = None,
                 store: Optional[SessionStore] = None):
        self.config = config or ManagerConfig()
        self.logger = logging.getLogger(__name__)

        if lifecycle is None:
            registry = DEFAULT_REGISTRY.with_overrides(self.config.agents)
            lifecycle = SessionLifecycle(registry, self.config.tmux_prefix, self.config.capture_lines)
        self.lifecycle = lifecycle
        self.store = store or SessionStore(self.config.state_file, self.lifecycle)
        self.monitor = ActivityMonitor(self.lifecycle)

        self._watched: Optional[List[TrackedSession]] = None
        self._stale = threading.Event()

    def list_sessions(self) -> List[TrackedSession]:
        return self.store.load()

    def list_groups(self) -> List[Group]:
        return self.store.get_groups()

    def get(self, ref: str) -> TrackedSession:
        return self.store.find_instance(ref)

    def create_session(self, name: str, path: str, agent: AgentType = AgentType.CLAUDE,
                       auto_approve: bool = False, resume_session_id: Optional[str] = None,
                       custom_command: Optional[str] = None, group_id: Optional[str] = None,
                       start: bool = False) -> TrackedSession:
        """Track a new session, optionally starting it right away

        The agent command is checked before anything is saved when start is
        requested, so a missing binary leaves no trace.
        """
        session = TrackedSession.create(
            name=name,
            path=os.path.abspath(os.path.expanduser(path)),
            agent=agent,
            auto_approve=auto_approve,
            resume_session_id=resume_session_id,
            custom_command=custom_command,
        )
        if group_id:
            self.store.get_group(group_id)
            session.group_id = group_id
        if start:
            self.lifecycle.check_agent_command(session)

        self.store.add_instance(session)
        if start:
            self.lifecycle.start(session)
            self.store.update_instance(session)
        return session

    def start_session(self, ref: str) -> Tuple[TrackedSession, bool]:
        session = self.get(ref)
        created = self.lifecycle.start(session)
        self.store.update_instance(session)
        return session, created

    def stop_session(self, ref: str) -> TrackedSession:
        session = self.get(ref)
        self.lifecycle.stop(session)
        self.store.update_instance(session)
        return session

    def restart_session(self, ref: str) -> TrackedSession:
        session = self.get(ref)
        self.lifecycle.restart(session)
        self.store.update_instance(session)
        return session

    def resume_session(self, ref: str, resume_session_id: Optional[str] = None,
                       fresh: bool = False) -> Tuple[TrackedSession, Optional[str]]:
        """Relaunch a session into one of its agent's past conversations

        Without an id the most recent past conversation is used. fresh drops
        the resume reference and starts a new conversation instead.

        Raises:
            NoPastSessionsError: No id given and the agent has no history
        """
        session = self.get(ref)
        if fresh:
            resume_session_id = None
        elif not resume_session_id:
            past = list_past_sessions(session.agent, session.path)
            if not past:
                raise NoPastSessionsError(f"No previous {session.agent.value} sessions found "
                                          f"for '{session.name}'")
            resume_session_id = past[0].session_id

        self.lifecycle.resume(session, resume_session_id)
        self.store.update_instance(session)
        return session, resume_session_id

    def rename_session(self, ref: str, name: str) -> TrackedSession:
        session = self.store.rename_instance(self.get(ref).id, name)
        self.lifecycle.sync_window_name(session)
        return session

    def resize_session(self, ref: str, width: int, height: int) -> None:
        self.lifecycle.resize_pane(self.get(ref), width, height)

    def attach_session(self, ref: str) -> int:
        """Prepare and attach; blocks until the user detaches"""
        session = self.get(ref)
        tmux = self.lifecycle.prepare_attach(session)
        self.store.update_instance(session)
        return tmux.attach_session()

    def delete_session(self, ref: str) -> TrackedSession:
        session = self.get(ref)
        return self.store.remove_instance(session.id)

    def toggle_auto_approve(self, ref: str) -> Tuple[TrackedSession, ToggleOutcome]:
        session = self.get(ref)
        outcome = self.lifecycle.toggle_auto_approve(session)
        self.store.update_instance(session)
        return session, outcome

    def follow_window(self, ref: str, window_index: int,
                      agent: AgentType = AgentType.CLAUDE) -> TrackedSession:
        session = self.get(ref)
        self.lifecycle.tracker.follow_window(session, window_index, agent)
        self.store.update_instance(session)
        return session

    def unfollow_window(self, ref: str, window_index: int) -> bool:
        session = self.get(ref)
        removed = self.lifecycle.tracker.unfollow_window(session, window_index)
        if removed:
            self.store.update_instance(session)
        return removed

    def new_window(self, ref: str, agent: AgentType, name: Optional[str] = None) -> int:
        session = self.get(ref)
        index = self.lifecycle.new_window(session, agent, name)
        self.store.update_instance(session)
        return index

    def send_prompt(self, ref: str, text: str) -> None:
        self.lifecycle.send_prompt(self.get(ref), text)

    def list_windows(self, ref: str) -> List[TmuxWindow]:
        return self.lifecycle.list_windows(self.get(ref))

    def session_status(self, ref: str) -> Tuple[TrackedSession, Activity, Dict[int, Activity]]:
        """Liveness-reconciled session, its aggregate activity and per-window detail"""
        session = self.get(ref)
        activity = self.lifecycle.detect_activity(session)
        return session, activity, self.lifecycle.tracker.window_activities(session)

    def preview(self, ref: str, lines: int = 30) -> str:
        return self.lifecycle.get_preview(self.get(ref), lines)

    def past_sessions(self, ref: str) -> List[PastSession]:
        session = self.get(ref)
        return list_past_sessions(session.agent, session.path)

    def watched_sessions(self) -> List[TrackedSession]:
        """Sessions for the poll loop, reread from disk only after mark_stale()"""
        if self._watched is None or self._stale.is_set():
            self._stale.clear()
            self._watched = self.list_sessions()
            self.logger.debug(f"Loaded {len(self._watched)} sessions for watching")
        return self._watched

    def mark_stale(self) -> None:
        """Flag the watched sessions for reload; safe to call from the watcher thread"""
        self._stale.set()
