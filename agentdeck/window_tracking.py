"""
Window Tracking - which windows of a session are monitored, and how their
activities combine into one signal
"""

import logging
from typing import Callable, Dict, List, Optional

from .activity_detector import Activity, ActivityDetector, highest_activity
from .agent_profiles import AgentType
from .errors import InvalidWindowError
from .session_models import FollowedWindow, TrackedSession
from .tmux_manager import TmuxManager


class WindowTracker:
    """Maintains followed windows and aggregates per-window activity"""

    def __init__(self, detector: ActivityDetector,
                 tmux_for: Callable[[TrackedSession], TmuxManager]):
        self.detector = detector
        self.tmux_for = tmux_for
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def windows_to_check(session: TrackedSession) -> List[int]:
        """Window 0 first, then followed windows in order, without duplicates"""
        indices = [0]
        for followed in session.followed_windows:
            if followed.index not in indices:
                indices.append(followed.index)
        return indices

    def follow_window(self, session: TrackedSession, window_index: int,
                      agent: AgentType = AgentType.CLAUDE) -> FollowedWindow:
        """Start monitoring a window; re-following replaces its agent"""
        if window_index <= 0:
            raise InvalidWindowError("Window 0 is always monitored and cannot be followed")

        for followed in session.followed_windows:
            if followed.index == window_index:
                followed.agent = agent
                return followed

        followed = FollowedWindow(index=window_index, agent=agent)
        session.followed_windows.append(followed)
        self.logger.info(f"Session '{session.name}' now follows window {window_index} ({agent.value})")
        return followed

    def unfollow_window(self, session: TrackedSession, window_index: int) -> bool:
        before = len(session.followed_windows)
        session.followed_windows = [fw for fw in session.followed_windows if fw.index != window_index]
        return len(session.followed_windows) != before

    def detect_window(self, session: TrackedSession, window_index: int,
                      tmux: Optional[TmuxManager] = None) -> Activity:
        tmux = tmux or self.tmux_for(session)
        return self.detector.detect_window(tmux, window_index, session.agent_for_window(window_index))

    def aggregate_activity(self, session: TrackedSession) -> Activity:
        """Highest-priority activity over all monitored windows

        Stopped sessions are idle without touching tmux. The first WAITING
        window ends the scan.
        """
        if not session.is_running:
            return Activity.IDLE

        tmux = self.tmux_for(session)
        if not tmux.session_exists():
            return Activity.IDLE

        # lazy so windows after a WAITING one are never captured
        return highest_activity(
            self.detect_window(session, window_index, tmux)
            for window_index in self.windows_to_check(session)
        )

    def window_activities(self, session: TrackedSession) -> Dict[int, Activity]:
        """Activity of every monitored window, for display"""
        if not session.is_running:
            return {index: Activity.IDLE for index in self.windows_to_check(session)}
        tmux = self.tmux_for(session)
        return {index: self.detect_window(session, index, tmux)
                for index in self.windows_to_check(session)}
