"""
Activity Monitor - polls tracked sessions and remembers their activity
"""

import time
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from .activity_detector import Activity
from .session_lifecycle import SessionLifecycle
from .session_models import TrackedSession


@dataclass
class SessionActivity:
    """Last observed activity of a session"""
    activity: Activity
    last_update: float
    last_change: float


class ActivityMonitor:
    """Runs detection ticks over all sessions and reports changes"""

    def __init__(self, lifecycle: SessionLifecycle):
        self.lifecycle = lifecycle
        self.activities: Dict[str, SessionActivity] = {}
        self.logger = logging.getLogger(__name__)

    def activity_of(self, session_id: str) -> Activity:
        status = self.activities.get(session_id)
        return status.activity if status else Activity.IDLE

    def poll(self, sessions: Iterable[TrackedSession]) -> List[str]:
        """One detection tick

        Returns:
            Ids of sessions whose aggregated activity changed
        """
        now = time.time()
        changed = []
        seen = set()

        for session in sessions:
            seen.add(session.id)
            activity = self.lifecycle.detect_activity(session)
            status = self.activities.get(session.id)

            if status is None:
                self.activities[session.id] = SessionActivity(activity, now, now)
                if activity != Activity.IDLE:
                    changed.append(session.id)
                continue

            old = status.activity
            status.last_update = now
            if old != activity:
                status.activity = activity
                status.last_change = now
                changed.append(session.id)
                self.logger.info(f"Session '{session.name}' activity changed: {old.value} -> {activity.value}")

        # forget sessions that are no longer tracked
        for session_id in list(self.activities):
            if session_id not in seen:
                del self.activities[session_id]

        return changed

    def summary(self) -> Dict[str, str]:
        return {session_id: status.activity.value for session_id, status in self.activities.items()}

    def run(self, load_sessions, interval: float = 2.0,
            iterations: Optional[int] = None, on_change=None) -> None:
        """Poll until interrupted (or for a fixed number of ticks)

        Args:
            load_sessions: Callable returning the current sessions each tick
            interval: Seconds between ticks
            iterations: Stop after this many ticks, None for forever
            on_change: Called with (sessions, changed ids) after each tick
        """
        count = 0
        while iterations is None or count < iterations:
            sessions = load_sessions()
            changed = self.poll(sessions)
            if on_change:
                on_change(sessions, changed)
            count += 1
            if iterations is None or count < iterations:
                time.sleep(interval)
