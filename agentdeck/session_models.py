"""
Data model for tracked agent sessions and their groups
"""

import uuid
from datetime import datetime
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Optional

from .agent_profiles import AgentType


class SessionStatus(Enum):
    """Cached lifecycle status; tmux is the source of truth"""
    STOPPED = "stopped"
    RUNNING = "running"


@dataclass
class FollowedWindow:
    """An extra monitored window beyond window 0"""
    index: int
    agent: AgentType = AgentType.CLAUDE

    def to_dict(self) -> Dict[str, Any]:
        return {"index": self.index, "agent": self.agent.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FollowedWindow":
        return cls(index=int(data["index"]), agent=AgentType.parse(data.get("agent")))


@dataclass
class TrackedSession:
    """One agent workspace, whether or not its tmux session exists"""
    id: str
    name: str
    path: str
    agent: AgentType = AgentType.CLAUDE
    status: SessionStatus = SessionStatus.STOPPED
    auto_approve: bool = False
    resume_session_id: Optional[str] = None
    followed_windows: List[FollowedWindow] = field(default_factory=list)
    group_id: Optional[str] = None
    custom_command: Optional[str] = None
    notes: str = ""
    color: str = ""
    bg_color: str = ""
    full_row_color: bool = False
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())
    updated_at: Optional[str] = None

    @classmethod
    def create(cls, name: str, path: str, agent: AgentType = AgentType.CLAUDE,
               **kwargs: Any) -> "TrackedSession":
        """Create a new session with a fresh identifier"""
        return cls(id=uuid.uuid4().hex[:12], name=name, path=path, agent=agent, **kwargs)

    @property
    def is_running(self) -> bool:
        return self.status == SessionStatus.RUNNING

    def agent_for_window(self, window_index: int) -> AgentType:
        """Agent running in a window; window 0 is the session's own agent"""
        if window_index != 0:
            for followed in self.followed_windows:
                if followed.index == window_index:
                    return followed.agent
        return self.agent

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "agent": self.agent.value,
            "status": self.status.value,
            "auto_approve": self.auto_approve,
            "resume_session_id": self.resume_session_id,
            "followed_windows": [fw.to_dict() for fw in self.followed_windows],
            "group_id": self.group_id,
            "custom_command": self.custom_command,
            "notes": self.notes,
            "color": self.color,
            "bg_color": self.bg_color,
            "full_row_color": self.full_row_color,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrackedSession":
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        values["agent"] = AgentType.parse(data.get("agent"))
        try:
            values["status"] = SessionStatus(data.get("status") or SessionStatus.STOPPED.value)
        except ValueError:
            values["status"] = SessionStatus.STOPPED
        values["followed_windows"] = [
            FollowedWindow.from_dict(fw) for fw in data.get("followed_windows") or []
        ]
        return cls(**values)


@dataclass
class Group:
    """A named, collapsible set of sessions"""
    id: str
    name: str
    collapsed: bool = False
    color: str = ""
    bg_color: str = ""
    full_row_color: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "collapsed": self.collapsed,
            "color": self.color,
            "bg_color": self.bg_color,
            "full_row_color": self.full_row_color,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Group":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})
