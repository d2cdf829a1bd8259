"""
Agent Profile Registry

Static pattern tables and launch settings for every supported agent CLI.
Profiles are immutable and looked up through an AgentProfileRegistry that is
injected into the detector and the lifecycle controller.
"""

import logging
import shlex
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .errors import InvalidCommandError


logger = logging.getLogger(__name__)


class AgentType(Enum):
    """Closed set of agent variants"""
    CLAUDE = "claude"
    GEMINI = "gemini"
    AIDER = "aider"
    CODEX = "codex"
    AMAZONQ = "amazonq"
    OPENCODE = "opencode"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, value: Union[str, "AgentType", None]) -> "AgentType":
        """Parse a stored agent name. Empty means Claude (older state files)."""
        if isinstance(value, AgentType):
            return value
        if not value:
            return cls.CLAUDE
        try:
            return cls(value.lower())
        except ValueError:
            logger.warning(f"Unknown agent type '{value}', falling back to {cls.CLAUDE.value}")
            return cls.CLAUDE


def split_command(command: str) -> List[str]:
    """Split a shell command line into arguments

    Raises:
        InvalidCommandError: Unbalanced quotes or a dangling escape
    """
    try:
        return shlex.split(command)
    except ValueError as e:
        raise InvalidCommandError(f"Cannot parse command {command!r}: {e}")


class Strategy(Enum):
    """Detection algorithm applied to an agent's pane"""
    STRUCTURAL = "structural"  # boxed input area between rule lines
    SPINNER_PRIORITY = "spinner_priority"  # transient spinner near the bottom
    GENERIC = "generic"


# Braille dots used by most agent CLIs
DEFAULT_SPINNERS: Tuple[str, ...] = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")

COMMON_WAITING_PATTERNS: Tuple[str, ...] = (
    "allow once",
    "allow always",
    "do you want to proceed",
    "waiting for user",
)


@dataclass(frozen=True)
class AgentProfile:
    """Detection patterns and launch settings for one agent variant"""
    agent: AgentType
    display_name: str
    strategy: Strategy
    waiting_patterns: Tuple[str, ...]
    busy_patterns: Tuple[str, ...]
    spinners: Tuple[str, ...] = DEFAULT_SPINNERS
    command: str = ""
    auto_approve_flag: Optional[str] = None
    # "{session_id}" is substituted with the resume reference
    resume_args: Tuple[str, ...] = ()
    supports_live_toggle: bool = False
    live_toggle_keys: Optional[str] = None
    extra_args: Tuple[str, ...] = field(default=())

    @property
    def supports_auto_approve(self) -> bool:
        return self.auto_approve_flag is not None or self.supports_live_toggle

    def build_command(self, auto_approve: bool = False,
                      resume_session_id: Optional[str] = None,
                      custom_command: Optional[str] = None) -> str:
        """Build the shell command line that launches this agent"""
        if self.agent == AgentType.CUSTOM:
            return (custom_command or self.command).strip()

        parts: List[str] = split_command(self.command)
        parts.extend(self.extra_args)
        if auto_approve and self.auto_approve_flag:
            parts.append(self.auto_approve_flag)
        if resume_session_id:
            # directory-based agents ignore the id and resume the cwd's last chat
            for arg in self.resume_args:
                parts.append(arg.replace("{session_id}", resume_session_id))
        return " ".join(shlex.quote(p) for p in parts)


DEFAULT_PROFILES: Dict[AgentType, AgentProfile] = {
    AgentType.CLAUDE: AgentProfile(
        agent=AgentType.CLAUDE,
        display_name="Claude Code",
        strategy=Strategy.STRUCTURAL,
        waiting_patterns=(
            "allow once",
            "allow always",
            "yes, allow",
            "no, and tell",
            "esc to cancel",
            "do you want to proceed",
            "waiting for user",
            "waiting for tool",
            "apply this change",
            "? for shortcuts",
        ),
        busy_patterns=("esc to interrupt", "tokens", "Generating"),
        command="claude",
        auto_approve_flag="--dangerously-skip-permissions",
        resume_args=("--resume", "{session_id}"),
    ),
    AgentType.GEMINI: AgentProfile(
        agent=AgentType.GEMINI,
        display_name="Gemini",
        strategy=Strategy.SPINNER_PRIORITY,
        waiting_patterns=COMMON_WAITING_PATTERNS,
        busy_patterns=("Generating", "esc to cancel"),
        spinners=DEFAULT_SPINNERS + ("∴", "∵", "⋮", "⋯"),
        command="gemini",
        auto_approve_flag="--yolo",
        resume_args=("--resume", "{session_id}"),
        supports_live_toggle=True,
        live_toggle_keys="C-y",
    ),
    AgentType.AIDER: AgentProfile(
        agent=AgentType.AIDER,
        display_name="Aider",
        strategy=Strategy.GENERIC,
        waiting_patterns=COMMON_WAITING_PATTERNS,
        busy_patterns=("Generating", "tokens"),
        command="aider",
        auto_approve_flag="--yes-always",
    ),
    AgentType.CODEX: AgentProfile(
        agent=AgentType.CODEX,
        display_name="Codex CLI",
        strategy=Strategy.GENERIC,
        waiting_patterns=COMMON_WAITING_PATTERNS,
        busy_patterns=("Generating",),
        command="codex",
        auto_approve_flag="--dangerously-bypass-approvals-and-sandbox",
        resume_args=("resume", "{session_id}"),
    ),
    AgentType.AMAZONQ: AgentProfile(
        agent=AgentType.AMAZONQ,
        display_name="Amazon Q",
        strategy=Strategy.GENERIC,
        waiting_patterns=COMMON_WAITING_PATTERNS,
        busy_patterns=("Generating",),
        command="q chat",
        auto_approve_flag="--trust-all-tools",
        resume_args=("--resume",),
    ),
    AgentType.OPENCODE: AgentProfile(
        agent=AgentType.OPENCODE,
        display_name="OpenCode",
        strategy=Strategy.GENERIC,
        waiting_patterns=COMMON_WAITING_PATTERNS,
        busy_patterns=("Generating",),
        command="opencode",
        resume_args=("--session", "{session_id}"),
    ),
    AgentType.CUSTOM: AgentProfile(
        agent=AgentType.CUSTOM,
        display_name="Custom",
        strategy=Strategy.GENERIC,
        waiting_patterns=COMMON_WAITING_PATTERNS,
        busy_patterns=("Generating",),
    ),
}


class AgentProfileRegistry:
    """Resolves agent variants to profiles, falling back to a default profile"""

    def __init__(self, profiles: Optional[Mapping[AgentType, AgentProfile]] = None,
                 default: AgentType = AgentType.CLAUDE):
        self._profiles: Dict[AgentType, AgentProfile] = dict(profiles or DEFAULT_PROFILES)
        if default not in self._profiles:
            raise ValueError(f"Default agent {default.value} has no profile")
        self.default = default

    def resolve(self, agent: Union[str, AgentType, None]) -> AgentProfile:
        """Return the profile for an agent; unmapped variants get the default"""
        agent_type = AgentType.parse(agent)
        profile = self._profiles.get(agent_type)
        if profile is None:
            return self._profiles[self.default]
        return profile

    def with_overrides(self, overrides: Mapping[str, Mapping[str, object]]) -> "AgentProfileRegistry":
        """Return a new registry with command/args overrides applied

        Args:
            overrides: {agent name: {"command": str, "args": [str, ...]}}
        """
        profiles = dict(self._profiles)
        for name, settings in overrides.items():
            agent_type = AgentType.parse(name)
            base = profiles.get(agent_type)
            if base is None:
                continue
            changes = {}
            if settings.get("command"):
                changes["command"] = str(settings["command"])
            if settings.get("args"):
                changes["extra_args"] = tuple(str(a) for a in _as_list(settings["args"]))
            if changes:
                profiles[agent_type] = replace(base, **changes)
                logger.debug(f"Applied overrides for {agent_type.value}: {sorted(changes)}")
        return AgentProfileRegistry(profiles, self.default)


def _as_list(value: object) -> Iterable[object]:
    if isinstance(value, str):
        return split_command(value)
    return list(value)  # type: ignore[arg-type]


DEFAULT_REGISTRY = AgentProfileRegistry()
