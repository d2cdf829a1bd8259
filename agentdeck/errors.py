"""
Error types raised by lifecycle, persistence and configuration operations.

Detection paths never raise; they degrade to Activity.IDLE instead.
"""


class AgentDeckError(Exception):
    """Base class for all errors surfaced to the user"""


class AgentCommandNotFoundError(AgentDeckError):
    """The agent binary could not be resolved on PATH"""

    def __init__(self, command: str, agent: str):
        self.command = command
        self.agent = agent
        super().__init__(f"{agent} command not found: '{command}'. Is it installed and on PATH?")


class DuplicateNameError(AgentDeckError):
    """An entity with the same display name already exists"""


class SessionNotFoundError(AgentDeckError):
    """No tracked session with the given id or name"""


class GroupNotFoundError(AgentDeckError):
    """No group with the given id"""


class SessionNotRunningError(AgentDeckError):
    """The operation needs a live tmux session"""


class AutoApproveNotSupportedError(AgentDeckError):
    """The agent has no auto-approve launch flag"""


class InvalidWindowError(AgentDeckError):
    """A window index cannot be followed or addressed"""


class PersistenceError(AgentDeckError):
    """The state file could not be read, parsed or written"""


class TmuxError(AgentDeckError):
    """A tmux command required by a lifecycle transition failed"""


class ConfigError(AgentDeckError, ValueError):
    """Invalid configuration file"""


class InvalidCommandError(AgentDeckError):
    """A launch command line cannot be split into arguments"""


class NoPastSessionsError(AgentDeckError):
    """The agent has no earlier conversation to resume"""
