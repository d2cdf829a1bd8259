"""
Base Command Class

Every agentdeck subcommand subclasses BaseCommand and is registered with the
CommandRegistry.
"""
from abc import ABC, abstractmethod
from argparse import ArgumentParser, Namespace
from typing import Optional

from ..agent_profiles import AgentType


class BaseCommand(ABC):
    """One agentdeck subcommand"""

    @property
    @abstractmethod
    def name(self) -> str:
        """Subcommand name"""
        pass

    @property
    @abstractmethod
    def help(self) -> str:
        """One-line description shown by --help"""
        pass

    @abstractmethod
    def add_arguments(self, parser: ArgumentParser) -> None:
        """Register the subcommand's arguments on its subparser"""
        pass

    @abstractmethod
    def execute(self, args: Namespace, manager) -> int:
        """
        Run the subcommand against a SessionManager.

        Returns:
            Process exit code, 0 on success
        """
        pass

    def validate_args(self, args: Namespace) -> Optional[str]:
        """Return an error message for unusable arguments, or None"""
        return None


def add_session_argument(parser: ArgumentParser) -> None:
    parser.add_argument(
        "session",
        help="Session name or id"
    )


def add_agent_argument(parser: ArgumentParser, *flags: str, default: Optional[str] = None) -> None:
    parser.add_argument(
        *(flags or ("--agent",)),
        choices=[agent.value for agent in AgentType],
        default=default,
        help=f"Agent variant (default: {default or 'claude'})"
    )
