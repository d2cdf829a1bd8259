"""
Yolo Command

Toggles an agent's auto-approve mode.
"""
from argparse import ArgumentParser, Namespace

from ..session_lifecycle import ToggleOutcome
from .base_command import BaseCommand, add_session_argument


OUTCOME_MESSAGES = {
    ToggleOutcome.FLAG_ONLY: "applies on next start",
    ToggleOutcome.RESTARTED: "session restarted",
    ToggleOutcome.KEYSTROKE: "toggled in the running agent",
}


class YoloCommand(BaseCommand):
    """Command to toggle auto-approve"""

    @property
    def name(self) -> str:
        return "yolo"

    @property
    def help(self) -> str:
        return "Toggle auto-approve for a session"

    def add_arguments(self, parser: ArgumentParser) -> None:
        add_session_argument(parser)

    def execute(self, args: Namespace, manager) -> int:
        session, outcome = manager.toggle_auto_approve(args.session)
        state = "on" if session.auto_approve else "off"
        print(f"Auto-approve {state} for '{session.name}' ({OUTCOME_MESSAGES[outcome]})")
        return 0
