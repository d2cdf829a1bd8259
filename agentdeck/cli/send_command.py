"""
Send Command

Types a prompt into a running session's agent.
"""
from argparse import ArgumentParser, Namespace
from typing import Optional

from .base_command import BaseCommand, add_session_argument


class SendCommand(BaseCommand):
    """Command to send a prompt"""

    @property
    def name(self) -> str:
        return "send"

    @property
    def help(self) -> str:
        return "Send a prompt to a running session"

    def add_arguments(self, parser: ArgumentParser) -> None:
        add_session_argument(parser)
        parser.add_argument(
            "text",
            nargs="+",
            help="Prompt text"
        )

    def validate_args(self, args: Namespace) -> Optional[str]:
        if not " ".join(args.text).strip():
            return "Prompt must not be empty"
        return None

    def execute(self, args: Namespace, manager) -> int:
        manager.send_prompt(args.session, " ".join(args.text))
        return 0
