"""
Attach Command

Attaches the terminal to a session, starting or reviving it first.
"""
from argparse import ArgumentParser, Namespace

from .base_command import BaseCommand, add_session_argument


class AttachCommand(BaseCommand):
    """Command to attach to a session"""

    @property
    def name(self) -> str:
        return "attach"

    @property
    def help(self) -> str:
        return "Attach to a session (starts it if stopped)"

    def add_arguments(self, parser: ArgumentParser) -> None:
        add_session_argument(parser)

    def execute(self, args: Namespace, manager) -> int:
        return manager.attach_session(args.session)
