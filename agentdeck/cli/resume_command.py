"""
Resume and Rename Commands

Relaunch a session into a past conversation, or change its display name.
"""
from argparse import ArgumentParser, Namespace
from typing import Optional

from .base_command import BaseCommand, add_session_argument


class ResumeCommand(BaseCommand):
    """Command to resume a past agent conversation"""

    @property
    def name(self) -> str:
        return "resume"

    @property
    def help(self) -> str:
        return "Relaunch a session into a past conversation"

    def add_arguments(self, parser: ArgumentParser) -> None:
        add_session_argument(parser)
        parser.add_argument(
            "session_id",
            nargs="?",
            help="Conversation id from 'history' (default: most recent)"
        )
        parser.add_argument(
            "--fresh",
            action="store_true",
            help="Start a new conversation instead"
        )

    def validate_args(self, args: Namespace) -> Optional[str]:
        if args.fresh and args.session_id:
            return "--fresh cannot be combined with a session id"
        return None

    def execute(self, args: Namespace, manager) -> int:
        session, resumed = manager.resume_session(args.session, args.session_id, args.fresh)
        if resumed:
            print(f"Resumed '{session.name}' from {resumed}")
        else:
            print(f"Started '{session.name}' with a fresh conversation")
        return 0


class RenameCommand(BaseCommand):
    """Command to rename a session"""

    @property
    def name(self) -> str:
        return "rename"

    @property
    def help(self) -> str:
        return "Change a session's display name"

    def add_arguments(self, parser: ArgumentParser) -> None:
        add_session_argument(parser)
        parser.add_argument(
            "new_name",
            help="New display name"
        )

    def validate_args(self, args: Namespace) -> Optional[str]:
        if not args.new_name.strip():
            return "Name cannot be empty"
        return None

    def execute(self, args: Namespace, manager) -> int:
        session = manager.rename_session(args.session, args.new_name.strip())
        print(f"Renamed '{args.session}' to '{session.name}'")
        return 0
