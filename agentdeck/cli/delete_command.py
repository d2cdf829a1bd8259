"""
Delete Command

Stops a session and removes it from the state file.
"""
from argparse import ArgumentParser, Namespace

from .base_command import BaseCommand, add_session_argument


class DeleteCommand(BaseCommand):
    """Command to delete a session"""

    @property
    def name(self) -> str:
        return "delete"

    @property
    def help(self) -> str:
        return "Stop and forget a session"

    def add_arguments(self, parser: ArgumentParser) -> None:
        add_session_argument(parser)
        parser.add_argument(
            "--force", "-f",
            action="store_true",
            help="Skip confirmation prompt"
        )

    def execute(self, args: Namespace, manager) -> int:
        session = manager.get(args.session)
        if not args.force:
            response = input(f"Delete session '{session.name}'? [y/N] ")
            if response.strip().lower() not in ("y", "yes"):
                print("Cancelled")
                return 1
        manager.delete_session(session.id)
        print(f"Deleted '{session.name}'")
        return 0
