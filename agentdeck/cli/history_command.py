"""
History Command

Lists past agent conversations that a session could resume.
"""
from argparse import ArgumentParser, Namespace

from .base_command import BaseCommand, add_session_argument


class HistoryCommand(BaseCommand):
    """Command to list resumable past sessions"""

    @property
    def name(self) -> str:
        return "history"

    @property
    def help(self) -> str:
        return "List resumable past agent sessions"

    def add_arguments(self, parser: ArgumentParser) -> None:
        add_session_argument(parser)
        parser.add_argument(
            "--limit", "-n",
            type=int,
            default=20,
            help="Maximum entries to show (default: 20)"
        )

    def execute(self, args: Namespace, manager) -> int:
        past = manager.past_sessions(args.session)
        if not past:
            print("No past sessions found")
            return 0

        print(f"\n{'Session ID':<38} {'Updated':<17} {'Msgs':<5} {'Prompt':<50}")
        print("-" * 112)
        for entry in past[:args.limit]:
            updated = entry.updated_at.strftime("%Y-%m-%d %H:%M")
            print(f"{entry.session_id:<38} {updated:<17} {entry.message_count:<5} {entry.first_prompt[:50]:<50}")
        return 0
