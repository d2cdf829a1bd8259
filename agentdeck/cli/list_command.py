"""
List Command

Lists all tracked sessions, grouped.
"""
from argparse import ArgumentParser, Namespace
from typing import Dict, List

from ..session_models import Group, TrackedSession
from .base_command import BaseCommand


class ListCommand(BaseCommand):
    """Command to list tracked sessions"""

    @property
    def name(self) -> str:
        return "list"

    @property
    def help(self) -> str:
        return "List tracked sessions"

    def add_arguments(self, parser: ArgumentParser) -> None:
        parser.add_argument(
            "--detailed", "-d",
            action="store_true",
            help="Show detailed information"
        )

    def execute(self, args: Namespace, manager) -> int:
        sessions = manager.list_sessions()
        groups = manager.list_groups()

        if args.detailed:
            for session in sessions:
                self._print_session_details(session)
                print()
        else:
            self._print_sessions_table(sessions, groups)

        return 0

    def _print_sessions_table(self, sessions: List[TrackedSession], groups: List[Group]) -> None:
        """Print sessions in a formatted table, one block per group"""
        if not sessions:
            print("No sessions found")
            return

        group_names: Dict[str, str] = {group.id: group.name for group in groups}
        collapsed = {group.id for group in groups if group.collapsed}

        print(
            f"\n{'Name':<25} {'Agent':<10} {'Status':<9} "
            f"{'Yolo':<5} {'Group':<15} {'Path':<30}"
        )
        print("-" * 97)

        ordered = sorted(sessions, key=lambda s: (group_names.get(s.group_id or "", ""), s.name))
        for session in ordered:
            if session.group_id in collapsed:
                continue
            yolo = "✓" if session.auto_approve else "-"
            group = group_names.get(session.group_id or "", "-")
            print(
                f"{session.name:<25} {session.agent.value:<10} {session.status.value:<9} "
                f"{yolo:<5} {group:<15} {session.path:<30}"
            )

        hidden = sum(1 for s in sessions if s.group_id in collapsed)
        if hidden:
            print(f"\n({hidden} sessions in collapsed groups)")

    def _print_session_details(self, session: TrackedSession) -> None:
        """Print detailed session information"""
        print(f"\nSession: {session.name}")
        print(f"ID: {session.id}")
        print(f"Path: {session.path}")
        print(f"Agent: {session.agent.value}")
        print(f"Status: {session.status.value}")
        print(f"Auto-approve: {'on' if session.auto_approve else 'off'}")
        if session.resume_session_id:
            print(f"Resume: {session.resume_session_id}")
        if session.custom_command:
            print(f"Command: {session.custom_command}")
        print(f"Created: {session.created_at}")

        if session.followed_windows:
            print("\nFollowed windows:")
            for followed in session.followed_windows:
                print(f"  {followed.index}: {followed.agent.value}")
