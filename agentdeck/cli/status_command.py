"""
Status Command

Shows liveness and detected activity of a session and its windows.
"""
from argparse import ArgumentParser, Namespace

from ..activity_detector import Activity
from .base_command import BaseCommand, add_session_argument


ACTIVITY_ICONS = {
    Activity.IDLE: "○",
    Activity.BUSY: "●",
    Activity.WAITING: "◐",
}


class StatusCommand(BaseCommand):
    """Command to show a session's activity"""

    @property
    def name(self) -> str:
        return "status"

    @property
    def help(self) -> str:
        return "Show a session's activity"

    def add_arguments(self, parser: ArgumentParser) -> None:
        add_session_argument(parser)
        parser.add_argument(
            "--preview", "-p",
            type=int,
            default=0,
            metavar="LINES",
            help="Also print the last LINES lines of window 0"
        )

    def execute(self, args: Namespace, manager) -> int:
        session, activity, windows = manager.session_status(args.session)

        print(f"{ACTIVITY_ICONS[activity]} {session.name}: {session.status.value}, {activity.value}")
        if session.is_running:
            for index, window_activity in windows.items():
                agent = session.agent_for_window(index).value
                print(f"  window {index} ({agent}): {window_activity.value}")

        if args.preview > 0:
            preview = manager.preview(session.id, args.preview)
            if preview:
                print()
                print(preview)
        return 0
