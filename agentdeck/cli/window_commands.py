"""
Window Commands

Follow, unfollow, open and list extra agent windows of a session.
"""
from argparse import ArgumentParser, Namespace
from typing import Optional

from ..agent_profiles import AgentType
from .base_command import BaseCommand, add_agent_argument, add_session_argument


class FollowCommand(BaseCommand):
    """Command to monitor an extra window"""

    @property
    def name(self) -> str:
        return "follow"

    @property
    def help(self) -> str:
        return "Monitor an extra window of a session"

    def add_arguments(self, parser: ArgumentParser) -> None:
        add_session_argument(parser)
        parser.add_argument(
            "window",
            type=int,
            help="tmux window index (1 or higher)"
        )
        add_agent_argument(parser, "--agent", "-a", default=AgentType.CLAUDE.value)

    def validate_args(self, args: Namespace) -> Optional[str]:
        if args.window <= 0:
            return "Window 0 is always monitored; pick an index of 1 or higher"
        return None

    def execute(self, args: Namespace, manager) -> int:
        session = manager.follow_window(args.session, args.window, AgentType(args.agent))
        print(f"'{session.name}' now follows window {args.window} ({args.agent})")
        return 0


class UnfollowCommand(BaseCommand):
    """Command to stop monitoring an extra window"""

    @property
    def name(self) -> str:
        return "unfollow"

    @property
    def help(self) -> str:
        return "Stop monitoring an extra window"

    def add_arguments(self, parser: ArgumentParser) -> None:
        add_session_argument(parser)
        parser.add_argument(
            "window",
            type=int,
            help="tmux window index"
        )

    def execute(self, args: Namespace, manager) -> int:
        if manager.unfollow_window(args.session, args.window):
            print(f"Stopped following window {args.window}")
            return 0
        print(f"Window {args.window} was not followed")
        return 1


class WindowCommand(BaseCommand):
    """Command to open or list agent windows"""

    @property
    def name(self) -> str:
        return "window"

    @property
    def help(self) -> str:
        return "List windows, or open a new agent window with --new"

    def add_arguments(self, parser: ArgumentParser) -> None:
        add_session_argument(parser)
        add_agent_argument(parser, "--new", "-n")
        parser.add_argument(
            "--name",
            help="Name of the new window"
        )

    def execute(self, args: Namespace, manager) -> int:
        if args.new:
            index = manager.new_window(args.session, AgentType(args.new), args.name)
            print(f"Opened window {index} running {args.new}")
            return 0

        windows = manager.list_windows(args.session)
        if not windows:
            print("No windows (session not running?)")
            return 0

        print(f"\n{'Index':<6} {'Name':<25} {'Active':<7} {'Dead':<5}")
        print("-" * 45)
        for window in windows:
            active = "✓" if window.active else "-"
            dead = "✓" if window.dead else "-"
            print(f"{window.index:<6} {window.name or '':<25} {active:<7} {dead:<5}")
        return 0


class ResizeCommand(BaseCommand):
    """Command to resize a running session's window"""

    @property
    def name(self) -> str:
        return "resize"

    @property
    def help(self) -> str:
        return "Resize a running session's tmux window"

    def add_arguments(self, parser: ArgumentParser) -> None:
        add_session_argument(parser)
        parser.add_argument("width", type=int, help="Columns")
        parser.add_argument("height", type=int, help="Rows")

    def validate_args(self, args: Namespace) -> Optional[str]:
        if args.width <= 0 or args.height <= 0:
            return "Width and height must be positive"
        return None

    def execute(self, args: Namespace, manager) -> int:
        manager.resize_session(args.session, args.width, args.height)
        print(f"Resized '{args.session}' to {args.width}x{args.height}")
        return 0
