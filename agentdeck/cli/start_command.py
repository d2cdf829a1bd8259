"""
Start, Stop and Restart Commands

Drive a session's tmux lifecycle.
"""
from argparse import ArgumentParser, Namespace

from .base_command import BaseCommand, add_session_argument


class StartCommand(BaseCommand):
    """Command to start a session"""

    @property
    def name(self) -> str:
        return "start"

    @property
    def help(self) -> str:
        return "Start a session's agent in tmux"

    def add_arguments(self, parser: ArgumentParser) -> None:
        add_session_argument(parser)

    def execute(self, args: Namespace, manager) -> int:
        session, created = manager.start_session(args.session)
        if created:
            print(f"Started '{session.name}'")
        else:
            print(f"'{session.name}' is already running")
        return 0


class StopCommand(BaseCommand):
    """Command to stop a session"""

    @property
    def name(self) -> str:
        return "stop"

    @property
    def help(self) -> str:
        return "Stop a session (kills its tmux session)"

    def add_arguments(self, parser: ArgumentParser) -> None:
        add_session_argument(parser)

    def execute(self, args: Namespace, manager) -> int:
        session = manager.stop_session(args.session)
        print(f"Stopped '{session.name}'")
        return 0


class RestartCommand(BaseCommand):
    """Command to restart a session"""

    @property
    def name(self) -> str:
        return "restart"

    @property
    def help(self) -> str:
        return "Stop and start a session"

    def add_arguments(self, parser: ArgumentParser) -> None:
        add_session_argument(parser)

    def execute(self, args: Namespace, manager) -> int:
        session = manager.restart_session(args.session)
        print(f"Restarted '{session.name}'")
        return 0
