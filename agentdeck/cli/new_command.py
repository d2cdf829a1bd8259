"""
New Command

Starts tracking a new agent session.
"""
import os
from argparse import ArgumentParser, Namespace
from typing import Optional

from ..agent_profiles import AgentType, split_command
from ..errors import InvalidCommandError
from .base_command import BaseCommand, add_agent_argument


class NewCommand(BaseCommand):
    """Command to create a tracked session"""

    @property
    def name(self) -> str:
        return "new"

    @property
    def help(self) -> str:
        return "Track a new agent session"

    def add_arguments(self, parser: ArgumentParser) -> None:
        parser.add_argument(
            "name",
            help="Display name of the session"
        )
        parser.add_argument(
            "path",
            nargs="?",
            default=".",
            help="Working directory (default: current directory)"
        )
        add_agent_argument(parser, "--agent", "-a", default=AgentType.CLAUDE.value)
        parser.add_argument(
            "--yolo", "-y",
            action="store_true",
            help="Launch with auto-approve enabled"
        )
        parser.add_argument(
            "--resume", "-r",
            dest="resume_session_id",
            help="Agent session id to resume"
        )
        parser.add_argument(
            "--command", "-c",
            dest="custom_command",
            help="Command line for the custom agent"
        )
        parser.add_argument(
            "--group", "-g",
            dest="group_id",
            help="Group id to place the session in"
        )
        parser.add_argument(
            "--start", "-s",
            action="store_true",
            help="Start the session right away"
        )

    def validate_args(self, args: Namespace) -> Optional[str]:
        if not args.name.strip():
            return "Session name must not be empty"
        if not os.path.isdir(os.path.expanduser(args.path)):
            return f"Path does not exist or is not a directory: {args.path}"
        if args.agent == AgentType.CUSTOM.value and not args.custom_command:
            return "The custom agent needs --command"
        if args.custom_command:
            try:
                split_command(args.custom_command)
            except InvalidCommandError as e:
                return str(e)
        return None

    def execute(self, args: Namespace, manager) -> int:
        session = manager.create_session(
            name=args.name,
            path=args.path,
            agent=AgentType(args.agent),
            auto_approve=args.yolo,
            resume_session_id=args.resume_session_id,
            custom_command=args.custom_command,
            group_id=args.group_id,
            start=args.start,
        )
        print(f"Created session '{session.name}' ({session.id})")
        if session.is_running:
            print(f"Started {session.agent.value} in tmux session "
                  f"'{manager.lifecycle.tmux_session_name(session)}'")
        return 0
