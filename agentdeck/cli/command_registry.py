"""
Command Registry

Central registry for all CLI commands.
"""
from argparse import ArgumentParser
from typing import Dict, Optional

from .attach_command import AttachCommand
from .base_command import BaseCommand
from .delete_command import DeleteCommand
from .group_command import GroupCommand
from .history_command import HistoryCommand
from .list_command import ListCommand
from .new_command import NewCommand
from .resume_command import RenameCommand, ResumeCommand
from .send_command import SendCommand
from .start_command import RestartCommand, StartCommand, StopCommand
from .status_command import StatusCommand
from .watch_command import WatchCommand
from .window_commands import FollowCommand, ResizeCommand, UnfollowCommand, WindowCommand
from .yolo_command import YoloCommand


class CommandRegistry:
    """Registry for all available commands"""

    def __init__(self):
        self.commands: Dict[str, BaseCommand] = {}
        self.aliases: Dict[str, str] = {}
        self._register_commands()
        self._register_aliases()

    def _register_commands(self) -> None:
        """Register all available commands"""
        command_classes = [
            ListCommand,
            NewCommand,
            StartCommand,
            StopCommand,
            RestartCommand,
            ResumeCommand,
            RenameCommand,
            AttachCommand,
            DeleteCommand,
            StatusCommand,
            YoloCommand,
            FollowCommand,
            UnfollowCommand,
            WindowCommand,
            ResizeCommand,
            HistoryCommand,
            GroupCommand,
            WatchCommand,
            SendCommand,
        ]

        for cmd_class in command_classes:
            cmd = cmd_class()
            self.commands[cmd.name] = cmd

    def _register_aliases(self) -> None:
        """Register command aliases"""
        self.aliases["ls"] = "list"
        self.aliases["rm"] = "delete"

    def setup_parser(self, parser: ArgumentParser) -> None:
        """Set up argument parser with all commands"""
        subparsers = parser.add_subparsers(
            dest="command",
            help="Available commands"
        )

        for cmd in self.commands.values():
            subparser = subparsers.add_parser(
                cmd.name,
                help=cmd.help
            )
            cmd.add_arguments(subparser)

        for alias, target in self.aliases.items():
            if target in self.commands:
                cmd = self.commands[target]
                subparser = subparsers.add_parser(
                    alias,
                    help=f"{cmd.help} (alias for {target})"
                )
                cmd.add_arguments(subparser)

    def resolve(self, name: str) -> Optional[BaseCommand]:
        return self.commands.get(self.aliases.get(name, name))

    def execute_command(self, args, manager) -> int:
        """Execute the specified command"""
        cmd = self.resolve(args.command)
        if cmd is None:
            return 1

        error = cmd.validate_args(args)
        if error:
            print(f"Error: {error}")
            return 1

        return cmd.execute(args, manager)

    def get_command(self, name: str) -> Optional[BaseCommand]:
        """Get a command by name"""
        return self.commands.get(name)
