"""
Main entry point for the agentdeck CLI
"""

import argparse
import logging
import sys
from typing import List, Optional

from .cli.command_registry import CommandRegistry
from .config import ConfigLoader, LOG_LEVELS
from .errors import AgentDeckError
from .manager import SessionManager


def build_parser(registry: CommandRegistry) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="agentdeck",
        description="Manage AI coding agents running in tmux",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Track and start a Claude session in the current project
  agentdeck new api . --start

  # Gemini with auto-approve, then attach
  agentdeck new ui ~/src/ui --agent gemini --yolo
  agentdeck attach ui

  # Watch every session's activity
  agentdeck watch
        """
    )

    parser.add_argument(
        '--config',
        default=None,
        help='Configuration file (default: ./agentdeck.yaml, then ~/.config/agentdeck/config.yaml)'
    )

    parser.add_argument(
        '--state-file',
        default=None,
        help='Session state file (overrides the configuration)'
    )

    parser.add_argument(
        '--log-level', '-l',
        choices=list(LOG_LEVELS),
        default=None,
        help='Logging level (default: from configuration, else INFO)'
    )

    registry.setup_parser(parser)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point"""
    registry = CommandRegistry()
    parser = build_parser(registry)
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        config = ConfigLoader().load_config(args.config)
    except AgentDeckError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.state_file:
        config.state_file = args.state_file
    log_level = args.log_level or config.log_level

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        manager = SessionManager(config)
        return registry.execute_command(args, manager)
    except AgentDeckError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
