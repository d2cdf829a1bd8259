"""
Watch Command

Polls every session and prints activity changes until interrupted.
"""
from argparse import ArgumentParser, Namespace
from datetime import datetime
from typing import List, Optional

from ..session_models import TrackedSession
from ..state_watcher import StateFileWatcher
from .base_command import BaseCommand
from .status_command import ACTIVITY_ICONS


class WatchCommand(BaseCommand):
    """Command to monitor activity continuously"""

    @property
    def name(self) -> str:
        return "watch"

    @property
    def help(self) -> str:
        return "Watch session activity"

    def add_arguments(self, parser: ArgumentParser) -> None:
        parser.add_argument(
            "--interval", "-i",
            type=float,
            default=None,
            help="Seconds between polls (default: poll_interval from config)"
        )
        parser.add_argument(
            "--count", "-n",
            type=int,
            default=None,
            help="Stop after this many polls"
        )

    def validate_args(self, args: Namespace) -> Optional[str]:
        if args.interval is not None and args.interval <= 0:
            return "Interval must be positive"
        return None

    def execute(self, args: Namespace, manager) -> int:
        interval = args.interval or manager.config.poll_interval

        def on_external_change() -> None:
            print("State file changed on disk, reloading")
            manager.mark_stale()

        def on_change(sessions: List[TrackedSession], changed: List[str]) -> None:
            stamp = datetime.now().strftime("%H:%M:%S")
            for session in sessions:
                if session.id in changed:
                    activity = manager.monitor.activity_of(session.id)
                    print(f"[{stamp}] {ACTIVITY_ICONS[activity]} {session.name}: {activity.value}")

        watcher = StateFileWatcher(manager.store.state_file, on_external_change)
        try:
            with watcher:
                manager.monitor.run(manager.watched_sessions, interval, args.count, on_change)
        except KeyboardInterrupt:
            print("\nStopped watching")
        return 0
