"""
State File Watcher - notices when another process rewrites the state file

The store saves through a temporary file and os.replace, so a foreign write
shows up as a move onto the state file rather than a plain modification.
"""

import os
import time
import logging
import threading
from pathlib import Path
from typing import Callable, Optional

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer


DEBOUNCE_SECONDS = 0.2


class StateFileEventHandler(FileSystemEventHandler):
    """Watchdog handler that fires for one file only, debounced"""

    def __init__(self, state_file: Path, on_change: Callable[[], None],
                 debounce: float = DEBOUNCE_SECONDS):
        super().__init__()
        self.state_file = os.path.abspath(str(state_file))
        self._on_change = on_change
        self._debounce = debounce
        self._last_event: Optional[float] = None
        self._lock = threading.Lock()

    def _is_state_file(self, path) -> bool:
        if isinstance(path, bytes):
            path = os.fsdecode(path)
        return bool(path) and os.path.abspath(path) == self.state_file

    def _should_process(self) -> bool:
        now = time.monotonic()
        with self._lock:
            if self._last_event is not None and now - self._last_event < self._debounce:
                return False
            self._last_event = now
            return True

    def _handle(self, path) -> None:
        if self._is_state_file(path) and self._should_process():
            self._on_change()

    def on_modified(self, event):
        if not event.is_directory:
            self._handle(event.src_path)

    def on_created(self, event):
        if not event.is_directory:
            self._handle(event.src_path)

    def on_moved(self, event):
        if not event.is_directory:
            self._handle(event.dest_path)


class StateFileWatcher:
    """Calls back when the state file changes on disk"""

    def __init__(self, state_file: Path, callback: Callable[[], None],
                 debounce: float = DEBOUNCE_SECONDS):
        self.state_file = Path(state_file).expanduser()
        self.handler = StateFileEventHandler(self.state_file, callback, debounce)
        self._observer: Optional[Observer] = None
        self.logger = logging.getLogger(__name__)

    @property
    def running(self) -> bool:
        return self._observer is not None

    def start(self) -> None:
        if self._observer is not None:
            return
        directory = self.state_file.parent
        directory.mkdir(parents=True, exist_ok=True)

        observer = Observer()
        observer.schedule(self.handler, str(directory), recursive=False)
        observer.daemon = True
        observer.start()
        self._observer = observer
        self.logger.debug(f"Watching {self.state_file} for external changes")

    def stop(self) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=1.0)
        self._observer = None
        self.logger.debug(f"Stopped watching {self.state_file}")

    def __enter__(self) -> "StateFileWatcher":
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.stop()
