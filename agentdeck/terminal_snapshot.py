"""
Terminal Snapshot Source - captures recent pane text for activity detection
"""

import re
import logging
from dataclasses import dataclass, field
from typing import List

from .tmux_manager import TmuxManager


DEFAULT_CAPTURE_LINES = 50

# CSI sequences, OSC sequences (BEL or ST terminated) and two-byte escapes
ANSI_ESCAPE = re.compile(
    r"\x1b\[[0-?]*[ -/]*[@-~]"
    r"|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)"
    r"|\x1b[@-Z\\-_]"
)


def strip_ansi(text: str) -> str:
    """Remove ANSI escape sequences from text"""
    return ANSI_ESCAPE.sub("", text)


def clean_line(line: str) -> str:
    """Strip escape sequences and surrounding whitespace"""
    return strip_ansi(line).strip()


@dataclass
class Snapshot:
    """Raw lines captured from one window at one instant"""
    lines: List[str] = field(default_factory=list)

    @classmethod
    def from_text(cls, text: str) -> "Snapshot":
        return cls(lines=text.split("\n"))

    @property
    def empty(self) -> bool:
        return not any(line.strip() for line in self.lines)


class TerminalSnapshotSource:
    """Captures window snapshots through the tmux collaborator"""

    def __init__(self, capture_lines: int = DEFAULT_CAPTURE_LINES):
        self.capture_lines = capture_lines
        self.logger = logging.getLogger(__name__)

    def capture(self, tmux: TmuxManager, window_index: int = 0) -> Snapshot:
        """Capture a window; any failure yields an empty snapshot"""
        try:
            content = tmux.capture_pane(window_index, history_limit=self.capture_lines)
        except Exception as e:
            self.logger.debug(f"Capture of {tmux.target(window_index)} raised: {e}")
            content = None

        if content is None:
            self.logger.debug(f"Could not capture {tmux.target(window_index)}")
            return Snapshot()

        return Snapshot.from_text(content)
