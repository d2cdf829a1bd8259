"""
Activity Detection Engine - classifies agent panes as idle, busy or waiting

Each agent profile selects one of three strategies:

* structural: the agent draws its input box between long horizontal rules,
  so only the box (and, while thinking, the lines just above it) matter.
* spinner-priority: the only busy signal is a transient spinner near the
  bottom of the pane, so the whole tail is scanned before deciding.
* generic: two bottom-up passes over the tail of the pane.

Waiting always outranks busy: a blocked agent needs the user.
"""

import re
import logging
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .agent_profiles import AgentProfile, AgentProfileRegistry, AgentType, Strategy, DEFAULT_REGISTRY
from .terminal_snapshot import Snapshot, TerminalSnapshotSource, clean_line
from .tmux_manager import TmuxManager


class Activity(Enum):
    """Activity of an agent window, ordered WAITING > BUSY > IDLE"""
    IDLE = "idle"
    BUSY = "busy"
    WAITING = "waiting"

    @property
    def priority(self) -> int:
        return _PRIORITY[self]

    def __lt__(self, other: "Activity") -> bool:
        if not isinstance(other, Activity):
            return NotImplemented
        return self.priority < other.priority


_PRIORITY = {Activity.IDLE: 0, Activity.BUSY: 1, Activity.WAITING: 2}

# More than 20 contiguous rule characters marks an input-box separator
SEPARATOR_RE = re.compile(r"[─━]{21,}")

NO_SEPARATOR_TAIL = 10
THINKING_REGION_LINES = 15
SCAN_TAIL = 15

DECORATION_PREFIXES = ("╭", "╰", "└", "Tip:")


def is_separator(line: str) -> bool:
    return bool(SEPARATOR_RE.search(clean_line(line)))


def matches_waiting(line: str, profile: AgentProfile) -> bool:
    lowered = line.lower()
    return any(pattern.lower() in lowered for pattern in profile.waiting_patterns)


def matches_busy_pattern(line: str, profile: AgentProfile) -> bool:
    lowered = line.lower()
    return any(pattern.lower() in lowered for pattern in profile.busy_patterns)


def matches_spinner(line: str, profile: AgentProfile) -> bool:
    return any(glyph in line for glyph in profile.spinners)


def tail_non_empty(lines: Sequence[str], count: int) -> List[str]:
    """Return up to count cleaned non-empty lines, bottom-most first"""
    result: List[str] = []
    for line in reversed(lines):
        cleaned = clean_line(line)
        if not cleaned:
            continue
        result.append(cleaned)
        if len(result) >= count:
            break
    return result


def structural_candidates(lines: Sequence[str]) -> Tuple[List[str], List[str]]:
    """Locate the input area of a boxed UI

    Returns:
        (input area lines, thinking-region lines above the top separator)
    """
    separators = [idx for idx, line in enumerate(lines) if is_separator(line)]
    input_area: List[str] = []
    above: List[str] = []

    if len(separators) >= 2:
        top, bottom = separators[-2], separators[-1]
        for idx in range(top + 1, bottom):
            cleaned = clean_line(lines[idx])
            if cleaned:
                input_area.append(cleaned)

        # Empty prompt: the spinner and "esc to interrupt" sit above the box
        if len(input_area) <= 1:
            # bounded by raw lines, so blank padding cannot reach old history
            for idx in range(top - 1, max(top - THINKING_REGION_LINES, 0) - 1, -1):
                cleaned = clean_line(lines[idx])
                if not cleaned or cleaned.startswith(DECORATION_PREFIXES):
                    continue
                above.append(cleaned)

    elif len(separators) == 1:
        # Permission dialog: everything below the single rule
        for idx in range(separators[0] + 1, len(lines)):
            cleaned = clean_line(lines[idx])
            if cleaned:
                input_area.append(cleaned)
    else:
        input_area = tail_non_empty(lines, NO_SEPARATOR_TAIL)

    return input_area, above


def detect_structural(lines: Sequence[str], profile: AgentProfile) -> Activity:
    """Classify an agent that draws its input box between separator rules"""
    input_area, above = structural_candidates(lines)
    candidates = input_area + above

    for line in candidates:
        if matches_waiting(line, profile):
            return Activity.WAITING

    for line in candidates:
        if matches_busy_pattern(line, profile) or matches_spinner(line, profile):
            return Activity.BUSY

    return Activity.IDLE


def detect_spinner_priority(lines: Sequence[str], profile: AgentProfile) -> Activity:
    """Classify an agent whose busy signal is a transient spinner

    The whole tail is scanned; a waiting prompt anywhere in it wins over a
    spinner regardless of which appears lower.
    """
    has_waiting = False
    has_spinner = False

    for line in tail_non_empty(lines, SCAN_TAIL):
        if matches_waiting(line, profile):
            has_waiting = True
        if matches_spinner(line, profile) or matches_busy_pattern(line, profile):
            has_spinner = True

    if has_waiting:
        return Activity.WAITING
    if has_spinner:
        return Activity.BUSY
    return Activity.IDLE


def detect_generic(lines: Sequence[str], profile: AgentProfile) -> Activity:
    """Two bottom-up passes over the last non-empty lines"""
    tail = tail_non_empty(lines, SCAN_TAIL)

    for line in tail:
        if matches_waiting(line, profile):
            return Activity.WAITING

    for line in tail:
        if matches_busy_pattern(line, profile) or matches_spinner(line, profile):
            return Activity.BUSY

    return Activity.IDLE


STRATEGIES: Dict[Strategy, Callable[[Sequence[str], AgentProfile], Activity]] = {
    Strategy.STRUCTURAL: detect_structural,
    Strategy.SPINNER_PRIORITY: detect_spinner_priority,
    Strategy.GENERIC: detect_generic,
}


def classify(snapshot: Union[Snapshot, Sequence[str]], profile: AgentProfile) -> Activity:
    """Classify a snapshot with the strategy selected by the profile"""
    lines = snapshot.lines if isinstance(snapshot, Snapshot) else snapshot
    if not lines:
        return Activity.IDLE
    return STRATEGIES[profile.strategy](lines, profile)


def highest_activity(activities: Iterable[Activity]) -> Activity:
    """Combine activities; stops at the first WAITING"""
    result = Activity.IDLE
    for activity in activities:
        if activity == Activity.WAITING:
            return Activity.WAITING
        if activity == Activity.BUSY:
            result = Activity.BUSY
    return result


class ActivityDetector:
    """Captures a window and classifies it with the agent's profile"""

    def __init__(self, registry: Optional[AgentProfileRegistry] = None,
                 snapshot_source: Optional[TerminalSnapshotSource] = None):
        self.registry = registry or DEFAULT_REGISTRY
        self.snapshot_source = snapshot_source or TerminalSnapshotSource()
        self.logger = logging.getLogger(__name__)

    def detect_window(self, tmux: TmuxManager, window_index: int,
                      agent: Union[AgentType, str, None]) -> Activity:
        """Capture and classify one window; never raises"""
        profile = self.registry.resolve(agent)
        snapshot = self.snapshot_source.capture(tmux, window_index)
        if snapshot.empty:
            return Activity.IDLE

        activity = classify(snapshot, profile)
        self.logger.debug(f"{tmux.target(window_index)} ({profile.agent.value}) -> {activity.value}")
        return activity
