"""
Past agent sessions that can be resumed, normalized across agents

Every lister returns sessions most recent first and never raises: a missing
history directory or a failing CLI simply yields no sessions.
"""

import re
import json
import logging
import subprocess
from datetime import datetime, timedelta
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from .agent_profiles import AgentType


logger = logging.getLogger(__name__)

MAX_PROMPT_LENGTH = 100

# A history file another tool is writing or has corrupted is skipped, not fatal
PARSE_ERRORS = (OSError, ValueError, AttributeError, TypeError)


@dataclass
class PastSession:
    """A resumable conversation of one agent"""
    session_id: str
    first_prompt: str
    last_prompt: str
    message_count: int
    created_at: datetime
    updated_at: datetime
    agent: AgentType


def _truncate(text: str) -> str:
    text = " ".join(text.split())
    if len(text) > MAX_PROMPT_LENGTH:
        return text[:MAX_PROMPT_LENGTH - 3] + "..."
    return text


def _mtime(path: Path) -> datetime:
    return datetime.fromtimestamp(path.stat().st_mtime)


def _message_text(content: Any) -> str:
    """Text of a message whose content is a string or a list of parts"""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = [part.get("text", "") for part in content
                 if isinstance(part, dict) and part.get("type") == "text"]
        return " ".join(p for p in parts if p)
    return ""


def claude_project_dir(project_path: str, home: Optional[Path] = None) -> Path:
    """Directory where Claude Code keeps transcripts for a project"""
    encoded = re.sub(r"[/.]", "-", project_path.rstrip("/") or "/")
    return (home or Path.home()) / ".claude" / "projects" / encoded


def _parse_claude_transcript(path: Path) -> Optional[PastSession]:
    first_prompt = ""
    last_prompt = ""
    message_count = 0
    created_at: Optional[datetime] = None

    with open(path, "r", encoding="utf-8", errors="replace") as f:
        for line in f:
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                continue
            if not isinstance(entry, dict) or entry.get("type") not in ("user", "assistant"):
                continue

            message_count += 1
            if created_at is None and entry.get("timestamp"):
                try:
                    created_at = datetime.fromisoformat(str(entry["timestamp"]).replace("Z", "+00:00"))
                    created_at = created_at.astimezone().replace(tzinfo=None)
                except ValueError:
                    pass

            if entry.get("type") == "user":
                message = entry.get("message")
                if isinstance(message, dict):
                    text = _message_text(message.get("content"))
                else:
                    text = _message_text(message)
                if text.strip():
                    if not first_prompt:
                        first_prompt = _truncate(text)
                    last_prompt = _truncate(text)

    if message_count == 0:
        return None

    updated_at = _mtime(path)
    return PastSession(
        session_id=path.stem,
        first_prompt=first_prompt or path.stem,
        last_prompt=last_prompt or first_prompt or path.stem,
        message_count=message_count,
        created_at=created_at or updated_at,
        updated_at=updated_at,
        agent=AgentType.CLAUDE,
    )


def list_claude_sessions(project_path: str, home: Optional[Path] = None) -> List[PastSession]:
    project_dir = claude_project_dir(project_path, home)
    if not project_dir.is_dir():
        return []

    sessions = []
    for path in project_dir.glob("*.jsonl"):
        try:
            session = _parse_claude_transcript(path)
        except PARSE_ERRORS as e:
            logger.debug(f"Skipping unreadable transcript {path}: {e}")
            continue
        if session:
            sessions.append(session)

    sessions.sort(key=lambda s: s.updated_at, reverse=True)
    return sessions


def _paths_related(cwd: str, project_path: str) -> bool:
    """True if either path equals or contains the other"""
    cwd_norm = cwd.rstrip("/") + "/"
    project_norm = project_path.rstrip("/") + "/"
    return project_norm.startswith(cwd_norm) or cwd_norm.startswith(project_norm)


def parse_codex_session(path: Path) -> Tuple[str, str, str]:
    """Extract (session id, first prompt, cwd) from a Codex JSONL file"""
    session_id = ""
    first_prompt = ""
    cwd = ""

    with open(path, "r", encoding="utf-8", errors="replace") as f:
        for line_num, line in enumerate(f, 1):
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                continue
            if not isinstance(entry, dict):
                continue
            payload = entry.get("payload")
            if not isinstance(payload, dict):
                continue

            if line_num == 1:
                if entry.get("type") == "session_meta":
                    session_id = str(payload.get("id") or "")
                    cwd = str(payload.get("cwd") or "")
                continue

            if (entry.get("type") == "response_item" and payload.get("type") == "message"
                    and payload.get("role") == "user"):
                for content in payload.get("content") or []:
                    if not isinstance(content, dict) or content.get("type") != "input_text":
                        continue
                    text = content.get("text", "")
                    if not text:
                        continue
                    if text.startswith("# AGENTS.md") or text.startswith("<environment_context>"):
                        continue
                    first_prompt = _truncate(text)
                    break

            if session_id and first_prompt:
                break

    return session_id, first_prompt, cwd


def list_codex_sessions(project_path: str, home: Optional[Path] = None) -> List[PastSession]:
    session_dir = (home or Path.home()) / ".codex" / "sessions"
    if not session_dir.is_dir():
        return []

    sessions = []
    for path in session_dir.rglob("*.jsonl"):
        try:
            session_id, first_prompt, cwd = parse_codex_session(path)
            modified = _mtime(path)
        except PARSE_ERRORS as e:
            logger.debug(f"Skipping unreadable Codex session {path}: {e}")
            continue

        # sessions with only system messages cannot be resumed meaningfully
        if not session_id or not first_prompt:
            continue
        if project_path and cwd and not _paths_related(cwd, project_path):
            continue

        sessions.append(PastSession(
            session_id=session_id,
            first_prompt=first_prompt,
            last_prompt=first_prompt,
            message_count=1,
            created_at=modified,
            updated_at=modified,
            agent=AgentType.CODEX,
        ))

    sessions.sort(key=lambda s: s.updated_at, reverse=True)
    return sessions


GEMINI_SESSION_LINE = re.compile(r"^\s+\d+\.\s+(.+?)\s+\(([^)]+)\)\s+\[([a-f0-9-]+)\]$")

_RELATIVE_UNITS = (
    ("second", timedelta(seconds=1)),
    ("minute", timedelta(minutes=1)),
    ("hour", timedelta(hours=1)),
    ("day", timedelta(days=1)),
    ("week", timedelta(weeks=1)),
    ("month", timedelta(days=30)),
)


def parse_relative_time(text: str, now: Optional[datetime] = None) -> datetime:
    """Turn '6 minutes ago' style text into an approximate timestamp"""
    now = now or datetime.now()
    text = text.lower()
    if "now" in text:
        return now

    match = re.search(r"(\d+)", text)
    amount = int(match.group(1)) if match else 0
    for unit, step in _RELATIVE_UNITS:
        if unit in text:
            return now - step * amount
    return now


def parse_gemini_session_list(output: str, now: Optional[datetime] = None) -> List[PastSession]:
    """Parse `gemini --list-sessions` output (already most recent first)"""
    sessions = []
    for line in output.split("\n"):
        match = GEMINI_SESSION_LINE.match(line)
        if not match:
            continue
        prompt = match.group(1).strip()
        updated_at = parse_relative_time(match.group(2), now)
        sessions.append(PastSession(
            session_id=match.group(3),
            first_prompt=prompt,
            last_prompt=prompt,
            message_count=1,
            created_at=updated_at,
            updated_at=updated_at,
            agent=AgentType.GEMINI,
        ))
    return sessions


def list_gemini_sessions(project_path: str, home: Optional[Path] = None) -> List[PastSession]:
    try:
        result = subprocess.run(["gemini", "--list-sessions"], cwd=project_path,
                                capture_output=True, text=True, errors="replace", timeout=15)
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug(f"gemini --list-sessions failed: {e}")
        return []
    if result.returncode != 0:
        return []
    return parse_gemini_session_list(result.stdout + result.stderr)


def list_opencode_sessions(project_path: str, home: Optional[Path] = None) -> List[PastSession]:
    session_dir = (home or Path.home()) / ".local" / "share" / "opencode" / "storage" / "session"
    if not session_dir.is_dir():
        return []

    sessions = []
    for path in session_dir.iterdir():
        if path.is_dir():
            continue
        try:
            modified = _mtime(path)
        except OSError:
            continue
        sessions.append(PastSession(
            session_id=path.stem,
            first_prompt=path.stem,
            last_prompt=path.stem,
            message_count=1,
            created_at=modified,
            updated_at=modified,
            agent=AgentType.OPENCODE,
        ))

    sessions.sort(key=lambda s: s.updated_at, reverse=True)
    return sessions


def list_amazonq_sessions(project_path: str, home: Optional[Path] = None) -> List[PastSession]:
    """Amazon Q resumes the last chat of the working directory by itself"""
    now = datetime.now()
    prompt = "Resume last session for this directory"
    return [PastSession(
        session_id="auto",
        first_prompt=prompt,
        last_prompt=prompt,
        message_count=0,
        created_at=now,
        updated_at=now,
        agent=AgentType.AMAZONQ,
    )]


LISTERS: Dict[AgentType, Callable[..., List[PastSession]]] = {
    AgentType.CLAUDE: list_claude_sessions,
    AgentType.CODEX: list_codex_sessions,
    AgentType.GEMINI: list_gemini_sessions,
    AgentType.OPENCODE: list_opencode_sessions,
    AgentType.AMAZONQ: list_amazonq_sessions,
}


def list_past_sessions(agent: AgentType, project_path: str,
                       home: Optional[Path] = None) -> List[PastSession]:
    """Resumable sessions of an agent for a project, most recent first"""
    lister = LISTERS.get(agent)
    if lister is None:
        return []
    try:
        return lister(project_path, home)
    except Exception as e:
        logger.warning(f"Failed to list {agent.value} sessions for {project_path}: {e}")
        return []
