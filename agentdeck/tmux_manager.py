"""
Tmux Manager Module
Handles all tmux operations for one tracked session
"""

import subprocess
import logging
import time
from typing import Optional, List
from dataclasses import dataclass


@dataclass
class TmuxWindow:
    """Represents a tmux window"""
    index: int
    active: bool
    dead: bool
    name: Optional[str] = None


class TmuxManager:
    """Manages a single tmux session and its windows"""

    def __init__(self, session_name: str, timeout: Optional[float] = None):
        self.session_name = session_name
        self.timeout = timeout
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def target(self, window_index: Optional[int] = None) -> str:
        if window_index is None:
            return self.session_name
        return f"{self.session_name}:{window_index}"

    def session_exists(self) -> bool:
        """Check if tmux session exists"""
        try:
            result = self._run_command(["tmux", "has-session", "-t", self.session_name],
                                       check=False, capture_output=True)
            return result.returncode == 0
        except (OSError, subprocess.SubprocessError):
            return False

    def create_session(self, start_dir: str, command: str,
                       window_name: Optional[str] = None,
                       width: Optional[int] = None, height: Optional[int] = None) -> bool:
        """Create a detached tmux session running command in start_dir

        Args:
            start_dir: Working directory of the first window
            command: Shell command line to run in window 0
            window_name: Optional name for window 0
            width: Optional initial width
            height: Optional initial height
        """
        try:
            cmd = ["tmux", "new-session", "-d", "-s", self.session_name, "-c", start_dir]
            if window_name:
                cmd.extend(["-n", window_name])
            if width and height:
                cmd.extend(["-x", str(width), "-y", str(height)])
            cmd.append(command)
            self._run_command(cmd, capture_output=True, text=True)

            # Keep dead panes around so they can be respawned in place
            self._run_command(["tmux", "set-option", "-t", self.session_name,
                               "remain-on-exit", "on"], check=False)

            # Small delay to ensure session is fully initialized
            time.sleep(0.1)

            if not self.session_exists():
                self.logger.error(f"Failed to create tmux session '{self.session_name}'")
                return False

            self.logger.info(f"Created tmux session '{self.session_name}' in {start_dir}")
            return True

        except subprocess.CalledProcessError as e:
            self.logger.error(f"Failed to create tmux session: {e}")
            if getattr(e, 'stderr', None):
                self.logger.error(f"stderr: {e.stderr}")
            return False
        except OSError as e:
            self.logger.error(f"Failed to run tmux: {e}")
            return False

    def new_window(self, start_dir: str, command: str, name: Optional[str] = None) -> Optional[int]:
        """Open a new window running command and return its index"""
        try:
            cmd = ["tmux", "new-window", "-d", "-P", "-F", "#{window_index}",
                   "-t", f"{self.session_name}:", "-c", start_dir]
            if name:
                cmd.extend(["-n", name])
            cmd.append(command)
            result = self._run_command(cmd, capture_output=True, text=True)
            index = int(result.stdout.strip())
            # remain-on-exit is per window; the session-level set only covered window 0
            self.set_option("remain-on-exit", "on", index)
            self.logger.info(f"Opened window {index} in '{self.session_name}'")
            return index
        except (subprocess.CalledProcessError, OSError, ValueError) as e:
            self.logger.error(f"Failed to open window in '{self.session_name}': {e}")
            return None

    def kill_session(self) -> bool:
        """Kill the tmux session"""
        try:
            self._run_command(["tmux", "kill-session", "-t", self.session_name],
                              capture_output=True)
            self.logger.info(f"Killed tmux session '{self.session_name}'")
            return True

        except (subprocess.CalledProcessError, OSError):
            return False

    def capture_pane(self, window_index: int = 0, history_limit: int = 0,
                     escape_sequences: bool = False) -> Optional[str]:
        """Capture current content of a window's active pane

        Args:
            window_index: Index of the window to capture
            history_limit: Lines of scrollback to include (0 = visible only)
            escape_sequences: Keep colour escape sequences in the output
        """
        try:
            cmd = ["tmux", "capture-pane", "-t", self.target(window_index), "-p"]
            if escape_sequences:
                cmd.append("-e")

            if history_limit != 0:
                cmd.extend(["-S", str(-abs(history_limit))])

            result = self._run_command(cmd, capture_output=True, text=True)
            return result.stdout

        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError) as e:
            self.logger.debug(f"Failed to capture window {window_index}: {e}")
            return None

    def list_windows(self) -> List[TmuxWindow]:
        """List all windows in session"""
        try:
            result = self._run_command([
                "tmux", "list-windows", "-t", self.session_name,
                "-F", "#{window_index}:#{window_active}:#{pane_dead}:#{window_name}"
            ], capture_output=True, text=True)

            windows = []
            for line in result.stdout.strip().split('\n'):
                if line:
                    parts = line.split(':', 3)
                    if len(parts) >= 3:
                        windows.append(TmuxWindow(
                            index=int(parts[0]),
                            active=parts[1] == '1',
                            dead=parts[2] == '1',
                            name=parts[3] if len(parts) > 3 else None
                        ))

            return windows

        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError, ValueError):
            return []

    def respawn_window(self, window_index: int, command: Optional[str] = None) -> bool:
        """Restart the process of a dead window in place"""
        try:
            cmd = ["tmux", "respawn-window", "-k", "-t", self.target(window_index)]
            if command:
                cmd.append(command)
            self._run_command(cmd, capture_output=True, text=True)
            self.logger.info(f"Respawned window {window_index} of '{self.session_name}'")
            return True

        except (subprocess.CalledProcessError, OSError) as e:
            self.logger.error(f"Failed to respawn window {window_index}: {e}")
            return False

    def send_keys(self, keys: str, window_index: int = 0, literal: bool = False) -> bool:
        """Send keys to a window. With literal=True the text is typed as-is."""
        try:
            cmd = ["tmux", "send-keys", "-t", self.target(window_index)]
            if literal:
                cmd.append("-l")
            cmd.append(keys)
            self._run_command(cmd)
            self.logger.debug(f"Sent keys to window {window_index}: {keys[:50]}")
            return True

        except (subprocess.CalledProcessError, OSError) as e:
            self.logger.error(f"Failed to send keys to window {window_index}: {e}")
            return False

    def send_to_window(self, text: str, window_index: int = 0) -> bool:
        """Type text literally and press Enter

        Text and Enter are sent as separate commands; the short pause keeps
        the agent from treating Enter as part of a paste.
        """
        if not self.send_keys(text, window_index, literal=True):
            return False
        time.sleep(0.05)
        return self.send_keys("Enter", window_index)

    def rename_window(self, name: str, window_index: int = 0) -> bool:
        try:
            self._run_command(["tmux", "rename-window", "-t", self.target(window_index), name])
            return True
        except (subprocess.CalledProcessError, OSError) as e:
            self.logger.error(f"Failed to rename window {window_index}: {e}")
            return False

    def set_option(self, option: str, value: str, window_index: Optional[int] = None) -> bool:
        """Set a session option (or window option when window_index is given)"""
        cmd = ["tmux", "set-option"]
        if window_index is not None:
            cmd.append("-w")
        cmd.extend(["-t", self.target(window_index), option, value])
        try:
            result = self._run_command(cmd, check=False, capture_output=True, text=True)
            return result.returncode == 0
        except OSError:
            return False

    def configure_resize(self) -> None:
        """Let the session follow the size of whichever client attaches

        Failures are ignored; resize behaviour is cosmetic.
        """
        self.set_option("window-size", "largest")
        self.set_option("aggressive-resize", "on")
        self.set_option("focus-events", "on")
        for hook in ("client-focus-in", "pane-focus-in"):
            try:
                self._run_command(["tmux", "set-hook", "-t", self.session_name, hook,
                                   "resize-window -A"], check=False, capture_output=True)
            except OSError:
                pass

    def resize_window(self, width: int, height: int, window_index: int = 0) -> bool:
        try:
            self._run_command(["tmux", "resize-window", "-t", self.target(window_index),
                               "-x", str(width), "-y", str(height)], capture_output=True, text=True)
            return True
        except (subprocess.CalledProcessError, OSError) as e:
            self.logger.error(f"Failed to resize window {window_index}: {e}")
            return False

    def attach_session(self) -> int:
        """Attach the current terminal to the session (blocks until detach)"""
        self.logger.debug(f"Attaching to '{self.session_name}'")
        result = subprocess.run(["tmux", "attach-session", "-t", self.session_name], check=False)
        return result.returncode

    def _run_command(self, cmd: List[str], check: bool = True,
                     capture_output: bool = False, text: bool = False) -> subprocess.CompletedProcess:
        """Run command with error handling"""
        self.logger.debug(f"Executing command: {' '.join(cmd)}")
        result = subprocess.run(cmd, check=check, capture_output=capture_output, text=text,
                                timeout=self.timeout)
        if result.returncode != 0 and capture_output:
            self.logger.debug(f"Command failed with stdout: {result.stdout}")
            self.logger.debug(f"Command failed with stderr: {result.stderr}")
        return result
