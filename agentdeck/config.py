#!/usr/bin/env python3
"""Configuration Loader Module

Loads the agentdeck configuration file. Files can be YAML or JSON and are
searched in the following order:
1. an explicit path (``--config``)
2. ./agentdeck.yaml
3. ~/.config/agentdeck/config.yaml

A missing file means defaults. Example:

    state_file: ~/.config/agentdeck/sessions.json
    capture_lines: 50
    poll_interval: 2.0
    log_level: INFO
    tmux_prefix: agentdeck_
    agents:
      claude:
        command: /opt/claude/bin/claude
        args: ["--model", "opus"]
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field

import yaml

from .agent_profiles import AgentType, split_command
from .errors import ConfigError, InvalidCommandError
from .session_lifecycle import DEFAULT_TMUX_PREFIX
from .session_store import DEFAULT_STATE_FILE
from .terminal_snapshot import DEFAULT_CAPTURE_LINES


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

DEFAULT_SEARCH_PATHS = [
    Path("agentdeck.yaml"),
    Path.home() / ".config" / "agentdeck" / "config.yaml",
]


@dataclass
class ManagerConfig:
    """Settings for the session manager."""

    state_file: str = str(DEFAULT_STATE_FILE)
    capture_lines: int = DEFAULT_CAPTURE_LINES
    poll_interval: float = 2.0
    log_level: str = "INFO"
    tmux_prefix: str = DEFAULT_TMUX_PREFIX
    agents: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    config_path: Optional[Path] = None


class ConfigLoader:
    """Finds, parses and validates the configuration file."""

    def __init__(self, search_paths: Optional[List[Path]] = None):
        """Initialize the loader.

        Args:
            search_paths: Candidate files tried in order when no explicit
                          path is given. Defaults to ./agentdeck.yaml then
                          ~/.config/agentdeck/config.yaml
        """
        self.logger = logging.getLogger(__name__)
        self.search_paths = DEFAULT_SEARCH_PATHS if search_paths is None else search_paths

    def find_config_file(self, explicit: Optional[str] = None) -> Optional[Path]:
        """Locate the configuration file.

        Raises:
            ConfigError: If an explicit path was given but does not exist
        """
        if explicit:
            path = Path(explicit).expanduser()
            if not path.exists():
                raise ConfigError(f"Configuration file not found: {path}")
            return path

        for path in self.search_paths:
            if path.exists():
                self.logger.debug(f"Found config file: {path}")
                return path
        return None

    def parse_config_data(self, config_data: str, file_path: Path) -> Dict[str, Any]:
        """Parse configuration text based on file extension.

        Raises:
            ConfigError: If the content is not a valid mapping
        """
        ext = file_path.suffix.lower()

        if ext == ".json":
            try:
                data = json.loads(config_data)
            except json.JSONDecodeError as e:
                raise ConfigError(f"Invalid JSON format: {e}")
        elif ext in (".yaml", ".yml"):
            try:
                data = yaml.safe_load(config_data)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML format: {e}")
        else:
            raise ConfigError(f"Unsupported file format: {ext}")

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration in {file_path} must be a mapping")
        return data

    def load_config(self, explicit: Optional[str] = None) -> ManagerConfig:
        """Load the configuration, falling back to defaults.

        Raises:
            ConfigError: If the file cannot be read or is invalid
        """
        config_path = self.find_config_file(explicit)
        if config_path is None:
            self.logger.debug("No configuration file found, using defaults")
            return ManagerConfig()

        try:
            content = config_path.read_text()
        except OSError as e:
            raise ConfigError(f"Error reading config file {config_path}: {e}")
        data = self.parse_config_data(content, config_path)

        defaults = ManagerConfig()
        try:
            config = ManagerConfig(
                state_file=str(data.get("state_file") or defaults.state_file),
                capture_lines=int(data.get("capture_lines", defaults.capture_lines)),
                poll_interval=float(data.get("poll_interval", defaults.poll_interval)),
                log_level=str(data.get("log_level", defaults.log_level)).upper(),
                tmux_prefix=str(data.get("tmux_prefix", defaults.tmux_prefix)),
                agents=data.get("agents") or {},
                config_path=config_path,
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid value in {config_path}: {e}")

        errors = self.validate_config(config)
        if errors:
            raise ConfigError(f"Invalid configuration {config_path}: " + "; ".join(errors))

        self.logger.info(f"Loaded configuration from {config_path}")
        return config

    def validate_config(self, config: ManagerConfig) -> List[str]:
        """Validate a configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if config.capture_lines <= 0:
            errors.append("capture_lines must be positive")
        if config.poll_interval <= 0:
            errors.append("poll_interval must be positive")
        if config.log_level not in LOG_LEVELS:
            errors.append(f"Invalid log_level: '{config.log_level}'. Must be one of {', '.join(LOG_LEVELS)}")
        if not config.tmux_prefix:
            errors.append("tmux_prefix must not be empty")

        if not isinstance(config.agents, dict):
            errors.append("agents must be a mapping of agent name to settings")
            return errors

        known = {agent.value for agent in AgentType}
        for name, settings in config.agents.items():
            if str(name).lower() not in known:
                errors.append(f"Unknown agent: '{name}'")
                continue
            if not isinstance(settings, dict):
                errors.append(f"Agent {name}: settings must be a mapping")
                continue
            args = settings.get("args")
            if args is not None and not isinstance(args, (str, list)):
                errors.append(f"Agent {name}: args must be a string or a list")
            for key in ("command", "args"):
                value = settings.get(key)
                if isinstance(value, str):
                    try:
                        split_command(value)
                    except InvalidCommandError as e:
                        errors.append(f"Agent {name}: {key}: {e}")

        return errors
