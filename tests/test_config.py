#!/usr/bin/env python3
"""Unit tests for the configuration loader module."""

import json
import pytest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from agentdeck.agent_profiles import AgentType, DEFAULT_REGISTRY
from agentdeck.config import ConfigLoader, ManagerConfig
from agentdeck.errors import ConfigError


class TestConfigLoader:
    """Test cases for ConfigLoader."""

    def test_default_search_paths(self):
        """Test that default search paths are set correctly."""
        loader = ConfigLoader()
        assert loader.search_paths[0] == Path("agentdeck.yaml")
        assert loader.search_paths[1] == Path.home() / ".config" / "agentdeck" / "config.yaml"

    def test_missing_file_gives_defaults(self, tmp_path):
        """Test that no config file means default settings."""
        loader = ConfigLoader(search_paths=[tmp_path / "absent.yaml"])
        config = loader.load_config()
        assert config == ManagerConfig()
        assert config.capture_lines == 50
        assert config.poll_interval == 2.0
        assert config.tmux_prefix == "agentdeck_"

    def test_explicit_missing_file_is_error(self, tmp_path):
        with pytest.raises(ConfigError):
            ConfigLoader(search_paths=[]).load_config(str(tmp_path / "nope.yaml"))

    def test_search_order(self, tmp_path):
        first = tmp_path / "first.yaml"
        second = tmp_path / "second.yaml"
        second.write_text("log_level: DEBUG\n")
        loader = ConfigLoader(search_paths=[first, second])
        assert loader.find_config_file() == second

        first.write_text("log_level: ERROR\n")
        assert loader.find_config_file() == first

    def test_load_yaml(self, tmp_path):
        """Test loading a YAML configuration."""
        config_file = tmp_path / "agentdeck.yaml"
        config_file.write_text(
            "state_file: /tmp/state.json\n"
            "capture_lines: 80\n"
            "poll_interval: 0.5\n"
            "log_level: debug\n"
            "tmux_prefix: deck_\n"
            "agents:\n"
            "  claude:\n"
            "    command: /opt/claude/bin/claude\n"
            "    args: [\"--model\", \"opus\"]\n"
        )

        config = ConfigLoader(search_paths=[]).load_config(str(config_file))

        assert config.state_file == "/tmp/state.json"
        assert config.capture_lines == 80
        assert config.poll_interval == 0.5
        assert config.log_level == "DEBUG"
        assert config.tmux_prefix == "deck_"
        assert config.config_path == config_file

        registry = DEFAULT_REGISTRY.with_overrides(config.agents)
        claude = registry.resolve(AgentType.CLAUDE)
        assert claude.command == "/opt/claude/bin/claude"
        assert claude.build_command() == "/opt/claude/bin/claude --model opus"

    def test_load_json(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"capture_lines": 30}))

        config = ConfigLoader(search_paths=[config_file]).load_config()
        assert config.capture_lines == 30

    def test_empty_yaml_is_defaults(self, tmp_path):
        config_file = tmp_path / "agentdeck.yaml"
        config_file.write_text("")
        config = ConfigLoader(search_paths=[config_file]).load_config()
        assert config.capture_lines == ManagerConfig().capture_lines

    def test_invalid_yaml(self, tmp_path):
        config_file = tmp_path / "agentdeck.yaml"
        config_file.write_text("agents: [unclosed\n")
        with pytest.raises(ConfigError):
            ConfigLoader(search_paths=[config_file]).load_config()

    def test_non_mapping_yaml(self, tmp_path):
        config_file = tmp_path / "agentdeck.yaml"
        config_file.write_text("- just\n- a list\n")
        with pytest.raises(ConfigError):
            ConfigLoader(search_paths=[config_file]).load_config()

    def test_unsupported_extension(self, tmp_path):
        config_file = tmp_path / "agentdeck.toml"
        config_file.write_text("x = 1")
        with pytest.raises(ConfigError):
            ConfigLoader(search_paths=[config_file]).load_config()

    def test_bad_value_type(self, tmp_path):
        config_file = tmp_path / "agentdeck.yaml"
        config_file.write_text("capture_lines: lots\n")
        with pytest.raises(ConfigError):
            ConfigLoader(search_paths=[config_file]).load_config()

    def test_config_error_is_value_error(self, tmp_path):
        config_file = tmp_path / "agentdeck.yaml"
        config_file.write_text("poll_interval: -1\n")
        with pytest.raises(ValueError):
            ConfigLoader(search_paths=[config_file]).load_config()


class TestValidateConfig:
    """Test cases for configuration validation."""

    def test_valid_defaults(self):
        assert ConfigLoader().validate_config(ManagerConfig()) == []

    def test_collects_all_errors(self):
        config = ManagerConfig(capture_lines=0, poll_interval=0, log_level="LOUD", tmux_prefix="")
        errors = ConfigLoader().validate_config(config)
        assert len(errors) == 4
        assert any("log_level" in e for e in errors)

    def test_unknown_agent(self):
        config = ManagerConfig(agents={"copilot": {"command": "gh copilot"}})
        errors = ConfigLoader().validate_config(config)
        assert errors == ["Unknown agent: 'copilot'"]

    def test_agent_settings_shape(self):
        config = ManagerConfig(agents={"gemini": "gemini-beta", "codex": {"args": 3}})
        errors = ConfigLoader().validate_config(config)
        assert "Agent gemini: settings must be a mapping" in errors
        assert "Agent codex: args must be a string or a list" in errors

    def test_unparseable_agent_command(self):
        config = ManagerConfig(agents={"claude": {"args": "--model 'x"}, "aider": {"command": "aider \\"}})
        errors = ConfigLoader().validate_config(config)
        assert len(errors) == 2
        assert errors[0].startswith("Agent claude: args: Cannot parse command")
        assert errors[1].startswith("Agent aider: command: Cannot parse command")

    def test_unparseable_agent_args_rejected_on_load(self, tmp_path):
        config_file = tmp_path / "agentdeck.yaml"
        config_file.write_text("agents:\n  claude:\n    args: \"--model 'x\"\n")
        with pytest.raises(ConfigError, match="Cannot parse command"):
            ConfigLoader(search_paths=[config_file]).load_config()
