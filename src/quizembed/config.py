"""Configuration management for quizembed.

Handles loading .quizembed.yaml files with directory traversal,
environment variable overrides, and the preprocessor table that
mdBook hands over in its context.
"""

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError

CONFIG_FILENAME = ".quizembed.yaml"
ENV_LOG_ENDPOINT = "QUIZEMBED_LOG_ENDPOINT"
ENV_FULLSCREEN = "QUIZEMBED_FULLSCREEN"

ON_ERROR_ABORT = "abort"
ON_ERROR_SKIP = "skip"
ON_ERROR_CHOICES = (ON_ERROR_ABORT, ON_ERROR_SKIP)

_TRUE_STRINGS = {"true", "yes", "on", "1"}
_FALSE_STRINGS = {"false", "no", "off", "0"}


@dataclass(frozen=True)
class PreprocessorConfig:
    """Run-wide settings shared by every document."""

    log_endpoint: str | None = None
    fullscreen: bool | None = None  # None = option not supplied
    on_error: str = ON_ERROR_ABORT  # "abort" or "skip"
    config_path: Path | None = None  # Path where config was loaded from

    def validate(self) -> None:
        """Validate configuration.

        Raises:
            ConfigError: If configuration is invalid.
        """
        if self.log_endpoint is not None and not self.log_endpoint.strip():
            raise ConfigError("log-endpoint cannot be empty")

        if self.on_error not in ON_ERROR_CHOICES:
            raise ConfigError(
                f"Invalid on-error value: {self.on_error}. "
                f"Must be one of: {', '.join(ON_ERROR_CHOICES)}"
            )


def parse_bool(value: Any, key: str) -> bool:
    """Interpret a boolean-compatible config value.

    Raises:
        ConfigError: If the value is not boolean-compatible.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ConfigError(f"'{key}' must be a boolean, got {value!r}")


def config_from_mapping(
    data: dict[str, Any] | None, config_path: Path | None = None
) -> PreprocessorConfig:
    """Build a configuration from a settings mapping.

    Unknown keys are ignored, so the mdBook ``[preprocessor.quiz]`` table
    (which also holds ``command``, ``renderers`` and ordering keys) can be
    passed as-is.

    Raises:
        ConfigError: If a known key has an invalid value.
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration must be a mapping, got {type(data).__name__}")

    log_endpoint = None
    if "log-endpoint" in data:
        log_endpoint = data["log-endpoint"]
        if not isinstance(log_endpoint, str):
            raise ConfigError(
                f"'log-endpoint' must be a string, got {log_endpoint!r}"
            )

    fullscreen = None
    if "fullscreen" in data:
        fullscreen = parse_bool(data["fullscreen"], "fullscreen")

    on_error = data.get("on-error", ON_ERROR_ABORT)
    if not isinstance(on_error, str):
        raise ConfigError(f"'on-error' must be a string, got {on_error!r}")

    config = PreprocessorConfig(
        log_endpoint=log_endpoint,
        fullscreen=fullscreen,
        on_error=on_error,
        config_path=config_path,
    )
    config.validate()
    return config


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find .quizembed.yaml by traversing up from start_path.

    Args:
        start_path: Directory to start searching from. Defaults to cwd.

    Returns:
        Path to config file if found, None otherwise.
    """
    if start_path is None:
        start_path = Path.cwd()
    else:
        start_path = Path(start_path).resolve()

    # If start_path is a file, use its parent directory
    if start_path.is_file():
        start_path = start_path.parent

    current = start_path
    while True:
        config_path = current / CONFIG_FILENAME
        if config_path.is_file():
            return config_path

        parent = current.parent
        if parent == current:
            # Reached root, no config found
            return None
        current = parent


def load_config(
    config_path: Path | None = None,
    start_path: Path | None = None,
    log_endpoint_override: str | None = None,
    fullscreen_override: bool | None = None,
) -> PreprocessorConfig:
    """Load configuration from file, environment, and overrides.

    Priority (highest to lowest):
    1. Function arguments (overrides)
    2. Environment variables (QUIZEMBED_LOG_ENDPOINT, QUIZEMBED_FULLSCREEN)
    3. Config file (.quizembed.yaml)
    4. Defaults

    Args:
        config_path: Explicit path to config file. If None, searches.
        start_path: Directory to start config file search from.
        log_endpoint_override: Override log endpoint from CLI argument.
        fullscreen_override: True supplies the fullscreen option, False
            removes it even if the file or environment set it.

    Returns:
        Loaded and validated configuration.
    """
    config = PreprocessorConfig()

    # Find or use explicit config file
    if config_path is not None:
        config_path = Path(config_path)
        if not config_path.is_file():
            raise ConfigError(f"Config file not found: {config_path}")
    else:
        config_path = find_config_file(start_path)

    if config_path is not None:
        config = _load_config_file(config_path)

    # Override with environment variables
    env_endpoint = os.environ.get(ENV_LOG_ENDPOINT)
    if env_endpoint:
        config = replace(config, log_endpoint=env_endpoint)

    env_fullscreen = os.environ.get(ENV_FULLSCREEN)
    if env_fullscreen:
        config = replace(config, fullscreen=parse_bool(env_fullscreen, ENV_FULLSCREEN))

    # Override with function arguments
    if log_endpoint_override is not None:
        config = replace(config, log_endpoint=log_endpoint_override)
    if fullscreen_override is not None:
        config = replace(config, fullscreen=True if fullscreen_override else None)

    config.validate()
    return config


def _load_config_file(config_path: Path) -> PreprocessorConfig:
    """Load configuration from a YAML file.

    Raises:
        ConfigError: If file cannot be read or parsed.
    """
    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {config_path}: {e}") from e

    return config_from_mapping(data, config_path=config_path)


def create_default_config(path: Path | None = None) -> Path:
    """Create a default .quizembed.yaml config file.

    Args:
        path: Directory to create config in. Defaults to cwd.

    Returns:
        Path to created config file.

    Raises:
        ConfigError: If file already exists or cannot be written.
    """
    if path is None:
        path = Path.cwd()
    else:
        path = Path(path)

    config_path = path / CONFIG_FILENAME

    if config_path.exists():
        raise ConfigError(f"Config file already exists: {config_path}")

    config_content = """# quizembed configuration

# Endpoint the quiz renderer posts answers to (or use QUIZEMBED_LOG_ENDPOINT)
# log-endpoint: "https://example.com/quiz-log"

# Render quizzes in fullscreen mode. Any value enables it.
# fullscreen: true

# What to do when a quiz cannot be expanded: "abort" the run,
# or "skip" the document and leave it unchanged
on-error: "abort"
"""

    try:
        config_path.write_text(config_content)
    except OSError as e:
        raise ConfigError(f"Cannot write config file: {e}") from e

    return config_path


def config_to_dict(config: PreprocessorConfig) -> dict[str, Any]:
    """Convert config to dictionary for display."""
    return {
        "log-endpoint": config.log_endpoint,
        "fullscreen": config.fullscreen,
        "on-error": config.on_error,
        "config_path": str(config.config_path) if config.config_path else None,
    }
