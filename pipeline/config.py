"""Configuration management for the resume review workflow.

Loads configuration from:
1. config.toml (defaults)
2. Environment variables (overrides)
"""

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


@dataclass
class WorkflowConfig:
    """Step behaviour flags.

    Every mock flag stays on unless explicitly set to "false", which is how
    the hosted demo treats its MOCK_* variables.
    """

    mock_sources: bool = True
    mock_approval: bool = True
    mock_notifications: bool = True
    mock_llm: bool = True
    # Seconds before an unresolved approval waitpoint expires (0 = never)
    approval_timeout: float = 86400.0
    notify_webhook_url: str = ""
    notify_channel: str = "#recruiting"


@dataclass
class RetryConfig:
    """Retry policy for idempotent steps."""

    max_attempts: int = 1
    initial_delay: float = 0.5
    backoff_factor: float = 2.0
    max_delay: float = 10.0


@dataclass
class PipelineConfig:
    """Pipeline execution configuration."""

    artifacts_dir: str = "artifacts"
    log_level: str = "INFO"
    retry: RetryConfig = field(default_factory=RetryConfig)


@dataclass
class LLMConfig:
    """LLM backend configuration (only used when mock_llm is off)."""

    backend: str = "auto"  # "auto", "openai"
    model: str = "gpt-4o-mini"
    timeout: int = 120
    temperature: float = 0.0


@dataclass
class StorageConfig:
    """Profile store configuration."""

    store_dir: str = ""  # empty = keep profiles in memory only


@dataclass
class ServerConfig:
    """HTTP server configuration."""

    host: str = "127.0.0.1"
    port: int = 8000


@dataclass
class Config:
    """Main configuration container."""

    workflow: WorkflowConfig = field(default_factory=WorkflowConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Create Config from dictionary."""
        workflow_data = dict(data.get("workflow", {}))
        pipeline_data = dict(data.get("pipeline", {}))
        llm_data = data.get("llm", {})
        storage_data = data.get("storage", {})
        server_data = data.get("server", {})

        # Handle nested retry config
        retry_data = pipeline_data.pop("retry", {})
        retry_config = RetryConfig(**retry_data) if retry_data else RetryConfig()

        for key in ("mock_sources", "mock_approval", "mock_notifications", "mock_llm"):
            if key in workflow_data:
                workflow_data[key] = _as_flag(workflow_data[key])

        return cls(
            workflow=WorkflowConfig(**workflow_data),
            pipeline=PipelineConfig(**pipeline_data, retry=retry_config),
            llm=LLMConfig(**llm_data),
            storage=StorageConfig(**storage_data),
            server=ServerConfig(**server_data),
        )


def find_config_file() -> Path | None:
    """Find config.toml in current or parent directories.

    Returns:
        Path to config.toml or None if not found.
    """
    current = Path.cwd()

    for directory in [current, *current.parents]:
        config_path = directory / "config.toml"
        if config_path.exists():
            return config_path

    return None


def load_config(config_path: Path | str | None = None) -> Config:
    """Load configuration from file and environment.

    Args:
        config_path: Optional explicit path to config.toml

    Returns:
        Config object with merged settings.
    """
    # Start with defaults
    config_data: dict[str, Any] = {}

    # Load from file if available
    if config_path is None:
        config_path = find_config_file()

    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            with open(path, "rb") as f:
                config_data = tomllib.load(f)

    # Apply environment variable overrides
    env_overrides = {
        "workflow": {
            "mock_sources": os.getenv("MOCK_SOURCES"),
            "mock_approval": os.getenv("MOCK_APPROVAL"),
            "mock_notifications": os.getenv("MOCK_NOTIFICATIONS"),
            "mock_llm": os.getenv("MOCK_LLM"),
            "approval_timeout": _float_or_none(os.getenv("APPROVAL_TIMEOUT")),
            "notify_webhook_url": os.getenv("NOTIFY_WEBHOOK_URL"),
        },
        "pipeline": {
            "artifacts_dir": os.getenv("ARTIFACTS_DIR"),
            "log_level": os.getenv("LOG_LEVEL"),
        },
        "llm": {
            "backend": os.getenv("LLM_BACKEND"),
            "model": os.getenv("LLM_MODEL"),
            "timeout": _int_or_none(os.getenv("LLM_TIMEOUT")),
        },
        "storage": {
            "store_dir": os.getenv("PROFILE_STORE_DIR"),
        },
    }

    # Merge env overrides (only non-None values)
    for section, values in env_overrides.items():
        if section not in config_data:
            config_data[section] = {}
        for key, value in values.items():
            if value is not None:
                config_data[section][key] = value

    return Config.from_dict(config_data)


def _as_flag(value: Any) -> bool:
    """Interpret a mock flag: only an explicit false turns it off."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() != "false"


def _int_or_none(value: str | None) -> int | None:
    """Convert string to int, or return None."""
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _float_or_none(value: str | None) -> float | None:
    """Convert string to float, or return None."""
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


# Global config instance (lazy loaded)
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance.

    Returns:
        Config object (loaded once, cached).
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> Config:
    """Force reload of configuration.

    Returns:
        Fresh Config object.
    """
    global _config
    _config = load_config()
    return _config
