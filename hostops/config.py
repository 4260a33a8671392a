"""Configuration management for hostops.

Settings are resolved with the following precedence:
1. Values passed explicitly to ``HostOpsConfig``
2. A YAML configuration file (explicit path or one of DEFAULT_CONFIG_PATHS)
3. Environment variables (a ``.env`` file is loaded if present)
4. Default values
"""
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger("hostops.config")

# Load environment variables from .env file if it exists
load_dotenv()

DEFAULT_CONFIG_PATHS = [
    Path("/etc/hostops/config.yaml"),
    Path("~/.config/hostops/config.yaml").expanduser(),
    Path("hostops.yaml").absolute(),
]


def _env(name: str, default: str) -> str:
    return os.getenv(f"HOSTOPS_{name}", default)


class SSHConfig(BaseModel):
    """SSH connection configuration."""
    user: str = Field(
        default_factory=lambda: _env("SSH_USER", "root"),
        description="Default SSH username"
    )
    key_path: Optional[str] = Field(
        default_factory=lambda: _env("SSH_KEY_PATH", "") or None,
        validate_default=True,
        description="Path to SSH private key"
    )
    port: int = Field(
        default_factory=lambda: int(_env("SSH_PORT", "22")),
        description="SSH port number"
    )
    connect_timeout: int = Field(
        default_factory=lambda: int(_env("SSH_CONNECT_TIMEOUT", "10")),
        description="SSH connection timeout in seconds"
    )
    command_timeout: float = Field(
        default_factory=lambda: float(_env("SSH_COMMAND_TIMEOUT", "300")),
        description="Default remote command timeout in seconds"
    )
    retry_attempts: int = Field(
        default_factory=lambda: int(_env("SSH_RETRY_ATTEMPTS", "3")),
        description="Attempts for commands failing at the transport level"
    )
    retry_delay: float = Field(
        default_factory=lambda: float(_env("SSH_RETRY_DELAY", "1.0")),
        description="Initial delay between transport retries in seconds"
    )

    @field_validator('key_path')
    @classmethod
    def expand_key_path(cls, v: Optional[str]) -> Optional[str]:
        """Expand the user home directory in the key path."""
        return os.path.expanduser(v) if v else v


class TimeoutConfig(BaseModel):
    """Per-tool remote command timeouts in seconds."""
    probe: float = Field(default_factory=lambda: float(_env("TIMEOUT_PROBE", "30")))
    service: float = Field(default_factory=lambda: float(_env("TIMEOUT_SERVICE", "120")))
    ctr: float = Field(default_factory=lambda: float(_env("TIMEOUT_CTR", "60")))
    crictl: float = Field(default_factory=lambda: float(_env("TIMEOUT_CRICTL", "60")))
    package: float = Field(default_factory=lambda: float(_env("TIMEOUT_PACKAGE", "900")))


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = Field(
        default_factory=lambda: _env("LOG_LEVEL", "INFO").upper(),
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    format: str = Field(
        default_factory=lambda: _env("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
    )
    file: Optional[str] = Field(
        default_factory=lambda: _env("LOG_FILE", "") or None,
        description="Path to log file (if None, logs to stdout only)"
    )
    max_size_mb: int = Field(default=100, description="Maximum log file size in MB before rotation")
    backup_count: int = Field(default=5, description="Number of rotated log files to keep")


class HostOpsConfig(BaseModel):
    """Top-level hostops configuration."""
    model_config = ConfigDict(extra="ignore")

    ssh: SSHConfig = Field(default_factory=SSHConfig)
    timeouts: TimeoutConfig = Field(default_factory=TimeoutConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Optional[Union[str, Path]] = None) -> 'HostOpsConfig':
        """Load configuration from a YAML file and environment variables."""
        config_data: Dict[str, Any] = {}

        if config_path:
            config_path = Path(config_path).expanduser().absolute()
            if config_path.exists():
                config_data = cls._load_config_file(config_path)
            else:
                logger.warning(f"Config file {config_path} does not exist, using defaults")
        else:
            for path in DEFAULT_CONFIG_PATHS:
                path = path.expanduser().absolute()
                if path.exists():
                    config_data = cls._load_config_file(path)
                    break

        return cls.model_validate(config_data)

    @classmethod
    def _load_config_file(cls, path: Path) -> Dict[str, Any]:
        """Load configuration from a YAML file."""
        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load config from {path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring config file {path}: top level is not a mapping")
            return {}
        logger.debug(f"Loaded configuration from {path}")
        return data

    def save(self, path: Union[str, Path]) -> None:
        """Save configuration to a YAML file."""
        path = Path(path).expanduser().absolute()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            yaml.safe_dump(self.model_dump(exclude_none=True), f, default_flow_style=False, sort_keys=False)


_config: Optional[HostOpsConfig] = None


def get_config(config_path: Optional[Union[str, Path]] = None) -> HostOpsConfig:
    """Get or create the global configuration instance."""
    global _config
    if _config is None or config_path is not None:
        _config = HostOpsConfig.load(config_path)
    return _config


def set_config(config: Optional[HostOpsConfig]) -> None:
    """Set (or with None, reset) the global configuration instance."""
    global _config
    _config = config
