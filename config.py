"""
CircusRing - Configuration

Centralized configuration management.
Uses environment variables with sensible defaults.
"""
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


class Environment(Enum):
    """Deployment environments."""
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


@dataclass
class RingConfig:
    """Registry configuration."""
    # None means "follow Config.debug"
    debug_logs: Optional[bool] = field(
        default_factory=lambda: _env_flag("RING_DEBUG_LOGS") if "RING_DEBUG_LOGS" in os.environ else None
    )
    cue_master_tag: str = field(
        default_factory=lambda: os.getenv("RING_CUE_MASTER_TAG", "__default_ring_cue_master__")
    )


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    json_format: bool = field(default_factory=lambda: os.getenv("LOG_FORMAT", "console").lower() == "json")
    log_to_console: bool = True
    log_to_file: bool = field(default_factory=lambda: _env_flag("LOG_TO_FILE"))
    log_file_path: Path = field(default_factory=lambda: Path(os.getenv("LOG_FILE", "./logs/circus_ring.log")))
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5


@dataclass
class Config:
    """Main configuration class combining all sub-configs."""
    env: Environment = field(default_factory=lambda: Environment(os.getenv("ENVIRONMENT", "development")))
    debug: bool = field(default_factory=lambda: _env_flag("DEBUG"))

    ring: RingConfig = field(default_factory=RingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def ring_debug_logs(self) -> bool:
        """Whether registries log their operations by default."""
        if self.ring.debug_logs is None:
            return self.debug
        return self.ring.debug_logs

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "env": self.env.value,
            "debug": self.debug,
            "ring": {
                "debug_logs": self.ring_debug_logs,
                "cue_master_tag": self.ring.cue_master_tag,
            },
            "logging": {
                "level": self.logging.level,
                "json_format": self.logging.json_format,
                "log_to_file": self.logging.log_to_file,
            },
        }


# Singleton configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create configuration singleton."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reload_config() -> Config:
    """Reload configuration from environment."""
    global _config
    load_dotenv(override=True)
    _config = Config()
    return _config
