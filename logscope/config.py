"""
Configuration — Centralized settings management

Config hierarchy (highest to lowest priority):
  1. Environment variables
  2. Project config (.logscope/config.yaml)
  3. User config (~/.logscope/config.yaml)
  4. Defaults

API tokens are NEVER stored in config files.
They must be provided via environment variables (BUILDKITE_API_TOKEN).
"""

import logging
import os
import yaml
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

from .core.cache import DEFAULT_TTL, parse_cache_ttl, DURATION_FULL
from .output import VALID_FORMATS, DEFAULT_FORMAT
from .services.sources import DEFAULT_API_URL, TOKEN_ENV


logger = logging.getLogger(__name__)

DEFAULT_CACHE_DIR = "~/.logscope/cache"
SOURCE_KINDS = ("buildkite", "directory")

# Environment variable -> (section, setting)
ENV_OVERRIDES = {
    "LOGSCOPE_CACHE_DIR": ("cache", "directory"),
    "LOGSCOPE_CACHE_TTL": ("cache", "ttl"),
    "LOGSCOPE_JOB_LOG_TOKEN_THRESHOLD": ("delivery", "token_threshold"),
    "LOGSCOPE_FORMAT": ("display", "format"),
    "LOGSCOPE_SOURCE": ("source", "kind"),
    "LOGSCOPE_SOURCE_DIR": ("source", "directory"),
    "LOGSCOPE_API_URL": ("source", "api_url"),
}


@dataclass
class CacheConfig:
    """Snapshot cache location and freshness."""
    directory: str = DEFAULT_CACHE_DIR
    ttl: str = DEFAULT_TTL  # Go-style duration, e.g. "30s", "5m"

    @property
    def path(self) -> Path:
        return Path(self.directory).expanduser()

    @property
    def ttl_seconds(self) -> float:
        return parse_cache_ttl(self.ttl)

    def validate(self) -> Optional[str]:
        """Validate config. Returns error message or None if valid."""
        if not self.directory:
            return "Cache directory must not be empty"
        if not _is_duration(self.ttl):
            return f"Invalid cache TTL '{self.ttl}'. Use a duration like 30s, 5m or 1h"
        return None


@dataclass
class DeliveryConfig:
    """Whole-log delivery. A threshold of 0 always returns logs inline."""
    token_threshold: int = 0

    def validate(self) -> Optional[str]:
        if self.token_threshold < 0:
            return f"Token threshold must be >= 0 (got {self.token_threshold})"
        return None


@dataclass
class DisplayConfig:
    """Display preferences."""
    format: str = DEFAULT_FORMAT.value

    def validate(self) -> Optional[str]:
        if self.format not in VALID_FORMATS:
            return f"Unknown format '{self.format}'. Valid: {', '.join(VALID_FORMATS)}"
        return None


@dataclass
class SourceConfig:
    """Where raw job logs are fetched from."""
    kind: str = "buildkite"  # "buildkite" | "directory"
    directory: str = ""
    api_url: str = DEFAULT_API_URL

    @property
    def api_token(self) -> Optional[str]:
        """API token from environment. Never stored."""
        return os.environ.get(TOKEN_ENV)

    def validate(self) -> Optional[str]:
        if self.kind not in SOURCE_KINDS:
            return f"Unknown source '{self.kind}'. Valid: {', '.join(SOURCE_KINDS)}"
        if self.kind == "directory" and not self.directory:
            return "Directory source requires source.directory"
        return None


@dataclass
class Config:
    """Application configuration."""
    cache: CacheConfig = field(default_factory=CacheConfig)
    delivery: DeliveryConfig = field(default_factory=DeliveryConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    source: SourceConfig = field(default_factory=SourceConfig)

    def validate(self) -> Optional[str]:
        """First error across all sections, or None."""
        for section in (self.cache, self.delivery, self.display, self.source):
            error = section.validate()
            if error:
                return error
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "cache": {
                "directory": self.cache.directory,
                "ttl": self.cache.ttl
            },
            "delivery": {
                "token_threshold": self.delivery.token_threshold
            },
            "display": {
                "format": self.display.format
            },
            "source": {
                "kind": self.source.kind,
                "directory": self.source.directory,
                "api_url": self.source.api_url
            }
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        """Create from dictionary."""
        cache_data = data.get("cache") or {}
        delivery_data = data.get("delivery") or {}
        display_data = data.get("display") or {}
        source_data = data.get("source") or {}

        return cls(
            cache=CacheConfig(
                directory=str(cache_data.get("directory", DEFAULT_CACHE_DIR)),
                ttl=str(cache_data.get("ttl", DEFAULT_TTL))
            ),
            delivery=DeliveryConfig(
                token_threshold=_to_int(delivery_data.get("token_threshold", 0))
            ),
            display=DisplayConfig(
                format=display_data.get("format", DEFAULT_FORMAT.value)
            ),
            source=SourceConfig(
                kind=source_data.get("kind", "buildkite"),
                directory=str(source_data.get("directory", "") or ""),
                api_url=source_data.get("api_url", DEFAULT_API_URL)
            )
        )


class ConfigManager:
    """
    Manages configuration loading and persistence.

    Hierarchy:
      1. Environment variables
      2. Project config (.logscope/config.yaml)
      3. User config (~/.logscope/config.yaml)
      4. Defaults
    """

    USER_CONFIG_DIR = Path.home() / ".logscope"
    USER_CONFIG_FILE = USER_CONFIG_DIR / "config.yaml"
    PROJECT_CONFIG_DIR = ".logscope"
    PROJECT_CONFIG_FILE = "config.yaml"

    def __init__(self, project_dir: Optional[Path] = None):
        self.project_dir = Path(project_dir) if project_dir else Path.cwd()
        self._config: Optional[Config] = None

    @property
    def project_config_path(self) -> Path:
        return self.project_dir / self.PROJECT_CONFIG_DIR / self.PROJECT_CONFIG_FILE

    @property
    def user_config_path(self) -> Path:
        return self.USER_CONFIG_FILE

    def load(self) -> Config:
        """Load configuration from all sources."""
        if self._config is not None:
            return self._config

        config_data: Dict[str, Any] = {}

        # Layer 1: User config
        config_data = self._merge(config_data, self._read_yaml(self.user_config_path))

        # Layer 2: Project config (higher priority)
        config_data = self._merge(config_data, self._read_yaml(self.project_config_path))

        # Layer 3: Environment overrides
        for env_key, (section, setting) in ENV_OVERRIDES.items():
            if os.environ.get(env_key):
                config_data.setdefault(section, {})[setting] = os.environ[env_key]

        self._config = Config.from_dict(config_data)
        return self._config

    def _read_yaml(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            return {}
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Ignoring malformed config %s: %s", path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring config %s: top level must be a mapping", path)
            return {}

        # A section key with no body loads as None
        sections = {}
        for name, value in data.items():
            if isinstance(value, dict):
                sections[name] = value
            elif value is not None:
                logger.warning("Ignoring section %r in %s: expected a mapping", name, path)
        return sections

    def save_project(self, config: Config):
        """Save configuration to project config file."""
        self.project_config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.project_config_path, 'w') as f:
            yaml.dump(config.to_dict(), f, default_flow_style=False)

        self._config = config

    def save_user(self, config: Config):
        """Save configuration to user config file."""
        self.user_config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.user_config_path, 'w') as f:
            yaml.dump(config.to_dict(), f, default_flow_style=False)

        self._config = config

    def set(self, key: str, value: str, scope: str = "project") -> Optional[str]:
        """
        Set a configuration value.

        Args:
            key: Dot-separated key (e.g., "delivery.token_threshold")
            value: Value to set
            scope: "project" or "user"

        Returns:
            Error message or None if successful
        """
        config = self.load()

        parts = key.split(".")
        if len(parts) != 2:
            return f"Invalid key format: {key}. Use 'section.setting' (e.g., 'cache.ttl')"

        section, setting = parts

        if section == "cache":
            if setting == "directory":
                config.cache.directory = value
            elif setting == "ttl":
                config.cache.ttl = value
            else:
                return f"Unknown cache setting: {setting}. Valid: directory, ttl"
            error = config.cache.validate()

        elif section == "delivery":
            if setting == "token_threshold":
                try:
                    config.delivery.token_threshold = int(value)
                except ValueError:
                    return f"Token threshold must be an integer (got '{value}')"
            else:
                return f"Unknown delivery setting: {setting}. Valid: token_threshold"
            error = config.delivery.validate()

        elif section == "display":
            if setting == "format":
                config.display.format = value
            else:
                return f"Unknown display setting: {setting}. Valid: format"
            error = config.display.validate()

        elif section == "source":
            if setting == "kind":
                config.source.kind = value
            elif setting == "directory":
                config.source.directory = value
            elif setting == "api_url":
                config.source.api_url = value
            else:
                return f"Unknown source setting: {setting}. Valid: kind, directory, api_url"
            error = config.source.validate()

        else:
            return f"Unknown section: {section}. Valid: cache, delivery, display, source"

        if error:
            # Discard the rejected value on next load
            self._config = None
            return error

        if scope == "project":
            self.save_project(config)
        else:
            self.save_user(config)

        return None

    def get(self, key: str) -> Optional[str]:
        """Get a configuration value."""
        parts = key.split(".")
        if len(parts) != 2:
            return None

        section, setting = parts
        values = self.load().to_dict().get(section, {})
        if setting not in values:
            return None
        return str(values[setting])

    def _merge(self, base: Dict, override: Dict) -> Dict:
        """Deep merge two dicts, override wins."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge(result[key], value)
            else:
                result[key] = value
        return result

    def display(self) -> str:
        """Format config for display."""
        config = self.load()

        token_status = "Set" if config.source.api_token else "Missing"
        lines = [
            "Configuration:",
            "",
            "Cache:",
            f"  Directory: {config.cache.path}",
            f"  TTL: {config.cache.ttl}",
            "",
            "Delivery:",
            f"  Token threshold: {config.delivery.token_threshold}"
            + (" (always inline)" if config.delivery.token_threshold <= 0 else ""),
            "",
            "Display:",
            f"  Format: {config.display.format}",
            "",
            "Source:",
            f"  Kind: {config.source.kind}",
        ]

        if config.source.kind == "directory":
            lines.append(f"  Directory: {config.source.directory}")
        else:
            lines.append(f"  API URL: {config.source.api_url}")
            lines.append(f"  API Token: {token_status}")
            if not config.source.api_token:
                lines.append(f"  (Set {TOKEN_ENV} environment variable)")

        lines.extend([
            "",
            "Config files:",
            f"  User: {self.user_config_path}",
            f"  Project: {self.project_config_path}",
        ])

        return "\n".join(lines)


def _is_duration(value: str) -> bool:
    text = str(value).strip()
    if DURATION_FULL.match(text):
        return True
    try:
        return float(text) >= 0
    except ValueError:
        return False


def _to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-integer token threshold %r", value)
        return 0


# Convenience function
def get_config(project_dir: Optional[Path] = None) -> Config:
    """Load configuration for a project."""
    return ConfigManager(project_dir).load()
