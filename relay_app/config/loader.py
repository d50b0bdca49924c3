"""Configuration loader with 4-tier parameter precedence."""

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Callable, Optional

import structlog
import yaml

from .defaults import RelayConfig, get_default_config

logger = structlog.get_logger(__name__)

CONFIG_FILENAME = "relay.yaml"


def _split_codes(value: str) -> list[str]:
    return [code.strip() for code in value.split(",") if code.strip()]


# Environment variable -> (section, key, converter)
ENV_OVERRIDES: dict[str, tuple[str, str, Callable[[str], Any]]] = {
    "BOT_TOKEN": ("notification", "bot_token", str),
    "RELAY_NOTIFIER": ("notification", "method", str),
    "LEADER_USERNAME": ("leader", "username", str),
    "RELAY_SIGNING_SECRET": ("auth", "secret", str),
    "RELAY_ACCEPTED_REFERRALS": ("referral", "accepted_codes", _split_codes),
    "RELAY_DB_PATH": ("store", "db_path", str),
    "RELAY_WEBHOOK_SECRET": ("webhook", "secret_token", str),
    "RELAY_WEBHOOK_RECENT_UPDATES": ("webhook", "recent_updates", int),
    "RELAY_HOST": ("server", "host", str),
    "RELAY_PORT": ("server", "port", int),
    "LOG_LEVEL": ("logging", "level", str),
}


@dataclass(frozen=True)
class ConfigLoader:
    """Manages configuration loading with 4-tier precedence."""

    config_dir: Path
    defaults: RelayConfig
    environ: Mapping[str, str]

    @classmethod
    def create(
        cls,
        config_dir: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None
    ) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        return cls(
            config_dir=Path(config_dir),
            defaults=get_default_config(),
            environ=os.environ if environ is None else environ,
        )

    def load_file_config(self) -> dict[str, Any]:
        """Load overrides from the YAML config file, if present."""
        config_file = self.config_dir / CONFIG_FILENAME

        if not config_file.exists():
            return {}

        with open(config_file) as f:
            file_config = yaml.safe_load(f)

        return file_config or {}

    def load_env_config(self) -> dict[str, Any]:
        """Collect overrides from environment variables."""
        config: dict[str, Any] = {}

        for env_name, (section, key, convert) in ENV_OVERRIDES.items():
            raw = self.environ.get(env_name)
            if raw is None or raw == "":
                continue
            try:
                config.setdefault(section, {})[key] = convert(raw)
            except ValueError:
                logger.warning("Ignoring unparseable environment override", variable=env_name)

        return config

    def merge_config(self, overrides: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """
        Merge configuration with 4-tier precedence.

        Priority order:
        1. Explicit overrides (highest priority)
        2. Environment variables
        3. YAML config file
        4. Dataclass defaults (lowest priority)
        """
        config = self._dataclass_to_dict(self.defaults)

        config = self._deep_merge(config, self.load_file_config())
        config = self._deep_merge(config, self.load_env_config())

        if overrides:
            config = self._deep_merge(config, overrides)

        return config

    def load(self, overrides: Optional[dict[str, Any]] = None) -> RelayConfig:
        """Merge all tiers and build the typed configuration."""
        return build_config(self.merge_config(overrides))

    def _dataclass_to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary."""
        if hasattr(obj, '__dataclass_fields__'):
            result = {}
            for field_name in obj.__dataclass_fields__:
                value = getattr(obj, field_name)
                if hasattr(value, '__dataclass_fields__'):
                    result[field_name] = self._dataclass_to_dict(value)
                elif isinstance(value, tuple):
                    result[field_name] = list(value)
                else:
                    result[field_name] = value
            return result
        return obj  # type: ignore[no-any-return]

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result


def build_config(config: dict[str, Any]) -> RelayConfig:
    """Build a RelayConfig from a merged configuration dictionary."""
    sections = {}

    for section in fields(RelayConfig):
        section_cls = section.type
        values = dict(config.get(section.name) or {})
        known = {f.name for f in fields(section_cls)}

        unknown = set(values) - known
        if unknown:
            logger.warning("Ignoring unknown config keys", section=section.name, keys=sorted(unknown))

        kwargs = {key: value for key, value in values.items() if key in known}
        if section.name == "referral" and "accepted_codes" in kwargs:
            kwargs["accepted_codes"] = tuple(kwargs["accepted_codes"])

        sections[section.name] = section_cls(**kwargs)

    return RelayConfig(**sections)
