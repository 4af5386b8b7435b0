"""Configuration."""

__version__ = "0.1.0"

import json
import logging
import os
import socket
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

from sacana.domain.errors import ConfigError

load_dotenv()


def _split_channels(value: str) -> List[str]:
    return [name.strip().lstrip("#") for name in value.split(",") if name.strip()]


@dataclass
class SlackConfig:
    api_token: str = ""
    channels: List[str] = field(default_factory=list)


@dataclass
class AccountConfig:
    public_key_uri_format: str = ""
    host_list_uri: str = ""
    certificate_file: Optional[str] = None


@dataclass
class AppConfig:
    """Typed runtime configuration."""

    hostname: str = ""
    log_level: str = "INFO"
    slack: SlackConfig = field(default_factory=SlackConfig)
    accounts: AccountConfig = field(default_factory=AccountConfig)

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create AppConfig from environment variables (and ``.env``)."""
        config = cls(
            hostname=os.getenv("SACANA_HOSTNAME", "").strip() or socket.gethostname(),
            log_level=os.getenv("SACANA_LOG_LEVEL", "INFO").strip().upper(),
            slack=SlackConfig(
                api_token=os.getenv("SLACK_API_TOKEN", "").strip(),
                channels=_split_channels(os.getenv("SACANA_CHANNELS", "")),
            ),
            accounts=AccountConfig(
                public_key_uri_format=os.getenv("SACANA_PUBLIC_KEY_URI_FORMAT", "").strip(),
                host_list_uri=os.getenv("SACANA_HOST_LIST_URI", "").strip(),
                certificate_file=os.getenv("SACANA_CERTIFICATE_FILE", "").strip() or None,
            ),
        )
        config.validate()
        return config

    @classmethod
    def from_file(cls, path: str) -> "AppConfig":
        """Load a ``settings.json`` file.

        Keys: ``SLACK_API_TOKEN``, ``hostname`` (optional), ``channels``,
        ``public_key_uri_format``, ``host_list_uri``, ``certificate_file``
        (optional).
        """
        try:
            with open(path, encoding="utf-8") as f:
                settings = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigError(f"can't read settings file {path}: {e}") from e
        if not isinstance(settings, dict):
            raise ConfigError(f"settings file {path} must hold a JSON object")

        channels = settings.get("channels", [])
        if not isinstance(channels, list) or not all(isinstance(c, str) for c in channels):
            raise ConfigError("`channels` must be a list of channel names")

        config = cls(
            hostname=settings.get("hostname") or socket.gethostname(),
            log_level=os.getenv("SACANA_LOG_LEVEL", "INFO").strip().upper(),
            slack=SlackConfig(
                api_token=settings.get("SLACK_API_TOKEN", ""),
                channels=list(channels),
            ),
            accounts=AccountConfig(
                public_key_uri_format=settings.get("public_key_uri_format", ""),
                host_list_uri=settings.get("host_list_uri", ""),
                certificate_file=settings.get("certificate_file"),
            ),
        )
        config.validate()
        return config

    def validate(self) -> None:
        if not self.slack.api_token:
            raise ConfigError("SLACK_API_TOKEN is not set")
        if not self.accounts.host_list_uri:
            raise ConfigError("host list URI is not set")
        if self.accounts.public_key_uri_format.count("{}") != 1:
            raise ConfigError("public key URI format must contain exactly one `{}`")
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ConfigError(f"unknown log level {self.log_level!r}")


def load_config() -> AppConfig:
    """``SACANA_SETTINGS`` selects a settings.json file; otherwise read the environment."""
    settings_path = os.getenv("SACANA_SETTINGS", "").strip()
    if settings_path:
        return AppConfig.from_file(settings_path)
    return AppConfig.from_env()
