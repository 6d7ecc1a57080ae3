"""
Configuration helpers for Anti-Ghost-Ping.
Reads a YAML config file and lets environment variables override it.

Environment variables:
    ANTIGHOST_HOME: Application directory (default: ~/.antighost)
    ANTIGHOST_CONFIG: Config file path (default: $ANTIGHOST_HOME/config.yaml)
    ANTIGHOST_CLIENT_ID: Discord application id
    ANTIGHOST_CLIENT_SECRET: Discord application secret
    ANTIGHOST_DB_PATH: SQLite database path
    ANTIGHOST_PENDING_TTL_HOURS: Age after which unanswered mentions are dropped
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import find_dotenv, load_dotenv

from .exceptions import ConfigurationError
from .log_manager.manager import antighost_home


DEFAULT_REDIRECT_URI = "https://discord.com"
DEFAULT_SCOPES = ["identify", "rpc", "messages.read", "rpc.notifications.read"]

CONFIG_TEMPLATE = """\
# Anti-Ghost-Ping configuration
# Create an application at https://discord.com/developers/applications,
# add the redirect URI below to it, then fill in its id and secret.
client_id: ""
client_secret: ""
redirect_uri: "https://discord.com"

# Drop mentions that were neither edited nor deleted after this many hours
pending_ttl_hours: 24
"""


@dataclass
class Config:
    """
    Static configuration, read once at startup.

    Attributes:
        client_id: Discord application id
        client_secret: Discord application secret
        redirect_uri: Redirect URI registered for the application
        scopes: OAuth2 scopes requested on authorization
        db_path: SQLite file backing sessions and pending mentions
        pending_ttl_hours: Retention of pending mentions
        sweep_interval_seconds: Period of the eviction sweep
    """
    client_id: str
    client_secret: str
    redirect_uri: str = DEFAULT_REDIRECT_URI
    scopes: List[str] = field(default_factory=lambda: list(DEFAULT_SCOPES))
    db_path: str = ""
    pending_ttl_hours: float = 24.0
    sweep_interval_seconds: float = 3600.0

    def __post_init__(self):
        if not self.db_path:
            self.db_path = str(antighost_home() / 'antighost.sqlite')

    @property
    def pending_ttl_seconds(self) -> float:
        return self.pending_ttl_hours * 3600

    def credentials(self, access_token: Optional[str] = None) -> Dict[str, Any]:
        """Login credentials for the RPC transport"""
        creds = {
            'client_id': self.client_id,
            'client_secret': self.client_secret,
            'scopes': list(self.scopes),
            'redirect_uri': self.redirect_uri,
        }
        if access_token:
            creds['access_token'] = access_token
        return creds

    @staticmethod
    def default_path() -> Path:
        path = os.environ.get('ANTIGHOST_CONFIG')
        if path:
            return Path(path).expanduser()
        return antighost_home() / 'config.yaml'

    @staticmethod
    def write_template(path: Path) -> Path:
        """Write the commented template config (never overwrites)"""
        path = Path(path)
        if not path.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(CONFIG_TEMPLATE, encoding='utf-8')
        return path

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """
        Build a Config, validating the required fields.

        Raises:
            ConfigurationError: client_id or client_secret missing, or a
                numeric field is not a positive number
        """
        missing = [key for key in ('client_id', 'client_secret') if not data.get(key)]
        if missing:
            raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")

        try:
            config = cls(
                client_id=str(data['client_id']),
                client_secret=str(data['client_secret']),
                redirect_uri=data.get('redirect_uri') or DEFAULT_REDIRECT_URI,
                scopes=list(data.get('scopes') or DEFAULT_SCOPES),
                db_path=str(data.get('db_path') or ''),
                pending_ttl_hours=float(data.get('pending_ttl_hours', 24)),
                sweep_interval_seconds=float(data.get('sweep_interval_seconds', 3600)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid configuration value: {e}") from e

        for key in ('pending_ttl_hours', 'sweep_interval_seconds'):
            if getattr(config, key) <= 0:
                raise ConfigurationError(f"{key} must be positive, got {getattr(config, key)}")
        return config

    @staticmethod
    def env_overrides() -> Dict[str, Any]:
        """Configuration values set through ANTIGHOST_* environment variables"""
        mapping = {
            'ANTIGHOST_CLIENT_ID': 'client_id',
            'ANTIGHOST_CLIENT_SECRET': 'client_secret',
            'ANTIGHOST_REDIRECT_URI': 'redirect_uri',
            'ANTIGHOST_DB_PATH': 'db_path',
            'ANTIGHOST_PENDING_TTL_HOURS': 'pending_ttl_hours',
        }
        return {key: os.environ[var] for var, key in mapping.items() if os.environ.get(var)}

    @classmethod
    def load(cls, path: Optional[Path] = None, create_missing: bool = True) -> "Config":
        """
        Load the config file, then apply environment overrides.

        A missing file is fatal unless the environment alone supplies the
        credentials. When it is fatal, the template is written first so the
        user has something to fill in.

        Args:
            path: Config file (default: Config.default_path())
            create_missing: Write the template when the file does not exist

        Raises:
            ConfigurationError: No usable configuration was found
        """
        load_dotenv(find_dotenv(usecwd=True))
        path = Path(path) if path is not None else cls.default_path()
        overrides = cls.env_overrides()

        if not path.exists():
            if 'client_id' in overrides and 'client_secret' in overrides:
                return cls.from_dict(overrides)
            if create_missing:
                cls.write_template(path)
                raise ConfigurationError(
                    f"No config found, created {path}. Please fill it out and restart."
                )
            raise ConfigurationError(f"No config found at {path}")

        try:
            data = yaml.safe_load(path.read_text(encoding='utf-8')) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Cannot parse {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"{path} must contain a mapping")

        data.update(overrides)
        return cls.from_dict(data)
