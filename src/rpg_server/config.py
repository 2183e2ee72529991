"""
Runtime settings for the RPG server.

Settings are read once, at import, into the ``config`` singleton. Each value
comes from the first source that defines it:

    RPG_* environment variable  >  config/server.ini  >  config/server.example.ini  >  default

Only one INI file is read: ``server.ini`` when present, otherwise the example
file shipped in the repository.

Environment variables:
    RPG_HOST                 server.host
    RPG_PORT                 server.port
    RPG_PRODUCTION           security.production
    RPG_CORS_ORIGINS         security.cors_origins (comma separated)
    RPG_SESSION_TTL_MINUTES  session.ttl_minutes
    RPG_DB_PATH              database.path
    RPG_LOG_LEVEL            logging.level
"""

import configparser
import os
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

# Repository root: holds src/, config/ and the default data/ directory.
PROJECT_ROOT = Path(__file__).parent.parent.parent

CONFIG_DIR = PROJECT_ROOT / "config"
CONFIG_FILE = CONFIG_DIR / "server.ini"
CONFIG_EXAMPLE = CONFIG_DIR / "server.example.ini"


# =============================================================================
# SETTINGS SECTIONS
# =============================================================================


@dataclass
class ServerSettings:
    host: str = "0.0.0.0"  # nosec B104 - binds all interfaces by default
    port: int = 8000


@dataclass
class SecuritySettings:
    """CORS policy, production flag and whether OpenAPI docs are served."""

    production: bool = False
    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:3000"])
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = field(default_factory=lambda: ["*"])
    cors_allow_headers: list[str] = field(default_factory=lambda: ["*"])
    docs_enabled: Literal["auto", "enabled", "disabled"] = "auto"


@dataclass
class SessionSettings:
    """
    Bearer session lifetime.

    ``ttl_minutes = 0`` keeps sessions until logout. With a TTL and
    ``sliding_expiration`` every authenticated request pushes the expiry out
    again; without it the expiry is fixed at login.
    """

    ttl_minutes: int = 0
    sliding_expiration: bool = True


@dataclass
class DatabaseSettings:
    path: str = "data/rpg.db"

    @property
    def absolute_path(self) -> Path:
        """SQLite file location; relative paths resolve against the repository root."""
        path = Path(self.path)
        return path if path.is_absolute() else PROJECT_ROOT / path


@dataclass
class LoggingSettings:
    level: str = "INFO"
    format: Literal["simple", "detailed"] = "detailed"


@dataclass
class ServerConfig:
    server: ServerSettings = field(default_factory=ServerSettings)
    security: SecuritySettings = field(default_factory=SecuritySettings)
    session: SessionSettings = field(default_factory=SessionSettings)
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    @property
    def is_production(self) -> bool:
        return self.security.production

    @property
    def docs_should_be_enabled(self) -> bool:
        """``/docs`` and ``/openapi.json``: forced on/off, or off in production under "auto"."""
        mode = self.security.docs_enabled
        if mode == "auto":
            return not self.is_production
        return mode == "enabled"


# =============================================================================
# VALUE PARSERS
# =============================================================================


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "yes", "1", "on", "enabled")


def _parse_list(value: str) -> list[str]:
    """Split a comma-separated value, dropping blanks."""
    return [part.strip() for part in value.split(",") if part.strip()]


def _parse_upper(value: str) -> str:
    return value.strip().upper()


def _choice(*allowed: str) -> Callable[[str], str | None]:
    """Parser that lower-cases the value and yields None (ignored) outside ``allowed``."""

    def parse(value: str) -> str | None:
        value = value.strip().lower()
        return value if value in allowed else None

    return parse


# (section, option) -> parser; the option name is also the dataclass attribute.
_INI_FIELDS: dict[tuple[str, str], Callable[[str], Any]] = {
    ("server", "host"): str.strip,
    ("server", "port"): int,
    ("security", "production"): _parse_bool,
    ("security", "cors_origins"): _parse_list,
    ("security", "cors_allow_credentials"): _parse_bool,
    ("security", "cors_allow_methods"): _parse_list,
    ("security", "cors_allow_headers"): _parse_list,
    ("security", "docs_enabled"): _choice("auto", "enabled", "disabled"),
    ("session", "ttl_minutes"): int,
    ("session", "sliding_expiration"): _parse_bool,
    ("database", "path"): str.strip,
    ("logging", "level"): _parse_upper,
    ("logging", "format"): _choice("simple", "detailed"),
}

_ENV_FIELDS: dict[str, tuple[str, str]] = {
    "RPG_HOST": ("server", "host"),
    "RPG_PORT": ("server", "port"),
    "RPG_PRODUCTION": ("security", "production"),
    "RPG_CORS_ORIGINS": ("security", "cors_origins"),
    "RPG_SESSION_TTL_MINUTES": ("session", "ttl_minutes"),
    "RPG_DB_PATH": ("database", "path"),
    "RPG_LOG_LEVEL": ("logging", "level"),
}


def _assign(cfg: ServerConfig, section: str, option: str, raw: str) -> None:
    value = _INI_FIELDS[(section, option)](raw)
    if value is not None:
        setattr(getattr(cfg, section), option, value)


# =============================================================================
# LOADING
# =============================================================================


def _load_from_ini(parser: configparser.ConfigParser, cfg: ServerConfig) -> None:
    """Copy every recognised option of ``parser`` onto ``cfg``; unknown keys are ignored."""
    for section, option in _INI_FIELDS:
        if parser.has_option(section, option):
            _assign(cfg, section, option, parser.get(section, option))


def _apply_env_overrides(cfg: ServerConfig) -> None:
    for variable, (section, option) in _ENV_FIELDS.items():
        raw = os.getenv(variable)
        if raw:
            _assign(cfg, section, option, raw)


def load_config() -> ServerConfig:
    """Build a fresh ``ServerConfig`` from defaults, the INI file and the environment."""
    cfg = ServerConfig()

    ini_file = CONFIG_FILE if CONFIG_FILE.exists() else CONFIG_EXAMPLE
    if ini_file.exists():
        parser = configparser.ConfigParser()
        parser.read(ini_file)
        _load_from_ini(parser, cfg)

    _apply_env_overrides(cfg)
    return cfg


config = load_config()


def print_config_summary() -> None:
    """Print the effective settings at startup (``rpg-server run``)."""
    ini_file = CONFIG_FILE if CONFIG_FILE.exists() else CONFIG_EXAMPLE
    print("\n" + "=" * 60)
    print("SERVER CONFIGURATION")
    print("=" * 60)
    print(f"Config file:  {ini_file if ini_file.exists() else '(none, defaults only)'}")
    if ini_file == CONFIG_EXAMPLE and ini_file.exists():
        print("NOTE: reading server.example.ini; create config/server.ini to override")
    print("-" * 60)
    print(f"Server:       {config.server.host}:{config.server.port}")
    print(f"Production:   {config.is_production}")
    print(f"CORS origins: {config.security.cors_origins}")
    print(f"Docs enabled: {config.docs_should_be_enabled}")
    ttl = config.session.ttl_minutes
    print(f"Session TTL:  {f'{ttl} min' if ttl else 'until logout'}")
    print(f"Database:     {config.database.absolute_path}")
    print(f"Log level:    {config.logging.level}")
    print("=" * 60 + "\n")


@contextmanager
def use_test_database(db_path: Path | str) -> Iterator[Path]:
    """Point ``config.database.path`` at ``db_path`` for the duration of the block."""
    previous = config.database.path
    config.database.path = str(db_path)
    try:
        yield Path(db_path)
    finally:
        config.database.path = previous
