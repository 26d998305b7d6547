"""Settings and Linear credential resolution."""

import logging
import os
import re
import subprocess
import sys
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path

import tomlkit
from pydantic import SecretStr
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from streamlinear.client import ENDPOINT
from streamlinear.errors import ConfigurationError

CONFIG_PATH = Path.home() / ".config" / "streamlinear" / "config.toml"

DEFAULT_TOKEN_ENV = "LINEAR_API_TOKEN"
_PREFIXED_TOKEN_RE = re.compile(r"^LINEAR\w*_API_TOKEN$")

log = logging.getLogger(__name__)


class StreamlinearSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="STREAMLINEAR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_token: SecretStr | None = None
    token_cmd: str | None = None  # shell command printing the token, e.g. "op read op://dev/linear/token"
    token_env: str = DEFAULT_TOKEN_ENV
    endpoint: str = ENDPOINT
    timeout: float = 30.0  # seconds, per request
    log_level: str = "WARNING"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # init kwargs carry config.toml defaults, so the environment wins over them
        return env_settings, dotenv_settings, init_settings, file_secret_settings


@lru_cache(maxsize=1)
def _load_toml() -> tomlkit.TOMLDocument:
    """Load ~/.config/streamlinear/config.toml, returning empty document if missing."""
    if not CONFIG_PATH.exists():
        return tomlkit.document()
    return tomlkit.load(CONFIG_PATH.open())


def get_settings() -> StreamlinearSettings:
    """Config file values are defaults; STREAMLINEAR_* env vars and .env override them."""
    # tables are ignored; only top-level keys map onto settings
    defaults = {k: v for k, v in _load_toml().unwrap().items() if not isinstance(v, Mapping)}
    return StreamlinearSettings(**defaults)


def _run_token_cmd(command: str) -> str:
    result = subprocess.run(command, shell=True, capture_output=True, text=True)
    if result.returncode != 0:
        raise ConfigurationError(f"Token command failed ({result.returncode}): {result.stderr.strip()}")
    return result.stdout.strip()


def resolve_token(
    settings: StreamlinearSettings,
    token: str | None = None,
    token_cmd: str | None = None,
) -> str | None:
    """Pick the Linear API token.

    Precedence (highest to lowest):
    1. explicit value (--token flag, then api_token from settings)
    2. trimmed output of --token-cmd / token_cmd
    3. the named environment variable (LINEAR_API_TOKEN unless token_env says otherwise)
    4. the first LINEAR*_API_TOKEN environment variable, by name
    """
    explicit = token or (settings.api_token.get_secret_value() if settings.api_token else None)
    if explicit:
        return explicit

    command = token_cmd or settings.token_cmd
    if command:
        log.debug("reading token from command")
        return _run_token_cmd(command) or None

    if os.environ.get(settings.token_env):
        return os.environ[settings.token_env]

    for name in sorted(os.environ):
        if _PREFIXED_TOKEN_RE.match(name) and os.environ[name]:
            log.debug("using token from %s", name)
            return os.environ[name]

    return None


def configure_logging(level: str = "WARNING") -> None:
    """Log to stderr; stdout carries command output and the MCP stdio stream."""
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
