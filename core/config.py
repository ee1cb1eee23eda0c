"""Configuration loaded from a .env file and the environment."""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import dotenv_values

from core.models import ConfigError

logger = logging.getLogger(__name__)

SINKS = ("console", "db")


@dataclass
class DatabaseConfig:
    """Connection settings for the relational sink."""
    driver: str
    dbname: str
    host: str = ""
    port: str = ""
    user: str = ""
    sslmode: str = ""
    password: str = ""

    def conninfo(self) -> str:
        """libpq key/value connection string, empty values omitted."""
        parts = [
            ("host", self.host),
            ("port", self.port),
            ("user", self.user),
            ("dbname", self.dbname),
            ("sslmode", self.sslmode),
            ("password", self.password),
        ]
        return " ".join(f"{key}={value}" for key, value in parts if value)


@dataclass
class AppConfig:
    credential_filepath: Path
    username: str
    sink: str = "console"
    token_cache: Path | None = None
    database: DatabaseConfig | None = None


def load_config(env_file: str | os.PathLike | None = ".env",
                overrides: dict | None = None) -> AppConfig:
    """
    Load application config.

    Non-empty values from ``env_file`` win over the process environment, so
    keys like USER or HOST that the shell already exports do not mask the
    file. ``overrides`` (e.g. from CLI flags) win over both. All missing
    required keys are reported in one ConfigError.
    """
    env = dict(os.environ)
    if env_file:
        file_values = {k: v for k, v in dotenv_values(env_file).items() if v}
        if file_values:
            logger.debug(f"Loaded {len(file_values)} settings from {env_file}")
        env.update(file_values)
    env.update({k: v for k, v in (overrides or {}).items() if v})

    required = ["CREDENTIAL_FILEPATH", "USERNAME"]
    sink = (env.get("SINK") or "console").lower()
    if sink not in SINKS:
        raise ConfigError(f"Unknown sink '{sink}', expected one of: {', '.join(SINKS)}")
    if sink == "db":
        required += ["DRIVER", "DBNAME"]

    missing = [var for var in required if not env.get(var)]
    if missing:
        raise ConfigError(f"Missing config: {', '.join(missing)}")

    database = None
    if sink == "db":
        database = DatabaseConfig(
            driver=env["DRIVER"],
            dbname=env["DBNAME"],
            host=env.get("HOST", ""),
            port=env.get("PORT", ""),
            user=env.get("USER", ""),
            sslmode=env.get("SSLMODE", ""),
            password=env.get("PASSWORD", "")
        )

    token_cache = env.get("TOKEN_CACHE")
    return AppConfig(
        credential_filepath=Path(env["CREDENTIAL_FILEPATH"]).expanduser(),
        username=env["USERNAME"],
        sink=sink,
        token_cache=Path(token_cache).expanduser() if token_cache else None,
        database=database
    )


def load_client_config(path: Path) -> dict:
    """Read the OAuth client secret JSON downloaded from the Google console."""
    try:
        secrets = json.loads(Path(path).read_text())
    except (OSError, ValueError) as e:
        raise ConfigError(f"unable to read client secret file {path}: {e}") from e

    if not isinstance(secrets, dict):
        raise ConfigError(f"unable to parse client secret file {path}: not a JSON object")
    creds = secrets.get("installed") or secrets.get("web")
    if not creds or not creds.get("client_id") or not creds.get("client_secret"):
        raise ConfigError(
            f"unable to parse client secret file {path}: "
            "expected an 'installed' or 'web' client with client_id and client_secret"
        )
    return secrets
