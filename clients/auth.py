"""
OAuth2 token handling for the YouTube Data API.

Tokens are cached as JSON under ~/.credentials. When the cache is missing
or unreadable, the operator is asked to open an authorization URL and paste
back the code, which is exchanged for a new token and cached.
"""

import json
import logging
import os
import tempfile
from datetime import timezone
from pathlib import Path
from typing import Callable
from urllib.parse import quote_plus

from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow

from core.models import AuthError, Token

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/youtube.readonly"]
TOKEN_URI = "https://oauth2.googleapis.com/token"
APP_NAME = "youtube-playlist-export.json"
AUTH_STATE = "state-token"


def token_cache_path(app_name: str = APP_NAME) -> Path:
    """Path of the cached token file for ``app_name``."""
    return Path.home() / ".credentials" / quote_plus(app_name)


def _client_section(client_config: dict) -> dict:
    return client_config.get("installed") or client_config.get("web") or {}


def _default_flow(client_config: dict, scopes: list[str]) -> Flow:
    redirect_uris = _client_section(client_config).get("redirect_uris") or []
    return Flow.from_client_config(
        client_config,
        scopes=scopes,
        redirect_uri=redirect_uris[0] if redirect_uris else None
    )


class TokenManager:
    """Loads the cached OAuth token or runs the authorization-code exchange."""

    def __init__(self, cache_path: Path, client_config: dict,
                 prompt: Callable[[str], str] = input,
                 scopes: list[str] | None = None,
                 flow_factory: Callable[[dict, list[str]], Flow] = _default_flow):
        self._cache_path = Path(cache_path)
        self._client_config = client_config
        self._prompt = prompt
        self._scopes = scopes or SCOPES
        self._flow_factory = flow_factory

    def acquire(self) -> Token:
        """Return the cached token, or fetch and cache a new one."""
        token = self._load_cached_token()
        if token is not None:
            return token

        token = self._token_from_web()
        self._save_token(token)
        return token

    def _load_cached_token(self) -> Token | None:
        try:
            token = Token.from_dict(json.loads(self._cache_path.read_text()))
            logger.debug(f"Loaded cached token from {self._cache_path}")
            return token
        except (OSError, ValueError, TypeError) as e:
            logger.info(f"No usable cached token ({e}), starting web authorization")
            return None

    def _token_from_web(self) -> Token:
        try:
            flow = self._flow_factory(self._client_config, self._scopes)
            auth_url, _ = flow.authorization_url(access_type="offline", state=AUTH_STATE)
        except Exception as e:
            raise AuthError(f"unable to build authorization URL: {e}") from e

        print("Go to the following link in your browser then type the authorization code:")
        print(auth_url)

        try:
            code = self._prompt("Authorization code: ").strip()
        except (EOFError, OSError) as e:
            raise AuthError(f"unable to read authorization code: {e}") from e
        if not code:
            raise AuthError("unable to read authorization code: empty input")

        try:
            flow.fetch_token(code=code)
        except Exception as e:
            raise AuthError(f"unable to retrieve token from web: {e}") from e

        creds = flow.credentials
        expiry = creds.expiry
        if expiry is not None and expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=timezone.utc)

        return Token(
            access_token=creds.token,
            refresh_token=creds.refresh_token or "",
            expiry=expiry
        )

    def _save_token(self, token: Token) -> None:
        logger.info(f"Saving credential file to: {self._cache_path}")
        directory = self._cache_path.parent
        try:
            directory.mkdir(mode=0o700, parents=True, exist_ok=True)
            # mkstemp creates the file with mode 0600
            fd, temp_path = tempfile.mkstemp(dir=directory, prefix=".token_", suffix=".tmp")
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(token.to_dict(), f)
                os.replace(temp_path, self._cache_path)
            except Exception:
                if os.path.exists(temp_path):
                    os.unlink(temp_path)
                raise
        except OSError as e:
            raise AuthError(f"unable to cache oauth token: {e}") from e

    def credentials(self, token: Token) -> Credentials:
        """Credentials for googleapiclient, refreshable with the client secret."""
        client = _client_section(self._client_config)
        expiry = token.expiry
        if expiry is not None:
            # google-auth compares against naive UTC
            expiry = expiry.astimezone(timezone.utc).replace(tzinfo=None)

        return Credentials(
            token=token.access_token,
            refresh_token=token.refresh_token or None,
            token_uri=client.get("token_uri", TOKEN_URI),
            client_id=client.get("client_id"),
            client_secret=client.get("client_secret"),
            scopes=self._scopes,
            expiry=expiry
        )
