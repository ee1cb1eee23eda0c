import json
import os
import stat
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from clients.auth import TokenManager, token_cache_path
from core.models import AuthError, Token

CLIENT_CONFIG = {
    "installed": {
        "client_id": "client-id",
        "client_secret": "client-secret",
        "auth_uri": "https://accounts.google.com/o/oauth2/auth",
        "token_uri": "https://oauth2.googleapis.com/token",
        "redirect_uris": ["http://localhost"],
    }
}

EXPIRY = datetime(2030, 5, 17, 12, 30, tzinfo=timezone.utc)


class FakeFlow:
    def __init__(self, fail=False):
        self.fail = fail
        self.codes = []
        self.auth_kwargs = None
        self.credentials = SimpleNamespace(
            token="web-access", refresh_token="web-refresh", expiry=EXPIRY.replace(tzinfo=None)
        )

    def authorization_url(self, **kwargs):
        self.auth_kwargs = kwargs
        return "https://accounts.google.com/o/oauth2/auth?state=state-token", "state-token"

    def fetch_token(self, code):
        self.codes.append(code)
        if self.fail:
            raise ValueError("invalid_grant")


class FlowFactory:
    def __init__(self, flow):
        self.flow = flow
        self.created = 0

    def __call__(self, client_config, scopes):
        self.created += 1
        return self.flow


def make_manager(path, flow=None, prompt=lambda _: "4/code"):
    factory = FlowFactory(flow or FakeFlow())
    manager = TokenManager(path, CLIENT_CONFIG, prompt=prompt, flow_factory=factory)
    return manager, factory


def test_token_round_trip():
    token = Token("access", "refresh", "Bearer", EXPIRY)
    assert Token.from_dict(token.to_dict()) == token


def test_token_without_expiry_round_trip():
    token = Token("access")
    assert Token.from_dict(token.to_dict()) == token


def test_token_rejects_missing_access_token():
    with pytest.raises(ValueError):
        Token.from_dict({"refresh_token": "r"})


def test_cached_token_is_returned_without_web_flow(tmp_path):
    path = tmp_path / "token.json"
    token = Token("cached", "refresh", expiry=EXPIRY)
    path.write_text(json.dumps(token.to_dict()))
    manager, factory = make_manager(path)

    assert manager.acquire() == token
    assert factory.created == 0


def test_expired_cached_token_is_still_returned(tmp_path):
    path = tmp_path / "token.json"
    token = Token("old", "refresh", expiry=datetime(2001, 1, 1, tzinfo=timezone.utc))
    path.write_text(json.dumps(token.to_dict()))
    manager, factory = make_manager(path)

    assert manager.acquire() == token
    assert factory.created == 0


@pytest.mark.parametrize("content", [None, "{not json", "[]", '{"token": "x"}'])
def test_unusable_cache_runs_web_flow_once(tmp_path, content):
    path = tmp_path / "token.json"
    if content is not None:
        path.write_text(content)
    prompts = []

    def prompt(text):
        prompts.append(text)
        return "  4/code \n"

    flow = FakeFlow()
    manager, factory = make_manager(path, flow, prompt)

    token = manager.acquire()

    assert factory.created == 1
    assert len(prompts) == 1
    assert flow.codes == ["4/code"]
    assert flow.auth_kwargs == {"access_type": "offline", "state": "state-token"}
    assert token == Token("web-access", "web-refresh", expiry=EXPIRY)


def test_web_token_is_saved_and_read_back(tmp_path):
    path = tmp_path / "credentials" / "app.json"
    manager, _ = make_manager(path)

    token = manager.acquire()

    assert Token.from_dict(json.loads(path.read_text())) == token
    assert stat.S_IMODE(os.stat(path).st_mode) == 0o600
    assert stat.S_IMODE(os.stat(path.parent).st_mode) & 0o077 == 0

    again, factory = make_manager(path)
    assert again.acquire() == token
    assert factory.created == 0


def test_failed_exchange_raises_auth_error(tmp_path):
    path = tmp_path / "token.json"
    manager, _ = make_manager(path, FakeFlow(fail=True))

    with pytest.raises(AuthError, match="unable to retrieve token from web"):
        manager.acquire()
    assert not path.exists()


def test_closed_input_raises_auth_error(tmp_path):
    def prompt(_):
        raise EOFError()

    manager, _ = make_manager(tmp_path / "token.json", prompt=prompt)
    with pytest.raises(AuthError, match="unable to read authorization code"):
        manager.acquire()


def test_write_failure_raises_auth_error(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    manager, _ = make_manager(blocker / "token.json")

    with pytest.raises(AuthError, match="unable to cache oauth token"):
        manager.acquire()


def test_credentials_use_client_secret_and_naive_expiry(tmp_path):
    manager, _ = make_manager(tmp_path / "token.json")
    creds = manager.credentials(Token("access", "refresh", expiry=EXPIRY))

    assert creds.token == "access"
    assert creds.refresh_token == "refresh"
    assert creds.client_id == "client-id"
    assert creds.client_secret == "client-secret"
    assert creds.expiry == datetime(2030, 5, 17, 12, 30)


def test_cache_path_escapes_app_name(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    path = token_cache_path("my app/export.json")
    assert path == tmp_path / ".credentials" / "my+app%2Fexport.json"
