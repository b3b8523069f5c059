from __future__ import annotations

import asyncio
import contextlib
import os
from typing import Any, Sequence

import pytest

from aws_simple_sso.config import SSOSettings
from aws_simple_sso.flow import SSOAuthenticator
from aws_simple_sso.models import Account, Credentials, Role, Token
from aws_simple_sso.prompts import Choice
from aws_simple_sso.storage import MemoryKeyValueStore, SSOCache


def pytest_sessionstart(session: pytest.Session) -> None:
    # Keep unit tests away from the user's real cache directory.
    os.environ.setdefault(
        "SSO_CACHE_DIR", os.path.join(str(session.config.rootpath), ".pytest-sso-cache")
    )


@pytest.fixture(autouse=True)
def _close_default_event_loop() -> None:
    yield
    policy = asyncio.get_event_loop_policy()
    local = getattr(policy, "_local", None)
    loop = getattr(local, "_loop", None) if local is not None else None
    if loop is not None and not loop.is_running() and not loop.is_closed():
        with contextlib.suppress(Exception):
            loop.close()
    if loop is not None:
        with contextlib.suppress(Exception):
            policy.set_event_loop(None)


class ScriptedChooser:
    """Chooser that records prompts and answers from a script."""

    def __init__(self, selections: Sequence[Any] = (), texts: Sequence[str] = ()) -> None:
        self.selections = list(selections)
        self.texts = list(texts)
        self.select_calls: list[tuple[str, list[Choice[Any]]]] = []
        self.text_calls: list[str] = []

    async def select(self, message: str, choices: Sequence[Choice[Any]]) -> Any:
        self.select_calls.append((message, list(choices)))
        pick = self.selections.pop(0)
        if callable(pick):
            return pick(list(choices))
        return pick

    async def text(self, message: str, default: str = "") -> str:
        self.text_calls.append(message)
        answer = self.texts.pop(0)
        return answer or default


class RecordingDisplay:
    def __init__(self) -> None:
        self.shown: list[str] = []

    def show(self, uri: str) -> None:
        self.shown.append(uri)


class FakeOIDC:
    def __init__(self, token_responses: Sequence[Any] = ()) -> None:
        self.token_responses = list(token_responses)
        self.register_error: Exception | None = None
        self.device_error: Exception | None = None
        self.calls: list[str] = []

    async def register_client(self, client_name: str, scopes: list[str]) -> dict[str, Any]:
        self.calls.append("register_client")
        if self.register_error:
            raise self.register_error
        return {"clientId": "client-id", "clientSecret": "client-secret"}

    async def start_device_authorization(
        self, client_id: str, client_secret: str, start_url: str
    ) -> dict[str, Any]:
        self.calls.append("start_device_authorization")
        if self.device_error:
            raise self.device_error
        return {
            "deviceCode": "device-code",
            "verificationUriComplete": f"{start_url}/verify?code=ABCD",
        }

    async def create_token(
        self, client_id: str, client_secret: str, device_code: str
    ) -> dict[str, Any]:
        self.calls.append("create_token")
        result = self.token_responses.pop(0) if self.token_responses else None
        if isinstance(result, Exception):
            raise result
        if result is None:
            raise AssertionError("create_token called more times than scripted")
        return result


class FakePortal:
    def __init__(
        self,
        accounts: Sequence[Account] = (),
        roles: Sequence[Role] = (),
        credentials: Credentials | None = None,
    ) -> None:
        self.accounts = list(accounts)
        self.roles = list(roles)
        self.credentials = credentials
        self.calls: list[str] = []

    async def list_accounts(self, token: Token) -> list[Account]:
        self.calls.append("list_accounts")
        return list(self.accounts)

    async def list_account_roles(self, token: Token, account_id: str) -> list[Role]:
        self.calls.append("list_account_roles")
        return [role for role in self.roles if role.account_id == account_id]

    async def get_role_credentials(self, token: Token, role: Role) -> Credentials:
        self.calls.append("get_role_credentials")
        assert self.credentials is not None
        return self.credentials


class FakeClients:
    def __init__(self, oidc: FakeOIDC | None = None, portal: FakePortal | None = None) -> None:
        self.oidc_client = oidc or FakeOIDC()
        self.portal_client = portal or FakePortal()
        self.regions: list[str] = []

    def oidc(self, region: str) -> FakeOIDC:
        self.regions.append(region)
        return self.oidc_client

    def portal(self, region: str) -> FakePortal:
        self.regions.append(region)
        return self.portal_client


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def cache() -> SSOCache:
    return SSOCache(MemoryKeyValueStore(), default_region="us-east-1")


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def make_authenticator(cache: SSOCache, sleep: SleepRecorder):
    def factory(
        chooser: ScriptedChooser | None = None,
        clients: FakeClients | None = None,
        display: RecordingDisplay | None = None,
        settings: SSOSettings | None = None,
    ) -> SSOAuthenticator:
        return SSOAuthenticator(
            cache=cache,
            chooser=chooser or ScriptedChooser(),
            display=display or RecordingDisplay(),
            clients=clients or FakeClients(),
            settings=settings or SSOSettings(),
            sleep=sleep,
        )

    return factory
