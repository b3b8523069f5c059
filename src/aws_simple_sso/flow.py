"""IAM Identity Center sign-in flow.

``SSOAuthenticator`` runs five stages in order:

1. resolve the organization (start URL) from the local cache or user input
2. reuse a cached OIDC token, or run the device-authorization grant
3. pick an account visible to the token
4. pick a role in that account
5. exchange token, account and role for short-lived credentials

Each stage is also exposed on its own for callers that want to drive the flow
manually.
"""

from __future__ import annotations

import asyncio
import logging
import time
from functools import lru_cache
from typing import Awaitable, Callable, Sequence, TypeVar

from botocore.exceptions import BotoCoreError, ClientError

from aws_simple_sso.clients import BotocoreClientFactory, ClientFactory
from aws_simple_sso.config import SSOSettings, load_settings
from aws_simple_sso.display import BrowserUriDisplay, ConsoleUriDisplay, UriDisplay
from aws_simple_sso.errors import (
    ClientRegistrationError,
    DeviceAuthorizationError,
    NoCandidatesError,
    SSOError,
    TokenExchangeError,
    TokenTimeoutError,
)
from aws_simple_sso.matching import Matcher, MatchSpec, as_matcher
from aws_simple_sso.models import Account, Credentials, OrgUrl, Role, Token
from aws_simple_sso.prompts import Chooser, Choice, QuestionaryChooser
from aws_simple_sso.storage import FileKeyValueStore, SSOCache

logger = logging.getLogger(__name__)

ADD_NEW_ORG_TITLE = "Add a new AWS Organization"

# Expected while the user has not yet approved the device code.
_PENDING_CODES = frozenset({"authorization_pending", "slow_down"})

_R = TypeVar("_R", Account, Role)


class SSOAuthenticator:
    """Drive the SSO device-authorization flow against injected collaborators."""

    def __init__(
        self,
        cache: SSOCache,
        chooser: Chooser,
        display: UriDisplay,
        clients: ClientFactory,
        settings: SSOSettings | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._cache = cache
        self._chooser = chooser
        self._display = display
        self._clients = clients
        self._settings = settings or SSOSettings()
        self._sleep = sleep
        self._clock = clock

    @property
    def cache(self) -> SSOCache:
        return self._cache

    async def resolve_org_url(self, match: MatchSpec = None) -> OrgUrl:
        matcher = as_matcher(match)
        orgs = self._cache.load_org_urls()
        matched = [org for org in orgs if matcher(org)]

        if len(matched) == 1:
            return matched[0]

        candidates = matched or orgs
        choices: list[Choice[OrgUrl | None]] = [Choice(org.name, org) for org in candidates]
        choices.append(Choice(ADD_NEW_ORG_TITLE, None))

        selected = await self._chooser.select("Select a startUrl", choices)
        if selected is not None:
            return selected
        return await self._add_org_url()

    async def _add_org_url(self) -> OrgUrl:
        start_url = await self._chooser.text("Enter the startUrl for the new AWS Organization")
        name = await self._chooser.text("Enter the name for the new AWS Organization")
        region = await self._chooser.text(
            "Enter the SSO region for the new AWS Organization",
            default=self._settings.default_region,
        )
        if not name or not start_url:
            raise SSOError("Organization name and startUrl are required", "invalid_input")
        # Tokens are cached per organization name.
        if any(existing.name == name for existing in self._cache.load_org_urls()):
            raise SSOError(f"Organization {name!r} already exists", "duplicate_org")

        org = OrgUrl(name=name, start_url=start_url, region=region or self._settings.default_region)
        self._cache.add_org_url(org)
        logger.info("Added organization %s (%s)", org.name, org.start_url)
        return org

    async def acquire_token(self, org: OrgUrl) -> Token:
        cached = self._cache.load_token(org.name)
        if cached is not None and cached.is_valid():
            logger.debug("Using cached token for %s", org.name)
            return cached

        oidc = self._clients.oidc(org.region)

        try:
            registration = await oidc.register_client(
                self._settings.client_name, list(self._settings.scopes)
            )
        except (ClientError, BotoCoreError) as exc:
            logger.error("Client registration failed for %s: %s", org.name, exc)
            raise ClientRegistrationError(str(exc)) from exc

        client_id = registration["clientId"]
        client_secret = registration["clientSecret"]

        try:
            device = await oidc.start_device_authorization(client_id, client_secret, org.start_url)
        except (ClientError, BotoCoreError) as exc:
            logger.error("Device authorization failed for %s: %s", org.name, exc)
            raise DeviceAuthorizationError(str(exc)) from exc

        self._display.show(device["verificationUriComplete"])

        return await self._poll_for_token(org, client_id, client_secret, device["deviceCode"])

    async def _poll_for_token(
        self, org: OrgUrl, client_id: str, client_secret: str, device_code: str
    ) -> Token:
        oidc = self._clients.oidc(org.region)
        max_attempts = self._settings.max_poll_attempts
        timeout = self._settings.poll_timeout_seconds
        deadline = self._clock() + timeout if timeout > 0 else None

        for attempt in range(1, max_attempts + 1):
            await self._sleep(self._settings.poll_interval_seconds)
            try:
                response = await oidc.create_token(client_id, client_secret, device_code)
            except TokenExchangeError as exc:
                if exc.code not in _PENDING_CODES:
                    logger.warning(
                        "Token exchange attempt %d/%d failed: %s: %s",
                        attempt,
                        max_attempts,
                        exc.code,
                        exc,
                    )
                if deadline is not None and self._clock() >= deadline:
                    logger.warning("Gave up waiting for %s after %.0fs", org.name, timeout)
                    raise TokenTimeoutError(attempt) from None
                continue

            token = Token.from_create_token(response)
            self._cache.save_token(org.name, token)
            logger.info("Signed in to %s, token valid until %s", org.name, token.expire_time)
            return token

        raise TokenTimeoutError(max_attempts)

    async def resolve_account(
        self, token: Token, match: MatchSpec = None, *, region: str | None = None
    ) -> Account:
        portal = self._clients.portal(region or self._settings.default_region)
        accounts = await portal.list_accounts(token)
        return await self._choose("accounts", "Select an account", accounts, as_matcher(match))

    async def resolve_role(
        self,
        token: Token,
        account_id: str,
        match: MatchSpec = None,
        *,
        region: str | None = None,
    ) -> Role:
        portal = self._clients.portal(region or self._settings.default_region)
        roles = await portal.list_account_roles(token, account_id)
        return await self._choose("roles", "Select a role", roles, as_matcher(match))

    async def _choose(
        self, kind: str, message: str, candidates: Sequence[_R], matcher: Matcher
    ) -> _R:
        if not candidates:
            raise NoCandidatesError(kind)

        matched = [candidate for candidate in candidates if matcher(candidate)]
        if len(matched) == 1:
            return matched[0]

        # No match falls back to offering everything.
        pool = matched or list(candidates)
        choices = sorted((Choice(item.name, item) for item in pool), key=lambda c: c.title)
        return await self._chooser.select(message, choices)

    async def fetch_role_credentials(
        self, token: Token, role: Role, *, region: str | None = None
    ) -> Credentials:
        portal = self._clients.portal(region or self._settings.default_region)
        return await portal.get_role_credentials(token, role)

    async def authenticate(
        self,
        org: MatchSpec = None,
        account: MatchSpec = None,
        role: MatchSpec = None,
    ) -> Credentials:
        org_url = await self.resolve_org_url(org)
        token = await self.acquire_token(org_url)
        selected_account = await self.resolve_account(token, account, region=org_url.region)
        selected_role = await self.resolve_role(
            token, selected_account.account_id, role, region=org_url.region
        )
        return await self.fetch_role_credentials(token, selected_role, region=org_url.region)


@lru_cache(maxsize=1)
def get_authenticator() -> SSOAuthenticator:
    settings = load_settings()
    sso = settings.sso
    display: UriDisplay = BrowserUriDisplay() if sso.open_browser else ConsoleUriDisplay()
    return SSOAuthenticator(
        cache=SSOCache(FileKeyValueStore(settings.cache.directory), sso.default_region),
        chooser=QuestionaryChooser(),
        display=display,
        clients=BotocoreClientFactory(sso.connect_timeout, sso.read_timeout),
        settings=sso,
    )


async def authenticate(
    org: MatchSpec = None, account: MatchSpec = None, role: MatchSpec = None
) -> Credentials:
    """Sign in and return credentials using the default authenticator."""
    return await get_authenticator().authenticate(org, account, role)


async def resolve_org_url(match: MatchSpec = None) -> OrgUrl:
    return await get_authenticator().resolve_org_url(match)


async def acquire_token(org: OrgUrl) -> Token:
    return await get_authenticator().acquire_token(org)


async def resolve_account(
    token: Token, match: MatchSpec = None, *, region: str | None = None
) -> Account:
    return await get_authenticator().resolve_account(token, match, region=region)


async def resolve_role(
    token: Token, account_id: str, match: MatchSpec = None, *, region: str | None = None
) -> Role:
    return await get_authenticator().resolve_role(token, account_id, match, region=region)


async def fetch_role_credentials(
    token: Token, role: Role, *, region: str | None = None
) -> Credentials:
    return await get_authenticator().fetch_role_credentials(token, role, region=region)
