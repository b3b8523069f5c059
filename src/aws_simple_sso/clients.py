"""IAM Identity Center (SSO and SSO-OIDC) API clients."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Protocol

import botocore.session
from botocore import UNSIGNED
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from aws_simple_sso.errors import SSOApiError, TokenExchangeError
from aws_simple_sso.models import Account, Credentials, Role, Token
from aws_simple_sso.utils.time import from_epoch_millis

logger = logging.getLogger(__name__)

DEVICE_CODE_GRANT = "urn:ietf:params:oauth:grant-type:device_code"

_OAUTH_ERROR_CODES = {
    "AuthorizationPendingException": "authorization_pending",
    "SlowDownException": "slow_down",
    "ExpiredTokenException": "expired_token",
    "AccessDeniedException": "access_denied",
    "InvalidGrantException": "invalid_grant",
    "InvalidClientException": "invalid_client",
}

_API_ERROR_CODES = {
    "UnauthorizedException": "unauthorized",
    "InvalidRequestException": "invalid_request",
    "InvalidTokenException": "invalid_token",
    "TooManyRequestsException": "throttled",
    "ResourceNotFoundException": "resource_not_found",
}


class OIDCApi(Protocol):
    async def register_client(self, client_name: str, scopes: list[str]) -> dict[str, Any]: ...

    async def start_device_authorization(
        self, client_id: str, client_secret: str, start_url: str
    ) -> dict[str, Any]: ...

    async def create_token(
        self, client_id: str, client_secret: str, device_code: str
    ) -> dict[str, Any]: ...


class PortalApi(Protocol):
    async def list_accounts(self, token: Token) -> list[Account]: ...

    async def list_account_roles(self, token: Token, account_id: str) -> list[Role]: ...

    async def get_role_credentials(self, token: Token, role: Role) -> Credentials: ...


class ClientFactory(Protocol):
    def oidc(self, region: str) -> OIDCApi: ...

    def portal(self, region: str) -> PortalApi: ...


def _client_config(connect_timeout: int, read_timeout: int) -> Config:
    return Config(
        signature_version=UNSIGNED,
        connect_timeout=connect_timeout,
        read_timeout=read_timeout,
        retries={"max_attempts": 2},
    )


class _LazyBotocoreClient:
    """Create an unsigned botocore client on first use."""

    service_name = ""

    def __init__(self, region: str, connect_timeout: int = 5, read_timeout: int = 15) -> None:
        self._region = region
        self._connect_timeout = connect_timeout
        self._read_timeout = read_timeout
        self._client: Any = None
        self._lock = threading.Lock()

    @property
    def region(self) -> str:
        return self._region

    def _get_client(self) -> Any:
        if self._client is not None:
            return self._client
        with self._lock:
            if self._client is not None:
                return self._client
            session = botocore.session.get_session()
            self._client = session.create_client(
                self.service_name,
                region_name=self._region,
                config=_client_config(self._connect_timeout, self._read_timeout),
            )
            logger.info("%s client initialized (region=%s)", self.service_name, self._region)
            return self._client


class OIDCClient(_LazyBotocoreClient):
    """SSO-OIDC client: client registration and the device-code grant.

    Registration and device-authorization failures propagate as botocore
    errors; the caller wraps them with stage context. Token-exchange failures
    are normalized to ``TokenExchangeError`` with the OAuth error name as code.
    """

    service_name = "sso-oidc"

    async def register_client(self, client_name: str, scopes: list[str]) -> dict[str, Any]:
        return await asyncio.to_thread(
            self._get_client().register_client,
            clientName=client_name,
            clientType="public",
            scopes=list(scopes),
        )

    async def start_device_authorization(
        self, client_id: str, client_secret: str, start_url: str
    ) -> dict[str, Any]:
        return await asyncio.to_thread(
            self._get_client().start_device_authorization,
            clientId=client_id,
            clientSecret=client_secret,
            startUrl=start_url,
        )

    async def create_token(
        self, client_id: str, client_secret: str, device_code: str
    ) -> dict[str, Any]:
        return await asyncio.to_thread(
            self._create_token_sync, client_id, client_secret, device_code
        )

    def _create_token_sync(
        self, client_id: str, client_secret: str, device_code: str
    ) -> dict[str, Any]:
        client = self._get_client()
        try:
            return client.create_token(
                clientId=client_id,
                clientSecret=client_secret,
                grantType=DEVICE_CODE_GRANT,
                deviceCode=device_code,
            )
        except ClientError as exc:
            raise map_token_error(exc) from exc
        except BotoCoreError as exc:
            raise TokenExchangeError(str(exc), code="transport_error") from exc


def map_token_error(exc: ClientError) -> TokenExchangeError:
    error = exc.response.get("Error", {})
    aws_code = error.get("Code", "Unknown")
    oauth_code = exc.response.get("error") or _OAUTH_ERROR_CODES.get(aws_code, aws_code)
    message = error.get("Message") or exc.response.get("error_description") or str(exc)
    return TokenExchangeError(message, code=oauth_code)


class PortalClient(_LazyBotocoreClient):
    """SSO portal client listing accounts and roles and issuing credentials."""

    service_name = "sso"

    async def list_accounts(self, token: Token) -> list[Account]:
        return await asyncio.to_thread(self._list_accounts_sync, token.access_token)

    async def list_account_roles(self, token: Token, account_id: str) -> list[Role]:
        return await asyncio.to_thread(
            self._list_account_roles_sync, token.access_token, account_id
        )

    async def get_role_credentials(self, token: Token, role: Role) -> Credentials:
        return await asyncio.to_thread(
            self._get_role_credentials_sync, token.access_token, role
        )

    def _list_accounts_sync(self, access_token: str) -> list[Account]:
        client = self._get_client()
        accounts: list[Account] = []
        next_token: str | None = None

        try:
            while True:
                params: dict[str, Any] = {"accessToken": access_token}
                if next_token:
                    params["nextToken"] = next_token
                resp = client.list_accounts(**params)
                for entry in resp.get("accountList", []) or []:
                    accounts.append(
                        Account(
                            account_id=str(entry.get("accountId")),
                            name=str(entry.get("accountName") or entry.get("accountId")),
                            email_address=entry.get("emailAddress"),
                        )
                    )
                next_token = resp.get("nextToken")
                if not next_token:
                    break
        except ClientError as exc:
            raise map_api_error(exc) from exc
        except BotoCoreError as exc:
            raise map_transport_error(exc) from exc

        return accounts

    def _list_account_roles_sync(self, access_token: str, account_id: str) -> list[Role]:
        client = self._get_client()
        roles: list[Role] = []
        next_token: str | None = None

        try:
            while True:
                params: dict[str, Any] = {"accessToken": access_token, "accountId": account_id}
                if next_token:
                    params["nextToken"] = next_token
                resp = client.list_account_roles(**params)
                for entry in resp.get("roleList", []) or []:
                    roles.append(
                        Role(
                            account_id=str(entry.get("accountId") or account_id),
                            name=str(entry.get("roleName")),
                        )
                    )
                next_token = resp.get("nextToken")
                if not next_token:
                    break
        except ClientError as exc:
            raise map_api_error(exc) from exc
        except BotoCoreError as exc:
            raise map_transport_error(exc) from exc

        return roles

    def _get_role_credentials_sync(self, access_token: str, role: Role) -> Credentials:
        client = self._get_client()
        try:
            resp = client.get_role_credentials(
                accessToken=access_token,
                accountId=role.account_id,
                roleName=role.name,
            )
        except ClientError as exc:
            raise map_api_error(exc) from exc
        except BotoCoreError as exc:
            raise map_transport_error(exc) from exc

        creds = resp.get("roleCredentials")
        if not creds or creds.get("expiration") is None:
            raise SSOApiError(
                f"GetRoleCredentials returned no expiration for {role.name}",
                code="invalid_response",
            )
        return Credentials(
            access_key_id=creds.get("accessKeyId", ""),
            secret_access_key=creds.get("secretAccessKey", ""),
            session_token=creds.get("sessionToken", ""),
            expire_time=from_epoch_millis(int(creds["expiration"])),
        )


def map_api_error(exc: ClientError) -> SSOApiError:
    error = exc.response.get("Error", {})
    code = error.get("Code", "Unknown")
    message = error.get("Message", str(exc))
    logger.warning("SSO API error: %s: %s", code, message)
    return SSOApiError(message, code=_API_ERROR_CODES.get(code, "sso_error"))


def map_transport_error(exc: BotoCoreError) -> SSOApiError:
    logger.warning("SSO API transport error: %s", exc)
    return SSOApiError(str(exc), code="transport_error")


class BotocoreClientFactory:
    """Hand out one client pair per region."""

    def __init__(self, connect_timeout: int = 5, read_timeout: int = 15) -> None:
        self._connect_timeout = connect_timeout
        self._read_timeout = read_timeout
        self._oidc: dict[str, OIDCClient] = {}
        self._portal: dict[str, PortalClient] = {}
        self._lock = threading.Lock()

    def oidc(self, region: str) -> OIDCClient:
        with self._lock:
            if region not in self._oidc:
                self._oidc[region] = OIDCClient(region, self._connect_timeout, self._read_timeout)
            return self._oidc[region]

    def portal(self, region: str) -> PortalClient:
        with self._lock:
            if region not in self._portal:
                self._portal[region] = PortalClient(
                    region, self._connect_timeout, self._read_timeout
                )
            return self._portal[region]
