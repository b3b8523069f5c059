"""Records exchanged between the SSO flow stages."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from aws_simple_sso.utils.time import parse_iso, utc_now


@dataclass(frozen=True)
class OrgUrl:
    """One SSO portal: a display name, its start URL and home region."""

    name: str
    start_url: str
    region: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "startUrl": self.start_url, "region": self.region}

    @classmethod
    def from_dict(cls, data: dict[str, Any], default_region: str) -> "OrgUrl":
        return cls(
            name=str(data["name"]),
            start_url=str(data["startUrl"]),
            region=str(data.get("region") or default_region),
        )


@dataclass(frozen=True)
class Token:
    """OIDC bearer token for the SSO portal API."""

    access_token: str
    expire_time: datetime
    token_type: str | None = None
    expires_in: int | None = None
    refresh_token: str | None = None
    id_token: str | None = None

    def is_valid(self, now: datetime | None = None) -> bool:
        return self.expire_time > (now or utc_now())

    def __repr__(self) -> str:
        return f"Token(access_token=***, expire_time={self.expire_time.isoformat()})"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "accessToken": self.access_token,
            "expireTime": self.expire_time.isoformat(),
        }
        if self.token_type:
            data["tokenType"] = self.token_type
        if self.expires_in is not None:
            data["expiresIn"] = self.expires_in
        if self.refresh_token:
            data["refreshToken"] = self.refresh_token
        if self.id_token:
            data["idToken"] = self.id_token
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Token":
        return cls(
            access_token=str(data["accessToken"]),
            expire_time=parse_iso(str(data["expireTime"])),
            token_type=data.get("tokenType"),
            expires_in=data.get("expiresIn"),
            refresh_token=data.get("refreshToken"),
            id_token=data.get("idToken"),
        )

    @classmethod
    def from_create_token(cls, response: dict[str, Any], now: datetime | None = None) -> "Token":
        """Build a token from a CreateToken response, stamping its expiry."""
        expires_in = int(response.get("expiresIn", 0))
        issued_at = now or utc_now()
        return cls(
            access_token=str(response["accessToken"]),
            expire_time=issued_at + timedelta(seconds=expires_in),
            token_type=response.get("tokenType"),
            expires_in=expires_in,
            refresh_token=response.get("refreshToken"),
            id_token=response.get("idToken"),
        )


@dataclass(frozen=True)
class Account:
    account_id: str
    name: str
    email_address: str | None = None


@dataclass(frozen=True)
class Role:
    account_id: str
    name: str


@dataclass(frozen=True)
class Credentials:
    """Short-lived role credentials."""

    access_key_id: str
    secret_access_key: str
    session_token: str
    expire_time: datetime

    def __repr__(self) -> str:
        return (
            f"Credentials(access_key_id={self.access_key_id[:8]}***, "
            f"expire_time={self.expire_time.isoformat()})"
        )

    def as_env(self) -> dict[str, str]:
        """Return the standard AWS environment variables for these credentials."""
        return {
            "AWS_ACCESS_KEY_ID": self.access_key_id,
            "AWS_SECRET_ACCESS_KEY": self.secret_access_key,
            "AWS_SESSION_TOKEN": self.session_token,
        }
