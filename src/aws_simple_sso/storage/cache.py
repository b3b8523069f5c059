"""Typed cache of known organizations and OIDC tokens."""

from __future__ import annotations

import json
import logging

from aws_simple_sso.models import OrgUrl, Token
from aws_simple_sso.storage.store import KeyValueStore

logger = logging.getLogger(__name__)

ORG_URLS_KEY = "startUrls"
TOKEN_KEY_PREFIX = "sso-"


def token_key(org_name: str) -> str:
    return f"{TOKEN_KEY_PREFIX}{org_name}"


class SSOCache:
    """Read and write SSO records through a string key-value store.

    Corrupt entries are logged and treated as absent.
    """

    def __init__(self, store: KeyValueStore, default_region: str) -> None:
        self._store = store
        self._default_region = default_region

    @property
    def store(self) -> KeyValueStore:
        return self._store

    def load_org_urls(self) -> list[OrgUrl]:
        raw = self._store.get(ORG_URLS_KEY)
        if not raw:
            return []
        try:
            entries = json.loads(raw)
            return [
                OrgUrl.from_dict(entry, self._default_region)
                for entry in entries
                if entry.get("startUrl")
            ]
        except (ValueError, TypeError, KeyError, AttributeError) as exc:
            logger.warning("Error parsing cached start URLs: %s", exc)
            return []

    def save_org_urls(self, orgs: list[OrgUrl]) -> None:
        self._store.set(ORG_URLS_KEY, json.dumps([org.to_dict() for org in orgs]))

    def add_org_url(self, org: OrgUrl) -> list[OrgUrl]:
        orgs = self.load_org_urls()
        orgs.append(org)
        self.save_org_urls(orgs)
        return orgs

    def remove_org_url(self, name: str) -> bool:
        """Forget an organization and its cached token."""
        orgs = self.load_org_urls()
        remaining = [org for org in orgs if org.name != name]
        if len(remaining) == len(orgs):
            return False
        self.save_org_urls(remaining)
        self.delete_token(name)
        return True

    def load_token(self, org_name: str) -> Token | None:
        raw = self._store.get(token_key(org_name))
        if not raw:
            return None
        try:
            return Token.from_dict(json.loads(raw))
        except (ValueError, TypeError, KeyError, AttributeError) as exc:
            logger.warning("Error parsing cached token for %s: %s", org_name, exc)
            return None

    def save_token(self, org_name: str, token: Token) -> None:
        self._store.set(token_key(org_name), json.dumps(token.to_dict()))

    def delete_token(self, org_name: str) -> None:
        self._store.delete(token_key(org_name))
