"""Persistence for known organizations and SSO tokens."""

from aws_simple_sso.storage.cache import ORG_URLS_KEY, SSOCache, token_key
from aws_simple_sso.storage.store import FileKeyValueStore, KeyValueStore, MemoryKeyValueStore

__all__ = [
    "ORG_URLS_KEY",
    "FileKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SSOCache",
    "token_key",
]
