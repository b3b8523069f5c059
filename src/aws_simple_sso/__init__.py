"""Automate the IAM Identity Center device sign-in and fetch role credentials."""

import logging

from aws_simple_sso.errors import (
    ClientRegistrationError,
    DeviceAuthorizationError,
    NoCandidatesError,
    SelectionCancelledError,
    SSOApiError,
    SSOError,
    TokenExchangeError,
    TokenTimeoutError,
)
from aws_simple_sso.flow import (
    SSOAuthenticator,
    acquire_token,
    authenticate,
    fetch_role_credentials,
    get_authenticator,
    resolve_account,
    resolve_org_url,
    resolve_role,
)
from aws_simple_sso.logging_utils import configure_logging
from aws_simple_sso.matching import Exact, Pattern, Predicate, Substring
from aws_simple_sso.models import Account, Credentials, OrgUrl, Role, Token

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Account",
    "ClientRegistrationError",
    "Credentials",
    "DeviceAuthorizationError",
    "Exact",
    "NoCandidatesError",
    "OrgUrl",
    "Pattern",
    "Predicate",
    "Role",
    "SSOApiError",
    "SSOAuthenticator",
    "SSOError",
    "SelectionCancelledError",
    "Substring",
    "Token",
    "TokenExchangeError",
    "TokenTimeoutError",
    "acquire_token",
    "authenticate",
    "configure_logging",
    "fetch_role_credentials",
    "get_authenticator",
    "resolve_account",
    "resolve_org_url",
    "resolve_role",
]
