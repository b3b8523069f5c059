"""Exceptions raised by the SSO authentication flow."""

from __future__ import annotations


class SSOError(Exception):
    """Base error for SSO credential acquisition."""

    def __init__(self, message: str, code: str = "sso_error") -> None:
        super().__init__(message)
        self.code = code


class ClientRegistrationError(SSOError):
    """Raised when the public OIDC client cannot be registered."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Error registering SSO client: {message}", "register_client_failed")


class DeviceAuthorizationError(SSOError):
    """Raised when device authorization cannot be started."""

    def __init__(self, message: str) -> None:
        super().__init__(
            f"Error starting device authorization: {message}", "device_authorization_failed"
        )


class TokenTimeoutError(SSOError):
    """Raised when the user did not finish signing in within the poll budget."""

    def __init__(self, attempts: int) -> None:
        super().__init__(
            f"Error creating token: Timeout after {attempts} attempts", "token_timeout"
        )
        self.attempts = attempts


class TokenExchangeError(SSOError):
    """A single failed device-code token exchange.

    ``code`` carries the OAuth error name, e.g. ``authorization_pending``.
    """


class SSOApiError(SSOError):
    """Raised when an SSO portal API call fails."""


class NoCandidatesError(SSOError):
    """Raised when there is nothing to choose from."""

    def __init__(self, kind: str) -> None:
        super().__init__(f"No {kind} available", "no_candidates")


class SelectionCancelledError(SSOError):
    """Raised when the user dismisses an interactive prompt."""

    def __init__(self, message: str = "Selection cancelled by user") -> None:
        super().__init__(message, "cancelled")
