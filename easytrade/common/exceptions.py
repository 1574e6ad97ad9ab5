"""
Custom exceptions for the trade client.
"""

from __future__ import annotations


class TradeClientError(Exception):
    """Base exception for trade client failures."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthRejected(TradeClientError):
    """Credentials were rejected by the remote service."""

    def __init__(self, message: str) -> None:
        super().__init__(message, 401)


class TwoFactorRequired(TradeClientError):
    """The remote service wants a Steam Guard code."""

    def __init__(
        self,
        message: str = (
            "Two-factor authentication required. Please enter your Steam Guard code."
        ),
    ) -> None:
        super().__init__(message, 401)


class HandshakeFailed(TradeClientError):
    """Credentials were accepted but the web session could not be established."""

    def __init__(self, message: str) -> None:
        super().__init__(message, 502)


class LoginAborted(TradeClientError):
    """A login attempt was overtaken by logout or by a newer login."""

    def __init__(self, message: str = "Login was cancelled") -> None:
        super().__init__(message, 409)


class RateLimitError(TradeClientError):
    """Exception for rate limiting."""

    def __init__(self, message: str) -> None:
        super().__init__(message, 429)


class TransportDisconnected(TradeClientError):
    def __init__(self, message: str = "Disconnected from Steam") -> None:
        super().__init__(message, 503)


class SessionExpired(TradeClientError):
    def __init__(self, message: str = "Web session expired") -> None:
        super().__init__(message, 401)


class RecoveryExhausted(TradeClientError):
    """Reconnection gave up; only a fresh login helps."""

    def __init__(
        self, message: str = "Reconnection attempts exhausted, please log in again"
    ) -> None:
        super().__init__(message, 503)


class NotLoggedIn(TradeClientError):
    def __init__(self, message: str = "Not logged in") -> None:
        super().__init__(message, 401)


class OfferNotFound(TradeClientError):
    def __init__(self, offer_id: str) -> None:
        super().__init__(f"Offer not found: {offer_id}", 404)
        self.offer_id = offer_id


class OfferNotActive(TradeClientError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class SecretUnavailable(TradeClientError):
    """No usable authenticator secret for an account."""

    def __init__(self, message: str) -> None:
        super().__init__(message, 404)
