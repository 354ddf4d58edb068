from __future__ import annotations


class HisabError(Exception):
    """Base class for errors raised by hisab_daily."""


class UpstreamError(HisabError):
    """A verification provider could not be reached or returned an unusable payload."""

    def __init__(self, message: str, provider: str | None = None) -> None:
        super().__init__(message)
        self.provider = provider


class InvalidQueryError(HisabError, ValueError):
    """The deed query was empty."""


class AuthError(HisabError):
    """Sign-in or sign-up was rejected."""
