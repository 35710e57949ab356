"""Exceptions shared by the providers, services and API layer."""

from typing import Optional


class WalletMatchError(Exception):
    """Base error for walletmatch."""


class UpstreamError(WalletMatchError):
    """An upstream API call failed or returned an error payload."""

    def __init__(self, provider: str, message: str, status_code: Optional[int] = None):
        self.provider = provider
        self.status_code = status_code
        super().__init__(f"{provider}: {message}")


class RateLimitExceeded(WalletMatchError):
    """Rate limit has been exceeded."""

    def __init__(self, endpoint: str, limit: int, window_seconds: int, retry_after: int):
        self.endpoint = endpoint
        self.limit = limit
        self.window_seconds = window_seconds
        self.retry_after = retry_after
        super().__init__(
            f"Rate limit exceeded for {endpoint}: {limit} requests per {window_seconds}s"
        )


class SignerNotApproved(WalletMatchError):
    """A follow was attempted with a signer that is not approved."""

    def __init__(self, status: str, approval_url: Optional[str] = None):
        self.status = status
        self.approval_url = approval_url
        super().__init__("Signer is not approved")


__all__ = ["WalletMatchError", "UpstreamError", "RateLimitExceeded", "SignerNotApproved"]
