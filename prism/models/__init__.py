"""Data models for auth state, pull requests and the PR feed (Pydantic)."""

from prism.models.auth import AuthState, AuthStatus, DeviceCode
from prism.models.pr import CATEGORIES, PRFeed, PullRequest, ReviewStatus

__all__ = [
    "CATEGORIES",
    "AuthState",
    "AuthStatus",
    "DeviceCode",
    "PRFeed",
    "PullRequest",
    "ReviewStatus",
]
