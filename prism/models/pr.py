"""Pull request and categorized feed models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ReviewStatus(str, Enum):
    """Review outcome shown next to a PR title."""

    NONE = "none"
    APPROVED = "approved"
    CHANGES_REQUESTED = "changes_requested"


class PullRequest(BaseModel):
    """Pull request as returned by fetch_pull_requests.

    Accepts the host's wire names (repo, avatar, status). Author, repo and
    avatar are not used by the HTML rendering but are kept as received.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    number: int = 0
    title: str
    repo_name: str = Field(default="", alias="repo")
    author: str = ""
    avatar_url: str | None = Field(default=None, alias="avatar")
    url: str
    status: ReviewStatus = ReviewStatus.NONE

    @field_validator("status", mode="before")
    @classmethod
    def _absent_status_is_none(cls, value: object) -> object:
        if value is None or value == "":
            return ReviewStatus.NONE
        return value

    @property
    def key(self) -> str:
        """Identity of a PR across categories.

        The number is only unique within a repo and the host may omit it,
        so the canonical url is used.
        """
        return self.url


CATEGORIES = ("needs_review", "approved", "waiting_for_reviewers", "drafts")


class PRFeed(BaseModel):
    """Four disjoint, ordered PR categories. Replaced wholesale on each fetch."""

    model_config = ConfigDict(frozen=True)

    needs_review: tuple[PullRequest, ...] = ()
    approved: tuple[PullRequest, ...] = ()
    waiting_for_reviewers: tuple[PullRequest, ...] = ()
    drafts: tuple[PullRequest, ...] = ()

    @field_validator(*CATEGORIES, mode="before")
    @classmethod
    def _null_is_empty(cls, value: object) -> object:
        return () if value is None else value

    @model_validator(mode="after")
    def _categories_are_disjoint(self) -> "PRFeed":
        seen: dict[str, str] = {}
        for name in CATEGORIES:
            for pr in getattr(self, name):
                other = seen.get(pr.key)
                if other is not None and other != name:
                    raise ValueError(f"PR {pr.url} appears in both {other} and {name}")
                seen[pr.key] = name
        return self

    def category(self, name: str) -> tuple[PullRequest, ...]:
        return getattr(self, name)

    def is_empty(self) -> bool:
        return not any(getattr(self, name) for name in CATEGORIES)

    def total(self) -> int:
        return sum(len(getattr(self, name)) for name in CATEGORIES)
