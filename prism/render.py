"""Projection of a PRFeed to display sections and HTML.

Pure functions: the same feed and mode always give the same sections.
"""

import html
from dataclasses import dataclass
from typing import Iterable, Literal

from prism.models import PRFeed, PullRequest, ReviewStatus

EmptyMode = Literal["hide", "placeholder"]

PLACEHOLDER = "None"
CHECK_GLYPH = "✓"

# (feed attribute, section title, entry css class)
SECTION_LAYOUT = (
    ("needs_review", "Needs Your Review", "needs-review"),
    ("approved", "Approved", "approved"),
    ("waiting_for_reviewers", "Waiting for Reviewers", "waiting"),
    ("drafts", "Drafts", "draft"),
)


@dataclass(frozen=True)
class Entry:
    """One PR line. Opening it navigates to url."""

    title_html: str
    status_html: str
    css_class: str
    url: str
    pr: PullRequest


@dataclass(frozen=True)
class Section:
    key: str
    title: str
    visible: bool
    entries: tuple[Entry, ...]
    placeholder: str | None = None


def status_badge(status: ReviewStatus) -> str:
    if status is ReviewStatus.APPROVED:
        return f'<span class="pr-status-check">{CHECK_GLYPH}</span>'
    if status is ReviewStatus.CHANGES_REQUESTED:
        return '<span class="pr-status-badge changes">Changes</span>'
    return ""


def render_entry(pr: PullRequest, css_class: str) -> Entry:
    return Entry(
        title_html=html.escape(pr.title, quote=True),
        status_html=status_badge(pr.status),
        css_class=css_class,
        url=pr.url,
        pr=pr,
    )


def render_feed(feed: PRFeed, empty_mode: EmptyMode = "hide") -> tuple[Section, ...]:
    """Build the four sections in display order.

    Empty categories are hidden, or with empty_mode="placeholder" shown
    with a "None" line.
    """
    if empty_mode not in ("hide", "placeholder"):
        raise ValueError(f"Unknown empty section mode: {empty_mode!r}")
    sections = []
    for key, title, css_class in SECTION_LAYOUT:
        prs = feed.category(key)
        entries = tuple(render_entry(pr, css_class) for pr in prs)
        if entries:
            sections.append(Section(key=key, title=title, visible=True, entries=entries))
        elif empty_mode == "placeholder":
            sections.append(Section(key=key, title=title, visible=True, entries=(), placeholder=PLACEHOLDER))
        else:
            sections.append(Section(key=key, title=title, visible=False, entries=()))
    return tuple(sections)


def entry_to_html(entry: Entry) -> str:
    return (
        f'<div class="pr-item {entry.css_class} fade-in" data-url="{html.escape(entry.url, quote=True)}">'
        f'<div class="pr-title">{entry.title_html}</div>'
        f"{entry.status_html}"
        "</div>"
    )


def section_to_html(section: Section) -> str:
    hidden = "" if section.visible else " hidden"
    if section.entries:
        body = "".join(entry_to_html(e) for e in section.entries)
    elif section.placeholder:
        body = f'<div class="pr-empty">{html.escape(section.placeholder)}</div>'
    else:
        body = ""
    return (
        f'<section id="section-{section.key}" class="pr-section{hidden}">'
        f'<h2 class="section-title">{html.escape(section.title)}</h2>'
        f'<div class="pr-list">{body}</div>'
        "</section>"
    )


def sections_to_html(sections: Iterable[Section]) -> str:
    return "\n".join(section_to_html(s) for s in sections)


def sections_to_text(sections: Iterable[Section]) -> str:
    """Plain-text rendering for the console view. Titles are not escaped."""
    lines = []
    for section in sections:
        if not section.visible:
            continue
        lines.append(f"{section.title} ({len(section.entries)})")
        if section.placeholder and not section.entries:
            lines.append(f"  {section.placeholder}")
        for i, entry in enumerate(section.entries, start=1):
            status = ""
            if entry.pr.status is ReviewStatus.APPROVED:
                status = f" {CHECK_GLYPH}"
            elif entry.pr.status is ReviewStatus.CHANGES_REQUESTED:
                status = " [Changes]"
            repo = f"{entry.pr.repo_name}#{entry.pr.number} " if entry.pr.repo_name else ""
            lines.append(f"  {i}. {repo}{entry.pr.title}{status}")
    return "\n".join(lines)
