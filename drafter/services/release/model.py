from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal


BumpClass = Literal["major", "minor", "patch"]


@dataclass(frozen=True, slots=True)
class Release:
    """An existing release as listed by the hosting platform."""

    tag_name: str
    created_at: datetime
    target_commitish: str = ""
    draft: bool = False
    prerelease: bool = False
    body: str | None = None
    name: str | None = None
    # None for releases read from a snapshot file
    id: int | None = None


@dataclass(frozen=True, slots=True)
class Author:
    login: str
    url: str = ""
    is_bot: bool = False


@dataclass(frozen=True, slots=True)
class MergedChange:
    """A merged pull request."""

    number: int
    title: str
    body: str = ""
    url: str = ""
    # None when the account was deleted
    author: Author | None = None
    base_ref_name: str = ""
    head_ref_name: str = ""
    labels: tuple[str, ...] = ()
    merged_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class CommitAuthor:
    name: str
    login: str | None = None


@dataclass(frozen=True, slots=True)
class Commit:
    sha: str
    author: CommitAuthor


@dataclass(frozen=True, slots=True)
class ChangeSet:
    """Commits and merged pull requests since the baseline release."""

    commits: tuple[Commit, ...] = ()
    pull_requests: tuple[MergedChange, ...] = ()


@dataclass(frozen=True, slots=True)
class ReleaseDescriptor:
    """Release ready to be created, or used to update a matched draft."""

    name: str
    tag: str
    body: str
    target_commitish: str
    prerelease: bool
    draft: bool
    make_latest: str
    resolved_version: str
    major_version: int
    minor_version: int
    patch_version: int
    # True: update the matched change-request draft instead of creating
    update_existing: bool = False


@dataclass(frozen=True, slots=True)
class PublishedRelease:
    """What the platform returned after create/update."""

    id: int | None
    tag_name: str
    name: str
    html_url: str = ""
    upload_url: str = ""
