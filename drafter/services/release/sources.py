"""Where releases and merged changes come from, and where drafts go."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from drafter.core.result import Err, Ok, Result
from drafter.services.release import gh
from drafter.services.release.errors import ReleaseError
from drafter.services.release.model import ChangeSet, PublishedRelease, Release, ReleaseDescriptor
from drafter.services.release.payload import parse_change_set, parse_releases


class ReleaseSource(Protocol):
    def list_releases(self) -> Result[list[Release], ReleaseError]: ...


class ChangeSource(Protocol):
    def list_changes(self, baseline: Release | None) -> Result[ChangeSet, ReleaseError]: ...


class ReleasePublisher(Protocol):
    def create(self, descriptor: ReleaseDescriptor) -> Result[PublishedRelease, ReleaseError]: ...

    def update(
        self, release: Release, descriptor: ReleaseDescriptor
    ) -> Result[PublishedRelease, ReleaseError]: ...


def _read_json(path: Path) -> Result[object, ReleaseError]:
    try:
        return Ok(json.loads(path.read_text(encoding="utf-8")))
    except OSError as e:
        return Err(ReleaseError(kind="invalid_input", message=f"failed to read {path}: {e}"))
    except json.JSONDecodeError as e:
        return Err(ReleaseError(kind="invalid_input", message=f"invalid JSON in {path}: {e}"))


@dataclass(frozen=True, slots=True)
class SnapshotReleaseSource:
    """Releases from a JSON file shaped like the REST release listing."""

    path: Path

    def list_releases(self) -> Result[list[Release], ReleaseError]:
        obj = _read_json(self.path)
        if isinstance(obj, Err):
            return obj
        return parse_releases(obj.value)


@dataclass(frozen=True, slots=True)
class SnapshotChangeSource:
    """Changes from a JSON file already scoped to the next release.

    The baseline is not used to narrow the snapshot.
    """

    path: Path

    def list_changes(self, baseline: Release | None) -> Result[ChangeSet, ReleaseError]:
        obj = _read_json(self.path)
        if isinstance(obj, Err):
            return obj
        return parse_change_set(obj.value)


@dataclass(frozen=True, slots=True)
class GhReleaseSource:
    workspace_root: Path
    repo: str

    def list_releases(self) -> Result[list[Release], ReleaseError]:
        return gh.list_releases(workspace_root=self.workspace_root, repo=self.repo)


@dataclass(frozen=True, slots=True)
class GhReleasePublisher:
    workspace_root: Path
    repo: str

    def create(self, descriptor: ReleaseDescriptor) -> Result[PublishedRelease, ReleaseError]:
        return gh.create_release(
            workspace_root=self.workspace_root, repo=self.repo, descriptor=descriptor
        )

    def update(
        self, release: Release, descriptor: ReleaseDescriptor
    ) -> Result[PublishedRelease, ReleaseError]:
        return gh.update_release(
            workspace_root=self.workspace_root,
            repo=self.repo,
            release=release,
            descriptor=descriptor,
        )
