from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from drafter.core.config import DrafterConfig
from drafter.core.result import Err, Ok, Result
from drafter.output.console import ConsoleProtocol, Style
from drafter.services.release.builder import ReleaseInputs, build_release_info
from drafter.services.release.errors import ReleaseError
from drafter.services.release.gh import find_associated_pr
from drafter.services.release.matcher import find_releases
from drafter.services.release.model import PublishedRelease, ReleaseDescriptor
from drafter.services.release.sorting import is_triggerable_reference, sort_changes
from drafter.services.release.sources import ChangeSource, ReleasePublisher, ReleaseSource

DraftAction = Literal["created", "updated", "dry_run"]


@dataclass(frozen=True, slots=True)
class DraftOutcome:
    descriptor: ReleaseDescriptor
    action: DraftAction
    published: PublishedRelease | None = None


def associate_pull_request(
    *,
    workspace_root: Path,
    repo: str,
    commit_sha: str,
    target_branches: list[str],
    console: ConsoleProtocol,
) -> int | None:
    """Open pull request a pushed commit belongs to; None when unknown.

    Lookup failures are reported and the run continues without it.
    """
    short = commit_sha[:7]
    found = find_associated_pr(
        workspace_root=workspace_root,
        repo=repo,
        commit_sha=commit_sha,
        target_branches=target_branches,
    )
    if isinstance(found, Err):
        console.warning(f"Could not list PRs for commit {short}: {found.error.pretty()}")
        return None

    if found.value is None:
        console.print(
            f"Push commit {short} is not associated with an open PR targeting "
            f"{'/'.join(target_branches)}",
            Style.DIM,
        )
    else:
        console.print(f"Push is associated with open PR #{found.value}", Style.DIM)
    return found.value


class DraftService:
    """Fetch, compute, then create or update one draft release."""

    def __init__(
        self,
        *,
        console: ConsoleProtocol,
        releases: ReleaseSource,
        changes: ChangeSource,
        publisher: ReleasePublisher | None = None,
    ) -> None:
        self._console = console
        self._releases = releases
        self._changes = changes
        self._publisher = publisher

    def run(
        self,
        *,
        config: DrafterConfig,
        owner: str,
        repo: str,
        ref: str | None = None,
        pr_number: int | None = None,
        version: str | None = None,
        tag: str | None = None,
        name: str | None = None,
        draft: bool = True,
        dry_run: bool = False,
    ) -> Result[DraftOutcome | None, ReleaseError]:
        """Returns Ok(None) when `ref` is not configured to trigger drafting."""
        console = self._console
        if ref is not None and not is_triggerable_reference(ref, config.references):
            console.print(f"Ignoring push to {ref}: not in references", Style.DIM)
            return Ok(None)

        target_commitish = config.commitish or ref or ""
        include_pre_releases = config.include_pre_releases or (
            config.prerelease and bool(config.prerelease_identifier)
        )

        releases = self._releases.list_releases()
        if isinstance(releases, Err):
            return releases

        matched = find_releases(
            releases.value,
            target_commitish=target_commitish,
            filter_by_commitish=config.filter_by_commitish,
            include_pre_releases=include_pre_releases,
            console=console,
            tag_prefix=config.tag_prefix,
            prerelease_identifier=config.prerelease_identifier,
            pr_number=pr_number,
        )

        change_set = self._changes.list_changes(matched.baseline)
        if isinstance(change_set, Err):
            return change_set
        changes = dataclasses.replace(
            change_set.value,
            pull_requests=tuple(
                sort_changes(change_set.value.pull_requests, config.sort_by, config.sort_direction)
            ),
        )

        inputs = ReleaseInputs(
            owner=owner,
            repo=repo,
            target_commitish=target_commitish,
            draft=draft,
            pr_number=pr_number,
            version=version,
            tag=tag,
            name=name,
        )
        built = build_release_info(
            changes=changes, config=config, matched=matched, inputs=inputs, console=console
        )
        if isinstance(built, Err):
            return built
        descriptor = built.value

        if dry_run or self._publisher is None:
            return Ok(DraftOutcome(descriptor=descriptor, action="dry_run"))

        if descriptor.update_existing and matched.pr_draft is not None:
            console.print(
                f"Updating existing PR-specific draft release for PR #{pr_number}", Style.DIM
            )
            updated = self._publisher.update(matched.pr_draft, descriptor)
            if isinstance(updated, Err):
                return updated
            return Ok(
                DraftOutcome(descriptor=descriptor, action="updated", published=updated.value)
            )

        console.print("Creating new release", Style.DIM)
        created = self._publisher.create(descriptor)
        if isinstance(created, Err):
            return created
        return Ok(DraftOutcome(descriptor=descriptor, action="created", published=created.value))
