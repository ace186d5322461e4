from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from functools import cmp_to_key

from drafter.output.console import ConsoleProtocol
from drafter.services.release.model import Release
from drafter.services.release.semver import compare
from drafter.services.release.versions import strip_prefix


PR_MARKER_RE = re.compile(r"<!-- pr-number: (\d+) -->")

# `refs/heads/main` and `main` name the same branch
_HEAD_REF_RE = re.compile(r"^refs/heads/")


@dataclass(frozen=True, slots=True)
class MatchedReleases:
    baseline: Release | None
    pr_draft: Release | None


def format_marker(pr_number: int) -> str:
    return f"<!-- pr-number: {pr_number} -->"


def marker_pr_number(body: str | None) -> int | None:
    if not body:
        return None
    m = PR_MARKER_RE.search(body)
    if m is None:
        return None
    return int(m.group(1))


def sort_releases(releases: Sequence[Release], tag_prefix: str = "") -> list[Release]:
    """Sort ascending by version, falling back to creation time per pair.

    A pair where either tag is not version-like is ordered by creation time.
    Input is first put in (created_at, tag_name) order so the result only
    depends on the set of releases, not on how they were listed.
    """

    def _cmp(a: Release, b: Release) -> int:
        try:
            return compare(
                strip_prefix(a.tag_name, tag_prefix), strip_prefix(b.tag_name, tag_prefix)
            )
        except ValueError:
            return (a.created_at > b.created_at) - (a.created_at < b.created_at)

    canonical = sorted(releases, key=lambda r: (r.created_at, r.tag_name))
    return sorted(canonical, key=cmp_to_key(_cmp))


def find_releases(
    releases: Sequence[Release],
    *,
    target_commitish: str,
    filter_by_commitish: bool,
    include_pre_releases: bool,
    console: ConsoleProtocol,
    tag_prefix: str = "",
    prerelease_identifier: str = "",
    pr_number: int | None = None,
) -> MatchedReleases:
    """Select the baseline release and the change-request draft.

    The draft is only looked up when a pre-release identifier is configured
    and the change-request number is known.
    """
    console.debug(f"Found {len(releases)} releases")

    candidates: Sequence[Release] = releases
    if filter_by_commitish:
        target = _HEAD_REF_RE.sub("", target_commitish)
        candidates = [r for r in candidates if _HEAD_REF_RE.sub("", r.target_commitish) == target]
    if tag_prefix:
        candidates = [r for r in candidates if r.tag_name.startswith(tag_prefix)]

    ordered = sort_releases(candidates, tag_prefix)

    qualifying = [r for r in ordered if not r.draft and (include_pre_releases or not r.prerelease)]
    baseline = qualifying[-1] if qualifying else None
    if baseline is not None:
        console.debug(f"Baseline release: {baseline.tag_name}")
    else:
        console.debug("No baseline release found")

    pr_draft: Release | None = None
    if prerelease_identifier and pr_number is not None:
        matching = [r for r in ordered if marker_pr_number(r.body) == pr_number]
        console.debug(f"Found {len(matching)} candidate releases matching PR #{pr_number}")
        if matching:
            pr_draft = matching[-1]
        else:
            console.debug(f"No existing release found matching PR #{pr_number}")

    return MatchedReleases(baseline=baseline, pr_draft=pr_draft)
