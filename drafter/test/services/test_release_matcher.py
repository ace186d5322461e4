from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone

from drafter.output.console import MockConsole
from drafter.services.release.matcher import (
    find_releases,
    format_marker,
    marker_pr_number,
    sort_releases,
)
from drafter.services.release.model import Release

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _release(
    tag: str,
    day: int,
    *,
    draft: bool = False,
    prerelease: bool = False,
    target: str = "main",
    body: str | None = None,
) -> Release:
    return Release(
        tag_name=tag,
        created_at=T0 + timedelta(days=day),
        target_commitish=target,
        draft=draft,
        prerelease=prerelease,
        body=body,
    )


def _find(releases: list[Release], **kwargs: object):
    params: dict[str, object] = {
        "target_commitish": "refs/heads/main",
        "filter_by_commitish": False,
        "include_pre_releases": False,
        "console": MockConsole(),
    }
    params.update(kwargs)
    return find_releases(releases, **params)  # type: ignore[arg-type]


HISTORY = [
    _release("v1.0.0", 1),
    _release("v1.10.0", 2),
    _release("v1.9.0", 3),
    _release("v2.0.0-beta.1", 4, prerelease=True),
    _release("v2.0.0-beta.2", 5, draft=True, prerelease=True, body=f"x\n\n{format_marker(42)}\n"),
    _release("nightly", 6),
    _release("v1.11.0", 7, draft=True),
]


def test_marker_roundtrip() -> None:
    assert format_marker(42) == "<!-- pr-number: 42 -->"
    assert marker_pr_number("notes\n\n<!-- pr-number: 42 -->\n") == 42
    assert marker_pr_number("no marker") is None
    assert marker_pr_number(None) is None


def test_baseline_is_last_qualifying_release() -> None:
    matched = _find(HISTORY)
    assert matched.baseline is not None
    assert matched.baseline.tag_name == "nightly"


def test_version_order_beats_creation_order() -> None:
    ordered = sort_releases([_release("v1.10.0", 1), _release("v1.9.0", 2)])
    assert [r.tag_name for r in ordered] == ["v1.9.0", "v1.10.0"]


def test_unparseable_tag_falls_back_to_creation_time() -> None:
    releases = [_release("v1.0.0", 1), _release("nightly", 0)]
    ordered = sort_releases(releases)
    assert [r.tag_name for r in ordered] == ["nightly", "v1.0.0"]


def test_prereleases_excluded_unless_included() -> None:
    releases = [_release("v1.0.0", 1), _release("v1.1.0-rc.1", 2, prerelease=True)]
    assert _find(releases).baseline.tag_name == "v1.0.0"  # type: ignore[union-attr]
    included = _find(releases, include_pre_releases=True)
    assert included.baseline.tag_name == "v1.1.0-rc.1"  # type: ignore[union-attr]


def test_drafts_never_baseline() -> None:
    releases = [_release("v1.0.0", 1), _release("v1.1.0", 2, draft=True)]
    assert _find(releases).baseline.tag_name == "v1.0.0"  # type: ignore[union-attr]


def test_empty_history() -> None:
    console = MockConsole()
    matched = _find([], console=console, prerelease_identifier="beta", pr_number=1)
    assert matched.baseline is None
    assert matched.pr_draft is None
    assert console.find("No baseline release found")


def test_commitish_filter() -> None:
    releases = [_release("v1.0.0", 1, target="main"), _release("v2.0.0", 2, target="next")]
    matched = _find(releases, filter_by_commitish=True, target_commitish="refs/heads/main")
    assert matched.baseline.tag_name == "v1.0.0"  # type: ignore[union-attr]


def test_tag_prefix_filter() -> None:
    releases = [_release("app-v1.0.0", 1), _release("lib-v3.0.0", 2)]
    matched = _find(releases, tag_prefix="app-")
    assert matched.baseline.tag_name == "app-v1.0.0"  # type: ignore[union-attr]


def test_pr_draft_found_by_marker() -> None:
    matched = _find(HISTORY, prerelease_identifier="beta", pr_number=42)
    assert matched.pr_draft is not None
    assert matched.pr_draft.tag_name == "v2.0.0-beta.2"


def test_pr_draft_latest_of_several() -> None:
    marker = format_marker(7)
    releases = [
        _release("v1.0.0-beta.0", 1, draft=True, prerelease=True, body=marker),
        _release("v1.0.0-beta.3", 2, draft=True, prerelease=True, body=marker),
        _release("v1.0.0-beta.1", 3, draft=True, prerelease=True, body=marker),
    ]
    matched = _find(releases, prerelease_identifier="beta", pr_number=7)
    assert matched.pr_draft.tag_name == "v1.0.0-beta.3"  # type: ignore[union-attr]


def test_pr_draft_requires_identifier_and_number() -> None:
    assert _find(HISTORY, pr_number=42).pr_draft is None
    assert _find(HISTORY, prerelease_identifier="beta").pr_draft is None
    assert _find(HISTORY, prerelease_identifier="beta", pr_number=43).pr_draft is None


def test_selection_is_independent_of_listing_order() -> None:
    reference = _find(HISTORY, prerelease_identifier="beta", pr_number=42)
    rng = random.Random(1234)
    for _ in range(50):
        shuffled = list(HISTORY)
        rng.shuffle(shuffled)
        matched = _find(shuffled, prerelease_identifier="beta", pr_number=42)
        assert matched == reference


def test_mixed_tags_order_is_independent_of_listing_order() -> None:
    releases = [
        _release("v1.0.0", 3),
        _release("latest", 1),
        _release("v0.9.0", 2),
        _release("edge", 4),
        _release("v1.0.1", 0),
    ]
    expected = [r.tag_name for r in sort_releases(releases)]
    rng = random.Random(99)
    for _ in range(50):
        shuffled = list(releases)
        rng.shuffle(shuffled)
        assert [r.tag_name for r in sort_releases(shuffled)] == expected
