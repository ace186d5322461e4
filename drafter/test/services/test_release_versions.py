from __future__ import annotations

from datetime import datetime, timezone

import pytest

from drafter.services.release.model import Release
from drafter.services.release.semver import SemVer
from drafter.services.release.template import render
from drafter.services.release.versions import coerce_release, get_version_info

TEMPLATE = "$MAJOR.$MINOR.$PATCH$PRERELEASE"
T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _release(tag: str, name: str | None = None) -> Release:
    return Release(tag_name=tag, created_at=T0, name=name)


def test_no_history_defaults() -> None:
    info = get_version_info(None, version_template=TEMPLATE, increment="minor")
    assert info.resolved == SemVer(0, 1, 0)
    assert render("$RESOLVED_VERSION", info.tokens) == "0.1.0"
    assert render("$NEXT_MAJOR_VERSION", info.tokens) == "1.0.0"
    assert render("$NEXT_PATCH_VERSION", info.tokens) == "0.1.0"


def test_no_history_rejects_unknown_increment() -> None:
    with pytest.raises(ValueError):
        get_version_info(None, version_template=TEMPLATE, increment="huge")


def test_bump_from_baseline() -> None:
    info = get_version_info(_release("v1.2.3"), version_template=TEMPLATE, increment="minor")
    assert info.resolved_version == "1.3.0"
    assert render("$NEXT_PATCH_VERSION", info.tokens) == "1.2.4"
    assert render("$NEXT_MAJOR_VERSION", info.tokens) == "2.0.0"
    assert render("$NEXT_MINOR_VERSION_MINOR", info.tokens) == "3"


def test_prerelease_increment() -> None:
    info = get_version_info(
        _release("v1.2.3"),
        version_template=TEMPLATE,
        increment="preminor",
        prerelease_identifier="beta",
    )
    assert info.resolved_version == "1.3.0-beta.0"
    assert render("$NEXT_PRERELEASE_VERSION", info.tokens) == "-beta.0"


def test_input_version_wins() -> None:
    info = get_version_info(
        _release("v1.2.3"), version_template=TEMPLATE, increment="patch", input_version="v2.0.0"
    )
    assert info.resolved_version == "2.0.0"
    assert render("$INPUT_VERSION", info.tokens) == "2.0.0"
    # next tokens still derive from the baseline
    assert render("$NEXT_PATCH_VERSION", info.tokens) == "1.2.4"


def test_input_version_without_history() -> None:
    info = get_version_info(
        None, version_template=TEMPLATE, increment="patch", input_version="3.1.0"
    )
    assert info.resolved_version == "3.1.0"


def test_custom_version_template() -> None:
    info = get_version_info(_release("v1.2.3"), version_template="$MAJOR.$MINOR", increment="major")
    assert render("$RESOLVED_VERSION", info.tokens) == "2.0"
    assert info.resolved_version == "2.0.0"


def test_tag_prefix_is_stripped() -> None:
    assert coerce_release(_release("app-v1.2.3"), "app-") == SemVer(1, 2, 3)


def test_name_used_when_tag_has_no_version() -> None:
    assert coerce_release(_release("latest", name="Release 1.4.2"), "") == SemVer(1, 4, 2)
    assert coerce_release(_release("latest"), "") is None


def test_with_resolved() -> None:
    info = get_version_info(_release("v1.2.3"), version_template=TEMPLATE, increment="patch")
    moved = info.with_resolved(SemVer(1, 2, 4, ("rc", 0)), TEMPLATE)
    assert moved.resolved_version == "1.2.4-rc.0"
    assert render("$RESOLVED_VERSION", moved.tokens) == "1.2.4-rc.0"
    assert render("$RESOLVED_VERSION", info.tokens) == "1.2.4"
