from __future__ import annotations

from collections.abc import Iterable

from drafter.core.config import BUMP_CLASSES, DrafterConfig
from drafter.core.result import Err, Ok, Result
from drafter.output.console import ConsoleProtocol
from drafter.services.release.errors import ReleaseError
from drafter.services.release.model import MergedChange


_PRIORITY = {"patch": 1, "minor": 2, "major": 3}


def is_excluded(change: MergedChange, exclude_labels: Iterable[str]) -> bool:
    excluded = set(exclude_labels)
    return any(label in excluded for label in change.labels)


def is_included(change: MergedChange, include_labels: Iterable[str]) -> bool:
    included = set(include_labels)
    # no include filter admits everything
    return not included or any(label in included for label in change.labels)


def filter_changes(changes: Iterable[MergedChange], config: DrafterConfig) -> list[MergedChange]:
    """Apply the exclude/include label filters.

    The changelog and the version bump scan both consume this output, so a
    change hidden from one is hidden from the other.
    """
    return [
        c
        for c in changes
        if not is_excluded(c, config.exclude_labels) and is_included(c, config.include_labels)
    ]


def label_bump_map(config: DrafterConfig) -> dict[str, str]:
    """Map each trigger label to its bump class.

    A label listed under several classes maps to the highest one.
    """
    mapping: dict[str, str] = {}
    for bump in BUMP_CLASSES:
        for label in config.version_resolver.labels_for(bump):
            mapping[label] = bump
    return mapping


def resolve_increment(
    changes: Iterable[MergedChange],
    config: DrafterConfig,
    *,
    prerelease: bool,
    console: ConsoleProtocol,
) -> Result[str, ReleaseError]:
    """Resolve the bump kind for this run.

    The highest class present wins (major > minor > patch); without any
    trigger label the configured default applies. A pre-release run with an
    identifier configured gets the `pre` form (`preminor`, ...).
    """
    lookup = label_bump_map(config)
    found = {
        lookup[label]
        for change in filter_changes(changes, config)
        for label in change.labels
        if label in lookup
    }
    console.debug(f"Bump classes from labels: {sorted(found, key=_PRIORITY.__getitem__)}")

    if found:
        bump = max(found, key=_PRIORITY.__getitem__)
    else:
        bump = config.version_resolver.default

    if bump not in _PRIORITY:
        return Err(
            ReleaseError(
                kind="version_unresolved",
                message=f"could not resolve a version bump (default: {bump!r})",
                hint="Set version-resolver.default to major, minor or patch.",
            )
        )

    console.debug(f"Version bump: {bump}")
    if prerelease and config.prerelease_identifier:
        return Ok(f"pre{bump}")
    return Ok(bump)
