from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone

from drafter.core.config import SortBy, SortDirection
from drafter.services.release.model import MergedChange


_REF_RE = re.compile(r"^refs/(?:heads|tags)/")
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def sort_changes(
    changes: Sequence[MergedChange],
    sort_by: SortBy = "merged_at",
    direction: SortDirection = "descending",
) -> list[MergedChange]:
    """Order merged changes for the changelog (stable)."""
    reverse = direction == "descending"
    if sort_by == "title":
        return sorted(changes, key=lambda c: c.title, reverse=reverse)
    return sorted(changes, key=lambda c: c.merged_at or _EPOCH, reverse=reverse)


def strip_ref(ref: str) -> str:
    return _REF_RE.sub("", ref)


def is_triggerable_reference(ref: str, references: Iterable[str]) -> bool:
    """Whether a push to `ref` should draft a release.

    No configured references means every ref triggers.
    """
    allowed = {strip_ref(r) for r in references}
    return not allowed or strip_ref(ref) in allowed
