"""Pre-release counter for change-request drafts.

Each preview build of the same pull request updates one draft. The counter
lives in the draft's tag (`v1.2.0-beta.3`); a run that finds the draft
advances it (`-beta.4`) without recomputing the version from labels.
"""

from __future__ import annotations

from drafter.core.result import Err, Ok, Result
from drafter.services.release.model import Release
from drafter.services.release.semver import SemVer, parse
from drafter.services.release.versions import strip_prefix


def next_prerelease(
    draft: Release,
    *,
    tag_prefix: str,
    identifier: str,
) -> Result[SemVer, str]:
    """Increment the draft's pre-release counter.

    Returns Err with the reason when the tag is not `<version>-<identifier>.<N>`
    shaped; callers then treat the draft as absent.
    """
    version = parse(strip_prefix(draft.tag_name, tag_prefix))
    if version is None:
        return Err(f"tag {draft.tag_name!r} is not a semantic version")

    pre = version.prerelease
    if len(pre) < 2 or pre[0] != identifier:
        return Err(f"tag {draft.tag_name!r} has no '{identifier}.<N>' pre-release suffix")

    counter = pre[1]
    if not isinstance(counter, int):
        return Err(f"tag {draft.tag_name!r} has a non-numeric pre-release counter")

    return Ok(SemVer(version.major, version.minor, version.patch, (identifier, counter + 1)))


def first_prerelease(version: SemVer, identifier: str) -> SemVer:
    """Seed counter 0 on the version's core."""
    return SemVer(version.major, version.minor, version.patch, (identifier, 0))
