"""Version token computation.

Turns the baseline release (or an explicit version input) plus a bump class
into the `$NEXT_*`, `$INPUT_VERSION` and `$RESOLVED_VERSION` tokens used by
the tag, name and body templates.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from drafter.services.release.model import Release
from drafter.services.release.semver import SemVer, coerce
from drafter.services.release.template import Templated

# First release when nothing can be coerced from history or input.
_DEFAULT_RESOLVED = SemVer(0, 1, 0)
_DEFAULT_NEXT = {"major": SemVer(1, 0, 0), "minor": SemVer(0, 1, 0), "patch": SemVer(0, 1, 0)}


@dataclass(frozen=True, slots=True)
class VersionInfo:
    resolved: SemVer
    tokens: Mapping[str, object]

    @property
    def resolved_version(self) -> str:
        return str(self.resolved)

    def with_resolved(self, version: SemVer, version_template: str) -> VersionInfo:
        """Copy with `$RESOLVED_VERSION` pointing at another version."""
        tokens = dict(self.tokens)
        tokens["$RESOLVED_VERSION"] = version_token(version, version_template)
        return VersionInfo(resolved=version, tokens=tokens)


def version_token(version: SemVer, template: str) -> Templated:
    return Templated(
        template=template,
        tokens={
            "$MAJOR": version.major,
            "$MINOR": version.minor,
            "$PATCH": version.patch,
            "$PRERELEASE": version.prerelease_suffix,
            "$COMPLETE": str(version),
        },
    )


def strip_prefix(text: str, tag_prefix: str) -> str:
    if tag_prefix and text.startswith(tag_prefix):
        return text[len(tag_prefix) :]
    return text


def coerce_release(release: Release, tag_prefix: str) -> SemVer | None:
    """Version of a release from its tag, else from its name."""
    version = coerce(strip_prefix(release.tag_name, tag_prefix))
    if version is None and release.name:
        version = coerce(strip_prefix(release.name, tag_prefix))
    return version


def _next_tokens(versions: Mapping[str, SemVer], version_template: str) -> dict[str, object]:
    tokens: dict[str, object] = {}
    for bump, version in versions.items():
        name = f"$NEXT_{bump.upper()}_VERSION"
        tokens[name] = version_token(version, version_template)
        tokens[f"{name}_MAJOR"] = version_token(version, "$MAJOR")
        tokens[f"{name}_MINOR"] = version_token(version, "$MINOR")
        tokens[f"{name}_PATCH"] = version_token(version, "$PATCH")
    return tokens


def get_version_info(
    baseline: Release | None,
    *,
    version_template: str,
    increment: str,
    tag_prefix: str = "",
    prerelease_identifier: str = "",
    input_version: str | None = None,
) -> VersionInfo:
    """Compute version tokens.

    Args:
        baseline: Latest qualifying release, if any.
        version_template: Template applied to every version token.
        increment: Bump kind for `$RESOLVED_VERSION` (patch, preminor, ...).
        tag_prefix: Stripped from tags before parsing.
        prerelease_identifier: Identifier for pre-release increments.
        input_version: Explicit version override; wins over the bump.

    Raises:
        ValueError: When increment is not a known bump kind.
    """
    version = coerce_release(baseline, tag_prefix) if baseline is not None else None
    explicit = coerce(strip_prefix(input_version, tag_prefix)) if input_version else None

    base = version if version is not None else explicit
    if base is None:
        if increment.removeprefix("pre") not in _DEFAULT_NEXT:
            raise ValueError(f"unexpected bump kind: {increment}")
        tokens = _next_tokens(_DEFAULT_NEXT, version_template)
        tokens["$RESOLVED_VERSION"] = version_token(_DEFAULT_RESOLVED, version_template)
        return VersionInfo(resolved=_DEFAULT_RESOLVED, tokens=tokens)

    nexts = {bump: base.bump(bump) for bump in ("major", "minor", "patch")}
    tokens = _next_tokens(nexts, version_template)
    tokens["$NEXT_PRERELEASE_VERSION"] = version_token(
        base.bump("prerelease", prerelease_identifier), "$PRERELEASE"
    )

    if explicit is not None:
        resolved = explicit
        tokens["$INPUT_VERSION"] = version_token(explicit, version_template)
    else:
        resolved = base.bump(increment, prerelease_identifier)
    tokens["$RESOLVED_VERSION"] = version_token(resolved, version_template)
    return VersionInfo(resolved=resolved, tokens=tokens)
