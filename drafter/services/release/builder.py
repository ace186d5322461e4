"""Release descriptor assembly.

Exactly one of two version paths runs per invocation:

- StandardVersion: bump the baseline release from change labels (seeding
  `-<identifier>.0` on the first pre-release of a pull request);
- ReconciledPrerelease: a draft for the same pull request exists, so its
  pre-release counter is advanced and labels are not consulted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias

from drafter.core.config import DrafterConfig
from drafter.core.result import Err, Ok, Result
from drafter.output.console import ConsoleProtocol
from drafter.services.release.changelog import generate_changelog
from drafter.services.release.contributors import contributors_sentence
from drafter.services.release.errors import ReleaseError
from drafter.services.release.matcher import MatchedReleases, format_marker
from drafter.services.release.model import ChangeSet, MergedChange, Release, ReleaseDescriptor
from drafter.services.release.prerelease import first_prerelease, next_prerelease
from drafter.services.release.resolver import resolve_increment
from drafter.services.release.template import render
from drafter.services.release.versions import VersionInfo, get_version_info


@dataclass(frozen=True, slots=True)
class StandardVersion:
    info: VersionInfo
    # first pre-release of a pull request, counter seeded at 0
    seeded: bool = False


@dataclass(frozen=True, slots=True)
class ReconciledPrerelease:
    info: VersionInfo
    draft: Release


VersionPath: TypeAlias = StandardVersion | ReconciledPrerelease


@dataclass(frozen=True, slots=True)
class ReleaseInputs:
    """Per-run inputs that do not come from the config file."""

    owner: str
    repo: str
    target_commitish: str
    draft: bool = True
    pr_number: int | None = None
    version: str | None = None
    tag: str | None = None
    name: str | None = None

    @property
    def input_version(self) -> str | None:
        return self.version or self.tag or self.name


def is_prerelease_run(config: DrafterConfig, pr_number: int | None) -> bool:
    """True when this run drafts a pre-release tied to one pull request."""
    return config.prerelease and bool(config.prerelease_identifier) and pr_number is not None


def decide_version(
    *,
    matched: MatchedReleases,
    pull_requests: tuple[MergedChange, ...],
    config: DrafterConfig,
    inputs: ReleaseInputs,
    console: ConsoleProtocol,
) -> Result[VersionPath, ReleaseError]:
    identifier = config.prerelease_identifier
    pr_run = is_prerelease_run(config, inputs.pr_number)

    if pr_run and matched.pr_draft is not None:
        draft = matched.pr_draft
        console.debug(
            f"Found existing draft release ({draft.tag_name}) for PR #{inputs.pr_number}. "
            "Incrementing suffix."
        )
        bumped = next_prerelease(draft, tag_prefix=config.tag_prefix, identifier=identifier)
        if isinstance(bumped, Ok):
            info = get_version_info(
                draft,
                version_template=config.version_template,
                increment="prerelease",
                tag_prefix=config.tag_prefix,
                prerelease_identifier=identifier,
                input_version=inputs.input_version,
            ).with_resolved(bumped.value, config.version_template)
            console.debug(
                f"Incremented prerelease version for PR #{inputs.pr_number} "
                f"to {info.resolved_version}"
            )
            return Ok(ReconciledPrerelease(info=info, draft=draft))

        console.warning(
            f"Cannot reuse draft {draft.tag_name} for PR #{inputs.pr_number}: {bumped.error}. "
            "Falling back to standard versioning."
        )

    increment = resolve_increment(
        pull_requests, config, prerelease=config.prerelease, console=console
    )
    if isinstance(increment, Err):
        return increment

    try:
        info = get_version_info(
            matched.baseline,
            version_template=config.version_template,
            increment=increment.value,
            tag_prefix=config.tag_prefix,
            prerelease_identifier=identifier,
            input_version=inputs.input_version,
        )
    except ValueError as e:
        return Err(
            ReleaseError(kind="version_unresolved", message=f"could not resolve version: {e}")
        )

    if not pr_run:
        console.debug(f"Resolved version: {info.resolved_version} ({increment.value})")
        return Ok(StandardVersion(info=info))

    seeded = first_prerelease(info.resolved, identifier)
    console.debug(f"First prerelease for PR #{inputs.pr_number}. Setting version to {seeded}")
    info = info.with_resolved(seeded, config.version_template)
    return Ok(StandardVersion(info=info, seeded=True))


def _render_tag(info: VersionInfo, config: DrafterConfig, explicit: str | None) -> str:
    if explicit is not None:
        return render(explicit, info.tokens)
    tag = render(config.tag_template, info.tokens)
    if config.tag_prefix and not tag.startswith(config.tag_prefix):
        tag = config.tag_prefix + tag
    return tag


def _render_name(info: VersionInfo, config: DrafterConfig, explicit: str | None) -> str:
    return render(config.name_template if explicit is None else explicit, info.tokens)


def build_release_info(
    *,
    changes: ChangeSet,
    config: DrafterConfig,
    matched: MatchedReleases,
    inputs: ReleaseInputs,
    console: ConsoleProtocol,
) -> Result[ReleaseDescriptor, ReleaseError]:
    """Assemble the release descriptor.

    Returns Err(version_unresolved) when no version could be computed; the
    caller must not create or update anything in that case.
    """
    path = decide_version(
        matched=matched,
        pull_requests=changes.pull_requests,
        config=config,
        inputs=inputs,
        console=console,
    )
    if isinstance(path, Err):
        console.error(f"{path.error.message}. Skipping release creation/update.")
        return path

    info = path.value.info
    tag = _render_tag(info, config, inputs.tag)
    name = _render_name(info, config, inputs.name)

    tokens: dict[str, object] = {
        "$PREVIOUS_TAG": matched.baseline.tag_name if matched.baseline is not None else "",
        "$CHANGES": generate_changelog(changes.pull_requests, config),
        "$CONTRIBUTORS": contributors_sentence(
            changes.commits,
            changes.pull_requests,
            exclude=config.exclude_contributors,
            no_contributors=config.no_contributors_template,
        ),
        "$OWNER": inputs.owner,
        "$REPOSITORY": inputs.repo,
        **info.tokens,
    }
    body = render(config.header + config.template + config.footer, tokens, config.replacers)

    # next runs locate this draft through the marker
    pr_number = inputs.pr_number
    if pr_number is not None and is_prerelease_run(config, pr_number):
        body += f"\n\n{format_marker(pr_number)}\n"

    target = inputs.target_commitish
    if target.startswith("refs/tags/"):
        console.warning(
            f"{target} is not supported as release target, falling back to default branch"
        )
        target = ""

    console.debug(f"Final tag: {tag}")
    console.debug(f"Final name: {name}")

    resolved = info.resolved
    return Ok(
        ReleaseDescriptor(
            name=name,
            tag=tag,
            body=body.strip(),
            target_commitish=target,
            prerelease=config.prerelease,
            draft=inputs.draft,
            make_latest=config.latest,
            resolved_version=str(resolved),
            major_version=resolved.major,
            minor_version=resolved.minor,
            patch_version=resolved.patch,
            update_existing=isinstance(path.value, ReconciledPrerelease),
        )
    )
