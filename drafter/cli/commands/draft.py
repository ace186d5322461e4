from __future__ import annotations

import json
from pathlib import Path

import typer

from drafter.cli.commands._helpers import exit_release_error, exit_with
from drafter.core.config import (
    DEFAULT_CONFIG_PATH,
    ConfigError,
    DrafterConfig,
    apply_input,
    load_config,
)
from drafter.core.errors import ErrorCode
from drafter.core.result import Err
from drafter.output.console import ConsoleProtocol, RichConsole
from drafter.services.release.gh import ensure_gh_auth, ensure_gh_available
from drafter.services.release.service import DraftOutcome, DraftService, associate_pull_request
from drafter.services.release.sources import (
    GhReleasePublisher,
    GhReleaseSource,
    ReleasePublisher,
    ReleaseSource,
    SnapshotChangeSource,
    SnapshotReleaseSource,
)


def _split_repo(repo: str) -> tuple[str, str]:
    owner, sep, name = repo.partition("/")
    if not sep or not owner or not name or "/" in name:
        exit_with(f"invalid --repo (expected owner/name): {repo}", code=ErrorCode.USER_ERROR)
    return owner, name


def _config_error_code(error: ConfigError) -> ErrorCode:
    if error.path is not None and not error.path.exists():
        return ErrorCode.IO_ERROR
    return ErrorCode.USER_ERROR


def _require_gh(*, workspace_root: Path, console: ConsoleProtocol) -> None:
    ok = ensure_gh_available()
    if isinstance(ok, Err):
        exit_release_error(ok.error, console)
    ok = ensure_gh_auth(workspace_root=workspace_root)
    if isinstance(ok, Err):
        exit_release_error(ok.error, console)


def _load(
    path: Path,
    *,
    commitish: str | None,
    header: str | None,
    footer: str | None,
    prerelease: bool | None,
    prerelease_identifier: str | None,
    latest: str | None,
) -> DrafterConfig:
    loaded = load_config(path)
    if isinstance(loaded, Err):
        exit_with(loaded.error.message, code=_config_error_code(loaded.error))
    try:
        return apply_input(
            loaded.value,
            commitish=commitish,
            header=header,
            footer=footer,
            prerelease=prerelease,
            prerelease_identifier=prerelease_identifier,
            latest=latest,
        )
    except ValueError as e:
        exit_with(str(e), code=ErrorCode.USER_ERROR)


def outcome_payload(outcome: DraftOutcome) -> dict[str, object]:
    d = outcome.descriptor
    payload: dict[str, object] = {
        "action": outcome.action,
        "name": d.name,
        "tag_name": d.tag,
        "body": d.body,
        "target_commitish": d.target_commitish,
        "draft": d.draft,
        "prerelease": d.prerelease,
        "make_latest": d.make_latest,
        "resolved_version": d.resolved_version,
        "major_version": d.major_version,
        "minor_version": d.minor_version,
        "patch_version": d.patch_version,
    }
    if outcome.published is not None:
        payload["id"] = outcome.published.id
        payload["html_url"] = outcome.published.html_url
        payload["upload_url"] = outcome.published.upload_url
    return payload


def draft(
    repo: str = typer.Option(..., "--repo", help="Repository (owner/name)"),
    changes: Path = typer.Option(
        ..., "--changes", help="JSON file with commits and merged pull requests"
    ),
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH, "--config", help="Drafter config (TOML)"
    ),
    ref: str | None = typer.Option(None, "--ref", help="Pushed ref (refs/heads/...)"),
    releases: Path | None = typer.Option(
        None, "--releases", help="JSON release listing (default: fetch with gh)"
    ),
    pr_number: int | None = typer.Option(None, "--pr-number", help="Pull request number"),
    commit_sha: str | None = typer.Option(
        None, "--commit-sha", help="Pushed commit; used to find its open pull request"
    ),
    version: str | None = typer.Option(None, "--version", help="Override resolved version"),
    tag: str | None = typer.Option(None, "--tag", help="Override tag (template allowed)"),
    name: str | None = typer.Option(None, "--name", help="Override name (template allowed)"),
    prerelease: bool | None = typer.Option(
        None, "--prerelease/--no-prerelease", help="Draft a pre-release"
    ),
    prerelease_identifier: str | None = typer.Option(
        None, "--prerelease-identifier", help="Pre-release identifier (alpha, beta, rc)"
    ),
    header: str | None = typer.Option(None, "--header", help="Prepended to the template"),
    footer: str | None = typer.Option(None, "--footer", help="Appended to the template"),
    commitish: str | None = typer.Option(None, "--commitish", help="Release target"),
    latest: str | None = typer.Option(None, "--latest", help="true, false or legacy"),
    publish: bool = typer.Option(False, "--publish", help="Publish instead of drafting"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the release without creating it"),
) -> None:
    """Draft the next release from merged pull requests."""
    console = RichConsole(stderr=True)
    workspace_root = Path.cwd()
    owner, repo_name = _split_repo(repo)

    config = _load(
        config_path,
        commitish=commitish,
        header=header,
        footer=footer,
        prerelease=prerelease,
        prerelease_identifier=prerelease_identifier,
        latest=latest,
    )

    needs_gh = releases is None or not dry_run
    if needs_gh:
        _require_gh(workspace_root=workspace_root, console=console)

    release_source: ReleaseSource = (
        SnapshotReleaseSource(releases)
        if releases is not None
        else GhReleaseSource(workspace_root=workspace_root, repo=repo)
    )
    publisher: ReleasePublisher | None = (
        None if dry_run else GhReleasePublisher(workspace_root=workspace_root, repo=repo)
    )

    if (
        pr_number is None
        and commit_sha
        and config.prerelease
        and config.prerelease_identifier
        and needs_gh
    ):
        targets = list(config.references) or [ref or config.commitish or "main"]
        pr_number = associate_pull_request(
            workspace_root=workspace_root,
            repo=repo,
            commit_sha=commit_sha,
            target_branches=targets,
            console=console,
        )

    service = DraftService(
        console=console,
        releases=release_source,
        changes=SnapshotChangeSource(changes),
        publisher=publisher,
    )
    result = service.run(
        config=config,
        owner=owner,
        repo=repo_name,
        ref=ref,
        pr_number=pr_number,
        version=version,
        tag=tag,
        name=name,
        draft=not publish,
        dry_run=dry_run,
    )
    if isinstance(result, Err):
        exit_release_error(result.error, console)

    if result.value is None:
        return

    outcome = result.value
    if outcome.action == "created":
        console.success(f"created release {outcome.descriptor.tag}")
    elif outcome.action == "updated":
        console.success(f"updated draft {outcome.descriptor.tag}")
    typer.echo(json.dumps(outcome_payload(outcome), indent=2))
