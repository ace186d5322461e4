from __future__ import annotations

import json
import shutil
from collections.abc import Iterable
from pathlib import Path
from time import sleep

from drafter.core.result import Err, Ok, Result
from drafter.core.structured import as_obj_list, as_str_dict, get_int, get_str, get_table
from drafter.platform.process import ProcessError
from drafter.platform.process import run as run_process
from drafter.services.release.errors import ReleaseError, ReleaseErrorKind
from drafter.services.release.model import PublishedRelease, Release, ReleaseDescriptor
from drafter.services.release.payload import parse_releases
from drafter.services.release.sorting import strip_ref
from drafter.services.release.timeouts import (
    GH_READ_RETRY_ATTEMPTS,
    GH_READ_RETRY_DELAY_SECONDS,
    GH_TIMEOUT_SECONDS,
    RELEASE_COUNT_LIMIT,
    RELEASE_PAGE_SIZE,
)


def _is_transient_gh_error(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    markers = (
        "timed out",
        "timeout",
        "connection reset",
        "connection refused",
        "temporarily unavailable",
        "service unavailable",
        "bad gateway",
        "gateway timeout",
        "network is unreachable",
        "http 429",
        "http 502",
        "http 503",
        "http 504",
    )
    if error.returncode == -1 and "timed out" in text:
        return True
    return any(marker in text for marker in markers)


def run_gh_read(
    *,
    workspace_root: Path,
    cmd: list[str],
    kind: ReleaseErrorKind,
    message: str,
    hint: str | None = None,
    timeout: float = GH_TIMEOUT_SECONDS,
    retry_attempts: int = GH_READ_RETRY_ATTEMPTS,
) -> Result[str, ReleaseError]:
    attempts = max(1, retry_attempts)
    for attempt in range(attempts):
        result = run_process(cmd, cwd=workspace_root, timeout=timeout)
        if isinstance(result, Ok):
            return result

        error = result.error
        if attempt < attempts - 1 and _is_transient_gh_error(error):
            sleep(GH_READ_RETRY_DELAY_SECONDS * (attempt + 1))
            continue

        return Err(
            ReleaseError(
                kind=kind,
                message=message,
                hint=error.detail or hint,
            )
        )

    return Err(ReleaseError(kind=kind, message=message, hint=hint))


def ensure_gh_available() -> Result[None, ReleaseError]:
    if shutil.which("gh") is None:
        return Err(
            ReleaseError(
                kind="gh_missing",
                message="gh: missing",
                hint="Install GitHub CLI: https://cli.github.com/",
            )
        )
    return Ok(None)


def ensure_gh_auth(*, workspace_root: Path) -> Result[None, ReleaseError]:
    result = run_process(["gh", "auth", "status"], cwd=workspace_root, timeout=GH_TIMEOUT_SECONDS)
    if isinstance(result, Err):
        return Err(
            ReleaseError(
                kind="gh_auth_required",
                message="gh auth required",
                hint="Run: gh auth login",
            )
        )
    return Ok(None)


def gh_api_json(*, workspace_root: Path, endpoint: str) -> Result[object, ReleaseError]:
    result = run_gh_read(
        workspace_root=workspace_root,
        cmd=["gh", "api", endpoint],
        kind="api_failed",
        message=f"gh api failed: {endpoint}",
        hint=endpoint,
    )
    if isinstance(result, Err):
        return result

    try:
        obj: object = json.loads(result.value)
    except json.JSONDecodeError as e:
        return Err(
            ReleaseError(
                kind="invalid_input",
                message=f"gh api returned invalid JSON: {e}",
                hint=endpoint,
            )
        )

    return Ok(obj)


def list_releases(
    *,
    workspace_root: Path,
    repo: str,
    page_size: int = RELEASE_PAGE_SIZE,
    limit: int = RELEASE_COUNT_LIMIT,
) -> Result[list[Release], ReleaseError]:
    """List releases page by page.

    Stops requesting pages once `limit` releases were collected or a short
    page signals the end of the listing.
    """
    releases: list[Release] = []
    page = 1
    while True:
        obj = gh_api_json(
            workspace_root=workspace_root,
            endpoint=f"repos/{repo}/releases?per_page={page_size}&page={page}",
        )
        if isinstance(obj, Err):
            return obj

        parsed = parse_releases(obj.value)
        if isinstance(parsed, Err):
            return parsed

        releases.extend(parsed.value)
        if len(parsed.value) < page_size or len(releases) >= limit:
            return Ok(releases)
        page += 1


def find_associated_pr(
    *,
    workspace_root: Path,
    repo: str,
    commit_sha: str,
    target_branches: Iterable[str],
) -> Result[int | None, ReleaseError]:
    """First open pull request containing the commit and targeting a configured branch."""
    obj = gh_api_json(
        workspace_root=workspace_root, endpoint=f"repos/{repo}/commits/{commit_sha}/pulls"
    )
    if isinstance(obj, Err):
        return obj

    items = as_obj_list(obj.value)
    if items is None:
        return Err(
            ReleaseError(kind="invalid_input", message=f"unexpected pulls payload: {repo}")
        )

    branches = {strip_ref(b) for b in target_branches}
    for item in items:
        d = as_str_dict(item)
        if d is None or get_str(d, "state") != "open":
            continue
        base = get_table(d, "base")
        if base is None or get_str(base, "ref") not in branches:
            continue
        number = get_int(d, "number")
        if number is not None:
            return Ok(number)
    return Ok(None)


def _release_payload(descriptor: ReleaseDescriptor) -> dict[str, object]:
    payload: dict[str, object] = {
        "body": descriptor.body,
        "draft": descriptor.draft,
        "prerelease": descriptor.prerelease,
        "make_latest": descriptor.make_latest,
    }
    # empty values let the platform keep (or pick) its own
    if descriptor.name:
        payload["name"] = descriptor.name
    if descriptor.tag:
        payload["tag_name"] = descriptor.tag
    if descriptor.target_commitish:
        payload["target_commitish"] = descriptor.target_commitish
    return payload


def _gh_api_write(
    *,
    workspace_root: Path,
    method: str,
    endpoint: str,
    payload: dict[str, object],
) -> Result[PublishedRelease, ReleaseError]:
    # writes are not retried: a timed-out POST may still have created the release
    result = run_process(
        ["gh", "api", "-X", method, endpoint, "--input", "-"],
        cwd=workspace_root,
        timeout=GH_TIMEOUT_SECONDS,
        input_text=json.dumps(payload),
    )
    if isinstance(result, Err):
        return Err(
            ReleaseError(
                kind="publish_failed",
                message=f"gh api {method} failed: {endpoint}",
                hint=result.error.detail or None,
            )
        )

    try:
        data = as_str_dict(json.loads(result.value))
    except json.JSONDecodeError as e:
        return Err(
            ReleaseError(kind="publish_failed", message=f"gh api returned invalid JSON: {e}")
        )
    if data is None:
        return Err(
            ReleaseError(kind="publish_failed", message=f"unexpected release payload: {endpoint}")
        )

    return Ok(
        PublishedRelease(
            id=get_int(data, "id"),
            tag_name=get_str(data, "tag_name") or "",
            name=get_str(data, "name") or "",
            html_url=get_str(data, "html_url") or "",
            upload_url=get_str(data, "upload_url") or "",
        )
    )


def create_release(
    *, workspace_root: Path, repo: str, descriptor: ReleaseDescriptor
) -> Result[PublishedRelease, ReleaseError]:
    return _gh_api_write(
        workspace_root=workspace_root,
        method="POST",
        endpoint=f"repos/{repo}/releases",
        payload=_release_payload(descriptor),
    )


def update_release(
    *,
    workspace_root: Path,
    repo: str,
    release: Release,
    descriptor: ReleaseDescriptor,
) -> Result[PublishedRelease, ReleaseError]:
    if release.id is None:
        return Err(
            ReleaseError(
                kind="invalid_input",
                message=f"release {release.tag_name} has no id, cannot update it",
                hint="Release snapshots used for publishing must include ids.",
            )
        )

    payload = _release_payload(descriptor)
    if "name" not in payload and release.name:
        payload["name"] = release.name
    return _gh_api_write(
        workspace_root=workspace_root,
        method="PATCH",
        endpoint=f"repos/{repo}/releases/{release.id}",
        payload=payload,
    )
