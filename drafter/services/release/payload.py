"""Parse hosting-platform JSON into model objects.

Accepts the REST shape for releases (`tag_name`, `created_at`, ...) and the
GraphQL shape for pull requests (`labels.nodes`, `author.__typename`), with
the REST shape (`labels: [{name}]`, `user`) as a fallback.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone

from drafter.core.result import Err, Ok, Result
from drafter.core.structured import (
    as_obj_list,
    as_str_dict,
    get_bool,
    get_int,
    get_raw_str,
    get_str,
    get_table,
)
from drafter.services.release.errors import ReleaseError
from drafter.services.release.model import (
    Author,
    ChangeSet,
    Commit,
    CommitAuthor,
    MergedChange,
    Release,
)


def parse_timestamp(raw: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if not raw:
        return None
    try:
        value = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _invalid(message: str) -> Err[ReleaseError]:
    return Err(ReleaseError(kind="invalid_input", message=message))


def parse_release(data: Mapping[str, object]) -> Result[Release, ReleaseError]:
    tag = get_str(data, "tag_name")
    if tag is None:
        return _invalid("release is missing tag_name")
    created_at = parse_timestamp(get_str(data, "created_at"))
    if created_at is None:
        return _invalid(f"release {tag} has no valid created_at")

    return Ok(
        Release(
            tag_name=tag,
            created_at=created_at,
            target_commitish=get_str(data, "target_commitish") or "",
            draft=bool(get_bool(data, "draft")),
            prerelease=bool(get_bool(data, "prerelease")),
            body=get_raw_str(data, "body"),
            name=get_str(data, "name"),
            id=get_int(data, "id"),
        )
    )


def parse_releases(obj: object) -> Result[list[Release], ReleaseError]:
    items = as_obj_list(obj)
    if items is None:
        return _invalid("expected a JSON list of releases")

    out: list[Release] = []
    for item in items:
        d = as_str_dict(item)
        if d is None:
            return _invalid("release entry must be an object")
        parsed = parse_release(d)
        if isinstance(parsed, Err):
            return parsed
        out.append(parsed.value)
    return Ok(out)


def _parse_author(data: Mapping[str, object]) -> Author | None:
    author = get_table(data, "author") or get_table(data, "user")
    if author is None:
        return None
    login = get_str(author, "login")
    if login is None:
        return None
    is_bot = get_str(author, "__typename") == "Bot" or get_str(author, "type") == "Bot"
    url = get_str(author, "url") or get_str(author, "html_url") or ""
    return Author(login=login, url=url, is_bot=is_bot)


def _parse_labels(data: Mapping[str, object]) -> tuple[str, ...]:
    raw: object = data.get("labels")
    table = as_str_dict(raw)
    if table is not None:
        raw = table.get("nodes")
    names: list[str] = []
    for item in as_obj_list(raw) or []:
        if isinstance(item, str):
            names.append(item)
            continue
        d = as_str_dict(item)
        name = get_raw_str(d, "name") if d is not None else None
        if name:
            names.append(name)
    return tuple(names)


def parse_pull_request(data: Mapping[str, object]) -> Result[MergedChange, ReleaseError]:
    number = get_int(data, "number")
    if number is None:
        return _invalid("pull request is missing number")
    base = get_table(data, "base")
    head = get_table(data, "head")

    return Ok(
        MergedChange(
            number=number,
            title=get_raw_str(data, "title") or "",
            body=get_raw_str(data, "body") or "",
            url=get_str(data, "url") or get_str(data, "html_url") or "",
            author=_parse_author(data),
            base_ref_name=get_str(data, "baseRefName")
            or (get_str(base, "ref") if base is not None else None)
            or "",
            head_ref_name=get_str(data, "headRefName")
            or (get_str(head, "ref") if head is not None else None)
            or "",
            labels=_parse_labels(data),
            merged_at=parse_timestamp(get_str(data, "mergedAt") or get_str(data, "merged_at")),
        )
    )


def parse_commit(data: Mapping[str, object]) -> Result[Commit, ReleaseError]:
    sha = get_str(data, "sha") or get_str(data, "oid") or ""
    author = get_table(data, "author")
    if author is None:
        return _invalid(f"commit {sha[:7] or '?'} is missing author")

    user = get_table(author, "user")
    login = get_str(user, "login") if user is not None else get_str(author, "login")
    name = get_str(author, "name") or login or ""
    return Ok(Commit(sha=sha, author=CommitAuthor(name=name, login=login)))


def parse_change_set(obj: object) -> Result[ChangeSet, ReleaseError]:
    """Parse `{"commits": [...], "pull_requests": [...]}`."""
    data = as_str_dict(obj)
    if data is None:
        return _invalid("expected a JSON object with commits and pull_requests")

    commits: list[Commit] = []
    for item in as_obj_list(data.get("commits")) or []:
        d = as_str_dict(item)
        if d is None:
            return _invalid("commit entry must be an object")
        commit = parse_commit(d)
        if isinstance(commit, Err):
            return commit
        commits.append(commit.value)

    pulls: list[MergedChange] = []
    for item in as_obj_list(data.get("pull_requests")) or []:
        d = as_str_dict(item)
        if d is None:
            return _invalid("pull request entry must be an object")
        pr = parse_pull_request(d)
        if isinstance(pr, Err):
            return pr
        pulls.append(pr.value)

    return Ok(ChangeSet(commits=tuple(commits), pull_requests=tuple(pulls)))
