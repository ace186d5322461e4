from __future__ import annotations

from datetime import datetime, timezone

from drafter.core.result import Err, Ok
from drafter.services.release.model import Author
from drafter.services.release.payload import (
    parse_change_set,
    parse_pull_request,
    parse_releases,
    parse_timestamp,
)


def test_parse_timestamp() -> None:
    assert parse_timestamp("2024-03-01T10:00:00Z") == datetime(2024, 3, 1, 10, tzinfo=timezone.utc)
    assert parse_timestamp("2024-03-01T10:00:00") == datetime(2024, 3, 1, 10, tzinfo=timezone.utc)
    assert parse_timestamp("yesterday") is None
    assert parse_timestamp(None) is None


def test_parse_releases_rest_shape() -> None:
    result = parse_releases(
        [
            {
                "id": 17,
                "tag_name": "v1.0.0",
                "name": "v1.0.0",
                "created_at": "2024-01-01T00:00:00Z",
                "target_commitish": "main",
                "draft": False,
                "prerelease": True,
                "body": "notes\n",
            }
        ]
    )
    assert isinstance(result, Ok)
    (release,) = result.value
    assert release.id == 17
    assert release.tag_name == "v1.0.0"
    assert release.prerelease is True
    assert release.draft is False
    assert release.body == "notes\n"


def test_parse_releases_rejects_bad_entries() -> None:
    assert isinstance(parse_releases({"tag_name": "v1"}), Err)
    missing_date = parse_releases([{"tag_name": "v1.0.0"}])
    assert isinstance(missing_date, Err)
    assert missing_date.error.kind == "invalid_input"


def test_parse_pull_request_graphql_shape() -> None:
    result = parse_pull_request(
        {
            "number": 12,
            "title": "Add widget",
            "url": "https://github.com/acme/widgets/pull/12",
            "mergedAt": "2024-02-01T00:00:00Z",
            "baseRefName": "main",
            "headRefName": "feat/widget",
            "author": {
                "login": "renovate",
                "__typename": "Bot",
                "url": "https://github.com/apps/renovate",
            },
            "labels": {"nodes": [{"name": "feature"}, {"name": "deps"}]},
        }
    )
    assert isinstance(result, Ok)
    pr = result.value
    assert pr.labels == ("feature", "deps")
    assert pr.author == Author(
        login="renovate", url="https://github.com/apps/renovate", is_bot=True
    )
    assert pr.base_ref_name == "main"
    assert pr.head_ref_name == "feat/widget"
    assert pr.merged_at == datetime(2024, 2, 1, tzinfo=timezone.utc)


def test_parse_pull_request_rest_shape() -> None:
    result = parse_pull_request(
        {
            "number": 3,
            "title": "Fix",
            "html_url": "https://github.com/acme/widgets/pull/3",
            "merged_at": "2024-02-01T00:00:00Z",
            "base": {"ref": "main"},
            "head": {"ref": "fix"},
            "user": {"login": "alice", "type": "User"},
            "labels": [{"name": "bug"}, "docs"],
        }
    )
    assert isinstance(result, Ok)
    pr = result.value
    assert pr.url == "https://github.com/acme/widgets/pull/3"
    assert pr.author == Author(login="alice")
    assert pr.labels == ("bug", "docs")
    assert pr.base_ref_name == "main"


def test_deleted_author() -> None:
    result = parse_pull_request({"number": 1, "title": "x", "author": None})
    assert isinstance(result, Ok)
    assert result.value.author is None


def test_parse_change_set() -> None:
    result = parse_change_set(
        {
            "commits": [
                {"oid": "abc", "author": {"name": "Alice", "user": {"login": "alice"}}},
                {"sha": "def", "author": {"name": "Jane Doe", "user": None}},
            ],
            "pull_requests": [{"number": 1, "title": "One"}],
        }
    )
    assert isinstance(result, Ok)
    commits = result.value.commits
    assert commits[0].author.login == "alice"
    assert commits[1].author.login is None
    assert commits[1].author.name == "Jane Doe"
    assert [pr.number for pr in result.value.pull_requests] == [1]


def test_parse_change_set_errors() -> None:
    assert isinstance(parse_change_set([]), Err)
    assert isinstance(parse_change_set({"pull_requests": [{"title": "no number"}]}), Err)
    assert isinstance(parse_change_set({"commits": [{"sha": "abc"}]}), Err)
