from __future__ import annotations

import json
from pathlib import Path

import pytest
import typer
from typer.testing import CliRunner

from drafter import __version__
from drafter.cli.app import app
from drafter.core.errors import ErrorCode
from drafter.core.result import Err
from drafter.output.console import MockConsole
from drafter.services.release.errors import ReleaseError

CONFIG = """
tag-template = "v$RESOLVED_VERSION"
name-template = "v$RESOLVED_VERSION"
change-template = "* $TITLE (#$NUMBER) @$AUTHOR"
template = '''
## Changes

$CHANGES
'''

[version-resolver]
minor.labels = ["feature"]
"""

RELEASES = [
    {"id": 1, "tag_name": "v1.2.3", "created_at": "2024-01-01T00:00:00Z"},
    {
        "id": 2,
        "tag_name": "v1.3.0-beta.0",
        "created_at": "2024-01-05T00:00:00Z",
        "draft": True,
        "prerelease": True,
        "body": "x\n\n<!-- pr-number: 42 -->",
    },
]

CHANGES = {
    "commits": [],
    "pull_requests": [
        {
            "number": 7,
            "title": "Add widget",
            "author": {"login": "alice"},
            "labels": {"nodes": [{"name": "feature"}]},
            "mergedAt": "2024-01-03T00:00:00Z",
        }
    ],
}


def _files(tmp_path: Path) -> tuple[Path, Path, Path]:
    config = tmp_path / "drafter.toml"
    config.write_text(CONFIG, encoding="utf-8")
    releases = tmp_path / "releases.json"
    releases.write_text(json.dumps(RELEASES), encoding="utf-8")
    changes = tmp_path / "changes.json"
    changes.write_text(json.dumps(CHANGES), encoding="utf-8")
    return config, releases, changes


def _draft(**overrides: object) -> None:
    import drafter.cli.commands.draft as draft_cmd

    params: dict[str, object] = {
        "repo": "acme/widgets",
        "changes": Path("changes.json"),
        "config_path": Path("drafter.toml"),
        "ref": None,
        "releases": None,
        "pr_number": None,
        "commit_sha": None,
        "version": None,
        "tag": None,
        "name": None,
        "prerelease": None,
        "prerelease_identifier": None,
        "header": None,
        "footer": None,
        "commitish": None,
        "latest": None,
        "publish": False,
        "dry_run": True,
    }
    params.update(overrides)
    draft_cmd.draft(**params)  # type: ignore[arg-type]


@pytest.fixture
def console(monkeypatch: pytest.MonkeyPatch) -> MockConsole:
    import drafter.cli.commands.draft as draft_cmd

    mock = MockConsole()
    monkeypatch.setattr(draft_cmd, "RichConsole", lambda **_: mock)
    return mock


def test_dry_run_prints_descriptor(
    tmp_path: Path, console: MockConsole, capsys: pytest.CaptureFixture[str]
) -> None:
    config, releases, changes = _files(tmp_path)

    _draft(config_path=config, releases=releases, changes=changes)

    payload = json.loads(capsys.readouterr().out)
    assert payload["action"] == "dry_run"
    assert payload["tag_name"] == "v1.3.0"
    assert payload["body"] == "## Changes\n\n* Add widget (#7) @alice"
    assert payload["draft"] is True
    assert payload["make_latest"] == "true"
    assert "id" not in payload


def test_prerelease_options(
    tmp_path: Path, console: MockConsole, capsys: pytest.CaptureFixture[str]
) -> None:
    config, releases, changes = _files(tmp_path)

    _draft(
        config_path=config,
        releases=releases,
        changes=changes,
        prerelease=True,
        prerelease_identifier="beta",
        pr_number=42,
    )

    payload = json.loads(capsys.readouterr().out)
    assert payload["tag_name"] == "v1.3.0-beta.1"
    assert payload["prerelease"] is True
    assert payload["make_latest"] == "false"
    assert payload["body"].endswith("<!-- pr-number: 42 -->")


def test_publish_flag_clears_draft(
    tmp_path: Path, console: MockConsole, capsys: pytest.CaptureFixture[str]
) -> None:
    config, releases, changes = _files(tmp_path)

    _draft(config_path=config, releases=releases, changes=changes, publish=True)

    payload = json.loads(capsys.readouterr().out)
    assert payload["draft"] is False


def test_invalid_repo(tmp_path: Path, console: MockConsole) -> None:
    config, releases, changes = _files(tmp_path)
    with pytest.raises(typer.Exit) as exc:
        _draft(repo="widgets", config_path=config, releases=releases, changes=changes)
    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)


def test_missing_config_is_io_error(tmp_path: Path, console: MockConsole) -> None:
    _, releases, changes = _files(tmp_path)
    with pytest.raises(typer.Exit) as exc:
        _draft(config_path=tmp_path / "nope.toml", releases=releases, changes=changes)
    assert exc.value.exit_code == int(ErrorCode.IO_ERROR)


def test_invalid_latest_is_user_error(tmp_path: Path, console: MockConsole) -> None:
    config, releases, changes = _files(tmp_path)
    with pytest.raises(typer.Exit) as exc:
        _draft(config_path=config, releases=releases, changes=changes, latest="sometimes")
    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)


def test_broken_snapshot_is_user_error(tmp_path: Path, console: MockConsole) -> None:
    config, releases, _ = _files(tmp_path)
    broken = tmp_path / "broken.json"
    broken.write_text("[", encoding="utf-8")
    with pytest.raises(typer.Exit) as exc:
        _draft(config_path=config, releases=releases, changes=broken)
    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)
    assert console.has_error()


def test_missing_gh_is_env_error(
    tmp_path: Path, console: MockConsole, monkeypatch: pytest.MonkeyPatch
) -> None:
    import drafter.cli.commands.draft as draft_cmd

    monkeypatch.setattr(
        draft_cmd,
        "ensure_gh_available",
        lambda: Err(ReleaseError(kind="gh_missing", message="gh: missing")),
    )
    config, _, changes = _files(tmp_path)
    with pytest.raises(typer.Exit) as exc:
        _draft(config_path=config, changes=changes)
    assert exc.value.exit_code == int(ErrorCode.ENV_ERROR)
    assert console.find("gh: missing")


def test_cli_version() -> None:
    result = CliRunner().invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_cli_version_runs_before_subcommand_check() -> None:
    result = CliRunner().invoke(app, ["--version", "draft"])
    assert result.exit_code == 0
    assert result.output.strip() == __version__


def test_cli_draft_end_to_end(tmp_path: Path) -> None:
    config, releases, changes = _files(tmp_path)
    result = CliRunner().invoke(
        app,
        [
            "draft",
            "--repo",
            "acme/widgets",
            "--config",
            str(config),
            "--releases",
            str(releases),
            "--changes",
            str(changes),
            "--version",
            "2.0.0",
            "--dry-run",
        ],
    )
    assert result.exit_code == 0, result.output
    assert '"tag_name": "v2.0.0"' in result.output
