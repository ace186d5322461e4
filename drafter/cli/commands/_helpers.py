"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import NoReturn

import typer

from drafter.core.errors import ErrorCode
from drafter.output.console import ConsoleProtocol, Style
from drafter.services.release.errors import ReleaseError


def exit_with(message: str, *, code: ErrorCode, hint: str | None = None) -> NoReturn:
    typer.echo(f"error: {message}", err=True)
    if hint:
        typer.echo(f"hint: {hint}", err=True)
    raise typer.Exit(code=int(code))


def release_error_code(kind: str) -> ErrorCode:
    if kind in {"gh_missing", "gh_auth_required"}:
        return ErrorCode.ENV_ERROR
    if kind in {"api_failed", "publish_failed"}:
        return ErrorCode.NETWORK_ERROR
    if kind == "version_unresolved":
        return ErrorCode.RELEASE_ERROR
    return ErrorCode.USER_ERROR


def exit_release_error(error: ReleaseError, console: ConsoleProtocol) -> NoReturn:
    console.error(error.message)
    if error.hint:
        console.print(f"hint: {error.hint}", Style.DIM)
    raise typer.Exit(code=int(release_error_code(error.kind)))
