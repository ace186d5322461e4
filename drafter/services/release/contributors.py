from __future__ import annotations

from collections.abc import Iterable

from drafter.services.release.model import Commit, MergedChange


def collect_contributors(
    commits: Iterable[Commit],
    pull_requests: Iterable[MergedChange],
    *,
    exclude: Iterable[str] = (),
) -> list[str]:
    """Unique contributor mentions, sorted.

    Commit authors without a platform account are listed by name and are not
    subject to the exclude list (it holds logins).
    """
    excluded = set(exclude)
    contributors: set[str] = set()

    for commit in commits:
        login = commit.author.login
        if login is None:
            contributors.add(commit.author.name)
        elif login not in excluded:
            contributors.add(f"@{login}")

    for pr in pull_requests:
        author = pr.author
        if author is None or author.login in excluded:
            continue
        if author.is_bot:
            contributors.add(f"[{author.login}[bot]]({author.url})")
        else:
            contributors.add(f"@{author.login}")

    return sorted(contributors)


def contributors_sentence(
    commits: Iterable[Commit],
    pull_requests: Iterable[MergedChange],
    *,
    exclude: Iterable[str] = (),
    no_contributors: str = "No contributors",
) -> str:
    """Join contributors as `a, b and c`."""
    names = collect_contributors(commits, pull_requests, exclude=exclude)
    if len(names) > 1:
        return ", ".join(names[:-1]) + " and " + names[-1]
    if names:
        return names[0]
    return no_contributors
