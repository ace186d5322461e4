"""Changelog categorization and rendering."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from drafter.core.config import DrafterConfig
from drafter.services.release.model import Author, MergedChange
from drafter.services.release.resolver import filter_changes
from drafter.services.release.template import render


GHOST_AUTHOR = "ghost"
# Breaks GitHub's @mention and #issue autolinking without visible output.
_AUTOLINK_BREAKER = "<!---->"


def _empty_membership() -> dict[int, list[int]]:
    return {}


@dataclass(frozen=True, slots=True)
class Categorization:
    """Change numbers per bucket.

    `categories` is keyed by index into `config.categories`. A change number
    may appear under several categories but never also in `uncategorized`.
    """

    uncategorized: list[int] = field(default_factory=list)
    categories: dict[int, list[int]] = field(default_factory=_empty_membership)


def categorize(changes: Sequence[MergedChange], config: DrafterConfig) -> Categorization:
    categories = config.categories
    all_labels = {label for category in categories for label in category.labels}
    catch_all = next((i for i, c in enumerate(categories) if not c.labels), None)

    result = Categorization(categories={i: [] for i in range(len(categories))})
    labelled: list[MergedChange] = []
    for change in filter_changes(changes, config):
        if any(label in all_labels for label in change.labels):
            labelled.append(change)
        elif catch_all is None:
            result.uncategorized.append(change.number)
        else:
            result.categories[catch_all].append(change.number)

    # duplicating a change into every matching category is intended
    for index, category in enumerate(categories):
        wanted = set(category.labels)
        for change in labelled:
            if any(label in wanted for label in change.labels):
                result.categories[index].append(change.number)

    return result


def escape_title(title: str, escapes: str) -> str:
    """Escape characters from `escapes` in a change title.

    `@` and `#` get an HTML comment appended instead of a backslash. Inline
    code spans are kept verbatim, unless the back-tick itself is listed in
    `escapes`, in which case back-ticks are escaped like any other character.
    """
    if not escapes:
        return title

    pattern = re.compile(rf"[{re.escape(escapes)}]|`.*?`")

    def _escape(m: re.Match[str]) -> str:
        match = m.group(0)
        if len(match) > 1:
            return match
        if match in ("@", "#"):
            return f"{match}{_AUTOLINK_BREAKER}"
        return f"\\{match}"

    return pattern.sub(_escape, title)


def format_author(author: Author | None) -> str:
    if author is None:
        return GHOST_AUTHOR
    if author.is_bot:
        return f"[{author.login}[bot]]({author.url})"
    return author.login


def render_change(change: MergedChange, config: DrafterConfig) -> str:
    return render(
        config.change_template,
        {
            "$TITLE": escape_title(change.title, config.change_title_escapes),
            "$NUMBER": change.number,
            "$AUTHOR": format_author(change.author),
            "$BODY": change.body,
            "$URL": change.url,
            "$BASE_REF_NAME": change.base_ref_name,
            "$HEAD_REF_NAME": change.head_ref_name,
        },
    )


def should_collapse(count: int, collapse_after: int) -> bool:
    return collapse_after != 0 and count > collapse_after


def generate_changelog(changes: Sequence[MergedChange], config: DrafterConfig) -> str:
    """Render the `$CHANGES` block.

    Uncategorized changes come first, then each non-empty category in
    configured order, separated by blank lines.
    """
    if not changes:
        return config.no_changes_template

    by_number = {change.number: change for change in changes}
    result = categorize(changes, config)

    def _lines(numbers: list[int]) -> str:
        return "\n".join(render_change(by_number[n], config) for n in numbers)

    blocks: list[str] = []
    if result.uncategorized:
        blocks.append(_lines(result.uncategorized))

    for index, category in enumerate(config.categories):
        numbers = result.categories[index]
        if not numbers:
            continue

        title = render(config.category_template, {"$TITLE": category.title})
        lines = _lines(numbers)
        if should_collapse(len(numbers), category.collapse_after):
            lines = (
                f"<details>\n<summary>{len(numbers)} changes</summary>\n\n{lines}\n</details>"
            )
        blocks.append(f"{title}\n\n{lines}")

    return "\n\n".join(blocks).strip()
