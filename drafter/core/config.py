"""Typed drafter configuration loading and access.

The configuration file is TOML. Keys keep their hyphenated names so an
existing drafter config translates key for key:

    template = '''
    ## Changes

    $CHANGES
    '''
    tag-template = "v$RESOLVED_VERSION"
    prerelease-identifier = "beta"

    [version-resolver]
    default = "patch"
    major.labels = ["breaking"]

    [[categories]]
    title = "Features"
    labels = ["feature", "enhancement"]
    collapse-after = 5
"""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from .result import Err, Ok, Result
from .structured import (
    StrDict,
    as_str_dict,
    get_bool,
    get_int,
    get_list,
    get_raw_str,
    get_str,
    get_str_list,
    get_table,
)

__all__ = [
    "BUMP_CLASSES",
    "CategoryConfig",
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "DrafterConfig",
    "Replacer",
    "VersionResolverConfig",
    "apply_input",
    "load_config",
    "parse_replacer",
]

DEFAULT_CONFIG_PATH = Path(".github/drafter.toml")

BUMP_CLASSES: tuple[str, ...] = ("patch", "minor", "major")
SORT_BY = ("merged_at", "title")
SORT_DIRECTIONS = ("ascending", "descending")
LATEST_VALUES = ("true", "false", "legacy")

SortBy = Literal["merged_at", "title"]
SortDirection = Literal["ascending", "descending"]

_REGEX_LITERAL = re.compile(r"^/(?P<pattern>.+)/(?P<flags>[gimsuy]*)$", re.DOTALL)
_JS_REPLACE_TOKEN = re.compile(r"\$(\$|&|`|'|\d{1,2})")


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class Replacer:
    """A post-render regex substitution.

    count=0 replaces every match, count=1 only the first one.
    """

    search: re.Pattern[str]
    replace: Callable[[re.Match[str]], str]
    count: int = 0

    def apply(self, text: str) -> str:
        return self.search.sub(self.replace, text, count=self.count)


@dataclass(frozen=True, slots=True)
class CategoryConfig:
    title: str
    labels: tuple[str, ...] = ()
    # 0 never collapses
    collapse_after: int = 0


@dataclass(frozen=True, slots=True)
class VersionResolverConfig:
    major: tuple[str, ...] = ()
    minor: tuple[str, ...] = ()
    patch: tuple[str, ...] = ()
    default: str = "patch"

    def labels_for(self, bump: str) -> tuple[str, ...]:
        match bump:
            case "major":
                return self.major
            case "minor":
                return self.minor
            case "patch":
                return self.patch
            case _:
                return ()


@dataclass(frozen=True, slots=True)
class DrafterConfig:
    """Resolver configuration, loaded once per run and read-only afterwards."""

    template: str
    name_template: str = ""
    tag_template: str = ""
    version_template: str = "$MAJOR.$MINOR.$PATCH$PRERELEASE"
    tag_prefix: str = ""
    change_template: str = "* $TITLE (#$NUMBER) @$AUTHOR"
    change_title_escapes: str = ""
    no_changes_template: str = "* No changes"
    category_template: str = "## $TITLE"
    no_contributors_template: str = "No contributors"
    header: str = ""
    footer: str = ""
    exclude_labels: tuple[str, ...] = ()
    include_labels: tuple[str, ...] = ()
    exclude_contributors: tuple[str, ...] = ()
    references: tuple[str, ...] = ()
    commitish: str = ""
    filter_by_commitish: bool = False
    include_pre_releases: bool = False
    prerelease_identifier: str = ""
    prerelease: bool = False
    latest: str = "true"
    sort_by: SortBy = "merged_at"
    sort_direction: SortDirection = "descending"
    version_resolver: VersionResolverConfig = field(default_factory=VersionResolverConfig)
    categories: tuple[CategoryConfig, ...] = ()
    replacers: tuple[Replacer, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> DrafterConfig:
        """Create a config from parsed TOML.

        Raises:
            ValueError: When a value is present but invalid.
        """
        template = get_raw_str(data, "template")
        if template is None or not template.strip():
            raise ValueError("'template' is required")

        resolver: StrDict = get_table(data, "version-resolver") or {}
        default_bump = get_str(resolver, "default") or "patch"
        if default_bump not in BUMP_CLASSES:
            raise ValueError(f"version-resolver.default must be one of {BUMP_CLASSES}")

        sort_by = get_str(data, "sort-by") or "merged_at"
        if sort_by not in SORT_BY:
            raise ValueError(f"sort-by must be one of {SORT_BY}")
        sort_direction = get_str(data, "sort-direction") or "descending"
        if sort_direction not in SORT_DIRECTIONS:
            raise ValueError(f"sort-direction must be one of {SORT_DIRECTIONS}")

        latest = get_str(data, "latest") or "true"
        if latest not in LATEST_VALUES:
            raise ValueError(f"latest must be one of {LATEST_VALUES}")

        def _text(key: str, default: str) -> str:
            value = get_raw_str(data, key)
            return default if value is None else value

        defaults = cls(template=template)
        return cls(
            template=template,
            name_template=_text("name-template", defaults.name_template),
            tag_template=_text("tag-template", defaults.tag_template),
            version_template=_text("version-template", defaults.version_template),
            tag_prefix=_text("tag-prefix", defaults.tag_prefix),
            change_template=_text("change-template", defaults.change_template),
            change_title_escapes=_text("change-title-escapes", defaults.change_title_escapes),
            no_changes_template=_text("no-changes-template", defaults.no_changes_template),
            category_template=_text("category-template", defaults.category_template),
            no_contributors_template=_text(
                "no-contributors-template", defaults.no_contributors_template
            ),
            header=_text("header", ""),
            footer=_text("footer", ""),
            exclude_labels=get_str_list(data, "exclude-labels"),
            include_labels=get_str_list(data, "include-labels"),
            exclude_contributors=get_str_list(data, "exclude-contributors"),
            references=get_str_list(data, "references"),
            commitish=get_str(data, "commitish") or "",
            filter_by_commitish=bool(get_bool(data, "filter-by-commitish")),
            include_pre_releases=bool(get_bool(data, "include-pre-releases")),
            prerelease_identifier=get_str(data, "prerelease-identifier") or "",
            prerelease=bool(get_bool(data, "prerelease")),
            latest=latest,
            sort_by=sort_by,  # type: ignore[arg-type]
            sort_direction=sort_direction,  # type: ignore[arg-type]
            version_resolver=VersionResolverConfig(
                major=_bump_labels(resolver, "major"),
                minor=_bump_labels(resolver, "minor"),
                patch=_bump_labels(resolver, "patch"),
                default=default_bump,
            ),
            categories=tuple(_parse_categories(data)),
            replacers=tuple(_parse_replacers(data)),
        )


def _bump_labels(resolver: Mapping[str, object], bump: str) -> tuple[str, ...]:
    table = get_table(resolver, bump)
    if table is None:
        return ()
    return get_str_list(table, "labels")


def _parse_categories(data: Mapping[str, object]) -> list[CategoryConfig]:
    out: list[CategoryConfig] = []
    for item in get_list(data, "categories") or []:
        d = as_str_dict(item)
        if d is None:
            raise ValueError("each [[categories]] entry must be a table")
        title = get_raw_str(d, "title")
        if title is None:
            raise ValueError("category is missing 'title'")
        # `label` and `labels` are merged, `label` first
        labels = get_str_list(d, "label") + get_str_list(d, "labels")
        collapse_after = get_int(d, "collapse-after") or 0
        if collapse_after < 0:
            raise ValueError(f"collapse-after must be >= 0 (category {title!r})")
        out.append(CategoryConfig(title=title, labels=labels, collapse_after=collapse_after))
    return out


def _parse_replacers(data: Mapping[str, object]) -> list[Replacer]:
    out: list[Replacer] = []
    for item in get_list(data, "replacers") or []:
        d = as_str_dict(item)
        if d is None:
            raise ValueError("each [[replacers]] entry must be a table")
        search = get_raw_str(d, "search")
        if not search:
            raise ValueError("replacer is missing 'search'")
        out.append(parse_replacer(search, get_raw_str(d, "replace") or ""))
    return out


def _expand_token(token: str, match: re.Match[str]) -> str:
    if token == "$":
        return "$"
    if token == "&":
        return match.group(0)
    if token == "`":
        return match.string[: match.start()]
    if token == "'":
        return match.string[match.end() :]

    groups = match.re.groups
    if len(token) == 2 and 1 <= int(token) <= groups:
        return match.group(int(token)) or ""
    first = int(token[0])
    if 1 <= first <= groups:
        return (match.group(first) or "") + token[1:]
    return "$" + token


def _js_replacement(replace: str) -> Callable[[re.Match[str]], str]:
    """Expand a JavaScript replacement string against each match.

    `$$`, `$&`, `` $` ``, `$'` and `$N` for existing groups are expanded;
    everything else (backslashes, `$N` past the last group) is copied as is.
    """

    def expand(match: re.Match[str]) -> str:
        return _JS_REPLACE_TOKEN.sub(lambda t: _expand_token(t.group(1), match), replace)

    return expand


def parse_replacer(search: str, replace: str) -> Replacer:
    """Build a Replacer from its config form.

    `/pattern/flags` is a regular expression (only the `g` flag replaces
    every match); anything else is a literal string replaced everywhere.
    The replacement follows JavaScript `String.replace` rules.

    Raises:
        ValueError: When the pattern does not compile.
    """
    replacement = _js_replacement(replace)
    m = _REGEX_LITERAL.match(search)
    if m is None:
        return Replacer(search=re.compile(re.escape(search)), replace=replacement)

    flags_text = m.group("flags")
    flags = 0
    if "i" in flags_text:
        flags |= re.IGNORECASE
    if "m" in flags_text:
        flags |= re.MULTILINE
    if "s" in flags_text:
        flags |= re.DOTALL
    try:
        pattern = re.compile(m.group("pattern"), flags)
    except re.error as e:
        raise ValueError(f"invalid replacer pattern {search!r}: {e}") from e
    return Replacer(search=pattern, replace=replacement, count=0 if "g" in flags_text else 1)


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[DrafterConfig, ConfigError]:
    """Load and validate the drafter configuration.

    Args:
        path: Path to the TOML config file.

    Returns:
        Ok(DrafterConfig) on success, Err(ConfigError) on failure.
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(DrafterConfig.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config: {e}", path=path))


def apply_input(
    config: DrafterConfig,
    *,
    commitish: str | None = None,
    header: str | None = None,
    footer: str | None = None,
    prerelease: bool | None = None,
    prerelease_identifier: str | None = None,
    latest: str | None = None,
) -> DrafterConfig:
    """Merge run inputs over file values; inputs win.

    A pre-release run is never marked as the latest release.
    """
    changes: dict[str, object] = {}
    if commitish:
        changes["commitish"] = commitish
    if header:
        changes["header"] = header
    if footer:
        changes["footer"] = footer
    if prerelease is not None:
        changes["prerelease"] = prerelease
    if prerelease_identifier:
        changes["prerelease_identifier"] = prerelease_identifier

    effective_prerelease = config.prerelease if prerelease is None else prerelease
    if effective_prerelease:
        changes["latest"] = "false"
    elif latest:
        if latest.lower() not in LATEST_VALUES:
            raise ValueError(f"latest must be one of {LATEST_VALUES}")
        changes["latest"] = latest.lower()

    return dataclasses.replace(config, **changes)  # type: ignore[arg-type]
