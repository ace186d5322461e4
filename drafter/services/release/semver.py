from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering


# Leading "v" or "=" is accepted, as hosting platforms commonly tag v1.2.3.
_PRE_IDENT = r"(?:0|[1-9]\d*|\d*[A-Za-z-][0-9A-Za-z-]*)"
_STRICT_RE = re.compile(
    r"^[v=]?(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    rf"(?:-({_PRE_IDENT}(?:\.{_PRE_IDENT})*))?"
    r"(?:\+([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)
# Ordering-only parse: missing minor/patch default to 0, case-insensitive.
_LOOSE_RE = re.compile(
    r"^[v^~<>=]*?(\d+)(?:\.(\d+)(?:\.(\d+)"
    r"(?:-([\da-z-]+(?:\.[\da-z-]+)*))?(?:\+[\da-z-]+(?:\.[\da-z-]+)*)?)?)?$",
    re.IGNORECASE,
)
_COERCE_RE = re.compile(r"(?:^|[^\d])(\d{1,16})(?:\.(\d{1,16}))?(?:\.(\d{1,16}))?(?:$|[^\d])")

Identifier = int | str


def _split_prerelease(text: str | None) -> tuple[Identifier, ...]:
    if not text:
        return ()
    return tuple(int(part) if part.isdigit() else part for part in text.split("."))


def _identifier_key(ident: Identifier) -> tuple[int, int, str]:
    # numeric identifiers sort before alphanumeric ones
    if isinstance(ident, int):
        return (0, ident, "")
    return (1, 0, ident)


@total_ordering
@dataclass(frozen=True, slots=True)
class SemVer:
    major: int
    minor: int
    patch: int
    prerelease: tuple[Identifier, ...] = ()

    @property
    def core(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    @property
    def prerelease_suffix(self) -> str:
        """`-beta.3` style suffix, empty for a stable version."""
        if not self.prerelease:
            return ""
        return "-" + ".".join(str(p) for p in self.prerelease)

    def __str__(self) -> str:
        return self.core + self.prerelease_suffix

    def _key(self) -> tuple[object, ...]:
        pre_key = tuple(_identifier_key(p) for p in self.prerelease)
        # a stable version outranks any of its pre-releases
        return (self.major, self.minor, self.patch, 0 if self.prerelease else 1, pre_key)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SemVer):
            return NotImplemented
        return self._key() < other._key()

    def bump(self, kind: str, identifier: str = "") -> SemVer:
        """Increment following npm semver `inc` rules.

        kind is one of major, minor, patch, premajor, preminor, prepatch,
        prerelease. A pre-release of the target version is promoted rather
        than bumped again (1.0.0-beta.2 + major -> 1.0.0).
        """
        match kind:
            case "major":
                if self.prerelease and self.minor == 0 and self.patch == 0:
                    return SemVer(self.major, 0, 0)
                return SemVer(self.major + 1, 0, 0)
            case "minor":
                if self.prerelease and self.patch == 0:
                    return SemVer(self.major, self.minor, 0)
                return SemVer(self.major, self.minor + 1, 0)
            case "patch":
                if self.prerelease:
                    return SemVer(self.major, self.minor, self.patch)
                return SemVer(self.major, self.minor, self.patch + 1)
            case "premajor":
                return SemVer(self.major + 1, 0, 0)._next_pre(identifier)
            case "preminor":
                return SemVer(self.major, self.minor + 1, 0)._next_pre(identifier)
            case "prepatch":
                return SemVer(self.major, self.minor, self.patch + 1)._next_pre(identifier)
            case "prerelease":
                if not self.prerelease:
                    return self.bump("patch")._next_pre(identifier)
                return self._next_pre(identifier)
            case _:
                raise ValueError(f"unexpected bump kind: {kind}")

    def _next_pre(self, identifier: str) -> SemVer:
        pre = list(self.prerelease)
        if not pre:
            pre = [0]
        else:
            for i in range(len(pre) - 1, -1, -1):
                item = pre[i]
                if isinstance(item, int):
                    pre[i] = item + 1
                    break
            else:
                pre.append(0)

        if identifier:
            if pre[0] != identifier or len(pre) < 2 or not isinstance(pre[1], int):
                pre = [identifier, 0]

        return SemVer(self.major, self.minor, self.patch, tuple(pre))


def parse(text: str) -> SemVer | None:
    """Strict parse; build metadata is dropped."""
    m = _STRICT_RE.match(text.strip())
    if m is None:
        return None
    return SemVer(
        int(m.group(1)), int(m.group(2)), int(m.group(3)), _split_prerelease(m.group(4))
    )


def coerce(text: str) -> SemVer | None:
    """Parse strictly, else take the first `N[.N[.N]]` run found in the text."""
    parsed = parse(text)
    if parsed is not None:
        return parsed
    m = _COERCE_RE.search(text)
    if m is None:
        return None
    return SemVer(int(m.group(1)), int(m.group(2) or 0), int(m.group(3) or 0))


def parse_loose(text: str) -> SemVer:
    """Parse for ordering purposes.

    Raises:
        ValueError: When the text is not version-like.
    """
    m = _LOOSE_RE.match(text)
    if m is None:
        raise ValueError(f"invalid version: {text!r}")
    return SemVer(
        int(m.group(1)),
        int(m.group(2) or 0),
        int(m.group(3) or 0),
        _split_prerelease(m.group(4).lower() if m.group(4) else None),
    )


def compare(a: str, b: str) -> int:
    """Compare two version strings (-1, 0, 1).

    Raises:
        ValueError: When either side is not version-like.
    """
    va = parse_loose(a)
    vb = parse_loose(b)
    if va < vb:
        return -1
    if va > vb:
        return 1
    return 0
