from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from drafter.core.config import Replacer


_TOKEN_RE = re.compile(r"\$[A-Z_]+")


@dataclass(frozen=True, slots=True)
class Templated:
    """A token whose value is itself rendered from a template.

    Version tokens use this: `$RESOLVED_VERSION` renders the configured
    version template against its own `$MAJOR`, `$MINOR`, ... tokens.
    """

    template: str
    tokens: Mapping[str, object]


def render(
    template: str,
    tokens: Mapping[str, object],
    replacers: Sequence[Replacer] | None = None,
) -> str:
    """Replace `$TOKEN` occurrences, then apply replacers in order.

    Unknown or None-valued tokens are left as-is.
    """

    def _substitute(m: re.Match[str]) -> str:
        key = m.group(0)
        value = tokens.get(key)
        if value is None:
            return key
        if isinstance(value, Templated):
            return render(value.template, value.tokens)
        return str(value)

    out = _TOKEN_RE.sub(_substitute, template)
    for replacer in replacers or ():
        out = replacer.apply(out)
    return out
