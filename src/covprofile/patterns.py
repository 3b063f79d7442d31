"""
Exclusion patterns for source files.

Patterns are plain strings where `*` matches any run of characters, including
`/`. Every other character matches itself. A pattern may match anywhere in the
path, so `foo.rs` matches `src/foo.rs` and `*/lib.rs` matches `src/lib.rs` but
not `lib.rs`.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from pathspec.pattern import RegexPattern


class ExcludePattern(RegexPattern):
    """A `*`-wildcard exclusion pattern compiled to a regular expression."""

    __slots__ = ()

    @classmethod
    def pattern_to_regex(cls, pattern: str) -> tuple[str, bool]:  # type: ignore[override]
        """
        Escape regex metacharacters, then turn every `*` into `.*`. The leading
        `.*` lets a match start anywhere in the path.
        """
        return ".*" + re.escape(pattern).replace(r"\*", ".*"), True


def compile_patterns(raw: Iterable[str]) -> list[ExcludePattern]:
    """Compile each raw pattern, preserving order."""
    return [ExcludePattern(pattern) for pattern in raw]


def matches_any(patterns: Sequence[ExcludePattern], text: str) -> bool:
    """True if any compiled pattern matches `text`."""
    return any(pattern.match_file(text) is not None for pattern in patterns)
