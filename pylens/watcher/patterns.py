"""
PyLens Pattern Matcher.

Compiles watch/ignore patterns into regular expressions tested
against forward-slash paths relative to the watch root.
Requires Python 3.11+.
"""

import re
from collections.abc import Iterable, Sequence
from typing import Literal

Pattern = str | re.Pattern[str]

# Compiles fine, matches nothing
NEVER = re.compile(r"(?!)")


def compile_pattern(pattern: Pattern) -> re.Pattern[str]:
    """
    Compile a user pattern.

    Strings containing ``*`` are globs: everything else is escaped and
    each ``*`` becomes ``.*``. Other strings are tried as regular
    expressions first and fall back to a literal match.

    Matching is unanchored, so ``*`` may cross ``/``.

    Args:
        pattern: Pre-compiled regex or pattern string

    Returns:
        Compiled regex to use with ``search``
    """
    if isinstance(pattern, re.Pattern):
        return pattern

    text = str(pattern).strip()
    if not text:
        return NEVER

    if "*" in text:
        return re.compile(".*".join(re.escape(part) for part in text.split("*")))

    try:
        return re.compile(text)
    except re.error:
        return re.compile(re.escape(text))


def matches(matcher: re.Pattern[str], rel_path: str) -> bool:
    """Check a relative path against one compiled pattern."""
    return matcher.search(rel_path) is not None


def to_posix(path: str) -> str:
    """Normalize path separators to forward slashes."""
    return path.replace("\\", "/")


class PathFilter:
    """
    Accept/reject decision for relative paths.

    Ignoring always wins over watching. A watch spec of ``"all"``
    accepts everything that is not ignored.
    """

    def __init__(
        self,
        watch: Literal["all"] | Sequence[Pattern],
        ignore: Iterable[Pattern],
    ) -> None:
        self.ignore_matchers = [compile_pattern(p) for p in ignore]
        if watch == "all":
            self.watch_matchers: list[re.Pattern[str]] | None = None
        elif isinstance(watch, (str, re.Pattern)):
            self.watch_matchers = [compile_pattern(watch)]
        else:
            self.watch_matchers = [compile_pattern(p) for p in watch]

    def is_ignored(self, rel_path: str) -> bool:
        return any(matches(m, rel_path) for m in self.ignore_matchers)

    def is_watched(self, rel_path: str) -> bool:
        if self.watch_matchers is None:
            return True
        return any(matches(m, rel_path) for m in self.watch_matchers)

    def accepts(self, rel_path: str) -> bool:
        """Check if a change to rel_path should count."""
        if not rel_path:
            return False
        if self.is_ignored(rel_path):
            return False
        return self.is_watched(rel_path)
