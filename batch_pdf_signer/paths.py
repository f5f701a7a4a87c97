"""Resolution of user supplied input patterns into concrete files."""

import os
import re
from typing import Iterator

WILDCARD_CHARS = ("*", "?")


def has_wildcard(name: str) -> bool:
    """Return True if ``name`` contains a ``*`` or ``?`` wildcard."""
    return any(char in name for char in WILDCARD_CHARS)


def compile_wildcard(expression: str) -> "re.Pattern":
    """
    Compile a wildcard expression into a regular expression.

    Only ``*`` (any run of characters) and ``?`` (exactly one character) are
    special, everything else matches literally and case-sensitively.

    Args:
        expression: Wildcard expression, e.g. ``contract_*.pdf``

    Returns:
        Compiled pattern that must match the whole name
    """
    parts = []
    for char in expression:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.DOTALL)


def resolve(pattern: str) -> Iterator[str]:
    """
    Resolve a pattern into the files it names.

    A pattern whose last segment has no wildcard names a single file and
    yields it only if it exists. A wildcard pattern yields every regular file
    of its (absolute) parent directory whose name matches, in directory
    listing order. A directory that is missing or cannot be listed yields
    nothing.

    Args:
        pattern: Literal path or path with wildcards in its last segment

    Yields:
        Matching file paths
    """
    parent, name = os.path.split(pattern)

    if not has_wildcard(name):
        if os.path.exists(pattern):
            yield pattern
        return

    folder = os.path.abspath(parent or os.curdir)
    matcher = compile_wildcard(name)

    try:
        with os.scandir(folder) as listing:
            entries = list(listing)
    except OSError:
        return

    for entry in entries:
        try:
            is_file = entry.is_file()
        except OSError:
            continue
        if is_file and matcher.fullmatch(entry.name):
            yield entry.path


def is_readable(path: str) -> bool:
    """Check that ``path`` is a regular file the current process may read."""
    return os.path.isfile(path) and os.access(path, os.R_OK)
