"""Glob matching for agent domain ownership.

Pattern syntax:
    ``**`` matches any sequence of characters, including ``/``.
    ``*``  matches any sequence of characters except ``/``.
    ``?``  matches exactly one character.
Every other character (including ``.``, ``(``, ``+``) is matched literally,
and the whole path must match the pattern.
"""

from functools import lru_cache
from typing import Iterable

from ..models import AgentDomain

ANY_PATH = "**"
ANY_SEGMENT = "*"
ANY_CHAR = "?"
CATCH_ALL = "**/*"


@lru_cache(maxsize=512)
def _tokenize(pattern: str) -> tuple[str, ...]:
    """Split a pattern into wildcard tokens and literal runs."""
    tokens: list[str] = []
    literal: list[str] = []
    i = 0
    while i < len(pattern):
        if pattern.startswith(ANY_PATH, i):
            token, i = ANY_PATH, i + 2
        elif pattern[i] in (ANY_SEGMENT, ANY_CHAR):
            token, i = pattern[i], i + 1
        else:
            literal.append(pattern[i])
            i += 1
            continue

        if literal:
            tokens.append("".join(literal))
            literal = []
        tokens.append(token)

    if literal:
        tokens.append("".join(literal))
    return tuple(tokens)


def matches(path: str, pattern: str) -> bool:
    """Return True if the whole of path matches the glob pattern."""
    # Positions in path reachable after consuming the tokens seen so far
    positions = {0}
    for token in _tokenize(pattern):
        reachable: set[int] = set()
        for pos in positions:
            if token == ANY_PATH:
                reachable.update(range(pos, len(path) + 1))
            elif token == ANY_SEGMENT:
                end = path.find("/", pos)
                end = len(path) if end == -1 else end
                reachable.update(range(pos, end + 1))
            elif token == ANY_CHAR:
                if pos < len(path):
                    reachable.add(pos + 1)
            elif path.startswith(token, pos):
                reachable.add(pos + len(token))
        if not reachable:
            return False
        positions = reachable
    return len(path) in positions


def matches_any(path: str, patterns: Iterable[str]) -> bool:
    """Return True if path matches at least one of the patterns."""
    return any(matches(path, pattern) for pattern in patterns)


def can_write(domain: AgentDomain, path: str) -> bool:
    """Check if a path is within the domain's write paths."""
    return matches_any(path, domain.write_paths)


def can_read(domain: AgentDomain, path: str) -> bool:
    """Check if a path is readable; no read paths means everything is."""
    if not domain.read_paths:
        return True
    return matches_any(path, domain.read_paths)
