"""
docstore-cache — Key Handling

Key expansion, namespacing and delete-pattern matchers.

Composite keys are flattened into strings so callers can use model objects,
tuples or dicts as cache keys. Namespaced keys are stored as ``"<ns>:<key>"``
so several logical caches can share one collection.
"""

import re
from collections.abc import Mapping
from typing import Any

NAMESPACE_SEPARATOR = ":"
KEY_PART_SEPARATOR = "/"


def expand_key(key: Any) -> str:
    """
    Flatten ``key`` into its string form.

    - objects exposing ``cache_key`` (attribute or method) use it
    - lists/tuples expand element-wise and join with ``/``
    - mappings become sorted ``k=v`` pairs joined with ``/``
    - anything else is passed through ``str()``

    Raises:
        ValueError: If the expanded key is empty
    """
    expanded = _expand(key)
    if not expanded:
        raise ValueError("Cache key must not be empty")
    return expanded


def _expand(key: Any) -> str:
    cache_key = getattr(key, "cache_key", None)
    if cache_key is not None:
        return str(cache_key() if callable(cache_key) else cache_key)

    if isinstance(key, (list, tuple)):
        if len(key) == 1:
            return _expand(key[0])
        return KEY_PART_SEPARATOR.join(_expand(part) for part in key)

    if isinstance(key, Mapping):
        pairs = sorted(key.items(), key=lambda item: str(item[0]))
        return KEY_PART_SEPARATOR.join(f"{k}={v}" for k, v in pairs)

    if key is None:
        return ""

    return str(key)


def namespaced_key(key: Any, namespace: str | None = None) -> str:
    """Expand ``key`` and prefix it with ``namespace`` when one is given."""
    expanded = expand_key(key)
    if namespace:
        return f"{namespace}{NAMESPACE_SEPARATOR}{expanded}"
    return expanded


def glob_to_regex(pattern: str) -> str:
    """
    Translate a shell-style glob into an unanchored regex source.

    Supports ``*``, ``?`` and ``[...]`` character classes (``[!...]`` negates).
    """
    i, n = 0, len(pattern)
    parts: list[str] = []
    while i < n:
        c = pattern[i]
        i += 1
        if c == "*":
            parts.append(".*")
        elif c == "?":
            parts.append(".")
        elif c == "[":
            j = i
            if j < n and pattern[j] in "!^":
                j += 1
            if j < n and pattern[j] == "]":
                j += 1
            while j < n and pattern[j] != "]":
                j += 1
            if j >= n:
                parts.append(re.escape(c))
            else:
                body = pattern[i:j].replace("\\", "\\\\")
                i = j + 1
                if body[:1] in ("!", "^"):
                    body = "^" + body[1:]
                parts.append(f"[{body}]")
        else:
            parts.append(re.escape(c))
    return "".join(parts)


def key_matcher(pattern: str | re.Pattern[str], namespace: str | None = None) -> re.Pattern[str]:
    """
    Build a regex matching stored ids for ``pattern`` under ``namespace``.

    String patterns are globs matched against the whole key. Compiled regexes
    follow the usual namespacing rule: with a namespace, a source starting with
    ``^`` is anchored right after ``"<ns>:"``, any other source may match
    anywhere after it. Regex flags are preserved.

    Raises:
        ValueError: If the pattern is empty
        TypeError: If the pattern is neither a string nor a compiled regex
    """
    if isinstance(pattern, re.Pattern):
        if not pattern.pattern:
            raise ValueError("Delete pattern must not be empty")
        if not namespace:
            return pattern
        source = pattern.pattern
        if source.startswith("^"):
            source = source[1:]
        else:
            source = f".*{source}"
        prefix = re.escape(f"{namespace}{NAMESPACE_SEPARATOR}")
        return re.compile(f"^{prefix}{source}", pattern.flags)

    if isinstance(pattern, str):
        if not pattern:
            raise ValueError("Delete pattern must not be empty")
        source = glob_to_regex(pattern)
        if namespace:
            source = re.escape(f"{namespace}{NAMESPACE_SEPARATOR}") + source
        return re.compile(f"^{source}$")

    raise TypeError(f"Delete pattern must be a glob string or compiled regex, got {type(pattern).__name__}")
