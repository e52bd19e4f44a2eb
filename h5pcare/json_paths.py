"""Structural search over decoded content parameters.

Locations are written in the notation the H5P editor uses for semantics
paths: object keys are joined with ``.`` and list indices are fused onto the
preceding key in brackets, e.g. ``chapters[2].params.content[0]``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Pattern, Sequence, Tuple, Union

Token = Union[str, int]
Predicate = Tuple[str, Union[str, Pattern[str]]]

LIBRARY_PATTERN = re.compile(r"^H5P\..+ \d+\.\d+")
LIBRARY_PREDICATES: tuple[Predicate, ...] = (("library", LIBRARY_PATTERN),)
FILE_PREDICATES: tuple[Predicate, ...] = (
    ("mime", re.compile(r"^[\w.+-]+/[\w.+-]+$")),
    ("path", re.compile(r".+")),
)

_TOKEN_PATTERN = re.compile(r"\[(\d+)\]|([^.\[\]]+)")


@dataclass(frozen=True)
class PathMatch:
    """A node that satisfied every predicate and its location."""

    path: str
    node: Any


def find_matches(document: Any, predicates: Sequence[Predicate]) -> List[PathMatch]:
    """Return every nested mapping that satisfies all predicates, in document order.

    The document itself is not a candidate, only values located inside it.
    Matched nodes are descended into as well, so matches nested inside other
    matches are reported too.
    """
    compiled = _compile(predicates)
    matches: List[PathMatch] = []
    _visit(document, [], compiled, matches)
    return matches


def find_closest_ancestor(
    document: Any, path: str, predicates: Sequence[Predicate]
) -> Optional[PathMatch]:
    """Return the match whose location is the longest strict prefix of ``path``."""
    compiled = _compile(predicates)
    tokens = tokenize_path(path)
    for length in range(len(tokens) - 1, 0, -1):
        candidate = _element_at(document, tokens[:length])
        if candidate is not _MISSING and _satisfies(candidate, compiled):
            return PathMatch(format_path(tokens[:length]), candidate)
    return None


def tokenize_path(path: str) -> List[Token]:
    tokens: List[Token] = []
    for match in _TOKEN_PATTERN.finditer(path or ""):
        index, key = match.groups()
        tokens.append(int(index) if index is not None else key)
    return tokens


def format_path(tokens: Sequence[Token]) -> str:
    path = ""
    for token in tokens:
        path = join_path(path, token)
    return path


def join_path(parent: str, key: Token) -> str:
    if isinstance(key, int):
        return f"{parent}[{key}]"
    return key if parent == "" else f"{parent}.{key}"


def is_path_prefix(prefix: str, path: str, *, strict: bool = True) -> bool:
    """Segment-wise prefix test; ``foo`` is not a prefix of ``foobar``."""
    prefix_tokens = tokenize_path(prefix)
    path_tokens = tokenize_path(path)
    if strict and len(prefix_tokens) >= len(path_tokens):
        return False
    return path_tokens[: len(prefix_tokens)] == prefix_tokens


def path_sort_key(path: str) -> tuple:
    """Order ancestors before descendants and list items by numeric index."""
    key = []
    for token in tokenize_path(path):
        if isinstance(token, int):
            key.append((1, "", token))
        else:
            key.append((0, token, 0))
    return tuple(key)


def relative_path(ancestor: str, path: str) -> str:
    """Return ``path`` expressed relative to ``ancestor``."""
    tokens = tokenize_path(path)
    return format_path(tokens[len(tokenize_path(ancestor)) :])


def prune_matches(document: Any, predicates: Sequence[Predicate]) -> Any:
    """Copy ``document`` without nested nodes matching ``predicates``.

    Pruned list items become ``None`` so sibling indices keep their meaning.
    """
    compiled = _compile(predicates)

    def _prune(value: Any) -> Any:
        if isinstance(value, Mapping):
            return {
                key: _prune(child)
                for key, child in value.items()
                if not (isinstance(child, Mapping) and _satisfies(child, compiled))
            }
        if isinstance(value, list):
            return [
                None if isinstance(child, Mapping) and _satisfies(child, compiled) else _prune(child)
                for child in value
            ]
        return value

    return _prune(document)


_MISSING = object()


def _compile(predicates: Sequence[Predicate]) -> List[Tuple[str, Pattern[str]]]:
    return [
        (attribute, pattern if isinstance(pattern, re.Pattern) else re.compile(pattern))
        for attribute, pattern in predicates
    ]


def _satisfies(node: Any, predicates: Sequence[Tuple[str, Pattern[str]]]) -> bool:
    if not isinstance(node, Mapping):
        return False
    for attribute, pattern in predicates:
        if attribute not in node:
            return False
        value = node[attribute]
        if not isinstance(value, str) or not pattern.search(value):
            return False
    return True


def _visit(
    value: Any,
    tokens: List[Token],
    predicates: Sequence[Tuple[str, Pattern[str]]],
    matches: List[PathMatch],
) -> None:
    if isinstance(value, Mapping):
        children = list(value.items())
    elif isinstance(value, list):
        children = list(enumerate(value))
    else:
        return

    for key, child in children:
        child_tokens = tokens + [key]
        if _satisfies(child, predicates):
            matches.append(PathMatch(format_path(child_tokens), child))
        _visit(child, child_tokens, predicates, matches)


def _element_at(document: Any, tokens: Sequence[Token]) -> Any:
    current = document
    for token in tokens:
        if isinstance(token, int):
            if not isinstance(current, list) or token >= len(current):
                return _MISSING
            current = current[token]
        else:
            if not isinstance(current, Mapping) or token not in current:
                return _MISSING
            current = current[token]
    return current


__all__ = [
    "FILE_PREDICATES",
    "LIBRARY_PATTERN",
    "LIBRARY_PREDICATES",
    "PathMatch",
    "find_closest_ancestor",
    "find_matches",
    "format_path",
    "is_path_prefix",
    "join_path",
    "path_sort_key",
    "prune_matches",
    "relative_path",
    "tokenize_path",
]
