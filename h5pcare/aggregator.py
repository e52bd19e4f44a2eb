"""Merges report output into a single analysis report."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .models import CATEGORIES, Message
from .tree import ContentTree


@dataclass
class AnalysisReport:
    """Ordered messages per category plus optional tree view and raw facts."""

    by_category: Dict[str, List[Message]] = field(default_factory=dict)
    categories: Dict[str, List[str]] = field(default_factory=dict)
    tree: Optional[Dict[str, Any]] = None
    raw: Optional[Dict[str, Any]] = None

    @property
    def messages(self) -> List[Message]:
        ordered: List[Message] = []
        for category in CATEGORIES:
            ordered.extend(self.by_category.get(category, []))
        return ordered

    def filter(self, *, level: Optional[str] = None, type: Optional[str] = None) -> List[Message]:
        return [
            message
            for message in self.messages
            if (level is None or message.level == level) and (type is None or message.type == type)
        ]

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "messages": [message.to_dict() for message in self.messages],
            "byCategory": {
                category: [message.to_dict() for message in items]
                for category, items in self.by_category.items()
            },
            "categories": {category: list(names) for category, names in self.categories.items()},
        }
        if self.tree is not None:
            data["tree"] = self.tree
        if self.raw is not None:
            data["raw"] = self.raw
        return data


def aggregate(
    tree: ContentTree,
    flat: Iterable[Message] = (),
    *,
    type_names: Mapping[str, Sequence[str]] | None = None,
    include_tree: bool = True,
    raw: Optional[Mapping[str, Any]] = None,
) -> AnalysisReport:
    """Combine node message bins with package-level messages.

    Within each category, node bins come first in discovery order, followed by
    flat messages in the order they were produced.
    """
    by_category: Dict[str, List[Message]] = {
        category: list(items) for category, items in tree.messages().items()
    }
    for message in flat:
        if message.category not in CATEGORIES:
            continue
        by_category.setdefault(message.category, []).append(message)

    ordered = {category: by_category[category] for category in CATEGORIES if by_category.get(category)}

    categories: Dict[str, List[str]] = {}
    for category, names in (type_names or {}).items():
        bucket = categories.setdefault(category, [])
        bucket.extend(name for name in names if name not in bucket)

    return AnalysisReport(
        by_category=ordered,
        categories=categories,
        tree=tree.to_view() if include_tree else None,
        raw=dict(raw) if raw is not None else None,
    )


__all__ = ["AnalysisReport", "aggregate"]
