"""Base classes for report plugins."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from ..catalog import MessageCatalog
from ..inputs import PackageFacts
from ..models import Content, Message
from ..tree import ContentTree


@dataclass
class ReportContext:
    """Read-only inputs shared by every report of one analysis run."""

    facts: PackageFacts
    catalog: MessageCatalog


class Report(ABC):
    """Contract for reports that derive messages from the content tree.

    Reports never mutate the tree. Messages meant for a node's bin carry the
    node's semantics path in ``subject_path``; messages without one are flat
    package-level output.
    """

    name: str = ""
    category: str = ""
    type_names: Tuple[str, ...] = ()

    def supports(self, tree: ContentTree, context: ReportContext) -> bool:
        """Return True when this report should run for the package."""
        return True

    @abstractmethod
    def generate(self, tree: ContentTree, context: ReportContext) -> List[Message]:
        """Produce the messages of this report."""


def content_details(content: Content, **extra: Any) -> Dict[str, Any]:
    """Details identifying ``content`` in a message payload."""
    details: Dict[str, Any] = {
        "semanticsPath": content.semantics_path,
        "title": content.describe("{title}"),
        "subContentId": content.id,
    }
    details.update(extra)
    return details
