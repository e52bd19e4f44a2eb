"""Statistics report: content type usage counts."""

from __future__ import annotations

from typing import Dict, List

from ..models import Message
from ..tree import ContentTree
from .base import Report, ReportContext


class StatisticsReport(Report):
    name = "statistics"
    category = "statistics"
    type_names = ("contentTypeCount",)

    def generate(self, tree: ContentTree, context: ReportContext) -> List[Message]:
        counts: Dict[str, int] = {}
        for node in tree:
            machine_name = node.machine_name
            if not machine_name:
                continue
            counts[machine_name] = counts.get(machine_name, 0) + 1

        return [
            Message(
                category=self.category,
                type="contentTypeCount",
                summary=context.catalog("statistics:contentTypeCount"),
                details=counts,
            )
        ]
