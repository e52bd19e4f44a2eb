"""Reuse report: licensing and context that help others reuse content."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..models import Content, Message, Metadata
from ..tree import MEDIA_LIBRARIES, ContentTree
from .base import Report, ReportContext, content_details

# Licenses approved for free cultural works, as labelled by H5P.
CULTURAL_WORK_LICENSES = frozenset(
    {"PD", "ODC PDDL", "CC0 1.0", "CC PDM", "CC BY", "CC BY-SA", "GNU GPL"}
)
FREE_WORKS_REFERENCE = "https://creativecommons.org/public-domain/freeworks/"


class ReuseReport(Report):
    name = "reuse"
    category = "reuse"
    type_names = ("notCulturalWork", "hasLicenseExtras", "noAuthorComments")

    def generate(self, tree: ContentTree, context: ReportContext) -> List[Message]:
        messages: List[Message] = []
        for node in tree:
            if node.library is not None and not node.library.has_metadata:
                continue

            details = content_details(node)
            messages.extend(self._check_license(node, node.metadata, details, context))
            messages.extend(self._check_author_comments(node, context))

            if node.machine_name in MEDIA_LIBRARIES:
                continue
            for content_file in node.content_files:
                file_details = content_details(
                    node,
                    semanticsPath=content_file.semantics_path,
                    title=content_file.metadata.title or node.describe("{title}"),
                    path=content_file.path,
                )
                messages.extend(
                    self._check_license(
                        node,
                        content_file.metadata,
                        file_details,
                        context,
                        label=content_file.describe(node),
                    )
                )
        return messages

    def _check_license(
        self,
        node: Content,
        metadata: Metadata,
        details: Dict[str, Any],
        context: ReportContext,
        label: Optional[str] = None,
    ) -> List[Message]:
        catalog = context.catalog
        label = label or node.describe()
        license_name = (metadata.license or "").strip()
        if license_name in CULTURAL_WORK_LICENSES:
            return []

        messages = [
            Message(
                category=self.category,
                type="notCulturalWork",
                summary=catalog("reuse:licenseNotApproved", label),
                recommendation=catalog("reuse:licenseNotApprovedRecommendation"),
                details={**details, "reference": FREE_WORKS_REFERENCE},
                subject_path=node.semantics_path,
            )
        ]
        extras = (metadata.license_extras or "").strip()
        if extras:
            messages.append(
                Message(
                    category=self.category,
                    type="hasLicenseExtras",
                    summary=catalog("reuse:licenseHasAdditionalInfo", label),
                    recommendation=catalog("reuse:licenseHasAdditionalInfoRecommendation"),
                    details={**details, "licenseExtras": extras},
                    subject_path=node.semantics_path,
                )
            )
        return messages

    def _check_author_comments(self, node: Content, context: ReportContext) -> List[Message]:
        if (node.metadata.author_comments or "").strip():
            return []
        catalog = context.catalog
        return [
            Message(
                category=self.category,
                type="noAuthorComments",
                summary=catalog("reuse:noAuthorComments", node.describe()),
                recommendation=catalog("reuse:noAuthorCommentsRecommendation"),
                details=content_details(node),
                subject_path=node.semantics_path,
            )
        ]
