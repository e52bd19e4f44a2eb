"""Accessibility report: alternative texts and external evaluations."""

from __future__ import annotations

from typing import List

from ..catalog import MessageCatalog
from ..models import Content, ContentFile, Message
from ..tree import ContentTree
from .base import Report, ReportContext, content_details

GUIDE_URL = "https://studio.libretexts.org/help/h5p-accessibility-guide"
GUIDE_LICENSE_URL = "https://creativecommons.org/licenses/by/4.0/"
LIBRETEXTS_URL = "https://libretexts.org"


class AccessibilityReport(Report):
    """Flags images without alternative text and relays LibreText evaluations."""

    name = "accessibility"
    category = "accessibility"
    type_names = ("libreText", "missingAltText")

    def generate(self, tree: ContentTree, context: ReportContext) -> List[Message]:
        catalog = context.catalog
        messages: List[Message] = []

        for node in tree:
            record = node.accessibility
            if not record:
                continue
            messages.append(
                Message(
                    category=self.category,
                    type="libreText",
                    summary=catalog("accessibility:libreTextEvaluation", node.machine_name),
                    description=[
                        catalog(
                            "accessibility:libreTextLicenseNote",
                            GUIDE_URL,
                            GUIDE_LICENSE_URL,
                            LIBRETEXTS_URL,
                        )
                    ],
                    details={
                        "type": record.get("type"),
                        "description": record.get("description"),
                        "status": record.get("status"),
                        "url": record.get("url"),
                    },
                    subject_path=node.semantics_path,
                )
            )

        for node in tree:
            for content_file in node.content_files:
                if content_file.type != "image":
                    continue
                if node.machine_name == "H5P.Image":
                    if _lacks_alt_text(content_file):
                        messages.append(self._missing_alt_text(node, content_file, catalog))
                else:
                    messages.append(
                        self._potentially_missing_alt_text(node, content_file, catalog)
                    )

        return messages

    def _missing_alt_text(
        self, node: Content, image: ContentFile, catalog: MessageCatalog
    ) -> Message:
        return Message(
            category=self.category,
            type="missingAltText",
            summary=catalog("accessibility:missingAltText", node.describe()),
            recommendation=catalog("accessibility:setAltTextImage"),
            level="caution",
            details=content_details(node, path=image.path, base64=image.base64),
            subject_path=node.semantics_path,
        )

    def _potentially_missing_alt_text(
        self, node: Content, image: ContentFile, catalog: MessageCatalog
    ) -> Message:
        # Content types other than H5P.Image keep alternative texts in their own fields.
        return Message(
            category=self.category,
            type="missingAltText",
            summary=catalog("accessibility:potentiallyMissingAltText", node.describe()),
            recommendation=catalog("accessibility:checkCustomAltText"),
            details=content_details(
                node,
                semanticsPath=image.semantics_path,
                title=image.describe(node, "{title}"),
                path=image.path,
                base64=image.base64,
            ),
            subject_path=node.semantics_path,
        )


def _lacks_alt_text(image: ContentFile) -> bool:
    has_alt = image.alt is not None and image.alt.strip() != ""
    return not has_alt and image.decorative is not True
