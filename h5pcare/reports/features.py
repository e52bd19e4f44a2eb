"""Features report: resume, xAPI and question type contract support."""

from __future__ import annotations

from typing import Dict, List

from ..models import QUESTION_TYPE_CONTRACT, Content, Message
from ..tree import ContentTree
from .base import Report, ReportContext, content_details

CONTRACT_REFERENCE = "https://h5p.org/documentation/developers/contracts"
RESUME_REFERENCE = "https://h5p.org/documentation/developers/contracts#guides-header-7"
XAPI_REFERENCE = "https://h5p.org/documentation/for-authors/analyzing-results-and-answers"


class FeaturesReport(Report):
    """Summarizes which optional H5P capabilities each content type declares."""

    name = "features"
    category = "features"
    type_names = (
        "missingLibrary",
        "featuresUnknown",
        "resume",
        "xAPI",
        "questionTypeContract",
    )

    def generate(self, tree: ContentTree, context: ReportContext) -> List[Message]:
        catalog = context.catalog
        messages: List[Message] = []

        for node in tree:
            if not node.machine_name:
                continue
            label = node.describe()

            if node.library is None:
                messages.append(
                    Message(
                        category=self.category,
                        type="missingLibrary",
                        summary=catalog("features:missingLibrary", label),
                        recommendation=catalog("features:missingLibraryRecommendation"),
                        level="caution",
                        details=content_details(node),
                        subject_path=node.semantics_path,
                    )
                )
                continue

            features = node.library.features()
            if features is None:
                messages.append(
                    Message(
                        category=self.category,
                        type="featuresUnknown",
                        summary=catalog("features:featuresUnknown", label),
                        recommendation=catalog("features:featuresUnknownRecommendation"),
                        level="caution",
                        details=content_details(node),
                        subject_path=node.semantics_path,
                    )
                )
                continue

            messages.append(
                self._flag_message(
                    node,
                    "resume",
                    catalog(
                        "features:supportsResume"
                        if features["getCurrentState"]
                        else "features:noResume",
                        label,
                    ),
                    RESUME_REFERENCE,
                )
            )
            messages.append(
                self._flag_message(
                    node,
                    "xAPI",
                    catalog(
                        "features:supportsXAPI" if features["getXAPIData"] else "features:noXAPI",
                        label,
                    ),
                    XAPI_REFERENCE,
                )
            )
            messages.append(self._contract_message(node, features, context))

        return messages

    def _flag_message(self, node: Content, type_name: str, summary: str, reference: str) -> Message:
        return Message(
            category=self.category,
            type=type_name,
            summary=summary,
            details=content_details(node, reference=reference),
            subject_path=node.semantics_path,
        )

    def _contract_message(
        self, node: Content, features: Dict[str, bool], context: ReportContext
    ) -> Message:
        catalog = context.catalog
        supported = [name for name in QUESTION_TYPE_CONTRACT if features.get(name)]
        unsupported = [name for name in QUESTION_TYPE_CONTRACT if not features.get(name)]
        label = node.describe()

        description: List[str] = []
        if not unsupported:
            summary = catalog("features:supportsQuestionType", label)
        elif supported:
            summary = catalog("features:partialQuestionType", label)
        else:
            summary = catalog("features:noQuestionType", label)
        if supported:
            description.append(catalog("features:supportedFunctions", ", ".join(supported)))
        if unsupported:
            description.append(catalog("features:unsupportedFunctions", ", ".join(unsupported)))

        return Message(
            category=self.category,
            type="questionTypeContract",
            summary=summary,
            description=description,
            details=content_details(node, reference=CONTRACT_REFERENCE),
            subject_path=node.semantics_path,
        )
