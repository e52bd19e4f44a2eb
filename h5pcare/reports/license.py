"""License report: attribution requirements of contents and media files."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from ..json_paths import FILE_PREDICATES, find_closest_ancestor, find_matches
from ..models import Content, Message, Metadata
from ..tree import MEDIA_LIBRARIES, ContentTree
from .base import Report, ReportContext, content_details

UNDISCLOSED = "U"
ATTRIBUTION_FREE = ("CC PDM", "PD")

_GOVERNING_LIBRARIES = {
    file_type: (("library", re.compile(rf"^{re.escape(machine_name)} ")),)
    for machine_name, file_type in MEDIA_LIBRARIES.items()
}


class LicenseReport(Report):
    """Checks that license information allows proper attribution."""

    name = "license"
    category = "license"
    type_names = (
        "missingLicense",
        "missingLicenseVersion",
        "missingAuthor",
        "missingTitle",
        "missingSource",
        "missingChanges",
        "missingLicenseExtras",
    )

    def generate(self, tree: ContentTree, context: ReportContext) -> List[Message]:
        catalog = context.catalog
        messages: List[Message] = []

        for node in tree:
            label = node.describe()
            if node.is_root:
                missing = catalog("license:missingMain", label)
            else:
                missing = catalog("license:missingAt", label, node.semantics_path)
            messages.extend(
                self.check_metadata(
                    node.metadata,
                    context,
                    label=label,
                    missing_summary=missing,
                    details=content_details(node),
                    subject_path=node.semantics_path,
                )
            )

        messages.extend(self._check_files(tree, context))
        return messages

    def _check_files(self, tree: ContentTree, context: ReportContext) -> List[Message]:
        catalog = context.catalog
        params = tree.root.params
        messages: List[Message] = []

        for match in find_matches(params, FILE_PREDICATES):
            owner = tree.owner_of(match.path)
            if owner.machine_name in MEDIA_LIBRARIES:
                # covered by the node check of the media content itself
                continue

            file_type = match.node["mime"].split("/", 1)[0]
            metadata = resolve_file_metadata(params, match.path, file_type, match.node)
            label = _file_label(owner, match.path, metadata, file_type)
            messages.extend(
                self.check_metadata(
                    metadata,
                    context,
                    label=label,
                    missing_summary=catalog("license:missingAt", label, match.path),
                    details=content_details(
                        owner, semanticsPath=match.path, path=match.node["path"]
                    ),
                    subject_path=owner.semantics_path,
                )
            )
        return messages

    def check_metadata(
        self,
        metadata: Metadata,
        context: ReportContext,
        *,
        label: str,
        missing_summary: str,
        details: Dict[str, Any],
        subject_path: Optional[str],
    ) -> List[Message]:
        """Run every attribution check against one metadata record."""
        catalog = context.catalog
        license_name = (metadata.license or "").strip()
        version = (metadata.license_version or "").strip()
        is_cc_by = license_name.startswith("CC BY")
        messages: List[Message] = []

        def _emit(
            type_name: str,
            summary: str,
            recommendation: str,
            level: str = "caution",
        ) -> None:
            messages.append(
                Message(
                    category=self.category,
                    type=type_name,
                    summary=summary,
                    recommendation=recommendation,
                    level=level,
                    details=dict(details),
                    subject_path=subject_path,
                )
            )

        if license_name in (UNDISCLOSED, ""):
            _emit("missingLicense", missing_summary, catalog("license:addLicense"), "error")

        if is_cc_by and not version:
            _emit(
                "missingLicenseVersion",
                catalog("license:missingVersion", label),
                catalog("license:setVersion"),
            )

        if not metadata.author_names and license_name not in ATTRIBUTION_FREE:
            _emit(
                "missingAuthor",
                catalog("license:missingAuthor", label),
                catalog("license:addAuthor"),
            )

        if not metadata.title and is_cc_by and version != "4.0":
            _emit(
                "missingTitle",
                catalog("license:missingTitle", label),
                catalog("license:addTitle"),
            )

        if not metadata.source and is_cc_by and version != "1.0":
            if version == "4.0":
                _emit(
                    "missingSource",
                    catalog("license:missingSource", label),
                    catalog("license:addSource40"),
                    "warning",
                )
            else:
                _emit(
                    "missingSource",
                    catalog("license:potentiallyMissingSource", label),
                    catalog("license:addSource2030"),
                )

        if not metadata.changes and (is_cc_by or license_name == "GNU GPL"):
            if license_name == "GNU GPL":
                recommendation = catalog("license:addChanges")
            elif version == "4.0":
                recommendation = catalog("license:changesIn40")
            else:
                recommendation = catalog("license:changesIn1030")
            _emit("missingChanges", catalog("license:missingChanges", label), recommendation)

        if license_name == "GNU GPL" and not (metadata.license_extras or "").strip():
            _emit(
                "missingLicenseExtras",
                catalog("license:missingExtras", label),
                catalog("license:addGPLText"),
            )

        return messages


def resolve_file_metadata(
    params: Any, path: str, file_type: str, reference: Dict[str, Any]
) -> Metadata:
    """Metadata governing the file referenced at ``path``.

    A file inside an image, audio or video instance of matching type inherits
    that instance's metadata; anything else uses its inline copyright block.
    """
    predicates = _GOVERNING_LIBRARIES.get(file_type)
    if predicates is not None:
        governing = find_closest_ancestor(params, path, predicates)
        if governing is not None:
            return Metadata.from_h5p(governing.node.get("metadata"))
    return Metadata.from_copyright(reference.get("copyright"))


def _file_label(owner: Content, path: str, metadata: Metadata, file_type: str) -> str:
    for content_file in owner.content_files:
        if content_file.semantics_path == path:
            return content_file.describe(owner)
    title = metadata.title or "Untitled"
    return f"{title} ({file_type}) inside {owner.describe()}"
