"""Efficiency report: oversized image files."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from ..json_paths import relative_path
from ..models import Content, ContentFile, Message
from ..tree import ContentTree
from .base import Report, ReportContext, content_details

# Maximum recommended bytes per image format, keyed by pixel-count breakpoints.
MAX_IMAGE_SIZES: Dict[str, Dict[int, int]] = {
    "jpeg": {0: 51200, 10000: 102400, 307200: 204800, 2073600: 512000},
    "png": {0: 51200, 10000: 153600, 307200: 307200, 2073600: 512000},
    "gif": {0: 51200, 10000: 204800, 307200: 512000, 2073600: 1048576},
    "*": {0: 51200, 10000: 204800, 960000: 512000},
}

# Browsers zoom up to 400% without loss of content (WCAG 1.4.4/1.4.10).
ZOOM_FACTOR = 4


@dataclass(frozen=True)
class DisplayBound:
    """Largest size at which a content type usually shows an image field."""

    pattern: str
    max_width: Optional[int] = None
    max_height: Optional[int] = None

    def matches(self, path: str) -> bool:
        expression = re.escape(self.pattern).replace(r"\[\]", r"\[\d+\]")
        return re.fullmatch(expression, path) is not None


DISPLAY_BOUNDS: Dict[str, Tuple[DisplayBound, ...]] = {
    "H5P.MemoryGame": (
        DisplayBound("cards[].image", max_width=150),
        DisplayBound("cards[].match", max_width=150),
    ),
    "H5P.ImagePair": (
        DisplayBound("cards[].image", max_width=200),
        DisplayBound("cards[].match", max_width=200),
    ),
    "H5P.ImageSequencing": (DisplayBound("sequenceImages[].image", max_width=200),),
    "H5P.DialogCards": (DisplayBound("dialogs[].image", max_height=300),),
    "H5P.Flashcards": (DisplayBound("cards[].image", max_height=400),),
    "H5P.ImageHotspots": (DisplayBound("image", max_width=1280),),
    "H5P.CoursePresentation": (
        DisplayBound(
            "presentation.globalBackgroundSelector.imageGlobalBackground", max_width=1280
        ),
        DisplayBound(
            "presentation.slides[].slideBackgroundSelector.imageSlideBackground",
            max_width=1280,
        ),
    ),
    "H5P.DragQuestion": (DisplayBound("question.settings.background", max_width=1280),),
}


class EfficiencyReport(Report):
    """Flags image files that are heavier or larger than they need to be."""

    name = "efficiency"
    category = "efficiency"
    type_names = ("imageSize", "imageResolution")

    def generate(self, tree: ContentTree, context: ReportContext) -> List[Message]:
        messages: List[Message] = []
        for node in tree:
            for content_file in node.content_files:
                if not content_file.path.startswith("images/"):
                    continue
                size_message = self._check_size(node, content_file, context)
                if size_message is not None:
                    messages.append(size_message)
                resolution_message = self._check_resolution(node, content_file, context)
                if resolution_message is not None:
                    messages.append(resolution_message)
        return messages

    def _check_size(
        self, node: Content, content_file: ContentFile, context: ReportContext
    ) -> Optional[Message]:
        size = content_file.size
        if size is None:
            return None

        catalog = context.catalog
        image_type = get_image_type(content_file.mime, content_file.path)
        width, height = content_file.width, content_file.height
        limit = get_max_image_size(image_type, width, height)
        if size <= limit:
            return None

        if _is_int(width) and _is_int(height):
            description = [catalog("efficiency:imageResolution", width, height)]
        else:
            # unknown resolutions are judged with the wildcard table
            image_type = "*"
            description = [catalog("efficiency:imageUnknownResolution")]
        description.append(catalog("efficiency:imageFileSize", f"{size:,}"))
        type_label = (
            catalog("efficiency:imageTypeUnknown") if image_type == "*" else image_type.upper()
        )
        description.append(catalog("efficiency:imageType", type_label))

        recommendation = [
            catalog("efficiency:imageRecommendedSize", f"{limit:,}", f"{size:,}"),
            catalog("efficiency:imageReduceResolution"),
        ]
        if image_type == "jpeg":
            recommendation.append(catalog("efficiency:imageReduceQuality"))
            remediation: Dict[str, Any] = {"method": "reduceQuality", "arguments": []}
        else:
            recommendation.append(catalog("efficiency:imageConvertJPEG"))
            remediation = {"method": "convert", "arguments": ["jpeg"]}

        return Message(
            category=self.category,
            type="imageSize",
            summary=catalog("efficiency:imageTooLarge", node.describe()),
            recommendation=" ".join(recommendation),
            description=description,
            level="caution",
            details=content_details(
                node,
                path=content_file.path,
                semanticsPath=content_file.semantics_path,
                title=content_file.metadata.title or node.describe("{title}"),
                base64=content_file.base64,
            ),
            remediation=remediation,
            subject_path=node.semantics_path,
        )

    def _check_resolution(
        self, node: Content, content_file: ContentFile, context: ReportContext
    ) -> Optional[Message]:
        width, height = content_file.width, content_file.height
        bound = find_display_bound(node, content_file)
        if bound is None:
            return None

        candidates: List[Tuple[float, str, int]] = []
        if bound.max_width and _is_int(width) and width > ZOOM_FACTOR * bound.max_width:
            candidates.append((width / (ZOOM_FACTOR * bound.max_width), "width", bound.max_width))
        if bound.max_height and _is_int(height) and height > ZOOM_FACTOR * bound.max_height:
            candidates.append(
                (height / (ZOOM_FACTOR * bound.max_height), "height", bound.max_height)
            )
        if not candidates:
            return None

        _, axis, limit = max(candidates)
        target = ZOOM_FACTOR * limit
        catalog = context.catalog
        if axis == "width":
            description = catalog("efficiency:imageMaxWidth", limit)
            recommendation = catalog("efficiency:imageScaleDownWidth", target)
        else:
            description = catalog("efficiency:imageMaxHeight", limit)
            recommendation = catalog("efficiency:imageScaleDownHeight", target)

        return Message(
            category=self.category,
            type="imageResolution",
            summary=catalog("efficiency:imageCouldScaleDown", node.describe()),
            recommendation=recommendation,
            description=[catalog("efficiency:imageResolution", width, height), description],
            level="caution",
            details=content_details(
                node,
                path=content_file.path,
                semanticsPath=content_file.semantics_path,
                base64=content_file.base64,
            ),
            remediation={"method": "scaleDown", "arguments": [axis, target]},
            subject_path=node.semantics_path,
        )


def get_image_type(mime: Optional[str], path: str = "") -> str:
    """Return ``jpeg``, ``png``, ``gif`` or ``*`` from the mime type or file suffix."""
    subtype = ""
    if mime and mime.startswith("image/"):
        subtype = mime.split("/", 1)[1].lower()
    elif "." in path.rsplit("/", 1)[-1]:
        subtype = path.rsplit(".", 1)[-1].lower()
    if subtype == "jpg":
        subtype = "jpeg"
    return subtype if subtype in MAX_IMAGE_SIZES else "*"


def get_max_image_size(image_type: str, width: Any = None, height: Any = None) -> int:
    """Recommended byte limit for an image of the given type and resolution."""
    if _is_int(width) and _is_int(height):
        pixels: float = width * height
    else:
        image_type = "*"
        pixels = math.inf

    table = MAX_IMAGE_SIZES.get(image_type, MAX_IMAGE_SIZES["*"])
    limit = table[min(table)]
    for breakpoint in sorted(table):
        if breakpoint <= pixels:
            limit = table[breakpoint]
    return limit


def find_display_bound(node: Content, content_file: ContentFile) -> Optional[DisplayBound]:
    bounds = DISPLAY_BOUNDS.get(node.machine_name)
    if not bounds:
        return None
    path = relative_path(node.semantics_path, content_file.semantics_path)
    for bound in bounds:
        if bound.matches(path):
            return bound
    return None


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
