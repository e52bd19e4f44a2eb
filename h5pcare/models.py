"""Core data models shared across h5pcare components."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

CATEGORIES: tuple[str, ...] = (
    "accessibility",
    "features",
    "license",
    "efficiency",
    "reuse",
    "statistics",
)

LEVELS: tuple[str, ...] = ("info", "caution", "warning", "error")

FILE_TYPES: tuple[str, ...] = ("image", "audio", "video", "file")

QUESTION_TYPE_CONTRACT: tuple[str, ...] = (
    "getAnswerGiven",
    "getScore",
    "getMaxScore",
    "showSolutions",
    "resetTask",
    "getXAPIData",
    "getCurrentState",
    "enableSolutionsButton",
    "enableRetry",
)

DEFAULT_DESCRIPTION = "{title} ({machineName})"
DEFAULT_FILE_DESCRIPTION = "{title} ({type}) inside {parentTitle} ({parentMachineName})"

_YEAR_SINGLE = re.compile(r"^-?\d+$")
_YEAR_RANGE = re.compile(r"^(-?\d+)\s*-\s*(-?\d+)$")


@dataclass
class Metadata:
    """Copyright and reuse metadata of a content or a media file."""

    title: Optional[str] = None
    license: Optional[str] = None
    license_version: Optional[str] = None
    authors: List[Dict[str, str]] = field(default_factory=list)
    author_comments: Optional[str] = None
    license_extras: Optional[str] = None
    changes: List[Dict[str, str]] = field(default_factory=list)
    source: Optional[str] = None
    year_from: Optional[str] = None
    year_to: Optional[str] = None

    @classmethod
    def from_h5p(cls, data: Mapping[str, Any] | None) -> "Metadata":
        """Read the metadata fields used by h5p.json and sub-content instances."""
        if not isinstance(data, Mapping):
            return cls()
        return cls(
            title=_as_str(data.get("title")),
            license=_as_str(data.get("license")),
            license_version=_as_str(data.get("licenseVersion")),
            authors=_as_records(data.get("authors")),
            author_comments=_as_str(data.get("authorComments")),
            license_extras=_as_str(data.get("licenseExtras")),
            changes=_as_records(data.get("changes")),
            source=_as_str(data.get("source")),
            year_from=_as_str(data.get("yearFrom")),
            year_to=_as_str(data.get("yearTo")),
        )

    @classmethod
    def from_copyright(cls, copyright: Mapping[str, Any] | None) -> "Metadata":
        """Convert an inline copyright block of a media field into metadata."""
        if not isinstance(copyright, Mapping):
            return cls()

        authors: List[Dict[str, str]] = []
        author = _as_str(copyright.get("author"))
        if author:
            authors.append({"name": author, "role": "Author"})

        year_from = year_to = None
        year = (_as_str(copyright.get("year")) or "").strip()
        single = _YEAR_SINGLE.match(year)
        if single:
            year_from = year
        else:
            ranged = _YEAR_RANGE.match(year)
            if ranged:
                year_from, year_to = ranged.group(1), ranged.group(2)

        return cls(
            title=_as_str(copyright.get("title")),
            license=_as_str(copyright.get("license")),
            license_version=_as_str(copyright.get("version")),
            authors=authors,
            source=_as_str(copyright.get("source")),
            year_from=year_from,
            year_to=year_to,
        )

    @property
    def author_names(self) -> List[str]:
        return [author.get("name", "") for author in self.authors if author.get("name")]

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "title": self.title,
            "license": self.license,
            "licenseVersion": self.license_version,
            "authors": list(self.authors),
            "authorComments": self.author_comments,
            "licenseExtras": self.license_extras,
            "changes": list(self.changes),
            "source": self.source,
            "yearFrom": self.year_from,
            "yearTo": self.year_to,
        }
        return {key: value for key, value in data.items() if value not in (None, [], "")}


@dataclass
class Message:
    """Diagnostic produced by a report for one content, file, or the whole package."""

    category: str
    type: str
    summary: str
    level: str = "info"
    recommendation: Optional[str] = None
    description: List[str] = field(default_factory=list)
    details: Dict[str, Any] = field(default_factory=dict)
    remediation: Optional[Dict[str, Any]] = None
    subject_path: Optional[str] = None

    def __post_init__(self) -> None:
        if self.level not in LEVELS:
            raise ValueError(f"Unknown message level '{self.level}'")
        self.details = {
            key: value for key, value in self.details.items() if value is not None and value != ""
        }

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "category": self.category,
            "type": self.type,
            "summary": self.summary,
            "level": self.level,
        }
        if self.description:
            data["description"] = list(self.description)
        if self.recommendation is not None:
            data["recommendation"] = self.recommendation
        if self.details:
            data["details"] = dict(self.details)
        if self.remediation is not None:
            data["remediation"] = dict(self.remediation)
        return data


@dataclass
class MediaFacts:
    """Facts about a media file gathered by an external package inspector."""

    size: Optional[int] = None
    width: Any = None
    height: Any = None
    base64: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MediaFacts":
        size = data.get("size")
        return cls(
            size=size if isinstance(size, int) and not isinstance(size, bool) else None,
            width=data.get("width"),
            height=data.get("height"),
            base64=_as_str(data.get("base64")),
        )


@dataclass
class LibraryFacts:
    """Declared capabilities of an installed library."""

    machine_name: str
    title: Optional[str] = None
    runnable: bool = False
    preloaded_js: List[Dict[str, Any]] = field(default_factory=list)
    metadata_settings: Dict[str, Any] = field(default_factory=dict)
    question_type_features: Optional[Dict[str, bool]] = None
    accessibility: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, machine_name: str, data: Mapping[str, Any]) -> "LibraryFacts":
        """Accept flat facts or the inspector layout with an embedded library.json."""
        library_json = data.get("libraryJson")
        declared: Mapping[str, Any] = library_json if isinstance(library_json, Mapping) else data

        scripts: List[Dict[str, Any]] = []
        for entry in declared.get("preloadedJs") or []:
            if isinstance(entry, str):
                scripts.append({"path": entry})
            elif isinstance(entry, Mapping):
                scripts.append(dict(entry))

        features = data.get("questionTypeFeatures")
        if isinstance(features, Mapping):
            features = {str(name): value is True for name, value in features.items()}
        else:
            sources = [entry["source"] for entry in scripts if isinstance(entry.get("source"), str)]
            features = detect_question_type_features(sources) if sources else None

        accessibility = data.get("accessibility", data.get("libreTextA11y"))
        settings = declared.get("metadataSettings")

        return cls(
            machine_name=str(declared.get("machineName") or machine_name),
            title=_as_str(declared.get("title")),
            runnable=declared.get("runnable") in (1, True),
            preloaded_js=scripts,
            metadata_settings=dict(settings) if isinstance(settings, Mapping) else {},
            question_type_features=features,
            accessibility=dict(accessibility) if isinstance(accessibility, Mapping) else None,
        )

    @property
    def has_metadata(self) -> bool:
        return self.metadata_settings.get("disable") not in (1, True)

    def features(self) -> Optional[Dict[str, bool]]:
        """Return the contract flags, or None when support was never determined.

        Declared flags win; otherwise flags come from scanning script sources.
        A library that ships neither leaves its features unknown.
        """
        if self.question_type_features is None:
            return None
        declared = self.question_type_features
        return {name: declared.get(name) is True for name in QUESTION_TYPE_CONTRACT}


@dataclass
class ContentFile:
    """Media or file reference owned by exactly one content."""

    type: str
    path: str
    mime: str
    semantics_path: str
    owner_path: str
    metadata: Metadata = field(default_factory=Metadata)
    width: Any = None
    height: Any = None
    size: Optional[int] = None
    base64: Optional[str] = None
    alt: Optional[str] = None
    decorative: Optional[bool] = None

    @property
    def file_name(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    def describe(self, owner: "Content", template: str = DEFAULT_FILE_DESCRIPTION) -> str:
        title = self.metadata.title or "Untitled"
        replacements = {
            "{title}": title,
            "{type}": self.type if self.type in FILE_TYPES else "file",
            "{parentTitle}": owner.describe("{title}"),
            "{parentMachineName}": owner.describe("{machineName}"),
        }
        result = template
        for token, value in replacements.items():
            result = result.replace(token, value)
        return result


@dataclass(eq=False)
class Content:
    """Content instance in the tree; links to other nodes are semantics-path keys."""

    id: str
    versioned_library_id: str
    semantics_path: str
    metadata: Metadata = field(default_factory=Metadata)
    params: Dict[str, Any] = field(default_factory=dict)
    library: Optional[LibraryFacts] = None
    accessibility: Optional[Dict[str, Any]] = None
    content_files: List[ContentFile] = field(default_factory=list)
    parent_path: Optional[str] = None
    children: List[str] = field(default_factory=list)
    messages: Dict[str, List[Message]] = field(default_factory=dict)

    @property
    def machine_name(self) -> str:
        return self.versioned_library_id.split(" ")[0] if self.versioned_library_id else ""

    @property
    def is_root(self) -> bool:
        return self.id == "root" and self.semantics_path == ""

    def describe(self, template: str = DEFAULT_DESCRIPTION) -> str:
        """Substitute the title and machine name placeholders of ``template``."""
        title = self.metadata.title or "Untitled"
        return template.replace("{title}", title).replace("{machineName}", self.machine_name)

    def add_message(self, message: Message) -> None:
        if message.category not in CATEGORIES:
            return
        self.messages.setdefault(message.category, []).append(message)

    def get_messages(self, category: str) -> List[Message]:
        return list(self.messages.get(category, []))

    def add_child(self, path: str) -> None:
        if path in self.children:
            return
        self.children.append(path)

    def remove_child(self, path: str) -> None:
        if path in self.children:
            self.children.remove(path)

    def clear_children(self) -> None:
        self.children.clear()


def detect_question_type_features(sources: Iterable[str]) -> Dict[str, bool]:
    """Flag each contract function whose name occurs in any script source."""
    results = {name: False for name in QUESTION_TYPE_CONTRACT}
    for source in sources:
        for name in QUESTION_TYPE_CONTRACT:
            if not results[name] and name in source:
                results[name] = True
        if all(results.values()):
            break
    return results


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (str, int, float)):
        return str(value)
    return None


def _as_records(value: Any) -> List[Dict[str, str]]:
    if not isinstance(value, list):
        return []
    records: List[Dict[str, str]] = []
    for item in value:
        if isinstance(item, Mapping):
            records.append({str(key): str(val) for key, val in item.items() if val is not None})
    return records


__all__ = [
    "CATEGORIES",
    "Content",
    "ContentFile",
    "LEVELS",
    "LibraryFacts",
    "MediaFacts",
    "Message",
    "Metadata",
    "QUESTION_TYPE_CONTRACT",
    "detect_question_type_features",
]
