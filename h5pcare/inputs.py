"""Package facts consumed by an analysis run."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping

from .errors import InputError
from .models import LibraryFacts, MediaFacts

_MEDIA_FIELDS = {"size", "width", "height", "base64"}


@dataclass
class PackageFacts:
    """Already-decoded inputs describing one unpacked H5P package."""

    manifest: Dict[str, Any]
    content: Dict[str, Any]
    libraries: Dict[str, LibraryFacts] = field(default_factory=dict)
    media: Dict[str, MediaFacts] = field(default_factory=dict)
    accessibility: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "PackageFacts":
        """Build facts from a bundle using either short or h5p.json-style keys."""
        if not isinstance(payload, Mapping):
            raise InputError("Package facts must be a mapping")

        manifest = payload.get("manifest", payload.get("h5pJson"))
        content = payload.get("content", payload.get("contentJson"))
        if not isinstance(manifest, Mapping):
            raise InputError("Package facts lack a manifest mapping")
        if not isinstance(content, Mapping):
            raise InputError("Package facts lack a content parameters mapping")

        libraries: Dict[str, LibraryFacts] = {}
        raw_libraries = payload.get("libraries")
        if isinstance(raw_libraries, Mapping):
            for machine_name, data in raw_libraries.items():
                if isinstance(data, Mapping):
                    facts = LibraryFacts.from_dict(str(machine_name), data)
                    libraries[facts.machine_name] = facts

        accessibility: Dict[str, Dict[str, Any]] = {}
        raw_accessibility = payload.get("accessibility")
        if isinstance(raw_accessibility, Mapping):
            for machine_name, record in raw_accessibility.items():
                if isinstance(record, Mapping):
                    accessibility[str(machine_name)] = dict(record)

        return cls(
            manifest=dict(manifest),
            content=dict(content),
            libraries=libraries,
            media=normalize_media_facts(payload.get("media")),
            accessibility=accessibility,
            raw=dict(payload),
        )


def normalize_media_facts(media: Any) -> Dict[str, MediaFacts]:
    """Flatten nested ``{"images": {"a.png": {...}}}`` into package-relative paths."""
    results: Dict[str, MediaFacts] = {}
    if not isinstance(media, Mapping):
        return results

    def _walk(prefix: str, value: Mapping[str, Any]) -> None:
        for name, entry in value.items():
            if not isinstance(entry, Mapping):
                continue
            path = f"{prefix}/{name}" if prefix else str(name)
            if _MEDIA_FIELDS.intersection(entry.keys()):
                results[path] = MediaFacts.from_dict(entry)
            else:
                _walk(path, entry)

    _walk("", media)
    return results


def load_package_facts(path: Path) -> PackageFacts:
    """Read a JSON facts bundle from disk."""
    path = Path(path).expanduser()
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise InputError(f"Facts bundle {path} does not exist") from exc
    except OSError as exc:
        raise InputError(f"Facts bundle {path} cannot be read: {exc}") from exc

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InputError(f"Facts bundle {path.name} is not valid JSON: {exc}") from exc

    return PackageFacts.from_dict(payload)


__all__ = ["PackageFacts", "load_package_facts", "normalize_media_facts"]
