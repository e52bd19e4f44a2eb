"""Content tree reconstruction from manifest and content parameters."""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Mapping, Optional

from .errors import MainLibraryError
from .json_paths import (
    FILE_PREDICATES,
    LIBRARY_PREDICATES,
    find_matches,
    is_path_prefix,
    join_path,
    path_sort_key,
    prune_matches,
    tokenize_path,
)
from .logging import get_logger
from .models import CATEGORIES, Content, ContentFile, LibraryFacts, MediaFacts, Message, Metadata

MEDIA_LIBRARIES: Dict[str, str] = {
    "H5P.Image": "image",
    "H5P.Audio": "audio",
    "H5P.Video": "video",
}


class ContentTree:
    """Arena of content nodes keyed by semantics path."""

    def __init__(self, root: Content) -> None:
        self._nodes: Dict[str, Content] = {root.semantics_path: root}
        self._root_path = root.semantics_path

    @property
    def root(self) -> Content:
        return self._nodes[self._root_path]

    def __iter__(self) -> Iterator[Content]:
        return iter(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, path: object) -> bool:
        return path in self._nodes

    def contents(self) -> List[Content]:
        return list(self._nodes.values())

    def get(self, path: str) -> Optional[Content]:
        return self._nodes.get(path)

    def attach(self, node: Content, parent: Content) -> None:
        """Register ``node`` below ``parent``."""
        if node.semantics_path in self._nodes:
            raise ValueError(f"Duplicate content at '{node.semantics_path}'")
        if parent.semantics_path not in self._nodes:
            raise ValueError(f"Unknown parent '{parent.semantics_path}'")
        self._nodes[node.semantics_path] = node
        node.parent_path = parent.semantics_path
        parent.add_child(node.semantics_path)

    def parent_of(self, node: Content) -> Optional[Content]:
        if node.parent_path is None:
            return None
        return self._nodes.get(node.parent_path)

    def children_of(self, node: Content) -> List[Content]:
        return [self._nodes[path] for path in node.children if path in self._nodes]

    def ancestors_of(self, node: Content) -> List[Content]:
        ancestors: List[Content] = []
        seen = {node.semantics_path}
        current = self.parent_of(node)
        while current is not None and current.semantics_path not in seen:
            ancestors.append(current)
            seen.add(current.semantics_path)
            current = self.parent_of(current)
        return ancestors

    def owner_of(self, path: str) -> Content:
        """Return the node whose path is the longest strict prefix of ``path``."""
        owners = [node for key, node in self._nodes.items() if is_path_prefix(key, path)]
        return max(
            owners,
            key=lambda node: len(tokenize_path(node.semantics_path)),
            default=self.root,
        )

    def messages(self) -> Dict[str, List[Message]]:
        """Collect per-node message bins by category in discovery order."""
        collected: Dict[str, List[Message]] = {}
        for category in CATEGORIES:
            for node in self._nodes.values():
                collected.setdefault(category, []).extend(node.get_messages(category))
        return {category: items for category, items in collected.items() if items}

    def to_view(self, node: Content | None = None) -> Dict[str, Any]:
        """Serializable view of the tree for presentation."""
        node = node or self.root
        return {
            "id": node.id,
            "title": node.describe("{title}"),
            "label": node.describe(),
            "versionedLibraryId": node.versioned_library_id,
            "semanticsPath": node.semantics_path,
            "children": [self.to_view(child) for child in self.children_of(node)],
        }


class TreeBuilder:
    """Assembles the content tree for one package."""

    def __init__(self) -> None:
        self.logger = get_logger("tree")

    def build(
        self,
        manifest: Mapping[str, Any],
        params: Mapping[str, Any] | None,
        *,
        libraries: Mapping[str, LibraryFacts] | None = None,
        media: Mapping[str, MediaFacts] | None = None,
        accessibility: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> ContentTree:
        params = dict(params or {})
        root = Content(
            id="root",
            versioned_library_id=resolve_main_library(manifest),
            semantics_path="",
            metadata=Metadata.from_h5p(manifest),
            params=params,
        )
        tree = ContentTree(root)

        discovered: List[Content] = []
        for match in find_matches(params, LIBRARY_PREDICATES):
            instance = match.node
            embedded = instance.get("params")
            discovered.append(
                Content(
                    id=str(instance.get("subContentId") or ""),
                    versioned_library_id=instance["library"],
                    semantics_path=join_path(match.path, "params"),
                    metadata=Metadata.from_h5p(instance.get("metadata")),
                    params=dict(embedded) if isinstance(embedded, Mapping) else {},
                )
            )
        self.logger.debug("Discovered %d embedded content instance(s)", len(discovered))

        discovered.sort(key=lambda node: path_sort_key(node.semantics_path))
        for node in discovered:
            tree.attach(node, tree.owner_of(node.semantics_path))

        for node in tree:
            node.content_files = derive_content_files(node)

        self._attach_media_facts(tree, media or {})
        self._attach_library_facts(tree, libraries or {})
        self._attach_accessibility(tree, accessibility or {})
        return tree

    def _attach_media_facts(self, tree: ContentTree, media: Mapping[str, MediaFacts]) -> None:
        by_name: Dict[str, MediaFacts] = {}
        for path, facts in media.items():
            by_name.setdefault(path.rsplit("/", 1)[-1], facts)

        for node in tree:
            for content_file in node.content_files:
                facts = media.get(content_file.path) or by_name.get(content_file.file_name)
                if facts is None:
                    continue
                content_file.size = facts.size
                if facts.width is not None:
                    content_file.width = facts.width
                if facts.height is not None:
                    content_file.height = facts.height
                if facts.base64 is not None:
                    content_file.base64 = facts.base64

    def _attach_library_facts(
        self, tree: ContentTree, libraries: Mapping[str, LibraryFacts]
    ) -> None:
        for node in tree:
            facts = libraries.get(node.machine_name)
            if facts is None:
                if node.machine_name:
                    self.logger.debug("No library facts for %s", node.machine_name)
                continue
            node.library = facts
            if facts.accessibility is not None:
                node.accessibility = facts.accessibility

    @staticmethod
    def _attach_accessibility(
        tree: ContentTree, accessibility: Mapping[str, Mapping[str, Any]]
    ) -> None:
        for node in tree:
            record = accessibility.get(node.machine_name)
            if isinstance(record, Mapping) and record:
                node.accessibility = dict(record)


def build_content_tree(
    manifest: Mapping[str, Any], params: Mapping[str, Any] | None, **facts: Any
) -> ContentTree:
    """Shortcut for ``TreeBuilder().build(...)``."""
    return TreeBuilder().build(manifest, params, **facts)


def resolve_main_library(manifest: Mapping[str, Any]) -> str:
    """Return ``"<machineName> <major>.<minor>"`` of the manifest's main library."""
    main_library = manifest.get("mainLibrary") if isinstance(manifest, Mapping) else None
    if not isinstance(main_library, str) or not main_library:
        raise MainLibraryError("Manifest does not declare a main library")

    for dependency in manifest.get("preloadedDependencies") or []:
        if not isinstance(dependency, Mapping) or dependency.get("machineName") != main_library:
            continue
        major = dependency.get("majorVersion")
        minor = dependency.get("minorVersion")
        if major is None or minor is None:
            break
        return f"{main_library} {major}.{minor}"

    raise MainLibraryError(f"Version of main library {main_library} cannot be resolved")


def derive_content_files(content: Content) -> List[ContentFile]:
    """Collect the files referenced by ``content`` itself, excluding sub-content."""
    machine_name = content.machine_name
    params = content.params
    files: List[ContentFile] = []

    if machine_name == "H5P.Image":
        image = params.get("file")
        if isinstance(image, Mapping):
            alt = params.get("alt")
            files.append(
                _media_file(
                    content,
                    "image",
                    image,
                    "file",
                    width=image.get("width"),
                    height=image.get("height"),
                    alt=alt if isinstance(alt, str) else None,
                    decorative=params.get("decorative") is True,
                )
            )
        return files

    if machine_name in ("H5P.Audio", "H5P.Video"):
        field_name = "files" if machine_name == "H5P.Audio" else "sources"
        entries = params.get(field_name)
        if isinstance(entries, list):
            for index, entry in enumerate(entries):
                if isinstance(entry, Mapping):
                    files.append(
                        _media_file(
                            content,
                            MEDIA_LIBRARIES[machine_name],
                            entry,
                            f"{field_name}[{index}]",
                        )
                    )
        return files

    own_params = prune_matches(params, LIBRARY_PREDICATES)
    for match in find_matches(own_params, FILE_PREDICATES):
        mime = match.node["mime"]
        file_type = mime.split("/", 1)[0]
        if file_type not in ("image", "audio", "video"):
            file_type = "file"
        files.append(
            ContentFile(
                type=file_type,
                path=match.node["path"],
                mime=mime,
                semantics_path=_child_path(content.semantics_path, match.path),
                owner_path=content.semantics_path,
                metadata=Metadata.from_copyright(match.node.get("copyright")),
                width=match.node.get("width"),
                height=match.node.get("height"),
            )
        )
    return files


def _media_file(
    content: Content,
    file_type: str,
    entry: Mapping[str, Any],
    field_path: str,
    **extra: Any,
) -> ContentFile:
    path = entry.get("path")
    mime = entry.get("mime")
    return ContentFile(
        type=file_type,
        path=path if isinstance(path, str) else "",
        mime=mime if isinstance(mime, str) else "",
        semantics_path=_child_path(content.semantics_path, field_path),
        owner_path=content.semantics_path,
        metadata=content.metadata,
        **extra,
    )


def _child_path(base: str, relative: str) -> str:
    if not base:
        return relative
    if relative.startswith("["):
        return f"{base}{relative}"
    return f"{base}.{relative}"


__all__ = [
    "ContentTree",
    "MEDIA_LIBRARIES",
    "TreeBuilder",
    "build_content_tree",
    "derive_content_files",
    "resolve_main_library",
]
