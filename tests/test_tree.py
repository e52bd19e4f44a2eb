"""Tests for content tree reconstruction."""

from __future__ import annotations

import pytest

from h5pcare.errors import MainLibraryError
from h5pcare.inputs import normalize_media_facts
from h5pcare.models import LibraryFacts
from h5pcare.tree import TreeBuilder, build_content_tree, resolve_main_library
from tests._fixtures.package_builder import PackageBuilder, image_file, sub_content


def _build(builder: PackageBuilder):
    facts = builder.facts()
    return TreeBuilder().build(
        facts.manifest,
        facts.content,
        libraries=facts.libraries,
        media=facts.media,
        accessibility=facts.accessibility,
    )


def _book() -> PackageBuilder:
    builder = PackageBuilder()
    builder.params(
        {
            "chapters": [
                sub_content(
                    "H5P.Column 1.16",
                    {
                        "content": [
                            {
                                "content": sub_content(
                                    "H5P.Image 1.1",
                                    {"file": image_file("images/cat.png", width=800, height=600)},
                                    sub_content_id="img-1",
                                    title="Cat",
                                )
                            },
                            {
                                "content": sub_content(
                                    "H5P.Text 1.1",
                                    {"text": "<p>Hello</p>"},
                                    sub_content_id="txt-1",
                                )
                            },
                        ]
                    },
                    sub_content_id="col-1",
                    title="Chapter 1",
                ),
            ],
            "cover": {"coverImage": image_file("images/cover.jpg", "image/jpeg")},
        }
    )
    return builder


def test_root_is_built_from_manifest() -> None:
    tree = _build(_book())

    assert tree.root.id == "root"
    assert tree.root.semantics_path == ""
    assert tree.root.versioned_library_id == "H5P.InteractiveBook 1.10"
    assert tree.root.describe() == "Book (H5P.InteractiveBook)"


def test_sub_content_paths_point_at_params_and_nest_by_longest_prefix() -> None:
    tree = _build(_book())

    column = tree.get("chapters[0].params")
    image = tree.get("chapters[0].params.content[0].content.params")
    text = tree.get("chapters[0].params.content[1].content.params")

    assert column is not None and image is not None and text is not None
    assert tree.parent_of(column) is tree.root
    assert tree.parent_of(image) is column
    assert tree.parent_of(text) is column
    assert column.children == [image.semantics_path, text.semantics_path]
    assert image.id == "img-1"
    assert image.metadata.title == "Cat"


def test_tree_is_acyclic_and_connected() -> None:
    tree = _build(_book())

    for node in tree:
        ancestors = tree.ancestors_of(node)
        assert node not in ancestors
        if not node.is_root:
            assert ancestors[-1] is tree.root


def test_textual_prefix_does_not_make_a_parent() -> None:
    builder = PackageBuilder(main_library="H5P.Column", version=(1, 16))
    builder.params(
        {
            "foo": sub_content("H5P.Text 1.1", sub_content_id="a"),
            "foobar": sub_content("H5P.Text 1.1", sub_content_id="b"),
        }
    )

    tree = _build(builder)

    foobar = tree.get("foobar.params")
    assert foobar is not None
    assert tree.parent_of(foobar) is tree.root


def test_missing_sub_content_id_defaults_to_empty_string() -> None:
    builder = PackageBuilder()
    builder.params({"content": sub_content("H5P.Text 1.1")})

    tree = _build(builder)

    assert tree.get("content.params").id == ""


def test_content_files_are_owned_exclusively() -> None:
    tree = _build(_book())

    root_files = [content_file.path for content_file in tree.root.content_files]
    image = tree.get("chapters[0].params.content[0].content.params")

    assert root_files == ["images/cover.jpg"]
    assert [content_file.path for content_file in image.content_files] == ["images/cat.png"]
    assert image.content_files[0].semantics_path == (
        "chapters[0].params.content[0].content.params.file"
    )
    assert tree.get("chapters[0].params").content_files == []


def test_image_content_file_carries_alt_text_and_dimensions() -> None:
    builder = PackageBuilder(main_library="H5P.Image", version=(1, 1))
    builder.params(
        {"file": image_file("images/a.png", width=10, height=20), "alt": "A cat", "decorative": False}
    )

    tree = _build(builder)
    image = tree.root.content_files[0]

    assert image.type == "image"
    assert image.alt == "A cat"
    assert image.decorative is False
    assert (image.width, image.height) == (10, 20)
    assert image.semantics_path == "file"


def test_audio_and_video_sources_are_indexed() -> None:
    builder = PackageBuilder(main_library="H5P.Column", version=(1, 16))
    builder.params(
        {
            "content": [
                {
                    "content": sub_content(
                        "H5P.Audio 1.5",
                        {"files": [{"path": "audios/a.mp3", "mime": "audio/mpeg"}]},
                    )
                },
                {
                    "content": sub_content(
                        "H5P.Video 1.6",
                        {
                            "sources": [
                                {"path": "videos/a.mp4", "mime": "video/mp4"},
                                {"path": "videos/a.webm", "mime": "video/webm"},
                            ]
                        },
                    )
                },
            ]
        }
    )

    tree = _build(builder)
    audio = tree.get("content[0].content.params")
    video = tree.get("content[1].content.params")

    assert [(f.type, f.semantics_path) for f in audio.content_files] == [
        ("audio", "content[0].content.params.files[0]")
    ]
    assert [f.path for f in video.content_files] == ["videos/a.mp4", "videos/a.webm"]


def test_generic_files_use_copyright_metadata_and_mime_class() -> None:
    builder = PackageBuilder()
    builder.params(
        {
            "attachment": {
                "path": "files/handout.pdf",
                "mime": "application/pdf",
                "copyright": {"license": "CC BY", "author": "Ada", "title": "Handout"},
            }
        }
    )

    tree = _build(builder)
    attachment = tree.root.content_files[0]

    assert attachment.type == "file"
    assert attachment.metadata.license == "CC BY"
    assert attachment.metadata.author_names == ["Ada"]


def test_enrichment_attaches_media_library_and_accessibility_facts() -> None:
    builder = _book()
    builder.media_file("images/cat.png", size=1234, width=800, height=600, base64="data:...")
    builder.library("H5P.Image", runnable=1)
    builder.evaluation("H5P.Text", type="Text", status="Pass", url="https://example.org")

    tree = _build(builder)
    image = tree.get("chapters[0].params.content[0].content.params")
    text = tree.get("chapters[0].params.content[1].content.params")

    assert image.content_files[0].size == 1234
    assert image.content_files[0].base64 == "data:..."
    assert isinstance(image.library, LibraryFacts)
    assert image.library.runnable is True
    assert text.library is None
    assert text.accessibility == {"type": "Text", "status": "Pass", "url": "https://example.org"}


def test_media_facts_match_by_file_name() -> None:
    builder = _book()
    builder.media = {"images": {"cat.png": {"size": 99}}}

    facts = builder.facts()
    tree = build_content_tree(facts.manifest, facts.content, media=facts.media)
    image = tree.get("chapters[0].params.content[0].content.params")

    assert image.content_files[0].size == 99


def test_normalize_media_facts_accepts_flat_and_nested_forms() -> None:
    flat = normalize_media_facts({"images/a.png": {"size": 1}})
    nested = normalize_media_facts({"images": {"a.png": {"size": 1, "width": 5}}})

    assert flat["images/a.png"].size == 1
    assert nested["images/a.png"].width == 5
    assert normalize_media_facts(None) == {}


def test_tree_view_is_serializable() -> None:
    tree = _build(_book())
    view = tree.to_view()

    assert view["id"] == "root"
    assert view["label"] == "Book (H5P.InteractiveBook)"
    chapter = view["children"][0]
    assert chapter["title"] == "Chapter 1"
    assert chapter["versionedLibraryId"] == "H5P.Column 1.16"
    assert [child["id"] for child in chapter["children"]] == ["img-1", "txt-1"]


def test_owner_of_falls_back_to_root() -> None:
    tree = _build(_book())

    assert tree.owner_of("cover.coverImage") is tree.root
    assert tree.owner_of("chapters[0].params.content[0].content.params.file").id == "img-1"


def test_owner_of_excludes_the_node_itself() -> None:
    tree = _build(_book())

    owner = tree.owner_of("chapters[0].params.content[0].content.params")

    assert owner.versioned_library_id == "H5P.Column 1.16"
    assert tree.owner_of("chapters[0].paramsExtra").is_root


@pytest.mark.parametrize(
    "manifest",
    [
        {},
        {"mainLibrary": "H5P.Foo"},
        {"mainLibrary": "H5P.Foo", "preloadedDependencies": [{"machineName": "H5P.Bar", "majorVersion": 1, "minorVersion": 0}]},
        {"mainLibrary": "H5P.Foo", "preloadedDependencies": [{"machineName": "H5P.Foo", "majorVersion": 1}]},
    ],
)
def test_unresolvable_main_library_is_terminal(manifest: dict) -> None:
    with pytest.raises(MainLibraryError):
        resolve_main_library(manifest)
    with pytest.raises(MainLibraryError):
        TreeBuilder().build(manifest, {})
