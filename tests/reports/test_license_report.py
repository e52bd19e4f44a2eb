"""Tests for the license report."""

from __future__ import annotations

from h5pcare.orchestrator import Caretaker
from h5pcare.reports import LicenseReport
from tests._fixtures.package_builder import PackageBuilder, image_file, sub_content

COMPLETE = {
    "licenseVersion": "4.0",
    "authors": [{"name": "Ada", "role": "Author"}],
    "source": "https://example.org",
    "changes": [{"date": "2024", "author": "Ada", "log": "Initial"}],
}


def _generate(builder: PackageBuilder, make_context):
    context = make_context(builder)
    tree = Caretaker().build_tree(context.facts)
    return tree, LicenseReport().generate(tree, context)


def _types(messages):
    return [message.type for message in messages]


def test_complete_cc_by_metadata_is_clean(make_context) -> None:
    builder = PackageBuilder(license="CC BY", **COMPLETE)
    _, messages = _generate(builder, make_context)
    assert messages == []


def test_undisclosed_root_license_mentions_main_content(make_context) -> None:
    builder = PackageBuilder(license="U", authors=[{"name": "Ada"}])
    _, messages = _generate(builder, make_context)

    assert _types(messages) == ["missingLicense"]
    assert messages[0].level == "error"
    assert messages[0].summary.endswith("as H5P main content")
    assert messages[0].subject_path == ""


def test_undisclosed_nested_license_mentions_path(make_context) -> None:
    builder = PackageBuilder(license="CC BY", **COMPLETE)
    builder.params(
        {
            "content": sub_content(
                "H5P.Text 1.1",
                sub_content_id="t1",
                license="U",
                authors=[{"name": "Ada"}],
            )
        }
    )

    _, messages = _generate(builder, make_context)

    assert _types(messages) == ["missingLicense"]
    assert messages[0].summary == (
        "Missing license information for Untitled (H5P.Text) at content.params"
    )
    assert messages[0].details["subContentId"] == "t1"


def test_cc_by_attribution_checks(make_context) -> None:
    builder = PackageBuilder(license="CC BY", title="")
    _, messages = _generate(builder, make_context)

    assert _types(messages) == [
        "missingLicenseVersion",
        "missingAuthor",
        "missingTitle",
        "missingSource",
        "missingChanges",
    ]
    source = messages[3]
    assert source.level == "caution"
    assert source.summary.startswith("Potentially missing source")


def test_cc_by_4_requires_source_as_warning(make_context) -> None:
    metadata = dict(COMPLETE)
    metadata.pop("source")
    builder = PackageBuilder(license="CC BY-SA", **metadata)

    _, messages = _generate(builder, make_context)

    assert _types(messages) == ["missingSource"]
    assert messages[0].level == "warning"


def test_public_domain_does_not_need_author(make_context) -> None:
    builder = PackageBuilder(license="CC PDM")
    _, messages = _generate(builder, make_context)
    assert messages == []


def test_gpl_needs_changes_and_license_text(make_context) -> None:
    builder = PackageBuilder(license="GNU GPL", authors=[{"name": "Ada"}])
    _, messages = _generate(builder, make_context)

    assert _types(messages) == ["missingChanges", "missingLicenseExtras"]


def test_files_are_checked_against_their_copyright(make_context) -> None:
    builder = PackageBuilder(license="CC BY", **COMPLETE)
    builder.params(
        {
            "cover": image_file(
                "images/cover.png",
                copyright={"license": "U", "author": "Ada", "title": "Cover"},
            )
        }
    )

    tree, messages = _generate(builder, make_context)

    assert _types(messages) == ["missingLicense"]
    message = messages[0]
    assert message.details["path"] == "images/cover.png"
    assert message.details["semanticsPath"] == "cover"
    assert message.summary == (
        "Missing license information for Cover (image) inside Book (H5P.InteractiveBook) at cover"
    )
    assert message.subject_path == tree.root.semantics_path


def test_media_sub_content_files_are_not_checked_twice(make_context) -> None:
    builder = PackageBuilder(license="CC BY", **COMPLETE)
    builder.params(
        {
            "image": sub_content(
                "H5P.Image 1.1",
                {"file": image_file("images/a.png")},
                sub_content_id="i1",
                license="U",
                authors=[{"name": "Ada"}],
            )
        }
    )

    _, messages = _generate(builder, make_context)

    assert _types(messages) == ["missingLicense"]
    assert messages[0].details["subContentId"] == "i1"


def test_license_report_is_idempotent(make_context) -> None:
    builder = PackageBuilder(license="U")
    builder.params(
        {
            "content": sub_content("H5P.Text 1.1", license="CC BY"),
            "cover": image_file("images/cover.png"),
        }
    )
    context = make_context(builder)
    tree = Caretaker().build_tree(context.facts)
    report = LicenseReport()

    first = [message.to_dict() for message in report.generate(tree, context)]
    second = [message.to_dict() for message in report.generate(tree, context)]

    assert first == second
    assert first


def test_analysis_keeps_license_messages_stable_across_runs() -> None:
    builder = PackageBuilder(license="U")
    caretaker = Caretaker()

    first = caretaker.analyze(builder.facts()).to_dict()["byCategory"]["license"]
    second = caretaker.analyze(builder.facts()).to_dict()["byCategory"]["license"]

    assert first == second
