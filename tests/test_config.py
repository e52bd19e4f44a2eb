"""Tests for h5pcare.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from h5pcare.config import CaretakerConfig, ConfigError, load_config
from h5pcare.orchestrator import resolve_config


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, CaretakerConfig)
    assert config.root == tmp_path.resolve()
    assert config.locale == "en"
    assert config.catalog_dir is None
    assert config.reports.enabled == []
    assert config.reports.parallel is False
    assert config.output.format == "json"
    assert config.output.include_raw is False
    assert config.output.include_tree is True


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".h5pcare.yml"
    config_file.write_text(
        """
locale: de
catalog_dir: strings
reports:
  enabled: [license, accessibility]
  parallel: yes
output:
  format: Markdown
  include_raw: true
  include_tree: "no"
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.locale == "de"
    assert config.catalog_dir == tmp_path.resolve() / "strings"
    assert config.reports.enabled == ["license", "accessibility"]
    assert config.reports.parallel is True
    assert config.output.format == "markdown"
    assert config.output.include_raw is True
    assert config.output.include_tree is False


def test_load_config_resolves_file_next_to_bundle(tmp_path: Path) -> None:
    (tmp_path / ".h5pcare.yml").write_text("locale: fr\n", encoding="utf-8")

    config = load_config(tmp_path / "package.json")

    assert config.locale == "fr"


def test_empty_config_file_yields_defaults(tmp_path: Path) -> None:
    (tmp_path / ".h5pcare.yml").write_text("\n", encoding="utf-8")
    assert load_config(tmp_path).reports.enabled == []


@pytest.mark.parametrize(
    "text",
    ["- a\n- b\n", "reports: [unclosed\n", "output:\n  format: pdf\n"],
)
def test_invalid_config_raises(tmp_path: Path, text: str) -> None:
    (tmp_path / ".h5pcare.yml").write_text(text, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_resolve_config_falls_back_to_defaults(tmp_path: Path) -> None:
    (tmp_path / ".h5pcare.yml").write_text("- not a mapping\n", encoding="utf-8")

    config = resolve_config(tmp_path)

    assert config.root == tmp_path.resolve()
    assert config.locale == "en"
