"""Tests for report discovery utilities."""

from __future__ import annotations

import logging
from types import SimpleNamespace

import pytest

from h5pcare.reports import (
    AccessibilityReport,
    LicenseReport,
    Report,
    StatisticsReport,
    available_reports,
    discover_reports,
)


class DummyReport(Report):
    """Test report used for plugin discovery validation."""

    name = "dummy"
    category = "statistics"

    def generate(self, tree, context):  # pragma: no cover - unused
        return []


class EarlyReport(DummyReport):
    name = "early"
    category = "accessibility"


class UncategorizedReport(DummyReport):
    name = "uncategorized"
    category = "performance"


class DummyEntryPoints(list):
    def select(self, **kwargs):
        if kwargs.get("group") == "h5pcare.reports":
            return self
        return []


def _install_plugins(monkeypatch, **loaders) -> None:
    entries = [SimpleNamespace(name=name, load=load) for name, load in loaders.items()]
    monkeypatch.setattr(
        "h5pcare.reports.metadata.entry_points",
        lambda: DummyEntryPoints(entries),
        raising=False,
    )


def test_discover_reports_returns_builtin_reports_in_category_order() -> None:
    reports = discover_reports()
    assert [report.name for report in reports] == [
        "accessibility",
        "features",
        "license",
        "efficiency",
        "reuse",
        "statistics",
    ]


def test_discover_reports_respects_enabled_filter() -> None:
    reports = discover_reports(["statistics", "License", "license"])
    assert [type(report) for report in reports] == [LicenseReport, StatisticsReport]


def test_discover_reports_loads_entry_points(monkeypatch) -> None:
    _install_plugins(monkeypatch, dummy=lambda: DummyReport)

    reports = discover_reports(["dummy"])
    assert len(reports) == 1
    assert isinstance(reports[0], DummyReport)


def test_plugins_are_ordered_by_category(monkeypatch) -> None:
    _install_plugins(monkeypatch, early=lambda: EarlyReport)

    reports = discover_reports(["statistics", "early", "accessibility"])

    assert [report.name for report in reports] == ["early", "accessibility", "statistics"]


def test_unselected_plugins_are_not_loaded(monkeypatch) -> None:
    def _fail():
        raise AssertionError("plugin should stay unloaded")

    _install_plugins(monkeypatch, lazy=_fail)

    reports = discover_reports(["license"])

    assert [type(report) for report in reports] == [LicenseReport]
    assert "lazy" in available_reports()


def test_plugin_cannot_replace_builtin_report(monkeypatch, caplog) -> None:
    _install_plugins(monkeypatch, Accessibility=lambda: DummyReport)

    with caplog.at_level(logging.WARNING, logger="h5pcare.reports"):
        reports = discover_reports(["accessibility"])

    assert [type(report) for report in reports] == [AccessibilityReport]
    assert "Ignoring report plugin 'Accessibility'" in caplog.text


def test_plugin_with_unknown_category_is_rejected(monkeypatch) -> None:
    _install_plugins(monkeypatch, uncategorized=lambda: UncategorizedReport)

    with pytest.raises(ValueError, match="unknown category 'performance'"):
        discover_reports(["uncategorized"])


def test_entry_point_returning_non_report_is_rejected(monkeypatch) -> None:
    _install_plugins(monkeypatch, broken=lambda: object)

    with pytest.raises(TypeError):
        discover_reports(["broken"])


def test_failing_entry_point_is_reported(monkeypatch) -> None:
    def _explode():
        raise ImportError("no module named plugin")

    _install_plugins(monkeypatch, exploding=_explode)

    with pytest.raises(RuntimeError, match="Failed to load report plugin 'exploding'"):
        discover_reports(["exploding"])


def test_discover_reports_raises_for_unknown_name() -> None:
    with pytest.raises(ValueError, match="available reports: accessibility, features"):
        discover_reports(["does-not-exist"])
