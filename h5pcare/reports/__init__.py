"""Report plugin implementations and discovery utilities."""

from __future__ import annotations

from functools import partial
from importlib import metadata
from typing import Callable, Dict, List, Sequence

from ..logging import get_logger
from ..models import CATEGORIES
from .accessibility import AccessibilityReport
from .base import Report, ReportContext
from .efficiency import EfficiencyReport
from .features import FeaturesReport
from .license import LicenseReport
from .reuse import ReuseReport
from .statistics import StatisticsReport

_ENTRY_POINT_GROUP = "h5pcare.reports"

_BUILTIN_FACTORIES: Dict[str, Callable[[], Report]] = {
    "accessibility": AccessibilityReport,
    "features": FeaturesReport,
    "license": LicenseReport,
    "efficiency": EfficiencyReport,
    "reuse": ReuseReport,
    "statistics": StatisticsReport,
}

logger = get_logger("reports")


def discover_reports(enabled: Sequence[str] | None = None) -> List[Report]:
    """Instantiate the enabled reports in category order.

    ``enabled`` holds report names, matched case-insensitively; ``None`` runs
    every available report. Plugins are only loaded when selected.
    """
    factories = available_reports()
    if enabled is None:
        selected = list(factories)
    else:
        selected = []
        for name in enabled:
            key = name.lower()
            if key not in factories:
                raise ValueError(
                    f"Unknown report '{name}'; available reports: {', '.join(factories)}"
                )
            if key not in selected:
                selected.append(key)

    reports = [_instantiate(name, factories[name]) for name in selected]
    # stable sort: reports sharing a category keep their selection order
    return sorted(reports, key=lambda report: CATEGORIES.index(report.category))


def available_reports() -> Dict[str, Callable[[], Report]]:
    """Map every report name to its factory, built-in reports first."""
    factories: Dict[str, Callable[[], Report]] = dict(_BUILTIN_FACTORIES)
    for entry in metadata.entry_points().select(group=_ENTRY_POINT_GROUP):
        key = entry.name.lower()
        if key in factories:
            logger.warning("Ignoring report plugin '%s': name already registered", entry.name)
            continue
        factories[key] = partial(_load_plugin, entry)
    return factories


def _instantiate(name: str, factory: Callable[[], Report]) -> Report:
    report = factory()
    if not isinstance(report, Report):
        raise TypeError(f"Report factory for '{name}' did not return a Report instance")
    if report.category not in CATEGORIES:
        raise ValueError(
            f"Report '{name}' declares unknown category '{report.category}'; "
            f"expected one of: {', '.join(CATEGORIES)}"
        )
    return report


def _load_plugin(entry: metadata.EntryPoint) -> Report:
    try:
        loaded = entry.load()
    except Exception as exc:
        raise RuntimeError(f"Failed to load report plugin '{entry.name}': {exc}") from exc
    logger.debug("Loaded report plugin %s", entry.name)
    if isinstance(loaded, Report):
        return loaded
    if isinstance(loaded, type) and issubclass(loaded, Report):
        return loaded()
    if callable(loaded) and not isinstance(loaded, type):
        return loaded()
    raise TypeError(f"Report plugin '{entry.name}' must be a Report subclass or factory")


__all__ = [
    "AccessibilityReport",
    "EfficiencyReport",
    "FeaturesReport",
    "LicenseReport",
    "Report",
    "ReportContext",
    "ReuseReport",
    "StatisticsReport",
    "available_reports",
    "discover_reports",
]
