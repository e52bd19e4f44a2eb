"""Analysis orchestration: tree construction, report runs and aggregation."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .aggregator import AnalysisReport, aggregate
from .catalog import MessageCatalog
from .config import CaretakerConfig, ConfigError, load_config
from .inputs import PackageFacts, load_package_facts
from .logging import PackageLogAdapter, get_logger, get_package_logger
from .models import Message
from .reports import Report, ReportContext, discover_reports
from .tree import ContentTree, TreeBuilder

FactsLike = Union[PackageFacts, Mapping[str, Any]]


class Caretaker:
    """Runs every enabled report over one package and merges the results."""

    def __init__(
        self,
        reports: Optional[Iterable[Report]] = None,
        catalog: MessageCatalog | None = None,
        builder: TreeBuilder | None = None,
        config: CaretakerConfig | None = None,
    ) -> None:
        self.config = config or CaretakerConfig(root=Path.cwd())
        self.builder = builder or TreeBuilder()
        self._report_overrides = list(reports) if reports is not None else None
        if catalog is None:
            extra_dirs = [self.config.catalog_dir] if self.config.catalog_dir else []
            catalog = MessageCatalog(self.config.locale, extra_dirs=extra_dirs)
        self.catalog = catalog

    @classmethod
    def from_config(cls, config_path: Path, **kwargs: Any) -> "Caretaker":
        """Create a caretaker from ``.h5pcare.yml`` next to or inside ``config_path``."""
        return cls(config=resolve_config(Path(config_path)), **kwargs)

    def build_tree(self, facts: FactsLike) -> ContentTree:
        facts = _coerce_facts(facts)
        return self.builder.build(
            facts.manifest,
            facts.content,
            libraries=facts.libraries,
            media=facts.media,
            accessibility=facts.accessibility,
        )

    def analyze(
        self,
        facts: FactsLike,
        *,
        include_raw: Optional[bool] = None,
        include_tree: Optional[bool] = None,
    ) -> AnalysisReport:
        """Analyze one package; only an unresolvable main library aborts the run."""
        facts = _coerce_facts(facts)
        output = self.config.output
        include_raw = output.include_raw if include_raw is None else include_raw
        include_tree = output.include_tree if include_tree is None else include_tree

        tree = self.build_tree(facts)
        log = get_package_logger("orchestrator", tree.root.versioned_library_id)
        log.info("Analyzing %d content node(s)", len(tree))

        reports = self._select_reports()
        context = ReportContext(facts=facts, catalog=self.catalog)
        results = self._run_reports(reports, tree, context, log)

        flat: List[Message] = []
        type_names: Dict[str, List[str]] = {}
        for report, messages in results:
            names = type_names.setdefault(report.category, [])
            names.extend(name for name in report.type_names if name not in names)
            for message in messages:
                if message.type not in names:
                    names.append(message.type)
                node = tree.get(message.subject_path) if message.subject_path is not None else None
                if node is not None:
                    node.add_message(message)
                else:
                    flat.append(message)

        analysis = aggregate(
            tree,
            flat,
            type_names=type_names,
            include_tree=include_tree,
            raw=facts.raw if include_raw else None,
        )
        log.info("Analysis finished with %d message(s)", len(analysis.messages))
        return analysis

    def analyze_file(self, path: Path, **kwargs: Any) -> AnalysisReport:
        """Analyze a JSON facts bundle stored on disk."""
        return self.analyze(load_package_facts(Path(path)), **kwargs)

    def _select_reports(self) -> List[Report]:
        if self._report_overrides is not None:
            return list(self._report_overrides)
        enabled = self.config.reports.enabled or None
        return discover_reports(enabled)

    def _run_reports(
        self,
        reports: List[Report],
        tree: ContentTree,
        context: ReportContext,
        log: PackageLogAdapter,
    ) -> List[Tuple[Report, List[Message]]]:
        if self.config.reports.parallel and len(reports) > 1:
            with ThreadPoolExecutor(max_workers=len(reports)) as executor:
                outputs = list(
                    executor.map(
                        lambda report: self._run_report(report, tree, context, log), reports
                    )
                )
        else:
            outputs = [self._run_report(report, tree, context, log) for report in reports]
        return list(zip(reports, outputs))

    def _run_report(
        self, report: Report, tree: ContentTree, context: ReportContext, log: PackageLogAdapter
    ) -> List[Message]:
        name = report.name or report.__class__.__name__
        try:
            if not report.supports(tree, context):
                log.debug("Skipping report %s", name)
                return []
            messages = list(report.generate(tree, context))
        except Exception as exc:
            _log_exception(log, f"Report {name} failed", exc)
            return [
                Message(
                    category=report.category,
                    type="reportFailure",
                    summary=self.catalog("error:reportFailed", name, exc),
                    recommendation=self.catalog("error:reportFailedRecommendation"),
                    level="error",
                    details={"report": name, "error": exc.__class__.__name__},
                )
            ]
        log.debug("Report %s produced %d message(s)", name, len(messages))
        return messages



def resolve_config(path: Path) -> CaretakerConfig:
    """Load configuration, falling back to defaults when the file is invalid."""
    try:
        return load_config(path)
    except ConfigError as exc:
        get_logger("orchestrator").warning("Ignoring invalid configuration: %s", exc)
        root = path if path.is_dir() else path.parent
        return CaretakerConfig(root=root.expanduser().resolve())


def _log_exception(log: PackageLogAdapter, message: str, exc: Exception) -> None:
    if log.isEnabledFor(logging.DEBUG):
        log.exception("%s: %s", message, exc)
    else:
        log.error("%s: %s", message, exc)


def _coerce_facts(facts: FactsLike) -> PackageFacts:
    if isinstance(facts, PackageFacts):
        return facts
    return PackageFacts.from_dict(facts)


__all__ = ["Caretaker", "resolve_config"]
