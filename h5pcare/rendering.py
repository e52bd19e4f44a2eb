"""Markdown rendering of analysis reports."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

from jinja2 import Environment, FileSystemLoader

from .aggregator import AnalysisReport
from .catalog import MessageCatalog

LEVEL_MARKERS = {
    "info": "ℹ️",
    "caution": "⚠️",
    "warning": "❗",
    "error": "⛔",
}


class MarkdownRenderer:
    """Renders a report grouped by category using Jinja2 templates."""

    def __init__(self, templates_dir: Path | None = None) -> None:
        self._env = self._create_env(templates_dir)

    def render(self, report: AnalysisReport, catalog: MessageCatalog | None = None) -> str:
        catalog = catalog or MessageCatalog()
        keywords = catalog.keywords()
        sections: List[Dict[str, Any]] = []
        for category, messages in report.by_category.items():
            sections.append(
                {
                    "name": category,
                    "title": keywords.get(category, category).capitalize(),
                    "messages": [
                        {
                            **message.to_dict(),
                            "marker": LEVEL_MARKERS.get(message.level, ""),
                            "type_label": keywords.get(message.type, message.type),
                        }
                        for message in messages
                    ],
                }
            )
        template = self._env.get_template("report.md.j2")
        return (
            template.render(
                sections=sections,
                tree=report.tree,
                total=len(report.messages),
            ).strip()
            + "\n"
        )

    @staticmethod
    def _create_env(templates_dir: Path | None) -> Environment:
        directories = []
        if templates_dir:
            directories.append(str(templates_dir))
        directories.append(str(Path(__file__).with_name("templates")))
        env = Environment(
            loader=FileSystemLoader(directories),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        env.filters["tojson_compact"] = lambda value: json.dumps(value, ensure_ascii=False)
        return env


def render_json(report: AnalysisReport) -> str:
    return json.dumps(report.to_dict(), indent=2, ensure_ascii=False) + "\n"


__all__ = ["MarkdownRenderer", "render_json"]
