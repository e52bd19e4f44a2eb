"""Tests for h5pcare logging helpers."""

from __future__ import annotations

import logging
from pathlib import Path

from h5pcare.logging import configure_logging, get_logger, get_package_logger
from h5pcare.orchestrator import Caretaker
from h5pcare.reports import StatisticsReport
from tests._fixtures.package_builder import PackageBuilder


def test_get_logger_nests_under_h5pcare() -> None:
    assert get_logger().name == "h5pcare"
    assert get_logger("tree").name == "h5pcare.tree"


def test_package_logger_tags_records(caplog) -> None:
    log = get_package_logger("orchestrator", "H5P.Column 1.16")

    with caplog.at_level(logging.INFO, logger="h5pcare.orchestrator"):
        log.info("Analyzing %d content node(s)", 3)

    record = caplog.records[-1]
    assert record.getMessage() == "H5P.Column 1.16: Analyzing 3 content node(s)"
    assert record.package == "H5P.Column 1.16"


def test_analysis_logs_name_the_package(caplog) -> None:
    caretaker = Caretaker(reports=[StatisticsReport()])

    with caplog.at_level(logging.INFO, logger="h5pcare.orchestrator"):
        caretaker.analyze(PackageBuilder().facts())

    assert "H5P.InteractiveBook 1.10: Analyzing 1 content node(s)" in caplog.text
    assert "H5P.InteractiveBook 1.10: Analysis finished with 1 message(s)" in caplog.text


def test_configure_logging_writes_package_to_log_file(tmp_path: Path) -> None:
    log_file = tmp_path / "h5pcare.log"
    logger = configure_logging(verbose=True, log_file=log_file)

    get_package_logger("reports", "H5P.Blanks 1.14").debug("Loaded report plugin %s", "dummy")
    get_logger("tree").info("No library facts")
    for handler in logger.handlers:
        handler.flush()

    lines = log_file.read_text(encoding="utf-8").splitlines()
    assert lines[0].endswith(
        "DEBUG h5pcare.reports [H5P.Blanks 1.14]: H5P.Blanks 1.14: Loaded report plugin dummy"
    )
    assert lines[1].endswith("INFO h5pcare.tree [-]: No library facts")
    assert logger.propagate is False
    assert len(logger.handlers) == 2
