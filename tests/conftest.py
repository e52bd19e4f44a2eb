from __future__ import annotations

import logging

import pytest

from h5pcare.catalog import MessageCatalog
from h5pcare.reports import ReportContext
from tests._fixtures.package_builder import PackageBuilder


@pytest.fixture(autouse=True)
def reset_h5pcare_logger():
    """Undo CLI logging configuration so caplog keeps seeing records."""
    yield
    logger = logging.getLogger("h5pcare")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def package_builder() -> PackageBuilder:
    """Provide a package builder for an interactive book with an open license."""
    return PackageBuilder()


@pytest.fixture
def catalog() -> MessageCatalog:
    return MessageCatalog("en")


@pytest.fixture
def make_context(catalog: MessageCatalog):
    """Build a report context from a package builder."""

    def _make(builder: PackageBuilder) -> ReportContext:
        return ReportContext(facts=builder.facts(), catalog=catalog)

    return _make
