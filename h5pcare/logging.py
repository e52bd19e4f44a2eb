"""Logging utilities for h5pcare commands and analysis runs."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, MutableMapping, Tuple

_LOGGER_NAME = "h5pcare"
_CONSOLE_FORMAT = "[h5pcare] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(package)s]: %(message)s"


class PackageLogAdapter(logging.LoggerAdapter):
    """Prefix records with the versioned main library of the analyzed package.

    The id is also stored as the ``package`` record attribute so file sinks can
    group lines per package.
    """

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> Tuple[Any, MutableMapping[str, Any]]:
        package = self.extra["package"]
        kwargs["extra"] = {**(kwargs.get("extra") or {}), "package": package}
        return f"{package}: {msg}", kwargs


class _PackageDefault(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "package"):
            record.package = "-"
        return True


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the h5pcare hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def get_package_logger(name: str, package: str) -> PackageLogAdapter:
    """Return ``get_logger(name)`` tagged with ``package``, e.g. ``H5P.Column 1.16``."""
    return PackageLogAdapter(get_logger(name), {"package": package or "unknown package"})


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Send h5pcare records to stderr and, when given, to ``log_file``."""
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Repeated CLI invocations in one process must not stack handlers.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        sink = logging.FileHandler(log_file, encoding="utf-8")
        sink.setLevel(level)
        sink.addFilter(_PackageDefault())
        sink.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(sink)

    return logger


__all__ = ["PackageLogAdapter", "configure_logging", "get_logger", "get_package_logger"]
