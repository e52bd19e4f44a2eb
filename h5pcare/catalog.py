"""Message catalog backed by YAML string tables."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, Optional

import yaml

from .logging import get_logger

DEFAULT_LOCALE = "en"
_BUNDLED_DIR = Path(__file__).with_name("locale")


class MessageCatalog:
    """Looks up user-facing strings by identifier.

    The English table is always loaded; tables for the requested locale are
    layered on top, bundled ones first and then any from ``extra_dirs``.
    """

    def __init__(
        self,
        locale: str = DEFAULT_LOCALE,
        *,
        extra_dirs: Iterable[Path] = (),
        strings: Optional[Dict[str, str]] = None,
    ) -> None:
        self.locale = _short_locale(locale)
        self.logger = get_logger("catalog")
        self._strings: Dict[str, str] = {}
        directories = [_BUNDLED_DIR, *[Path(item) for item in extra_dirs]]

        for directory in directories:
            self._strings.update(_load_table(directory / f"{DEFAULT_LOCALE}.yml"))
        if self.locale != DEFAULT_LOCALE:
            for directory in directories:
                self._strings.update(_load_table(directory / f"{self.locale}.yml"))
        if strings:
            self._strings.update(strings)

    def __call__(self, identifier: str, *args: Any) -> str:
        return self.lookup(identifier, *args)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._strings

    def lookup(self, identifier: str, *args: Any) -> str:
        """Return the string for ``identifier`` with positional placeholders filled."""
        template = self._strings.get(identifier)
        if template is None:
            self.logger.debug("No catalog entry for %s (%s)", identifier, self.locale)
            return identifier
        if not args:
            return template
        try:
            return template.format(*args)
        except (IndexError, KeyError, ValueError):
            self.logger.debug("Placeholder mismatch for %s", identifier)
            return template

    def keywords(self) -> Dict[str, str]:
        """Translated category, type and level names for presentation layers."""
        prefix = "keywords:"
        return {
            key[len(prefix) :]: value
            for key, value in self._strings.items()
            if key.startswith(prefix)
        }


def _load_table(path: Path) -> Dict[str, str]:
    if not path.is_file():
        return {}
    loaded = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"String table {path} must contain a mapping")
    return _flatten(loaded)


def _flatten(table: Dict[str, Any], prefix: str = "") -> Dict[str, str]:
    strings: Dict[str, str] = {}
    for key, value in table.items():
        name = f"{prefix}:{key}" if prefix else str(key)
        if isinstance(value, dict):
            strings.update(_flatten(value, name))
        elif value is not None:
            strings[name] = str(value)
    return strings


def _short_locale(locale: str) -> str:
    return (locale or DEFAULT_LOCALE).replace("-", "_").split("_")[0].lower()


__all__ = ["DEFAULT_LOCALE", "MessageCatalog"]
