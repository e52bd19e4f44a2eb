"""Exceptions raised by h5pcare components."""

from __future__ import annotations


class CaretakerError(RuntimeError):
    """Base class for errors that abort an analysis run."""


class MainLibraryError(CaretakerError):
    """Raised when the manifest does not resolve to a versioned main library."""


class InputError(CaretakerError):
    """Raised when package facts cannot be read or are malformed."""


__all__ = ["CaretakerError", "InputError", "MainLibraryError"]
