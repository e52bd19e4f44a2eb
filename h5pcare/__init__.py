"""Quality reports for H5P content packages."""

from .errors import CaretakerError, InputError, MainLibraryError
from .orchestrator import Caretaker

__version__ = "0.4.0"

__all__ = [
    "Caretaker",
    "CaretakerError",
    "InputError",
    "MainLibraryError",
    "__version__",
]
