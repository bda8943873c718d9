"""Top-level package exports.

Public API surface (keep minimal):
 - TimepointController (entry point for UIs and the CLI)
 - TimepointStore, Timepoint (timepoint model)
 - Settings (application directory and tool configuration)
"""

from .config import Settings  # noqa: F401
from .controller import TimepointController  # noqa: F401
from .core.timepoints import Timepoint, TimepointStore  # noqa: F401

__version__ = "0.1.0"

__all__ = ["Settings", "Timepoint", "TimepointController", "TimepointStore"]
