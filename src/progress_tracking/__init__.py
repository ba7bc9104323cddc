"""
Frame-based progress tracking.

Track any kind of task across the cycles of an update loop: asset loading,
world generation, or in-game objectives.
"""

from .core.ledger import LedgerSnapshot, ProgressLedger, Task, TaskProgress
from .core.registry import (
    DEFAULT_TAG, ProgressRegistry, ProgressTracker,
    ProgressTrackingError, UnknownTagError
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ProgressLedger", "TaskProgress", "Task", "LedgerSnapshot",
    "ProgressRegistry", "ProgressTracker", "DEFAULT_TAG",
    "ProgressTrackingError", "UnknownTagError"
]
