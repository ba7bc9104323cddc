"""Registry of progress ledgers keyed by tracking domain."""

import logging
from typing import Dict, Iterator, List

from .ledger import ProgressLedger

logger = logging.getLogger(__name__)

DEFAULT_TAG = "default"


class ProgressTrackingError(Exception):
    """Base exception for progress tracking operations."""
    pass


class UnknownTagError(ProgressTrackingError, KeyError):
    """Raised when no ledger is registered for a tag."""

    def __init__(self, tag: str):
        self.tag = tag
        super().__init__(f"No progress ledger registered for tag '{tag}'")

    def __str__(self) -> str:
        return self.args[0]


class ProgressRegistry:
    """Owns one ledger per tracking domain.

    The update loop owns the registry and hands ledgers to whichever
    subsystems report progress for that domain.
    """

    def __init__(self):
        self._ledgers: Dict[str, ProgressLedger] = {}

    def init_ledger(self, tag: str = DEFAULT_TAG) -> ProgressLedger:
        """Return the ledger for a tag, creating an empty one if needed.

        Args:
            tag: Tracking domain name

        Returns:
            The ledger registered for the tag
        """
        ledger = self._ledgers.get(tag)
        if ledger is None:
            ledger = ProgressLedger()
            self._ledgers[tag] = ledger
            logger.info(f"Registered progress ledger '{tag}'")
        return ledger

    def get(self, tag: str = DEFAULT_TAG) -> ProgressLedger:
        """Get the ledger for a tag.

        Raises:
            UnknownTagError: If no ledger is registered for the tag
        """
        try:
            return self._ledgers[tag]
        except KeyError:
            raise UnknownTagError(tag) from None

    def tags(self) -> List[str]:
        return list(self._ledgers)

    def finish_cycle(self) -> None:
        """Finish the current cycle on every ledger."""
        for ledger in self._ledgers.values():
            ledger.finish_cycle()

    def clear(self) -> None:
        for ledger in self._ledgers.values():
            ledger.clear()

    def __contains__(self, tag: object) -> bool:
        return tag in self._ledgers

    def __len__(self) -> int:
        return len(self._ledgers)

    def __iter__(self) -> Iterator[str]:
        return iter(self._ledgers)


class ProgressTracker:
    """Plugin that installs a progress ledger on a registry."""

    def __init__(self, tag: str = DEFAULT_TAG):
        self.tag = tag

    def build(self, registry: ProgressRegistry) -> ProgressLedger:
        return registry.init_ledger(self.tag)
