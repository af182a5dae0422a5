"""The user's reference list: deduplicated, shown in sorted order."""

import logging

logger = logging.getLogger(__name__)


class ReferenceSet:
    """Saved citation texts keyed by exact string equality."""

    def __init__(self) -> None:
        self._texts: set[str] = set()

    def __len__(self) -> int:
        return len(self._texts)

    def __contains__(self, text: object) -> bool:
        return text in self._texts

    def save(self, text: str) -> bool:
        """Add text unless empty or already saved. Returns True if added."""
        if not text or text in self._texts:
            return False
        self._texts.add(text)
        logger.info("Saved reference (%d total)", len(self._texts))
        return True

    def clear(self) -> None:
        """Drop every saved reference."""
        self._texts.clear()
        logger.info("Cleared references")

    def list(self) -> list[str]:
        """Saved texts in ascending lexicographic order."""
        return sorted(self._texts)
