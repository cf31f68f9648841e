"""
Base storage abstraction for pinfeed.

Defines the interface of the URL-keyed metadata cache. The pipeline takes
a store object rather than reaching for a module-level cache, so tests can
hand it an in-memory fake.
"""

from abc import ABC, abstractmethod
from typing import Iterator, Optional, Tuple

from pinfeed.models.metadata import MetadataEntry


class MetadataStore(ABC):
    """
    Abstract base class for metadata cache backends.

    Implementations key entries by canonical URL. They assume a single
    process making a single pass: no locking is done, and writes are
    buffered until flush().
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """
        Return the name of this storage backend.

        Used for logging and debugging.
        """
        pass

    @abstractmethod
    def get(self, url: str) -> Optional[MetadataEntry]:
        """
        Return the cached entry for a URL, or None.

        Must never raise for a missing or unreadable backing file.
        """
        pass

    @abstractmethod
    def set(self, url: str, entry: MetadataEntry) -> None:
        """Insert or overwrite the entry for a URL."""
        pass

    @abstractmethod
    def flush(self) -> bool:
        """
        Persist pending changes.

        Returns:
            True if anything was written.
        """
        pass

    def items(self) -> Iterator[Tuple[str, MetadataEntry]]:
        """Iterate over (url, entry) pairs. Default: nothing."""
        return iter(())

    def __len__(self) -> int:
        return sum(1 for _ in self.items())

    def __str__(self) -> str:
        return f"MetadataStore({self.name})"

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
