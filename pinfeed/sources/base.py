"""
Base source abstraction for pinfeed.

A source is one markdown file of pins, plus the credentials needed to
refresh it from its external service.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Tuple, Union

from pinfeed.config import get_credential
from pinfeed.models.pin import RawPin
from pinfeed.parsing.markdown import parse_file


class MissingCredentialError(Exception):
    """A source was asked to refresh without its required credentials."""

    def __init__(self, source_name: str, missing: List[str]):
        self.source_name = source_name
        self.missing = list(missing)
        super().__init__(
            f"{source_name}: missing credential(s) {', '.join(self.missing)}; "
            f"set them in the environment or .env to refresh this source"
        )


class PinSource(ABC):
    """
    Abstract base class for all pin sources.

    Each source (Spotify, Vimeo, YouTube, Pinterest, hand-written files)
    must implement this interface to be used in the pipeline.

    Attributes:
        name: Unique identifier for this source (e.g., "spotify", "vimeo").
        filename: Markdown file holding the source's pins.
        credential_keys: Environment variables needed to refresh the source.
    """

    credential_keys: Tuple[str, ...] = ()

    @property
    @abstractmethod
    def name(self) -> str:
        """
        Return the unique name identifier for this source.

        Should be lowercase, no spaces (e.g., "spotify", "pinterest").
        """
        pass

    @property
    def filename(self) -> str:
        return f"{self.name}.md"

    @property
    def default_source(self) -> str:
        """Value for Pin.source when neither a tag nor the URL names one."""
        return self.name

    def path(self, pins_dir: Union[str, Path]) -> Path:
        return Path(pins_dir) / self.filename

    def exists(self, pins_dir: Union[str, Path]) -> bool:
        return self.path(pins_dir).is_file()

    def missing_credentials(self) -> List[str]:
        """Names of required credentials that are not set."""
        return [key for key in self.credential_keys if not get_credential(key)]

    def has_credentials(self) -> bool:
        return not self.missing_credentials()

    def require_credentials(self) -> None:
        """
        Raise if any required credential is missing.

        Raises:
            MissingCredentialError: Naming every missing variable.
        """
        missing = self.missing_credentials()
        if missing:
            raise MissingCredentialError(self.name, missing)

    def read_pins(self, pins_dir: Union[str, Path]) -> List[RawPin]:
        """
        Parse this source's markdown file.

        Returns:
            Raw pins in file order; empty if the file does not exist.

        Raises:
            OSError: If the file exists but cannot be read.
        """
        path = self.path(pins_dir)
        if not path.is_file():
            return []
        return list(parse_file(path))

    def __str__(self) -> str:
        return f"PinSource({self.name})"

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
