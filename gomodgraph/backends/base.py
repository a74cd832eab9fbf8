from abc import ABC, abstractmethod
from typing import Callable

# project name, latest version, go.mod content
StoreModFileFn = Callable[[str, str, bytes], None]


class ModFileBackend(ABC):
    """Base class inherited by all hosting platform backends."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Friendly platform name (e.g., GitLab)."""
        pass

    @abstractmethod
    def provide_mod_files(self, store_mod_file: StoreModFileFn) -> None:
        """Calls `store_mod_file` once for every project containing a go.mod."""
        pass
