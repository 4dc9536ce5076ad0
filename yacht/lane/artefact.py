"""Artefacts: anything a suite or test leaves behind while it runs.

A keyspace created on a running server, a running process, a data directory,
a leased address. Some artefacts must be removed when the harness exits,
others are cleared before the next suite starts. Data directories and log
files are removed when the next suite starts, not when the current one ends,
so they can be inspected after a crash or a failure.
"""

from abc import ABC, abstractmethod
from typing import Callable, Sequence, Tuple


class Artefact(ABC):
    """A scoped external resource with a release operation.

    ``depends_on`` names the artefacts that must still be in place while this
    one is removed, e.g. dropping a keyspace needs the server process alive.
    """

    depends_on: Tuple["Artefact", ...] = ()

    @abstractmethod
    def remove(self) -> None:
        """Release the resource."""

    def depends_on_artefact(self, other: "Artefact") -> bool:
        """Check whether other must outlive this artefact."""
        return any(dependency is other for dependency in self.depends_on)

    def __str__(self) -> str:
        return type(self).__name__


class CallbackArtefact(Artefact):
    """Artefact released by calling a function."""

    def __init__(
        self,
        description: str,
        callback: Callable[[], None],
        depends_on: Sequence[Artefact] = (),
    ) -> None:
        self.description = description
        self._callback = callback
        self.depends_on = tuple(depends_on)

    def remove(self) -> None:
        self._callback()

    def __str__(self) -> str:
        return self.description
