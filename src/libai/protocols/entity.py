"""Protocol for records persisted by the repository."""

from typing import Any, ClassVar, Protocol, runtime_checkable


@runtime_checkable
class Entity(Protocol):
    """A dataclass record addressed by a unique string identifier.

    Uses structural subtyping - ``Document`` and ``Chunk`` satisfy it
    without inheriting from it.
    """

    __dataclass_fields__: ClassVar[dict[str, Any]]

    @property
    def id(self) -> str:
        """Return the primary key used for storage addressing."""
        ...
