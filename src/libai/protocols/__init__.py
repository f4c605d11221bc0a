"""Protocol definitions for storable records."""

from libai.protocols.entity import Entity

__all__ = ["Entity"]
