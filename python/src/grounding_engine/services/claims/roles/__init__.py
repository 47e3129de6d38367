"""Built-in role metadata implementations."""

from .dev import DevMetadata
from .pm import PMMetadata

__all__ = ["DevMetadata", "PMMetadata"]
