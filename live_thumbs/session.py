"""Metadata snapshot of the currently loaded stream."""

from dataclasses import dataclass
from types import MappingProxyType

# Fields dynamic overlay text may reference.
METADATA_FIELDS = ("id", "title", "is_live_content", "manifest_url")


@dataclass(frozen=True)
class VideoSession:
    """
    Immutable snapshot of a stream's metadata.

    Replaced wholesale on every load, never mutated in place.
    """

    id: str
    title: str
    is_live_content: bool
    manifest_url: str | None = None

    @property
    def metadata(self):
        """Read-only view of the whitelisted fields."""
        return MappingProxyType({name: getattr(self, name) for name in METADATA_FIELDS})
