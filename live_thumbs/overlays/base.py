"""Overlay geometry and the base class for overlay content."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Rect:
    """Pixel rectangle on the target surface."""

    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_fractions(cls, overlay, surface_width, surface_height):
        """Scale an overlay's fractional geometry to surface pixels. Values are not clamped."""
        return cls(
            x=overlay.x * surface_width,
            y=overlay.y * surface_height,
            width=overlay.width * surface_width,
            height=overlay.height * surface_height,
        )


class OverlayContent:
    """Marker base class for everything an overlay can draw."""

    type = None


@dataclass(frozen=True)
class UnknownContent(OverlayContent):
    """Content of a type this version does not know how to draw."""

    type: str
    data: dict | None = None


@dataclass(frozen=True)
class OverlaySpec:
    """
    One overlay layer.

    Geometry is given as fractions of the surface size (0..1). List order
    of overlays is z-order: index 0 is drawn first, at the bottom.
    """

    x: float
    y: float
    width: float
    height: float
    content: OverlayContent

    def rect(self, surface):
        return Rect.from_fractions(self, surface.width, surface.height)
