"""
Overlay system for thumbnails.

Composites an ordered list of overlays onto a frame surface, bottom to top.
"""

from datetime import datetime

from ..errors import UnsupportedContentError
from .base import OverlayContent, OverlaySpec, Rect, UnknownContent
from .image import FitMode, ImageContent, draw_image, fitted_size
from .text import DynamicScript, TextContent, TextRun, TextStyle, draw_text, resolve_text


class OverlayCompositor:
    """Draws overlay specs onto a surface in list order. Holds no per-call state."""

    def __init__(self, fetch_image, clock=datetime.now):
        self.fetch_image = fetch_image
        self.clock = clock

    async def apply(self, surface, overlays, metadata):
        """
        Render every overlay onto the surface, mutating it in place.

        The first failure aborts the rest of the list; whatever was drawn
        before it stays on the surface.
        """
        for overlay in overlays or ():
            rect = overlay.rect(surface)
            content = overlay.content

            if isinstance(content, ImageContent):
                await draw_image(surface, content, rect, self.fetch_image)
            elif isinstance(content, TextContent):
                draw_text(surface, content, rect, metadata, self.clock)
            else:
                content_type = getattr(content, "type", None) or type(content).__name__
                raise UnsupportedContentError(f"Unsupported content type: {content_type}")


async def apply_overlays(surface, overlays, metadata, fetch_image):
    """Shortcut for OverlayCompositor(fetch_image).apply(...)."""
    await OverlayCompositor(fetch_image).apply(surface, overlays, metadata)


__all__ = [
    "DynamicScript",
    "FitMode",
    "ImageContent",
    "OverlayCompositor",
    "OverlayContent",
    "OverlaySpec",
    "Rect",
    "TextContent",
    "TextRun",
    "TextStyle",
    "UnknownContent",
    "apply_overlays",
    "fitted_size",
    "resolve_text",
]
