"""Image overlay with contain / stretch fitting."""

from dataclasses import dataclass
from enum import Enum

from .base import OverlayContent


class FitMode(str, Enum):
    CONTAIN = "contain"
    STRETCH = "stretch"


@dataclass(frozen=True)
class ImageContent(OverlayContent):
    url: str
    fit: FitMode = FitMode.STRETCH
    type = "image"


def fitted_size(image_width, image_height, rect, fit):
    """
    Size the image is drawn at inside rect.

    contain keeps the aspect ratio, scaled by min(box_w / img_w, box_h / img_h).
    Anything else stretches to fill the box exactly.
    """
    if fit == FitMode.CONTAIN:
        scale = min(rect.width / image_width, rect.height / image_height)
        return image_width * scale, image_height * scale
    return rect.width, rect.height


async def draw_image(surface, content, rect, fetch_image):
    """Fetch the referenced image and draw it anchored at the rect's top-left."""
    # fetch errors propagate to the caller
    image = await fetch_image(content.url)

    image_height, image_width = image.shape[:2]
    width, height = fitted_size(image_width, image_height, rect, content.fit)
    surface.draw_image(image, rect.x, rect.y, width, height)
