"""Text overlay: a static run or a dynamic expression over stream metadata."""

from dataclasses import dataclass, field
from datetime import datetime

from ..errors import TypeMismatchError
from ..expressions import evaluate
from .base import OverlayContent


@dataclass(frozen=True)
class TextRun:
    """Text used verbatim."""

    value: str


@dataclass(frozen=True)
class DynamicScript:
    """Expression evaluated against the stream metadata on every cycle."""

    body: str


@dataclass(frozen=True)
class TextStyle:
    font: str | None = None
    stroke_color: str | None = None
    fill_color: str | None = None
    stroke: bool = False
    thickness: int | None = None


@dataclass(frozen=True)
class TextContent(OverlayContent):
    value: TextRun | DynamicScript
    style: TextStyle = field(default_factory=TextStyle)
    type = "text"


def resolve_text(value, metadata, clock=datetime.now):
    """Compute the string a text overlay draws."""
    if isinstance(value, DynamicScript):
        result = evaluate(value.body, metadata, clock)
    else:
        result = value.value

    if not isinstance(result, str):
        raise TypeMismatchError(
            f"Overlay text value is not a string (got {type(result).__name__})"
        )
    return result


def draw_text(surface, content, rect, metadata, clock=datetime.now):
    """
    Draw a single line of text with its top-left corner at the rect origin.

    The style is applied to the surface before the value is computed, so a
    failing expression still leaves the style in place. No wrapping, no
    centering, the rect size is ignored.
    """
    surface.apply_style(content.style)
    text = resolve_text(content.value, metadata, clock)

    if content.style.stroke:
        surface.stroke_text(text, rect.x, rect.y)
    else:
        surface.fill_text(text, rect.x, rect.y)
