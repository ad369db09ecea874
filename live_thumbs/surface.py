"""Drawing surface over an OpenCV BGR frame."""

import re

import cv2
import numpy as np

from .errors import ValidationError

# Canvas-style face names -> Hershey fonts
FONT_FACES = {
    "sans-serif": cv2.FONT_HERSHEY_SIMPLEX,
    "simplex": cv2.FONT_HERSHEY_SIMPLEX,
    "duplex": cv2.FONT_HERSHEY_DUPLEX,
    "serif": cv2.FONT_HERSHEY_COMPLEX,
    "complex": cv2.FONT_HERSHEY_COMPLEX,
    "triplex": cv2.FONT_HERSHEY_TRIPLEX,
    "plain": cv2.FONT_HERSHEY_PLAIN,
    "monospace": cv2.FONT_HERSHEY_PLAIN,
    "script": cv2.FONT_HERSHEY_SCRIPT_SIMPLEX,
    "cursive": cv2.FONT_HERSHEY_SCRIPT_SIMPLEX,
}

# Colors (BGR)
NAMED_COLORS = {
    "black": (0, 0, 0),
    "white": (255, 255, 255),
    "red": (0, 0, 255),
    "green": (0, 255, 0),
    "blue": (255, 0, 0),
    "yellow": (0, 255, 255),
    "cyan": (255, 255, 0),
    "magenta": (255, 0, 255),
    "gray": (128, 128, 128),
    "grey": (128, 128, 128),
}

_FONT_RE = re.compile(r"^\s*(?P<flags>(?:(?:italic|bold)\s+)*)(?P<size>\d+(?:\.\d+)?)px\s+(?P<face>[\w-]+)\s*$")


def parse_color(value):
    """Convert '#rgb', '#rrggbb' or a color name to a BGR tuple."""
    if isinstance(value, (tuple, list)) and len(value) == 3:
        return tuple(int(c) for c in value)
    if not isinstance(value, str):
        raise ValidationError(f"invalid color: {value!r}")

    text = value.strip().lower()
    if text in NAMED_COLORS:
        return NAMED_COLORS[text]

    if re.fullmatch(r"#[0-9a-f]{3}", text):
        text = "#" + "".join(c * 2 for c in text[1:])
    if not re.fullmatch(r"#[0-9a-f]{6}", text):
        raise ValidationError(f"invalid color: {value!r}")

    r, g, b = (int(text[i:i + 2], 16) for i in (1, 3, 5))
    return (b, g, r)


class Font:
    """Hershey font resolved from a string such as 'bold 32px sans-serif'."""

    def __init__(self, face=cv2.FONT_HERSHEY_SIMPLEX, size_px=22.0, bold=False):
        self.face = face
        self.size_px = size_px
        self.bold = bold

    @classmethod
    def parse(cls, value):
        match = _FONT_RE.match(value or "")
        if not match:
            raise ValidationError(f"invalid font: {value!r}")

        face_name = match.group("face").lower()
        if face_name not in FONT_FACES:
            raise ValidationError(f"unknown font face: {face_name!r}")

        flags = match.group("flags").split()
        face = FONT_FACES[face_name]
        if "italic" in flags:
            face |= cv2.FONT_ITALIC
        return cls(face, float(match.group("size")), bold="bold" in flags)

    def scale(self, thickness):
        return cv2.getFontScaleFromHeight(self.face, max(1, int(round(self.size_px))), thickness)


class FrameSurface:
    """
    Mutable raster surface with canvas-like drawing state.

    Style attributes (font, colors, thickness) persist between draw calls
    until changed, the same way a 2D canvas context behaves.
    """

    def __init__(self, frame):
        if frame is None or frame.ndim != 3 or frame.shape[2] != 3:
            raise ValidationError("surface frame must be a BGR image (height x width x 3)")
        self.frame = frame
        self.font = Font()
        self.stroke_color = NAMED_COLORS["black"]
        self.fill_color = NAMED_COLORS["black"]
        self.thickness = 2

    @property
    def width(self):
        return self.frame.shape[1]

    @property
    def height(self):
        return self.frame.shape[0]

    def apply_style(self, style):
        """Copy the attributes a TextStyle sets onto the drawing state."""
        if style.font:
            self.font = Font.parse(style.font)
        if style.stroke_color:
            self.stroke_color = parse_color(style.stroke_color)
        if style.fill_color:
            self.fill_color = parse_color(style.fill_color)
        if style.thickness:
            self.thickness = int(style.thickness)

    def _text_thickness(self):
        return self.thickness + 1 if self.font.bold else self.thickness

    def measure_text(self, text, thickness=None):
        """Return (width, height, baseline) in pixels for the current font."""
        if thickness is None:
            thickness = self._text_thickness()
        (text_width, text_height), baseline = cv2.getTextSize(
            text, self.font.face, self.font.scale(thickness), thickness
        )
        return text_width, text_height, baseline

    def _draw_text(self, text, x, y, color, thickness):
        _, text_height, _ = self.measure_text(text, thickness)
        # putText anchors at the baseline; shift down so (x, y) is the top-left corner
        origin = (int(round(x)), int(round(y)) + text_height)
        cv2.putText(self.frame, text, origin, self.font.face, self.font.scale(thickness),
                    color, thickness, cv2.LINE_AA)

    def fill_text(self, text, x, y):
        self._draw_text(text, x, y, self.fill_color, self._text_thickness())

    def stroke_text(self, text, x, y):
        self._draw_text(text, x, y, self.stroke_color, max(1, self._text_thickness() // 2))

    def draw_image(self, image, x, y, width, height):
        """
        Draw an image scaled to (width, height) with its top-left at (x, y).

        Images with an alpha channel (BGRA) are alpha blended. Anything that
        falls outside the surface is clipped.
        """
        x, y = int(round(x)), int(round(y))
        width, height = int(round(width)), int(round(height))
        if width <= 0 or height <= 0:
            return

        if image.ndim == 2:
            image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)

        if image.shape[0] != height or image.shape[1] != width:
            image = cv2.resize(image, (width, height), interpolation=cv2.INTER_AREA)

        # Clip the destination rectangle to the surface
        x0, y0 = max(x, 0), max(y, 0)
        x1, y1 = min(x + width, self.width), min(y + height, self.height)
        if x0 >= x1 or y0 >= y1:
            return

        patch = image[y0 - y:y1 - y, x0 - x:x1 - x]
        region = self.frame[y0:y1, x0:x1]

        if patch.shape[2] == 4:
            # output = (1 - alpha) * frame + alpha * overlay
            alpha = patch[:, :, 3].astype(np.float32) / 255.0
            alpha_3ch = np.dstack([alpha, alpha, alpha])
            blended = (1 - alpha_3ch) * region + alpha_3ch * patch[:, :, :3]
            region[:] = blended.astype(np.uint8)
        else:
            region[:] = patch[:, :, :3]
