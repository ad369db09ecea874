"""Configuration constants and overlay config file loading."""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .errors import ValidationError
from .overlays import (
    DynamicScript,
    FitMode,
    ImageContent,
    OverlaySpec,
    TextContent,
    TextRun,
    TextStyle,
    UnknownContent,
)

# Configuration
MIN_INTERVAL = 5  # seconds
DEFAULT_INTERVAL = 60
DEFAULT_JPEG_QUALITY = 90
HTTP_TIMEOUT = 30.0
MAX_BACKOFF = 15 * 60  # seconds, cap for the retry failure policy
CREDENTIALS_PATH = Path(
    os.environ.get(
        "LIVE_THUMBS_CREDENTIALS",
        Path.home() / ".config" / "live-thumbs" / "credentials.json",
    )
)


@dataclass
class ThumbnailConfig:
    interval: float = DEFAULT_INTERVAL
    overlays: list = field(default_factory=list)
    base_dir: Path | None = None  # relative image paths resolve against this


def validate_interval(interval):
    if not isinstance(interval, (int, float)) or isinstance(interval, bool):
        raise ValidationError(f"Interval must be a number, got {interval!r}")
    if interval < MIN_INTERVAL:
        raise ValidationError(f"Delay must be greater than or equal to {MIN_INTERVAL} seconds")
    return interval


def _number(data, key, index):
    value = data.get(key)
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise ValidationError(f"overlay {index}: '{key}' must be a number")
    return float(value)


def _parse_text_value(value, index):
    if isinstance(value, str):
        return TextRun(value)
    if isinstance(value, dict):
        kind = value.get("type", "run")
        if kind == "run" and isinstance(value.get("value"), str):
            return TextRun(value["value"])
        if kind == "script" and isinstance(value.get("body"), str):
            return DynamicScript(value["body"])
    raise ValidationError(f"overlay {index}: text value must be a string, a run or a script")


def _parse_content(data, index):
    if not isinstance(data, dict) or "type" not in data:
        raise ValidationError(f"overlay {index}: 'content' must be a mapping with a 'type'")

    kind = data["type"]
    if kind == "text":
        style = data.get("style") or {}
        if not isinstance(style, dict):
            raise ValidationError(f"overlay {index}: 'style' must be a mapping")
        unknown = set(style) - {"font", "stroke_color", "fill_color", "stroke", "thickness"}
        if unknown:
            raise ValidationError(f"overlay {index}: unknown style keys {sorted(unknown)}")
        return TextContent(_parse_text_value(data.get("value"), index), TextStyle(**style))

    if kind == "image":
        if not isinstance(data.get("url"), str):
            raise ValidationError(f"overlay {index}: image overlays need a 'url'")
        try:
            fit = FitMode(data.get("fit", FitMode.STRETCH))
        except ValueError:
            raise ValidationError(f"overlay {index}: fit must be 'contain' or 'stretch'") from None
        return ImageContent(data["url"], fit)

    # Rejected by the compositor when drawn, not here
    return UnknownContent(str(kind), dict(data))


def parse_overlays(items):
    """Build OverlaySpec objects from plain config data (a list of mappings)."""
    if items is None:
        return []
    if not isinstance(items, list):
        raise ValidationError("'overlays' must be a list")

    overlays = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"overlay {index}: must be a mapping")
        overlays.append(OverlaySpec(
            x=_number(item, "x", index),
            y=_number(item, "y", index),
            width=_number(item, "width", index),
            height=_number(item, "height", index),
            content=_parse_content(item.get("content"), index),
        ))
    return overlays


def load_config(path):
    """Load a JSON or YAML overlay configuration file."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ValidationError(f"Could not read config {path}: {e}") from e

    try:
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ValidationError(f"Could not parse config {path}: {e}") from e

    # A bare list is accepted as the overlay list
    if isinstance(data, list):
        data = {"overlays": data}
    if not isinstance(data, dict):
        raise ValidationError(f"Config {path} must be a mapping")

    return ThumbnailConfig(
        interval=validate_interval(data.get("interval", DEFAULT_INTERVAL)),
        overlays=parse_overlays(data.get("overlays")),
        base_dir=path.parent,
    )
