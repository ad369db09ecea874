"""
DASH manifest parsing and latest-segment resolution.

Only the subset needed to find the newest video segment is modelled:

    AdaptationSet[mimeType]
        Representation[width]
            BaseURL          (text = URL prefix)
            SegmentList
                SegmentURL[media]   (last child = most recent segment)
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field

from .errors import ManifestError


@dataclass
class Segment:
    media: str | None


@dataclass
class Representation:
    width: int = -1
    base_url: str | None = None
    segments: list[Segment] = field(default_factory=list)


@dataclass
class AdaptationSet:
    mime_type: str = ""
    content_type: str = ""
    representations: list[Representation] = field(default_factory=list)

    @property
    def is_video(self):
        return self.mime_type.startswith("video/") or self.content_type == "video"


@dataclass
class Manifest:
    adaptation_sets: list[AdaptationSet] = field(default_factory=list)


def _local_name(tag):
    """Strip the XML namespace, '{urn:...}Representation' -> 'Representation'."""
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""


def _descendants(element, name):
    return [node for node in element.iter() if node is not element and _local_name(node.tag) == name]


def _parse_width(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return -1


def _parse_representation(element):
    representation = Representation(width=_parse_width(element.get("width")))

    base_urls = _descendants(element, "BaseURL")
    if base_urls:
        representation.base_url = base_urls[0].text or ""

    segment_lists = _descendants(element, "SegmentList")
    if segment_lists:
        # Every child element counts, whatever its tag; document order is chronological.
        representation.segments = [
            Segment(media=child.get("media"))
            for child in segment_lists[0]
            if isinstance(child.tag, str)
        ]

    return representation


def parse_manifest(text: str) -> Manifest:
    """Parse manifest markup into the Manifest data model."""
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise ManifestError("malformed manifest") from e

    manifest = Manifest()
    for set_element in _descendants(root, "AdaptationSet"):
        adaptation_set = AdaptationSet(
            mime_type=set_element.get("mimeType", ""),
            content_type=set_element.get("contentType", ""),
        )
        adaptation_set.representations = [
            _parse_representation(rep) for rep in _descendants(set_element, "Representation")
        ]
        manifest.adaptation_sets.append(adaptation_set)

    return manifest


def select_representation(representations):
    """
    Pick the widest representation.

    Missing or unparseable widths are -1. On equal widths the first one in
    document order wins.
    """
    best = None
    for representation in representations:
        if best is None or representation.width > best.width:
            best = representation
    return best


def latest_segment_url(manifest: Manifest) -> str:
    """Resolve the URL of the most recent segment of the widest video representation."""
    video_set = next((s for s in manifest.adaptation_sets if s.is_video), None)
    if video_set is None:
        raise ManifestError("no video adaptation set")

    if not video_set.representations:
        raise ManifestError("no representations")

    best = select_representation(video_set.representations)

    if best.base_url is None:
        raise ManifestError("no base URL")

    if not best.segments or best.segments[-1].media is None:
        raise ManifestError("no segment")

    # Raw concatenation, no URL normalisation
    return best.base_url + best.segments[-1].media


def resolve_latest_segment_url(manifest_text: str) -> str:
    """Parse manifest text and return the latest video segment URL. Pure, no I/O."""
    return latest_segment_url(parse_manifest(manifest_text))
