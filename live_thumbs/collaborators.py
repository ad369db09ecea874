"""
Injected collaborators of the thumbnail pipeline.

The pipeline only talks to the outside world through these interfaces.
Default OpenCV / httpx implementations are provided for the CLI.
"""

import asyncio
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

import cv2
import httpx
import numpy as np

from .config import DEFAULT_JPEG_QUALITY, HTTP_TIMEOUT
from .errors import DecodeError, EncodeError, NetworkError
from .session import VideoSession

logger = logging.getLogger(__name__)


@dataclass
class ManifestResponse:
    ok: bool
    status: int
    text: str = ""


@dataclass
class PublishResult:
    success: bool
    message: str = ""


@runtime_checkable
class FrameExtractor(Protocol):
    async def __call__(self, segment_url: str) -> np.ndarray: ...


@runtime_checkable
class ImageFetcher(Protocol):
    async def __call__(self, url: str) -> np.ndarray: ...


@runtime_checkable
class FrameEncoder(Protocol):
    def __call__(self, surface) -> bytes: ...


@runtime_checkable
class Publisher(Protocol):
    async def __call__(self, stream_id: str, data: bytes) -> PublishResult: ...


@runtime_checkable
class PlatformClient(Protocol):
    async def get_stream_info(self, stream_id: str) -> VideoSession: ...

    async def fetch_manifest(self, url: str) -> ManifestResponse: ...

    async def set_thumbnail(self, stream_id: str, data: bytes) -> PublishResult: ...


async def _download(http, url):
    try:
        response = await http.get(url, follow_redirects=True)
    except httpx.HTTPError as e:
        raise NetworkError(f"Request to {url} failed: {e}") from e
    if not response.is_success:
        raise NetworkError(f"Request to {url} returned HTTP {response.status_code}")
    return response.content


def _read_first_frame(path):
    """Decode the first frame of a media file."""
    capture = cv2.VideoCapture(path)
    try:
        ok, frame = capture.read()
    finally:
        capture.release()
    if not ok or frame is None:
        raise DecodeError(f"Could not decode a frame from {path}")
    return frame


class SegmentFrameExtractor:
    """Downloads a media segment and decodes its first frame as a BGR array."""

    def __init__(self, http=None, suffix=".mp4"):
        self.http = http or httpx.AsyncClient(timeout=HTTP_TIMEOUT)
        self.suffix = suffix

    async def __call__(self, segment_url):
        data = await _download(self.http, segment_url)

        # VideoCapture needs a path, segments are small so a temp file is fine
        fd, path = tempfile.mkstemp(suffix=self.suffix)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            frame = await asyncio.to_thread(_read_first_frame, path)
        finally:
            os.unlink(path)

        logger.debug("Extracted %dx%d frame from %s", frame.shape[1], frame.shape[0], segment_url)
        return frame


class HttpImageFetcher:
    """
    Loads overlay images from http(s) URLs or local paths.

    Decoded with IMREAD_UNCHANGED so PNG alpha channels survive.
    """

    def __init__(self, http=None, base_dir=None):
        self.http = http or httpx.AsyncClient(timeout=HTTP_TIMEOUT)
        self.base_dir = Path(base_dir) if base_dir else None

    async def __call__(self, url):
        if url.startswith(("http://", "https://")):
            data = await _download(self.http, url)
        else:
            path = Path(url)
            if self.base_dir and not path.is_absolute():
                path = self.base_dir / path
            try:
                data = await asyncio.to_thread(path.read_bytes)
            except OSError as e:
                raise NetworkError(f"Could not read overlay image {path}: {e}") from e

        image = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
        if image is None:
            raise DecodeError(f"Could not decode overlay image: {url}")
        return image


def encode_jpeg(surface, quality=DEFAULT_JPEG_QUALITY):
    """Encode the surface's frame as JPEG bytes."""
    ok, buffer = cv2.imencode(".jpg", surface.frame, [cv2.IMWRITE_JPEG_QUALITY, int(quality)])
    if not ok:
        raise EncodeError("JPEG encoding failed")
    return buffer.tobytes()


class FilePublisher:
    """Writes thumbnails to <directory>/<stream id>.jpg instead of uploading them."""

    def __init__(self, directory="."):
        self.directory = Path(directory)

    async def __call__(self, stream_id, data):
        path = self.directory / f"{stream_id}.jpg"
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            await asyncio.to_thread(path.write_bytes, data)
        except OSError as e:
            return PublishResult(False, f"Could not write {path}: {e}")
        return PublishResult(True, str(path))
