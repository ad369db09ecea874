"""Shared pytest fixtures for the live_thumbs test suite."""

from unittest.mock import AsyncMock

import numpy as np
import pytest

from live_thumbs.collaborators import ManifestResponse, PublishResult
from live_thumbs.session import VideoSession
from tests.manifests import LIVE_MANIFEST

FRAME_WIDTH = 160
FRAME_HEIGHT = 90


@pytest.fixture
def session():
    return VideoSession(
        id="abc123",
        title="Launch Day",
        is_live_content=True,
        manifest_url="https://manifest.example/dash",
    )


@pytest.fixture
def blank_frame():
    return np.zeros((FRAME_HEIGHT, FRAME_WIDTH, 3), dtype=np.uint8)


@pytest.fixture
def client(session):
    """Platform client double returning a live session and a valid manifest."""
    fake = AsyncMock()
    fake.get_stream_info.return_value = session
    fake.fetch_manifest.return_value = ManifestResponse(ok=True, status=200, text=LIVE_MANIFEST)
    fake.set_thumbnail.return_value = PublishResult(True)
    return fake


@pytest.fixture
def frame_extractor():
    return AsyncMock(side_effect=lambda url: np.zeros((FRAME_HEIGHT, FRAME_WIDTH, 3), dtype=np.uint8))


@pytest.fixture
def fetch_image():
    return AsyncMock(side_effect=lambda url: np.full((10, 10, 3), 255, dtype=np.uint8))
