"""YouTube platform client: stream info, DASH manifests and thumbnail upload."""

import logging

import httpx

from .collaborators import ManifestResponse, PublishResult
from .config import HTTP_TIMEOUT
from .errors import NetworkError, NotFoundError, UploadFailure
from .session import VideoSession

logger = logging.getLogger(__name__)

PLAYER_URL = "https://www.youtube.com/youtubei/v1/player"
THUMBNAIL_UPLOAD_URL = "https://www.googleapis.com/upload/youtube/v3/thumbnails/set"
CHANNELS_URL = "https://www.googleapis.com/youtube/v3/channels"

INNERTUBE_CONTEXT = {
    "client": {
        "clientName": "WEB",
        "clientVersion": "2.20240726.00.00",
        "hl": "en",
    }
}


class YouTubeClient:
    """
    Thin async wrapper around the YouTube endpoints the pipeline needs.

    Stream info comes from the Innertube player endpoint, which is the only
    place the live DASH manifest URL is exposed. Uploads go through the
    Data API and need an OAuth access token.
    """

    def __init__(self, access_token=None, http=None):
        self.access_token = access_token
        self.http = http or httpx.AsyncClient(timeout=HTTP_TIMEOUT)

    async def aclose(self):
        await self.http.aclose()

    def _auth_headers(self):
        if not self.access_token:
            return {}
        return {"Authorization": f"Bearer {self.access_token}"}

    async def get_stream_info(self, stream_id):
        try:
            response = await self.http.post(
                PLAYER_URL,
                json={"context": INNERTUBE_CONTEXT, "videoId": stream_id},
            )
        except httpx.HTTPError as e:
            raise NetworkError(f"Player request failed: {e}") from e

        if not response.is_success:
            raise NetworkError(f"Player request returned HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise NetworkError(f"Player response is not JSON: {e}") from e
        if not isinstance(data, dict):
            raise NetworkError("Player response is not a JSON object")
        details = data.get("videoDetails")
        status = data.get("playabilityStatus", {}).get("status")
        if not details or status in ("ERROR", "LOGIN_REQUIRED_NOT_FOUND"):
            reason = data.get("playabilityStatus", {}).get("reason", "video not found")
            raise NotFoundError(f"Could not resolve stream {stream_id}: {reason}")

        return VideoSession(
            id=details.get("videoId", stream_id),
            title=details.get("title", ""),
            is_live_content=bool(details.get("isLiveContent", False)),
            manifest_url=data.get("streamingData", {}).get("dashManifestUrl"),
        )

    async def fetch_manifest(self, url):
        try:
            response = await self.http.get(url, follow_redirects=True)
        except httpx.HTTPError as e:
            raise NetworkError(f"Manifest request failed: {e}") from e
        return ManifestResponse(ok=response.is_success, status=response.status_code, text=response.text)

    async def set_thumbnail(self, stream_id, data):
        """Upload a JPEG thumbnail. Transport and HTTP errors become UploadFailure."""
        try:
            response = await self.http.post(
                THUMBNAIL_UPLOAD_URL,
                params={"videoId": stream_id, "uploadType": "media"},
                headers={**self._auth_headers(), "Content-Type": "image/jpeg"},
                content=data,
            )
        except httpx.HTTPError as e:
            raise UploadFailure(str(e)) from e

        if not response.is_success:
            return PublishResult(False, f"HTTP {response.status_code}: {response.text[:200]}")
        return PublishResult(True)

    async def validate_token(self, token):
        """Return True if the Data API accepts the token."""
        try:
            response = await self.http.get(
                CHANNELS_URL,
                params={"part": "id", "mine": "true"},
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as e:
            raise NetworkError(f"Token check failed: {e}") from e
        return response.is_success
