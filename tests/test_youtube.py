"""Tests for the YouTube platform client, using httpx's mock transport."""

import httpx
import pytest

from live_thumbs.errors import NetworkError, NotFoundError, UploadFailure
from live_thumbs.youtube import PLAYER_URL, YouTubeClient

PLAYER_RESPONSE = {
    "playabilityStatus": {"status": "OK"},
    "videoDetails": {"videoId": "abc123", "title": "Launch Day", "isLiveContent": True},
    "streamingData": {"dashManifestUrl": "https://manifest.googlevideo.com/api/manifest/dash/abc"},
}


def make_client(handler, token=None):
    return YouTubeClient(access_token=token, http=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


class TestGetStreamInfo:

    @pytest.mark.asyncio
    async def test_maps_player_response(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json=PLAYER_RESPONSE)

        session = await make_client(handler).get_stream_info("abc123")

        assert session.id == "abc123"
        assert session.title == "Launch Day"
        assert session.is_live_content is True
        assert session.manifest_url.endswith("/dash/abc")
        assert str(requests[0].url) == PLAYER_URL

    @pytest.mark.asyncio
    async def test_not_live_without_manifest(self):
        body = {
            "playabilityStatus": {"status": "OK"},
            "videoDetails": {"videoId": "vod", "title": "Old", "isLiveContent": False},
        }

        session = await make_client(lambda r: httpx.Response(200, json=body)).get_stream_info("vod")

        assert session.is_live_content is False
        assert session.manifest_url is None

    @pytest.mark.asyncio
    async def test_unknown_video(self):
        body = {"playabilityStatus": {"status": "ERROR", "reason": "Video unavailable"}}

        with pytest.raises(NotFoundError, match="Video unavailable"):
            await make_client(lambda r: httpx.Response(200, json=body)).get_stream_info("zzz")

    @pytest.mark.asyncio
    async def test_http_error(self):
        with pytest.raises(NetworkError):
            await make_client(lambda r: httpx.Response(500)).get_stream_info("abc123")

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        client = make_client(lambda r: httpx.Response(200, text="<html>consent</html>"))

        with pytest.raises(NetworkError, match="not JSON"):
            await client.get_stream_info("abc123")


class TestFetchManifest:

    @pytest.mark.asyncio
    async def test_success(self):
        response = await make_client(lambda r: httpx.Response(200, text="<MPD/>")).fetch_manifest("https://m/")

        assert response.ok
        assert response.text == "<MPD/>"

    @pytest.mark.asyncio
    async def test_not_ok(self):
        response = await make_client(lambda r: httpx.Response(404)).fetch_manifest("https://m/")

        assert not response.ok
        assert response.status == 404


class TestSetThumbnail:

    @pytest.mark.asyncio
    async def test_upload(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"items": []})

        result = await make_client(handler, token="tok").set_thumbnail("abc123", b"\xff\xd8jpeg")

        assert result.success
        request = requests[0]
        assert request.url.params["videoId"] == "abc123"
        assert request.headers["Authorization"] == "Bearer tok"
        assert request.headers["Content-Type"] == "image/jpeg"
        assert request.content == b"\xff\xd8jpeg"

    @pytest.mark.asyncio
    async def test_rejected_upload(self):
        result = await make_client(lambda r: httpx.Response(403, text="forbidden")).set_thumbnail("abc123", b"x")

        assert not result.success
        assert "403" in result.message

    @pytest.mark.asyncio
    async def test_transport_error_becomes_upload_failure(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(UploadFailure):
            await make_client(handler, token="tok").set_thumbnail("abc123", b"x")


class TestValidateToken:

    @pytest.mark.asyncio
    async def test_valid_and_invalid(self):
        def handler(request):
            ok = request.headers["Authorization"] == "Bearer good"
            return httpx.Response(200 if ok else 401)

        client = make_client(handler)

        assert await client.validate_token("good") is True
        assert await client.validate_token("bad") is False
