"""
HTTP tests for the Quart app, with the provider and external lookups faked.
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

import app as app_module
from llm_providers import LLMProviderError
from video_details import VideoDetails, VideoDetailsError, YouTubeApiKeyMissing

VIDEO_ID = "dQw4w9WgXcQ"


@pytest.fixture
def provider(sample_completion):
    provider = MagicMock()
    provider.generate_content = AsyncMock(return_value=sample_completion)
    return provider


@pytest.fixture
def client(provider):
    app_module.app.config["LLM_PROVIDER"] = provider
    yield app_module.app.test_client()
    app_module.app.config.pop("LLM_PROVIDER", None)


@pytest.fixture
def transcript_text():
    with patch("analysis.get_transcript_text") as fetcher:
        fetcher.return_value = "never gonna give you up"
        yield fetcher


class TestAnalyzeEndpoint:
    """Test POST /api/youtube/analyze"""

    @pytest.mark.asyncio
    async def test_success(self, client, transcript_text, sample_analysis):
        response = await client.post(
            "/api/youtube/analyze", json={"videoId": VIDEO_ID}
        )

        assert response.status_code == 200
        assert await response.get_json() == sample_analysis
        transcript_text.assert_called_once_with(VIDEO_ID)

    @pytest.mark.asyncio
    async def test_accepts_url(self, client, transcript_text):
        response = await client.post(
            "/api/youtube/analyze",
            json={"videoId": f"https://www.youtube.com/watch?v={VIDEO_ID}"},
        )

        assert response.status_code == 200
        transcript_text.assert_called_once_with(VIDEO_ID)

    @pytest.mark.asyncio
    async def test_fenced_completion(self, client, provider, transcript_text, sample_completion):
        provider.generate_content.return_value = f"```json\n{sample_completion}\n```"

        response = await client.post(
            "/api/youtube/analyze", json={"videoId": VIDEO_ID}
        )

        assert response.status_code == 200
        assert await response.get_json() == json.loads(sample_completion)

    @pytest.mark.asyncio
    async def test_invalid_payload(self, client, transcript_text):
        response = await client.post("/api/youtube/analyze", json=["nope"])

        assert response.status_code == 400
        assert await response.get_json() == {"error": "Invalid JSON payload"}
        transcript_text.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{"videoId": "hello world"}, {"url": VIDEO_ID}])
    async def test_invalid_video(self, client, provider, transcript_text, body):
        response = await client.post("/api/youtube/analyze", json=body)

        assert response.status_code == 400
        assert await response.get_json() == {"error": "Invalid YouTube URL or video ID"}
        transcript_text.assert_not_called()
        provider.generate_content.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_transcript(self, client, provider, transcript_text):
        transcript_text.return_value = None

        response = await client.post(
            "/api/youtube/analyze", json={"videoId": VIDEO_ID}
        )

        assert response.status_code == 400
        assert await response.get_json() == {
            "error": "No transcript available for this video"
        }
        provider.generate_content.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_provider_error(self, client, provider, transcript_text):
        provider.generate_content.side_effect = LLMProviderError("down")

        response = await client.post(
            "/api/youtube/analyze", json={"videoId": VIDEO_ID}
        )

        assert response.status_code == 502
        assert await response.get_json() == {"error": "Failed to generate analysis"}

    @pytest.mark.asyncio
    async def test_parse_failure(self, client, provider, transcript_text):
        provider.generate_content.return_value = '{"videoTitle": "only a title"}'

        response = await client.post(
            "/api/youtube/analyze", json={"videoId": VIDEO_ID}
        )

        assert response.status_code == 500
        assert await response.get_json() == {
            "error": "Failed to parse analysis results"
        }

    @pytest.mark.asyncio
    async def test_unexpected_error(self, client, provider, transcript_text):
        provider.generate_content.side_effect = RuntimeError("bug")

        response = await client.post(
            "/api/youtube/analyze", json={"videoId": VIDEO_ID}
        )

        assert response.status_code == 500
        assert "error" in await response.get_json()


class TestVideoInfoEndpoint:
    """Test GET /api/youtube/video/<reference>"""

    @pytest.mark.asyncio
    async def test_success(self, client):
        details = VideoDetails(
            id=VIDEO_ID,
            title="Rick Astley - Never Gonna Give You Up",
            channel_title="Rick Astley",
            view_count=1_500_000_000,
            duration="03:33",
            view_count_compact="1.5B",
        )
        with patch("app.get_video_details", return_value=details) as lookup:
            response = await client.get(f"/api/youtube/video/{VIDEO_ID}")

        assert response.status_code == 200
        body = await response.get_json()
        assert body["channelTitle"] == "Rick Astley"
        assert body["viewCountCompact"] == "1.5B"
        assert body["duration"] == "03:33"
        lookup.assert_called_once_with(VIDEO_ID)

    @pytest.mark.asyncio
    async def test_invalid_reference(self, client):
        response = await client.get("/api/youtube/video/not-an-id")
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_not_found(self, client):
        with patch("app.get_video_details", return_value=None):
            response = await client.get(f"/api/youtube/video/{VIDEO_ID}")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_not_configured(self, client):
        with patch("app.get_video_details", side_effect=YouTubeApiKeyMissing("no key")):
            response = await client.get(f"/api/youtube/video/{VIDEO_ID}")
        assert response.status_code == 503

    @pytest.mark.asyncio
    async def test_api_error(self, client):
        with patch("app.get_video_details", side_effect=VideoDetailsError("quota")):
            response = await client.get(f"/api/youtube/video/{VIDEO_ID}")
        assert response.status_code == 502


class TestMiscEndpoints:
    @pytest.mark.asyncio
    async def test_root(self, client):
        response = await client.get("/")
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")
        assert await response.get_json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_invalid_video_without_configured_provider(monkeypatch):
    app_module.app.config.pop("LLM_PROVIDER", None)
    factory = MagicMock(side_effect=ValueError("OPENAI_API_KEY environment variable not set."))
    monkeypatch.setattr(app_module, "get_llm_provider", factory)

    response = await app_module.app.test_client().post(
        "/api/youtube/analyze", json={"videoId": "hello world"}
    )

    assert response.status_code == 400
    assert await response.get_json() == {"error": "Invalid YouTube URL or video ID"}
    factory.assert_not_called()


def test_provider_created_once(monkeypatch):
    app_module.app.config.pop("LLM_PROVIDER", None)
    created = MagicMock()
    factory = MagicMock(return_value=created)
    monkeypatch.setattr(app_module, "get_llm_provider", factory)

    assert app_module.get_provider() is created
    assert app_module.get_provider() is created
    factory.assert_called_once()
    app_module.app.config.pop("LLM_PROVIDER", None)
