"""Tests for the get_youtube_transcript tool (no network: the API client is faked)."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from toolwire.config import TranscriptConfig
from toolwire.tools.builtin.transcript import TranscriptTool, extract_video_id
from toolwire.types import envelope_content

VIDEO_ID = "dQw4w9WgXcQ"


class _Fetched(list):
    language_code = "en"


class FakeTranscriptApi:
    """Stands in for YouTubeTranscriptApi; fails ``failures`` times before succeeding."""

    def __init__(self, failures: int = 0, error: Exception | None = None):
        self.failures = failures
        self.error = error or RuntimeError("Could not retrieve a transcript")
        self.calls: list[tuple[str, list[str]]] = []

    def fetch(self, video_id, languages=("en",)):
        self.calls.append((video_id, list(languages)))
        if len(self.calls) <= self.failures:
            raise self.error
        return _Fetched(
            [
                SimpleNamespace(text="Never gonna", start=0.0, duration=1.5),
                SimpleNamespace(text="give you up", start=1.5, duration=2.0),
            ]
        )


@pytest.mark.parametrize(
    "url",
    [
        f"https://www.youtube.com/watch?v={VIDEO_ID}",
        f"https://www.youtube.com/watch?feature=share&v={VIDEO_ID}",
        f"https://youtu.be/{VIDEO_ID}",
        f"https://www.youtube.com/embed/{VIDEO_ID}",
        f"https://www.youtube.com/shorts/{VIDEO_ID}",
        f"  {VIDEO_ID}  ",
    ],
)
def test_extract_video_id(url):
    assert extract_video_id(url) == VIDEO_ID


def test_extract_video_id_rejects_other_urls():
    with pytest.raises(ValueError, match="Impossible to retrieve Youtube video ID"):
        extract_video_id("https://example.com/video")


@pytest.mark.asyncio
async def test_success_envelope_contains_segments():
    api = FakeTranscriptApi()
    tool = TranscriptTool(TranscriptConfig(), api=api)
    url = f"https://youtu.be/{VIDEO_ID}"

    envelope = await tool({"url": url}, "get_youtube_transcript")

    response = envelope[0]["functionResponse"]
    assert response["name"] == "get_youtube_transcript"
    assert response["response"]["url"] == url
    assert response["response"]["content"] == [
        {"text": "Never gonna", "duration": 1.5, "offset": 0.0, "lang": "en"},
        {"text": "give you up", "duration": 2.0, "offset": 1.5, "lang": "en"},
    ]
    assert api.calls == [(VIDEO_ID, ["en"])]


@pytest.mark.asyncio
async def test_configured_languages_are_passed_through():
    api = FakeTranscriptApi()
    tool = TranscriptTool(TranscriptConfig(languages=["de", "en"]), api=api)

    await tool({"url": VIDEO_ID}, "get_youtube_transcript")

    assert api.calls == [(VIDEO_ID, ["de", "en"])]


@pytest.mark.asyncio
async def test_fetch_failure_becomes_error_content():
    api = FakeTranscriptApi(failures=1, error=RuntimeError("Transcripts are disabled"))
    tool = TranscriptTool(TranscriptConfig(), api=api)

    envelope = await tool({"url": VIDEO_ID}, "get_youtube_transcript")

    assert envelope_content(envelope) == "Error fetching the transcript: Transcripts are disabled"
    assert envelope[0]["functionResponse"]["response"]["url"] == VIDEO_ID
    assert len(api.calls) == 1


@pytest.mark.asyncio
async def test_bad_url_becomes_error_content():
    api = FakeTranscriptApi()
    tool = TranscriptTool(TranscriptConfig(), api=api)

    envelope = await tool({"url": "https://example.com"}, "get_youtube_transcript")

    assert envelope_content(envelope) == (
        "Error fetching the transcript: Impossible to retrieve Youtube video ID."
    )
    assert api.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("args", [None, {}, {"link": VIDEO_ID}])
async def test_missing_url_becomes_error_content(args):
    tool = TranscriptTool(TranscriptConfig(), api=FakeTranscriptApi())

    envelope = await tool(args, "get_youtube_transcript")

    assert envelope_content(envelope).startswith("Error fetching the transcript:")
    assert envelope[0]["functionResponse"]["response"]["url"] is None


@pytest.mark.asyncio
async def test_retries_harden_the_fetch(recorded_delays):
    api = FakeTranscriptApi(failures=2)
    tool = TranscriptTool(TranscriptConfig(retries=2, retry_delay_ms=300), api=api)

    envelope = await tool({"url": VIDEO_ID}, "get_youtube_transcript")

    assert isinstance(envelope_content(envelope), list)
    assert len(api.calls) == 3
    assert recorded_delays == [300, 300]


@pytest.mark.asyncio
async def test_retry_exhaustion_becomes_error_content(recorded_delays):
    api = FakeTranscriptApi(failures=10, error=ConnectionError("reset by peer"))
    tool = TranscriptTool(TranscriptConfig(retries=1, retry_delay_ms=0), api=api)

    envelope = await tool({"url": VIDEO_ID}, "get_youtube_transcript")

    assert envelope_content(envelope) == (
        "Error fetching the transcript: Operation failed after 1 attempts: reset by peer"
    )
    assert len(api.calls) == 2
