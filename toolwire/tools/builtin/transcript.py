"""
Transcript tool: fetch the captions of a YouTube video.

The fetch itself is delegated to youtube-transcript-api, which is a blocking
HTTP client, so it runs in a worker thread. When configured with retries the
fetch goes through the retry harness; whatever still fails is reported back to
the model as an error string rather than raised.
"""

from __future__ import annotations

import asyncio
import re
from typing import Any, Mapping, Optional

import structlog
from pydantic import BaseModel
from youtube_transcript_api import YouTubeTranscriptApi

from toolwire.config import TranscriptConfig
from toolwire.harness.retry import retry_operation
from toolwire.types import ToolResponseEnvelope, build_envelope

logger = structlog.get_logger(__name__)

_VIDEO_ID_LEN = 11
_VIDEO_ID_RE = re.compile(
    r"(?:youtube\.com/(?:[^/]+/.+/|(?:v|e(?:mbed)?|shorts|live)/|.*[?&]v=)|youtu\.be/)"
    r"([^\"&?/\s]{11})",
    re.IGNORECASE,
)


class TranscriptArgs(BaseModel):
    """Arguments accepted by the get_youtube_transcript tool."""

    url: str


def extract_video_id(url_or_id: str) -> str:
    """Return the 11-character video id from a YouTube URL, or the id itself."""
    candidate = url_or_id.strip()
    if len(candidate) == _VIDEO_ID_LEN and "/" not in candidate:
        return candidate
    match = _VIDEO_ID_RE.search(candidate)
    if match:
        return match.group(1)
    raise ValueError("Impossible to retrieve Youtube video ID.")


class TranscriptTool:
    """Handler for ``get_youtube_transcript``: echoes the URL, content is the segment list."""

    def __init__(
        self,
        config: Optional[TranscriptConfig] = None,
        api: Optional[YouTubeTranscriptApi] = None,
    ):
        self._config = config or TranscriptConfig()
        self._api = api

    def _client(self) -> YouTubeTranscriptApi:
        if self._api is None:
            self._api = YouTubeTranscriptApi()
        return self._api

    def _fetch_sync(self, video_id: str) -> list[dict[str, Any]]:
        fetched = self._client().fetch(video_id, languages=self._config.languages)
        return [
            {
                "text": snippet.text,
                "duration": snippet.duration,
                "offset": snippet.start,
                "lang": fetched.language_code,
            }
            for snippet in fetched
        ]

    async def fetch_transcript(self, url: str) -> list[dict[str, Any]]:
        """Fetch transcript segments for ``url``, retrying per config."""
        video_id = extract_video_id(url)
        if self._config.retries == 0:
            return await asyncio.to_thread(self._fetch_sync, video_id)
        return await retry_operation(
            lambda: asyncio.to_thread(self._fetch_sync, video_id),
            max_attempts=self._config.retries,
            delay_ms=self._config.retry_delay_ms,
        )

    async def __call__(self, args: Optional[Mapping[str, Any]], name: str) -> ToolResponseEnvelope:
        url = args.get("url") if isinstance(args, Mapping) else None
        try:
            parsed = TranscriptArgs.model_validate(args or {})
            transcript = await self.fetch_transcript(parsed.url)
        except Exception as e:
            error_message = f"Error fetching the transcript: {e}"
            logger.error("transcript.fetch_failed", tool_name=name, url=url, error=str(e))
            return build_envelope(name, error_message, url=url)

        logger.debug("transcript.fetched", tool_name=name, url=url, segments=len(transcript))
        return build_envelope(name, transcript, url=url)
