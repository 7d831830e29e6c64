import logging
import threading
from typing import Optional

from cachetools import TTLCache, cached
from youtube_transcript_api import (
    NoTranscriptFound,
    TranscriptsDisabled,
    VideoUnavailable,
    YouTubeTranscriptApi,
)

from config import (
    TRANSCRIPT_CACHE_MAX_SIZE,
    TRANSCRIPT_CACHE_TTL_SECONDS,
    transcript_languages,
)

logger = logging.getLogger(__name__)


class TranscriptNotFoundError(Exception):
    """Raised when a requested transcript cannot be found for a video."""

    def __init__(self, video_id: str):
        self.video_id = video_id
        super().__init__(f"Requested transcript does not exist for video: {video_id}")


# Failed fetches raise and are therefore never cached. Requests run in
# executor threads, so the cache is shared across threads.
transcript_cache = TTLCache(
    maxsize=TRANSCRIPT_CACHE_MAX_SIZE, ttl=TRANSCRIPT_CACHE_TTL_SECONDS
)
transcript_cache_lock = threading.Lock()


def _select_transcript(transcript_list, video_id: str, languages: list[str]):
    """Preferred language first, otherwise the first track the video offers."""
    try:
        return transcript_list.find_transcript(languages)
    except NoTranscriptFound:
        fallback = next(iter(transcript_list), None)
        if fallback is None:
            raise
        logger.info(
            f"No {languages} transcript for {video_id}, "
            f"using {fallback.language_code} instead"
        )
        return fallback


@cached(cache=transcript_cache, lock=transcript_cache_lock)
def fetch_transcript(video_id: str) -> list[dict]:
    """
    Fetches the transcript for a given YouTube video ID.

    Tracks in TRANSCRIPT_LANGUAGES are preferred; when none exists the
    first available track is used, whatever its language.

    Args:
        video_id (str): The ID of the YouTube video.

    Returns:
        list[dict]: A list of dictionaries, where each dictionary represents
                    a transcript segment and has the keys 'text', 'start',
                    and 'duration'.

    Raises:
        TranscriptNotFoundError: If the video has no transcript at all,
            transcripts are disabled, or the video is unavailable.
    """
    try:
        transcript_list = YouTubeTranscriptApi().list(video_id)
        transcript = _select_transcript(
            transcript_list, video_id, transcript_languages()
        )
        fetched = transcript.fetch()
    except (TranscriptsDisabled, NoTranscriptFound, VideoUnavailable) as e:
        raise TranscriptNotFoundError(video_id) from e

    return [
        {"text": snippet.text, "start": snippet.start, "duration": snippet.duration}
        for snippet in fetched
    ]


def join_transcript(segments: list[dict]) -> str:
    return " ".join(segment["text"] for segment in segments)


def get_transcript_text(video_id: str) -> Optional[str]:
    """Concatenated transcript text, or None when no usable transcript exists."""
    try:
        segments = fetch_transcript(video_id)
    except TranscriptNotFoundError as e:
        logger.warning(str(e))
        return None
    except Exception as e:
        logger.error(f"Failed to fetch transcript for {video_id}: {e}")
        return None

    text = join_transcript(segments).strip()
    if not text:
        logger.warning(f"Transcript for {video_id} is empty")
        return None
    return text
