import logging
import os
import threading
from typing import Optional

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from formatting import format_compact_number, format_duration

logger = logging.getLogger(__name__)


class VideoDetailsError(Exception):
    """Raised when the YouTube Data API cannot be queried."""


class YouTubeApiKeyMissing(VideoDetailsError):
    pass


class VideoDetails(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    title: str
    description: str = ""
    channel_title: str = ""
    thumbnail_url: Optional[str] = None
    view_count: int = 0
    like_count: int = 0
    duration: str = ""
    view_count_compact: str = "0"


# httplib2 connections are not thread-safe; lookups run in executor threads.
_local = threading.local()


def get_youtube_client():
    """YouTube Data API v3 client for the calling thread, built on first use."""
    client = getattr(_local, "youtube_client", None)
    if client is None:
        api_key = os.getenv("YOUTUBE_API_KEY")
        if not api_key:
            raise YouTubeApiKeyMissing("YOUTUBE_API_KEY environment variable not set.")
        client = _local.youtube_client = build(
            "youtube", "v3", developerKey=api_key, cache_discovery=False
        )
    return client


def _best_thumbnail(thumbnails: dict) -> Optional[str]:
    for size in ("high", "medium", "default"):
        if size in thumbnails:
            return thumbnails[size].get("url")
    return None


def get_video_details(video_id: str, client=None) -> Optional[VideoDetails]:
    """
    Returns title, thumbnail, view count and duration for a video.

    Returns None when the API knows no video with this ID.
    """
    client = client or get_youtube_client()
    try:
        response = (
            client.videos()
            .list(part="snippet,statistics,contentDetails", id=video_id)
            .execute()
        )
    except HttpError as e:
        logger.error(f"YouTube Data API error for {video_id}: {e}")
        raise VideoDetailsError(f"Failed to fetch video info for {video_id}") from e

    items = response.get("items") or []
    if not items:
        return None

    item = items[0]
    snippet = item.get("snippet", {})
    statistics = item.get("statistics", {})
    content_details = item.get("contentDetails", {})
    view_count = int(statistics.get("viewCount", 0))

    return VideoDetails(
        id=item.get("id", video_id),
        title=snippet.get("title", ""),
        description=snippet.get("description", ""),
        channel_title=snippet.get("channelTitle", ""),
        thumbnail_url=_best_thumbnail(snippet.get("thumbnails", {})),
        view_count=view_count,
        like_count=int(statistics.get("likeCount", 0)),
        duration=format_duration(content_details.get("duration", "")),
        view_count_compact=format_compact_number(view_count),
    )
