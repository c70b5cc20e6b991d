"""YouTube Data API v3 によるメタデータ取得"""

import re
from typing import Any

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from src.domain.entities import VideoInfo
from src.domain.exceptions import UpstreamUnavailableError
from src.domain.video_id import default_thumbnail_url
from src.infrastructure.logging_config import get_logger, trace_tool
from src.infrastructure.retry import metadata_retry

logger = get_logger(__name__)


def parse_iso8601_duration(duration_str: str) -> int:
    """ISO 8601 duration を秒に変換（PT1H2M3S → 3723）"""
    match = re.match(r"P(?:(\d+)D)?T?(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?", duration_str or "")
    if not match:
        return 0
    days = int(match.group(1) or 0)
    hours = int(match.group(2) or 0)
    minutes = int(match.group(3) or 0)
    seconds = int(match.group(4) or 0)
    return days * 86400 + hours * 3600 + minutes * 60 + seconds


class YouTubeDataAPIMetadataProvider:
    """YouTube Data API v3 の videos.list を使用"""

    def __init__(
        self,
        api_key: str | None = None,
        max_attempts: int = 1,
        youtube: Any = None,
    ):
        """
        Args:
            api_key: YouTube Data API キー
            max_attempts: 最大試行回数（1でリトライなし）
            youtube: APIリソース（テストで差し替え）
        """
        if youtube is None:
            if not api_key:
                raise ValueError("YOUTUBE_API_KEY is required for the youtube_api provider")
            youtube = build("youtube", "v3", developerKey=api_key)
        self.youtube = youtube
        self._fetch_with_retry = metadata_retry(max_attempts)(self._fetch_once)

    @trace_tool(name="youtube_videos_list")
    def fetch(self, video_id: str) -> VideoInfo:
        return self._fetch_with_retry(video_id)

    def _fetch_once(self, video_id: str) -> VideoInfo:
        logger.debug(f"[YouTube] videos.list API呼び出し: {video_id}")
        try:
            response = (
                self.youtube.videos()
                .list(id=video_id, part="snippet,contentDetails")
                .execute()
            )
        except HttpError as e:
            logger.error(f"[YouTube] API エラー: {e}")
            raise UpstreamUnavailableError(f"YouTube API error: {e}") from e

        items = response.get("items", [])
        if not items:
            raise UpstreamUnavailableError(f"Video not found: {video_id}")

        item = items[0]
        snippet = item.get("snippet", {})
        details = item.get("contentDetails", {})
        thumbnails = snippet.get("thumbnails", {})
        thumbnail = (thumbnails.get("high") or thumbnails.get("default") or {}).get("url")

        return VideoInfo(
            video_id=video_id,
            title=snippet.get("title") or "YouTube Video",
            thumbnail_url=thumbnail or default_thumbnail_url(video_id),
            quality=(details.get("definition") or "hd").upper(),
            duration_sec=parse_iso8601_duration(details.get("duration", "")),
        )
