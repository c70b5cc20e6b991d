"""yt-dlp ライブラリによるメタデータ取得"""

from collections.abc import Callable
from typing import Any

import yt_dlp

from src.domain.entities import VideoInfo
from src.domain.exceptions import UpstreamUnavailableError
from src.domain.video_id import canonical_watch_url, default_thumbnail_url
from src.infrastructure.logging_config import get_logger, trace_tool
from src.infrastructure.retry import metadata_retry

logger = get_logger(__name__)


class YtdlpMetadataProvider:
    """
    yt-dlp の extract_info(download=False) を使用

    動画はダウンロードせず情報だけ取得する。動画長も取れる。
    """

    def __init__(
        self,
        timeout_sec: float = 10,
        max_attempts: int = 1,
        ydl_factory: Callable[[dict[str, Any]], Any] = yt_dlp.YoutubeDL,
    ):
        """
        Args:
            timeout_sec: ソケットタイムアウト
            max_attempts: 最大試行回数（1でリトライなし）
            ydl_factory: YoutubeDLの生成関数（テストで差し替え）
        """
        self.ydl_opts = {
            "quiet": True,
            "no_warnings": True,
            "skip_download": True,
            "noplaylist": True,
            "socket_timeout": timeout_sec,
        }
        self.ydl_factory = ydl_factory
        self._fetch_with_retry = metadata_retry(max_attempts)(self._fetch_once)

    @trace_tool(name="ytdlp_extract_info")
    def fetch(self, video_id: str) -> VideoInfo:
        return self._fetch_with_retry(video_id)

    def _fetch_once(self, video_id: str) -> VideoInfo:
        logger.debug(f"[yt-dlp] 動画情報取得: {video_id}")
        try:
            with self.ydl_factory(self.ydl_opts) as ydl:
                info = ydl.extract_info(canonical_watch_url(video_id), download=False)
        except yt_dlp.utils.YoutubeDLError as e:
            logger.warning(f"[yt-dlp] 動画情報取得失敗: {video_id} - {e}")
            raise UpstreamUnavailableError(f"yt-dlp could not read video info: {e}") from e

        if not info:
            raise UpstreamUnavailableError(f"yt-dlp returned no info for {video_id}")

        return VideoInfo(
            video_id=video_id,
            title=info.get("title") or "YouTube Video",
            thumbnail_url=info.get("thumbnail") or default_thumbnail_url(video_id),
            quality=info.get("format") or "Unknown",
            duration_sec=int(info.get("duration") or 0),
        )
