"""YouTube oEmbed によるメタデータ取得"""

import httpx

from src.domain.entities import VideoInfo
from src.domain.exceptions import UpstreamUnavailableError
from src.domain.video_id import canonical_watch_url, default_thumbnail_url
from src.infrastructure.logging_config import get_logger, trace_tool
from src.infrastructure.retry import metadata_retry

logger = get_logger(__name__)

OEMBED_ENDPOINT = "https://www.youtube.com/oembed"


class OEmbedMetadataProvider:
    """
    oEmbed エンドポイントでタイトルを取得

    oEmbedは動画長を返さないため duration は常に0。
    サムネイルはIDから組み立てる（oEmbedのものは解像度が低い）。
    """

    def __init__(
        self,
        timeout_sec: float = 10,
        max_attempts: int = 1,
        client: httpx.Client | None = None,
    ):
        """
        Args:
            timeout_sec: HTTPタイムアウト
            max_attempts: 最大試行回数（1でリトライなし）
            client: httpxクライアント（テストでMockTransportを注入）
        """
        self.client = client or httpx.Client(timeout=timeout_sec, follow_redirects=True)
        self._fetch_with_retry = metadata_retry(max_attempts)(self._fetch_once)

    @trace_tool(name="oembed_lookup")
    def fetch(self, video_id: str) -> VideoInfo:
        return self._fetch_with_retry(video_id)

    def _fetch_once(self, video_id: str) -> VideoInfo:
        logger.debug(f"[oEmbed] 取得開始: {video_id}")
        try:
            response = self.client.get(
                OEMBED_ENDPOINT,
                params={"url": canonical_watch_url(video_id), "format": "json"},
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(f"[oEmbed] HTTP {e.response.status_code}: {video_id}")
            raise UpstreamUnavailableError(
                f"oEmbed returned {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            logger.warning(f"[oEmbed] 通信エラー: {video_id} - {e}")
            raise UpstreamUnavailableError(f"oEmbed request failed: {e}") from e
        except ValueError as e:
            raise UpstreamUnavailableError("oEmbed returned invalid JSON") from e

        if not isinstance(data, dict):
            raise UpstreamUnavailableError("oEmbed returned an unexpected payload")
        title = data.get("title")
        if not title:
            raise UpstreamUnavailableError("oEmbed response has no title")

        return VideoInfo(
            video_id=video_id,
            title=title,
            thumbnail_url=default_thumbnail_url(video_id),
            quality="HD",
            duration_sec=0,
        )
