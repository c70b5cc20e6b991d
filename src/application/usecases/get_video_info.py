"""ユースケース: URLから動画メタデータを取得"""

from src.application.interfaces.metadata_provider import MetadataProvider
from src.domain.entities import VideoInfo
from src.domain.exceptions import (
    InvalidUrlError,
    MissingParametersError,
    UpstreamUnavailableError,
)
from src.domain.video_id import extract_video_id
from src.infrastructure.logging_config import get_logger

logger = get_logger(__name__)


class GetVideoInfoUseCase:
    """
    URL → 動画ID → MetadataProvider

    fallback_provider が設定されている場合、取得失敗時はその結果で応答する。
    Noneの場合は UpstreamUnavailableError をそのまま送出する。
    """

    def __init__(
        self,
        provider: MetadataProvider,
        fallback_provider: MetadataProvider | None = None,
    ):
        self.provider = provider
        self.fallback_provider = fallback_provider

    def execute(self, raw_url: str | None) -> VideoInfo:
        """
        Args:
            raw_url: クエリパラメータ url の値

        Returns:
            VideoInfo

        Raises:
            MissingParametersError: urlがない
            InvalidUrlError: 動画IDを抽出できない
            UpstreamUnavailableError: 取得失敗（フォールバックなし）
        """
        if not raw_url or not raw_url.strip():
            raise MissingParametersError("URL required")

        video_id = extract_video_id(raw_url)
        if not video_id:
            logger.info(f"[Info] 動画IDを抽出できません: {raw_url[:100]!r}")
            raise InvalidUrlError("Invalid video URL")

        try:
            info = self.provider.fetch(video_id)
        except UpstreamUnavailableError as e:
            if self.fallback_provider is None:
                logger.error(f"[Info] メタデータ取得失敗: {video_id} - {e}")
                raise
            logger.warning(f"[Info] メタデータ取得失敗、フォールバック応答: {video_id} - {e}")
            return self.fallback_provider.fetch(video_id)

        logger.info(f"[Info] 取得完了: {video_id} {info.title[:40]!r}")
        return info
