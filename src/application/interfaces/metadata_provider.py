"""メタデータ取得インターフェース"""

from typing import Protocol

from src.domain.entities import VideoInfo


class MetadataProvider(Protocol):
    """動画メタデータ取得のインターフェース"""

    def fetch(self, video_id: str) -> VideoInfo:
        """
        動画のメタデータを取得

        Args:
            video_id: YouTube動画ID

        Returns:
            VideoInfoエンティティ

        Raises:
            UpstreamUnavailableError: 取得失敗
        """
        ...
