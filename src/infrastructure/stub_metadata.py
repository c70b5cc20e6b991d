"""ネットワークを使わないメタデータ（フォールバック用）"""

from src.domain.entities import VideoInfo
from src.domain.video_id import default_thumbnail_url


class StubMetadataProvider:
    """IDだけからベストエフォートのVideoInfoを組み立てる"""

    def __init__(self, title: str = "YouTube Video", quality: str = "HD"):
        self.title = title
        self.quality = quality

    def fetch(self, video_id: str) -> VideoInfo:
        return VideoInfo(
            video_id=video_id,
            title=self.title,
            thumbnail_url=default_thumbnail_url(video_id),
            quality=self.quality,
            duration_sec=0,
        )
