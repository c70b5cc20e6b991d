"""設定管理"""

import tempfile
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """アプリケーション設定"""

    # yt-dlp
    YTDLP_PATH: str = "yt-dlp"
    # mp4を優先するフォーマット選択
    YTDLP_FORMAT: str = "bestvideo[ext=mp4]+bestaudio[ext=m4a]/best[ext=mp4]/best"
    # カット位置でキーフレームを強制（正確だが再エンコードで遅い）
    YTDLP_FORCE_KEYFRAMES: bool = False

    # Scratch
    # Noneの場合はOSの一時ディレクトリ配下の video-clips を使用
    SCRATCH_DIR: str | None = None
    STALE_FILE_MAX_AGE_SEC: int = 3600

    # Clip processing
    CLIP_EXTRACT_TIMEOUT: int = 300
    MAX_CONCURRENT_CLIPS: int = 2
    QUEUE_TIMEOUT_SEC: int = 30
    # 0 = 無制限
    MAX_CLIP_DURATION_SEC: int = 0

    # Metadata
    # "oembed" | "ytdlp" | "youtube_api" | "stub"
    METADATA_PROVIDER: str = "oembed"
    METADATA_TIMEOUT: int = 10
    # 1 = リトライなし
    METADATA_MAX_ATTEMPTS: int = 1
    METADATA_FALLBACK_TO_STUB: bool = True
    YOUTUBE_API_KEY: str | None = None

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    CORS_ALLOW_ORIGINS: list[str] = ["*"]

    # Logging & Observability
    LOG_LEVEL: str = "INFO"
    LANGSMITH_TRACING: bool = False
    LANGSMITH_API_KEY: str | None = None
    LANGSMITH_PROJECT: str = "clip-cutter"

    def resolve_scratch_dir(self) -> Path:
        """実際に使用するスクラッチディレクトリ"""
        if self.SCRATCH_DIR:
            return Path(self.SCRATCH_DIR)
        return Path(tempfile.gettempdir()) / "video-clips"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


@lru_cache
def get_settings() -> Settings:
    """シングルトンで設定を取得"""
    return Settings()
