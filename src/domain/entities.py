"""ドメインエンティティ定義"""

import enum
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any


def format_hms(seconds: int) -> str:
    """秒をH:MM:SS形式に変換（24時間以上でも日数表記にしない）"""
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    return f"{hours}:{minutes:02d}:{secs:02d}"


@dataclass(frozen=True)
class TimeRange:
    """時間範囲を表す値オブジェクト"""

    start_sec: int
    end_sec: int

    def __post_init__(self) -> None:
        if self.start_sec < 0:
            raise ValueError("start_sec must be non-negative")
        if self.end_sec <= self.start_sec:
            raise ValueError("end_sec must be greater than start_sec")

    @property
    def duration_sec(self) -> int:
        """区間の長さ（秒）"""
        return self.end_sec - self.start_sec

    def to_download_section(self) -> str:
        """yt-dlpの--download-sections用フォーマット（*H:MM:SS-H:MM:SS）"""
        return f"*{format_hms(self.start_sec)}-{format_hms(self.end_sec)}"


@dataclass(frozen=True)
class ClipRequest:
    """クリップ切り出しリクエスト（HTTPボディそのまま）"""

    source_url: str
    start_time: str
    end_time: str

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "ClipRequest":
        """JSONボディから生成（欠落フィールドは空文字）"""
        return cls(
            source_url=_as_text(payload.get("url")),
            start_time=_as_text(payload.get("startTime")),
            end_time=_as_text(payload.get("endTime")),
        )


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


@dataclass(frozen=True)
class VideoInfo:
    """動画のメタデータ（1リクエストの間だけ存在）"""

    video_id: str
    title: str
    thumbnail_url: str
    quality: str
    duration_sec: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "thumbnail": self.thumbnail_url,
            "quality": self.quality,
            "duration": self.duration_sec,
        }


@dataclass(frozen=True)
class CommandResult:
    """外部コマンドの実行結果"""

    returncode: int
    stdout: str
    stderr: str
    duration_sec: float

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def stderr_tail(self, max_chars: int = 2000) -> str:
        """診断用にstderrの末尾だけを返す"""
        text = self.stderr.strip()
        return text[-max_chars:] if len(text) > max_chars else text


class ClipRequestState(enum.Enum):
    """1リクエストの状態遷移"""

    RECEIVED = "received"
    VALIDATING = "validating"
    REJECTED = "rejected"
    INVOKING = "invoking"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CLEANED = "cleaned"


@dataclass
class ClipArtifact:
    """
    スクラッチ上に書き出されたクリップファイル

    レスポンス送信が終わるまでハンドラが所有し、送信完了・送信失敗の
    どちらでも削除される。
    """

    path: Path
    video_id: str
    size_bytes: int

    def iter_bytes(self, chunk_size: int = 64 * 1024) -> Iterator[bytes]:
        """
        ファイルをチャンク単位で読み出す

        読み出し完了・途中切断（GeneratorExit）・読み出しエラーのいずれでも
        最後にファイルを削除する。
        """
        try:
            with open(self.path, "rb") as f:
                while True:
                    chunk = f.read(chunk_size)
                    if not chunk:
                        break
                    yield chunk
        finally:
            self.cleanup()

    def cleanup(self) -> None:
        """ファイルを削除（何度呼んでもよい）"""
        self.path.unlink(missing_ok=True)

    @property
    def exists(self) -> bool:
        return self.path.exists()
