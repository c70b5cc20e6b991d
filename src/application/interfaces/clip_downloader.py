"""動画クリップ抽出インターフェース"""

import threading
from pathlib import Path
from typing import Protocol

from src.domain.entities import TimeRange


class ClipDownloader(Protocol):
    """動画クリップ抽出のインターフェース"""

    def download_clip(
        self,
        video_url: str,
        time_range: TimeRange,
        output_path: Path,
        cancel_event: threading.Event | None = None,
    ) -> Path:
        """
        指定範囲のクリップをダウンロード

        Args:
            video_url: YouTube動画URL
            time_range: 抽出する時間範囲
            output_path: 出力ファイルパス
            cancel_event: キャンセル用トークン

        Returns:
            出力ファイルパス

        Raises:
            ExternalToolError: 外部コマンドの異常終了
            IOFailureError: 出力ファイルが生成されなかった
        """
        ...
