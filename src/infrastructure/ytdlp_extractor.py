"""yt-dlp CLI による動画クリップ抽出"""

import threading
from pathlib import Path

from src.application.interfaces.command_runner import CommandRunner
from src.domain.entities import TimeRange
from src.domain.exceptions import ExternalToolError, IOFailureError
from src.infrastructure.command_runner import SubprocessCommandRunner
from src.infrastructure.logging_config import LogContext, get_logger, trace_tool

logger = get_logger(__name__)

DEFAULT_FORMAT = "bestvideo[ext=mp4]+bestaudio[ext=m4a]/best[ext=mp4]/best"


class YtdlpClipDownloader:
    """yt-dlp --download-sections による実装"""

    def __init__(
        self,
        ytdlp_path: str = "yt-dlp",
        video_format: str = DEFAULT_FORMAT,
        force_keyframes: bool = False,
        timeout_sec: float | None = 300,
        runner: CommandRunner | None = None,
    ):
        """
        Args:
            ytdlp_path: yt-dlpの実行パス
            video_format: --format に渡すフォーマット選択
            force_keyframes: --force-keyframes-at-cuts を付けるか
            timeout_sec: 1回の実行の最大待機時間
            runner: コマンド実行器（テストで差し替え）
        """
        self.ytdlp_path = ytdlp_path
        self.video_format = video_format
        self.force_keyframes = force_keyframes
        self.timeout_sec = timeout_sec
        self.runner = runner or SubprocessCommandRunner()

    def build_command(
        self,
        video_url: str,
        time_range: TimeRange,
        output_path: Path,
    ) -> list[str]:
        """yt-dlpのコマンドラインを組み立てる"""
        cmd = [
            self.ytdlp_path,
            "--format", self.video_format,
            "--no-playlist",
            "--download-sections", time_range.to_download_section(),
        ]
        if self.force_keyframes:
            cmd.append("--force-keyframes-at-cuts")
        cmd += [
            "--merge-output-format", "mp4",
            "--recode-video", "mp4",
            "--force-overwrites",
            "--no-progress",
            "--output", str(output_path),
            video_url,
        ]
        return cmd

    @trace_tool(name="ytdlp_download_clip")
    def download_clip(
        self,
        video_url: str,
        time_range: TimeRange,
        output_path: Path,
        cancel_event: threading.Event | None = None,
    ) -> Path:
        """
        指定範囲だけをダウンロードしてmp4に書き出す

        yt-dlpの終了を待ち、終了コード0かつ出力ファイルが存在すれば成功。
        リトライはしない。

        Raises:
            ExternalToolError: 非ゼロ終了（stderr末尾を保持）
            CommandTimeoutError: タイムアウト・キャンセル
            IOFailureError: 終了コード0なのにファイルがない・空
        """
        output_path = Path(output_path)
        ctx = LogContext(
            section=time_range.to_download_section(),
            output=output_path.name,
        )
        logger.info(f"[yt-dlp] クリップ取得開始 | {ctx}")

        cmd = self.build_command(video_url, time_range, output_path)
        result = self.runner.run(
            cmd,
            timeout_sec=self.timeout_sec,
            cancel_event=cancel_event,
        )

        if not result.ok:
            stderr_tail = result.stderr_tail()
            logger.error(f"[yt-dlp] 失敗 exit={result.returncode} | {ctx}")
            logger.debug(f"  stderr: {stderr_tail}")
            raise ExternalToolError(
                f"yt-dlp failed with code {result.returncode}: {stderr_tail}",
                returncode=result.returncode,
                stderr=stderr_tail,
            )

        # 出力ファイルの検証
        if not output_path.exists():
            raise IOFailureError(f"yt-dlp finished but produced no file: {output_path.name}")
        if output_path.stat().st_size == 0:
            raise IOFailureError(f"yt-dlp produced an empty file: {output_path.name}")

        logger.info(
            f"[yt-dlp] クリップ取得完了 ({result.duration_sec:.1f}秒, "
            f"{output_path.stat().st_size / 1024 / 1024:.1f} MB) | {ctx}"
        )
        return output_path
