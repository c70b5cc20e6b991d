"""ユースケース: 指定範囲のクリップを生成"""

import threading
from dataclasses import dataclass

from src.application.interfaces.clip_downloader import ClipDownloader
from src.domain.entities import ClipArtifact, ClipRequest, ClipRequestState, TimeRange
from src.domain.exceptions import (
    ClipCutterError,
    InvalidInputError,
    InvalidUrlError,
    IOFailureError,
    MissingParametersError,
)
from src.domain.time_utils import build_time_range, format_timestamp, is_valid_timestamp
from src.domain.video_id import canonical_watch_url, extract_video_id
from src.infrastructure.concurrency import ConcurrencyLimiter
from src.infrastructure.logging_config import LogContext, get_logger, trace_chain
from src.infrastructure.scratch_space import ScratchSpace

logger = get_logger(__name__)


@dataclass
class ProduceClipConfig:
    """ユースケースの設定"""

    max_clip_duration_sec: int = 0  # 0 = 無制限


class ProduceClipUseCase:
    """
    リクエスト検証 → スクラッチ割り当て → yt-dlp 実行 → ClipArtifact

    状態遷移:
        RECEIVED → VALIDATING → {REJECTED | INVOKING} → {SUCCEEDED | FAILED} → CLEANED

    検証に失敗した場合は外部プロセスを一切起動しない。
    失敗時はスクラッチ上のファイルを削除してから例外を送出する。
    成功時はファイルの所有権を ClipArtifact に渡す（削除はレスポンス送信後）。
    """

    def __init__(
        self,
        downloader: ClipDownloader,
        scratch: ScratchSpace,
        limiter: ConcurrencyLimiter,
        config: ProduceClipConfig | None = None,
    ):
        self.downloader = downloader
        self.scratch = scratch
        self.limiter = limiter
        self.config = config or ProduceClipConfig()

    def validate(self, request: ClipRequest) -> tuple[str, TimeRange]:
        """
        リクエストを検証し、(動画ID, TimeRange) を返す

        Raises:
            MissingParametersError: url / startTime / endTime の欠落
            InvalidUrlError: 動画IDを抽出できない
            InvalidInputError: 時刻形式の不正、範囲の逆転、長さの上限超過
        """
        if not request.source_url or not request.start_time or not request.end_time:
            raise MissingParametersError("Missing parameters")

        video_id = extract_video_id(request.source_url)
        if not video_id:
            raise InvalidUrlError("Invalid video URL")

        if not is_valid_timestamp(request.start_time) or not is_valid_timestamp(request.end_time):
            raise InvalidInputError("Invalid time format, expected MM:SS or H:MM:SS")

        time_range = build_time_range(request.start_time, request.end_time)

        max_duration = self.config.max_clip_duration_sec
        if max_duration and time_range.duration_sec > max_duration:
            raise InvalidInputError(
                f"Clip is too long ({time_range.duration_sec}s), maximum is {max_duration}s"
            )

        return video_id, time_range

    @trace_chain(name="produce_clip")
    def execute(
        self,
        request: ClipRequest,
        cancel_event: threading.Event | None = None,
    ) -> ClipArtifact:
        """
        メイン実行フロー

        Args:
            request: HTTPボディから作ったリクエスト
            cancel_event: セットされたら外部プロセスを停止する

        Returns:
            ClipArtifact（呼び出し側が送信後に削除する）
        """
        state = ClipRequestState.RECEIVED
        ctx = LogContext(url=request.source_url[:100])
        logger.info(f"[Clip] {state.value} | {ctx}")

        state = self._transition(state, ClipRequestState.VALIDATING, ctx)
        try:
            video_id, time_range = self.validate(request)
        except InvalidInputError as e:
            self._transition(state, ClipRequestState.REJECTED, ctx.update(reason=str(e)))
            raise

        ctx = LogContext(
            video_id=video_id,
            start=format_timestamp(time_range.start_sec),
            end=format_timestamp(time_range.end_sec),
        )

        with self.limiter.slot():
            state = self._transition(state, ClipRequestState.INVOKING, ctx)
            try:
                with self.scratch.managed(video_id) as output_path:
                    self.downloader.download_clip(
                        canonical_watch_url(video_id),
                        time_range,
                        output_path,
                        cancel_event=cancel_event,
                    )
                    try:
                        size_bytes = output_path.stat().st_size
                    except OSError as e:
                        raise IOFailureError(f"Cannot read clip file: {e}") from e
            except ClipCutterError as e:
                state = self._transition(state, ClipRequestState.FAILED, ctx.update(error=str(e)[:200]))
                self._transition(state, ClipRequestState.CLEANED, ctx)
                raise

        self._transition(state, ClipRequestState.SUCCEEDED, ctx.update(size_bytes=size_bytes))
        return ClipArtifact(path=output_path, video_id=video_id, size_bytes=size_bytes)

    @staticmethod
    def _transition(
        current: ClipRequestState,
        new: ClipRequestState,
        ctx: LogContext,
    ) -> ClipRequestState:
        logger.info(f"[Clip] {current.value} → {new.value} | {ctx}")
        return new
