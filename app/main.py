"""FastAPI アプリケーションエントリーポイント"""

import threading
from contextlib import asynccontextmanager

# .envファイルを最初に読み込む（LangSmith等の環境変数を設定するため）
from dotenv import load_dotenv
load_dotenv()

import uvicorn
from fastapi import FastAPI, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import Receive, Scope, Send

from config.settings import Settings, get_settings
from src.application.interfaces.metadata_provider import MetadataProvider
from src.application.usecases.get_video_info import GetVideoInfoUseCase
from src.application.usecases.produce_clip import ProduceClipConfig, ProduceClipUseCase
from src.domain.entities import ClipArtifact, ClipRequest, ClipRequestState
from src.domain.exceptions import ClipCutterError, ExternalToolError, InvalidInputError
from src.infrastructure.concurrency import ConcurrencyLimiter
from src.infrastructure.logging_config import get_logger, setup_logging
from src.infrastructure.oembed_metadata import OEmbedMetadataProvider
from src.infrastructure.scratch_space import ScratchSpace
from src.infrastructure.stub_metadata import StubMetadataProvider
from src.infrastructure.youtube_data_api import YouTubeDataAPIMetadataProvider
from src.infrastructure.ytdlp_extractor import YtdlpClipDownloader
from src.infrastructure.ytdlp_metadata import YtdlpMetadataProvider

# ロギング初期化
setup_logging(level=get_settings().LOG_LEVEL)

logger = get_logger(__name__)

ALLOWED_METHODS = "GET, POST"
CLIP_FILENAME = "clip.mp4"


def build_metadata_provider(settings: Settings) -> MetadataProvider:
    """METADATA_PROVIDER に応じた実装を返す"""
    name = settings.METADATA_PROVIDER.lower()
    if name == "oembed":
        return OEmbedMetadataProvider(
            timeout_sec=settings.METADATA_TIMEOUT,
            max_attempts=settings.METADATA_MAX_ATTEMPTS,
        )
    if name == "ytdlp":
        return YtdlpMetadataProvider(
            timeout_sec=settings.METADATA_TIMEOUT,
            max_attempts=settings.METADATA_MAX_ATTEMPTS,
        )
    if name == "youtube_api":
        return YouTubeDataAPIMetadataProvider(
            api_key=settings.YOUTUBE_API_KEY,
            max_attempts=settings.METADATA_MAX_ATTEMPTS,
        )
    if name == "stub":
        return StubMetadataProvider()
    raise ValueError(f"Unknown METADATA_PROVIDER: {settings.METADATA_PROVIDER!r}")


def init_info_usecase(settings: Settings) -> GetVideoInfoUseCase:
    """DIでメタデータ取得ユースケースを組み立て"""
    provider = build_metadata_provider(settings)
    fallback = None
    if settings.METADATA_FALLBACK_TO_STUB and not isinstance(provider, StubMetadataProvider):
        fallback = StubMetadataProvider()
    return GetVideoInfoUseCase(provider=provider, fallback_provider=fallback)


def init_clip_usecase(settings: Settings) -> ProduceClipUseCase:
    """DIでクリップ生成ユースケースを組み立て"""
    return ProduceClipUseCase(
        downloader=YtdlpClipDownloader(
            ytdlp_path=settings.YTDLP_PATH,
            video_format=settings.YTDLP_FORMAT,
            force_keyframes=settings.YTDLP_FORCE_KEYFRAMES,
            timeout_sec=settings.CLIP_EXTRACT_TIMEOUT,
        ),
        scratch=ScratchSpace(settings.resolve_scratch_dir()),
        limiter=ConcurrencyLimiter(
            max_concurrent=settings.MAX_CONCURRENT_CLIPS,
            queue_timeout_sec=settings.QUEUE_TIMEOUT_SEC,
        ),
        config=ProduceClipConfig(max_clip_duration_sec=settings.MAX_CLIP_DURATION_SEC),
    )


def error_response(
    message: str,
    status_code: int,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code, headers=headers)


class ClipStreamingResponse(StreamingResponse):
    """
    クリップファイルをmp4として送信し、終わったら必ず削除するレスポンス

    送信完了・クライアント切断（ClientDisconnect）・送信エラーの
    いずれでも __call__ を抜ける時点でファイルを消す。
    """

    media_type = "video/mp4"

    def __init__(self, artifact: ClipArtifact):
        super().__init__(
            artifact.iter_bytes(),
            headers={
                "Content-Disposition": f'attachment; filename="{CLIP_FILENAME}"',
                "Content-Length": str(artifact.size_bytes),
            },
        )
        self.artifact = artifact

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            self.artifact.cleanup()
            logger.info(
                f"[APP] {ClipRequestState.SUCCEEDED.value} → {ClipRequestState.CLEANED.value} "
                f"| video_id={self.artifact.video_id!r}"
            )


def create_app(
    settings: Settings | None = None,
    info_usecase: GetVideoInfoUseCase | None = None,
    clip_usecase: ProduceClipUseCase | None = None,
) -> FastAPI:
    """
    アプリケーションを組み立てる

    Args:
        settings: 設定（省略時は get_settings()）
        info_usecase: メタデータ取得ユースケース（テストで差し替え）
        clip_usecase: クリップ生成ユースケース（テストで差し替え）
    """
    settings = settings or get_settings()
    info_usecase = info_usecase or init_info_usecase(settings)
    clip_usecase = clip_usecase or init_clip_usecase(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        scratch = clip_usecase.scratch
        scratch.ensure_root()
        scratch.purge_stale(settings.STALE_FILE_MAX_AGE_SEC)
        logger.info(f"[APP] 起動 | scratch={str(scratch.root)!r}")
        yield
        # 実行中のyt-dlpを停止させる
        app.state.shutdown_event.set()
        logger.info("[APP] 停止")

    app = FastAPI(title="clip-cutter", lifespan=lifespan)
    app.state.settings = settings
    app.state.info_usecase = info_usecase
    app.state.clip_usecase = clip_usecase
    app.state.shutdown_event = threading.Event()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )

    @app.exception_handler(ClipCutterError)
    async def handle_clip_cutter_error(request: Request, exc: ClipCutterError) -> JSONResponse:
        if isinstance(exc, InvalidInputError):
            logger.info(f"[APP] 400 {request.method} {request.url.path}: {exc}")
        elif isinstance(exc, ExternalToolError):
            logger.error(f"[APP] 外部コマンド失敗 exit={exc.returncode}: {exc}")
        else:
            logger.error(f"[APP] {exc.http_status} {request.method} {request.url.path}: {exc}")
        return error_response(str(exc), exc.http_status)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 405 and request.url.path == "/video":
            return error_response(
                f"Method {request.method} Not Allowed",
                405,
                headers={"Allow": ALLOWED_METHODS},
            )
        return error_response(str(exc.detail), exc.status_code, headers=exc.headers)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"[APP] 予期しないエラー {request.method} {request.url.path}: {exc}")
        return error_response("Internal server error", 500)

    @app.get("/video")
    def get_video_info(request: Request, url: str | None = Query(default=None)) -> JSONResponse:
        """動画メタデータ（title, thumbnail, quality, duration）"""
        info = request.app.state.info_usecase.execute(url)
        return JSONResponse(info.to_dict())

    @app.post("/video")
    async def download_clip(request: Request) -> ClipStreamingResponse:
        """指定範囲のクリップをmp4で返す"""
        try:
            payload = await request.json()
        except ValueError:
            return error_response("Invalid request body", 400)
        if not isinstance(payload, dict):
            return error_response("Invalid request body", 400)

        clip_request = ClipRequest.from_payload(payload)
        artifact = await run_in_threadpool(
            request.app.state.clip_usecase.execute,
            clip_request,
            request.app.state.shutdown_event,
        )

        return ClipStreamingResponse(artifact)

    @app.get("/health")
    def health(request: Request) -> dict:
        usecase = request.app.state.clip_usecase
        return {
            "status": "ok",
            "scratch_files": len(usecase.scratch.list_files()),
            "active_clips": usecase.limiter.active,
        }

    return app


app = create_app()


def run() -> None:
    """uvicornでサーバーを起動"""
    settings = get_settings()
    uvicorn.run("app.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
