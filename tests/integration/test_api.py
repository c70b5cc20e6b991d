"""HTTP APIのテスト（FastAPI TestClient + FakeRunner）"""

import asyncio
import os
import time
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from app.main import (
    ClipStreamingResponse,
    build_metadata_provider,
    create_app,
    init_info_usecase,
)
from config.settings import Settings
from src.application.usecases.get_video_info import GetVideoInfoUseCase
from src.domain.entities import ClipArtifact, VideoInfo
from src.domain.exceptions import UpstreamUnavailableError
from src.infrastructure.oembed_metadata import OEmbedMetadataProvider
from src.infrastructure.scratch_space import ScratchSpace
from src.infrastructure.stub_metadata import StubMetadataProvider
from src.infrastructure.ytdlp_metadata import YtdlpMetadataProvider
from tests.fakes import FAKE_MP4, FakeRunner

VIDEO_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=5"


class StaticProvider:
    def __init__(self, fail: bool = False, crash: bool = False):
        self.fail = fail
        self.crash = crash

    def fetch(self, video_id: str) -> VideoInfo:
        if self.crash:
            raise RuntimeError("unexpected")
        if self.fail:
            raise UpstreamUnavailableError("Failed to fetch video info")
        return VideoInfo(video_id, "Real Title", "https://thumb/x.jpg", "HD", 212)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(METADATA_PROVIDER="stub", SCRATCH_DIR=str(tmp_path / "scratch"))


@pytest.fixture
def make_client(settings: Settings, make_clip_usecase):
    def factory(
        runner: FakeRunner | None = None,
        provider=None,
        fallback=None,
        raise_server_exceptions: bool = True,
    ) -> TestClient:
        app = create_app(
            settings=settings,
            info_usecase=GetVideoInfoUseCase(provider or StaticProvider(), fallback),
            clip_usecase=make_clip_usecase(runner or FakeRunner()),
        )
        return TestClient(app, raise_server_exceptions=raise_server_exceptions)

    return factory


class TestGetVideo:
    """GET /video"""

    def test_success(self, make_client) -> None:
        response = make_client().get("/video", params={"url": "https://youtu.be/dQw4w9WgXcQ?t=10"})
        assert response.status_code == 200
        assert response.json() == {
            "title": "Real Title",
            "thumbnail": "https://thumb/x.jpg",
            "quality": "HD",
            "duration": 212,
        }

    def test_missing_url(self, make_client) -> None:
        response = make_client().get("/video")
        assert response.status_code == 400
        assert response.json() == {"error": "URL required"}

    def test_invalid_url(self, make_client) -> None:
        response = make_client().get("/video", params={"url": "https://example.com/watch"})
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid video URL"}

    def test_upstream_failure(self, make_client) -> None:
        response = make_client(provider=StaticProvider(fail=True)).get(
            "/video", params={"url": VIDEO_URL}
        )
        assert response.status_code == 500
        assert "error" in response.json()

    def test_upstream_failure_with_fallback(self, make_client) -> None:
        client = make_client(provider=StaticProvider(fail=True), fallback=StubMetadataProvider())
        response = client.get("/video", params={"url": VIDEO_URL})
        assert response.status_code == 200
        assert response.json()["title"] == "YouTube Video"

    def test_unexpected_error_is_json(self, make_client) -> None:
        """想定外の例外も {"error": ...} のJSONで返す"""
        client = make_client(provider=StaticProvider(crash=True), raise_server_exceptions=False)
        response = client.get("/video", params={"url": VIDEO_URL})
        assert response.status_code == 500
        assert response.headers["content-type"] == "application/json"
        assert response.json() == {"error": "Internal server error"}


class TestPostVideo:
    """POST /video"""

    def test_success_streams_clip(self, make_client, scratch: ScratchSpace) -> None:
        runner = FakeRunner()
        response = make_client(runner).post(
            "/video",
            json={"url": VIDEO_URL, "startTime": "00:10", "endTime": "00:20"},
        )

        assert response.status_code == 200
        assert response.headers["content-type"] == "video/mp4"
        assert response.headers["content-disposition"] == 'attachment; filename="clip.mp4"'
        assert response.content == FAKE_MP4
        assert len(runner.calls) == 1
        # 送信後に一時ファイルは残らない
        assert scratch.list_files() == []

    @pytest.mark.parametrize(
        "payload",
        [
            {"url": VIDEO_URL, "endTime": "00:20"},
            {"url": VIDEO_URL, "startTime": "00:10"},
            {"startTime": "00:10", "endTime": "00:20"},
            {"url": VIDEO_URL, "startTime": "", "endTime": "00:20"},
        ],
    )
    def test_missing_fields(self, make_client, payload: dict) -> None:
        runner = FakeRunner()
        response = make_client(runner).post("/video", json=payload)

        assert response.status_code == 400
        assert response.json() == {"error": "Missing parameters"}
        assert runner.calls == []

    def test_invalid_url(self, make_client) -> None:
        runner = FakeRunner()
        response = make_client(runner).post(
            "/video",
            json={"url": "https://vimeo.com/1", "startTime": "00:10", "endTime": "00:20"},
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid video URL"}
        assert runner.calls == []

    def test_invalid_time(self, make_client) -> None:
        runner = FakeRunner()
        response = make_client(runner).post(
            "/video",
            json={"url": VIDEO_URL, "startTime": "99:99", "endTime": "00:20"},
        )
        assert response.status_code == 400
        assert runner.calls == []

    def test_clip_longer_than_one_day_offset(self, make_client) -> None:
        """24時間以降の区間も yt-dlp が解釈できる形で渡す"""
        runner = FakeRunner()
        response = make_client(runner).post(
            "/video",
            json={"url": VIDEO_URL, "startTime": "24:00:00", "endTime": "25:00:00"},
        )
        assert response.status_code == 200
        cmd = runner.calls[0]
        assert cmd[cmd.index("--download-sections") + 1] == "*24:00:00-25:00:00"

    def test_oversized_hours(self, make_client) -> None:
        runner = FakeRunner()
        response = make_client(runner).post(
            "/video",
            json={"url": VIDEO_URL, "startTime": "0:00", "endTime": "999999999999:00:00"},
        )
        assert response.status_code == 400
        assert "out of range" in response.json()["error"]
        assert runner.calls == []

    @pytest.mark.parametrize("body", [b"not json", b"[1, 2]", b""])
    def test_invalid_body(self, make_client, body: bytes) -> None:
        response = make_client().post(
            "/video", content=body, headers={"content-type": "application/json"}
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid request body"}

    def test_tool_failure(self, make_client, scratch: ScratchSpace) -> None:
        """yt-dlpの異常終了は500、スクラッチは空"""
        runner = FakeRunner(returncode=1, stderr="ERROR: [youtube] Video unavailable", write_partial=True)
        response = make_client(runner).post(
            "/video",
            json={"url": VIDEO_URL, "startTime": "00:10", "endTime": "00:20"},
        )

        assert response.status_code == 500
        assert "Video unavailable" in response.json()["error"]
        assert scratch.list_files() == []

    def test_missing_output(self, make_client, scratch: ScratchSpace) -> None:
        response = make_client(FakeRunner(content=None)).post(
            "/video",
            json={"url": VIDEO_URL, "startTime": "00:10", "endTime": "00:20"},
        )
        assert response.status_code == 500
        assert scratch.list_files() == []


class TestOtherRoutes:
    @pytest.mark.parametrize("method", ["PUT", "PATCH", "DELETE", "OPTIONS", "TRACE"])
    def test_method_not_allowed(self, make_client, method: str) -> None:
        response = make_client().request(method, "/video")
        assert response.status_code == 405
        assert response.headers["allow"] == "GET, POST"
        assert response.json() == {"error": f"Method {method} Not Allowed"}

    def test_head_not_allowed(self, make_client) -> None:
        response = make_client().head("/video")
        assert response.status_code == 405
        assert response.headers["allow"] == "GET, POST"

    def test_unknown_path_is_json(self, make_client) -> None:
        response = make_client().get("/nope")
        assert response.status_code == 404
        assert "error" in response.json()

    def test_health(self, make_client) -> None:
        response = make_client().get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "scratch_files": 0, "active_clips": 0}

    def test_lifespan_purges_stale_files(self, make_client, scratch: ScratchSpace) -> None:
        """起動時に古い残骸を削除"""
        stale = scratch.allocate("old")
        stale.write_bytes(b"x")
        two_hours_ago = time.time() - 7200
        os.utime(stale, (two_hours_ago, two_hours_ago))

        with make_client() as client:
            assert client.get("/health").json()["scratch_files"] == 0


class TestWiring:
    """設定による組み立て"""

    def test_provider_selection(self) -> None:
        assert isinstance(build_metadata_provider(Settings(METADATA_PROVIDER="stub")), StubMetadataProvider)
        assert isinstance(build_metadata_provider(Settings(METADATA_PROVIDER="oembed")), OEmbedMetadataProvider)
        assert isinstance(build_metadata_provider(Settings(METADATA_PROVIDER="ytdlp")), YtdlpMetadataProvider)

    def test_unknown_provider(self) -> None:
        with pytest.raises(ValueError, match="Unknown"):
            build_metadata_provider(Settings(METADATA_PROVIDER="nope"))

    def test_fallback_configuration(self) -> None:
        usecase = init_info_usecase(Settings(METADATA_PROVIDER="oembed", METADATA_FALLBACK_TO_STUB=True))
        assert isinstance(usecase.fallback_provider, StubMetadataProvider)

        usecase = init_info_usecase(Settings(METADATA_PROVIDER="oembed", METADATA_FALLBACK_TO_STUB=False))
        assert usecase.fallback_provider is None


class TestClipStreamingResponse:
    """送信途中で切断されてもファイルが残らない"""

    def test_cleanup_on_client_disconnect(self, tmp_path: Path) -> None:
        path = tmp_path / "clip.mp4"
        path.write_bytes(FAKE_MP4 * 64)
        response = ClipStreamingResponse(ClipArtifact(path=path, video_id="abc", size_bytes=path.stat().st_size))
        scope = {"type": "http", "method": "POST", "asgi": {"spec_version": "2.4"}}

        async def receive() -> dict:
            await asyncio.Event().wait()
            return {"type": "http.disconnect"}

        async def send(message: dict) -> None:
            if message["type"] == "http.response.body":
                raise OSError("connection reset")

        with pytest.raises(Exception):
            asyncio.run(response(scope, receive, send))
        assert not path.exists()

    def test_headers(self, tmp_path: Path) -> None:
        path = tmp_path / "clip.mp4"
        path.write_bytes(FAKE_MP4)
        response = ClipStreamingResponse(ClipArtifact(path=path, video_id="abc", size_bytes=len(FAKE_MP4)))
        assert response.media_type == "video/mp4"
        assert response.headers["content-length"] == str(len(FAKE_MP4))
        assert response.headers["content-disposition"] == 'attachment; filename="clip.mp4"'
        path.unlink()
