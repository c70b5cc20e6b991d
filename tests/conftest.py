"""共通フィクスチャ"""

import itertools
from pathlib import Path

import pytest

from src.application.usecases.produce_clip import ProduceClipConfig, ProduceClipUseCase
from src.infrastructure.concurrency import ConcurrencyLimiter
from src.infrastructure.scratch_space import ScratchSpace
from src.infrastructure.ytdlp_extractor import YtdlpClipDownloader
from tests.fakes import FakeRunner


@pytest.fixture
def scratch(tmp_path: Path) -> ScratchSpace:
    counter = itertools.count(1)
    return ScratchSpace(tmp_path / "scratch", id_generator=lambda: f"t{next(counter)}")


@pytest.fixture
def make_clip_usecase(scratch: ScratchSpace):
    """FakeRunnerを使うProduceClipUseCaseを作るファクトリ"""

    def factory(
        runner: FakeRunner | None = None,
        max_concurrent: int = 2,
        max_clip_duration_sec: int = 0,
    ) -> ProduceClipUseCase:
        return ProduceClipUseCase(
            downloader=YtdlpClipDownloader(runner=runner or FakeRunner()),
            scratch=scratch,
            limiter=ConcurrencyLimiter(max_concurrent=max_concurrent, queue_timeout_sec=0.1),
            config=ProduceClipConfig(max_clip_duration_sec=max_clip_duration_sec),
        )

    return factory
