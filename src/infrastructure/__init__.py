# Infrastructure Layer
from src.infrastructure.command_runner import SubprocessCommandRunner
from src.infrastructure.concurrency import ConcurrencyLimiter
from src.infrastructure.oembed_metadata import OEmbedMetadataProvider
from src.infrastructure.scratch_space import ScratchSpace
from src.infrastructure.stub_metadata import StubMetadataProvider
from src.infrastructure.youtube_data_api import YouTubeDataAPIMetadataProvider
from src.infrastructure.ytdlp_extractor import YtdlpClipDownloader
from src.infrastructure.ytdlp_metadata import YtdlpMetadataProvider

__all__ = [
    "SubprocessCommandRunner",
    "ConcurrencyLimiter",
    "ScratchSpace",
    "YtdlpClipDownloader",
    "OEmbedMetadataProvider",
    "YtdlpMetadataProvider",
    "YouTubeDataAPIMetadataProvider",
    "StubMetadataProvider",
]
