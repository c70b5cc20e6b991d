# Application Interfaces (Protocols)
from src.application.interfaces.clip_downloader import ClipDownloader
from src.application.interfaces.command_runner import CommandRunner
from src.application.interfaces.metadata_provider import MetadataProvider

__all__ = [
    "ClipDownloader",
    "CommandRunner",
    "MetadataProvider",
]
