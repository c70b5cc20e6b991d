# Use Cases
from src.application.usecases.get_video_info import GetVideoInfoUseCase
from src.application.usecases.produce_clip import (
    ProduceClipConfig,
    ProduceClipUseCase,
)

__all__ = [
    "GetVideoInfoUseCase",
    "ProduceClipUseCase",
    "ProduceClipConfig",
]
