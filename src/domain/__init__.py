# Domain Layer
from src.domain.entities import (
    ClipArtifact,
    ClipRequest,
    ClipRequestState,
    CommandResult,
    TimeRange,
    VideoInfo,
)
from src.domain.exceptions import (
    CapacityExceededError,
    ClipCutterError,
    CommandTimeoutError,
    ExternalToolError,
    InvalidInputError,
    InvalidUrlError,
    IOFailureError,
    MissingParametersError,
    UpstreamUnavailableError,
)
from src.domain.video_id import extract_video_id

__all__ = [
    "TimeRange",
    "ClipRequest",
    "ClipRequestState",
    "ClipArtifact",
    "CommandResult",
    "VideoInfo",
    "extract_video_id",
    "ClipCutterError",
    "InvalidInputError",
    "MissingParametersError",
    "InvalidUrlError",
    "UpstreamUnavailableError",
    "ExternalToolError",
    "CommandTimeoutError",
    "IOFailureError",
    "CapacityExceededError",
]
