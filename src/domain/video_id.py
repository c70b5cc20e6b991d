"""YouTube URLから動画IDを抽出"""

import re

# youtu.be/<id>, youtube.com/embed/<id>, /v/<id>, watch?v=<id>, watch?...&v=<id>
# IDは ? または & の手前まで
VIDEO_ID_PATTERN = re.compile(
    r"(?:youtu\.be/|youtube\.com/(?:embed/|v/|watch\?v=|watch\?.+&v=))([^?&]+)"
)


def extract_video_id(raw_url: str | None) -> str | None:
    """
    任意の文字列から動画IDを抽出

    Args:
        raw_url: ユーザーが貼り付けたURL（空・不正でもよい）

    Returns:
        動画ID、見つからない場合はNone

    Example:
        extract_video_id("https://youtu.be/dQw4w9WgXcQ?t=10") → "dQw4w9WgXcQ"
    """
    if not raw_url or not isinstance(raw_url, str):
        return None
    match = VIDEO_ID_PATTERN.search(raw_url.strip())
    if not match:
        return None
    return match.group(1)


def canonical_watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


def default_thumbnail_url(video_id: str) -> str:
    """IDだけから組み立てるサムネイルURL"""
    return f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg"
