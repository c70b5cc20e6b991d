"""時刻文字列の検証・変換ユーティリティ"""

import re

from src.domain.entities import TimeRange, format_hms
from src.domain.exceptions import InvalidInputError

# [H:]MM:SS（分・秒は0-59）
TIMESTAMP_PATTERN = re.compile(r"^(?:(\d+):)?([0-5]?\d):([0-5]\d)$")

# 時の上限（99:59:59まで）
MAX_HOURS = 99


def is_valid_timestamp(value: object) -> bool:
    """"MM:SS" / "H:MM:SS" 形式かどうか"""
    if not isinstance(value, str):
        return False
    return TIMESTAMP_PATTERN.match(value.strip()) is not None


def parse_timestamp(value: str) -> int:
    """
    時刻文字列を秒に変換

    Args:
        value: "MM:SS" または "H:MM:SS"

    Returns:
        秒数

    Raises:
        InvalidInputError: 形式が不正、または時が MAX_HOURS を超える

    Example:
        parse_timestamp("1:02:03") → 3723
        parse_timestamp("02:03") → 123
    """
    match = TIMESTAMP_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise InvalidInputError(f"Invalid time format: {value!r}")
    hour_digits = (match.group(1) or "0").lstrip("0") or "0"
    # 巨大な数値をintにしない
    if len(hour_digits) > 2 or int(hour_digits) > MAX_HOURS:
        raise InvalidInputError(f"Time is out of range (max {MAX_HOURS}:59:59)")
    hours = int(hour_digits)
    minutes = int(match.group(2))
    seconds = int(match.group(3))
    return hours * 3600 + minutes * 60 + seconds


def format_timestamp(seconds: int) -> str:
    """秒をH:MM:SS形式に変換"""
    return format_hms(seconds)


def build_time_range(start_time: str, end_time: str) -> TimeRange:
    """
    開始・終了の時刻文字列からTimeRangeを組み立てる

    Raises:
        InvalidInputError: 形式が不正、範囲外、または開始が終了以降
    """
    start_sec = parse_timestamp(start_time)
    end_sec = parse_timestamp(end_time)
    try:
        return TimeRange(start_sec=start_sec, end_sec=end_sec)
    except ValueError as e:
        raise InvalidInputError("startTime must be before endTime") from e
