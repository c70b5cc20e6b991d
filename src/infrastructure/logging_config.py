"""ロギング設定と（任意の）LangSmithトレーシング"""

import logging
import sys
import uuid
from functools import wraps
from typing import Any, Callable, TypeVar

# LangSmithはオプション（extras: tracing）
try:
    from langsmith import traceable

    LANGSMITH_AVAILABLE = True
except ImportError:
    LANGSMITH_AVAILABLE = False
    traceable = None  # type: ignore

F = TypeVar("F", bound=Callable[..., Any])

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# 外部ライブラリはWARNING以上のみ
_QUIET_LOGGERS = ("httpx", "httpcore", "googleapiclient", "urllib3")

_loggers: dict[str, logging.Logger] = {}


def get_logger(name: str) -> logging.Logger:
    """名前付きロガーを取得（通常は __name__）"""
    if name not in _loggers:
        _loggers[name] = logging.getLogger(name)
    return _loggers[name]


def setup_logging(level: int | str = logging.INFO) -> None:
    """
    サービス全体のロギングを設定

    uvicornのロガーもルートと同じ書式・出力先にそろえる。

    Args:
        level: ログレベル（"DEBUG" などの文字列も可）
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def is_langsmith_enabled() -> bool:
    """LangSmithが導入済みかつ設定で有効か"""
    if not LANGSMITH_AVAILABLE:
        return False

    from config.settings import get_settings

    settings = get_settings()
    return settings.LANGSMITH_TRACING and bool(settings.LANGSMITH_API_KEY)


def trace_run(name: str | None = None, run_type: str = "tool") -> Callable[[F], F]:
    """
    呼び出しをLangSmithでトレースするデコレータ

    無効時は関数をそのまま返す。
    呼び出しごとに新しいrun_idを振る（同時実行中のクリップが混ざらないように）。
    """
    def decorator(func: F) -> F:
        if not is_langsmith_enabled() or traceable is None:
            return func

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            traced_func = traceable(
                name=name or func.__name__,
                run_type=run_type,
                run_id=uuid.uuid4(),
            )(func)
            return traced_func(*args, **kwargs)

        return wrapper  # type: ignore

    return decorator


def trace_chain(name: str | None = None) -> Callable[[F], F]:
    """1リクエストの処理全体"""
    return trace_run(name=name, run_type="chain")


def trace_tool(name: str | None = None) -> Callable[[F], F]:
    """yt-dlp・メタデータ取得などの外部呼び出し"""
    return trace_run(name=name, run_type="tool")


class LogContext:
    """
    ログ行末尾の key=value 列

    Example:
        ctx = LogContext(video_id="abc123", section="*0:00:10-0:00:20")
        logger.info(f"[Clip] 開始 | {ctx}")
    """

    def __init__(self, **kwargs: Any):
        self._data = kwargs

    def __str__(self) -> str:
        return " | ".join(f"{k}={v!r}" for k, v in self._data.items())

    def update(self, **kwargs: Any) -> "LogContext":
        """項目を追加した新しいインスタンスを返す"""
        return LogContext(**{**self._data, **kwargs})
