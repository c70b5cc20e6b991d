"""外部コマンドの同時実行数制限"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from src.domain.exceptions import CapacityExceededError
from src.infrastructure.logging_config import get_logger

logger = get_logger(__name__)


class ConcurrencyLimiter:
    """BoundedSemaphore による上限付きスロット"""

    def __init__(self, max_concurrent: int = 2, queue_timeout_sec: float | None = 30):
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self.max_concurrent = max_concurrent
        self.queue_timeout_sec = queue_timeout_sec
        self._semaphore = threading.BoundedSemaphore(max_concurrent)
        self._lock = threading.Lock()
        self._active = 0

    @property
    def active(self) -> int:
        with self._lock:
            return self._active

    @contextmanager
    def slot(self) -> Iterator[None]:
        """
        スロットを1つ確保する

        Raises:
            CapacityExceededError: queue_timeout_sec 以内に空かなかった
        """
        acquired = self._semaphore.acquire(timeout=self.queue_timeout_sec)
        if not acquired:
            logger.warning(
                f"[Limiter] 同時実行上限({self.max_concurrent})で待機タイムアウト"
            )
            raise CapacityExceededError("Server is busy, try again later")
        with self._lock:
            self._active += 1
        try:
            yield
        finally:
            with self._lock:
                self._active -= 1
            self._semaphore.release()
