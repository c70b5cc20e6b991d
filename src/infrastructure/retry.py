"""リトライ戦略"""

from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.domain.exceptions import UpstreamUnavailableError


def metadata_retry(max_attempts: int = 1):
    """
    メタデータ取得用デコレータ

    max_attempts=1 の場合はリトライしない（1回の失敗をそのまま返す）。
    最後の例外はそのまま再送出する。
    """
    return retry(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_exponential(multiplier=1, min=1, max=5),
        retry=retry_if_exception_type(UpstreamUnavailableError),
        reraise=True,
    )
