"""リクエスト単位の一時ファイル管理"""

import time
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path

from src.domain.exceptions import IOFailureError
from src.infrastructure.logging_config import get_logger

logger = get_logger(__name__)


def default_token() -> str:
    """高精度タイムスタンプ + 短縮UUID"""
    return f"{time.time_ns()}-{uuid.uuid4().hex[:8]}"


def _safe(name: str) -> str:
    cleaned = "".join(c for c in (name or "") if c.isalnum() or c in ("-", "_"))
    return cleaned[:64] or "clip"


class ScratchSpace:
    """
    スクラッチディレクトリ上のファイルを払い出す

    ファイル名は <prefix>-<token><suffix>。tokenは注入されたID生成関数で作るため
    同時リクエスト間で衝突しない。
    """

    def __init__(
        self,
        root: Path | str,
        id_generator: Callable[[], str] = default_token,
    ):
        self.root = Path(root)
        self.id_generator = id_generator

    def ensure_root(self) -> None:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise IOFailureError(f"Cannot create scratch directory {self.root}: {e}") from e

    def allocate(self, prefix: str, suffix: str = ".mp4") -> Path:
        """
        未使用のパスを払い出す（ファイルはまだ作らない）

        Raises:
            IOFailureError: ディレクトリを作成できない
        """
        self.ensure_root()
        path = self.root / f"{_safe(prefix)}-{self.id_generator()}{suffix}"
        if path.exists():
            raise IOFailureError(f"Scratch path already in use: {path}")
        logger.debug(f"[Scratch] 割り当て: {path.name}")
        return path

    def release(self, path: Path) -> int:
        """
        パスと、同じ名前で始まる付随ファイル（.part / .ytdl / .fNNN.* など）を削除

        Returns:
            削除したファイル数
        """
        path = Path(path)
        stem = path.stem
        removed = 0
        if not path.parent.exists():
            return removed
        for candidate in path.parent.iterdir():
            if not candidate.is_file():
                continue
            if candidate.name == path.name or candidate.name.startswith(f"{stem}."):
                try:
                    candidate.unlink()
                    removed += 1
                except FileNotFoundError:
                    pass
                except OSError as e:
                    logger.warning(f"[Scratch] 削除失敗: {candidate.name} - {e}")
        if removed:
            logger.debug(f"[Scratch] 解放: {path.name} ({removed}ファイル)")
        return removed

    @contextmanager
    def managed(self, prefix: str, suffix: str = ".mp4") -> Iterator[Path]:
        """
        例外時だけ解放するスコープ

        正常終了時はファイルの所有権を呼び出し側（ClipArtifact）に渡す。
        """
        path = self.allocate(prefix, suffix)
        try:
            yield path
        except BaseException:
            self.release(path)
            raise

    def list_files(self) -> list[Path]:
        if not self.root.exists():
            return []
        return sorted(p for p in self.root.iterdir() if p.is_file())

    def purge_stale(self, max_age_sec: float) -> int:
        """
        一定時間より古い残骸を削除（起動時の掃除用）

        Returns:
            削除したファイル数
        """
        cutoff = time.time() - max_age_sec
        removed = 0
        for p in self.list_files():
            try:
                if p.stat().st_mtime < cutoff:
                    p.unlink()
                    removed += 1
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning(f"[Scratch] 古いファイルの削除失敗: {p.name} - {e}")
        if removed:
            logger.info(f"[Scratch] 古いファイルを{removed}件削除しました")
        return removed
