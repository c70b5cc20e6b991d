"""subprocess による外部コマンド実行"""

import subprocess
import threading
import time

from src.domain.entities import CommandResult
from src.domain.exceptions import CommandTimeoutError, ExternalToolError
from src.infrastructure.logging_config import get_logger

logger = get_logger(__name__)


class SubprocessCommandRunner:
    """
    1コマンド = 1プロセスを起動し、終了まで待つ

    呼び出し側からはブロッキング呼び出しに見える。待機中は poll_interval ごとに
    キャンセルトークンと経過時間を確認し、必要ならプロセスをkillする。
    """

    def __init__(self, poll_interval: float = 0.5):
        self.poll_interval = poll_interval

    def run(
        self,
        cmd: list[str],
        timeout_sec: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> CommandResult:
        logger.debug(f"[Command] 実行: {' '.join(cmd)}")
        started = time.monotonic()

        try:
            proc = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
            )
        except FileNotFoundError as e:
            logger.error(f"[Command] コマンドが見つかりません: {cmd[0]}")
            raise ExternalToolError(
                f"Command not found: {cmd[0]}", returncode=127, stderr=str(e)
            ) from e
        except OSError as e:
            logger.error(f"[Command] 起動失敗: {cmd[0]} - {e}")
            raise ExternalToolError(
                f"Failed to start {cmd[0]}: {e}", returncode=None, stderr=str(e)
            ) from e

        while True:
            try:
                stdout, stderr = proc.communicate(timeout=self.poll_interval)
                break
            except subprocess.TimeoutExpired:
                elapsed = time.monotonic() - started
                if cancel_event is not None and cancel_event.is_set():
                    stderr = self._kill(proc)
                    logger.warning(f"[Command] キャンセル: {cmd[0]} ({elapsed:.1f}秒)")
                    raise CommandTimeoutError(
                        f"{cmd[0]} was cancelled", returncode=proc.returncode, stderr=stderr
                    )
                if timeout_sec is not None and elapsed >= timeout_sec:
                    stderr = self._kill(proc)
                    logger.warning(f"[Command] タイムアウト: {cmd[0]} ({timeout_sec}秒)")
                    raise CommandTimeoutError(
                        f"{cmd[0]} timed out after {timeout_sec}s",
                        returncode=proc.returncode,
                        stderr=stderr,
                    )

        duration = time.monotonic() - started
        logger.info(f"[Command] 終了: {cmd[0]} exit={proc.returncode} ({duration:.1f}秒)")

        return CommandResult(
            returncode=proc.returncode,
            stdout=stdout or "",
            stderr=stderr or "",
            duration_sec=duration,
        )

    @staticmethod
    def _kill(proc: subprocess.Popen) -> str:
        """プロセスを停止して回収し、残りのstderrを返す"""
        proc.kill()
        _, stderr = proc.communicate()
        return stderr or ""
