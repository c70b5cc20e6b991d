"""外部コマンド実行インターフェース"""

import threading
from typing import Protocol

from src.domain.entities import CommandResult


class CommandRunner(Protocol):
    """外部コマンドを1回実行して終了を待つ"""

    def run(
        self,
        cmd: list[str],
        timeout_sec: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> CommandResult:
        """
        コマンドを実行し、stdout/stderrと終了コードを返す

        Args:
            cmd: 実行するコマンドと引数
            timeout_sec: 最大待機時間（Noneで無制限）
            cancel_event: セットされたらプロセスを停止する

        Returns:
            CommandResult（非ゼロ終了でも例外にはしない）

        Raises:
            CommandTimeoutError: タイムアウトまたはキャンセル
            ExternalToolError: コマンドが起動できない
        """
        ...
