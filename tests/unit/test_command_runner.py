"""SubprocessCommandRunnerのテスト（実プロセスを起動）"""

import sys
import threading

import pytest

from src.domain.exceptions import CommandTimeoutError, ExternalToolError
from src.infrastructure.command_runner import SubprocessCommandRunner


@pytest.fixture
def runner() -> SubprocessCommandRunner:
    return SubprocessCommandRunner(poll_interval=0.05)


class TestSubprocessCommandRunner:
    """外部コマンド実行"""

    def test_captures_output(self, runner: SubprocessCommandRunner) -> None:
        result = runner.run(
            [sys.executable, "-c", "import sys; print('out'); print('err', file=sys.stderr)"]
        )
        assert result.ok
        assert result.stdout.strip() == "out"
        assert result.stderr.strip() == "err"

    def test_nonzero_exit_is_not_raised(self, runner: SubprocessCommandRunner) -> None:
        """非ゼロ終了は結果として返す"""
        result = runner.run([sys.executable, "-c", "import sys; sys.exit(3)"])
        assert result.returncode == 3
        assert not result.ok

    def test_timeout_kills_process(self, runner: SubprocessCommandRunner) -> None:
        with pytest.raises(CommandTimeoutError, match="timed out"):
            runner.run([sys.executable, "-c", "import time; time.sleep(30)"], timeout_sec=0.3)

    def test_cancel_event_kills_process(self, runner: SubprocessCommandRunner) -> None:
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(CommandTimeoutError, match="cancelled"):
            runner.run(
                [sys.executable, "-c", "import time; time.sleep(30)"],
                cancel_event=cancel,
            )

    def test_missing_binary(self, runner: SubprocessCommandRunner) -> None:
        with pytest.raises(ExternalToolError) as exc_info:
            runner.run(["definitely-not-a-real-binary-xyz"])
        assert exc_info.value.returncode == 127
