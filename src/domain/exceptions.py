"""ドメイン固有の例外定義"""


class ClipCutterError(Exception):
    """基底例外クラス"""

    http_status: int = 500


class InvalidInputError(ClipCutterError):
    """URLや時刻の入力不正"""

    http_status = 400


class MissingParametersError(InvalidInputError):
    """必須パラメータの欠落"""

    pass


class InvalidUrlError(InvalidInputError):
    """URLから動画IDを抽出できない"""

    pass


class UpstreamUnavailableError(ClipCutterError):
    """メタデータ取得エラー"""

    pass


class ExternalToolError(ClipCutterError):
    """外部コマンド（yt-dlp）の異常終了"""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class CommandTimeoutError(ExternalToolError):
    """外部コマンドのタイムアウト・キャンセル"""

    pass


class IOFailureError(ClipCutterError):
    """一時ファイルの読み書きエラー"""

    pass


class CapacityExceededError(ClipCutterError):
    """同時実行数の上限に達し、待機もタイムアウト"""

    http_status = 503
