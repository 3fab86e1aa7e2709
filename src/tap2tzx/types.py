"""共通型定義

CLIの終了コードと、TAP→TZX変換コアが送出する例外階層を定義する。
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """CLIの終了コード"""

    SUCCESS = 0
    ERROR = 1
    INVALID_INPUT = 2
    CONFIG_ERROR = 3


class ConversionError(Exception):
    """変換コアが送出する例外の基底クラス"""

    pass


class MalformedInputError(ConversionError):
    """TAPデータが不正な場合に発生する例外

    長さプレフィックスの途中で入力が終わっている場合に送出される。

    Attributes:
        offset: 問題を検出した入力バッファ上のオフセット
    """

    def __init__(self, offset: int, message: str | None = None) -> None:
        """オフセットを指定して初期化する

        Args:
            offset: 問題を検出した入力バッファ上のオフセット
            message: エラーメッセージ（Noneの場合は既定の文言）
        """
        self.offset = offset
        if message is None:
            message = f"不正なTAPデータ: オフセット {offset} で2バイトの長さが読み取れません"
        super().__init__(message)


class PayloadOverrunError(MalformedInputError):
    """ブロック長が入力の残りバイト数を超えている場合に発生する例外

    Attributes:
        offset: ブロックの長さプレフィックスのオフセット
        length: 宣言されたペイロード長
        available: 長さプレフィックス以降に残っているバイト数
    """

    def __init__(self, offset: int, length: int, available: int) -> None:
        """ブロック情報を指定して初期化する

        Args:
            offset: ブロックの長さプレフィックスのオフセット
            length: 宣言されたペイロード長
            available: 長さプレフィックス以降に残っているバイト数
        """
        self.length = length
        self.available = available
        super().__init__(
            offset,
            f"不正なTAPデータ: オフセット {offset} のブロック長 {length} が"
            f"残り {available} バイトを超えています",
        )


class SinkError(ConversionError):
    """出力先への書き込みに失敗した場合に発生する例外

    Attributes:
        cause: 出力先が送出した元の例外
    """

    def __init__(self, cause: OSError) -> None:
        """元の例外を指定して初期化する

        Args:
            cause: 出力先が送出した元の例外
        """
        self.cause = cause
        super().__init__(f"出力への書き込みに失敗しました: {cause}")
