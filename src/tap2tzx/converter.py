"""TAP→TZXファイル変換モジュール

変換コア（tap2tzx.tzx）をファイル単位で実行するためのオーケストレーターを定義する。
出力パスの決定、入力ファイルの上書き防止、入力の一括読み込み、
バッファ付き書き込み、失敗時の不完全な出力の削除を担当する。
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from tap2tzx.config import DEFAULT_OUTPUT_SUFFIX
from tap2tzx.logger import ConvertLogger, LogConfig, VerboseLevel
from tap2tzx.tap import iter_tap_blocks
from tap2tzx.tzx import transcode
from tap2tzx.types import ConversionError, ExitCode, MalformedInputError

TAP_SUFFIX = ".tap"


def default_output_path(input_path: Path, suffix: str = DEFAULT_OUTPUT_SUFFIX) -> Path:
    """入力TAPパスから既定の出力パスを求める

    Args:
        input_path: 入力TAPファイルパス
        suffix: 出力ファイルの拡張子（ドット付き）

    Returns:
        拡張子を置き換えたパス
    """
    return input_path.with_suffix(suffix)


@dataclass(frozen=True)
class ConversionConfig:
    """変換設定

    Attributes:
        input_path: 入力TAPファイルパス
        output_path: 出力TZXファイルパス
        overwrite: 既存の出力ファイルを上書きするか
        keep_partial: 変換失敗時に不完全な出力ファイルを残すか
    """

    input_path: Path
    output_path: Path
    overwrite: bool = True
    keep_partial: bool = False


@dataclass
class ConversionResult:
    """変換結果

    Attributes:
        success: 変換が成功したか
        output_path: 生成されたTZXファイルパス（失敗時はNone）
        block_count: 走査したTAPブロック数（長さ0のブロックを含む）
        error_message: エラーメッセージ（成功時は空文字列）
        exit_code: CLIの終了コード
        bytes_read: 入力ファイルのサイズ
        bytes_written: 出力ファイルのサイズ
    """

    success: bool
    output_path: Path | None
    block_count: int = 0
    error_message: str = ""
    exit_code: ExitCode = ExitCode.SUCCESS
    bytes_read: int = 0
    bytes_written: int = 0


class TapToTzxConverter:
    """TAP→TZXファイル変換オーケストレーター

    使用例:
        >>> config = ConversionConfig(
        ...     input_path=Path("game.tap"),
        ...     output_path=Path("game.tzx"),
        ... )
        >>> converter = TapToTzxConverter(config)
        >>> if not converter.validate():
        ...     result = converter.run()
    """

    def __init__(self, config: ConversionConfig, logger: ConvertLogger | None = None) -> None:
        """変換器を初期化する

        Args:
            config: 変換設定
            logger: ロガー（Noneの場合はQUIETレベルのロガーを使用）
        """
        self._config = config
        self._logger = logger or ConvertLogger(LogConfig(verbose_level=VerboseLevel.QUIET))

    @property
    def config(self) -> ConversionConfig:
        """変換設定を取得する"""
        return self._config

    def validate(self) -> list[str]:
        """設定を検証し、エラーメッセージのリストを返す

        Returns:
            エラーメッセージのリスト（エラーがない場合は空リスト）
        """
        errors: list[str] = []
        input_path = self._config.input_path
        output_path = self._config.output_path

        if not input_path.exists():
            errors.append(f"入力ファイルが見つかりません: {input_path}")
            return errors

        if not input_path.is_file():
            errors.append(f"入力はファイルである必要があります: {input_path}")
            return errors

        if output_path.exists():
            if input_path.resolve() == output_path.resolve():
                errors.append(f"入力ファイルは上書きできません: {input_path}")
            elif output_path.is_dir():
                errors.append(f"出力先がディレクトリです: {output_path}")
            elif not self._config.overwrite:
                errors.append(f"出力ファイルが既に存在します: {output_path}")

        return errors

    def run(self) -> ConversionResult:
        """変換を実行する

        入力ファイル全体をメモリに読み込み、TZX形式で出力ファイルに書き出す。

        Returns:
            変換結果
        """
        errors = self.validate()
        if errors:
            return ConversionResult(
                success=False,
                output_path=None,
                error_message=errors[0],
                exit_code=ExitCode.INVALID_INPUT,
            )

        input_path = self._config.input_path
        output_path = self._config.output_path

        if input_path.suffix.lower() != TAP_SUFFIX:
            self._logger.warning(f"拡張子が {TAP_SUFFIX} ではありません: {input_path.name}")

        self._logger.info(f"Converting TAP {input_path} to TZX at {output_path}")

        try:
            tap = input_path.read_bytes()
        except OSError as e:
            return ConversionResult(
                success=False,
                output_path=None,
                error_message=f"入力ファイルを読み込めません: {e}",
                exit_code=ExitCode.ERROR,
            )
        self._logger.debug(f"読み込み: {input_path} ({len(tap)} bytes)")

        try:
            sink = open(output_path, "wb")  # noqa: SIM115
        except OSError as e:
            return ConversionResult(
                success=False,
                output_path=None,
                error_message=f"出力ファイルを作成できません: {e}",
                exit_code=ExitCode.ERROR,
                bytes_read=len(tap),
            )

        try:
            with sink:
                block_count = transcode(tap, sink)
        except ConversionError as e:
            self._discard_partial_output()
            exit_code = (
                ExitCode.INVALID_INPUT if isinstance(e, MalformedInputError) else ExitCode.ERROR
            )
            return ConversionResult(
                success=False,
                output_path=None,
                error_message=str(e),
                exit_code=exit_code,
                bytes_read=len(tap),
            )
        except OSError as e:
            self._discard_partial_output()
            return ConversionResult(
                success=False,
                output_path=None,
                error_message=f"出力ファイルを書き込めません: {e}",
                exit_code=ExitCode.ERROR,
                bytes_read=len(tap),
            )

        if self._logger.config.verbose_level >= VerboseLevel.VERBOSE:
            for block in iter_tap_blocks(tap):
                self._logger.log_block(block)

        result = ConversionResult(
            success=True,
            output_path=output_path,
            block_count=block_count,
            bytes_read=len(tap),
            bytes_written=output_path.stat().st_size,
        )
        self._logger.log_summary(result)
        return result

    def _discard_partial_output(self) -> None:
        """変換失敗時に不完全な出力ファイルを削除する"""
        output_path = self._config.output_path
        if self._config.keep_partial:
            self._logger.warning(f"不完全な出力ファイルを残しました: {output_path}")
            return
        try:
            output_path.unlink(missing_ok=True)
        except OSError as e:
            self._logger.warning(f"不完全な出力ファイルを削除できません: {output_path}: {e}")
            return
        self._logger.debug(f"不完全な出力ファイルを削除: {output_path}")
