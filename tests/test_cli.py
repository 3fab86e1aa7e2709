"""CLIエントリポイントのテスト"""

from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from tap2tzx.cli import _resolve_verbose_level, app
from tap2tzx.converter import ConversionResult
from tap2tzx.logger import VerboseLevel
from tap2tzx.types import ExitCode

runner = CliRunner()


class TestMainCommand:
    """メインコマンドのテスト"""

    @pytest.mark.parametrize(
        "args,expected_in_output",
        [
            pytest.param(["--help"], "TZX", id="正常系: ヘルプ表示"),
            pytest.param(["--version"], "0.1.0", id="正常系: バージョン表示"),
        ],
    )
    def test_main_options(self, args: list[str], expected_in_output: str) -> None:
        result = runner.invoke(app, args)
        assert result.exit_code == 0
        assert expected_in_output in result.stdout


class TestConvertCommand:
    """convertコマンドのテスト"""

    def test_convert_default_output(self, tap_file: Path) -> None:
        """出力パス省略時は拡張子を.tzxに置き換えたパスに出力する"""
        result = runner.invoke(app, ["convert", str(tap_file)])

        assert result.exit_code == ExitCode.SUCCESS
        assert "Successfully converted 2 blocks!" in result.stdout
        assert tap_file.with_suffix(".tzx").read_bytes().startswith(b"ZXTape!\x1a\x01\x14")

    def test_convert_explicit_output(self, tap_file: Path, tmp_path: Path) -> None:
        """出力パスを指定できる"""
        output = tmp_path / "out" / "custom.tzx"
        output.parent.mkdir()

        result = runner.invoke(app, ["convert", str(tap_file), str(output)])

        assert result.exit_code == ExitCode.SUCCESS
        assert output.exists()

    def test_convert_quiet(self, tap_file: Path) -> None:
        """--quietでは何も出力しない"""
        result = runner.invoke(app, ["convert", "-q", str(tap_file)])

        assert result.exit_code == ExitCode.SUCCESS
        assert result.stdout == ""

    def test_convert_verbose_lists_blocks(self, tap_file: Path) -> None:
        """-vでブロック一覧を表示する"""
        result = runner.invoke(app, ["convert", "-v", str(tap_file)])

        assert result.exit_code == ExitCode.SUCCESS
        assert '"ManicMiner"' in result.stdout

    def test_convert_missing_input(self, tmp_path: Path) -> None:
        """存在しない入力ファイルでエラー終了"""
        result = runner.invoke(app, ["convert", str(tmp_path / "nonexistent.tap")])

        assert result.exit_code == ExitCode.INVALID_INPUT
        assert "Error" in result.stdout

    def test_convert_refuses_to_overwrite_input(self, tap_file: Path) -> None:
        """入力と同じ出力パスは拒否する"""
        before = tap_file.read_bytes()

        result = runner.invoke(app, ["convert", str(tap_file), str(tap_file)])

        assert result.exit_code == ExitCode.INVALID_INPUT
        assert tap_file.read_bytes() == before

    def test_convert_no_overwrite(self, tap_file: Path) -> None:
        """--no-overwriteで既存の出力がある場合はエラー終了"""
        output = tap_file.with_suffix(".tzx")
        output.write_bytes(b"keep me")

        result = runner.invoke(app, ["convert", "--no-overwrite", str(tap_file)])

        assert result.exit_code == ExitCode.INVALID_INPUT
        assert output.read_bytes() == b"keep me"

    def test_convert_malformed_input(self, tmp_path: Path) -> None:
        """不正なTAPでは失敗し、出力ファイルを残さない"""
        tap_path = tmp_path / "broken.tap"
        tap_path.write_bytes(b"\x13\x00\x00")

        result = runner.invoke(app, ["convert", str(tap_path)])

        assert result.exit_code == ExitCode.INVALID_INPUT
        assert "変換失敗" in result.stdout
        assert not tap_path.with_suffix(".tzx").exists()

    def test_convert_config_file(self, tap_file: Path, tmp_path: Path) -> None:
        """設定ファイルの出力拡張子が使われる"""
        config_file = tmp_path / "tap2tzx.yml"
        config_file.write_text("output:\n  suffix: .cdt\n", encoding="utf-8")

        result = runner.invoke(app, ["convert", "--config", str(config_file), str(tap_file)])

        assert result.exit_code == ExitCode.SUCCESS
        assert tap_file.with_suffix(".cdt").exists()

    def test_convert_cli_overrides_config(self, tap_file: Path, tmp_path: Path) -> None:
        """CLIオプションは設定ファイルより優先される"""
        config_file = tmp_path / "tap2tzx.yml"
        config_file.write_text("output:\n  overwrite: false\n", encoding="utf-8")
        tap_file.with_suffix(".tzx").write_bytes(b"old")

        result = runner.invoke(
            app, ["convert", "--config", str(config_file), "--overwrite", str(tap_file)]
        )

        assert result.exit_code == ExitCode.SUCCESS

    def test_convert_invalid_config(self, tap_file: Path, tmp_path: Path) -> None:
        """不正な設定ファイルではCONFIG_ERRORで終了"""
        result = runner.invoke(
            app, ["convert", "--config", str(tmp_path / "missing.yml"), str(tap_file)]
        )

        assert result.exit_code == ExitCode.CONFIG_ERROR

    def test_convert_config_value_type_error(self, tap_file: Path, tmp_path: Path) -> None:
        """設定値の型が不正な場合もCONFIG_ERRORで終了し、変換しない"""
        config_file = tmp_path / "tap2tzx.yml"
        config_file.write_text("logging:\n  verbose: loud\n", encoding="utf-8")

        result = runner.invoke(app, ["convert", "--config", str(config_file), str(tap_file)])

        assert result.exit_code == ExitCode.CONFIG_ERROR
        assert "logging.verbose" in result.stdout
        assert not tap_file.with_suffix(".tzx").exists()

    def test_convert_string_false_does_not_overwrite(self, tap_file: Path, tmp_path: Path) -> None:
        """文字列の "false" で既存の出力が上書きされない"""
        config_file = tmp_path / "tap2tzx.yml"
        config_file.write_text('output:\n  overwrite: "false"\n', encoding="utf-8")
        output = tap_file.with_suffix(".tzx")
        output.write_bytes(b"keep me")

        result = runner.invoke(app, ["convert", "--config", str(config_file), str(tap_file)])

        assert result.exit_code == ExitCode.CONFIG_ERROR
        assert output.read_bytes() == b"keep me"

    def test_convert_log_file(self, tap_file: Path, tmp_path: Path) -> None:
        """--log-fileでログファイルに出力する"""
        log_file = tmp_path / "convert.log"

        result = runner.invoke(app, ["convert", "--log-file", str(log_file), str(tap_file)])

        assert result.exit_code == ExitCode.SUCCESS
        assert "Successfully converted 2 blocks!" in log_file.read_text(encoding="utf-8")

    def test_convert_sink_failure(self, tap_file: Path) -> None:
        """書き込み失敗時はERRORで終了（モック使用）"""
        mock_result = ConversionResult(
            success=False,
            output_path=None,
            error_message="出力への書き込みに失敗しました",
            exit_code=ExitCode.ERROR,
        )
        with patch("tap2tzx.cli.TapToTzxConverter") as mock_converter_cls:
            mock_converter = mock_converter_cls.return_value
            mock_converter.validate.return_value = []
            mock_converter.run.return_value = mock_result

            result = runner.invoke(app, ["convert", str(tap_file)])

        assert result.exit_code == ExitCode.ERROR
        assert "変換失敗" in result.stdout


class TestInfoCommand:
    """infoコマンドのテスト"""

    def test_info(self, tap_file: Path) -> None:
        """ブロック一覧とTZXサイズを表示する"""
        result = runner.invoke(app, ["info", str(tap_file)])

        assert result.exit_code == ExitCode.SUCCESS
        assert "ManicMiner" in result.stdout
        assert "header" in result.stdout
        assert "data" in result.stdout
        assert "Blocks: 2" in result.stdout
        assert "TZX size: 44 bytes" in result.stdout

    def test_info_empty_block(self, tmp_path: Path) -> None:
        """空ブロックも一覧に含める"""
        tap_path = tmp_path / "empty.tap"
        tap_path.write_bytes(b"\x00\x00")

        result = runner.invoke(app, ["info", str(tap_path)])

        assert result.exit_code == ExitCode.SUCCESS
        assert "empty" in result.stdout
        assert "Blocks: 1" in result.stdout
        assert "TZX size: 10 bytes" in result.stdout

    def test_info_malformed(self, tmp_path: Path, manic_miner_tap: bytes) -> None:
        """不正なTAPでは走査済みブロックとエラーを表示する"""
        tap_path = tmp_path / "broken.tap"
        tap_path.write_bytes(manic_miner_tap + b"\x01")

        result = runner.invoke(app, ["info", str(tap_path)])

        assert result.exit_code == ExitCode.INVALID_INPUT
        assert "ManicMiner" in result.stdout
        assert "Error" in result.stdout

    def test_info_unreadable_file(self, tap_file: Path) -> None:
        """読み込めないファイルはエラー表示してERRORで終了"""
        with patch.object(Path, "read_bytes", side_effect=PermissionError("permission denied")):
            result = runner.invoke(app, ["info", str(tap_file)])

        assert result.exit_code == ExitCode.ERROR
        assert "Error" in result.stdout
        assert "permission denied" in result.stdout

    def test_info_missing_file(self, tmp_path: Path) -> None:
        """存在しないファイルでエラー終了"""
        result = runner.invoke(app, ["info", str(tmp_path / "none.tap")])

        assert result.exit_code == ExitCode.INVALID_INPUT


class TestResolveVerboseLevel:
    """_resolve_verbose_level のテスト"""

    @pytest.mark.parametrize(
        "verbose, quiet, default, expected",
        [
            pytest.param(0, False, 0, VerboseLevel.NORMAL, id="正常系: デフォルト"),
            pytest.param(1, False, 0, VerboseLevel.VERBOSE, id="正常系: -v"),
            pytest.param(5, False, 0, VerboseLevel.DEBUG, id="正常系: 上限で丸める"),
            pytest.param(0, False, 2, VerboseLevel.DEBUG, id="正常系: 設定ファイルの値"),
            pytest.param(2, True, 0, VerboseLevel.QUIET, id="正常系: -qが優先"),
        ],
    )
    def test_resolve(
        self, verbose: int, quiet: bool, default: int, expected: VerboseLevel
    ) -> None:
        assert _resolve_verbose_level(verbose, quiet, default) == expected
