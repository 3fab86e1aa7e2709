"""CLI entry point for tap2tzx."""

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tap2tzx import __version__
from tap2tzx.config import ConfigError, get_default_config, load_config
from tap2tzx.converter import ConversionConfig, TapToTzxConverter, default_output_path
from tap2tzx.logger import ConvertLogger, LogConfig, VerboseLevel
from tap2tzx.tap import iter_tap_blocks
from tap2tzx.tzx import tzx_size
from tap2tzx.types import ExitCode, MalformedInputError

app = typer.Typer(help="ZX Spectrum のTAPイメージをTZX形式に変換するCLIツール")
console = Console()


def _resolve_verbose_level(verbose: int, quiet: bool, default: int) -> VerboseLevel:
    """CLIオプションと設定値から詳細ログレベルを決める"""
    if quiet:
        return VerboseLevel.QUIET
    level = verbose if verbose > 0 else default
    return VerboseLevel(max(VerboseLevel.QUIET, min(level, VerboseLevel.DEBUG)))


@app.command()
def convert(
    input_path: Annotated[Path, typer.Argument(help="入力TAPファイルパス")],
    output_path: Annotated[
        Path | None, typer.Argument(help="出力TZXファイルパス（省略時は拡張子を置き換え）")
    ] = None,
    overwrite: Annotated[
        bool | None,
        typer.Option("--overwrite/--no-overwrite", help="既存の出力ファイルを上書きする"),
    ] = None,
    keep_partial: Annotated[
        bool | None,
        typer.Option("--keep-partial/--discard-partial", help="失敗時に不完全な出力を残す"),
    ] = None,
    config_path: Annotated[
        Path | None, typer.Option("-c", "--config", help="設定ファイル（YAML）")
    ] = None,
    verbose: Annotated[int, typer.Option("-v", "--verbose", count=True, help="詳細ログ出力")] = 0,
    quiet: Annotated[bool, typer.Option("-q", "--quiet", help="エラー以外を出力しない")] = False,
    log_file: Annotated[Path | None, typer.Option(help="ログファイル出力先")] = None,
) -> None:
    """TAPファイルをTZXファイルに変換する"""
    try:
        settings = load_config(config_path) if config_path else get_default_config()
    except ConfigError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(ExitCode.CONFIG_ERROR) from e

    if output_path is None:
        output_path = default_output_path(input_path, settings.output.suffix)

    config = ConversionConfig(
        input_path=input_path,
        output_path=output_path,
        overwrite=settings.output.overwrite if overwrite is None else overwrite,
        keep_partial=settings.output.keep_partial if keep_partial is None else keep_partial,
    )
    log_config = LogConfig(
        verbose_level=_resolve_verbose_level(verbose, quiet, settings.logging.verbose),
        log_file=log_file or settings.logging.log_file,
    )

    with ConvertLogger(log_config) as logger:
        converter = TapToTzxConverter(config, logger)

        # 検証
        errors = converter.validate()
        if errors:
            for error in errors:
                console.print(f"[red]Error: {escape(error)}[/red]")
            raise typer.Exit(ExitCode.INVALID_INPUT)

        result = converter.run()

    if not result.success:
        console.print(f"[red]変換失敗: {escape(result.error_message)}[/red]")
        raise typer.Exit(result.exit_code)
    raise typer.Exit(ExitCode.SUCCESS)


@app.command()
def info(
    input_path: Annotated[Path, typer.Argument(help="解析対象のTAPファイルパス")],
) -> None:
    """TAPファイルのブロック構成を表示する"""
    if not input_path.is_file():
        console.print(f"[red]Error: ファイルが見つかりません: {escape(str(input_path))}[/red]")
        raise typer.Exit(ExitCode.INVALID_INPUT)

    try:
        tap = input_path.read_bytes()
    except OSError as e:
        console.print(f"[red]Error: ファイルを読み込めません: {escape(str(e))}[/red]")
        raise typer.Exit(ExitCode.ERROR) from e

    table = Table(title=f"TAP Blocks: {escape(input_path.name)}")
    table.add_column("#", justify="right")
    table.add_column("Offset", justify="right")
    table.add_column("Length", justify="right")
    table.add_column("Flag", justify="left")
    table.add_column("Checksum", justify="center")
    table.add_column("Content", justify="left")

    error: MalformedInputError | None = None
    block_count = 0
    try:
        for block in iter_tap_blocks(tap):
            block_count += 1
            if block.flag is None:
                table.add_row(str(block.index), str(block.offset), "0", "-", "-", "[dim]empty[/dim]")
                continue

            if block.is_header:
                flag = "header"
            elif block.flag == 0xFF:
                flag = "data"
            else:
                flag = f"0x{block.flag:02X}"
            checksum = "[green]OK[/green]" if block.checksum_ok else "[red]BAD[/red]"
            header = block.header
            content = f'{header.type_name} "{escape(header.name)}"' if header else ""
            table.add_row(
                str(block.index), str(block.offset), str(block.length), flag, checksum, content
            )
    except MalformedInputError as e:
        error = e

    console.print(table)

    if error is not None:
        console.print(f"[red]Error: {escape(str(error))}[/red]")
        raise typer.Exit(ExitCode.INVALID_INPUT)

    console.print(f"Blocks: {block_count}")
    console.print(f"TZX size: {tzx_size(tap)} bytes")
    raise typer.Exit(ExitCode.SUCCESS)


def version_callback(value: bool) -> None:
    """バージョン表示コールバック"""
    if value:
        typer.echo(f"tap2tzx {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="バージョンを表示する",
        ),
    ] = False,
) -> None:
    """tap2tzx CLI - ZX Spectrum TAPイメージをTZX形式に変換"""
    pass
