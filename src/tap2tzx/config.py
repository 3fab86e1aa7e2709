"""Configuration module for tap2tzx."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_OUTPUT_SUFFIX = ".tzx"


class ConfigError(Exception):
    """設定ファイル読み込みエラー"""

    pass


@dataclass(frozen=True)
class OutputConfig:
    """出力ファイル設定"""

    suffix: str = DEFAULT_OUTPUT_SUFFIX
    overwrite: bool = True
    keep_partial: bool = False


@dataclass(frozen=True)
class LoggingConfig:
    """ログ設定"""

    verbose: int = 0
    log_file: Path | None = None


@dataclass(frozen=True)
class Tap2TzxConfig:
    """ルート設定"""

    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: Path) -> Tap2TzxConfig:
    """設定ファイルを読み込む

    Args:
        path: 設定ファイルパス

    Returns:
        Tap2TzxConfig: 読み込んだ設定（デフォルトとマージ済み）

    Raises:
        ConfigError: ファイル読み込みまたはパースエラー
    """
    if not path.exists():
        raise ConfigError(f"設定ファイルが見つかりません: {path}")

    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML解析エラー: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError("設定ファイルはYAMLのマッピング形式である必要があります")

    default = get_default_config()

    return Tap2TzxConfig(
        output=_merge_output_config(data.get("output", {}), default.output),
        logging=_merge_logging_config(data.get("logging", {}), default.logging),
    )


def get_default_config() -> Tap2TzxConfig:
    """デフォルト設定を取得する"""
    return Tap2TzxConfig()


def _merge_output_config(data: dict[str, Any], default: OutputConfig) -> OutputConfig:
    """出力設定をマージする"""
    if not isinstance(data, dict):
        return default
    suffix = data.get("suffix", default.suffix)
    if not isinstance(suffix, str) or not suffix.startswith(".") or len(suffix) < 2:
        raise ConfigError(f"output.suffix はドット付きの拡張子である必要があります: {suffix!r}")
    return OutputConfig(
        suffix=suffix,
        overwrite=_get_bool(data, "output.overwrite", "overwrite", default.overwrite),
        keep_partial=_get_bool(data, "output.keep_partial", "keep_partial", default.keep_partial),
    )


def _merge_logging_config(data: dict[str, Any], default: LoggingConfig) -> LoggingConfig:
    """ログ設定をマージする"""
    if not isinstance(data, dict):
        return default
    verbose = data.get("verbose", default.verbose)
    # boolはintのサブクラスのため明示的に除外する
    if not isinstance(verbose, int) or isinstance(verbose, bool):
        raise ConfigError(f"logging.verbose は整数である必要があります: {verbose!r}")
    log_file = data.get("log_file")
    return LoggingConfig(
        verbose=verbose,
        log_file=Path(log_file) if log_file else default.log_file,
    )


def _get_bool(data: dict[str, Any], name: str, key: str, default: bool) -> bool:
    """真偽値の設定項目を取得する

    Args:
        data: 設定セクションのマッピング
        name: エラーメッセージ用の項目名
        key: セクション内のキー
        default: 未指定時の値

    Returns:
        設定値

    Raises:
        ConfigError: 値が真偽値でない場合（"false" のような文字列を含む）
    """
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"{name} は true/false である必要があります: {value!r}")
    return value
