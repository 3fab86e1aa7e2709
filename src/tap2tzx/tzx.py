"""TZX出力モジュール

TAPデータを読み込み、TZX 1.20形式の標準速度データブロック(ID 0x10)の列として
出力先へ書き出す。

TZXファイル構造:
- シグネチャ "ZXTape!" + 0x1A (8バイト)
- メジャーバージョン 1, マイナーバージョン 20 (2バイト)
- ブロックの列

標準速度データブロック:
    +0  ブロックID 0x10 (1バイト)
    +1  ブロック後のポーズ (ミリ秒, 2バイト, リトルエンディアン)
    +3  データ長 (2バイト, リトルエンディアン)
    +5  データ
"""

from typing import BinaryIO

from tap2tzx.tap import iter_tap_blocks
from tap2tzx.types import SinkError

TZX_SIGNATURE = b"ZXTape!\x1a"
TZX_MAJOR_VERSION = 1
TZX_MINOR_VERSION = 20
TZX_HEADER = TZX_SIGNATURE + bytes([TZX_MAJOR_VERSION, TZX_MINOR_VERSION])

STANDARD_SPEED_BLOCK_ID = 0x10
PAUSE_AFTER_BLOCK_MS = 1000

# ブロックID + ポーズ
TZX_BLOCK_PREFIX = bytes([STANDARD_SPEED_BLOCK_ID]) + PAUSE_AFTER_BLOCK_MS.to_bytes(2, "little")


def _write(sink: BinaryIO, data: bytes) -> None:
    """出力先へ書き込む

    非バッファの出力先は一部しか受け付けないことがあるため、全バイトを書き終えるまで繰り返す。

    Raises:
        SinkError: 出力先が書き込みに失敗した場合
    """
    view = memoryview(data)
    while view:
        try:
            written = sink.write(view)
        except OSError as e:
            raise SinkError(e) from e
        if not written:
            message = f"出力先が書き込みを受け付けません（残り {len(view)} バイト）"
            raise SinkError(OSError(message))
        view = view[written:]


def write_tzx_header(sink: BinaryIO) -> None:
    """TZXファイルヘッダー（シグネチャとバージョン）を書き込む

    Args:
        sink: 出力先

    Raises:
        SinkError: 書き込みに失敗した場合
    """
    _write(sink, TZX_HEADER)


def write_tzx_block(sink: BinaryIO, length_bytes: bytes, payload: bytes) -> None:
    """標準速度データブロックを1つ書き込む

    データ長は再計算せず、TAPの長さプレフィックスをそのまま書き込む。

    Args:
        sink: 出力先
        length_bytes: TAPブロックの長さプレフィックス（2バイト）
        payload: ブロックのデータ

    Raises:
        SinkError: 書き込みに失敗した場合
    """
    _write(sink, TZX_BLOCK_PREFIX)
    _write(sink, length_bytes)
    _write(sink, payload)


def transcode(tap: bytes, sink: BinaryIO) -> int:
    """TAPデータをTZX形式に変換して出力先へ書き込む

    ヘッダーは入力が空でも必ず書き込む。長さ0のTAPブロックは出力しないが、
    戻り値のブロック数には含める。
    変換が例外で中断された場合、出力先の内容は不完全なため破棄すること。

    出力先はバッファリングされたライターを渡すことを推奨する。

    Args:
        tap: TAPデータ全体
        sink: 書き込み可能なバイナリ出力先

    Returns:
        走査したTAPブロック数（長さ0のブロックを含む）

    Raises:
        MalformedInputError: TAPデータが途中で切れている場合
        PayloadOverrunError: ブロック長が残りバイト数を超えている場合
        SinkError: 出力先への書き込みに失敗した場合
    """
    write_tzx_header(sink)

    block_count = 0
    for block in iter_tap_blocks(tap):
        if block.length != 0:
            write_tzx_block(sink, block.length_bytes, block.payload)
        block_count += 1

    try:
        sink.flush()
    except OSError as e:
        raise SinkError(e) from e

    return block_count


def tzx_size(tap: bytes) -> int:
    """TAPデータを変換した場合のTZXサイズを計算する

    Args:
        tap: TAPデータ全体

    Returns:
        出力されるTZXのバイト数

    Raises:
        MalformedInputError: TAPデータが不正な場合
    """
    size = len(TZX_HEADER)
    for block in iter_tap_blocks(tap):
        if block.length != 0:
            size += len(TZX_BLOCK_PREFIX) + len(block.length_bytes) + block.length
    return size
