"""TAPイメージ解析モジュール

ZX Spectrum のTAP形式（2バイト長プレフィックス付きブロックの連続）を
先頭から走査し、ブロック単位で取り出す機能を提供する。
ROMのSAVEルーチンが書き出すヘッダーブロックの解読とチェックサム検証も行う。

TAPブロック構造:
- 長さ (2バイト, リトルエンディアン)
- ペイロード (長さ分のバイト列)

ROMが保存したブロックのペイロード:
- フラグ (1バイト): 0x00 = ヘッダー, 0xFF = データ
- 本体
- チェックサム (1バイト): フラグを含む全バイトのXOR
"""

from __future__ import annotations

import struct
from collections.abc import Iterator
from dataclasses import dataclass
from functools import reduce
from operator import xor

from tap2tzx.types import MalformedInputError, PayloadOverrunError

# 長さプレフィックスのサイズ（バイト）
LENGTH_PREFIX_SIZE = 2

HEADER_FLAG = 0x00
DATA_FLAG = 0xFF

# フラグ + 17バイトのヘッダー本体 + チェックサム
HEADER_BLOCK_LENGTH = 19

SPECTRUM_FILE_TYPES: dict[int, str] = {
    0: "Program",
    1: "Number array",
    2: "Character array",
    3: "Bytes",
}


def read_le_u16(data: bytes | memoryview, pos: int) -> int:
    """指定位置からリトルエンディアンの16ビット符号なし整数を読み取る

    Args:
        data: 読み取り元のバイト列
        pos: 読み取り開始オフセット

    Returns:
        読み取った整数値

    Raises:
        MalformedInputError: 2バイト未満しか残っていない場合
    """
    if pos + LENGTH_PREFIX_SIZE > len(data):
        raise MalformedInputError(pos)
    return struct.unpack_from("<H", data, pos)[0]


@dataclass(frozen=True)
class SpectrumHeader:
    """ROMヘッダーブロックの内容

    Attributes:
        file_type: ファイル種別 (0=Program, 1=Number array, 2=Character array, 3=Bytes)
        name: ファイル名（末尾の空白を除去済み）
        data_length: 後続データブロックの長さ
        param1: パラメータ1（Programなら自動実行行、Bytesならロードアドレス）
        param2: パラメータ2（Programなら変数領域の開始位置）
    """

    file_type: int
    name: str
    data_length: int
    param1: int
    param2: int

    @property
    def type_name(self) -> str:
        """ファイル種別の表示名を返す"""
        return SPECTRUM_FILE_TYPES.get(self.file_type, f"Unknown({self.file_type})")


def decode_spectrum_header(payload: bytes) -> SpectrumHeader | None:
    """ペイロードをROMヘッダーとして解読する

    Args:
        payload: TAPブロックのペイロード

    Returns:
        ヘッダーブロックの場合はSpectrumHeader、それ以外はNone
    """
    if len(payload) != HEADER_BLOCK_LENGTH or payload[0] != HEADER_FLAG:
        return None
    name = payload[2:12].decode("ascii", errors="replace").rstrip()
    data_length, param1, param2 = struct.unpack_from("<HHH", payload, 12)
    return SpectrumHeader(
        file_type=payload[1],
        name=name,
        data_length=data_length,
        param1=param1,
        param2=param2,
    )


@dataclass(frozen=True)
class TapBlock:
    """TAPブロック

    Attributes:
        index: 先頭から数えたブロック番号（0始まり）
        offset: 長さプレフィックスのオフセット
        length: ペイロード長
        length_bytes: 入力から読み取った長さプレフィックスの生バイト列
        payload: ペイロード
    """

    index: int
    offset: int
    length: int
    length_bytes: bytes
    payload: bytes

    @property
    def flag(self) -> int | None:
        """フラグバイトを返す（空ブロックの場合はNone）"""
        if not self.payload:
            return None
        return self.payload[0]

    @property
    def is_header(self) -> bool:
        """ROMヘッダーブロックかどうかを返す"""
        return self.length == HEADER_BLOCK_LENGTH and self.flag == HEADER_FLAG

    @property
    def checksum_ok(self) -> bool:
        """チェックサムが正しいかどうかを返す

        フラグとチェックサムを含む全バイトのXORが0であれば正しい。
        空ブロックは常にFalse。
        """
        if not self.payload:
            return False
        return reduce(xor, self.payload, 0) == 0

    @property
    def header(self) -> SpectrumHeader | None:
        """ヘッダーブロックの解読結果を返す"""
        return decode_spectrum_header(self.payload)


def iter_tap_blocks(tap: bytes | bytearray | memoryview) -> Iterator[TapBlock]:
    """TAPデータを先頭から走査し、ブロックを順に返す

    走査は遅延評価で行われるため、不正なブロックに到達するまでに
    取り出したブロックは呼び出し側で処理済みとなる。
    長さ0のブロックもペイロード空のブロックとして返す。

    Args:
        tap: TAPデータ全体

    Yields:
        TapBlock: 走査したブロック

    Raises:
        MalformedInputError: 長さプレフィックスの途中で入力が終わっている場合
        PayloadOverrunError: ブロック長が残りバイト数を超えている場合
    """
    view = memoryview(tap)
    size = len(view)
    pos = 0
    index = 0

    while pos < size:
        offset = pos
        length = read_le_u16(view, pos)
        pos += LENGTH_PREFIX_SIZE

        if pos + length > size:
            raise PayloadOverrunError(offset=offset, length=length, available=size - pos)

        yield TapBlock(
            index=index,
            offset=offset,
            length=length,
            length_bytes=bytes(view[offset:pos]),
            payload=bytes(view[pos : pos + length]),
        )

        pos += length
        index += 1


def scan_tap(tap: bytes | bytearray | memoryview) -> list[TapBlock]:
    """TAPデータ全体を走査してブロック一覧を返す

    Args:
        tap: TAPデータ全体

    Returns:
        ブロックのリスト

    Raises:
        MalformedInputError: TAPデータが不正な場合
    """
    return list(iter_tap_blocks(tap))
