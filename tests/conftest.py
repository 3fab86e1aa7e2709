"""共通テストフィクスチャ"""

from collections.abc import Callable
from pathlib import Path

import pytest

# ヘッダーブロック（Program "ManicMiner"）1つだけのTAP
MANIC_MINER_TAP = bytes(
    [
        0x13, 0x00, 0x00, 0x00, 0x4D, 0x61, 0x6E, 0x69, 0x63, 0x4D, 0x69,
        0x6E, 0x65, 0x72, 0x45, 0x00, 0x0A, 0x00, 0x45, 0x00, 0x1F,
    ]
)  # fmt: skip

TZX_FILE_HEADER = b"ZXTape!\x1a\x01\x14"


@pytest.fixture
def make_block() -> Callable[[bytes], bytes]:
    """ペイロードから長さプレフィックス付きTAPブロックを作成する関数"""

    def _make_block(payload: bytes) -> bytes:
        return len(payload).to_bytes(2, "little") + payload

    return _make_block


@pytest.fixture
def manic_miner_tap() -> bytes:
    """ヘッダーブロック1つのTAPデータ"""
    return MANIC_MINER_TAP


@pytest.fixture
def tzx_file_header() -> bytes:
    """TZXファイルヘッダー（シグネチャ + バージョン1.20）"""
    return TZX_FILE_HEADER


@pytest.fixture
def tap_file(tmp_path: Path) -> Path:
    """ヘッダーブロック + データブロックのTAPファイル"""
    data_payload = b"\xff\x01\x02\x03"
    checksum = 0
    for byte in data_payload:
        checksum ^= byte
    data_payload += bytes([checksum])
    path = tmp_path / "game.tap"
    path.write_bytes(MANIC_MINER_TAP + len(data_payload).to_bytes(2, "little") + data_payload)
    return path
