"""tap2tzx - ZX Spectrum TAP to TZX tape image converter."""

from tap2tzx.tap import SpectrumHeader, TapBlock, iter_tap_blocks, scan_tap
from tap2tzx.types import (
    ConversionError,
    ExitCode,
    MalformedInputError,
    PayloadOverrunError,
    SinkError,
)
from tap2tzx.tzx import transcode

__version__ = "0.1.0"

__all__ = [
    "ConversionError",
    "ExitCode",
    "MalformedInputError",
    "PayloadOverrunError",
    "SinkError",
    "SpectrumHeader",
    "TapBlock",
    "iter_tap_blocks",
    "scan_tap",
    "transcode",
]
