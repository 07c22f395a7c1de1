"""Submodule containing firmware descriptor parsers, for structured configs, ZMK keymaps, QMK sources and binaries."""

from .binary import BinaryFirmwareParser
from .parse import FirmwareParser, FormatError, ParseError
from .qmk import QmkSourceParser
from .structured import StructuredConfigParser
from .zmk import ZmkKeymapParser

__all__ = [
    "BinaryFirmwareParser",
    "FirmwareParser",
    "FormatError",
    "ParseError",
    "QmkSourceParser",
    "StructuredConfigParser",
    "ZmkKeymapParser",
]
