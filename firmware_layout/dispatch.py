"""
Top level entry points that pick a parser by file extension, run it and fill in the layout family
of the resulting draft model when the parser could not determine one.
"""

import logging
from pathlib import Path

from firmware_layout.config import ParseConfig
from firmware_layout.inference import detect_layout
from firmware_layout.model import FirmwareDescriptor, KeyboardModel, ReadError
from firmware_layout.parse import (
    BinaryFirmwareParser,
    FirmwareParser,
    ParseError,
    QmkSourceParser,
    StructuredConfigParser,
    ZmkKeymapParser,
)

logger = logging.getLogger(__name__)

PARSERS: dict[str, type[FirmwareParser]] = {
    ".json": StructuredConfigParser,
    ".yaml": StructuredConfigParser,
    ".yml": StructuredConfigParser,
    ".keymap": ZmkKeymapParser,
    ".c": QmkSourceParser,
    ".h": QmkSourceParser,
    ".hex": BinaryFirmwareParser,
    ".uf2": BinaryFirmwareParser,
}


def parse_firmware(descriptor: FirmwareDescriptor, config: ParseConfig | None = None) -> KeyboardModel:
    """Parse a firmware descriptor into a finished KeyboardModel, wrapping any failure in a ParseError."""
    if config is None:
        config = ParseConfig()

    try:
        if (parser_cls := PARSERS.get(descriptor.extension)) is None:
            logger.warning(
                'unrecognized extension "%s" for %s, returning empty model', descriptor.extension, descriptor.file_name
            )
            model = KeyboardModel(name=descriptor.file_name)
        else:
            model = parser_cls(config).parse(descriptor)

        if model.layout is None:
            model = model.model_copy(update={"layout": detect_layout(model)})
            logger.debug("inferred layout family: %s", model.layout)
    except Exception as err:
        raise ParseError(f"Failed to parse firmware: {err}") from err

    return model


def parse_file(path: Path | str, config: ParseConfig | None = None) -> KeyboardModel:
    """Read a firmware descriptor from the given path and parse it."""
    try:
        descriptor = FirmwareDescriptor.from_path(path)
    except ReadError as err:
        raise ParseError(f"Failed to parse firmware: {err}") from err
    return parse_firmware(descriptor, config)
