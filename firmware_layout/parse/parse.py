"""
Module containing base parser class to parse firmware descriptors into draft KeyboardModels.
Do not use directly, use one of the format-specific parsers or `parse_firmware` instead.
"""

import logging
from abc import ABC

from firmware_layout.config import ParseConfig
from firmware_layout.model import FirmwareDescriptor, KeyboardModel, ReadError

logger = logging.getLogger(__name__)


class ParseError(Exception):
    """Error type for exceptions that happen during firmware parsing."""


class FormatError(Exception):
    """Error type for structured documents that are not syntactically valid."""


class FirmwareParser(ABC):
    """Abstract base class for parsing firmware descriptors."""

    # whether the parser consumes raw bytes rather than decoded text
    binary = False

    def __init__(self, config: ParseConfig):
        self.cfg = config

    def _parse(self, content, file_name: str) -> KeyboardModel:
        raise NotImplementedError

    def parse(self, descriptor: FirmwareDescriptor) -> KeyboardModel:
        """Wrapper to decode descriptor content if necessary and call the format-specific parser."""
        content = descriptor.content
        if isinstance(content, bytes) and not self.binary:
            try:
                content = content.decode("utf-8")
            except UnicodeDecodeError as err:
                raise ReadError(f'Could not decode "{descriptor.file_name}" as UTF-8 text') from err

        model = self._parse(content, descriptor.file_name)
        logger.debug(
            "parsed draft model for %s: type %s, name %s, %d keys, %d layers",
            descriptor.file_name,
            model.type,
            model.name,
            len(model.keys),
            len(model.layers),
        )
        return model
