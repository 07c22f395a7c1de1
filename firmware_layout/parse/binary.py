"""Module containing the fallback parser for compiled firmware images."""

from firmware_layout.model import NO_KEYCODE, KeyboardModel, LayerSpec, ModelMetadata
from firmware_layout.parse.parse import FirmwareParser
from firmware_layout.physical_layout import DEFAULT_KEY_COUNT, LAYOUT_FAMILIES, FlatGridLayout

BINARY_NOTE = "Binary firmware - limited parsing available"


class BinaryFirmwareParser(FirmwareParser):
    """
    Parser for compiled .hex/.uf2 images. These are not decoded; a fixed 60% placeholder model
    is returned, with the firmware type guessed from the file extension.
    """

    binary = True

    def _parse(self, content: bytes, file_name: str) -> KeyboardModel:
        return KeyboardModel(
            type="ZMK" if file_name.lower().endswith(".uf2") else "QMK",
            name=file_name,
            layout=LAYOUT_FAMILIES["60%"],
            keys=tuple(FlatGridLayout(key_count=DEFAULT_KEY_COUNT).generate()),
            layers=(LayerSpec(name=self.cfg.binary_layer_name, keycodes=(NO_KEYCODE,) * DEFAULT_KEY_COUNT),),
            metadata=ModelMetadata(note=BINARY_NOTE),
        )
