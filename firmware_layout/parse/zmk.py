"""Module containing class to parse devicetree format ZMK keymaps."""

import logging
import re

from firmware_layout.model import KeyboardModel, KeySpec, LayerSpec, ModelMetadata
from firmware_layout.parse.dts import DeviceTree
from firmware_layout.parse.parse import FirmwareParser
from firmware_layout.physical_layout import ZMK_SPLIT_KEY_COUNT_RANGE, FlatGridLayout, SplitGridLayout

logger = logging.getLogger(__name__)


class ZmkKeymapParser(FirmwareParser):
    """Parser for ZMK devicetree keymaps, using C preprocessor and a pyparsing-based node reader."""

    _include_re = re.compile(r'#include\s*[<"](.*?)[>"]')
    _split_cues = ("split", "left half", "right half", "|   |")
    _split_comment_re = re.compile(r"//.*\|.*\|.*\|.*\|.*\|.*\|.*\|.*\|")
    _bindings_re = r"(?<!sensor-)bindings"

    def _has_split_cue(self, in_str: str) -> bool:
        """Look for textual hints of a split keyboard, like split ASCII art in comments."""
        return any(cue in in_str for cue in self._split_cues) or self._split_comment_re.search(in_str) is not None

    def _get_layers(self, dts: DeviceTree) -> list[LayerSpec]:
        keymap_nodes = dts.get_named_nodes("keymap")
        keymap_nodes += [node for node in dts.get_compatible_nodes("zmk,keymap") if node not in keymap_nodes]

        layers = []
        for node in (child for parent in keymap_nodes for child in parent.children):
            if (bindings := node.get_array(self._bindings_re)) is None:
                logger.debug('skipping node "%s" under keymap without bindings', node.name)
                continue
            layers.append(LayerSpec(name=node.name, keycodes=tuple(token for token in bindings if token)))
        return layers

    def _parse(self, content: str, file_name: str) -> KeyboardModel:
        """Parse a ZMK keymap with its content and file name, then return the draft model."""
        name = file_name
        if m := self._include_re.search(content):
            name = m.group(1).removesuffix(".dtsi")

        layers = self._get_layers(DeviceTree(content, file_name, self.cfg.preprocess))
        if not layers:
            logger.warning("no layers with bindings found in %s", file_name)

        keys: list[KeySpec] = []
        is_split = False
        if layers:
            key_count = len(layers[0].keycodes)
            low, high = ZMK_SPLIT_KEY_COUNT_RANGE
            if self._has_split_cue(content) or low <= key_count <= high:
                keys, is_split = SplitGridLayout(key_count=key_count).generate(), True
            else:
                keys = FlatGridLayout(key_count=key_count).generate()

        return KeyboardModel(
            type="ZMK",
            name=name,
            keys=tuple(keys),
            layers=tuple(layers),
            metadata=ModelMetadata(is_split=is_split),
        )
