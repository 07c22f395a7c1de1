"""Module containing class to parse QMK C source keymaps and keyboard headers."""

import logging
import re

import pyparsing as pp

from firmware_layout.model import KeyboardModel, LayerSpec
from firmware_layout.parse.parse import FirmwareParser
from firmware_layout.physical_layout import FlatGridLayout

logger = logging.getLogger(__name__)


_argument = pp.original_text_for(pp.OneOrMore(pp.nested_expr("(", ")") | pp.CharsNotIn(",()")))
_argument_list = pp.DelimitedList(pp.Opt(_argument), allow_trailing_delim=True)


def split_arguments(args: str) -> list[str]:
    """Split a macro argument list on top-level commas, so that e.g. `LT(1, KC_A)` stays one keycode."""
    return [stripped for arg in _argument_list.parse_string(args) if (stripped := arg.strip())]


class QmkSourceParser(FirmwareParser):
    """
    Parser for QMK C sources like keymap.c, keyboard.h or config.h, reading LAYOUT macro invocations
    with a pyparsing grammar that balances nested parentheses.
    """

    _name_re = re.compile(r'#define\s+KEYBOARD_NAME\s+"([^"]+)"')
    _product_re = re.compile(r'#define\s+PRODUCT\s+"([^"]+)"')
    _placeholder_re = re.compile(r"\bk\w\w+")
    _comment_stripper = pp.quoted_string | pp.cpp_style_comment.suppress()
    _layout_call = pp.Regex(r"\bLAYOUT\w*")("macro") + pp.original_text_for(pp.nested_expr("(", ")"))("args")
    _layer_entry = pp.Regex(r"\[(?P<layer>[^\[\]\n]+)\]") + pp.Suppress("=") + _layout_call

    def _get_layers(self, text: str) -> list[LayerSpec]:
        return [
            LayerSpec(name=m["layer"].strip(), keycodes=tuple(split_arguments(m["args"][1:-1])))
            for m, _, _ in self._layer_entry.scan_string(text)
        ]

    def _get_key_count(self, text: str) -> int | None:
        """Count key placeholders like `k00` in the first LAYOUT macro that has them, e.g. in keyboard.h."""
        for m, _, _ in self._layout_call.scan_string(text):
            if placeholders := self._placeholder_re.findall(m["args"]):
                logger.debug("found %d key placeholders in %s", len(placeholders), m["macro"])
                return len(placeholders)
        return None

    def _parse(self, content: str, file_name: str) -> KeyboardModel:
        """Parse QMK C source with its content and file name, then return the draft model."""
        text = self._comment_stripper.transform_string(content)

        name = file_name
        if m := self._name_re.search(text) or self._product_re.search(text):
            name = m.group(1)

        layers = self._get_layers(text)
        if (key_count := self._get_key_count(text)) is None and layers:
            key_count = len(layers[0].keycodes)

        return KeyboardModel(
            type="QMK",
            name=name,
            keys=tuple(FlatGridLayout(key_count=key_count).generate()) if key_count else (),
            layers=tuple(layers),
        )
