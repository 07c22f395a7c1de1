"""
Module containing the inference rules that resolve firmware type, split topology and layout family,
either from a structured configuration document or from a draft keyboard model.
"""

import logging
import re
from typing import Sequence

from firmware_layout.model import FirmwareType, KeyboardModel, LayoutFamily
from firmware_layout.physical_layout import LAYOUT_FAMILIES, ZMK_SPLIT_KEY_COUNT_RANGE, detect_layout_by_key_count
from firmware_layout.schema import FirmwareConfig, SplitConfig

logger = logging.getLogger(__name__)

SPLIT_NAME_FRAGMENTS = ("corne", "crkbd", "kyria", "lily58", "iris", "rattusboard")

# substrings of QMK layout macro names that identify each family, checked in order
LAYOUT_FAMILY_ALIASES: dict[str, tuple[str, ...]] = {
    "tenkeyless": ("tkl", "tenkeyless"),
    "full": ("full",),
    "60%": ("60",),
    "65%": ("65",),
    "75%": ("75",),
    "ortholinear": ("ortho",),
    "split": ("split",),
}

# QMK keyboard identifiers are lower-case folder paths, e.g. "crkbd/rev1"
_qmk_keyboard_re = re.compile(r"[a-z0-9_\-]+(/[a-z0-9_\-]+)*")


def _as_config(config: FirmwareConfig | dict) -> FirmwareConfig:
    return config if isinstance(config, FirmwareConfig) else FirmwareConfig.model_validate(config)


def _has_split_fragment(name: str, name_fragments: Sequence[str]) -> bool:
    name = name.lower()
    return "split" in name or any(fragment in name for fragment in name_fragments)


def _is_set(value) -> bool:
    # empty lists and objects still mark a field as set, empty scalars do not
    return isinstance(value, (list, dict)) or bool(value)


def detect_firmware_type(config: FirmwareConfig | dict) -> FirmwareType:
    """Detect firmware type from the firmware-specific fields present in the configuration."""
    config = _as_config(config)
    if any(_is_set(field) for field in (config.zmk, config.behaviors, config.keymap)):
        return "ZMK"
    if _is_set(config.qmk) or _is_set(config.layout_aliases):
        return "QMK"
    if config.keyboard and _qmk_keyboard_re.fullmatch(config.keyboard):
        return "QMK"
    return "Generic"


def detect_split_keyboard(
    config: FirmwareConfig | dict, name_fragments: Sequence[str] = SPLIT_NAME_FRAGMENTS
) -> bool:
    """
    Detect if the keyboard is split, checking signals from strongest to weakest and returning on the
    first positive one: explicit split config, split-specific hardware fields, layout name, names of
    the available layouts and finally the keyboard name.
    """
    config = _as_config(config)
    split = config.split

    if split is True or (isinstance(split, SplitConfig) and split.enabled):
        logger.debug("split keyboard: explicitly enabled")
        return True
    if isinstance(split, SplitConfig) and (split.handedness or split.soft_serial_pin):
        logger.debug("split keyboard: found split hardware fields")
        return True
    if isinstance(config.layout, str) and _has_split_fragment(config.layout, name_fragments):
        logger.debug("split keyboard: layout name %s", config.layout)
        return True
    if any("split" in layout_name.lower() for layout_name in config.layouts):
        logger.debug("split keyboard: found split layout in %s", list(config.layouts))
        return True
    if (name := config.display_name) and _has_split_fragment(name, name_fragments):
        logger.debug("split keyboard: keyboard name %s", name)
        return True
    return False


def detect_layout_from_config(
    config: FirmwareConfig | dict, name_fragments: Sequence[str] = SPLIT_NAME_FRAGMENTS
) -> LayoutFamily | None:
    """Find the layout family named by the configuration, if there is one."""
    config = _as_config(config)
    if detect_split_keyboard(config, name_fragments):
        return LAYOUT_FAMILIES["split"]

    if isinstance(config.layout, str):
        layout_name = config.layout.lower()
        for family_name, aliases in LAYOUT_FAMILY_ALIASES.items():
            if any(alias in layout_name for alias in aliases):
                return LAYOUT_FAMILIES[family_name]
    return None


def detect_layout(model: KeyboardModel) -> LayoutFamily:
    """Infer the layout family of a draft model that was parsed without one."""
    if model.metadata.is_split:
        return LAYOUT_FAMILIES["split"]
    if any(key.half is not None for key in model.keys):
        return LAYOUT_FAMILIES["split"]
    if model.type == "ZMK" and ZMK_SPLIT_KEY_COUNT_RANGE[0] <= len(model.keys) <= ZMK_SPLIT_KEY_COUNT_RANGE[1]:
        return LAYOUT_FAMILIES["split"]
    if model.keys:
        return detect_layout_by_key_count(len(model.keys))
    return LAYOUT_FAMILIES["60%"]
