"""Module containing class to parse structured (JSON or YAML) firmware configuration documents."""

import json
import logging
from typing import Sequence

import yaml
from pydantic import BaseModel

from firmware_layout.inference import (
    detect_firmware_type,
    detect_layout_from_config,
    detect_split_keyboard,
)
from firmware_layout.model import (
    DisplaySpec,
    EncoderSpec,
    KeyboardModel,
    KeySpec,
    LayerSpec,
    ModelMetadata,
    TrackballSpec,
)
from firmware_layout.parse.parse import FirmwareParser, FormatError
from firmware_layout.physical_layout import (
    DEFAULT_KEY_COUNT,
    DEFAULT_SPLIT_KEY_COUNT,
    CoordinateLayout,
    FlatGridLayout,
    SplitGridLayout,
    assign_halves,
)
from firmware_layout.schema import DisplayConfig, FirmwareConfig, KeyConfig, LayoutKeysConfig, PeripheralConfig

logger = logging.getLogger(__name__)


def _peripherals(spec_cls: type[BaseModel], entries: Sequence[PeripheralConfig], kind: str) -> tuple:
    """Create specs with index-based ids and names, leaving unset fields to the model defaults."""
    return tuple(
        spec_cls(id=ind, **(entry.model_dump(exclude_none=True) | {"name": entry.name or f"{kind} {ind + 1}"}))
        for ind, entry in enumerate(entries)
    )


class StructuredConfigParser(FirmwareParser):
    """Parser for structured keyboard configs, like QMK info.json/keymap.json files or YAML equivalents."""

    @staticmethod
    def _load(in_str: str, file_name: str) -> dict:
        try:
            if file_name.lower().endswith((".yaml", ".yml")):
                raw = yaml.safe_load(in_str)
            else:
                raw = json.loads(in_str)
        except (json.JSONDecodeError, yaml.YAMLError) as err:
            raise FormatError(f"invalid structured document: {err}") from err
        if not isinstance(raw, dict):
            raise FormatError("invalid structured document: top level value needs to be an object")
        return raw

    @staticmethod
    def _explicit_keys(entries: list[KeyConfig], is_split: bool) -> list[KeySpec]:
        keys = [KeySpec(id=ind, **entry.model_dump()) for ind, entry in enumerate(entries)]
        if is_split:
            return assign_halves(keys)
        return [key.model_copy(update={"half": None}) for key in keys]

    def _get_keys(self, config: FirmwareConfig, is_split: bool) -> list[KeySpec]:
        if config.keys is not None:
            return self._explicit_keys(config.keys, is_split)
        if isinstance(config.layout, LayoutKeysConfig) and config.layout.keys is not None:
            return self._explicit_keys(config.layout.keys, is_split)

        for layout_name, sub_layout in config.layouts.items():
            if sub_layout.layout is not None:
                logger.debug("generating keys from coordinates of layout %s", layout_name)
                return CoordinateLayout(keys=sub_layout.layout, split=is_split).generate()

        if config.matrix is not None:
            total_keys = config.matrix.rows * config.matrix.cols
            if is_split:
                return SplitGridLayout(key_count=total_keys).generate()
            return FlatGridLayout(key_count=total_keys).generate()

        logger.debug("no key information found, using default %s layout", "split" if is_split else "flat")
        if is_split:
            return SplitGridLayout(key_count=DEFAULT_SPLIT_KEY_COUNT).generate()
        return FlatGridLayout(key_count=DEFAULT_KEY_COUNT).generate()

    def _parse(self, content: str, file_name: str) -> KeyboardModel:
        """Parse a structured document with its content and file name, then return the draft model."""
        raw = self._load(content, file_name)
        config = FirmwareConfig.model_validate(raw)

        is_split = detect_split_keyboard(config, self.cfg.split_name_fragments)

        if config.displays:
            displays = config.displays
        elif config.oled:
            displays = [config.oled] if isinstance(config.oled, DisplayConfig) else [DisplayConfig()]
        else:
            displays = []

        return KeyboardModel(
            type=detect_firmware_type(config),
            name=config.display_name or file_name,
            layout=detect_layout_from_config(config, self.cfg.split_name_fragments),
            keys=tuple(self._get_keys(config, is_split)),
            encoders=_peripherals(EncoderSpec, config.encoders, "Encoder"),
            trackballs=_peripherals(TrackballSpec, config.trackballs or config.pointing_devices, "Trackball"),
            displays=_peripherals(DisplaySpec, displays, "Display"),
            layers=tuple(
                LayerSpec(name=layer.name or f"Layer {ind + 1}", keycodes=tuple(layer.keycodes))
                for ind, layer in enumerate(config.layers)
            ),
            metadata=ModelMetadata(
                version=config.version,
                author=config.author,
                description=config.description,
                is_split=is_split,
                split=raw.get("split"),
            ),
        )
