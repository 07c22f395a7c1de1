"""
Module with the schema of structured firmware configuration documents, such as QMK info.json
and keymap.json files or hand-written equivalents. Every recognized field is listed with its
default, unknown fields are ignored and fields with unusable values fall back to their defaults.
"""

import logging
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    Field,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
    model_validator,
)

from firmware_layout.model import NO_KEYCODE, Half
from firmware_layout.physical_layout import KEY_SIZE, CoordinateKey

logger = logging.getLogger(__name__)


class LenientModel(BaseModel):
    """Base for document sections, where a field value that does not validate is replaced by the field default."""

    @field_validator("*", mode="wrap")
    @classmethod
    def default_invalid(cls, val: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo) -> Any:
        """Validate the field as declared, warn and use the default if that fails."""
        try:
            return handler(val)
        except ValidationError as err:
            logger.warning(
                'ignoring invalid value %r for field "%s" of %s: %s',
                val,
                info.field_name,
                cls.__name__,
                err.errors()[0]["msg"],
            )
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)


class SplitConfig(LenientModel, extra="allow"):
    """Split sub-config, e.g. `{"enabled": true, "soft_serial_pin": "D2"}`."""

    enabled: bool = False
    handedness: Any = None
    soft_serial_pin: Any = None


class MatrixConfig(LenientModel):
    """Electrical matrix dimensions."""

    rows: int = 0
    cols: int = 0


class KeyConfig(LenientModel, coerce_numbers_to_str=True):
    """An explicit key entry in pixel space, ids are assigned by position."""

    row: int = 0
    col: int = 0
    x: float = Field(default=0, ge=0)
    y: float = Field(default=0, ge=0)
    width: float = Field(default=KEY_SIZE, gt=0)
    height: float = Field(default=KEY_SIZE, gt=0)
    keycode: str = NO_KEYCODE
    half: Half | None = None


class LayoutKeysConfig(LenientModel):
    """A `layout` object that carries an explicit list of keys."""

    keys: list[KeyConfig] | None = None


class SubLayoutConfig(LenientModel):
    """A named entry of `layouts`, with its keys in unit coordinates."""

    layout: list[CoordinateKey] | None = None


class PeripheralConfig(LenientModel, coerce_numbers_to_str=True):
    """Common fields of peripheral entries, unset fields take the defaults of the model specs."""

    name: str | None = None


class EncoderConfig(PeripheralConfig):  # pylint: disable=missing-class-docstring
    pins: list[str] | None = None
    steps: int | None = None


class TrackballConfig(PeripheralConfig):  # pylint: disable=missing-class-docstring
    type: str | None = None
    sensitivity: float | None = None


class DisplayConfig(PeripheralConfig):  # pylint: disable=missing-class-docstring
    type: str | None = None
    width: int | None = None
    height: int | None = None


class LayerConfig(LenientModel, coerce_numbers_to_str=True):
    """A layer entry, either `{"name": ..., "keys": [...]}` or a bare list of keycodes."""

    name: str | None = None
    keycodes: list[str] = Field(default=[], validation_alias=AliasChoices("keycodes", "keys"))

    @model_validator(mode="before")
    @classmethod
    def from_keycode_list(cls, val):
        """Accept QMK keymap.json style layers that are plain lists of keycodes."""
        if isinstance(val, list):
            return {"keycodes": val}
        return val

    @field_validator("keycodes", mode="before")
    @classmethod
    def fill_empty_keycodes(cls, val):
        """Null entries stand for keys without a keycode."""
        if isinstance(val, list):
            return [NO_KEYCODE if keycode is None else keycode for keycode in val]
        return val


class FirmwareConfig(LenientModel, coerce_numbers_to_str=True, extra="ignore"):
    """Structured firmware configuration document."""

    keyboard_name: str | None = None
    keyboard: str | None = None
    name: str | None = None
    version: str | None = None
    author: str | None = None
    description: str | None = None

    # firmware-specific fields, only their presence matters
    zmk: Any = None
    qmk: Any = None
    behaviors: Any = None
    keymap: Any = None
    layout_aliases: Any = None

    split: bool | SplitConfig | None = None
    layout: str | LayoutKeysConfig | None = None
    layouts: dict[str, SubLayoutConfig] = {}
    keys: list[KeyConfig] | None = None
    matrix: MatrixConfig | None = Field(default=None, validation_alias=AliasChoices("matrix", "matrix_size"))

    encoders: list[EncoderConfig] = []
    trackballs: list[TrackballConfig] = []
    pointing_devices: list[TrackballConfig] = []
    displays: list[DisplayConfig] = []
    oled: bool | DisplayConfig | None = None
    layers: list[LayerConfig] = []

    @field_validator("version", "author", "description", mode="before")
    @classmethod
    def stringify_metadata(cls, val):
        """Keep descriptive fields as text, e.g. YAML reads an unquoted `2024-01-01` as a date."""
        if val is None or isinstance(val, str):
            return val
        return str(val)

    @property
    def display_name(self) -> str | None:
        """Return the first non-empty of the name fields."""
        return self.keyboard_name or self.keyboard or self.name or None
