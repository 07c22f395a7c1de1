"""
Module with classes that define the normalized keyboard model, with keys positioned in pixel
space, auxiliary peripherals and layers, together with the raw firmware descriptor it is built from.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, model_validator

NO_KEYCODE = "KC_NO"
BINARY_EXTENSIONS = (".hex", ".uf2")

FirmwareType = Literal["QMK", "ZMK", "Generic", "Unknown"]
Half = Literal["left", "right"]


class ReadError(Exception):
    """Error type for descriptor content that could not be read from its source."""


class FirmwareDescriptor(BaseModel, frozen=True):
    """Raw firmware artifact, as a file name paired with decoded text or a raw byte buffer."""

    file_name: str
    content: str | bytes

    @property
    def extension(self) -> str:
        """Lower-cased extension including the leading dot, empty if the name has none."""
        name = self.file_name.lower()
        if (ind := name.rfind(".")) < 0:
            return ""
        return name[ind:]

    @classmethod
    def from_path(cls, path: Path | str) -> "FirmwareDescriptor":
        """Read a descriptor from disk, as bytes for compiled binaries and as UTF-8 text otherwise."""
        path = Path(path)
        try:
            if path.suffix.lower() in BINARY_EXTENSIONS:
                content: str | bytes = path.read_bytes()
            else:
                content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as err:
            raise ReadError(f'Failed to read file "{path}": {err}') from err
        return cls(file_name=path.name, content=content)


class KeySpec(BaseModel, frozen=True):
    """
    Represents a single key, with its matrix position, top-left pixel offset, pixel size and
    the keycode label it carries. `half` is only set for split keyboards.
    """

    id: int
    row: int = 0
    col: int = 0
    x: float = 0
    y: float = 0
    width: float = 45
    height: float = 45
    keycode: str = NO_KEYCODE
    half: Half | None = None


class EncoderSpec(BaseModel, frozen=True):
    """Rotary encoder with its pins and steps per revolution."""

    id: int
    name: str
    pins: tuple[str, ...] = ()
    steps: int = 20


class TrackballSpec(BaseModel, frozen=True):
    """Pointing device such as a trackball or trackpad."""

    id: int
    name: str
    type: str = "trackball"
    sensitivity: float = 1.0


class DisplaySpec(BaseModel, frozen=True):
    """Display with its pixel dimensions."""

    id: int
    name: str
    type: str = "oled"
    width: int = 128
    height: int = 32


class LayerSpec(BaseModel, frozen=True):
    """A named layer with its keycode tokens in key order."""

    name: str
    keycodes: tuple[str, ...] = ()


class LayoutFamily(BaseModel, frozen=True):
    """A named bucket of row/column shape, used for classification and display only."""

    name: str
    display_name: str
    rows: int
    cols: int


class ModelMetadata(BaseModel, frozen=True):
    """Free-form descriptive fields plus the resolved split flag and raw split sub-config."""

    version: str | None = None
    author: str | None = None
    description: str | None = None
    is_split: bool = False
    split: bool | dict | None = None
    note: str | None = None


class KeyboardModel(BaseModel, frozen=True):
    """
    Normalized keyboard model produced from a firmware descriptor. A model without a layout
    is a draft that still needs layout inference.
    """

    type: FirmwareType = "Unknown"
    name: str
    layout: LayoutFamily | None = None
    keys: tuple[KeySpec, ...] = ()
    encoders: tuple[EncoderSpec, ...] = ()
    trackballs: tuple[TrackballSpec, ...] = ()
    displays: tuple[DisplaySpec, ...] = ()
    layers: tuple[LayerSpec, ...] = ()
    metadata: ModelMetadata = ModelMetadata()

    @property
    def is_split(self) -> bool:
        """Return whether the keyboard was resolved as split."""
        return self.metadata.is_split

    @model_validator(mode="after")
    def check_key_ids(self):
        """Make sure key ids are dense and ordered, starting at zero."""
        ids = [key.id for key in self.keys]
        assert ids == list(range(len(self.keys))), f"Key ids must be contiguous from 0, got {ids}"
        return self

    @model_validator(mode="after")
    def check_halves(self):
        """Make sure every key has a half assigned iff the keyboard is split."""
        if self.metadata.is_split:
            assert all(key.half is not None for key in self.keys), "All keys of a split keyboard need a half"
        else:
            assert all(key.half is None for key in self.keys), "Keys of a non-split keyboard cannot have a half"
        return self
