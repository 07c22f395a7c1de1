"""
Module containing the catalog of layout families and generators that synthesize pixel geometry
for keys, either as a flat grid, a canonical split grid or from explicit unit coordinates.
"""

import logging
from math import floor
from typing import Sequence

from pydantic import AliasChoices, BaseModel, Field

from firmware_layout.model import NO_KEYCODE, Half, KeySpec, LayoutFamily

logger = logging.getLogger(__name__)

# pixel pitch of a 1u key and the margin of the first key from the origin
KEY_UNIT = 50
KEY_MARGIN = 10

# pixel size of a 1u key box
KEY_SIZE = 45

# gap between the two halves of the canonical split grid
SPLIT_GAP = 100

# extra offset given to right half keys in coordinate-based split layouts
SPLIT_RIGHT_OFFSET = 50

# minimum gap between adjacent x coordinates (in units) to be treated as the split between halves
SPLIT_GAP_THRESHOLD = 1.5

# thumb cluster sits this much lower than a regular row would
THUMB_ROW_OFFSET = 15

# canonical split grid shape, per half
SPLIT_MAIN_ROWS = 3
SPLIT_COLS = 6
SPLIT_THUMB_KEYS = 3

# key counts that are classified as split, and that count as split for ZMK keymaps
SPLIT_KEY_COUNT_RANGE = (36, 42)
ZMK_SPLIT_KEY_COUNT_RANGE = (30, 50)

# key counts used when a descriptor gives no hint about its keys
DEFAULT_KEY_COUNT = 61
DEFAULT_SPLIT_KEY_COUNT = SPLIT_MAIN_ROWS * SPLIT_COLS * 2 + SPLIT_THUMB_KEYS * 2

LAYOUT_FAMILIES: dict[str, LayoutFamily] = {
    family.name: family
    for family in (
        LayoutFamily(name="tenkeyless", display_name="Tenkeyless", rows=6, cols=17),
        LayoutFamily(name="full", display_name="Full Size", rows=6, cols=21),
        LayoutFamily(name="60%", display_name="60%", rows=5, cols=14),
        LayoutFamily(name="65%", display_name="65%", rows=5, cols=16),
        LayoutFamily(name="75%", display_name="75%", rows=6, cols=16),
        LayoutFamily(name="ortholinear", display_name="Ortholinear", rows=4, cols=12),
        LayoutFamily(name="split", display_name="Split", rows=4, cols=6),
    )
}


def detect_layout_by_key_count(key_count: int) -> LayoutFamily:
    """Classify a key count into a layout family, boundaries inclusive."""
    if SPLIT_KEY_COUNT_RANGE[0] <= key_count <= SPLIT_KEY_COUNT_RANGE[1]:
        return LAYOUT_FAMILIES["split"]
    if key_count <= 48:
        return LAYOUT_FAMILIES["ortholinear"]
    if key_count <= 61:
        return LAYOUT_FAMILIES["60%"]
    if key_count <= 68:
        return LAYOUT_FAMILIES["65%"]
    if key_count <= 84:
        return LAYOUT_FAMILIES["75%"]
    if key_count <= 87:
        return LAYOUT_FAMILIES["tenkeyless"]
    return LAYOUT_FAMILIES["full"]


def find_split_boundary(x_coords: Sequence[float], threshold: float = SPLIT_GAP_THRESHOLD) -> float | None:
    """
    Find the x coordinate where the right half of a split keyboard starts, which is the right side of
    the largest gap between adjacent sorted x coordinates. Ties go to the leftmost gap. Returns None if
    the largest gap does not exceed `threshold`.
    """
    sorted_x = sorted(x_coords)
    max_gap, boundary = 0.0, None
    for left, right in zip(sorted_x, sorted_x[1:]):
        if (gap := right - left) > max_gap:
            max_gap, boundary = gap, right
    if boundary is None or max_gap <= threshold:
        return None
    logger.debug("found split boundary at x=%s with gap %s", boundary, max_gap)
    return boundary


def assign_halves(keys: Sequence[KeySpec]) -> list[KeySpec]:
    """
    Give a half to each key that does not have one yet, splitting on the largest gap in pixel x
    coordinates. Keys keep their positions; if there is no large enough gap, they all go to the left.
    """
    boundary = find_split_boundary([k.x for k in keys], SPLIT_GAP_THRESHOLD * KEY_UNIT)
    out = []
    for key in keys:
        if key.half is None:
            half: Half = "right" if boundary is not None and key.x >= boundary else "left"
            key = key.model_copy(update={"half": half})
        out.append(key)
    return out


class FlatGridLayout(BaseModel):
    """Generator for a single rectangular grid of keys, with column count given by the layout family."""

    key_count: int

    def generate(self) -> list[KeySpec]:
        """Generate a list of KeySpecs laid out row by row."""
        cols = detect_layout_by_key_count(self.key_count).cols
        logger.debug("generating flat grid physical layout for %d keys with %d columns", self.key_count, cols)
        return [
            KeySpec(
                id=ind,
                row=ind // cols,
                col=ind % cols,
                x=(ind % cols) * KEY_UNIT + KEY_MARGIN,
                y=(ind // cols) * KEY_UNIT + KEY_MARGIN,
                width=KEY_SIZE,
                height=KEY_SIZE,
            )
            for ind in range(max(self.key_count, 0))
        ]


class CoordinateKey(BaseModel, populate_by_name=True, coerce_numbers_to_str=True):
    """Model representing each key in a QMK-style layout definition, in key units."""

    x: float = 0  # coordinates of top-left corner
    y: float = 0
    w: float = Field(default=1.0, validation_alias=AliasChoices("w", "u"))
    h: float = 1.0
    matrix: tuple[int, int] | None = None
    keycode: str | None = None


class CoordinateLayout(BaseModel):
    """
    Generator for layouts given by explicit unit coordinates per key. For split keyboards the
    halves are separated at the largest gap in x coordinates, see `find_split_boundary`.
    """

    keys: list[CoordinateKey]
    split: bool = False

    def generate(self) -> list[KeySpec]:
        """Generate a sequence of KeySpecs from CoordinateKeys."""
        logger.debug("generating coordinate-based physical layout for %d keys, split: %s", len(self.keys), self.split)
        boundary = find_split_boundary([k.x for k in self.keys]) if self.split else None

        out = []
        for ind, k in enumerate(self.keys):
            half: Half | None = None
            offset = 0
            if self.split:
                half = "right" if boundary is not None and k.x >= boundary else "left"
                offset = SPLIT_RIGHT_OFFSET if half == "right" else 0
            row, col = k.matrix if k.matrix is not None else (floor(k.y), floor(k.x))
            out.append(
                KeySpec(
                    id=ind,
                    row=row,
                    col=col,
                    x=k.x * KEY_UNIT + KEY_MARGIN + offset,
                    y=k.y * KEY_UNIT + KEY_MARGIN,
                    width=(k.w or 1) * KEY_SIZE,
                    height=(k.h or 1) * KEY_SIZE,
                    keycode=k.keycode or NO_KEYCODE,
                    half=half,
                )
            )
        return out


class SplitGridLayout(BaseModel):
    """
    Generator for split keyboards. Uses explicit coordinates when given, otherwise a canonical
    Corne-like shape of 3x6 keys plus 3 thumb keys per half.
    """

    key_count: int = DEFAULT_SPLIT_KEY_COUNT
    coordinates: list[CoordinateKey] | None = None

    def generate(self) -> list[KeySpec]:
        """Generate a list of KeySpecs, left half first."""
        if self.coordinates is not None:
            return CoordinateLayout(keys=self.coordinates, split=True).generate()

        logger.debug("generating canonical split physical layout, requested %d keys", self.key_count)
        keys: list[KeySpec] = []
        right_x = SPLIT_COLS * KEY_UNIT + SPLIT_GAP
        thumb_y = SPLIT_MAIN_ROWS * KEY_UNIT + KEY_MARGIN + THUMB_ROW_OFFSET

        def add_key(row: int, col: int, x: float, y: float, half: Half) -> None:
            keys.append(
                KeySpec(id=len(keys), row=row, col=col, x=x, y=y, width=KEY_SIZE, height=KEY_SIZE, half=half)
            )

        for half, x_offset, thumb_cols in (
            ("left", 0, range(SPLIT_COLS - SPLIT_THUMB_KEYS, SPLIT_COLS)),
            ("right", right_x, range(SPLIT_THUMB_KEYS)),
        ):
            for row in range(SPLIT_MAIN_ROWS):
                for col in range(SPLIT_COLS):
                    add_key(row, col, col * KEY_UNIT + KEY_MARGIN + x_offset, row * KEY_UNIT + KEY_MARGIN, half)
            for col in thumb_cols:
                add_key(SPLIT_MAIN_ROWS, col, col * KEY_UNIT + KEY_MARGIN + x_offset, thumb_y, half)

        return keys
