"""
Module that tracks which keys of a parsed keyboard have been tested, keyed by key id and kept
apart from the immutable KeyboardModel, and builds the exported results document.
"""

import logging
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field

from firmware_layout.model import FirmwareType, KeyboardModel

logger = logging.getLogger(__name__)

KeyState = Literal["untested", "hover", "pressed", "tested"]


class SessionStats(BaseModel):
    """Counts of tested keys, with progress as a percentage rounded to one decimal."""

    total_keys: int
    tested_keys: int
    untested_keys: int
    progress: float


class KeyDetail(BaseModel):
    """Per-key record of the results document."""

    id: int
    row: int
    col: int
    keycode: str
    tested: bool


class KeyTestResults(BaseModel):
    """Results document of a test session, dumped with camelCase keys."""

    timestamp: str
    keyboard: str
    firmware_type: FirmwareType = Field(serialization_alias="firmwareType")
    total_keys: int = Field(serialization_alias="totalKeys")
    tested_keys: int = Field(serialization_alias="testedKeys")
    progress: float
    key_details: list[KeyDetail] = Field(serialization_alias="keyDetails")

    def dump(self) -> dict:
        """Returns a dict-valued dump of the results, ready for JSON serialization."""
        return self.model_dump(mode="json", by_alias=True)


class KeyTestSession:
    """Per-key test state for a keyboard model."""

    def __init__(self, model: KeyboardModel):
        self.model = model
        self.states: dict[int, KeyState] = {key.id: "untested" for key in model.keys}

    def set_state(self, key_id: int, state: KeyState) -> None:
        """Set the state of a single key."""
        if key_id not in self.states:
            raise KeyError(f"Key id {key_id} does not exist in keyboard {self.model.name}")
        self.states[key_id] = state

    def mark_tested(self, key_id: int) -> bool:
        """Mark a key as tested, returning True if it was not tested before."""
        newly_tested = self.states.get(key_id) != "tested"
        self.set_state(key_id, "tested")
        if newly_tested:
            logger.debug("key %d tested", key_id)
            if self.is_complete:
                logger.info("all %d keys of %s tested", len(self.states), self.model.name)
        return newly_tested

    def reset(self) -> None:
        """Mark all keys as untested."""
        self.states = dict.fromkeys(self.states, "untested")

    @property
    def is_complete(self) -> bool:
        """Return whether every key has been tested."""
        return bool(self.states) and all(state == "tested" for state in self.states.values())

    def stats(self) -> SessionStats:
        """Return counts of tested and untested keys."""
        total = len(self.states)
        tested = sum(state == "tested" for state in self.states.values())
        return SessionStats(
            total_keys=total,
            tested_keys=tested,
            untested_keys=total - tested,
            progress=round(tested / total * 100, 1) if total else 0.0,
        )

    def results(self, timestamp: datetime | None = None) -> KeyTestResults:
        """Build the results document, timestamped now unless `timestamp` is given."""
        stats = self.stats()
        return KeyTestResults(
            timestamp=(timestamp or datetime.now(timezone.utc)).isoformat(),
            keyboard=self.model.name,
            firmware_type=self.model.type,
            total_keys=stats.total_keys,
            tested_keys=stats.tested_keys,
            progress=stats.progress,
            key_details=[
                KeyDetail(id=key.id, row=key.row, col=key.col, keycode=key.keycode, tested=self.states[key.id] == "tested")
                for key in self.model.keys
            ],
        )
