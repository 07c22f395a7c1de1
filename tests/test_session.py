from datetime import datetime, timezone

import pytest

from firmware_layout.model import KeyboardModel
from firmware_layout.physical_layout import FlatGridLayout
from firmware_layout.session import KeyTestSession


@pytest.fixture(name="session")
def fixture_session() -> KeyTestSession:
    model = KeyboardModel(type="QMK", name="Pad", keys=tuple(FlatGridLayout(key_count=3).generate()))
    return KeyTestSession(model)


def test_initial_state(session: KeyTestSession) -> None:
    stats = session.stats()

    assert session.states == {0: "untested", 1: "untested", 2: "untested"}
    assert (stats.total_keys, stats.tested_keys, stats.untested_keys, stats.progress) == (3, 0, 3, 0.0)
    assert not session.is_complete


def test_mark_tested(session: KeyTestSession) -> None:
    assert session.mark_tested(0)
    assert not session.mark_tested(0)

    stats = session.stats()
    assert (stats.tested_keys, stats.untested_keys, stats.progress) == (1, 2, 33.3)


def test_complete(session: KeyTestSession) -> None:
    for key_id in range(3):
        session.mark_tested(key_id)

    assert session.is_complete
    assert session.stats().progress == 100.0


def test_transient_states_are_not_tested(session: KeyTestSession) -> None:
    session.set_state(1, "hover")
    session.set_state(2, "pressed")

    assert session.stats().tested_keys == 0
    assert session.mark_tested(2)


def test_reset(session: KeyTestSession) -> None:
    session.mark_tested(0)
    session.mark_tested(1)
    session.reset()

    assert session.stats().tested_keys == 0
    assert set(session.states.values()) == {"untested"}


def test_unknown_key(session: KeyTestSession) -> None:
    with pytest.raises(KeyError):
        session.mark_tested(3)


def test_model_is_not_modified(session: KeyTestSession) -> None:
    keys = session.model.keys
    session.mark_tested(0)
    assert session.model.keys == keys


def test_results(session: KeyTestSession) -> None:
    session.mark_tested(1)
    data = session.results(datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)).dump()

    assert data["timestamp"] == "2024-01-02T03:04:05+00:00"
    assert data["keyboard"] == "Pad"
    assert data["firmwareType"] == "QMK"
    assert (data["totalKeys"], data["testedKeys"], data["progress"]) == (3, 1, 33.3)
    assert data["keyDetails"][1] == {"id": 1, "row": 0, "col": 1, "keycode": "KC_NO", "tested": True}
    assert [detail["tested"] for detail in data["keyDetails"]] == [False, True, False]


def test_results_default_timestamp(session: KeyTestSession) -> None:
    timestamp = datetime.fromisoformat(session.results().timestamp)
    assert timestamp.tzinfo is not None


def test_empty_model() -> None:
    session = KeyTestSession(KeyboardModel(name="empty"))

    assert session.stats().progress == 0.0
    assert not session.is_complete
    assert not session.results().key_details
