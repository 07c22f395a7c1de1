import json
import sys
from pathlib import Path

import pytest
import yaml

from firmware_layout.__main__ import main
from firmware_layout.config import ParseConfig
from firmware_layout.parse import ParseError


def run_cli(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], *args: str) -> str:
    monkeypatch.setattr(sys, "argv", ["firmware-layout", *args])
    main()
    return capsys.readouterr().out


@pytest.fixture(name="firmware_file")
def fixture_firmware_file(tmp_path: Path) -> Path:
    path = tmp_path / "info.json"
    path.write_text(json.dumps({"keyboard_name": "Pad", "matrix": {"rows": 2, "cols": 2}}), encoding="utf-8")
    return path


def test_parse(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], firmware_file: Path) -> None:
    data = yaml.safe_load(run_cli(monkeypatch, capsys, "parse", str(firmware_file)))

    assert data["name"] == "Pad"
    assert data["type"] == "Generic"
    assert data["layout"]["name"] == "ortholinear"
    assert len(data["keys"]) == 4
    assert "half" not in data["keys"][0]


def test_results(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], firmware_file: Path) -> None:
    data = json.loads(run_cli(monkeypatch, capsys, "results", str(firmware_file), "-t", "0", "2"))

    assert (data["totalKeys"], data["testedKeys"], data["progress"]) == (4, 2, 50.0)
    assert [detail["tested"] for detail in data["keyDetails"]] == [True, False, True, False]


def test_dump_config_roundtrip(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], tmp_path: Path, firmware_file: Path
) -> None:
    dumped = yaml.safe_load(run_cli(monkeypatch, capsys, "dump-config"))
    assert ParseConfig.model_validate(dumped) == ParseConfig()

    config_path = tmp_path / "config.yaml"
    config_path.write_text("split_name_fragments: [pad]\n", encoding="utf-8")
    data = yaml.safe_load(run_cli(monkeypatch, capsys, "-c", str(config_path), "parse", str(firmware_file)))

    assert data["metadata"]["is_split"]
    assert len(data["keys"]) == 42


def test_parse_error(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(sys, "argv", ["firmware-layout", "parse", str(tmp_path / "missing.keymap")])
    with pytest.raises(ParseError, match="Failed to parse firmware"):
        main()


def test_env_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FIRMWARE_LAYOUT_BINARY_LAYER_NAME", "default")
    monkeypatch.setenv("FIRMWARE_LAYOUT_PREPROCESS", "false")

    config = ParseConfig()
    assert config.binary_layer_name == "default"
    assert not config.preprocess
