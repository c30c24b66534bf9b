"""Tests for wire/value model parsing."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from ledpanel.models.messages import LevelCommand, LevelStateMessage, SensorMessage
from ledpanel.models.preset import BUILTIN_PRESETS, CreatePresetResponse, Preset
from ledpanel.models.sensor import SensorState


def test_level_state_coerces_numeric_strings() -> None:
    msg = LevelStateMessage.model_validate({"led": "2", "level": "17"})

    assert (msg.led, msg.level) == (2, 17)


def test_level_state_rejects_out_of_range_level() -> None:
    with pytest.raises(ValidationError):
        LevelStateMessage.model_validate({"led": 0, "level": 256})


def test_level_command_payload_is_compact() -> None:
    assert LevelCommand(led=0, level=255).to_payload() == '{"led":0,"level":255}'


def test_sensor_message_stringifies_value() -> None:
    assert SensorMessage.model_validate({"pir": 1}).pir == "1"
    assert SensorState(SensorMessage.model_validate({"pir": "clear"}).pir) is SensorState.CLEAR


def test_create_response_unwraps_new_item() -> None:
    response = CreatePresetResponse.model_validate({"newItem": {"id": 42, "name": "Desk", "levels": [1, 2, 3]}})

    assert response.new_item == Preset(id="42", name="Desk", levels=(1, 2, 3))


def test_preset_requires_three_levels_and_a_name() -> None:
    with pytest.raises(ValidationError):
        Preset(name="x", levels=(1, 2))  # type: ignore[arg-type]
    with pytest.raises(ValidationError):
        Preset(name=" ", levels=(1, 2, 3))


def test_builtin_presets() -> None:
    assert {p.name: p.levels for p in BUILTIN_PRESETS} == {
        "All Off": (0, 0, 0),
        "All On": (255, 255, 255),
        "Reading": (200, 200, 100),
        "Movie": (20, 20, 150),
        "Warm": (255, 180, 50),
    }
    assert all(p.id is None for p in BUILTIN_PRESETS)
