"""Tests for the unit catalog and configuration validation."""
import pytest

from engine.errors import ConfigurationError, UnknownArchetype
from engine.model import UNIT_TYPES, LevelConfig, get_archetype
from engine.rules import Rules


def test_catalog_has_three_tiers():
    assert [UNIT_TYPES[a].strength for a in ("small", "medium", "heavy")] == [10, 20, 30]
    assert get_archetype("medium").move_speed == 1.2


def test_unknown_archetype_is_a_configuration_error():
    with pytest.raises(UnknownArchetype) as exc:
        get_archetype("dragon")
    assert isinstance(exc.value, ConfigurationError)
    assert isinstance(exc.value, KeyError)
    assert "dragon" in str(exc.value)


@pytest.mark.parametrize("kwargs", [
    {"lane_count": 0},
    {"opponent_speed": 0},
    {"opponent_aggression": 1.5},
    {"starting_health": 0},
    {"starting_health": 301},
])
def test_level_config_rejects_bad_values(kwargs):
    with pytest.raises(ConfigurationError):
        LevelConfig(**kwargs)


def test_level_config_from_dict_ignores_presentation_keys():
    level = LevelConfig.from_dict({"lane_count": 3, "starting_health": 200, "theme": "winter"})
    assert level.lane_count == 3
    assert level.starting_health == 200


def test_rules_require_chain_tolerance_above_follow_buffer():
    with pytest.raises(ConfigurationError):
        Rules(chain_tolerance=5.0, follow_buffer=5.0)


def test_rules_reject_negative_cooldown():
    with pytest.raises(ConfigurationError):
        Rules(spawn_cooldown_ms=-1.0)
