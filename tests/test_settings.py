"""Tests for AI settings validation and persistence."""
import json
import pytest

from damnata.settings import (
    AISettings, AttackSettings, CardPlaySettings, BoardStateSettings, ExecutionSettings,
    ConfigError, load_settings, save_settings,
)


class TestDefaults:
    """Default values of the tuning sections."""

    def test_attack_defaults(self):
        """Attack phase probabilities start at their tuned values."""
        s = AttackSettings()
        assert s.attack_skip_chance == 0.25
        assert s.health_icon_mistake_chance == 0.05
        assert s.missed_attack_chance == 0.0
        assert s.high_threat_attack == 5
        assert s.avoid_losing_last_monster is True

    def test_card_play_defaults(self):
        """Card play thresholds start at their tuned values."""
        s = CardPlaySettings()
        assert s.card_hold_board_advantage_threshold == 1.3
        assert s.low_value_card_threshold == 60
        assert s.high_value_card_threshold == 70
        assert s.expensive_card_cost == 4

    def test_execution_defaults_to_headless(self):
        """Execution never sleeps unless asked to."""
        assert ExecutionSettings().headless is True


class TestValidation:
    """Out-of-range settings are rejected at construction."""

    def test_probability_above_one_rejected(self):
        """A chance of 1.5 is a configuration error."""
        with pytest.raises(ConfigError):
            CardPlaySettings(skip_card_play_chance=1.5)

    def test_negative_probability_rejected(self):
        """A negative chance is a configuration error."""
        with pytest.raises(ConfigError):
            AttackSettings(attack_skip_chance=-0.1)

    def test_negative_threshold_rejected(self):
        """Thresholds must be non-negative."""
        with pytest.raises(ConfigError):
            AttackSettings(health_threshold_for_aggro=-1)

    def test_negative_board_weight_rejected(self):
        """Board weights must be non-negative."""
        with pytest.raises(ConfigError):
            BoardStateSettings(taunt_value=-1.0)

    def test_trade_ratio_below_one_rejected(self):
        """The maximum trade ratio cannot be below 1."""
        with pytest.raises(ConfigError):
            AttackSettings(valuable_trade_ratio=0.5)

    def test_string_number_rejected(self):
        """A number written as a string is a configuration error."""
        with pytest.raises(ConfigError):
            AttackSettings(decision_variance="0.5")

    def test_none_rejected(self):
        """A null threshold is a configuration error."""
        with pytest.raises(ConfigError):
            AttackSettings(high_threat_attack=None)

    def test_bool_for_number_rejected(self):
        """True is not accepted where a number is expected."""
        with pytest.raises(ConfigError):
            CardPlaySettings(expensive_card_cost=True)

    def test_number_for_bool_rejected(self):
        """Flags must be real booleans."""
        with pytest.raises(ConfigError):
            AttackSettings(avoid_losing_last_monster=1)

    def test_float_for_int_rejected(self):
        """Whole-number thresholds do not take fractions."""
        with pytest.raises(ConfigError):
            CardPlaySettings(player_low_health_threshold=9.5)

    def test_int_for_float_accepted(self):
        """Integers are fine where a float is expected."""
        assert AttackSettings(valuable_trade_ratio=3).valuable_trade_ratio == 3

    def test_config_error_is_value_error(self):
        """Callers catching ValueError also see configuration errors."""
        assert issubclass(ConfigError, ValueError)


class TestDeterministic:
    """AISettings.deterministic() disables every random decision."""

    def test_mistake_chances_zeroed(self):
        """Mistakes, skips and holds never fire."""
        s = AISettings.deterministic()
        assert s.attack.health_icon_mistake_chance == 0.0
        assert s.attack.decision_variance == 0.0
        assert s.attack.target_score_variance == 0.0
        assert s.card_play.skip_card_play_chance == 0.0
        assert s.card_play.evaluation_variance == 0.0

    def test_posture_rolls_pinned(self):
        """Posture rolls always take their likelier branch."""
        s = AISettings.deterministic()
        assert s.attack.single_unit_defensive_chance == 1.0
        assert s.attack.aggro_fallback_chance == 1.0

    def test_thresholds_untouched(self):
        """Only probabilities change, thresholds keep their defaults."""
        s = AISettings.deterministic()
        assert s.attack.attack_skip_advantage_threshold == AttackSettings().attack_skip_advantage_threshold
        assert s.card_play.low_value_card_threshold == CardPlaySettings().low_value_card_threshold


class TestPersistence:
    """JSON load/save."""

    def test_save_then_load(self, tmp_path):
        """Saved settings load back unchanged."""
        path = tmp_path / "ai.json"
        settings = AISettings(attack=AttackSettings(attack_skip_chance=0.5))
        save_settings(settings, path)
        assert load_settings(path) == settings

    def test_partial_file_merges_over_defaults(self, tmp_path):
        """Missing keys keep their defaults."""
        path = tmp_path / "ai.json"
        path.write_text(json.dumps({'card_play': {'expensive_card_cost': 6}}))
        loaded = load_settings(path)
        assert loaded.card_play.expensive_card_cost == 6
        assert loaded.attack == AttackSettings()

    def test_missing_file_gives_defaults(self, tmp_path):
        """No file means default settings."""
        assert load_settings(tmp_path / "missing.json") == AISettings()

    def test_corrupt_file_gives_defaults(self, tmp_path):
        """Unreadable JSON is logged and ignored."""
        path = tmp_path / "ai.json"
        path.write_text("{not json")
        assert load_settings(path) == AISettings()

    def test_unknown_key_rejected(self):
        """Typos in a settings file are configuration errors."""
        with pytest.raises(ConfigError):
            AISettings.from_dict({'attack': {'attack_skip_chanse': 0.3}})

    def test_invalid_value_in_file_rejected(self, tmp_path):
        """Out-of-range values in a file are not silently replaced."""
        path = tmp_path / "ai.json"
        path.write_text(json.dumps({'attack': {'attack_skip_chance': 2}}))
        with pytest.raises(ConfigError):
            load_settings(path)

    def test_wrongly_typed_values_in_file_rejected(self, tmp_path):
        """Strings and nulls in a file fail at load time, not mid-turn."""
        path = tmp_path / "ai.json"
        path.write_text(json.dumps(
            {'attack': {'decision_variance': "0.5", 'high_threat_attack': None}}))
        with pytest.raises(ConfigError):
            load_settings(path)
