"""AI settings - tunable weights, thresholds and probabilities.

Settings are plain dataclasses validated on construction. They can be saved
to and loaded from a JSON file in the user's home directory.
"""
import json
import logging
from dataclasses import dataclass, field, fields, asdict, replace
from pathlib import Path
from typing import Optional, Dict, Any

logger = logging.getLogger(__name__)

# Settings file location (in user's home directory)
SETTINGS_DIR = Path.home() / ".damnata"
SETTINGS_FILE = SETTINGS_DIR / "ai_settings.json"


class ConfigError(ValueError):
    """Raised when a setting has the wrong type or is outside its allowed range."""


def _check_probability(owner: object, name: str):
    value = getattr(owner, name)
    if not 0.0 <= value <= 1.0:
        raise ConfigError(f"{type(owner).__name__}.{name} must be in [0, 1], got {value}")


def _check_non_negative(owner: object, name: str):
    value = getattr(owner, name)
    if value < 0:
        raise ConfigError(f"{type(owner).__name__}.{name} must be >= 0, got {value}")


def _check_type(owner: object, f):
    value = getattr(owner, f.name)
    if f.type is bool:
        ok = isinstance(value, bool)
    elif f.type is int:
        ok = isinstance(value, int) and not isinstance(value, bool)
    else:
        ok = isinstance(value, (int, float)) and not isinstance(value, bool)
    if not ok:
        raise ConfigError(
            f"{type(owner).__name__}.{f.name} must be {f.type.__name__}, got {value!r}")


def _validate(owner: object, probabilities=()):
    """Values must match their field type.

    Probabilities must lie in [0, 1]; every other number must be >= 0.
    """
    for f in fields(owner):
        _check_type(owner, f)
        if f.type is bool:
            continue
        if f.name in probabilities:
            _check_probability(owner, f.name)
        else:
            _check_non_negative(owner, f.name)


# Probability fields per section; AISettings.deterministic() zeroes them all
_RANDOM_FIELDS = {
    'card_play': ('suboptimal_play_chance', 'evaluation_variance', 'skip_card_play_chance',
                  'strategic_stop_chance', 'hold_expensive_card_chance',
                  'hold_high_future_value_chance', 'low_deck_size_conservation_chance'),
    'attack': ('decision_variance', 'attack_order_randomization_chance',
               'last_monster_ignore_chance', 'target_score_variance',
               'health_icon_mistake_chance', 'attack_skip_chance',
               'target_reconsideration_chance', 'missed_attack_chance',
               'strategy_change_chance'),
}

# Posture probabilities; deterministic() pins them to their likelier branch
_MODE_FIELDS = ('single_unit_defensive_chance', 'aggro_fallback_chance')


@dataclass
class BoardStateSettings:
    """Weights used when turning units into a board-control score."""
    late_game_turn_threshold: int = 10
    health_influence_factor: float = 0.2
    board_presence_multiplier: float = 0.25
    resource_advantage_weight: float = 0.3
    critical_health_threshold: float = 0.3

    taunt_value: float = 1.3
    ranged_value: float = 1.2
    tough_value: float = 1.15
    overwhelm_value: float = 1.25
    keyword_synergy_bonus: float = 0.1

    def __post_init__(self):
        _validate(self, probabilities=('critical_health_threshold',))


@dataclass
class CardPlaySettings:
    """Card play phase tuning."""
    suboptimal_play_chance: float = 0.10
    evaluation_variance: float = 0.15
    skip_card_play_chance: float = 0.15
    card_hold_board_advantage_threshold: float = 1.3
    future_value_multiplier: float = 0.7
    strategic_stop_chance: float = 0.3
    early_stop_board_advantage_threshold: float = 1.2
    low_value_card_threshold: float = 60
    high_value_card_threshold: float = 70
    player_low_health_threshold: int = 10
    early_game_expensive_card_multiplier: float = 1.5
    hold_expensive_card_chance: float = 0.6
    hold_high_future_value_chance: float = 0.5
    future_to_current_value_ratio: float = 0.7
    low_deck_size_threshold: int = 10
    low_deck_size_conservation_chance: float = 0.4
    expensive_card_cost: int = 4
    early_game_turn_limit: int = 3

    def __post_init__(self):
        _validate(self, probabilities=_RANDOM_FIELDS['card_play'])


@dataclass
class AttackSettings:
    """Attack phase tuning."""
    decision_variance: float = 0.10
    attack_order_randomization_chance: float = 0.10
    health_threshold_for_aggro: int = 8
    aggressive_turn_threshold: int = 4
    avoid_losing_last_monster: bool = True
    last_monster_ignore_chance: float = 0.15
    valuable_trade_ratio: float = 2.0

    high_threat_attack: int = 5
    base_trade_ratio: float = 1.3

    target_score_variance: float = 0.15
    target_score_variance_cap: float = 20

    health_icon_mistake_chance: float = 0.05
    attack_skip_chance: float = 0.25
    attack_skip_advantage_threshold: float = 1.5
    target_reconsideration_chance: float = 0.05
    missed_attack_chance: float = 0.0
    strategy_change_chance: float = 0.05

    # Strategic mode rolls (posture, not mistakes)
    single_unit_defensive_chance: float = 0.75
    aggro_fallback_chance: float = 0.6

    def __post_init__(self):
        _validate(self, probabilities=_RANDOM_FIELDS['attack'] + _MODE_FIELDS)
        if self.valuable_trade_ratio < 1.0:
            raise ConfigError(f"AttackSettings.valuable_trade_ratio must be >= 1.0, got {self.valuable_trade_ratio}")


@dataclass
class ExecutionSettings:
    """Pacing between executed actions. Headless runs never sleep."""
    action_delay: float = 0.5
    delay_variance: float = 0.3
    headless: bool = True

    def __post_init__(self):
        _validate(self, probabilities=('delay_variance',))


@dataclass
class AISettings:
    """All AI settings sections."""
    board: BoardStateSettings = field(default_factory=BoardStateSettings)
    card_play: CardPlaySettings = field(default_factory=CardPlaySettings)
    attack: AttackSettings = field(default_factory=AttackSettings)
    execution: ExecutionSettings = field(default_factory=ExecutionSettings)

    @classmethod
    def deterministic(cls) -> 'AISettings':
        """Settings with every random decision disabled or pinned.

        Planners built from these follow only their default path.
        """
        settings = cls()
        for section, names in _RANDOM_FIELDS.items():
            current = getattr(settings, section)
            setattr(settings, section, replace(current, **{n: 0.0 for n in names}))
        settings.attack = replace(settings.attack, **{n: 1.0 for n in _MODE_FIELDS})
        return settings

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AISettings':
        """Build settings from a (possibly partial) dict.

        Raises:
            ConfigError: unknown keys or out-of-range values
        """
        sections = {
            'board': BoardStateSettings,
            'card_play': CardPlaySettings,
            'attack': AttackSettings,
            'execution': ExecutionSettings,
        }
        kwargs = {}
        for name, section_cls in sections.items():
            values = data.get(name, {})
            try:
                kwargs[name] = section_cls(**values)
            except TypeError as e:
                raise ConfigError(f"Invalid '{name}' settings: {e}") from e
        return cls(**kwargs)


def ensure_settings_dir(path: Path):
    """Create settings directory if it doesn't exist."""
    path.parent.mkdir(parents=True, exist_ok=True)


def load_settings(path: Optional[Path] = None) -> AISettings:
    """Load settings from file, or return defaults if the file is missing or unreadable.

    Values that are present but invalid raise ConfigError.
    """
    path = Path(path) if path is not None else SETTINGS_FILE
    try:
        if path.exists():
            with open(path, 'r', encoding='utf-8') as f:
                saved = json.load(f)
            settings = AISettings.from_dict(saved)
            logger.info(f"AI settings loaded from {path}")
            return settings
        logger.debug(f"Settings file not found at {path}, using defaults")
    except (json.JSONDecodeError, IOError) as e:
        logger.warning(f"Failed to load settings: {e}")
    return AISettings()


def save_settings(settings: AISettings, path: Optional[Path] = None):
    """Save settings to file."""
    path = Path(path) if path is not None else SETTINGS_FILE
    try:
        ensure_settings_dir(path)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(settings.to_dict(), f, indent=2)
        logger.info(f"AI settings saved to {path}")
    except IOError as e:
        logger.error(f"Failed to save settings: {e}")
