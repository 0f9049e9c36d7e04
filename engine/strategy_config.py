"""
Strategy Configuration

Tuning knobs for the evaluator, the annealing planners and the heuristic
brain, read from a JSON file so matches can be replayed with different
weights without touching code.

Usage:
    from engine.strategy_config import get_config

    low = get_config().get('attack_strategy', 'cancel_threshold', default=0.35)

Environment:
    STRATEGY_CONFIG - Path to JSON config file (default: configs/baseline.json)

Sections:
    evaluator        at_risk_penalty, at_risk_weight
    annealing        temperature_per_second
    deploy_strategy  enclosed_fallback
    attack_strategy  cancel_threshold, commit_threshold, jump_divisor, max_transfers
    heuristic        enemy_multiplier, neutral_multiplier, default_neutral_armies, attack_chance
    monte_carlo      enabled, n_simulations
    global           time_fraction, phase_budget_cap_ms
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "configs" / "baseline.json"

# Sections echoed to the log on load
LOGGED_SECTIONS = ('evaluator', 'annealing', 'attack_strategy', 'global')


def _resolve_path(config_path: Optional[str]) -> Path:
    if config_path:
        return Path(config_path)
    return Path(os.environ.get('STRATEGY_CONFIG') or DEFAULT_CONFIG_PATH)


class StrategyConfig:
    """
    Section/key access to a strategy JSON file.

    A missing or unreadable file leaves the config empty; every caller
    passes its own default, so the bot plays with built-in tuning.
    """

    def __init__(self, config_path: Optional[str] = None):
        self.path = _resolve_path(config_path)
        self._sections: Dict[str, Any] = {}
        self._loaded = False
        self.reload()

    def reload(self):
        """Re-read the file; on any problem fall back to an empty config."""
        self._sections = {}
        self._loaded = False

        if not self.path.exists():
            logger.warning(f"Strategy config not found: {self.path}, using built-in defaults")
            return
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"❌ Invalid JSON in strategy config {self.path}: {e}")
            return
        except OSError as e:
            logger.error(f"❌ Could not read strategy config {self.path}: {e}")
            return

        if not isinstance(data, dict):
            logger.error(f"❌ Strategy config {self.path} is not a JSON object")
            return

        self._sections = data
        self._loaded = True
        logger.info(f"⚙️ Strategy config '{self.name}' loaded from {self.path}")
        for section in LOGGED_SECTIONS:
            values = self.get_section(section)
            if values:
                logger.info(f"  [{section}] " + ", ".join(f"{k}={v}" for k, v in values.items()))

    @property
    def name(self) -> str:
        return self._sections.get('name', 'default')

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """
        Look up `key` in `section`.

        Args:
            section: e.g. 'attack_strategy'
            key: e.g. 'commit_threshold'
            default: Returned when the section or key is absent
        """
        return self.get_section(section).get(key, default)

    def get_global(self, key: str, default: Any = None) -> Any:
        return self.get('global', key, default)

    def get_section(self, section: str) -> Dict[str, Any]:
        """A whole section (e.g. 'monte_carlo'), or {} if absent."""
        values = self._sections.get(section, {})
        return values if isinstance(values, dict) else {}

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._sections)


_config: Optional[StrategyConfig] = None


def get_config() -> StrategyConfig:
    """The process-wide config, loaded on first use."""
    global _config
    if _config is None:
        _config = StrategyConfig()
    return _config


def set_config_path(path: str):
    """Replace the process-wide config with one loaded from `path`."""
    global _config
    _config = StrategyConfig(path)


def reload_config():
    """Re-read the process-wide config from its file."""
    global _config
    if _config:
        _config.reload()
