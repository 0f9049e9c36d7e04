import os
from dataclasses import dataclass
from typing import Optional


def _env_seed() -> Optional[int]:
    value = os.environ.get('BOT_SEED', '')
    return int(value) if value.strip() else None


@dataclass
class Config:
    """Process configuration for the Warlight bot"""

    # Bot settings
    BOT_MODE: str = os.environ.get('BOT_MODE', 'annealing')  # 'annealing', 'heuristic'
    BOT_SEED: Optional[int] = _env_seed()                      # None = fresh randomness each match

    # Strategy tuning (JSON); empty = configs/baseline.json
    STRATEGY_CONFIG: str = os.environ.get('STRATEGY_CONFIG', '')

    # Logging
    LOG_LEVEL: str = os.environ.get('LOG_LEVEL', 'INFO').upper()
    DECISION_LOG: bool = os.environ.get('DECISION_LOG', 'False').lower() == 'true'

    # Paths
    BASE_DIR: str = os.path.dirname(os.path.abspath(__file__))
    LOG_DIR: str = os.environ.get('LOG_DIR', os.path.join(BASE_DIR, 'logs'))

    def __post_init__(self):
        """Ensure directories exist"""
        os.makedirs(self.LOG_DIR, exist_ok=True)


# Create global config instance
config = Config()
