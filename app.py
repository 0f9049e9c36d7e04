"""
Warlight Bot - Command-line entry point

Reads match-engine commands on stdin and answers on stdout. Logging goes
to a file under LOG_DIR and to stderr; stdout carries nothing but protocol
responses.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from config import config
from brain import AnnealingBrain, Brain, HeuristicBrain
from engine.decision_logger import enable_decision_log
from engine.parser import BotParser
from engine.strategy_config import get_config, set_config_path

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_FILE_NAME = 'warlight_bot.log'

BRAINS = {
    'annealing': AnnealingBrain,
    'heuristic': HeuristicBrain,
}

logger = logging.getLogger(__name__)


def setup_logging(log_dir: str, level: str) -> str:
    """Log to LOG_DIR/warlight_bot.log and stderr. Returns the log file path."""
    os.makedirs(log_dir, exist_ok=True)
    log_file_path = os.path.join(log_dir, LOG_FILE_NAME)
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_file_path),
            logging.StreamHandler(sys.stderr),
        ],
    )
    return log_file_path


def build_brain(mode: str, seed: Optional[int]) -> Brain:
    """
    Instantiate the brain for a BOT_MODE value.

    Raises:
        ValueError: for an unknown mode
    """
    try:
        brain_class = BRAINS[mode.lower()]
    except KeyError:
        raise ValueError(f"Unknown bot mode '{mode}' (expected one of {sorted(BRAINS)})") from None
    return brain_class(config=get_config(), seed=seed)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Warlight territory-conquest bot")
    parser.add_argument('--mode', default=config.BOT_MODE, choices=sorted(BRAINS),
                        help="decision engine to use")
    parser.add_argument('--seed', type=int, default=config.BOT_SEED,
                        help="random seed for reproducible matches")
    parser.add_argument('--strategy-config', default=config.STRATEGY_CONFIG,
                        help="strategy JSON (default: configs/baseline.json)")
    parser.add_argument('--log-dir', default=config.LOG_DIR)
    parser.add_argument('--log-level', default=config.LOG_LEVEL)
    parser.add_argument('--decision-log', action='store_true', default=config.DECISION_LOG,
                        help="write one JSON line per decision to LOG_DIR/decisions.jsonl")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    log_file_path = setup_logging(args.log_dir, args.log_level)
    logger.info(f"📝 Logging to {log_file_path}")

    if args.strategy_config:
        set_config_path(args.strategy_config)
    if args.decision_log:
        path = enable_decision_log(os.path.join(args.log_dir, 'decisions.jsonl'))
        logger.info(f"📊 Decision log: {path}")

    brain = build_brain(args.mode, args.seed)
    logger.info(f"🤖 Starting {brain.get_personality_name()} brain")

    BotParser(brain).run()
    return 0


if __name__ == '__main__':
    sys.exit(main())
