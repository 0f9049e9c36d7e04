"""
Decision Logger

Captures one JSON line per decision the bot makes (starting picks,
placements, attack/transfer orders) for post-game analysis and tuning.

The logger is dedicated and does not propagate to the root logger, so the
main log stays readable. Nothing is written until enable_decision_log()
is called.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

decision_logger = logging.getLogger("decisions")
decision_logger.setLevel(logging.INFO)
decision_logger.propagate = False  # Don't propagate to root logger

_file_handler: Optional[logging.FileHandler] = None


def enable_decision_log(path: Union[str, Path]) -> Path:
    """
    Start writing decisions to `path` (parent directories are created).

    Calling again switches the log to the new file.
    """
    global _file_handler
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if _file_handler is not None:
        _file_handler.close()
        decision_logger.removeHandler(_file_handler)

    _file_handler = logging.FileHandler(str(path))
    _file_handler.setFormatter(logging.Formatter('%(message)s'))  # Raw JSON lines
    decision_logger.addHandler(_file_handler)
    return path


def disable_decision_log():
    """Stop writing decisions and close the file."""
    global _file_handler
    if _file_handler is not None:
        _file_handler.close()
        decision_logger.removeHandler(_file_handler)
        _file_handler = None


def log_decision(
    request: str,
    response: str,
    round_number: int = 0,
    elapsed_ms: float = 0.0,
    was_emergency: bool = False,
    details: Optional[Dict[str, Any]] = None,
):
    """
    Log a decision with its metadata.

    Args:
        request: pick_starting_region, place_armies or attack/transfer
        response: The exact line sent back to the engine
        round_number: Current round
        elapsed_ms: Time spent deciding
        was_emergency: True if the safety fallback produced the response
        details: Extra structured data (plans, utilities, search counters)
    """
    if _file_handler is None:
        return

    entry = {
        "timestamp": datetime.now().isoformat(),
        "round": round_number,
        "request": request,
        "response": response,
        "elapsed_ms": round(elapsed_ms, 1),
        "emergency": was_emergency,
    }
    if details:
        entry["details"] = details
    decision_logger.info(json.dumps(entry, default=str))


def flush():
    """Flush the decision log."""
    if _file_handler:
        _file_handler.flush()
