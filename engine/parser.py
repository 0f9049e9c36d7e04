"""
Line protocol parser for the match engine.

The engine talks to the bot over stdin/stdout, one command per line.
This module turns those lines into BotState updates and brain calls,
and writes exactly one response line for every request:

    pick_starting_region <timeout> <ids...>   -> "<id>"
    go place_armies <timeout>                 -> "<name> place_armies <id> <n>,..."
    go attack/transfer <timeout>              -> "<name> attack/transfer <from> <to> <n>,..."

Everything else (settings, setup_map, update_map, opponent_moves) only
updates state. Unknown lines are logged and ignored.
"""

import logging
import sys
import time
from typing import Callable, Iterable, List, Optional, TextIO

from brain.interface import Brain, TurnContext
from engine.bot_state import BotState
from engine import decision_logger
from engine.decision_logger import log_decision
from engine.decision_safety import DecisionSafety, NO_MOVES
from engine.strategy_config import StrategyConfig, get_config

logger = logging.getLogger(__name__)


class BotParser:
    """
    Reads engine commands and answers requests.

    Args:
        brain: Decision-making implementation
        state: Match state (a fresh BotState by default)
        config: Strategy config for the phase time budget
        clock: Seconds-valued clock used for decision timing
    """

    def __init__(self, brain: Brain, state: Optional[BotState] = None,
                 config: Optional[StrategyConfig] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.brain = brain
        self.state = state or BotState()
        self.config = config or get_config()
        self.clock = clock

    def run(self, input_stream: Optional[Iterable[str]] = None,
            output_stream: Optional[TextIO] = None) -> int:
        """
        Process lines until the input is exhausted.

        Returns:
            Number of responses written
        """
        input_stream = input_stream if input_stream is not None else sys.stdin
        output_stream = output_stream if output_stream is not None else sys.stdout

        responses = 0
        for raw in input_stream:
            line = raw.strip()
            if not line:
                continue
            response = self.handle_line(line)
            if response is not None:
                output_stream.write(response + "\n")
                output_stream.flush()
                responses += 1
        logger.info(f"Input closed after {responses} responses")
        decision_logger.flush()
        return responses

    def handle_line(self, line: str) -> Optional[str]:
        """Apply one line; returns the response for requests, None otherwise."""
        parts = line.split()
        if not parts:
            return None
        command = parts[0]

        if command == "pick_starting_region":
            return self._pick_starting_region(parts[1:])
        if command == "go" and len(parts) == 3:
            return self._go(parts[1], parts[2])

        try:
            if command == "settings" and len(parts) >= 2:
                self.state.update_settings(parts[1], parts[2:])
            elif command == "setup_map" and len(parts) >= 2:
                self.state.setup_map(parts[1], parts[2:])
            elif command == "update_map":
                self.state.update_map(parts[1:])
                self.brain.on_round_start(self.state.round_number, self.state.visible_map)
            elif command == "opponent_moves":
                self.state.read_opponent_moves(parts[1:])
            else:
                logger.warning(f"Unable to parse line \"{line}\"")
        except (ValueError, KeyError, IndexError) as e:
            logger.error(f"❌ Bad '{command}' line ignored: {e}", exc_info=True)
        return None

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def _timeout(self, value: str) -> float:
        try:
            return float(value)
        except ValueError:
            logger.warning(f"Bad timeout '{value}', using the per-move allowance")
            return float(self.state.time_per_move or 0)

    def _pick_starting_region(self, args: List[str]) -> str:
        start = self.clock()
        request = "pick_starting_region"
        pickable: List[int] = []
        emergency = False
        try:
            self.state.set_pickable_starting_regions(args[1:])
            pickable = self.state.pickable_regions
            choice = self.brain.pick_starting_region(self.state.full_map, pickable,
                                                     self.state.picked_regions)
            choice, reason = DecisionSafety.ensure_valid_pick(choice, pickable)
            if reason:
                logger.error(f"🚨 {reason}")
            response = str(choice) if choice is not None else NO_MOVES
        except Exception as e:
            logger.error(f"❌ Exception picking starting region: {e}", exc_info=True)
            choice = None
            safety = DecisionSafety.get_emergency_response(request, pickable)
            response, emergency = safety.value, True
            if pickable:
                choice = pickable[0]

        self.state.record_pick(choice)
        self._log(request, response, start, emergency, {'pickable': pickable})
        return response

    def _go(self, phase: str, timeout: str) -> str:
        start = self.clock()
        state = self.state
        context = TurnContext(
            board=state.visible_map,
            my_name=state.my_name,
            opponent_name=state.opponent_name,
            army_pool=state.starting_armies,
            budget_ms=state.phase_budget_ms(self._timeout(timeout), self.config),
            round_number=state.round_number,
        )

        emergency = False
        try:
            if phase == "place_armies":
                moves, reason = DecisionSafety.ensure_valid_placements(
                    self.brain.place_armies(context), state.visible_map,
                    state.my_name, state.starting_armies)
            elif phase == "attack/transfer":
                moves, reason = DecisionSafety.ensure_valid_attacks(
                    self.brain.attack_transfer(context), state.visible_map, state.my_name)
            else:
                logger.warning(f"Unknown phase '{phase}'")
                moves, reason = [], ""
            if reason:
                logger.error(f"🚨 {reason}")
            response = DecisionSafety.render(moves)
        except Exception as e:
            logger.error(f"❌ Exception in {phase}: {e}", exc_info=True)
            moves = []
            response = DecisionSafety.get_emergency_response(phase).value
            emergency = True

        if phase == "place_armies":
            # Our placements land before the attack phase is asked for
            state.apply_placements(moves)

        self._log(phase, response, start, emergency, context.to_dict())
        return response

    def _log(self, request: str, response: str, start: float, emergency: bool, details: dict):
        elapsed_ms = (self.clock() - start) * 1000.0
        logger.debug(f"{request} answered in {elapsed_ms:.0f}ms: {response}")
        log_decision(request, response, round_number=self.state.round_number,
                     elapsed_ms=elapsed_ms, was_emergency=emergency, details=details)
