"""
Decision records exchanged with the match engine.

Pure value objects: the brain builds them, the parser renders them.
"""

from dataclasses import dataclass


@dataclass
class PlaceArmiesMove:
    """Place `armies` reinforcements on a territory."""
    player_name: str
    territory_id: int
    armies: int
    illegal_move: str = ""  # Engine-supplied reason when the move was rejected

    def to_command(self) -> str:
        if self.illegal_move:
            return f"{self.player_name} illegal_move {self.illegal_move}"
        return f"{self.player_name} place_armies {self.territory_id} {self.armies}"


@dataclass
class AttackTransferMove:
    """Send `armies` from one territory to an adjacent one."""
    player_name: str
    from_id: int
    to_id: int
    armies: int
    illegal_move: str = ""

    def to_command(self) -> str:
        if self.illegal_move:
            return f"{self.player_name} illegal_move {self.illegal_move}"
        return f"{self.player_name} attack/transfer {self.from_id} {self.to_id} {self.armies}"
