from __future__ import annotations

import logging
from dataclasses import dataclass

from zonerunner.sim.player import CarryCapacity, Direction, PlayerState
from zonerunner.sim.world import Position, ZoneMap

logger = logging.getLogger(__name__)

MOVE_APPLIED = "moved"
MOVE_BLOCKED_OVERWEIGHT = "overweight"
MOVE_BLOCKED_BOUNDS = "out_of_bounds"
MOVE_BLOCKED_WALL = "wall"
MOVE_IGNORED = "ignored"

OVERWEIGHT_MESSAGE = "You're carrying too much weight to move!"


@dataclass(frozen=True)
class MoveResult:
    outcome: str
    position: Position | None
    message: str | None = None

    @property
    def moved(self) -> bool:
        return self.outcome == MOVE_APPLIED


def try_move(
    zone_map: ZoneMap,
    player: PlayerState,
    capacity: CarryCapacity,
    direction: Direction,
) -> MoveResult:
    """Validate and commit one cardinal step.

    The player is only mutated when the outcome is ``moved``.
    """

    if player.is_overweight(capacity):
        logger.info(
            "movement blocked: over carry capacity (%d/%d)",
            player.carry_weight(),
            capacity.threshold(captured=player.is_captured),
        )
        return MoveResult(outcome=MOVE_BLOCKED_OVERWEIGHT, position=player.position, message=OVERWEIGHT_MESSAGE)

    dx, dy = direction.offset
    destination = player.position.offset(dx, dy)
    if not zone_map.grid.contains(destination):
        logger.debug("movement blocked: (%d, %d) is out of bounds", destination.x, destination.y)
        return MoveResult(outcome=MOVE_BLOCKED_BOUNDS, position=player.position)
    if not zone_map.grid.is_walkable(destination):
        logger.debug("movement blocked: wall at (%d, %d)", destination.x, destination.y)
        return MoveResult(outcome=MOVE_BLOCKED_WALL, position=player.position)

    player.position = destination
    player.last_move = direction
    logger.info("player moved to (%d, %d)", destination.x, destination.y)
    return MoveResult(outcome=MOVE_APPLIED, position=destination)
