from __future__ import annotations

import logging
from dataclasses import dataclass

from zonerunner.sim.player import Direction
from zonerunner.sim.world import EntityType, Position, ZoneMap

logger = logging.getLogger(__name__)

BOLT_MAX_RANGE = 5

BOLT_ANOMALY_MESSAGES: dict[EntityType, str] = {
    EntityType.GRAVITATIONAL_ANOMALY: "The bolt curves sharply and falls to the ground near a gravitational distortion.",
    EntityType.PHILOSOPHER_STONE: "The bolt strikes something shimmering and falls to the ground.",
    EntityType.RUST_ANOMALY: "The bolt strikes something and begins to oxidize rapidly.",
}


@dataclass(frozen=True)
class BoltFlight:
    landing: Position
    tiles_traveled: int
    message: str


def _anomaly_at(zone_map: ZoneMap, position: Position) -> EntityType | None:
    for entity_type in zone_map.entity_types_at(position):
        if entity_type.is_anomaly:
            return entity_type
    return None


def resolve_bolt_flight(
    zone_map: ZoneMap,
    start: Position,
    direction: Direction,
    max_range: int = BOLT_MAX_RANGE,
) -> BoltFlight:
    """Walk a thrown bolt cell by cell and report where it comes to rest.

    The bolt never lands outside the grid or inside a wall; it stops on an
    anomaly cell, which is how anomalies are found without stepping in.
    """

    dx, dy = direction.offset
    position = start
    traveled = 0
    while True:
        candidate = position.offset(dx, dy)
        if not zone_map.grid.contains(candidate):
            message = "The bolt flies out of sight."
            break
        if not zone_map.grid.is_walkable(candidate):
            message = "The bolt clangs against the wall."
            break
        anomaly = _anomaly_at(zone_map, candidate)
        if anomaly is not None:
            position = candidate
            message = BOLT_ANOMALY_MESSAGES[anomaly]
            break
        position = candidate
        traveled += 1
        if traveled >= max_range:
            message = "The bolt falls to the ground harmlessly."
            break

    logger.info("bolt landed at (%d, %d) after %d tiles", position.x, position.y, traveled)
    return BoltFlight(landing=position, tiles_traveled=traveled, message=message)
