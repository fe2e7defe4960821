from __future__ import annotations

import logging
from pathlib import Path

from zonerunner.content.io import load_map_json, save_map_json
from zonerunner.content.items import ItemType, make_item
from zonerunner.sim.world import EntityType, Position, TileKind, ZoneMap

logger = logging.getLogger(__name__)

STARTER_MAP_SIZE = 25

STARTER_ENTITIES: tuple[tuple[EntityType, tuple[int, int]], ...] = (
    (EntityType.PLAYER_START, (2, 2)),
    (EntityType.EXIT, (22, 22)),
    (EntityType.GRAVITATIONAL_ANOMALY, (10, 5)),
    (EntityType.GRAVITATIONAL_ANOMALY, (18, 9)),
    (EntityType.PHILOSOPHER_STONE, (5, 12)),
    (EntityType.RUST_ANOMALY, (15, 15)),
    (EntityType.LAMP_POST, (4, 4)),
    (EntityType.LAMP_POST, (20, 20)),
)

STARTER_ITEMS: tuple[tuple[ItemType, tuple[int, int]], ...] = (
    (ItemType.BOLT, (3, 2)),
    (ItemType.BOLT, (3, 2)),
    (ItemType.BOLT, (3, 2)),
    (ItemType.METAL_DETECTOR, (2, 3)),
    (ItemType.SCRAP, (5, 12)),
    (ItemType.GLASS_JAR, (15, 16)),
    (ItemType.BATTERY, (15, 16)),
    (ItemType.SCRAP, (12, 20)),
    (ItemType.FULLY_EMPTY, (19, 9)),
)


def build_starter_map(size: int = STARTER_MAP_SIZE) -> ZoneMap:
    """A walled square with one of each anomaly, a start, an exit and some loot."""
    zone_map = ZoneMap.empty(size, size)
    last = size - 1
    for index in range(size):
        for x, y in ((index, 0), (index, last), (0, index), (last, index)):
            zone_map.grid.set_tile(x, y, TileKind.WALL)
    for y in range(6, 11):
        zone_map.grid.set_tile(13, y, TileKind.WALL)

    for entity_type, (x, y) in STARTER_ENTITIES:
        zone_map.place_entity(entity_type, Position(x, y))
    for item_type, (x, y) in STARTER_ITEMS:
        zone_map.add_ground_item(Position(x, y), make_item(item_type))
    return zone_map


def ensure_map_file(path: str | Path) -> ZoneMap:
    """Load the map at ``path``, writing the starter map there first if it is missing."""
    map_file = Path(path)
    if not map_file.exists():
        save_map_json(map_file, build_starter_map())
        logger.info("wrote starter map to %s", map_file)
    return load_map_json(map_file)
