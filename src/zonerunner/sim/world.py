from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator

from zonerunner.content.items import Item

FLOOR_MOVE_COST = 1
WALL_MOVE_COST = 2**31 - 1


def _require_int(value: Any, *, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field_name} must be an integer")
    return value


def _require_positive_int(value: Any, *, field_name: str) -> int:
    _require_int(value, field_name=field_name)
    if value <= 0:
        raise ValueError(f"{field_name} must be > 0")
    return value


@dataclass(frozen=True, order=True)
class Position:
    """Grid cell coordinate; ordering is (x, y)."""

    x: int
    y: int

    def offset(self, dx: int, dy: int) -> "Position":
        return Position(self.x + dx, self.y + dy)

    def manhattan(self, other: "Position") -> int:
        return abs(self.x - other.x) + abs(self.y - other.y)

    def is_adjacent(self, other: "Position") -> bool:
        return self.manhattan(other) == 1

    def to_dict(self) -> dict[str, int]:
        return {"x": self.x, "y": self.y}


class TileKind(Enum):
    FLOOR = "Floor"
    WALL = "Wall"


@dataclass(frozen=True)
class Tile:
    kind: TileKind
    move_cost: int

    @classmethod
    def of(cls, kind: TileKind) -> "Tile":
        return cls(kind=kind, move_cost=WALL_MOVE_COST if kind is TileKind.WALL else FLOOR_MOVE_COST)

    @property
    def walkable(self) -> bool:
        return self.kind is not TileKind.WALL


class GridWorld:
    """Dense width x height terrain matrix, indexed ``tiles[y][x]``."""

    def __init__(self, width: int, height: int) -> None:
        _require_positive_int(width, field_name="width")
        _require_positive_int(height, field_name="height")
        self.width = width
        self.height = height
        floor = Tile.of(TileKind.FLOOR)
        self.tiles: list[list[Tile]] = [[floor for _ in range(width)] for _ in range(height)]

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def contains(self, position: Position) -> bool:
        return self.in_bounds(position.x, position.y)

    def get_tile(self, x: int, y: int) -> Tile | None:
        if not self.in_bounds(x, y):
            return None
        return self.tiles[y][x]

    def set_tile(self, x: int, y: int, kind: TileKind) -> bool:
        if not self.in_bounds(x, y):
            return False
        self.tiles[y][x] = Tile.of(kind)
        return True

    def is_walkable(self, position: Position) -> bool:
        tile = self.get_tile(position.x, position.y)
        return tile is not None and tile.walkable

    def terrain_rows(self) -> list[list[str]]:
        return [[tile.kind.value for tile in row] for row in self.tiles]


class EntityType(Enum):
    GRAVITATIONAL_ANOMALY = "GravitationalAnomaly"
    PHILOSOPHER_STONE = "PhilosopherStone"
    RUST_ANOMALY = "RustAnomaly"
    PLAYER_START = "PlayerStart"
    EXIT = "Exit"
    LAMP_POST = "LampPost"

    @property
    def is_anomaly(self) -> bool:
        return self in ANOMALY_TYPES


ANOMALY_TYPES = frozenset(
    {EntityType.GRAVITATIONAL_ANOMALY, EntityType.PHILOSOPHER_STONE, EntityType.RUST_ANOMALY}
)


@dataclass(frozen=True)
class PlacedEntity:
    entity_type: EntityType
    position: Position

    def to_dict(self) -> dict[str, Any]:
        return {"entity_type": self.entity_type.value, "x": self.position.x, "y": self.position.y}


@dataclass
class GroundItems:
    """Items resting on one cell. A ZoneMap never keeps an empty record."""

    position: Position
    items: list[Item] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.items

    def count(self) -> int:
        return len(self.items)

    def to_dict(self) -> dict[str, Any]:
        return {
            "x": self.position.x,
            "y": self.position.y,
            "items": [item.to_dict() for item in self.items],
        }


class ZoneMap:
    """Terrain, static placements and ground items for one Zone."""

    def __init__(self, grid: GridWorld) -> None:
        self.grid = grid
        self.entities: list[PlacedEntity] = []
        self.ground_items: dict[Position, GroundItems] = {}

    @classmethod
    def empty(cls, width: int, height: int) -> "ZoneMap":
        return cls(GridWorld(width, height))

    @property
    def width(self) -> int:
        return self.grid.width

    @property
    def height(self) -> int:
        return self.grid.height

    # entities

    def entities_of_type(self, entity_type: EntityType) -> list[PlacedEntity]:
        return sorted(
            (entity for entity in self.entities if entity.entity_type is entity_type),
            key=lambda entity: entity.position,
        )

    def entity_types_at(self, position: Position) -> list[EntityType]:
        return [entity.entity_type for entity in self.entities if entity.position == position]

    def has_entity_at(self, position: Position, entity_type: EntityType) -> bool:
        return entity_type in self.entity_types_at(position)

    def place_entity(self, entity_type: EntityType, position: Position) -> bool:
        if not self.grid.contains(position):
            return False
        if self.entity_types_at(position):
            return False
        self.entities.append(PlacedEntity(entity_type=entity_type, position=position))
        return True

    def remove_entity_at(self, position: Position) -> PlacedEntity | None:
        for index, entity in enumerate(self.entities):
            if entity.position == position:
                return self.entities.pop(index)
        return None

    # ground items

    def ground_items_at(self, position: Position) -> GroundItems | None:
        return self.ground_items.get(position)

    def iter_ground_items(self) -> Iterator[GroundItems]:
        for position in sorted(self.ground_items):
            yield self.ground_items[position]

    def add_ground_item(self, position: Position, item: Item) -> bool:
        if not self.grid.contains(position):
            return False
        record = self.ground_items.get(position)
        if record is None:
            record = GroundItems(position=position)
            self.ground_items[position] = record
        record.items.append(item)
        return True

    def remove_ground_item(self, position: Position, index: int) -> Item | None:
        record = self.ground_items.get(position)
        if record is None or index < 0 or index >= record.count():
            return None
        item = record.items.pop(index)
        if record.is_empty():
            del self.ground_items[position]
        return item

    def clear_ground_items(self, position: Position) -> bool:
        return self.ground_items.pop(position, None) is not None

    # persistence shape

    def to_dict(self) -> dict[str, Any]:
        return {
            "width": self.grid.width,
            "height": self.grid.height,
            "terrain": self.grid.terrain_rows(),
            "entities": [entity.to_dict() for entity in self.entities],
            "items": [record.to_dict() for record in self.iter_ground_items()],
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ZoneMap":
        if not isinstance(payload, dict):
            raise ValueError("map payload must be an object")
        width = _require_positive_int(payload.get("width"), field_name="width")
        height = _require_positive_int(payload.get("height"), field_name="height")
        zone_map = cls.empty(width, height)

        terrain = payload.get("terrain", [])
        if not isinstance(terrain, list):
            raise ValueError("terrain must be a list of rows")
        for y, row in enumerate(terrain[:height]):
            if not isinstance(row, list):
                raise ValueError(f"terrain[{y}] must be a list")
            for x, tag in enumerate(row[:width]):
                try:
                    kind = TileKind(tag)
                except ValueError:
                    raise ValueError(f"terrain[{y}][{x}] has unknown tile kind: {tag!r}") from None
                zone_map.grid.set_tile(x, y, kind)

        entities = payload.get("entities", [])
        if not isinstance(entities, list):
            raise ValueError("entities must be a list")
        for index, row in enumerate(entities):
            if not isinstance(row, dict):
                raise ValueError(f"entities[{index}] must be an object")
            try:
                entity_type = EntityType(row.get("entity_type"))
            except ValueError:
                raise ValueError(
                    f"entities[{index}].entity_type is unknown: {row.get('entity_type')!r}"
                ) from None
            position = Position(
                x=_require_int(row.get("x"), field_name=f"entities[{index}].x"),
                y=_require_int(row.get("y"), field_name=f"entities[{index}].y"),
            )
            if not zone_map.grid.contains(position):
                raise ValueError(f"entities[{index}] is outside the grid: ({position.x}, {position.y})")
            zone_map.entities.append(PlacedEntity(entity_type=entity_type, position=position))

        items = payload.get("items", [])
        if items is None:
            items = []
        if not isinstance(items, list):
            raise ValueError("items must be a list when present")
        for index, row in enumerate(items):
            if not isinstance(row, dict):
                raise ValueError(f"items[{index}] must be an object")
            position = Position(
                x=_require_int(row.get("x"), field_name=f"items[{index}].x"),
                y=_require_int(row.get("y"), field_name=f"items[{index}].y"),
            )
            if not zone_map.grid.contains(position):
                raise ValueError(f"items[{index}] is outside the grid: ({position.x}, {position.y})")
            raw_items = row.get("items", [])
            if not isinstance(raw_items, list):
                raise ValueError(f"items[{index}].items must be a list")
            for item_index, raw_item in enumerate(raw_items):
                try:
                    item = Item.from_dict(raw_item)
                except ValueError as exc:
                    raise ValueError(f"items[{index}].items[{item_index}]: {exc}") from None
                zone_map.add_ground_item(position, item)
        return zone_map
