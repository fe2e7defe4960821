from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from zonerunner.content.items import Item
from zonerunner.sim.world import Position


class Direction(Enum):
    NORTH = "north"
    SOUTH = "south"
    EAST = "east"
    WEST = "west"

    @property
    def offset(self) -> tuple[int, int]:
        return DIRECTION_OFFSETS[self]


DIRECTION_OFFSETS: dict[Direction, tuple[int, int]] = {
    Direction.NORTH: (0, -1),
    Direction.SOUTH: (0, 1),
    Direction.EAST: (1, 0),
    Direction.WEST: (-1, 0),
}


@dataclass
class Inventory:
    """Carried items in pickup order; selection UIs index into ``items``."""

    items: list[Item] = field(default_factory=list)

    def add_item(self, item: Item) -> None:
        self.items.append(item)

    def remove_item(self, index: int) -> Item | None:
        if index < 0 or index >= len(self.items):
            return None
        return self.items.pop(index)

    def total_weight(self) -> int:
        return sum(item.weight for item in self.items)

    def count(self) -> int:
        return len(self.items)

    def is_empty(self) -> bool:
        return not self.items

    def count_named(self, name: str) -> int:
        return sum(1 for item in self.items if item.name == name)

    def index_of(self, name: str) -> int | None:
        for index, item in enumerate(self.items):
            if item.name == name:
                return index
        return None

    def has_item_named(self, name: str) -> bool:
        return self.index_of(name) is not None

    def to_dict(self) -> list[dict[str, Any]]:
        return [item.to_dict() for item in self.items]


@dataclass(frozen=True)
class CarryCapacity:
    normal: int
    in_gravity: int

    def __post_init__(self) -> None:
        for field_name in ("normal", "in_gravity"):
            value = getattr(self, field_name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"capacity.{field_name} must be a non-negative integer")

    def threshold(self, *, captured: bool) -> int:
        return self.in_gravity if captured else self.normal


@dataclass
class PlayerState:
    position: Position
    inventory: Inventory = field(default_factory=Inventory)
    capture_timer: int | None = None
    last_move: Direction = Direction.NORTH

    @property
    def is_captured(self) -> bool:
        return self.capture_timer is not None

    def carry_weight(self) -> int:
        return self.inventory.total_weight()

    def is_overweight(self, capacity: CarryCapacity) -> bool:
        return self.carry_weight() > capacity.threshold(captured=self.is_captured)

    def to_dict(self) -> dict[str, Any]:
        return {
            "position": self.position.to_dict(),
            "inventory": self.inventory.to_dict(),
            "capture_timer": self.capture_timer,
            "last_move": self.last_move.value,
        }
