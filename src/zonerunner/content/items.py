from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ItemType(Enum):
    FULLY_EMPTY = "FullyEmpty"
    SCRAP = "Scrap"
    GLASS_JAR = "GlassJar"
    BATTERY = "Battery"
    BOLT = "Bolt"
    METAL_DETECTOR = "MetalDetector"
    RUST_SLAG = "RustSlag"


def _require_non_negative_int(value: Any, *, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field_name} must be an integer")
    if value < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return value


@dataclass(frozen=True)
class Item:
    """Immutable item value; ``value`` is None for tools that have no trade value."""

    name: str
    weight: int
    value: int | None
    is_metal: bool

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ValueError("item.name must be a non-empty string")
        _require_non_negative_int(self.weight, field_name="item.weight")
        if self.value is not None:
            _require_non_negative_int(self.value, field_name="item.value")
        if not isinstance(self.is_metal, bool):
            raise ValueError("item.is_metal must be a boolean")

    @property
    def has_value(self) -> bool:
        return self.value is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "weight": self.weight,
            "value": self.value,
            "is_metal": self.is_metal,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Item":
        if not isinstance(data, dict):
            raise ValueError("item must be an object")
        return cls(
            name=data.get("name"),
            weight=data.get("weight"),
            value=data.get("value"),
            is_metal=data.get("is_metal"),
        )


ITEM_CATALOG: dict[ItemType, Item] = {
    ItemType.FULLY_EMPTY: Item(name="Fully Empty", weight=100, value=200, is_metal=False),
    ItemType.SCRAP: Item(name="Scrap", weight=10, value=5, is_metal=True),
    ItemType.GLASS_JAR: Item(name="Glass Jar", weight=5, value=2, is_metal=False),
    ItemType.BATTERY: Item(name="Battery", weight=3, value=3, is_metal=False),
    ItemType.BOLT: Item(name="Bolt", weight=1, value=None, is_metal=False),
    ItemType.METAL_DETECTOR: Item(name="Metal Detector", weight=50, value=None, is_metal=True),
    ItemType.RUST_SLAG: Item(name="Rust Slag", weight=5, value=0, is_metal=True),
}

BOLT_ITEM_NAME = ITEM_CATALOG[ItemType.BOLT].name
METAL_DETECTOR_ITEM_NAME = ITEM_CATALOG[ItemType.METAL_DETECTOR].name


def make_item(item_type: ItemType) -> Item:
    return ITEM_CATALOG[item_type]


def catalog_items() -> tuple[Item, ...]:
    """Canonical items in ItemType declaration order."""
    return tuple(ITEM_CATALOG[item_type] for item_type in ItemType)


def items_with_value_at_most(limit: int) -> tuple[Item, ...]:
    return tuple(item for item in catalog_items() if item.value is not None and item.value <= limit)


def validate_catalog(catalog: dict[ItemType, Item]) -> None:
    missing = [item_type.value for item_type in ItemType if item_type not in catalog]
    if missing:
        raise RuntimeError(f"item catalog is missing entries: {missing}")
    seen_names: set[str] = set()
    for item_type, item in catalog.items():
        if not isinstance(item, Item):
            raise RuntimeError(f"item catalog entry {item_type.value} is not an Item")
        if item.name in seen_names:
            raise RuntimeError(f"duplicate item name in catalog: {item.name}")
        seen_names.add(item.name)


validate_catalog(ITEM_CATALOG)
