from __future__ import annotations

from typing import Any

SUPPORTED_SCHEMA_VERSIONS = {1}
VALID_TILE_KINDS = {"Floor", "Wall"}
VALID_ENTITY_TYPES = {"GravitationalAnomaly", "PhilosopherStone", "RustAnomaly", "PlayerStart", "Exit", "LampPost"}
REQUIRED_ITEM_FIELDS = {"name", "weight", "is_metal"}


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _validate_item_shape(row: Any, *, field_name: str) -> None:
    if not isinstance(row, dict):
        raise ValueError(f"{field_name} must be an object")
    missing = REQUIRED_ITEM_FIELDS - set(row.keys())
    if missing:
        raise ValueError(f"{field_name} missing fields: {sorted(missing)}")
    if not isinstance(row["name"], str) or not row["name"]:
        raise ValueError(f"{field_name}.name must be a non-empty string")
    if not _is_int(row["weight"]) or row["weight"] < 0:
        raise ValueError(f"{field_name}.weight must be a non-negative integer")
    value = row.get("value")
    if value is not None and (not _is_int(value) or value < 0):
        raise ValueError(f"{field_name}.value must be a non-negative integer or null")
    if not isinstance(row["is_metal"], bool):
        raise ValueError(f"{field_name}.is_metal must be a boolean")


def validate_map_payload(payload: Any) -> None:
    """Shape check for a map file; raises ValueError naming the first bad field."""
    if not isinstance(payload, dict):
        raise ValueError("map payload must be an object")

    schema_version = payload.get("schema_version", 1)
    if not _is_int(schema_version):
        raise ValueError(f"schema_version must be an integer, got {schema_version!r}")
    if schema_version not in SUPPORTED_SCHEMA_VERSIONS:
        raise ValueError(f"unsupported map schema_version: {schema_version}")

    for key in ("width", "height"):
        if not _is_int(payload.get(key)) or payload[key] <= 0:
            raise ValueError(f"{key} must be a positive integer")
    width = payload["width"]
    height = payload["height"]

    terrain = payload.get("terrain")
    if not isinstance(terrain, list):
        raise ValueError("terrain must be a list of rows")
    if len(terrain) > height:
        raise ValueError(f"terrain has {len(terrain)} rows, expected at most {height}")
    for y, row in enumerate(terrain):
        if not isinstance(row, list):
            raise ValueError(f"terrain[{y}] must be a list")
        if len(row) > width:
            raise ValueError(f"terrain[{y}] has {len(row)} cells, expected at most {width}")
        for x, tag in enumerate(row):
            if not isinstance(tag, str) or tag not in VALID_TILE_KINDS:
                raise ValueError(f"terrain[{y}][{x}] invalid tile kind: {tag!r}")

    entities = payload.get("entities")
    if not isinstance(entities, list):
        raise ValueError("entities must be a list")
    for index, row in enumerate(entities):
        if not isinstance(row, dict):
            raise ValueError(f"entities[{index}] must be an object")
        entity_type = row.get("entity_type")
        if not isinstance(entity_type, str) or entity_type not in VALID_ENTITY_TYPES:
            raise ValueError(f"entities[{index}] invalid entity_type: {entity_type!r}")
        _validate_cell(row, width=width, height=height, field_name=f"entities[{index}]")

    items = payload.get("items") or []
    if not isinstance(items, list):
        raise ValueError("items must be a list when present")
    for index, row in enumerate(items):
        if not isinstance(row, dict):
            raise ValueError(f"items[{index}] must be an object")
        _validate_cell(row, width=width, height=height, field_name=f"items[{index}]")
        stacked = row.get("items")
        if not isinstance(stacked, list):
            raise ValueError(f"items[{index}].items must be a list")
        for item_index, item in enumerate(stacked):
            _validate_item_shape(item, field_name=f"items[{index}].items[{item_index}]")


def _validate_cell(row: dict[str, Any], *, width: int, height: int, field_name: str) -> None:
    x = row.get("x")
    y = row.get("y")
    if not _is_int(x) or not _is_int(y):
        raise ValueError(f"{field_name} x and y must be integers")
    if not (0 <= x < width and 0 <= y < height):
        raise ValueError(f"{field_name} ({x}, {y}) is outside the {width}x{height} grid")
