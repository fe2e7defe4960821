from __future__ import annotations

import json
import os
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

from zonerunner.content.schema import validate_map_payload
from zonerunner.sim.world import ZoneMap

SCHEMA_VERSION = 1
CANONICAL_JSON_INDENT = 2
CANONICAL_JSON_SEPARATORS = (",", ": ")
DEFAULT_MAP_PATH = "content/maps/zone_map.json"


class MapFormatError(ValueError):
    """A map file could not be read, parsed, validated or written."""


def _build_map_payload(zone_map: ZoneMap) -> dict[str, Any]:
    return {
        "schema_version": SCHEMA_VERSION,
        **zone_map.to_dict(),
    }


def _canonical_json(payload: dict[str, Any]) -> str:
    return json.dumps(
        payload,
        indent=CANONICAL_JSON_INDENT,
        separators=CANONICAL_JSON_SEPARATORS,
        sort_keys=True,
    )


def _write_atomic_json(path: str | Path, payload: dict[str, Any]) -> None:
    """Write next to the destination, then rename over it; readers never see a partial map."""
    destination = Path(path)
    destination.parent.mkdir(parents=True, exist_ok=True)

    with NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=destination.parent,
        prefix=f".{destination.name}.",
        suffix=".tmp",
        delete=False,
    ) as staging:
        staging_path = Path(staging.name)
        try:
            staging.write(_canonical_json(payload))
            staging.flush()
            os.fsync(staging.fileno())
        except Exception:
            staging.close()
            staging_path.unlink(missing_ok=True)
            raise
    try:
        os.replace(staging_path, destination)
    except OSError:
        staging_path.unlink(missing_ok=True)
        raise


def map_from_payload(payload: Any) -> ZoneMap:
    try:
        validate_map_payload(payload)
        return ZoneMap.from_dict(payload)
    except ValueError as exc:
        raise MapFormatError(f"invalid map payload: {exc}") from exc


def load_map_json(path: str | Path) -> ZoneMap:
    """Load a map file into a new ZoneMap; nothing is built unless every field validates."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise MapFormatError(f"failed to read map {path}: {exc}") from exc
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MapFormatError(f"failed to parse map {path}: {exc}") from exc
    return map_from_payload(payload)


def save_map_json(path: str | Path, zone_map: ZoneMap) -> None:
    payload = _build_map_payload(zone_map)
    try:
        validate_map_payload(payload)
    except ValueError as exc:
        raise MapFormatError(f"refusing to write invalid map {path}: {exc}") from exc
    try:
        _write_atomic_json(path, payload)
    except OSError as exc:
        raise MapFormatError(f"failed to write map {path}: {exc}") from exc
