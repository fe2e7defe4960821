from __future__ import annotations

import hashlib
import json
from typing import Any

from zonerunner.sim.core import ZoneSession
from zonerunner.sim.world import ZoneMap


def _digest(payload: Any) -> str:
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


def map_hash(zone_map: ZoneMap) -> str:
    return _digest(zone_map.to_dict())


def session_hash(session: ZoneSession) -> str:
    payload = {
        **session.session_payload(),
        "rng_state": session.rng.getstate(),
    }
    return _digest(payload)
