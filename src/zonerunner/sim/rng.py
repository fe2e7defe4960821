from __future__ import annotations

import hashlib
import random

RNG_EFFECTS_STREAM_NAME = "rng_effects"


def derive_stream_seed(master_seed: int, stream_name: str) -> int:
    """Derive a deterministic child RNG seed from (master_seed, stream_name)."""
    digest = hashlib.sha256(f"{master_seed}:{stream_name}".encode("utf-8")).digest()
    return int.from_bytes(digest[:8], byteorder="big", signed=False)


def make_stream(master_seed: int, stream_name: str = RNG_EFFECTS_STREAM_NAME) -> random.Random:
    return random.Random(derive_stream_seed(master_seed=master_seed, stream_name=stream_name))
