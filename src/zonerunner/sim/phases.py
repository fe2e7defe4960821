from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable


class TurnPhase(Enum):
    PLAYER_TURN = "PlayerTurn"
    WORLD_UPDATE = "WorldUpdate"
    INSPECTING_ITEMS = "InspectingItems"
    VIEWING_INVENTORY = "ViewingInventory"
    THROWING_BOLT = "ThrowingBolt"
    ENTERING_ZONE = "EnteringZone"
    EXITING_ZONE = "ExitingZone"
    PLAYER_DEAD = "PlayerDead"

    @property
    def is_modal(self) -> bool:
        return self in MODAL_PHASES


MODAL_PHASES = frozenset(
    {
        TurnPhase.INSPECTING_ITEMS,
        TurnPhase.VIEWING_INVENTORY,
        TurnPhase.THROWING_BOLT,
        TurnPhase.ENTERING_ZONE,
        TurnPhase.EXITING_ZONE,
        TurnPhase.PLAYER_DEAD,
    }
)


@dataclass(frozen=True)
class TransitionRequest:
    phase: TurnPhase
    source: str


def _priority(phase: TurnPhase) -> int:
    if phase is TurnPhase.PLAYER_DEAD:
        return 2
    if phase is TurnPhase.PLAYER_TURN:
        return 0
    return 1


def resolve_transition(
    requests: Iterable[TransitionRequest],
    default: TurnPhase = TurnPhase.PLAYER_TURN,
) -> TurnPhase:
    """Collapse one tick's transition requests into the phase that wins.

    ``PlayerDead`` beats any other request, any other request beats
    ``PlayerTurn``, and ``default`` applies when nothing was requested.
    Among equal priorities the latest request wins.
    """

    winner: TransitionRequest | None = None
    for request in requests:
        if winner is None or _priority(request.phase) >= _priority(winner.phase):
            winner = request
    return default if winner is None else winner.phase
