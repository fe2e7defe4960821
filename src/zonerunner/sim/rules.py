from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from zonerunner.sim.phases import TransitionRequest, TurnPhase

if TYPE_CHECKING:
    from zonerunner.sim.core import ZoneSession


@dataclass
class WorldTick:
    """Scratch state for one WorldUpdate pass.

    ``captured_at_start`` is read once before the first rule runs, so the
    pull rule and the capture-timer rule never both fire in the same pass.
    """

    turn: int
    captured_at_start: bool
    messages: list[str] = field(default_factory=list)
    requests: list[TransitionRequest] = field(default_factory=list)

    def say(self, message: str) -> None:
        self.messages.append(message)


class EffectRule:
    """One ordered step of the WorldUpdate pipeline.

    Rules are registered on a ``ZoneSession`` and run in stable registration
    order, once per WorldUpdate pass. A rule never sets the phase directly; it
    returns a transition request that the session resolves after the pass.
    """

    name: str

    def applies(self, session: ZoneSession, tick: WorldTick) -> bool:
        """Precondition; the rule is skipped for this pass when False."""
        return True

    def apply(self, session: ZoneSession, tick: WorldTick) -> TransitionRequest | None:
        """Mutate session state, post messages on ``tick``, optionally request a phase."""
        return None

    def request(self, phase: TurnPhase) -> TransitionRequest:
        return TransitionRequest(phase=phase, source=self.name)
