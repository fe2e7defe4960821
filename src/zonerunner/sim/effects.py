from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from zonerunner.content.items import ItemType, items_with_value_at_most, make_item
from zonerunner.sim.phases import TransitionRequest, TurnPhase
from zonerunner.sim.rules import EffectRule, WorldTick
from zonerunner.sim.world import EntityType, Position

if TYPE_CHECKING:
    from zonerunner.sim.core import ZoneSession

logger = logging.getLogger(__name__)

CAPTURE_TURNS = 5
FULLY_EMPTY_CHANCE = 0.05

PHILOSOPHER_IDLE_MESSAGES: tuple[str, ...] = (
    "The air shimmers, but nothing here is worth changing.",
    "A faint golden haze drifts over the ground and fades.",
    "The stone hums quietly. It seems uninterested in your tools.",
    "For a moment everything glitters, then looks exactly the same.",
)

RUST_VAGUE_MESSAGES: tuple[str, ...] = (
    "Something in your pack feels rough and gritty.",
    "A faint crackle comes from your backpack.",
    "A sharp metallic smell rises from your gear.",
    "Your pack suddenly feels flaky to the touch.",
)


def _anomaly_positions(session: ZoneSession, entity_type: EntityType) -> list[Position]:
    return [entity.position for entity in session.zone_map.entities_of_type(entity_type)]


class GravitationalPullRule(EffectRule):
    """Drags an uncaptured player standing next to a gravitational anomaly onto it."""

    name = "gravitational_pull"

    def applies(self, session: ZoneSession, tick: WorldTick) -> bool:
        player = session.player
        return player is not None and not tick.captured_at_start and not player.is_captured

    def apply(self, session: ZoneSession, tick: WorldTick) -> TransitionRequest | None:
        player = session.player
        for anomaly in _anomaly_positions(session, EntityType.GRAVITATIONAL_ANOMALY):
            if not player.position.is_adjacent(anomaly):
                continue
            dx = (anomaly.x > player.position.x) - (anomaly.x < player.position.x)
            dy = 0 if dx else (anomaly.y > player.position.y) - (anomaly.y < player.position.y)
            player.position = player.position.offset(dx, dy)
            tick.say("Gravitational anomaly pulls you in!")
            logger.info("gravitational anomaly pulled player to (%d, %d)", player.position.x, player.position.y)
            if player.position == anomaly:
                player.capture_timer = CAPTURE_TURNS
                tick.say(f"Immense pressure... {CAPTURE_TURNS} turns to escape!")
                logger.warning("player captured by gravitational anomaly at (%d, %d)", anomaly.x, anomaly.y)
            break
        return None


class PhilosopherStoneRule(EffectRule):
    """Transmutes one valued ground item on the stone's cell into something no more valuable."""

    name = "philosopher_stone"

    def applies(self, session: ZoneSession, tick: WorldTick) -> bool:
        player = session.player
        if player is None:
            return False
        if not session.zone_map.has_entity_at(player.position, EntityType.PHILOSOPHER_STONE):
            return False
        record = session.zone_map.ground_items_at(player.position)
        return record is not None and not record.is_empty()

    def apply(self, session: ZoneSession, tick: WorldTick) -> TransitionRequest | None:
        rng = session.rng
        record = session.zone_map.ground_items_at(session.player.position)
        valued = [index for index, item in enumerate(record.items) if item.value is not None]
        if not valued:
            tick.say(rng.choice(PHILOSOPHER_IDLE_MESSAGES))
            return None

        index = rng.choice(valued)
        original = record.items[index]
        if rng.random() < FULLY_EMPTY_CHANCE:
            replacement = make_item(ItemType.FULLY_EMPTY)
        else:
            replacement = rng.choice(items_with_value_at_most(original.value))
        del record.items[index]
        record.items.append(replacement)
        tick.say(f"The stone glows. The {original.name} becomes a {replacement.name}!")
        logger.info("philosopher stone transformed %s into %s", original.name, replacement.name)
        return None


class RustCorrosionRule(EffectRule):
    """Turns one metal item, on the ground here or in the pack, into Rust Slag."""

    name = "rust_corrosion"

    def applies(self, session: ZoneSession, tick: WorldTick) -> bool:
        player = session.player
        return player is not None and session.zone_map.has_entity_at(player.position, EntityType.RUST_ANOMALY)

    def apply(self, session: ZoneSession, tick: WorldTick) -> TransitionRequest | None:
        player = session.player
        record = session.zone_map.ground_items_at(player.position)
        pool: list[tuple[str, int]] = []
        if record is not None:
            pool.extend(("ground", index) for index, item in enumerate(record.items) if item.is_metal)
        pool.extend(("inventory", index) for index, item in enumerate(player.inventory.items) if item.is_metal)
        if not pool:
            return None

        source, index = session.rng.choice(pool)
        slag = make_item(ItemType.RUST_SLAG)
        if source == "ground":
            original = record.items[index]
            record.items[index] = slag
            tick.say(f"The {original.name} on the ground corrodes into {slag.name}.")
        else:
            original = player.inventory.items[index]
            player.inventory.items[index] = slag
            tick.say(session.rng.choice(RUST_VAGUE_MESSAGES))
        logger.info("rust anomaly corroded %s item %s", source, original.name)
        return None


class CaptureTimerRule(EffectRule):
    name = "capture_timer"

    def applies(self, session: ZoneSession, tick: WorldTick) -> bool:
        player = session.player
        return player is not None and tick.captured_at_start and player.is_captured

    def apply(self, session: ZoneSession, tick: WorldTick) -> TransitionRequest | None:
        player = session.player
        within_range = any(
            player.position.manhattan(anomaly) <= 1
            for anomaly in _anomaly_positions(session, EntityType.GRAVITATIONAL_ANOMALY)
        )
        if within_range:
            player.capture_timer = max(0, player.capture_timer - 1)
            tick.say(f"Crushing pressure! {player.capture_timer} turns left!")
            logger.warning("gravitational anomaly: %d turns remaining", player.capture_timer)
        else:
            player.capture_timer = None
            tick.say("You break free from the anomaly!")
            logger.info("player escaped gravitational anomaly")
        return None


class DeathCheckRule(EffectRule):
    name = "death_check"

    def applies(self, session: ZoneSession, tick: WorldTick) -> bool:
        return session.player is not None and session.player.capture_timer == 0

    def apply(self, session: ZoneSession, tick: WorldTick) -> TransitionRequest | None:
        tick.say("You are crushed to death!")
        logger.error("player was crushed by a gravitational anomaly on turn %d", tick.turn)
        return self.request(TurnPhase.PLAYER_DEAD)


class TurnCounterRule(EffectRule):
    name = "turn_counter"

    def apply(self, session: ZoneSession, tick: WorldTick) -> TransitionRequest | None:
        session.turn_counter += 1
        logger.debug("turn %d", session.turn_counter)
        return None


class ReturnToPlayerTurnRule(EffectRule):
    name = "return_to_player_turn"

    def apply(self, session: ZoneSession, tick: WorldTick) -> TransitionRequest | None:
        return self.request(TurnPhase.PLAYER_TURN)


def default_effect_rules() -> list[EffectRule]:
    """WorldUpdate pipeline in its fixed order."""
    return [
        GravitationalPullRule(),
        PhilosopherStoneRule(),
        RustCorrosionRule(),
        CaptureTimerRule(),
        DeathCheckRule(),
        TurnCounterRule(),
        ReturnToPlayerTurnRule(),
    ]
