from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Any

from zonerunner.content.io import load_map_json
from zonerunner.content.items import BOLT_ITEM_NAME, METAL_DETECTOR_ITEM_NAME, Item
from zonerunner.sim.bolts import BOLT_MAX_RANGE, resolve_bolt_flight
from zonerunner.sim.contracts import ContractSet, ContractStatus, default_contracts
from zonerunner.sim.effects import default_effect_rules
from zonerunner.sim.messages import MessageLog
from zonerunner.sim.movement import MOVE_IGNORED, MoveResult, try_move
from zonerunner.sim.phases import TurnPhase, resolve_transition
from zonerunner.sim.player import CarryCapacity, Direction, Inventory, PlayerState
from zonerunner.sim.rng import RNG_EFFECTS_STREAM_NAME, make_stream
from zonerunner.sim.rules import EffectRule, WorldTick
from zonerunner.sim.world import EntityType, Position, ZoneMap

logger = logging.getLogger(__name__)

GRID_WIDTH = 25
GRID_HEIGHT = 25
TICK_RATE_HZ = 2.0
METAL_DETECTOR_RADIUS = 2
DEFAULT_CARRY_CAPACITY = CarryCapacity(normal=250, in_gravity=125)

ENTER_ZONE_MESSAGE = "You enter the Zone..."


class ZoneConfigurationError(ValueError):
    """The map cannot host a session, e.g. it has no PlayerStart marker."""


class ZoneSession:
    """Turn/phase engine for one run through the Zone.

    The session owns the active phase and only lets the input handlers of that
    phase act; calls made in any other phase are inert and return a no-op
    result. All randomness is drawn from ``self.rng``.
    """

    def __init__(
        self,
        zone_map: ZoneMap,
        *,
        seed: int = 0,
        capacity: CarryCapacity = DEFAULT_CARRY_CAPACITY,
        contracts: ContractSet | None = None,
        rng: random.Random | None = None,
        rules: list[EffectRule] | None = None,
    ) -> None:
        self.zone_map = zone_map
        self.seed = seed
        self.capacity = capacity
        self.contracts = contracts if contracts is not None else default_contracts()
        self.rng = rng if rng is not None else make_stream(seed, RNG_EFFECTS_STREAM_NAME)
        self.messages = MessageLog()
        self.phase = TurnPhase.PLAYER_TURN
        self.turn_counter = 0
        self.player: PlayerState | None = None
        self.rules: list[EffectRule] = []
        for rule in rules if rules is not None else default_effect_rules():
            self.register_rule(rule)

    def register_rule(self, rule: EffectRule) -> None:
        if any(existing.name == rule.name for existing in self.rules):
            raise ValueError(f"duplicate effect rule name: {rule.name}")
        self.rules.append(rule)

    def get_rule(self, name: str) -> EffectRule | None:
        for rule in self.rules:
            if rule.name == name:
                return rule
        return None

    # lifecycle

    def player_start(self) -> Position:
        return self.player_start_of(self.zone_map)

    def start(self) -> None:
        """Spawn a fresh player at PlayerStart and show the contract briefing."""
        start = self.player_start()
        self.player = PlayerState(position=start)
        self.turn_counter = 0
        self.messages.clear()
        self.messages.add(ENTER_ZONE_MESSAGE)
        self.phase = TurnPhase.ENTERING_ZONE
        logger.info("player spawned at (%d, %d)", start.x, start.y)

    def restart(self) -> bool:
        if self.phase not in (TurnPhase.PLAYER_DEAD, TurnPhase.EXITING_ZONE):
            return False
        self.contracts.reset()
        self.turn_counter = 0
        self.messages.clear()
        self.player = None
        logger.info("session reset, restarting run")
        self.start()
        return True

    def confirm(self) -> bool:
        """Acknowledge the extraction or death screen; both end the run."""
        return self.restart()

    def replace_map(self, zone_map: ZoneMap) -> None:
        """Swap in a fully loaded map and begin a new run on it."""
        self.player_start_of(zone_map)
        self.zone_map = zone_map
        self.contracts.reset()
        self.player = None
        self.start()

    def load_map(self, path: str | Path) -> None:
        """Load a map file and restart on it; a failed load leaves the current map in place."""
        zone_map = load_map_json(path)
        self.replace_map(zone_map)
        logger.info("loaded map %s (%dx%d)", path, zone_map.width, zone_map.height)

    @staticmethod
    def player_start_of(zone_map: ZoneMap) -> Position:
        starts = zone_map.entities_of_type(EntityType.PLAYER_START)
        if not starts:
            raise ZoneConfigurationError("no PlayerStart marker found in the map")
        return starts[0].position

    def close_briefing(self) -> bool:
        if self.phase is not TurnPhase.ENTERING_ZONE:
            return False
        self.phase = TurnPhase.PLAYER_TURN
        return True

    # turn loop

    def apply_move(self, direction: Direction) -> MoveResult:
        if self.phase is not TurnPhase.PLAYER_TURN or self.player is None:
            return MoveResult(outcome=MOVE_IGNORED, position=None)
        result = try_move(self.zone_map, self.player, self.capacity, direction)
        if result.message is not None:
            self.messages.add(result.message)
        if result.moved:
            self.phase = TurnPhase.WORLD_UPDATE
        return result

    def run_world_update(self) -> list[str]:
        """Run every effect rule once, in order, and resolve the next phase."""
        if self.phase is not TurnPhase.WORLD_UPDATE or self.player is None:
            return []
        tick = WorldTick(turn=self.turn_counter, captured_at_start=self.player.is_captured)
        for rule in self.rules:
            if not rule.applies(self, tick):
                continue
            request = rule.apply(self, tick)
            if request is not None:
                tick.requests.append(request)
        self.phase = resolve_transition(tick.requests)
        self.messages.extend(tick.messages)
        return tick.messages

    def update(self) -> list[str]:
        """One scheduler tick: drive the non-interactive parts of the current phase."""
        if self.phase is TurnPhase.WORLD_UPDATE:
            return self.run_world_update()
        if self.phase is TurnPhase.PLAYER_TURN:
            self.detect_exit()
        return []

    def step(self, direction: Direction) -> MoveResult:
        result = self.apply_move(direction)
        if result.moved:
            self.update()
        return result

    def detect_exit(self) -> bool:
        if self.phase is not TurnPhase.PLAYER_TURN or self.player is None:
            return False
        if not self.zone_map.has_entity_at(self.player.position, EntityType.EXIT):
            return False
        self.validate_contracts()
        self.phase = TurnPhase.EXITING_ZONE
        logger.info("player reached exit at (%d, %d)", self.player.position.x, self.player.position.y)
        return True

    # contracts

    def validate_contracts(self, inventory: Inventory | None = None) -> list[ContractStatus]:
        if inventory is None:
            inventory = self.player.inventory if self.player is not None else Inventory()
        return self.contracts.validate(inventory)

    # item inspection

    def open_inspect(self) -> bool:
        if self.phase is not TurnPhase.PLAYER_TURN or self.player is None:
            return False
        if self.zone_map.ground_items_at(self.player.position) is None:
            return False
        self.phase = TurnPhase.INSPECTING_ITEMS
        return True

    def close_inspect(self) -> bool:
        if self.phase is not TurnPhase.INSPECTING_ITEMS:
            return False
        self.phase = TurnPhase.PLAYER_TURN
        return True

    def pickup(self, cell: Position, item_index: int) -> Item | None:
        if self.phase is not TurnPhase.INSPECTING_ITEMS or self.player is None:
            return None
        if cell != self.player.position:
            return None
        item = self.zone_map.remove_ground_item(cell, item_index)
        if item is None:
            return None
        self.player.inventory.add_item(item)
        self.messages.add(f"Picked up: {item.name}")
        logger.info("picked up %s (weight: %d)", item.name, item.weight)
        if self.zone_map.ground_items_at(cell) is None:
            self.phase = TurnPhase.PLAYER_TURN
        return item

    # inventory view

    def open_inventory(self) -> bool:
        if self.phase is not TurnPhase.PLAYER_TURN or self.player is None:
            return False
        self.phase = TurnPhase.VIEWING_INVENTORY
        return True

    def close_inventory(self) -> bool:
        if self.phase is not TurnPhase.VIEWING_INVENTORY:
            return False
        self.phase = TurnPhase.WORLD_UPDATE
        return True

    def drop(self, item_index: int) -> None:
        if self.phase is not TurnPhase.VIEWING_INVENTORY or self.player is None:
            return
        item = self.player.inventory.remove_item(item_index)
        if item is None:
            return
        self.zone_map.add_ground_item(self.player.position, item)
        logger.info("dropped %s at (%d, %d)", item.name, self.player.position.x, self.player.position.y)

    # bolts

    def begin_bolt_throw(self) -> bool:
        if self.phase is not TurnPhase.PLAYER_TURN or self.player is None:
            return False
        if not self.player.inventory.has_item_named(BOLT_ITEM_NAME):
            self.messages.add("You don't have any bolts to throw!")
            return False
        self.phase = TurnPhase.THROWING_BOLT
        return True

    def cancel_bolt_throw(self) -> bool:
        if self.phase is not TurnPhase.THROWING_BOLT:
            return False
        self.messages.add("You put away the bolt.")
        self.phase = TurnPhase.PLAYER_TURN
        return True

    def throw_bolt(self, direction: Direction, max_range: int = BOLT_MAX_RANGE) -> Position | None:
        if self.phase is not TurnPhase.THROWING_BOLT or self.player is None:
            return None
        bolt_index = self.player.inventory.index_of(BOLT_ITEM_NAME)
        if bolt_index is None:
            self.phase = TurnPhase.PLAYER_TURN
            return None
        bolt = self.player.inventory.remove_item(bolt_index)
        flight = resolve_bolt_flight(self.zone_map, self.player.position, direction, max_range)
        self.zone_map.add_ground_item(flight.landing, bolt)
        self.messages.add(flight.message)
        self.phase = TurnPhase.WORLD_UPDATE
        return flight.landing

    # detector

    def metal_detected(self) -> bool:
        if self.player is None or not self.player.inventory.has_item_named(METAL_DETECTOR_ITEM_NAME):
            return False
        for record in self.zone_map.iter_ground_items():
            if record.position.manhattan(self.player.position) > METAL_DETECTOR_RADIUS:
                continue
            if any(item.is_metal for item in record.items):
                return True
        return False

    def session_payload(self) -> dict[str, Any]:
        return {
            "seed": self.seed,
            "phase": self.phase.value,
            "turn_counter": self.turn_counter,
            "map": self.zone_map.to_dict(),
            "player": self.player.to_dict() if self.player is not None else None,
            "contracts": self.contracts.to_dict(),
            "messages": self.messages.messages(),
            "rules": [rule.name for rule in self.rules],
        }
