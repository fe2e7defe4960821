import pytest

from zonerunner.content.items import ItemType, make_item
from zonerunner.sim.core import ENTER_ZONE_MESSAGE, ZoneConfigurationError, ZoneSession
from zonerunner.sim.movement import MOVE_IGNORED, OVERWEIGHT_MESSAGE
from zonerunner.sim.phases import TransitionRequest, TurnPhase
from zonerunner.sim.player import Direction
from zonerunner.sim.rules import EffectRule, WorldTick
from zonerunner.sim.world import EntityType, Position, ZoneMap


def _zone_map() -> ZoneMap:
    zone_map = ZoneMap.empty(10, 10)
    zone_map.place_entity(EntityType.PLAYER_START, Position(1, 1))
    zone_map.place_entity(EntityType.EXIT, Position(2, 1))
    return zone_map


def _session(**kwargs) -> ZoneSession:
    session = ZoneSession(_zone_map(), seed=11, **kwargs)
    session.start()
    session.close_briefing()
    return session


def test_start_spawns_player_and_opens_briefing() -> None:
    session = ZoneSession(_zone_map(), seed=11)
    session.start()

    assert session.phase is TurnPhase.ENTERING_ZONE
    assert session.player.position == Position(1, 1)
    assert session.player.capture_timer is None
    assert session.messages.messages() == [ENTER_ZONE_MESSAGE]
    assert session.close_briefing() is True
    assert session.phase is TurnPhase.PLAYER_TURN


def test_start_without_player_start_is_reported() -> None:
    session = ZoneSession(ZoneMap.empty(4, 4))

    with pytest.raises(ZoneConfigurationError, match="PlayerStart"):
        session.start()


def test_moves_are_ignored_outside_player_turn() -> None:
    session = ZoneSession(_zone_map(), seed=11)
    session.start()

    result = session.apply_move(Direction.SOUTH)

    assert result.outcome == MOVE_IGNORED
    assert session.player.position == Position(1, 1)
    assert session.phase is TurnPhase.ENTERING_ZONE


def test_committed_move_always_enters_world_update() -> None:
    session = _session()

    result = session.apply_move(Direction.SOUTH)

    assert result.moved
    assert session.phase is TurnPhase.WORLD_UPDATE
    assert session.run_world_update() == []
    assert session.phase is TurnPhase.PLAYER_TURN
    assert session.turn_counter == 1


def test_blocked_move_stays_in_player_turn_and_posts_message() -> None:
    session = _session()
    for _ in range(3):
        session.player.inventory.add_item(make_item(ItemType.FULLY_EMPTY))

    session.step(Direction.SOUTH)

    assert session.phase is TurnPhase.PLAYER_TURN
    assert session.turn_counter == 0
    assert session.messages.messages()[-1] == OVERWEIGHT_MESSAGE


def test_reaching_exit_validates_contracts_and_confirm_restarts() -> None:
    session = _session()
    session.player.inventory.add_item(make_item(ItemType.FULLY_EMPTY))

    session.step(Direction.EAST)
    assert session.phase is TurnPhase.PLAYER_TURN
    session.update()

    assert session.phase is TurnPhase.EXITING_ZONE
    assert session.contracts.all_completed() is True

    assert session.confirm() is True
    assert session.phase is TurnPhase.ENTERING_ZONE
    assert session.turn_counter == 0
    assert session.player.position == Position(1, 1)
    assert session.player.inventory.is_empty()
    assert session.contracts.all_completed() is False
    assert session.messages.messages() == [ENTER_ZONE_MESSAGE]


def test_restart_only_leaves_terminal_phases() -> None:
    session = _session()

    assert session.restart() is False

    session.player.capture_timer = 4
    session.phase = TurnPhase.PLAYER_DEAD
    assert session.restart() is True
    assert session.player.capture_timer is None


def test_inspect_pickup_returns_to_player_turn_when_cell_is_emptied() -> None:
    session = _session()
    cell = session.player.position
    session.zone_map.add_ground_item(cell, make_item(ItemType.SCRAP))
    session.zone_map.add_ground_item(cell, make_item(ItemType.BOLT))

    assert session.open_inspect() is True
    assert session.phase is TurnPhase.INSPECTING_ITEMS
    assert session.pickup(cell, 5) is None
    assert session.pickup(Position(0, 0), 0) is None

    assert session.pickup(cell, 1).name == "Bolt"
    assert session.phase is TurnPhase.INSPECTING_ITEMS
    assert session.pickup(cell, 0).name == "Scrap"
    assert session.phase is TurnPhase.PLAYER_TURN
    assert session.zone_map.ground_items_at(cell) is None
    assert [item.name for item in session.player.inventory.items] == ["Bolt", "Scrap"]
    assert session.messages.messages()[-1] == "Picked up: Scrap"


def test_inspect_requires_items_and_close_does_not_consume_turn() -> None:
    session = _session()

    assert session.open_inspect() is False

    session.zone_map.add_ground_item(session.player.position, make_item(ItemType.BATTERY))
    session.open_inspect()
    assert session.close_inspect() is True
    assert session.phase is TurnPhase.PLAYER_TURN
    assert session.turn_counter == 0


def test_pickup_ignores_capacity() -> None:
    session = _session()
    cell = session.player.position
    for _ in range(3):
        session.zone_map.add_ground_item(cell, make_item(ItemType.FULLY_EMPTY))
    session.open_inspect()

    for _ in range(3):
        assert session.pickup(cell, 0) is not None

    assert session.player.carry_weight() == 300


def test_drop_merges_into_ground_and_closing_inventory_consumes_turn() -> None:
    session = _session()
    cell = session.player.position
    session.zone_map.add_ground_item(cell, make_item(ItemType.GLASS_JAR))
    session.player.inventory.add_item(make_item(ItemType.SCRAP))

    assert session.open_inventory() is True
    session.drop(3)
    assert session.player.inventory.count() == 1
    session.drop(0)

    assert session.player.inventory.is_empty()
    assert [item.name for item in session.zone_map.ground_items_at(cell).items] == ["Glass Jar", "Scrap"]
    assert session.close_inventory() is True
    assert session.phase is TurnPhase.WORLD_UPDATE
    session.update()
    assert session.phase is TurnPhase.PLAYER_TURN
    assert session.turn_counter == 1


def test_drop_outside_inventory_view_is_ignored() -> None:
    session = _session()
    session.player.inventory.add_item(make_item(ItemType.SCRAP))

    session.drop(0)

    assert session.player.inventory.count() == 1


def test_bolt_throw_requires_a_bolt() -> None:
    session = _session()

    assert session.begin_bolt_throw() is False
    assert session.messages.messages()[-1] == "You don't have any bolts to throw!"
    assert session.phase is TurnPhase.PLAYER_TURN


def test_bolt_throw_lands_bolt_and_consumes_turn() -> None:
    session = _session()
    session.player.inventory.add_item(make_item(ItemType.BOLT))

    assert session.begin_bolt_throw() is True
    landing = session.throw_bolt(Direction.SOUTH)

    assert landing == Position(1, 6)
    assert session.player.inventory.is_empty()
    assert [item.name for item in session.zone_map.ground_items_at(landing).items] == ["Bolt"]
    assert session.phase is TurnPhase.WORLD_UPDATE
    assert session.messages.messages()[-1] == "The bolt falls to the ground harmlessly."


def test_cancel_bolt_throw_keeps_bolt() -> None:
    session = _session()
    session.player.inventory.add_item(make_item(ItemType.BOLT))
    session.begin_bolt_throw()

    assert session.cancel_bolt_throw() is True
    assert session.phase is TurnPhase.PLAYER_TURN
    assert session.player.inventory.count_named("Bolt") == 1
    assert session.messages.messages()[-1] == "You put away the bolt."


def test_metal_detector_senses_metal_within_two_cells() -> None:
    session = _session()
    session.zone_map.add_ground_item(Position(1, 3), make_item(ItemType.SCRAP))

    assert session.metal_detected() is False

    session.player.inventory.add_item(make_item(ItemType.METAL_DETECTOR))
    assert session.metal_detected() is True

    session.player.position = Position(1, 0)
    assert session.metal_detected() is False


def test_metal_detector_ignores_non_metal_items() -> None:
    session = _session()
    session.player.inventory.add_item(make_item(ItemType.METAL_DETECTOR))
    session.zone_map.add_ground_item(Position(1, 2), make_item(ItemType.GLASS_JAR))

    assert session.metal_detected() is False


class RecordingRule(EffectRule):
    def __init__(self, name: str, calls: list[str], phase: TurnPhase | None = None) -> None:
        self.name = name
        self.calls = calls
        self.phase = phase

    def apply(self, session: ZoneSession, tick: WorldTick) -> TransitionRequest | None:
        self.calls.append(self.name)
        return self.request(self.phase) if self.phase is not None else None


def test_rules_run_in_registration_order() -> None:
    calls: list[str] = []
    session = _session(rules=[RecordingRule("a", calls), RecordingRule("b", calls)])
    session.register_rule(RecordingRule("c", calls))

    session.step(Direction.SOUTH)

    assert calls == ["a", "b", "c"]
    assert session.get_rule("b") is not None
    assert session.get_rule("missing") is None


def test_duplicate_rule_names_are_rejected() -> None:
    session = _session()

    with pytest.raises(ValueError, match="duplicate effect rule name: death_check"):
        session.register_rule(RecordingRule("death_check", []))


def test_dead_request_survives_later_player_turn_request() -> None:
    calls: list[str] = []
    session = _session(
        rules=[RecordingRule("kill", calls, TurnPhase.PLAYER_DEAD), RecordingRule("resume", calls, TurnPhase.PLAYER_TURN)]
    )

    session.step(Direction.SOUTH)

    assert session.phase is TurnPhase.PLAYER_DEAD
