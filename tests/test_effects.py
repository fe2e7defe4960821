import random

from zonerunner.content.items import ItemType, make_item
from zonerunner.sim.core import ZoneSession
from zonerunner.sim.effects import CAPTURE_TURNS, PHILOSOPHER_IDLE_MESSAGES, RUST_VAGUE_MESSAGES
from zonerunner.sim.phases import TurnPhase
from zonerunner.sim.player import Direction
from zonerunner.sim.world import EntityType, Position, ZoneMap


class ScriptedRandom(random.Random):
    """Random stub returning scripted ``random()`` values and ``choice()`` indices."""

    def __init__(self, *, randoms: tuple[float, ...] = (), choices: tuple[int, ...] = ()) -> None:
        super().__init__(0)
        self.randoms = list(randoms)
        self.choices = list(choices)

    def random(self) -> float:
        return self.randoms.pop(0) if self.randoms else 0.99

    def choice(self, seq):
        return seq[self.choices.pop(0) if self.choices else 0]


def _session(*, rng: random.Random | None = None, start: Position = Position(0, 0)) -> ZoneSession:
    zone_map = ZoneMap.empty(12, 12)
    zone_map.place_entity(EntityType.PLAYER_START, start)
    session = ZoneSession(zone_map, seed=5, rng=rng)
    session.start()
    session.close_briefing()
    return session


def _tick(session: ZoneSession) -> list[str]:
    session.phase = TurnPhase.WORLD_UPDATE
    return session.run_world_update()


def test_pull_onto_anomaly_attaches_fresh_capture_timer() -> None:
    session = _session()
    session.zone_map.place_entity(EntityType.GRAVITATIONAL_ANOMALY, Position(5, 5))
    session.player.position = Position(6, 5)

    messages = _tick(session)

    assert session.player.position == Position(5, 5)
    assert session.player.capture_timer == CAPTURE_TURNS
    assert messages == ["Gravitational anomaly pulls you in!", "Immense pressure... 5 turns to escape!"]
    assert session.phase is TurnPhase.PLAYER_TURN
    assert session.turn_counter == 1


def test_pull_ignores_diagonal_and_distant_anomalies() -> None:
    session = _session()
    session.zone_map.place_entity(EntityType.GRAVITATIONAL_ANOMALY, Position(5, 5))
    for position in (Position(6, 6), Position(7, 5)):
        session.player.position = position
        assert _tick(session) == []
        assert session.player.position == position
        assert session.player.capture_timer is None


def test_pull_picks_first_anomaly_in_position_order() -> None:
    session = _session()
    session.zone_map.place_entity(EntityType.GRAVITATIONAL_ANOMALY, Position(5, 4))
    session.zone_map.place_entity(EntityType.GRAVITATIONAL_ANOMALY, Position(4, 5))
    session.player.position = Position(5, 5)

    _tick(session)

    assert session.player.position == Position(4, 5)


def test_step_into_range_runs_pull_in_same_world_update() -> None:
    session = _session(start=Position(7, 5))
    session.zone_map.place_entity(EntityType.GRAVITATIONAL_ANOMALY, Position(5, 5))

    result = session.step(Direction.WEST)

    assert result.moved
    assert session.player.position == Position(5, 5)
    assert session.player.capture_timer == CAPTURE_TURNS
    assert session.player.last_move is Direction.WEST


def test_pull_never_fires_while_captured() -> None:
    session = _session()
    session.zone_map.place_entity(EntityType.GRAVITATIONAL_ANOMALY, Position(5, 5))
    session.player.position = Position(6, 5)
    session.player.capture_timer = 3

    messages = _tick(session)

    assert session.player.position == Position(6, 5)
    assert session.player.capture_timer == 2
    assert messages == ["Crushing pressure! 2 turns left!"]


def test_leaving_range_removes_timer_instead_of_decrementing() -> None:
    session = _session()
    session.zone_map.place_entity(EntityType.GRAVITATIONAL_ANOMALY, Position(5, 5))
    session.player.position = Position(7, 5)
    session.player.capture_timer = 2

    messages = _tick(session)

    assert session.player.capture_timer is None
    assert messages == ["You break free from the anomaly!"]


def test_timer_reaching_zero_ends_in_player_dead() -> None:
    session = _session()
    session.zone_map.place_entity(EntityType.GRAVITATIONAL_ANOMALY, Position(5, 5))
    session.player.position = Position(6, 5)
    session.player.capture_timer = 1

    messages = _tick(session)

    assert session.player.capture_timer == 0
    assert messages == ["Crushing pressure! 0 turns left!", "You are crushed to death!"]
    assert session.phase is TurnPhase.PLAYER_DEAD
    assert session.turn_counter == 1


def test_five_in_range_ticks_after_capture_are_fatal() -> None:
    session = _session()
    session.zone_map.place_entity(EntityType.GRAVITATIONAL_ANOMALY, Position(5, 5))
    session.player.position = Position(5, 6)

    _tick(session)
    assert session.player.capture_timer == CAPTURE_TURNS

    for remaining in (4, 3, 2, 1):
        _tick(session)
        assert session.player.capture_timer == remaining
        assert session.phase is TurnPhase.PLAYER_TURN

    _tick(session)
    assert session.phase is TurnPhase.PLAYER_DEAD


def test_stone_transform_draws_from_cheaper_catalog_entries() -> None:
    session = _session(rng=ScriptedRandom(randoms=(0.5,), choices=(0, 1)))
    cell = Position(3, 3)
    session.zone_map.place_entity(EntityType.PHILOSOPHER_STONE, cell)
    session.zone_map.add_ground_item(cell, make_item(ItemType.SCRAP))
    session.player.position = cell

    messages = _tick(session)

    assert [item.name for item in session.zone_map.ground_items_at(cell).items] == ["Glass Jar"]
    assert messages == ["The stone glows. The Scrap becomes a Glass Jar!"]


def test_stone_rare_branch_always_yields_fully_empty() -> None:
    session = _session(rng=ScriptedRandom(randoms=(0.01,), choices=(0,)))
    cell = Position(3, 3)
    session.zone_map.place_entity(EntityType.PHILOSOPHER_STONE, cell)
    session.zone_map.add_ground_item(cell, make_item(ItemType.RUST_SLAG))
    session.player.position = cell

    _tick(session)

    assert [item.name for item in session.zone_map.ground_items_at(cell).items] == ["Fully Empty"]


def test_stone_appends_replacement_after_remaining_items() -> None:
    session = _session(rng=ScriptedRandom(randoms=(0.5,), choices=(0, 0)))
    cell = Position(3, 3)
    session.zone_map.place_entity(EntityType.PHILOSOPHER_STONE, cell)
    session.zone_map.add_ground_item(cell, make_item(ItemType.BATTERY))
    session.zone_map.add_ground_item(cell, make_item(ItemType.BOLT))
    session.player.position = cell

    _tick(session)

    assert [item.name for item in session.zone_map.ground_items_at(cell).items] == ["Bolt", "Glass Jar"]


def test_stone_leaves_tools_alone_and_posts_flavor_text() -> None:
    session = _session(rng=ScriptedRandom(choices=(2,)))
    cell = Position(3, 3)
    session.zone_map.place_entity(EntityType.PHILOSOPHER_STONE, cell)
    session.zone_map.add_ground_item(cell, make_item(ItemType.BOLT))
    session.zone_map.add_ground_item(cell, make_item(ItemType.METAL_DETECTOR))
    session.player.position = cell

    messages = _tick(session)

    assert messages == [PHILOSOPHER_IDLE_MESSAGES[2]]
    assert [item.name for item in session.zone_map.ground_items_at(cell).items] == ["Bolt", "Metal Detector"]


def test_stone_output_never_gains_value_except_fully_empty() -> None:
    session = _session(rng=random.Random(2024))
    cell = Position(3, 3)
    session.zone_map.place_entity(EntityType.PHILOSOPHER_STONE, cell)
    session.player.position = cell

    for _ in range(200):
        session.zone_map.clear_ground_items(cell)
        session.zone_map.add_ground_item(cell, make_item(ItemType.BATTERY))
        _tick(session)
        (result,) = session.zone_map.ground_items_at(cell).items
        assert result.name == "Fully Empty" or (result.value is not None and result.value <= 3)


def test_stone_without_ground_items_does_nothing() -> None:
    session = _session()
    cell = Position(3, 3)
    session.zone_map.place_entity(EntityType.PHILOSOPHER_STONE, cell)
    session.player.position = cell

    assert _tick(session) == []


def test_rust_corrodes_ground_item_with_specific_message() -> None:
    session = _session(rng=ScriptedRandom(choices=(0,)))
    cell = Position(4, 4)
    session.zone_map.place_entity(EntityType.RUST_ANOMALY, cell)
    session.zone_map.add_ground_item(cell, make_item(ItemType.GLASS_JAR))
    session.zone_map.add_ground_item(cell, make_item(ItemType.SCRAP))
    session.player.inventory.add_item(make_item(ItemType.METAL_DETECTOR))
    session.player.position = cell

    messages = _tick(session)

    assert [item.name for item in session.zone_map.ground_items_at(cell).items] == ["Glass Jar", "Rust Slag"]
    assert [item.name for item in session.player.inventory.items] == ["Metal Detector"]
    assert messages == ["The Scrap on the ground corrodes into Rust Slag."]


def test_rust_corrodes_inventory_item_with_vague_message() -> None:
    session = _session(rng=ScriptedRandom(choices=(1, 3)))
    cell = Position(4, 4)
    session.zone_map.place_entity(EntityType.RUST_ANOMALY, cell)
    session.zone_map.add_ground_item(cell, make_item(ItemType.SCRAP))
    session.player.inventory.add_item(make_item(ItemType.BATTERY))
    session.player.inventory.add_item(make_item(ItemType.METAL_DETECTOR))
    session.player.position = cell

    messages = _tick(session)

    assert [item.name for item in session.player.inventory.items] == ["Battery", "Rust Slag"]
    assert [item.name for item in session.zone_map.ground_items_at(cell).items] == ["Scrap"]
    assert messages == [RUST_VAGUE_MESSAGES[3]]


def test_rust_without_metal_is_a_no_op() -> None:
    session = _session()
    cell = Position(4, 4)
    session.zone_map.place_entity(EntityType.RUST_ANOMALY, cell)
    session.zone_map.add_ground_item(cell, make_item(ItemType.GLASS_JAR))
    session.player.inventory.add_item(make_item(ItemType.BOLT))
    session.player.position = cell

    assert _tick(session) == []
    assert session.zone_map.ground_items_at(cell).items[0].name == "Glass Jar"
    assert session.turn_counter == 1


def test_world_update_messages_also_land_in_log() -> None:
    session = _session()
    session.zone_map.place_entity(EntityType.GRAVITATIONAL_ANOMALY, Position(5, 5))
    session.player.position = Position(5, 4)

    messages = _tick(session)

    assert session.messages.messages()[-2:] == messages
