from __future__ import annotations

from zonerunner.content.io import DEFAULT_MAP_PATH
from zonerunner.content.maps import ensure_map_file
from zonerunner.sim.core import ZoneSession
from zonerunner.sim.phases import TurnPhase
from zonerunner.sim.player import Direction
from zonerunner.sim.world import EntityType, Position, TileKind

TERRAIN_GLYPHS = {TileKind.FLOOR: ".", TileKind.WALL: "#"}
ENTITY_GLYPHS = {
    EntityType.GRAVITATIONAL_ANOMALY: "G",
    EntityType.PHILOSOPHER_STONE: "P",
    EntityType.RUST_ANOMALY: "R",
    EntityType.PLAYER_START: "S",
    EntityType.EXIT: "X",
    EntityType.LAMP_POST: "L",
}
ITEM_GLYPH = "*"
PLAYER_GLYPH = "@"

MOVE_KEYS = {
    "w": Direction.NORTH,
    "s": Direction.SOUTH,
    "d": Direction.EAST,
    "a": Direction.WEST,
}


class AsciiViewer:
    """Read-only projection of session state for terminal display."""

    def glyph_at(self, session: ZoneSession, position: Position) -> str:
        if session.player is not None and session.player.position == position:
            return PLAYER_GLYPH
        entity_types = session.zone_map.entity_types_at(position)
        if entity_types:
            return ENTITY_GLYPHS[entity_types[0]]
        if session.zone_map.ground_items_at(position) is not None:
            return ITEM_GLYPH
        tile = session.zone_map.grid.get_tile(position.x, position.y)
        return TERRAIN_GLYPHS[tile.kind]

    def render(self, session: ZoneSession) -> str:
        lines: list[str] = []
        header = f"turn={session.turn_counter} phase={session.phase.value}"
        player = session.player
        if player is not None:
            threshold = session.capacity.threshold(captured=player.is_captured)
            header += f" pos=({player.position.x},{player.position.y}) weight={player.carry_weight()}/{threshold}"
            if player.is_captured:
                header += f" capture_timer={player.capture_timer}"
            if session.metal_detected():
                header += " detector=BEEP"
        lines.append(header)

        for y in range(session.zone_map.height):
            lines.append("".join(self.glyph_at(session, Position(x, y)) for x in range(session.zone_map.width)))

        lines.extend(f"> {message}" for message in session.messages)
        lines.extend(self._panel_lines(session))
        return "\n".join(lines)

    def _panel_lines(self, session: ZoneSession) -> list[str]:
        player = session.player
        if session.phase is TurnPhase.ENTERING_ZONE:
            rows = ["Contracts:"]
            rows.extend(f"  - {contract.description}" for contract in session.contracts.contracts)
            return rows
        if session.phase is TurnPhase.INSPECTING_ITEMS and player is not None:
            record = session.zone_map.ground_items_at(player.position)
            items = record.items if record is not None else []
            return ["Items here:"] + [f"  [{index}] {item.name} (w={item.weight})" for index, item in enumerate(items)]
        if session.phase is TurnPhase.VIEWING_INVENTORY and player is not None:
            rows = [f"Inventory ({player.inventory.total_weight()}):"]
            rows.extend(
                f"  [{index}] {item.name} (w={item.weight})" for index, item in enumerate(player.inventory.items)
            )
            return rows
        if session.phase is TurnPhase.EXITING_ZONE:
            rows = ["You leave the Zone."]
            rows.extend(
                f"  [{'x' if status.completed else ' '}] {status.description}"
                for status in session.validate_contracts()
            )
            return rows
        if session.phase is TurnPhase.PLAYER_DEAD:
            return ["You died in the Zone."]
        return []


class SessionController:
    """Maps terminal commands onto session calls; owns no game state."""

    def __init__(self, session: ZoneSession) -> None:
        self.session = session

    def handle(self, command: str) -> bool:
        """Dispatch one command for the active phase. Returns False when nothing happened."""
        parts = command.split()
        if not parts:
            self.session.update()
            return True
        key = parts[0].lower()
        phase = self.session.phase

        if phase is TurnPhase.ENTERING_ZONE:
            return self.session.close_briefing()
        if phase in (TurnPhase.EXITING_ZONE, TurnPhase.PLAYER_DEAD):
            return self.session.confirm()
        if phase is TurnPhase.INSPECTING_ITEMS:
            if key == "esc":
                return self.session.close_inspect()
            if key == "take" and len(parts) == 2 and parts[1].isdigit() and self.session.player is not None:
                return self.session.pickup(self.session.player.position, int(parts[1])) is not None
            return False
        if phase is TurnPhase.VIEWING_INVENTORY:
            if key in {"esc", "i"}:
                closed = self.session.close_inventory()
                self.session.update()
                return closed
            if key == "drop" and len(parts) == 2 and parts[1].isdigit() and self.session.player is not None:
                before = self.session.player.inventory.count()
                self.session.drop(int(parts[1]))
                return self.session.player.inventory.count() < before
            return False
        if phase is TurnPhase.THROWING_BOLT:
            if key == "esc":
                return self.session.cancel_bolt_throw()
            direction = MOVE_KEYS.get(key)
            if direction is None:
                return False
            landing = self.session.throw_bolt(direction)
            self.session.update()
            return landing is not None
        if phase is TurnPhase.PLAYER_TURN:
            direction = MOVE_KEYS.get(key)
            if direction is not None:
                return self.session.step(direction).moved
            if key == "e":
                return self.session.open_inspect()
            if key == "i":
                return self.session.open_inventory()
            if key == "q":
                return self.session.begin_bolt_throw()
        return False


def run_demo(map_path: str = DEFAULT_MAP_PATH, seed: int = 7) -> None:
    session = ZoneSession(ensure_map_file(map_path), seed=seed)
    session.start()

    view = AsciiViewer()
    controller = SessionController(session)

    print(
        "Zone demo. Commands: w/a/s/d move | e inspect | take <n> | i inventory | drop <n> | "
        "q bolt then w/a/s/d | esc close | <enter> wait | quit"
    )
    print(view.render(session))

    while True:
        raw = input("> ").strip()
        if raw in {"quit", "exit"}:
            break
        if raw == "show":
            print(view.render(session))
            continue
        if not controller.handle(raw):
            print("nothing happens")
        print(view.render(session))


if __name__ == "__main__":
    run_demo()
